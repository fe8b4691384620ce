import typing

import pytest

import dwummer.config
import dwummer.event
import dwummer.rng
from dwummer.roles import Role


@pytest.fixture
def rng () -> dwummer.rng.RngContext:

	"""A freshly seeded session RNG."""

	return dwummer.rng.RngContext(42)


@pytest.fixture
def house_config () -> dwummer.config.SessionConfig:

	"""Four bars of house with the default kit."""

	return dwummer.config.SessionConfig(seed=42, repetition_units=4, genre="house")


@pytest.fixture
def make_event () -> typing.Callable[..., dwummer.event.Event]:

	"""Factory for events with sensible defaults."""

	def _make (role: Role = Role.SNARE, start: int = 0, pitch: int = 38, velocity: int = 100, duration: int = 120) -> dwummer.event.Event:

		return dwummer.event.Event(role=role, pitch=pitch, start=start, duration=duration, velocity=velocity)

	return _make
