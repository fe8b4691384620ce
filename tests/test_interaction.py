import pytest

import dwummer.interaction
import dwummer.rng


class FixedRandom:

	"""Stands in for the RNG with a constant draw."""

	def __init__ (self, value: float) -> None:

		self.value = value
		self.draws = 0

	def random (self) -> float:

		self.draws += 1
		return self.value


def test_strength_rises_at_phrase_end () -> None:

	"""Base strength is 0.3, plus 0.3 in the final quarter of the phrase."""

	assert dwummer.interaction.interaction_strength(0.0) == pytest.approx(0.3)
	assert dwummer.interaction.interaction_strength(0.5) == pytest.approx(0.3)
	assert dwummer.interaction.interaction_strength(0.75) == pytest.approx(0.6)


def test_secondary_steps_aside_under_primary () -> None:

	"""When the exchange runs, secondary hits under primary hits are suppressed."""

	primary = [1, 0, 1, 0]
	secondary = [1, 1, 1, 1]

	result = dwummer.interaction.derive_complementary(primary, secondary, 0.9, FixedRandom(0.0))

	assert result == [0, 1, 0, 1]


def test_response_where_both_rest () -> None:

	"""Where both voices rest the secondary may answer."""

	result = dwummer.interaction.derive_complementary([1, 0, 0, 0], [0, 0, 0, 1], 0.9, FixedRandom(0.0))

	assert result == [0, 1, 1, 1]


def test_no_exchange_leaves_secondary_alone () -> None:

	"""A failed strength trial returns the secondary unchanged after one draw."""

	rng = FixedRandom(0.99)
	secondary = [1, 0, 1, 0]

	assert dwummer.interaction.derive_complementary([1, 1, 1, 1], secondary, 0.0, rng) == secondary
	assert rng.draws == 1


def test_protected_steps_are_untouched () -> None:

	"""Core steps of the secondary never change and consume no draw."""

	rng = FixedRandom(0.0)
	result = dwummer.interaction.derive_complementary([1, 1, 1, 1], [1, 1, 1, 1], 0.9, rng, protected={0, 2})

	assert result == [1, 0, 1, 0]
	assert rng.draws == 3


def test_input_is_not_mutated () -> None:

	"""The caller's sequences are read only."""

	primary = [1, 0, 1, 0]
	secondary = [1, 1, 0, 0]

	dwummer.interaction.derive_complementary(primary, secondary, 0.9, dwummer.rng.RngContext(1))

	assert primary == [1, 0, 1, 0]
	assert secondary == [1, 1, 0, 0]


def test_length_mismatch () -> None:

	"""Sequences must line up step for step."""

	with pytest.raises(ValueError):
		dwummer.interaction.derive_complementary([1, 0], [1, 0, 0], 0.0, dwummer.rng.RngContext(1))
