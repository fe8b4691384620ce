import dataclasses

import pytest

import dwummer.assembler
import dwummer.errors
from dwummer.roles import Role


def test_too_close_hit_is_delayed (make_event) -> None:

	"""A second kick 50 ticks after the first moves to the 120-tick boundary."""

	events = dwummer.assembler.assemble([make_event(Role.KICK, 0), make_event(Role.KICK, 50)], 0, 3840)

	assert [event.start for event in events] == [0, 120]


def test_crowded_ornament_is_dropped_not_delayed (make_event) -> None:

	"""A grace note that lands too close is removed so the hit after it keeps its place."""

	ghost = dataclasses.replace(make_event(Role.KICK, 880, 36, velocity=50), ornament=True)
	assembler = dwummer.assembler.Assembler()
	kept = assembler.add_unit([make_event(Role.KICK, 800, 36), ghost, make_event(Role.KICK, 1000, 36)], 0, 3840)

	assert [event.start for event in kept] == [800, 1000]
	assert not any(event.ornament for event in kept)
	assert assembler.dropped == 1


def test_ordinary_hit_wins_a_tie_with_an_ornament (make_event) -> None:

	"""When an ornament shares a tick with an ordinary hit, the ordinary hit stays on time."""

	ghost = dataclasses.replace(make_event(Role.KICK, 0, 36, velocity=50), ornament=True)
	kept = dwummer.assembler.assemble([ghost, make_event(Role.KICK, 0, 36, velocity=110)], 0, 3840)

	assert [(event.start, event.velocity) for event in kept] == [(0, 110)]


def test_ornament_never_pushes_a_later_hit (make_event) -> None:

	"""An ornament just ahead of an ordinary hit is dropped rather than delaying the hits after it."""

	flam = dataclasses.replace(make_event(Role.KICK, 1780, 36, velocity=60), ornament=True)
	kept = dwummer.assembler.assemble([flam, make_event(Role.KICK, 1790, 36), make_event(Role.KICK, 1910, 36)], 0, 3840)

	assert [event.start for event in kept] == [1790, 1910]


def test_ornament_with_room_is_kept (make_event) -> None:

	"""An ornament clear of its neighbours keeps its tick."""

	ghost = dataclasses.replace(make_event(Role.KICK, 840, 36, velocity=50), ornament=True)
	kept = dwummer.assembler.assemble([make_event(Role.KICK, 0, 36), ghost, make_event(Role.KICK, 960, 36)], 0, 3840)

	assert [(event.start, event.ornament) for event in kept] == [(0, False), (840, True), (960, False)]


def test_delay_past_unit_end_drops (make_event) -> None:

	"""When the delay would leave the unit the hit is dropped instead."""

	assembler = dwummer.assembler.Assembler()
	kept = assembler.add_unit([make_event(Role.KICK, 3800), make_event(Role.KICK, 3830)], 0, 3840)

	assert [event.start for event in kept] == [3800]
	assert assembler.dropped == 1


def test_ties_broken_by_role_priority (make_event) -> None:

	"""At the same tick the kick comes before the snare and the snare before the hat."""

	events = dwummer.assembler.assemble(
		[make_event(Role.CLOSED_HAT, 0, 42), make_event(Role.SNARE, 0, 38), make_event(Role.KICK, 0, 36)],
		0, 3840,
	)

	assert [event.role for event in events] == [Role.KICK, Role.SNARE, Role.CLOSED_HAT]


def test_events_are_clamped_into_the_unit (make_event) -> None:

	"""Humanized events that spill over the unit edges are pulled back in."""

	events = dwummer.assembler.assemble([make_event(Role.SNARE, -10), make_event(Role.KICK, 5000)], 0, 3840)

	assert [event.start for event in events] == [0, 3839]


def test_spacing_holds_across_units (make_event) -> None:

	"""The last hit of one unit constrains the first of the next."""

	assembler = dwummer.assembler.Assembler()
	assembler.add_unit([make_event(Role.KICK, 3830)], 0, 3840)
	assembler.add_unit([make_event(Role.KICK, 3840)], 3840, 7680)

	assert [event.start for event in assembler.finish()] == [3830, 3950]


def test_different_roles_do_not_constrain_each_other (make_event) -> None:

	"""Spacing is per role."""

	events = dwummer.assembler.assemble([make_event(Role.KICK, 0), make_event(Role.SNARE, 10)], 0, 3840)

	assert [event.start for event in events] == [0, 10]


def test_delay_reorders_output (make_event) -> None:

	"""A delayed hit is re-sorted after events it now follows."""

	events = dwummer.assembler.assemble(
		[make_event(Role.KICK, 0), make_event(Role.KICK, 20), make_event(Role.SNARE, 100)],
		0, 3840,
	)

	assert [(event.role, event.start) for event in events] == [(Role.KICK, 0), (Role.SNARE, 100), (Role.KICK, 120)]


def test_unit_shorter_than_min_interval (make_event) -> None:

	"""A unit shorter than a role's minimum interval cannot be repaired."""

	with pytest.raises(dwummer.errors.ConstraintViolationAfterGeneration):
		dwummer.assembler.assemble([make_event(Role.SNARE, 0)], 0, 30)


def test_resolution_scales_intervals (make_event) -> None:

	"""At 480 ticks per quarter the kick interval halves to 60."""

	events = dwummer.assembler.assemble([make_event(Role.KICK, 0), make_event(Role.KICK, 10)], 0, 1920, ticks_per_quarter=480)

	assert [event.start for event in events] == [0, 60]


def test_verify_spacing (make_event) -> None:

	"""The final check catches close hits and bad ordering."""

	dwummer.assembler.verify_spacing([make_event(Role.KICK, 0), make_event(Role.KICK, 120)])

	with pytest.raises(dwummer.errors.ConstraintViolationAfterGeneration):
		dwummer.assembler.verify_spacing([make_event(Role.KICK, 0), make_event(Role.KICK, 100)])

	with pytest.raises(dwummer.errors.ConstraintViolationAfterGeneration):
		dwummer.assembler.verify_spacing([make_event(Role.SNARE, 500), make_event(Role.KICK, 0)])


def test_empty_unit_is_invalid (make_event) -> None:

	"""A unit must have a positive length."""

	with pytest.raises(dwummer.errors.InvalidParameter):
		dwummer.assembler.Assembler().add_unit([], 100, 100)
