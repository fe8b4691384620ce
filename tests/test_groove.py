import pytest

import dwummer.errors
import dwummer.groove
from dwummer.roles import Role


# ── Groove.swing() factory ───────────────────────────────────────────


def test_swing_50_percent_is_straight () -> None:

	"""50% swing produces zero offsets (straight time)."""

	g = dwummer.groove.Groove.swing(percent=50.0)
	assert g.offsets == [0.0, 0.0]
	assert g.grid == 0.25


def test_swing_57_percent () -> None:

	"""57% swing produces the expected offset for 16th notes."""

	g = dwummer.groove.Groove.swing(percent=57.0)
	assert g.offsets[0] == 0.0
	assert abs(g.offsets[1] - 0.035) < 1e-9


def test_swing_67_percent_triplet () -> None:

	"""67% gives approximate triplet swing."""

	g = dwummer.groove.Groove.swing(percent=67.0)
	# 67% of 0.5 = 0.335, offset = 0.335 - 0.25 = 0.085
	assert abs(g.offsets[1] - 0.085) < 1e-9


def test_swing_out_of_range () -> None:

	"""Swing below 50% or at 100% is rejected."""

	with pytest.raises(dwummer.errors.InvalidParameter):
		dwummer.groove.Groove.swing(percent=40.0)

	with pytest.raises(dwummer.errors.InvalidParameter):
		dwummer.groove.Groove.swing(percent=100.0)


def test_groove_validation () -> None:

	"""Empty offsets and a non-positive grid are errors."""

	with pytest.raises(dwummer.errors.InvalidParameter):
		dwummer.groove.Groove(offsets=[])

	with pytest.raises(dwummer.errors.InvalidParameter):
		dwummer.groove.Groove(offsets=[0.0], grid=0.0)


# ── apply_groove ─────────────────────────────────────────────────────


def test_swing_delays_off_beat_sixteenths (make_event) -> None:

	"""Off-beat 16ths move late; on-beat 16ths stay put."""

	groove = dwummer.groove.Groove.swing(percent=57.0)
	events = [make_event(role=Role.CLOSED_HAT, start=0), make_event(role=Role.CLOSED_HAT, start=240)]

	result = dwummer.groove.apply_groove(events, groove, ticks_per_quarter=960)

	assert result[0].start == 0
	assert result[1].start == 274


def test_events_between_grid_positions_untouched (make_event) -> None:

	"""Notes far from any grid slot keep their timing."""

	groove = dwummer.groove.Groove.swing(percent=60.0)
	result = dwummer.groove.apply_groove([make_event(start=120)], groove, ticks_per_quarter=960)

	assert result[0].start == 120


def test_groove_does_not_modify_input (make_event) -> None:

	"""New events are returned; the originals are frozen anyway."""

	event = make_event(start=240)
	dwummer.groove.apply_groove([event], dwummer.groove.Groove.swing(percent=57.0), ticks_per_quarter=960)

	assert event.start == 240


def test_groove_follows_beat_length (make_event) -> None:

	"""With a shorter beat the swing offset shrinks in proportion."""

	groove = dwummer.groove.Groove.swing(percent=60.0)
	result = dwummer.groove.apply_groove([make_event(start=120), make_event(start=240)], groove, ticks_per_quarter=480.0)

	assert [event.start for event in result] == [144, 240]
