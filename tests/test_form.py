import pytest

import dwummer.errors
import dwummer.form
from dwummer.form import SectionType


def _expand (total: int) -> list:

	"""Section type of every unit, in order."""

	return [dwummer.form.section_for(i, total).type for i in range(total)]


# --- layout ---


def test_layout_eight_units () -> None:

	"""Two intro, the body in thirds, two outro."""

	assert dwummer.form.layout(8) == [
		(SectionType.INTRO, 2),
		(SectionType.VERSE, 2),
		(SectionType.CHORUS, 1),
		(SectionType.BRIDGE, 1),
		(SectionType.OUTRO, 2),
	]


def test_layout_eleven_units () -> None:

	"""A seven-unit body splits 3 / 2 / 2."""

	assert dwummer.form.layout(11) == [
		(SectionType.INTRO, 2),
		(SectionType.VERSE, 3),
		(SectionType.CHORUS, 2),
		(SectionType.BRIDGE, 2),
		(SectionType.OUTRO, 2),
	]


def test_layout_omits_empty_sections () -> None:

	"""A one-unit body is all verse; no zero-length sections appear."""

	assert dwummer.form.layout(5) == [(SectionType.INTRO, 2), (SectionType.VERSE, 1), (SectionType.OUTRO, 2)]


@pytest.mark.parametrize("total, expected", [
	(1, [SectionType.VERSE]),
	(2, [SectionType.INTRO, SectionType.OUTRO]),
	(3, [SectionType.INTRO, SectionType.VERSE, SectionType.OUTRO]),
	(4, [SectionType.INTRO, SectionType.VERSE, SectionType.CHORUS, SectionType.OUTRO]),
])
def test_short_forms (total: int, expected: list) -> None:

	"""Sequences under five units use the fallback table."""

	assert _expand(total) == expected


def test_layout_covers_every_unit () -> None:

	"""Runs are positive and add up to the total."""

	for total in range(1, 40):
		runs = dwummer.form.layout(total)
		assert sum(units for _, units in runs) == total
		assert all(units > 0 for _, units in runs)


def test_layout_rejects_empty_sequence () -> None:

	"""Zero units is invalid."""

	with pytest.raises(dwummer.errors.InvalidParameter):
		dwummer.form.layout(0)


# --- section_for ---


def test_section_context_bar_counting () -> None:

	"""Contexts know their bar within the section and whether it is the last."""

	first = dwummer.form.section_for(2, 8)
	second = dwummer.form.section_for(3, 8)

	assert first.type == SectionType.VERSE
	assert (first.bar, first.bars, first.last_bar) == (0, 2, False)
	assert (second.bar, second.last_bar) == (1, True)
	assert second.progress == 0.5


def test_manual_mode () -> None:

	"""A fixed section applies to every unit."""

	assert _expand_manual(6, "chorus") == [SectionType.CHORUS] * 6


def _expand_manual (total: int, mode: str) -> list:

	return [dwummer.form.section_for(i, total, mode).type for i in range(total)]


def test_section_profiles () -> None:

	"""Chorus is denser and louder than the intro."""

	intro = dwummer.form.section_for(0, 8)
	chorus = dwummer.form.section_for(4, 8)

	assert chorus.density_multiplier > 1.0 > intro.density_multiplier
	assert chorus.dynamics_offset > intro.dynamics_offset
	assert chorus.fill_probability > intro.fill_probability


def test_section_for_out_of_range () -> None:

	"""Unit indices outside the sequence are rejected."""

	with pytest.raises(dwummer.errors.InvalidParameter):
		dwummer.form.section_for(8, 8)

	with pytest.raises(dwummer.errors.InvalidParameter):
		dwummer.form.section_for(0, 4, "coda")


# --- tension_for ---


def test_tension_is_bounded () -> None:

	"""Tension stays in [0, 1] for every unit, length and density change."""

	for total in range(1, 25):
		for unit in range(total):
			section = dwummer.form.section_for(unit, total)
			for target, previous in ((0.0, 1.0), (0.5, 0.5), (1.0, 0.0)):
				tension = dwummer.form.tension_for(unit, total, section, target, previous)
				assert 0.0 <= tension <= 1.0


def test_tension_rises_through_the_structure () -> None:

	"""With the same section and density, later units are tenser."""

	section = dwummer.form.section_for(0, 16, "verse")

	early = dwummer.form.tension_for(1, 16, section)
	late = dwummer.form.tension_for(14, 16, section)

	assert late > early


def test_tension_weights () -> None:

	"""0.4 position + 0.4 complexity + 0.2 density change."""

	section = dwummer.form.section_for(0, 3, "chorus")

	# Last unit, complexity 0.7, density change +1 (maps to 1.0).
	assert dwummer.form.tension_for(2, 3, section, 1.0, 0.0) == pytest.approx(0.4 + 0.4 * 0.7 + 0.2)

	# First unit, no density change (maps to 0.5).
	assert dwummer.form.tension_for(0, 3, section, 0.4, 0.4) == pytest.approx(0.4 * 0.7 + 0.2 * 0.5)
