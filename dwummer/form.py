"""Song form - which section a repetition unit belongs to, and how tense it is.

Defines :class:`SectionContext` (the immutable per-unit snapshot handed to
the generation layers), :func:`section_for` (auto or fixed section layout)
and :func:`tension_for` (the scalar that drives fill complexity).
"""

import dataclasses
import enum
import logging
import typing

import dwummer.constants
import dwummer.errors
import dwummer.sequence_utils


logger = logging.getLogger(__name__)


class SectionType (enum.Enum):

	INTRO = "intro"
	VERSE = "verse"
	CHORUS = "chorus"
	BRIDGE = "bridge"
	OUTRO = "outro"

	@classmethod
	def parse (cls, name: typing.Union[str, "SectionType"]) -> "SectionType":

		if isinstance(name, SectionType):
			return name

		try:
			return cls(name.strip().lower())
		except ValueError:
			known = ", ".join(section.value for section in cls)
			raise dwummer.errors.InvalidParameter(f"Unknown section '{name}'. Known sections: {known}") from None


AUTO = "auto"


@dataclasses.dataclass(frozen=True)
class SectionContext:

	"""
	An immutable snapshot of the section a repetition unit belongs to.

	Attributes:
		type: The section kind.
		density_multiplier: Scales how busy the non-core parts are
			(below 1 thins them out, above 1 adds hits).
		dynamics_offset: Velocity offset for every note in the section.
		fill_probability: Chance of a fill at the end of a unit.
		complexity: 0-1, feeds into tension.
		energy: 0-1, pushes timing ahead (high) or lays it back (low).
		bar: Unit index within the section (0-indexed).
		bars: Length of the section in units.
	"""

	type: SectionType
	density_multiplier: float
	dynamics_offset: int
	fill_probability: float
	complexity: float
	energy: float = 0.5
	bar: int = 0
	bars: int = 1

	@property
	def progress (self) -> float:

		"""Return how far through this section we are (0.0 to ~1.0)."""

		if self.bars <= 0:
			return 0.0

		return self.bar / self.bars

	@property
	def last_bar (self) -> bool:

		"""Return True if this is the last unit of the section."""

		return self.bar == self.bars - 1


@dataclasses.dataclass(frozen=True)
class SectionProfile:

	density_multiplier: float
	dynamics_offset: int
	fill_probability: float
	complexity: float
	energy: float


SECTION_PROFILES: typing.Dict[SectionType, SectionProfile] = {
	SectionType.INTRO:  SectionProfile(density_multiplier=0.6,  dynamics_offset=-15, fill_probability=0.10, complexity=0.2, energy=0.3),
	SectionType.VERSE:  SectionProfile(density_multiplier=0.85, dynamics_offset=-5,  fill_probability=0.20, complexity=0.4, energy=0.5),
	SectionType.CHORUS: SectionProfile(density_multiplier=1.15, dynamics_offset=10,  fill_probability=0.35, complexity=0.7, energy=0.8),
	SectionType.BRIDGE: SectionProfile(density_multiplier=0.9,  dynamics_offset=0,   fill_probability=0.30, complexity=0.6, energy=0.6),
	SectionType.OUTRO:  SectionProfile(density_multiplier=0.7,  dynamics_offset=-10, fill_probability=0.25, complexity=0.3, energy=0.35),
}

INTRO_UNITS = 2
OUTRO_UNITS = 2

# Layouts for sequences too short for the intro + body + outro split.
SHORT_FORMS: typing.Dict[int, typing.Tuple[SectionType, ...]] = {
	1: (SectionType.VERSE,),
	2: (SectionType.INTRO, SectionType.OUTRO),
	3: (SectionType.INTRO, SectionType.VERSE, SectionType.OUTRO),
	4: (SectionType.INTRO, SectionType.VERSE, SectionType.CHORUS, SectionType.OUTRO),
}


def layout (total_units: int) -> typing.List[typing.Tuple[SectionType, int]]:

	"""
	Split ``total_units`` into ``(section, units)`` runs.

	Five units or more: two intro units, two outro units, and the body
	between them divided in thirds into verse, chorus and bridge. A third
	that would be empty is left out rather than given zero length.
	Shorter sequences use :data:`SHORT_FORMS`.
	"""

	if total_units < 1:
		raise dwummer.errors.InvalidParameter(f"Total units ({total_units}) must be at least 1")

	if total_units in SHORT_FORMS:
		return [(section, 1) for section in SHORT_FORMS[total_units]]

	body = total_units - INTRO_UNITS - OUTRO_UNITS
	verse_end = -(-body // 3)
	chorus_end = -(-2 * body // 3)

	runs = [
		(SectionType.INTRO, INTRO_UNITS),
		(SectionType.VERSE, verse_end),
		(SectionType.CHORUS, chorus_end - verse_end),
		(SectionType.BRIDGE, body - chorus_end),
		(SectionType.OUTRO, OUTRO_UNITS),
	]

	return [(section, units) for section, units in runs if units > 0]


def section_for (unit_index: int, total_units: int, mode: typing.Union[str, SectionType] = AUTO) -> SectionContext:

	"""
	Return the section context for one repetition unit.

	Parameters:
		unit_index: Zero-based unit.
		total_units: Length of the whole sequence in units.
		mode: ``"auto"`` for the automatic layout, or a section type (name)
			applied to every unit.
	"""

	if not 0 <= unit_index < max(total_units, 0):
		raise dwummer.errors.InvalidParameter(f"Unit index {unit_index} is outside 0-{total_units - 1}")

	if mode == AUTO:
		runs = layout(total_units)
	else:
		runs = [(SectionType.parse(mode), total_units)]

	start = 0

	for section, units in runs:
		if unit_index < start + units:
			profile = SECTION_PROFILES[section]
			return SectionContext(
				type = section,
				density_multiplier = profile.density_multiplier,
				dynamics_offset = profile.dynamics_offset,
				fill_probability = profile.fill_probability,
				complexity = profile.complexity,
				energy = profile.energy,
				bar = unit_index - start,
				bars = units,
			)
		start += units

	raise AssertionError("Section layout does not cover every unit")


POSITION_WEIGHT = 0.4
COMPLEXITY_WEIGHT = 0.4
DENSITY_WEIGHT = 0.2


def tension_for (
	unit_index: int,
	total_units: int,
	section: SectionContext,
	target_density: float = 0.0,
	previous_density: float = 0.0,
) -> float:

	"""
	Combine position, complexity and density change into a tension in [0, 1].

	Parameters:
		unit_index: Zero-based unit.
		total_units: Length of the whole sequence.
		section: The unit's section context.
		target_density: This unit's intended density (0-1).
		previous_density: The density the previous unit actually reached (0-1).
	"""

	if total_units < 1:
		raise dwummer.errors.InvalidParameter(f"Total units ({total_units}) must be at least 1")

	position = unit_index / (total_units - 1) if total_units > 1 else 1.0
	position = dwummer.sequence_utils.clamp01(position)

	# Density delta is in [-1, 1]; map it onto [0, 1] around a neutral 0.5.
	delta = dwummer.sequence_utils.scale_clamp(target_density - previous_density, -1.0, 1.0)

	tension = (
		POSITION_WEIGHT * position
		+ COMPLEXITY_WEIGHT * section.complexity
		+ DENSITY_WEIGHT * delta
	)

	return dwummer.sequence_utils.clamp01(tension)
