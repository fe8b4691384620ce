"""Fill templates and the tension-driven fill selector.

A :class:`FillTemplate` is a static table of entries, each
``(pitch index, position, velocity modifier, articulation)``. Positions are
fractions of the span the fill is given; pitch indices point into the
session's fill pool (snare, then toms from high to low) and wrap around
when the pool is smaller than the template expects.

Templates are grouped into four complexity tiers. :func:`select_fill` maps
tension onto a tier and picks a template from it, avoiding the previous
fill when there is a choice.
"""

import dataclasses
import enum
import logging
import typing

import dwummer.constants.pulses
import dwummer.constants.velocity
import dwummer.errors
import dwummer.rng
import dwummer.roles
from dwummer.roles import Role


logger = logging.getLogger(__name__)


class Articulation (enum.Enum):

	HIT = "hit"
	ACCENT = "accent"
	GHOST = "ghost"
	FLAM = "flam"


ACCENT_BOOST = 10
GHOST_SCALE = 0.45
FLAM_GRACE_SCALE = 0.6


@dataclasses.dataclass(frozen=True)
class FillEntry:

	index: int
	position: float
	velocity_mod: int = 0
	articulation: Articulation = Articulation.HIT


@dataclasses.dataclass(frozen=True)
class FillTemplate:

	name: str
	tier: int
	entries: typing.Tuple[FillEntry, ...]

	@property
	def pitches_needed (self) -> int:

		return max(entry.index for entry in self.entries) + 1


def _template (name: str, tier: int, *entries: typing.Tuple[typing.Any, ...]) -> FillTemplate:

	return FillTemplate(name=name, tier=tier, entries=tuple(FillEntry(*entry) for entry in entries))


H = Articulation.HIT
A = Articulation.ACCENT
G = Articulation.GHOST
F = Articulation.FLAM

FILL_LIBRARY: typing.Dict[str, FillTemplate] = {template.name: template for template in (

	# Tier 0 - a nudge into the next bar.
	_template("snare_pickup", 0, (0, 0.0, -8, H), (0, 0.5, 4, A)),
	_template("tom_drop", 0, (1, 0.0, 0, H), (3, 0.5, 0, H)),
	_template("ghost_lead_in", 0, (0, 0.5, 0, G), (0, 0.75, 6, A)),

	# Tier 1 - straight sixteenths.
	_template("sixteenth_snare", 1, (0, 0.0, -12, H), (0, 0.25, -8, H), (0, 0.5, -4, H), (0, 0.75, 2, A)),
	_template("descending_toms", 1, (1, 0.0, 0, H), (1, 0.25, -4, H), (2, 0.5, 0, H), (3, 0.75, 4, A)),
	_template("snare_to_floor", 1, (0, 0.0, 0, H), (0, 0.25, -6, H), (1, 0.5, 0, H), (3, 0.75, 4, A)),

	# Tier 2 - triplets, flams and ghosted figures.
	_template(
		"triplet_roll", 2,
		(0, 0.0, -6, H), (0, 1 / 6, -8, H), (1, 2 / 6, -4, H),
		(1, 3 / 6, -6, H), (2, 4 / 6, -2, H), (3, 5 / 6, 4, A),
	),
	_template("flam_accents", 2, (0, 0.0, 4, F), (1, 0.375, 0, H), (2, 0.5, 0, F), (3, 0.75, 6, A)),
	_template(
		"ghost_groove", 2,
		(0, 0.0, 0, G), (0, 0.125, 0, G), (0, 0.25, 6, A), (0, 0.375, 0, G),
		(1, 0.5, 0, H), (2, 0.625, -2, H), (3, 0.75, 6, A),
	),

	# Tier 3 - dense runs around the kit.
	_template(
		"thirty_second_roll", 3,
		(0, 0.0, -20, H), (0, 0.125, -17, H), (0, 0.25, -14, H), (0, 0.375, -11, H),
		(0, 0.5, -8, H), (0, 0.625, -5, H), (0, 0.75, -2, H), (0, 0.875, 6, A),
	),
	_template(
		"kit_cascade", 3,
		(0, 0.0, 0, F), (0, 0.125, -6, H), (1, 0.25, 0, H), (1, 0.375, -6, H),
		(2, 0.5, 0, H), (2, 0.625, -6, H), (3, 0.75, 2, H), (3, 0.875, 8, A),
	),
	_template(
		"sextuplet_build", 3,
		(0, 0.0, -10, G), (0, 1 / 12, -8, H), (1, 2 / 12, -6, H), (0, 3 / 12, -8, G),
		(1, 4 / 12, -4, H), (2, 5 / 12, -2, H), (0, 6 / 12, -6, G), (2, 7 / 12, 0, H),
		(3, 8 / 12, 2, H), (0, 9 / 12, 0, F), (3, 10 / 12, 4, H), (3, 11 / 12, 8, A),
	),
)}

TIER_COUNT = 4


def tier_for (tension: float) -> int:

	"""Below 0.3 → 0, 0.3-0.6 → 1, 0.6-0.85 → 2, above 0.85 → 3."""

	if tension < 0.3:
		return 0
	if tension < 0.6:
		return 1
	if tension <= 0.85:
		return 2
	return 3


def templates_in_tier (tier: int) -> typing.List[FillTemplate]:

	return [template for template in FILL_LIBRARY.values() if template.tier == tier]


@dataclasses.dataclass(frozen=True)
class FillContext:

	"""
	What the selector knows when choosing a fill.

	Attributes:
		tension: 0-1 tension of the unit.
		voices_available: ``(role, pitch)`` pool, pitch index 0 first.
		previous_fill_type: Name of the last fill played, if any.
		available_duration: Ticks the fill may occupy.
		base_velocity: Velocity the modifiers are applied to.
		ticks_per_quarter: Tick resolution (for flam spacing).
	"""

	tension: float
	voices_available: typing.Tuple[typing.Tuple[Role, int], ...]
	previous_fill_type: typing.Optional[str] = None
	available_duration: int = dwummer.constants.pulses.TICKS_QUARTER_NOTE
	base_velocity: int = dwummer.constants.velocity.DEFAULT_VELOCITY
	ticks_per_quarter: int = dwummer.constants.pulses.TICKS_PER_QUARTER


@dataclasses.dataclass(frozen=True)
class FillNote:

	"""One concrete fill note; ``offset`` is in ticks from the start of the fill."""

	offset: int
	role: Role
	pitch: int
	velocity: int
	articulation: Articulation


@dataclasses.dataclass(frozen=True)
class FillInstance:

	name: str
	tier: int
	notes: typing.Tuple[FillNote, ...]


def instantiate (template: FillTemplate, context: FillContext) -> FillInstance:

	"""
	Scale a template into the available duration and map its indices to pitches.

	Indices beyond the pool wrap around (modulo the pool size). A flam adds
	a quieter grace note one minimum interval before the main stroke.
	"""

	pool = context.voices_available

	if not pool:
		raise dwummer.errors.InvalidParameter("A fill needs at least one available voice")

	if context.available_duration <= 0:
		raise dwummer.errors.InvalidParameter(f"Fill duration ({context.available_duration}) must be positive")

	notes: typing.List[FillNote] = []

	for entry in template.entries:

		role, pitch = pool[entry.index % len(pool)]
		offset = int(round(entry.position * context.available_duration))
		velocity = context.base_velocity + entry.velocity_mod

		if entry.articulation is Articulation.ACCENT:
			velocity += ACCENT_BOOST
		elif entry.articulation is Articulation.GHOST:
			velocity *= GHOST_SCALE

		if entry.articulation is Articulation.FLAM:
			lead = dwummer.roles.min_interval(role, context.ticks_per_quarter)
			notes.append(FillNote(
				offset = max(0, offset - lead),
				role = role,
				pitch = pitch,
				velocity = dwummer.constants.velocity.clamp_velocity(velocity * FLAM_GRACE_SCALE),
				articulation = Articulation.GHOST,
			))

		notes.append(FillNote(
			offset = offset,
			role = role,
			pitch = pitch,
			velocity = dwummer.constants.velocity.clamp_velocity(velocity),
			articulation = entry.articulation,
		))

	return FillInstance(name=template.name, tier=template.tier, notes=tuple(notes))


def select_fill (context: FillContext, rng: dwummer.rng.RngContext) -> FillInstance:

	"""
	Choose and instantiate a fill for the given tension.

	Consumes one draw. The previous fill is excluded when the tier offers
	another candidate.

	Example:
		```python
		fill = select_fill(FillContext(tension=0.7, voices_available=pool), rng)
		for note in fill.notes:
			...
		```
	"""

	tier = tier_for(context.tension)
	candidates = templates_in_tier(tier)

	template = rng.pick(candidates, exclude=FILL_LIBRARY.get(context.previous_fill_type or ""))
	logger.debug(f"Fill tier {tier} (tension {context.tension:.2f}): {template.name}")

	return instantiate(template, context)
