"""Micro-timing, velocity contour and occasional "mistakes".

:func:`humanize` nudges one event in time and shapes its velocity the way a
player would: tight roles (kick, snare) wander less than loose ones, high
energy rushes slightly ahead of the grid, low energy lays back, and
downbeats and backbeats are struck harder on top of a gentle swell across
the bar.

:func:`maybe_surprise` occasionally replaces or decorates an event (drop,
displaced accent, ghost note, alternate articulation, flam).
"""

import dataclasses
import enum
import logging
import math
import random
import typing

import dwummer.constants.pulses
import dwummer.constants.velocity
import dwummer.event
import dwummer.roles
from dwummer.roles import Role


logger = logging.getLogger(__name__)


def timing_bound (role: Role, ticks_per_quarter: int = dwummer.constants.pulses.TICKS_PER_QUARTER) -> float:

	"""Half-width of the random timing window for a role, in ticks."""

	bound = dwummer.constants.pulses.scale_ticks(dwummer.constants.pulses.JITTER_LOOSE, ticks_per_quarter)

	if dwummer.roles.PHYSICAL_CONSTRAINTS[role].tight:
		bound *= dwummer.constants.pulses.TIGHT_JITTER_RATIO

	return bound


def energy_bias (energy_level: float, ticks_per_quarter: int = dwummer.constants.pulses.TICKS_PER_QUARTER) -> float:

	"""Deterministic timing bias: negative (early) above 0.5 energy, positive (late) below."""

	energy_level = max(0.0, min(1.0, energy_level))

	if energy_level > 0.5:
		push = dwummer.constants.pulses.scale_ticks(dwummer.constants.pulses.ENERGY_PUSH, ticks_per_quarter)
		return -push * (energy_level - 0.5) * 2.0

	pull = dwummer.constants.pulses.scale_ticks(dwummer.constants.pulses.ENERGY_PULL, ticks_per_quarter)
	return pull * (0.5 - energy_level) * 2.0


def velocity_contour (is_downbeat: bool, is_backbeat: bool, bar_position: float) -> float:

	"""Metric accent plus a sine swell over the bar (no randomness)."""

	accent = 0.0

	if is_downbeat:
		accent = dwummer.constants.velocity.DOWNBEAT_BOOST
	elif is_backbeat:
		accent = dwummer.constants.velocity.BACKBEAT_BOOST

	swell = dwummer.constants.velocity.SWELL_AMPLITUDE * math.sin(math.pi * max(0.0, min(1.0, bar_position)))

	return accent + swell


def humanize (
	event: dwummer.event.Event,
	voice_role: Role,
	energy_level: float,
	is_downbeat: bool,
	rng: random.Random,
	is_backbeat: bool = False,
	bar_position: float = 0.0,
	ticks_per_quarter: int = dwummer.constants.pulses.TICKS_PER_QUARTER,
) -> dwummer.event.Event:

	"""
	Return a perturbed copy of ``event``.

	Consumes exactly two draws: timing jitter, then velocity noise.

	Parameters:
		event: The event to humanize.
		voice_role: The role playing it (sets the timing window).
		energy_level: 0-1; above 0.5 rushes, below lays back.
		is_downbeat: Beat one of the unit.
		rng: The session RNG.
		is_backbeat: Beats two and four.
		bar_position: 0-1 position of the event within its unit.
		ticks_per_quarter: Tick resolution of the session.
	"""

	bound = timing_bound(voice_role, ticks_per_quarter)
	offset = rng.uniform(-bound, bound) + energy_bias(energy_level, ticks_per_quarter)

	noise = rng.randint(-dwummer.constants.velocity.VELOCITY_NOISE, dwummer.constants.velocity.VELOCITY_NOISE)
	velocity = event.velocity + velocity_contour(is_downbeat, is_backbeat, bar_position) + noise

	return dataclasses.replace(
		event,
		start = max(0, int(round(event.start + offset))),
		velocity = dwummer.constants.velocity.clamp_velocity(velocity),
	)


class Surprise (enum.Enum):

	DROP = "drop"
	DISPLACED_ACCENT = "displaced_accent"
	GHOST = "ghost"
	VARIATION = "variation"
	FLAM = "flam"


BASE_SURPRISE_PROBABILITY = 0.05
DOWNBEAT_FACTOR = 0.5
MID_STRUCTURE_FACTOR = 1.2
MID_STRUCTURE = (1.0 / 3.0, 2.0 / 3.0)


@dataclasses.dataclass(frozen=True)
class SurpriseContext:

	"""
	Where an event sits, for deciding on and shaping a surprise.

	Attributes:
		is_downbeat: Beat one of the unit (surprises are rarer there).
		structure_position: 0-1 position in the whole sequence (slightly
			more surprises in the middle third).
		step_ticks: Length of one grid step.
		variation_pitch: Alternate articulation for ``VARIATION``.
		enabled: Surprise kinds allowed; chosen uniformly.
		probability: Base chance before the position adjustments.
		ticks_per_quarter: Tick resolution of the session.
		earliest: First tick a ghost or flam lead note may use (the unit
			start); a lead that would fall earlier is left out.
	"""

	is_downbeat: bool = False
	structure_position: float = 0.0
	step_ticks: float = dwummer.constants.pulses.TICKS_SIXTEENTH_NOTE
	variation_pitch: typing.Optional[int] = None
	enabled: typing.Tuple[Surprise, ...] = tuple(Surprise)
	probability: float = BASE_SURPRISE_PROBABILITY
	ticks_per_quarter: int = dwummer.constants.pulses.TICKS_PER_QUARTER
	earliest: int = 0


def surprise_probability (context: SurpriseContext) -> float:

	probability = context.probability

	if context.is_downbeat:
		probability *= DOWNBEAT_FACTOR

	low, high = MID_STRUCTURE
	if low <= context.structure_position <= high:
		probability *= MID_STRUCTURE_FACTOR

	return probability


def maybe_surprise (event: dwummer.event.Event, context: SurpriseContext, rng: random.Random) -> typing.List[dwummer.event.Event]:

	"""
	Occasionally replace or augment an event.

	Returns ``[event]`` unchanged most of the time. One draw decides; when a
	surprise fires, one more picks the kind and the displaced accent uses a
	third for its direction.

	A ghost or flam whose lead note would fall before ``context.earliest``
	leaves the event as it is.
	"""

	if rng.random() >= surprise_probability(context) or not context.enabled:
		return [event]

	kind = context.enabled[rng.randrange(len(context.enabled))]
	tpq = context.ticks_per_quarter
	spacing = dwummer.roles.min_interval(event.role, tpq)

	logger.debug(f"Surprise {kind.value} on {event.role.value} at {event.start}")

	if kind is Surprise.DROP:
		return []

	if kind is Surprise.DISPLACED_ACCENT:
		shift = min(dwummer.constants.pulses.scale_ticks(dwummer.constants.pulses.DISPLACEMENT, tpq), context.step_ticks / 3.0)
		direction = 1 if rng.random() < 0.5 else -1
		return [dataclasses.replace(
			event,
			start = max(0, int(round(event.start + direction * shift))),
			velocity = dwummer.constants.velocity.clamp_velocity(event.velocity + dwummer.constants.velocity.ACCENT_BOOST),
		)]

	if kind is Surprise.GHOST:
		lead = max(spacing, min(dwummer.constants.pulses.scale_ticks(dwummer.constants.pulses.GHOST_LEAD, tpq), context.step_ticks / 2.0))
		if event.start - lead < context.earliest:
			return [event]
		ghost = dataclasses.replace(
			event,
			start = int(round(event.start - lead)),
			ornament = True,
			velocity = dwummer.constants.velocity.clamp_velocity(min(event.velocity * 0.5, dwummer.constants.velocity.DEFAULT_GHOST_VELOCITY)),
		)
		return [ghost, event]

	if kind is Surprise.VARIATION:
		if context.variation_pitch is None:
			return [event]
		return [dataclasses.replace(event, pitch=context.variation_pitch)]

	lead = max(spacing, dwummer.constants.pulses.scale_ticks(dwummer.constants.pulses.FLAM_LEAD, tpq))
	if event.start - lead < context.earliest:
		return [event]
	grace = dataclasses.replace(
		event,
		start = int(round(event.start - lead)),
		ornament = True,
		velocity = dwummer.constants.velocity.clamp_velocity(event.velocity * dwummer.constants.velocity.FLAM_SCALE),
	)
	return [grace, event]
