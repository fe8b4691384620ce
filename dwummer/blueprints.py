"""Genre blueprints - invariant cores plus probabilistic variations.

A :class:`Blueprint` splits a groove into two layers:

- **core** positions that are never cleared, whatever happens later
  (the house four-on-the-floor kick, the rock backbeat), and
- ordered **variable rules**, each a ``(probability, effect)`` pair tried
  as an independent Bernoulli trial on every repetition unit.

Rules are evaluated in declaration order and each trial draws from the
session RNG in that order, so the same seed, genre and repetition index
always produce the same skeleton. Later rules may undo earlier variable
additions, but nothing clears a core position.
"""

import dataclasses
import enum
import logging
import random
import typing

import dwummer.constants
import dwummer.errors
import dwummer.sequence_utils
from dwummer.roles import Role


logger = logging.getLogger(__name__)

OFFBEATS = (2, 6, 10, 14)
QUARTERS = (0, 4, 8, 12)
BACKBEAT = (4, 12)


class Effect (enum.Enum):

	ADD = "add"					# set the listed steps
	REMOVE = "remove"			# clear the listed steps (all steps when none are listed)
	EUCLIDEAN = "euclidean"		# lay a Euclidean layer over the role


@dataclasses.dataclass(frozen=True)
class VariableRule:

	"""
	One probabilistic variation.

	Attributes:
		probability: Chance the rule fires on a given repetition unit.
		role: The role the effect writes to.
		effect: What happens when it fires.
		steps: Steps for ``ADD`` / ``REMOVE``.
		pulses: Candidate pulse counts for ``EUCLIDEAN`` (one is chosen per firing).
		rotations: Candidate rotations for ``EUCLIDEAN``.
		every: The rule is only tried on units where
			``repetition_index % every == phase``.
		phase: See ``every``.
		label: Human-readable description for logs.
	"""

	probability: float
	role: Role
	effect: Effect
	steps: typing.Tuple[int, ...] = ()
	pulses: typing.Tuple[int, ...] = ()
	rotations: typing.Tuple[int, ...] = (0,)
	every: int = 1
	phase: int = 0
	label: str = ""

	def __post_init__ (self) -> None:
		if not 0.0 <= self.probability <= 1.0:
			raise dwummer.errors.InvalidParameter(f"Rule probability {self.probability} must be between 0 and 1")
		if self.every < 1:
			raise dwummer.errors.InvalidParameter("Rule 'every' must be at least 1")
		if self.effect is Effect.EUCLIDEAN and not self.pulses:
			raise dwummer.errors.InvalidParameter("Euclidean rules need at least one pulse count")

	def applies_to (self, repetition_index: int) -> bool:

		"""Return True if the rule is tried on this repetition unit."""

		return repetition_index % self.every == self.phase % self.every


@dataclasses.dataclass(frozen=True)
class Blueprint:

	"""
	A genre's rule set.

	Attributes:
		name: Genre name.
		core: Role → steps that are always hit.
		variables: Ordered variable rules.
		interactions: ``(primary, secondary)`` role pairs for the
			call-and-response layer.
		swing: Swing percentage on the 16th grid (50 = straight).
		kit: Roles used when a session declares no voices.
		steps: Grid length of one repetition unit.
	"""

	name: str
	core: typing.Dict[Role, typing.Tuple[int, ...]]
	variables: typing.Tuple[VariableRule, ...]
	interactions: typing.Tuple[typing.Tuple[Role, Role], ...] = ()
	swing: float = 50.0
	kit: typing.Tuple[Role, ...] = ()
	steps: int = dwummer.constants.STEPS_PER_UNIT

	def roles (self) -> typing.List[Role]:

		"""Every role this blueprint can write to, in priority order."""

		used = set(self.core) | {rule.role for rule in self.variables}
		return sorted(used, key=lambda role: role.priority)

	def core_positions (self, role: Role) -> typing.FrozenSet[int]:

		"""Steps of ``role`` that must never be cleared."""

		return frozenset(step % self.steps for step in self.core.get(role, ()))


def _rule (probability: float, role: Role, effect: Effect, label: str, **kwargs: typing.Any) -> VariableRule:

	return VariableRule(probability=probability, role=role, effect=effect, label=label, **kwargs)


_BASIC_KIT = (Role.KICK, Role.SNARE, Role.CLOSED_HAT, Role.OPEN_HAT, Role.CRASH, Role.TOM_HIGH, Role.TOM_MID, Role.TOM_LOW)

BLUEPRINTS: typing.Dict[str, Blueprint] = {

	"house": Blueprint(
		name = "house",
		core = {Role.KICK: QUARTERS, Role.SNARE: BACKBEAT},
		variables = (
			_rule(0.9, Role.CLOSED_HAT, Effect.EUCLIDEAN, "closed hats on the grid", pulses=(8, 16), rotations=(0,)),
			_rule(0.7, Role.OPEN_HAT, Effect.ADD, "open hat on the off-beats", steps=OFFBEATS),
			_rule(0.6, Role.CLOSED_HAT, Effect.REMOVE, "make room for the open hats", steps=OFFBEATS),
			_rule(0.4, Role.CLAP, Effect.ADD, "clap layered on the backbeat", steps=BACKBEAT),
			_rule(0.3, Role.PERCUSSION, Effect.EUCLIDEAN, "shaker figure", pulses=(5, 7), rotations=(0, 2, 3)),
			_rule(0.15, Role.KICK, Effect.ADD, "kick pickup", steps=(14,)),
			_rule(0.6, Role.CRASH, Effect.ADD, "crash on the phrase start", steps=(0,), every=dwummer.constants.PHRASE_UNITS),
		),
		interactions = ((Role.OPEN_HAT, Role.CLOSED_HAT), (Role.SNARE, Role.PERCUSSION)),
		kit = _BASIC_KIT + (Role.CLAP, Role.PERCUSSION),
	),

	"techno": Blueprint(
		name = "techno",
		core = {Role.KICK: QUARTERS},
		variables = (
			_rule(0.9, Role.CLOSED_HAT, Effect.EUCLIDEAN, "sixteenth hats", pulses=(16, 12), rotations=(0,)),
			_rule(0.8, Role.OPEN_HAT, Effect.ADD, "off-beat open hats", steps=OFFBEATS),
			_rule(0.7, Role.CLAP, Effect.ADD, "clap on two and four", steps=BACKBEAT),
			_rule(0.5, Role.PERCUSSION, Effect.EUCLIDEAN, "polymetric percussion", pulses=(5, 7, 9), rotations=(0, 1, 3)),
			_rule(0.3, Role.RIDE, Effect.EUCLIDEAN, "ride quarters", pulses=(4,), rotations=(2,)),
			_rule(0.2, Role.KICK, Effect.ADD, "kick ghost", steps=(15,)),
			_rule(0.5, Role.CRASH, Effect.ADD, "crash on the phrase start", steps=(0,), every=dwummer.constants.PHRASE_UNITS),
		),
		interactions = ((Role.CLAP, Role.PERCUSSION), (Role.OPEN_HAT, Role.CLOSED_HAT)),
		kit = _BASIC_KIT + (Role.CLAP, Role.PERCUSSION, Role.RIDE),
	),

	"rock": Blueprint(
		name = "rock",
		core = {Role.KICK: (0, 8), Role.SNARE: BACKBEAT},
		variables = (
			_rule(1.0, Role.CLOSED_HAT, Effect.EUCLIDEAN, "eighth-note hats", pulses=(8,)),
			_rule(0.25, Role.RIDE, Effect.EUCLIDEAN, "ride instead of hats", pulses=(8,)),
			_rule(0.25, Role.CLOSED_HAT, Effect.REMOVE, "hats drop out under the ride"),
			_rule(0.5, Role.KICK, Effect.ADD, "kick on the and of three", steps=(10,)),
			_rule(0.3, Role.KICK, Effect.ADD, "syncopated kick", steps=(7,)),
			_rule(0.35, Role.OPEN_HAT, Effect.ADD, "open hat lift", steps=(14,)),
			_rule(0.35, Role.CLOSED_HAT, Effect.REMOVE, "close the lift", steps=(14,)),
			_rule(0.2, Role.SNARE, Effect.ADD, "snare pickup", steps=(15,)),
			_rule(0.7, Role.CRASH, Effect.ADD, "crash on the phrase start", steps=(0,), every=dwummer.constants.PHRASE_UNITS),
		),
		interactions = ((Role.SNARE, Role.CLOSED_HAT),),
		kit = _BASIC_KIT + (Role.RIDE,),
	),

	"funk": Blueprint(
		name = "funk",
		core = {Role.KICK: (0, 10), Role.SNARE: BACKBEAT},
		variables = (
			_rule(1.0, Role.CLOSED_HAT, Effect.EUCLIDEAN, "sixteenth hats", pulses=(16,)),
			_rule(0.6, Role.KICK, Effect.ADD, "kick on the a of one", steps=(3,)),
			_rule(0.4, Role.KICK, Effect.ADD, "kick on the e of two", steps=(7,)),
			_rule(0.5, Role.SNARE, Effect.ADD, "snare ghost before three", steps=(7,)),
			_rule(0.5, Role.SNARE, Effect.ADD, "snare ghost after three", steps=(9,)),
			_rule(0.4, Role.OPEN_HAT, Effect.ADD, "open hat bark", steps=(6,)),
			_rule(0.4, Role.CLOSED_HAT, Effect.REMOVE, "close under the bark", steps=(6,)),
			_rule(0.5, Role.CRASH, Effect.ADD, "crash on the phrase start", steps=(0,), every=dwummer.constants.PHRASE_UNITS),
		),
		interactions = ((Role.SNARE, Role.CLOSED_HAT), (Role.KICK, Role.OPEN_HAT)),
		swing = 54.0,
		kit = _BASIC_KIT,
	),

	"hiphop": Blueprint(
		name = "hiphop",
		core = {Role.KICK: (0, 10), Role.SNARE: BACKBEAT},
		variables = (
			_rule(0.9, Role.CLOSED_HAT, Effect.EUCLIDEAN, "eighth hats", pulses=(8,)),
			_rule(0.5, Role.KICK, Effect.ADD, "lazy second kick", steps=(7,)),
			_rule(0.4, Role.KICK, Effect.ADD, "late kick", steps=(13,)),
			_rule(0.3, Role.SNARE, Effect.ADD, "snare drag", steps=(15,)),
			_rule(0.35, Role.OPEN_HAT, Effect.ADD, "open hat at the end of the bar", steps=(14,)),
			_rule(0.3, Role.PERCUSSION, Effect.EUCLIDEAN, "shaker", pulses=(3, 5), rotations=(0, 2)),
			_rule(0.4, Role.CRASH, Effect.ADD, "crash on the phrase start", steps=(0,), every=dwummer.constants.PHRASE_UNITS),
		),
		interactions = ((Role.SNARE, Role.CLOSED_HAT), (Role.KICK, Role.PERCUSSION)),
		swing = 58.0,
		kit = _BASIC_KIT + (Role.PERCUSSION,),
	),

	"breakbeat": Blueprint(
		name = "breakbeat",
		core = {Role.KICK: (0, 10), Role.SNARE: BACKBEAT},
		variables = (
			_rule(1.0, Role.CLOSED_HAT, Effect.EUCLIDEAN, "eighth hats", pulses=(8,)),
			_rule(0.5, Role.KICK, Effect.ADD, "double kick", steps=(2,)),
			_rule(0.4, Role.SNARE, Effect.ADD, "snare on the a of two", steps=(7,)),
			_rule(0.4, Role.SNARE, Effect.ADD, "snare pickup", steps=(15,)),
			_rule(0.3, Role.RIDE, Effect.EUCLIDEAN, "ride pulse", pulses=(4,), rotations=(2,)),
			_rule(0.5, Role.CRASH, Effect.ADD, "crash on the phrase start", steps=(0,), every=dwummer.constants.PHRASE_UNITS),
		),
		interactions = ((Role.SNARE, Role.CLOSED_HAT),),
		swing = 52.0,
		kit = _BASIC_KIT + (Role.RIDE,),
	),

	"dnb": Blueprint(
		name = "dnb",
		core = {Role.KICK: (0, 10), Role.SNARE: BACKBEAT},
		variables = (
			_rule(1.0, Role.CLOSED_HAT, Effect.EUCLIDEAN, "eighth hats", pulses=(8,)),
			_rule(0.5, Role.CLOSED_HAT, Effect.EUCLIDEAN, "rolling hats", pulses=(11, 13), rotations=(0, 1)),
			_rule(0.5, Role.KICK, Effect.ADD, "kick skip", steps=(13,)),
			_rule(0.4, Role.SNARE, Effect.ADD, "snare ghost", steps=(7,)),
			_rule(0.3, Role.RIDE, Effect.EUCLIDEAN, "ride", pulses=(4,), rotations=(2,)),
			_rule(0.5, Role.CRASH, Effect.ADD, "crash on the phrase start", steps=(0,), every=dwummer.constants.PHRASE_UNITS),
		),
		interactions = ((Role.SNARE, Role.CLOSED_HAT), (Role.KICK, Role.RIDE)),
		kit = _BASIC_KIT + (Role.RIDE,),
	),

	"reggae": Blueprint(
		name = "reggae",
		core = {Role.KICK: (8,), Role.SIDE_STICK: (8,)},
		variables = (
			_rule(1.0, Role.CLOSED_HAT, Effect.EUCLIDEAN, "eighth hats", pulses=(8,)),
			_rule(0.3, Role.OPEN_HAT, Effect.ADD, "open hat skank", steps=(6, 14)),
			_rule(0.3, Role.CLOSED_HAT, Effect.REMOVE, "close under the skank", steps=(6, 14)),
			_rule(0.3, Role.SIDE_STICK, Effect.ADD, "rim answer", steps=(11,)),
			_rule(0.2, Role.KICK, Effect.ADD, "steppers kick", steps=QUARTERS),
			_rule(0.4, Role.CRASH, Effect.ADD, "crash on the phrase start", steps=(0,), every=dwummer.constants.PHRASE_UNITS),
		),
		interactions = ((Role.SIDE_STICK, Role.CLOSED_HAT),),
		swing = 56.0,
		kit = _BASIC_KIT + (Role.SIDE_STICK,),
	),
}


def get_blueprint (genre: str) -> Blueprint:

	"""Look up a blueprint by genre name."""

	try:
		return BLUEPRINTS[genre.strip().lower()]
	except KeyError:
		known = ", ".join(sorted(BLUEPRINTS))
		raise dwummer.errors.InvalidParameter(f"Unknown genre '{genre}'. Known genres: {known}") from None


def apply_blueprint (genre: typing.Union[str, Blueprint], repetition_index: int, rng: random.Random) -> typing.Dict[Role, typing.List[int]]:

	"""
	Build one repetition unit's step sequences from a blueprint.

	Core positions are fixed first; the variable rules are then tried in
	declaration order. A rule consumes one draw for its Bernoulli trial and,
	when a Euclidean rule fires, one draw for each choice it has to make.

	Parameters:
		genre: Genre name or a ``Blueprint``.
		repetition_index: Zero-based unit index (some rules only run on
			certain units of the phrase).
		rng: The session RNG.

	Returns:
		Role → binary step sequence, one entry per role the blueprint uses.
	"""

	blueprint = genre if isinstance(genre, Blueprint) else get_blueprint(genre)

	if repetition_index < 0:
		raise dwummer.errors.InvalidParameter(f"Repetition index ({repetition_index}) cannot be negative")

	grid = blueprint.steps
	sequences: typing.Dict[Role, typing.List[int]] = {role: [0] * grid for role in blueprint.roles()}

	for role, steps in blueprint.core.items():
		for step in steps:
			sequences[role][step % grid] = 1

	for rule in blueprint.variables:

		if not rule.applies_to(repetition_index):
			continue

		if not _fires(rule, rng):
			continue

		sequence = sequences[rule.role]
		core = blueprint.core_positions(rule.role)

		if rule.effect is Effect.ADD:
			for step in rule.steps:
				sequence[step % grid] = 1

		elif rule.effect is Effect.REMOVE:
			targets = rule.steps if rule.steps else range(grid)
			for step in targets:
				if step % grid not in core:
					sequence[step % grid] = 0

		elif rule.effect is Effect.EUCLIDEAN:
			pulses = rule.pulses[0] if len(rule.pulses) == 1 else rule.pulses[rng.randrange(len(rule.pulses))]
			rotation = rule.rotations[0] if len(rule.rotations) == 1 else rule.rotations[rng.randrange(len(rule.rotations))]
			layer = dwummer.sequence_utils.generate_euclidean_sequence(grid, min(pulses, grid), rotation)
			for i, hit in enumerate(layer):
				if hit:
					sequence[i] = 1

		logger.debug(f"Unit {repetition_index}: {rule.label or rule.effect.value} ({rule.role.value})")

	return sequences


def _fires (rule: VariableRule, rng: random.Random) -> bool:

	return rng.random() < rule.probability
