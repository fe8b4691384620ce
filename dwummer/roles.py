"""Physical roles, the physical constraint table and pitch resolution.

A :class:`Role` is a closed set of instrument slots. Everything that used to
be driven by free-form role strings (pitch lookup, spacing, timing
tightness, fallbacks) is looked up in the tables below, so an unknown role
name fails at validation time instead of silently doing nothing.
"""

import dataclasses
import enum
import logging
import typing

import dwummer.constants.gm_drums
import dwummer.constants.pulses
import dwummer.errors


logger = logging.getLogger(__name__)


class Role (enum.Enum):

	"""Instrument slots, declared in tie-break priority order."""

	KICK = "kick"
	SNARE = "snare"
	CLAP = "clap"
	SIDE_STICK = "side_stick"
	TOM_HIGH = "tom_high"
	TOM_MID = "tom_mid"
	TOM_LOW = "tom_low"
	CLOSED_HAT = "closed_hat"
	PEDAL_HAT = "pedal_hat"
	OPEN_HAT = "open_hat"
	RIDE = "ride"
	CRASH = "crash"
	PERCUSSION = "percussion"

	@classmethod
	def parse (cls, name: typing.Union[str, "Role"]) -> "Role":

		"""Return the role for a name, raising ``InvalidParameter`` for unknown names."""

		if isinstance(name, Role):
			return name

		try:
			return cls(name.strip().lower())
		except ValueError:
			known = ", ".join(role.value for role in cls)
			raise dwummer.errors.InvalidParameter(f"Unknown role '{name}'. Known roles: {known}") from None

	@property
	def priority (self) -> int:

		"""Position in declaration order; lower sorts first on ties."""

		return _PRIORITY[self]


_PRIORITY: typing.Dict[Role, int] = {role: index for index, role in enumerate(Role)}


@dataclasses.dataclass(frozen=True)
class PhysicalConstraint:

	"""
	How a role is played.

	Attributes:
		min_interval: Minimum ticks between two hits on the role, at the
			reference resolution of 960 ticks per quarter note.
		tight: Tightly-timed roles get a narrower humanization window.
	"""

	min_interval: int
	tight: bool = False


PHYSICAL_CONSTRAINTS: typing.Dict[Role, PhysicalConstraint] = {
	Role.KICK:       PhysicalConstraint(120, tight=True),
	Role.SNARE:      PhysicalConstraint(40, tight=True),
	Role.CLAP:       PhysicalConstraint(60, tight=True),
	Role.SIDE_STICK: PhysicalConstraint(60),
	Role.TOM_HIGH:   PhysicalConstraint(40),
	Role.TOM_MID:    PhysicalConstraint(40),
	Role.TOM_LOW:    PhysicalConstraint(40),
	Role.CLOSED_HAT: PhysicalConstraint(60),
	Role.PEDAL_HAT:  PhysicalConstraint(120),
	Role.OPEN_HAT:   PhysicalConstraint(120),
	Role.RIDE:       PhysicalConstraint(80),
	Role.CRASH:      PhysicalConstraint(240),
	Role.PERCUSSION: PhysicalConstraint(60),
}


def min_interval (role: Role, ticks_per_quarter: int = dwummer.constants.pulses.TICKS_PER_QUARTER) -> int:

	"""Minimum allowed ticks between two hits on ``role`` at the given resolution."""

	reference = PHYSICAL_CONSTRAINTS[role].min_interval
	return max(1, int(round(dwummer.constants.pulses.scale_ticks(reference, ticks_per_quarter))))


# Nearest substitutes, closest first, used when a blueprint or fill asks
# for a role the session has no voice for.

ROLE_FALLBACKS: typing.Dict[Role, typing.Tuple[Role, ...]] = {
	Role.KICK:       (Role.TOM_LOW,),
	Role.SNARE:      (Role.CLAP, Role.SIDE_STICK, Role.TOM_HIGH),
	Role.CLAP:       (Role.SNARE, Role.SIDE_STICK),
	Role.SIDE_STICK: (Role.SNARE, Role.CLAP),
	Role.TOM_HIGH:   (Role.TOM_MID, Role.TOM_LOW, Role.SNARE),
	Role.TOM_MID:    (Role.TOM_HIGH, Role.TOM_LOW, Role.SNARE),
	Role.TOM_LOW:    (Role.TOM_MID, Role.TOM_HIGH, Role.KICK),
	Role.CLOSED_HAT: (Role.PEDAL_HAT, Role.RIDE, Role.PERCUSSION),
	Role.PEDAL_HAT:  (Role.CLOSED_HAT,),
	Role.OPEN_HAT:   (Role.CLOSED_HAT, Role.RIDE),
	Role.RIDE:       (Role.CLOSED_HAT, Role.OPEN_HAT),
	Role.CRASH:      (Role.RIDE, Role.OPEN_HAT),
	Role.PERCUSSION: (Role.CLOSED_HAT, Role.SIDE_STICK),
}


def nearest_declared (role: Role, declared: typing.Collection[Role]) -> typing.Optional[Role]:

	"""Return ``role`` if declared, else its nearest declared substitute, else None."""

	if role in declared:
		return role

	for candidate in ROLE_FALLBACKS[role]:
		if candidate in declared:
			return candidate

	return None


class PitchResolver:

	"""
	Maps role names to MIDI notes.

	Starts from the General MIDI drum table; ``overrides`` replaces
	individual entries (the host's custom pitch map). Calling the resolver
	with a role that has no mapping raises :class:`UnresolvedPitchRole`.
	"""

	def __init__ (self, overrides: typing.Optional[typing.Mapping[str, int]] = None, base: typing.Optional[typing.Mapping[str, int]] = None) -> None:

		self.table: typing.Dict[str, int] = dict(dwummer.constants.gm_drums.GM_DRUM_MAP if base is None else base)

		for name, pitch in (overrides or {}).items():
			role = Role.parse(name)
			if not 0 <= int(pitch) <= 127:
				raise dwummer.errors.InvalidParameter(f"Pitch {pitch} for role '{name}' is outside 0-127")
			self.table[role.value] = int(pitch)

	def __call__ (self, role_name: str) -> int:

		try:
			return self.table[role_name]
		except KeyError:
			raise dwummer.errors.UnresolvedPitchRole(role_name) from None


def resolve_with_fallback (role: Role, resolve_pitch: typing.Callable[[str], int]) -> int:

	"""
	Resolve ``role`` to a pitch, substituting the nearest role on failure.

	Never fatal: when neither the role nor any of its substitutes resolve,
	the General MIDI default for the role is used. A resolver signals a
	missing role with ``KeyError`` (``UnresolvedPitchRole`` is one), so a
	plain mapping's ``__getitem__`` works as a resolver.
	"""

	try:
		return resolve_pitch(role.value)
	except KeyError:
		for candidate in ROLE_FALLBACKS[role]:
			try:
				pitch = resolve_pitch(candidate.value)
			except KeyError:
				continue
			logger.warning(f"No pitch mapping for role '{role.value}' - using '{candidate.value}' ({pitch}) instead")
			return pitch

	pitch = dwummer.constants.gm_drums.GM_DRUM_MAP[role.value]
	logger.warning(f"No pitch mapping for role '{role.value}' or its substitutes - using GM default {pitch}")
	return pitch
