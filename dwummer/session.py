"""One generation session: configuration in, ordered events out.

A :class:`Session` owns everything that lives for the length of a run (the
seeded RNG, the motif memory, the previous fill and the previous unit's
density) and builds the sequence one repetition unit at a time:

1. the genre blueprint lays down the step skeleton,
2. the section scales how busy the non-core parts are,
3. remembered motifs are recalled (transformed) into the grid,
4. interaction pairs trade space with each other,
5. the grid becomes events, with swing applied,
6. a fill may replace the end of the unit,
7. surprises and humanization shape every event,
8. the assembler repairs spacing and appends the unit.

Every random decision draws from the one RNG in that order, so a seed
reproduces a groove exactly. Nothing is returned until every unit is
assembled and the whole sequence has been verified.

Example:
	```python
	config = dwummer.config.SessionConfig(seed=42, repetition_units=8, genre="house")
	events = dwummer.session.Session(config).generate()
	```
"""

import dataclasses
import logging
import typing

import dwummer.assembler
import dwummer.blueprints
import dwummer.config
import dwummer.constants
import dwummer.constants.gm_drums
import dwummer.constants.velocity
import dwummer.errors
import dwummer.event
import dwummer.fills
import dwummer.form
import dwummer.groove
import dwummer.humanize
import dwummer.interaction
import dwummer.motif
import dwummer.rng
import dwummer.roles
import dwummer.sequence_utils
from dwummer.roles import Role


logger = logging.getLogger(__name__)

# Fraction of a grid step a drum note is held for.
NOTE_LENGTH = 0.5

# Roles that get extra hits when a section is busier than the blueprint.
TIMEKEEPING_ROLES = (Role.CLOSED_HAT, Role.PEDAL_HAT, Role.RIDE, Role.PERCUSSION)

# Fill pool order: snare, then toms from high to low.
FILL_ROLES = (Role.SNARE, Role.TOM_HIGH, Role.TOM_MID, Role.TOM_LOW)

# Non-core hits on these roles make way for a fill.
FILL_CLEARS = (Role.SNARE, Role.CLAP, Role.SIDE_STICK, Role.TOM_HIGH, Role.TOM_MID, Role.TOM_LOW, Role.CLOSED_HAT, Role.PEDAL_HAT, Role.OPEN_HAT)

# Surprises that keep a core hit where it is.
CORE_SURPRISES = (dwummer.humanize.Surprise.GHOST, dwummer.humanize.Surprise.VARIATION, dwummer.humanize.Surprise.FLAM)

BACKBEAT_STEPS = (4, 12)


@dataclasses.dataclass(frozen=True)
class Voice:

	"""A configured voice with its pitches resolved."""

	name: str
	role: Role
	pitches: typing.Tuple[int, ...]
	channel: int
	velocity: typing.Tuple[int, int]

	@property
	def core_velocity (self) -> int:

		return self.velocity[1]

	@property
	def variable_velocity (self) -> int:

		return (self.velocity[0] + self.velocity[1]) // 2

	def pitch_for (self, degree: int) -> int:

		return self.pitches[degree % len(self.pitches)]


@dataclasses.dataclass(frozen=True)
class _Placed:

	"""An event on its way through a unit, with where it sits in the bar."""

	event: dwummer.event.Event
	step: typing.Optional[int]
	core: bool = False

	@property
	def is_downbeat (self) -> bool:

		return self.step == 0

	@property
	def is_backbeat (self) -> bool:

		return self.step in BACKBEAT_STEPS


@dataclasses.dataclass
class GenerationResult:

	"""
	What a session hands back at the boundary.

	On failure ``events`` is empty and ``error`` holds the single reason.
	"""

	events: typing.List[dwummer.event.Event]
	error: typing.Optional[str] = None

	@property
	def ok (self) -> bool:

		return self.error is None


class Session:

	def __init__ (
		self,
		config: dwummer.config.SessionConfig,
		resolve_pitch: typing.Optional[typing.Callable[[str], int]] = None,
	) -> None:

		"""
		Prepare a session.

		Parameters:
			config: The session configuration.
			resolve_pitch: Maps a role name to a MIDI note. Defaults to the
				General MIDI table with ``config.pitch_map`` applied.
		"""

		self.config = config
		self.blueprint = dwummer.blueprints.get_blueprint(config.genre)
		self.resolve_pitch = resolve_pitch if resolve_pitch is not None else dwummer.roles.PitchResolver(config.pitch_map)

		self.voices: typing.Dict[Role, Voice] = {}

		for voice_config in config.voices or []:

			role = dwummer.roles.Role.parse(voice_config.role)

			if role in self.voices:
				logger.warning(f"Voice '{voice_config.name}' repeats role '{role.value}' - only '{self.voices[role].name}' is used")
				continue

			if voice_config.pitches:
				pitches = tuple(voice_config.pitches)
			else:
				pitches = (dwummer.roles.resolve_with_fallback(role, self.resolve_pitch),)

			self.voices[role] = Voice(
				name = voice_config.name,
				role = role,
				pitches = pitches,
				channel = voice_config.channel,
				velocity = tuple(voice_config.velocity),
			)

		swing = config.swing if config.swing is not None else self.blueprint.swing
		self.groove: typing.Optional[dwummer.groove.Groove] = dwummer.groove.Groove.swing(swing) if swing > 50.0 else None

		self.fill_pool = self._build_fill_pool()

		self._reset()

	def _reset (self) -> None:

		self.rng = dwummer.rng.RngContext(self.config.seed)
		self.motifs = dwummer.motif.MotifMemory()
		self.previous_fill: typing.Optional[str] = None
		self.previous_density = 0.0
		self._missing_roles: typing.Set[Role] = set()

	def _build_fill_pool (self) -> typing.Tuple[typing.Tuple[Role, int], ...]:

		"""Declared snare and toms; the pitch table stands in when the kit has none."""

		declared = tuple((role, self.voices[role].pitches[0]) for role in FILL_ROLES if role in self.voices)

		if declared:
			return declared

		return tuple((role, dwummer.roles.resolve_with_fallback(role, self.resolve_pitch)) for role in FILL_ROLES)

	@property
	def step_ticks (self) -> float:

		return self.config.unit_duration_ticks / dwummer.constants.STEPS_PER_UNIT

	@property
	def beat_ticks (self) -> float:

		return self.config.unit_duration_ticks / dwummer.constants.BEATS_PER_UNIT

	def generate (self) -> typing.List[dwummer.event.Event]:

		"""
		Generate the whole sequence.

		Calling this again replays the same seed from the start. Raises a
		:class:`~dwummer.errors.GenerationError` subclass on failure; no
		events are returned in that case.
		"""

		self._reset()

		config = self.config
		units = config.repetition_units
		unit_length = config.unit_duration_ticks

		logger.info(f"Generating {units} units of {config.genre} (seed {config.seed}, {len(self.voices)} voices)")

		assembler = dwummer.assembler.Assembler(config.ticks_per_quarter)
		previous_section: typing.Optional[dwummer.form.SectionType] = None

		for unit in range(units):

			section = dwummer.form.section_for(unit, units, config.section_mode)

			if section.type is not previous_section:
				logger.info(f"Unit {unit}: {section.type.value} ({section.bars} units)")
				previous_section = section.type

			unit_start = unit * unit_length
			unit_end = unit_start + unit_length

			candidates, grid_roles = self._generate_unit(unit, section, unit_start)
			kept = assembler.add_unit(candidates, unit_start, unit_end)

			self.previous_density = _density(len(kept), grid_roles)

		events = assembler.finish()

		logger.info(f"Generated {len(events)} events ({assembler.delayed} delayed, {assembler.dropped} dropped)")

		return events

	def _generate_unit (self, unit: int, section: dwummer.form.SectionContext, unit_start: int) -> typing.Tuple[typing.List[dwummer.event.Event], int]:

		grid, cores = self._skeleton(unit)

		self._apply_density(grid, cores, section)

		degrees = {role: [0] * dwummer.constants.STEPS_PER_UNIT for role in grid}

		self._recall_motifs(unit, grid, cores, degrees)
		self._interact(unit, grid, cores)
		self._store_motifs(grid, degrees)

		target_density = _density(sum(sum(steps) for steps in grid.values()), len(grid))

		placed = self._place(grid, cores, degrees, section, unit_start)

		if self.config.fills_enabled:
			placed = self._maybe_fill(unit, section, unit_start, placed, target_density)

		candidates = self._perform(unit, section, unit_start, placed)

		return candidates, len(grid)

	def _skeleton (self, unit: int) -> typing.Tuple[typing.Dict[Role, typing.List[int]], typing.Dict[Role, typing.Set[int]]]:

		"""Blueprint sequences folded onto the declared voices."""

		sequences = dwummer.blueprints.apply_blueprint(self.blueprint, unit, self.rng)

		grid: typing.Dict[Role, typing.List[int]] = {}
		cores: typing.Dict[Role, typing.Set[int]] = {}

		for role, sequence in sequences.items():

			target = dwummer.roles.nearest_declared(role, self.voices)

			if target is None:
				if any(sequence) and role not in self._missing_roles:
					logger.warning(f"No voice can play '{role.value}' - its hits are discarded")
					self._missing_roles.add(role)
				continue

			merged = grid.setdefault(target, [0] * len(sequence))
			for i, hit in enumerate(sequence):
				if hit:
					merged[i] = 1

			cores.setdefault(target, set()).update(self.blueprint.core_positions(role))

		return dict(sorted(grid.items(), key=lambda item: item[0].priority)), cores

	def _apply_density (self, grid: typing.Dict[Role, typing.List[int]], cores: typing.Dict[Role, typing.Set[int]], section: dwummer.form.SectionContext) -> None:

		"""Thin out (or fill in) non-core hits by the section's density multiplier."""

		multiplier = section.density_multiplier

		for role, sequence in grid.items():

			core = cores.get(role, set())

			if multiplier < 1.0:
				grid[role] = dwummer.sequence_utils.probability_gate(sequence, multiplier, self.rng, protected=core)

			elif multiplier > 1.0 and role in TIMEKEEPING_ROLES:
				extra = multiplier - 1.0
				# Extra hits land on the eighth-note grid only.
				for i in range(0, len(sequence), 2):
					if not sequence[i] and self.rng.chance(extra):
						sequence[i] = 1

	def _recall_motifs (
		self,
		unit: int,
		grid: typing.Dict[Role, typing.List[int]],
		cores: typing.Dict[Role, typing.Set[int]],
		degrees: typing.Dict[Role, typing.List[int]],
	) -> None:

		for role, sequence in grid.items():

			voice = self.voices[role]
			motif = self.motifs.recall(voice.name, self.rng, unit_index=unit)

			if motif is None:
				continue

			beat = self.rng.randrange(dwummer.constants.BEATS_PER_UNIT)
			start = beat * dwummer.constants.STEPS_PER_BEAT
			core = cores.get(role, set())

			for cell in motif.steps:
				i = start + cell.offset
				if i >= len(sequence) or i in core:
					continue
				sequence[i] = 1 if cell.hit else 0
				degrees[role][i] = cell.degree

	def _interact (self, unit: int, grid: typing.Dict[Role, typing.List[int]], cores: typing.Dict[Role, typing.Set[int]]) -> None:

		progress = (unit % dwummer.constants.PHRASE_UNITS) / dwummer.constants.PHRASE_UNITS

		for primary, secondary in self.blueprint.interactions:

			primary = dwummer.roles.nearest_declared(primary, self.voices)
			secondary = dwummer.roles.nearest_declared(secondary, self.voices)

			if primary is None or secondary is None or primary is secondary:
				continue

			if primary not in grid or secondary not in grid:
				continue

			grid[secondary] = dwummer.interaction.derive_complementary(
				grid[primary],
				grid[secondary],
				progress,
				self.rng,
				protected = cores.get(secondary, set()),
			)

	def _store_motifs (self, grid: typing.Dict[Role, typing.List[int]], degrees: typing.Dict[Role, typing.List[int]]) -> None:

		"""Remember the first beat of each voice that has anything in it."""

		size = dwummer.constants.STEPS_PER_BEAT

		for role, sequence in grid.items():
			for start in range(0, len(sequence), size):
				fragment = sequence[start:start + size]
				if any(fragment):
					voice = self.voices[role]
					self.motifs.store(voice.name, dwummer.motif.Motif.from_hits(voice.name, fragment, degrees[role][start:start + size]))
					break

	def _place (
		self,
		grid: typing.Dict[Role, typing.List[int]],
		cores: typing.Dict[Role, typing.Set[int]],
		degrees: typing.Dict[Role, typing.List[int]],
		section: dwummer.form.SectionContext,
		unit_start: int,
	) -> typing.List[_Placed]:

		"""Turn the grid into events, with the groove applied."""

		step_ticks = self.step_ticks
		duration = max(1, int(step_ticks * NOTE_LENGTH))
		placed: typing.List[_Placed] = []

		for role, sequence in grid.items():

			voice = self.voices[role]
			core = cores.get(role, set())

			for i, hit in enumerate(sequence):

				if not hit:
					continue

				base = voice.core_velocity if i in core else voice.variable_velocity

				placed.append(_Placed(
					event = dwummer.event.Event(
						role = role,
						pitch = voice.pitch_for(degrees[role][i]),
						start = unit_start + int(round(i * step_ticks)),
						duration = duration,
						velocity = dwummer.constants.velocity.clamp_velocity(base + section.dynamics_offset),
						channel = voice.channel,
						voice = voice.name,
					),
					step = i,
					core = i in core,
				))

		if self.groove is not None and placed:
			grooved = dwummer.groove.apply_groove([item.event for item in placed], self.groove, ticks_per_quarter=self.beat_ticks)
			placed = [dataclasses.replace(item, event=event) for item, event in zip(placed, grooved)]

		return placed

	def _maybe_fill (
		self,
		unit: int,
		section: dwummer.form.SectionContext,
		unit_start: int,
		placed: typing.List[_Placed],
		target_density: float,
	) -> typing.List[_Placed]:

		"""Replace the end of the unit with a fill, more often at the end of a section."""

		probability = section.fill_probability * (2.0 if section.last_bar else 1.0)

		if not self.rng.chance(min(1.0, probability)):
			return placed

		tension = dwummer.form.tension_for(unit, self.config.repetition_units, section, target_density, self.previous_density)
		beats = 2 if dwummer.fills.tier_for(tension) == dwummer.fills.TIER_COUNT - 1 else 1
		available = max(1, int(self.beat_ticks * beats))
		fill_start = unit_start + self.config.unit_duration_ticks - available

		lead = self.voices.get(Role.SNARE)
		base_velocity = lead.core_velocity if lead is not None else dwummer.constants.velocity.DEFAULT_VELOCITY

		context = dwummer.fills.FillContext(
			tension = tension,
			voices_available = self.fill_pool,
			previous_fill_type = self.previous_fill,
			available_duration = available,
			base_velocity = dwummer.constants.velocity.clamp_velocity(base_velocity + section.dynamics_offset),
			ticks_per_quarter = self.config.ticks_per_quarter,
		)

		fill = dwummer.fills.select_fill(context, self.rng)
		self.previous_fill = fill.name

		logger.info(f"Unit {unit}: fill '{fill.name}' (tier {fill.tier}, tension {tension:.2f})")

		kept = [
			item for item in placed
			if item.core or item.event.role not in FILL_CLEARS or item.event.start < fill_start
		]

		duration = max(1, int(self.step_ticks * NOTE_LENGTH))

		for note in fill.notes:
			voice = self.voices.get(note.role)
			kept.append(_Placed(
				event = dwummer.event.Event(
					role = note.role,
					pitch = note.pitch,
					start = fill_start + note.offset,
					duration = duration,
					velocity = note.velocity,
					channel = voice.channel if voice is not None else dwummer.constants.gm_drums.GM_DRUM_CHANNEL,
					voice = voice.name if voice is not None else note.role.value,
				),
				step = None,
			))

		return kept

	def _perform (self, unit: int, section: dwummer.form.SectionContext, unit_start: int, placed: typing.List[_Placed]) -> typing.List[dwummer.event.Event]:

		"""Surprises first, then humanization, for every event of the unit."""

		if not self.config.humanization_enabled:
			return [item.event for item in placed]

		units = self.config.repetition_units
		structure_position = unit / (units - 1) if units > 1 else 0.0
		unit_length = self.config.unit_duration_ticks
		tpq = self.config.ticks_per_quarter

		performed: typing.List[dwummer.event.Event] = []

		for item in placed:

			event = item.event

			context = dwummer.humanize.SurpriseContext(
				is_downbeat = item.is_downbeat,
				structure_position = structure_position,
				step_ticks = self.step_ticks,
				variation_pitch = dwummer.constants.gm_drums.GM_VARIATION_MAP.get(event.role.value),
				enabled = CORE_SURPRISES if item.core else tuple(dwummer.humanize.Surprise),
				probability = self.config.surprise_probability,
				ticks_per_quarter = tpq,
				earliest = unit_start,
			)

			bar_position = dwummer.sequence_utils.clamp01((event.start - unit_start) / unit_length)

			surprised = dwummer.humanize.maybe_surprise(event, context, self.rng)
			played = [
				dwummer.humanize.humanize(
					result,
					result.role,
					section.energy,
					item.is_downbeat,
					self.rng,
					is_backbeat = item.is_backbeat,
					bar_position = bar_position,
					ticks_per_quarter = tpq,
				)
				for result in surprised
			]

			performed.extend(_anchor_ornaments(surprised, played, unit_start))

		return performed


def _density (hits: int, roles: int) -> float:

	"""Hits per available grid cell across the voices in play."""

	if roles <= 0:
		return 0.0

	return dwummer.sequence_utils.clamp01(hits / (roles * dwummer.constants.STEPS_PER_UNIT))


def _anchor_ornaments (
	surprised: typing.Sequence[dwummer.event.Event],
	played: typing.Sequence[dwummer.event.Event],
	unit_start: int,
) -> typing.List[dwummer.event.Event]:

	"""
	Keep each ghost or flam lead exactly as far ahead of its hit as the
	surprise placed it, after both have been humanized.

	Humanizing the two separately could pull them closer than the role
	allows and push the main hit late. A lead that would start before the
	unit is left out.
	"""

	main = next(((before, after) for before, after in zip(surprised, played) if not before.ornament), None)

	if main is None:
		return list(played)

	main_before, main_after = main
	anchored: typing.List[dwummer.event.Event] = []

	for before, after in zip(surprised, played):

		if not before.ornament:
			anchored.append(after)
			continue

		start = main_after.start - (main_before.start - before.start)

		if start >= unit_start:
			anchored.append(dataclasses.replace(after, start=start))

	return anchored


def generate (
	config: dwummer.config.SessionConfig,
	resolve_pitch: typing.Optional[typing.Callable[[str], int]] = None,
) -> typing.List[dwummer.event.Event]:

	"""Run a session and return its events (raises on failure)."""

	return Session(config, resolve_pitch).generate()


def run (
	config: dwummer.config.SessionConfig,
	resolve_pitch: typing.Optional[typing.Callable[[str], int]] = None,
) -> GenerationResult:

	"""
	Run a session for a caller that wants a result, not an exception.

	A failed session yields no events and one descriptive reason.
	"""

	try:
		events = Session(config, resolve_pitch).generate()
	except dwummer.errors.GenerationError as exc:
		return GenerationResult(events=[], error=f"{type(exc).__name__}: {exc}")

	return GenerationResult(events=events)
