"""Turn held chords into guitar picking patterns.

Sustained, overlapping notes are read as a chord being held; each held
chord is replaced by a picking pattern chosen for its size (tremolo for a
single note, Travis and folk patterns for triads, jazz, sweeps,
campanella and rasgueado for big voicings).

Patterns are declarative tables like the drum fills: each entry is
``(string index, position in beats, velocity modifier, technique)``.
Indices wrap around when the chord has fewer notes than the pattern
expects, and the technique decides how long the picked note rings.
"""

import dataclasses
import enum
import logging
import random
import typing

import dwummer.constants.pulses
import dwummer.constants.velocity
import dwummer.errors


logger = logging.getLogger(__name__)

# A note must be held at least an eighth note to count as part of a chord.
MIN_CHORD_BEATS = 0.5

TIMING_VARIATION = 0.03		# beats either side
VELOCITY_VARIATION = 15
MIN_STRING_INTERVAL = 0.04	# beats between two hits on the same string


class Technique (enum.Enum):

	BASS = "bass"
	MID = "mid"
	MELODY = "melody"
	ACCENT = "accent"
	STRUM = "strum"
	SWEEP = "sweep"
	PICK = "pick"
	FINGER = "finger"
	TREMOLO = "tremolo"
	SUSTAIN = "sustain"


# Note length in beats by technique.
NOTE_LENGTHS: typing.Dict[Technique, float] = {
	Technique.SUSTAIN: 0.75,
	Technique.TREMOLO: 0.08,
	Technique.SWEEP: 0.08,
	Technique.STRUM: 0.15,
}
DEFAULT_NOTE_LENGTH = 0.20

# Fast techniques are played more evenly.
STEADY_TECHNIQUES = (Technique.TREMOLO, Technique.SWEEP)


@dataclasses.dataclass(frozen=True)
class PickStep:

	index: int
	position: float
	velocity_mod: int
	technique: Technique


@dataclasses.dataclass(frozen=True)
class PickingPattern:

	name: str
	steps: typing.Tuple[PickStep, ...]


def _pattern (name: str, *steps: typing.Tuple[int, float, int, str]) -> PickingPattern:

	return PickingPattern(name=name, steps=tuple(PickStep(index, position, mod, Technique(technique)) for index, position, mod, technique in steps))


PATTERN_LIBRARY: typing.Dict[str, PickingPattern] = {pattern.name: pattern for pattern in (

	# Alternating bass under a melody string.
	_pattern("travis_basic", (0, 0.0, 0, "bass"), (2, 0.25, -10, "melody"), (1, 0.5, -5, "mid"), (2, 0.75, -10, "melody")),
	_pattern(
		"travis_double",
		(0, 0.0, 0, "bass"), (2, 0.125, -10, "melody"), (1, 0.25, -5, "mid"), (2, 0.375, -10, "melody"),
		(0, 0.5, -3, "bass"), (3, 0.625, -8, "melody"), (1, 0.75, -5, "mid"), (3, 0.875, -8, "melody"),
	),

	_pattern("folk_basic", (0, 0.0, 0, "bass"), (2, 0.25, -8, "melody"), (0, 0.5, -3, "bass"), (3, 0.75, -10, "melody")),
	_pattern(
		"folk_rolling",
		(0, 0.0, 0, "bass"), (1, 1 / 6, -5, "mid"), (2, 2 / 6, -8, "melody"),
		(3, 0.5, -10, "melody"), (2, 4 / 6, -8, "melody"), (1, 5 / 6, -5, "mid"),
	),

	_pattern(
		"jazz_walking",
		(0, 0.0, 0, "bass"), (1, 0.125, -8, "mid"), (3, 0.25, -12, "melody"), (2, 0.375, -10, "melody"),
		(1, 0.5, -5, "mid"), (0, 0.625, -3, "bass"), (2, 0.75, -10, "melody"), (3, 0.875, -12, "melody"),
	),

	_pattern(
		"flamenco_rasgueado",
		(3, 0.0, 5, "strum"), (2, 0.03, 3, "strum"), (1, 0.06, 0, "strum"), (0, 0.09, -3, "strum"),
		(1, 0.5, -5, "accent"), (3, 0.75, -8, "accent"),
	),

	_pattern("sweep_ascending", (0, 0.0, -10, "sweep"), (1, 1 / 12, -8, "sweep"), (2, 2 / 12, -6, "sweep"), (3, 0.25, -4, "sweep"), (3, 4 / 12, 0, "accent")),
	_pattern("sweep_descending", (3, 0.0, 0, "accent"), (2, 1 / 12, -4, "sweep"), (1, 2 / 12, -6, "sweep"), (0, 0.25, -8, "sweep"), (0, 4 / 12, -10, "sweep")),

	_pattern(
		"hybrid_alternating",
		(0, 0.0, 0, "pick"), (2, 0.125, -8, "finger"), (0, 0.25, -3, "pick"), (3, 0.375, -10, "finger"),
		(1, 0.5, -5, "pick"), (2, 0.625, -8, "finger"), (0, 0.75, -3, "pick"), (3, 0.875, -10, "finger"),
	),

	_pattern(
		"tremolo_high",
		(3, 0.0, 0, "tremolo"), (3, 0.125, -5, "tremolo"), (3, 0.25, -3, "tremolo"), (3, 0.375, -5, "tremolo"),
		(3, 0.5, 0, "tremolo"), (3, 0.625, -5, "tremolo"), (3, 0.75, -3, "tremolo"), (3, 0.875, -5, "tremolo"),
	),

	# Ringing notes that overlap into the next beat.
	_pattern(
		"campanella",
		(0, 0.0, 0, "sustain"), (1, 0.25, -5, "sustain"), (2, 0.5, -8, "sustain"),
		(3, 0.75, -10, "sustain"), (2, 1.0, -8, "sustain"), (1, 1.25, -5, "sustain"),
	),

	_pattern(
		"syncopated_funk",
		(0, 0.0, 0, "bass"), (2, 1 / 6, -8, "melody"), (1, 0.375, -5, "mid"),
		(3, 0.5, -10, "accent"), (1, 0.75, -5, "mid"), (2, 0.875, -8, "melody"),
	),
	_pattern(
		"bossa_nova",
		(0, 0.0, 0, "bass"), (2, 0.25, -8, "melody"), (1, 0.375, -5, "mid"), (0, 0.5, -3, "bass"),
		(3, 0.625, -10, "melody"), (1, 0.75, -5, "mid"), (2, 0.875, -8, "melody"),
	),
)}

# Candidate patterns by chord size; five notes or more use the last entry.
PATTERNS_BY_SIZE: typing.Dict[int, typing.Tuple[str, ...]] = {
	1: ("tremolo_high",),
	2: ("folk_basic", "hybrid_alternating"),
	3: ("travis_basic", "folk_basic", "folk_rolling"),
	4: ("travis_double", "jazz_walking", "hybrid_alternating", "bossa_nova"),
	5: ("jazz_walking", "sweep_ascending", "sweep_descending", "campanella", "flamenco_rasgueado"),
}


@dataclasses.dataclass(frozen=True)
class Note:

	"""A pitched note in absolute ticks (``end`` is exclusive)."""

	pitch: int
	start: int
	end: int
	velocity: int = dwummer.constants.velocity.DEFAULT_VELOCITY
	channel: int = 0
	technique: typing.Optional[Technique] = None

	@property
	def duration (self) -> int:

		return self.end - self.start


@dataclasses.dataclass(frozen=True)
class ChordMoment:

	"""A chord held from ``start`` until its first note lets go."""

	start: int
	end: int
	notes: typing.Tuple[Note, ...]

	@property
	def duration (self) -> int:

		return self.end - self.start


def select_pattern (chord_size: int, rng: random.Random) -> PickingPattern:

	"""
	Pick a pattern suited to the chord size.

	Consumes one draw when there is more than one candidate.
	"""

	if chord_size < 1:
		raise dwummer.errors.InvalidParameter(f"Chord size ({chord_size}) must be at least 1")

	names = PATTERNS_BY_SIZE[min(chord_size, max(PATTERNS_BY_SIZE))]
	name = names[0] if len(names) == 1 else names[rng.randrange(len(names))]

	return PATTERN_LIBRARY[name]


def chord_at (notes: typing.Iterable[Note], tick: int) -> typing.Tuple[Note, ...]:

	"""Notes sounding at ``tick``, lowest pitch first."""

	return tuple(sorted((note for note in notes if note.start <= tick < note.end), key=lambda note: note.pitch))


def find_chord_moments (notes: typing.Sequence[Note], min_length_ticks: int) -> typing.List[ChordMoment]:

	"""
	Find every distinct held chord.

	Each note held at least ``min_length_ticks`` starts a moment (once per
	start tick); the moment holds every note sounding at that tick and lasts
	until the first of them ends.
	"""

	moments: typing.List[ChordMoment] = []
	seen: typing.Set[int] = set()

	for note in sorted(notes, key=lambda note: (note.start, note.pitch)):

		if note.duration < min_length_ticks or note.start in seen:
			continue

		seen.add(note.start)
		chord = chord_at(notes, note.start)

		if chord:
			end = min(held.end for held in chord)
			moments.append(ChordMoment(start=note.start, end=end, notes=chord))

	return moments


def pick_chord (
	moment: ChordMoment,
	pattern: PickingPattern,
	rng: random.Random,
	ticks_per_beat: int = dwummer.constants.pulses.TICKS_PER_QUARTER,
) -> typing.List[Note]:

	"""
	Play ``pattern`` over a held chord, once per beat.

	Each pattern step draws twice (timing, then velocity). Nothing starts
	at or after the end of the chord, and notes are cut at the chord end.
	"""

	chord = moment.notes

	if not chord:
		return []

	base_velocity = sum(note.velocity for note in chord) / len(chord)
	repetitions = max(1, moment.duration // ticks_per_beat)
	timing_bound = TIMING_VARIATION * ticks_per_beat

	picked: typing.List[Note] = []

	for repetition in range(repetitions):
		for step in pattern.steps:

			source = chord[step.index % len(chord)]
			grid_time = moment.start + repetition * ticks_per_beat + int(round(step.position * ticks_per_beat))

			if grid_time >= moment.end:
				break

			spread = VELOCITY_VARIATION * (0.5 if step.technique in STEADY_TECHNIQUES else 1.0)
			start = max(0, int(round(grid_time + rng.uniform(-timing_bound, timing_bound))))
			velocity = base_velocity + step.velocity_mod + rng.uniform(-spread, spread)

			length = NOTE_LENGTHS.get(step.technique, DEFAULT_NOTE_LENGTH) * ticks_per_beat
			end = min(start + max(1, int(round(length))), moment.end)

			if end <= start:
				continue

			picked.append(Note(
				pitch = source.pitch,
				start = start,
				end = end,
				velocity = dwummer.constants.velocity.clamp_velocity(velocity),
				channel = source.channel,
				technique = step.technique,
			))

	return picked


def space_strings (notes: typing.Iterable[Note], min_interval: int) -> typing.List[Note]:

	"""
	Keep hits on the same string (pitch) at least ``min_interval`` apart.

	A note that comes too soon is delayed to the earliest legal tick, or
	dropped when the delay would leave it no length.
	"""

	last_start: typing.Dict[int, int] = {}
	spaced: typing.List[Note] = []

	for note in sorted(notes, key=lambda note: (note.start, note.pitch)):

		last = last_start.get(note.pitch)

		if last is not None and note.start - last < min_interval:
			earliest = last + min_interval
			if earliest >= note.end:
				logger.debug(f"Dropped pitch {note.pitch} at {note.start} (too close to {last})")
				continue
			note = dataclasses.replace(note, start=earliest)

		last_start[note.pitch] = note.start
		spaced.append(note)

	spaced.sort(key=lambda note: (note.start, note.pitch))

	return spaced


def transform (
	notes: typing.Sequence[Note],
	rng: random.Random,
	ticks_per_beat: int = dwummer.constants.pulses.TICKS_PER_QUARTER,
	min_length_ticks: typing.Optional[int] = None,
) -> typing.List[Note]:

	"""
	Replace every held chord in a clip with a picking pattern.

	Notes that are not part of any held chord are kept as they are. A clip
	without held chords comes back unchanged.

	Example:
		```python
		picked = dwummer.picking.transform(chord_notes, dwummer.rng.RngContext(7))
		```
	"""

	if ticks_per_beat <= 0:
		raise dwummer.errors.InvalidParameter(f"Ticks per beat ({ticks_per_beat}) must be positive")

	if min_length_ticks is None:
		min_length_ticks = int(MIN_CHORD_BEATS * ticks_per_beat)

	moments = find_chord_moments(notes, min_length_ticks)

	if not moments:
		logger.warning("No held chords found - notes left unchanged")
		return sorted(notes, key=lambda note: (note.start, note.pitch))

	generated: typing.List[Note] = []
	replaced: typing.Set[Note] = set()

	for moment in moments:
		pattern = select_pattern(len(moment.notes), rng)
		logger.debug(f"Chord of {len(moment.notes)} at {moment.start}: {pattern.name}")
		generated.extend(pick_chord(moment, pattern, rng, ticks_per_beat))
		replaced.update(moment.notes)

	kept = [note for note in notes if note not in replaced]
	interval = max(1, int(round(MIN_STRING_INTERVAL * ticks_per_beat)))

	logger.info(f"Picked {len(moments)} chords into {len(generated)} notes")

	return space_strings(kept + generated, interval)
