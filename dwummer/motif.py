"""Motif memory - short fragments remembered per voice and recalled transformed.

A :class:`Motif` is 2-5 grid cells, each a hit or a rest with a pitch
degree. :class:`MotifMemory` keeps the last five fragments per voice and,
when asked, hands back a *transformed copy* of one of them. Stored
fragments are frozen and never modified.
"""

import collections
import dataclasses
import enum
import logging
import random
import typing

import dwummer.errors
import dwummer.sequence_utils


logger = logging.getLogger(__name__)

MIN_LENGTH = 2
MAX_LENGTH = 5
HISTORY_CAPACITY = 5

SPARSIFY_DROP = 0.5
DENSIFY_ADD = 0.3
SEQUENCE_STEP = 2


@dataclasses.dataclass(frozen=True)
class MotifStep:

	"""
	One cell of a motif.

	Attributes:
		offset: Step offset from the start of the fragment.
		hit: Hit or rest.
		degree: Pitch content - a scale degree, or an index into the
			voice's pitch set for pitched percussion.
	"""

	offset: int
	hit: bool
	degree: int = 0


@dataclasses.dataclass(frozen=True)
class Motif:

	"""A 2-5 cell fragment owned by one voice."""

	voice: str
	steps: typing.Tuple[MotifStep, ...]

	def __post_init__ (self) -> None:

		if not MIN_LENGTH <= len(self.steps) <= MAX_LENGTH:
			raise dwummer.errors.InvalidParameter(
				f"Motif length must be {MIN_LENGTH}-{MAX_LENGTH} steps, got {len(self.steps)}"
			)

	@classmethod
	def from_hits (cls, voice: str, hits: typing.Sequence[int], degrees: typing.Optional[typing.Sequence[int]] = None) -> "Motif":

		"""Build a motif from a binary sequence and optional per-step degrees."""

		if degrees is None:
			degrees = [0] * len(hits)

		return cls(voice=voice, steps=_cells(hits, degrees))

	@property
	def hits (self) -> typing.List[int]:

		return [1 if step.hit else 0 for step in self.steps]

	@property
	def degrees (self) -> typing.List[int]:

		return [step.degree for step in self.steps]

	def content (self) -> typing.List[typing.Tuple[bool, int]]:

		"""The (hit, degree) pairs in order, ignoring offsets."""

		return [(step.hit, step.degree) for step in self.steps]

	def __len__ (self) -> int:

		return len(self.steps)


def _cells (hits: typing.Sequence[int], degrees: typing.Sequence[int]) -> typing.Tuple[MotifStep, ...]:

	return tuple(MotifStep(offset=i, hit=bool(hit), degree=int(degree)) for i, (hit, degree) in enumerate(zip(hits, degrees)))


class Transform (enum.Enum):

	INVERT = "invert"
	SHIFT = "shift"
	SPARSIFY = "sparsify"
	DENSIFY = "densify"
	SEQUENCE = "sequence"
	FRAGMENT = "fragment"
	RETROGRADE = "retrograde"
	DISPLACE = "displace"


def transform (motif: Motif, kind: Transform, rng: random.Random) -> Motif:

	"""
	Return a new motif derived from ``motif``.

	Every transform changes the content except in these cases, where a
	copy comes back unchanged: shifting or displacing a fragment whose
	rotations all look the same, sparsifying when no hit is dropped,
	densifying when no rest is filled, fragmenting a two-step motif and
	reversing a palindrome.
	"""

	hits = motif.hits
	degrees = motif.degrees
	n = len(hits)

	if kind is Transform.INVERT:
		hits = [0 if hit else 1 for hit in hits]

	elif kind is Transform.SHIFT:
		pairs = list(zip(hits, degrees))
		options = [k for k in range(1, n) if dwummer.sequence_utils.rotate(pairs, k) != pairs]
		if options:
			pairs = dwummer.sequence_utils.rotate(pairs, options[rng.randrange(len(options))])
			hits = [p[0] for p in pairs]
			degrees = [p[1] for p in pairs]

	elif kind is Transform.SPARSIFY:
		original = dwummer.sequence_utils.sequence_to_indices(hits)
		hits = [hit if not hit or rng.random() >= SPARSIFY_DROP else 0 for hit in hits]
		if original and not any(hits):
			hits[original[rng.randrange(len(original))]] = 1

	elif kind is Transform.DENSIFY:
		hits = [1 if hit or rng.random() < DENSIFY_ADD else 0 for hit in hits]

	elif kind is Transform.SEQUENCE:
		step = SEQUENCE_STEP if rng.random() < 0.5 else -SEQUENCE_STEP
		degrees = [degree + step for degree in degrees]

	elif kind is Transform.FRAGMENT:
		if n > MIN_LENGTH:
			length = rng.randint(MIN_LENGTH, n - 1)
			start = rng.randint(0, n - length)
			hits = hits[start:start + length]
			degrees = degrees[start:start + length]

	elif kind is Transform.RETROGRADE:
		hits = hits[::-1]
		degrees = degrees[::-1]

	elif kind is Transform.DISPLACE:
		hits, degrees = _displace(hits, degrees, rng)

	return Motif(voice=motif.voice, steps=_cells(hits, degrees))


def _displace (hits: typing.List[int], degrees: typing.List[int], rng: random.Random) -> typing.Tuple[typing.List[int], typing.List[int]]:

	"""Rotate the inter-onset durations of the hits, keeping their pitch order."""

	n = len(hits)
	onsets = dwummer.sequence_utils.sequence_to_indices(hits)

	if len(onsets) < 2:
		return hits, degrees

	# Inner gaps plus the tail to the end of the fragment; the leading rest stays put.
	durations = [b - a for a, b in zip(onsets, onsets[1:])] + [n - onsets[-1]]
	options = [k for k in range(1, len(durations)) if dwummer.sequence_utils.rotate(durations, k) != durations]

	if not options:
		return hits, degrees

	durations = dwummer.sequence_utils.rotate(durations, options[rng.randrange(len(options))])

	new_hits = [0] * n
	new_degrees = [0] * n
	position = onsets[0]

	for onset, duration in zip(onsets, durations):
		new_hits[position] = 1
		new_degrees[position] = degrees[onset]
		position += duration

	return new_hits, new_degrees


class MotifMemory:

	"""
	Per-voice bounded history of motifs.

	Example:
		```python
		memory = MotifMemory()
		memory.store("hat", Motif.from_hits("hat", [1, 0, 1, 1]))
		variant = memory.recall("hat", rng, unit_index=2)
		```
	"""

	def __init__ (self, capacity: int = HISTORY_CAPACITY) -> None:

		if capacity <= 0:
			raise dwummer.errors.InvalidParameter("Motif history capacity must be positive")

		self.capacity = capacity
		self._history: typing.Dict[str, typing.Deque[Motif]] = {}

	def store (self, voice: str, fragment: typing.Union[Motif, typing.Sequence[int]]) -> Motif:

		"""
		Remember a fragment for ``voice``, evicting the oldest when full.

		Accepts a ``Motif`` or a plain binary sequence of length 2-5.
		"""

		motif = fragment if isinstance(fragment, Motif) else Motif.from_hits(voice, fragment)

		if motif.voice != voice:
			motif = Motif(voice=voice, steps=motif.steps)

		history = self._history.setdefault(voice, collections.deque(maxlen=self.capacity))
		history.append(motif)

		return motif

	def history (self, voice: str) -> typing.Tuple[Motif, ...]:

		"""A snapshot of the stored fragments for ``voice``, oldest first."""

		return tuple(self._history.get(voice, ()))

	@staticmethod
	def recall_probability (unit_index: int) -> float:

		"""Chance of recalling on a unit: none on the first, 50% on the second, 70% after."""

		if unit_index < 1:
			return 0.0

		if unit_index == 1:
			return 0.5

		return 0.7

	def recall (
		self,
		voice: str,
		rng: random.Random,
		unit_index: int = 2,
		kind: typing.Optional[Transform] = None,
		probability: typing.Optional[float] = None,
	) -> typing.Optional[Motif]:

		"""
		Maybe return a transformed copy of a stored fragment.

		Returns ``None`` when the voice has no history (no draw is consumed)
		or when the recall trial fails. Otherwise one stored fragment is
		chosen uniformly and exactly one transform is applied.

		Parameters:
			voice: Voice whose history to draw from.
			rng: The session RNG.
			unit_index: Zero-based repetition unit (sets the recall chance).
			kind: Force a specific transform instead of choosing one.
			probability: Override the recall chance.
		"""

		history = self._history.get(voice)

		if not history:
			return None

		chance = self.recall_probability(unit_index) if probability is None else probability

		if rng.random() >= chance:
			return None

		source = history[rng.randrange(len(history))]

		if kind is None:
			choices = list(Transform)
			kind = choices[rng.randrange(len(choices))]

		result = transform(source, kind, rng)
		logger.debug(f"Recalled motif for {voice} with {kind.value}: {source.hits} -> {result.hits}")

		return result
