import random
import typing

import dwummer.errors

T = typing.TypeVar("T")


def generate_euclidean_sequence (steps: int, pulses: int, rotation: int = 0) -> typing.List[int]:

	"""
	Distribute pulses as evenly as possible across steps.

	Pulse ``i`` lands on step ``ceil(i * steps / pulses)``, which gives the
	familiar Euclidean shapes (3 in 8 is the tresillo, hits on 0, 3 and 6).
	The result is then rotated left by ``rotation`` steps, modulo ``steps``.

	Parameters:
		steps: Sequence length (must be positive).
		pulses: Number of hits, ``0 <= pulses <= steps``.
		rotation: Circular rotation; any integer, taken modulo ``steps``.

	Example:
		```python
		generate_euclidean_sequence(16, 4)     # hits on 0, 4, 8, 12
		generate_euclidean_sequence(8, 3, 1)   # tresillo started one step late
		```
	"""

	if steps <= 0:
		raise dwummer.errors.InvalidParameter(f"Steps ({steps}) must be positive")

	if pulses < 0:
		raise dwummer.errors.InvalidParameter(f"Pulses ({pulses}) cannot be negative")

	if pulses > steps:
		raise dwummer.errors.InvalidParameter(f"Pulses ({pulses}) cannot be greater than steps ({steps})")

	sequence = [0] * steps

	for i in range(pulses):
		sequence[-(-i * steps // pulses)] = 1

	return rotate(sequence, rotation)


def rotate (sequence: typing.List[T], rotation: int) -> typing.List[T]:

	"""Rotate a sequence left by ``rotation`` places (negative rotates right)."""

	if not sequence:
		return []

	shift = rotation % len(sequence)
	return sequence[shift:] + sequence[:shift]


def sequence_to_indices (sequence: typing.Sequence[int]) -> typing.List[int]:

	"""Extract step indices where hits occur in a binary sequence."""

	return [i for i, v in enumerate(sequence) if v]


def probability_gate (sequence: typing.List[int], probability: float, rng: random.Random, protected: typing.Collection[int] = ()) -> typing.List[int]:

	"""Filter a binary sequence by probability.

	Each active step is kept with the given probability. Inactive steps are
	never promoted, and steps listed in ``protected`` are always kept. One
	draw is consumed per unprotected hit, in step order.

	Parameters:
		sequence: Binary sequence (0s and 1s)
		probability: Chance of keeping each hit (0.0-1.0)
		rng: Random number generator instance
		protected: Step indices that must survive
	"""

	result: typing.List[int] = []

	for i, value in enumerate(sequence):

		if value == 0 or i in protected:
			result.append(value)
			continue

		result.append(value if rng.random() < probability else 0)

	return result


def scale_clamp (value: float, in_min: float, in_max: float, out_min: float = 0.0, out_max: float = 1.0) -> float:

	"""Scale a value from an input range to an output range and clamp the result.

	Maps a value from [in_min, in_max] to [out_min, out_max]. If the result
	falls outside the output range, it is clamped to the nearest bound.
	Correctly handles reversed ranges (where min > max).
	"""

	if in_min == in_max:

		raise ValueError(f"Input range cannot be zero-width ({in_min} == {in_max})")

	percentage = (value - in_min) / (in_max - in_min)
	scaled = out_min + percentage * (out_max - out_min)

	if out_min < out_max:
		return max(out_min, min(out_max, scaled))
	else:
		return max(out_max, min(out_min, scaled))


def clamp01 (value: float) -> float:

	"""Clamp a value into [0, 1]."""

	return max(0.0, min(1.0, value))
