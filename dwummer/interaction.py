"""Call and response between two concurrently generated voices.

The secondary voice gets out of the primary's way where the primary plays,
and occasionally answers where it rests. The exchange is more likely near
the end of a phrase, where players naturally talk to each other.
"""

import logging
import random
import typing


logger = logging.getLogger(__name__)

BASE_STRENGTH = 0.3
PHRASE_END_BONUS = 0.3
PHRASE_END_PROGRESS = 0.75

SUPPRESSION = 0.7
RESPONSE = 0.2


def interaction_strength (phrase_progress: float) -> float:

	"""Chance of running the exchange at all for this unit."""

	if phrase_progress >= PHRASE_END_PROGRESS:
		return BASE_STRENGTH + PHRASE_END_BONUS

	return BASE_STRENGTH


def derive_complementary (
	primary_hits: typing.Sequence[int],
	secondary_hits: typing.Sequence[int],
	phrase_progress: float,
	rng: random.Random,
	protected: typing.Collection[int] = (),
) -> typing.List[int]:

	"""
	Return an adjusted copy of ``secondary_hits``.

	One draw decides whether the exchange happens. If it does, each step
	consumes one draw: a secondary hit under a primary hit is dropped with
	70% probability, and a step where both rest gains a secondary "response"
	hit with 20% probability. Steps in ``protected`` (core positions) are
	left alone and consume no draw.

	Parameters:
		primary_hits: The leading voice's steps (read only).
		secondary_hits: The answering voice's steps.
		phrase_progress: 0-1 position within the phrase.
		rng: The session RNG.
		protected: Secondary steps that must not change.
	"""

	if len(primary_hits) != len(secondary_hits):
		raise ValueError("Primary and secondary sequences must be the same length")

	result = list(secondary_hits)

	if rng.random() >= interaction_strength(phrase_progress):
		return result

	changed = 0

	for i, primary in enumerate(primary_hits):

		if i in protected:
			continue

		if primary:
			if result[i] and rng.random() < SUPPRESSION:
				result[i] = 0
				changed += 1
		elif not result[i]:
			if rng.random() < RESPONSE:
				result[i] = 1
				changed += 1

	logger.debug(f"Interaction at progress {phrase_progress:.2f} changed {changed} steps")

	return result
