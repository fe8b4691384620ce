"""The single seeded random source for a generation session.

Every component receives the session's :class:`RngContext` and draws from it
in a fixed order. Nothing else in the package seeds or creates a random
generator, so one seed reproduces one groove exactly.
"""

import random
import typing

T = typing.TypeVar("T")


class RngContext (random.Random):

	"""
	A ``random.Random`` seeded once, with the Bernoulli helpers used
	throughout generation.

	Example:
		```python
		rng = dwummer.rng.RngContext(42)
		if rng.chance(0.7):
			add_open_hats()
		```
	"""

	def chance (self, probability: float) -> bool:

		"""Run one Bernoulli trial. Always consumes exactly one draw."""

		return self.random() < probability

	def pick (self, options: typing.Sequence[T], exclude: typing.Optional[T] = None) -> T:

		"""
		Choose uniformly from ``options``.

		``exclude`` is left out when more than one candidate remains, which
		prevents immediate repetition without ever failing.
		"""

		if not options:
			raise ValueError("Options cannot be empty")

		candidates = [option for option in options if option != exclude]

		if not candidates:
			candidates = list(options)

		return candidates[self.randrange(len(candidates))]
