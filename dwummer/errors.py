"""Error kinds raised while generating a groove.

Every failure that aborts a session derives from :class:`GenerationError`,
so callers at the boundary can catch one type and report a single reason.
"""


class GenerationError (Exception):

	"""Base class for failures that abort a generation session."""


class InvalidParameter (GenerationError, ValueError):

	"""Malformed structural input (step counts, durations, voices, names)."""


class UnresolvedPitchRole (GenerationError, KeyError):

	"""A role has no pitch mapping.

	Recoverable: the session substitutes the nearest declared role.
	"""

	def __init__ (self, role_name: str) -> None:

		super().__init__(role_name)
		self.role_name = role_name

	def __str__ (self) -> str:

		return f"No pitch mapping for role '{self.role_name}'"


class ConstraintViolationAfterGeneration (GenerationError):

	"""Minimum inter-hit spacing could not be satisfied even after repair."""
