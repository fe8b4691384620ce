"""Tick-based timing constants.

All timing constants are expressed at the reference resolution of
**960 ticks per quarter note** (the resolution the host uses by default).
Sessions running at another resolution scale them with :func:`scale_ticks`.
"""

TICKS_PER_QUARTER = 960

TICKS_THIRTYSECOND_NOTE = 120
TICKS_SIXTEENTH_NOTE = 240
TICKS_EIGHTH_NOTE = 480
TICKS_QUARTER_NOTE = 960
TICKS_WHOLE_NOTE = 3840

# Humanization bounds.
JITTER_LOOSE = 20
TIGHT_JITTER_RATIO = 0.4
ENERGY_PUSH = 30
ENERGY_PULL = 18

# Surprise placement.
DISPLACEMENT = 80
GHOST_LEAD = 120
FLAM_LEAD = 40


def scale_ticks (reference_ticks: float, ticks_per_quarter: int) -> float:

	"""Scale a reference-resolution tick amount to another resolution."""

	return reference_ticks * ticks_per_quarter / TICKS_PER_QUARTER
