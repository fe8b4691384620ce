"""MIDI velocity constants.

Velocity is the MIDI attack strength (1-127 for sounding notes).
"""

DEFAULT_VELOCITY = 100
DEFAULT_GHOST_VELOCITY = 35

# Metric contour
DOWNBEAT_BOOST = 12
BACKBEAT_BOOST = 6
SWELL_AMPLITUDE = 5.0
VELOCITY_NOISE = 4

# Surprise adjustments
ACCENT_BOOST = 15
FLAM_SCALE = 0.6

MIN_VELOCITY = 1
MAX_VELOCITY = 127


def clamp_velocity (value: float) -> int:

	"""Round and clamp a velocity into the sounding MIDI range."""

	return max(MIN_VELOCITY, min(MAX_VELOCITY, int(round(value))))
