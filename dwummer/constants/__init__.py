"""Constants for dwummer.

- ``dwummer.constants.pulses`` - tick resolution and timing constants
- ``dwummer.constants.gm_drums`` - General MIDI percussion note numbers
- ``dwummer.constants.velocity`` - MIDI velocity constants

Grid constants shared by the blueprint and session layers live here.
"""

STEPS_PER_UNIT = 16
BEATS_PER_UNIT = 4
STEPS_PER_BEAT = STEPS_PER_UNIT // BEATS_PER_UNIT
PHRASE_UNITS = 4
