"""General MIDI Level 1 drum notes used by the default kit.

Standard percussion assignments for channel 10 (0-indexed channel 9).
``GM_DRUM_MAP`` maps role names to their default note; a custom pitch map
can replace any entry (see :class:`dwummer.roles.PitchResolver`).
"""

import typing


KICK_2 = 35
KICK_1 = 36
SIDE_STICK = 37
SNARE_1 = 38
HAND_CLAP = 39
SNARE_2 = 40
LOW_FLOOR_TOM = 41
HI_HAT_CLOSED = 42
HI_HAT_PEDAL = 44
LOW_TOM = 45
HI_HAT_OPEN = 46
CRASH_1 = 49
HIGH_TOM = 50
RIDE_1 = 51
RIDE_BELL = 53
TAMBOURINE = 54
CRASH_2 = 57
SHAKER = 82

GM_DRUM_CHANNEL = 9


# Role name → default note.

GM_DRUM_MAP: typing.Dict[str, int] = {
	"kick": KICK_1,
	"snare": SNARE_1,
	"clap": HAND_CLAP,
	"side_stick": SIDE_STICK,
	"tom_high": HIGH_TOM,
	"tom_mid": LOW_TOM,
	"tom_low": LOW_FLOOR_TOM,
	"closed_hat": HI_HAT_CLOSED,
	"pedal_hat": HI_HAT_PEDAL,
	"open_hat": HI_HAT_OPEN,
	"ride": RIDE_1,
	"crash": CRASH_1,
	"percussion": SHAKER,
}


# Role name → alternate articulation used for "voiced variation" surprises.

GM_VARIATION_MAP: typing.Dict[str, int] = {
	"kick": KICK_2,
	"snare": SNARE_2,
	"clap": SNARE_2,
	"side_stick": SNARE_1,
	"tom_high": LOW_TOM,
	"tom_mid": HIGH_TOM,
	"tom_low": LOW_TOM,
	"closed_hat": HI_HAT_PEDAL,
	"pedal_hat": HI_HAT_CLOSED,
	"open_hat": HI_HAT_CLOSED,
	"ride": RIDE_BELL,
	"crash": CRASH_2,
	"percussion": TAMBOURINE,
}
