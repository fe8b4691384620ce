import logging
import typing

import mido

import dwummer.constants.pulses
import dwummer.event


logger = logging.getLogger(__name__)

DEFAULT_BPM = 120.0


def to_midi_file (
	events: typing.Iterable[dwummer.event.Event],
	ticks_per_beat: int = dwummer.constants.pulses.TICKS_PER_QUARTER,
	bpm: float = DEFAULT_BPM,
	track_name: str = "dwummer",
) -> mido.MidiFile:

	"""
	Build a type 1 MIDI file holding one track with every event.

	Event times are absolute ticks at ``ticks_per_beat``; they are turned
	into note on/off pairs and converted to delta times. At equal ticks a
	note off is written before a note on so repeated notes retrigger.

	Anything with ``pitch``, ``start``, ``duration``, ``velocity`` and
	``channel`` can be written, so picked guitar notes work too.
	"""

	mid = mido.MidiFile(type=1)
	mid.ticks_per_beat = ticks_per_beat

	track = mido.MidiTrack()
	mid.tracks.append(track)

	track.append(mido.MetaMessage("track_name", name=track_name, time=0))
	track.append(mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(bpm), time=0))

	# (tick, order, message) - order 0 puts note offs first on a shared tick.
	timeline: typing.List[typing.Tuple[int, int, mido.Message]] = []

	for event in events:
		timeline.append((event.start, 1, mido.Message("note_on", channel=event.channel, note=event.pitch, velocity=event.velocity)))
		timeline.append((event.start + event.duration, 0, mido.Message("note_off", channel=event.channel, note=event.pitch, velocity=0)))

	timeline.sort(key=lambda item: (item[0], item[1]))

	last_tick = 0

	for tick, _, message in timeline:
		message.time = max(0, tick - last_tick)
		track.append(message)
		last_tick = tick

	track.append(mido.MetaMessage("end_of_track", time=0))

	return mid


def write_midi (
	events: typing.Sequence[dwummer.event.Event],
	path: str,
	ticks_per_beat: int = dwummer.constants.pulses.TICKS_PER_QUARTER,
	bpm: float = DEFAULT_BPM,
) -> None:

	"""Save an event batch as a Standard MIDI File."""

	logger.info(f"Saving {len(events)} events to {path}...")

	to_midi_file(events, ticks_per_beat=ticks_per_beat, bpm=bpm).save(path)

	logger.info(f"Saved {path}")
