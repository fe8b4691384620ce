import mido

import dwummer.midi_file
from dwummer.roles import Role


def test_write_and_read_back (tmp_path, make_event) -> None:

	events = [
		make_event(role=Role.KICK, start=0, pitch=36),
		make_event(role=Role.SNARE, start=960, pitch=38),
		make_event(role=Role.KICK, start=1920, pitch=36, velocity=90),
	]
	path = str(tmp_path / "out.mid")

	dwummer.midi_file.write_midi(events, path, ticks_per_beat=480, bpm=100.0)

	mid = mido.MidiFile(path)

	assert mid.ticks_per_beat == 480
	assert len(mid.tracks) == 1

	notes_on = [msg for msg in mid.tracks[0] if msg.type == "note_on" and msg.velocity > 0]
	tempos = [msg for msg in mid.tracks[0] if msg.type == "set_tempo"]

	assert [msg.note for msg in notes_on] == [36, 38, 36]
	assert notes_on[2].velocity == 90
	assert tempos[0].tempo == mido.bpm2tempo(100.0)


def test_absolute_times (make_event) -> None:

	events = [make_event(start=0, duration=100), make_event(start=960, duration=100)]
	mid = dwummer.midi_file.to_midi_file(events)

	tick = 0
	starts = []

	for msg in mid.tracks[0]:
		tick += msg.time
		if msg.type == "note_on":
			starts.append(tick)

	assert starts == [0, 960]


def test_note_off_before_retrigger (make_event) -> None:

	"""A note ending where the next one starts is released first."""

	events = [make_event(start=0, duration=240), make_event(start=240, duration=240)]
	mid = dwummer.midi_file.to_midi_file(events)

	types = [msg.type for msg in mid.tracks[0] if msg.type in ("note_on", "note_off")]

	assert types == ["note_on", "note_off", "note_on", "note_off"]


def test_empty_sequence () -> None:

	mid = dwummer.midi_file.to_midi_file([])

	assert [msg.type for msg in mid.tracks[0]] == ["track_name", "set_tempo", "end_of_track"]
