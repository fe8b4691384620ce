import logging

import dwummer.midi_file
import dwummer.picking
import dwummer.rng

logging.basicConfig(level=logging.INFO)

TICKS_PER_BEAT = 480
BAR = 4 * TICKS_PER_BEAT

# Am - F - C - G, each chord held for a bar.
PROGRESSION = [
	(45, 52, 57, 60, 64),
	(41, 48, 53, 57),
	(48, 52, 55),
	(43, 50, 55, 59, 67),
]

chords = [
	dwummer.picking.Note(pitch=pitch, start=bar * BAR, end=(bar + 1) * BAR, velocity=90)
	for bar, chord in enumerate(PROGRESSION)
	for pitch in chord
]

picked = dwummer.picking.transform(chords, dwummer.rng.RngContext(7), ticks_per_beat=TICKS_PER_BEAT)

for note in picked[:12]:
	logging.info(f"{note.start:5d}  {note.pitch:3d}  {note.technique.value if note.technique else '-':<8} vel {note.velocity}")

dwummer.midi_file.write_midi(picked, "picked_chords.mid", ticks_per_beat=TICKS_PER_BEAT, bpm=90)
