import logging

import dwummer
import dwummer.config

logging.basicConfig(level=logging.INFO)

# Eight bars of house on the default kit, with a slightly lazier swing than the blueprint's.
config = dwummer.SessionConfig(
	seed = 42,
	repetition_units = 8,
	genre = "house",
	swing = 54.0,
)

result = dwummer.run(config)

if result.ok:
	dwummer.write_midi(result.events, "house_groove.mid", bpm=124)
else:
	logging.error(result.error)

# A small kit: anything the blueprint asks for that this kit lacks is played
# by the nearest voice (claps on the snare), or left out.
small_kit = config.updated(
	genre = "rock",
	voices = [
		dwummer.VoiceConfig(name="kick", role="kick", pitches=[36], velocity=(80, 118)),
		dwummer.VoiceConfig(name="snare", role="snare", pitches=[38, 40]),
		dwummer.VoiceConfig(name="hats", role="closed_hat", pitches=[42], velocity=(50, 90)),
		dwummer.VoiceConfig(name="floor", role="tom_low", pitches=[41]),
	],
)

session = dwummer.Session(small_kit)
events = session.generate()

for event in events[:16]:
	logging.info(f"{event.start:6d}  {event.voice:<6} {event.pitch:3d}  vel {event.velocity}")

dwummer.write_midi(events, "rock_small_kit.mid", bpm=96)

# Remember these settings for next time.
store = dwummer.config.YamlSettingsStore("dwummer_settings.yaml")
dwummer.config.save_settings(small_kit, store)
