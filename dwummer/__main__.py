import argparse
import logging
import sys
import typing

import dwummer.blueprints
import dwummer.config
import dwummer.errors
import dwummer.form
import dwummer.midi_file
import dwummer.session


logger = logging.getLogger(__name__)


def build_parser () -> argparse.ArgumentParser:

	parser = argparse.ArgumentParser(prog="dwummer", description="Generate a humanized drum groove as a MIDI file.")

	parser.add_argument("--config", help="YAML session configuration")
	parser.add_argument("--settings", help="YAML file remembering the last settings used")
	parser.add_argument("--seed", type=int)
	parser.add_argument("--genre", choices=sorted(dwummer.blueprints.BLUEPRINTS))
	parser.add_argument("--units", type=int, help="number of bars to generate")
	parser.add_argument("--section", help=f"'{dwummer.form.AUTO}' or a fixed section ({', '.join(section.value for section in dwummer.form.SectionType)})")
	parser.add_argument("--no-humanize", action="store_true", help="keep every hit on the grid")
	parser.add_argument("--no-fills", action="store_true")
	parser.add_argument("--bpm", type=float, default=dwummer.midi_file.DEFAULT_BPM)
	parser.add_argument("--out", default="groove.mid", help="output MIDI file")
	parser.add_argument("--list-genres", action="store_true", help="print the available genres and exit")
	parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")

	return parser


def _overrides (args: argparse.Namespace) -> typing.Dict[str, typing.Any]:

	overrides: typing.Dict[str, typing.Any] = {}

	if args.seed is not None:
		overrides["seed"] = args.seed
	if args.genre is not None:
		overrides["genre"] = args.genre
	if args.units is not None:
		overrides["repetition_units"] = args.units
	if args.section is not None:
		overrides["section_mode"] = args.section
	if args.no_humanize:
		overrides["humanization_enabled"] = False
	if args.no_fills:
		overrides["fills_enabled"] = False

	return overrides


def main (argv: typing.Optional[typing.List[str]] = None) -> int:

	"""
	Command-line entry point.

	Returns 0 on success and 1 when the session fails (nothing is written).
	"""

	args = build_parser().parse_args(argv)

	logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

	if args.list_genres:
		for name in sorted(dwummer.blueprints.BLUEPRINTS):
			print(name)
		return 0

	store: typing.Optional[dwummer.config.YamlSettingsStore] = None

	try:
		config = dwummer.config.load_config(args.config) if args.config else dwummer.config.SessionConfig()

		if args.settings:
			store = dwummer.config.YamlSettingsStore(args.settings)
			config = dwummer.config.load_settings(store, config)

		config = config.updated(**_overrides(args))

	except dwummer.errors.GenerationError as exc:
		logger.error(f"Invalid configuration: {exc}")
		return 1

	result = dwummer.session.run(config)

	if not result.ok:
		logger.error(f"Generation failed - {result.error}")
		return 1

	dwummer.midi_file.write_midi(result.events, args.out, ticks_per_beat=config.ticks_per_quarter, bpm=args.bpm)

	if store is not None:
		dwummer.config.save_settings(config, store)

	return 0


if __name__ == "__main__":
	sys.exit(main())
