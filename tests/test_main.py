import os

import mido
import yaml

import dwummer.__main__


def test_list_genres (capsys) -> None:

	assert dwummer.__main__.main(["--list-genres"]) == 0

	out = capsys.readouterr().out.split()

	assert "house" in out
	assert out == sorted(out)


def test_generate_file (tmp_path) -> None:

	out = str(tmp_path / "groove.mid")

	assert dwummer.__main__.main(["--seed", "42", "--genre", "rock", "--units", "4", "--out", out]) == 0

	mid = mido.MidiFile(out)

	assert any(msg.type == "note_on" for msg in mid.tracks[0])


def test_settings_remembered (tmp_path) -> None:

	out = str(tmp_path / "groove.mid")
	settings = str(tmp_path / "settings.yaml")

	assert dwummer.__main__.main(["--seed", "8", "--genre", "funk", "--units", "2", "--settings", settings, "--out", out]) == 0

	with open(settings) as f:
		saved = yaml.safe_load(f)

	assert saved["dwummer"]["genre"] == "funk"
	assert saved["dwummer"]["seed"] == "8"


def test_config_file (tmp_path) -> None:

	config = tmp_path / "dwummer.yaml"
	config.write_text("seed: 3\ngenre: techno\nrepetition_units: 2\n")
	out = str(tmp_path / "groove.mid")

	assert dwummer.__main__.main(["--config", str(config), "--no-fills", "--out", out]) == 0
	assert os.path.exists(out)


def test_failed_session_writes_nothing (tmp_path) -> None:

	config = tmp_path / "tiny.yaml"
	config.write_text("unit_duration_ticks: 30\nrepetition_units: 2\n")
	out = str(tmp_path / "groove.mid")

	assert dwummer.__main__.main(["--config", str(config), "--out", out]) == 1
	assert not os.path.exists(out)


def test_invalid_section (tmp_path) -> None:

	out = str(tmp_path / "groove.mid")

	assert dwummer.__main__.main(["--section", "breakdown", "--out", out]) == 1
	assert not os.path.exists(out)
