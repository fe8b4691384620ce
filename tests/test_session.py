import logging

import pytest

import dwummer.assembler
import dwummer.blueprints
import dwummer.config
import dwummer.errors
import dwummer.roles
import dwummer.session
from dwummer.config import SessionConfig, VoiceConfig
from dwummer.roles import Role


UNIT = 3840


def _starts (events: list, role: Role) -> set:

	return {event.start for event in events if event.role is role}


def test_same_seed_same_groove (house_config: SessionConfig) -> None:

	"""Two runs with the same configuration give identical events."""

	first = dwummer.session.generate(house_config)
	second = dwummer.session.generate(house_config)

	assert first == second
	assert len(first) > 0


def test_generate_twice_on_one_session (house_config: SessionConfig) -> None:

	"""A session replays its seed from the start each time."""

	session = dwummer.session.Session(house_config)

	assert session.generate() == session.generate()


def test_different_seed_different_groove (house_config: SessionConfig) -> None:

	"""Changing the seed changes the groove."""

	other = house_config.updated(seed=43)

	assert dwummer.session.generate(house_config) != dwummer.session.generate(other)


@pytest.mark.parametrize("seed", [42, 43])
def test_house_core_on_the_grid (seed: int) -> None:

	"""Without humanization the house kick is on every beat and the snare on two and four."""

	config = SessionConfig(seed=seed, repetition_units=4, genre="house", humanization_enabled=False, fills_enabled=False)
	events = dwummer.session.generate(config)

	kicks = _starts(events, Role.KICK)
	snares = _starts(events, Role.SNARE)

	for unit in range(4):
		for beat in range(4):
			assert unit * UNIT + beat * 960 in kicks
		for beat in (1, 3):
			assert unit * UNIT + beat * 960 in snares


@pytest.mark.parametrize("seed", [42, 43])
def test_house_core_survives_humanization (seed: int) -> None:

	"""Humanized kicks and snares stay within a few ticks of the core positions."""

	config = SessionConfig(seed=seed, repetition_units=4, genre="house", fills_enabled=False, surprise_probability=0.0)
	events = dwummer.session.generate(config)

	kicks = sorted(_starts(events, Role.KICK))
	snares = sorted(_starts(events, Role.SNARE))

	for unit in range(4):
		for beat in range(4):
			target = unit * UNIT + beat * 960
			assert any(abs(start - target) <= 60 for start in kicks)
		for beat in (1, 3):
			target = unit * UNIT + beat * 960
			assert any(abs(start - target) <= 60 for start in snares)


@pytest.mark.parametrize("genre, kick_beats", [("house", (0, 1, 2, 3)), ("rock", (0, 2))])
@pytest.mark.parametrize("seed", range(20))
def test_core_hits_survive_surprises (genre: str, kick_beats: tuple, seed: int) -> None:

	"""Ghosts and flams on core hits never push the core hit off its beat."""

	config = SessionConfig(seed=seed, repetition_units=4, genre=genre, fills_enabled=False, surprise_probability=1.0)
	events = dwummer.session.generate(config)

	def _check (role: Role, beats: tuple) -> None:
		for unit in range(4):
			for beat in beats:
				target = unit * UNIT + beat * 960
				near = [event for event in events if event.role is role and abs(event.start - target) <= 40]
				assert near, f"{role.value} missing near {target}"
				assert not max(near, key=lambda event: event.velocity).ornament

	_check(Role.KICK, kick_beats)
	_check(Role.SNARE, (1, 3))


@pytest.mark.parametrize("genre", sorted(dwummer.blueprints.BLUEPRINTS))
def test_output_is_playable (genre: str) -> None:

	"""Every genre yields ordered, well-spaced, in-range events."""

	for seed in range(3):
		config = SessionConfig(seed=seed, repetition_units=8, genre=genre)
		events = dwummer.session.generate(config)

		dwummer.assembler.verify_spacing(events)

		last = {}
		for event in events:
			assert 0 <= event.start < 8 * UNIT
			assert 1 <= event.velocity <= 127
			assert 0 <= event.pitch <= 127
			assert event.duration > 0
			if event.role in last:
				assert event.start - last[event.role] >= dwummer.roles.min_interval(event.role)
			last[event.role] = event.start

		assert [event.sort_key() for event in events] == sorted(event.sort_key() for event in events)


def test_unit_shorter_than_every_interval_fails () -> None:

	"""A unit too short for any role aborts the session with no events."""

	config = SessionConfig(seed=1, repetition_units=2, unit_duration_ticks=30, genre="house")

	with pytest.raises(dwummer.errors.ConstraintViolationAfterGeneration):
		dwummer.session.generate(config)

	result = dwummer.session.run(config)

	assert result.events == []
	assert not result.ok
	assert "ConstraintViolationAfterGeneration" in result.error


def test_run_success (house_config: SessionConfig) -> None:

	"""A good session reports no error."""

	result = dwummer.session.run(house_config)

	assert result.ok
	assert result.events == dwummer.session.generate(house_config)


def test_events_stay_on_declared_voices (caplog: pytest.LogCaptureFixture) -> None:

	"""With only kick and snare declared, nothing else is played and the gap is logged."""

	config = SessionConfig(
		seed = 5,
		repetition_units = 8,
		genre = "house",
		voices = [VoiceConfig(name="bd", role="kick"), VoiceConfig(name="sd", role="snare")],
	)

	with caplog.at_level(logging.WARNING, logger="dwummer.session"):
		events = dwummer.session.generate(config)

	assert {event.role for event in events} <= {Role.KICK, Role.SNARE}
	assert {event.voice for event in events} <= {"bd", "sd"}
	assert "closed_hat" in caplog.text


def test_clap_folds_onto_snare_voice () -> None:

	"""Blueprint roles without a voice are played by the nearest declared role."""

	config = SessionConfig(
		seed = 3,
		repetition_units = 2,
		genre = "house",
		humanization_enabled = False,
		fills_enabled = False,
		voices = [VoiceConfig(name="bd", role="kick"), VoiceConfig(name="sd", role="snare", pitches=[40])],
	)

	events = dwummer.session.generate(config)

	assert {event.pitch for event in events if event.role is Role.SNARE} == {40}


def test_pitch_map_and_resolver () -> None:

	"""Voices without explicit pitches use the injected resolver."""

	config = SessionConfig(seed=1, repetition_units=1, genre="rock", pitch_map={"kick": 35})
	session = dwummer.session.Session(config)

	assert session.voices[Role.KICK].pitches == (35,)
	assert session.voices[Role.SNARE].pitches == (38,)


def test_unresolved_role_falls_back (caplog: pytest.LogCaptureFixture) -> None:

	"""A custom resolver missing a tom substitutes the nearest mapped role."""

	resolver = dwummer.roles.PitchResolver(base={"kick": 36, "snare": 38, "tom_mid": 47})
	config = SessionConfig(
		seed = 1,
		repetition_units = 1,
		voices = [VoiceConfig(name="bd", role="kick"), VoiceConfig(name="sd", role="snare"), VoiceConfig(name="hi", role="tom_high")],
	)

	with caplog.at_level(logging.WARNING, logger="dwummer.roles"):
		session = dwummer.session.Session(config, resolve_pitch=resolver)

	assert session.voices[Role.TOM_HIGH].pitches == (47,)
	assert "tom_high" in caplog.text


def test_fill_pool_order () -> None:

	"""The fill pool is the snare, then toms from high to low."""

	session = dwummer.session.Session(SessionConfig(genre="rock"))

	assert [role for role, _ in session.fill_pool] == [Role.SNARE, Role.TOM_HIGH, Role.TOM_MID, Role.TOM_LOW]


def test_fills_disabled_keeps_toms_silent () -> None:

	"""In house the toms are only played by fills."""

	config = SessionConfig(seed=8, repetition_units=8, genre="house", fills_enabled=False)
	events = dwummer.session.generate(config)

	assert not {event.role for event in events} & {Role.TOM_HIGH, Role.TOM_MID, Role.TOM_LOW}


def test_fixed_section_mode () -> None:

	"""A chorus-only session hits harder than an intro-only one."""

	quiet = SessionConfig(seed=2, repetition_units=4, section_mode="intro", humanization_enabled=False, fills_enabled=False)
	loud = quiet.updated(section_mode="chorus")

	def _loudest_kick (events: list) -> int:
		return max(event.velocity for event in events if event.role is Role.KICK)

	assert _loudest_kick(dwummer.session.generate(quiet)) == 95
	assert _loudest_kick(dwummer.session.generate(loud)) == 120


def test_swing_moves_off_beat_steps () -> None:

	"""A swung genre delays the off-beat 16ths of a straight grid."""

	config = SessionConfig(seed=4, repetition_units=2, genre="funk", humanization_enabled=False, fills_enabled=False, swing=60.0)
	events = dwummer.session.generate(config)
	offsets = {event.start % 240 for event in events}

	assert offsets <= {0, 48}
	assert 48 in offsets


def test_resolution_follows_unit_length () -> None:

	"""Events scale with the unit length."""

	config = SessionConfig(seed=6, repetition_units=2, unit_duration_ticks=1920, ticks_per_quarter=480, humanization_enabled=False, fills_enabled=False)
	events = dwummer.session.generate(config)

	assert all(event.start % 120 == 0 for event in events)
	assert max(event.start for event in events) < 2 * 1920


def test_plain_mapping_resolver_never_fails () -> None:

	"""A host pitch map missing the clap falls back instead of aborting the run."""

	pitches = {"kick": 36, "snare": 38, "closed_hat": 42}
	config = SessionConfig(seed=1, repetition_units=2, genre="house", humanization_enabled=False)

	result = dwummer.session.run(config, resolve_pitch=pitches.__getitem__)

	assert result.ok
	assert {event.pitch for event in result.events if event.role is Role.CLAP} <= {38}
