"""Session configuration, YAML loading and the persisted "last settings".

The engine never reads ambient state: a :class:`SessionConfig` is built
explicitly (from code, a YAML file, or a settings store) and passed in.
Settings persistence is a collaborator implementing :class:`SettingsStore`,
a namespaced string key/value store like the host provides.
"""

import dataclasses
import logging
import os
import typing

import yaml

import dwummer.blueprints
import dwummer.constants.gm_drums
import dwummer.constants.pulses
import dwummer.errors
import dwummer.form
import dwummer.roles
from dwummer.roles import Role


logger = logging.getLogger(__name__)

SETTINGS_NAMESPACE = "dwummer"


@dataclasses.dataclass
class VoiceConfig:

	"""
	One voice of the kit.

	Attributes:
		name: Unique voice name.
		role: Physical role (name or ``Role``).
		pitches: Explicit pitch or pitch set; resolved from the role when empty.
		channel: MIDI channel (0-15).
		velocity: ``(low, high)`` range; core hits use ``high``, variations
			sit in the middle.
	"""

	name: str
	role: typing.Union[str, Role]
	pitches: typing.Optional[typing.List[int]] = None
	channel: int = dwummer.constants.gm_drums.GM_DRUM_CHANNEL
	velocity: typing.Tuple[int, int] = (70, 110)

	def __post_init__ (self) -> None:

		if not self.name:
			raise dwummer.errors.InvalidParameter("Voice name cannot be empty")

		self.role = Role.parse(self.role)

		if isinstance(self.pitches, int):
			self.pitches = [self.pitches]

		for pitch in self.pitches or []:
			if not 0 <= pitch <= 127:
				raise dwummer.errors.InvalidParameter(f"Voice '{self.name}' pitch {pitch} is outside 0-127")

		if not 0 <= self.channel <= 15:
			raise dwummer.errors.InvalidParameter(f"Voice '{self.name}' channel {self.channel} is outside 0-15")

		low, high = self.velocity
		self.velocity = (int(low), int(high))
		if not 1 <= low <= high <= 127:
			raise dwummer.errors.InvalidParameter(f"Voice '{self.name}' velocity range {self.velocity} is invalid")

	@classmethod
	def from_dict (cls, data: typing.Mapping[str, typing.Any]) -> "VoiceConfig":

		if "role" not in data:
			raise dwummer.errors.InvalidParameter(f"Voice {dict(data)} has no role")

		role = data["role"]
		pitches = data.get("pitches", data.get("pitch"))
		velocity = data.get("velocity", (70, 110))

		if isinstance(velocity, int):
			velocity = (velocity, velocity)

		return cls(
			name = str(data.get("name", role)),
			role = role,
			pitches = [pitches] if isinstance(pitches, int) else (list(pitches) if pitches else None),
			channel = int(data.get("channel", dwummer.constants.gm_drums.GM_DRUM_CHANNEL)),
			velocity = tuple(velocity),
		)

	def to_dict (self) -> typing.Dict[str, typing.Any]:

		data: typing.Dict[str, typing.Any] = {"name": self.name, "role": Role.parse(self.role).value, "channel": self.channel, "velocity": list(self.velocity)}

		if self.pitches:
			data["pitches"] = list(self.pitches)

		return data


def default_voices (genre: str) -> typing.List[VoiceConfig]:

	"""One voice per role of the genre's default kit, named after the role."""

	blueprint = dwummer.blueprints.get_blueprint(genre)
	return [VoiceConfig(name=role.value, role=role) for role in sorted(blueprint.kit, key=lambda role: role.priority)]


@dataclasses.dataclass
class SessionConfig:

	"""
	Everything a generation session needs.

	Parameters:
		seed: Seeds the session's single RNG.
		repetition_units: Number of bars to generate.
		unit_duration_ticks: Length of one bar in ticks.
		ticks_per_quarter: Tick resolution (physical spacing and timing scale with it).
		voices: The kit. ``None`` uses the genre's default kit; an empty list is an error.
		genre: Blueprint name.
		section_mode: ``"auto"`` or a section name used for every unit.
		humanization_enabled: Timing/velocity humanization and surprises.
		fills_enabled: Tension-driven fills.
		surprise_probability: Base chance of a surprise per event.
		swing: Overrides the blueprint's swing percentage.
		pitch_map: Role name → pitch overrides for the default GM table.
	"""

	seed: int = 0
	repetition_units: int = 8
	unit_duration_ticks: int = 4 * dwummer.constants.pulses.TICKS_PER_QUARTER
	ticks_per_quarter: int = dwummer.constants.pulses.TICKS_PER_QUARTER
	voices: typing.Optional[typing.List[VoiceConfig]] = None
	genre: str = "house"
	section_mode: str = dwummer.form.AUTO
	humanization_enabled: bool = True
	fills_enabled: bool = True
	surprise_probability: float = 0.05
	swing: typing.Optional[float] = None
	pitch_map: typing.Dict[str, int] = dataclasses.field(default_factory=dict)

	def __post_init__ (self) -> None:

		self.genre = dwummer.blueprints.get_blueprint(self.genre).name

		if self.repetition_units < 1:
			raise dwummer.errors.InvalidParameter(f"Repetition units ({self.repetition_units}) must be at least 1")

		if self.unit_duration_ticks <= 0:
			raise dwummer.errors.InvalidParameter(f"Unit duration ({self.unit_duration_ticks} ticks) must be positive")

		if self.ticks_per_quarter <= 0:
			raise dwummer.errors.InvalidParameter(f"Ticks per quarter ({self.ticks_per_quarter}) must be positive")

		if self.section_mode != dwummer.form.AUTO:
			self.section_mode = dwummer.form.SectionType.parse(self.section_mode).value

		if not 0.0 <= self.surprise_probability <= 1.0:
			raise dwummer.errors.InvalidParameter(f"Surprise probability ({self.surprise_probability}) must be between 0 and 1")

		if self.swing is not None and not 50.0 <= self.swing <= 99.0:
			raise dwummer.errors.InvalidParameter(f"Swing ({self.swing}) must be between 50 and 99")

		if self.voices is None:
			self.voices = default_voices(self.genre)
		elif not self.voices:
			raise dwummer.errors.InvalidParameter("The voice list cannot be empty")

		names = [voice.name for voice in self.voices]
		if len(names) != len(set(names)):
			raise dwummer.errors.InvalidParameter(f"Voice names must be unique: {names}")

		for name in self.pitch_map:
			Role.parse(name)

	@classmethod
	def from_dict (cls, data: typing.Optional[typing.Mapping[str, typing.Any]]) -> "SessionConfig":

		"""Build a config from plain data (e.g. a parsed YAML document)."""

		data = dict(data or {})
		known = {field.name for field in dataclasses.fields(cls)}
		unknown = set(data) - known

		if unknown:
			logger.warning(f"Ignoring unknown config keys: {sorted(unknown)}")

		kwargs = {key: value for key, value in data.items() if key in known}

		if kwargs.get("voices") is not None:
			kwargs["voices"] = [VoiceConfig.from_dict(voice) for voice in kwargs["voices"]]

		if "pitch_map" in kwargs:
			kwargs["pitch_map"] = {str(name): int(pitch) for name, pitch in (kwargs["pitch_map"] or {}).items()}

		return cls(**kwargs)

	def updated (self, **changes: typing.Any) -> "SessionConfig":

		"""
		Return a validated copy with some fields changed.

		A genre change also swaps in the new genre's default kit when the
		current voices are just the old genre's default kit.
		"""

		genre = changes.get("genre")

		if genre is not None and "voices" not in changes and self.voices == default_voices(self.genre):
			changes["voices"] = None

		return dataclasses.replace(self, **changes)

	def to_dict (self) -> typing.Dict[str, typing.Any]:

		data = dataclasses.asdict(self)
		data["voices"] = [voice.to_dict() for voice in self.voices or []]
		return data


def load_config (config_path: str = "dwummer.yaml") -> SessionConfig:

	"""
	Load a session configuration from a YAML file.

	A missing file is not an error: defaults are used.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return SessionConfig()

	with open(config_path, "r") as f:
		data = yaml.safe_load(f)

	if data is not None and not isinstance(data, dict):
		raise dwummer.errors.InvalidParameter(f"Config file {config_path} must contain a mapping")

	return SessionConfig.from_dict(data)


class SettingsStore (typing.Protocol):

	"""Namespaced string key/value persistence supplied by the host."""

	def get (self, namespace: str, key: str, default: typing.Optional[str] = None) -> typing.Optional[str]:
		...

	def set (self, namespace: str, key: str, value: str) -> None:
		...


class MemorySettingsStore:

	"""In-process settings store."""

	def __init__ (self, initial: typing.Optional[typing.Dict[str, typing.Dict[str, str]]] = None) -> None:

		self.data: typing.Dict[str, typing.Dict[str, str]] = {ns: dict(values) for ns, values in (initial or {}).items()}

	def get (self, namespace: str, key: str, default: typing.Optional[str] = None) -> typing.Optional[str]:

		return self.data.get(namespace, {}).get(key, default)

	def set (self, namespace: str, key: str, value: str) -> None:

		self.data.setdefault(namespace, {})[key] = str(value)


class YamlSettingsStore (MemorySettingsStore):

	"""
	Settings persisted to a YAML file: a mapping of namespace → {key: value}.

	Every ``set`` rewrites the file so values survive between sessions.
	"""

	def __init__ (self, path: str) -> None:

		super().__init__()
		self.path = path

		if os.path.exists(path):
			with open(path, "r") as f:
				loaded = yaml.safe_load(f) or {}
			if not isinstance(loaded, dict):
				raise dwummer.errors.InvalidParameter(f"Settings file {path} must contain a mapping")
			self.data = {str(ns): {str(k): str(v) for k, v in (values or {}).items()} for ns, values in loaded.items()}

	def set (self, namespace: str, key: str, value: str) -> None:

		super().set(namespace, key, value)

		with open(self.path, "w") as f:
			yaml.safe_dump(self.data, f, default_flow_style=False, sort_keys=True)


# Settings persisted between sessions, with the parser for each value.
_PERSISTED: typing.Dict[str, typing.Callable[[str], typing.Any]] = {
	"seed": int,
	"repetition_units": int,
	"unit_duration_ticks": int,
	"ticks_per_quarter": int,
	"genre": str,
	"section_mode": str,
	"humanization_enabled": lambda value: value.strip().lower() in ("1", "true", "yes", "on"),
	"fills_enabled": lambda value: value.strip().lower() in ("1", "true", "yes", "on"),
	"surprise_probability": float,
}


def save_settings (config: SessionConfig, store: SettingsStore, namespace: str = SETTINGS_NAMESPACE) -> None:

	"""Persist the scalar settings of ``config`` as strings."""

	for key in _PERSISTED:
		value = getattr(config, key)
		if isinstance(value, bool):
			value = "1" if value else "0"
		store.set(namespace, key, str(value))


def load_settings (store: SettingsStore, defaults: typing.Optional[SessionConfig] = None, namespace: str = SETTINGS_NAMESPACE) -> SessionConfig:

	"""
	Rebuild a config from persisted settings.

	Missing or unparseable values fall back to ``defaults``. Voices and the
	pitch map are not persisted and are taken from ``defaults``.
	"""

	base = defaults if defaults is not None else SessionConfig()
	values: typing.Dict[str, typing.Any] = {}

	for key, parse in _PERSISTED.items():
		raw = store.get(namespace, key)
		if raw is None:
			continue
		try:
			values[key] = parse(raw)
		except ValueError:
			logger.warning(f"Ignoring unreadable setting {key}={raw!r}")

	return base.updated(**values)
