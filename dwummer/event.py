import dataclasses
import typing

from dwummer.roles import Role


@dataclasses.dataclass(frozen=True)
class Event:

	"""
	A single note ready for insertion into the host timeline.

	``start`` is absolute, in ticks from the start of the sequence.
	``ornament`` marks a ghost or flam grace note that belongs to the hit
	after it; spacing repair drops an ornament rather than delaying it.
	"""

	role: Role
	pitch: int
	start: int
	duration: int
	velocity: int
	channel: int = 9
	voice: str = ""
	ornament: bool = False

	def sort_key (self) -> typing.Tuple[int, int, int]:

		"""Start time first, then role priority, then pitch."""

		return (self.start, self.role.priority, self.pitch)

	def as_dict (self) -> typing.Dict[str, typing.Any]:

		return {
			"role": self.role.value,
			"voice": self.voice,
			"pitch": self.pitch,
			"start": self.start,
			"duration": self.duration,
			"velocity": self.velocity,
			"channel": self.channel,
		}
