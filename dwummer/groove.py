import dataclasses
import typing

import dwummer.constants.pulses
import dwummer.errors
import dwummer.event


@dataclasses.dataclass
class Groove:

	"""
	A timing template applied to quantized grid positions.

	A groove is a repeating pattern of per-slot timing offsets aligned to a
	rhythmic grid. Blueprints with a swing percentage get one from
	:meth:`Groove.swing`; it is applied to the grid-placed events of a unit
	before humanization.

	Parameters:
		offsets: Timing offset per grid slot, in beats. Repeats cyclically.
			Positive values delay the note; negative values push it earlier.
		grid: Grid size in beats (0.25 = 16th notes, 0.5 = 8th notes).

	Example::

		# 57% swing on 16th notes
		groove = Groove.swing(percent=57)

		# Custom push-pull on 16ths
		groove = Groove(grid=0.25, offsets=[0.0, +0.02, 0.0, -0.01])
	"""

	offsets: typing.List[float]
	grid: float = 0.25

	def __post_init__ (self) -> None:
		if not self.offsets:
			raise dwummer.errors.InvalidParameter("offsets must not be empty")
		if self.grid <= 0:
			raise dwummer.errors.InvalidParameter("grid must be positive")

	@staticmethod
	def swing (percent: float = 57.0, grid: float = 0.25) -> "Groove":

		"""
		Create a swing groove from a percentage.

		50% is straight (no swing). 67% is approximately triplet swing.

		Parameters:
			percent: Swing amount (50-75 is the useful range).
			grid: Grid size in beats (0.25 = 16ths, 0.5 = 8ths).
		"""

		if percent < 50.0 or percent > 99.0:
			raise dwummer.errors.InvalidParameter("swing percent must be between 50 and 99")
		pair_duration = grid * 2
		offset = (percent / 100.0 - 0.5) * pair_duration
		return Groove(offsets=[0.0, offset], grid=grid)


def apply_groove (
	events: typing.Iterable[dwummer.event.Event],
	groove: Groove,
	ticks_per_quarter: float = dwummer.constants.pulses.TICKS_PER_QUARTER,
) -> typing.List[dwummer.event.Event]:

	"""
	Apply a groove template to events positioned in absolute ticks.

	Events close to a grid position are shifted by the groove's offset for
	that slot. Events between grid positions are left untouched.

	Parameters:
		events: Events to adjust (not modified; new events are returned).
		groove: The groove template to apply.
		ticks_per_quarter: Ticks per beat of the events.
	"""

	grid_ticks = groove.grid * ticks_per_quarter
	half_grid = grid_ticks / 2.0
	num_offsets = len(groove.offsets)

	result: typing.List[dwummer.event.Event] = []

	for event in events:

		grid_index = round(event.start / grid_ticks)
		ideal = grid_index * grid_ticks
		start = event.start

		# Only affect notes close to a grid position
		if abs(event.start - ideal) <= half_grid * 0.5:
			offset_ticks = groove.offsets[grid_index % num_offsets] * ticks_per_quarter
			start = max(0, int(round(ideal + offset_ticks)))

		result.append(dataclasses.replace(event, start=start))

	return result
