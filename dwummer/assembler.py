"""Turn candidate events into a playable, time-ordered event list.

The assembler enforces the physical constraint table: two hits on the same
role can never be closer than that role's minimum interval. Offending
events are delayed to the earliest legal time, or dropped when the delay
would carry them past the end of their unit. Ghost and flam grace notes
are dropped instead of delayed, so they never move the hit they lead into.
If a unit is too short to hold even one interval for a role it uses, the
session cannot be repaired and :class:`ConstraintViolationAfterGeneration` is raised.
"""

import dataclasses
import logging
import typing

import dwummer.constants.pulses
import dwummer.errors
import dwummer.event
import dwummer.roles
from dwummer.roles import Role


logger = logging.getLogger(__name__)


class Assembler:

	"""
	Accumulates assembled units and remembers the last kept hit per role,
	so spacing holds across unit boundaries.
	"""

	def __init__ (self, ticks_per_quarter: int = dwummer.constants.pulses.TICKS_PER_QUARTER) -> None:

		self.ticks_per_quarter = ticks_per_quarter
		self.events: typing.List[dwummer.event.Event] = []
		self._last_start: typing.Dict[Role, int] = {}
		self.dropped = 0
		self.delayed = 0

	def min_interval (self, role: Role) -> int:

		return dwummer.roles.min_interval(role, self.ticks_per_quarter)

	def add_unit (self, candidates: typing.Iterable[dwummer.event.Event], unit_start: int, unit_end: int) -> typing.List[dwummer.event.Event]:

		"""
		Repair and append one unit's events; returns the kept events in order.

		Candidates are clamped into ``[unit_start, unit_end)``, sorted by start
		and role priority, and then spaced per role. An ordinary hit that comes
		too soon is delayed, or dropped when the delay would leave the unit.

		Ornaments are placed after every ordinary hit, and only where they keep
		a full interval to the hits on both sides; otherwise they are dropped.
		They never push an ordinary hit later.
		"""

		if unit_end <= unit_start:
			raise dwummer.errors.InvalidParameter(f"Unit [{unit_start}, {unit_end}) has no duration")

		clamped = [
			dataclasses.replace(event, start=min(max(event.start, unit_start), unit_end - 1))
			for event in candidates
		]
		clamped.sort(key=lambda event: event.sort_key())

		unit_length = unit_end - unit_start

		for role in sorted({event.role for event in clamped}, key=lambda role: role.priority):
			interval = self.min_interval(role)
			if unit_length < interval:
				raise dwummer.errors.ConstraintViolationAfterGeneration(
					f"Unit length of {unit_length} ticks is shorter than the {interval}-tick minimum interval for '{role.value}'"
				)

		taken: typing.Dict[Role, typing.List[int]] = {
			role: [start] for role, start in self._last_start.items()
		}
		kept: typing.List[dwummer.event.Event] = []

		for event in clamped:

			if event.ornament:
				continue

			interval = self.min_interval(event.role)
			last = self._last_start.get(event.role)

			if last is not None and event.start - last < interval:
				earliest = last + interval
				if earliest >= unit_end:
					self.dropped += 1
					logger.debug(f"Dropped {event.role.value} at {event.start} (too close to {last})")
					continue
				self.delayed += 1
				logger.debug(f"Delayed {event.role.value} from {event.start} to {earliest}")
				event = dataclasses.replace(event, start=earliest)

			self._last_start[event.role] = event.start
			taken.setdefault(event.role, []).append(event.start)
			kept.append(event)

		for event in clamped:

			if not event.ornament:
				continue

			interval = self.min_interval(event.role)
			starts = taken.setdefault(event.role, [])

			if any(abs(event.start - start) < interval for start in starts):
				self.dropped += 1
				logger.debug(f"Dropped {event.role.value} ornament at {event.start} (no room)")
				continue

			starts.append(event.start)
			self._last_start[event.role] = max(self._last_start.get(event.role, event.start), event.start)
			kept.append(event)

		# Delays and ornaments can reorder events.
		kept.sort(key=lambda event: event.sort_key())
		self.events.extend(kept)

		return kept

	def finish (self) -> typing.List[dwummer.event.Event]:

		"""Verify the whole sequence and return it."""

		verify_spacing(self.events, self.ticks_per_quarter)
		return list(self.events)


def assemble (
	candidates: typing.Iterable[dwummer.event.Event],
	unit_start: int,
	unit_end: int,
	ticks_per_quarter: int = dwummer.constants.pulses.TICKS_PER_QUARTER,
) -> typing.List[dwummer.event.Event]:

	"""Assemble a single unit on its own."""

	assembler = Assembler(ticks_per_quarter)
	assembler.add_unit(candidates, unit_start, unit_end)
	return assembler.finish()


def verify_spacing (events: typing.Sequence[dwummer.event.Event], ticks_per_quarter: int = dwummer.constants.pulses.TICKS_PER_QUARTER) -> None:

	"""
	Check ordering and per-role spacing of a finished sequence.

	Raises ConstraintViolationAfterGeneration on the first problem found.
	"""

	last: typing.Dict[Role, int] = {}
	previous: typing.Optional[dwummer.event.Event] = None

	for event in events:

		if previous is not None and event.sort_key() < previous.sort_key():
			raise dwummer.errors.ConstraintViolationAfterGeneration(
				f"Events out of order at tick {event.start}"
			)

		interval = dwummer.roles.min_interval(event.role, ticks_per_quarter)

		if event.role in last and event.start - last[event.role] < interval:
			raise dwummer.errors.ConstraintViolationAfterGeneration(
				f"'{event.role.value}' hits at {last[event.role]} and {event.start} are closer than {interval} ticks"
			)

		last[event.role] = event.start
		previous = event
