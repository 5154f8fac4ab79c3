from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable

from app.core.exceptions import SchedulerError

DAYS_PER_WEEK = 5

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Teacher:
    id: int
    fullname: str = ""


@dataclass(frozen=True)
class Slot:
    day: int
    period: int
    course_id: int | None = None
    is_locked: bool = False
    cohort_id: int | None = None

    @property
    def key(self) -> str:
        return slot_key(self.day, self.period)


def slot_key(day: int, period: int) -> str:
    return f"{day}-{period}"


class TimetableGrid:
    """Weekly day x period table for a single cohort.

    Cells live in a flat arena indexed by ``day * periods_per_day + period``.
    Each cell holds an optional course id; locked cells additionally keep the
    slot the caller supplied so it can be emitted unchanged.
    """

    def __init__(self, days_per_week: int, periods_per_day: int) -> None:
        if days_per_week < 1 or periods_per_day < 1:
            raise SchedulerError(
                message="Grid dimensions must be positive",
                details={"days_per_week": days_per_week, "periods_per_day": periods_per_day},
            )
        self.days_per_week = days_per_week
        self.periods_per_day = periods_per_day
        self._cells: list[int | None] = [None] * (days_per_week * periods_per_day)
        self._locked: dict[int, Slot] = {}

    def __len__(self) -> int:
        return len(self._cells)

    def in_range(self, day: int, period: int) -> bool:
        return 0 <= day < self.days_per_week and 0 <= period < self.periods_per_day

    def _index(self, day: int, period: int) -> int:
        if not self.in_range(day, period):
            raise IndexError(f"Cell ({day}, {period}) is outside a {self.days_per_week}x{self.periods_per_day} grid")
        return day * self.periods_per_day + period

    def course_at(self, day: int, period: int) -> int | None:
        return self._cells[self._index(day, period)]

    def is_locked(self, day: int, period: int) -> bool:
        return self._index(day, period) in self._locked

    def is_free(self, day: int, period: int) -> bool:
        index = self._index(day, period)
        return index not in self._locked and self._cells[index] is None

    def daily_count(self, day: int, course_id: int) -> int:
        start = day * self.periods_per_day
        return sum(1 for value in self._cells[start : start + self.periods_per_day] if value == course_id)

    def cells(self) -> Iterable[tuple[int, int]]:
        for day in range(self.days_per_week):
            for period in range(self.periods_per_day):
                yield day, period

    def seed_locked(self, locked_slots: Iterable[Slot]) -> int:
        seeded = 0
        for slot in locked_slots:
            if not self.in_range(slot.day, slot.period):
                logger.warning(
                    "Dropping locked slot outside the grid | day=%s period=%s course_id=%s periods_per_day=%s",
                    slot.day,
                    slot.period,
                    slot.course_id,
                    self.periods_per_day,
                )
                continue
            index = self._index(slot.day, slot.period)
            self._locked[index] = replace(slot, is_locked=True)
            self._cells[index] = slot.course_id
            seeded += 1
        return seeded

    def place(self, day: int, period: int, course_id: int) -> None:
        if not self.is_free(day, period):
            raise SchedulerError(
                message="Cannot place a session in an occupied cell",
                details={"day": day, "period": period, "course_id": course_id},
            )
        self._cells[self._index(day, period)] = course_id

    def flatten(self) -> list[Slot]:
        result: list[Slot] = []
        for day, period in self.cells():
            index = day * self.periods_per_day + period
            course_id = self._cells[index]
            if course_id is None:
                continue
            locked = self._locked.get(index)
            result.append(locked if locked is not None else Slot(day=day, period=period, course_id=course_id))
        return result
