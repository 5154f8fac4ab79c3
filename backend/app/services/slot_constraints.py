from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence

from app.services.timetable_grid import Slot, Teacher, TimetableGrid, slot_key

MAX_DAILY_SESSIONS = 2

BusyTeacherIndex = Mapping[tuple[int, int], set[int]]


def busy_teacher_index(
    existing_slots: Iterable[Slot],
    course_teachers: Mapping[int, Sequence[Teacher]],
) -> dict[tuple[int, int], set[int]]:
    """Map each (day, period) to the teachers already committed there by other cohorts."""
    busy: dict[tuple[int, int], set[int]] = defaultdict(set)
    for slot in existing_slots:
        if slot.course_id is None:
            continue
        for teacher in course_teachers.get(slot.course_id, ()):
            busy[(slot.day, slot.period)].add(teacher.id)
    return dict(busy)


def is_legal(
    grid: TimetableGrid,
    day: int,
    period: int,
    course_id: int,
    teachers: Sequence[Teacher],
    teacher_constraints: Mapping[int, set[str] | frozenset[str]],
    busy_teachers: BusyTeacherIndex,
    daily_count: int | None = None,
) -> bool:
    if not grid.is_free(day, period):
        return False
    if daily_count is None:
        daily_count = grid.daily_count(day, course_id)
    if daily_count >= MAX_DAILY_SESSIONS:
        return False
    if not teachers:
        return True

    key = slot_key(day, period)
    busy_here = busy_teachers.get((day, period), ())
    for teacher in teachers:
        blocked = teacher_constraints.get(teacher.id)
        if blocked and key in blocked:
            return False
        if teacher.id in busy_here:
            return False
    return True
