from __future__ import annotations

import random
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from app.services.slot_constraints import MAX_DAILY_SESSIONS, BusyTeacherIndex, is_legal
from app.services.timetable_grid import Teacher, TimetableGrid


@dataclass(frozen=True)
class PlacementContext:
    teachers: tuple[Teacher, ...]
    teacher_constraints: Mapping[int, frozenset[str]]
    busy_teachers: BusyTeacherIndex


@dataclass(frozen=True)
class Candidate:
    day: int
    period: int
    daily_count: int


def legal_candidates(grid: TimetableGrid, course_id: int, context: PlacementContext) -> list[Candidate]:
    candidates: list[Candidate] = []
    for day in range(grid.days_per_week):
        daily_count = grid.daily_count(day, course_id)
        if daily_count >= MAX_DAILY_SESSIONS:
            continue
        for period in range(grid.periods_per_day):
            if is_legal(
                grid,
                day,
                period,
                course_id,
                context.teachers,
                context.teacher_constraints,
                context.busy_teachers,
                daily_count=daily_count,
            ):
                candidates.append(Candidate(day=day, period=period, daily_count=daily_count))
    return candidates


def select_next(
    grid: TimetableGrid,
    course_id: int,
    context: PlacementContext,
    rng: random.Random,
) -> tuple[int, int] | None:
    """Pick the next cell for ``course_id``, or ``None`` when nothing is legal.

    Days already holding fewer sessions of the course win; the remaining ties
    are broken by ``rng`` over the tied cells in row-major order.
    """
    candidates = legal_candidates(grid, course_id, context)
    if not candidates:
        return None
    lowest = min(item.daily_count for item in candidates)
    tied: Sequence[Candidate] = [item for item in candidates if item.daily_count == lowest]
    best = tied[0] if len(tied) == 1 else rng.choice(tied)
    return best.day, best.period
