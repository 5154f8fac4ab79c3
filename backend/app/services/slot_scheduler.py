from __future__ import annotations

import logging
import random
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from time import perf_counter

from app.core.exceptions import ScheduleValidationError
from app.services.candidate_selector import PlacementContext, select_next
from app.services.slot_constraints import busy_teacher_index
from app.services.timetable_grid import DAYS_PER_WEEK, Slot, Teacher, TimetableGrid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacementRequest:
    locked_slots: Sequence[Slot]
    workload: Mapping[int, int]
    periods_per_day: int
    teacher_constraints: Mapping[int, Iterable[str]] = field(default_factory=dict)
    course_teachers: Mapping[int, Sequence[Teacher]] = field(default_factory=dict)
    existing_slots: Sequence[Slot] = ()


@dataclass(frozen=True)
class CohortBatch:
    cohort_workloads: Mapping[int, Mapping[int, int]]
    periods_per_day: int
    locked_slots: Sequence[Slot] = ()
    teacher_constraints: Mapping[int, Iterable[str]] = field(default_factory=dict)
    course_teachers: Mapping[int, Sequence[Teacher]] = field(default_factory=dict)
    cohort_order: Sequence[int] | None = None


@dataclass(frozen=True)
class PlacementShortfall:
    cohort_id: int | None
    course_id: int
    requested: int
    placed: int

    @property
    def missing(self) -> int:
        return self.requested - self.placed


@dataclass
class CohortBatchResult:
    slots: list[Slot]
    shortfalls: list[PlacementShortfall]
    runtime_ms: int = 0


def validate_generation_input(workload: Mapping[int, int], periods_per_day: int) -> None:
    if periods_per_day is None or periods_per_day <= 0:
        raise ScheduleValidationError(
            message="periodsPerDay must be a positive integer",
            details={"periods_per_day": periods_per_day},
        )
    negative = {course_id: hours for course_id, hours in workload.items() if hours < 0}
    if negative:
        raise ScheduleValidationError(
            message="Required hours cannot be negative",
            details={"courses": {str(course_id): hours for course_id, hours in negative.items()}},
        )


def subject_order(workload: Mapping[int, int]) -> list[tuple[int, int]]:
    # Equal hours fall back to ascending course id so the order never depends on mapping order.
    return sorted(workload.items(), key=lambda item: (-item[1], item[0]))


def placement_shortfalls(
    workload: Mapping[int, int],
    slots: Iterable[Slot],
    cohort_id: int | None = None,
) -> list[PlacementShortfall]:
    """Compare requested hours against the sessions the fill loop actually placed.

    Locked slots are not counted: the fill loop schedules the full workload on
    top of whatever the caller pinned.
    """
    placed = Counter(slot.course_id for slot in slots if slot.course_id is not None and not slot.is_locked)
    shortfalls: list[PlacementShortfall] = []
    for course_id, requested in subject_order(workload):
        count = placed.get(course_id, 0)
        if count < requested:
            shortfalls.append(
                PlacementShortfall(cohort_id=cohort_id, course_id=course_id, requested=requested, placed=count)
            )
    return shortfalls


class SlotScheduler:
    """Greedy weekly slot filler.

    Instances hold no grid between calls; the only state is the random source
    used to break placement ties, so a seeded ``random.Random`` reproduces a
    run exactly.
    """

    def __init__(self, rng: random.Random | None = None, *, days_per_week: int = DAYS_PER_WEEK) -> None:
        self.random = rng if rng is not None else random.Random()
        self.days_per_week = days_per_week

    def generate(self, request: PlacementRequest) -> list[Slot]:
        validate_generation_input(request.workload, request.periods_per_day)

        grid = TimetableGrid(self.days_per_week, request.periods_per_day)
        grid.seed_locked(request.locked_slots)

        teacher_constraints = {
            teacher_id: frozenset(keys) for teacher_id, keys in request.teacher_constraints.items()
        }
        busy = busy_teacher_index(request.existing_slots, request.course_teachers)

        for course_id, hours in subject_order(request.workload):
            context = PlacementContext(
                teachers=tuple(request.course_teachers.get(course_id, ())),
                teacher_constraints=teacher_constraints,
                busy_teachers=busy,
            )
            remaining = hours
            while remaining > 0:
                choice = select_next(grid, course_id, context, self.random)
                if choice is None:
                    logger.warning(
                        "No slots available for course | course_id=%s requested=%s placed=%s",
                        course_id,
                        hours,
                        hours - remaining,
                    )
                    break
                grid.place(choice[0], choice[1], course_id)
                remaining -= 1

        return grid.flatten()

    def generate_for_cohorts(self, batch: CohortBatch) -> CohortBatchResult:
        """Schedule cohorts one after another in the batch order.

        Every cohort sees the slots of all cohorts generated before it as
        ``existing_slots``, so earlier cohorts are placed freely and later
        ones inherit their teacher commitments. The order therefore changes
        the outcome and must not be parallelized.
        """
        order = self._resolve_cohort_order(batch)
        for cohort_id in order:
            validate_generation_input(batch.cohort_workloads[cohort_id], batch.periods_per_day)

        started = perf_counter()
        logger.info(
            "Slot generation started | cohorts=%s periods_per_day=%s locked=%s",
            len(order),
            batch.periods_per_day,
            len(batch.locked_slots),
        )

        generated: list[Slot] = []
        shortfalls: list[PlacementShortfall] = []
        for cohort_id in order:
            workload = batch.cohort_workloads[cohort_id]
            cohort_locked = [slot for slot in batch.locked_slots if slot.cohort_id == cohort_id]
            schedule = self.generate(
                PlacementRequest(
                    locked_slots=cohort_locked,
                    workload=workload,
                    periods_per_day=batch.periods_per_day,
                    teacher_constraints=batch.teacher_constraints,
                    course_teachers=batch.course_teachers,
                    existing_slots=tuple(generated),
                )
            )
            cohort_schedule = [replace(slot, cohort_id=cohort_id) for slot in schedule]
            shortfalls.extend(placement_shortfalls(workload, cohort_schedule, cohort_id))
            generated.extend(cohort_schedule)

        runtime_ms = int((perf_counter() - started) * 1000)
        logger.info(
            "Slot generation finished | cohorts=%s slots=%s shortfalls=%s runtime_ms=%s",
            len(order),
            len(generated),
            len(shortfalls),
            runtime_ms,
        )
        return CohortBatchResult(slots=generated, shortfalls=shortfalls, runtime_ms=runtime_ms)

    @staticmethod
    def _resolve_cohort_order(batch: CohortBatch) -> list[int]:
        known = list(batch.cohort_workloads.keys())
        if batch.cohort_order is None:
            return known
        unknown = [cohort_id for cohort_id in batch.cohort_order if cohort_id not in batch.cohort_workloads]
        if unknown:
            raise ScheduleValidationError(
                message="cohortOrder references cohorts without a workload",
                details={"cohort_ids": unknown},
            )
        order = list(dict.fromkeys(batch.cohort_order))
        order.extend(cohort_id for cohort_id in known if cohort_id not in order)
        return order
