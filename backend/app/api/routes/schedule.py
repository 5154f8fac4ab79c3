import logging
import random

from fastapi import APIRouter

from app.core.config import get_settings
from app.schemas.conflict import ConflictReport
from app.schemas.schedule import (
    DetectConflictsRequest,
    GenerateScheduleRequest,
    GenerateScheduleResponse,
    PlacementShortfallOut,
    SlotPayload,
    TeacherPayload,
)
from app.services.conflict_service import ConflictService
from app.services.slot_scheduler import CohortBatch, SlotScheduler
from app.services.timetable_grid import Slot, Teacher

router = APIRouter()
logger = logging.getLogger(__name__)


def slot_from_payload(payload: SlotPayload) -> Slot:
    return Slot(
        day=payload.day,
        period=payload.period,
        course_id=payload.courseId,
        is_locked=payload.isLocked,
        cohort_id=payload.cohortId,
    )


def slot_to_payload(slot: Slot) -> SlotPayload:
    return SlotPayload(
        day=slot.day,
        period=slot.period,
        courseId=slot.course_id,
        isLocked=slot.is_locked,
        cohortId=slot.cohort_id,
    )


def course_teachers_from_payload(value: dict[int, list[TeacherPayload]]) -> dict[int, tuple[Teacher, ...]]:
    return {
        course_id: tuple(Teacher(id=item.id, fullname=item.fullname) for item in teachers)
        for course_id, teachers in value.items()
    }


@router.post("/schedule/generate", response_model=GenerateScheduleResponse)
def generate_schedule(payload: GenerateScheduleRequest) -> GenerateScheduleResponse:
    settings = get_settings()
    seed = payload.randomSeed if payload.randomSeed is not None else settings.random_seed
    periods_per_day = payload.periodsPerDay if payload.periodsPerDay is not None else settings.default_periods_per_day

    scheduler = SlotScheduler(random.Random(seed))
    result = scheduler.generate_for_cohorts(
        CohortBatch(
            cohort_workloads=payload.cohortWorkloads,
            cohort_order=payload.cohortOrder,
            periods_per_day=periods_per_day,
            locked_slots=[slot_from_payload(item) for item in payload.lockedSlots],
            teacher_constraints=payload.teacherConstraints,
            course_teachers=course_teachers_from_payload(payload.courseTeachers),
        )
    )
    if result.shortfalls:
        logger.info(
            "Generated schedule is under-filled | courses=%s missing_sessions=%s",
            len(result.shortfalls),
            sum(item.missing for item in result.shortfalls),
        )

    return GenerateScheduleResponse(
        schedule=[slot_to_payload(slot) for slot in result.slots],
        shortfalls=[
            PlacementShortfallOut(
                cohortId=item.cohort_id,
                courseId=item.course_id,
                requested=item.requested,
                placed=item.placed,
            )
            for item in result.shortfalls
        ],
    )


@router.post("/schedule/conflicts", response_model=ConflictReport)
def detect_conflicts(payload: DetectConflictsRequest) -> ConflictReport:
    service = ConflictService(
        [slot_from_payload(item) for item in payload.schedule],
        course_teachers_from_payload(payload.courseTeachers),
        payload.teacherConstraints,
    )
    return service.detect_conflicts()
