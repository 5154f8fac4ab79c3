from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator, model_validator

SLOT_KEY_PATTERN = re.compile(r"^\d+-\d+$")
MAX_PERIODS_PER_DAY = 24


class SlotPayload(BaseModel):
    day: int
    period: int
    courseId: int | None = None
    isLocked: bool = False
    cohortId: int | None = None


class TeacherPayload(BaseModel):
    id: int
    fullname: str = Field(default="", max_length=200)


def _validate_slot_keys(value: dict[int, list[str]]) -> dict[int, list[str]]:
    for teacher_id, keys in value.items():
        invalid = [key for key in keys if not SLOT_KEY_PATTERN.match(key)]
        if invalid:
            raise ValueError(
                f"Invalid blocked slot key(s) for teacher {teacher_id}: {', '.join(invalid)}; expected 'day-period'"
            )
    return value


class GenerateScheduleRequest(BaseModel):
    cohortWorkloads: dict[int, dict[int, int]]
    cohortOrder: list[int] | None = None
    lockedSlots: list[SlotPayload] = Field(default_factory=list)
    # Lower bound is checked by the engine.
    periodsPerDay: int | None = Field(default=None, le=MAX_PERIODS_PER_DAY)
    teacherConstraints: dict[int, list[str]] = Field(default_factory=dict)
    courseTeachers: dict[int, list[TeacherPayload]] = Field(default_factory=dict)
    randomSeed: int | None = Field(default=None, ge=0, le=2_000_000_000)

    @field_validator("teacherConstraints")
    @classmethod
    def validate_teacher_constraints(cls, value: dict[int, list[str]]) -> dict[int, list[str]]:
        return _validate_slot_keys(value)

    @model_validator(mode="after")
    def validate_cohort_order(self) -> "GenerateScheduleRequest":
        if self.cohortOrder is None:
            return self
        if len(set(self.cohortOrder)) != len(self.cohortOrder):
            raise ValueError("cohortOrder must not repeat a cohort")
        return self


class PlacementShortfallOut(BaseModel):
    cohortId: int | None = None
    courseId: int
    requested: int
    placed: int


class GenerateScheduleResponse(BaseModel):
    success: bool = True
    schedule: list[SlotPayload]
    shortfalls: list[PlacementShortfallOut] = Field(default_factory=list)


class DetectConflictsRequest(BaseModel):
    schedule: list[SlotPayload]
    teacherConstraints: dict[int, list[str]] = Field(default_factory=dict)
    courseTeachers: dict[int, list[TeacherPayload]] = Field(default_factory=dict)

    @field_validator("teacherConstraints")
    @classmethod
    def validate_teacher_constraints(cls, value: dict[int, list[str]]) -> dict[int, list[str]]:
        return _validate_slot_keys(value)
