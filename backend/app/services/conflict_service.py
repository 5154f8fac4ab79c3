from collections import Counter, defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from app.schemas.conflict import ConflictDetail, ConflictReport
from app.services.slot_constraints import MAX_DAILY_SESSIONS
from app.services.timetable_grid import Slot, Teacher, slot_key


class ConflictService:
    def __init__(
        self,
        slots: Sequence[Slot],
        course_teachers: Mapping[int, Sequence[Teacher]],
        teacher_constraints: Mapping[int, Iterable[str]],
    ):
        self.slots = [slot for slot in slots if slot.course_id is not None]
        self.course_teachers = course_teachers
        self.teacher_constraints = {
            teacher_id: set(keys) for teacher_id, keys in teacher_constraints.items()
        }

    def detect_conflicts(self) -> ConflictReport:
        conflicts: List[ConflictDetail] = []
        conflicts.extend(self._cell_conflicts())
        conflicts.extend(self._daily_cap_conflicts())
        conflicts.extend(self._blocked_teacher_conflicts())
        conflicts.extend(self._cross_cohort_teacher_conflicts())
        return ConflictReport(conflicts=conflicts)

    def _teacher_ids(self, course_id: int) -> List[int]:
        return [teacher.id for teacher in self.course_teachers.get(course_id, ())]

    def _cell_conflicts(self) -> List[ConflictDetail]:
        by_cell: Dict[Tuple[Optional[int], int, int], List[Slot]] = defaultdict(list)
        for slot in self.slots:
            by_cell[(slot.cohort_id, slot.day, slot.period)].append(slot)

        conflicts = []
        for (cohort_id, day, period), cell_slots in by_cell.items():
            if len(cell_slots) < 2:
                continue
            course_ids = [slot.course_id for slot in cell_slots]
            conflicts.append(ConflictDetail(
                id=f"cell-{cohort_id}-{day}-{period}",
                conflict_type="cell_conflict",
                description=f"Cohort {cohort_id} has {len(cell_slots)} courses at {slot_key(day, period)}",
                day=day,
                period=period,
                cohort_ids=[cohort_id],
                course_ids=course_ids,
            ))
        return conflicts

    def _daily_cap_conflicts(self) -> List[ConflictDetail]:
        per_day = Counter((slot.cohort_id, slot.course_id, slot.day) for slot in self.slots)
        conflicts = []
        for (cohort_id, course_id, day), count in per_day.items():
            if count <= MAX_DAILY_SESSIONS:
                continue
            conflicts.append(ConflictDetail(
                id=f"cap-{cohort_id}-{course_id}-{day}",
                conflict_type="daily_cap",
                description=f"Course {course_id} has {count} sessions on day {day} (max {MAX_DAILY_SESSIONS})",
                day=day,
                cohort_ids=[cohort_id],
                course_ids=[course_id],
            ))
        return conflicts

    def _blocked_teacher_conflicts(self) -> List[ConflictDetail]:
        conflicts = []
        for slot in self.slots:
            # Locked slots are pinned by the caller and exempt from the blocklist.
            if slot.is_locked:
                continue
            for teacher_id in self._teacher_ids(slot.course_id):
                if slot.key not in self.teacher_constraints.get(teacher_id, ()):
                    continue
                conflicts.append(ConflictDetail(
                    id=f"blocked-{slot.cohort_id}-{teacher_id}-{slot.key}",
                    conflict_type="teacher_blocked",
                    description=f"Teacher {teacher_id} is blocked at {slot.key} but teaches course {slot.course_id}",
                    day=slot.day,
                    period=slot.period,
                    cohort_ids=[slot.cohort_id],
                    course_ids=[slot.course_id],
                    teacher_id=teacher_id,
                ))
        return conflicts

    def _cross_cohort_teacher_conflicts(self) -> List[ConflictDetail]:
        by_teacher_cell: Dict[Tuple[int, int, int], List[Slot]] = defaultdict(list)
        for slot in self.slots:
            for teacher_id in self._teacher_ids(slot.course_id):
                by_teacher_cell[(teacher_id, slot.day, slot.period)].append(slot)

        conflicts = []
        for (teacher_id, day, period), cell_slots in by_teacher_cell.items():
            cohort_ids = list(dict.fromkeys(slot.cohort_id for slot in cell_slots))
            if len(cohort_ids) < 2:
                continue
            conflicts.append(ConflictDetail(
                id=f"teacher-{teacher_id}-{day}-{period}",
                conflict_type="teacher_conflict",
                description=(
                    f"Teacher {teacher_id} is needed by cohorts "
                    f"{', '.join(str(item) for item in cohort_ids)} at {slot_key(day, period)}"
                ),
                day=day,
                period=period,
                cohort_ids=cohort_ids,
                course_ids=[slot.course_id for slot in cell_slots],
                teacher_id=teacher_id,
            ))
        return conflicts
