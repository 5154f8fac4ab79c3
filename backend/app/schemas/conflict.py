from pydantic import BaseModel, Field
from typing import Literal, Optional, List

class ConflictDetail(BaseModel):
    id: str
    conflict_type: Literal[
        "cell_conflict",
        "daily_cap",
        "teacher_blocked",
        "teacher_conflict",
    ]
    description: str
    severity: Literal["hard", "soft"] = "hard"
    day: int
    period: Optional[int] = None
    cohort_ids: List[Optional[int]] = Field(default_factory=list)
    course_ids: List[int] = Field(default_factory=list)
    teacher_id: Optional[int] = None

class ConflictReport(BaseModel):
    conflicts: List[ConflictDetail]

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)
