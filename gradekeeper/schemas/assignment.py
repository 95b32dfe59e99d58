from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from gradekeeper.engine.enums import LifecycleState, SubmissionType, Urgency
from gradekeeper.engine.timekeeping import MAX_OFFSET_MINUTES, ensure_utc


class RubricCriterion(BaseModel):
    label: str = Field(min_length=1, max_length=255)
    max_score: float = Field(ge=0, allow_inf_nan=False)
    description: Optional[str] = None


class AssignmentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    # Either an absolute ISO-8601 instant...
    due_at: Optional[str] = None
    # ...or the wall clock typed by the instructor plus their UTC offset
    due_local: Optional[str] = None
    tz_offset_minutes: Optional[int] = Field(default=None, ge=-MAX_OFFSET_MINUTES, le=MAX_OFFSET_MINUTES)
    max_score: float = Field(gt=0, allow_inf_nan=False)
    submission_type: SubmissionType = SubmissionType.BOTH
    allowed_file_types: Optional[list[str]] = None
    rubric: list[RubricCriterion] = Field(default_factory=list)


class AssignmentUpdate(BaseModel):
    """Partial edit. Only the fields sent are changed; status has its own endpoint."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    due_at: Optional[str] = None
    due_local: Optional[str] = None
    tz_offset_minutes: Optional[int] = Field(default=None, ge=-MAX_OFFSET_MINUTES, le=MAX_OFFSET_MINUTES)
    max_score: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    submission_type: Optional[SubmissionType] = None
    allowed_file_types: Optional[list[str]] = None

    class Config:
        extra = "forbid"


class AssignmentRead(BaseModel):
    id: int
    course_id: int
    title: str
    description: Optional[str]
    due_at: Optional[datetime]
    max_score: float
    submission_type: SubmissionType
    allowed_file_types: Optional[list[str]] = None
    rubric: list[RubricCriterion]
    status: LifecycleState
    created_at: datetime

    class Config:
        from_attributes = True

    @field_validator("due_at", "created_at")
    @classmethod
    def _as_utc(cls, v):
        return None if v is None else ensure_utc(v)


class AssignmentDetail(AssignmentRead):
    overdue: bool = False
    remaining_seconds: Optional[int] = None
    urgency: Optional[Urgency] = None
    due_local: Optional[str] = None
    allowed_transitions: list[LifecycleState] = Field(default_factory=list)


class StatusChange(BaseModel):
    status: LifecycleState


class RubricUpdate(BaseModel):
    rubric: list[RubricCriterion]


class EligibilityRead(BaseModel):
    can_submit: bool
    can_update: bool
    can_withdraw: bool
    can_grade: bool
