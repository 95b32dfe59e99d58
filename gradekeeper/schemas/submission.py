from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, Field, field_validator

from gradekeeper.engine.enums import SubmissionStatus
from gradekeeper.engine.timekeeping import ensure_utc


class FileRef(BaseModel):
    filename: str = Field(min_length=1)
    original_name: Optional[str] = None
    size: Optional[int] = Field(default=None, ge=0)


class SubmissionCreate(BaseModel):
    text_content: Optional[str] = None
    files: list[FileRef] = Field(default_factory=list)


class SubmissionRead(BaseModel):
    id: int
    assignment_id: int
    student_id: int
    status: SubmissionStatus
    submitted_at: Optional[datetime] = None
    text_content: Optional[str] = None
    files: list[FileRef] = Field(default_factory=list)
    rubric_scores: Optional[dict[int, float]] = None
    manual_total: Optional[float] = None
    score: Optional[float] = None
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = None
    withdrawn_at: Optional[datetime] = None

    # computed, not stored
    percentage: Optional[int] = None

    class Config:
        from_attributes = True

    @field_validator("submitted_at", "graded_at", "withdrawn_at")
    @classmethod
    def _as_utc(cls, v):
        return None if v is None else ensure_utc(v)


# NaN and infinity are valid JSON to the parser but never a valid score
Score = Annotated[float, Field(allow_inf_nan=False)]


class SubmissionGradeUpdate(BaseModel):
    rubric_scores: dict[int, Score] = Field(default_factory=dict)
    manual_total: Optional[Score] = None
    feedback: Optional[str] = None
