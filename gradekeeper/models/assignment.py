from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from gradekeeper.db.base_class import Base, str_enum
from gradekeeper.engine.enums import LifecycleState, SubmissionType


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    due_at = Column(DateTime(timezone=True), nullable=True)
    max_score = Column(Float, nullable=False)

    submission_type = Column(str_enum(SubmissionType), nullable=False, default=SubmissionType.BOTH)
    allowed_file_types = Column(JSON, nullable=True)
    # ordered list of {"label", "max_score", "description"}
    rubric = Column(JSON, nullable=False, default=list)

    status = Column(str_enum(LifecycleState), nullable=False, default=LifecycleState.DRAFT, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    course = relationship("Course", back_populates="assignments")

    submissions = relationship("Submission", back_populates="assignment", cascade="all, delete-orphan")
