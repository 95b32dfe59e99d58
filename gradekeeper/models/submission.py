from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from gradekeeper.db.base_class import Base, str_enum
from gradekeeper.engine.enums import SubmissionStatus


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)

    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(str_enum(SubmissionStatus), nullable=False, default=SubmissionStatus.DRAFT, index=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True)

    text_content = Column(Text, nullable=True)
    # ordered list of {"filename", "original_name", "size"}
    files = Column(JSON, nullable=False, default=list)

    # Grading fields (nullable until graded)
    rubric_scores = Column(JSON, nullable=True)
    manual_total = Column(Float, nullable=True)
    score = Column(Float, nullable=True)
    feedback = Column(Text, nullable=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)

    # logical deletion; the row is reused if the student submits again
    withdrawn_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),
    )

    assignment = relationship("Assignment", back_populates="submissions")
    student = relationship("User", back_populates="submissions")
