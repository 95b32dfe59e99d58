from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gradekeeper.db.base_class import Base


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    instructor_id: Mapped[int] = mapped_column(nullable=False, index=True)

    assignments = relationship(
        "Assignment", back_populates="course", cascade="all, delete-orphan"
    )
