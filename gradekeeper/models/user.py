from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gradekeeper.db.base_class import Base, str_enum
from gradekeeper.engine.enums import Role


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    full_name: Mapped[str | None] = mapped_column(String(255))
    role: Mapped[Role] = mapped_column(str_enum(Role), nullable=False, default=Role.STUDENT)

    submissions = relationship(
        "Submission", back_populates="student", cascade="all, delete-orphan"
    )
