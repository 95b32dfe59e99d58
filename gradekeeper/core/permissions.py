from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from gradekeeper.core.deps import get_current_user
from gradekeeper.engine.eligibility import can_grade
from gradekeeper.engine.enums import Role
from gradekeeper.models.course import Course
from gradekeeper.models.user import User


def require_grader(current_user: User = Depends(get_current_user)) -> User:
    if not can_grade(current_user.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Instructor or admin role required",
        )
    return current_user


def ensure_course_staff(db: Session, course_id: int, user: User) -> None:
    """Admins may act on any course, instructors only on their own."""
    if user.role is Role.ADMIN:
        return
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course or course.instructor_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the course instructor can do this",
        )
