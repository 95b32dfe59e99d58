import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from gradekeeper.core.config import DEFAULT_TZ_OFFSET_MINUTES
from gradekeeper.core.deps import get_current_user, get_db, get_now
from gradekeeper.core.permissions import ensure_course_staff, require_grader
from gradekeeper.engine import eligibility, lifecycle
from gradekeeper.engine.enums import LifecycleState, Role, SubmissionStatus
from gradekeeper.engine.rubric import ensure_max_score_editable, ensure_rubric_editable
from gradekeeper.engine.timekeeping import (
    MAX_OFFSET_MINUTES,
    ensure_utc,
    format_wall_clock,
    is_overdue,
    normalize_due,
    parse_instant,
    remaining,
    to_local_wall_clock,
)
from gradekeeper.engine.urgency import classify
from gradekeeper.models.assignment import Assignment
from gradekeeper.models.course import Course
from gradekeeper.models.submission import Submission
from gradekeeper.models.user import User
from gradekeeper.schemas.assignment import (
    AssignmentCreate,
    AssignmentDetail,
    AssignmentRead,
    AssignmentUpdate,
    EligibilityRead,
    RubricUpdate,
    StatusChange,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# statuses a student can see
STUDENT_VISIBLE = (LifecycleState.PUBLISHED, LifecycleState.COMPLETED)


def _ensure_course_exists(db: Session, course_id: int) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


def _ensure_visible_assignment(db: Session, assignment_id: int, user: User) -> Assignment:
    a = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    # drafts and removed assignments are hidden from students
    if not a or (user.role is Role.STUDENT and a.status not in STUDENT_VISIBLE):
        raise HTTPException(status_code=404, detail="Assignment not found")
    return a


def _has_graded_submissions(db: Session, assignment_id: int) -> bool:
    return (
        db.query(Submission.id)
        .filter(
            Submission.assignment_id == assignment_id,
            Submission.status == SubmissionStatus.GRADED,
        )
        .first()
        is not None
    )


def _active_submission(db: Session, assignment_id: int, student_id: int) -> Optional[Submission]:
    return (
        db.query(Submission)
        .filter(
            Submission.assignment_id == assignment_id,
            Submission.student_id == student_id,
            Submission.withdrawn_at.is_(None),
        )
        .first()
    )


def _resolve_due(payload: AssignmentCreate | AssignmentUpdate) -> Optional[datetime]:
    if payload.due_at:
        return parse_instant(payload.due_at)
    if payload.due_local:
        offset = payload.tz_offset_minutes
        if offset is None:
            offset = DEFAULT_TZ_OFFSET_MINUTES
        return normalize_due(payload.due_local, offset)
    return None


@router.get("/courses/{course_id}/assignments", response_model=list[AssignmentRead])
def list_assignments(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _ensure_course_exists(db, course_id)

    q = db.query(Assignment).filter(Assignment.course_id == course_id)
    if current_user.role is Role.STUDENT:
        q = q.filter(Assignment.status.in_(STUDENT_VISIBLE))

    return q.order_by(Assignment.due_at.is_(None), Assignment.due_at.asc(), Assignment.id.asc()).all()


@router.post(
    "/courses/{course_id}/assignments",
    response_model=AssignmentRead,
    status_code=status.HTTP_201_CREATED,
)
def create_assignment(
    course_id: int,
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    grader: User = Depends(require_grader),
):
    _ensure_course_exists(db, course_id)
    ensure_course_staff(db, course_id, grader)

    a = Assignment(
        course_id=course_id,
        created_by=grader.id,
        title=payload.title,
        description=payload.description,
        due_at=_resolve_due(payload),
        max_score=payload.max_score,
        submission_type=payload.submission_type,
        allowed_file_types=payload.allowed_file_types,
        rubric=[c.model_dump() for c in payload.rubric],
        status=lifecycle.INITIAL_STATE,
    )
    db.add(a)
    db.commit()
    db.refresh(a)

    logger.info("assignment %s created in course %s by user %s", a.id, course_id, grader.id)
    return a


@router.get("/assignments/{assignment_id}", response_model=AssignmentDetail)
def get_assignment(
    assignment_id: int,
    tz_offset_minutes: Optional[int] = Query(default=None, ge=-MAX_OFFSET_MINUTES, le=MAX_OFFSET_MINUTES),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    a = _ensure_visible_assignment(db, assignment_id, current_user)

    detail = AssignmentDetail.model_validate(a)
    if current_user.role is not Role.STUDENT:
        detail.allowed_transitions = lifecycle.allowed_targets(a.status)

    if a.due_at is not None:
        due = ensure_utc(a.due_at)
        left = remaining(due, now)
        detail.overdue = is_overdue(due, now)
        detail.remaining_seconds = int(left.total_seconds())
        detail.urgency = classify(left)
        offset = DEFAULT_TZ_OFFSET_MINUTES if tz_offset_minutes is None else tz_offset_minutes
        detail.due_local = format_wall_clock(to_local_wall_clock(due, offset))

    return detail


@router.patch("/assignments/{assignment_id}", response_model=AssignmentRead)
def update_assignment(
    assignment_id: int,
    payload: AssignmentUpdate,
    db: Session = Depends(get_db),
    grader: User = Depends(require_grader),
):
    a = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not a:
        raise HTTPException(status_code=404, detail="Assignment not found")
    ensure_course_staff(db, a.course_id, grader)

    changes = payload.model_dump(exclude_unset=True)
    # title, max_score and submission_type are required columns
    for field in ("title", "max_score", "submission_type"):
        if field in changes and changes[field] is None:
            raise HTTPException(status_code=422, detail=f"{field} cannot be null")

    if "max_score" in changes:
        ensure_max_score_editable(_has_graded_submissions(db, a.id), a.max_score, changes["max_score"])

    due = _resolve_due(payload)
    if due is not None:
        a.due_at = due

    for field in ("title", "description", "max_score", "submission_type", "allowed_file_types"):
        if field in changes:
            setattr(a, field, changes[field])

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(a)
    logger.info("assignment %s edited by user %s: %s", a.id, grader.id, sorted(changes))
    return a


@router.post("/assignments/{assignment_id}/status", response_model=AssignmentRead)
def change_status(
    assignment_id: int,
    payload: StatusChange,
    db: Session = Depends(get_db),
    grader: User = Depends(require_grader),
):
    a = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not a:
        raise HTTPException(status_code=404, detail="Assignment not found")
    ensure_course_staff(db, a.course_id, grader)

    context = lifecycle.TransitionContext(
        title=a.title,
        due_at=a.due_at,
        max_score=a.max_score,
        has_graded_submissions=_has_graded_submissions(db, a.id),
    )
    previous = a.status
    a.status = lifecycle.transition(a.status, payload.status, context)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(a)
    logger.info("assignment %s: %s -> %s by user %s", a.id, previous.value, a.status.value, grader.id)
    return a


@router.put("/assignments/{assignment_id}/rubric", response_model=AssignmentRead)
def replace_rubric(
    assignment_id: int,
    payload: RubricUpdate,
    db: Session = Depends(get_db),
    grader: User = Depends(require_grader),
):
    a = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not a:
        raise HTTPException(status_code=404, detail="Assignment not found")
    ensure_course_staff(db, a.course_id, grader)

    ensure_rubric_editable(_has_graded_submissions(db, a.id))

    a.rubric = [c.model_dump() for c in payload.rubric]
    db.commit()
    db.refresh(a)
    return a


@router.get("/assignments/{assignment_id}/eligibility", response_model=EligibilityRead)
def my_eligibility(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    a = _ensure_visible_assignment(db, assignment_id, current_user)

    overdue = a.due_at is not None and is_overdue(ensure_utc(a.due_at), now)
    mine = _active_submission(db, a.id, current_user.id)

    return EligibilityRead(
        can_submit=eligibility.can_submit(current_user.role, mine, a.status, overdue),
        can_update=mine is not None
        and eligibility.can_update(current_user.role, mine, a.status, overdue, is_owner=True),
        can_withdraw=mine is not None
        and eligibility.can_withdraw(current_user.role, mine, a.status, is_owner=True),
        can_grade=eligibility.can_grade(current_user.role),
    )
