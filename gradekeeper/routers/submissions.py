import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from gradekeeper.core.deps import get_current_user, get_db, get_now
from gradekeeper.core.permissions import ensure_course_staff, require_grader
from gradekeeper.engine import eligibility
from gradekeeper.engine.enums import SubmissionStatus
from gradekeeper.engine.rubric import compute_grade, percentage
from gradekeeper.engine.timekeeping import ensure_utc, is_overdue
from gradekeeper.models.assignment import Assignment
from gradekeeper.models.submission import Submission
from gradekeeper.models.user import User
from gradekeeper.schemas.submission import SubmissionCreate, SubmissionGradeUpdate, SubmissionRead

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_assignment_exists(db: Session, assignment_id: int) -> Assignment:
    a = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not a:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return a


def _ensure_active_submission(db: Session, submission_id: int) -> Submission:
    sub = (
        db.query(Submission)
        .filter(Submission.id == submission_id, Submission.withdrawn_at.is_(None))
        .first()
    )
    if not sub:
        raise HTTPException(status_code=404, detail="Submission not found")
    return sub


def _overdue(assignment: Assignment, now: datetime) -> bool:
    if assignment.due_at is None:
        return False
    return is_overdue(ensure_utc(assignment.due_at), now)


def _attach_percentage(sub: Submission, assignment: Assignment) -> Submission:
    # computed for the response only
    sub.percentage = None if sub.score is None else percentage(sub.score, assignment.max_score)
    return sub


def _commit(db: Session) -> None:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


@router.post(
    "/assignments/{assignment_id}/submissions",
    response_model=SubmissionRead,
    status_code=status.HTTP_201_CREATED,
)
def submit_assignment(
    assignment_id: int,
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    assignment = _ensure_assignment_exists(db, assignment_id)

    # one row per (assignment, student); a withdrawn row is reused
    row = (
        db.query(Submission)
        .filter(Submission.assignment_id == assignment_id, Submission.student_id == me.id)
        .first()
    )
    existing = row if row is not None and row.withdrawn_at is None else None

    eligibility.ensure_can_submit(me.role, existing, assignment.status, _overdue(assignment, now))
    eligibility.check_content(
        assignment.submission_type,
        payload.text_content,
        payload.files,
        assignment.allowed_file_types,
    )

    if row is None:
        row = Submission(assignment_id=assignment_id, student_id=me.id)
        db.add(row)

    row.status = SubmissionStatus.SUBMITTED
    row.submitted_at = now
    row.text_content = payload.text_content
    row.files = [f.model_dump() for f in payload.files]
    row.rubric_scores = None
    row.manual_total = None
    row.score = None
    row.feedback = None
    row.graded_at = None
    row.withdrawn_at = None

    _commit(db)
    db.refresh(row)

    logger.info("submission %s for assignment %s by student %s", row.id, assignment_id, me.id)
    return _attach_percentage(row, assignment)


@router.get("/submissions/{submission_id}", response_model=SubmissionRead)
def get_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    sub = _ensure_active_submission(db, submission_id)
    assignment = _ensure_assignment_exists(db, sub.assignment_id)

    if sub.student_id != me.id:
        if not eligibility.can_grade(me.role):
            raise HTTPException(status_code=403, detail="Not your submission")
        ensure_course_staff(db, assignment.course_id, me)

    return _attach_percentage(sub, assignment)


@router.put("/submissions/{submission_id}", response_model=SubmissionRead)
def update_submission(
    submission_id: int,
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    sub = _ensure_active_submission(db, submission_id)
    assignment = _ensure_assignment_exists(db, sub.assignment_id)

    eligibility.ensure_can_update(
        me.role,
        sub,
        assignment.status,
        _overdue(assignment, now),
        is_owner=sub.student_id == me.id,
    )
    eligibility.check_content(
        assignment.submission_type,
        payload.text_content,
        payload.files,
        assignment.allowed_file_types,
    )

    sub.text_content = payload.text_content
    sub.files = [f.model_dump() for f in payload.files]
    sub.submitted_at = now
    sub.status = SubmissionStatus.SUBMITTED

    _commit(db)
    db.refresh(sub)
    return _attach_percentage(sub, assignment)


@router.delete("/submissions/{submission_id}", response_model=SubmissionRead)
def withdraw_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    sub = _ensure_active_submission(db, submission_id)
    assignment = _ensure_assignment_exists(db, sub.assignment_id)

    eligibility.ensure_can_withdraw(me.role, sub, assignment.status, is_owner=sub.student_id == me.id)

    sub.withdrawn_at = now

    _commit(db)
    db.refresh(sub)

    logger.info("submission %s withdrawn by user %s", sub.id, me.id)
    return _attach_percentage(sub, assignment)


@router.get(
    "/assignments/{assignment_id}/submissions",
    response_model=list[SubmissionRead],
)
def list_submissions_for_assignment(
    assignment_id: int,
    include_withdrawn: bool = Query(default=False),
    db: Session = Depends(get_db),
    grader: User = Depends(require_grader),
):
    assignment = _ensure_assignment_exists(db, assignment_id)
    ensure_course_staff(db, assignment.course_id, grader)

    q = db.query(Submission).filter(Submission.assignment_id == assignment_id)
    if not include_withdrawn:
        q = q.filter(Submission.withdrawn_at.is_(None))

    return [_attach_percentage(s, assignment) for s in q.order_by(Submission.id.asc()).all()]


@router.patch(
    "/submissions/{submission_id}/grade",
    response_model=SubmissionRead,
)
def grade_submission(
    submission_id: int,
    payload: SubmissionGradeUpdate,
    db: Session = Depends(get_db),
    grader: User = Depends(require_grader),
    now: datetime = Depends(get_now),
):
    sub = _ensure_active_submission(db, submission_id)
    assignment = _ensure_assignment_exists(db, sub.assignment_id)
    ensure_course_staff(db, assignment.course_id, grader)

    if not payload.rubric_scores and payload.manual_total is None:
        raise HTTPException(
            status_code=400,
            detail="Provide rubric scores or a manual total",
        )

    result = compute_grade(
        assignment.rubric or [],
        payload.rubric_scores,
        payload.manual_total,
        assignment.max_score,
    )

    # JSON object keys are strings
    sub.rubric_scores = {str(k): v for k, v in payload.rubric_scores.items()}
    sub.manual_total = payload.manual_total
    sub.score = result.total
    if payload.feedback is not None:
        sub.feedback = payload.feedback
    sub.status = SubmissionStatus.GRADED
    sub.graded_at = now

    _commit(db)
    db.refresh(sub)

    logger.info(
        "submission %s graded %.2f/%.2f by user %s",
        sub.id,
        result.total,
        assignment.max_score,
        grader.id,
    )
    return _attach_percentage(sub, assignment)
