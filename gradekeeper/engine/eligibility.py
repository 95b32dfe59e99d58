"""
Who may submit, update, withdraw or grade right now.

The ``can_*`` predicates return booleans for enabling or disabling controls.
The ``ensure_*`` variants raise NotPermitted with a reason code instead, for
code paths that are about to act.
"""
from pathlib import PurePosixPath
from typing import Iterable, Optional

from gradekeeper.engine.enums import LifecycleState, Role, SubmissionStatus, SubmissionType
from gradekeeper.engine.errors import FileTypeNotAllowed, MissingContent, NotPermitted

GRADER_ROLES = frozenset({Role.INSTRUCTOR, Role.ADMIN})


def _submit_blocker(role, existing_submission, assignment_status, overdue: bool) -> Optional[str]:
    if Role(role) is not Role.STUDENT:
        return "not_a_student"
    if existing_submission is not None:
        return "already_submitted"
    if LifecycleState(assignment_status) is not LifecycleState.PUBLISHED:
        return "assignment_not_published"
    if overdue:
        return "deadline_passed"
    return None


def _update_blocker(role, submission, assignment_status, overdue: bool, is_owner: bool) -> Optional[str]:
    if Role(role) is not Role.STUDENT:
        return "not_a_student"
    if not is_owner:
        return "not_owner"
    if LifecycleState(assignment_status) is not LifecycleState.PUBLISHED:
        return "assignment_not_published"
    if overdue:
        return "deadline_passed"
    if submission is not None and SubmissionStatus(submission.status) is SubmissionStatus.GRADED:
        return "already_graded"
    return None


def _withdraw_blocker(role, submission, assignment_status, is_owner: bool) -> Optional[str]:
    # The deadline does not matter here, only publication does.
    if not is_owner:
        return "not_owner"
    if LifecycleState(assignment_status) is not LifecycleState.PUBLISHED:
        return "assignment_not_published"
    return None


def can_submit(role, existing_submission, assignment_status, overdue: bool) -> bool:
    return _submit_blocker(role, existing_submission, assignment_status, overdue) is None


def can_update(role, submission, assignment_status, overdue: bool, is_owner: bool) -> bool:
    return _update_blocker(role, submission, assignment_status, overdue, is_owner) is None


def can_withdraw(role, submission, assignment_status, is_owner: bool) -> bool:
    return _withdraw_blocker(role, submission, assignment_status, is_owner) is None


def can_grade(role) -> bool:
    return Role(role) in GRADER_ROLES


def ensure_can_submit(role, existing_submission, assignment_status, overdue: bool) -> None:
    reason = _submit_blocker(role, existing_submission, assignment_status, overdue)
    if reason:
        raise NotPermitted("submit", reason)


def ensure_can_update(role, submission, assignment_status, overdue: bool, is_owner: bool) -> None:
    reason = _update_blocker(role, submission, assignment_status, overdue, is_owner)
    if reason:
        raise NotPermitted("update", reason)


def ensure_can_withdraw(role, submission, assignment_status, is_owner: bool) -> None:
    reason = _withdraw_blocker(role, submission, assignment_status, is_owner)
    if reason:
        raise NotPermitted("withdraw", reason)


def ensure_can_grade(role) -> None:
    if not can_grade(role):
        raise NotPermitted("grade", "not_a_grader")


def _extension(filename: str) -> str:
    return PurePosixPath(filename).suffix.lower()


def check_content(
    submission_type,
    text: Optional[str],
    files: Iterable,
    allowed_file_types: Optional[Iterable[str]] = None,
) -> None:
    """
    Check that a submission carries what the assignment asks for.

    ``files`` holds objects with an ``original_name`` (or ``filename``)
    attribute. ``allowed_file_types`` lists extensions such as ``".pdf"``.
    """
    submission_type = SubmissionType(submission_type)
    files = list(files or [])

    if submission_type in (SubmissionType.TEXT, SubmissionType.BOTH):
        if not text or not text.strip():
            raise MissingContent("text")
    if submission_type in (SubmissionType.FILE, SubmissionType.BOTH) and not files:
        raise MissingContent("files")

    if allowed_file_types and files:
        allowed = [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in allowed_file_types]
        for f in files:
            name = getattr(f, "original_name", None) or f.filename
            ext = _extension(name)
            if ext not in allowed:
                raise FileTypeNotAllowed(name, ext, allowed)
