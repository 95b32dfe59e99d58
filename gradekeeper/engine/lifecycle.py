"""
Assignment publication state machine.

    draft     -> published, removed
    published -> draft (only while nothing is graded), completed, removed

``completed`` and ``removed`` are terminal. Persisting the returned state is
the caller's job.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from gradekeeper.engine.enums import LifecycleState
from gradekeeper.engine.errors import InvalidTransition

logger = logging.getLogger(__name__)

INITIAL_STATE = LifecycleState.DRAFT

_EDGES: dict[LifecycleState, frozenset[LifecycleState]] = {
    LifecycleState.DRAFT: frozenset({LifecycleState.PUBLISHED, LifecycleState.REMOVED}),
    LifecycleState.PUBLISHED: frozenset(
        {LifecycleState.DRAFT, LifecycleState.COMPLETED, LifecycleState.REMOVED}
    ),
    LifecycleState.COMPLETED: frozenset(),
    LifecycleState.REMOVED: frozenset(),
}


@dataclass(frozen=True)
class TransitionContext:
    title: Optional[str] = None
    due_at: Optional[datetime] = None
    max_score: Optional[float] = None
    has_graded_submissions: bool = False


def is_terminal(state: LifecycleState) -> bool:
    return not _EDGES[LifecycleState(state)]


def allowed_targets(current: LifecycleState) -> list[LifecycleState]:
    """Outgoing edges of ``current``, in declaration order of the enum."""
    edges = _EDGES[LifecycleState(current)]
    return [state for state in LifecycleState if state in edges]


def _publish_blocker(context: TransitionContext) -> Optional[str]:
    if not context.title or not context.title.strip():
        return "missing_title"
    if context.due_at is None:
        return "missing_due_date"
    if context.max_score is None or not context.max_score > 0:
        return "invalid_max_score"
    return None


def transition(
    current: LifecycleState,
    target: LifecycleState,
    context: Optional[TransitionContext] = None,
) -> LifecycleState:
    """
    Validate a status change and return the new state.

    Raises InvalidTransition for edges that do not exist and for edges whose
    guard fails. The caller's state is never modified.
    """
    try:
        current = LifecycleState(current)
        target = LifecycleState(target)
    except ValueError:
        raise InvalidTransition(current, target, "unknown_state") from None

    context = context or TransitionContext()

    if target not in _EDGES[current]:
        logger.debug("rejected %s -> %s: no such edge", current.value, target.value)
        raise InvalidTransition(current, target)

    reason = None
    if current is LifecycleState.DRAFT and target is LifecycleState.PUBLISHED:
        reason = _publish_blocker(context)
    elif current is LifecycleState.PUBLISHED and target is LifecycleState.DRAFT:
        if context.has_graded_submissions:
            reason = "graded_submissions_exist"

    if reason is not None:
        logger.debug("rejected %s -> %s: %s", current.value, target.value, reason)
        raise InvalidTransition(current, target, reason)

    logger.debug("transition %s -> %s", current.value, target.value)
    return target
