"""
Rubric scoring.

Scores are keyed by the criterion's position in the rubric. Criteria without
a score count as zero. A manual total, when present, replaces the rubric sum.
"""
import math
from typing import Mapping, NamedTuple, Optional, Sequence

from gradekeeper.engine.errors import (
    InvalidMaxScore,
    MaxScoreLocked,
    RubricLocked,
    ScoreOutOfBounds,
    UnknownCriterion,
)


class GradeResult(NamedTuple):
    rubric_sum: float
    total: float
    percentage: int


def _criterion_max(criterion) -> float:
    if isinstance(criterion, Mapping):
        return criterion["max_score"]
    return criterion.max_score


def aggregate(criteria: Sequence, scores: Optional[Mapping[int, float]]) -> float:
    total = 0.0
    seen = set()
    for key, score in (scores or {}).items():
        try:
            index = int(key)
        except (TypeError, ValueError):
            raise UnknownCriterion(key, score) from None
        # 0 and "0" name the same criterion
        if index in seen or not 0 <= index < len(criteria):
            raise UnknownCriterion(index, score)
        seen.add(index)

        maximum = _criterion_max(criteria[index])
        # NaN fails both comparisons and is rejected too
        if not (0 <= score <= maximum):
            raise ScoreOutOfBounds(score, 0, maximum, criterion_index=index)
        total += score
    return total


def effective_total(rubric_sum: float, manual_total: Optional[float]) -> float:
    return manual_total if manual_total is not None else rubric_sum


def percentage(total: float, max_score: float) -> int:
    """
    Whole-number percentage of ``max_score``, rounded half up.

    Results above 100 are kept (bonus credit); negative ones floor at 0.
    """
    if max_score is None or not max_score > 0:
        raise InvalidMaxScore(max_score)
    value = math.floor(100 * total / max_score + 0.5)
    return max(0, int(value))


def validate_total(total: float, max_score: float) -> bool:
    return 0 <= total <= max_score


def check_manual_total(total: float, max_score: float) -> None:
    if max_score is None or not max_score > 0:
        raise InvalidMaxScore(max_score)
    if not validate_total(total, max_score):
        raise ScoreOutOfBounds(total, 0, max_score)


def compute_grade(
    criteria: Sequence,
    scores: Optional[Mapping[int, float]],
    manual_total: Optional[float],
    max_score: float,
) -> GradeResult:
    rubric_sum = aggregate(criteria, scores)
    if manual_total is not None:
        check_manual_total(manual_total, max_score)
    total = effective_total(rubric_sum, manual_total)
    return GradeResult(rubric_sum, total, percentage(total, max_score))


def ensure_rubric_editable(has_graded_submissions: bool) -> None:
    if has_graded_submissions:
        raise RubricLocked()


def ensure_max_score_editable(has_graded_submissions: bool, current: float, new: float) -> None:
    """Stored scores and percentages are relative to the current maximum."""
    if has_graded_submissions and new != current:
        raise MaxScoreLocked()
