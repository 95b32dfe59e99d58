"""
Typed errors raised by the grading engine.

Each error carries structured attributes and a stable ``code`` so the
calling layer can build its own message. Nothing here formats display text.
"""
import math


def _number(value):
    # JSON has no NaN or infinity
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    return value


class EngineError(Exception):
    code = "engine_error"

    def to_dict(self) -> dict:
        return {"code": self.code}


class InvalidDate(EngineError):
    code = "invalid_date"

    def __init__(self, value=None):
        super().__init__(value)
        self.value = value

    def to_dict(self) -> dict:
        return {"code": self.code, "value": None if self.value is None else str(self.value)}


class ScoreOutOfBounds(EngineError):
    code = "score_out_of_bounds"

    def __init__(
        self,
        value: float,
        minimum: float | None,
        maximum: float | None,
        criterion_index: int | None = None,
    ):
        super().__init__(value, minimum, maximum, criterion_index)
        self.value = value
        self.minimum = minimum
        self.maximum = maximum
        self.criterion_index = criterion_index

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "value": _number(self.value),
            "minimum": _number(self.minimum),
            "maximum": _number(self.maximum),
            "criterion_index": self.criterion_index,
        }


class UnknownCriterion(ScoreOutOfBounds):
    """A score was keyed by an index the rubric does not have."""

    code = "unknown_criterion"

    def __init__(self, criterion_index, value: float):
        super().__init__(value, None, None, criterion_index=criterion_index)


class InvalidMaxScore(EngineError):
    code = "invalid_max_score"

    def __init__(self, max_score):
        super().__init__(max_score)
        self.max_score = max_score

    def to_dict(self) -> dict:
        return {"code": self.code, "max_score": _number(self.max_score)}


class InvalidTransition(EngineError):
    code = "invalid_transition"

    def __init__(self, current, target, reason: str = "illegal_edge"):
        super().__init__(current, target, reason)
        self.current = current
        self.target = target
        self.reason = reason

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "current": getattr(self.current, "value", self.current),
            "target": getattr(self.target, "value", self.target),
            "reason": self.reason,
        }


class NotPermitted(EngineError):
    code = "not_permitted"

    def __init__(self, action: str, reason: str):
        super().__init__(action, reason)
        self.action = action
        self.reason = reason

    def to_dict(self) -> dict:
        return {"code": self.code, "action": self.action, "reason": self.reason}


class LockedByGrading(NotPermitted):
    """The change would invalidate grades already given."""

    code = "locked_by_grading"

    def __init__(self, action: str):
        super().__init__(action, "graded_submissions_exist")


class RubricLocked(LockedByGrading):
    code = "rubric_locked"

    def __init__(self):
        super().__init__("edit_rubric")


class MaxScoreLocked(LockedByGrading):
    code = "max_score_locked"

    def __init__(self):
        super().__init__("edit_max_score")


class MissingContent(EngineError):
    code = "missing_content"

    def __init__(self, field: str):
        super().__init__(field)
        self.field = field

    def to_dict(self) -> dict:
        return {"code": self.code, "field": self.field}


class FileTypeNotAllowed(EngineError):
    code = "file_type_not_allowed"

    def __init__(self, filename: str, extension: str, allowed: list[str]):
        super().__init__(filename, extension, allowed)
        self.filename = filename
        self.extension = extension
        self.allowed = list(allowed)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "filename": self.filename,
            "extension": self.extension,
            "allowed": self.allowed,
        }
