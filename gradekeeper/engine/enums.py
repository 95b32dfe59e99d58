import enum


class Role(str, enum.Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


class LifecycleState(str, enum.Enum):
    """Publication status of an assignment."""

    DRAFT = "draft"
    PUBLISHED = "published"
    COMPLETED = "completed"  # terminal
    REMOVED = "removed"  # terminal, submissions kept for audit


class SubmissionStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    GRADED = "graded"


class SubmissionType(str, enum.Enum):
    TEXT = "text"
    FILE = "file"
    BOTH = "both"


class Urgency(str, enum.Enum):
    """Display tiers, most urgent first."""

    OVERDUE = "overdue"
    CRITICAL = "critical"
    URGENT = "urgent"
    SOON = "soon"
    NORMAL = "normal"

    @property
    def rank(self) -> int:
        # 0 is the most urgent tier
        return list(Urgency).index(self)
