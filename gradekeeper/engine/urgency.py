from datetime import timedelta

from gradekeeper.core.config import URGENCY_CRITICAL, URGENCY_SOON, URGENCY_URGENT
from gradekeeper.engine.enums import Urgency


def classify(remaining: timedelta) -> Urgency:
    """
    Bucket the time left before a deadline.

    Each bound is inclusive of the more urgent tier: exactly 24h left is
    ``critical``, 24h and one second is ``urgent``.
    """
    if remaining <= timedelta(0):
        return Urgency.OVERDUE
    if remaining <= URGENCY_CRITICAL:
        return Urgency.CRITICAL
    if remaining <= URGENCY_URGENT:
        return Urgency.URGENT
    if remaining <= URGENCY_SOON:
        return Urgency.SOON
    return Urgency.NORMAL
