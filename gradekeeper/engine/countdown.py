"""
Live countdown for deadline badges.

The state belongs to whoever drives the display. Nothing is cached between
callers, and cancelling the refresh loop leaves the last values untouched.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, NamedTuple, Optional, Union

from gradekeeper.core.config import COUNTDOWN_INTERVAL_SECONDS
from gradekeeper.engine.enums import Urgency
from gradekeeper.engine.timekeeping import remaining as time_remaining
from gradekeeper.engine.urgency import classify

logger = logging.getLogger(__name__)


class TimeLeft(NamedTuple):
    days: int
    hours: int
    minutes: int
    seconds: int


def breakdown(remaining: timedelta) -> TimeLeft:
    if remaining <= timedelta(0):
        return TimeLeft(0, 0, 0, 0)

    total = int(remaining.total_seconds())
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    return TimeLeft(days, hours, minutes, seconds)


@dataclass
class CountdownState:
    deadline: datetime
    remaining: Optional[timedelta] = None
    urgency: Optional[Urgency] = None
    time_left: TimeLeft = TimeLeft(0, 0, 0, 0)
    expired: bool = False
    ticks: int = 0


def tick(state: CountdownState, now: datetime) -> CountdownState:
    state.remaining = time_remaining(state.deadline, now)
    state.urgency = classify(state.remaining)
    state.time_left = breakdown(state.remaining)
    state.expired = state.urgency is Urgency.OVERDUE
    state.ticks += 1
    return state


OnTick = Callable[[CountdownState], Union[None, Awaitable[None]]]


async def run_countdown(
    state: CountdownState,
    clock: Callable[[], datetime],
    on_tick: OnTick,
    interval: float = COUNTDOWN_INTERVAL_SECONDS,
) -> CountdownState:
    """
    Recompute ``state`` every ``interval`` seconds until the deadline passes.

    ``clock`` is read once per tick. Cancel the task to stop early.
    """
    try:
        while True:
            tick(state, clock())
            result = on_tick(state)
            if asyncio.iscoroutine(result):
                await result
            if state.expired:
                logger.debug("countdown for %s expired after %d ticks", state.deadline, state.ticks)
                return state
            await asyncio.sleep(interval)
    except asyncio.CancelledError:
        logger.debug("countdown for %s cancelled", state.deadline)
        raise
