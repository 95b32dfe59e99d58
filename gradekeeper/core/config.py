import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

from gradekeeper.engine.timekeeping import system_offset_minutes

BASE_DIR = Path(__file__).resolve().parent.parent.parent

DATABASE_URL = os.getenv("GRADEKEEPER_DATABASE_URL", f"sqlite:///{BASE_DIR}/gradekeeper.db")
LOG_LEVEL = os.getenv("GRADEKEEPER_LOG_LEVEL", "INFO")

# Offset (minutes east of UTC) used when a request carries a bare wall-clock
# due date and no tz_offset_minutes. Read once; defaults to the host timezone.
_tz_env = os.getenv("GRADEKEEPER_DEFAULT_TZ_OFFSET_MINUTES")
DEFAULT_TZ_OFFSET_MINUTES = (
    int(_tz_env) if _tz_env is not None else system_offset_minutes(datetime.now(timezone.utc))
)

# Urgency tiers (upper bounds, inclusive)
URGENCY_CRITICAL = timedelta(hours=24)
URGENCY_URGENT = timedelta(hours=48)
URGENCY_SOON = timedelta(hours=72)

COUNTDOWN_INTERVAL_SECONDS = 1.0
