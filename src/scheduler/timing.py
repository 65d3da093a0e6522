"""Time-of-day and weekday math for rotation schedules.

Weekdays are ISO 8601 numbers: Monday=1 ... Sunday=7.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, tzinfo
from typing import Iterable, List, Optional, Tuple

from loguru import logger

from src.models import ScheduleConfig

WEEKDAY_NAMES = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
    7: "Sunday",
}

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


@dataclass
class NotificationBatch:
    """Channels sharing the earliest upcoming notification instant."""

    at: datetime
    channel_ids: List[int] = field(default_factory=list)


def parse_notification_time(value: str) -> Optional[Tuple[int, int]]:
    """Parse "HH:MM" (24h) into (hour, minute), or None if invalid."""
    match = _TIME_RE.match((value or "").strip())
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return hour, minute


def parse_days(value: str) -> List[int]:
    """Parse "1,2,4,5" into sorted unique ISO weekdays; invalid entries are dropped."""
    days = set()
    for part in value.strip().split(","):
        part = part.strip()
        if part.isdigit() and 1 <= int(part) <= 7:
            days.add(int(part))
    return sorted(days)


def format_days(days: Iterable[int]) -> str:
    return ", ".join(WEEKDAY_NAMES[d] for d in sorted(days) if d in WEEKDAY_NAMES)


def next_occurrence(
    notification_time: str,
    active_days: Iterable[int],
    now: datetime,
    tz: tzinfo,
) -> Optional[datetime]:
    """Next instant at notification_time on an active weekday, strictly after now.

    Returns None for an unparsable time or an empty set of active days.
    """
    parsed = parse_notification_time(notification_time)
    if parsed is None:
        return None
    days = {d for d in active_days or [] if 1 <= d <= 7}
    if not days:
        return None

    at = time(parsed[0], parsed[1])
    local_now = now.astimezone(tz)
    today = datetime.combine(local_now.date(), at, tzinfo=tz)
    if today.isoweekday() in days and today > local_now:
        return today

    for offset in range(1, 8):
        day = local_now.date() + timedelta(days=offset)
        if day.isoweekday() in days:
            return datetime.combine(day, at, tzinfo=tz)
    return None


def find_next_batch(
    schedules: Iterable[ScheduleConfig], now: datetime, tz: tzinfo
) -> Optional[NotificationBatch]:
    """Earliest candidate across schedules with every channel that shares it exactly."""
    batch: Optional[NotificationBatch] = None

    for schedule in schedules:
        candidate = next_occurrence(
            schedule.notification_time, schedule.active_days, now, tz
        )
        if candidate is None:
            logger.warning(
                f"Skipping schedule {schedule.id} for channel {schedule.channel_id}: "
                f"time={schedule.notification_time!r} days={schedule.active_days!r}"
            )
            continue

        if batch is None or candidate < batch.at:
            batch = NotificationBatch(at=candidate, channel_ids=[schedule.channel_id])
        elif candidate == batch.at:
            batch.channel_ids.append(schedule.channel_id)

    return batch
