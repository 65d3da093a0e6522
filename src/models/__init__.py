from src.models.channel import Channel
from src.models.member import Member
from src.models.schedule import (
    DEFAULT_ACTIVE_DAYS,
    DEFAULT_NOTIFICATION_TIME,
    DEFAULT_ROLE,
    ScheduleConfig,
)

__all__ = [
    "Channel",
    "DEFAULT_ACTIVE_DAYS",
    "DEFAULT_NOTIFICATION_TIME",
    "DEFAULT_ROLE",
    "Member",
    "ScheduleConfig",
]
