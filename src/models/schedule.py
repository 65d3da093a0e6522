from __future__ import annotations

from typing import TYPE_CHECKING, List

from sqlalchemy import JSON, Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.db.database import Base
from src.models.base import TimestampMixin

if TYPE_CHECKING:
    from src.models.channel import Channel

DEFAULT_NOTIFICATION_TIME = "09:00"
DEFAULT_ACTIVE_DAYS = [1, 2, 3, 4, 5]  # Monday-Friday, ISO 8601
DEFAULT_ROLE = "On duty"


class ScheduleConfig(Base, TimestampMixin):
    __tablename__ = "schedule_configs"

    id: Mapped[int] = mapped_column(primary_key=True)
    channel_id: Mapped[int] = mapped_column(
        ForeignKey("channels.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    notification_time: Mapped[str] = mapped_column(
        String(5), default=DEFAULT_NOTIFICATION_TIME
    )  # HH:MM in the reference zone
    active_days: Mapped[List[int]] = mapped_column(
        JSON, default=lambda: list(DEFAULT_ACTIVE_DAYS)
    )
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    role: Mapped[str] = mapped_column(String(100), default=DEFAULT_ROLE)

    channel: Mapped["Channel"] = relationship(back_populates="schedule")

    def __repr__(self) -> str:
        state = "on" if self.is_enabled else "off"
        return f"<ScheduleConfig channel={self.channel_id} {self.notification_time} {state}>"
