from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.db.database import Base

if TYPE_CHECKING:
    from src.models.channel import Channel


class Member(Base):
    __tablename__ = "members"
    __table_args__ = (
        UniqueConstraint("channel_id", "external_id", name="uq_member_channel_user"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    channel_id: Mapped[int] = mapped_column(
        ForeignKey("channels.id", ondelete="CASCADE"), nullable=False, index=True
    )
    external_id: Mapped[str] = mapped_column(String(50), nullable=False)  # Slack user id
    user_name: Mapped[str] = mapped_column(String(255), default="")
    display_name: Mapped[str] = mapped_column(String(255), default="")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_last_presenter: Mapped[bool] = mapped_column(Boolean, default=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    channel: Mapped["Channel"] = relationship(back_populates="members")

    @property
    def name(self) -> str:
        """Best available name for display."""
        return self.display_name or self.user_name or "Unknown User"

    def __repr__(self) -> str:
        return f"<Member {self.external_id}:{self.name}>"
