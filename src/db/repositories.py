"""Stores over a SQLAlchemy session and the unit of work that scopes them.

Stores only flush; committing is the job of ``DataManager``.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, TypeVar

from sqlalchemy import update
from sqlalchemy.orm import Session, sessionmaker

from src.models import Channel, Member, ScheduleConfig
from src.rotation.errors import MemberNotFoundError

T = TypeVar("T")


class ChannelStore:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, channel_id: int) -> Optional[Channel]:
        return self.session.get(Channel, channel_id)

    def get_by_external_id(self, external_id: str) -> Optional[Channel]:
        return self.session.query(Channel).filter_by(external_id=external_id).first()

    def create(self, channel: Channel) -> Channel:
        self.session.add(channel)
        self.session.flush()
        return channel

    def update(self, channel: Channel) -> Channel:
        channel = self.session.merge(channel)
        self.session.flush()
        return channel

    def list_active(self) -> List[Channel]:
        return (
            self.session.query(Channel)
            .filter(Channel.is_active == True)  # noqa: E712
            .order_by(Channel.id)
            .all()
        )


class MemberStore:
    def __init__(self, session: Session):
        self.session = session

    def create(self, member: Member) -> Member:
        self.session.add(member)
        self.session.flush()
        self.session.refresh(member)
        return member

    def delete(self, member_id: int) -> None:
        member = self.session.get(Member, member_id)
        if member is not None:
            self.session.delete(member)
            self.session.flush()

    def get_by_channel_and_external_id(
        self, channel_id: int, external_id: str
    ) -> Optional[Member]:
        return (
            self.session.query(Member)
            .filter_by(channel_id=channel_id, external_id=external_id)
            .first()
        )

    def list_active_by_channel(self, channel_id: int) -> List[Member]:
        """Active members in rotation order (join time, then insertion order)."""
        return (
            self.session.query(Member)
            .filter(Member.channel_id == channel_id, Member.is_active == True)  # noqa: E712
            .order_by(Member.joined_at.asc(), Member.id.asc())
            .all()
        )

    def clear_last_presenter(self, channel_id: int) -> None:
        self.session.execute(
            update(Member)
            .where(Member.channel_id == channel_id)
            .values(is_last_presenter=False)
        )

    def set_last_presenter(self, channel_id: int, member_id: int) -> None:
        result = self.session.execute(
            update(Member)
            .where(Member.id == member_id, Member.channel_id == channel_id)
            .values(is_last_presenter=True)
        )
        if result.rowcount == 0:
            raise MemberNotFoundError(
                f"member {member_id} not found in channel {channel_id}"
            )

    def get_last_presenter(self, channel_id: int) -> Optional[Member]:
        return (
            self.session.query(Member)
            .filter(
                Member.channel_id == channel_id,
                Member.is_last_presenter == True,  # noqa: E712
            )
            .first()
        )


class ScheduleStore:
    def __init__(self, session: Session):
        self.session = session

    def create(self, schedule: ScheduleConfig) -> ScheduleConfig:
        self.session.add(schedule)
        self.session.flush()
        return schedule

    def get_by_channel(self, channel_id: int) -> Optional[ScheduleConfig]:
        return self.session.query(ScheduleConfig).filter_by(channel_id=channel_id).first()

    def update(self, schedule: ScheduleConfig) -> ScheduleConfig:
        schedule = self.session.merge(schedule)
        self.session.flush()
        return schedule

    def delete(self, channel_id: int) -> None:
        self.session.query(ScheduleConfig).filter_by(channel_id=channel_id).delete()

    def list_enabled(self) -> List[ScheduleConfig]:
        return (
            self.session.query(ScheduleConfig)
            .filter(ScheduleConfig.is_enabled == True)  # noqa: E712
            .order_by(ScheduleConfig.channel_id)
            .all()
        )

    def set_enabled(self, channel_id: int, enabled: bool) -> bool:
        result = self.session.execute(
            update(ScheduleConfig)
            .where(ScheduleConfig.channel_id == channel_id)
            .values(is_enabled=enabled)
        )
        return result.rowcount > 0


class Stores:
    """Channel, member and schedule stores bound to one session."""

    def __init__(self, session: Session):
        self.session = session
        self.channels = ChannelStore(session)
        self.members = MemberStore(session)
        self.schedules = ScheduleStore(session)


class DataManager:
    """Unit of work: hands out stores scoped to a single transaction."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    @contextmanager
    def session(self) -> Iterator[Stores]:
        """Commit on success, roll back and re-raise on failure."""
        with self.session_factory() as session:
            try:
                yield Stores(session)
                session.commit()
            except Exception:
                session.rollback()
                raise

    def with_transaction(self, fn: Callable[[Stores], T]) -> T:
        with self.session() as stores:
            return fn(stores)
