from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Tuple

from loguru import logger

from src.db.repositories import DataManager, Stores
from src.models import (
    DEFAULT_ACTIVE_DAYS,
    DEFAULT_NOTIFICATION_TIME,
    DEFAULT_ROLE,
    Channel,
    Member,
    ScheduleConfig,
)
from src.rotation.engine import RotationEngine
from src.rotation.errors import (
    ChannelNotFoundError,
    InvalidConfigError,
    MemberAlreadyExistsError,
    MemberNotFoundError,
)
from src.scheduler.timing import parse_days, parse_notification_time

if TYPE_CHECKING:
    from src.notifications.slack import SlackSender
    from src.scheduler.runner import NotificationScheduler

CONFIG_KEYS = ("time", "days", "role")


def default_schedule(channel_id: int) -> ScheduleConfig:
    return ScheduleConfig(
        channel_id=channel_id,
        notification_time=DEFAULT_NOTIFICATION_TIME,
        active_days=list(DEFAULT_ACTIVE_DAYS),
        is_enabled=True,
        role=DEFAULT_ROLE,
    )


def clean_role(value: str) -> str:
    """Trim and drop one pair of surrounding single or double quotes."""
    cleaned = value.strip()
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in ("'", '"'):
        cleaned = cleaned[1:-1].strip()
    return cleaned


class RotationService:
    """Channel, roster and schedule management on top of the rotation engine.

    Every schedule mutation wakes the notification scheduler so it recomputes
    its next firing instant.
    """

    def __init__(
        self,
        data_manager: DataManager,
        engine: RotationEngine,
        sender: "SlackSender",
        scheduler: Optional["NotificationScheduler"] = None,
    ):
        self.data_manager = data_manager
        self.engine = engine
        self.sender = sender
        self.scheduler = scheduler

    def _config_changed(self) -> None:
        if self.scheduler is not None:
            self.scheduler.notify_config_changed()

    # Channels

    def setup_channel(
        self, external_id: str, name: str = "", team_id: str = ""
    ) -> Tuple[Channel, bool]:
        """Return (channel, created). New channels get a default schedule."""
        with self.data_manager.session() as stores:
            channel = stores.channels.get_by_external_id(external_id)
            if channel is not None:
                return channel, False

            channel = stores.channels.create(
                Channel(external_id=external_id, name=name, team_id=team_id, is_active=True)
            )
            stores.schedules.create(default_schedule(channel.id))

        logger.info(f"Channel {external_id} set up with default schedule")
        self._config_changed()
        return channel, True

    def get_channel(self, channel_id: int) -> Channel:
        with self.data_manager.session() as stores:
            channel = stores.channels.get_by_id(channel_id)
        if channel is None:
            raise ChannelNotFoundError("channel not found")
        return channel

    # Members

    def add_member(self, channel_id: int, user_id: str) -> Member:
        with self.data_manager.session() as stores:
            if stores.members.get_by_channel_and_external_id(channel_id, user_id):
                raise MemberAlreadyExistsError("user is already in the rotation")

        user_name, display_name = user_id, ""
        info = self.sender.get_user_info(user_id)
        if info is not None:
            profile = info.get("profile") or {}
            user_name = info.get("name") or user_id
            display_name = profile.get("real_name") or profile.get("display_name") or ""

        with self.data_manager.session() as stores:
            member = stores.members.create(
                Member(
                    channel_id=channel_id,
                    external_id=user_id,
                    user_name=user_name,
                    display_name=display_name,
                    is_active=True,
                )
            )
        logger.info(f"Added {user_id} to rotation of channel {channel_id}")
        return member

    def remove_member(self, channel_id: int, user_id: str) -> Member:
        with self.data_manager.session() as stores:
            member = stores.members.get_by_channel_and_external_id(channel_id, user_id)
            if member is None:
                raise MemberNotFoundError("user not found in rotation")
            stores.members.delete(member.id)
        logger.info(f"Removed {user_id} from rotation of channel {channel_id}")
        return member

    def list_members(self, channel_id: int) -> List[Member]:
        with self.data_manager.session() as stores:
            return stores.members.list_active_by_channel(channel_id)

    # Rotation

    def next_presenter(self, channel_id: int) -> Member:
        return self.engine.next_presenter(channel_id)

    def current_presenter(self, channel_id: int) -> Optional[Member]:
        return self.engine.current_presenter(channel_id)

    def advance(self, channel_id: int) -> Member:
        """Skip to the next presenter right now."""
        member = self.engine.next_presenter(channel_id)
        self.engine.record_presentation(channel_id, member.id)
        return member

    # Schedule

    def get_schedule(self, channel_id: int) -> Optional[ScheduleConfig]:
        with self.data_manager.session() as stores:
            return stores.schedules.get_by_channel(channel_id)

    def _get_or_create_schedule(self, stores: Stores, channel_id: int) -> ScheduleConfig:
        schedule = stores.schedules.get_by_channel(channel_id)
        if schedule is None:
            schedule = stores.schedules.create(default_schedule(channel_id))
        return schedule

    def update_config(self, channel_id: int, key: str, value: str) -> ScheduleConfig:
        if key == "time":
            if parse_notification_time(value) is None:
                raise InvalidConfigError(
                    "invalid time format. Use HH:MM (24-hour format). Example: 09:30"
                )
            changes = {"notification_time": value.strip()}
        elif key == "days":
            days = parse_days(value)
            if not days:
                raise InvalidConfigError(
                    "invalid days. Use numbers 1-7 (1=Mon, 2=Tue, 3=Wed, 4=Thu, "
                    "5=Fri, 6=Sat, 7=Sun). Example: 1,2,4,5"
                )
            changes = {"active_days": days}
        elif key == "role":
            role = clean_role(value)
            if not role:
                raise InvalidConfigError(
                    "role cannot be empty. Example: presenter, reviewer, facilitator"
                )
            changes = {"role": role}
        else:
            raise InvalidConfigError(
                "invalid configuration type. Use 'time', 'days', or 'role'"
            )

        with self.data_manager.session() as stores:
            schedule = self._get_or_create_schedule(stores, channel_id)
            for attr, new_value in changes.items():
                setattr(schedule, attr, new_value)
            schedule = stores.schedules.update(schedule)

        logger.info(f"Channel {channel_id} config updated: {key}={value!r}")
        self._config_changed()
        return schedule

    def set_enabled(self, channel_id: int, enabled: bool) -> bool:
        """Pause or resume notifications. Returns False if already in that state."""
        with self.data_manager.session() as stores:
            schedule = stores.schedules.get_by_channel(channel_id)
            created = schedule is None
            if created:
                schedule = stores.schedules.create(default_schedule(channel_id))
            changed = schedule.is_enabled != enabled
            if changed:
                stores.schedules.set_enabled(channel_id, enabled)

        if changed:
            state = "resumed" if enabled else "paused"
            logger.info(f"Channel {channel_id} notifications {state}")
        if created or changed:
            self._config_changed()
        return changed

    def pause(self, channel_id: int) -> bool:
        return self.set_enabled(channel_id, False)

    def resume(self, channel_id: int) -> bool:
        return self.set_enabled(channel_id, True)
