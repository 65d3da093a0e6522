from __future__ import annotations

import enum
import threading
from datetime import datetime
from typing import Callable, Iterable, Optional
from zoneinfo import ZoneInfo

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from loguru import logger

from src.config import get_settings
from src.db.database import get_session_factory
from src.db.repositories import DataManager
from src.models import DEFAULT_ROLE, Channel
from src.notifications.formatter import format_no_members, format_rotation_reminder
from src.notifications.slack import SlackSender
from src.rotation.engine import RotationEngine
from src.rotation.errors import NoActiveMembersError
from src.scheduler.timing import NotificationBatch, find_next_batch


class SchedulerState(enum.Enum):
    stopped = "stopped"
    idle = "idle"
    armed = "armed"
    firing = "firing"


class NotificationScheduler:
    """Sleeps until the nearest schedule instant, then notifies every channel due.

    One daemon thread runs the loop. It waits on a single-slot wake event
    (set by config changes and by shutdown) with the time left until the next
    instant as timeout. Deliveries run as one-off jobs on an APScheduler
    thread pool and are never joined.
    """

    def __init__(
        self,
        data_manager: DataManager,
        engine: RotationEngine,
        sender: SlackSender,
        timezone: Optional[str] = None,
        idle_interval: Optional[float] = None,
        cooldown: Optional[float] = None,
        max_workers: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        settings = get_settings()
        self.data_manager = data_manager
        self.engine = engine
        self.sender = sender
        self.tz = ZoneInfo(timezone or settings.timezone)
        self.idle_interval = (
            idle_interval if idle_interval is not None else settings.scheduler_idle_interval
        )
        self.cooldown = cooldown if cooldown is not None else settings.scheduler_cooldown
        self.max_workers = max_workers or settings.scheduler_max_workers
        self._clock = clock or (lambda: datetime.now(self.tz))

        self.state = SchedulerState.stopped
        self.next_batch: Optional[NotificationBatch] = None

        self._wake = threading.Event()
        self._stop = threading.Event()
        self._lifecycle_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._delivery: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and not self._stop.is_set()
        )

    def start(self) -> None:
        with self._lifecycle_lock:
            if self._thread is not None:
                return
            self._stop.clear()
            self._wake.clear()
            self._delivery = BackgroundScheduler(
                executors={"default": ThreadPoolExecutor(self.max_workers)},
                timezone=self.tz.key,
            )
            self._delivery.start()
            self._thread = threading.Thread(
                target=self._run, name="rotation-scheduler", daemon=True
            )
            self._thread.start()
        logger.info("Scheduler starting...")

    def stop(self, wait: bool = False) -> None:
        """Interrupt any pending wait and end the loop. Safe to call repeatedly.

        In-flight deliveries are left to finish on their own.
        """
        with self._lifecycle_lock:
            thread = self._thread
            if thread is None:
                return
            logger.info("Scheduler stopping...")
            self._stop.set()
            self._wake.set()
            self._thread = None
            if self._delivery is not None and self._delivery.running:
                self._delivery.shutdown(wait=False)

        if wait:
            thread.join()

    def notify_config_changed(self) -> None:
        """Wake the loop to recompute. Coalesces with any wake not yet consumed."""
        self._wake.set()

    def _wait(self, timeout: float) -> bool:
        """Block until the timeout elapses or a wake arrives. True if woken."""
        woken = self._wake.wait(timeout)
        if woken:
            self._wake.clear()
        return woken

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self._tick()
            except Exception as e:
                logger.exception(f"Scheduler loop error: {e}")
                self._stop.wait(self.cooldown)

        self.state = SchedulerState.stopped
        self.next_batch = None
        logger.info("Scheduler stopped")

    def _tick(self) -> None:
        batch = self.find_next_notification()
        self.next_batch = batch

        if batch is None:
            self.state = SchedulerState.idle
            logger.info(f"No enabled schedules found, waiting {self.idle_interval}s...")
            self._wait(self.idle_interval)
            return

        self.state = SchedulerState.armed
        logger.info(
            f"Next notification at {batch.at:%Y-%m-%d %H:%M:%S %Z} "
            f"for {len(batch.channel_ids)} channels"
        )

        # Elapsed seconds, not wall-clock difference, across DST changes
        delay = batch.at.timestamp() - self._clock().timestamp()
        if delay > 0 and self._wait(delay):
            if not self._stop.is_set():
                logger.info("Configuration changed, recalculating schedule...")
            return
        if self._stop.is_set():
            return

        self.state = SchedulerState.firing
        self.fire(batch.channel_ids)
        logger.info(f"Sent notifications, waiting {self.cooldown}s to prevent re-processing...")
        self._stop.wait(self.cooldown)

    def find_next_notification(
        self, now: Optional[datetime] = None
    ) -> Optional[NotificationBatch]:
        """Earliest instant across enabled schedules and the channels due then."""
        try:
            with self.data_manager.session() as stores:
                schedules = stores.schedules.list_enabled()
        except Exception as e:
            logger.error(f"Error getting enabled schedules: {e}")
            return None

        return find_next_batch(schedules, now or self._clock(), self.tz)

    def fire(self, channel_ids: Iterable[int]) -> None:
        """Start one independent delivery job per channel."""
        channel_ids = list(channel_ids)
        logger.info(f"Sending notifications to {len(channel_ids)} channels")
        for channel_id in channel_ids:
            self._delivery.add_job(
                self.notify_channel,
                args=[channel_id],
                name=f"notify-channel-{channel_id}",
                misfire_grace_time=None,
            )

    def notify_channel(self, channel_id: int) -> bool:
        """Pick the next presenter, advance the rotation and post the reminder.

        Never raises; failures are logged and reported as False.
        """
        try:
            with self.data_manager.session() as stores:
                channel = stores.channels.get_by_id(channel_id)
                schedule = stores.schedules.get_by_channel(channel_id)

            if channel is None:
                logger.error(f"Failed to send notification to channel {channel_id}: channel not found")
                return False

            role = schedule.role if schedule is not None and schedule.role else DEFAULT_ROLE

            try:
                member = self.engine.next_presenter(channel_id)
            except NoActiveMembersError:
                return self._deliver(channel, format_no_members())

            try:
                self.engine.record_presentation(channel_id, member.id)
            except Exception as e:
                # Deliver anyway; the same member may come up again next time
                logger.error(
                    f"Failed to record presentation for channel {channel_id}, "
                    f"member {member.id}: {e}"
                )

            if self._deliver(channel, format_rotation_reminder(role, member)):
                logger.info(
                    f"Notification sent to channel {channel.external_id} "
                    f"for user {member.external_id}"
                )
                return True
            return False
        except Exception as e:
            logger.error(f"Failed to send notification to channel {channel_id}: {e}")
            return False

    def _deliver(self, channel: Channel, text: str) -> bool:
        if not self.sender.send(channel.external_id, text):
            logger.error(f"Failed to send Slack message to channel {channel.external_id}")
            return False
        return True


def create_scheduler(
    data_manager: Optional[DataManager] = None,
    sender: Optional[SlackSender] = None,
) -> NotificationScheduler:
    data_manager = data_manager or DataManager(get_session_factory())
    scheduler = NotificationScheduler(
        data_manager=data_manager,
        engine=RotationEngine(data_manager),
        sender=sender or SlackSender(),
    )
    logger.info("Scheduler configured")
    return scheduler


def start_scheduler(
    data_manager: Optional[DataManager] = None,
    sender: Optional[SlackSender] = None,
) -> NotificationScheduler:
    scheduler = create_scheduler(data_manager, sender)
    scheduler.start()
    logger.info("Scheduler started")
    return scheduler
