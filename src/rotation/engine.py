from __future__ import annotations

from typing import Optional

from loguru import logger

from src.db.repositories import DataManager, Stores
from src.models import Member
from src.rotation.errors import NoActiveMembersError


class RotationEngine:
    """Round-robin selection over a channel roster.

    The member flagged ``is_last_presenter`` is the rotation cursor. The next
    presenter is the one after it in join order, wrapping around; when nobody
    is flagged, or the flagged member left the roster, the rotation restarts
    at the first member.
    """

    def __init__(self, data_manager: DataManager):
        self.data_manager = data_manager

    def next_presenter(self, channel_id: int) -> Member:
        with self.data_manager.session() as stores:
            members = stores.members.list_active_by_channel(channel_id)
            if not members:
                raise NoActiveMembersError(channel_id)

            last = stores.members.get_last_presenter(channel_id)

        if last is None:
            return members[0]

        ids = [m.id for m in members]
        if last.id not in ids:
            return members[0]

        return members[(ids.index(last.id) + 1) % len(members)]

    def record_presentation(self, channel_id: int, member_id: int) -> None:
        def _commit(stores: Stores) -> None:
            stores.members.clear_last_presenter(channel_id)
            stores.members.set_last_presenter(channel_id, member_id)

        self.data_manager.with_transaction(_commit)
        logger.debug(f"Recorded presentation: channel={channel_id} member={member_id}")

    def current_presenter(self, channel_id: int) -> Optional[Member]:
        with self.data_manager.session() as stores:
            return stores.members.get_last_presenter(channel_id)
