from __future__ import annotations

from typing import Any, Dict, List

from loguru import logger

from src.commands.parser import (
    HELP_TEXT,
    Command,
    CommandType,
    UnknownCommandError,
    extract_mention_name,
    extract_user_id,
    parse_command,
)
from src.models import DEFAULT_ROLE, Channel
from src.notifications.formatter import format_config, format_member_list, format_status
from src.rotation.errors import NoActiveMembersError, RotationError
from src.rotation.service import CONFIG_KEYS, RotationService

EPHEMERAL = "ephemeral"
IN_CHANNEL = "in_channel"

AUTO_SETUP_FEEDBACK = (
    "✅ *Channel configured automatically with default settings:*\n"
    "⏰ Time: 09:00 | 📅 Days: Mon, Tue, Wed, Thu, Fri\n"
    "Use `/rotation config show` to view or `/rotation config` to customize.\n\n"
)


def respond(text: str, response_type: str = EPHEMERAL) -> Dict[str, Any]:
    return {"response_type": response_type, "text": text}


def error_response(message: str) -> Dict[str, Any]:
    return respond(f"❌ {message}")


def _summarize(items: List[str], one: str, many: str) -> str:
    if len(items) == 1:
        return one.format(items[0])
    return many.format(len(items), ", ".join(items))


class CommandHandler:
    """Turns ``/rotation`` slash commands into rotation service calls."""

    def __init__(self, service: RotationService, timezone: str = "UTC"):
        self.service = service
        self.timezone = timezone

    def handle(
        self, text: str, channel_id: str, channel_name: str = "", team_id: str = ""
    ) -> Dict[str, Any]:
        try:
            command = parse_command(text)
        except UnknownCommandError as e:
            return error_response(str(e))

        if command.type == CommandType.help:
            return respond(HELP_TEXT)

        try:
            channel, created = self.service.setup_channel(channel_id, channel_name, team_id)
        except Exception as e:
            logger.error(f"Error setting up channel {channel_id}: {e}")
            return error_response("Error checking channel")

        feedback = AUTO_SETUP_FEEDBACK if created else ""
        handlers = {
            CommandType.add: self._add,
            CommandType.remove: self._remove,
            CommandType.list: self._list,
            CommandType.config: self._config,
            CommandType.next: self._next,
            CommandType.pause: self._pause,
            CommandType.resume: self._resume,
            CommandType.status: self._status,
        }
        return handlers[command.type](command, channel, feedback)

    def _user_label(self, user_id: str, mention: str) -> str:
        """Best name for a user we failed to act on."""
        info = self.service.sender.get_user_info(user_id)
        if info:
            profile = info.get("profile") or {}
            name = profile.get("real_name") or profile.get("display_name") or info.get("name")
            if name:
                return name
        return extract_mention_name(mention) or user_id

    def _add(self, command: Command, channel: Channel, feedback: str) -> Dict[str, Any]:
        if not command.args:
            return error_response("Please mention at least one user: `/rotation add @user1 @user2`")

        added, failed = [], []
        for mention in command.args:
            user_id = extract_user_id(mention)
            try:
                self.service.add_member(channel.id, user_id)
            except Exception as e:
                logger.error(f"Error adding user {user_id}: {e}")
                failed.append(self._user_label(user_id, mention))
                continue
            added.append(f"<@{user_id}>")

        lines = []
        if added:
            lines.append(_summarize(
                added,
                "✅ {} has been added to the rotation!",
                "✅ {} users added to the rotation: {}",
            ))
        if failed:
            lines.append(_summarize(
                failed, "❌ Failed to add: {}", "❌ Failed to add {} users: {}"
            ))
        return respond(feedback + "\n".join(lines), IN_CHANNEL if added else EPHEMERAL)

    def _remove(self, command: Command, channel: Channel, feedback: str) -> Dict[str, Any]:
        if not command.args:
            return error_response(
                "Please mention at least one user: `/rotation remove @user1 @user2`"
            )

        removed, failed = [], []
        for mention in command.args:
            user_id = extract_user_id(mention)
            try:
                member = self.service.remove_member(channel.id, user_id)
            except Exception as e:
                logger.error(f"Error removing user {user_id}: {e}")
                failed.append(self._user_label(user_id, mention))
                continue
            removed.append(member.name)

        lines = []
        if removed:
            lines.append(_summarize(
                removed,
                "✅ {} has been removed from the rotation.",
                "✅ {} users removed from the rotation: {}",
            ))
        if failed:
            lines.append(_summarize(
                failed, "❌ Failed to remove: {}", "❌ Failed to remove {} users: {}"
            ))
        return respond(feedback + "\n".join(lines), IN_CHANNEL if removed else EPHEMERAL)

    def _list(self, command: Command, channel: Channel, feedback: str) -> Dict[str, Any]:
        members = self.service.list_members(channel.id)
        if not members:
            return respond(
                feedback + "No users in rotation. Use `/rotation add @user` to add members."
            )
        schedule = self.service.get_schedule(channel.id)
        role = schedule.role if schedule is not None and schedule.role else DEFAULT_ROLE
        current = self.service.current_presenter(channel.id)
        return respond(feedback + format_member_list(members, current, role))

    def _config(self, command: Command, channel: Channel, feedback: str) -> Dict[str, Any]:
        if not command.args:
            return error_response(
                "Use: `/rotation config time HH:MM` or `/rotation config days 1,2,4,5`"
            )

        if command.args[0] == "show":
            schedule = self.service.get_schedule(channel.id)
            if schedule is None:
                return respond(feedback + "📅 *Scheduler:* Not configured")
            return respond(feedback + format_config(channel, schedule))

        if len(command.args) < 2 or command.args[0] not in CONFIG_KEYS:
            return error_response(
                "Invalid format. Use: `/rotation config time HH:MM` or "
                "`/rotation config days 1,2,4,5`"
            )

        key, value = command.args[0], " ".join(command.args[1:])
        try:
            self.service.update_config(channel.id, key, value)
        except RotationError as e:
            return error_response(f"Error updating configuration: {e}")
        return respond(feedback + f"✅ Configuration updated: {key} = {value}")

    def _next(self, command: Command, channel: Channel, feedback: str) -> Dict[str, Any]:
        try:
            member = self.service.advance(channel.id)
        except NoActiveMembersError as e:
            return error_response(f"Error determining next presenter: {e}")
        except Exception as e:
            logger.error(f"Error advancing rotation for channel {channel.id}: {e}")
            return error_response("Error recording new presenter")
        return respond(
            feedback + f"⏭️ Skipping to next presenter: <@{member.external_id}>", IN_CHANNEL
        )

    def _pause(self, command: Command, channel: Channel, feedback: str) -> Dict[str, Any]:
        if not self.service.pause(channel.id):
            return respond(feedback + "⏸️ Notifications are already paused for this channel.")
        return respond(
            feedback + "⏸️ Daily rotation notifications have been paused. "
            "Use `/rotation resume` to re-enable them."
        )

    def _resume(self, command: Command, channel: Channel, feedback: str) -> Dict[str, Any]:
        if not self.service.resume(channel.id):
            return respond(feedback + "▶️ Notifications are already enabled for this channel.")
        return respond(feedback + "▶️ Daily rotation notifications have been resumed.")

    def _status(self, command: Command, channel: Channel, feedback: str) -> Dict[str, Any]:
        members = self.service.list_members(channel.id)
        try:
            upcoming = self.service.next_presenter(channel.id)
        except NoActiveMembersError:
            upcoming = None
        text = format_status(
            channel,
            self.service.get_schedule(channel.id),
            len(members),
            self.service.current_presenter(channel.id),
            upcoming,
            self.timezone,
        )
        return respond(feedback + text)
