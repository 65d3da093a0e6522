from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List


class CommandType(enum.Enum):
    add = "add"
    remove = "remove"
    list = "list"
    config = "config"
    next = "next"
    pause = "pause"
    resume = "resume"
    status = "status"
    help = "help"


_ALIASES = {
    "add": CommandType.add,
    "remove": CommandType.remove,
    "rm": CommandType.remove,
    "list": CommandType.list,
    "ls": CommandType.list,
    "config": CommandType.config,
    "next": CommandType.next,
    "pause": CommandType.pause,
    "resume": CommandType.resume,
    "status": CommandType.status,
    "help": CommandType.help,
}


class UnknownCommandError(ValueError):
    pass


@dataclass
class Command:
    type: CommandType
    args: List[str] = field(default_factory=list)
    raw: str = ""


def parse_command(text: str) -> Command:
    """Parse the text following ``/rotation``. Empty text means help."""
    parts = (text or "").split()
    if not parts:
        return Command(type=CommandType.help, raw=text or "")

    command_type = _ALIASES.get(parts[0])
    if command_type is None:
        raise UnknownCommandError(f"unknown command: {parts[0]}")
    return Command(type=command_type, args=parts[1:], raw=text)


def extract_user_id(mention: str) -> str:
    """``<@U123>`` or ``<@U123|name>`` -> ``U123``."""
    inner = mention.strip().removeprefix("<@").removesuffix(">")
    return inner.split("|", 1)[0]


def extract_mention_name(mention: str) -> str:
    """Username from ``<@U123|name>``, empty if the mention carries none."""
    inner = mention.strip().removeprefix("<@").removesuffix(">")
    if "|" in inner:
        return inner.split("|", 1)[1]
    return ""


HELP_TEXT = """*Available Commands:*

*Configuration:*
• `/rotation config time HH:MM` - Set notification time (ex: 09:30)
• `/rotation config days 1,2,4,5` - Set active days (1=Mon, 2=Tue, 3=Wed, 4=Thu, 5=Fri, 6=Sat, 7=Sun)
• `/rotation config role NAME` - Set role name (ex: presenter, "Code reviewer") - quotes optional
• `/rotation config show` - Show current settings

*Manage Members:*
• `/rotation add @user` - Add member to rotation
• `/rotation remove @user` - Remove member from rotation
• `/rotation list` - List all members

*Rotation:*
• `/rotation next` - Skip to next presenter

*Control:*
• `/rotation pause` - Pause automatic notifications
• `/rotation resume` - Resume automatic notifications
• `/rotation status` - Show bot status for this channel"""
