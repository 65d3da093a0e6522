from __future__ import annotations

from typing import List, Optional

from src.models import DEFAULT_ROLE, Channel, Member, ScheduleConfig
from src.scheduler.timing import format_days


def mention(member: Member) -> str:
    return f"<@{member.external_id}>"


def format_rotation_reminder(role: str, member: Member) -> str:
    return (
        "🎯 *Rotation Reminder*\n\n"
        f"{role} today: {mention(member)}\n\n"
        "Use `/rotation next` to skip to the next person if needed."
    )


def format_no_members() -> str:
    return (
        "🤖 *Rotation Reminder*\n\n"
        "No users found in rotation. Use `/rotation add @user` to add team members!"
    )


def format_member_list(
    members: List[Member], current: Optional[Member], role: str = DEFAULT_ROLE
) -> str:
    """Numbered roster, highlighting the current presenter."""
    lines = ["*Members in rotation:*"]
    for i, member in enumerate(members, start=1):
        if current is not None and member.id == current.id:
            lines.append(f"👉 {i}. {member.name} *({role} today)*")
        else:
            lines.append(f"{i}. {member.name}")
    return "\n".join(lines)


def format_config(channel: Channel, schedule: ScheduleConfig) -> str:
    return (
        f"📋 *Current Configuration for #{channel.name}*\n\n"
        f"⏰ *Notification Time:* {schedule.notification_time}\n"
        f"📅 *Active Days:* {format_days(schedule.active_days)}\n"
        f"🎭 *Role:* {schedule.role}\n"
        f"🔔 *Channel Status:* {'Active' if channel.is_active else 'Inactive'}\n"
        f"📅 *Scheduler Status:* {'Enabled' if schedule.is_enabled else 'Disabled'}"
    )


def format_status(
    channel: Channel,
    schedule: Optional[ScheduleConfig],
    member_count: int,
    current: Optional[Member],
    upcoming: Optional[Member],
    timezone: str = "UTC",
) -> str:
    role = schedule.role if schedule is not None and schedule.role else DEFAULT_ROLE

    lines = [
        f"📊 *Rotation Status for #{channel.name}*",
        "",
        f"🔔 *Channel Status:* {'Active' if channel.is_active else 'Inactive'}",
    ]
    if schedule is not None:
        lines += [
            f"📅 *Scheduler Status:* {'Enabled ✅' if schedule.is_enabled else 'Paused ⏸️'}",
            f"⏰ *Notification Time:* {schedule.notification_time} {timezone}",
            f"📅 *Active Days:* {format_days(schedule.active_days)}",
            f"🎭 *Role:* {schedule.role}",
        ]
    else:
        lines.append("📅 *Scheduler:* Not configured")

    lines += [
        "",
        f"👥 *Total Members:* {member_count}",
        f"🎯 *Current {role}:* {mention(current) if current else 'None'}",
        f"⏭️ *Next {role}:* {mention(upcoming) if upcoming else 'None'}",
        "",
        "💡 Use `/rotation help` to see all available commands.",
    ]
    return "\n".join(lines)
