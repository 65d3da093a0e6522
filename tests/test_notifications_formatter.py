from unittest.mock import MagicMock

from src.notifications.formatter import (
    format_config,
    format_member_list,
    format_no_members,
    format_rotation_reminder,
    format_status,
)


def _make_member(member_id, external_id, name):
    member = MagicMock()
    member.id = member_id
    member.external_id = external_id
    member.name = name
    return member


def _make_channel(name="standup", is_active=True):
    channel = MagicMock()
    channel.name = name
    channel.is_active = is_active
    return channel


def _make_schedule(time="09:00", days=(1, 2, 3, 4, 5), enabled=True, role="On duty"):
    schedule = MagicMock()
    schedule.notification_time = time
    schedule.active_days = list(days)
    schedule.is_enabled = enabled
    schedule.role = role
    return schedule


class TestReminder:
    def test_mentions_member_with_role(self):
        text = format_rotation_reminder("Presenter", _make_member(1, "U1", "Alice"))

        assert text.startswith("🎯 *Rotation Reminder*")
        assert "Presenter today: <@U1>" in text
        assert "/rotation next" in text

    def test_no_members(self):
        assert "No users found in rotation" in format_no_members()


class TestMemberList:
    def test_numbered_with_current_highlighted(self):
        alice = _make_member(1, "U1", "Alice")
        bob = _make_member(2, "U2", "Bob")

        text = format_member_list([alice, bob], current=bob, role="Reviewer")

        assert text.splitlines() == [
            "*Members in rotation:*",
            "1. Alice",
            "👉 2. Bob *(Reviewer today)*",
        ]

    def test_without_current(self):
        text = format_member_list([_make_member(1, "U1", "Alice")], current=None)
        assert "👉" not in text


class TestConfig:
    def test_shows_settings(self):
        text = format_config(_make_channel(), _make_schedule(days=(1, 3), enabled=False))

        assert "#standup" in text
        assert "*Notification Time:* 09:00" in text
        assert "*Active Days:* Monday, Wednesday" in text
        assert "*Scheduler Status:* Disabled" in text


class TestStatus:
    def test_full_status(self):
        text = format_status(
            _make_channel(),
            _make_schedule(role="Presenter"),
            member_count=3,
            current=_make_member(1, "U1", "Alice"),
            upcoming=_make_member(2, "U2", "Bob"),
            timezone="Europe/Lisbon",
        )

        assert "*Scheduler Status:* Enabled ✅" in text
        assert "09:00 Europe/Lisbon" in text
        assert "*Total Members:* 3" in text
        assert "*Current Presenter:* <@U1>" in text
        assert "*Next Presenter:* <@U2>" in text

    def test_without_schedule_or_members(self):
        text = format_status(_make_channel(), None, 0, None, None)

        assert "*Scheduler:* Not configured" in text
        assert "*Current On duty:* None" in text
        assert "*Next On duty:* None" in text
