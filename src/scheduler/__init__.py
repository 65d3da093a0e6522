"""Notification scheduler for channel rotations.

Each enabled channel schedule fires at its HH:MM (reference zone, UTC by
default) on its active ISO weekdays. The loop sleeps until the nearest such
instant, notifies every channel due at exactly that instant, then recomputes.
Schedule edits wake it through ``NotificationScheduler.notify_config_changed``.
"""
