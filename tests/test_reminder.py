#!/usr/bin/env python3
"""Tests for Reminder and ReminderDue."""
from datetime import datetime

import pytest

from reminders import Priority, Reminder, ReminderDue, ReminderKind, ReminderStatus, Threshold
from reminders.reminder import auto_generated_note


class TestReminder:
    """Tests for Reminder."""

    def test_defaults(self):
        reminder = Reminder(car_id="c1", kind=ReminderKind.TIME, title="t")
        assert reminder.status == ReminderStatus.ACTIVE
        assert reminder.threshold.is_empty
        assert reminder.notes == ""
        assert reminder.id is None
        assert reminder.is_open

    def test_negative_odometer_rejected(self):
        with pytest.raises(ValueError):
            Reminder(car_id="c1", kind=ReminderKind.DISTANCE, title="t", due_odometer_km=-1)

    def test_closed_states(self):
        for status in (ReminderStatus.DONE, ReminderStatus.DISMISSED):
            assert not Reminder(car_id="c1", kind=ReminderKind.TIME, title="t", status=status).is_open
        snoozed = Reminder(car_id="c1", kind=ReminderKind.TIME, title="t", status=ReminderStatus.SNOOZED)
        assert snoozed.is_open

    def test_auto_generated(self):
        auto = Reminder(car_id="c1", kind=ReminderKind.TIME, title="t", notes=auto_generated_note("shaken"))
        assert auto.notes == "auto-generated: shaken"
        assert auto.is_auto_generated
        manual = Reminder(car_id="c1", kind=ReminderKind.TIME, title="t", notes="bring coupon")
        assert not manual.is_auto_generated

    def test_threshold(self):
        assert not Threshold(months_offset=6).is_empty
        assert not Threshold(km_offset=5000).is_empty


class TestReminderDue:
    """Tests for ReminderDue helpers."""

    def due(self, days):
        reminder = Reminder(car_id="c1", kind=ReminderKind.TIME, title="t", due_date=datetime(2024, 1, 1))
        return ReminderDue(reminder=reminder, is_due=days is not None and days <= 0,
                           priority=Priority.LOW, days_remaining=days)

    def test_overdue(self):
        assert self.due(-1).is_overdue
        assert not self.due(0).is_overdue
        assert not self.due(None).is_overdue

    def test_this_week(self):
        assert self.due(0).is_this_week
        assert self.due(7).is_this_week
        assert not self.due(8).is_this_week
        assert not self.due(-1).is_this_week
