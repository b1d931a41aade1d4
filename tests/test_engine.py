#!/usr/bin/env python3
"""Tests for ReminderEngine."""
from datetime import datetime

import pytest

from reminders import (
    Category,
    EngineConfig,
    InvalidTransitionError,
    MemoryReminderStore,
    Principal,
    Priority,
    Reminder,
    ReminderEngine,
    ReminderKind,
    ReminderNotFoundError,
    ReminderStatus,
    UnauthenticatedError,
    VehicleProfile,
)

USER = Principal("u1")
NOW = datetime(2024, 6, 15)


class FakeVehicles:
    def __init__(self, odometer=None):
        self.odometer = odometer

    def current_odometer_km(self, principal, car_id):
        return self.odometer


class FakeAudit:
    def __init__(self):
        self.events = []

    def record(self, principal, action, reminder):
        self.events.append((action, reminder.id))


@pytest.fixture
def store():
    return MemoryReminderStore()


@pytest.fixture
def engine(store):
    return ReminderEngine(store)


def time_reminder(title="manual", due=datetime(2024, 6, 20), **kwargs):
    return Reminder(car_id="c1", kind=ReminderKind.TIME, title=title, due_date=due, **kwargs)


class TestEvaluation:
    """Evaluation helpers resolve the odometer from the vehicle provider."""

    def test_odometer_from_vehicle_provider(self, store):
        engine = ReminderEngine(store, vehicles=FakeVehicles(odometer=54500))
        reminder = Reminder(car_id="c1", kind=ReminderKind.DISTANCE, title="t", due_odometer_km=55000)
        assert engine.distance_until_due(USER, reminder) == 500
        assert engine.priority(USER, reminder, now=NOW) == Priority.HIGH
        assert not engine.is_due(USER, reminder, now=NOW)

    def test_explicit_odometer_wins(self, store):
        engine = ReminderEngine(store, vehicles=FakeVehicles(odometer=10000))
        reminder = Reminder(car_id="c1", kind=ReminderKind.DISTANCE, title="t", due_odometer_km=55000)
        assert engine.is_due(USER, reminder, current_odometer_km=55000)

    def test_days_until_due(self, engine):
        assert engine.days_until_due(USER, time_reminder(), now=NOW) == 5

    def test_evaluation_requires_principal(self, engine):
        with pytest.raises(UnauthenticatedError):
            engine.is_due(None, time_reminder())
        with pytest.raises(UnauthenticatedError):
            engine.priority(None, time_reminder())


class TestRemindersForCar:
    """Tests for reminders_for_car."""

    def test_sorted_by_priority_then_days(self, engine):
        engine.create_reminder(USER, time_reminder("later", datetime(2024, 9, 1)))
        engine.create_reminder(USER, time_reminder("overdue", datetime(2024, 6, 1)))
        engine.create_reminder(USER, time_reminder("soon", datetime(2024, 6, 20)))
        engine.create_reminder(USER, time_reminder("this month", datetime(2024, 7, 1)))

        results = engine.reminders_for_car(USER, "c1", now=NOW)

        assert [d.reminder.title for d in results] == ["overdue", "soon", "this month", "later"]
        assert [d.priority for d in results] == [
            Priority.URGENT, Priority.HIGH, Priority.MEDIUM, Priority.LOW,
        ]
        assert results[0].is_due
        assert results[0].is_overdue
        assert results[1].is_this_week

    def test_closed_reminders_hidden_by_default(self, engine):
        done = engine.create_reminder(USER, time_reminder("done"))
        engine.create_reminder(USER, time_reminder("open"))
        engine.mark_done(USER, done.id, now=NOW)

        assert [d.reminder.title for d in engine.reminders_for_car(USER, "c1", now=NOW)] == ["open"]
        assert len(engine.reminders_for_car(USER, "c1", now=NOW, include_closed=True)) == 2

    def test_distance_reminder_uses_vehicle_odometer(self, store):
        engine = ReminderEngine(store, vehicles=FakeVehicles(odometer=60000))
        engine.create_reminder(
            USER, Reminder(car_id="c1", kind=ReminderKind.DISTANCE, title="rotate", due_odometer_km=60000)
        )
        (due,) = engine.reminders_for_car(USER, "c1", now=NOW)
        assert due.is_due
        assert due.km_remaining == 0
        assert due.days_remaining is None


class TestManualReminders:
    """Creating, reading, and deleting reminders."""

    def test_create_forces_active(self, engine):
        reminder = engine.create_reminder(USER, time_reminder(status=ReminderStatus.DONE))
        assert reminder.status == ReminderStatus.ACTIVE
        assert engine.get_reminder(USER, reminder.id).status == ReminderStatus.ACTIVE

    def test_get_missing(self, engine):
        with pytest.raises(ReminderNotFoundError):
            engine.get_reminder(USER, "nope")

    def test_delete(self, engine):
        reminder = engine.create_reminder(USER, time_reminder())
        engine.delete_reminder(USER, reminder.id)
        with pytest.raises(ReminderNotFoundError):
            engine.get_reminder(USER, reminder.id)

    def test_create_requires_principal(self, engine, store):
        with pytest.raises(UnauthenticatedError):
            engine.create_reminder(None, time_reminder())
        assert store.list_all(USER) == []


class TestLifecycle:
    """Status changes persisted through the store."""

    def test_snooze_distance_reminder_keeps_odometer(self, engine):
        reminder = engine.create_reminder(
            USER,
            Reminder(
                car_id="c1",
                kind=ReminderKind.DISTANCE,
                title="次回タイヤローテーション",
                due_odometer_km=60000,
            ),
        )

        snoozed = engine.snooze(USER, reminder.id, 3, now=datetime(2024, 5, 1))

        assert snoozed.status == ReminderStatus.SNOOZED
        assert snoozed.due_date == datetime(2024, 5, 4)
        assert snoozed.due_odometer_km == 60000
        assert snoozed.kind == ReminderKind.DISTANCE
        stored = engine.get_reminder(USER, reminder.id)
        assert stored.status == ReminderStatus.SNOOZED
        assert stored.due_date == datetime(2024, 5, 4)
        assert engine.is_due(USER, stored, current_odometer_km=60000)

    def test_snooze_default_days_from_config(self, store):
        engine = ReminderEngine(store, config=EngineConfig(default_snooze_days=3))
        reminder = engine.create_reminder(USER, time_reminder())
        snoozed = engine.snooze(USER, reminder.id, now=NOW)
        assert snoozed.due_date == datetime(2024, 6, 18)

    def test_snooze_negative_days(self, engine):
        reminder = engine.create_reminder(USER, time_reminder())
        with pytest.raises(ValueError):
            engine.snooze(USER, reminder.id, -1)
        assert engine.get_reminder(USER, reminder.id).status == ReminderStatus.ACTIVE

    def test_snoozed_can_be_snoozed_again(self, engine):
        reminder = engine.create_reminder(USER, time_reminder())
        engine.snooze(USER, reminder.id, 1, now=NOW)
        again = engine.snooze(USER, reminder.id, 2, now=NOW)
        assert again.due_date == datetime(2024, 6, 17)

    def test_done_then_dismiss_rejected(self, engine):
        reminder = engine.create_reminder(USER, time_reminder())
        engine.mark_done(USER, reminder.id)
        with pytest.raises(InvalidTransitionError):
            engine.dismiss(USER, reminder.id)
        assert engine.get_reminder(USER, reminder.id).status == ReminderStatus.DONE

    def test_dismiss(self, engine):
        reminder = engine.create_reminder(USER, time_reminder())
        assert engine.dismiss(USER, reminder.id).status == ReminderStatus.DISMISSED

    def test_missing_reminder(self, engine):
        with pytest.raises(ReminderNotFoundError):
            engine.mark_done(USER, "nope")

    def test_lifecycle_requires_principal(self, engine):
        reminder = engine.create_reminder(USER, time_reminder())
        with pytest.raises(UnauthenticatedError):
            engine.mark_done(None, reminder.id)

    def test_audit_notified(self, store):
        audit = FakeAudit()
        engine = ReminderEngine(store, audit=audit)
        reminder = engine.create_reminder(USER, time_reminder())
        engine.mark_done(USER, reminder.id)
        assert audit.events == [("create", reminder.id), ("done", reminder.id)]

    def test_audit_failure_does_not_fail_operation(self, store):
        class BrokenAudit:
            def record(self, principal, action, reminder):
                raise RuntimeError("audit log offline")

        engine = ReminderEngine(store, audit=BrokenAudit())
        reminder = engine.create_reminder(USER, time_reminder())
        assert engine.mark_done(USER, reminder.id).status == ReminderStatus.DONE
        assert len(engine.dispatcher.failures) == 2


class TestMaintenanceEvents:
    """Engine delegates maintenance events to the coordinator."""

    def test_generate_and_cascade_delete(self, engine, store):
        reminder = engine.generate_from_maintenance_event(
            USER, "c1", "oil change", datetime(2024, 1, 10), 50000, "e1"
        )
        assert reminder.title == "次回オイル交換"
        assert engine.delete_reminders_for_maintenance_event(USER, "c1", "e1") == 1
        assert store.list_all(USER) == []


class TestProvisioning:
    """Starter reminders for a new vehicle."""

    def vehicle(self):
        return VehicleProfile(
            id="c1",
            next_inspection_date=datetime(2024, 8, 1),
            average_km_per_month=1000,
            current_odometer_km=40000,
        )

    def test_preview_does_not_save(self, engine, store):
        specs = engine.generate_initial_reminders(USER, self.vehicle(), now=NOW)
        assert specs
        assert store.list_all(USER) == []

    def test_provision_saves_auto_generated(self, engine, store):
        saved = engine.provision_vehicle(USER, self.vehicle(), now=NOW)
        assert len(saved) == len(store.list_by_car(USER, "c1"))
        assert all(r.is_auto_generated for r in saved)
        assert all(r.status == ReminderStatus.ACTIVE for r in saved)
        categories = {r.category for r in saved}
        assert Category.INSPECTION in categories
        assert Category.AUTO_TAX in categories

    def test_update_inspection_reminder(self, engine, store):
        engine.provision_vehicle(USER, self.vehicle(), now=NOW)
        manual = engine.create_reminder(USER, time_reminder("車検の予約"))

        updated = engine.update_inspection_reminder(USER, "c1", datetime(2026, 8, 1), now=NOW)

        inspections = [r for r in store.list_by_car(USER, "c1") if r.category == Category.INSPECTION]
        assert [r.id for r in inspections] == [updated.id]
        assert updated.due_date == datetime(2026, 8, 1)
        assert store.get(USER, manual.id) is not None

    def test_clear_auto_keeps_manual(self, engine, store):
        saved = engine.provision_vehicle(USER, self.vehicle(), now=NOW)
        manual = engine.create_reminder(USER, time_reminder())
        assert engine.clear_auto_reminders(USER, "c1") == len(saved)
        assert [r.id for r in store.list_by_car(USER, "c1")] == [manual.id]

    def test_clear_all(self, engine, store):
        saved = engine.provision_vehicle(USER, self.vehicle(), now=NOW)
        engine.create_reminder(USER, time_reminder())
        assert engine.clear_all_reminders(USER, "c1") == len(saved) + 1
        assert store.list_by_car(USER, "c1") == []

    def test_provision_requires_principal(self, engine):
        with pytest.raises(UnauthenticatedError):
            engine.provision_vehicle(None, self.vehicle())
