#!/usr/bin/env python3
"""Tests for reminder stores and YAML serialization."""
from datetime import datetime, timedelta, timezone

import pytest
import yaml

from reminders import (
    Category,
    MemoryReminderStore,
    OilChangeEnrichment,
    Principal,
    Reminder,
    ReminderKind,
    ReminderNotFoundError,
    ReminderStatus,
    Threshold,
    YamlReminderStore,
)
from reminders.store import matches_category, parse_reminder, reminder_to_dict

ALICE = Principal("alice")
BOB = Principal("bob")


def oil_reminder(car_id="c1", **kwargs):
    return Reminder(
        car_id=car_id,
        kind=ReminderKind.BOTH,
        title="次回オイル交換",
        due_date=datetime(2024, 7, 10),
        due_odometer_km=55000,
        threshold=Threshold(months_offset=6, km_offset=5000),
        category=Category.OIL_CHANGE,
        **kwargs,
    )


@pytest.fixture(params=["memory", "yaml"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryReminderStore()
    return YamlReminderStore(tmp_path / "reminders")


class TestStoreContract:
    """Behaviour shared by every ReminderStore."""

    def test_save_assigns_id_and_timestamps(self, store):
        reminder = oil_reminder()
        reminder_id = store.save(ALICE, reminder)
        assert reminder_id
        assert reminder.id == reminder_id
        assert reminder.created_at is not None
        assert reminder.updated_at is not None

    def test_get_returns_saved_values(self, store):
        reminder = oil_reminder(base_entry_ref="e1", notes="auto-generated: oil change")
        store.save(ALICE, reminder)
        loaded = store.get(ALICE, reminder.id)
        assert loaded.title == "次回オイル交換"
        assert loaded.kind == ReminderKind.BOTH
        assert loaded.due_date == datetime(2024, 7, 10)
        assert loaded.due_odometer_km == 55000
        assert loaded.base_entry_ref == "e1"
        assert loaded.threshold == Threshold(months_offset=6, km_offset=5000)
        assert loaded.category == Category.OIL_CHANGE
        assert loaded.status == ReminderStatus.ACTIVE

    def test_save_existing_updates_in_place(self, store):
        reminder = oil_reminder()
        store.save(ALICE, reminder)
        reminder.status = ReminderStatus.DONE
        store.save(ALICE, reminder)
        assert len(store.list_all(ALICE)) == 1
        assert store.get(ALICE, reminder.id).status == ReminderStatus.DONE

    def test_scoped_by_principal(self, store):
        reminder = oil_reminder()
        store.save(ALICE, reminder)
        assert store.get(BOB, reminder.id) is None
        assert store.list_all(BOB) == []

    def test_delete(self, store):
        reminder = oil_reminder()
        store.save(ALICE, reminder)
        store.delete(ALICE, reminder.id)
        assert store.get(ALICE, reminder.id) is None

    def test_delete_missing_raises(self, store):
        with pytest.raises(ReminderNotFoundError):
            store.delete(ALICE, "nope")

    def test_list_by_car(self, store):
        store.save(ALICE, oil_reminder("c1"))
        store.save(ALICE, oil_reminder("c2"))
        assert [r.car_id for r in store.list_by_car(ALICE, "c1")] == ["c1"]

    def test_find_by_category_and_legacy_title(self, store):
        store.save(ALICE, oil_reminder())
        legacy = Reminder(car_id="c1", kind=ReminderKind.TIME, title="エンジンオイル")
        store.save(ALICE, legacy)
        other = Reminder(
            car_id="c1", kind=ReminderKind.TIME, title="次回ブレーキフルード交換",
            category=Category.BRAKE_FLUID,
        )
        store.save(ALICE, other)
        found = store.find(ALICE, "c1", Category.OIL_CHANGE)
        assert len(found) == 2
        assert other.id not in [r.id for r in found]


class TestMemoryStoreIsolation:
    """MemoryReminderStore hands out copies."""

    def test_mutating_loaded_copy_does_not_touch_store(self):
        store = MemoryReminderStore()
        reminder = oil_reminder()
        store.save(ALICE, reminder)
        loaded = store.get(ALICE, reminder.id)
        loaded.status = ReminderStatus.DONE
        assert store.get(ALICE, reminder.id).status == ReminderStatus.ACTIVE


class TestMatchesCategory:
    """Tests for matches_category."""

    def test_explicit_category_wins_over_title(self):
        reminder = Reminder(
            car_id="c1", kind=ReminderKind.TIME, title="オイル交換の予約",
            category=Category.OIL_FILTER,
        )
        assert not matches_category(reminder, Category.OIL_CHANGE)
        assert matches_category(reminder, Category.OIL_FILTER)


class TestYamlFormat:
    """Tests for the YAML file layout."""

    def test_file_per_principal(self, tmp_path):
        store = YamlReminderStore(tmp_path)
        store.save(ALICE, oil_reminder())
        assert (tmp_path / "alice.yaml").exists()

    def test_unsafe_user_id_sanitized(self, tmp_path):
        store = YamlReminderStore(tmp_path)
        assert store.path_for(Principal("../evil")).parent == tmp_path

    def test_camel_case_keys_without_none(self, tmp_path):
        store = YamlReminderStore(tmp_path)
        reminder = Reminder(car_id="c1", kind=ReminderKind.TIME, title="manual")
        store.save(ALICE, reminder)
        data = yaml.safe_load((tmp_path / "alice.yaml").read_text())
        row = data["reminders"][0]
        assert row["carId"] == "c1"
        assert row["kind"] == "time"
        assert row["status"] == "active"
        assert "dueOdoKm" not in row
        assert "baseEntryRef" not in row
        assert "category" not in row

    def test_loads_hand_written_file(self, tmp_path):
        (tmp_path / "alice.yaml").write_text("""
reminders:
  - id: r1
    carId: c1
    kind: distance
    title: 次回タイヤローテーション
    status: snoozed
    dueOdoKm: 60000
    threshold:
      km: 10000
""")
        store = YamlReminderStore(tmp_path)
        reminder = store.get(ALICE, "r1")
        assert reminder.kind == ReminderKind.DISTANCE
        assert reminder.status == ReminderStatus.SNOOZED
        assert reminder.due_odometer_km == 60000
        assert reminder.threshold.km_offset == 10000
        assert reminder.category is None

    def test_enrichment_serialization(self):
        reminder = oil_reminder(id="r1")
        reminder.enrichment = OilChangeEnrichment(
            purchase_candidates=[{"name": "0W-20 4L", "url": "https://example.com/oil"}],
            reservation_url="https://example.com/book",
            oil_spec="0W-20",
            last_oil_change_at=datetime(2024, 1, 10),
        )
        loaded = parse_reminder(reminder_to_dict(reminder))
        assert loaded.enrichment.reservation_url == "https://example.com/book"
        assert loaded.enrichment.purchase_candidates[0]["name"] == "0W-20 4L"
        assert loaded.enrichment.last_oil_change_at == datetime(2024, 1, 10)

    def test_offset_timestamps_loaded_as_naive(self, tmp_path):
        (tmp_path / "alice.yaml").write_text("""
reminders:
  - id: r1
    carId: c1
    kind: time
    title: 車検
    status: active
    dueDate: '2024-01-10T00:00:00+09:00'
    createdAt: 2024-01-01T00:00:00+09:00
""")
        reminder = YamlReminderStore(tmp_path).get(ALICE, "r1")
        jst = timezone(timedelta(hours=9))
        assert reminder.due_date.tzinfo is None
        assert reminder.due_date == datetime(2024, 1, 10, tzinfo=jst).astimezone().replace(tzinfo=None)
        assert reminder.created_at.tzinfo is None
