import threading
from datetime import datetime, timedelta, timezone

import pytest

from src.api import services
from src.api.errors import (
    DuplicateNameError,
    FocusTimeNotFoundError,
    HabitNotFoundError,
    InvalidIntervalError,
)
from src.api.repositories import ListQuery


def at(day, hour=12, minute=0):
    return datetime(2024, 3, day, hour, minute, tzinfo=timezone.utc)


class TestToggle:
    def test_toggle_twice_restores_original_state(self, habit_repo):
        habit = services.create_habit(habit_repo, "Read")
        services.toggle_habit(habit_repo, habit["id"], at(4), timezone.utc)
        before = habit_repo.find_by_id(habit["id"])["completed_days"]

        services.toggle_habit(habit_repo, habit["id"], at(5, 9), timezone.utc)
        after = services.toggle_habit(habit_repo, habit["id"], at(5, 9), timezone.utc)
        assert after["completed_days"] == before

    def test_instants_on_same_day_toggle_the_same_key(self, habit_repo):
        habit = services.create_habit(habit_repo, "Meditate")
        first = services.toggle_habit(habit_repo, habit["id"], at(5, 0, 1), timezone.utc)
        assert first["completed_days"] == ["2024-03-05T00:00:00+00:00"]
        second = services.toggle_habit(habit_repo, habit["id"], at(5, 23, 59), timezone.utc)
        assert second["completed_days"] == []

    def test_different_days_accumulate(self, habit_repo):
        habit = services.create_habit(habit_repo, "Run")
        services.toggle_habit(habit_repo, habit["id"], at(6), timezone.utc)
        updated = services.toggle_habit(habit_repo, habit["id"], at(5), timezone.utc)
        assert updated["completed_days"] == [
            "2024-03-05T00:00:00+00:00",
            "2024-03-06T00:00:00+00:00",
        ]

    def test_toggle_unknown_habit(self, habit_repo):
        with pytest.raises(HabitNotFoundError):
            services.toggle_habit(habit_repo, 999, at(5), timezone.utc)

    def test_concurrent_toggles_of_same_day_cancel_out(self, habit_repo):
        habit = services.create_habit(habit_repo, "Stretch")
        barrier = threading.Barrier(8, timeout=5)

        def worker():
            barrier.wait()
            services.toggle_habit(habit_repo, habit["id"], at(5, 8), timezone.utc)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert habit_repo.find_by_id(habit["id"])["completed_days"] == []

    def test_toggle_is_a_single_store_call(self, habit_repo, monkeypatch):
        habit = services.create_habit(habit_repo, "Stretch")

        def fail(*args):
            raise AssertionError("toggle must not read before it writes")

        for name in ("find_by_id", "add_completed_day", "remove_completed_day"):
            monkeypatch.setattr(habit_repo, name, fail)
        updated = services.toggle_habit(habit_repo, habit["id"], at(5), timezone.utc)
        assert updated["completed_days"] == ["2024-03-05T00:00:00+00:00"]


class TestDirectory:
    def test_duplicate_name_rejected(self, habit_repo):
        services.create_habit(habit_repo, "Read")
        with pytest.raises(DuplicateNameError):
            services.create_habit(habit_repo, "Read")

    def test_names_are_case_sensitive(self, habit_repo):
        services.create_habit(habit_repo, "Read")
        services.create_habit(habit_repo, "read")
        assert [h["name"] for h in services.list_habits(habit_repo)] == ["Read", "read"]

    def test_store_rejects_duplicate_that_slipped_past_lookup(self, habit_repo, monkeypatch):
        services.create_habit(habit_repo, "Read")
        # Simulate a concurrent create landing between the lookup and the insert
        monkeypatch.setattr(habit_repo, "find_by_name", lambda name: None)
        with pytest.raises(DuplicateNameError):
            services.create_habit(habit_repo, "Read")

    def test_list_sorted_by_name(self, habit_repo):
        for name in ["Walk", "Drink water", "Journal", "Code"]:
            services.create_habit(habit_repo, name)
        names = [h["name"] for h in services.list_habits(habit_repo)]
        assert names == ["Code", "Drink water", "Journal", "Walk"]

    def test_remove(self, habit_repo):
        habit = services.create_habit(habit_repo, "Floss")
        services.remove_habit(habit_repo, habit["id"])
        assert habit_repo.find_by_id(habit["id"]) is None
        with pytest.raises(HabitNotFoundError):
            services.remove_habit(habit_repo, habit["id"])

    def test_get(self, habit_repo):
        habit = services.create_habit(habit_repo, "Floss")
        assert services.get_habit(habit_repo, habit["id"])["name"] == "Floss"
        with pytest.raises(HabitNotFoundError):
            services.get_habit(habit_repo, 12345)

    def test_returned_habits_do_not_alias_store(self, habit_repo):
        habit = services.create_habit(habit_repo, "Floss")
        habit["completed_days"].append("bogus")
        listed = services.list_habits(habit_repo)
        listed[0]["completed_days"].append("bogus")
        assert habit_repo.find_by_id(habit["id"])["completed_days"] == []


class TestFocusTime:
    def test_end_before_start_rejected(self, focus_repo):
        with pytest.raises(InvalidIntervalError):
            services.record_focus_time(
                focus_repo,
                datetime(2024, 1, 1, 10, 0),
                datetime(2024, 1, 1, 9, 0),
            )
        assert focus_repo.list()[1] == 0

    def test_equal_instants_allowed_and_stored_as_given(self, focus_repo):
        instant = datetime(2024, 1, 1, 9, 0, 17, 250000)
        created = services.record_focus_time(focus_repo, instant, instant)
        assert created["time_from"] == instant
        assert created["time_to"] == instant
        assert services.get_focus_time(focus_repo, created["id"]) == created

    def test_get_unknown(self, focus_repo):
        with pytest.raises(FocusTimeNotFoundError):
            services.get_focus_time(focus_repo, 1)

    def test_list_pagination(self, focus_repo):
        for hour in (9, 7, 8):
            services.record_focus_time(focus_repo, datetime(2024, 1, 1, hour), datetime(2024, 1, 1, hour, 30))
        items, total = services.list_focus_times(focus_repo, ListQuery(limit=2, offset=0, sort="time_from"))
        assert total == 3
        assert [i["time_from"].hour for i in items] == [7, 8]
        items, _ = services.list_focus_times(focus_repo, ListQuery(limit=2, offset=0, sort="-time_from"))
        assert [i["time_from"].hour for i in items] == [9, 8]

    def test_list_orders_by_instant_across_offsets(self, focus_repo):
        plus_five = timezone(timedelta(hours=5))
        # 10:00+05:00 is 05:00 UTC, earlier than 06:00 UTC
        early = services.record_focus_time(
            focus_repo, datetime(2024, 1, 1, 10, tzinfo=plus_five), datetime(2024, 1, 1, 11, tzinfo=plus_five)
        )
        late = services.record_focus_time(
            focus_repo, datetime(2024, 1, 1, 6, tzinfo=timezone.utc), datetime(2024, 1, 1, 7, tzinfo=timezone.utc)
        )
        items, _ = services.list_focus_times(focus_repo, ListQuery(sort="time_from"))
        assert [i["id"] for i in items] == [early["id"], late["id"]]
        items, _ = services.list_focus_times(focus_repo, ListQuery(sort="-time_from"))
        assert [i["id"] for i in items] == [late["id"], early["id"]]
