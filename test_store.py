import json

import pytest

from phrasecards.store import (
    DAY,
    HOUR,
    MIN,
    DailyQuotaTracker,
    JsonFile,
    ReviewStore,
    next_interval_ms,
)

NOW = 1_700_000_000_000


@pytest.fixture
def reviews(tmp_path):
    store = ReviewStore(JsonFile(tmp_path / "srs.json"), clock=lambda: NOW)
    store.load()
    return store


@pytest.mark.parametrize("grade,interval", [
    (1, 5 * MIN),
    (2, 6 * HOUR),
    (3, 12 * HOUR),
    (4, 3 * DAY),
    (5, 12 * DAY),
    (0, 3 * DAY),
    (9, 3 * DAY),
])
def test_grade_sets_due_time(reviews, grade, interval):
    assert next_interval_ms(grade) == interval
    state = reviews.grade(1, grade)
    assert state.interval_ms == interval
    assert state.due_at - NOW == interval


def test_regrade_overwrites(reviews):
    reviews.grade(4, 5)
    reviews.grade(4, 1)
    state = reviews.get(4)
    assert state.interval_ms == 5 * MIN
    assert state.due_at == NOW + 5 * MIN


def test_grade_is_persisted(tmp_path, reviews):
    reviews.grade(12, 3)
    data = json.loads((tmp_path / "srs.json").read_text(encoding="utf-8"))
    assert data == {"12": {"intervalMs": 12 * HOUR, "dueAt": NOW + 12 * HOUR}}

    reloaded = ReviewStore(JsonFile(tmp_path / "srs.json"))
    reloaded.load()
    assert reloaded.get(12).due_at == NOW + 12 * HOUR


def test_never_graded_is_not_due(reviews):
    assert not reviews.is_due(1, NOW + 100 * DAY)
    assert not reviews.is_learned(1)


def test_due_boundary(reviews):
    reviews.grade(1, 1)
    assert not reviews.is_due(1, NOW + 5 * MIN - 1)
    assert reviews.is_due(1, NOW + 5 * MIN)


def test_learned_threshold(reviews):
    reviews.grade(1, 2)
    reviews.grade(2, 3)
    assert not reviews.is_learned(1)
    assert reviews.is_learned(2)


def test_corrupt_state_file_loads_empty(tmp_path):
    (tmp_path / "srs.json").write_text("{not json", encoding="utf-8")
    store = ReviewStore(JsonFile(tmp_path / "srs.json"))
    store.load()
    assert store.states == {}


def test_daily_rollover_keeps_goal(tmp_path):
    path = tmp_path / "daily.json"
    path.write_text(json.dumps({"day": "2026-10-18", "goodCount": 7, "goal": 10}), encoding="utf-8")
    daily = DailyQuotaTracker(JsonFile(path), today=lambda: "2026-10-19")
    daily.load()

    assert daily.progress() == (0, 10)
    assert json.loads(path.read_text(encoding="utf-8")) == {"day": "2026-10-19", "goodCount": 0, "goal": 10}


def test_daily_counts_good_grades_only(tmp_path):
    daily = DailyQuotaTracker(JsonFile(tmp_path / "daily.json"), today=lambda: "2026-10-19")
    for grade in (1, 2, 3, 4, 5):
        daily.record_outcome(grade)
    assert daily.progress() == (3, 10)


def test_daily_progress_is_clamped_not_storage(tmp_path):
    daily = DailyQuotaTracker(JsonFile(tmp_path / "daily.json"), today=lambda: "2026-10-19")
    daily.set_goal(2)
    for _ in range(5):
        daily.record_outcome(5)
    assert daily.progress() == (2, 2)
    assert daily.quota.good_count == 5
    assert daily.percent() == 100


def test_daily_goal_must_be_positive(tmp_path):
    daily = DailyQuotaTracker(JsonFile(tmp_path / "daily.json"))
    with pytest.raises(ValueError):
        daily.set_goal(0)


def test_save_failure_is_logged_not_raised(tmp_path, caplog):
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    store = ReviewStore(JsonFile(blocker / "srs.json"), clock=lambda: NOW)
    store.grade(1, 3)
    assert store.get(1).interval_ms == 12 * HOUR
    assert "Error saving" in caplog.text


def test_save_failure_leaves_no_temp_file(tmp_path, monkeypatch):
    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("phrasecards.store.os.replace", fail_replace)
    assert not JsonFile(tmp_path / "srs.json").save({"1": {"intervalMs": 1, "dueAt": 2}})
    assert list(tmp_path.iterdir()) == []


@pytest.mark.parametrize("goal", [0, -3, "ten"])
def test_bad_persisted_goal_falls_back(tmp_path, goal):
    path = tmp_path / "daily.json"
    path.write_text(json.dumps({"day": "2026-10-19", "goodCount": 4, "goal": goal}), encoding="utf-8")
    daily = DailyQuotaTracker(JsonFile(path), today=lambda: "2026-10-19")
    daily.load()
    assert daily.progress() == (4, 10)


def test_rollover_on_first_record_outcome(tmp_path):
    path = tmp_path / "daily.json"
    path.write_text(json.dumps({"day": "2026-10-18", "goodCount": 9, "goal": 12}), encoding="utf-8")
    daily = DailyQuotaTracker(JsonFile(path), today=lambda: "2026-10-19")
    daily.load()

    daily.record_outcome(4)
    assert json.loads(path.read_text(encoding="utf-8")) == {"day": "2026-10-19", "goodCount": 1, "goal": 12}


def test_rollover_on_first_set_goal(tmp_path):
    path = tmp_path / "daily.json"
    path.write_text(json.dumps({"day": "2026-10-18", "goodCount": 9, "goal": 12}), encoding="utf-8")
    daily = DailyQuotaTracker(JsonFile(path), today=lambda: "2026-10-19")
    daily.load()

    daily.set_goal(20)
    assert json.loads(path.read_text(encoding="utf-8")) == {"day": "2026-10-19", "goodCount": 0, "goal": 20}
