import json
import logging
import os
import pathlib
import tempfile
import time
from datetime import date
from typing import Callable, Dict, Optional, Tuple

from pydantic import ValidationError

from .models import DailyQuota, ReviewState

MIN = 60 * 1000
HOUR = 60 * MIN
DAY = 24 * HOUR

# 1 AGAIN, 2 HARD, 3 OK, 4 GOOD, 5 EASY
GRADE_INTERVALS = {
    1: 5 * MIN,
    2: 6 * HOUR,
    3: 12 * HOUR,
    4: 3 * DAY,
    5: 12 * DAY,
}
DEFAULT_INTERVAL = 3 * DAY

# OK or better counts as learned
LEARNED_THRESHOLD = 12 * HOUR
GOOD_GRADE = 3


def now_ms() -> int:
    return int(time.time() * 1000)


def local_today() -> str:
    return date.today().isoformat()


def next_interval_ms(grade: int) -> int:
    return GRADE_INTERVALS.get(grade, DEFAULT_INTERVAL)


class JsonFile:
    """A JSON blob on disk, rewritten in full on every save."""

    def __init__(self, path):
        self.path = pathlib.Path(path)

    def load(self) -> Optional[dict]:
        if not self.path.exists():
            return None
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logging.error(f"Error reading {self.path}: {e}")
            return None
        if not isinstance(data, dict):
            logging.error(f"Ignoring {self.path}: expected a JSON object")
            return None
        return data

    def save(self, data: dict) -> bool:
        tmp = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp, self.path)
            return True
        except (OSError, TypeError, ValueError) as e:
            logging.error(f"Error saving {self.path}: {e}")
            if tmp is not None and os.path.exists(tmp):
                os.unlink(tmp)
            return False


class ReviewStore:
    """Per-card review state: the interval of the last grade and when the card is due again."""

    def __init__(self, file: JsonFile, clock: Callable[[], int] = now_ms):
        self.file = file
        self.clock = clock
        self.states: Dict[int, ReviewState] = {}

    def load(self):
        self.states = {}
        for key, value in (self.file.load() or {}).items():
            try:
                self.states[int(key)] = ReviewState.model_validate(value)
            except (ValueError, ValidationError) as e:
                logging.warning(f"Dropping review state for {key!r}: {e}")
        logging.info(f"Loaded review state for {len(self.states)} cards.")

    def save(self):
        self.file.save({str(no): s.model_dump(by_alias=True) for no, s in self.states.items()})

    def get(self, card_no: int) -> Optional[ReviewState]:
        return self.states.get(card_no)

    def grade(self, card_no: int, grade: int) -> ReviewState:
        interval_ms = next_interval_ms(grade)
        state = ReviewState(interval_ms=interval_ms, due_at=self.clock() + interval_ms)
        self.states[card_no] = state
        self.save()
        return state

    def is_due(self, card_no: int, at: Optional[int] = None) -> bool:
        state = self.states.get(card_no)
        if state is None:
            # Never graded: only reachable through sequential/scene/block study.
            return False
        if at is None:
            at = self.clock()
        return state.due_at <= at

    def is_learned(self, card_no: int) -> bool:
        state = self.states.get(card_no)
        return state is not None and state.interval_ms >= LEARNED_THRESHOLD


class DailyQuotaTracker:
    """Counts OK-or-better grades for the current local day."""

    def __init__(self, file: JsonFile, today: Callable[[], str] = local_today, default_goal: int = 10):
        self.file = file
        self.today = today
        self.default_goal = default_goal
        self.quota = DailyQuota(day=today(), goal=default_goal)

    def load(self):
        data = self.file.load()
        if data is not None:
            goal = data.get("goal")
            if not isinstance(goal, int) or goal < 1:
                data = {**data, "goal": self.default_goal}
            try:
                self.quota = DailyQuota.model_validate(data)
            except ValidationError as e:
                logging.warning(f"Resetting daily quota: {e}")
                self.quota = DailyQuota(day=self.today(), goal=self.default_goal)

    def save(self):
        self.file.save(self.quota.model_dump(by_alias=True))

    def ensure_fresh_day(self):
        today = self.today()
        if self.quota.day != today:
            self.quota = DailyQuota(day=today, good_count=0, goal=self.quota.goal or self.default_goal)
            self.save()

    def record_outcome(self, grade: int):
        self.ensure_fresh_day()
        if grade >= GOOD_GRADE:
            self.quota.good_count += 1
            self.save()

    def set_goal(self, goal: int):
        if goal < 1:
            raise ValueError("goal must be positive")
        self.ensure_fresh_day()
        self.quota.goal = goal
        self.save()

    def progress(self) -> Tuple[int, int]:
        self.ensure_fresh_day()
        goal = self.quota.goal
        return min(self.quota.good_count, goal), goal

    def percent(self) -> int:
        done, goal = self.progress()
        if not goal:
            return 0
        return min(100, round(done / goal * 100))
