import logging
import random
import threading
from typing import Callable, List, Optional, Tuple

from .catalog import CatalogUnavailable, load_catalog
from .config import AppConfig
from .models import BlockProgress, Card, CardView, DailyProgress, SkippedRow
from .partition import DeckPartitioner, by_no
from .session import StudySession
from .store import DailyQuotaTracker, JsonFile, ReviewStore, local_today, now_ms

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

MODES = ("sequential", "due", "scene", "block")
NOTHING_DUE = "nothing due"


class StudyService:
    """Application context: the card catalog, persisted review state and the current session."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        clock: Callable[[], int] = now_ms,
        today: Callable[[], str] = local_today,
        rng: Optional[random.Random] = None,
    ):
        self.config = config or AppConfig()
        self.clock = clock
        self.cards: List[Card] = []
        self.skipped: List[SkippedRow] = []
        self.loaded = False
        self.load_error: Optional[str] = None

        self.reviews = ReviewStore(JsonFile(self.config.srs_path), clock=clock)
        self.daily = DailyQuotaTracker(
            JsonFile(self.config.daily_path), today=today, default_goal=self.config.default_goal
        )
        self.reviews.load()
        self.daily.load()

        self.partitioner = DeckPartitioner(self.cards, self.reviews)
        self.session = StudySession(rng)
        # FastAPI runs sync routes in worker threads; actions on the session run one at a time
        self.lock = threading.RLock()

    async def load_catalog(self) -> List[Card]:
        """Loads the card source and starts on the first block."""
        try:
            result = await load_catalog(self.config.catalog_path)
        except CatalogUnavailable as e:
            self.load_error = str(e)
            logging.error(f"Error loading cards: {e}")
            raise

        with self.lock:
            self.cards = result.cards
            self.skipped = result.skipped
            self.loaded = True
            self.load_error = None
            self.partitioner = DeckPartitioner(self.cards, self.reviews)
            self.session.replace(self.partitioner.cards_in_block(1), "block")
        logging.info(f"Loaded {len(self.cards)} cards from {self.config.catalog_path}.")
        return self.cards

    def _select(self, mode: str, param=None) -> List[Card]:
        if mode == "sequential":
            return by_no(self.cards)
        if mode == "due":
            at = self.clock()
            return by_no(c for c in self.cards if self.reviews.is_due(c.no, at))
        if mode == "scene":
            return self.partitioner.cards_in_scene(param)
        if mode == "block":
            return self.partitioner.cards_in_block(int(param))
        return []

    def build_session(self, mode: str, param=None) -> Tuple[bool, str]:
        """
        Replaces the study queue with the cards selected by `mode`.

        An empty selection leaves the current session untouched and
        returns (False, reason).
        """
        if mode not in MODES:
            raise ValueError(f"Unknown study mode: {mode}")
        if mode == "scene" and not param:
            return False, "scene mode needs a scene"
        if mode == "block" and param is None:
            return False, f"{mode} mode needs a {mode}"

        with self.lock:
            cards = self._select(mode, param)
            if not cards:
                reason = NOTHING_DUE if mode == "due" else f"no cards for {mode} {param}"
                logging.warning(f"Session not started: {reason}")
                return False, reason

            self.session.replace(cards, mode)
        logging.info(f"Started {mode} session with {len(cards)} cards.")
        return True, f"{len(cards)} cards"

    def current_card(self) -> Optional[Card]:
        return self.session.current_card()

    def render(self) -> Optional[CardView]:
        return self.session.render()

    def advance(self):
        with self.lock:
            self.session.advance()

    def reveal(self):
        with self.lock:
            self.session.reveal()

    def grade(self, grade: int):
        """Schedules the current card, counts it toward today's goal and moves on."""
        with self.lock:
            self.session.require_cards()
            card = self.session.current_card()
            self.reviews.grade(card.no, grade)
            self.daily.record_outcome(grade)
            self.session.advance()

    def block_progress_all(self) -> List[BlockProgress]:
        return self.partitioner.block_progress_all()

    def current_block_progress(self) -> Tuple[int, int]:
        return self.partitioner.block_progress(self.session.current_block())

    def daily_progress(self) -> DailyProgress:
        done, goal = self.daily.progress()
        return DailyProgress(done=done, goal=goal, percent=self.daily.percent())

    def set_daily_goal(self, goal: int):
        with self.lock:
            self.daily.set_goal(goal)

    def scenes(self) -> List[str]:
        return self.partitioner.scenes()

    def load_diagnostics(self) -> List[SkippedRow]:
        return self.skipped

    def get_stats(self) -> dict:
        due = sum(1 for c in self.cards if self.reviews.is_due(c.no))
        learned = sum(1 for c in self.cards if self.reviews.is_learned(c.no))
        return {
            "total_cards": len(self.cards),
            "due_cards": due,
            "learned_cards": learned,
            "skipped_rows": len(self.skipped),
            "blocks": self.partitioner.max_block(),
            "scenes": len(self.scenes()),
        }
