import random
from typing import List, Optional

from .models import Card, CardView, Slot
from .partition import block_of

PLACEHOLDER = "{x}"
BLANK = "___"


class EmptyQueueError(Exception):
    """Raised when a card action is attempted on an empty study queue."""


class StudySession:
    """
    The active review queue and the position within it.

    The queue is rebuilt from scratch for every study mode. `revealed`,
    `note_visible` and the chosen slot belong to the current position and
    are reset whenever it changes.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.queue: List[Card] = []
        self.position = 0
        self.mode: Optional[str] = None
        self.revealed = False
        self.note_visible = False
        self.slot: Optional[Slot] = None

    def replace(self, cards: List[Card], mode: str):
        self.queue = list(cards)
        self.position = 0
        self.mode = mode
        self._enter_position()

    def _enter_position(self):
        self.revealed = False
        self.note_visible = False
        card = self.current_card()
        if card is not None and card.slots:
            self.slot = self.rng.choice(card.slots)
        else:
            self.slot = None

    def require_cards(self):
        if not self.queue:
            raise EmptyQueueError("study queue is empty")

    def current_card(self) -> Optional[Card]:
        if not self.queue:
            return None
        return self.queue[self.position]

    def current_block(self) -> int:
        if not self.queue:
            return 1
        return block_of(self.queue[0].no)

    def advance(self):
        self.require_cards()
        self.position = (self.position + 1) % len(self.queue)
        self._enter_position()

    def reveal(self):
        self.require_cards()
        self.revealed = not self.revealed
        self.note_visible = self.revealed

    def render(self) -> Optional[CardView]:
        card = self.current_card()
        if card is None:
            return None

        if self.slot is not None:
            prompt = card.jp.replace(PLACEHOLDER, self.slot.jp, 1)
            answer = card.en.replace(PLACEHOLDER, self.slot.en, 1)
            hidden = card.en.replace(PLACEHOLDER, BLANK, 1)
        else:
            prompt = card.jp
            answer = card.en
            hidden = None

        return CardView(
            no=card.no,
            prompt=prompt,
            answer=answer,
            shown_answer=answer if self.revealed else hidden,
            note=card.note if self.note_visible and card.note else None,
            revealed=self.revealed,
            position=self.position,
            total=len(self.queue),
        )
