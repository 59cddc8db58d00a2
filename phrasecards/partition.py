import math
from typing import List, Tuple

import pandas as pd

from .models import BlockProgress, Card
from .store import ReviewStore

BLOCK_SIZE = 30


def block_of(no: int) -> int:
    return (no - 1) // BLOCK_SIZE + 1


def block_label(block: int) -> str:
    return f"{(block - 1) * BLOCK_SIZE + 1}-{block * BLOCK_SIZE}"


def by_no(cards) -> List[Card]:
    return sorted(cards, key=lambda c: c.no)


class DeckPartitioner:
    """Groups the catalog into fixed-size blocks and free-form scenes."""

    def __init__(self, cards: List[Card], reviews: ReviewStore):
        self.cards = cards
        self.reviews = reviews

    def cards_in_block(self, block: int) -> List[Card]:
        return by_no(c for c in self.cards if block_of(c.no) == block)

    def max_block(self) -> int:
        if not self.cards:
            return 1
        return math.ceil(max(c.no for c in self.cards) / BLOCK_SIZE)

    def block_progress(self, block: int) -> Tuple[int, int]:
        cards = self.cards_in_block(block)
        learned = sum(1 for c in cards if self.reviews.is_learned(c.no))
        return learned, len(cards)

    def block_progress_all(self) -> List[BlockProgress]:
        """Learned/total for every block from 1 to max_block(), empty blocks included."""
        blocks = range(1, self.max_block() + 1)
        df = pd.DataFrame({
            "block": [block_of(c.no) for c in self.cards],
            "learned": [self.reviews.is_learned(c.no) for c in self.cards],
        })
        if df.empty:
            totals = pd.DataFrame({"learned": 0, "total": 0}, index=blocks)
        else:
            totals = (
                df.groupby("block")["learned"]
                .agg(learned="sum", total="count")
                .reindex(blocks, fill_value=0)
            )

        progress = []
        for block, row in totals.iterrows():
            learned, total = int(row["learned"]), int(row["total"])
            percent = round(learned / total * 100) if total else 0
            progress.append(BlockProgress(
                block=int(block),
                label=block_label(int(block)),
                learned=learned,
                total=total,
                percent=percent,
            ))
        return progress

    def scenes(self) -> List[str]:
        # dict keeps first-seen order
        return list(dict.fromkeys(c.scene for c in self.cards if c.scene))

    def cards_in_scene(self, scene: str) -> List[Card]:
        # cards without a scene belong to no scene session
        if not scene:
            return []
        return by_no(c for c in self.cards if c.scene == scene)
