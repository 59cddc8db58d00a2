import asyncio
import logging
import pathlib
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .models import Card, Slot, SkippedRow

# no,jp,en,slots,video,lv,note,scene
COLUMNS = ["no", "jp", "en", "slots", "video", "lv", "note", "scene"]


class CatalogUnavailable(Exception):
    """The card source could not be read."""


@dataclass
class CatalogLoadResult:
    cards: List[Card] = field(default_factory=list)
    skipped: List[SkippedRow] = field(default_factory=list)


def split_line(line: str) -> List[str]:
    """
    Splits one CSV line on commas outside double quotes.

    A quote toggles the in-quotes flag for the rest of the line and is
    dropped from the output. Escaped quotes are not supported.
    """
    result = []
    cur = ""
    in_quotes = False

    for c in line:
        if c == '"':
            in_quotes = not in_quotes
        elif c == "," and not in_quotes:
            result.append(cur)
            cur = ""
        else:
            cur += c
    result.append(cur)
    return result


def parse_slots(raw: str) -> Optional[List[Slot]]:
    if not raw:
        return None
    slots = []
    for entry in raw.split("|"):
        parts = entry.split("=")
        jp = parts[0]
        en = parts[1] if len(parts) > 1 else ""
        slots.append(Slot(jp=jp, en=en))
    return slots


def parse_row(cols: List[str]) -> Tuple[Optional[Card], Optional[str]]:
    """Returns (card, None) on success or (None, reason) for a malformed row."""
    cols = cols + [""] * (len(COLUMNS) - len(cols))
    raw = dict(zip(COLUMNS, cols))

    try:
        no = int(raw["no"].strip())
    except ValueError:
        return None, f"invalid no: {raw['no']!r}"
    if no < 1:
        return None, f"no must be positive: {no}"

    lv_raw = raw["lv"].strip() or "1"
    try:
        lv = int(lv_raw)
    except ValueError:
        return None, f"invalid lv: {raw['lv']!r}"

    card = Card(
        no=no,
        jp=raw["jp"],
        en=raw["en"],
        slots=parse_slots(raw["slots"]),
        video=raw["video"],
        lv=lv,
        note=raw["note"],
        scene=raw["scene"],
    )
    return card, None


def parse_catalog(text: str) -> CatalogLoadResult:
    """
    Parses the card source into cards, in source order.

    The first line is the header and is always discarded. Rows that fail
    to parse are reported in `skipped` instead of aborting the load.
    """
    result = CatalogLoadResult()
    # only \n ends a row; other line breaks may appear inside fields
    lines = [line.rstrip("\r") for line in text.strip().split("\n")]
    seen = set()

    # Line numbers are 1-based and count the header.
    for line_no, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        card, reason = parse_row(split_line(line))
        if card is not None and card.no in seen:
            card, reason = None, f"duplicate no: {card.no}"
        if card is None:
            result.skipped.append(SkippedRow(line=line_no, reason=reason))
            continue
        seen.add(card.no)
        result.cards.append(card)

    if result.skipped:
        logging.warning(f"Skipped {len(result.skipped)} malformed rows in card source.")
    return result


def read_catalog(file_path: str) -> CatalogLoadResult:
    path = pathlib.Path(file_path)
    if not path.exists():
        raise CatalogUnavailable(f"File not found: {file_path}")
    try:
        # utf-8-sig drops a leading BOM
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise CatalogUnavailable(f"Could not read {file_path}: {e}") from e
    return parse_catalog(text)


async def load_catalog(file_path: str) -> CatalogLoadResult:
    """Reads and parses the card source without blocking the event loop."""
    return await asyncio.to_thread(read_catalog, file_path)
