# onlyscores/client/ordering.py
"""
User-chosen card ordering.

The stored order is a prefix list of card ids: cards it names come first in
that sequence, everything else follows in fetch order.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from ..models import ScoreCard


def apply_card_order(cards: Sequence[ScoreCard], order: Optional[Sequence[str]]) -> List[ScoreCard]:
    """
    Reorder cards by a stored id order.

    Ids in order that are not present are skipped; cards not in order are
    appended in their original relative order. Idempotent for a fixed order.
    """
    if not order:
        return list(cards)
    by_id = {c.id: c for c in cards}
    ordered = [by_id[cid] for cid in dict.fromkeys(order) if cid in by_id]
    named = set(order)
    remaining = [c for c in cards if c.id not in named]
    return ordered + remaining


def card_order(cards: Sequence[ScoreCard]) -> List[str]:
    """Capture the current order for persistence."""
    return [c.id for c in cards]


def move_card(cards: Sequence[ScoreCard], card_id: str, target_index: int) -> List[ScoreCard]:
    """
    Move one card to target_index (clamped to the list bounds).

    Unknown ids leave the list unchanged.
    """
    out = list(cards)
    from_index = next((i for i, c in enumerate(out) if c.id == card_id), -1)
    if from_index < 0:
        return out
    moved = out.pop(from_index)
    insert_at = min(max(target_index, 0), len(out))
    out.insert(insert_at, moved)
    return out
