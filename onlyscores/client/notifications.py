# onlyscores/client/notifications.py
"""
Notification diffing between two display snapshots.

Games are matched by id across all cards of the previous snapshot. A game seen
for the first time never notifies. Per game, at most one event is produced:

  - previous not final, current final      -> notifyFinal  ("Final")
  - previous scheduled, current live       -> notifyStart  ("Game Started")
  - current live and either score changed  -> notifyScore  ("Score Update")

The first matching rule wins, and the event is dropped when the owning card's
preference for that key is off. Delivery is the caller's job.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from ..models import (
    DEFAULT_NOTIFICATION_PREFS,
    NOTIFY_FINAL,
    NOTIFY_SCORE,
    NOTIFY_START,
    Game,
    GameStatus,
    NotificationEvent,
    NotificationPrefsByCard,
    Score,
    ScoreCard,
)

EVENT_LABELS = {
    NOTIFY_FINAL: "Final",
    NOTIFY_START: "Game Started",
    NOTIFY_SCORE: "Score Update",
}


def format_score_value(value: Optional[Score]) -> str:
    """Render a score, or "-" when absent."""
    return "-" if value is None else str(value)


def format_score_line(game: Game) -> str:
    """Example: "Bucs 17 - Saints -"."""
    return (
        f"{game.away_team} {format_score_value(game.away_score)} - "
        f"{game.home_team} {format_score_value(game.home_score)}"
    )


def format_matchup(game: Game) -> str:
    """Example: "Bucs at Saints"."""
    return f"{game.away_team} at {game.home_team}"


def resolve_notification_key(previous: Game, current: Game) -> Optional[str]:
    """Return the preference key the transition falls under, or None."""
    if previous.status != GameStatus.FINAL and current.status == GameStatus.FINAL:
        return NOTIFY_FINAL
    if previous.status == GameStatus.SCHEDULED and current.status == GameStatus.LIVE:
        return NOTIFY_START
    score_changed = previous.home_score != current.home_score or previous.away_score != current.away_score
    if current.status == GameStatus.LIVE and score_changed:
        return NOTIFY_SCORE
    return None


def build_notification_event(card: ScoreCard, game: Game, key: str) -> NotificationEvent:
    body = format_matchup(game) if key == NOTIFY_START else format_score_line(game)
    return NotificationEvent(
        title=f"{card.title} • {EVENT_LABELS[key]}",
        body=body,
        data={"cardId": card.id, "gameId": game.id, "type": key},
    )


def build_notification_events(
    previous: Sequence[ScoreCard],
    current: Sequence[ScoreCard],
    prefs: NotificationPrefsByCard,
) -> List[NotificationEvent]:
    """Diff two snapshots and return the events the card preferences allow."""
    previous_by_game: Dict[str, Game] = {}
    for card in previous:
        for game in card.games:
            previous_by_game[game.id] = game

    events: List[NotificationEvent] = []
    for card in current:
        card_prefs = prefs.get(card.id, DEFAULT_NOTIFICATION_PREFS)
        for game in card.games:
            before = previous_by_game.get(game.id)
            if before is None:
                continue
            key = resolve_notification_key(before, game)
            if key is None or not card_prefs.enabled(key):
                continue
            events.append(build_notification_event(card, game, key))
    return events


def has_notifications_enabled(cards: Sequence[ScoreCard], prefs: NotificationPrefsByCard) -> bool:
    """True if any shown card has at least one notification switch on."""
    return any(prefs.get(c.id, DEFAULT_NOTIFICATION_PREFS).any_enabled() for c in cards)
