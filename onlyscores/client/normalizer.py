# onlyscores/client/normalizer.py
"""
Provider cards -> display cards.

Resolves team display names and logos, computes time labels and the card-level
"last updated" timestamp. Also holds the client-side team filter and the
"latest only" game selection used by the compact display mode.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timezone, tzinfo
from typing import Dict, Iterable, List, Optional, Sequence

from ..models import Game, GameStatus, ProviderGame, ProviderScoreCard, ScoreCard, Team
from ..status import format_game_time, parse_timestamp, to_iso


@dataclass(frozen=True)
class TeamDisplay:
    """How a team is shown in a game row."""
    name: str
    logo_url: Optional[str] = None


TeamLookup = Dict[str, TeamDisplay]


def build_team_lookup(teams: Iterable[Team]) -> TeamLookup:
    """Map team id -> display info, preferring the short name."""
    return {t.id: TeamDisplay(name=t.short_name or t.name, logo_url=t.logo_url) for t in teams}


def _latest_iso(values: Iterable[Optional[str]]) -> Optional[str]:
    """Return the latest parseable timestamp as ISO, or None if none parse."""
    parsed = [dt for dt in (parse_timestamp(v) for v in values) if dt is not None]
    if not parsed:
        return None
    return to_iso(max(parsed))


def card_last_updated(games: Sequence[ProviderGame]) -> Optional[str]:
    """Latest lastUpdated among a card's games."""
    return _latest_iso(g.last_updated for g in games)


def latest_card_updated(cards: Sequence[ScoreCard]) -> Optional[str]:
    """Latest lastUpdated across cards (drives the "Updated ..." header label)."""
    return _latest_iso(c.last_updated for c in cards)


def normalize_game(game: ProviderGame, team_lookup: TeamLookup, display_tz: tzinfo = timezone.utc) -> Game:
    """Convert one provider game; unknown team ids are shown as-is."""
    away = team_lookup.get(game.away_team_id)
    home = team_lookup.get(game.home_team_id)
    return Game(
        id=game.id,
        start_time=game.start_time,
        time=format_game_time(game.status, game.start_time, display_tz),
        away_team=away.name if away else game.away_team_id,
        home_team=home.name if home else game.home_team_id,
        away_logo_url=away.logo_url if away else None,
        home_logo_url=home.logo_url if home else None,
        away_score=game.away_score,
        home_score=game.home_score,
        status=game.status,
    )


def normalize_cards(
    cards: Sequence[ProviderScoreCard],
    team_lookup: TeamLookup,
    display_tz: tzinfo = timezone.utc,
) -> List[ScoreCard]:
    """Convert provider cards into display cards, preserving order."""
    return [
        ScoreCard(
            id=card.id,
            title=card.title,
            games=tuple(normalize_game(g, team_lookup, display_tz) for g in card.games),
            last_updated=card_last_updated(card.games),
        )
        for card in cards
    ]


def filter_cards_by_team_ids(cards: Sequence[ProviderScoreCard], team_ids: Sequence[str]) -> List[ProviderScoreCard]:
    """
    Keep only games involving one of team_ids; cards left empty are dropped.

    No-op when team_ids is empty.
    """
    if not team_ids:
        return list(cards)
    wanted = set(team_ids)
    out: List[ProviderScoreCard] = []
    for card in cards:
        games = tuple(g for g in card.games if g.home_team_id in wanted or g.away_team_id in wanted)
        if games:
            out.append(ProviderScoreCard(id=card.id, league_id=card.league_id, title=card.title, games=games))
    return out


def _start_value(game: Game) -> Optional[float]:
    dt = parse_timestamp(game.start_time)
    return dt.timestamp() if dt else None


def _pick(games: Sequence[Game], latest: bool) -> Game:
    """Pick the latest/earliest-starting game; games without a start time are skipped after the first."""
    best = games[0]
    best_time = _start_value(best)
    for candidate in games[1:]:
        t = _start_value(candidate)
        if t is None:
            continue
        if best_time is None or (t > best_time if latest else t < best_time):
            best, best_time = candidate, t
    return best


def select_casual_games(games: Sequence[Game]) -> List[Game]:
    """
    Reduce a card to the single most relevant game.

    Live games win (latest started), then finals (latest started), then the
    earliest upcoming game.
    """
    if len(games) <= 1:
        return list(games)
    live = [g for g in games if g.status == GameStatus.LIVE]
    if live:
        return [_pick(live, latest=True)]
    final = [g for g in games if g.status == GameStatus.FINAL]
    if final:
        return [_pick(final, latest=True)]
    return [_pick(games, latest=False)]


def apply_latest_only(cards: Sequence[ScoreCard]) -> List[ScoreCard]:
    """Apply select_casual_games to every card."""
    return [c.with_games(select_casual_games(c.games)) for c in cards]
