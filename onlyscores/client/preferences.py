# onlyscores/client/preferences.py
"""
Pure merge functions for selection and preference state.

Nothing here persists; callers store the returned values.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from ..models import DEFAULT_NOTIFICATION_PREFS, NotificationPrefsByCard, ScoreCard, SelectionPreferences


def toggle_id(ids: Sequence[str], value: str) -> List[str]:
    """Remove value if present, otherwise append it."""
    if value in ids:
        return [x for x in ids if x != value]
    return [*ids, value]


def toggle_league(
    league_ids: Sequence[str],
    team_ids: Sequence[str],
    league_id: str,
    team_league_lookup: Mapping[str, str],
) -> Tuple[List[str], List[str]]:
    """
    Toggle a league selection.

    Deselecting a league also deselects that league's teams.
    """
    next_leagues = toggle_id(league_ids, league_id)
    if league_id in league_ids:
        next_teams = [t for t in team_ids if team_league_lookup.get(t) != league_id]
    else:
        next_teams = list(team_ids)
    return next_leagues, next_teams


def finalize_selection(
    league_ids: Sequence[str],
    team_ids: Sequence[str],
    team_league_lookup: Mapping[str, str],
) -> Optional[SelectionPreferences]:
    """
    Build the selection stored at onboarding completion.

    Teams whose league is unknown or not selected are dropped. Returns None
    when no league is selected (onboarding cannot finish).
    """
    if not league_ids:
        return None
    selected = set(league_ids)
    teams = [t for t in team_ids if team_league_lookup.get(t) in selected]
    return SelectionPreferences(league_ids=tuple(league_ids), team_ids=tuple(teams))


def normalize_selection_ids(ids: Iterable[str]) -> List[str]:
    """Trim, drop empties and sort, for fingerprinting."""
    return sorted(s for s in (i.strip() for i in ids if isinstance(i, str)) if s)


def build_selection_id(league_ids: Sequence[str], team_ids: Sequence[str]) -> Optional[str]:
    """
    Derive the key cached snapshots are stored under.

    Example:
      (["4391", "4387"], []) -> "leagues:4387,4391|teams:"
    """
    if not league_ids and not team_ids:
        return None
    leagues = ",".join(normalize_selection_ids(league_ids))
    teams = ",".join(normalize_selection_ids(team_ids))
    return f"leagues:{leagues}|teams:{teams}"


def toggle_notification_pref(prefs: NotificationPrefsByCard, card_id: str, key: str) -> NotificationPrefsByCard:
    """Flip one switch for one card, starting from the defaults if the card has no entry."""
    current = prefs.get(card_id, DEFAULT_NOTIFICATION_PREFS)
    return {**prefs, card_id: current.toggled(key)}


def ensure_notification_prefs(
    prefs: NotificationPrefsByCard,
    cards: Sequence[ScoreCard],
) -> Tuple[NotificationPrefsByCard, bool]:
    """
    Add default preferences for cards seen for the first time.

    Returns the (possibly unchanged) mapping and whether anything was added.
    """
    missing = [c.id for c in cards if c.id not in prefs]
    if not missing:
        return prefs, False
    merged: NotificationPrefsByCard = dict(prefs)
    for cid in missing:
        merged[cid] = DEFAULT_NOTIFICATION_PREFS
    return merged, True


def normalize_refresh_interval(seconds: float, minimum: int = 60, maximum: int = 120, step: int = 10) -> int:
    """Round to the nearest step and clamp into [minimum, maximum]."""
    rounded = math.floor(seconds / step + 0.5) * step
    return min(maximum, max(minimum, rounded))
