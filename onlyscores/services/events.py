# onlyscores/services/events.py
"""
Provider event -> canonical game mapping.

Responsibilities:
  - parse scores and timestamps from raw provider records
  - map teams and events into Team / ProviderGame
  - deduplicate the past+next event listings

Malformed fields never raise: every value has a deterministic fallback. The
only non-deterministic fallback is "now" for events without any usable date.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from ..leagues import UNKNOWN_ID
from ..models import ProviderGame, Score, Team
from ..status import EMPTY_AS_FINAL, classify_status, parse_timestamp, to_iso, utc_now

RawEvent = Dict[str, Any]


@dataclass(frozen=True)
class GameOverrides:
    """Resolved identifiers that take precedence over the raw event's own."""
    league_id: Optional[str] = None
    home_team_id: Optional[str] = None
    away_team_id: Optional[str] = None


def field_str(record: Dict[str, Any], key: str) -> Optional[str]:
    """Return record[key] as a stripped string, or None when missing/blank."""
    v = record.get(key)
    if v is None or isinstance(v, bool):
        return None
    s = str(v).strip()
    return s or None


def parse_score(value: Any) -> Optional[Score]:
    """
    Parse a provider score ("80", 80, "2.0") into a number.

    Empty or non-numeric values are absent (None), never zero.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        num = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            num = float(text)
        except ValueError:
            return None
    if not math.isfinite(num):
        return None
    return int(num) if num.is_integer() else num


def build_event_start(event: RawEvent, now: Optional[datetime] = None) -> str:
    """
    Build the ISO start time of an event.

    Tries, in order: strTimestamp, dateEvent + strTime, dateEvent alone, now.
    """
    ts = parse_timestamp(field_str(event, "strTimestamp"))
    if ts:
        return to_iso(ts)

    date = field_str(event, "dateEvent")
    if date:
        time = field_str(event, "strTime")
        if time:
            combined = parse_timestamp(f"{date}T{time}")
            if combined:
                return to_iso(combined)
        day = parse_timestamp(date)
        if day:
            return to_iso(day)

    return to_iso(now or utc_now())


def build_last_updated(event: RawEvent, start_time: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """Return the event's update timestamp, else its start time, else now."""
    for key in ("updated", "strTimestamp"):
        ts = parse_timestamp(field_str(event, key))
        if ts:
            return to_iso(ts)
    if start_time and parse_timestamp(start_time):
        return start_time
    return to_iso(now or utc_now())


def event_date_key(event: RawEvent, now: Optional[datetime] = None) -> str:
    """Return the event's UTC calendar date as YYYY-MM-DD."""
    date = field_str(event, "dateEvent")
    if date:
        return date[:10]
    ts = parse_timestamp(field_str(event, "strTimestamp"))
    if ts:
        return ts.strftime("%Y-%m-%d")
    return build_event_start(event, now=now)[:10]


def map_team(raw: Dict[str, Any], league_id: str) -> Optional[Team]:
    """
    Convert a provider team record into a Team.

    Returns None for records without an id or a name.
    """
    team_id = field_str(raw, "idTeam")
    name = field_str(raw, "strTeam")
    if not team_id or not name:
        return None
    short_name = field_str(raw, "strTeamShort") or field_str(raw, "strTeamAlternate") or name
    logo = field_str(raw, "strTeamBadge") or field_str(raw, "strBadge") or field_str(raw, "strTeamLogo") or field_str(raw, "strLogo")
    return Team(id=team_id, league_id=league_id, name=name, short_name=short_name, logo_url=logo)


def map_game(
    event: RawEvent,
    league_id_fallback: Optional[str] = None,
    overrides: Optional[GameOverrides] = None,
    index: int = 0,
    empty_policy: str = EMPTY_AS_FINAL,
    now: Optional[datetime] = None,
) -> ProviderGame:
    """
    Convert a provider event into a ProviderGame.

    Missing ids fall back to "{leagueId}-{index}", which is only stable
    within one fetch.
    """
    ov = overrides or GameOverrides()
    home_score = parse_score(event.get("intHomeScore"))
    away_score = parse_score(event.get("intAwayScore"))
    has_score = home_score is not None or away_score is not None

    league_id = ov.league_id or field_str(event, "idLeague") or league_id_fallback or UNKNOWN_ID
    start_time = build_event_start(event, now=now)

    return ProviderGame(
        id=field_str(event, "idEvent") or f"{league_id}-{index}",
        league_id=league_id,
        start_time=start_time,
        status=classify_status(field_str(event, "strStatus"), has_score, empty_policy),
        home_team_id=ov.home_team_id or field_str(event, "idHomeTeam") or UNKNOWN_ID,
        away_team_id=ov.away_team_id or field_str(event, "idAwayTeam") or UNKNOWN_ID,
        home_score=home_score,
        away_score=away_score,
        last_updated=build_last_updated(event, start_time=start_time, now=now),
    )


def dedupe_events(events: Iterable[RawEvent]) -> List[RawEvent]:
    """Remove duplicate events by id while preserving first occurrence order."""
    seen: set[str] = set()
    out: List[RawEvent] = []
    for i, event in enumerate(events):
        key = field_str(event, "idEvent") or f"{field_str(event, 'idLeague') or 'league'}-{i}"
        if key in seen:
            continue
        seen.add(key)
        out.append(event)
    return out
