# onlyscores/status.py
"""
Game status and time-label normalization.

Responsibilities:
  - classify free-text provider status strings into scheduled/live/final
  - parse provider timestamps leniently (never raising)
  - render the short labels shown next to each game ("LIVE", "FINAL", "7:30 PM")

Everything here is a pure function of its inputs.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone, tzinfo
from typing import Optional, Union

from dateutil import parser as date_parser
from dateutil import tz

from .models import GameStatus

EMPTY_AS_FINAL = "final"
EMPTY_AS_LIVE = "live"

# Phrases are matched as substrings; short codes only as whole tokens so that
# e.g. "ot" does not fire inside "not started".
FINAL_PHRASES = ("final", "finished", "full time", "match ended")
FINAL_CODES = ("ft", "aet", "pen", "aot", "ended")

LIVE_PHRASES = ("live", "in play", "in progress", "halftime", "half", "quarter", "overtime", "period", "inning")
LIVE_CODES = ("ht", "1h", "2h", "q1", "q2", "q3", "q4", "ot", "et", "p1", "p2", "p3", "bt", "int")

SCHEDULED_PHRASES = ("not started", "scheduled", "tbd", "postpon", "cancel", "delay", "suspend")
SCHEDULED_CODES = ("ns", "ppd", "tba", "canc")

_TOKEN_RE = re.compile(r"[^a-z0-9]+")

TimestampLike = Union[str, datetime, None]


def _matches(text: str, tokens: set, phrases: tuple, codes: tuple) -> bool:
    """Return True if any phrase occurs in text or any code is one of its tokens."""
    if any(p in text for p in phrases):
        return True
    return any(c in tokens for c in codes)


def classify_status(raw_status: Optional[str], has_score: bool, empty_policy: str = EMPTY_AS_FINAL) -> str:
    """
    Map a provider status string to scheduled/live/final.

    Precedence: final markers, then live markers, then scheduled markers, then
    the score signal (live if scored, else scheduled).

    An empty/absent status is resolved by empty_policy: a game with scores is
    "final" under EMPTY_AS_FINAL and "live" under EMPTY_AS_LIVE.

    Example:
      classify_status("Q3", True)           -> "live"
      classify_status("Match Finished", True) -> "final"
      classify_status(None, True)           -> "final"
    """
    text = (raw_status or "").strip().lower() if isinstance(raw_status, str) else ""
    if not text:
        if has_score:
            return GameStatus.LIVE if empty_policy == EMPTY_AS_LIVE else GameStatus.FINAL
        return GameStatus.SCHEDULED

    tokens = {t for t in _TOKEN_RE.split(text) if t}

    if _matches(text, tokens, FINAL_PHRASES, FINAL_CODES):
        return GameStatus.FINAL
    if _matches(text, tokens, LIVE_PHRASES, LIVE_CODES):
        return GameStatus.LIVE
    if _matches(text, tokens, SCHEDULED_PHRASES, SCHEDULED_CODES):
        return GameStatus.SCHEDULED
    return GameStatus.LIVE if has_score else GameStatus.SCHEDULED


def parse_timestamp(value: TimestampLike) -> Optional[datetime]:
    """
    Parse an ISO-8601-ish timestamp into an aware UTC datetime.

    Accepts date-only strings, "T" or space separators, "Z" or numeric offsets.
    Naive values are treated as UTC. Returns None on anything unparseable.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = date_parser.isoparse(value.strip())
        except (ValueError, OverflowError):
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso(dt: datetime) -> str:
    """
    Render an aware datetime as a UTC ISO string ending in "Z".

    Milliseconds are included only when non-zero.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    base = dt.strftime("%Y-%m-%dT%H:%M:%S")
    ms = dt.microsecond // 1000
    if ms:
        return f"{base}.{ms:03d}Z"
    return f"{base}Z"


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


def resolve_tz(tz_name: Optional[str]) -> tzinfo:
    """Return a tzinfo for tz_name, falling back to UTC when unknown."""
    return tz.gettz(tz_name) if tz_name and tz.gettz(tz_name) else timezone.utc


def format_clock(dt: datetime, display_tz: Optional[tzinfo] = None) -> str:
    """Format a datetime as a 12-hour clock label like "7:05 PM"."""
    local = dt.astimezone(display_tz or timezone.utc)
    hours = local.hour % 12 or 12
    period = "PM" if local.hour >= 12 else "AM"
    return f"{hours}:{local.minute:02d} {period}"


def format_scheduled_time(start_time: TimestampLike, display_tz: Optional[tzinfo] = None) -> str:
    """Return the kickoff clock label, or "TBD" when the start time is unparseable."""
    dt = parse_timestamp(start_time)
    if dt is None:
        return "TBD"
    return format_clock(dt, display_tz)


def format_game_time(status: str, start_time: TimestampLike, display_tz: Optional[tzinfo] = None) -> str:
    """Return the label shown in a game row: LIVE, FINAL, or the scheduled clock time."""
    if status == GameStatus.LIVE:
        return "LIVE"
    if status == GameStatus.FINAL:
        return "FINAL"
    return format_scheduled_time(start_time, display_tz)


def format_updated_label(timestamp: TimestampLike, display_tz: Optional[tzinfo] = None) -> str:
    """Return "Updated 7:05 PM", or "Updated --" when there is no usable timestamp."""
    dt = parse_timestamp(timestamp)
    if dt is None:
        return "Updated --"
    return f"Updated {format_clock(dt, display_tz)}"
