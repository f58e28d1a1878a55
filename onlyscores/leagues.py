# onlyscores/leagues.py
"""
Curated league table and team/league identity resolution.

The provider is inconsistent about identifiers: events sometimes carry a league
id we curate, sometimes only a league name spelled the provider's way, and team
ids that do not always match the team listing. Resolution never raises; anything
unmatched degrades to the raw identifier so callers can still display it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from .models import League, Team

UNKNOWN_ID = "unknown"


@dataclass(frozen=True)
class CuratedLeague:
    """A hand-maintained league entry and the name the provider uses for it."""
    id: str
    name: str
    sport: str
    provider_name: str

    def to_league(self) -> League:
        return League(id=self.id, name=self.name, sport=self.sport)


CURATED_LEAGUES: List[CuratedLeague] = [
    CuratedLeague("4391", "NFL", "American Football", "NFL"),
    CuratedLeague("4387", "NBA", "Basketball", "NBA"),
    CuratedLeague("4424", "MLB", "Baseball", "MLB"),
    CuratedLeague("4380", "NHL", "Ice Hockey", "NHL"),
    CuratedLeague("4328", "Premier League", "Soccer", "English Premier League"),
    CuratedLeague("4335", "La Liga", "Soccer", "Spanish La Liga"),
    CuratedLeague("4332", "Serie A", "Soccer", "Italian Serie A"),
    CuratedLeague("4331", "Bundesliga", "Soccer", "German Bundesliga"),
    CuratedLeague("4334", "Ligue 1", "Soccer", "French Ligue 1"),
    CuratedLeague("4346", "MLS", "Soccer", "American Major League Soccer"),
]

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def normalize_key(value: Optional[str]) -> str:
    """Lower-case and strip every non-alphanumeric character ("St. Louis Blues" -> "stlouisblues")."""
    if not isinstance(value, str):
        return ""
    return _NON_ALNUM_RE.sub("", value.lower())


class LeagueResolver:
    """Maps provider league ids/names onto the curated table."""

    def __init__(self, leagues: Iterable[CuratedLeague] = CURATED_LEAGUES) -> None:
        self._leagues = list(leagues)
        self.by_id: Dict[str, CuratedLeague] = {lg.id: lg for lg in self._leagues}
        self.by_name: Dict[str, CuratedLeague] = {}
        for lg in self._leagues:
            self.by_name[normalize_key(lg.name)] = lg
            self.by_name[normalize_key(lg.provider_name)] = lg

    def leagues(self) -> List[League]:
        """Return the curated leagues in table order."""
        return [lg.to_league() for lg in self._leagues]

    def get(self, league_id: Optional[str]) -> Optional[CuratedLeague]:
        return self.by_id.get(league_id or "")

    def resolve_league_id(self, raw_id: Optional[str], raw_name: Optional[str]) -> str:
        """
        Resolve a provider league reference to a canonical id.

        Precedence:
          1) raw id if it is a curated id
          2) normalized raw name against curated and provider names
          3) raw id as-is, else "unknown"
        """
        if raw_id and raw_id in self.by_id:
            return raw_id
        if raw_name:
            match = self.by_name.get(normalize_key(raw_name))
            if match:
                return match.id
        return raw_id or UNKNOWN_ID

    def title_for(self, league_id: str, raw_name: Optional[str] = None) -> str:
        """Card title: curated name, else the provider's league name, else the id."""
        lg = self.by_id.get(league_id)
        if lg:
            return lg.name
        return raw_name or league_id


@dataclass
class TeamIndex:
    """Lookup structures for one league's teams."""
    ids: Set[str] = field(default_factory=set)
    name_to_id: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_teams(cls, teams: Iterable[Team]) -> "TeamIndex":
        idx = cls()
        for team in teams:
            idx.ids.add(team.id)
            idx.name_to_id[normalize_key(team.name)] = team.id
            if team.short_name:
                idx.name_to_id[normalize_key(team.short_name)] = team.id
        return idx


def resolve_team_id(raw_id: Optional[str], raw_name: Optional[str], index: Optional[TeamIndex] = None) -> str:
    """
    Resolve a provider team reference against a league's team index.

    Precedence:
      1) raw id if the index knows it
      2) normalized raw name if the index knows it
      3) raw id, then raw name, as passthrough
      4) "unknown"
    """
    if raw_id and index is not None and raw_id in index.ids:
        return raw_id
    if raw_name and index is not None:
        mapped = index.name_to_id.get(normalize_key(raw_name))
        if mapped:
            return mapped
    if raw_id:
        return raw_id
    if raw_name:
        return raw_name
    return UNKNOWN_ID


def is_nfl_league(league: League) -> bool:
    """Return True for NFL leagues; their games are fetched for the whole week."""
    lid = league.id.strip().lower()
    name = league.name.strip().lower()
    return lid == "nfl" or lid.startswith("nfl-") or "nfl" in name
