# onlyscores/services/scores_service.py
"""
League, team and score-card logic for the backend.

Responsibilities:
  - serve the curated league list
  - fetch and map a league's teams
  - fetch past+next events per league or team (fanned out in parallel)
  - filter by date window, resolve league/team identities, filter by team
  - group resolved games into one card per league
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

from ..cache import TTLCache
from ..config import AppConfig
from ..leagues import UNKNOWN_ID, LeagueResolver, TeamIndex, resolve_team_id
from ..models import League, ProviderGame, ProviderScoreCard, ScoresResponse, Team
from ..sportsdb_client import SportsDbClient
from ..status import to_iso, utc_now
from .events import GameOverrides, RawEvent, dedupe_events, event_date_key, field_str, map_game, map_team

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

WINDOW_DAY = "day"
WINDOW_WEEK = "week"


@dataclass(frozen=True)
class ScoresQuery:
    """A normalized /v1/scores request."""
    league_ids: Sequence[str] = ()
    team_ids: Sequence[str] = ()
    date: Optional[str] = None
    window: Optional[str] = None

    def cache_key(self) -> str:
        return f"scores:{','.join(self.league_ids)}|{','.join(self.team_ids)}|{self.date or ''}|{self.window or ''}"


@dataclass(frozen=True)
class ResolvedEvent:
    """A raw event together with its canonical league and team ids."""
    event: RawEvent
    league_id: str
    home_team_id: str
    away_team_id: str


def filter_events_by_date(events: Sequence[RawEvent], date: Optional[str], window: Optional[str]) -> List[RawEvent]:
    """
    Keep only events on the requested UTC date.

    A "week" window, or no date at all, keeps the full fetched range.
    """
    if not date or window == WINDOW_WEEK:
        return list(events)
    wanted = date[:10]
    return [e for e in events if event_date_key(e) == wanted]


def filter_by_team_ids(resolved: Sequence[ResolvedEvent], team_ids: Sequence[str]) -> List[ResolvedEvent]:
    """Keep events where either side is one of team_ids (no-op when team_ids is empty)."""
    if not team_ids:
        return list(resolved)
    wanted = set(team_ids)
    return [r for r in resolved if r.home_team_id in wanted or r.away_team_id in wanted]


def assemble_cards(
    resolved: Iterable[ResolvedEvent],
    title_for: Callable[[str, Optional[str]], str],
    empty_policy: str = "final",
    now: Optional[datetime] = None,
) -> List[ProviderScoreCard]:
    """
    Group resolved events into one card per league, in first-appearance order.

    Title comes from title_for(league_id, raw provider league name).
    Leagues without games never produce a card.
    """
    titles: Dict[str, str] = {}
    games: Dict[str, List[ProviderGame]] = {}

    for r in resolved:
        bucket = games.setdefault(r.league_id, [])
        if r.league_id not in titles:
            titles[r.league_id] = title_for(r.league_id, field_str(r.event, "strLeague"))
        bucket.append(
            map_game(
                r.event,
                r.league_id,
                overrides=GameOverrides(
                    league_id=r.league_id,
                    home_team_id=r.home_team_id,
                    away_team_id=r.away_team_id,
                ),
                index=len(bucket),
                empty_policy=empty_policy,
                now=now,
            )
        )

    return [
        ProviderScoreCard(id=lid, league_id=lid, title=titles[lid], games=tuple(bucket))
        for lid, bucket in games.items()
        if bucket
    ]


@dataclass
class ScoresService:
    """Service responsible for leagues, teams and normalized score cards."""

    client: SportsDbClient
    cache: TTLCache
    config: AppConfig
    resolver: LeagueResolver = field(default_factory=LeagueResolver)

    def _parallel_map(self, fn: Callable[[T], R], items: Sequence[T]) -> List[R]:
        """
        Run fn over items concurrently and return results in input order.

        The first exception raised by any call propagates; partial results are discarded.
        """
        if not items:
            return []
        if len(items) == 1:
            return [fn(items[0])]
        workers = max(1, min(len(items), self.config.fetch_max_workers))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(fn, items))

    # -------------------------
    # Leagues & teams
    # -------------------------

    def get_leagues(self) -> List[League]:
        """Return the curated league list."""
        return self.cache.get_or_set(
            key="leagues",
            ttl_seconds=self.config.leagues_cache_ttl_seconds,
            loader=self.resolver.leagues,
        )

    def _fetch_teams(self, league_id: str) -> List[Team]:
        league = self.resolver.get(league_id)
        if league is None:
            return []
        raw = self.client.teams_by_league_name(league.provider_name)
        return [t for t in (map_team(r, league.id) for r in raw) if t is not None]

    def get_teams(self, league_id: str) -> List[Team]:
        """Return the teams of a curated league; unknown leagues have none."""
        if self.resolver.get(league_id) is None:
            return []
        return self.cache.get_or_set(
            key=f"teams:{league_id}",
            ttl_seconds=self.config.teams_cache_ttl_seconds,
            loader=lambda: self._fetch_teams(league_id),
        )

    # -------------------------
    # Events
    # -------------------------

    def fetch_league_events(self, league_id: str) -> List[RawEvent]:
        """Fetch past and next events for a league, combined and deduplicated."""
        past, upcoming = self._parallel_map(
            lambda fetch: fetch(league_id),
            [self.client.past_league_events, self.client.next_league_events],
        )
        return dedupe_events([*past, *upcoming])

    def fetch_team_events(self, team_id: str) -> List[RawEvent]:
        """Fetch past and next events for a team, combined and deduplicated."""
        past, upcoming = self._parallel_map(
            lambda fetch: fetch(team_id),
            [self.client.past_team_events, self.client.next_team_events],
        )
        return dedupe_events([*past, *upcoming])

    def _fetch_events(self, query: ScoresQuery) -> List[RawEvent]:
        if query.league_ids:
            batches = self._parallel_map(self.fetch_league_events, list(query.league_ids))
        elif query.team_ids:
            batches = self._parallel_map(self.fetch_team_events, list(query.team_ids))
        else:
            return []
        return dedupe_events(e for batch in batches for e in batch)

    def _events(self, query: ScoresQuery) -> List[RawEvent]:
        """Fetch the raw events for a query using cached loading."""
        return self.cache.get_or_set(
            key=query.cache_key(),
            ttl_seconds=self.config.scores_cache_ttl_seconds,
            loader=lambda: self._fetch_events(query),
        )

    # -------------------------
    # Scores
    # -------------------------

    def resolve_events(self, events: Sequence[RawEvent]) -> List[ResolvedEvent]:
        """
        Attach canonical league and team ids to each event.

        Team indexes are built only for leagues that resolved to a known id.
        """
        with_league = [
            (e, self.resolver.resolve_league_id(field_str(e, "idLeague"), field_str(e, "strLeague")))
            for e in events
        ]

        league_ids = list(dict.fromkeys(lid for _, lid in with_league if lid != UNKNOWN_ID))
        team_lists = self._parallel_map(self.get_teams, league_ids)
        indexes: Dict[str, TeamIndex] = {
            lid: TeamIndex.from_teams(teams) for lid, teams in zip(league_ids, team_lists)
        }

        resolved: List[ResolvedEvent] = []
        for e, lid in with_league:
            idx = indexes.get(lid)
            resolved.append(
                ResolvedEvent(
                    event=e,
                    league_id=lid,
                    home_team_id=resolve_team_id(field_str(e, "idHomeTeam"), field_str(e, "strHomeTeam"), idx),
                    away_team_id=resolve_team_id(field_str(e, "idAwayTeam"), field_str(e, "strAwayTeam"), idx),
                )
            )
        return resolved

    def get_scores(self, query: ScoresQuery, now: Optional[datetime] = None) -> ScoresResponse:
        """
        Build score cards for the requested leagues/teams.

        Raises:
            UpstreamError if any provider request fails.
        """
        events = filter_events_by_date(self._events(query), query.date, query.window)
        resolved = filter_by_team_ids(self.resolve_events(events), query.team_ids)

        cards = assemble_cards(
            resolved,
            self.resolver.title_for,
            empty_policy=self.config.empty_status_policy,
            now=now,
        )
        logger.debug("Built %d cards from %d events for %s", len(cards), len(events), query.cache_key())
        return ScoresResponse(cards=cards, fetched_at=to_iso(now or utc_now()))
