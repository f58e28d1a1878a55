# onlyscores/models.py
"""
Domain models shared by the backend and the app-side core.

Every model is a frozen dataclass. to_dict() produces the camelCase wire shape
(optional fields omitted when None); from_dict() accepts it back.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Union

Score = Union[int, float]


class GameStatus:
    """Closed set of normalized game states."""
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINAL = "final"

    ALL = (SCHEDULED, LIVE, FINAL)


def _compact(d: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None."""
    return {k: v for k, v in d.items() if v is not None}


@dataclass(frozen=True)
class League:
    """A league as exposed over the wire."""
    id: str
    name: str
    sport: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "sport": self.sport}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "League":
        return cls(id=str(d["id"]), name=str(d.get("name") or d["id"]), sport=str(d.get("sport") or "Unknown"))


@dataclass(frozen=True)
class Team:
    """A team within a league. short_name falls back to name when the provider omits it."""
    id: str
    league_id: str
    name: str
    short_name: str
    logo_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "leagueId": self.league_id,
            "name": self.name,
            "shortName": self.short_name,
            "logoUrl": self.logo_url,
        })

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Team":
        name = str(d.get("name") or d["id"])
        return cls(
            id=str(d["id"]),
            league_id=str(d.get("leagueId") or ""),
            name=name,
            short_name=str(d.get("shortName") or name),
            logo_url=d.get("logoUrl") or None,
        )


@dataclass(frozen=True)
class ProviderGame:
    """A canonical game as produced by the backend from a provider event."""
    id: str
    league_id: str
    start_time: str
    status: str
    home_team_id: str
    away_team_id: str
    last_updated: str
    home_score: Optional[Score] = None
    away_score: Optional[Score] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "leagueId": self.league_id,
            "startTime": self.start_time,
            "status": self.status,
            "homeTeamId": self.home_team_id,
            "awayTeamId": self.away_team_id,
            "homeScore": self.home_score,
            "awayScore": self.away_score,
            "lastUpdated": self.last_updated,
        })

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ProviderGame":
        return cls(
            id=str(d["id"]),
            league_id=str(d.get("leagueId") or "unknown"),
            start_time=str(d.get("startTime") or ""),
            status=str(d.get("status") or GameStatus.SCHEDULED),
            home_team_id=str(d.get("homeTeamId") or "unknown"),
            away_team_id=str(d.get("awayTeamId") or "unknown"),
            home_score=d.get("homeScore"),
            away_score=d.get("awayScore"),
            last_updated=str(d.get("lastUpdated") or ""),
        )


@dataclass(frozen=True)
class ProviderScoreCard:
    """A league-scoped group of provider games."""
    id: str
    league_id: str
    title: str
    games: Sequence[ProviderGame] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "leagueId": self.league_id,
            "title": self.title,
            "games": [g.to_dict() for g in self.games],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ProviderScoreCard":
        return cls(
            id=str(d["id"]),
            league_id=str(d.get("leagueId") or d["id"]),
            title=str(d.get("title") or d["id"]),
            games=tuple(ProviderGame.from_dict(g) for g in d.get("games") or []),
        )


@dataclass(frozen=True)
class ScoresResponse:
    """Body of GET /v1/scores."""
    cards: Sequence[ProviderScoreCard]
    fetched_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {"cards": [c.to_dict() for c in self.cards], "fetchedAt": self.fetched_at}


@dataclass(frozen=True)
class Game:
    """A display game: team names resolved and a human time label computed."""
    id: str
    time: str
    away_team: str
    home_team: str
    status: str
    start_time: Optional[str] = None
    away_logo_url: Optional[str] = None
    home_logo_url: Optional[str] = None
    away_score: Optional[Score] = None
    home_score: Optional[Score] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "startTime": self.start_time,
            "time": self.time,
            "awayTeam": self.away_team,
            "homeTeam": self.home_team,
            "awayLogoUrl": self.away_logo_url,
            "homeLogoUrl": self.home_logo_url,
            "awayScore": self.away_score,
            "homeScore": self.home_score,
            "status": self.status,
        })

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Game":
        return cls(
            id=str(d["id"]),
            time=str(d.get("time") or ""),
            away_team=str(d.get("awayTeam") or ""),
            home_team=str(d.get("homeTeam") or ""),
            status=str(d.get("status") or GameStatus.SCHEDULED),
            start_time=d.get("startTime"),
            away_logo_url=d.get("awayLogoUrl"),
            home_logo_url=d.get("homeLogoUrl"),
            away_score=d.get("awayScore"),
            home_score=d.get("homeScore"),
        )


@dataclass(frozen=True)
class ScoreCard:
    """A display card: one UI unit holding a league's games."""
    id: str
    title: str
    games: Sequence[Game] = ()
    last_updated: Optional[str] = None

    def with_games(self, games: Sequence[Game]) -> "ScoreCard":
        return replace(self, games=tuple(games))

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "title": self.title,
            "games": [g.to_dict() for g in self.games],
            "lastUpdated": self.last_updated,
        })

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ScoreCard":
        return cls(
            id=str(d["id"]),
            title=str(d.get("title") or d["id"]),
            games=tuple(Game.from_dict(g) for g in d.get("games") or []),
            last_updated=d.get("lastUpdated"),
        )


NOTIFY_START = "notifyStart"
NOTIFY_SCORE = "notifyScore"
NOTIFY_FINAL = "notifyFinal"
NOTIFICATION_SETTING_KEYS = (NOTIFY_START, NOTIFY_SCORE, NOTIFY_FINAL)


@dataclass(frozen=True)
class CardNotificationPrefs:
    """Per-card notification switches. All on by default."""
    notify_start: bool = True
    notify_score: bool = True
    notify_final: bool = True

    def enabled(self, key: str) -> bool:
        """Look up a flag by its wire key (notifyStart/notifyScore/notifyFinal)."""
        return bool(self.to_dict().get(key, False))

    def any_enabled(self) -> bool:
        return self.notify_start or self.notify_score or self.notify_final

    def toggled(self, key: str) -> "CardNotificationPrefs":
        """Return a copy with one flag flipped; unknown keys return self."""
        if key == NOTIFY_START:
            return replace(self, notify_start=not self.notify_start)
        if key == NOTIFY_SCORE:
            return replace(self, notify_score=not self.notify_score)
        if key == NOTIFY_FINAL:
            return replace(self, notify_final=not self.notify_final)
        return self

    def to_dict(self) -> Dict[str, bool]:
        return {
            NOTIFY_START: self.notify_start,
            NOTIFY_SCORE: self.notify_score,
            NOTIFY_FINAL: self.notify_final,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CardNotificationPrefs":
        return cls(
            notify_start=bool(d.get(NOTIFY_START, True)),
            notify_score=bool(d.get(NOTIFY_SCORE, True)),
            notify_final=bool(d.get(NOTIFY_FINAL, True)),
        )


DEFAULT_NOTIFICATION_PREFS = CardNotificationPrefs()

NotificationPrefsByCard = Dict[str, CardNotificationPrefs]


@dataclass(frozen=True)
class NotificationEvent:
    """
    A notification ready for delivery.

    data carries cardId, gameId and type (the preference key that fired).
    """
    title: str
    body: str
    data: Dict[str, str] = field(default_factory=dict)

    @property
    def type(self) -> str:
        return self.data.get("type", "")

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "body": self.body, "data": dict(self.data)}


@dataclass(frozen=True)
class SelectionPreferences:
    """The user's chosen leagues and teams, in the order they were picked."""
    league_ids: Sequence[str] = ()
    team_ids: Sequence[str] = ()

    def to_dict(self) -> Dict[str, List[str]]:
        return {"leagueIds": list(self.league_ids), "teamIds": list(self.team_ids)}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SelectionPreferences":
        return cls(
            league_ids=tuple(str(x) for x in d.get("leagueIds") or []),
            team_ids=tuple(str(x) for x in d.get("teamIds") or []),
        )


@dataclass(frozen=True)
class ScoresSnapshot:
    """The last normalized cards stored for one selection fingerprint."""
    selection_id: str
    fetched_at: str
    cards: Sequence[ScoreCard] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selectionId": self.selection_id,
            "fetchedAt": self.fetched_at,
            "cards": [c.to_dict() for c in self.cards],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ScoresSnapshot":
        return cls(
            selection_id=str(d.get("selectionId") or ""),
            fetched_at=str(d.get("fetchedAt") or ""),
            cards=tuple(ScoreCard.from_dict(c) for c in d.get("cards") or []),
        )
