# onlyscores/handlers/api_handler.py
"""
Handler/controller responsible for the JSON API payloads.

Keeps Flask routes simple by concentrating query parsing, validation and
response assembly here. Every response uses one wrapped shape:
{"leagues": [...]}, {"teams": [...]}, {"cards": [...], "fetchedAt": ...}.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from ..services.scores_service import WINDOW_DAY, WINDOW_WEEK, ScoresQuery, ScoresService

logger = logging.getLogger(__name__)


class BadRequest(ValueError):
    """Raised for missing or invalid query parameters (HTTP 400)."""


def parse_list_values(values: Iterable[Any]) -> List[str]:
    """
    Flatten repeated and comma-separated query values into a clean list.

    Example:
      ["4387,4391", " 4380 ", ""] -> ["4387", "4391", "4380"]
    """
    out: List[str] = []
    for v in values:
        if not isinstance(v, str):
            continue
        out.extend(part.strip() for part in v.split(",") if part.strip())
    return out


def parse_window(raw: Optional[str]) -> Optional[str]:
    """Accept only "day" or "week"; anything else means no window."""
    w = (raw or "").strip().lower()
    return w if w in (WINDOW_DAY, WINDOW_WEEK) else None


@dataclass
class ApiHandler:
    """Turns request arguments into service calls and wire payloads."""

    scores_service: ScoresService

    def leagues(self) -> Dict[str, Any]:
        return {"leagues": [lg.to_dict() for lg in self.scores_service.get_leagues()]}

    def teams(self, league_id: Optional[str]) -> Dict[str, Any]:
        """
        Raises:
            BadRequest if leagueId is missing.
        """
        league_id = (league_id or "").strip()
        if not league_id:
            raise BadRequest("leagueId is required.")
        return {"teams": [t.to_dict() for t in self.scores_service.get_teams(league_id)]}

    def build_scores_query(
        self,
        league_values: Iterable[Any],
        team_values: Iterable[Any],
        date: Optional[str],
        window: Optional[str],
    ) -> ScoresQuery:
        """
        Validate /v1/scores arguments.

        Raises:
            BadRequest if both leagueIds and teamIds are empty.
        """
        league_ids = parse_list_values(league_values)
        team_ids = parse_list_values(team_values)
        if not league_ids and not team_ids:
            raise BadRequest("leagueIds or teamIds are required.")
        return ScoresQuery(
            league_ids=tuple(league_ids),
            team_ids=tuple(team_ids),
            date=(date or "").strip() or None,
            window=parse_window(window),
        )

    def scores(self, query: ScoresQuery) -> Dict[str, Any]:
        return self.scores_service.get_scores(query).to_dict()

    def accept(self, kind: str, body: Any) -> None:
        """Fire-and-forget sink for device subscriptions and analytics events."""
        logger.debug("Accepted %s payload: %s", kind, body)
