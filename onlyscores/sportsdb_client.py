# onlyscores/sportsdb_client.py
"""
Thin HTTP client wrapper for TheSportsDB endpoints.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class UpstreamError(RuntimeError):
    """Raised when the provider is unreachable or answers with a non-2xx status."""


class SportsDbClient:
    """A minimal client for retrieving JSON from TheSportsDB."""

    def __init__(self, base_url: str, api_key: str, timeout: int = 10, session: Optional[requests.Session] = None) -> None:
        """Store the base URL (key included) and build request headers."""
        self.base_url = f"{base_url.rstrip('/')}/{api_key}"
        self.timeout = timeout
        self._session = session or requests.Session()
        self._headers = {"User-Agent": "onlyscores-backend/1.0"}

    def get_json(self, path: str, params: Optional[Dict[str, Optional[str]]] = None) -> Dict[str, Any]:
        """
        Execute a GET request to base_url/path and return parsed JSON.

        Params whose value is empty are dropped.

        Raises:
            UpstreamError on network failures, non-2xx responses or invalid JSON.
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        query = {k: v for k, v in (params or {}).items() if v}
        try:
            r = self._session.get(url, params=query, timeout=self.timeout, headers=self._headers)
            r.raise_for_status()
            payload = r.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("SportsDB request failed: %s %s (%s)", path, query, exc)
            raise UpstreamError(f"SportsDB request failed: {path}") from exc
        return payload if isinstance(payload, dict) else {}

    @staticmethod
    def _records(payload: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
        """Return payload[key] as a list of dicts; the provider sends null for empty results."""
        rows = payload.get(key)
        if not isinstance(rows, list):
            return []
        return [r for r in rows if isinstance(r, dict)]

    def teams_by_league_name(self, league_name: str) -> List[Dict[str, Any]]:
        """Fetch all teams for a league, by the provider's league name."""
        return self._records(self.get_json("search_all_teams.php", {"l": league_name}), "teams")

    def past_league_events(self, league_id: str) -> List[Dict[str, Any]]:
        """Fetch recently completed events for a league."""
        return self._records(self.get_json("eventspastleague.php", {"id": league_id}), "events")

    def next_league_events(self, league_id: str) -> List[Dict[str, Any]]:
        """Fetch upcoming events for a league."""
        return self._records(self.get_json("eventsnextleague.php", {"id": league_id}), "events")

    def past_team_events(self, team_id: str) -> List[Dict[str, Any]]:
        """Fetch recently completed events for a team (listed under "results" by this endpoint)."""
        payload = self.get_json("eventslast.php", {"id": team_id})
        return self._records(payload, "results") or self._records(payload, "events")

    def next_team_events(self, team_id: str) -> List[Dict[str, Any]]:
        """Fetch upcoming events for a team."""
        return self._records(self.get_json("eventsnext.php", {"id": team_id}), "events")
