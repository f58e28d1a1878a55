# onlyscores/client/backend_client.py
"""
Thin HTTP client wrapper for the OnlyScores backend, as used by the app.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

import requests

from ..config import MISSING_API_BASE_WARNING, ConfigError
from ..models import League, ProviderScoreCard, Team
from ..status import to_iso, utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")

ENDPOINTS = {
    "leagues": "/v1/leagues",
    "teams": "/v1/teams",
    "scores": "/v1/scores",
    "device_subscribe": "/v1/device/subscribe",
    "analytics_events": "/v1/analytics/events",
}


class BackendError(RuntimeError):
    """Raised when the backend is unreachable or answers with a non-2xx status."""


@dataclass(frozen=True)
class ScoresRequest:
    """Arguments of one /v1/scores call."""
    league_ids: Sequence[str] = ()
    team_ids: Sequence[str] = ()
    date: Optional[str] = None
    window: Optional[str] = None

    def params(self) -> Dict[str, str]:
        raw = {
            "leagueIds": ",".join(self.league_ids),
            "teamIds": ",".join(self.team_ids),
            "date": self.date or "",
            "window": self.window or "",
        }
        return {k: v for k, v in raw.items() if v}


class BackendClient:
    """A minimal client for the backend's JSON API."""

    def __init__(self, base_url: Optional[str], timeout: int = 10, session: Optional[requests.Session] = None) -> None:
        """Store the base URL (trailing slashes dropped) and build request headers."""
        self.base_url = (base_url or "").strip().rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._headers = {"User-Agent": "onlyscores-app/1.0"}

    def _url(self, path: str) -> str:
        if not self.base_url:
            raise ConfigError(MISSING_API_BASE_WARNING)
        return f"{self.base_url}{path}"

    def get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        Execute a GET request to base_url + path and return parsed JSON.

        Raises:
            ConfigError if no base URL is configured.
            BackendError on network failures, non-2xx responses or invalid JSON.
        """
        url = self._url(path)
        try:
            r = self._session.get(url, params=params or {}, timeout=self.timeout, headers=self._headers)
            r.raise_for_status()
            payload = r.json()
        except (requests.RequestException, ValueError) as exc:
            raise BackendError(f"Backend request failed: {path}") from exc
        if not isinstance(payload, dict):
            raise BackendError(f"Unexpected payload from {path}")
        return payload

    def post_json(self, path: str, body: Dict[str, Any]) -> None:
        """
        POST a JSON body.

        Raises:
            ConfigError if no base URL is configured.
            BackendError on network failures or non-2xx responses.
        """
        url = self._url(path)
        try:
            r = self._session.post(url, json=body, timeout=self.timeout, headers=self._headers)
            r.raise_for_status()
        except requests.RequestException as exc:
            raise BackendError(f"Backend request failed: {path}") from exc

    @staticmethod
    def _decode(path: str, rows: Any, factory: Callable[[Dict[str, Any]], T]) -> List[T]:
        """
        Build models from a payload list.

        Raises:
            BackendError if the list or any entry is malformed.
        """
        try:
            return [factory(d) for d in rows or []]
        except (KeyError, TypeError, AttributeError, ValueError) as exc:
            raise BackendError(f"Malformed payload from {path}") from exc

    def get_leagues(self) -> List[League]:
        payload = self.get_json(ENDPOINTS["leagues"])
        return self._decode(ENDPOINTS["leagues"], payload.get("leagues"), League.from_dict)

    def get_teams(self, league_id: str) -> List[Team]:
        payload = self.get_json(ENDPOINTS["teams"], {"leagueId": league_id})
        return self._decode(ENDPOINTS["teams"], payload.get("teams"), Team.from_dict)

    def get_scores(self, request: ScoresRequest) -> List[ProviderScoreCard]:
        payload = self.get_json(ENDPOINTS["scores"], request.params())
        return self._decode(ENDPOINTS["scores"], payload.get("cards"), ProviderScoreCard.from_dict)

    def subscribe_device(self, payload: Dict[str, Any]) -> bool:
        """
        Register the device for push.

        payload carries expoPushToken, leagueIds, teamIds and per-card preferences.
        Raises BackendError on failure.
        """
        self.post_json(ENDPOINTS["device_subscribe"], dict(payload))
        return True

    def track_event(self, event: str, metadata: Optional[Dict[str, str]] = None) -> bool:
        """
        Fire-and-forget analytics.

        Returns False instead of raising on any failure, including a missing base URL.
        """
        if not self.base_url:
            return False
        body: Dict[str, Any] = {"event": event, "occurredAt": to_iso(utc_now())}
        if metadata:
            body["metadata"] = dict(metadata)
        try:
            self.post_json(ENDPOINTS["analytics_events"], body)
        except BackendError:
            logger.debug("Analytics event %s dropped", event, exc_info=True)
            return False
        return True
