# onlyscores/client/sync.py
"""
The app-side fetch cycle.

ScoreSync owns the in-memory session state (selection, cards, order,
notification preferences, settings), loads it from and saves it to a
ScoresCache, and runs one fetch at a time against a scores provider
(normally a BackendClient). AutoRefresh drives fetch() on a timer while the
app is in the foreground.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from ..config import MISSING_API_BASE_WARNING, ClientConfig, ConfigError
from ..leagues import is_nfl_league
from ..models import (
    League,
    NotificationEvent,
    NotificationPrefsByCard,
    ProviderScoreCard,
    ScoreCard,
    ScoresSnapshot,
    SelectionPreferences,
    Team,
)
from ..status import resolve_tz, to_iso, utc_now
from .backend_client import BackendError, ScoresRequest
from .normalizer import apply_latest_only, build_team_lookup, filter_cards_by_team_ids, normalize_cards
from .notifications import build_notification_events, has_notifications_enabled
from .ordering import apply_card_order, card_order, move_card
from .preferences import (
    build_selection_id,
    ensure_notification_prefs,
    normalize_refresh_interval,
    toggle_notification_pref,
)
from .storage import ScoresCache

logger = logging.getLogger(__name__)

FETCH_ERROR_MESSAGE = "Unable to load scores. Check your connection."

SOURCE_AUTO = "auto"


class ScoresProvider(Protocol):
    """What the fetch cycle needs from a data source."""

    def get_leagues(self) -> List[League]: ...

    def get_teams(self, league_id: str) -> List[Team]: ...

    def get_scores(self, request: ScoresRequest) -> List[ProviderScoreCard]: ...


Notifier = Callable[[List[NotificationEvent]], None]
Tracker = Callable[[str, Optional[Dict[str, str]]], bool]


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one fetch() call."""
    cards: List[ScoreCard]
    fetched_at: Optional[str] = None
    events: List[NotificationEvent] = field(default_factory=list)
    offline: bool = False
    error: Optional[str] = None


class ScoreSync:
    """
    Session state plus the fetch cycle.

    Notes:
      - fetch() never overlaps itself; a call made while another is running
        returns None.
      - notifications are only diffed once a baseline exists from an earlier
        successful fetch in this session.
      - persistence failures never fail a fetch (ScoresCache swallows them).
    """

    def __init__(
        self,
        provider: ScoresProvider,
        cache: ScoresCache,
        config: ClientConfig,
        notifier: Optional[Notifier] = None,
        tracker: Optional[Tracker] = None,
        clock: Callable[[], datetime] = utc_now,
        max_workers: int = 4,
    ) -> None:
        self.provider = provider
        self.cache = cache
        self.config = config
        self.notifier = notifier
        self.tracker = tracker
        self.clock = clock
        self.max_workers = max_workers
        self.display_tz = resolve_tz(config.display_tz)

        self.selection = SelectionPreferences()
        self.cards: List[ScoreCard] = []
        self.card_order: List[str] = []
        self.notification_prefs: NotificationPrefsByCard = {}
        self.refresh_interval = config.default_refresh_interval_seconds
        self.latest_only = False
        self.fetched_at: Optional[str] = None
        self.offline = False
        self.error: Optional[str] = None

        self._baseline: Optional[List[ScoreCard]] = None
        self._leagues: Optional[Dict[str, League]] = None
        self._fetch_lock = threading.Lock()

    # -------------------------
    # Hydration & settings
    # -------------------------

    @property
    def selection_id(self) -> Optional[str]:
        return build_selection_id(self.selection.league_ids, self.selection.team_ids)

    def hydrate(self) -> None:
        """Restore everything ScoresCache holds, then the snapshot for the stored selection."""
        order = self.cache.read_card_order()
        if order:
            self.card_order = order
        prefs = self.cache.read_notification_prefs()
        if prefs is not None:
            self.notification_prefs = prefs
        selection = self.cache.read_selection()
        if selection is not None:
            self.selection = selection
        interval = self.cache.read_refresh_interval()
        if interval is not None:
            self.refresh_interval = self._normalize_interval(interval)
        latest_only = self.cache.read_latest_only()
        if latest_only is not None:
            self.latest_only = latest_only
        self._restore_snapshot()

    def _restore_snapshot(self) -> bool:
        sid = self.selection_id
        snapshot = self.cache.read_snapshot(sid) if sid else None
        if snapshot is None:
            return False
        self.cards = apply_card_order(snapshot.cards, self.card_order)
        self.fetched_at = snapshot.fetched_at
        self._ensure_prefs(self.cards)
        return True

    def _normalize_interval(self, seconds: float) -> int:
        return normalize_refresh_interval(
            seconds,
            minimum=self.config.refresh_interval_min_seconds,
            maximum=self.config.refresh_interval_max_seconds,
            step=self.config.refresh_interval_step_seconds,
        )

    def set_selection(self, selection: SelectionPreferences) -> None:
        """Switch to a new selection; its cached snapshot (if any) is shown until the next fetch."""
        self.selection = selection
        self.cache.write_selection(selection)
        self.cards = []
        self.fetched_at = None
        self._baseline = None
        self._restore_snapshot()

    def set_refresh_interval(self, seconds: float) -> int:
        self.refresh_interval = self._normalize_interval(seconds)
        self.cache.write_refresh_interval(self.refresh_interval)
        return self.refresh_interval

    def toggle_latest_only(self) -> bool:
        self.latest_only = not self.latest_only
        self.cache.write_latest_only(self.latest_only)
        return self.latest_only

    def toggle_notification_pref(self, card_id: str, key: str) -> NotificationPrefsByCard:
        self.notification_prefs = toggle_notification_pref(self.notification_prefs, card_id, key)
        self.cache.write_notification_prefs(self.notification_prefs)
        return self.notification_prefs

    def move_card(self, card_id: str, target_index: int) -> List[ScoreCard]:
        """Reorder one card and persist the resulting order."""
        self.cards = move_card(self.cards, card_id, target_index)
        self.card_order = card_order(self.cards)
        self.cache.write_card_order(self.card_order)
        return self.cards

    def display_cards(self) -> List[ScoreCard]:
        """Cards as shown: latest-only mode reduces each card to one game."""
        return apply_latest_only(self.cards) if self.latest_only else list(self.cards)

    def _ensure_prefs(self, cards: Sequence[ScoreCard]) -> None:
        prefs, changed = ensure_notification_prefs(self.notification_prefs, cards)
        if changed:
            self.notification_prefs = prefs
            self.cache.write_notification_prefs(prefs)

    # -------------------------
    # Fetch cycle
    # -------------------------

    def fetch(self, source: str = SOURCE_AUTO) -> Optional[FetchResult]:
        """
        Run one fetch cycle.

        Returns None when another fetch is already in flight, otherwise the
        resulting state. Never raises for provider failures.
        """
        if self.config.api_base_missing:
            self.error = MISSING_API_BASE_WARNING
            self.offline = False
            return FetchResult(cards=self.display_cards(), fetched_at=self.fetched_at, error=self.error)
        if not self._fetch_lock.acquire(blocking=False):
            logger.debug("Fetch (%s) skipped: another fetch is running", source)
            return None
        try:
            return self._fetch(source)
        finally:
            self._fetch_lock.release()

    def _fetch(self, source: str) -> FetchResult:
        self.error = None
        if self.tracker is not None:
            self.tracker("refresh", {"source": source})
        selection = self.selection
        sid = self.selection_id
        try:
            provider_cards = self._load_cards(selection)
            filtered = filter_cards_by_team_ids(provider_cards, selection.team_ids)
            teams = self._load_teams(list(dict.fromkeys(c.league_id for c in filtered)))
        except ConfigError as exc:
            self.error = str(exc)
            self.offline = False
            return FetchResult(cards=self.display_cards(), fetched_at=self.fetched_at, error=self.error)
        except BackendError:
            logger.warning("Fetch (%s) failed; falling back to cached scores", source, exc_info=True)
            return self._fallback()

        normalized = normalize_cards(filtered, build_team_lookup(teams), self.display_tz)
        ordered = apply_card_order(normalized, self.card_order)
        fetched_at = to_iso(self.clock())

        events: List[NotificationEvent] = []
        if self._baseline is not None and has_notifications_enabled(ordered, self.notification_prefs):
            events = build_notification_events(self._baseline, ordered, self.notification_prefs)
            if events and self.notifier is not None:
                self.notifier(events)
        self._baseline = ordered

        self.cards = ordered
        self.fetched_at = fetched_at
        self.offline = False
        self._ensure_prefs(ordered)
        if sid:
            self.cache.write_snapshot(ScoresSnapshot(selection_id=sid, fetched_at=fetched_at, cards=tuple(ordered)))
        return FetchResult(cards=self.display_cards(), fetched_at=fetched_at, events=events)

    def _fallback(self) -> FetchResult:
        self.error = FETCH_ERROR_MESSAGE
        self.offline = True
        order = self.cache.read_card_order()
        if order:
            self.card_order = order
        self._restore_snapshot()
        return FetchResult(cards=self.display_cards(), fetched_at=self.fetched_at, offline=True, error=self.error)

    def _league_index(self) -> Dict[str, League]:
        if self._leagues is None:
            self._leagues = {lg.id: lg for lg in self.provider.get_leagues()}
        return self._leagues

    def build_requests(self, selection: SelectionPreferences) -> List[ScoresRequest]:
        """
        Split the selection into score requests.

        NFL leagues are asked for the whole week around today's date (in the
        display timezone); every other league uses the provider default.
        """
        index = self._league_index() if selection.league_ids else {}
        nfl = [lid for lid in selection.league_ids if lid in index and is_nfl_league(index[lid])]
        others = [lid for lid in selection.league_ids if lid not in nfl]
        teams = tuple(selection.team_ids)

        requests: List[ScoresRequest] = []
        if nfl:
            today = self.clock().astimezone(self.display_tz).strftime("%Y-%m-%d")
            requests.append(ScoresRequest(league_ids=tuple(nfl), team_ids=teams, date=today, window="week"))
        if others:
            requests.append(ScoresRequest(league_ids=tuple(others), team_ids=teams))
        if not requests:
            requests.append(ScoresRequest(league_ids=tuple(selection.league_ids), team_ids=teams))
        return requests

    def _load_cards(self, selection: SelectionPreferences) -> List[ProviderScoreCard]:
        requests = self.build_requests(selection)
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(requests))) as pool:
            batches = list(pool.map(self.provider.get_scores, requests))
        return [card for batch in batches for card in batch]

    def _load_teams(self, league_ids: List[str]) -> List[Team]:
        if not league_ids:
            return []
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(league_ids))) as pool:
            batches = list(pool.map(self.provider.get_teams, league_ids))
        return [team for batch in batches for team in batch]


class AutoRefresh:
    """
    Calls sync.fetch() on a daemon thread.

    Without an explicit interval the wait follows sync.refresh_interval, read
    again before every wait. start() on foreground, stop() on background.
    set_interval() takes effect after the current wait.
    """

    def __init__(self, sync: ScoreSync, interval_seconds: Optional[float] = None) -> None:
        self.sync = sync
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def current_interval(self) -> float:
        return self.interval_seconds or self.sync.refresh_interval

    def set_interval(self, seconds: Optional[float]) -> None:
        """Pin the interval; None goes back to following the sync's setting."""
        self.interval_seconds = seconds

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="onlyscores-refresh", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.current_interval()):
            self.sync.fetch(SOURCE_AUTO)
