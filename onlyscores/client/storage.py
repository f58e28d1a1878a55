# onlyscores/client/storage.py
"""
Local persistence for app-side state.

The device key-value store is external; anything with get_item/set_item/
remove_item on strings will do. ScoresCache layers JSON encoding, a key
prefix and typed accessors on top of it. Reads return None on any failure and
writes swallow failures: in-memory state stays authoritative for the session.
"""

from __future__ import annotations

import json
import logging
import math
import os
import threading
from typing import Any, Dict, List, Optional, Protocol

from ..models import CardNotificationPrefs, NotificationPrefsByCard, ScoresSnapshot, SelectionPreferences

logger = logging.getLogger(__name__)

CACHE_PREFIX = "onlyscores:cache:"

SCORE_SNAPSHOT_KEY = "scores:snapshots"
CARD_ORDER_KEY = "cards:order"
NOTIFICATION_PREFS_KEY = "cards:notifications"
SELECTION_KEY = "selection:preferences"
REFRESH_INTERVAL_KEY = "settings:refresh-interval-seconds"
LATEST_ONLY_KEY = "settings:latest-only"
PUSH_TOKEN_KEY = "notifications:deviceToken"


class KeyValueStore(Protocol):
    """String key -> string value storage."""

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStore:
    """Process-local store, used in tests and headless runs."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """All keys in one JSON object on disk, rewritten atomically on every change."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, str]) -> None:
        tmp = f"{self.path}.tmp"
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(data, fh)
        os.replace(tmp, self.path)

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if data.pop(key, None) is not None:
                self._save(data)


class ScoresCache:
    """Typed, failure-tolerant JSON cache over a KeyValueStore."""

    def __init__(self, store: KeyValueStore, prefix: str = CACHE_PREFIX) -> None:
        self.store = store
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def read(self, key: str) -> Any:
        """Return the decoded value for key, or None if missing/unreadable."""
        try:
            raw = self.store.get_item(self._key(key))
        except Exception:
            logger.warning("Cache read failed for %s", key, exc_info=True)
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.debug("Discarding undecodable cache entry %s", key)
            return None

    def write(self, key: str, value: Any) -> bool:
        """Store value under key. Returns False (and logs) on failure."""
        try:
            self.store.set_item(self._key(key), json.dumps(value))
            return True
        except Exception:
            logger.warning("Cache write failed for %s", key, exc_info=True)
            return False

    def remove(self, key: str) -> bool:
        try:
            self.store.remove_item(self._key(key))
            return True
        except Exception:
            logger.warning("Cache remove failed for %s", key, exc_info=True)
            return False

    # -------------------------
    # Score snapshots (one per selection fingerprint)
    # -------------------------

    def read_snapshot(self, selection_id: str) -> Optional[ScoresSnapshot]:
        store = self.read(SCORE_SNAPSHOT_KEY)
        if not isinstance(store, dict):
            return None
        entry = store.get(selection_id)
        if not isinstance(entry, dict):
            return None
        try:
            return ScoresSnapshot.from_dict(entry)
        except (KeyError, TypeError, ValueError):
            logger.debug("Discarding malformed snapshot for %s", selection_id)
            return None

    def write_snapshot(self, snapshot: ScoresSnapshot) -> bool:
        store = self.read(SCORE_SNAPSHOT_KEY)
        merged = dict(store) if isinstance(store, dict) else {}
        merged[snapshot.selection_id] = snapshot.to_dict()
        return self.write(SCORE_SNAPSHOT_KEY, merged)

    # -------------------------
    # Card order
    # -------------------------

    def read_card_order(self) -> Optional[List[str]]:
        order = self.read(CARD_ORDER_KEY)
        if not isinstance(order, list):
            return None
        return [str(x) for x in order]

    def write_card_order(self, order: List[str]) -> bool:
        return self.write(CARD_ORDER_KEY, list(order))

    # -------------------------
    # Notification preferences
    # -------------------------

    def read_notification_prefs(self) -> Optional[NotificationPrefsByCard]:
        raw = self.read(NOTIFICATION_PREFS_KEY)
        if not isinstance(raw, dict):
            return None
        return {str(k): CardNotificationPrefs.from_dict(v) for k, v in raw.items() if isinstance(v, dict)}

    def write_notification_prefs(self, prefs: NotificationPrefsByCard) -> bool:
        return self.write(NOTIFICATION_PREFS_KEY, {k: v.to_dict() for k, v in prefs.items()})

    # -------------------------
    # Selection & settings
    # -------------------------

    def read_selection(self) -> Optional[SelectionPreferences]:
        raw = self.read(SELECTION_KEY)
        if not isinstance(raw, dict):
            return None
        return SelectionPreferences.from_dict(raw)

    def write_selection(self, selection: SelectionPreferences) -> bool:
        return self.write(SELECTION_KEY, selection.to_dict())

    def read_refresh_interval(self) -> Optional[float]:
        raw = self.read(REFRESH_INTERVAL_KEY)
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or not math.isfinite(raw):
            return None
        return raw

    def write_refresh_interval(self, seconds: int) -> bool:
        return self.write(REFRESH_INTERVAL_KEY, seconds)

    def read_latest_only(self) -> Optional[bool]:
        raw = self.read(LATEST_ONLY_KEY)
        return raw if isinstance(raw, bool) else None

    def write_latest_only(self, value: bool) -> bool:
        return self.write(LATEST_ONLY_KEY, bool(value))

    def read_push_token(self) -> Optional[str]:
        raw = self.read(PUSH_TOKEN_KEY)
        return raw if isinstance(raw, str) and raw else None

    def write_push_token(self, token: str) -> bool:
        return self.write(PUSH_TOKEN_KEY, token)
