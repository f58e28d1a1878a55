"""Tests for the local key-value persistence helpers."""

from __future__ import annotations

from onlyscores.client.storage import (
    CACHE_PREFIX,
    CARD_ORDER_KEY,
    JsonFileStore,
    MemoryStore,
    ScoresCache,
)
from onlyscores.models import (
    CardNotificationPrefs,
    Game,
    GameStatus,
    ScoreCard,
    ScoresSnapshot,
    SelectionPreferences,
)


class BrokenStore:
    """A store whose every operation fails."""

    def get_item(self, key):
        raise OSError("disk gone")

    def set_item(self, key, value):
        raise OSError("disk gone")

    def remove_item(self, key):
        raise OSError("disk gone")


def _snapshot(selection_id="leagues:4387|teams:"):
    game = Game(id="g1", time="LIVE", away_team="A", home_team="H", status=GameStatus.LIVE, home_score=1, away_score=0)
    return ScoresSnapshot(
        selection_id=selection_id,
        fetched_at="2024-01-02T00:00:00Z",
        cards=(ScoreCard(id="4387", title="NBA", games=(game,), last_updated="2024-01-02T00:00:00Z"),),
    )


class TestScoresCache:
    def test_keys_are_prefixed(self):
        store = MemoryStore()
        ScoresCache(store).write_card_order(["a"])
        assert store.get_item(f"{CACHE_PREFIX}{CARD_ORDER_KEY}") == '["a"]'

    def test_snapshots_per_selection(self):
        cache = ScoresCache(MemoryStore())
        cache.write_snapshot(_snapshot("one"))
        cache.write_snapshot(_snapshot("two"))
        assert cache.read_snapshot("one") == _snapshot("one")
        assert cache.read_snapshot("two").selection_id == "two"
        assert cache.read_snapshot("three") is None

    def test_settings_round_trip(self):
        cache = ScoresCache(MemoryStore())
        cache.write_selection(SelectionPreferences(league_ids=("4387",), team_ids=("t1",)))
        cache.write_notification_prefs({"4387": CardNotificationPrefs(notify_final=False)})
        cache.write_refresh_interval(90)
        cache.write_latest_only(True)
        cache.write_push_token("ExponentPushToken[x]")

        assert cache.read_selection() == SelectionPreferences(league_ids=("4387",), team_ids=("t1",))
        assert cache.read_notification_prefs() == {"4387": CardNotificationPrefs(notify_final=False)}
        assert cache.read_refresh_interval() == 90
        assert cache.read_latest_only() is True
        assert cache.read_push_token() == "ExponentPushToken[x]"

    def test_missing_values_are_none(self):
        cache = ScoresCache(MemoryStore())
        assert cache.read_card_order() is None
        assert cache.read_selection() is None
        assert cache.read_refresh_interval() is None
        assert cache.read_latest_only() is None

    def test_garbage_is_ignored(self):
        store = MemoryStore()
        store.set_item(f"{CACHE_PREFIX}{CARD_ORDER_KEY}", "{not json")
        assert ScoresCache(store).read_card_order() is None

    def test_failures_are_swallowed(self):
        cache = ScoresCache(BrokenStore())
        assert cache.write_card_order(["a"]) is False
        assert cache.read_card_order() is None
        assert cache.remove(CARD_ORDER_KEY) is False


def test_json_file_store(tmp_path):
    path = str(tmp_path / "state.json")
    store = JsonFileStore(path)
    assert store.get_item("k") is None
    store.set_item("k", "v")
    assert JsonFileStore(path).get_item("k") == "v"
    store.remove_item("k")
    assert store.get_item("k") is None
