"""Tests for provider card -> display card normalization and latest-only mode."""

from __future__ import annotations

from dateutil import tz

from onlyscores.client.normalizer import (
    apply_latest_only,
    build_team_lookup,
    card_last_updated,
    filter_cards_by_team_ids,
    latest_card_updated,
    normalize_cards,
    select_casual_games,
)
from onlyscores.models import Game, GameStatus, ProviderGame, ProviderScoreCard, ScoreCard, Team


def _pgame(gid, status=GameStatus.SCHEDULED, home="h", away="a", start="2024-01-02T19:00:00Z", updated="2024-01-02T19:00:00Z", **kw):
    return ProviderGame(
        id=gid,
        league_id="4387",
        start_time=start,
        status=status,
        home_team_id=home,
        away_team_id=away,
        last_updated=updated,
        **kw,
    )


def _game(gid, status, start):
    return Game(id=gid, time="", away_team="A", home_team="H", status=status, start_time=start)


# ---------------------------------------------------------------------------
# normalize_cards
# ---------------------------------------------------------------------------
class TestNormalizeCards:
    def test_resolves_names_and_logos(self):
        lookup = build_team_lookup([
            Team(id="h", league_id="4387", name="Boston Celtics", short_name="Celtics", logo_url="https://x/h.png"),
        ])
        card = ProviderScoreCard(id="4387", league_id="4387", title="NBA", games=(
            _pgame("g1", status=GameStatus.LIVE, home_score=80, away_score=75),
        ))
        out = normalize_cards([card], lookup)
        game = out[0].games[0]
        assert game.home_team == "Celtics"
        assert game.home_logo_url == "https://x/h.png"
        assert game.away_team == "a"
        assert game.away_logo_url is None
        assert game.time == "LIVE"
        assert (game.home_score, game.away_score) == (80, 75)

    def test_scheduled_time_in_display_tz(self):
        card = ProviderScoreCard(id="c", league_id="c", title="C", games=(_pgame("g1"),))
        out = normalize_cards([card], {}, tz.gettz("America/New_York"))
        assert out[0].games[0].time == "2:00 PM"

    def test_card_last_updated_is_latest_valid(self):
        games = [
            _pgame("g1", updated="2024-01-01T10:00:00Z"),
            _pgame("g2", updated="2024-01-02T00:00:00Z"),
            _pgame("g3", updated="garbage"),
        ]
        assert card_last_updated(games) == "2024-01-02T00:00:00Z"

    def test_card_last_updated_none_when_unparseable(self):
        assert card_last_updated([_pgame("g1", updated="")]) is None

    def test_latest_card_updated(self):
        cards = [
            ScoreCard(id="a", title="A", last_updated="2024-01-01T00:00:00Z"),
            ScoreCard(id="b", title="B", last_updated="2024-01-03T00:00:00Z"),
            ScoreCard(id="c", title="C"),
        ]
        assert latest_card_updated(cards) == "2024-01-03T00:00:00Z"


# ---------------------------------------------------------------------------
# filter_cards_by_team_ids
# ---------------------------------------------------------------------------
class TestTeamFilter:
    def test_keeps_either_side_and_drops_empty_cards(self):
        cards = [
            ProviderScoreCard(id="1", league_id="1", title="One", games=(
                _pgame("g1", home="x"), _pgame("g2", away="x"), _pgame("g3"),
            )),
            ProviderScoreCard(id="2", league_id="2", title="Two", games=(_pgame("g4"),)),
        ]
        out = filter_cards_by_team_ids(cards, ["x"])
        assert [c.id for c in out] == ["1"]
        assert [g.id for g in out[0].games] == ["g1", "g2"]

    def test_no_teams_is_noop(self):
        cards = [ProviderScoreCard(id="1", league_id="1", title="One", games=(_pgame("g1"),))]
        assert filter_cards_by_team_ids(cards, []) == cards


# ---------------------------------------------------------------------------
# latest-only
# ---------------------------------------------------------------------------
class TestLatestOnly:
    def test_live_wins(self):
        games = [
            _game("f", GameStatus.FINAL, "2024-01-02T20:00:00Z"),
            _game("l1", GameStatus.LIVE, "2024-01-02T18:00:00Z"),
            _game("l2", GameStatus.LIVE, "2024-01-02T19:00:00Z"),
        ]
        assert [g.id for g in select_casual_games(games)] == ["l2"]

    def test_latest_final_when_nothing_live(self):
        games = [
            _game("f1", GameStatus.FINAL, "2024-01-01T20:00:00Z"),
            _game("f2", GameStatus.FINAL, "2024-01-02T20:00:00Z"),
            _game("s", GameStatus.SCHEDULED, "2024-01-03T20:00:00Z"),
        ]
        assert [g.id for g in select_casual_games(games)] == ["f2"]

    def test_earliest_upcoming(self):
        games = [
            _game("s2", GameStatus.SCHEDULED, "2024-01-04T20:00:00Z"),
            _game("s1", GameStatus.SCHEDULED, "2024-01-03T20:00:00Z"),
        ]
        assert [g.id for g in select_casual_games(games)] == ["s1"]

    def test_apply_latest_only_keeps_cards(self):
        card = ScoreCard(id="c", title="C", games=(
            _game("s2", GameStatus.SCHEDULED, "2024-01-04T20:00:00Z"),
            _game("s1", GameStatus.SCHEDULED, "2024-01-03T20:00:00Z"),
        ))
        empty = ScoreCard(id="e", title="E")
        out = apply_latest_only([card, empty])
        assert [g.id for g in out[0].games] == ["s1"]
        assert out[1].games == ()
