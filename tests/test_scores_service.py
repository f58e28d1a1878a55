"""Tests for ScoresService: fetching, filtering and card assembly."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from onlyscores.cache import TTLCache
from onlyscores.config import AppConfig
from onlyscores.models import GameStatus
from onlyscores.services.scores_service import (
    ScoresQuery,
    ScoresService,
    filter_events_by_date,
)
from onlyscores.sportsdb_client import UpstreamError

NOW = datetime(2024, 1, 2, 1, 0, tzinfo=timezone.utc)

NBA_EVENT = {
    "idEvent": "e1",
    "idLeague": "4387",
    "strLeague": "NBA",
    "dateEvent": "2024-01-02",
    "strTimestamp": "2024-01-02T00:30:00Z",
    "strStatus": "Q3",
    "intHomeScore": "80",
    "intAwayScore": "75",
    "idHomeTeam": "134860",
    "strHomeTeam": "Boston Celtics",
    "idAwayTeam": "999",
    "strAwayTeam": "Nobody FC",
}

NBA_NEXT = {
    "idEvent": "e2",
    "idLeague": "4387",
    "dateEvent": "2024-01-04",
    "strTime": "00:00:00",
    "idHomeTeam": "134862",
    "idAwayTeam": "134860",
}


class FakeSportsDb:
    """In-memory stand-in for SportsDbClient that counts calls."""

    def __init__(self, past=None, upcoming=None, teams=None, fail=False):
        self.past = past or {}
        self.upcoming = upcoming or {}
        self.teams = teams or {}
        self.fail = fail
        self.calls = []

    def _call(self, name, arg, table):
        self.calls.append((name, arg))
        if self.fail:
            raise UpstreamError(f"SportsDB request failed: {name}")
        return list(table.get(arg, []))

    def teams_by_league_name(self, league_name):
        return self._call("teams", league_name, self.teams)

    def past_league_events(self, league_id):
        return self._call("past_league", league_id, self.past)

    def next_league_events(self, league_id):
        return self._call("next_league", league_id, self.upcoming)

    def past_team_events(self, team_id):
        return self._call("past_team", team_id, self.past)

    def next_team_events(self, team_id):
        return self._call("next_team", team_id, self.upcoming)


def _service(client) -> ScoresService:
    return ScoresService(client=client, cache=TTLCache(), config=AppConfig())


@pytest.fixture
def nba_client():
    return FakeSportsDb(
        past={"4387": [NBA_EVENT]},
        upcoming={"4387": [NBA_NEXT, NBA_EVENT]},
        teams={"NBA": [
            {"idTeam": "134860", "strTeam": "Boston Celtics", "strTeamShort": "BOS"},
            {"idTeam": "134862", "strTeam": "Los Angeles Lakers"},
        ]},
    )


# ---------------------------------------------------------------------------
# leagues & teams
# ---------------------------------------------------------------------------
class TestLeaguesAndTeams:
    def test_leagues_are_curated(self, nba_client):
        ids = [lg.id for lg in _service(nba_client).get_leagues()]
        assert "4387" in ids
        assert nba_client.calls == []

    def test_teams_for_curated_league(self, nba_client):
        teams = _service(nba_client).get_teams("4387")
        assert [t.id for t in teams] == ["134860", "134862"]
        assert teams[1].short_name == "Los Angeles Lakers"
        assert nba_client.calls == [("teams", "NBA")]

    def test_teams_are_cached(self, nba_client):
        service = _service(nba_client)
        service.get_teams("4387")
        service.get_teams("4387")
        assert nba_client.calls == [("teams", "NBA")]

    def test_unknown_league_has_no_teams(self, nba_client):
        assert _service(nba_client).get_teams("12345") == []
        assert nba_client.calls == []


# ---------------------------------------------------------------------------
# get_scores
# ---------------------------------------------------------------------------
class TestGetScores:
    def test_live_nba_game_end_to_end(self, nba_client):
        response = _service(nba_client).get_scores(ScoresQuery(league_ids=("4387",)), now=NOW)
        assert len(response.cards) == 1
        card = response.cards[0]
        assert (card.id, card.league_id, card.title) == ("4387", "4387", "NBA")

        game = card.games[0]
        assert game.id == "e1"
        assert game.status == GameStatus.LIVE
        assert (game.home_score, game.away_score) == (80, 75)
        assert game.home_team_id == "134860"
        assert game.away_team_id == "999"
        assert response.fetched_at == "2024-01-02T01:00:00Z"

    def test_duplicates_across_past_and_next_are_dropped(self, nba_client):
        response = _service(nba_client).get_scores(ScoresQuery(league_ids=("4387",)), now=NOW)
        assert [g.id for g in response.cards[0].games] == ["e1", "e2"]

    def test_date_filter(self, nba_client):
        query = ScoresQuery(league_ids=("4387",), date="2024-01-04")
        response = _service(nba_client).get_scores(query, now=NOW)
        assert [g.id for g in response.cards[0].games] == ["e2"]

    def test_week_window_skips_date_filter(self, nba_client):
        query = ScoresQuery(league_ids=("4387",), date="2024-01-04", window="week")
        response = _service(nba_client).get_scores(query, now=NOW)
        assert len(response.cards[0].games) == 2

    def test_no_games_means_no_cards(self, nba_client):
        query = ScoresQuery(league_ids=("4387",), date="2023-06-01")
        assert _service(nba_client).get_scores(query, now=NOW).cards == []

    def test_team_filter(self, nba_client):
        query = ScoresQuery(league_ids=("4387",), team_ids=("134862",))
        response = _service(nba_client).get_scores(query, now=NOW)
        assert [g.id for g in response.cards[0].games] == ["e2"]

    def test_team_only_query_uses_team_endpoints(self):
        client = FakeSportsDb(
            past={"134860": [NBA_EVENT]},
            upcoming={"134860": []},
            teams={"NBA": [{"idTeam": "134860", "strTeam": "Boston Celtics"}]},
        )
        response = _service(client).get_scores(ScoresQuery(team_ids=("134860",)), now=NOW)
        assert [g.id for g in response.cards[0].games] == ["e1"]
        assert ("past_team", "134860") in client.calls
        assert not any(name.endswith("_league") for name, _ in client.calls)

    def test_raw_events_are_cached_per_query(self, nba_client):
        service = _service(nba_client)
        query = ScoresQuery(league_ids=("4387",))
        service.get_scores(query, now=NOW)
        service.get_scores(query, now=NOW)
        event_calls = [c for c in nba_client.calls if c[0] != "teams"]
        assert len(event_calls) == 2

    def test_upstream_error_propagates(self):
        with pytest.raises(UpstreamError):
            _service(FakeSportsDb(fail=True)).get_scores(ScoresQuery(league_ids=("4387",)), now=NOW)

    def test_uncurated_league_keeps_provider_title(self):
        event = {"idEvent": "x1", "idLeague": "5000", "strLeague": "Obscure Cup", "dateEvent": "2024-01-02"}
        client = FakeSportsDb(past={"5000": [event]})
        response = _service(client).get_scores(ScoresQuery(league_ids=("5000",)), now=NOW)
        assert response.cards[0].title == "Obscure Cup"
        assert ("teams", "Obscure Cup") not in client.calls


def test_filter_events_by_date_without_date_keeps_all():
    events = [{"dateEvent": "2024-01-01"}, {"dateEvent": "2024-01-02"}]
    assert filter_events_by_date(events, None, None) == events
