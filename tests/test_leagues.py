"""Tests for the curated league table and identity resolution."""

from __future__ import annotations

from onlyscores.leagues import (
    UNKNOWN_ID,
    LeagueResolver,
    TeamIndex,
    is_nfl_league,
    normalize_key,
    resolve_team_id,
)
from onlyscores.models import League, Team


def _teams():
    return [
        Team(id="134860", league_id="4387", name="Boston Celtics", short_name="BOS"),
        Team(id="134862", league_id="4387", name="Los Angeles Lakers", short_name="LAL"),
    ]


# ---------------------------------------------------------------------------
# LeagueResolver
# ---------------------------------------------------------------------------
class TestLeagueResolver:
    def test_curated_id_wins(self):
        assert LeagueResolver().resolve_league_id("4387", "Something Else") == "4387"

    def test_provider_name_is_matched(self):
        assert LeagueResolver().resolve_league_id(None, "English Premier League") == "4328"

    def test_display_name_is_matched_loosely(self):
        assert LeagueResolver().resolve_league_id("999", "la-liga") == "4335"

    def test_unmatched_passes_raw_id_through(self):
        assert LeagueResolver().resolve_league_id("999", "Made Up League") == "999"

    def test_nothing_is_unknown(self):
        assert LeagueResolver().resolve_league_id(None, None) == UNKNOWN_ID

    def test_titles(self):
        resolver = LeagueResolver()
        assert resolver.title_for("4328", "English Premier League") == "Premier League"
        assert resolver.title_for("999", "Made Up League") == "Made Up League"
        assert resolver.title_for("999") == "999"

    def test_leagues_in_table_order(self):
        leagues = LeagueResolver().leagues()
        assert leagues[0] == League(id="4391", name="NFL", sport="American Football")
        assert len({lg.id for lg in leagues}) == len(leagues)


# ---------------------------------------------------------------------------
# team resolution
# ---------------------------------------------------------------------------
class TestResolveTeamId:
    def test_known_id(self):
        idx = TeamIndex.from_teams(_teams())
        assert resolve_team_id("134860", "whatever", idx) == "134860"

    def test_name_match_beats_unknown_id(self):
        idx = TeamIndex.from_teams(_teams())
        assert resolve_team_id("1", "Los Angeles Lakers", idx) == "134862"

    def test_short_name_match(self):
        idx = TeamIndex.from_teams(_teams())
        assert resolve_team_id(None, "bos", idx) == "134860"

    def test_passthrough_without_index(self):
        assert resolve_team_id("555", "Someone", None) == "555"
        assert resolve_team_id(None, "Someone", None) == "Someone"
        assert resolve_team_id(None, None, None) == UNKNOWN_ID


class TestHelpers:
    def test_normalize_key(self):
        assert normalize_key("St. Louis Blues") == "stlouisblues"
        assert normalize_key(None) == ""

    def test_is_nfl_league(self):
        assert is_nfl_league(League(id="4391", name="NFL", sport="American Football"))
        assert is_nfl_league(League(id="nfl", name="Football", sport="American Football"))
        assert not is_nfl_league(League(id="4387", name="NBA", sport="Basketball"))
