#!/usr/bin/env python3
"""
Test script for the per-league team catalog used to follow teams by
abbreviation.
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, os.path.dirname(__file__))

from fakes import ARSENAL, LAKERS
from gametime.models import sport_for_league
from gametime.team_catalog import (
    TEAMS, find_team, normalize_league, supported_leagues, teams_for_league,
)


def test_catalog_sizes():
    print("Testing catalog sizes...")
    expected = {"nba": 30, "nfl": 32, "mlb": 30, "nhl": 32, "eng.1": 20, "eng.2": 24, "usa.usl.1": 25}
    for league, count in expected.items():
        assert len(teams_for_league(league)) == count, league
    assert set(supported_leagues()) == set(expected)
    print("✓ Every league has a full roster")


def test_catalog_entries_are_consistent():
    for league in TEAMS:
        teams = teams_for_league(league)
        abbreviations = [t.abbreviation for t in teams]
        ids = [t.id for t in teams]
        assert len(set(abbreviations)) == len(abbreviations), league
        assert len(set(ids)) == len(ids), league
        for team in teams:
            assert team.league == league
            assert team.sport == sport_for_league(league)
            assert team.logo_url.startswith("https://a.espncdn.com/i/teamlogos/")


def test_find_team():
    print("Testing team lookup...")
    lakers = find_team("nba", "lal")
    assert lakers.same_team(LAKERS)
    assert lakers.name == "Los Angeles Lakers"
    assert lakers.logo_url == "https://a.espncdn.com/i/teamlogos/nba/500/lal.png"

    # By id, and through a league alias
    assert find_team("NBA", "13").abbreviation == "LAL"
    arsenal = find_team("epl", "ARS")
    assert arsenal.same_team(ARSENAL)
    assert arsenal.logo_url == "https://a.espncdn.com/i/teamlogos/soccer/500/359.png"

    assert find_team("mlb", "CWS").logo_url.endswith("/mlb/500/chw.png")
    assert find_team("usl", "LDN").league == "usa.usl.1"

    assert find_team("nba", "XYZ") is None
    assert find_team("cricket", "LAL") is None
    assert teams_for_league("ger.1") == []
    print("✓ Teams found by abbreviation or id")


def test_normalize_league():
    assert normalize_league(" EPL ") == "eng.1"
    assert normalize_league("ech") == "eng.2"
    assert normalize_league("usl") == "usa.usl.1"
    assert normalize_league("NHL") == "nhl"


if __name__ == "__main__":
    test_catalog_sizes()
    test_catalog_entries_are_consistent()
    test_find_team()
    test_normalize_league()
    print("\nAll team catalog tests passed!")
