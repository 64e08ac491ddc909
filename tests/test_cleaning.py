"""Tests for the data cleaning module."""

import logging

import pandas as pd
import pytest


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_rosters_df(rows=None):
    rows = rows or [
        ("1001", "Allen, Josh", "QB", "BUF", 30, "0001", 9_000_000, "1", "ROSTER"),
        ("3002", "Moore, D.J.", "WR", "CHI", float("nan"), "0001", 1_500_000, "02", "TAXI_SQUAD"),
        ("5001", "Tucker, Justin", "K", "BAL", 36, "0003", 500_000, "4", "ROSTER"),
        ("9001", "Linebacker, Some", "LB", "NYG", 25, "0001", 425_000, "2", "ROSTER"),
    ]
    return pd.DataFrame(
        rows,
        columns=[
            "player_id", "name", "position", "team", "age",
            "franchise_id", "salary", "contract_years", "status",
        ],
    )


# ---------------------------------------------------------------------------
# Position helpers
# ---------------------------------------------------------------------------

class TestCanonicalizePosition:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("WR1", "WR"),
            ("RB23", "RB"),
            ("QB", "QB"),
            ("TE", "TE"),
            ("K", "PK"),
            ("K3", "PK"),
            ("PK", "PK"),
            ("DST", "DEF"),
            ("DST12", "DEF"),
            ("D/ST", "DEF"),
            ("Def", "DEF"),
            (" wr ", "WR"),
        ],
    )
    def test_valid(self, cleaner, raw, expected):
        assert cleaner.canonicalize_position(raw) == expected

    @pytest.mark.parametrize("raw", ["LB", "CB2", "", "12", None, float("nan")])
    def test_invalid(self, cleaner, raw):
        assert cleaner.canonicalize_position(raw) is None


# ---------------------------------------------------------------------------
# Player names
# ---------------------------------------------------------------------------

class TestNormalizePlayerName:
    def test_basic_name(self, cleaner):
        assert cleaner.normalize_player_name("Josh Allen") == "Josh Allen"

    def test_flips_last_first(self, cleaner):
        assert cleaner.normalize_player_name("Allen, Josh") == "Josh Allen"

    def test_flip_keeps_suffix(self, cleaner):
        assert cleaner.normalize_player_name("Beckham Jr., Odell") == "Odell Beckham Jr."

    def test_strips_quotes(self, cleaner):
        assert cleaner.normalize_player_name('"Josh Allen"') == "Josh Allen"

    def test_collapses_whitespace(self, cleaner):
        assert cleaner.normalize_player_name("  Josh   Allen  ") == "Josh Allen"

    def test_none(self, cleaner):
        assert cleaner.normalize_player_name(None) is None

    def test_blank(self, cleaner):
        assert cleaner.normalize_player_name("   ") is None

    def test_curly_apostrophe_normalized(self, cleaner):
        assert cleaner.normalize_player_name("Ja\u2019Marr Chase") == "Ja'Marr Chase"

    def test_modifier_apostrophe_normalized(self, cleaner):
        assert cleaner.normalize_player_name("Ja\u02bcMarr Chase") == "Ja'Marr Chase"

    def test_en_dash_normalized(self, cleaner):
        assert cleaner.normalize_player_name("Amon\u2013Ra St. Brown") == "Amon-Ra St. Brown"


class TestNameMatchKey:
    @pytest.mark.parametrize(
        "a, b",
        [
            ("D.J. Moore Jr.", "DJ Moore"),
            ("Moore, D.J.", "DJ Moore"),
            ("Ja\u2019Marr Chase", "JaMarr Chase"),
            ("Kenneth Walker III", "Kenneth Walker"),
        ],
    )
    def test_variants_share_key(self, cleaner, a, b):
        assert cleaner.name_match_key(a) == cleaner.name_match_key(b)

    def test_hyphen_becomes_space(self, cleaner):
        assert cleaner.name_match_key("Amon-Ra St. Brown") == "amon ra st brown"

    def test_suffix_only_name(self, cleaner):
        assert cleaner.name_match_key("Jr.") is None

    def test_none(self, cleaner):
        assert cleaner.name_match_key(None) is None


# ---------------------------------------------------------------------------
# DataFrame cleaning
# ---------------------------------------------------------------------------

class TestCleanRosters:
    def test_positions_canonical(self, cleaner):
        df = cleaner.clean_rosters(_make_rosters_df())
        assert sorted(df["position"]) == ["PK", "QB", "WR"]

    def test_invalid_position_rows_dropped(self, cleaner, caplog):
        with caplog.at_level(logging.WARNING):
            df = cleaner.clean_rosters(_make_rosters_df())
        assert "9001" not in df["player_id"].tolist()
        assert "Dropping 1 roster rows" in caplog.text

    def test_names_and_keys(self, cleaner):
        df = cleaner.clean_rosters(_make_rosters_df()).set_index("player_id")
        assert df.loc["1001", "name"] == "Josh Allen"
        assert df.loc["3002", "Name_Key"] == "dj moore"

    def test_input_not_modified(self, cleaner):
        raw = _make_rosters_df()
        cleaner.clean_rosters(raw)
        assert raw.loc[0, "name"] == "Allen, Josh"
        assert "Name_Key" not in raw.columns


class TestCleanRankings:
    def test_adds_expected_columns(self, cleaner):
        raw = pd.DataFrame(
            {"Rank": [1.0, 2.0], "Player": ["Josh Allen", "Ja\u2019Marr Chase"],
             "Pos": ["QB1", "WR1"], "Age": [30.0, 26.0]}
        )
        df = cleaner.clean_rankings(raw)
        assert df["Position"].tolist() == ["QB", "WR"]
        assert df["Player_Norm"].tolist() == ["Josh Allen", "Ja'Marr Chase"]
        assert df["Name_Key"].tolist() == ["josh allen", "jamarr chase"]

    def test_unknown_position_kept_without_position(self, cleaner):
        raw = pd.DataFrame({"Rank": [5.0], "Player": ["Some Linebacker"], "Pos": ["LB3"], "Age": [25.0]})
        df = cleaner.clean_rankings(raw)
        assert len(df) == 1
        assert pd.isna(df["Position"].iloc[0])


class TestCleanAuctionHistory:
    def test_positions_canonicalized_and_invalid_dropped(self, cleaner):
        raw = pd.DataFrame(
            {
                "year": [2024, 2024, 2025],
                "player_id": ["1", "2", "3"],
                "position": ["QB", "Def", "LB"],
                "winning_bid": [1e6, 5e5, 4.25e5],
            }
        )
        df = cleaner.clean_auction_history(raw)
        assert df["position"].tolist() == ["QB", "DEF"]


class TestCleanAll:
    def test_cleans_frames_passes_through_rest(self, cleaner):
        rankings = pd.DataFrame({"Rank": [1.0], "Player": ["Josh Allen"], "Pos": ["QB1"], "Age": [30.0]})
        history = pd.DataFrame(columns=["year", "player_id", "position", "winning_bid"])
        data = {
            "rosters": _make_rosters_df(),
            "franchises": [{"franchise_id": "0001", "name": "Alpha"}],
            "salary_averages": {"QB": {"top3Average": 1}},
            "salary_adjustments": [],
            "dynasty_rankings": rankings,
            "redraft_rankings": rankings,
            "auction_history": history,
        }
        cleaned = cleaner.clean_all(data)

        assert cleaned["franchises"] is data["franchises"]
        assert "Name_Key" in cleaned["rosters"].columns
        assert "Position" in cleaned["dynasty_rankings"].columns
        assert cleaned["auction_history"].empty


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------

class TestToRosterPlayers:
    def test_converts_rows(self, cleaner):
        players = cleaner.to_roster_players(cleaner.clean_rosters(_make_rosters_df()))
        by_id = {p.player_id: p for p in players}

        assert len(players) == 3
        allen = by_id["1001"]
        assert allen.name == "Josh Allen"
        assert allen.position == "QB"
        assert allen.salary == 9_000_000
        assert allen.contract_years_remaining == "1"
        assert allen.franchise_id == "0001"
        assert allen.age == 30

    def test_missing_age_is_none(self, cleaner):
        players = cleaner.to_roster_players(cleaner.clean_rosters(_make_rosters_df()))
        moore = next(p for p in players if p.player_id == "3002")
        assert moore.age is None
        assert moore.status == "TAXI_SQUAD"

    def test_experience_column_carried(self, cleaner):
        df = _make_rosters_df()
        df["experience"] = [8.0, float("nan"), 14.0, 1.0]
        players = {p.player_id: p for p in cleaner.to_roster_players(cleaner.clean_rosters(df))}

        assert players["1001"].experience == 8
        assert players["3002"].experience is None

    def test_no_experience_column(self, cleaner):
        players = cleaner.to_roster_players(cleaner.clean_rosters(_make_rosters_df()))
        assert all(p.experience is None for p in players)
