"""Shared fixtures for the auction valuation test suite."""

import json

import pytest

from src.auction_engine.auction_pricing import AuctionPriceCalculator
from src.auction_engine.config import LeagueRules
from src.data_pipeline.cleaning import DataCleaner


# ------------------------------------------------------------------
# Lightweight factories – cheap to construct, no I/O
# ------------------------------------------------------------------

@pytest.fixture(scope="module")
def rules():
    return LeagueRules()


@pytest.fixture(scope="module")
def calculator(rules):
    return AuctionPriceCalculator(rules)


@pytest.fixture(scope="module")
def cleaner():
    return DataCleaner()


# ------------------------------------------------------------------
# Synthetic league feeds written to disk
# ------------------------------------------------------------------

SEASON = 2026

PLAYERS_FEED = [
    {"id": "1001", "name": "Allen, Josh", "position": "QB", "team": "BUF", "birthdate": "770947200", "draft_year": "2018"},
    {"id": "1002", "name": "Purdy, Brock", "position": "QB", "team": "SF", "birthdate": "914025600", "draft_year": "2022"},
    {"id": "2001", "name": "Robinson, Bijan", "position": "RB", "team": "ATL", "birthdate": "1012780800", "draft_year": "2023"},
    {"id": "2002", "name": "Henry, Derrick", "position": "RB", "team": "BAL", "birthdate": "601516800"},
    {"id": "3001", "name": "Chase, Ja'Marr", "position": "WR", "team": "CIN", "birthdate": "953510400"},
    {"id": "3002", "name": "Moore, D.J.", "position": "WR", "team": "CHI", "birthdate": "829526400"},
    {"id": "4001", "name": "Kelce, Travis", "position": "TE", "team": "KC", "birthdate": "593827200"},
    {"id": "5001", "name": "Tucker, Justin", "position": "PK", "team": "BAL", "birthdate": "600307200"},
    {"id": "6001", "name": "Ravens, Baltimore", "position": "Def", "team": "BAL"},
    {"id": "9001", "name": "Linebacker, Some", "position": "LB", "team": "NYG"},
]

ROSTERS_FEED = {
    "rosters": {
        "franchise": [
            {
                "id": "0001",
                "player": [
                    {"id": "1001", "salary": "9000000", "contractYear": "1", "status": "ROSTER"},
                    {"id": "2001", "salary": "3000000", "contractYear": "3", "status": "ROSTER"},
                    {"id": "3002", "salary": "1500000", "contractYear": "02", "status": "TAXI_SQUAD"},
                    {"id": "9001", "salary": "425000", "contractYear": "2", "status": "ROSTER"},
                ],
            },
            {
                "id": "0002",
                # A lone player is exported as an object, not a list
                "player": {"id": "3001", "salary": "2000000", "contractYear": "1", "status": "ROSTER"},
            },
            {
                "id": "0003",
                "player": [
                    {"id": "2002", "salary": "12000000", "contractYear": "1", "status": "ROSTER"},
                    {"id": "4001", "salary": "8000000", "contractYear": "1", "status": "INJURED_RESERVE"},
                    {"id": "5001", "salary": "500000", "contractYear": "4", "status": "ROSTER"},
                    {"id": "1002", "salary": "900000", "contractYear": "garbled", "status": "ROSTER"},
                ],
            },
        ]
    }
}

LEAGUE_FEED = {
    "league": {
        "franchises": {
            "franchise": [
                {"id": "0001", "name": "Alpha"},
                {"id": "0002", "name": "Bravo"},
                {"id": "0003", "name": "Charlie"},
            ]
        }
    }
}

SALARY_AVERAGES = {
    "positions": {
        "QB": {"top3Average": 20000000.4},
        "RB": {"top3Average": 14000000},
        "WR": {"top3Average": 15000000},
        "TE": {"top3Average": 9000000},
        "PK": {"top3Average": 800000},
    }
}

SALARY_ADJUSTMENTS = {
    "salaryAdjustments": {
        "salaryAdjustment": [
            {"franchise_id": "0001", "amount": "1000000", "description": "Cut"},
            {"franchise_id": "0001", "amount": "250000", "description": "Cut"},
            {"franchise_id": "0003", "amount": "oops", "description": "Bad row"},
        ]
    }
}

DYNASTY_CSV = (
    "Rank,Player,Pos,Age\n"
    '3,"Ja\'Marr Chase",WR1,26\n'
    "5,Bijan Robinson,RB1,24\n"
    "12,Josh Allen,QB1,30\n"
    '"1,204",Nobody Special,WR99,29\n'
    "40,DJ Moore,WR20,29\n"
    "150,Derrick Henry,RB40,32\n"
)

REDRAFT_CSV = (
    "Rank,Player,Pos,Age\n"
    "2,Josh Allen,QB1,30\n"
    '4,"Ja\'Marr Chase",WR1,26\n'
    "20,Derrick Henry,RB8,32\n"
    "60,Travis Kelce,TE5,36\n"
    ",Blank Row,WR,\n"
)

AUCTION_RESULTS = {
    2024: [("1001", "20000000"), ("1002", "10000000"), ("2001", "15000000"),
           ("2002", "6000000"), ("3001", "18000000"), ("3002", "9000000")],
    2025: [("1001", "24000000"), ("1002", "12000000"), ("2001", "16000000"),
           ("2002", "7000000"), ("3001", "17000000"), ("3002", "8000000")],
}


def _write_json(path, data):
    path.write_text(json.dumps(data))


@pytest.fixture
def league_data_dir(tmp_path):
    """A ``data/raw`` tree with a full season of feeds plus auction history."""
    raw_dir = tmp_path / "raw"
    season_dir = raw_dir / str(SEASON)
    season_dir.mkdir(parents=True)

    _write_json(season_dir / "players.json", {"players": {"player": PLAYERS_FEED}})
    _write_json(season_dir / "rosters.json", ROSTERS_FEED)
    _write_json(season_dir / "league.json", LEAGUE_FEED)
    _write_json(season_dir / "salaryAverages.json", SALARY_AVERAGES)
    _write_json(season_dir / "salaryAdjustments.json", SALARY_ADJUSTMENTS)
    (season_dir / f"dynasty_rankings_{SEASON}.csv").write_text(DYNASTY_CSV)
    (season_dir / f"redraft_rankings_{SEASON}.csv").write_text(REDRAFT_CSV)

    for year, bids in AUCTION_RESULTS.items():
        year_dir = raw_dir / str(year)
        year_dir.mkdir()
        auctions = [{"player": pid, "winningBid": bid} for pid, bid in bids]
        _write_json(
            year_dir / "auctionResults.json",
            {"auctionResults": {"auctionUnit": {"auction": auctions}}},
        )

    return season_dir
