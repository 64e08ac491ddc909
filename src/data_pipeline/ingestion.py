"""Ingestion of the league's exported data feeds.

Handles the quirks of the league host's JSON exports and the rankings CSVs:
- Single-element lists exported as a bare object instead of a list
- Numbers exported as strings (salaries, contract years, bids)
- Comma-formatted numbers in rankings CSVs (e.g., "1,204")
- Empty feed files for seasons without an auction
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from src.data_pipeline.config import (
    AUCTION_RESULTS_PATTERN,
    FILE_PATTERNS,
    HISTORICAL_AUCTION_YEARS,
    RANKINGS_COLUMNS,
)

logger = logging.getLogger(__name__)

PLAYER_COLUMNS = ["player_id", "name", "position", "team", "age", "experience"]

ROSTER_COLUMNS = [
    "player_id", "name", "position", "team", "age", "experience",
    "franchise_id", "salary", "contract_years", "status",
]


class IngestionError(Exception):
    """Raised when a league data file cannot be read."""


def _parse_numeric(value):
    """Parse a numeric string that may contain commas (e.g., '1,204' -> 1204.0)."""
    if value is None:
        return float("nan")
    if isinstance(value, (int, float)):
        return float(value)
    s = str(value).replace(",", "").strip().strip('"')
    if s == "":
        return float("nan")
    try:
        return float(s)
    except ValueError:
        return float("nan")


def ensure_list(value: Any) -> list:
    """Feeds export one-element lists as a bare object; normalize to a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _age_from_birthdate(birthdate, season: int) -> Optional[int]:
    """Age on September 1st of *season* from an epoch-seconds birthdate."""
    seconds = _parse_numeric(birthdate)
    if pd.isna(seconds):
        return None
    born = datetime.fromtimestamp(seconds, tz=timezone.utc)
    kickoff = datetime(season, 9, 1, tzinfo=timezone.utc)
    had_birthday = (kickoff.month, kickoff.day) >= (born.month, born.day)
    return kickoff.year - born.year - (0 if had_birthday else 1)


def _experience_from_draft_year(draft_year, season: int) -> Optional[int]:
    """Seasons played before *season*, or None without a usable draft year."""
    year = _parse_numeric(draft_year)
    if pd.isna(year):
        return None
    return max(0, season - int(year))


class LeagueDataIngester:
    """Reads one season's league exports from ``data_dir``.

    Roster and ranking reads return pandas DataFrames; the smaller lookup
    feeds (franchises, salary averages, adjustments) return plain Python
    structures.
    """

    def __init__(self, data_dir: Path, year: int):
        self.data_dir = Path(data_dir)
        self.year = year

    def _resolve_path(self, file_key: str) -> Path:
        """Build the full file path for a given file key, raising if missing."""
        filename = FILE_PATTERNS[file_key].format(year=self.year)
        filepath = self.data_dir / filename
        if not filepath.exists():
            raise FileNotFoundError(f"Expected file not found: {filepath}")
        return filepath

    def _load_json(self, filepath: Path) -> dict:
        if filepath.stat().st_size == 0:
            logger.warning("Empty feed file: %s", filepath)
            return {}
        try:
            with open(filepath) as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise IngestionError(f"Malformed JSON in {filepath}: {e}") from e

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------
    def read_players(self, data_dir: Optional[Path] = None, year: Optional[int] = None) -> pd.DataFrame:
        """Read the player directory feed.

        Returns DataFrame with columns:
            player_id, name, position, team, age, experience
        """
        data_dir = Path(data_dir) if data_dir is not None else self.data_dir
        year = year if year is not None else self.year
        filepath = data_dir / FILE_PATTERNS["players"].format(year=year)
        if not filepath.exists():
            raise FileNotFoundError(f"Expected file not found: {filepath}")
        logger.info("Reading players: %s", filepath)

        raw = self._load_json(filepath)
        rows = [
            {
                "player_id": str(p.get("id")),
                "name": p.get("name", ""),
                "position": p.get("position"),
                "team": p.get("team", ""),
                "age": _age_from_birthdate(p.get("birthdate"), year),
                "experience": _experience_from_draft_year(p.get("draft_year"), year),
            }
            for p in ensure_list(raw.get("players", {}).get("player"))
            if p.get("id") is not None
        ]
        df = pd.DataFrame(rows, columns=PLAYER_COLUMNS)
        logger.info("Loaded %d players", len(df))
        return df

    # ------------------------------------------------------------------
    # Rosters
    # ------------------------------------------------------------------
    def read_rosters(self) -> pd.DataFrame:
        """Read rosters and join player details onto every roster row.

        Returns DataFrame with columns:
            player_id, name, position, team, age, experience,
            franchise_id, salary, contract_years, status

        ``contract_years`` is left as exported; the cap calculator parses it.
        """
        filepath = self._resolve_path("rosters")
        logger.info("Reading rosters: %s", filepath.name)

        raw = self._load_json(filepath)
        rows = []
        for franchise in ensure_list(raw.get("rosters", {}).get("franchise")):
            franchise_id = franchise.get("id")
            for player in ensure_list(franchise.get("player")):
                salary = _parse_numeric(player.get("salary"))
                rows.append({
                    "player_id": str(player.get("id")),
                    "franchise_id": franchise_id,
                    "salary": 0 if pd.isna(salary) else int(round(salary)),
                    "contract_years": player.get("contractYear"),
                    "status": player.get("status", "ROSTER"),
                })

        rosters = pd.DataFrame(
            rows, columns=["player_id", "franchise_id", "salary", "contract_years", "status"]
        )
        players = self.read_players()
        df = rosters.merge(players, on="player_id", how="left")

        unknown = df["position"].isna()
        if unknown.any():
            logger.warning(
                "%d roster rows reference players missing from the player feed: %s",
                unknown.sum(), df.loc[unknown, "player_id"].tolist(),
            )

        logger.info("Loaded %d roster rows across %d franchises",
                    len(df), df["franchise_id"].nunique())
        return df[ROSTER_COLUMNS]

    def read_franchises(self) -> list[dict]:
        """Read franchise ids and names as ``[{"franchise_id", "name"}]``."""
        filepath = self._resolve_path("league")
        logger.info("Reading franchises: %s", filepath.name)

        raw = self._load_json(filepath)
        franchises = [
            {"franchise_id": f.get("id"), "name": f.get("name", f.get("id"))}
            for f in ensure_list(raw.get("league", {}).get("franchises", {}).get("franchise"))
            if f.get("id") is not None
        ]
        logger.info("Loaded %d franchises", len(franchises))
        return franchises

    # ------------------------------------------------------------------
    # Salary data
    # ------------------------------------------------------------------
    def read_salary_averages(self) -> dict[str, dict]:
        """Read ``{position: {"top3Average": ...}}`` salary averages."""
        filepath = self._resolve_path("salary_averages")
        logger.info("Reading salary averages: %s", filepath.name)

        raw = self._load_json(filepath)
        return raw.get("positions", raw)

    def read_salary_adjustments(self) -> list[dict]:
        """Read dead-money adjustments as ``[{"franchise_id", "amount", "description"}]``."""
        filepath = self._resolve_path("salary_adjustments")
        logger.info("Reading salary adjustments: %s", filepath.name)

        raw = self._load_json(filepath)
        return [
            {
                "franchise_id": adj.get("franchise_id"),
                "amount": adj.get("amount"),
                "description": adj.get("description", ""),
            }
            for adj in ensure_list(
                raw.get("salaryAdjustments", {}).get("salaryAdjustment")
            )
        ]

    # ------------------------------------------------------------------
    # Rankings
    # ------------------------------------------------------------------
    def read_rankings(self, kind: str) -> pd.DataFrame:
        """Read a dynasty or redraft rankings CSV.

        Returns DataFrame with columns:
            Rank, Player, Pos, Age
        """
        if kind not in ("dynasty", "redraft"):
            raise ValueError(f"Invalid rankings kind: {kind!r}. Must be 'dynasty' or 'redraft'.")

        filepath = self._resolve_path(f"{kind}_rankings")
        logger.info("Reading %s rankings: %s", kind, filepath.name)

        df = pd.read_csv(filepath, quotechar='"', dtype=str)
        missing = [c for c in RANKINGS_COLUMNS[:3] if c not in df.columns]
        if missing:
            raise IngestionError(f"{filepath.name} is missing columns: {missing}")

        for col in df.columns:
            df[col] = df[col].str.strip('"').str.strip()

        df["Rank"] = df["Rank"].apply(_parse_numeric)
        if "Age" in df.columns:
            df["Age"] = df["Age"].apply(_parse_numeric)
        else:
            df["Age"] = float("nan")

        df = df.dropna(subset=["Rank"])
        df = df[df["Player"].notna() & (df["Player"] != "")].reset_index(drop=True)

        logger.info("Loaded %d %s-ranked players", len(df), kind)
        return df[RANKINGS_COLUMNS]

    # ------------------------------------------------------------------
    # Historical auctions
    # ------------------------------------------------------------------
    def read_auction_results(self, year: int) -> pd.DataFrame:
        """Read one past season's auction results.

        Positions are looked up in that season's player feed, falling back
        to the current season's.

        Returns DataFrame with columns:
            year, player_id, position, winning_bid
        """
        season_dir = self.data_dir.parent / str(year)
        filepath = season_dir / AUCTION_RESULTS_PATTERN
        columns = ["year", "player_id", "position", "winning_bid"]
        if not filepath.exists():
            logger.debug("No auction results for %d", year)
            return pd.DataFrame(columns=columns)

        raw = self._load_json(filepath)
        auctions = ensure_list(
            raw.get("auctionResults", {}).get("auctionUnit", {}).get("auction")
        )
        if not auctions:
            return pd.DataFrame(columns=columns)

        try:
            players = self.read_players(season_dir, year)
        except FileNotFoundError:
            players = self.read_players()

        df = pd.DataFrame(
            {
                "year": year,
                "player_id": [str(a.get("player")) for a in auctions],
                "winning_bid": [_parse_numeric(a.get("winningBid")) for a in auctions],
            }
        )
        df = df.merge(players[["player_id", "position"]], on="player_id", how="left")
        df = df.dropna(subset=["winning_bid", "position"])
        df = df[df["winning_bid"] > 0].reset_index(drop=True)

        logger.info("Loaded %d auction results for %d", len(df), year)
        return df[columns]

    def read_auction_history(self, years: int = HISTORICAL_AUCTION_YEARS) -> pd.DataFrame:
        """Auction results for the *years* seasons before this one."""
        frames = [
            self.read_auction_results(y) for y in range(self.year - years, self.year)
        ]
        frames = [f for f in frames if not f.empty]
        if not frames:
            return pd.DataFrame(columns=["year", "player_id", "position", "winning_bid"])
        return pd.concat(frames, ignore_index=True)

    def read_all(self) -> dict[str, Any]:
        """Read every feed needed for a valuation run.

        Returns:
            dict with keys: 'rosters', 'franchises', 'salary_averages',
            'salary_adjustments', 'dynasty_rankings', 'redraft_rankings',
            'auction_history'

        Raises:
            IngestionError: if any required file cannot be read.
        """
        try:
            return {
                "rosters": self.read_rosters(),
                "franchises": self.read_franchises(),
                "salary_averages": self.read_salary_averages(),
                "salary_adjustments": self.read_salary_adjustments(),
                "dynasty_rankings": self.read_rankings("dynasty"),
                "redraft_rankings": self.read_rankings("redraft"),
                "auction_history": self.read_auction_history(),
            }
        except Exception as e:
            raise IngestionError(f"Failed to read league data: {e}") from e
