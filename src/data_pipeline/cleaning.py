"""Data cleaning for league feeds and rankings exports.

Handles standardization across the feeds:
- Canonical position codes (K -> PK, DST -> DEF, WR12 -> WR)
- League-feed names ("Last, First") vs rankings names ("First Last")
- Suffix and punctuation differences when matching players across files
"""

import logging
import math
import re
from typing import Optional

import pandas as pd

from src.auction_engine.models import RosterPlayer

logger = logging.getLogger(__name__)

# Valid base positions
_VALID_POSITIONS = {"QB", "RB", "WR", "TE", "PK", "DEF"}

# Aliases that map to canonical position names
_POSITION_ALIASES = {
    "K": "PK",
    "DST": "DEF",
    "D/ST": "DEF",
    "DS": "DEF",
}

# Letters (or D/ST) followed by an optional position rank
_POS_PATTERN = re.compile(r"^([A-Za-z/]+?)(\d+)?$")

_NAME_SUFFIXES = {"jr", "sr", "ii", "iii", "iv", "v"}


class DataCleaner:
    """Cleans and standardizes league data for cross-file matching."""

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------
    @staticmethod
    def canonicalize_position(pos_str) -> Optional[str]:
        """Map a position code to the league's canonical code.

        Examples:
            "WR1"  -> "WR"
            "K"    -> "PK"
            "DST"  -> "DEF"
            "Def"  -> "DEF"
            "LB"   -> None
        """
        if pos_str is None or pd.isna(pos_str):
            return None

        m = _POS_PATTERN.match(str(pos_str).strip())
        if not m:
            return None

        letters = m.group(1).upper()
        canonical = _POSITION_ALIASES.get(letters, letters)
        return canonical if canonical in _VALID_POSITIONS else None

    # ------------------------------------------------------------------
    # Player name normalization
    # ------------------------------------------------------------------
    @staticmethod
    def normalize_player_name(name) -> Optional[str]:
        """Normalize a player name for display.

        - Flips league-feed "Last, First" to "First Last"
        - Standardizes apostrophes and hyphens
        - Collapses whitespace
        """
        if name is None or pd.isna(name):
            return None

        name = str(name).strip().strip('"')
        if name == "":
            return None

        if name.count(",") == 1:
            last, first = (part.strip() for part in name.split(","))
            name = f"{first} {last}"

        # Standardize apostrophe variants to ASCII straight quote
        name = name.replace("\u2019", "'")   # right single curly
        name = name.replace("\u2018", "'")   # left single curly
        name = name.replace("\u02BC", "'")   # modifier letter apostrophe

        # Standardize dash variants to ASCII hyphen-minus
        name = name.replace("\u2013", "-")   # en dash
        name = name.replace("\u2014", "-")   # em dash

        return " ".join(name.split())

    @classmethod
    def name_match_key(cls, name) -> Optional[str]:
        """Lower-case key for matching names across sources.

        Drops punctuation and generational suffixes, so "D.J. Moore Jr."
        and "DJ Moore" share a key.
        """
        normalized = cls.normalize_player_name(name)
        if normalized is None:
            return None
        tokens = re.sub(r"[^a-z0-9 ]", "", normalized.lower().replace("-", " ")).split()
        while tokens and tokens[-1] in _NAME_SUFFIXES:
            tokens.pop()
        return " ".join(tokens) or None

    # ------------------------------------------------------------------
    # DataFrame-level cleaning
    # ------------------------------------------------------------------
    def clean_rosters(self, df: pd.DataFrame) -> pd.DataFrame:
        """Clean roster rows.

        Canonicalizes positions, normalizes names and adds Name_Key.
        Rows whose position isn't a league position are dropped.
        """
        out = df.copy()
        out["position"] = out["position"].apply(self.canonicalize_position)
        out["name"] = out["name"].apply(self.normalize_player_name)
        out["Name_Key"] = out["name"].apply(self.name_match_key)

        no_pos = out["position"].isna()
        if no_pos.any():
            logger.warning(
                "Dropping %d roster rows with no league position: %s",
                no_pos.sum(), out.loc[no_pos, "player_id"].tolist(),
            )
            out = out[~no_pos].reset_index(drop=True)

        logger.info("Cleaned rosters: %d rows", len(out))
        return out

    def clean_rankings(self, df: pd.DataFrame) -> pd.DataFrame:
        """Clean a rankings DataFrame.

        Adds columns:
            Position    - canonical position (WR, PK, DEF, ...)
            Player_Norm - normalized display name
            Name_Key    - cross-source matching key
        """
        out = df.copy()
        out["Position"] = out["Pos"].apply(self.canonicalize_position)
        out["Player_Norm"] = out["Player"].apply(self.normalize_player_name)
        out["Name_Key"] = out["Player"].apply(self.name_match_key)
        logger.info("Cleaned rankings: %d rows", len(out))
        return out

    def clean_auction_history(self, df: pd.DataFrame) -> pd.DataFrame:
        """Canonicalize positions in historical auction results."""
        out = df.copy()
        out["position"] = out["position"].apply(self.canonicalize_position)
        out = out.dropna(subset=["position"]).reset_index(drop=True)
        logger.info("Cleaned auction history: %d rows", len(out))
        return out

    def clean_all(self, data: dict) -> dict:
        """Clean the feeds returned by LeagueDataIngester.read_all().

        DataFrames are cleaned; the other feeds pass through unchanged.
        """
        cleaned = dict(data)
        cleaned["rosters"] = self.clean_rosters(data["rosters"])
        cleaned["dynasty_rankings"] = self.clean_rankings(data["dynasty_rankings"])
        cleaned["redraft_rankings"] = self.clean_rankings(data["redraft_rankings"])
        cleaned["auction_history"] = self.clean_auction_history(data["auction_history"])
        return cleaned

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------
    @staticmethod
    def to_roster_players(df: pd.DataFrame) -> list[RosterPlayer]:
        """Convert cleaned roster rows into engine records."""
        players = []
        for row in df.itertuples(index=False):
            age = row.age
            if isinstance(age, float) and math.isnan(age):
                age = None
            experience = getattr(row, "experience", None)
            if isinstance(experience, float) and math.isnan(experience):
                experience = None
            players.append(
                RosterPlayer(
                    player_id=str(row.player_id),
                    position=row.position,
                    salary=int(row.salary),
                    contract_years_remaining=row.contract_years,
                    franchise_id=str(row.franchise_id),
                    status=row.status or "ROSTER",
                    name=row.name if isinstance(row.name, str) else "",
                    team=row.team if isinstance(row.team, str) else "",
                    age=None if age is None else int(age),
                    experience=None if experience is None else int(experience),
                )
            )
        return players
