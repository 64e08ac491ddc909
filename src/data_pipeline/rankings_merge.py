"""Match dynasty and redraft rankings onto league player ids.

The rankings exports identify players by name and position only, so each
row has to be matched to a roster row before its rank can be used by the
valuation engine.
"""

import logging
import math
from typing import Optional

import pandas as pd

logger = logging.getLogger(__name__)


def _present(rank) -> bool:
    return rank is not None and not (isinstance(rank, float) and math.isnan(rank))


class RankingsMerger:
    """Builds the ``{player_id: {"dynasty_rank", "redraft_rank"}}`` overlay."""

    def match_rankings(
        self,
        players_df: pd.DataFrame,
        rankings_df: pd.DataFrame,
        rank_column: str,
    ) -> pd.DataFrame:
        """Attach one rankings file's rank to roster rows.

        Uses a two-pass strategy:

        Pass 1: exact match on (normalized name, position).
        Pass 2: for still-unmatched rows, match on the suffix- and
        punctuation-free name key, so "DJ Moore" finds "D.J. Moore Jr.".

        Args:
            players_df: Cleaned roster rows (``player_id``, ``name``,
                ``position``, ``Name_Key``).
            rankings_df: Cleaned rankings (``Player_Norm``, ``Position``,
                ``Name_Key``, ``Rank``).
            rank_column: Name of the rank column to add.

        Returns:
            DataFrame with ``player_id`` and *rank_column*.
        """
        ranks = rankings_df.dropna(subset=["Position"])

        exact = ranks[["Player_Norm", "Position", "Rank"]].drop_duplicates(
            subset=["Player_Norm", "Position"], keep="first"
        )
        merged = players_df[["player_id", "name", "position", "Name_Key"]].merge(
            exact,
            left_on=["name", "position"],
            right_on=["Player_Norm", "Position"],
            how="left",
            validate="m:1",
        )
        n_exact = merged["Rank"].notna().sum()

        unmatched = merged["Rank"].isna()
        if unmatched.any():
            fuzzy = ranks[["Name_Key", "Position", "Rank"]].dropna(subset=["Name_Key"])
            fuzzy = fuzzy.drop_duplicates(subset=["Name_Key", "Position"], keep="first")
            fallback = merged.loc[unmatched, ["player_id", "Name_Key", "position"]].merge(
                fuzzy,
                left_on=["Name_Key", "position"],
                right_on=["Name_Key", "Position"],
                how="left",
            )
            fallback_ranks = dict(zip(fallback["player_id"], fallback["Rank"]))
            merged.loc[unmatched, "Rank"] = merged.loc[unmatched, "player_id"].map(
                fallback_ranks
            )

        n_total = merged["Rank"].notna().sum()
        logger.info(
            "Matched %s: %d exact, %d by name key, %d unranked",
            rank_column, n_exact, n_total - n_exact, len(merged) - n_total,
        )
        return merged[["player_id", "Rank"]].rename(columns={"Rank": rank_column})

    def build_overlay(
        self,
        dynasty_df: pd.DataFrame,
        redraft_df: pd.DataFrame,
        players_df: pd.DataFrame,
    ) -> dict[str, dict[str, Optional[float]]]:
        """Rank overlay for every player ranked in at least one source."""
        dynasty = self.match_rankings(players_df, dynasty_df, "dynasty_rank")
        redraft = self.match_rankings(players_df, redraft_df, "redraft_rank")
        combined = dynasty.merge(redraft, on="player_id", how="outer")
        combined = combined.drop_duplicates(subset=["player_id"], keep="first")

        overlay: dict[str, dict[str, Optional[float]]] = {}
        for row in combined.itertuples(index=False):
            dynasty_rank = float(row.dynasty_rank) if _present(row.dynasty_rank) else None
            redraft_rank = float(row.redraft_rank) if _present(row.redraft_rank) else None
            if dynasty_rank is None and redraft_rank is None:
                continue
            overlay[str(row.player_id)] = {
                "dynasty_rank": dynasty_rank,
                "redraft_rank": redraft_rank,
            }

        logger.info("Built rankings overlay for %d players", len(overlay))
        return overlay
