"""Historical rank -> price curves from past auction results.

Each past auction is sorted by winning bid within a position, giving every
bid a rank slot (1 = most expensive at the position that year). Across
years each slot yields a max, average and min price. An exponential curve
``base * (1 + decay)^(slot - 1)`` is fitted to each series by least squares
on log prices, anchored at slot 1.
"""

import logging
import math
from typing import Dict

import pandas as pd

from src.auction_engine.config import get_default_salary_curves
from src.auction_engine.models import CurveTier, SalaryCurve

logger = logging.getLogger(__name__)

# Slots beyond this are mostly league-minimum bids and flatten the fit
MAX_FIT_SLOT = 20


class SalaryCurveBuilder:
    """Builds per-position salary curves from auction history."""

    def __init__(self, max_fit_slot: int = MAX_FIT_SLOT):
        self.max_fit_slot = max_fit_slot

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build_slot_table(self, history: pd.DataFrame) -> pd.DataFrame:
        """Price statistics per (position, slot).

        Args:
            history: Columns ``year, position, winning_bid``.

        Returns:
            DataFrame with columns:
                position, slot, max, avg, min, samples
        """
        columns = ["position", "slot", "max", "avg", "min", "samples"]
        if history.empty:
            return pd.DataFrame(columns=columns)

        df = history.copy()
        df["slot"] = (
            df.groupby(["year", "position"])["winning_bid"]
            .rank(method="first", ascending=False)
            .astype(int)
        )
        table = (
            df.groupby(["position", "slot"])["winning_bid"]
            .agg(["max", "mean", "min", "count"])
            .reset_index()
            .rename(columns={"mean": "avg", "count": "samples"})
        )
        logger.info(
            "Built slot table: %d slots across %d positions",
            len(table), table["position"].nunique(),
        )
        return table[columns]

    def fit_curve(self, prices: pd.Series) -> SalaryCurve:
        """Fit ``base * (1 + decay)^(slot - 1)`` anchored at the best slot.

        The decay is the least-squares slope of ``log(price / base)``
        against ``slot - 1`` over every kept slot, with the line forced
        through slot 1.

        Args:
            prices: Prices indexed by slot (1-based), best slot first.
        """
        prices = prices.sort_index()
        prices = prices[prices > 0]
        if prices.empty:
            raise ValueError("Cannot fit a salary curve without positive prices")
        base = float(prices.iloc[0])
        if len(prices) < 2:
            return SalaryCurve(base_price=int(round(base)), decay_rate=0.0, data_points=len(prices))

        offsets = pd.Series(prices.index, index=prices.index, dtype=float) - float(prices.index[0])
        log_ratios = (prices / base).apply(math.log)
        slope = (offsets * log_ratios).sum() / (offsets ** 2).sum()
        decay = math.exp(slope) - 1
        return SalaryCurve(
            base_price=int(round(base)),
            decay_rate=min(0.0, decay),
            data_points=len(prices),
        )

    def build_curves(self, history: pd.DataFrame) -> Dict[str, Dict[CurveTier, SalaryCurve]]:
        """Fitted curves per position and tier.

        Positions, or tiers, with fewer than two usable slots keep the
        built-in default curve.
        """
        curves: Dict[str, Dict[CurveTier, SalaryCurve]] = {}
        for position, tiers in get_default_salary_curves().items():
            curves[position] = {
                CurveTier(tier): SalaryCurve(base_price=base, decay_rate=decay)
                for tier, (base, decay) in tiers.items()
            }

        table = self.build_slot_table(history)
        table = table[table["slot"] <= self.max_fit_slot]

        for position, group in table.groupby("position"):
            if group["slot"].nunique() < 2:
                logger.warning(
                    "Only %d auction slot(s) for %s; keeping default curves",
                    group["slot"].nunique(), position,
                )
                continue
            series = group.set_index("slot")
            fitted = {
                CurveTier.MAX: self.fit_curve(series["max"]),
                CurveTier.AVG: self.fit_curve(series["avg"]),
                CurveTier.MIN: self.fit_curve(series["min"]),
            }
            curves.setdefault(position, {}).update(fitted)
            logger.debug(
                "%s curves: %s", position,
                ", ".join(
                    f"{tier.value}={c.base_price}/{c.decay_rate:+.3f}"
                    for tier, c in fitted.items()
                ),
            )
        return curves


def build_salary_averages(rosters: pd.DataFrame) -> Dict[str, Dict[str, float]]:
    """Top-3 and top-5 average salaries per position from roster rows."""
    averages: Dict[str, Dict[str, float]] = {}
    for position, group in rosters.groupby("position"):
        salaries = group["salary"].sort_values(ascending=False)
        averages[position] = {
            "totalPlayers": int(len(salaries)),
            "top3Average": float(salaries.head(3).mean()),
            "top5Average": float(salaries.head(5).mean()),
        }
    return averages
