"""League rules for the auction valuation engine.

Module-level constants hold the league's defaults; :class:`LeagueRules`
bundles them into one immutable object that every calculator receives, so
alternative league settings can be evaluated without touching globals.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

# League economics
SALARY_CAP = 45_000_000
LEAGUE_MINIMUM = 425_000
ANNUAL_ESCALATION = 0.10  # Held contracts grow 10% per season
MIN_ROSTER_SIZE = 20
TAXI_SQUAD_CAP_PERCENT = 0.5
MAX_CONTRACT_YEARS = 5

POSITIONS = ("QB", "RB", "WR", "TE", "PK", "DEF")

# Ideal depth chart by position, used to derive positional needs
POSITION_TARGET_DEPTH = {
    "QB": 2,
    "RB": 6,
    "WR": 8,
    "TE": 3,
    "PK": 1,
    "DEF": 1,
}

# Franchise tag
FRANCHISE_TAG_THRESHOLD = 50.0  # 0-100 score needed to predict a tag
MAX_TAG_CANDIDATES = 5

# Composite rank weighting (must sum to 1)
DEFAULT_DYNASTY_WEIGHT = 0.6
DEFAULT_REDRAFT_WEIGHT = 0.4

# Overall-rank tiers: (upper bound inclusive, floor as fraction of max curve)
RANK_TIER_FLOORS = (
    ("elite", 30, 0.85),
    ("star", 105, 0.60),
    ("starter", 199, 0.30),
)
ELITE_PREMIUM_MAX = 0.05  # +5% at overall rank 1, tapering to 0 at rank 5
ELITE_PREMIUM_RANKS = 5

# Per-year price of a contract relative to the 3-year reference price
CONTRACT_LENGTH_MULTIPLIERS = {1: 1.2, 2: 1.1, 3: 1.0, 4: 0.9, 5: 0.8}

# (max age inclusive, multiplier) applied to value when recommending a length
AGE_VALUE_MULTIPLIERS = (
    (25, 1.15),
    (29, 1.0),
    (31, 0.85),
)
VETERAN_VALUE_MULTIPLIER = 0.65

# Price confidence
UNRANKED_CONFIDENCE = 0.8
SINGLE_RANK_CONFIDENCE = 0.85
DUAL_RANK_CONFIDENCE = 0.9
EXPERIENCE_CONFIDENCE_BONUS = 0.05
DEFAULT_EXPERIENCE = 5  # Assumed when the player feed has no draft year

# Market analysis
QUALITY_RANK_THRESHOLD = 100
SCARCITY_INFLATION_SLOPE = 0.25
MAX_PRICE_INFLATION = 0.5
MAX_MARKET_LISTINGS = 10  # Value opportunities and overvalued risks reported

# Historical rank -> price curves: position -> tier -> (base price, decay rate)
DEFAULT_SALARY_CURVES = {
    "QB": {
        "max": (25_000_000, -0.10),
        "avg": (15_000_000, -0.15),
        "min": (8_000_000, -0.20),
    },
    "RB": {
        "max": (18_000_000, -0.20),
        "avg": (10_000_000, -0.25),
        "min": (5_000_000, -0.30),
    },
    "WR": {
        "max": (20_000_000, -0.15),
        "avg": (12_000_000, -0.20),
        "min": (6_000_000, -0.25),
    },
    "TE": {
        "max": (10_000_000, -0.20),
        "avg": (6_000_000, -0.25),
        "min": (3_000_000, -0.30),
    },
    "PK": {
        "max": (1_000_000, -0.10),
        "avg": (700_000, -0.05),
        "min": (425_000, -0.05),
    },
    "DEF": {
        "max": (1_200_000, -0.10),
        "avg": (700_000, -0.05),
        "min": (425_000, -0.05),
    },
}


def _freeze(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class LeagueRules:
    """Immutable league configuration threaded through the engine."""

    hard_cap: int = SALARY_CAP
    league_minimum: int = LEAGUE_MINIMUM
    escalation_rate: float = ANNUAL_ESCALATION
    min_roster_size: int = MIN_ROSTER_SIZE
    taxi_squad_percent: float = TAXI_SQUAD_CAP_PERCENT
    max_contract_years: int = MAX_CONTRACT_YEARS
    positions: Tuple[str, ...] = POSITIONS
    target_depth: Mapping[str, int] = field(
        default_factory=lambda: _freeze(POSITION_TARGET_DEPTH)
    )
    tag_threshold: float = FRANCHISE_TAG_THRESHOLD
    max_tag_candidates: int = MAX_TAG_CANDIDATES
    dynasty_weight: float = DEFAULT_DYNASTY_WEIGHT
    redraft_weight: float = DEFAULT_REDRAFT_WEIGHT
    quality_rank_threshold: int = QUALITY_RANK_THRESHOLD
    scarcity_inflation_slope: float = SCARCITY_INFLATION_SLOPE
    max_price_inflation: float = MAX_PRICE_INFLATION
    max_market_listings: int = MAX_MARKET_LISTINGS
    start_year: int = 2026

    def __post_init__(self):
        if not isinstance(self.target_depth, MappingProxyType):
            object.__setattr__(self, "target_depth", _freeze(self.target_depth))
        self._validate_weights(self.dynasty_weight, self.redraft_weight)

    @staticmethod
    def _validate_weights(dynasty_weight: float, redraft_weight: float):
        for name, weight in (("dynasty", dynasty_weight), ("redraft", redraft_weight)):
            if not 0.0 <= weight <= 1.0:
                raise ValueError(
                    f"Invalid {name} weight: {weight!r}. Must be between 0 and 1."
                )
        if abs(dynasty_weight + redraft_weight - 1.0) > 1e-9:
            raise ValueError(
                f"Rank weights must sum to 1 "
                f"(dynasty={dynasty_weight}, redraft={redraft_weight})"
            )

    def with_weights(self, dynasty_weight: float, redraft_weight: float) -> "LeagueRules":
        """Return a copy using a different dynasty/redraft weighting."""
        return replace(
            self, dynasty_weight=dynasty_weight, redraft_weight=redraft_weight
        )

    def get_target_depth(self, position: str) -> int:
        return self.target_depth.get(position, 0)


def get_default_salary_curves() -> Dict[str, Dict[str, Tuple[int, float]]]:
    """Copy of the built-in curve table as ``position -> tier -> (base, decay)``."""
    return {pos: dict(tiers) for pos, tiers in DEFAULT_SALARY_CURVES.items()}


DEFAULT_RULES = LeagueRules()
