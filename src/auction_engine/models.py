"""Data models for the auction valuation engine.

Every record is a plain dataclass so results serialise with
``dataclasses.asdict``. Engine functions never mutate these in place;
updated copies are made with ``dataclasses.replace``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union


class CurveTier(str, Enum):
    """Which historical rank -> price curve prices a position."""

    MIN = "min"
    AVG = "avg"
    MAX = "max"


class RosterStatus(str, Enum):
    ROSTER = "ROSTER"
    TAXI_SQUAD = "TAXI_SQUAD"
    INJURED_RESERVE = "INJURED_RESERVE"


@dataclass
class RosterPlayer:
    """A single row of the roster feed."""

    player_id: str
    position: str
    salary: int
    contract_years_remaining: Union[str, int, None]
    franchise_id: str
    status: str = RosterStatus.ROSTER.value
    name: str = ""
    team: str = ""
    age: Optional[int] = None
    experience: Optional[int] = None  # Seasons since the player was drafted


@dataclass
class PlayerValuation:
    """A player as seen by the valuation engine."""

    player_id: str
    name: str
    position: str
    team: str = ""

    current_salary: int = 0
    contract_years_remaining: int = 0
    franchise_id: Optional[str] = None  # None once the player is unowned

    dynasty_rank: Optional[float] = None
    redraft_rank: Optional[float] = None
    composite_rank: Optional[float] = None
    age: int = 25
    experience: int = 0

    positional_scarcity: Optional[float] = None  # 0-1, higher = scarcer
    franchise_tag_salary: Optional[int] = None

    estimated_price: Optional[int] = None
    confidence: Optional[float] = None
    recommended_contract_years: Optional[int] = None


@dataclass
class PositionalNeed:
    position: str
    priority: str  # "critical", "high", "medium", "low"
    current_depth: int
    gap: int


@dataclass
class TeamCapSituation:
    """Projected next-season cap picture for one franchise."""

    franchise_id: str
    team_name: str
    hard_cap: int
    committed_salaries: int
    dead_money: int
    franchise_tag_commitment: int
    total_committed: int
    projected_cap_space: int
    minimum_roster_reserve: int
    discretionary_spending: int
    roster_count: int
    expiring_contracts: List[PlayerValuation] = field(default_factory=list)
    total_expiring_value: int = 0
    positional_needs: List[PositionalNeed] = field(default_factory=list)

    def get_need(self, position: str) -> Optional[PositionalNeed]:
        for need in self.positional_needs:
            if need.position == position:
                return need
        return None


@dataclass
class LeagueCapSummary:
    team_cap_situations: List[TeamCapSituation]
    total_discretionary: int
    average_discretionary: float


@dataclass
class TagCandidate:
    player: PlayerValuation
    score: float
    reasons: List[str] = field(default_factory=list)


@dataclass
class FranchiseTagPrediction:
    franchise_id: str
    team_name: str
    has_tag: bool
    tagged_player: Optional[PlayerValuation]
    tag_candidates: List[TagCandidate] = field(default_factory=list)
    is_manual_override: bool = False


@dataclass
class TagOverrideImpact:
    players_added_to_market: List[PlayerValuation]
    players_removed_from_market: List[PlayerValuation]
    tag_salary_change: int
    position_supply_changes: Dict[str, int]


@dataclass
class ScheduleYear:
    year: int
    salary: int
    cap_hit: int


@dataclass
class ContractSchedule:
    base_salary: int
    contract_years: int
    base_year: int
    yearly_schedule: List[ScheduleYear]
    total_contract_value: int
    average_annual_value: int
    player_id: Optional[str] = None


@dataclass
class SalaryCurve:
    """Exponential rank -> price curve: ``base_price * (1 + decay_rate)^(rank - 1)``."""

    base_price: int
    decay_rate: float
    data_points: int = 0


@dataclass
class PositionScarcityAnalysis:
    position: str
    available_players: int
    quality_players: int
    teams_needing: int
    total_demand: int
    scarcity_index: float
    projected_price_inflation: float
    price_impact_multiplier: float

    @classmethod
    def neutral(cls, position: str) -> "PositionScarcityAnalysis":
        """Scarcity that leaves prices untouched (first pricing pass)."""
        return cls(
            position=position,
            available_players=0,
            quality_players=0,
            teams_needing=0,
            total_demand=0,
            scarcity_index=1.0,
            projected_price_inflation=0.0,
            price_impact_multiplier=1.0,
        )


@dataclass
class PriceCalculation:
    """Breakdown of a single player's price."""

    player_id: str
    composite_rank: Optional[float]
    curve_tier: CurveTier
    rank_tier: str
    curve_price: int
    tier_floor: int
    elite_premium: float
    scarcity_multiplier: float
    final_price: int
    confidence: float


@dataclass
class ContractRecommendation:
    years: int
    price: int
    reason: str


@dataclass
class ContractPricing:
    one_year: int
    two_year: int
    three_year: int
    four_year: int
    five_year: int
    recommended: ContractRecommendation
    schedules: Dict[int, ContractSchedule] = field(default_factory=dict)

    def price_for(self, years: int) -> int:
        return {
            1: self.one_year,
            2: self.two_year,
            3: self.three_year,
            4: self.four_year,
            5: self.five_year,
        }[years]


@dataclass
class PricedPlayer:
    player: PlayerValuation
    calculation: PriceCalculation
    contracts: ContractPricing


@dataclass
class PositionalMarket:
    available_players: int
    top_player_value: int
    average_player_value: float
    total_demand: int
    scarcity_index: float
    projected_price_inflation: float


@dataclass
class ValueOpportunity:
    player: PlayerValuation
    estimated_price: int
    fair_value: int
    expected_discount: float
    reason: str


@dataclass
class OvervaluedRisk:
    player: PlayerValuation
    estimated_price: int
    fair_value: int
    expected_premium: float
    reason: str


@dataclass
class MarketAnalysis:
    total_available_cap: int
    total_available_players: int
    positional_markets: Dict[str, PositionalMarket]
    market_efficiency: float
    market_condition: str  # "seller", "buyer", "balanced"
    expected_average_price_change: float
    value_opportunities: List[ValueOpportunity] = field(default_factory=list)
    overvalued_risks: List[OvervaluedRisk] = field(default_factory=list)


@dataclass
class ValuationInputs:
    """Everything a valuation run was computed from, kept for re-runs."""

    players: List[RosterPlayer]
    teams: List[Dict[str, str]]
    salary_averages: Dict[str, Dict]
    dead_money_by_team: Dict[str, int] = field(default_factory=dict)
    rankings: Dict[str, Dict[str, Optional[float]]] = field(default_factory=dict)


@dataclass
class ValuationResult:
    inputs: ValuationInputs
    cap_situations: List[TeamCapSituation]
    tag_predictions: List[FranchiseTagPrediction]
    expiring_players: List[PlayerValuation]
    priced_players: List[PricedPlayer]
    scarcity_by_position: Dict[str, PositionScarcityAnalysis]
    market_analysis: MarketAnalysis
    passes: int

    @property
    def free_agents(self) -> List[PlayerValuation]:
        return [p.player for p in self.priced_players]
