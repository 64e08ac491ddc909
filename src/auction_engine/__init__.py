from src.auction_engine.auction_pricing import AuctionPriceCalculator
from src.auction_engine.config import DEFAULT_RULES, LeagueRules
from src.auction_engine.franchise_tags import (
    apply_franchise_tag_override,
    calculate_tag_override_impact,
    get_available_free_agents,
)
from src.auction_engine.models import (
    CurveTier,
    FranchiseTagPrediction,
    MarketAnalysis,
    PlayerValuation,
    RosterPlayer,
    TeamCapSituation,
    ValuationResult,
)
from src.auction_engine.valuation_engine import ValuationEngine, to_dict

__all__ = [
    "AuctionPriceCalculator",
    "CurveTier",
    "DEFAULT_RULES",
    "FranchiseTagPrediction",
    "LeagueRules",
    "MarketAnalysis",
    "PlayerValuation",
    "RosterPlayer",
    "TeamCapSituation",
    "ValuationEngine",
    "ValuationResult",
    "apply_franchise_tag_override",
    "calculate_tag_override_impact",
    "get_available_free_agents",
    "to_dict",
]
