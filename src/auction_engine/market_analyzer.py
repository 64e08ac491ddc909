"""League-wide supply and demand analysis for the free-agent auction.

Supply at a position is the number of quality free agents; demand is the
sum of every team's depth-chart gap there. Their ratio drives a bounded
price inflation that is fed back into the price calculator.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from src.auction_engine.auction_pricing import calculate_composite_rank
from src.auction_engine.config import DEFAULT_RULES, LeagueRules
from src.auction_engine.models import (
    MarketAnalysis,
    OvervaluedRisk,
    PlayerValuation,
    PositionalMarket,
    PositionScarcityAnalysis,
    TeamCapSituation,
    ValueOpportunity,
)

logger = logging.getLogger(__name__)

SELLER_MARKET_EFFICIENCY = 1.1
BUYER_MARKET_EFFICIENCY = 0.9
MARKET_PRICE_SWING = 0.10

# Fair-value modifiers
YOUNG_AGE = 24
YOUNG_MULTIPLIER = 1.3
ELITE_RANK = 30
ELITE_MULTIPLIER = 1.3
VETERAN_AGE = 32
VETERAN_MULTIPLIER = 0.75
AGING_AGE = 30
AGING_MULTIPLIER = 0.85

MISPRICING_THRESHOLD = 0.2


def calculate_position_scarcity(
    free_agents: Iterable[PlayerValuation],
    team_caps: Iterable[TeamCapSituation],
    rules: LeagueRules = DEFAULT_RULES,
) -> Dict[str, PositionScarcityAnalysis]:
    """Scarcity index and price inflation for every league position."""
    free_agents = list(free_agents)
    team_caps = list(team_caps)

    result: Dict[str, PositionScarcityAnalysis] = {}
    for position in rules.positions:
        at_position = [p for p in free_agents if p.position == position]
        quality = 0
        for player in at_position:
            rank = calculate_composite_rank(player, rules)
            if rank is not None and rank <= rules.quality_rank_threshold:
                quality += 1

        gaps = [
            need.gap
            for team in team_caps
            for need in team.positional_needs
            if need.position == position
        ]
        total_demand = sum(gaps)
        teams_needing = sum(1 for gap in gaps if gap > 0)

        scarcity_index = total_demand / max(quality, 1)
        inflation = rules.scarcity_inflation_slope * (scarcity_index - 1)
        inflation = max(-rules.max_price_inflation, min(rules.max_price_inflation, inflation))

        result[position] = PositionScarcityAnalysis(
            position=position,
            available_players=len(at_position),
            quality_players=quality,
            teams_needing=teams_needing,
            total_demand=total_demand,
            scarcity_index=scarcity_index,
            projected_price_inflation=inflation,
            price_impact_multiplier=1 + inflation,
        )
        logger.debug(
            "%s scarcity: demand=%d quality=%d index=%.2f inflation=%+.2f",
            position, total_demand, quality, scarcity_index, inflation,
        )
    return result


def calculate_fair_value(
    player: PlayerValuation,
    price: int,
    rules: LeagueRules = DEFAULT_RULES,
) -> float:
    """What the player is worth once youth, rank and age are accounted for.

    *price* already carries the position's scarcity multiplier, so supply
    and demand only shape the reasons attached to a mispricing.
    """
    value = float(price)

    if player.age <= YOUNG_AGE:
        value *= YOUNG_MULTIPLIER
    rank = calculate_composite_rank(player, rules)
    if rank is not None and rank < ELITE_RANK:
        value *= ELITE_MULTIPLIER
    if player.age >= VETERAN_AGE:
        value *= VETERAN_MULTIPLIER
    elif player.age >= AGING_AGE:
        value *= AGING_MULTIPLIER
    return value


def _opportunity_reason(player, rank, scarcity) -> str:
    parts = []
    if player.age <= YOUNG_AGE:
        parts.append(f"young (age {player.age}) with upside")
    if rank is not None and rank < ELITE_RANK:
        parts.append(f"elite rank #{rank:.0f}")
    if scarcity and scarcity.scarcity_index > 1:
        parts.append(f"{scarcity.position} demand exceeds supply")
    return "; ".join(parts) if parts else "Priced below fair value"


def _risk_reason(player, scarcity) -> str:
    parts = []
    if player.age >= AGING_AGE:
        parts.append(f"Age {player.age} decline risk")
    if scarcity and scarcity.scarcity_index < 1:
        parts.append(f"{scarcity.position} market oversupplied")
    return "; ".join(parts) if parts else "Priced above fair value"


def _market_condition(efficiency: float):
    if efficiency > SELLER_MARKET_EFFICIENCY:
        return "seller", MARKET_PRICE_SWING
    if efficiency < BUYER_MARKET_EFFICIENCY:
        return "buyer", -MARKET_PRICE_SWING
    return "balanced", 0.0


def analyze_market(
    free_agents: List[PlayerValuation],
    team_caps: List[TeamCapSituation],
    scarcity_by_position: Optional[Mapping[str, PositionScarcityAnalysis]] = None,
    rules: LeagueRules = DEFAULT_RULES,
) -> MarketAnalysis:
    """Analyze a priced free-agent pool against the league's cap space.

    Args:
        free_agents: Players with ``estimated_price`` filled in. Unpriced
            players count toward supply but are valued at the league minimum.
        team_caps: Every team's cap situation.
        scarcity_by_position: Precomputed scarcity; recomputed when omitted.
        rules: League configuration.
    """
    if scarcity_by_position is None:
        scarcity_by_position = calculate_position_scarcity(free_agents, team_caps, rules)

    total_cap = sum(max(0, t.discretionary_spending) for t in team_caps)

    def price_of(player: PlayerValuation) -> int:
        if player.estimated_price is None:
            return rules.league_minimum
        return player.estimated_price

    positional_markets: Dict[str, PositionalMarket] = {}
    for position in rules.positions:
        prices = [price_of(p) for p in free_agents if p.position == position]
        scarcity = scarcity_by_position.get(position) or PositionScarcityAnalysis.neutral(
            position
        )
        positional_markets[position] = PositionalMarket(
            available_players=len(prices),
            top_player_value=max(prices) if prices else 0,
            average_player_value=sum(prices) / len(prices) if prices else 0.0,
            total_demand=scarcity.total_demand,
            scarcity_index=scarcity.scarcity_index,
            projected_price_inflation=scarcity.projected_price_inflation,
        )

    total_prices = sum(price_of(p) for p in free_agents)
    efficiency = total_prices / total_cap if total_cap > 0 else 1.0
    condition, price_change = _market_condition(efficiency)

    opportunities: List[ValueOpportunity] = []
    risks: List[OvervaluedRisk] = []
    for player in free_agents:
        price = price_of(player)
        scarcity = scarcity_by_position.get(player.position)
        fair = calculate_fair_value(player, price, rules)
        if fair <= 0:
            continue

        discount = (fair - price) / fair
        premium = (price - fair) / fair
        if discount >= MISPRICING_THRESHOLD:
            rank = calculate_composite_rank(player, rules)
            opportunities.append(
                ValueOpportunity(
                    player=player,
                    estimated_price=price,
                    fair_value=int(round(fair)),
                    expected_discount=discount,
                    reason=_opportunity_reason(player, rank, scarcity),
                )
            )
        elif premium >= MISPRICING_THRESHOLD:
            risks.append(
                OvervaluedRisk(
                    player=player,
                    estimated_price=price,
                    fair_value=int(round(fair)),
                    expected_premium=premium,
                    reason=_risk_reason(player, scarcity),
                )
            )

    opportunities.sort(key=lambda o: o.expected_discount, reverse=True)
    risks.sort(key=lambda r: r.expected_premium, reverse=True)
    opportunities = opportunities[: rules.max_market_listings]
    risks = risks[: rules.max_market_listings]

    logger.info(
        "Market: %d free agents, %d cap available, efficiency %.2f (%s)",
        len(free_agents), total_cap, efficiency, condition,
    )
    return MarketAnalysis(
        total_available_cap=total_cap,
        total_available_players=len(free_agents),
        positional_markets=positional_markets,
        market_efficiency=efficiency,
        market_condition=condition,
        expected_average_price_change=price_change,
        value_opportunities=opportunities,
        overvalued_risks=risks,
    )


def get_market_summary(analysis: MarketAnalysis) -> str:
    """One-line description of the overall market."""
    label = {
        "seller": "Seller's market",
        "buyer": "Buyer's market",
        "balanced": "Balanced market",
    }[analysis.market_condition]
    scarce = [
        pos for pos, market in analysis.positional_markets.items()
        if market.scarcity_index > 1.5
    ]
    summary = (
        f"{label}: {analysis.total_available_players} free agents, "
        f"${analysis.total_available_cap / 1_000_000:.1f}M available "
        f"(efficiency {analysis.market_efficiency:.2f})"
    )
    if scarce:
        summary += f"; high demand for {', '.join(scarce)}"
    return summary


def get_position_advice(position: str, analysis: MarketAnalysis) -> str:
    market = analysis.positional_markets.get(position)
    if market is None:
        return "No data"
    if market.scarcity_index >= 2.0:
        return "Severe shortage - expect to overpay"
    if market.scarcity_index > 1.2:
        return "Competitive - bid aggressively early"
    if market.scarcity_index < 0.8:
        return "Buyer's market - wait for deals"
    return "Balanced - fair prices expected"


def positional_scarcity_scores(
    scarcity_by_position: Mapping[str, PositionScarcityAnalysis],
) -> Dict[str, float]:
    """0-1 scarcity score per position: 0 when quality supply covers demand."""
    scores = {}
    for position, scarcity in scarcity_by_position.items():
        coverage = scarcity.quality_players / max(1, scarcity.total_demand)
        scores[position] = max(0.0, min(1.0, 1 - coverage))
    return scores
