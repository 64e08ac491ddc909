"""Rank-based auction price estimates and multi-year contract options.

A player's price starts from a historical rank -> price curve for the
position. Which curve (min/avg/max auction year) is used depends on how
strong the position's free-agent class is: a class headed by an elite
player is priced off the ``max`` curve. The curve price is then lifted to
an overall-rank tier floor, given a small premium in the top five, and
scaled by the position's market scarcity.
"""

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional

from src.auction_engine.config import (
    AGE_VALUE_MULTIPLIERS,
    CONTRACT_LENGTH_MULTIPLIERS,
    DEFAULT_RULES,
    DUAL_RANK_CONFIDENCE,
    ELITE_PREMIUM_MAX,
    ELITE_PREMIUM_RANKS,
    EXPERIENCE_CONFIDENCE_BONUS,
    RANK_TIER_FLOORS,
    SINGLE_RANK_CONFIDENCE,
    UNRANKED_CONFIDENCE,
    VETERAN_VALUE_MULTIPLIER,
    LeagueRules,
    get_default_salary_curves,
)
from src.auction_engine.models import (
    ContractPricing,
    ContractRecommendation,
    CurveTier,
    PlayerValuation,
    PositionScarcityAnalysis,
    PriceCalculation,
    PricedPlayer,
    SalaryCurve,
)
from src.auction_engine.salary_schedule import generate_schedule

logger = logging.getLogger(__name__)

CurveTable = Dict[str, Dict[CurveTier, SalaryCurve]]


# ----------------------------------------------------------------------
# Ranks and curves
# ----------------------------------------------------------------------

def calculate_composite_rank(
    player: PlayerValuation, rules: LeagueRules = DEFAULT_RULES
) -> Optional[float]:
    """Blend dynasty and redraft ranks using the league's weights.

    Falls back to whichever rank is present, then to a previously
    supplied composite rank.
    """
    dynasty, redraft = player.dynasty_rank, player.redraft_rank
    if dynasty is not None and redraft is not None:
        return dynasty * rules.dynasty_weight + redraft * rules.redraft_weight
    if dynasty is not None:
        return float(dynasty)
    if redraft is not None:
        return float(redraft)
    if player.composite_rank is not None:
        return float(player.composite_rank)
    return None


def rank_source_count(player: PlayerValuation) -> int:
    sources = sum(r is not None for r in (player.dynasty_rank, player.redraft_rank))
    if sources == 0 and player.composite_rank is not None:
        return 1
    return sources


def get_rank_tier(rank: Optional[float]) -> str:
    if rank is None:
        return "depth"
    for name, upper, _ in RANK_TIER_FLOORS:
        if rank <= upper:
            return name
    return "depth"


def _tier_floor_fraction(rank: Optional[float]) -> float:
    if rank is None:
        return 0.0
    for _, upper, fraction in RANK_TIER_FLOORS:
        if rank <= upper:
            return fraction
    return 0.0


def elite_premium(rank: Optional[float]) -> float:
    """Linear premium for the top overall ranks: 5% at rank 1, 0% at rank 5."""
    if rank is None or rank > ELITE_PREMIUM_RANKS:
        return 0.0
    rank = max(1.0, rank)
    return ELITE_PREMIUM_MAX * (ELITE_PREMIUM_RANKS - rank) / (ELITE_PREMIUM_RANKS - 1)


def select_curve_tier(
    position: str,
    players: Iterable[PlayerValuation],
    rules: LeagueRules = DEFAULT_RULES,
) -> CurveTier:
    """Pick the curve tier from the best composite rank available at *position*."""
    ranks = [
        rank
        for rank in (
            calculate_composite_rank(p, rules) for p in players if p.position == position
        )
        if rank is not None
    ]
    if not ranks:
        return CurveTier.MIN

    best = min(ranks)
    tier = get_rank_tier(best)
    if tier == "elite":
        return CurveTier.MAX
    if tier == "star":
        return CurveTier.AVG
    return CurveTier.MIN


def curve_price(curve: SalaryCurve, rank: float, league_minimum: int) -> float:
    """Price at *rank* on an exponential curve, never below the league minimum.

    Positive decay rates are treated as flat curves.
    """
    decay = min(0.0, curve.decay_rate)
    price = curve.base_price * (1 + decay) ** (max(1.0, rank) - 1)
    return max(float(league_minimum), price)


def normalize_curves(raw: Optional[Mapping] = None) -> CurveTable:
    """Turn a curve mapping into ``position -> CurveTier -> SalaryCurve``.

    Tier entries may be :class:`SalaryCurve` objects, ``(base, decay)``
    tuples, or dicts with ``base_price``/``decay_rate`` (or the camel-case
    ``basePrice``/``decayRate`` found in exported curve files).
    """
    if raw is None:
        raw = get_default_salary_curves()

    table: CurveTable = {}
    for position, tiers in raw.items():
        table[position] = {}
        for tier_name, spec in tiers.items():
            tier = CurveTier(tier_name.value if isinstance(tier_name, CurveTier) else tier_name)
            if isinstance(spec, SalaryCurve):
                curve = spec
            elif isinstance(spec, Mapping):
                curve = SalaryCurve(
                    base_price=int(spec.get("base_price", spec.get("basePrice"))),
                    decay_rate=float(spec.get("decay_rate", spec.get("decayRate"))),
                    data_points=int(spec.get("data_points", spec.get("dataPoints", 0))),
                )
            else:
                base, decay = spec
                curve = SalaryCurve(base_price=int(base), decay_rate=float(decay))
            table[position][tier] = curve
    return table


def get_age_multiplier(age: int) -> float:
    for max_age, multiplier in AGE_VALUE_MULTIPLIERS:
        if age <= max_age:
            return multiplier
    return VETERAN_VALUE_MULTIPLIER


def calculate_confidence(player: PlayerValuation, composite_rank: Optional[float]) -> float:
    if composite_rank is None:
        return UNRANKED_CONFIDENCE
    confidence = (
        DUAL_RANK_CONFIDENCE if rank_source_count(player) >= 2 else SINGLE_RANK_CONFIDENCE
    )
    if player.experience >= 3:
        confidence += EXPERIENCE_CONFIDENCE_BONUS
    return min(1.0, confidence)


# ----------------------------------------------------------------------
# Contracts
# ----------------------------------------------------------------------

def _recommend_contract(
    age: int, effective_value: float, prices: Mapping[int, int]
) -> ContractRecommendation:
    if age <= 25 and effective_value >= 10_000_000:
        years, reason = 5, "Young elite talent - lock in long-term value with a 5-year deal"
    elif age <= 26 and effective_value >= 5_000_000:
        years, reason = 4, "Young and productive - secure 4 years before the prime"
    elif age >= 32:
        years, reason = 1, "Veteran - a 1-year prove-it deal minimizes risk"
    elif effective_value < 1_000_000:
        years, reason = 1, "Low value - a 1-year deal keeps the roster flexible"
    elif 27 <= age <= 29:
        years, reason = 3, "Prime years - a 3-year deal balances value and risk"
    elif 30 <= age <= 31:
        years, reason = 2, "Aging player - limit risk with a 2-year deal"
    else:
        years, reason = 3, "Standard 3-year contract offers balanced value"
    return ContractRecommendation(years=years, price=prices[years], reason=reason)


def generate_contract_pricing(
    player: PlayerValuation,
    base_price: int,
    age_multiplier: float = 1.0,
    rules: LeagueRules = DEFAULT_RULES,
) -> ContractPricing:
    """Per-year prices for 1-5 year contracts around a 3-year reference price.

    Shorter deals cost more per year. Rounding can make two adjacent lengths
    equal for tiny prices, so each longer deal is kept at least a dollar
    below the shorter one.
    """
    prices: Dict[int, int] = {}
    previous = None
    for years in sorted(CONTRACT_LENGTH_MULTIPLIERS):
        price = int(round(base_price * CONTRACT_LENGTH_MULTIPLIERS[years]))
        if previous is not None and price >= previous:
            price = previous - 1
        prices[years] = price
        previous = price

    recommended = _recommend_contract(player.age, base_price * age_multiplier, prices)
    schedules = {
        years: generate_schedule(
            max(1, price), years, rules.start_year, player_id=player.player_id,
            rate=rules.escalation_rate, max_years=rules.max_contract_years,
        )
        for years, price in prices.items()
    }
    return ContractPricing(
        one_year=prices[1],
        two_year=prices[2],
        three_year=prices[3],
        four_year=prices[4],
        five_year=prices[5],
        recommended=recommended,
        schedules=schedules,
    )


# ----------------------------------------------------------------------
# Calculator
# ----------------------------------------------------------------------

class AuctionPriceCalculator:
    """Prices a free-agent pool against per-position salary curves.

    The calculator holds only configuration; every call works on the
    players it is given and returns new records.
    """

    def __init__(
        self,
        rules: LeagueRules = DEFAULT_RULES,
        curves: Optional[Mapping] = None,
    ):
        self.rules = rules
        self.curves = normalize_curves(curves)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def calculate_price(
        self,
        player: PlayerValuation,
        curve_tier: CurveTier,
        scarcity: Optional[PositionScarcityAnalysis] = None,
        position_rank: Optional[float] = None,
    ) -> PriceCalculation:
        """Price one player.

        Args:
            player: The free agent.
            curve_tier: Curve tier chosen for the player's position.
            scarcity: Market scarcity at the position; neutral when omitted.
            position_rank: Rank among free agents at the position, used to
                read the curve. Defaults to the composite rank.
        """
        rules = self.rules
        composite = calculate_composite_rank(player, rules)
        scarcity = scarcity or PositionScarcityAnalysis.neutral(player.position)
        position_curves = self.curves.get(player.position)

        if composite is None or not position_curves:
            if not position_curves:
                logger.warning(
                    "No salary curve for position %r (player %s); using league minimum",
                    player.position, player.player_id,
                )
            return PriceCalculation(
                player_id=player.player_id,
                composite_rank=composite,
                curve_tier=curve_tier,
                rank_tier=get_rank_tier(composite),
                curve_price=rules.league_minimum,
                tier_floor=0,
                elite_premium=0.0,
                scarcity_multiplier=1.0,
                final_price=rules.league_minimum,
                confidence=UNRANKED_CONFIDENCE,
            )

        curve = (
            position_curves.get(curve_tier)
            or position_curves.get(CurveTier.AVG)
            or next(iter(position_curves.values()))
        )
        slot = position_rank if position_rank is not None else composite
        base = curve_price(curve, slot, rules.league_minimum)

        max_curve = position_curves.get(CurveTier.MAX, curve)
        floor = _tier_floor_fraction(composite) * max_curve.base_price
        premium = elite_premium(composite)

        price = max(base, floor) * (1 + premium) * scarcity.price_impact_multiplier
        final_price = max(rules.league_minimum, int(round(price)))

        return PriceCalculation(
            player_id=player.player_id,
            composite_rank=composite,
            curve_tier=curve_tier,
            rank_tier=get_rank_tier(composite),
            curve_price=int(round(base)),
            tier_floor=int(round(floor)),
            elite_premium=premium,
            scarcity_multiplier=scarcity.price_impact_multiplier,
            final_price=final_price,
            confidence=calculate_confidence(player, composite),
        )

    def calculate_all_prices(
        self,
        players: List[PlayerValuation],
        scarcity_by_position: Optional[Mapping[str, PositionScarcityAnalysis]] = None,
    ) -> List[PricedPlayer]:
        """Price every player; results are sorted by price, highest first."""
        scarcity_by_position = scarcity_by_position or {}
        tiers = {
            position: select_curve_tier(position, players, self.rules)
            for position in {p.position for p in players}
        }
        position_ranks = self._compute_position_ranks(players)

        priced: List[PricedPlayer] = []
        for player in players:
            calc = self.calculate_price(
                player,
                tiers[player.position],
                scarcity_by_position.get(player.position),
                position_ranks.get(player.player_id),
            )
            contracts = generate_contract_pricing(
                player, calc.final_price, get_age_multiplier(player.age), self.rules
            )
            valued = replace(
                player,
                composite_rank=calc.composite_rank,
                estimated_price=calc.final_price,
                confidence=calc.confidence,
                recommended_contract_years=contracts.recommended.years,
            )
            priced.append(PricedPlayer(player=valued, calculation=calc, contracts=contracts))

        priced.sort(key=lambda p: p.calculation.final_price, reverse=True)
        logger.debug(
            "Priced %d players (curve tiers: %s)",
            len(priced),
            ", ".join(f"{pos}={tier.value}" for pos, tier in sorted(tiers.items())),
        )
        return priced

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _compute_position_ranks(self, players: List[PlayerValuation]) -> Dict[str, int]:
        """Rank ranked players within each position, ties sharing the better slot."""
        by_position: Dict[str, List[tuple]] = {}
        for player in players:
            rank = calculate_composite_rank(player, self.rules)
            if rank is not None:
                by_position.setdefault(player.position, []).append((rank, player.player_id))

        ranks: Dict[str, int] = {}
        for entries in by_position.values():
            entries.sort()
            previous_rank, slot = None, 0
            for idx, (rank, player_id) in enumerate(entries, start=1):
                if rank != previous_rank:
                    slot, previous_rank = idx, rank
                ranks[player_id] = slot
        return ranks


def get_price_explanation(calc: PriceCalculation, player: PlayerValuation) -> List[str]:
    """Human-readable breakdown of a price calculation."""
    if calc.composite_rank is None:
        return [
            f"No ranking available for {player.name or player.player_id}",
            f"Final price: ${calc.final_price / 1_000_000:.2f}M "
            f"({calc.confidence * 100:.0f}% confidence)",
        ]

    lines = [
        f"Composite rank #{calc.composite_rank:.0f} ({calc.rank_tier} tier)",
        f"{player.position} {calc.curve_tier.value} curve price: "
        f"${calc.curve_price / 1_000_000:.1f}M",
    ]
    if calc.tier_floor > calc.curve_price:
        lines.append(f"Raised to {calc.rank_tier} floor: ${calc.tier_floor / 1_000_000:.1f}M")
    if calc.elite_premium > 0:
        lines.append(f"Elite premium: +{calc.elite_premium * 100:.1f}%")
    if calc.scarcity_multiplier != 1.0:
        pct = (calc.scarcity_multiplier - 1) * 100
        sign = "+" if pct > 0 else ""
        lines.append(f"Market scarcity: {sign}{pct:.0f}% ({calc.scarcity_multiplier:.2f}x)")
    lines.append(
        f"Final price: ${calc.final_price / 1_000_000:.2f}M "
        f"({calc.confidence * 100:.0f}% confidence)"
    )
    return lines
