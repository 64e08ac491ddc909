"""Runs the full auction valuation: cap space, tags, prices, market.

Prices and market scarcity depend on each other, so pricing runs in
passes. Pass 1 prices the free-agent pool with neutral scarcity, the
market analyzer derives the real scarcity from that pool, and pass 2
re-prices with it.
"""

import logging
from dataclasses import asdict, replace
from typing import Dict, List, Mapping, Optional

from src.auction_engine.auction_pricing import (
    AuctionPriceCalculator,
    calculate_composite_rank,
)
from src.auction_engine.cap_space import (
    calculate_league_cap_situations,
    calculate_team_cap_situation,
)
from src.auction_engine.config import DEFAULT_RULES, LeagueRules
from src.auction_engine.franchise_tags import (
    apply_franchise_tag_override,
    get_available_free_agents,
    predict_franchise_tags,
)
from src.auction_engine.market_analyzer import (
    analyze_market,
    calculate_position_scarcity,
    positional_scarcity_scores,
)
from src.auction_engine.models import (
    FranchiseTagPrediction,
    PlayerValuation,
    PositionScarcityAnalysis,
    PricedPlayer,
    RosterPlayer,
    TeamCapSituation,
    ValuationInputs,
    ValuationResult,
)

logger = logging.getLogger(__name__)


class ValuationEngine:
    """Orchestrates one valuation run for a league.

    Args:
        rules: League configuration shared by every calculator.
        curves: Salary curves by position and tier; the built-in table
            when omitted.
        max_passes: Pricing passes to run at most. Two is the standard
            price -> scarcity -> re-price cycle; more passes stop early
            once scarcity stops changing.
    """

    def __init__(
        self,
        rules: LeagueRules = DEFAULT_RULES,
        curves: Optional[Mapping] = None,
        max_passes: int = 2,
    ):
        if max_passes < 2:
            raise ValueError(f"max_passes must be at least 2, got {max_passes}")
        self.rules = rules
        self.max_passes = max_passes
        self.price_calculator = AuctionPriceCalculator(rules, curves)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build_cap_situations(
        self,
        players: List[RosterPlayer],
        teams: List[Mapping[str, str]],
        dead_money_by_team: Optional[Mapping[str, int]] = None,
        predictions: Optional[List[FranchiseTagPrediction]] = None,
    ) -> List[TeamCapSituation]:
        """Cap situations for every team, charging tag salaries when given."""
        if not predictions:
            return calculate_league_cap_situations(
                players, teams, dead_money_by_team, self.rules
            ).team_cap_situations

        dead_money_by_team = dead_money_by_team or {}
        tag_salaries = {
            p.franchise_id: p.tagged_player.franchise_tag_salary or 0
            for p in predictions
            if p.has_tag and p.tagged_player is not None
        }
        return [
            calculate_team_cap_situation(
                team["franchise_id"],
                team.get("name", team["franchise_id"]),
                players,
                dead_money=dead_money_by_team.get(team["franchise_id"], 0),
                franchise_tag_salary=tag_salaries.get(team["franchise_id"], 0),
                rules=self.rules,
            )
            for team in teams
        ]

    def predict_tags(
        self,
        cap_situations: List[TeamCapSituation],
        salary_averages: Mapping[str, Mapping],
        rankings: Optional[Mapping[str, Mapping]] = None,
    ) -> List[FranchiseTagPrediction]:
        """Predict tags, scoring scarcity against the untagged expiring pool."""
        pool = self._expiring_pool(cap_situations, rankings)
        scarcity = calculate_position_scarcity(pool, cap_situations, self.rules)
        return predict_franchise_tags(
            cap_situations,
            salary_averages,
            rankings,
            positional_scarcity_scores(scarcity),
            self.rules,
        )

    def run(
        self,
        players: List[RosterPlayer],
        teams: List[Mapping[str, str]],
        salary_averages: Mapping[str, Mapping],
        dead_money_by_team: Optional[Mapping[str, int]] = None,
        rankings: Optional[Mapping[str, Mapping]] = None,
        overrides: Optional[Mapping[str, Optional[str]]] = None,
    ) -> ValuationResult:
        """Run a complete valuation.

        Args:
            players: Full league roster feed.
            teams: ``{"franchise_id", "name"}`` per franchise.
            salary_averages: ``{position: {"top3Average": ...}}``.
            dead_money_by_team: Dead money owed per franchise.
            rankings: ``{player_id: {"dynasty_rank", "redraft_rank"}}``.
            overrides: Manual tag decisions, ``{franchise_id: player_id}``;
                a ``None`` player clears that team's tag.
        """
        inputs = ValuationInputs(
            players=list(players),
            teams=[dict(t) for t in teams],
            salary_averages=dict(salary_averages or {}),
            dead_money_by_team=dict(dead_money_by_team or {}),
            rankings=dict(rankings or {}),
        )
        logger.info(
            "Starting valuation: %d roster rows, %d teams", len(inputs.players), len(inputs.teams)
        )

        untagged_caps = self.build_cap_situations(
            inputs.players, inputs.teams, inputs.dead_money_by_team
        )
        predictions = self.predict_tags(untagged_caps, inputs.salary_averages, inputs.rankings)
        expiring = self._expiring_pool(untagged_caps, inputs.rankings)

        for franchise_id, player_id in (overrides or {}).items():
            predictions = apply_franchise_tag_override(
                predictions, franchise_id, player_id, expiring,
                inputs.salary_averages, self.rules,
            )

        return self._price_market(inputs, predictions, expiring)

    def reprice_after_override(
        self,
        result: ValuationResult,
        franchise_id: str,
        player_id: Optional[str],
    ) -> ValuationResult:
        """Apply one manual tag decision and re-run pricing and market analysis."""
        predictions = apply_franchise_tag_override(
            result.tag_predictions,
            franchise_id,
            player_id,
            result.expiring_players,
            result.inputs.salary_averages,
            self.rules,
        )
        return self._price_market(result.inputs, predictions, result.expiring_players)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _expiring_pool(
        self,
        cap_situations: List[TeamCapSituation],
        rankings: Optional[Mapping[str, Mapping]],
    ) -> List[PlayerValuation]:
        """Every expiring player with rankings merged in."""
        rankings = rankings or {}
        pool = []
        for team in cap_situations:
            for player in team.expiring_contracts:
                overlay = rankings.get(player.player_id, {})
                merged = replace(
                    player,
                    dynasty_rank=overlay.get("dynasty_rank", player.dynasty_rank),
                    redraft_rank=overlay.get("redraft_rank", player.redraft_rank),
                )
                pool.append(
                    replace(merged, composite_rank=calculate_composite_rank(merged, self.rules))
                )
        return pool

    def _price_market(
        self,
        inputs: ValuationInputs,
        predictions: List[FranchiseTagPrediction],
        expiring: List[PlayerValuation],
    ) -> ValuationResult:
        cap_situations = self.build_cap_situations(
            inputs.players, inputs.teams, inputs.dead_money_by_team, predictions
        )
        free_agents = [
            replace(p, franchise_id=None)
            for p in get_available_free_agents(expiring, predictions)
        ]

        scarcity: Dict[str, PositionScarcityAnalysis] = {
            pos: PositionScarcityAnalysis.neutral(pos) for pos in self.rules.positions
        }
        priced: List[PricedPlayer] = self.price_calculator.calculate_all_prices(
            free_agents, scarcity
        )
        passes = 1
        while passes < self.max_passes:
            refined = calculate_position_scarcity(
                [p.player for p in priced], cap_situations, self.rules
            )
            if passes > 1 and refined == scarcity:
                logger.debug("Scarcity unchanged after pass %d; stopping", passes)
                break
            scarcity = refined
            priced = self.price_calculator.calculate_all_prices(free_agents, scarcity)
            passes += 1

        market = analyze_market(
            [p.player for p in priced], cap_situations, scarcity, self.rules
        )
        logger.info(
            "Valuation complete: %d free agents priced in %d passes, %d tags",
            len(priced), passes, sum(1 for p in predictions if p.has_tag),
        )
        return ValuationResult(
            inputs=inputs,
            cap_situations=cap_situations,
            tag_predictions=predictions,
            expiring_players=expiring,
            priced_players=priced,
            scarcity_by_position=scarcity,
            market_analysis=market,
            passes=passes,
        )


def to_dict(result: ValuationResult) -> Dict:
    """JSON-ready view of a valuation result (inputs are left out)."""
    return {
        "cap_situations": [asdict(c) for c in result.cap_situations],
        "franchise_tags": [asdict(p) for p in result.tag_predictions],
        "free_agents": [
            {
                **asdict(p.player),
                "price_breakdown": asdict(p.calculation),
                "contracts": asdict(p.contracts),
            }
            for p in result.priced_players
        ],
        "scarcity_by_position": {
            pos: asdict(s) for pos, s in result.scarcity_by_position.items()
        },
        "market_analysis": asdict(result.market_analysis),
        "passes": result.passes,
    }
