"""Franchise tag predictions.

Each team may tag one expiring player, keeping that player off the auction market
at the tag salary for that position. Every expiring player is scored 0-100
on five factors and the team is predicted to tag its best candidate when
that score clears the league threshold.

Manual overrides are applied as a pure function of the prediction list, so
the same override can be replayed on top of any fresh computation.
"""

import logging
from collections import Counter
from dataclasses import replace
from typing import Dict, List, Mapping, Optional

from src.auction_engine.auction_pricing import calculate_composite_rank
from src.auction_engine.cap_space import calculate_franchise_tag_salary
from src.auction_engine.config import DEFAULT_RULES, LeagueRules
from src.auction_engine.models import (
    FranchiseTagPrediction,
    PlayerValuation,
    TagCandidate,
    TagOverrideImpact,
    TeamCapSituation,
)

logger = logging.getLogger(__name__)

RankingsOverlay = Mapping[str, Mapping[str, Optional[float]]]


# ----------------------------------------------------------------------
# Scoring
# ----------------------------------------------------------------------

def _value_points(rank: Optional[float]) -> float:
    if rank is None:
        return 0.0
    if rank <= 20:
        return 40.0
    if rank <= 50:
        return 30.0
    return 20.0 * max(0.0, 100 - rank) / 100


def _salary_points(current_salary: int, tag_salary: int) -> float:
    if tag_salary <= 0:
        return 0.0
    ratio = current_salary / tag_salary
    if ratio < 0.7:
        return 20.0
    if ratio > 1.2:
        return -10.0
    return 0.0


def _age_points(age: int) -> float:
    if age <= 26:
        return 10.0
    if age >= 30:
        return -5.0
    return 0.0


def cap_flexibility(team_cap: TeamCapSituation) -> float:
    """Share of projected cap space that is free to spend."""
    if team_cap.projected_cap_space <= 0:
        return 0.0
    return team_cap.discretionary_spending / team_cap.projected_cap_space


def _flexibility_points(flexibility: float) -> float:
    if flexibility > 0.5:
        return 15.0
    if flexibility < 0.2:
        return -10.0
    # -10 at 20% flexibility rising to +15 at 50%
    return -10.0 + (flexibility - 0.2) / 0.3 * 25.0


def calculate_tag_score(
    player: PlayerValuation,
    tag_salary: int,
    team_cap: TeamCapSituation,
    rules: LeagueRules = DEFAULT_RULES,
) -> float:
    """Tag-worthiness of *player* on a 0-100 scale."""
    rank = calculate_composite_rank(player, rules)
    score = (
        _value_points(rank)
        + _salary_points(player.current_salary, tag_salary)
        + (player.positional_scarcity or 0.0) * 15
        + _age_points(player.age)
        + _flexibility_points(cap_flexibility(team_cap))
    )
    return max(0.0, min(100.0, score))


def _tag_reasons(player: PlayerValuation, tag_salary: int, score: float) -> List[str]:
    reasons = []
    if score >= 70:
        reasons.append("Top franchise tag candidate")
    rank = player.composite_rank
    if rank is not None and rank <= 20:
        reasons.append(f"Elite player (rank #{rank:.0f})")
    if tag_salary > 0 and player.current_salary < tag_salary * 0.7:
        savings = tag_salary - player.current_salary
        reasons.append(f"Currently underpaid by ${savings / 1_000_000:.1f}M")
    if player.current_salary > tag_salary * 1.2:
        reasons.append("Already paid above the tag salary")
    if player.age <= 26:
        reasons.append(f"Young player (age {player.age}) with upside")
    elif player.age >= 30:
        reasons.append(f"Age {player.age} limits long-term value")
    if player.positional_scarcity is not None and player.positional_scarcity > 0.7:
        reasons.append("Position is scarce in the market")
    if not reasons:
        reasons.append("No strong case for tagging")
    return reasons


# ----------------------------------------------------------------------
# Predictions
# ----------------------------------------------------------------------

def _with_rankings(
    player: PlayerValuation,
    rankings: Optional[RankingsOverlay],
    scarcity_scores: Mapping[str, float],
    tag_salary: int,
    rules: LeagueRules,
) -> PlayerValuation:
    overlay = (rankings or {}).get(player.player_id, {})
    merged = replace(
        player,
        dynasty_rank=overlay.get("dynasty_rank", player.dynasty_rank),
        redraft_rank=overlay.get("redraft_rank", player.redraft_rank),
        positional_scarcity=scarcity_scores.get(player.position, player.positional_scarcity),
        franchise_tag_salary=tag_salary,
    )
    return replace(merged, composite_rank=calculate_composite_rank(merged, rules))


def predict_team_tag(
    team_cap: TeamCapSituation,
    salary_averages: Mapping[str, Mapping],
    rankings: Optional[RankingsOverlay] = None,
    scarcity_scores: Optional[Mapping[str, float]] = None,
    rules: LeagueRules = DEFAULT_RULES,
) -> FranchiseTagPrediction:
    """Score one team's expiring players and decide on a tag."""
    if not team_cap.expiring_contracts:
        return FranchiseTagPrediction(
            franchise_id=team_cap.franchise_id,
            team_name=team_cap.team_name,
            has_tag=False,
            tagged_player=None,
        )

    candidates = []
    for player in team_cap.expiring_contracts:
        tag_salary = calculate_franchise_tag_salary(player.position, salary_averages, rules)
        enhanced = _with_rankings(player, rankings, scarcity_scores or {}, tag_salary, rules)
        score = calculate_tag_score(enhanced, tag_salary, team_cap, rules)
        candidates.append(
            TagCandidate(
                player=enhanced,
                score=score,
                reasons=_tag_reasons(enhanced, tag_salary, score),
            )
        )

    candidates.sort(key=lambda c: c.score, reverse=True)
    top = candidates[0]
    will_tag = top.score >= rules.tag_threshold

    if will_tag:
        logger.debug(
            "%s predicted to tag %s (score %.1f)",
            team_cap.team_name, top.player.name or top.player.player_id, top.score,
        )

    return FranchiseTagPrediction(
        franchise_id=team_cap.franchise_id,
        team_name=team_cap.team_name,
        has_tag=will_tag,
        tagged_player=top.player if will_tag else None,
        tag_candidates=candidates[: rules.max_tag_candidates],
    )


def predict_franchise_tags(
    team_caps: List[TeamCapSituation],
    salary_averages: Mapping[str, Mapping],
    rankings: Optional[RankingsOverlay] = None,
    scarcity_scores: Optional[Mapping[str, float]] = None,
    rules: LeagueRules = DEFAULT_RULES,
) -> List[FranchiseTagPrediction]:
    """Predict every team's franchise tag decision.

    Args:
        team_caps: Cap situations, whose expiring contracts are the candidates.
        salary_averages: ``{position: {"top3Average": ...}}``.
        rankings: Optional ``{player_id: {"dynasty_rank", "redraft_rank"}}``
            overlay merged into candidates before scoring.
        scarcity_scores: Optional 0-1 scarcity per position.
        rules: League configuration.
    """
    predictions = [
        predict_team_tag(team, salary_averages, rankings, scarcity_scores, rules)
        for team in team_caps
    ]
    logger.info(
        "Predicted %d franchise tags across %d teams",
        sum(1 for p in predictions if p.has_tag), len(predictions),
    )
    return predictions


# ----------------------------------------------------------------------
# Overrides
# ----------------------------------------------------------------------

def apply_franchise_tag_override(
    predictions: List[FranchiseTagPrediction],
    franchise_id: str,
    player_id: Optional[str],
    all_players: List[PlayerValuation],
    salary_averages: Mapping[str, Mapping],
    rules: LeagueRules = DEFAULT_RULES,
) -> List[FranchiseTagPrediction]:
    """Return predictions with one team's tag replaced or cleared.

    ``player_id=None`` clears the team's tag. An id that matches none of
    *all_players* leaves the predictions unchanged.
    """
    player = None
    if player_id is not None:
        player = next((p for p in all_players if p.player_id == player_id), None)
        if player is None:
            logger.warning(
                "Ignoring tag override for %s: unknown player %s", franchise_id, player_id
            )
            return list(predictions)

    updated = []
    for prediction in predictions:
        if prediction.franchise_id != franchise_id:
            updated.append(prediction)
        elif player is None:
            updated.append(
                replace(prediction, has_tag=False, tagged_player=None, is_manual_override=True)
            )
        else:
            tag_salary = calculate_franchise_tag_salary(player.position, salary_averages, rules)
            updated.append(
                replace(
                    prediction,
                    has_tag=True,
                    tagged_player=replace(player, franchise_tag_salary=tag_salary),
                    is_manual_override=True,
                )
            )
    return updated


def get_available_free_agents(
    players: List[PlayerValuation],
    predictions: List[FranchiseTagPrediction],
) -> List[PlayerValuation]:
    """All *players* except those currently tagged by any team."""
    tagged = {
        p.tagged_player.player_id for p in predictions if p.tagged_player is not None
    }
    return [p for p in players if p.player_id not in tagged]


def _total_tag_salary(predictions: List[FranchiseTagPrediction]) -> int:
    return sum(
        p.tagged_player.franchise_tag_salary or 0
        for p in predictions
        if p.tagged_player is not None
    )


def calculate_tag_override_impact(
    baseline: List[FranchiseTagPrediction],
    overridden: List[FranchiseTagPrediction],
    players: List[PlayerValuation],
) -> TagOverrideImpact:
    """How an override set changes the free-agent pool relative to *baseline*."""
    baseline_ids = {p.player_id for p in get_available_free_agents(players, baseline)}
    overridden_ids = {p.player_id for p in get_available_free_agents(players, overridden)}

    added = [p for p in players if p.player_id in overridden_ids - baseline_ids]
    removed = [p for p in players if p.player_id in baseline_ids - overridden_ids]

    supply: Counter = Counter()
    for player in added:
        supply[player.position] += 1
    for player in removed:
        supply[player.position] -= 1
    supply_changes: Dict[str, int] = {pos: n for pos, n in supply.items() if n != 0}

    return TagOverrideImpact(
        players_added_to_market=added,
        players_removed_from_market=removed,
        tag_salary_change=_total_tag_salary(overridden) - _total_tag_salary(baseline),
        position_supply_changes=supply_changes,
    )
