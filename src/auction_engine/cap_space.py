"""Next-season cap accounting for every franchise.

Contracts roll over once a year: every held salary escalates, contracts in
their final year expire and their players reach the auction. Taxi squad
players count for half their salary against the cap; injured reserve counts
in full.
"""

import logging
from collections import Counter
from typing import Dict, Iterable, List, Mapping, Optional, Union

from src.auction_engine.config import DEFAULT_EXPERIENCE, DEFAULT_RULES, LeagueRules
from src.auction_engine.models import (
    LeagueCapSummary,
    PlayerValuation,
    PositionalNeed,
    RosterPlayer,
    RosterStatus,
    TeamCapSituation,
)
from src.auction_engine.salary_schedule import escalate

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}


def parse_contract_years(value: Union[str, int, float, None]) -> int:
    """Parse a contract-years field leniently.

    ``"2"``, ``" 02 "``, ``2`` and ``2.0`` all parse to 2. Anything that
    can't be read as a number is treated as an already-expired contract (0).
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        if value != value or value in (float("inf"), float("-inf")):
            return 0
        return max(0, int(value))

    text = str(value).strip().lstrip("0") or "0"
    try:
        return max(0, int(float(text)))
    except (ValueError, OverflowError):
        logger.warning("Unparseable contract years %r; treating as expired", value)
        return 0


def is_expiring(player: RosterPlayer) -> bool:
    return parse_contract_years(player.contract_years_remaining) <= 1


def calculate_cap_hit(
    salary: int,
    contract_years_remaining: Union[str, int, None],
    status: str = RosterStatus.ROSTER.value,
    rules: LeagueRules = DEFAULT_RULES,
) -> int:
    """Next-season cap hit for a currently held contract.

    Expiring contracts (one year or less left) carry no cap hit. Held
    salaries escalate one season; taxi squad players count at a reduced
    percentage.
    """
    if parse_contract_years(contract_years_remaining) <= 1:
        return 0

    escalated = escalate(salary, 1, rules.escalation_rate)
    if status == RosterStatus.TAXI_SQUAD.value:
        return int(round(escalated * rules.taxi_squad_percent))
    return escalated


def calculate_franchise_tag_salary(
    position: str,
    salary_averages: Mapping[str, Mapping],
    rules: LeagueRules = DEFAULT_RULES,
) -> int:
    """Tag salary for *position*: the rounded average of its top three salaries."""
    position_data = salary_averages.get(position) if salary_averages else None
    if not position_data or position_data.get("top3Average") is None:
        logger.debug("No salary averages for %s; tag costs the league minimum", position)
        return rules.league_minimum
    try:
        return int(round(float(position_data["top3Average"])))
    except (TypeError, ValueError):
        logger.warning(
            "Garbled top3Average %r for %s; using league minimum",
            position_data["top3Average"], position,
        )
        return rules.league_minimum


def load_dead_money(adjustments: Iterable[Mapping]) -> Dict[str, int]:
    """Total dead money per franchise from salary adjustment rows."""
    dead_money: Dict[str, int] = {}
    for row in adjustments:
        franchise_id = row.get("franchise_id")
        if franchise_id is None:
            continue
        try:
            amount = int(round(float(row.get("amount", 0))))
        except (TypeError, ValueError):
            logger.warning(
                "Garbled dead money amount %r for franchise %s; counting as 0",
                row.get("amount"), franchise_id,
            )
            amount = 0
        dead_money[franchise_id] = dead_money.get(franchise_id, 0) + amount
    return dead_money


def calculate_positional_needs(
    players_under_contract: Iterable[RosterPlayer],
    rules: LeagueRules = DEFAULT_RULES,
) -> List[PositionalNeed]:
    """Depth-chart gaps against the league's target depth, most urgent first."""
    depth = Counter(p.position for p in players_under_contract)

    needs = []
    for position in rules.positions:
        current = depth.get(position, 0)
        deficit = rules.get_target_depth(position) - current

        if deficit >= 3:
            priority = "critical"
        elif deficit >= 2:
            priority = "high"
        elif deficit >= 1:
            priority = "medium"
        else:
            priority = "low"

        needs.append(
            PositionalNeed(
                position=position,
                priority=priority,
                current_depth=current,
                gap=max(0, deficit),
            )
        )

    # sorted() is stable, so positions keep league order within a priority
    return sorted(needs, key=lambda n: PRIORITY_ORDER[n.priority])


def _to_valuation(player: RosterPlayer) -> PlayerValuation:
    return PlayerValuation(
        player_id=player.player_id,
        name=player.name,
        position=player.position,
        team=player.team,
        current_salary=player.salary,
        contract_years_remaining=parse_contract_years(player.contract_years_remaining),
        franchise_id=player.franchise_id,
        age=player.age if player.age is not None else 25,
        experience=player.experience if player.experience is not None else DEFAULT_EXPERIENCE,
    )


def calculate_team_cap_situation(
    franchise_id: str,
    team_name: str,
    players: Iterable[RosterPlayer],
    dead_money: int = 0,
    franchise_tag_salary: int = 0,
    rules: LeagueRules = DEFAULT_RULES,
) -> TeamCapSituation:
    """Project one franchise's cap picture for the coming season.

    Args:
        franchise_id: Franchise to project. Rows for other franchises in
            *players* are ignored, so the full league roster can be passed.
        team_name: Display name carried into the result.
        players: Roster rows.
        dead_money: Dead cap already owed by the franchise.
        franchise_tag_salary: Salary of a tagged player, 0 when untagged.
        rules: League configuration.
    """
    team_players = [p for p in players if p.franchise_id == franchise_id]

    expiring: List[RosterPlayer] = []
    under_contract: List[RosterPlayer] = []
    committed = 0
    for player in team_players:
        if is_expiring(player):
            expiring.append(player)
            continue
        under_contract.append(player)
        committed += calculate_cap_hit(
            player.salary, player.contract_years_remaining, player.status, rules
        )

    total_committed = committed + dead_money + franchise_tag_salary
    projected_cap_space = rules.hard_cap - total_committed

    roster_count = len(under_contract) + (1 if franchise_tag_salary > 0 else 0)
    spots_to_fill = max(0, rules.min_roster_size - roster_count)
    reserve = spots_to_fill * rules.league_minimum
    discretionary = max(0, projected_cap_space - reserve)

    if projected_cap_space < 0:
        logger.warning(
            "%s is projected %d over the cap; discretionary spending set to 0",
            team_name, -projected_cap_space,
        )

    logger.debug(
        "%s: committed=%d dead=%d tag=%d space=%d reserve=%d discretionary=%d",
        team_name, committed, dead_money, franchise_tag_salary,
        projected_cap_space, reserve, discretionary,
    )

    return TeamCapSituation(
        franchise_id=franchise_id,
        team_name=team_name,
        hard_cap=rules.hard_cap,
        committed_salaries=committed,
        dead_money=dead_money,
        franchise_tag_commitment=franchise_tag_salary,
        total_committed=total_committed,
        projected_cap_space=projected_cap_space,
        minimum_roster_reserve=reserve,
        discretionary_spending=discretionary,
        roster_count=roster_count,
        expiring_contracts=[_to_valuation(p) for p in expiring],
        total_expiring_value=sum(p.salary for p in expiring),
        positional_needs=calculate_positional_needs(under_contract, rules),
    )


def calculate_league_cap_situations(
    players: List[RosterPlayer],
    teams: Iterable[Mapping[str, str]],
    dead_money_by_team: Optional[Mapping[str, int]] = None,
    rules: LeagueRules = DEFAULT_RULES,
) -> LeagueCapSummary:
    """Cap situations for every team, before any franchise tags.

    *teams* are ``{"franchise_id": ..., "name": ...}`` mappings.
    """
    dead_money_by_team = dead_money_by_team or {}

    situations = [
        calculate_team_cap_situation(
            team["franchise_id"],
            team.get("name", team["franchise_id"]),
            players,
            dead_money=dead_money_by_team.get(team["franchise_id"], 0),
            rules=rules,
        )
        for team in teams
    ]
    total = sum(max(0, s.discretionary_spending) for s in situations)
    average = total / len(situations) if situations else 0.0

    logger.info(
        "Cap space for %d teams: %d discretionary in total", len(situations), total
    )
    return LeagueCapSummary(
        team_cap_situations=situations,
        total_discretionary=total,
        average_discretionary=average,
    )
