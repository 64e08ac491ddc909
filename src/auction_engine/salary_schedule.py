"""Multi-year salary schedules with annual escalation.

Held contracts grow by a fixed rate every season, compounded:
``salary(n) = round(base * (1 + rate) ** n)``.
"""

import logging
from typing import Optional

from src.auction_engine.config import ANNUAL_ESCALATION, MAX_CONTRACT_YEARS
from src.auction_engine.models import ContractSchedule, ScheduleYear

logger = logging.getLogger(__name__)


def escalate(base_salary: int, year_offset: int, rate: float = ANNUAL_ESCALATION) -> int:
    """Salary *year_offset* seasons after *base_salary* was signed."""
    if year_offset <= 0:
        return int(round(base_salary))
    return int(round(base_salary * (1 + rate) ** year_offset))


def generate_schedule(
    base_salary: int,
    num_years: int,
    start_year: int,
    player_id: Optional[str] = None,
    rate: float = ANNUAL_ESCALATION,
    max_years: int = MAX_CONTRACT_YEARS,
) -> ContractSchedule:
    """Build the year-by-year salary schedule for a new contract.

    Args:
        base_salary: First-season salary. Values below one dollar are
            raised to one dollar so no season is ever free.
        num_years: Contract length, clamped to ``[1, max_years]``.
        start_year: Season the contract begins.
        player_id: Optional id carried through to the result.
        rate: Annual escalation rate.

    Returns:
        :class:`ContractSchedule` whose cap hit equals the salary each year.
    """
    years = max(1, min(int(num_years), max_years))
    if years != num_years:
        logger.debug("Clamped contract length %s to %d years", num_years, years)
    base = max(1, int(round(base_salary)))

    yearly = []
    for offset in range(years):
        salary = escalate(base, offset, rate)
        yearly.append(ScheduleYear(year=start_year + offset, salary=salary, cap_hit=salary))

    total = sum(y.salary for y in yearly)
    return ContractSchedule(
        base_salary=base,
        contract_years=years,
        base_year=start_year,
        yearly_schedule=yearly,
        total_contract_value=total,
        average_annual_value=int(round(total / years)),
        player_id=player_id,
    )
