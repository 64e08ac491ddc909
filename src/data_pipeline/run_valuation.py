"""Run the complete auction valuation pipeline.

Usage:
    python -m src.data_pipeline.run_valuation [year] [data_dir]

Examples:
    python -m src.data_pipeline.run_valuation 2026
    python -m src.data_pipeline.run_valuation 2026 /path/to/feeds
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Optional

from src.auction_engine.cap_space import load_dead_money
from src.auction_engine.config import DEFAULT_RULES, LeagueRules
from src.auction_engine.valuation_engine import ValuationEngine, to_dict
from src.data_pipeline.cleaning import DataCleaner
from src.data_pipeline.config import PROCESSED_DATA_DIR, RAW_DATA_DIR
from src.data_pipeline.ingestion import LeagueDataIngester
from src.data_pipeline.rankings_merge import RankingsMerger
from src.data_pipeline.salary_curves import SalaryCurveBuilder, build_salary_averages
from src.logging_config import setup_logging

logger = logging.getLogger(__name__)


def run_valuation(
    year: int = 2026,
    data_dir: Optional[Path] = None,
    output_dir: Optional[Path] = None,
    overrides: Optional[Mapping[str, Optional[str]]] = None,
    rules: LeagueRules = DEFAULT_RULES,
) -> Path:
    """Run the full auction valuation for a season.

    Args:
        year: Season being valued.
        data_dir: Directory containing the season's feeds.
            Defaults to ``data/raw/{year}``.
        output_dir: Directory for JSON output.
            Defaults to ``data/processed/``.
        overrides: Manual tag decisions ``{franchise_id: player_id or None}``.
        rules: League configuration.

    Returns:
        Path to the generated JSON file.

    Raises:
        FileNotFoundError: If the data directory doesn't exist.
    """
    if data_dir is None:
        data_dir = RAW_DATA_DIR / str(year)
    if output_dir is None:
        output_dir = PROCESSED_DATA_DIR
    data_dir, output_dir = Path(data_dir), Path(output_dir)

    if not data_dir.is_dir():
        raise FileNotFoundError(f"Data directory not found: {data_dir}")

    logger.info("Starting valuation for %d season (data: %s)", year, data_dir)

    # 1. Ingest
    logger.info("Step 1/5: Ingesting league feeds...")
    raw = LeagueDataIngester(data_dir, year).read_all()
    logger.info(
        "Loaded: %d roster rows, %d franchises, %d dynasty / %d redraft ranks, %d past bids",
        len(raw["rosters"]), len(raw["franchises"]),
        len(raw["dynasty_rankings"]), len(raw["redraft_rankings"]),
        len(raw["auction_history"]),
    )

    # 2. Clean
    logger.info("Step 2/5: Cleaning data...")
    cleaner = DataCleaner()
    cleaned = cleaner.clean_all(raw)
    roster_players = cleaner.to_roster_players(cleaned["rosters"])

    # 3. Rankings overlay and salary curves
    logger.info("Step 3/5: Matching rankings and fitting salary curves...")
    rankings = RankingsMerger().build_overlay(
        cleaned["dynasty_rankings"], cleaned["redraft_rankings"], cleaned["rosters"]
    )
    curves = SalaryCurveBuilder().build_curves(cleaned["auction_history"])

    salary_averages = cleaned["salary_averages"]
    if not salary_averages:
        logger.warning("Salary averages feed is empty; deriving tag salaries from rosters")
        salary_averages = build_salary_averages(cleaned["rosters"])

    # 4. Valuation
    logger.info("Step 4/5: Running valuation engine...")
    engine = ValuationEngine(rules, curves)
    result = engine.run(
        roster_players,
        cleaned["franchises"],
        salary_averages,
        dead_money_by_team=load_dead_money(cleaned["salary_adjustments"]),
        rankings=rankings,
        overrides=overrides,
    )

    # 5. Output JSON
    logger.info("Step 5/5: Generating JSON output...")
    output_data = {
        "metadata": {
            "version": "1.0",
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "season": year,
            "salary_cap": rules.hard_cap,
            "league_minimum": rules.league_minimum,
            "rank_weights": {
                "dynasty": rules.dynasty_weight,
                "redraft": rules.redraft_weight,
            },
            "manual_overrides": dict(overrides or {}),
            "total_free_agents": len(result.priced_players),
        },
        **to_dict(result),
    }

    output_dir.mkdir(parents=True, exist_ok=True)
    output_file = output_dir / f"auction_valuation_{year}.json"

    with open(output_file, "w") as f:
        json.dump(output_data, f, indent=2)

    # Update latest symlink
    latest_link = output_dir / "auction_valuation_latest.json"
    if latest_link.exists() or latest_link.is_symlink():
        latest_link.unlink()
    latest_link.symlink_to(output_file.name)

    market = result.market_analysis
    logger.info("Valuation complete! Output: %s", output_file)
    logger.info("  Free agents: %d", len(result.priced_players))
    logger.info(
        "  Tags: %d of %d teams",
        sum(1 for p in result.tag_predictions if p.has_tag), len(result.tag_predictions),
    )
    logger.info(
        "  Market: %s (efficiency %.2f)", market.market_condition, market.market_efficiency
    )

    return output_file


if __name__ == "__main__":
    setup_logging()

    year = int(sys.argv[1]) if len(sys.argv) > 1 else 2026
    data_dir = Path(sys.argv[2]) if len(sys.argv) > 2 else None

    try:
        output = run_valuation(year, data_dir)
        print(f"Valuation complete: {output}")
    except Exception:
        logger.exception("Valuation failed")
        sys.exit(1)
