from pathlib import Path

# Base project directory
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Data directories
DATA_DIR = PROJECT_ROOT / "data"
RAW_DATA_DIR = DATA_DIR / "raw"
PROCESSED_DATA_DIR = DATA_DIR / "processed"

# League feed file names inside data/raw/{year} (use .format(year=YYYY))
FILE_PATTERNS = {
    "rosters": "rosters.json",
    "players": "players.json",
    "league": "league.json",
    "salary_averages": "salaryAverages.json",
    "salary_adjustments": "salaryAdjustments.json",
    "dynasty_rankings": "dynasty_rankings_{year}.csv",
    "redraft_rankings": "redraft_rankings_{year}.csv",
}

# Historical auction results live in data/raw/{year}/ of each past season
AUCTION_RESULTS_PATTERN = "auctionResults.json"
HISTORICAL_AUCTION_YEARS = 5

# Column names expected in rankings CSV exports
RANKINGS_COLUMNS = ["Rank", "Player", "Pos", "Age"]
