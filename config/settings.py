from pathlib import Path

from pydantic_settings import BaseSettings

# Project root
PROJECT_ROOT = Path(__file__).parent.parent


class Settings(BaseSettings):
    """Deployment overrides, read from LOAN_TRACKER_* environment variables or .env"""
    model_config = {"env_prefix": "LOAN_TRACKER_", "env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    data_dir: Path = PROJECT_ROOT / "data"
    log_level: str = "WARNING"


settings = Settings()

# Data files
DATA_DIR = settings.data_dir
EXCEL_FILE = DATA_DIR / "loan_data.xlsx"
BACKUP_KEEP = 5

# Defaults seeded into the config sheet
DEFAULT_CURRENCY_SYMBOL = "₹"
DEFAULT_INTEREST_TYPE = "reducing"

LOG_LEVEL = settings.log_level.upper()

# Presentation precision
AMOUNT_PRECISION = 2
RATE_PRECISION = 2
