import logging
import os
from pathlib import Path
from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# Load .env from project root (one level above backend/)
load_dotenv(_PROJECT_ROOT / ".env")

FORMULAS_CSV_PATH = os.getenv(
    "FORMULAS_CSV_PATH", str(_PROJECT_ROOT / "data" / "ivf_success_formulas.csv")
)
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))


def parse_log_level(value: str) -> str:
    """Normalize a logging level name; reject anything logging doesn't know."""
    level = value.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(
            f"LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL (got {value!r})"
        )
    return level


LOG_LEVEL = parse_log_level(os.getenv("LOG_LEVEL", "INFO"))
