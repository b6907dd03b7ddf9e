"""
Tombola Odds - Configuration

Environment-driven defaults for the draw analysis. Values come from the
process environment or a local `.env` file:

    DRUM_SIZE=90
    MASS_TOLERANCE=1e-9
    MAX_PARALLEL_CONFIGS=4
    OUTPUT_DIR=./output
    LOG_LEVEL=INFO
"""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", "./output"))

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(message)s"
LOG_DATEFMT = "%H:%M:%S"


# ============================================================
# Draw analysis defaults
# ============================================================

class DrawConfig:

    # --- Drum ---
    DEFAULT_DRUM_SIZE = int(os.getenv("DRUM_SIZE", "90"))

    # --- Named card sizes (numbers on the card that are tracked) ---
    # Full card wins the tombola, a 5-number row pays the minor prizes.
    CARD_SIZES = {
        "tombola":  15,
        "cinquina": 5,
        "quaterna": 4,
        "terno":    3,
        "ambo":     2,
    }

    # --- Numerics ---
    # Row mass must stay within this distance of 1.0
    MASS_TOLERANCE = float(os.getenv("MASS_TOLERANCE", "1e-9"))

    # --- Pipeline ---
    MAX_PARALLEL_CONFIGS = int(os.getenv("MAX_PARALLEL_CONFIGS", "4"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logging(level: str = None) -> logging.Logger:
    """Attach one stream handler to the `tombola` logger tree (idempotent)."""
    logger = logging.getLogger("tombola")
    if not logger.handlers:
        _h = logging.StreamHandler()
        _h.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        logger.addHandler(_h)
    logger.setLevel(getattr(logging, (level or DrawConfig.LOG_LEVEL).upper(), logging.INFO))
    return logger
