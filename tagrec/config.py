"""Default paths and tuning parameters.

Every path can be overridden with an environment variable; explicit
function arguments always take precedence over these defaults.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

DATA_DIR = Path(os.getenv("TAGREC_DATA_DIR", str(BASE_DIR / "data")))

TAGS_PATH = Path(os.getenv("TAGREC_TAGS_PATH", str(DATA_DIR / "tags.csv")))
RATINGS_PATH = Path(os.getenv("TAGREC_RATINGS_PATH", str(DATA_DIR / "ratings.csv")))
INDEX_DIR = Path(os.getenv("TAGREC_INDEX_DIR", str(BASE_DIR / "index")))

# Neighborhood size used when estimating a rating
DEFAULT_NEIGHBORHOOD_SIZE = 20
DEFAULT_TOP_N = 10

LOG_LEVEL = os.getenv("TAGREC_LOG_LEVEL", "INFO")
