import os
from enum import Enum

class FeedMode(Enum):
    REGULAR = "regular"    # Tasks mixed with adverts and sabotaged items
    MPH = "mph"            # Content only

# Feed composition defaults (percent, compared against a roll in 0..100)
AD_PROBABILITY = int(os.environ.get("ADHDO_AD_PROBABILITY", "25"))
VISIBILITY_PROBABILITY = int(os.environ.get("ADHDO_VISIBILITY_PROBABILITY", "75"))
SHUFFLE_FEED = os.environ.get("ADHDO_SHUFFLE_FEED", "1") == "1"

# Timers (seconds)
SHUFFLE_INTERVAL_SECONDS = float(os.environ.get("ADHDO_SHUFFLE_INTERVAL", "30"))
HYPERFOCUS_SECONDS = float(os.environ.get("ADHDO_HYPERFOCUS_SECONDS", "10"))
PENALTY_SECONDS = float(os.environ.get("ADHDO_PENALTY_SECONDS", "2"))

# Storage
DB_PATH = os.environ.get("ADHDO_DB_PATH", "adhdo.db")
LOG_FILE = os.environ.get("ADHDO_LOG_FILE", "logs/adhdo.jsonl")

FEED_MODE = FeedMode(os.environ.get("ADHDO_FEED_MODE", "regular"))

# Curated search catalog shipped with the package
SEARCH_RESULTS_FILE = os.environ.get(
    "ADHDO_SEARCH_RESULTS_FILE",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "search", "conspiracies.json"),
)
