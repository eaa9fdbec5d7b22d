import json
import random
from enum import Enum
from typing import List, Optional, Sequence

from adhdo.config import SEARCH_RESULTS_FILE
from adhdo.infrastructure.logging import logger
from adhdo.models.schemas import SearchResult

class SearchCategory(Enum):
    """Tabs of the search page. Switching tabs only reshuffles the results."""
    ALL = "all"
    TODO = "todo"
    DONE = "done"

def load_search_results(path: str = SEARCH_RESULTS_FILE) -> List[SearchResult]:
    """Reads the curated catalog. A missing or malformed file yields an empty list."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            entries = json.load(f)
        return [SearchResult.model_validate(entry) for entry in entries]
    except (OSError, ValueError, TypeError) as e:
        logger.error(
            f"Could not load search results: {e}",
            extra={"props": {"path": path}},
        )
        return []

def filter_results(results: Sequence[SearchResult], text: str) -> List[SearchResult]:
    """
    Case-insensitive substring match on name or description.
    Empty text returns every result in its current order.
    """
    if not text:
        return list(results)
    needle = text.lower()
    return [
        r for r in results
        if needle in r.name.lower() or needle in r.description.lower()
    ]

class SearchCatalog:
    """The search page's result list, shuffled once on load."""
    def __init__(self, results: Sequence[SearchResult], rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self.results: List[SearchResult] = list(results)
        self._rng.shuffle(self.results)
        self.category = SearchCategory.ALL

    @classmethod
    def from_file(cls, path: str = SEARCH_RESULTS_FILE, rng: Optional[random.Random] = None) -> "SearchCatalog":
        return cls(load_search_results(path), rng=rng)

    def select_category(self, category: SearchCategory) -> bool:
        """Switches tabs. Returns True when the category changed and the list was reshuffled."""
        if category == self.category:
            return False
        self.category = category
        self._rng.shuffle(self.results)
        return True

    def search(self, text: str = "") -> List[SearchResult]:
        return filter_results(self.results, text)
