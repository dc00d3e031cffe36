"""Configuration for taxonsearch.

Two layers of configuration live here:

- ``Config``: the mutable, application-level settings used by the CLI, the
  loader and the cache (one shared ``config`` instance per process).
- ``SearchConfig``: the immutable settings owned by each search engine
  instance. Engines never read the application config directly, so a
  configured engine is unaffected by later changes to ``config``.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from taxonsearch.constants import MAXIMUM_RESULTS, MIN_SEARCH_LENGTH


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() not in ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class SearchConfig:
    """Immutable per-engine search settings."""

    # Match against and display vernacular (common) names
    show_vernacular: bool = True

    # Result rows kept after ranking
    maximum_results: int = MAXIMUM_RESULTS

    # Shortest decoded query that triggers a search
    min_search_length: int = MIN_SEARCH_LENGTH


class Config:
    """Application-level configuration.

    Values can be overridden from parsed command-line arguments with
    ``update_from_args`` or, for a few settings, from environment variables.
    """

    def __init__(self):
        self.cache_base_dir = os.environ.get(
            "TAXONSEARCH_CACHE_DIR",
            str(Path.home() / ".cache" / "taxonsearch"),
        )
        self.cache_dir = self.cache_base_dir
        self.cache_max_age: Optional[int] = None  # seconds, None for no expiry
        self.output_format = "text"

        self.show_vernacular = _env_flag("TAXONSEARCH_SHOW_VERNACULAR", True)
        self.require_extant_records = False
        self.minimum_rank_sort: Optional[int] = None

    def update_from_args(self, args: Dict[str, Any]) -> None:
        """Update configuration from a dict of parsed arguments.

        Unknown keys and ``None`` values are ignored so argparse namespaces can
        be passed straight through.
        """
        if args.get("no_vernacular"):
            self.show_vernacular = False
        if args.get("require_records"):
            self.require_extant_records = True
        if args.get("minimum_rank_sort") is not None:
            self.minimum_rank_sort = args["minimum_rank_sort"]
        if args.get("format"):
            self.output_format = args["format"]
        if args.get("cache_dir"):
            self.cache_base_dir = args["cache_dir"]
            self.cache_dir = args["cache_dir"]

    def ensure_directories(self) -> None:
        """Create the cache directory if it doesn't exist."""
        Path(self.cache_dir).mkdir(parents=True, exist_ok=True)

    def search_config(self) -> SearchConfig:
        """Build the immutable engine settings from the current values."""
        return SearchConfig(show_vernacular=self.show_vernacular)

    def get_config_summary(self) -> str:
        """Return a human-readable summary of the configuration."""
        lines = [
            "taxonsearch configuration:",
            f"  cache_base_dir: {self.cache_base_dir}",
            f"  cache_dir: {self.cache_dir}",
            f"  cache_max_age: {self.cache_max_age}",
            f"  output_format: {self.output_format}",
            f"  show_vernacular: {self.show_vernacular}",
            f"  require_extant_records: {self.require_extant_records}",
            f"  minimum_rank_sort: {self.minimum_rank_sort}",
            f"  maximum_results: {MAXIMUM_RESULTS}",
        ]
        return "\n".join(lines)


config = Config()
