"""taxonsearch command-line interface.

This module provides the argument parser and command dispatching for
looking up taxon names against a checklist file from the shell.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from taxonsearch import __version__
from taxonsearch.cache_manager import clear_cache, get_cache_stats
from taxonsearch.config import config
from taxonsearch.exceptions import TaxonSearchError
from taxonsearch.logging_config import setup_logging
from taxonsearch.search import TaxonSearch
from taxonsearch.taxon_loader import load_registry
from taxonsearch.types.data_classes import ResultRow


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-t", "--taxa",
        type=str,
        required=True,
        help="Path to the taxon checklist (CSV, Parquet or JSON)"
    )
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default=config.output_format,
        help="Output format"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Set logging level"
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Optional file to write logs to (in addition to console output)"
    )
    parser.add_argument(
        "--no-vernacular",
        action="store_true",
        help="Ignore vernacular names when matching and displaying"
    )
    parser.add_argument(
        "--require-records",
        action="store_true",
        help="Only return taxa that have occurrence records"
    )
    parser.add_argument(
        "--minimum-rank-sort",
        type=int,
        default=None,
        help="Only return taxa whose rank sort value is at least this"
    )
    cache_group = parser.add_argument_group("Cache Management")
    cache_group.add_argument(
        "--no-cache",
        action="store_true",
        help="Don't read or write the taxon registry cache"
    )
    cache_group.add_argument(
        "--refresh-cache",
        action="store_true",
        default=False,
        help="Rebuild the cached taxon registry before searching"
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with 'lookup' and 'parents' commands."""
    parser = argparse.ArgumentParser(
        description="taxonsearch: ranked lookup of taxon names from a checklist",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "--cache-stats",
        action="store_true",
        default=False,
        help="Display statistics about the cache and exit"
    )
    parser.add_argument(
        "--clear-cache",
        action="store_true",
        default=False,
        help="Clear the taxon registry cache and exit"
    )
    parser.add_argument(
        "--cache-dir",
        type=str,
        help="Directory for the taxon registry cache"
    )
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Show current configuration and exit"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Show version number and exit"
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- 'lookup' command ---
    parser_lookup = subparsers.add_parser(
        "lookup", help="Find taxa matching a name or vernacular query"
    )
    parser_lookup.add_argument("query", type=str, help="Search text (may be percent-encoded)")
    _add_common_arguments(parser_lookup)

    # --- 'parents' command ---
    parser_parents = subparsers.add_parser(
        "parents", help="List taxa sharing an ancestor with a taxon"
    )
    parser_parents.add_argument("taxon_id", type=str, help="Id of the reference taxon")
    parser_parents.add_argument(
        "--vernacular",
        action="store_true",
        help="Select taxa with vernacular names instead of accepted names"
    )
    _add_common_arguments(parser_parents)

    return parser


def build_search(args: argparse.Namespace) -> TaxonSearch:
    """Load the registry named by the arguments and configure an engine."""
    registry = load_registry(
        args.taxa,
        use_cache=not args.no_cache,
        refresh_cache=args.refresh_cache,
        show_progress=args.log_level in ("DEBUG", "INFO"),
    )
    search = TaxonSearch(registry, config.search_config())
    search.require_extant_records = config.require_extant_records
    search.minimum_rank_sort = config.minimum_rank_sort
    return search


def print_results(rows: List[ResultRow], output_format: str) -> None:
    """Print result rows as text lines or a JSON array."""
    if output_format == "json":
        print(json.dumps([row.to_dict() for row in rows], indent=2, ensure_ascii=False))
        return

    if not rows:
        print("No matching taxa")
        return

    for n, row in enumerate(rows, start=1):
        flags = [flag for flag, on in (
            ("exact", row.exact), ("near", row.near), ("vernacular", row.vernacular_matched)
        ) if on]
        line = f"{n:>2}. [{row.entity_id}] {row.qname}"
        if row.authority:
            line += f" {row.authority}"
        if row.vernacular and config.show_vernacular:
            line += f" ({row.vernacular})"
        if row.is_synonym:
            line += f" = {row.accepted_qname}"
        if flags:
            line += f"  <{', '.join(flags)}>"
        print(line)


def run_lookup(args: argparse.Namespace) -> int:
    """Run a single lookup and print the ranked rows."""
    search = build_search(args)
    rows = search.lookup(args.query)
    logging.info(f"Lookup '{args.query}' returned {len(rows)} rows")
    print_results(rows, config.output_format)
    return 0


def run_parents(args: argparse.Namespace) -> int:
    """List taxa related to a taxon through shared ancestors."""
    search = build_search(args)
    rows = search.lookup_parent_results(args.taxon_id, args.vernacular)
    logging.info(f"Parent lookup for '{args.taxon_id}' returned {len(rows)} rows")
    print_results(rows, config.output_format)
    return 0


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the taxonsearch CLI."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    config.update_from_args(vars(parsed_args))

    if parsed_args.show_config:
        print(config.get_config_summary())
        return 0

    if parsed_args.cache_stats:
        stats = get_cache_stats()
        print("\ntaxonsearch cache statistics:")
        for key, value in stats.items():
            print(f"  {key}: {value}")
        return 0

    if parsed_args.clear_cache:
        count = clear_cache()
        print(f"\nCleared {count} cache entries")
        return 0

    if parsed_args.command is None:
        parser.print_help()
        return 1

    config.ensure_directories()
    setup_logging(parsed_args.log_level, parsed_args.log_file)

    try:
        if parsed_args.command == "lookup":
            return run_lookup(parsed_args)
        return run_parents(parsed_args)
    except (TaxonSearchError, FileNotFoundError) as exc:
        logging.error(str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
