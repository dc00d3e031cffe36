"""Loading taxon checklists into a TaxonRegistry.

Supported inputs:

- CSV and Parquet tables, read with polars. Required columns are ``id`` and
  ``name_string``; every other TaxonRecord field is optional. In CSV,
  ``parent_ids`` is a ``|``-separated string.
- JSON files holding the compact positional table (see
  ``TaxonRegistry.from_raw_taxa``).
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple, Union

import polars as pl
from tqdm import tqdm

from taxonsearch.cache_manager import (
    compute_file_metadata_hash,
    load_cache,
    registry_cache_key,
    save_cache,
)
from taxonsearch.exceptions import TaxonDataFormatError
from taxonsearch.registry import TaxonRegistry
from taxonsearch.types.data_classes import TaxonRecord

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"id", "name_string"}
OPTIONAL_COLUMNS = {
    "canonical_name", "hybrid_canonical_name", "accepted_entity_id", "qualifier",
    "authority", "vernacular_name", "vernacular_root", "used", "min_rank_sort",
    "bad_vernacular", "parent_ids",
}
SUPPORTED_FORMATS = (".csv", ".parquet", ".json")

PARENT_ID_SEPARATOR = "|"
_TRUE_VALUES = {"1", "true", "t", "yes", "y"}
# Values meaning "canonical name is the same as the name string"
_CANONICAL_SENTINELS = {"", "0"}


def read_taxon_table(path: Union[str, Path]) -> pl.DataFrame:
    """Read a CSV or Parquet taxon table and check its columns."""
    path = Path(path)
    suffix = path.suffix.lower()
    logger.info(f"Reading taxon table: {path}")

    if suffix == ".csv":
        # keep everything as text, conversion happens per field
        df = pl.read_csv(path, infer_schema_length=0)
    elif suffix == ".parquet":
        df = pl.read_parquet(path)
    else:
        raise TaxonDataFormatError(f"Unsupported taxon table format: {path.suffix}")

    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise TaxonDataFormatError(f"Taxon table is missing required columns: {sorted(missing)}")

    unknown = set(df.columns) - REQUIRED_COLUMNS - OPTIONAL_COLUMNS
    if unknown:
        logger.debug(f"Ignoring unknown taxon table columns: {sorted(unknown)}")

    return df


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def _as_optional_id(value: Any) -> Optional[str]:
    text = _as_text(value).strip()
    return text or None


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return _as_text(value).strip().lower() in _TRUE_VALUES


def _as_int(value: Any) -> int:
    text = _as_text(value).strip()
    if not text:
        return 0
    try:
        return int(float(text))
    except ValueError:
        raise TaxonDataFormatError(f"Invalid rank sort value: {value!r}") from None


def _as_id_tuple(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(PARENT_ID_SEPARATOR) if part.strip())
    return tuple(str(part) for part in value)


def record_from_row(row: Dict[str, Any]) -> TaxonRecord:
    """Convert one table row (as a dict) into a TaxonRecord."""
    taxon_id = _as_text(row["id"]).strip()
    name_string = _as_text(row["name_string"])
    if not taxon_id or not name_string:
        raise TaxonDataFormatError(f"Taxon row without id or name string: {row}")

    canonical = _as_text(row.get("canonical_name"))
    if canonical in _CANONICAL_SENTINELS or canonical == name_string:
        canonical = None

    return TaxonRecord(
        id=taxon_id,
        name_string=name_string,
        canonical_name=canonical,
        hybrid_canonical_name=_as_text(row.get("hybrid_canonical_name")),
        accepted_entity_id=_as_optional_id(row.get("accepted_entity_id")),
        qualifier=_as_text(row.get("qualifier")),
        authority=_as_text(row.get("authority")),
        vernacular_name=_as_text(row.get("vernacular_name")),
        vernacular_root=_as_text(row.get("vernacular_root")),
        used=_as_bool(row.get("used")),
        min_rank_sort=_as_int(row.get("min_rank_sort")),
        bad_vernacular=_as_bool(row.get("bad_vernacular")),
        parent_ids=_as_id_tuple(row.get("parent_ids")),
    )


def iter_records(df: pl.DataFrame, show_progress: bool = True) -> Iterator[TaxonRecord]:
    """Yield TaxonRecords for every row of a taxon table."""
    rows = df.iter_rows(named=True)
    if show_progress:
        rows = tqdm(rows, total=df.height, desc="Loading taxa")
    for row in rows:
        yield record_from_row(row)


def read_raw_taxa(path: Union[str, Path]) -> TaxonRegistry:
    """Read a JSON file holding the compact positional taxon table."""
    logger.info(f"Reading raw taxon table: {path}")
    with open(path, "r", encoding="utf-8") as f:
        try:
            raw_taxa = json.load(f)
        except json.JSONDecodeError as exc:
            raise TaxonDataFormatError(f"Invalid JSON taxon table '{path}': {exc}") from exc

    if not isinstance(raw_taxa, dict):
        raise TaxonDataFormatError(f"JSON taxon table '{path}' must be an object keyed by taxon id")
    return TaxonRegistry.from_raw_taxa(raw_taxa)


def build_registry(path: Union[str, Path], show_progress: bool = True) -> TaxonRegistry:
    """Parse a taxon file into a registry without touching the cache."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Taxon file not found: {path}")
    if path.suffix.lower() not in SUPPORTED_FORMATS:
        raise TaxonDataFormatError(f"Unsupported taxon table format: {path.suffix}")

    if path.suffix.lower() == ".json":
        registry = read_raw_taxa(path)
    else:
        registry = TaxonRegistry.from_records(iter_records(read_taxon_table(path), show_progress))

    dangling = registry.dangling_accepted_ids()
    if dangling:
        logger.warning(
            f"{len(dangling)} taxa point at accepted names missing from {path.name} "
            f"(first: {dangling[0]})"
        )
    return registry


def load_registry(
    path: Union[str, Path],
    use_cache: bool = True,
    refresh_cache: bool = False,
    show_progress: bool = True,
) -> TaxonRegistry:
    """Load a taxon file into a registry, reusing a cached copy when valid.

    Args:
        path: CSV, Parquet or JSON taxon file
        use_cache: Read from and write to the registry cache
        refresh_cache: Ignore any cached copy and rebuild it
        show_progress: Show a progress bar while converting rows

    Returns:
        The materialized TaxonRegistry
    """
    path = str(path)
    if not use_cache:
        return build_registry(path, show_progress)

    key = registry_cache_key(path)
    checksum = compute_file_metadata_hash([path])

    if not refresh_cache and checksum:
        cached_registry = load_cache(key, checksum)
        if cached_registry is not None:
            logger.info(f"Using cached taxon registry for {path} ({len(cached_registry):,} taxa)")
            return cached_registry

    start_time = time.time()
    registry = build_registry(path, show_progress)
    elapsed = time.time() - start_time
    logger.info(f"Loaded {len(registry):,} taxa from {path} in {elapsed:.2f}s")

    if checksum:
        save_cache(key, registry, checksum, metadata={"taxon_count": len(registry)})
    return registry
