import pytest

from taxonsearch import cache_manager
from taxonsearch.config import config
from taxonsearch.registry import TaxonRegistry
from taxonsearch.types.data_classes import TaxonRecord


@pytest.fixture(autouse=True)
def isolated_config(tmp_path):
    """Point the cache at a temporary directory and restore config afterwards."""
    saved = dict(vars(config))
    config.cache_base_dir = str(tmp_path / "cache")
    config.cache_dir = config.cache_base_dir
    yield config
    cache_manager._close_cache()
    config.__dict__.update(saved)


@pytest.fixture
def sample_registry():
    """A small checklist of roses, oaks and a balsam."""
    return TaxonRegistry.from_records([
        TaxonRecord(id="g-rosa", name_string="Rosa", authority="L.",
                    min_rank_sort=20, parent_ids=("f-rosaceae",)),
        TaxonRecord(id="r1", name_string="Rosa canina", authority="L.",
                    vernacular_name="Dog-rose", used=True, min_rank_sort=30,
                    parent_ids=("g-rosa",)),
        TaxonRecord(id="r2", name_string="Rosa arvensis", authority="Huds.",
                    vernacular_name="Field-rose", used=True, min_rank_sort=30,
                    parent_ids=("g-rosa",)),
        TaxonRecord(id="r3", name_string="Rosa stylosa", authority="Desv.",
                    vernacular_name="Short-styled Field-rose", min_rank_sort=30,
                    parent_ids=("g-rosa",)),
        TaxonRecord(id="r5", name_string="Rosa lutetiana", authority="Léman",
                    accepted_entity_id="r1", min_rank_sort=30, parent_ids=("g-rosa",)),
        TaxonRecord(id="g-quercus", name_string="Quercus", authority="L.",
                    min_rank_sort=20, parent_ids=("f-fagaceae",)),
        TaxonRecord(id="q1", name_string="Quercus robur", authority="L.",
                    vernacular_name="Pedunculate Oak", used=True, min_rank_sort=30,
                    parent_ids=("g-quercus",)),
        TaxonRecord(id="q2", name_string="Quercus petraea", authority="(Matt.) Liebl.",
                    vernacular_name="Sessile Oak", min_rank_sort=30,
                    parent_ids=("g-quercus",)),
        TaxonRecord(id="q3", name_string="Quercus x rosacea", authority="Bechst.",
                    min_rank_sort=30, parent_ids=("g-quercus",)),
        TaxonRecord(id="i1", name_string="Impatiens glandulifera", authority="Royle",
                    vernacular_name="Indian Balsam", min_rank_sort=30,
                    parent_ids=("g-impatiens",)),
    ])
