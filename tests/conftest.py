import copy
import json
from dataclasses import replace

import pytest

from labor_radar.config import DEFAULT_REFERENCE_PATH, get_settings, parse_reference_tables
from labor_radar.providers import eurostat_provider, oecd_provider


@pytest.fixture(autouse=True)
def _clear_provider_caches():
    eurostat_provider._cache.clear()
    oecd_provider._cache.clear()
    yield
    eurostat_provider._cache.clear()
    oecd_provider._cache.clear()


@pytest.fixture(scope="session")
def _reference_doc_pristine():
    with open(DEFAULT_REFERENCE_PATH, "r", encoding="utf-8") as fh:
        return json.load(fh)


@pytest.fixture
def reference_doc(_reference_doc_pristine):
    """Mutable copy of the packaged reference document."""
    return copy.deepcopy(_reference_doc_pristine)


@pytest.fixture
def tables(reference_doc):
    return parse_reference_tables(reference_doc)


@pytest.fixture
def settings():
    return replace(
        get_settings(),
        retries=1,
        backoff=0.0,
        cache_ttl_sec=0,
        join_timeout_sec=5.0,
        use_ses_earnings=False,
        eurostat_base_url="https://eurostat.test/data",
        oecd_base_url="https://oecd.test/data",
    )
