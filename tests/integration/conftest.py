"""Shared fixtures for integration tests against the live dblp services."""

import os

import pytest

from dblp_masterfile.data_sources.base_client import CacheConfig, ClientConfig
from dblp_masterfile.data_sources.dblp import DblpClient
from dblp_masterfile.data_sources.dblp_sparql import DblpSparqlClient


def pytest_collection_modifyitems(config, items):
    if os.getenv("DBLP_INTEGRATION") == "1":
        return
    skip = pytest.mark.skip(reason="set DBLP_INTEGRATION=1 to call the live dblp services")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest.fixture
def live_config(tmp_path) -> ClientConfig:
    return ClientConfig(cache=CacheConfig(directory=tmp_path / "cache"))


@pytest.fixture
async def sparql_client(live_config):
    """Create and tear down a DblpSparqlClient."""
    c = DblpSparqlClient(live_config)
    yield c
    await c.close()


@pytest.fixture
async def dblp_client(live_config):
    """Create and tear down a DblpClient."""
    c = DblpClient(live_config)
    yield c
    await c.close()
