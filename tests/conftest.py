"""Pytest configuration and fixtures."""

import pytest

from dblp_masterfile.data_sources.base_client import (
    CacheConfig,
    ClientConfig,
    RetryConfig,
)
from dblp_masterfile.models.model_dblp import Author, CollaborationRow, Publication


@pytest.fixture
def protagonist() -> Author:
    return Author(id="p1", name="Ann Bee")


@pytest.fixture
def sample_publications(protagonist) -> list[Publication]:
    """Two publications, newest first, as dblp returns them."""
    return [
        Publication(
            identifier="pub/2020",
            year=2020,
            type="Article",
            authors=[protagonist, Author(id="c1", name="Cy Dee")],
        ),
        Publication(
            identifier="pub/2019",
            year=2019,
            type="Inproceedings",
            authors=[protagonist],
        ),
    ]


@pytest.fixture
def sample_rows() -> list[CollaborationRow]:
    return [
        CollaborationRow(
            identifier="https://dblp.org/rec/conf/x/BeeDE21",
            title="Later Work",
            year=2021,
            type="Inproceedings",
            coauthor_names=["Cy Dee", "Eve Fox"],
            coauthor_ids=["c1", "c2"],
            coauthor_count=2,
            avg_strength_in_set=1.5,
            min_strength_in_set=1.0,
            max_strength_in_set=2.0,
            avg_strength_global=3.0,
            min_strength_global=2.0,
            max_strength_global=4.0,
        ),
        CollaborationRow(
            identifier="https://dblp.org/rec/journals/y/BeeD20",
            title="Early Work",
            year=2020,
            type="Article",
            coauthor_names=["Cy Dee"],
            coauthor_ids=["c1"],
            coauthor_count=1,
            avg_strength_in_set=2.0,
            min_strength_in_set=2.0,
            max_strength_in_set=2.0,
            avg_strength_global=4.0,
            min_strength_global=4.0,
            max_strength_global=4.0,
        ),
    ]


@pytest.fixture
def no_cache_config() -> ClientConfig:
    """Client config without disk cache and without retries."""
    return ClientConfig(
        cache=CacheConfig(enabled=False),
        retry=RetryConfig(max_retries=0),
    )
