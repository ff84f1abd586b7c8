"""Unit tests for DblpSparqlClient."""

from unittest.mock import AsyncMock, patch

import pytest

from dblp_masterfile.data_sources.base_client import (
    CacheConfig,
    ClientConfig,
    DataSourceError,
    MalformedRowError,
    PartialResult,
    RetryConfig,
)
from dblp_masterfile.data_sources.dblp_sparql import DblpSparqlClient
from dblp_masterfile.models.model_dblp import Author, FilterSpec
from dblp_masterfile.services.pipeline import generate_masterfile

BINDINGS = [
    {
        "pub": {"type": "uri", "value": "https://dblp.org/rec/conf/x/A21"},
        "title": {"type": "literal", "value": "A paper"},
        "year": {"type": "literal", "value": "2021"},
        "type": {"type": "uri", "value": "https://dblp.org/rdf/schema#Inproceedings"},
        "coauthors": {"type": "literal", "value": "Cy Dee|Eve Fox"},
        "coIds": {
            "type": "literal",
            "value": "https://dblp.org/pid/c1|https://dblp.org/pid/c2",
        },
        "coCount": {"type": "literal", "value": "2"},
        "avgStrengthInSet": {"type": "literal", "value": "1.5"},
    }
]


@pytest.fixture
def client(no_cache_config) -> DblpSparqlClient:
    return DblpSparqlClient(no_cache_config)


async def test_run_query_returns_bindings(client):
    with patch.object(
        client,
        "_rest_get",
        new_callable=AsyncMock,
        return_value=PartialResult(data={"results": {"bindings": BINDINGS}}),
    ) as rest_get:
        bindings = await client.run_query("SELECT * WHERE {}")

    assert bindings == BINDINGS
    args, kwargs = rest_get.await_args
    assert args[0] == client.endpoint
    assert args[1] == {"query": "SELECT * WHERE {}", "format": "json"}
    assert kwargs["headers"] == {"Accept": "application/sparql-results+json"}


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"results": {}},
        {"results": []},
        {"results": "none"},
        {"results": {"bindings": {"pub": "x"}}},
        {"head": {"vars": []}},
        [],
        "not json",
    ],
)
async def test_run_query_without_bindings_is_empty(client, payload):
    with patch.object(
        client, "_rest_get", new_callable=AsyncMock, return_value=PartialResult(data=payload)
    ):
        assert await client.run_query("SELECT * WHERE {}") == []


async def test_run_query_incomplete_result_raises(client):
    failed = PartialResult(data=None, is_complete=False, errors=["[dblp_sparql] HTTP 503"])
    with patch.object(client, "_rest_get", new_callable=AsyncMock, return_value=failed):
        with pytest.raises(DataSourceError, match="HTTP 503"):
            await client.run_query("SELECT * WHERE {}")


async def test_run_query_uses_cache(tmp_path):
    config = ClientConfig(
        retry=RetryConfig(max_retries=0),
        cache=CacheConfig(enabled=True, directory=tmp_path),
    )
    client = DblpSparqlClient(config)
    with patch.object(
        client,
        "_rest_get",
        new_callable=AsyncMock,
        return_value=PartialResult(data={"results": {"bindings": BINDINGS}}),
    ) as rest_get:
        first = await client.run_query("SELECT ?x WHERE {}")
        second = await client.run_query("SELECT ?x WHERE {}")
        await client.run_query("SELECT ?y WHERE {}")

    assert first == second == BINDINGS
    assert rest_get.await_count == 2


async def test_fetch_rows_normalizes(client):
    with patch.object(
        client, "run_query", new_callable=AsyncMock, return_value=BINDINGS
    ) as run_query:
        rows = await client.fetch_rows(FilterSpec(protagonist_id="h/TimHegemann"))

    query = run_query.await_args.args[0]
    assert "<https://dblp.org/pid/h/TimHegemann>" in query
    assert run_query.await_args.kwargs["protagonist"] == "h/TimHegemann"

    assert len(rows) == 1
    row = rows[0]
    assert row.identifier == "https://dblp.org/rec/conf/x/A21"
    assert row.year == 2021
    assert row.type == "Inproceedings"
    assert row.coauthor_ids == ["c1", "c2"]
    assert row.coauthor_names == ["Cy Dee", "Eve Fox"]
    assert row.coauthor_count == 2
    assert row.avg_strength_in_set == 1.5
    assert row.avg_strength_global == 0.0


@pytest.mark.parametrize("bindings", [["x"], [BINDINGS[0], None], [[1, 2]]])
async def test_run_query_non_object_bindings_raise(client, bindings):
    with patch.object(
        client,
        "_rest_get",
        new_callable=AsyncMock,
        return_value=PartialResult(data={"results": {"bindings": bindings}}),
    ):
        with pytest.raises(MalformedRowError, match="JSON objects"):
            await client.run_query("SELECT * WHERE {}")


@pytest.mark.parametrize(
    "payload",
    [{"results": []}, {"results": {"bindings": ["x"]}}, {"results": {"bindings": [{"title": "t"}]}}],
)
async def test_malformed_response_gives_empty_build(client, payload):
    with patch.object(
        client, "_rest_get", new_callable=AsyncMock, return_value=PartialResult(data=payload)
    ):
        build = await generate_masterfile(
            client, FilterSpec(protagonist_id="p1"), Author(id="p1", name="Ann Bee")
        )

    assert build.roster.is_empty
    assert build.meta.stats.publication_count == 0
    assert build.errors
