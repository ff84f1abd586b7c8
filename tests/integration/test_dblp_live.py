"""Integration tests against sparql.dblp.org and dblp.org."""

import pytest

from dblp_masterfile.models.model_dblp import Author, FilterSpec
from dblp_masterfile.services.pipeline import (
    generate_from_person_xml,
    generate_masterfile,
)

pytestmark = pytest.mark.integration

TIM = Author(id="h/TimHegemann", name="Tim Hegemann")


async def test_find_author(dblp_client):
    suggestions = await dblp_client.find_author("Tim Hegemann")
    assert "h/TimHegemann" in [s.pid for s in suggestions]


async def test_fetch_rows(sparql_client):
    rows = await sparql_client.fetch_rows(FilterSpec(protagonist_id=TIM.id))

    assert rows
    years = [r.year for r in rows]
    assert years == sorted(years, reverse=True)
    for row in rows:
        assert row.type in {"Article", "Inproceedings"}
        assert len(row.coauthor_ids) == len(row.coauthor_names)
        assert row.min_strength_in_set <= row.avg_strength_in_set <= row.max_strength_in_set


async def test_top_k_limits_coauthors(sparql_client):
    rows = await sparql_client.fetch_rows(FilterSpec(protagonist_id=TIM.id, focus_top_k=2))
    assert len({cid for r in rows for cid in r.coauthor_ids}) <= 2


async def test_generate_masterfile(sparql_client):
    build = await generate_masterfile(sparql_client, FilterSpec(protagonist_id=TIM.id), TIM)

    assert build.errors == []
    assert build.roster.protagonist_id == TIM.id
    assert build.lines[1] == "* Main Author: Tim Hegemann"
    assert any(line.startswith("t") for line in build.lines)


async def test_generate_from_person_xml(dblp_client):
    build = await generate_from_person_xml(dblp_client, FilterSpec(protagonist_id=TIM.id), TIM)

    assert build.roster.protagonist_id == TIM.id
    assert build.meta.stats.publication_count > 0
