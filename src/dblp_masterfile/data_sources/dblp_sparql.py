"""
dblp SPARQL endpoint client.

Two methods:
  1. run_query:  execute a query text, return raw result bindings (cached)
  2. fetch_rows: build the collaboration query for a filter set and
                  return normalized CollaborationRow records
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any

from dblp_masterfile.constants import DBLP_SPARQL_URL
from dblp_masterfile.data_sources.base_client import (
    BaseClient,
    ClientConfig,
    DataSourceError,
    MalformedRowError,
)
from dblp_masterfile.models.model_dblp import CollaborationRow, FilterSpec
from dblp_masterfile.services.normalizer import normalize_rows
from dblp_masterfile.services.query_builder import build_query

logger = logging.getLogger(__name__)


class DblpSparqlClient(BaseClient):
    """Client for the dblp knowledge graph SPARQL endpoint."""

    ACCEPT = "application/sparql-results+json"

    def __init__(
        self, config: ClientConfig | None = None, endpoint: str = DBLP_SPARQL_URL
    ) -> None:
        super().__init__(config)
        self.endpoint = endpoint

    @property
    def _source_name(self) -> str:
        return "dblp_sparql"

    async def run_query(
        self, query: str, protagonist: str | None = None
    ) -> list[dict[str, Any]]:
        """Execute a query and return its result bindings.

        A response without `results.bindings` yields []. Raises
        DataSourceError when the endpoint cannot be reached, and
        MalformedRowError when a binding is not an object.
        """
        cache_params = {"query_hash": hashlib.sha256(query.encode()).hexdigest()}
        cached = self._cache_get("sparql_bindings", cache_params)
        if cached is not None:
            return cached

        result = await self._rest_get(
            self.endpoint,
            {"query": query, "format": "json"},
            headers={"Accept": self.ACCEPT},
            context=self._ctx("run_query", protagonist),
        )
        if not result.is_complete:
            raise DataSourceError(
                self._source_name, f"Query failed: {'; '.join(result.errors)}"
            )

        data = result.data
        results = data.get("results") if isinstance(data, dict) else None
        bindings = results.get("bindings") if isinstance(results, dict) else None
        if not isinstance(bindings, list):
            logger.warning("Response without result bindings; treating as empty")
            return []
        if not all(isinstance(b, dict) for b in bindings):
            raise MalformedRowError(
                self._source_name, "Result bindings must be JSON objects"
            )

        self._cache_set("sparql_bindings", cache_params, bindings)
        return bindings

    async def fetch_rows(self, filters: FilterSpec) -> list[CollaborationRow]:
        """Run the collaboration query for `filters` and normalize the rows."""
        bindings = await self.run_query(
            build_query(filters), protagonist=filters.protagonist_id
        )
        rows = normalize_rows(bindings)
        logger.info(
            "Fetched %d publications for %s", len(rows), filters.protagonist_id
        )
        return rows
