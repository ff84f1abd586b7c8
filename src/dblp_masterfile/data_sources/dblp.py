"""
dblp web API client.

Two methods:
  1. find_author:       author search, candidate pids with hints
  2. load_publications: a person's full publication list from their XML page
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from typing import Any

from dblp_masterfile.constants import (
    DBLP_BASE_URL,
    DBLP_SEARCH_MAX_HITS,
    XML_PUBLTYPE_OVERRIDES,
    XML_RECORD_TYPES,
)
from dblp_masterfile.data_sources.base_client import (
    BaseClient,
    ClientConfig,
    DataSourceError,
)
from dblp_masterfile.models.model_dblp import (
    Author,
    AuthorSuggestion,
    FilterSpec,
    Publication,
)

logger = logging.getLogger(__name__)

_PID_IN_URL = re.compile(r"/pid/(.+?)(?:\.html|\.xml)?$")


def _note_text(info: dict[str, Any]) -> str:
    """First disambiguation note of a search hit, or ''."""
    note = (info.get("notes") or {}).get("note")
    if isinstance(note, list):
        note = note[0] if note else None
    if isinstance(note, dict):
        return note.get("text", "")
    return ""


def parse_search_hits(payload: dict[str, Any]) -> list[AuthorSuggestion]:
    """Turn an author search response into suggestions. Hits without a pid are skipped."""
    hits = payload.get("result", {}).get("hits", {}).get("hit") or []
    if isinstance(hits, dict):
        hits = [hits]

    suggestions = []
    for hit in hits:
        info = hit.get("info", {})
        match = _PID_IN_URL.search(info.get("url", ""))
        if not match:
            continue
        name = info.get("author", "")
        note = _note_text(info)
        suggestions.append(
            AuthorSuggestion(
                pid=match.group(1),
                name=name,
                hint=f"{name} ({note})" if note else name,
            )
        )
    return suggestions


def _record_type(record: ET.Element) -> str | None:
    publtype = record.get("publtype", "")
    if publtype in XML_PUBLTYPE_OVERRIDES:
        return XML_PUBLTYPE_OVERRIDES[publtype]
    return XML_RECORD_TYPES.get(record.tag)


def parse_person_xml(xml_text: str) -> list[Publication]:
    """Parse a dblp person page (``<dblpperson>``) into publications.

    Records carry authors, or editors for proceedings. Records without a
    year or of an unknown kind are skipped.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise DataSourceError("dblp", f"Failed to parse XML: {e}") from e

    publications = []
    for wrapper in root.findall("r"):
        for record in wrapper:
            pub_type = _record_type(record)
            year = record.findtext("year")
            if pub_type is None or not year or not year.strip().isdigit():
                logger.debug("Skipping record %s", record.get("key"))
                continue

            people = record.findall("author") or record.findall("editor")
            authors = []
            seen: set[str] = set()
            for person in people:
                name = "".join(person.itertext()).strip()
                pid = person.get("pid") or name
                if pid in seen:
                    continue
                seen.add(pid)
                authors.append(Author(id=pid, name=name))

            title_elem = record.find("title")
            title = "".join(title_elem.itertext()).strip() if title_elem is not None else ""

            publications.append(
                Publication(
                    identifier=record.get("key", ""),
                    year=int(year),
                    type=pub_type,
                    title=title,
                    authors=authors,
                )
            )
    return publications


def filter_publications(
    publications: list[Publication], filters: FilterSpec
) -> list[Publication]:
    """Apply the type and year filters locally (venue is not in the XML)."""
    types = {t.value for t in filters.effective_types()}
    return [
        pub
        for pub in publications
        if pub.type in types
        and (filters.year_min is None or pub.year >= filters.year_min)
        and (filters.year_max is None or pub.year <= filters.year_max)
    ]


class DblpClient(BaseClient):
    """Client for dblp's author search API and person XML pages."""

    def __init__(
        self, config: ClientConfig | None = None, base_url: str = DBLP_BASE_URL
    ) -> None:
        super().__init__(config)
        self.base_url = base_url.rstrip("/")

    @property
    def _source_name(self) -> str:
        return "dblp"

    async def find_author(self, name: str) -> list[AuthorSuggestion]:
        """Search dblp persons by name."""
        query = " ".join(name.replace("&", "").split())
        params = {"q": query, "format": "json", "h": DBLP_SEARCH_MAX_HITS}

        cached = self._cache_get("author_search", params)
        if cached is None:
            result = await self._rest_get(
                f"{self.base_url}/search/author/api",
                params,
                context=self._ctx("find_author"),
            )
            if not result.is_complete:
                raise DataSourceError(
                    self._source_name,
                    f"Author search for '{name}' failed: {result.errors}",
                )
            cached = result.data if isinstance(result.data, dict) else {}
            self._cache_set("author_search", params, cached)

        return parse_search_hits(cached)

    async def load_publications(self, pid: str) -> list[Publication]:
        """Fetch and parse the publication list of the person with this pid."""
        xml_text = self._cache_get("person_xml", {"pid": pid})
        if xml_text is None:
            xml_text = await self._rest_get_xml(
                f"{self.base_url}/pid/{pid}.xml",
                {},
                context=self._ctx("load_publications", pid),
            )
            self._cache_set("person_xml", {"pid": pid}, xml_text)
        return parse_person_xml(xml_text)
