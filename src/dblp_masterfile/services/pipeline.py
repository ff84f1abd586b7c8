"""Generation pipeline: collaboration rows → stats, roster and masterfile lines."""

import logging
from collections import Counter
from datetime import datetime, timezone

from dblp_masterfile.data_sources.base_client import DataSourceError
from dblp_masterfile.data_sources.dblp import DblpClient, filter_publications
from dblp_masterfile.data_sources.dblp_sparql import DblpSparqlClient
from dblp_masterfile.models.model_dblp import (
    Author,
    CollaborationRow,
    FilterSpec,
    MasterfileBuild,
    MasterfileMeta,
    Publication,
    Roster,
)
from dblp_masterfile.services.masterfile import encode
from dblp_masterfile.services.roster import build_roster
from dblp_masterfile.services.stats import aggregate, average, per_paper

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_publications(
    rows: list[CollaborationRow], protagonist: Author
) -> list[Publication]:
    """Rebuild per-publication author lists: protagonist first, then coauthors."""
    publications = []
    for row in rows:
        authors = [protagonist]
        seen = {protagonist.id}
        for cid, name in zip(row.coauthor_ids, row.coauthor_names):
            if cid in seen:
                continue
            seen.add(cid)
            authors.append(Author(id=cid, name=name))
        publications.append(
            Publication(
                identifier=row.identifier,
                year=row.year,
                type=row.type,
                title=row.title,
                authors=authors,
            )
        )
    return publications


def to_masterfile(
    rows: list[CollaborationRow],
    protagonist: Author,
    filters: FilterSpec | None = None,
    generated_at: str | None = None,
) -> MasterfileBuild:
    """Assemble stats, roster and masterfile lines for one protagonist."""
    meta = MasterfileMeta(
        generated_at=generated_at or _now(),
        protagonist=protagonist,
        filters=filters,
        stats=aggregate(rows),
        per_paper=per_paper(rows),
    )
    if not rows:
        logger.warning("No publications for %s", protagonist.id)
        return MasterfileBuild(
            lines=encode([], Roster(), meta),
            meta=meta,
            errors=[f"No publications found for {protagonist.id}"],
        )

    # Roster order is first appearance over year-ascending publications.
    publications = sorted(to_publications(rows, protagonist), key=lambda p: p.year)
    roster = build_roster(publications, protagonist.id)
    return MasterfileBuild(
        lines=encode(publications, roster, meta),
        meta=meta,
        roster=roster,
        errors=list(roster.warnings),
    )


async def generate_masterfile(
    client: DblpSparqlClient,
    filters: FilterSpec,
    protagonist: Author,
    generated_at: str | None = None,
) -> MasterfileBuild:
    """Query dblp once and build the masterfile.

    Upstream failures and malformed rows give an empty build whose
    `errors` says why; nothing is retried here.
    """
    try:
        rows = await client.fetch_rows(filters)
    except DataSourceError as e:
        logger.error("Generation failed for %s: %s", protagonist.id, e)
        meta = MasterfileMeta(
            generated_at=generated_at or _now(), protagonist=protagonist, filters=filters
        )
        return MasterfileBuild(meta=meta, errors=[str(e)])
    return to_masterfile(rows, protagonist, filters, generated_at)


# ---------------------------------------------------------------------------
# Person-XML source: strengths computed locally from the full record
# ---------------------------------------------------------------------------


def coauthor_strengths(
    publications: list[Publication], protagonist_id: str
) -> Counter[str]:
    """Joint publication count per coauthor id."""
    counts: Counter[str] = Counter()
    for pub in publications:
        ids = {a.id for a in pub.authors}
        if protagonist_id not in ids:
            continue
        counts.update(ids - {protagonist_id})
    return counts


def kept_coauthors(in_set: Counter[str], filters: FilterSpec) -> set[str] | None:
    """Coauthors surviving the minimum-count and top-K filters; None keeps all."""
    if filters.min_coauthor_publications <= 0 and filters.focus_top_k <= 0:
        return None
    ranked = sorted(
        (cid for cid, n in in_set.items() if n >= filters.min_coauthor_publications),
        key=lambda cid: (-in_set[cid], cid),
    )
    if filters.focus_top_k > 0:
        ranked = ranked[: filters.focus_top_k]
    return set(ranked)


def rows_from_publications(
    publications: list[Publication], filters: FilterSpec
) -> list[CollaborationRow]:
    """CollaborationRows for the filtered subset of a full publication record.

    Mirrors the SPARQL query: a publication is only kept while at least one
    of its coauthors survives the coauthor filters.
    """
    pid = filters.protagonist_id
    selected = [
        p for p in filter_publications(publications, filters)
        if pid in {a.id for a in p.authors}
    ]
    in_set = coauthor_strengths(selected, pid)
    overall = coauthor_strengths(publications, pid)
    keep = kept_coauthors(in_set, filters)

    rows = []
    for pub in sorted(selected, key=lambda p: p.year, reverse=True):
        coauthors = [
            a for a in pub.authors if a.id != pid and (keep is None or a.id in keep)
        ]
        if not coauthors:
            continue
        set_counts = [in_set[a.id] for a in coauthors]
        all_counts = [overall[a.id] for a in coauthors]
        rows.append(
            CollaborationRow(
                identifier=pub.identifier,
                title=pub.title,
                year=pub.year,
                type=pub.type,
                coauthor_names=[a.name for a in coauthors],
                coauthor_ids=[a.id for a in coauthors],
                coauthor_count=len(coauthors),
                avg_strength_in_set=average(set_counts),
                min_strength_in_set=min(set_counts),
                max_strength_in_set=max(set_counts),
                avg_strength_global=average(all_counts),
                min_strength_global=min(all_counts),
                max_strength_global=max(all_counts),
            )
        )
    return rows


async def generate_from_person_xml(
    client: DblpClient,
    filters: FilterSpec,
    protagonist: Author,
    generated_at: str | None = None,
) -> MasterfileBuild:
    """Build the masterfile from the protagonist's dblp XML page instead of SPARQL."""
    try:
        publications = await client.load_publications(filters.protagonist_id)
    except DataSourceError as e:
        logger.error("Loading publications failed for %s: %s", protagonist.id, e)
        meta = MasterfileMeta(
            generated_at=generated_at or _now(), protagonist=protagonist, filters=filters
        )
        return MasterfileBuild(meta=meta, errors=[str(e)])
    rows = rows_from_publications(publications, filters)
    return to_masterfile(rows, protagonist, filters, generated_at)
