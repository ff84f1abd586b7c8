"""
Masterfile encoding.

A masterfile is a line-oriented text file:

    * Generated using the DBLP Master-Generator inspired by Tim Hegemann
    * Main Author: Ann Bee
    [* metadata lines, when metadata is supplied]
    AB Ann Bee
    CD Cy Dee

    AB Protagonist

    t2019 : AB;CD : AB,CD
    t2020 : AB,CD : AB,CD

Each publication line lists the roster abbreviations present on it, then
(after ';') the absent ones separated by ';', then the full roster. Lines
are in ascending year order; equal years keep their input order.
"""

from dblp_masterfile.constants import MASTERFILE_BANNER
from dblp_masterfile.models.model_dblp import MasterfileMeta, Publication, Roster


def _metadata_lines(meta: MasterfileMeta) -> list[str]:
    stats = meta.stats
    filters = meta.filters.summary() if meta.filters else "{}"
    breakdown = ", ".join(f"{count} {t}" for t, count in stats.by_type.items())
    return [
        f"* Generated at: {meta.generated_at}",
        f"* Filters: {filters}",
        f"* Papers: {stats.publication_count}, "
        f"Distinct coauthors: {stats.distinct_coauthor_count}",
        f"* Avg coauthor strength in set: {stats.avg_strength_in_set:.2f}",
        f"* Avg coauthor strength global: {stats.avg_strength_global:.2f}",
        f"* Breakdown: {breakdown}",
    ]


def header_lines(roster: Roster, meta: MasterfileMeta | None = None) -> list[str]:
    """Banner, protagonist, optional metadata, roster and protagonist marker.

    Without a roster there is nothing to mark; the header then stops after
    the metadata, and is empty altogether when there is no metadata either.
    """
    if roster.is_empty:
        if meta is None:
            return []
        return [
            MASTERFILE_BANNER,
            f"* Main Author: {meta.protagonist.name}",
            *_metadata_lines(meta),
            "",
        ]

    protagonist = roster.entries[roster.protagonist_id]
    lines = [MASTERFILE_BANNER, f"* Main Author: {protagonist.full_name}"]
    if meta is not None:
        lines.extend(_metadata_lines(meta))
    lines.extend(f"{e.abbreviation} {e.full_name}" for e in roster.entries.values())
    lines.append("")
    lines.append(f"{protagonist.abbreviation} Protagonist")
    lines.append("")
    return lines


def presence(pub: Publication, roster: Roster) -> tuple[list[str], list[str]]:
    """(present, missing) roster abbreviations for one publication.

    Authors not in the roster are skipped. `missing` follows roster order.
    """
    present: list[str] = []
    for author in pub.authors:
        entry = roster.get(author.id)
        if entry is not None and entry.abbreviation not in present:
            present.append(entry.abbreviation)
    missing = [a for a in roster.abbreviations() if a not in present]
    return present, missing


def publication_line(pub: Publication, roster: Roster) -> str:
    present, missing = presence(pub, roster)
    line = f"t{pub.year} : {','.join(present)}"
    if missing:
        line += f";{';'.join(missing)}"
    return f"{line} : {','.join(roster.abbreviations())}"


def encode(
    publications: list[Publication],
    roster: Roster,
    meta: MasterfileMeta | None = None,
) -> list[str]:
    """Encode publications against the roster. Deterministic; no clock reads."""
    if roster.is_empty:
        return header_lines(roster, meta)
    ordered = sorted(publications, key=lambda p: p.year)
    return header_lines(roster, meta) + [publication_line(p, roster) for p in ordered]
