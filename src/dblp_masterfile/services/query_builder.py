"""
SPARQL query construction for a protagonist's filtered publications.

The query returns one row per publication of the protagonist that matches
the filters, carrying the pipe-joined coauthor names and IRIs and the
avg/min/max collaboration strength of those coauthors, both within the
filtered set ("in set") and over the whole dblp record ("global").

Strengths come from two sub-selects grouped by coauthor, so each figure is
computed once per coauthor and joined onto every publication that coauthor
appears on. Optional pieces (venue, year bounds, minimum strength, top-K
focus) are left out of the text entirely when not requested, which keeps
the output byte-identical for identical filters.
"""

from dblp_masterfile.constants import (
    COAUTHOR_SEPARATOR,
    DBLP_PID_PREFIX,
    DBLP_SCHEMA_PREFIX,
    DBLP_STREAM_PREFIX,
)
from dblp_masterfile.models.model_dblp import FilterSpec

PREFIXES = (
    f"PREFIX dblp: <{DBLP_SCHEMA_PREFIX}>\n"
    "PREFIX xsd: <http://www.w3.org/2001/XMLSchema#>"
)


def _lines(*parts: str, indent: int = 0) -> str:
    """Join the non-empty parts, one per line, indenting every line."""
    pad = " " * indent
    return "\n".join(
        pad + line for part in parts if part for line in part.splitlines()
    )


def protagonist_iri(protagonist_id: str) -> str:
    return f"<{DBLP_PID_PREFIX}{protagonist_id}>"


def type_values(filters: FilterSpec) -> str:
    return " ".join(f"dblp:{t.value}" for t in filters.effective_types())


def venue_clause(filters: FilterSpec, subject: str) -> str:
    if not filters.venue_suffix:
        return ""
    suffix = filters.venue_suffix.strip("/")
    return f"{subject} dblp:publishedInStream <{DBLP_STREAM_PREFIX}{suffix}> ."


def year_clauses(filters: FilterSpec, var: str) -> list[str]:
    clauses = []
    if filters.year_min is not None:
        clauses.append(f'FILTER({var} >= "{filters.year_min}"^^xsd:gYear)')
    if filters.year_max is not None:
        clauses.append(f'FILTER({var} <= "{filters.year_max}"^^xsd:gYear)')
    return clauses


def _in_set_pattern(filters: FilterSpec, joint: str, coauthor: str) -> list[str]:
    """Joint publications of ?p and `coauthor` that satisfy the filters."""
    return [
        f"{joint} a ?type2 ; dblp:hasSignature ?sp, ?sa .",
        f"VALUES ?type2 {{ {type_values(filters)} }}",
        venue_clause(filters, joint),
        f"{joint} dblp:yearOfPublication ?y2 .",
        *year_clauses(filters, "?y2"),
        "?sp dblp:signatureCreator ?p .",
        f"?sa dblp:signatureCreator {coauthor} .",
        f"FILTER({coauthor} != ?p)",
    ]


def in_set_strength_block(filters: FilterSpec) -> str:
    """Sub-select binding ?pairStrength per coauthor ?co.

    With a minimum publication count, coauthors below it drop out here and
    therefore out of the whole result.
    """
    having = ""
    if filters.min_coauthor_publications > 0:
        having = f"HAVING (COUNT(DISTINCT ?joint) >= {filters.min_coauthor_publications})"
    return _lines(
        "{",
        "  SELECT ?co (COUNT(DISTINCT ?joint) AS ?pairStrength) WHERE {",
        _lines(
            f"BIND({protagonist_iri(filters.protagonist_id)} AS ?p)",
            *_in_set_pattern(filters, "?joint", "?co"),
            indent=4,
        ),
        "  }",
        "  GROUP BY ?co",
        f"  {having}" if having else "",
        "}",
        indent=2,
    )


def global_strength_block(filters: FilterSpec) -> str:
    """Sub-select binding ?globalStrength per coauthor ?co, ignoring filters."""
    return _lines(
        "{",
        "  SELECT ?co (COUNT(DISTINCT ?anyJoint) AS ?globalStrength) WHERE {",
        _lines(
            f"BIND({protagonist_iri(filters.protagonist_id)} AS ?p)",
            "?anyJoint dblp:hasSignature ?gp, ?ga .",
            "?gp dblp:signatureCreator ?p .",
            "?ga dblp:signatureCreator ?co .",
            "FILTER(?co != ?p)",
            indent=4,
        ),
        "  }",
        "  GROUP BY ?co",
        "}",
        indent=2,
    )


def focus_block(filters: FilterSpec) -> str:
    """Sub-select keeping the top-K coauthors by in-set strength as ?keepCo.

    Equal strengths are ordered by coauthor IRI so the cut is deterministic.
    """
    if filters.focus_top_k <= 0:
        return ""
    having = ""
    if filters.min_coauthor_publications > 0:
        having = f"HAVING (COUNT(DISTINCT ?joint) >= {filters.min_coauthor_publications})"
    return _lines(
        "{",
        "  SELECT ?keepCo (COUNT(DISTINCT ?joint) AS ?jointPubs) WHERE {",
        _lines(
            f"BIND({protagonist_iri(filters.protagonist_id)} AS ?p)",
            *_in_set_pattern(filters, "?joint", "?keepCo"),
            indent=4,
        ),
        "  }",
        "  GROUP BY ?keepCo",
        f"  {having}" if having else "",
        "  ORDER BY DESC(?jointPubs) ASC(STR(?keepCo))",
        f"  LIMIT {filters.focus_top_k}",
        "}",
        "FILTER(?co = ?keepCo)",
        indent=2,
    )


def build_query(filters: FilterSpec) -> str:
    """Build the SPARQL query text for the given filters. Pure."""
    sep = COAUTHOR_SEPARATOR
    select = _lines(
        "SELECT ?pub ?title ?year ?type",
        f'       (GROUP_CONCAT(DISTINCT ?coName; separator="{sep}") AS ?coauthors)',
        f'       (GROUP_CONCAT(DISTINCT STR(?co); separator="{sep}") AS ?coIds)',
        "       (COUNT(DISTINCT ?co) AS ?coCount)",
        "       (AVG(?pairStrength) AS ?avgStrengthInSet)",
        "       (MIN(?pairStrength) AS ?minStrengthInSet)",
        "       (MAX(?pairStrength) AS ?maxStrengthInSet)",
        "       (AVG(?globalStrength) AS ?avgStrengthGlobal)",
        "       (MIN(?globalStrength) AS ?minStrengthGlobal)",
        "       (MAX(?globalStrength) AS ?maxStrengthGlobal)",
    )
    publications = _lines(
        f"BIND({protagonist_iri(filters.protagonist_id)} AS ?p)",
        "?pub a ?type ;",
        "     dblp:hasSignature ?sigP ;",
        "     dblp:title ?title ;",
        "     dblp:yearOfPublication ?year .",
        "?sigP dblp:signatureCreator ?p .",
        f"VALUES ?type {{ {type_values(filters)} }}",
        venue_clause(filters, "?pub"),
        *year_clauses(filters, "?year"),
        indent=2,
    )
    coauthors = _lines(
        "?pub dblp:hasSignature ?sigA .",
        "?sigA dblp:signatureCreator ?co .",
        "FILTER(?co != ?p)",
        "?co dblp:primaryCreatorName ?coName .",
        indent=2,
    )
    return (
        _lines(
            PREFIXES,
            select,
            "WHERE {",
            publications,
            coauthors,
            in_set_strength_block(filters),
            global_strength_block(filters),
            focus_block(filters),
            "}",
            "GROUP BY ?pub ?title ?year ?type",
            "ORDER BY DESC(?year)",
        )
        + "\n"
    )
