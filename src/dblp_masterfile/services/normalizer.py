"""Turn raw SPARQL result bindings into CollaborationRow records."""

import logging
import math
from typing import Any

from pydantic import ValidationError

from dblp_masterfile.constants import COAUTHOR_SEPARATOR
from dblp_masterfile.data_sources.base_client import MalformedRowError
from dblp_masterfile.helpers.author_helpers import pid_from_iri, type_from_iri
from dblp_masterfile.models.model_dblp import CollaborationRow

logger = logging.getLogger(__name__)

# CollaborationRow field → SPARQL variable
_NUMERIC_FIELDS: dict[str, str] = {
    "year": "year",
    "coauthor_count": "coCount",
    "avg_strength_in_set": "avgStrengthInSet",
    "min_strength_in_set": "minStrengthInSet",
    "max_strength_in_set": "maxStrengthInSet",
    "avg_strength_global": "avgStrengthGlobal",
    "min_strength_global": "minStrengthGlobal",
    "max_strength_global": "maxStrengthGlobal",
}

_INT_FIELDS = {"year", "coauthor_count"}


def _value(binding: dict[str, Any], var: str) -> Any | None:
    """Read a variable from a SPARQL-JSON binding or a flat dict."""
    raw = binding.get(var)
    if isinstance(raw, dict):
        return raw.get("value")
    return raw


def _number(value: Any, var: str, identifier: str) -> float:
    if value is None or value == "":
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = math.nan
    if not math.isfinite(number):
        logger.warning(
            "Unparsable %s=%r on %s; defaulting to 0", var, value, identifier
        )
        return 0.0
    return number


def split_joined(value: Any) -> list[str]:
    """'a|b|c' -> ['a', 'b', 'c']; empty or missing -> []."""
    if not value:
        return []
    return str(value).split(COAUTHOR_SEPARATOR)


def pair_coauthors(names: list[str], ids: list[str]) -> tuple[list[str], list[str]]:
    """Align coauthor names and ids to equal length.

    Missing ids fall back to the name; surplus ids are dropped.
    """
    if len(ids) != len(names):
        logger.warning(
            "Coauthor name/id count mismatch (%d names, %d ids)", len(names), len(ids)
        )
    aligned = [ids[i] if i < len(ids) else name for i, name in enumerate(names)]
    return list(names), [pid_from_iri(i) for i in aligned]


def normalize_row(binding: dict[str, Any]) -> CollaborationRow:
    """Normalize one binding.

    Raises MalformedRowError for a binding that is not an object, lacks a
    publication id or carries fields of the wrong kind.
    """
    if not isinstance(binding, dict):
        raise MalformedRowError("dblp_sparql", f"Binding is not an object: {binding!r}")
    identifier = _value(binding, "pub")
    if not identifier:
        raise MalformedRowError("dblp_sparql", f"Row without publication id: {binding}")

    numbers = {
        field: _number(_value(binding, var), var, identifier)
        for field, var in _NUMERIC_FIELDS.items()
    }
    for field in _INT_FIELDS:
        numbers[field] = int(numbers[field])

    names, ids = pair_coauthors(
        split_joined(_value(binding, "coauthors")),
        split_joined(_value(binding, "coIds")),
    )

    try:
        return CollaborationRow(
            identifier=identifier,
            title=_value(binding, "title") or "",
            type=type_from_iri(str(_value(binding, "type") or "")),
            coauthor_names=names,
            coauthor_ids=ids,
            **numbers,
        )
    except ValidationError as e:
        raise MalformedRowError("dblp_sparql", f"Invalid row {identifier}: {e}") from e


def normalize_rows(bindings: list[dict[str, Any]]) -> list[CollaborationRow]:
    """Normalize every binding, keeping the order of the result set."""
    return [normalize_row(b) for b in bindings]
