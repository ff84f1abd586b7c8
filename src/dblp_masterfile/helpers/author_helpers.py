from dblp_masterfile.constants import (
    DBLP_PID_PREFIX,
    DBLP_SCHEMA_PREFIX,
    NAMELESS_ABBREVIATION,
)


def abbreviate(name: str) -> str:
    """Upper-cased first letter of every whitespace-separated token."""
    initials = "".join(token[0].upper() for token in name.split())
    return initials or NAMELESS_ABBREVIATION


def unique_abbreviation(base: str, taken: set[str]) -> str:
    """Return base, or base plus the smallest positive suffix not in taken."""
    if base not in taken:
        return base
    suffix = 1
    while f"{base}{suffix}" in taken:
        suffix += 1
    return f"{base}{suffix}"


def pid_from_iri(value: str) -> str:
    """'https://dblp.org/pid/h/TimHegemann' -> 'h/TimHegemann'."""
    value = value.strip()
    if value.startswith(DBLP_PID_PREFIX):
        return value[len(DBLP_PID_PREFIX) :]
    return value


def type_from_iri(value: str) -> str:
    """'https://dblp.org/rdf/schema#Article' -> 'Article'."""
    if value.startswith(DBLP_SCHEMA_PREFIX):
        return value[len(DBLP_SCHEMA_PREFIX) :]
    return value
