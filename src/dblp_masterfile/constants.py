"""Project-wide constants."""

from pathlib import Path

# -- Base client defaults ---------------------------------------------------
DEFAULT_TIMEOUT: float = 60.0
DEFAULT_MAX_RETRIES: int = 2

# -- Cache ------------------------------------------------------------------
# Anchored to the project root so the same _cache/ directory is used no
# matter where tests or scripts are launched from.
_PROJECT_ROOT: Path = Path(__file__).parent.parent.parent
DEFAULT_CACHE_DIR: Path = _PROJECT_ROOT / "_cache"
DEFAULT_OUTPUT_DIR: Path = _PROJECT_ROOT / "masterfiles"
CACHE_TTL: int = 86400  # 1 day in seconds
# Person pages change less often than query results.
CACHE_TTLS: dict[str, int] = {
    "sparql_bindings": CACHE_TTL,
    "author_search": CACHE_TTL,
    "person_xml": 7 * CACHE_TTL,
}

# -- dblp -------------------------------------------------------------------
DBLP_BASE_URL: str = "https://dblp.org"
DBLP_SPARQL_URL: str = "https://sparql.dblp.org/sparql"
DBLP_PID_PREFIX: str = f"{DBLP_BASE_URL}/pid/"
DBLP_STREAM_PREFIX: str = f"{DBLP_BASE_URL}/streams/"
DBLP_SCHEMA_PREFIX: str = f"{DBLP_BASE_URL}/rdf/schema#"
DBLP_SEARCH_MAX_HITS: int = 1000

# -- Masterfile format ------------------------------------------------------
MASTERFILE_BANNER: str = (
    "* Generated using the DBLP Master-Generator inspired by Tim Hegemann"
)
MASTERFILE_EXTENSION: str = ".master"
METADATA_EXTENSION: str = ".meta.json"
COAUTHOR_SEPARATOR: str = "|"
# Base abbreviation for authors that come back without a display name.
NAMELESS_ABBREVIATION: str = "X"

# -- CSV index --------------------------------------------------------------
CSV_INDEX_COLUMNS: list[str] = [
    "TestsetID",
    "PID",
    "Name",
    "pubsInFilter",
    "uniqueCoauthorsInFilter",
    "avgCoauthorStrengthInSet",
    "avgCoauthorStrengthGlobal",
    "downloadName",
]

# -- dblp person XML record tags → publication type --------------------------
XML_RECORD_TYPES: dict[str, str] = {
    "article": "Article",
    "inproceedings": "Inproceedings",
    "incollection": "Incollection",
    "book": "Book",
    "phdthesis": "Book",
    "mastersthesis": "Book",
    "proceedings": "Editorship",
    "data": "Data",
}

# publtype attribute values that override the record tag
XML_PUBLTYPE_OVERRIDES: dict[str, str] = {
    "informal": "Informal",
    "withdrawn": "Withdrawn",
    "encyclopedia": "Reference",
}
