"""
Pydantic models for dblp collaboration data and masterfiles.

These are the data contracts between the dblp clients, the generation
services and the artifact writers. Services never see raw SPARQL bindings;
the normalizer turns them into CollaborationRow first.
"""

import json
import re
from enum import Enum

from pydantic import BaseModel, field_validator

# ------------------------------------------------------------------
# Publications and authors
# ------------------------------------------------------------------


class PublicationType(str, Enum):
    """dblp record types allowed in a query (dblp:<value>)."""

    ARTICLE = "Article"
    INPROCEEDINGS = "Inproceedings"
    INCOLLECTION = "Incollection"
    INFORMAL = "Informal"
    BOOK = "Book"
    DATA = "Data"
    EDITORSHIP = "Editorship"
    REFERENCE = "Reference"
    WITHDRAWN = "Withdrawn"


DEFAULT_TYPES: list[PublicationType] = [
    PublicationType.ARTICLE,
    PublicationType.INPROCEEDINGS,
]


class Author(BaseModel):
    """A dblp person. Identity is the pid; the name is display-only."""

    id: str  # dblp pid, e.g. "h/TimHegemann"
    name: str = ""


class Publication(BaseModel):
    """A publication with its ordered author list."""

    identifier: str = ""  # dblp record IRI or key
    year: int
    type: str = ""
    title: str = ""
    authors: list[Author] = []


class AuthorSuggestion(BaseModel):
    """One hit from the dblp author search."""

    pid: str
    name: str
    hint: str  # name plus first disambiguation note, e.g. "Ann Bee (TU Berlin)"


# ------------------------------------------------------------------
# Filters
# ------------------------------------------------------------------

# Characters that would end or break an <IRI> in the query text.
_IRI_UNSAFE = re.compile(r'[\s<>"{}|\\^`]')


class FilterSpec(BaseModel):
    """Declarative filter set for one protagonist's publications."""

    protagonist_id: str
    types: list[PublicationType] = []
    venue_suffix: str | None = None  # dblp stream suffix, e.g. "conf/icse"
    min_coauthor_publications: int = 0
    focus_top_k: int = 0
    year_min: int | None = None
    year_max: int | None = None

    @field_validator("min_coauthor_publications", "focus_top_k")
    @classmethod
    def _clamp_non_negative(cls, value: int) -> int:
        return max(0, value)

    @field_validator("protagonist_id", "venue_suffix")
    @classmethod
    def _iri_safe(cls, value: str | None) -> str | None:
        if value is not None and _IRI_UNSAFE.search(value):
            raise ValueError(f"{value!r} cannot be used inside an IRI")
        return value

    def effective_types(self) -> list[PublicationType]:
        """Types to query; Article and Inproceedings when none were chosen."""
        return list(self.types) if self.types else list(DEFAULT_TYPES)

    def summary(self) -> str:
        """Compact JSON of the filters that are actually set."""
        data = self.model_dump(mode="json", exclude_defaults=True)
        return json.dumps(data, separators=(",", ":"))


# ------------------------------------------------------------------
# Normalized query rows
# ------------------------------------------------------------------


class CollaborationRow(BaseModel):
    """One publication of the protagonist with its coauthor strengths.

    Strengths are counts of joint publications between the protagonist and
    each coauthor. "in_set" counts only publications matching the filters,
    "global" counts the whole record. Figures are aggregated over the
    coauthors on this publication.
    """

    identifier: str
    title: str = ""
    year: int = 0
    type: str = ""
    coauthor_names: list[str] = []
    coauthor_ids: list[str] = []
    coauthor_count: int = 0
    avg_strength_in_set: float = 0.0
    min_strength_in_set: float = 0.0
    max_strength_in_set: float = 0.0
    avg_strength_global: float = 0.0
    min_strength_global: float = 0.0
    max_strength_global: float = 0.0


# ------------------------------------------------------------------
# Roster
# ------------------------------------------------------------------


class RosterEntry(BaseModel):
    abbreviation: str
    full_name: str


class Roster(BaseModel):
    """Ordered author-id → entry mapping; the protagonist is always first.

    An empty roster with warnings means the roster could not be built.
    """

    entries: dict[str, RosterEntry] = {}
    warnings: list[str] = []

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def protagonist_id(self) -> str | None:
        return next(iter(self.entries), None)

    def ids(self) -> list[str]:
        return list(self.entries)

    def abbreviations(self) -> list[str]:
        return [entry.abbreviation for entry in self.entries.values()]

    def get(self, author_id: str) -> RosterEntry | None:
        return self.entries.get(author_id)


# ------------------------------------------------------------------
# Stats and metadata
# ------------------------------------------------------------------


class MasterfileStats(BaseModel):
    publication_count: int = 0
    distinct_coauthor_count: int = 0
    by_type: dict[str, int] = {}
    avg_strength_in_set: float = 0.0
    avg_strength_global: float = 0.0


class PaperDetail(BaseModel):
    """Per-publication entry of the metadata artifact."""

    identifier: str
    title: str = ""
    year: int
    type: str = ""
    coauthor_count: int = 0
    avg_strength_in_set: float = 0.0
    min_strength_in_set: float = 0.0
    max_strength_in_set: float = 0.0
    avg_strength_global: float = 0.0
    min_strength_global: float = 0.0
    max_strength_global: float = 0.0


class MasterfileMeta(BaseModel):
    generated_at: str  # ISO-8601, supplied by the caller
    protagonist: Author
    filters: FilterSpec | None = None
    stats: MasterfileStats = MasterfileStats()
    per_paper: list[PaperDetail] = []


class MasterfileBuild(BaseModel):
    """Result of one generation request."""

    lines: list[str] = []
    meta: MasterfileMeta
    roster: Roster = Roster()
    errors: list[str] = []

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def text(self) -> str:
        return "\n".join(self.lines)


# ------------------------------------------------------------------
# Batch
# ------------------------------------------------------------------


class IndexRow(BaseModel):
    """One line of the CSV index of generated masterfiles."""

    testset_id: str = ""
    pid: str
    name: str = ""
    pubs_in_filter: int = 0
    unique_coauthors_in_filter: int = 0
    avg_strength_in_set: float = 0.0
    avg_strength_global: float = 0.0
    download_name: str = ""

    def as_csv_record(self) -> list[str | int | float]:
        return [
            self.testset_id,
            self.pid,
            self.name,
            self.pubs_in_filter,
            self.unique_coauthors_in_filter,
            self.avg_strength_in_set,
            self.avg_strength_global,
            self.download_name,
        ]


class BatchResult(BaseModel):
    builds: list[MasterfileBuild] = []
    index_rows: list[IndexRow] = []
    errors: list[str] = []
    cancelled: bool = False
