"""Data models for dblp-masterfile."""

from dblp_masterfile.models.model_dblp import (
    Author,
    CollaborationRow,
    FilterSpec,
    MasterfileBuild,
    MasterfileStats,
    Publication,
    PublicationType,
    Roster,
)

__all__ = [
    "Author",
    "CollaborationRow",
    "FilterSpec",
    "MasterfileBuild",
    "MasterfileStats",
    "Publication",
    "PublicationType",
    "Roster",
]
