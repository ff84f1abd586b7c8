"""Writers for masterfiles, their metadata and the CSV index of a batch."""

import csv
import logging
import re
from pathlib import Path

from dblp_masterfile.constants import (
    CSV_INDEX_COLUMNS,
    MASTERFILE_EXTENSION,
    METADATA_EXTENSION,
)
from dblp_masterfile.models.model_dblp import (
    IndexRow,
    MasterfileBuild,
    MasterfileMeta,
)

logger = logging.getLogger(__name__)


def file_stem(name: str) -> str:
    """'Ann  Bee & Co' -> 'Ann_Bee_Co'; slashes become underscores too."""
    return re.sub(r"[\s/]+", "_", name.replace("&", "").strip())


def masterfile_filename(name: str) -> str:
    return f"{file_stem(name)}{MASTERFILE_EXTENSION}"


def metadata_filename(name: str) -> str:
    return f"{file_stem(name)}{METADATA_EXTENSION}"


def write_masterfile(build: MasterfileBuild, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(build.text(), encoding="utf-8")
    logger.info("Wrote %s (%d lines)", path, len(build.lines))
    return path


def write_metadata(meta: MasterfileMeta, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(meta.model_dump_json(indent=2), encoding="utf-8")
    return path


def index_row(build: MasterfileBuild, filename: str, testset_id: str = "") -> IndexRow:
    stats = build.meta.stats
    return IndexRow(
        testset_id=testset_id,
        pid=build.meta.protagonist.id,
        name=build.meta.protagonist.name,
        pubs_in_filter=stats.publication_count,
        unique_coauthors_in_filter=stats.distinct_coauthor_count,
        avg_strength_in_set=stats.avg_strength_in_set,
        avg_strength_global=stats.avg_strength_global,
        download_name=filename,
    )


def write_csv_index(rows: list[IndexRow], path: Path) -> Path:
    """Write the index as CSV; fields with commas, quotes or newlines are quoted."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh, lineterminator="\n")
        writer.writerow(CSV_INDEX_COLUMNS)
        writer.writerows(row.as_csv_record() for row in rows)
    logger.info("Wrote index %s (%d rows)", path, len(rows))
    return path
