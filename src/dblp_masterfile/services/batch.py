"""
Batch generation over many protagonists.

Requests go out one at a time, paced by `delay_seconds`. Setting
`stop_event` stops the loop before the next request, cutting a running
pause short; builds already finished are kept. A failing protagonist is
recorded in `errors` and the loop moves on.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from dblp_masterfile.data_sources.base_client import BaseClient, DataSourceError
from dblp_masterfile.models.model_dblp import (
    Author,
    BatchResult,
    FilterSpec,
    MasterfileBuild,
)
from dblp_masterfile.services.artifacts import (
    index_row,
    masterfile_filename,
    metadata_filename,
    write_masterfile,
    write_metadata,
)
from dblp_masterfile.services.pipeline import generate_masterfile

logger = logging.getLogger(__name__)

Generator = Callable[[BaseClient, FilterSpec, Author], Awaitable[MasterfileBuild]]


async def _pause(seconds: float, stop_event: asyncio.Event | None) -> None:
    """Sleep between requests; a stop request ends the pause early."""
    if stop_event is None:
        await asyncio.sleep(seconds)
        return
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        pass


async def run_batch(
    client: BaseClient,
    protagonists: list[Author],
    filters: FilterSpec,
    *,
    generate: Generator = generate_masterfile,
    output_dir: Path | None = None,
    delay_seconds: float = 0.0,
    stop_event: asyncio.Event | None = None,
    testset_id: str = "",
) -> BatchResult:
    """Generate one masterfile per protagonist with the shared filters.

    `filters.protagonist_id` is replaced for each protagonist.
    """
    result = BatchResult()

    for i, protagonist in enumerate(protagonists):
        if i and delay_seconds > 0:
            await _pause(delay_seconds, stop_event)
        if stop_event is not None and stop_event.is_set():
            logger.info("Batch stopped before %s", protagonist.id)
            result.cancelled = True
            break

        try:
            item_filters = FilterSpec.model_validate(
                {**filters.model_dump(), "protagonist_id": protagonist.id}
            )
            build = await generate(client, item_filters, protagonist)
        except (DataSourceError, ValueError) as e:
            logger.error("Batch item %s failed: %s", protagonist.id, e)
            result.errors.append(f"{protagonist.id}: {e}")
            continue

        result.errors.extend(f"{protagonist.id}: {err}" for err in build.errors)
        if build.roster.is_empty:
            continue
        result.builds.append(build)

        filename = masterfile_filename(protagonist.name or protagonist.id)
        if output_dir is not None:
            try:
                write_masterfile(build, output_dir / filename)
                write_metadata(
                    build.meta,
                    output_dir / metadata_filename(protagonist.name or protagonist.id),
                )
            except OSError as e:
                logger.error("Writing artifacts for %s failed: %s", protagonist.id, e)
                result.errors.append(f"{protagonist.id}: {e}")
                continue
        result.index_rows.append(index_row(build, filename, testset_id))

    logger.info(
        "Batch done: %d built, %d errors, cancelled=%s",
        len(result.builds),
        len(result.errors),
        result.cancelled,
    )
    return result
