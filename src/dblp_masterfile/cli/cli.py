"""Command-line interface for dblp-masterfile."""

import asyncio
import logging
import signal
from pathlib import Path

import click
from pydantic import ValidationError

from dblp_masterfile.config import Settings, get_settings
from dblp_masterfile.data_sources.base_client import (
    CacheConfig,
    ClientConfig,
    DataSourceError,
)
from dblp_masterfile.data_sources.dblp import DblpClient
from dblp_masterfile.data_sources.dblp_sparql import DblpSparqlClient
from dblp_masterfile.models.model_dblp import Author, FilterSpec, PublicationType
from dblp_masterfile.services.artifacts import (
    masterfile_filename,
    metadata_filename,
    write_csv_index,
    write_masterfile,
    write_metadata,
)
from dblp_masterfile.services.batch import run_batch
from dblp_masterfile.services.pipeline import (
    generate_from_person_xml,
    generate_masterfile,
)

logger = logging.getLogger(__name__)

TYPE_CHOICES = [t.value for t in PublicationType]


def _client_config(settings: Settings, use_cache: bool) -> ClientConfig:
    return ClientConfig(
        cache=CacheConfig(enabled=use_cache, directory=settings.cache_dir),
        timeout_seconds=settings.request_timeout,
    )


def _filters(pid: str, opts: dict) -> FilterSpec:
    try:
        return FilterSpec(
            protagonist_id=pid,
            types=[PublicationType(t) for t in opts["types"]],
            venue_suffix=opts["venue"],
            min_coauthor_publications=opts["min_pubs"],
            focus_top_k=opts["top_k"],
            year_min=opts["year_min"],
            year_max=opts["year_max"],
        )
    except ValidationError as e:
        raise click.UsageError(str(e))


def filter_options(func):
    """Options shared by `generate` and `batch`."""
    options = [
        click.option(
            "-t",
            "--type",
            "types",
            multiple=True,
            type=click.Choice(TYPE_CHOICES),
            help="Publication type (repeatable). Default: Article, Inproceedings",
        ),
        click.option("--venue", help="dblp stream suffix, e.g. conf/icse"),
        click.option("--min-pubs", default=0, show_default=True, help="Minimum joint publications per coauthor"),
        click.option("--top-k", default=0, show_default=True, help="Keep only the K strongest coauthors"),
        click.option("--year-min", type=int),
        click.option("--year-max", type=int),
        click.option(
            "--source",
            type=click.Choice(["sparql", "xml"]),
            default="sparql",
            show_default=True,
            help="Query the SPARQL endpoint or parse the person XML page",
        ),
        click.option("--no-cache", is_flag=True, help="Bypass the response cache"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.version_option(package_name="dblp-masterfile")
def main():
    """dblp-masterfile: co-authorship masterfiles from dblp."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("name")
def search(name: str):
    """Find dblp pids for an author NAME."""
    settings = get_settings()

    async def _search():
        async with DblpClient(_client_config(settings, True), settings.dblp_base_url) as client:
            return await client.find_author(name)

    try:
        suggestions = asyncio.run(_search())
    except DataSourceError as e:
        raise click.ClickException(str(e))

    if not suggestions:
        click.echo("No authors found.")
    for s in suggestions:
        click.echo(f"{s.pid}\t{s.hint}")


def _make_client(source: str, settings: Settings, use_cache: bool):
    config = _client_config(settings, use_cache)
    if source == "xml":
        return DblpClient(config, settings.dblp_base_url), generate_from_person_xml
    return DblpSparqlClient(config, settings.sparql_endpoint), generate_masterfile


@main.command()
@click.option("--pid", required=True, help="dblp pid of the protagonist, e.g. h/TimHegemann")
@click.option("--name", required=True, help="Display name of the protagonist")
@filter_options
@click.option("-o", "--output", type=click.Path(file_okay=False, path_type=Path), help="Output directory")
def generate(pid: str, name: str, output: Path | None, **opts):
    """Generate the masterfile for one protagonist."""
    settings = get_settings()
    filters = _filters(pid, opts)
    client, generator = _make_client(opts["source"], settings, not opts["no_cache"])

    async def _generate():
        async with client:
            return await generator(client, filters, Author(id=pid, name=name))

    build = asyncio.run(_generate())
    for error in build.errors:
        click.echo(f"Warning: {error}", err=True)
    if build.roster.is_empty:
        raise click.ClickException(f"Nothing generated for {pid}")

    if output is None:
        click.echo(build.text())
        return
    master = write_masterfile(build, output / masterfile_filename(name))
    write_metadata(build.meta, output / metadata_filename(name))
    click.echo(f"Masterfile saved to: {master}")


def read_protagonists(path: Path) -> list[Author]:
    """One `pid<TAB>name` per line; blank lines and '#' comments are ignored."""
    authors = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        pid, _, name = line.partition("\t")
        authors.append(Author(id=pid.strip(), name=name.strip()))
    return authors


@main.command()
@click.argument("protagonists_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@filter_options
@click.option("--testset", default="testset", show_default=True, help="Testset id for the CSV index")
@click.option("--delay", type=float, help="Seconds between requests")
@click.option("-o", "--output", type=click.Path(file_okay=False, path_type=Path), help="Output directory")
def batch(protagonists_file: Path, testset: str, delay: float | None, output: Path | None, **opts):
    """Generate masterfiles for every protagonist in PROTAGONISTS_FILE."""
    settings = get_settings()
    output = output or settings.output_dir
    protagonists = read_protagonists(protagonists_file)
    filters = _filters("", opts)
    client, generator = _make_client(opts["source"], settings, not opts["no_cache"])

    async def _batch():
        stop = asyncio.Event()
        try:
            asyncio.get_running_loop().add_signal_handler(signal.SIGINT, stop.set)
        except NotImplementedError:
            pass  # Windows event loops
        async with client:
            return await run_batch(
                client,
                protagonists,
                filters,
                generate=generator,
                output_dir=output,
                delay_seconds=settings.batch_delay_seconds if delay is None else delay,
                stop_event=stop,
                testset_id=testset,
            )

    result = asyncio.run(_batch())
    index = write_csv_index(result.index_rows, output / f"{testset}_index.csv")
    click.echo(f"Generated {len(result.builds)} of {len(protagonists)} masterfiles")
    click.echo(f"Index saved to: {index}")
    if result.cancelled:
        click.echo("Batch stopped early.")
    for error in result.errors:
        click.echo(f"  - {error}", err=True)


if __name__ == "__main__":
    main()
