"""Unit tests for the click command-line interface."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from dblp_masterfile.cli.cli import main, read_protagonists
from dblp_masterfile.data_sources.base_client import DataSourceError
from dblp_masterfile.models.model_dblp import AuthorSuggestion
from dblp_masterfile.services.pipeline import to_masterfile


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _fake_client(generator):
    client = MagicMock()
    return patch("dblp_masterfile.cli.cli._make_client", return_value=(client, generator))


def test_generate_prints_masterfile(runner, sample_rows):
    captured = {}

    async def generator(client, filters, protagonist):
        captured["filters"] = filters
        return to_masterfile(sample_rows, protagonist, filters, "2024-05-01T12:00:00")

    with _fake_client(generator):
        result = runner.invoke(
            main,
            ["generate", "--pid", "p1", "--name", "Ann Bee", "-t", "Article", "--year-min", "2020"],
        )

    assert result.exit_code == 0, result.output
    assert "* Main Author: Ann Bee" in result.output
    assert "t2021 : AB,CD,EF : AB,CD,EF" in result.output
    assert captured["filters"].types == ["Article"]
    assert captured["filters"].year_min == 2020


def test_generate_writes_files(runner, sample_rows, tmp_path):
    async def generator(client, filters, protagonist):
        return to_masterfile(sample_rows, protagonist, filters)

    with _fake_client(generator):
        result = runner.invoke(
            main, ["generate", "--pid", "p1", "--name", "Ann Bee", "-o", str(tmp_path)]
        )

    assert result.exit_code == 0, result.output
    assert (tmp_path / "Ann_Bee.master").exists()
    assert (tmp_path / "Ann_Bee.meta.json").exists()


def test_generate_empty_result_fails(runner):
    async def generator(client, filters, protagonist):
        return to_masterfile([], protagonist, filters)

    with _fake_client(generator):
        result = runner.invoke(main, ["generate", "--pid", "p1", "--name", "Ann Bee"])

    assert result.exit_code != 0
    assert "No publications found for p1" in result.output


def test_generate_rejects_unknown_type(runner):
    result = runner.invoke(main, ["generate", "--pid", "p1", "--name", "A", "-t", "Poster"])
    assert result.exit_code == 2


@pytest.mark.parametrize("option", [["--pid", "a b"], ["--venue", "gd>"]])
def test_generate_rejects_values_unusable_in_iris(runner, option):
    args = ["generate", "--pid", "p1", "--name", "A", *option]
    with patch("dblp_masterfile.cli.cli._make_client") as make_client:
        result = runner.invoke(main, args)

    assert result.exit_code == 2
    assert "cannot be used inside an IRI" in result.output
    make_client.assert_not_called()


def test_search_lists_suggestions(runner):
    suggestions = [AuthorSuggestion(pid="h/TimHegemann", name="Tim Hegemann", hint="Tim Hegemann (Uni Würzburg)")]
    with patch(
        "dblp_masterfile.cli.cli.DblpClient.find_author",
        new_callable=AsyncMock,
        return_value=suggestions,
    ):
        result = runner.invoke(main, ["search", "Tim Hegemann"])

    assert result.exit_code == 0, result.output
    assert "h/TimHegemann\tTim Hegemann (Uni Würzburg)" in result.output


def test_search_failure_is_reported(runner):
    with patch(
        "dblp_masterfile.cli.cli.DblpClient.find_author",
        new_callable=AsyncMock,
        side_effect=DataSourceError("dblp", "HTTP 503"),
    ):
        result = runner.invoke(main, ["search", "Tim Hegemann"])

    assert result.exit_code == 1
    assert "[dblp] HTTP 503" in result.output


def test_batch_writes_index(runner, sample_rows, tmp_path):
    protagonists = tmp_path / "people.tsv"
    protagonists.write_text("p1\tAnn Bee\np2\tBob Cat\n", encoding="utf-8")
    out = tmp_path / "out"

    async def generator(client, filters, protagonist):
        return to_masterfile(sample_rows, protagonist, filters)

    with _fake_client(generator):
        result = runner.invoke(
            main,
            ["batch", str(protagonists), "--testset", "ts1", "--delay", "0", "-o", str(out)],
        )

    assert result.exit_code == 0, result.output
    assert "Generated 2 of 2 masterfiles" in result.output
    index = (out / "ts1_index.csv").read_text(encoding="utf-8").splitlines()
    assert len(index) == 3
    assert index[1].startswith("ts1,p1,Ann Bee,2,2,")


def test_read_protagonists(tmp_path):
    path = tmp_path / "people.tsv"
    path.write_text(
        "# pid\tname\n\nh/TimHegemann\tTim Hegemann\n 12/3456 \t Ann Bee \nsolo/pid\n",
        encoding="utf-8",
    )

    authors = read_protagonists(path)

    assert [(a.id, a.name) for a in authors] == [
        ("h/TimHegemann", "Tim Hegemann"),
        ("12/3456", "Ann Bee"),
        ("solo/pid", ""),
    ]
