import zipfile

import pytest
from typer.testing import CliRunner

from pdf_harvester import __version__, orchestrator
from pdf_harvester.cli import app
from pdf_harvester.config import AppConfig
from pdf_harvester.interactive import parse_selection

from tests.conftest import FakeFetcher, anchors

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_show_config_round_trips(tmp_path):
    config_file = tmp_path / "harvester.toml"
    config_file.write_text("[download]\nmax_concurrent = 4\n\n[preview]\nscale = 0.5\n")

    result = runner.invoke(app, ["show-config", "--config", str(config_file)])

    assert result.exit_code == 0
    dumped = tmp_path / "dumped.toml"
    dumped.write_text(result.output)
    config = AppConfig.from_toml(dumped)
    assert config.download.max_concurrent == 4
    assert config.preview.scale == 0.5


def test_missing_config_file_fails(tmp_path):
    result = runner.invoke(app, ["show-config", "--config", str(tmp_path / "nope.toml")])
    assert result.exit_code == 1


def test_unattended_harvest_writes_archive(tmp_path, monkeypatch, pdf_bytes):
    seed = "https://example.com/"
    fetcher = FakeFetcher(
        pages={
            seed: anchors("reports"),
            "https://example.com/reports": anchors("q1.pdf", "q2.pdf", "broken.pdf"),
        },
        documents={
            "https://example.com/q1.pdf": pdf_bytes,
            "https://example.com/q2.pdf": pdf_bytes,
            "https://example.com/broken.pdf": b"not a pdf",
        },
    )
    monkeypatch.setattr(orchestrator, "create_fetcher", lambda *args: fetcher)
    output = tmp_path / "bundle.zip"
    previews = tmp_path / "previews"

    result = runner.invoke(
        app, ["harvest", seed, "-N", "-o", str(output), "--previews-dir", str(previews)]
    )

    assert result.exit_code == 0, result.output
    with zipfile.ZipFile(output) as zf:
        assert sorted(zf.namelist()) == ["q1.pdf", "q2.pdf"]
    assert len(list(previews.glob("*.jpg"))) == 2


def test_unattended_harvest_requires_url():
    result = runner.invoke(app, ["harvest", "-N"])
    assert result.exit_code == 1


@pytest.mark.parametrize(
    "text, expected",
    [
        ("all", {0, 1, 2, 3}),
        ("none", set()),
        ("", set()),
        ("1-2, 4", {0, 1, 3}),
        ("3", {2}),
    ],
)
def test_parse_selection(text, expected):
    assert parse_selection(text, 4) == expected


@pytest.mark.parametrize("text", ["0", "5", "3-1", "x"])
def test_parse_selection_rejects_bad_input(text):
    with pytest.raises(ValueError):
        parse_selection(text, 4)
