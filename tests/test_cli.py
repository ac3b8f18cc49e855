"""Tests for the command-line entry point and config loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import write
from sitemake.cli import main
from sitemake.config import load_config, resolve_template, resolve_workers
from sitemake.errors import ConfigurationError


@pytest.fixture
def project(tmp_path: Path, site_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    write(
        tmp_path / "site.toml",
        'content = "site"\n'
        'output = "dist"\n'
        'site_url = "https://blog.example.org/"\n'
        'site_title = "Example Blog"\n'
        "build_workers = 2\n",
    )
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_build_and_clean(project: Path, capsys: pytest.CaptureFixture) -> None:
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "Rendered 11, unchanged 0, up to date 0." in out
    assert "Build completed in" in out
    feed = (project / "dist" / "feed.xml").read_text(encoding="utf-8")
    assert "<id>https://blog.example.org/feed.xml</id>" in feed

    assert main(["build"]) == 0
    assert "Rendered 0, unchanged 3, up to date 8." in capsys.readouterr().out

    assert main(["clean"]) == 0
    assert not (project / "dist").exists()


def test_verbose_lists_targets(project: Path, capsys: pytest.CaptureFixture) -> None:
    assert main(["build", "--verbose"]) == 0
    out = capsys.readouterr().out
    assert "post: " in out
    assert "feed: " in out


def test_flags_override_config(project: Path) -> None:
    assert main(["--output", "public", "--site-title", "Other"]) == 0
    index = (project / "public" / "index.html").read_text(encoding="utf-8")
    assert "<h1>Other</h1>" in index


def test_error_exit_names_path(project: Path, capsys: pytest.CaptureFixture) -> None:
    write(project / "site" / "2020/02/02/broken.md", "---\ntitle: B\nupdated: later\n---\nx\n")
    assert main([]) == 1
    err = capsys.readouterr().err
    assert err.startswith("error: ")
    assert "broken.md" in err
    assert not (project / "dist").exists()


def test_undecodable_source_names_path(project: Path, capsys: pytest.CaptureFixture) -> None:
    source = project / "site" / "2020/01/01/bad.md"
    source.write_bytes(b"# Title\n\xff\xfe broken\n")
    assert main(["build"]) == 1
    err = capsys.readouterr().err
    assert err.startswith("error: ")
    assert "bad.md" in err
    assert "UTF-8" in err


def test_missing_content_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    assert main(["--content", "nowhere"]) == 1
    assert "content directory not found" in capsys.readouterr().err


def test_invalid_config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    write(tmp_path / "site.json", "{not json")
    monkeypatch.chdir(tmp_path)
    assert main(["--config", "site.json"]) == 1
    assert "invalid JSON" in capsys.readouterr().err


class TestConfig:
    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "site.toml") == {}

    def test_formats(self, tmp_path: Path) -> None:
        toml_path = write(tmp_path / "a.toml", 'site_title = "T"\n')
        yaml_path = write(tmp_path / "a.yaml", "site_title: T\n")
        json_path = write(tmp_path / "a.json", '{"site_title": "T"}')
        empty_yaml = write(tmp_path / "b.yml", "")
        assert load_config(toml_path) == load_config(yaml_path) == load_config(json_path) == {"site_title": "T"}
        assert load_config(empty_yaml) == {}

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(write(tmp_path / "a.yaml", "- a\n- b\n"))

    def test_invalid_toml(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="invalid TOML"):
            load_config(write(tmp_path / "a.toml", "title = \n"))

    def test_template_resolution(self, tmp_path: Path) -> None:
        config_path = tmp_path / "site.toml"
        assert resolve_template("templates/master.html", config_path) is None
        custom = write(tmp_path / "templates" / "master.html", "x")
        assert resolve_template("templates/master.html", config_path) == custom
        with pytest.raises(ConfigurationError, match="template not found"):
            resolve_template("other.html", config_path)

    def test_workers(self) -> None:
        assert resolve_workers(0, 8) == 8
        assert resolve_workers(0, None) == 1
        assert resolve_workers(100, 8) == 32
        assert resolve_workers(3, 8) == 3
