"""
Tests for the whole-build stages: walker, index builder, CLI.

Each test lays out a small fake archive under tmp_path.
"""

import json
import logging
import os
import stat
from datetime import datetime
from pathlib import Path

import pytest

from archive_search.builder import IndexBuilder, sort_records
from archive_search.cli import main
from archive_search.config import BuildConfig
from archive_search.exceptions import IndexWriteError, WalkError
from archive_search.schemas import ContentType, Record
from archive_search.walker import url_for, walk

FILLER = "A quiet afternoon along the river with friends, coffee and long conversations."


def page(title: str, body: str, date: str = "") -> str:
    time_tag = f'<time datetime="{date}">{date}</time>' if date else ""
    return (f"<html><head><title>{title}</title></head>"
            f"<body><div id=\"content\">{time_tag}<p>{body}</p></div></body></html>")


def write(root: Path, relative: str, content) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def archive(tmp_path):
    """
    A site root with three indexable pages plus everything that must be
    skipped: assets, dotfiles, short pages, a binary file, non-HTML files.
    """
    tmp_path = tmp_path.resolve()
    write(tmp_path, "index.html", page("Home", FILLER, "2020-06-01T10:00:00Z"))
    write(tmp_path, "photos/beach.html", page("Beach", f"Sunset over the sea. {FILLER}", "2021-08-15"))
    write(tmp_path, "videos/clip.HTM", page("Clip", f"A status update without any date. {FILLER}"))
    write(tmp_path, "assets/template.html", page("Template", FILLER))
    write(tmp_path, ".cache/old.html", page("Old", FILLER))
    write(tmp_path, ".draft.html", page("Draft", FILLER))
    write(tmp_path, "short.html", page("Short", "too short"))
    write(tmp_path, "broken.html", b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + bytes(range(256)))
    write(tmp_path, "service-worker.js", "self.addEventListener('fetch', () => {});")
    write(tmp_path, "notes.txt", FILLER)
    return tmp_path


# --- Walker ---

def test_walk_filters_candidates(archive):
    found = walk(BuildConfig(root=archive))
    urls = [url_for(p, archive) for p in found]

    assert sorted(urls) == sorted([
        "/index.html", "/photos/beach.html", "/videos/clip.HTM", "/short.html", "/broken.html",
    ])
    assert all(p.is_absolute() for p in found)


def test_walk_is_deterministic(archive):
    config = BuildConfig(root=archive)
    assert walk(config) == walk(config)


def test_walk_missing_root_is_fatal(tmp_path):
    with pytest.raises(WalkError):
        walk(BuildConfig(root=tmp_path / "missing"))


def test_url_for_uses_forward_slashes(tmp_path):
    assert url_for(tmp_path / "a" / "b.html", tmp_path) == "/a/b.html"


# --- Builder ---

def test_build_artifact_invariants(archive):
    artifact = IndexBuilder(BuildConfig(root=archive)).build()

    assert artifact.count == len(artifact.items) == 3
    assert [i.url for i in artifact.items] == ["/photos/beach.html", "/index.html", "/videos/clip.HTM"]

    for item in artifact.items:
        assert len(item.text) > 40
        if item.date is not None:
            parsed = datetime.fromisoformat(item.date.replace("Z", "+00:00"))
            assert item.year == parsed.year
        else:
            assert item.year is None

    types = {i.url: i.type for i in artifact.items}
    assert types["/photos/beach.html"] == ContentType.PHOTO
    assert types["/videos/clip.HTM"] == ContentType.VIDEO


def test_build_sort_order(archive):
    items = IndexBuilder(BuildConfig(root=archive)).build().items
    keys = [i.date or "" for i in items]
    assert all(a >= b for a, b in zip(keys, keys[1:]))
    assert items[-1].date is None


def test_build_skips_binary_with_warning(archive, caplog):
    builder = IndexBuilder(BuildConfig(root=archive))
    with caplog.at_level(logging.WARNING):
        artifact = builder.build()

    assert "broken.html" in caplog.text
    assert builder.stats.skipped_errors == [str(archive / "broken.html")]
    assert builder.stats.dropped_short == 1
    assert artifact.count == 3


def test_build_is_idempotent(archive):
    config = BuildConfig(root=archive)
    first, path = IndexBuilder(config).run()
    second, _ = IndexBuilder(config).run()

    assert [i.model_dump() for i in first.items] == [i.model_dump() for i in second.items]
    assert path == archive / "data" / "search-index.json"


def test_write_produces_pretty_json(archive):
    builder = IndexBuilder(BuildConfig(root=archive))
    artifact, path = builder.run()

    raw = path.read_text(encoding="utf-8")
    data = json.loads(raw)

    assert raw.startswith("{\n  ")
    assert set(data) == {"generatedAt", "count", "items"}
    assert data["count"] == len(data["items"]) == artifact.count
    assert data["items"][-1]["date"] is None
    # No leftover temp files next to the artifact
    assert [p.name for p in path.parent.iterdir()] == ["search-index.json"]


def test_write_failure_is_fatal(tmp_path):
    write(tmp_path, "index.html", page("Home", FILLER))
    # A regular file where the output directory should go
    write(tmp_path, "data", "not a directory")

    builder = IndexBuilder(BuildConfig(root=tmp_path))
    with pytest.raises(IndexWriteError):
        builder.run()


def test_build_skips_undecodable_file_name(tmp_path):
    """A file name that is not valid UTF-8 is skipped; the rest of the site is still indexed."""
    root = tmp_path.resolve()
    write(root, "ok.html", page("Ok", FILLER))
    try:
        with open(os.path.join(os.fsencode(root), b"caf\xe9.html"), "wb") as fh:
            fh.write(page("Cafe", FILLER).encode("utf-8"))
    except OSError:
        pytest.skip("filesystem rejects non-UTF-8 file names")

    builder = IndexBuilder(BuildConfig(root=root))
    artifact, path = builder.run()

    assert [i.url for i in artifact.items] == ["/ok.html"]
    assert len(builder.stats.skipped_errors) == 1
    assert json.loads(path.read_text(encoding="utf-8"))["count"] == 1
    assert [p.name for p in path.parent.iterdir()] == ["search-index.json"]


def test_write_failure_leaves_no_temp_file(archive, monkeypatch):
    def refuse(src, dst):
        raise PermissionError("read-only target")

    monkeypatch.setattr(os, "replace", refuse)
    builder = IndexBuilder(BuildConfig(root=archive))

    with pytest.raises(IndexWriteError):
        builder.run()
    assert list((archive / "data").iterdir()) == []


@pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
def test_written_index_is_world_readable(archive):
    old_umask = os.umask(0o022)
    try:
        _, path = IndexBuilder(BuildConfig(root=archive)).run()
    finally:
        os.umask(old_umask)
    assert stat.S_IMODE(path.stat().st_mode) == 0o644


def test_build_indexes_utf16_page(tmp_path):
    root = tmp_path.resolve()
    write(root, "u16.html", f"<html><body><main>{FILLER}</main></body></html>".encode("utf-16"))

    builder = IndexBuilder(BuildConfig(root=root))
    artifact = builder.build()

    assert [i.url for i in artifact.items] == ["/u16.html"]
    assert artifact.items[0].text == FILLER
    assert builder.stats.skipped_errors == []


def test_min_text_length_is_configurable(archive):
    artifact = IndexBuilder(BuildConfig(root=archive, min_text_length=5)).build()
    assert "/short.html" in [i.url for i in artifact.items]


def test_sort_records_puts_dateless_last():
    def rec(url, date):
        return Record(id=url, url=url, text="x", date=date, year=int(date[:4]) if date else None)

    ordered = sort_records([
        rec("/a", None),
        rec("/b", "2019-01-01T00:00:00.000Z"),
        rec("/c", "2021-01-01T00:00:00.000Z"),
        rec("/d", None),
    ])
    assert [r.url for r in ordered] == ["/c", "/b", "/a", "/d"]


# --- CLI ---

def test_cli_builds_index(archive, capsys):
    assert main([str(archive)]) == 0

    out = capsys.readouterr().out
    assert "search-index.json" in out
    assert "3 items" in out
    assert (archive / "data" / "search-index.json").exists()


def test_cli_defaults_to_cwd(archive, capsys, monkeypatch):
    monkeypatch.chdir(archive)
    assert main([]) == 0
    assert (archive / "data" / "search-index.json").exists()


def test_cli_fatal_walk_error(tmp_path, capsys):
    assert main([str(tmp_path / "missing")]) == 1
    assert "Error" in capsys.readouterr().err


def test_cli_rejects_bad_min_text_length(archive, capsys, monkeypatch):
    monkeypatch.setenv("ARCHIVE_SEARCH_MIN_TEXT_LENGTH", "lots")
    assert main([str(archive)]) == 1

    err = capsys.readouterr().err
    assert err.startswith("Error:")
    assert "Traceback" not in err
    assert not (archive / "data").exists()


def test_cli_rejects_unopenable_log_file(archive, capsys, monkeypatch):
    monkeypatch.setenv("ARCHIVE_SEARCH_LOG_FILE", str(archive / "missing-dir" / "build.log"))
    assert main([str(archive)]) == 1

    err = capsys.readouterr().err
    assert err.startswith("Error:")
    assert not (archive / "data").exists()
