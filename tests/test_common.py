import json
from datetime import datetime, timezone

import pytest

from sitepipe.common.files import (
    append_jsonl,
    find_html_files,
    format_bytes,
    load_json,
    load_json_required,
    utc_iso,
    write_json,
)
from sitepipe.common.layout import SiteLayout


# ----------------------------
# format_bytes / utc_iso
# ----------------------------

@pytest.mark.parametrize(
    "num_bytes, expected",
    [
        (0, "0 Bytes"),
        (500, "500 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (1048576, "1 MB"),
    ],
)
def test_format_bytes(num_bytes, expected):
    assert format_bytes(num_bytes) == expected


def test_utc_iso_uses_milliseconds_and_z_suffix():
    moment = datetime(2024, 10, 31, 10, 30, 0, tzinfo=timezone.utc)
    assert utc_iso(moment) == "2024-10-31T10:30:00.000Z"


# ----------------------------
# JSON helpers
# ----------------------------

def test_load_json_missing_returns_empty(tmp_path):
    assert load_json(tmp_path / "nope.json") == {}


def test_load_json_required_missing_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_json_required(tmp_path / "nope.json")


def test_write_json_creates_parents(tmp_path):
    path = tmp_path / "a" / "b" / "out.json"
    write_json(path, {"name": "Stone OnePoint Solutions"})
    assert json.loads(path.read_text(encoding="utf-8")) == {"name": "Stone OnePoint Solutions"}


def test_append_jsonl_appends_lines(tmp_path):
    path = tmp_path / "ledger.jsonl"
    append_jsonl(path, {"n": 1})
    append_jsonl(path, {"n": 2})
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["n"] for line in lines] == [1, 2]


def test_find_html_files_sorted_and_recursive(tmp_path):
    (tmp_path / "services").mkdir()
    (tmp_path / "services" / "b.html").write_text("", encoding="utf-8")
    (tmp_path / "a.html").write_text("", encoding="utf-8")
    (tmp_path / "style.css").write_text("", encoding="utf-8")

    found = [p.relative_to(tmp_path).as_posix() for p in find_html_files(tmp_path)]
    assert found == ["a.html", "services/b.html"]
    assert find_html_files(tmp_path / "missing") == []


# ----------------------------
# SiteLayout
# ----------------------------

def test_layout_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("SITE_ROOT", str(tmp_path))
    layout = SiteLayout.from_env()
    assert layout.root == tmp_path
    assert layout.backups_dir == tmp_path / "content" / "backups"
    assert layout.relative(layout.public_dir / "services" / "x.html") == "public/services/x.html"
