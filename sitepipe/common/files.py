"""
JSON, report and directory helpers used across the pipeline tools.
"""

import json
from datetime import datetime, timezone
from pathlib import Path


# =============================================================================
# TIME
# =============================================================================


def get_utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def utc_iso(dt: datetime = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    dt = dt or get_utc_now()
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# =============================================================================
# JSON
# =============================================================================


def load_json(path: Path) -> dict:
    """Load JSON file, return empty dict if not found."""
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_json_required(path: Path) -> dict:
    """Load JSON file, raise error if not found."""
    if not path.exists():
        raise FileNotFoundError(f"Required file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: Path, data):
    """Write data as pretty JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def append_jsonl(path: Path, entry: dict):
    """Append a single record to a JSONL ledger."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(entry, ensure_ascii=False) + "\n")


# =============================================================================
# FILES
# =============================================================================


def find_html_files(root: Path) -> list:
    """All *.html files under root, sorted by path. Empty if root is missing."""
    if not root.exists():
        return []
    return sorted(p for p in root.rglob("*.html") if p.is_file())


def format_bytes(num_bytes: int) -> str:
    """Human readable size: 0 Bytes, 512 Bytes, 1.5 KB, 2 MB."""
    if num_bytes == 0:
        return "0 Bytes"
    sizes = ["Bytes", "KB", "MB", "GB"]
    value = float(num_bytes)
    i = 0
    while value >= 1024 and i < len(sizes) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {sizes[i]}"
