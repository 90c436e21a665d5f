# =============================================================================
# ONEPOINT-SITE Shared Helpers
# =============================================================================
"""
Filesystem layout and JSON helpers shared by every tool.
"""

from sitepipe.common.files import (
    append_jsonl,
    find_html_files,
    format_bytes,
    get_utc_now,
    load_json,
    load_json_required,
    utc_iso,
    write_json,
)
from sitepipe.common.layout import PROJECT_ROOT, SiteLayout

__all__ = [
    "PROJECT_ROOT",
    "SiteLayout",
    "append_jsonl",
    "find_html_files",
    "format_bytes",
    "get_utc_now",
    "load_json",
    "load_json_required",
    "utc_iso",
    "write_json",
]
