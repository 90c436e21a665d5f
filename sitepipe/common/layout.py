"""
Site directory layout.

    <root>/content/data         JSON data files
    <root>/content/templates    HTML templates
    <root>/content/backups      backup snapshots + versions.json
    <root>/content/validation   checker reports
    <root>/public               deployable site
"""

import os
from pathlib import Path

COMMON_DIR = Path(__file__).parent
PACKAGE_DIR = COMMON_DIR.parent
PROJECT_ROOT = PACKAGE_DIR.parent


class SiteLayout:
    """Resolved paths for one site root."""

    def __init__(self, root: Path = None):
        self.root = Path(root) if root else PROJECT_ROOT
        self.content_dir = self.root / "content"
        self.data_dir = self.content_dir / "data"
        self.templates_dir = self.content_dir / "templates"
        self.backups_dir = self.content_dir / "backups"
        self.validation_dir = self.content_dir / "validation"
        self.public_dir = self.root / "public"

    @classmethod
    def from_env(cls) -> "SiteLayout":
        """Use SITE_ROOT if set, else the repository root."""
        root = os.getenv("SITE_ROOT")
        return cls(Path(root) if root else None)

    def relative(self, path: Path) -> str:
        """Path relative to the site root, with / separators."""
        try:
            return Path(path).relative_to(self.root).as_posix()
        except ValueError:
            return str(path)

    def __repr__(self):
        return f"SiteLayout(root={str(self.root)!r})"
