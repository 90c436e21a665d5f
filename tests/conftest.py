import shutil
from pathlib import Path

import pytest

from sitepipe.common.layout import PROJECT_ROOT, SiteLayout
from sitepipe.config.config_loader import ConfigLoader

SAMPLE_CONTENT = PROJECT_ROOT / "content"


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    # Tests pick their environment explicitly
    for name in ("SITE_ENV", "SITE_ROOT", "GA_MEASUREMENT_ID", "STAGING_BASE_URL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def site(tmp_path: Path) -> SiteLayout:
    """
    Temporary site root seeded with the sample data files and templates
    shipped in content/, plus an empty public/ directory.
    """
    layout = SiteLayout(tmp_path / "site")
    shutil.copytree(SAMPLE_CONTENT / "data", layout.data_dir)
    shutil.copytree(SAMPLE_CONTENT / "templates", layout.templates_dir)
    layout.public_dir.mkdir(parents=True)
    return layout


@pytest.fixture()
def dev_config() -> ConfigLoader:
    return ConfigLoader("development")


@pytest.fixture()
def write_page(site):
    """Write an HTML page under the temporary public/ directory."""

    def _write(relative: str, html: str) -> Path:
        path = site.public_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(html, encoding="utf-8")
        return path

    return _write


