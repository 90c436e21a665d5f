import json
import os
from datetime import datetime, timedelta, timezone

import pytest

from sitepipe.common.layout import SiteLayout
from sitepipe.config.config_loader import ConfigLoader
from sitepipe.monitor.freshness_monitor import FreshnessMonitor, analyze_content, main, seasonal_issues, word_count

NOW = datetime(2026, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def _age(path, days, now=NOW):
    stamp = (now - timedelta(days=days)).timestamp()
    os.utime(path, (stamp, stamp))
    return path


@pytest.fixture()
def public_only(tmp_path):
    """Site root with public/ pages and no data files."""
    layout = SiteLayout(tmp_path / "site")
    layout.public_dir.mkdir(parents=True)
    return layout


def _page(layout, name, html, days):
    path = layout.public_dir / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(html, encoding="utf-8")
    return _age(path, days)


# ----------------------------
# Content analysis
# ----------------------------

def test_analyze_content_flags_and_score():
    html = """<html><head><title>Careers</title>
    <meta name="description" content="Open roles">
    <meta name="last-modified" content="2020-01-01"></head>
    <body>Copyright © 2020 Bayleaf. Call our phone line.</body></html>"""

    info = analyze_content(html, current_year=2026)

    assert info["title"] == "Careers"
    assert info["metaDescription"] == "Open roles"
    assert info["lastModifiedMeta"] == "2020-01-01"
    assert info["hasDateReferences"] is True
    assert info["hasContactInfo"] is True
    assert info["hasServiceInfo"] is False
    assert info["hasPricing"] is False
    assert info["contentScore"] == 5
    assert info["outdatedPatterns"] == ['Contains legacy "Bayleaf" reference', "Outdated copyright year: 2020"]


def test_analyze_content_old_tech_and_pricing():
    html = "<p>Best viewed in Internet Explorer with Flash Player. Uses jQuery 1.4. Fees from ₹500. Our services.</p>"
    info = analyze_content(html, current_year=2026)

    assert info["title"] == "No title"
    assert info["lastModifiedMeta"] is None
    assert info["hasPricing"] is True
    assert info["hasServiceInfo"] is True
    assert info["outdatedPatterns"] == [
        "References Internet Explorer",
        "References Flash Player",
        "Uses old jQuery version",
    ]


def test_current_copyright_is_not_outdated():
    assert analyze_content("<p>Copyright 2026</p>", current_year=2026)["outdatedPatterns"] == []


def test_word_count_strips_tags():
    assert word_count("<p>Hello <b>world</b></p> again") == 3


def test_seasonal_issues_outside_relevant_months():
    assert seasonal_issues("Christmas hiring drive", month=6) == ["Christmas content may be out of season"]
    assert seasonal_issues("Christmas hiring drive", month=12) == []
    assert seasonal_issues("Summer internships", month=5) == []


# ----------------------------
# Bucketing
# ----------------------------

def test_files_bucketed_by_age(public_only):
    _page(public_only, "old.html", "<h1>Old</h1>", 400)
    _page(public_only, "review.html", "<h1>Review</h1>", 200)
    _page(public_only, "services/notice.html", "<h1>Notice</h1>", 100)
    _page(public_only, "fresh.html", "<h1>Fresh</h1>", 10)

    monitor = FreshnessMonitor(public_only, now=NOW)
    report = monitor.monitor()

    assert report["summary"] == {"totalFiles": 4, "critical": 1, "warning": 1, "notice": 1, "fresh": 1}
    assert report["results"]["critical"][0]["file"] == "public/old.html"
    assert report["results"]["critical"][0]["daysSinceModified"] == 400
    assert report["results"]["notice"][0]["file"] == "public/services/notice.html"


def test_threshold_boundary_is_inclusive(public_only):
    _page(public_only, "edge.html", "<h1>Edge</h1>", 365)
    report = FreshnessMonitor(public_only, now=NOW).monitor()
    assert report["summary"]["critical"] == 1


def test_partial_days_round_up(public_only):
    path = _page(public_only, "a.html", "<h1>A</h1>", 0)
    _age(path, 0, now=NOW - timedelta(hours=1))
    monitor = FreshnessMonitor(public_only, now=NOW)
    assert monitor.monitor()["results"]["fresh"][0]["daysSinceModified"] == 1


def test_thresholds_from_config(public_only, tmp_path):
    config_dir = tmp_path / "envs"
    config_dir.mkdir()
    (config_dir / "strict.json").write_text(
        json.dumps({"content": {"freshnessThresholds": {"critical": 30}}}), encoding="utf-8"
    )
    _page(public_only, "month.html", "<h1>Month</h1>", 40)

    monitor = FreshnessMonitor(public_only, ConfigLoader("strict", config_dir=config_dir), now=NOW)

    assert monitor.thresholds == {"critical": 30, "warning": 180, "notice": 90}
    assert monitor.monitor()["summary"]["critical"] == 1


def test_data_files_are_checked(site):
    for name in ("site-config.json", "services.json", "pages.json"):
        _age(site.data_dir / name, 200)

    report = FreshnessMonitor(site, now=NOW).monitor()

    files = [info["file"] for info in report["results"]["warning"]]
    assert files == ["content/data/site-config.json", "content/data/services.json", "content/data/pages.json"]


def test_seasonal_warnings_only_for_critical_pages(public_only):
    _page(public_only, "old.html", "<h1>Christmas openings</h1>", 400)
    _page(public_only, "recent.html", "<h1>Christmas openings</h1>", 10)

    report = FreshnessMonitor(public_only, now=NOW).monitor()

    assert report["results"]["critical"][0]["seasonalIssues"] == ["Christmas content may be out of season"]
    assert "seasonalIssues" not in report["results"]["fresh"][0]


# ----------------------------
# Reports
# ----------------------------

def test_reports_and_schedule_written(public_only):
    _page(public_only, "old.html", "<p>Copyright 2019</p>", 400)
    _page(public_only, "review.html", "<h1>Review</h1>", 200)
    _page(public_only, "notice.html", "<h1>Notice</h1>", 100)

    monitor = FreshnessMonitor(public_only, now=NOW)
    report_path, schedule_path = monitor.write_reports(monitor.monitor())

    report = json.loads(report_path.read_text(encoding="utf-8"))
    schedule = json.loads(schedule_path.read_text(encoding="utf-8"))
    assert report["thresholds"]["critical"] == 365
    assert schedule["immediate"] == [{
        "file": "public/old.html",
        "priority": "High",
        "reason": "400 days old",
        "issues": ["Outdated copyright year: 2019"],
    }]
    assert schedule["thisMonth"][0]["priority"] == "Medium"
    assert schedule["nextMonth"][0] == {"file": "public/notice.html", "priority": "Low", "reason": "100 days old"}


def test_cli_strict_exits_on_critical(public_only, monkeypatch):
    monkeypatch.setenv("SITE_ROOT", str(public_only.root))
    path = public_only.public_dir / "old.html"
    path.write_text("<h1>Old</h1>", encoding="utf-8")
    _age(path, 400, now=datetime.now(timezone.utc))

    main([])
    with pytest.raises(SystemExit) as exc:
        main(["--strict"])

    assert exc.value.code == 1
    assert (public_only.validation_dir / "update-schedule.json").exists()
