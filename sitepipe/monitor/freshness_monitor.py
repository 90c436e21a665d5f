#!/usr/bin/env python3
"""
Content Freshness Monitor

Buckets every public HTML page and every content data file by age (days since
last modification) and flags content that usually goes stale: dates, contact
details, service descriptions, pricing, legacy brand names and old tech.

Buckets (days, configurable via content.freshnessThresholds):
    critical >= 365   update immediately
    warning  >= 180   review this month
    notice   >= 90    review next month
    fresh             everything else

Output:
    content/validation/freshness-report.json
    content/validation/update-schedule.json

Usage:
    python -m sitepipe.monitor.freshness_monitor
    python -m sitepipe.monitor.freshness_monitor --strict   # exit 1 on critical files
"""

import argparse
import math
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from bs4 import BeautifulSoup

from sitepipe.common.files import find_html_files, get_utc_now, utc_iso, write_json
from sitepipe.common.layout import SiteLayout
from sitepipe.config.config_loader import ConfigLoader, load_env

# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_THRESHOLDS = {"critical": 365, "warning": 180, "notice": 90}
BUCKETS = ["critical", "warning", "notice", "fresh"]
DATA_FILES = ["site-config.json", "services.json", "pages.json"]

REPORT_JSON = "freshness-report.json"
SCHEDULE_JSON = "update-schedule.json"

DATE_PATTERNS = [
    re.compile(r"\b20\d{2}\b"),
    re.compile(
        r"\b(January|February|March|April|May|June|July|August|September|October|November|December)"
        r"\s+\d{1,2},?\s+20\d{2}\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b\d{1,2}/\d{1,2}/20\d{2}\b"),
    re.compile(r"\bcopyright\s+©?\s*20\d{2}", re.IGNORECASE),
]

CONTACT_PATTERNS = [
    re.compile(r"\+91\s*\d{10}"),
    re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b"),
    re.compile(r"@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"),
    re.compile(r"\baddress\b", re.IGNORECASE),
    re.compile(r"\bphone\b", re.IGNORECASE),
    re.compile(r"\bemail\b", re.IGNORECASE),
]

SERVICE_PATTERNS = [
    re.compile(r"\bservices?\b", re.IGNORECASE),
    re.compile(r"\bpricing\b", re.IGNORECASE),
    re.compile(r"\bpackages?\b", re.IGNORECASE),
    re.compile(r"\boffers?\b", re.IGNORECASE),
    re.compile(r"\bplans?\b", re.IGNORECASE),
]

PRICING_PATTERNS = [
    re.compile(r"\$\d+"),
    re.compile(r"₹\d+"),
    re.compile(r"\bprices?\b", re.IGNORECASE),
    re.compile(r"\bcosts?\b", re.IGNORECASE),
    re.compile(r"\bfees?\b", re.IGNORECASE),
    re.compile(r"\brates?\b", re.IGNORECASE),
]

# Weight of each flag in the content score (max 11)
SCORE_WEIGHTS = {
    "hasDateReferences": 3,
    "hasContactInfo": 2,
    "hasServiceInfo": 2,
    "hasPricing": 4,
}

LEGACY_BRAND_NAMES = ["Bayleaf"]
COPYRIGHT_PATTERN = re.compile(r"copyright\s+©?\s*(\d{4})", re.IGNORECASE)
OLD_TECH_PATTERNS = [
    (re.compile(r"internet explorer", re.IGNORECASE), "References Internet Explorer"),
    (re.compile(r"flash player", re.IGNORECASE), "References Flash Player"),
    (re.compile(r"jquery\s+1\.", re.IGNORECASE), "Uses old jQuery version"),
]

# (pattern, months in which the reference is expected, label)
SEASONAL_PATTERNS = [
    (re.compile(r"new year", re.IGNORECASE), [12, 1], "New Year content"),
    (re.compile(r"christmas", re.IGNORECASE), [11, 12], "Christmas content"),
    (re.compile(r"diwali", re.IGNORECASE), [10, 11], "Diwali content"),
    (re.compile(r"summer", re.IGNORECASE), [4, 5, 6], "Summer content"),
    (re.compile(r"winter", re.IGNORECASE), [11, 12, 1, 2], "Winter content"),
]

TAG_PATTERN = re.compile(r"<[^>]*>")


def any_match(patterns: list, content: str) -> bool:
    return any(pattern.search(content) for pattern in patterns)


def word_count(content: str) -> int:
    return len(TAG_PATTERN.sub(" ", content).split())


def find_outdated_patterns(content: str, current_year: int) -> list:
    issues = []
    for name in LEGACY_BRAND_NAMES:
        if name in content:
            issues.append(f'Contains legacy "{name}" reference')

    for match in COPYRIGHT_PATTERN.finditer(content):
        year = int(match.group(1))
        if year < current_year:
            issues.append(f"Outdated copyright year: {year}")

    for pattern, message in OLD_TECH_PATTERNS:
        if pattern.search(content):
            issues.append(message)
    return issues


def analyze_content(content: str, current_year: int) -> dict:
    """Metadata and staleness signals for one file's raw content."""
    soup = BeautifulSoup(content, "html.parser")

    title_tag = soup.find("title")
    title = title_tag.get_text() if title_tag and title_tag.get_text() else "No title"
    description = soup.find("meta", attrs={"name": "description"})
    last_modified = soup.find("meta", attrs={"name": "last-modified"})

    info = {
        "title": title,
        "metaDescription": description.get("content", "") if description else "",
        "lastModifiedMeta": last_modified.get("content") if last_modified else None,
        "hasDateReferences": any_match(DATE_PATTERNS, content),
        "hasContactInfo": any_match(CONTACT_PATTERNS, content),
        "hasServiceInfo": any_match(SERVICE_PATTERNS, content),
        "hasPricing": any_match(PRICING_PATTERNS, content),
    }
    info["contentScore"] = sum(weight for flag, weight in SCORE_WEIGHTS.items() if info[flag])
    info["outdatedPatterns"] = find_outdated_patterns(content, current_year)
    info["wordCount"] = word_count(content)
    return info


def seasonal_issues(content: str, month: int) -> list:
    return [
        f"{label} may be out of season"
        for pattern, months, label in SEASONAL_PATTERNS
        if pattern.search(content) and month not in months
    ]


# =============================================================================
# MONITOR
# =============================================================================


class FreshnessMonitor:
    def __init__(self, layout: SiteLayout = None, config: Optional[ConfigLoader] = None, now: datetime = None):
        self.layout = layout or SiteLayout()
        self.now = now or get_utc_now()

        thresholds = dict(DEFAULT_THRESHOLDS)
        if config:
            thresholds.update(config.get("content.freshnessThresholds", {}))
        self.thresholds = thresholds

        self.results = {bucket: [] for bucket in BUCKETS}
        self.errors = []

    def days_since(self, moment: datetime) -> int:
        """Whole days between moment and now, rounded up."""
        return math.ceil(abs((self.now - moment).total_seconds()) / 86400)

    def bucket_for(self, days: int) -> str:
        for bucket in ("critical", "warning", "notice"):
            if days >= self.thresholds[bucket]:
                return bucket
        return "fresh"

    def check_file(self, path: Path) -> Optional[dict]:
        """Analyse one file and file it under its age bucket."""
        try:
            stat = path.stat()
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self.errors.append(f"{self.layout.relative(path)}: {e}")
            print(f"  ✗ Error checking freshness for {path}: {e}")
            return None

        modified = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
        days = self.days_since(modified)
        info = {
            "file": self.layout.relative(path),
            "path": str(path),
            "lastModified": utc_iso(modified),
            "daysSinceModified": days,
            "size": stat.st_size,
        }
        info.update(analyze_content(content, self.now.year))

        bucket = self.bucket_for(days)
        self.results[bucket].append(info)
        return info

    def check_html_files(self):
        for path in find_html_files(self.layout.public_dir):
            self.check_file(path)

    def check_data_files(self):
        for name in DATA_FILES:
            path = self.layout.data_dir / name
            if path.exists():
                self.check_file(path)

    def check_seasonal_content(self):
        """Annotate critical HTML pages that mention an off-season event."""
        for info in self.results["critical"]:
            if not info["path"].endswith(".html"):
                continue
            try:
                content = Path(info["path"]).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                continue
            issues = seasonal_issues(content, self.now.month)
            if issues:
                info["seasonalIssues"] = issues

    def monitor(self) -> dict:
        self.check_html_files()
        self.check_data_files()
        self.check_seasonal_content()
        return self.build_report()

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    def build_report(self) -> dict:
        summary = {"totalFiles": sum(len(files) for files in self.results.values())}
        for bucket in BUCKETS:
            summary[bucket] = len(self.results[bucket])
        return {
            "timestamp": utc_iso(self.now),
            "summary": summary,
            "thresholds": self.thresholds,
            "results": self.results,
            "errors": self.errors,
        }

    def build_schedule(self) -> dict:
        return {
            "immediate": [
                {
                    "file": f["file"],
                    "priority": "High",
                    "reason": f"{f['daysSinceModified']} days old",
                    "issues": f["outdatedPatterns"],
                }
                for f in self.results["critical"]
            ],
            "thisMonth": [
                {"file": f["file"], "priority": "Medium", "reason": f"{f['daysSinceModified']} days old"}
                for f in self.results["warning"]
            ],
            "nextMonth": [
                {"file": f["file"], "priority": "Low", "reason": f"{f['daysSinceModified']} days old"}
                for f in self.results["notice"]
            ],
        }

    def write_reports(self, report: dict) -> tuple:
        report_path = self.layout.validation_dir / REPORT_JSON
        schedule_path = self.layout.validation_dir / SCHEDULE_JSON
        write_json(report_path, report)
        write_json(schedule_path, self.build_schedule())
        return report_path, schedule_path


# =============================================================================
# CLI
# =============================================================================


def print_report(report: dict):
    summary = report["summary"]
    results = report["results"]
    print()
    print("=" * 70)
    print("CONTENT FRESHNESS REPORT")
    print("=" * 70)
    print(f"Total files analyzed:   {summary['totalFiles']}")
    print(f"  Critical (>1 year):   {summary['critical']}")
    print(f"  Warning (>6 months):  {summary['warning']}")
    print(f"  Notice (>3 months):   {summary['notice']}")
    print(f"  Fresh (<3 months):    {summary['fresh']}")

    if results["critical"]:
        print()
        print(f"✗ Critical - Needs Immediate Update ({len(results['critical'])}):")
        for index, info in enumerate(results["critical"], start=1):
            print()
            print(f"{index}. {info['file']}")
            print(f"   Last modified: {info['lastModified'][:10]}")
            print(f"   Days old:      {info['daysSinceModified']}")
            print(f"   Content score: {info['contentScore']}/11")
            if info["outdatedPatterns"]:
                print(f"   Issues:        {', '.join(info['outdatedPatterns'])}")
            if info.get("seasonalIssues"):
                print(f"   Seasonal:      {', '.join(info['seasonalIssues'])}")

    if results["warning"]:
        print()
        print(f"⚠ Warning - Should Be Reviewed ({len(results['warning'])}):")
        for index, info in enumerate(results["warning"][:5], start=1):
            print(f"{index}. {info['file']} ({info['daysSinceModified']} days old)")
        if len(results["warning"]) > 5:
            print(f"   ... and {len(results['warning']) - 5} more")

    print()
    print("Recommendations:")
    if results["critical"]:
        print("  - Update critical files immediately")
        print("  - Review and update contact information")
        print("  - Check for outdated service descriptions")
    if results["warning"]:
        print("  - Schedule review of warning files")
        print("  - Update copyright years")
    print("  - Add \"last updated\" dates to pages")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Report content age and stale content signals")
    parser.add_argument("--env", help="Environment config to use (default: SITE_ENV or development)")
    parser.add_argument("--strict", action="store_true", help="Exit 1 when critical files exist")
    args = parser.parse_args(argv)
    load_env()

    print("=" * 70)
    print("CONTENT FRESHNESS MONITOR")
    print("=" * 70)
    print()

    try:
        config = ConfigLoader(args.env)
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    monitor = FreshnessMonitor(SiteLayout.from_env(), config)
    report = monitor.monitor()
    report_path, schedule_path = monitor.write_reports(report)
    print_report(report)
    print()
    print(f"Report saved to:          {report_path}")
    print(f"Update schedule saved to: {schedule_path}")

    if args.strict and report["summary"]["critical"] > 0:
        sys.exit(1)


if __name__ == "__main__":
    main()
