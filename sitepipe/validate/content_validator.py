#!/usr/bin/env python3
"""
Content Validator

READ-ONLY checks of every public/**/*.html page for structure, SEO,
accessibility, content consistency and link hygiene.

Errors fail the run (exit 1); warnings are reported only.

Output:
    content/validation/validation-report.json
    content/validation/validation-report.md

Usage:
    python -m sitepipe.validate.content_validator
    python -m sitepipe.validate.content_validator --env production
"""

import argparse
import re
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from sitepipe.common.files import find_html_files, load_json, utc_iso, write_json
from sitepipe.common.layout import SiteLayout
from sitepipe.config.config_loader import ConfigLoader, load_env

# =============================================================================
# CONFIGURATION
# =============================================================================

REQUIRED_ELEMENTS = ["title", "meta[charset]", 'meta[name="viewport"]']
OPEN_GRAPH_TAGS = [("og:title", "title"), ("og:description", "description"), ("og:url", "URL")]
LABELLED_INPUTS = 'input[type="text"], input[type="email"], input[type="tel"], textarea, select'

DEFAULT_SEO_LIMITS = {
    "titleMinLength": 30,
    "titleMaxLength": 60,
    "descriptionMinLength": 120,
    "descriptionMaxLength": 160,
}

# Former company name; must not appear anywhere on the site
LEGACY_BRAND_NAMES = ["Bayleaf"]

# Leftovers from an HTTrack mirror of the site
HTTRACK_PATTERNS = [
    re.compile(r"HTTrack", re.IGNORECASE),
    re.compile(r"Mirror and index made by", re.IGNORECASE),
    re.compile(r"<!-- Mirrored from", re.IGNORECASE),
    re.compile(r"hts-cache", re.IGNORECASE),
]

REPORT_JSON = "validation-report.json"
REPORT_MD = "validation-report.md"


def phone_pattern(phone: str) -> re.Pattern:
    """Match a phone number regardless of spacing: '+91 8595378782' ~ '+918595378782'."""
    digits = [c for c in phone if not c.isspace()]
    return re.compile(r"\s*".join(re.escape(c) for c in digits))


def site_domain(base_url: str) -> str:
    host = urlparse(base_url).netloc
    return host[4:] if host.startswith("www.") else host


# =============================================================================
# VALIDATOR
# =============================================================================


class ContentValidator:
    """Collects errors and warnings for the HTML pages under public/."""

    def __init__(self, layout: SiteLayout = None, config: Optional[ConfigLoader] = None):
        self.layout = layout or SiteLayout()
        self.errors = []
        self.warnings = []
        self.files_checked = 0

        self.seo_limits = dict(DEFAULT_SEO_LIMITS)
        if config:
            self.seo_limits.update({k: v for k, v in config.section("seo").items() if k in DEFAULT_SEO_LIMITS})

        self.site_config = self.load_site_config()
        site = self.site_config.get("site", {})
        contact = self.site_config.get("contact", {})
        self.company_name = site.get("name", "")
        self.domain = site_domain(site.get("baseUrl", ""))
        self.phone_re = phone_pattern(contact["phone"]) if contact.get("phone") else None
        self.email_re = re.compile(re.escape(contact["email"])) if contact.get("email") else None

    def load_site_config(self) -> dict:
        path = self.layout.data_dir / "site-config.json"
        try:
            config = load_json(path)
        except ValueError as e:
            self.errors.append(f"Failed to load site configuration: {e}")
            return {}
        if not config:
            self.errors.append(f"Failed to load site configuration: {path} not found")
        return config

    # -------------------------------------------------------------------------
    # Per-file validation
    # -------------------------------------------------------------------------

    def validate_html(self, file_path: Path):
        label = self.layout.relative(file_path)
        if file_path.is_relative_to(self.layout.public_dir):
            label = file_path.relative_to(self.layout.public_dir).as_posix()
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self.errors.append(f"Error validating {label}: {e}")
            return

        soup = BeautifulSoup(content, "html.parser")
        self.files_checked += 1

        self.validate_basic_structure(soup, label)
        self.validate_seo_elements(soup, label)
        self.validate_accessibility(soup, label, file_path.name)
        self.validate_content_consistency(content, label)
        self.validate_links(soup, label, file_path)

    def validate_basic_structure(self, soup: BeautifulSoup, label: str):
        for selector in REQUIRED_ELEMENTS:
            if soup.select_one(selector) is None:
                self.errors.append(f"{label}: Missing required element: {selector}")

        previous_level = 0
        for heading in soup.find_all(re.compile(r"^h[1-6]$")):
            level = int(heading.name[1])
            if level > previous_level + 1:
                self.warnings.append(f"{label}: Heading hierarchy skip from h{previous_level} to h{level}")
            previous_level = level

        h1_count = len(soup.find_all("h1"))
        if h1_count == 0:
            self.errors.append(f"{label}: Missing H1 element")
        elif h1_count > 1:
            self.warnings.append(f"{label}: Multiple H1 elements found ({h1_count})")

    def validate_seo_elements(self, soup: BeautifulSoup, label: str):
        title = soup.select_one("title")
        if title is not None:
            title_text = title.get_text().strip()
            if len(title_text) < self.seo_limits["titleMinLength"]:
                self.warnings.append(f'{label}: Title too short ({len(title_text)} chars): "{title_text}"')
            elif len(title_text) > self.seo_limits["titleMaxLength"]:
                self.warnings.append(f'{label}: Title too long ({len(title_text)} chars): "{title_text}"')
            if self.company_name and self.company_name not in title_text:
                self.warnings.append(f"{label}: Title doesn't contain company name")

        description = soup.select_one('meta[name="description"]')
        if description is None:
            self.errors.append(f"{label}: Missing meta description")
        else:
            desc_text = (description.get("content") or "").strip()
            if len(desc_text) < self.seo_limits["descriptionMinLength"]:
                self.warnings.append(f"{label}: Meta description too short ({len(desc_text)} chars)")
            elif len(desc_text) > self.seo_limits["descriptionMaxLength"]:
                self.warnings.append(f"{label}: Meta description too long ({len(desc_text)} chars)")

        if soup.select_one('link[rel="canonical"]') is None:
            self.warnings.append(f"{label}: Missing canonical URL")

        for prop, name in OPEN_GRAPH_TAGS:
            if soup.find("meta", attrs={"property": prop}) is None:
                self.warnings.append(f"{label}: Missing Open Graph {name}")

    def validate_accessibility(self, soup: BeautifulSoup, label: str, file_name: str):
        for index, img in enumerate(soup.find_all("img"), start=1):
            if not img.has_attr("alt"):
                self.errors.append(f"{label}: Image {index} missing alt attribute")
            elif not img["alt"].strip():
                self.warnings.append(f"{label}: Image {index} has empty alt attribute")

        for index, field in enumerate(soup.select(LABELLED_INPUTS), start=1):
            field_id = field.get("id")
            if not field_id:
                self.warnings.append(f"{label}: Input {index} missing id attribute")
            elif soup.find("label", attrs={"for": field_id}) is None:
                self.warnings.append(f"{label}: Input {index} missing associated label")

        if file_name == "index.html" and not soup.select('a[href^="#"]'):
            self.warnings.append(f"{label}: Consider adding skip navigation links for accessibility")

    def validate_content_consistency(self, content: str, label: str):
        for legacy_name in LEGACY_BRAND_NAMES:
            if legacy_name in content:
                self.errors.append(f'{label}: Contains legacy "{legacy_name}" reference')

        if self.phone_re and ("phone" in content or "contact" in content):
            if not self.phone_re.search(content):
                self.warnings.append(f"{label}: Phone number format inconsistent or missing")

        if self.email_re and ("email" in content or "contact" in content):
            if not self.email_re.search(content):
                self.warnings.append(f"{label}: Email format inconsistent or missing")

        for pattern in HTTRACK_PATTERNS:
            if pattern.search(content):
                self.errors.append(f"{label}: Contains HTTrack artifacts")

    def validate_links(self, soup: BeautifulSoup, label: str, file_path: Path):
        for index, link in enumerate(soup.find_all("a", href=True), start=1):
            href = link["href"].strip()
            if not href:
                self.warnings.append(f"{label}: Link {index} has empty href")
                continue

            if "hts-cache" in href or ".hts" in href:
                self.errors.append(f"{label}: Link {index} contains HTTrack artifacts: {href}")

            if href.startswith("http"):
                if self.domain and self.domain in href:
                    continue
                if link.get("target") != "_blank":
                    self.warnings.append(f"{label}: External link {index} should open in new tab: {href}")
                if "noopener" not in (link.get("rel") or []):
                    self.warnings.append(f"{label}: External link {index} missing security attributes: {href}")
                continue

            clean = href.split("?")[0].split("#")[0]
            if clean.endswith(".html"):
                if clean.startswith("/"):
                    target = self.layout.public_dir / clean.lstrip("/")
                else:
                    target = file_path.parent / clean
                if not target.exists():
                    self.errors.append(f"{label}: Broken internal link: {href}")

    # -------------------------------------------------------------------------
    # Run + report
    # -------------------------------------------------------------------------

    def validate_all_files(self) -> dict:
        for file_path in find_html_files(self.layout.public_dir):
            print(f"  Validating: {self.layout.relative(file_path)}")
            self.validate_html(file_path)
        return self.build_report()

    def build_report(self) -> dict:
        return {
            "timestamp": utc_iso(),
            "summary": {
                "files": self.files_checked,
                "errors": len(self.errors),
                "warnings": len(self.warnings),
                "status": "PASS" if not self.errors else "FAIL",
            },
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }

    def write_report(self, report: dict) -> tuple:
        json_path = self.layout.validation_dir / REPORT_JSON
        md_path = self.layout.validation_dir / REPORT_MD
        write_json(json_path, report)
        md_path.write_text(render_markdown(report), encoding="utf-8")
        return json_path, md_path


def render_markdown(report: dict) -> str:
    """Markdown rendering of a validation report."""
    summary = report.get("summary", {})
    lines = []
    lines.append("# Content Validation Report")
    lines.append("")
    lines.append(f"**Generated:** {report.get('timestamp')}")
    lines.append("")
    lines.append("| Field | Value |")
    lines.append("|-------|-------|")
    lines.append(f"| Status | `{summary.get('status')}` |")
    lines.append(f"| Files | {summary.get('files', 0)} |")
    lines.append(f"| Errors | {summary.get('errors', 0)} |")
    lines.append(f"| Warnings | {summary.get('warnings', 0)} |")
    lines.append("")

    for title, key in (("Errors", "errors"), ("Warnings", "warnings")):
        lines.append(f"## {title}")
        lines.append("")
        items = report.get(key, [])
        if items:
            lines.extend(f"- {item}" for item in items)
        else:
            lines.append(f"✓ No {key}")
        lines.append("")

    return "\n".join(lines)


# =============================================================================
# CLI
# =============================================================================


def main(argv=None):
    parser = argparse.ArgumentParser(description="Validate website content")
    parser.add_argument("--env", help="Environment config to use (default: SITE_ENV or development)")
    args = parser.parse_args(argv)
    load_env()

    print("=" * 70)
    print("CONTENT VALIDATION")
    print("=" * 70)
    print()

    try:
        config = ConfigLoader(args.env)
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    validator = ContentValidator(SiteLayout.from_env(), config)
    report = validator.validate_all_files()
    json_path, md_path = validator.write_report(report)

    print()
    print("=" * 70)
    print("VALIDATION REPORT")
    print("=" * 70)
    summary = report["summary"]
    print(f"Files checked: {summary['files']}")
    print(f"Status:        {summary['status']}")

    if not report["errors"] and not report["warnings"]:
        print("  ✓ All content validation checks passed")

    if report["errors"]:
        print()
        print(f"✗ Errors ({len(report['errors'])}):")
        for error in report["errors"]:
            print(f"  • {error}")

    if report["warnings"]:
        print()
        print(f"⚠ Warnings ({len(report['warnings'])}):")
        for warning in report["warnings"]:
            print(f"  • {warning}")

    print()
    print(f"Report files: {json_path}, {md_path}")

    if report["errors"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
