#!/usr/bin/env python3
"""
Link Checker

Validates every internal, external and anchor link (and image source) in
public/**/*.html.

    internal   file must exist under public/ (query + fragment stripped)
    external   HEAD request must answer 200-399 (redirects followed)
    anchor     #id must match an id/name in the same page

Output:
    content/validation/link-check-report.json

Usage:
    python -m sitepipe.validate.link_checker                   # full check
    python -m sitepipe.validate.link_checker --internal-only   # no network
    python -m sitepipe.validate.link_checker check https://example.com/
    python -m sitepipe.validate.link_checker check about.html
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

import requests
from bs4 import BeautifulSoup

from sitepipe.common.files import find_html_files, utc_iso, write_json
from sitepipe.common.layout import SiteLayout
from sitepipe.config.config_loader import ConfigLoader, load_env

# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_TIMEOUT_SECONDS = 10
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; LinkChecker/1.0)"
SKIPPED_SCHEMES = ("mailto:", "tel:", "javascript:")
# Servers that refuse HEAD get a GET instead
HEAD_NOT_ALLOWED = {405, 501}

REPORT_JSON = "link-check-report.json"


def is_external(url: str) -> bool:
    return url.startswith("http://") or url.startswith("https://")


class LinkCheckError(Exception):
    """An external URL did not answer with a 2xx/3xx status."""
    pass


# =============================================================================
# LINK CHECKER
# =============================================================================


class LinkChecker:
    """Checks links for a site layout; results accumulate across files."""

    def __init__(
        self,
        layout: SiteLayout = None,
        config: Optional[ConfigLoader] = None,
        check_external: bool = None,
        session: requests.Session = None,
    ):
        self.layout = layout or SiteLayout()
        link_config = config.get("content.linkCheck", {}) if config else {}
        self.timeout = link_config.get("timeoutSeconds", DEFAULT_TIMEOUT_SECONDS)
        self.user_agent = link_config.get("userAgent", DEFAULT_USER_AGENT)

        if check_external is None:
            check_external = config.is_feature_enabled("externalLinkCheck") if config else True
        self.check_external = check_external

        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": self.user_agent})

        self.results = {
            "internal": {"checked": 0, "broken": 0, "links": []},
            "external": {"checked": 0, "broken": 0, "links": [], "skipped": 0},
            "anchors": {"checked": 0, "broken": 0, "links": []},
        }
        self.checked_urls = {}  # url -> error message, or None when reachable

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------

    def request_url(self, url: str):
        """Raise LinkCheckError unless url answers 200-399."""
        try:
            response = self.session.head(url, timeout=self.timeout, allow_redirects=True)
            if response.status_code in HEAD_NOT_ALLOWED:
                response = self.session.get(url, timeout=self.timeout, allow_redirects=True, stream=True)
                response.close()
        except requests.Timeout:
            raise LinkCheckError("Request timeout")
        except requests.RequestException as e:
            raise LinkCheckError(str(e))

        if not 200 <= response.status_code < 400:
            raise LinkCheckError(f"HTTP {response.status_code}")

    def external_error(self, url: str) -> Optional[str]:
        """Cached reachability check; returns the error message or None."""
        if url not in self.checked_urls:
            try:
                self.request_url(url)
                self.checked_urls[url] = None
            except LinkCheckError as e:
                self.checked_urls[url] = str(e)
        return self.checked_urls[url]

    # -------------------------------------------------------------------------
    # Per-link checks
    # -------------------------------------------------------------------------

    def _record(self, bucket: str, file_label: str, url: str, text: str, status: str, link_type: str):
        self.results[bucket]["broken"] += 1
        self.results[bucket]["links"].append({
            "file": file_label,
            "url": url,
            "text": text,
            "status": status,
            "type": link_type,
        })

    def resolve_local(self, href: str, page_path: Path) -> Optional[Path]:
        """Filesystem target for a site-relative href, or None for an empty path."""
        clean = href.split("?")[0].split("#")[0]
        if not clean:
            return None
        if clean.startswith("/"):
            return self.layout.public_dir / clean.lstrip("/")
        return page_path.parent / clean

    def check_link(self, href: str, page_path: Path, file_label: str, text: str, page_ids: set):
        if href.startswith(SKIPPED_SCHEMES) or href == "#":
            return
        if href.startswith("#"):
            self.check_anchor_link(href, file_label, text, page_ids)
        elif is_external(href):
            self.check_external_link(href, file_label, text)
        else:
            self.check_internal_link(href, page_path, file_label, text)

    def check_internal_link(self, href: str, page_path: Path, file_label: str, text: str, link_type: str = "internal"):
        target = self.resolve_local(href, page_path)
        if target is None:
            return
        self.results["internal"]["checked"] += 1
        if not target.exists():
            status = "Image file not found" if link_type == "image" else "File not found"
            self._record("internal", file_label, href, text, status, link_type)

    def check_external_link(self, href: str, file_label: str, text: str, link_type: str = "external"):
        if not self.check_external:
            self.results["external"]["skipped"] += 1
            return
        self.results["external"]["checked"] += 1
        error = self.external_error(href)
        if error:
            status = f"External image error: {error}" if link_type == "image" else error
            self._record("external", file_label, href, text, status, link_type)

    def check_anchor_link(self, href: str, file_label: str, text: str, page_ids: set):
        self.results["anchors"]["checked"] += 1
        if href[1:] not in page_ids:
            self._record("anchors", file_label, href, text, "Anchor target not found", "anchor")

    def check_image(self, src: str, page_path: Path, file_label: str, alt_text: str):
        text = f"Image: {alt_text}"
        if is_external(src):
            self.check_external_link(src, file_label, text, link_type="image")
        elif not src.startswith("data:"):
            self.check_internal_link(src, page_path, file_label, text, link_type="image")

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    def check_links_in_file(self, page_path: Path):
        file_label = page_path.relative_to(self.layout.public_dir).as_posix()
        soup = BeautifulSoup(page_path.read_text(encoding="utf-8"), "html.parser")

        page_ids = {tag["id"] for tag in soup.find_all(id=True)}
        page_ids.update(tag["name"] for tag in soup.find_all(attrs={"name": True}))

        for link in soup.find_all("a", href=True):
            href = link["href"].strip()
            if href:
                self.check_link(href, page_path, file_label, link.get_text().strip(), page_ids)

        for img in soup.find_all("img", src=True):
            src = img["src"].strip()
            if src:
                self.check_image(src, page_path, file_label, img.get("alt") or "No alt text")

    def check_all_links(self) -> dict:
        for page_path in find_html_files(self.layout.public_dir):
            print(f"  Checking links in: {page_path.relative_to(self.layout.public_dir).as_posix()}")
            try:
                self.check_links_in_file(page_path)
            except (OSError, UnicodeDecodeError) as e:
                print(f"  ✗ Error checking links in {page_path}: {e}")
        return self.build_report()

    def check_single_url(self, url: str) -> tuple:
        """Return (ok, message) for one URL or public-relative path."""
        if is_external(url):
            try:
                self.request_url(url)
            except LinkCheckError as e:
                return False, f"URL check failed: {e}"
            return True, "URL is accessible"
        target = self.layout.public_dir / url.lstrip("/")
        if target.exists():
            return True, "File exists"
        return False, "File not found"

    # -------------------------------------------------------------------------
    # Report
    # -------------------------------------------------------------------------

    def broken_links(self) -> list:
        return (
            self.results["internal"]["links"]
            + self.results["external"]["links"]
            + self.results["anchors"]["links"]
        )

    def build_report(self) -> dict:
        total_checked = sum(bucket["checked"] for bucket in self.results.values())
        total_broken = sum(bucket["broken"] for bucket in self.results.values())
        success_rate = 100.0 if total_checked == 0 else (total_checked - total_broken) / total_checked * 100
        return {
            "timestamp": utc_iso(),
            "summary": {
                "totalChecked": total_checked,
                "totalBroken": total_broken,
                "successRate": f"{success_rate:.1f}",
                "externalChecked": self.check_external,
            },
            "breakdown": self.results,
            "brokenLinks": self.broken_links(),
        }

    def write_report(self, report: dict) -> Path:
        path = self.layout.validation_dir / REPORT_JSON
        write_json(path, report)
        return path


# =============================================================================
# CLI
# =============================================================================


def print_report(report: dict):
    summary = report["summary"]
    breakdown = report["breakdown"]
    print()
    print("=" * 70)
    print("LINK CHECK REPORT")
    print("=" * 70)
    print(f"Total links checked: {summary['totalChecked']}")
    print(f"Broken links found:  {summary['totalBroken']}")
    print(f"Success rate:        {summary['successRate']}%")
    print()
    print("Breakdown:")
    print(f"  Internal links: {breakdown['internal']['checked']} checked, {breakdown['internal']['broken']} broken")
    print(f"  External links: {breakdown['external']['checked']} checked, {breakdown['external']['broken']} broken")
    if breakdown["external"]["skipped"]:
        print(f"                  {breakdown['external']['skipped']} skipped (external checks disabled)")
    print(f"  Anchor links:   {breakdown['anchors']['checked']} checked, {breakdown['anchors']['broken']} broken")

    broken = report["brokenLinks"]
    if not broken:
        print()
        print("  ✓ No broken links found")
        return

    print()
    print(f"✗ Broken Links ({len(broken)}):")
    for index, link in enumerate(broken, start=1):
        print()
        print(f"{index}. {link['file']}")
        print(f"   URL:   {link['url']}")
        print(f"   Text:  \"{link['text']}\"")
        print(f"   Error: {link['status']}")
        print(f"   Type:  {link['type']}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Check internal, external and anchor links")
    parser.add_argument("command", nargs="?", choices=["check"], help="Check a single URL instead of the whole site")
    parser.add_argument("url", nargs="?", help="URL or public-relative path for 'check'")
    parser.add_argument("--internal-only", action="store_true", help="Skip external HTTP checks")
    parser.add_argument("--env", help="Environment config to use (default: SITE_ENV or development)")
    args = parser.parse_args(argv)
    load_env()

    if args.command == "check" and not args.url:
        parser.error("check requires a URL")

    print("=" * 70)
    print("LINK CHECKER")
    print("=" * 70)
    print()

    try:
        config = ConfigLoader(args.env)
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    check_external = False if args.internal_only else None
    checker = LinkChecker(SiteLayout.from_env(), config, check_external=check_external)

    if args.command == "check":
        print(f"Checking single URL: {args.url}")
        ok, message = checker.check_single_url(args.url)
        print(f"  {'✓' if ok else '✗'} {message}")
        sys.exit(0 if ok else 1)

    if not checker.check_external:
        print("External link checks: DISABLED")
        print()

    report = checker.check_all_links()
    report_path = checker.write_report(report)
    print_report(report)
    print()
    print(f"Report saved to: {report_path}")

    if report["summary"]["totalBroken"] > 0:
        sys.exit(1)


if __name__ == "__main__":
    main()
