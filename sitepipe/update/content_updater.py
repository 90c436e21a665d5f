#!/usr/bin/env python3
"""
Content Updater

Generates website content from JSON data files and HTML templates.

Inputs:
    content/data/site-config.json     site name, base URL, analytics id
    content/data/services.json        service records
    content/data/pages.json           pages + servicePages (sitemap entries)
    content/templates/service-page-template.html
    content/templates/content-blocks.html   (<template id="header-template">, "footer-template")

Outputs:
    public/<service.url>              one page per service
    public/sitemap.xml
    public/robots.txt

Usage:
    python -m sitepipe.update.content_updater service permanent-recruitment
    python -m sitepipe.update.content_updater service          # all service pages
    python -m sitepipe.update.content_updater sitemap
    python -m sitepipe.update.content_updater robots
    python -m sitepipe.update.content_updater validate
    python -m sitepipe.update.content_updater all
"""

import argparse
import json
import sys
from collections import Counter
from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape

from sitepipe.common.files import load_json
from sitepipe.common.layout import SiteLayout
from sitepipe.config.config_loader import ConfigLoader, load_env
from sitepipe.update.render_blocks import (
    render_analytics,
    render_benefits,
    render_features_list,
    render_related_services,
)
from sitepipe.update.templates import TemplateRenderer, extract_template

# =============================================================================
# CONFIGURATION
# =============================================================================

SITE_CONFIG_FILE = "site-config.json"
SERVICES_FILE = "services.json"
PAGES_FILE = "pages.json"

SERVICE_PAGE_TEMPLATE = "service-page-template.html"
CONTENT_BLOCKS_TEMPLATE = "content-blocks.html"
REQUIRED_TEMPLATES = [SERVICE_PAGE_TEMPLATE, CONTENT_BLOCKS_TEMPLATE]

RELATED_SERVICES_LIMIT = 3

ROBOTS_DISALLOW = ["/admin/", "/config/", "/scripts/", "/content/"]
ROBOTS_ALLOW = ["/assets/", "/sitemap.xml", "/robots.txt"]


# =============================================================================
# CONTENT UPDATER
# =============================================================================


class ContentUpdater:
    """Generates service pages, sitemap.xml and robots.txt from data files."""

    def __init__(self, layout: SiteLayout = None, config: Optional[ConfigLoader] = None):
        self.layout = layout or SiteLayout()
        self.config = config
        self.load_errors = []
        self.warnings = []

        self.site_config = self._load_data(SITE_CONFIG_FILE)
        self.services_data = self._load_data(SERVICES_FILE)
        self.pages_data = self._load_data(PAGES_FILE)

    def _load_data(self, filename: str) -> dict:
        """Load a data file; missing or invalid files are reported and treated as {}."""
        path = self.layout.data_dir / filename
        if not path.exists():
            self.load_errors.append(f"Data file not found: {filename}")
            print(f"  ✗ Error loading {filename}: file not found")
            return {}
        try:
            return load_json(path)
        except json.JSONDecodeError as e:
            self.load_errors.append(f"Invalid JSON in {filename}: {e}")
            print(f"  ✗ Error loading {filename}: {e}")
            return {}

    # -------------------------------------------------------------------------
    # Data accessors
    # -------------------------------------------------------------------------

    @property
    def services(self) -> list:
        return self.services_data.get("services", [])

    @property
    def base_url(self) -> str:
        return self.site_config.get("site", {}).get("baseUrl", "").rstrip("/")

    def get_service(self, service_id: str) -> dict:
        for service in self.services:
            if service.get("id") == service_id:
                return service
        raise KeyError(f"Service not found: {service_id}")

    def analytics_id(self) -> str:
        """Measurement id from site-config, else from environment config. "" when disabled."""
        if self.config is not None and not self.config.is_feature_enabled("analytics"):
            return ""
        measurement_id = self.site_config.get("analytics", {}).get("googleAnalytics") or ""
        if not measurement_id and self.config is not None:
            measurement_id = self.config.get("analytics.googleAnalytics") or ""
        # Unexpanded ${VAR} means the variable is not set
        if "${" in measurement_id:
            return ""
        return measurement_id

    def _public_path(self, relative_url: str) -> Path:
        public_root = self.layout.public_dir.resolve()
        target = (self.layout.public_dir / relative_url.lstrip("/")).resolve()
        if not target.is_relative_to(public_root):
            raise ValueError(f"Output path escapes public directory: {relative_url}")
        return target

    # -------------------------------------------------------------------------
    # Service pages
    # -------------------------------------------------------------------------

    def build_service_variables(self, service: dict, blocks: str) -> dict:
        """Placeholder values for one service page."""
        service_id = service.get("id")
        related = [s for s in self.services if s.get("id") != service_id][:RELATED_SERVICES_LIMIT]
        return {
            "SERVICE_TITLE": service.get("title"),
            "SERVICE_DESCRIPTION": service.get("description"),
            "SERVICE_KEYWORDS": ", ".join(service.get("keywords", [])),
            "SERVICE_URL": service.get("url"),
            "SERVICE_H1": service.get("title"),
            "SERVICE_SUBTITLE": service.get("shortDescription"),
            "SERVICE_OVERVIEW_TITLE": f"About {service.get('name', '')}",
            "SERVICE_OVERVIEW_CONTENT": service.get("description"),
            "SERVICE_FEATURES_LIST": render_features_list(service.get("features", [])),
            "SERVICE_BENEFITS_CONTENT": render_benefits(service.get("benefits", [])),
            "SERVICE_IMAGE": service.get("image"),
            "SERVICE_TYPE": service.get("serviceType"),
            "HEADER_CONTENT": extract_template(blocks, "header-template"),
            "FOOTER_CONTENT": extract_template(blocks, "footer-template"),
            "RELATED_SERVICES_CONTENT": render_related_services(related),
            "ANALYTICS_CODE": render_analytics(self.analytics_id()),
        }

    def generate_service_page(self, service_id: str) -> Path:
        """Render and write one service page. Returns the output path."""
        service = self.get_service(service_id)
        if not service.get("url"):
            raise ValueError(f"Service has no url: {service_id}")

        renderer = TemplateRenderer(self.layout.templates_dir / SERVICE_PAGE_TEMPLATE)
        blocks_path = self.layout.templates_dir / CONTENT_BLOCKS_TEMPLATE
        blocks = blocks_path.read_text(encoding="utf-8") if blocks_path.exists() else ""
        if not blocks:
            self.warnings.append(f"{CONTENT_BLOCKS_TEMPLATE} missing or empty; header/footer left blank")

        page, unresolved = renderer.render(self.build_service_variables(service, blocks))
        if unresolved:
            self.warnings.append(f"{service['url']}: unresolved placeholders: {', '.join(unresolved)}")
            print(f"  ⚠ {service['url']}: unresolved placeholders: {', '.join(unresolved)}")

        output_path = self._public_path(service["url"])
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(page, encoding="utf-8")
        print(f"  ✓ Generated service page: {service['url']}")
        return output_path

    def generate_all_service_pages(self) -> list:
        print("Generating all service pages...")
        written = [self.generate_service_page(service.get("id")) for service in self.services]
        print(f"  ✓ {len(written)} service pages generated")
        return written

    # -------------------------------------------------------------------------
    # Sitemap + robots
    # -------------------------------------------------------------------------

    def build_sitemap(self) -> str:
        all_pages = self.pages_data.get("pages", []) + self.pages_data.get("servicePages", [])
        entries = []
        for page in all_pages:
            entries.append(
                "    <url>\n"
                f"        <loc>{escape(self.base_url + '/' + page.get('url', '').lstrip('/'))}</loc>\n"
                f"        <lastmod>{page.get('lastModified', '')}</lastmod>\n"
                f"        <changefreq>{page.get('changeFreq', '')}</changefreq>\n"
                f"        <priority>{page.get('priority', '')}</priority>\n"
                "    </url>"
            )
        return (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
            + "\n".join(entries)
            + ("\n" if entries else "")
            + "</urlset>\n"
        )

    def update_sitemap(self) -> Path:
        path = self._public_path("sitemap.xml")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.build_sitemap(), encoding="utf-8")
        print("  ✓ Updated sitemap.xml")
        return path

    def build_robots_txt(self) -> str:
        lines = ["User-agent: *", "Allow: /", "", "# Sitemap", f"Sitemap: {self.base_url}/sitemap.xml", ""]
        lines.append("# Disallow admin areas")
        lines.extend(f"Disallow: {p}" for p in ROBOTS_DISALLOW)
        lines.append("")
        lines.append("# Allow important files")
        lines.extend(f"Allow: {p}" for p in ROBOTS_ALLOW)
        return "\n".join(lines) + "\n"

    def update_robots_txt(self) -> Path:
        path = self._public_path("robots.txt")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.build_robots_txt(), encoding="utf-8")
        print("  ✓ Updated robots.txt")
        return path

    def update_all_content(self) -> dict:
        pages = self.generate_all_service_pages()
        sitemap = self.update_sitemap()
        robots = self.update_robots_txt()
        return {"service_pages": pages, "sitemap": sitemap, "robots": robots}

    # -------------------------------------------------------------------------
    # Consistency
    # -------------------------------------------------------------------------

    def validate_data_consistency(self) -> list:
        """Return a list of issues; empty list means the data is consistent."""
        issues = list(self.load_errors)
        pages = self.pages_data.get("pages", [])
        service_pages = self.pages_data.get("servicePages", [])

        service_page_ids = {p.get("id") for p in service_pages}
        for service in self.services:
            if service.get("id") not in service_page_ids:
                issues.append(f'Service "{service.get("id")}" missing from pages.json')

        duplicate_ids = [sid for sid, n in Counter(s.get("id") for s in self.services).items() if n > 1]
        if duplicate_ids:
            issues.append(f"Duplicate service ids found: {', '.join(map(str, duplicate_ids))}")

        duplicate_urls = [url for url, n in Counter(p.get("url") for p in pages + service_pages).items() if n > 1]
        if duplicate_urls:
            issues.append(f"Duplicate URLs found: {', '.join(map(str, duplicate_urls))}")

        referenced = list(REQUIRED_TEMPLATES)
        referenced.extend(p["template"] for p in pages + service_pages if p.get("template"))
        for template in dict.fromkeys(referenced):
            if not (self.layout.templates_dir / template).exists():
                issues.append(f"Template not found: {template}")

        return issues


# =============================================================================
# CLI
# =============================================================================


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Generate website content from templates and data files")
    sub = parser.add_subparsers(dest="command", required=True)

    service = sub.add_parser("service", help="Generate service page(s)")
    service.add_argument("service_id", nargs="?", help="Service id (default: all services)")
    sub.add_parser("sitemap", help="Update sitemap.xml")
    sub.add_parser("robots", help="Update robots.txt")
    sub.add_parser("validate", help="Validate data consistency")
    sub.add_parser("all", help="Update all content")

    parser.add_argument("--env", help="Environment config to use (default: SITE_ENV or development)")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    load_env()

    print("=" * 70)
    print(f"CONTENT UPDATER - {args.command.upper()}")
    print("=" * 70)
    print()

    try:
        config = ConfigLoader(args.env)
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    layout = SiteLayout.from_env()
    updater = ContentUpdater(layout, config)
    print(f"Site root:   {layout.root}")
    print(f"Environment: {config.environment}")
    print()

    try:
        if args.command == "service":
            if args.service_id:
                updater.generate_service_page(args.service_id)
            else:
                updater.generate_all_service_pages()
        elif args.command == "sitemap":
            updater.update_sitemap()
        elif args.command == "robots":
            updater.update_robots_txt()
        elif args.command == "all":
            updater.update_all_content()
        elif args.command == "validate":
            issues = updater.validate_data_consistency()
            if issues:
                print("  ✗ Data consistency issues found:")
                for issue in issues:
                    print(f"    • {issue}")
                sys.exit(1)
            print("  ✓ Data consistency validation passed")
    except (KeyError, ValueError, FileNotFoundError) as e:
        # KeyError str() wraps the message in quotes
        message = e.args[0] if isinstance(e, KeyError) and e.args else e
        print(f"ERROR: {message}")
        sys.exit(1)

    print()
    print("Done.")


if __name__ == "__main__":
    main()
