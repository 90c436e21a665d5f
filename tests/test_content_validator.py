import json

import pytest

from sitepipe.config.config_loader import ConfigLoader
from sitepipe.validate.content_validator import ContentValidator, main, phone_pattern, render_markdown

GOOD_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>About Us | Stone OnePoint Solutions Recruitment</title>
    <meta name="description" content="Stone OnePoint Solutions connects growing organisations with skilled professionals through permanent, contract and executive hiring programmes.">
    <link rel="canonical" href="https://www.stoneonepointsolutions.in/about.html">
    <meta property="og:title" content="About Us">
    <meta property="og:description" content="About Stone OnePoint Solutions">
    <meta property="og:url" content="https://www.stoneonepointsolutions.in/about.html">
</head>
<body>
    <main>
        <h1>About Us</h1>
        <h2>Our Story</h2>
        <img src="assets/team.jpg" alt="Our team">
        <a href="index.html">Home</a>
    </main>
</body>
</html>
"""


def _page(body: str, head: str = "") -> str:
    return f"""<!DOCTYPE html>
<html><head><meta charset="UTF-8"><meta name="viewport" content="width=device-width">
<title>Short</title>{head}</head><body>{body}</body></html>"""


def _validate(site, write_page, html, name="page.html", config=None):
    validator = ContentValidator(site, config)
    validator.validate_html(write_page(name, html))
    return validator


# ----------------------------
# Passing page
# ----------------------------

def test_good_page_has_no_errors_or_warnings(site, write_page, dev_config):
    write_page("index.html", GOOD_PAGE.replace('<a href="index.html">', '<a href="#top">'))
    write_page("about.html", GOOD_PAGE)

    validator = ContentValidator(site, dev_config)
    report = validator.validate_all_files()

    assert report["summary"] == {"files": 2, "errors": 0, "warnings": 0, "status": "PASS"}


# ----------------------------
# Structure + SEO
# ----------------------------

def test_missing_required_elements(site, write_page):
    validator = _validate(site, write_page, "<html><body><p>Hello</p></body></html>")
    assert "page.html: Missing required element: title" in validator.errors
    assert "page.html: Missing required element: meta[charset]" in validator.errors
    assert 'page.html: Missing required element: meta[name="viewport"]' in validator.errors
    assert "page.html: Missing H1 element" in validator.errors
    assert "page.html: Missing meta description" in validator.errors


def test_heading_skip_and_multiple_h1(site, write_page):
    validator = _validate(site, write_page, _page("<h1>A</h1><h3>B</h3><h1>C</h1>"))
    assert "page.html: Heading hierarchy skip from h1 to h3" in validator.warnings
    assert "page.html: Multiple H1 elements found (2)" in validator.warnings


def test_title_and_description_lengths(site, write_page, dev_config):
    validator = _validate(site, write_page,
                          _page("<h1>A</h1>", head='<meta name="description" content="Too short">'),
                          config=dev_config)
    assert 'page.html: Title too short (5 chars): "Short"' in validator.warnings
    assert "page.html: Title doesn't contain company name" in validator.warnings
    assert "page.html: Meta description too short (9 chars)" in validator.warnings
    assert "page.html: Missing canonical URL" in validator.warnings
    assert "page.html: Missing Open Graph title" in validator.warnings


def test_seo_limits_come_from_config(site, write_page, tmp_path):
    config_dir = tmp_path / "envs"
    config_dir.mkdir()
    (config_dir / "lenient.json").write_text(json.dumps({"seo": {"titleMinLength": 1}}), encoding="utf-8")

    validator = _validate(site, write_page, _page("<h1>A</h1>"), config=ConfigLoader("lenient", config_dir=config_dir))

    assert not any("Title too short" in w for w in validator.warnings)


# ----------------------------
# Accessibility
# ----------------------------

def test_image_alt_and_form_labels(site, write_page):
    body = """<h1>Apply</h1>
    <img src="a.jpg"><img src="b.jpg" alt="  ">
    <form><input type="text" name="q"><label for="mail">Mail</label><input type="email" id="mail">
    <textarea id="notes"></textarea></form>"""
    validator = _validate(site, write_page, _page(body))

    assert "page.html: Image 1 missing alt attribute" in validator.errors
    assert "page.html: Image 2 has empty alt attribute" in validator.warnings
    assert "page.html: Input 1 missing id attribute" in validator.warnings
    assert "page.html: Input 3 missing associated label" in validator.warnings
    assert not any("Input 2" in w for w in validator.warnings)


def test_index_without_skip_link(site, write_page):
    validator = _validate(site, write_page, _page("<h1>Home</h1>"), name="index.html")
    assert "index.html: Consider adding skip navigation links for accessibility" in validator.warnings


# ----------------------------
# Content consistency
# ----------------------------

def test_legacy_brand_and_httrack(site, write_page):
    body = "<h1>Bayleaf Recruitment</h1><!-- Mirrored from example.com by HTTrack -->"
    validator = _validate(site, write_page, _page(body))
    assert 'page.html: Contains legacy "Bayleaf" reference' in validator.errors
    assert validator.errors.count("page.html: Contains HTTrack artifacts") == 2


def test_contact_details_must_match_site_config(site, write_page):
    bad = _validate(site, write_page, _page("<h1>Contact</h1><p>phone: 011 2345 6789, email: jobs@example.com</p>"))
    assert "page.html: Phone number format inconsistent or missing" in bad.warnings
    assert "page.html: Email format inconsistent or missing" in bad.warnings

    good = _validate(site, write_page, _page(
        "<h1>Contact</h1><p>phone: +918595378782 email: hr@stoneonepointsolutions.in</p>"))
    assert not any("format inconsistent" in w for w in good.warnings)


def test_phone_pattern_ignores_spacing():
    pattern = phone_pattern("+91 8595378782")
    assert pattern.search("+918595378782")
    assert pattern.search("+91 85953 78782")
    assert not pattern.search("+91 1234567890")


# ----------------------------
# Links
# ----------------------------

def test_internal_and_external_links(site, write_page):
    write_page("services/index.html", _page("<h1>Services</h1>"))
    body = """<h1>Links</h1>
    <a href="services/index.html">ok</a>
    <a href="/services/index.html#top">ok absolute</a>
    <a href="missing.html">broken</a>
    <a href="">empty</a>
    <a href="https://www.stoneonepointsolutions.in/about.html">own domain</a>
    <a href="https://linkedin.com/company/x">external</a>
    <a href="https://example.com" target="_blank" rel="noopener noreferrer">safe external</a>
    <a href="hts-cache/doit.log">artifact</a>"""
    validator = _validate(site, write_page, _page(body))

    assert "page.html: Broken internal link: missing.html" in validator.errors
    assert "page.html: Link 4 has empty href" in validator.warnings
    assert "page.html: External link 6 should open in new tab: https://linkedin.com/company/x" in validator.warnings
    assert "page.html: External link 6 missing security attributes: https://linkedin.com/company/x" in validator.warnings
    assert "page.html: Link 8 contains HTTrack artifacts: hts-cache/doit.log" in validator.errors
    assert not any("Link 5" in w or "link 5" in w for w in validator.warnings)
    assert not any("link 7" in w for w in validator.warnings)
    assert not any("services/index.html" in e for e in validator.errors)


def test_relative_links_resolve_from_page_directory(site, write_page):
    write_page("index.html", _page("<h1>Home</h1>"))
    validator = _validate(site, write_page, _page('<h1>S</h1><a href="../index.html">Home</a>'), name="services/a.html")
    assert not any("Broken internal link" in e for e in validator.errors)


# ----------------------------
# Report
# ----------------------------

def test_missing_site_config_is_an_error(site):
    (site.data_dir / "site-config.json").unlink()
    validator = ContentValidator(site)
    assert validator.errors[0].startswith("Failed to load site configuration")
    assert validator.build_report()["summary"]["status"] == "FAIL"


def test_write_report_json_and_markdown(site, write_page):
    validator = _validate(site, write_page, _page("<p>no heading</p>"))
    json_path, md_path = validator.write_report(validator.build_report())

    report = json.loads(json_path.read_text(encoding="utf-8"))
    assert report["summary"]["status"] == "FAIL"
    markdown = md_path.read_text(encoding="utf-8")
    assert markdown.startswith("# Content Validation Report")
    assert "- page.html: Missing H1 element" in markdown


def test_render_markdown_empty_sections():
    markdown = render_markdown({"timestamp": "t", "summary": {"status": "PASS"}, "errors": [], "warnings": []})
    assert "✓ No errors" in markdown
    assert "✓ No warnings" in markdown


def test_cli_exits_on_errors(site, write_page, monkeypatch):
    monkeypatch.setenv("SITE_ROOT", str(site.root))
    write_page("broken.html", "<html><body></body></html>")
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1
    assert (site.validation_dir / "validation-report.json").exists()
