"""
{{PLACEHOLDER}} template substitution.

Placeholders are upper-case tokens: {{SERVICE_TITLE}}, {{HEADER_CONTENT}}.
Values are inserted verbatim (they are usually HTML fragments).
"""

import re
from pathlib import Path

PLACEHOLDER_PATTERN = re.compile(r"\{\{([A-Z0-9_]+)\}\}")


def render_template(content: str, variables: dict) -> str:
    """
    Replace {{KEY}} for every key in variables.

    None/empty values become "". Placeholders with no entry in variables are
    left in place so callers can report them.
    """
    result = content
    for key, value in variables.items():
        result = result.replace(f"{{{{{key}}}}}", "" if value is None else str(value))
    return result


def find_unresolved_placeholders(content: str) -> list:
    """Sorted unique placeholder names still present in content."""
    return sorted(set(PLACEHOLDER_PATTERN.findall(content)))


def extract_template(content: str, template_id: str) -> str:
    """Inner HTML of <template id="template_id">...</template>, stripped, or ""."""
    pattern = re.compile(rf'<template id="{re.escape(template_id)}">(.*?)</template>', re.DOTALL)
    match = pattern.search(content)
    return match.group(1).strip() if match else ""


class TemplateRenderer:
    """Renders a template file with placeholders."""

    def __init__(self, template_path: Path):
        if not template_path.exists():
            raise FileNotFoundError(f"Template not found: {template_path}")
        self.template_path = template_path
        with open(template_path, "r", encoding="utf-8") as f:
            self.template = f.read()

    def render(self, variables: dict) -> tuple:
        """Return (rendered, unresolved placeholder names)."""
        rendered = render_template(self.template, variables)
        return rendered, find_unresolved_placeholders(rendered)
