"""Jinja2 template rendering for synthesised project files.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``scaffold_repair/synthesis/templates/`` directory and renders them with
project-specific context data. Rendering happens entirely in memory; the
repair pipeline never writes to disk.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from scaffold_repair.utils import camel_case, kebab_case, pascal_case, sanitize_name


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for file synthesis.

    The renderer discovers ``.j2`` template files under a configurable
    template directory. Templates are rendered with a context dictionary that
    carries the derived identifier, the business name and the typing flag.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["slugify"] = sanitize_name
        self.env.filters["pascal_case"] = pascal_case
        self.env.filters["camel_case"] = camel_case
        self.env.filters["kebab_case"] = kebab_case
        self.env.filters["jsx_text"] = _jsx_text
        self.env.filters["js_string"] = _js_string

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"component.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    def render_string(self, template_string: str, context: dict[str, Any]) -> str:
        """Render an inline template string with the provided context."""
        template = self.env.from_string(template_string)
        return template.render(**context)

    def has_template(self, template_path: str) -> bool:
        try:
            self.env.get_template(template_path)
        except TemplateNotFound:
            return False
        return True

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return a sorted list of all ``.j2`` template paths under *prefix*.

        Paths are relative to the template root directory.
        """
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in search_dir.rglob("*.j2")
        )


# ---------------------------------------------------------------------------
# Escaping filters
# ---------------------------------------------------------------------------

def _jsx_text(value: str) -> str:
    """Escape text placed between JSX tags."""
    return (
        str(value)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace("{", "&#123;")
        .replace("}", "&#125;")
    )


def _js_string(value: str) -> str:
    """Escape text placed inside a single-quoted JavaScript string."""
    return str(value).replace("\\", "\\\\").replace("'", "\\'").replace("\n", " ")
