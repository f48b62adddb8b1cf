"""Jinja2 template rendering for generated Flutter projects.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``rahl/scaffolder/templates/`` directory and renders them with a typed
context.  Custom filters take care of identifier and literal escaping so that
user-supplied names cannot break the generated Dart, YAML or XML.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from xml.sax.saxutils import escape as _xml_escape

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for project synthesis.

    Templates are plain ``.j2`` files, one per output file kind.  Undefined
    variables raise instead of rendering as empty strings, so a missing
    context key shows up as an error rather than as a silently broken file.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([], default_for_string=False),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self.env.filters["dart_string"] = _dart_string_filter
        self.env.filters["xml_escape"] = _xml_escape_filter
        self.env.filters["yaml_string"] = _yaml_string_filter
        self.env.filters["screen_title"] = _screen_title_filter

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"lib/main.dart.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _dart_string_filter(value: str) -> str:
    """Escape a value for use inside a single-quoted Dart string literal."""
    return (
        str(value)
        .replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("$", "\\$")
        .replace("\n", "\\n")
    )


def _xml_escape_filter(value: str) -> str:
    """Escape ``&``, ``<``, ``>`` and double quotes for XML text and attributes."""
    return _xml_escape(str(value), {'"': "&quot;"})


def _yaml_string_filter(value: str) -> str:
    """Render a value as a double-quoted YAML scalar."""
    return json.dumps(str(value), ensure_ascii=False)


def _screen_title_filter(value: str) -> str:
    """``LoginScreen`` -> ``Login``; falls back to the raw name."""
    title = value[: -len("Screen")] if value.endswith("Screen") else value
    return title or value
