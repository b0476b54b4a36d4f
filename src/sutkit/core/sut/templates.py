"""Render server configuration files from templates.

Templates are rendered with Jinja2. Plain ``{{ placeholder }}`` substitution
reads like mustache and missing placeholders render as empty strings. Values
are inserted verbatim, never HTML-escaped. Conditional and repeated blocks
use Jinja2 tags (``{% if debug %}...{% endif %}``, ``{% for x in xs %}``).
Mustache sections such as ``{{#debug}}`` do not parse and raise
``TemplateRenderError``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping

from jinja2 import Environment, TemplateSyntaxError

from sutkit.core.exceptions import TemplateRenderError

logger = logging.getLogger(__name__)


def render_template_text(text: str, context: Mapping[str, Any], *, name: str | None = None) -> str:
    """Render ``text`` with ``context``; ``name`` labels errors."""
    # Control blocks on their own lines should not leave empty lines behind.
    env = Environment(trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=True)
    try:
        template = env.from_string(text)
    except TemplateSyntaxError as exc:
        label = name or "<string>"
        raise TemplateRenderError(
            f"Invalid template {label}, line {exc.lineno}: {exc.message}",
            context={"template": label, "line": exc.lineno},
        ) from exc
    return template.render(**context)


def render_config_file(
    template_path: Path | str,
    output_path: Path | str,
    base_config: Mapping[str, Any],
    additional_config: Mapping[str, Any] | None = None,
) -> str:
    """Render ``template_path`` into ``output_path`` and return the text.

    Keys of ``additional_config`` override the same keys of ``base_config``
    (shallow merge), so a shared base can be specialised per test. Nothing is
    written when the template does not parse.
    """
    context: Dict[str, Any] = dict(base_config or {})
    context.update(additional_config or {})

    template = Path(template_path).read_text(encoding="utf-8")
    rendered = render_template_text(template, context, name=str(template_path))

    output = Path(output_path)
    output.write_text(rendered, encoding="utf-8")
    logger.debug("Rendered %s into %s", template_path, output)
    return rendered


__all__ = ["render_template_text", "render_config_file"]
