"""Email templates: logical name → HTML body (Jinja)."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError, select_autoescape

from notifier.domain.exceptions import RenderException

TEMPLATE_SUFFIX = ".tpl.html"


class JinjaTemplateRenderer:
    """Renders <name>.tpl.html from a templates directory (ITemplateRenderer).

    Undefined context variables are errors, so a missing field surfaces as a
    RenderException instead of a silently blank email.
    """

    def __init__(self, templates_dir: Path | str) -> None:
        self.templates_dir = Path(templates_dir)
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=True),
            undefined=StrictUndefined,
        )

    def render(self, template_name: str, context: dict[str, Any]) -> str:
        """Render the named template. Raises RenderException if missing or broken."""
        try:
            template = self._env.get_template(f"{template_name}{TEMPLATE_SUFFIX}")
            return template.render(**context)
        except TemplateError as e:
            raise RenderException(template_name, str(e) or e.__class__.__name__) from e
