"""Email body rendering."""

from notifier.infrastructure.external.templates.jinja_renderer import JinjaTemplateRenderer

__all__ = ["JinjaTemplateRenderer"]
