"""Jinja2 rendering for the fragments appended to generated projects.

Fragments live in ``smoke_env/fragments/`` as ``.j2`` files and are rendered
with a small context dictionary (cache directory, watch folders, ...).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

_DEFAULT_FRAGMENT_DIR = Path(__file__).parent / "fragments"

METRO_CONFIG_PATCH = "metro_config_patch.js.j2"


class TemplateRenderer:
    """Renders Jinja2 fragments shipped with the package."""

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_FRAGMENT_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the fragment directory.
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    def render_metro_patch(
        self,
        cache_dir: str = ".cache",
        watch_folders: list[str] | None = None,
    ) -> str:
        """Render the ``metro.config.js`` patch fragment."""
        return self.render(
            METRO_CONFIG_PATCH,
            {
                "cache_dir": cache_dir,
                "watch_folders": watch_folders if watch_folders is not None else [".vscode"],
            },
        )
