"""Static tooling configuration written into every bootstrapped project.

Covers the formatter config and ignore list, the lint-staged config, the
editor configuration, the pinned Node version and the semantic-release
config.  All six are written unconditionally, in a fixed order.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .templates import TemplateRenderer


class ConfigFileGenerator:
    """Generates the static configuration files at the project root."""

    # Template name -> output file name, in write order
    _CONFIG_FILES: dict[str, str] = {
        "prettierrc.j2": ".prettierrc",
        "prettierignore.j2": ".prettierignore",
        "lintstagedrc.json.j2": ".lintstagedrc.json",
        "editorconfig.j2": ".editorconfig",
        "nvmrc.j2": ".nvmrc",
        "releaserc.json.j2": ".releaserc.json",
    }

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    async def generate_all(
        self,
        project_root: Path,
        context: dict[str, Any],
    ) -> dict[str, Path]:
        """Generate every static config file under *project_root*.

        Args:
            project_root: Root of the generated project.
            context: Template context (``node_version``, ``repository_url``,
                ``release_branches``).

        Returns:
            Mapping of output file name to written path, e.g.
            ``{".nvmrc": Path(".../.nvmrc"), ...}``.  The first failing write
            raises and stops the remaining ones.
        """
        result: dict[str, Path] = {}
        for template_name, output_name in self._CONFIG_FILES.items():
            result[output_name] = await self.renderer.render_to_file(
                template_name, project_root / output_name, context
            )
        return result

    @classmethod
    def output_names(cls) -> list[str]:
        """File names produced by :meth:`generate_all`, in write order."""
        return list(cls._CONFIG_FILES.values())
