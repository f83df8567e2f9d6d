"""Git hook scripts and commit-message lint configuration.

Overwrites the hooks created by ``husky init`` with the project's own
``pre-commit`` (runs lint-staged) and ``commit-msg`` (runs commitlint on the
message file) scripts, and writes ``commitlint.config.js``.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from nestboot.utils import make_executable

from .templates import TemplateRenderer


class HookGenerator:
    """Generates husky hook scripts and the commitlint config."""

    # Template name -> path relative to the project root
    _HOOK_FILES: dict[str, str] = {
        "husky/pre-commit.j2": ".husky/pre-commit",
        "husky/commit-msg.j2": ".husky/commit-msg",
    }

    _COMMITLINT_CONFIG: tuple[str, str] = ("commitlint.config.js.j2", "commitlint.config.js")

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    async def generate_hooks(
        self,
        project_root: Path,
        context: dict[str, Any],
    ) -> list[Path]:
        """Write both hook scripts and mark them executable (mode ``0755``).

        Returns:
            The written hook paths, ``pre-commit`` first.
        """
        written: list[Path] = []
        for template_name, rel_path in self._HOOK_FILES.items():
            path = await self.renderer.render_to_file(
                template_name, project_root / rel_path, context
            )
            await asyncio.to_thread(make_executable, path)
            written.append(path)
        return written

    async def generate_commitlint_config(
        self,
        project_root: Path,
        context: dict[str, Any],
    ) -> Path:
        """Write ``commitlint.config.js`` extending the conventional config."""
        template_name, rel_path = self._COMMITLINT_CONFIG
        return await self.renderer.render_to_file(
            template_name, project_root / rel_path, context
        )

    async def generate_all(
        self,
        project_root: Path,
        context: dict[str, Any],
    ) -> list[Path]:
        """Write the hook scripts followed by the commitlint config."""
        written = await self.generate_hooks(project_root, context)
        written.append(await self.generate_commitlint_config(project_root, context))
        return written
