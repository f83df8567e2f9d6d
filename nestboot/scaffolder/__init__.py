"""nest-bootstrap scaffolder -- fixed files overlaid on a generated project.

Renders the husky hooks, the commitlint config and the static tooling
configuration (prettier, lint-staged, editorconfig, nvm, semantic-release)
into the root of a freshly generated NestJS project.

Quick usage::

    from nestboot.scaffolder import ConfigFileGenerator, TemplateRenderer

    renderer = TemplateRenderer()
    written = await ConfigFileGenerator(renderer).generate_all(
        Path("my-api"),
        {"node_version": "v20.11.0", "repository_url": "...", "release_branches": ["main"]},
    )
"""

from nestboot.scaffolder.config_files import ConfigFileGenerator
from nestboot.scaffolder.hooks import HookGenerator
from nestboot.scaffolder.templates import TemplateRenderer

__all__ = [
    "ConfigFileGenerator",
    "HookGenerator",
    "TemplateRenderer",
]
