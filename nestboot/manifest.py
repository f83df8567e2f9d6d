"""Typed merge of tool-managed entries into generated JSON descriptors.

``package.json`` is modelled by ``PackageManifest``: the two keys this tool
manages (``scripts`` and ``lint-staged``) are named optional fields, every
other key rides along as a Pydantic extra.  ``merge_manifest`` assigns only
the managed entries and keeps the remaining keys untouched and in place.

``tsconfig.json`` gets a single alias mapping under
``compilerOptions.paths``, added only when the setting is absent.
"""

from __future__ import annotations

import copy
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Managed entries
# ---------------------------------------------------------------------------

MANAGED_SCRIPTS: dict[str, str] = {
    "start:offline": "cross-env NODE_ENV=offline nest start --watch",
    "format": 'prettier --write "{src,test}/**/*.{ts,js,json,md,yml}"',
    "lint": "eslint . --ext .ts,.js --fix",
    "prepare": "husky",
    "semantic-release": "semantic-release",
}

LINT_STAGED_RULES: dict[str, list[str]] = {
    "src/**/*.{ts,js}": ["prettier --write", "eslint --fix"],
    "src/**/*.{json,yml,md}": ["prettier --write"],
    "*.{json,yml,md}": ["prettier --write"],
}

PATH_ALIASES: dict[str, list[str]] = {"@app/*": ["src/*"]}


# ---------------------------------------------------------------------------
# Manifest model
# ---------------------------------------------------------------------------


class PackageManifest(BaseModel):
    """The parts of ``package.json`` this tool writes to.

    Unknown keys are kept as extras so a round trip never drops them.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    scripts: dict[str, Any] | None = None
    lint_staged: Any = Field(default=None, alias="lint-staged")

    def apply_managed_entries(self) -> None:
        """Assign the managed scripts and the ``lint-staged`` rules.

        Same-named scripts are overwritten; other scripts are kept.  Any prior
        ``lint-staged`` value is replaced as a whole.
        """
        scripts = dict(self.scripts or {})
        scripts.update(MANAGED_SCRIPTS)
        self.scripts = scripts
        self.lint_staged = copy.deepcopy(LINT_STAGED_RULES)


def merge_manifest(raw: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *raw* with the managed entries merged in.

    Existing top-level keys keep their position; ``scripts`` and
    ``lint-staged`` are appended at the end when they were absent.

    Raises:
        pydantic.ValidationError: If ``scripts`` is present but not a mapping.
    """
    manifest = PackageManifest.model_validate(raw)
    manifest.apply_managed_entries()

    merged = dict(raw)
    merged.update(
        manifest.model_dump(by_alias=True, include={"scripts", "lint_staged"})
    )
    return merged


# ---------------------------------------------------------------------------
# tsconfig path aliases
# ---------------------------------------------------------------------------


def add_path_aliases(tsconfig: dict[str, Any]) -> bool:
    """Add ``compilerOptions.paths`` to *tsconfig* in place if it is missing.

    Returns:
        ``True`` if the document was changed and needs writing back,
        ``False`` if a ``paths`` setting already existed.

    Raises:
        ValueError: If ``compilerOptions`` exists but is not an object.
    """
    compiler_options = tsconfig.setdefault("compilerOptions", {})
    if not isinstance(compiler_options, dict):
        raise ValueError("compilerOptions must be a JSON object")
    if compiler_options.get("paths"):
        return False
    compiler_options["paths"] = copy.deepcopy(PATH_ALIASES)
    return True
