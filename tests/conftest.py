"""Shared pytest fixtures for the nest-bootstrap test suite.

Provides reusable fixtures for:
- Bootstrap configurations rooted in a temporary base directory
- A fake generated NestJS project (package.json, tsconfig.json)
- Fake ``yarn`` / ``nest`` / ``npx`` executables that record their calls
"""

from __future__ import annotations

import json
import os
import stat
import textwrap
from pathlib import Path
from typing import Any

import pytest

from nestboot.config import BootstrapConfig, RunOptions


# ---------------------------------------------------------------------------
# Generated project contents
# ---------------------------------------------------------------------------

NEST_PACKAGE_JSON: dict[str, Any] = {
    "name": "demo-api",
    "version": "0.0.1",
    "private": True,
    "scripts": {
        "build": "nest build",
        "format": "prettier --write \"src/**/*.ts\" \"test/**/*.ts\"",
        "start": "nest start",
        "start:dev": "nest start --watch",
        "lint": "eslint \"{src,apps,libs,test}/**/*.ts\" --fix",
        "test": "jest",
    },
    "dependencies": {
        "@nestjs/common": "^10.0.0",
        "@nestjs/core": "^10.0.0",
    },
    "devDependencies": {
        "@nestjs/cli": "^10.0.0",
        "typescript": "^5.1.3",
    },
    "jest": {"rootDir": "src"},
}

NEST_TSCONFIG: dict[str, Any] = {
    "compilerOptions": {
        "module": "commonjs",
        "declaration": True,
        "target": "ES2021",
        "outDir": "./dist",
        "baseUrl": "./",
    }
}


@pytest.fixture
def nest_package_json() -> dict[str, Any]:
    """A copy of the ``package.json`` the Nest generator produces."""
    return json.loads(json.dumps(NEST_PACKAGE_JSON))


@pytest.fixture
def make_config(tmp_path: Path):
    """Factory for ``BootstrapConfig`` instances rooted at ``tmp_path``."""

    def factory(name: str = "demo-api", **option_kwargs: bool) -> BootstrapConfig:
        return BootstrapConfig(
            project_name=name,
            base_dir=tmp_path,
            options=RunOptions(**option_kwargs),
        )

    return factory


@pytest.fixture
def generated_project(tmp_path: Path) -> Path:
    """A project directory as the Nest generator leaves it."""
    root = tmp_path / "demo-api"
    root.mkdir()
    (root / "package.json").write_text(json.dumps(NEST_PACKAGE_JSON, indent=2), encoding="utf-8")
    (root / "tsconfig.json").write_text(json.dumps(NEST_TSCONFIG, indent=2), encoding="utf-8")
    (root / "src").mkdir()
    return root


# ---------------------------------------------------------------------------
# Fake external binaries
# ---------------------------------------------------------------------------

_FAKE_YARN = textwrap.dedent(
    """\
    #!/bin/sh
    echo "yarn $*" >> "$FAKE_BIN_LOG"
    exit "${FAKE_YARN_EXIT:-0}"
    """
)

_FAKE_NEST = textwrap.dedent(
    """\
    #!/bin/sh
    echo "nest $*" >> "$FAKE_BIN_LOG"
    if [ "$1" = "new" ]; then
        mkdir -p "$2/src"
        cat > "$2/package.json" <<'JSON'
    {
      "name": "generated",
      "scripts": {
        "build": "nest build"
      }
    }
    JSON
        cat > "$2/tsconfig.json" <<'JSON'
    {
      "compilerOptions": {
        "baseUrl": "./"
      }
    }
    JSON
    fi
    exit "${FAKE_NEST_EXIT:-0}"
    """
)

_FAKE_NPX = textwrap.dedent(
    """\
    #!/bin/sh
    echo "npx $*" >> "$FAKE_BIN_LOG"
    if [ "$1" = "husky" ] && [ "$2" = "init" ]; then
        mkdir -p .husky
        echo "npm test" > .husky/pre-commit
    fi
    exit "${FAKE_NPX_EXIT:-0}"
    """
)


def _install_script(bin_dir: Path, name: str, body: str) -> None:
    path = bin_dir / name
    path.write_text(body, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


@pytest.fixture
def fake_bin(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Put fake ``yarn``, ``nest`` and ``npx`` first on ``PATH``.

    Each fake appends its argv to a log file.  Exit codes are controlled with
    ``FAKE_YARN_EXIT`` / ``FAKE_NEST_EXIT`` / ``FAKE_NPX_EXIT``.  Returns a
    factory that takes the names of binaries to install (default: all three)
    and returns the log file path.
    """
    bin_dir = tmp_path / "fake-bin"
    bin_dir.mkdir()
    log_file = tmp_path / "calls.log"
    log_file.touch()
    monkeypatch.setenv("FAKE_BIN_LOG", str(log_file))

    scripts = {"yarn": _FAKE_YARN, "nest": _FAKE_NEST, "npx": _FAKE_NPX}

    def factory(*names: str, isolate: bool = False) -> Path:
        for name in names or tuple(scripts):
            _install_script(bin_dir, name, scripts[name])
        if isolate:
            monkeypatch.setenv("PATH", str(bin_dir))
        else:
            monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
        return log_file

    return factory

