"""nest-bootstrap configuration.

Typed configuration for a single bootstrap run. All settings use Pydantic v2
models so they are validated at construction time; the derived paths inside
the generated project are exposed as read-only properties so every pipeline
step receives the project root explicitly instead of relying on the process
working directory.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

__version__ = "1.0.0"

REPOSITORY_URL_PLACEHOLDER = "<REPOSITORY_URL_HERE>"


# ---------------------------------------------------------------------------
# Fixed dependency sets installed into the generated project
# ---------------------------------------------------------------------------

RUNTIME_DEPENDENCIES: tuple[str, ...] = (
    "@aws-sdk/client-cognito-identity-provider",
    "@aws-sdk/client-s3",
    "@aws-sdk/client-ses",
    "@prisma/client",
    "aws-lambda",
    "cookie-parser",
    "date-fns",
    "google-auth-library",
    "handlebars",
    "jwks-rsa",
    "jwt-decode",
    "nest-winston",
    "nestjs-form-data",
    "passport",
    "passport-jwt",
    "reflect-metadata",
    "rut.js",
    "uuid",
    "winston",
    "zod",
)

DEV_DEPENDENCIES: tuple[str, ...] = (
    "@commitlint/cli",
    "@commitlint/config-conventional",
    "@semantic-release/changelog",
    "@semantic-release/commit-analyzer",
    "@semantic-release/git",
    "@semantic-release/github",
    "@semantic-release/npm",
    "@semantic-release/release-notes-generator",
    "@typescript-eslint/eslint-plugin",
    "@typescript-eslint/parser",
    "cross-env",
    "eslint-config-prettier",
    "eslint-plugin-prettier",
    "eslint-plugin-import",
    "eslint-plugin-eslint-comments",
    "husky",
    "lint-staged",
    "prettier",
    "semantic-release",
)


class RunOptions(BaseModel):
    """User-selected switches, fixed for the duration of one run."""

    model_config = ConfigDict(frozen=True)

    install_extra_dependencies: bool = Field(
        default=True, description="Install the extra runtime and dev dependency sets"
    )
    configure_commit_hooks: bool = Field(
        default=True, description="Set up husky hooks and the commitlint config"
    )
    resume: bool = Field(
        default=False,
        description="Continue provisioning a project directory left by a previous run",
    )


class ToolConfig(BaseModel):
    """External binaries the pipeline shells out to."""

    package_manager: str = Field(default="yarn")
    generator: str = Field(default="nest")
    generator_package: str = Field(default="@nestjs/cli")
    package_runner: str = Field(default="npx")


class BootstrapConfig(BaseModel):
    """Global configuration for one bootstrap run.

    Created once by the CLI entry point and passed to ``Pipeline``.
    """

    project_name: str = Field(..., description="Directory name and generator argument")
    base_dir: Path = Field(default_factory=Path.cwd)
    options: RunOptions = Field(default_factory=RunOptions)
    tools: ToolConfig = Field(default_factory=ToolConfig)

    node_version: str = Field(default="v20.11.0")
    repository_url: str = Field(default=REPOSITORY_URL_PLACEHOLDER)
    release_branches: list[str] = Field(default=["main", "dev"])

    @field_validator("project_name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("project name must not be empty")
        return stripped

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def project_root(self) -> Path:
        """Directory created by the generator: ``<base_dir>/<project_name>``."""
        return self.base_dir / self.project_name

    @property
    def manifest_path(self) -> Path:
        """Path to the generated ``package.json``."""
        return self.project_root / "package.json"

    @property
    def tsconfig_path(self) -> Path:
        """Path to the generated ``tsconfig.json``."""
        return self.project_root / "tsconfig.json"

    @property
    def hooks_dir(self) -> Path:
        """Directory that holds the husky git hooks."""
        return self.project_root / ".husky"
