"""nest-bootstrap provisioning pipeline.

Runs the fixed, ordered bootstrap sequence for a new NestJS project:

Step 1: PREFLIGHT     -- ``yarn`` must be on PATH; install ``@nestjs/cli`` if ``nest`` is not.
Step 2: SCAFFOLD      -- ``nest new <name> --package-manager yarn``.
Step 3: DEPENDENCIES  -- ``yarn add`` the runtime set, then ``yarn add -D`` the dev set.
Step 4: MANIFEST      -- merge scripts and ``lint-staged`` into ``package.json``.
Step 5: PATH ALIASES  -- add ``compilerOptions.paths`` to ``tsconfig.json`` if missing.
Step 6: COMMIT HOOKS  -- ``npx husky init``, hook scripts, ``commitlint.config.js``.
Step 7: CONFIG FILES  -- prettier, lint-staged, editorconfig, nvm and release configs.

Every step after the scaffold receives the project root explicitly; the
process working directory is never changed.  The first failure stops the run
and nothing already written is rolled back.

Usage::

    nb my-api
    nb my-api --no-deps --skip-husky
    nb my-api --resume
"""

from __future__ import annotations

import asyncio
import sys
import time
import traceback
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt

from nestboot.config import (
    DEV_DEPENDENCIES,
    REPOSITORY_URL_PLACEHOLDER,
    RUNTIME_DEPENDENCIES,
    BootstrapConfig,
    RunOptions,
    __version__,
)
from nestboot.manifest import add_path_aliases, merge_manifest
from nestboot.scaffolder import ConfigFileGenerator, HookGenerator, TemplateRenderer
from nestboot.utils import (
    STEP_NAMES,
    command_exists,
    console,
    elapsed_seconds,
    format_command,
    load_json,
    print_error,
    print_info,
    print_step_header,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
    save_json,
)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class BootstrapError(Exception):
    """Raised when a pipeline step fails irrecoverably."""

    def __init__(self, step: int, message: str) -> None:
        self.step = step
        super().__init__(f"Step {step} ({STEP_NAMES.get(step, '?')}): {message}")


class MissingToolError(BootstrapError):
    """A required external binary is not on PATH."""

    def __init__(self, step: int, tool: str) -> None:
        self.tool = tool
        super().__init__(step, f"'{tool}' is not installed or not on PATH. Install it first.")


class CommandFailedError(BootstrapError):
    """An external command exited with a non-zero status."""

    def __init__(self, step: int, command: list[str], returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        message = f"command failed with exit code {returncode}: {format_command(command)}"
        if stderr:
            message = f"{message}\n{stderr}"
        super().__init__(step, message)


class FileOperationError(BootstrapError):
    """Reading, parsing or writing a project file failed."""

    def __init__(self, step: int, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(step, f"{reason}: {path}")


@contextmanager
def _file_operation(step: int, path: Path, action: str) -> Iterator[None]:
    """Convert I/O and parse errors raised inside the block to ``FileOperationError``."""
    try:
        yield
    except (OSError, ValueError) as exc:
        raise FileOperationError(step, path, f"could not {action} ({exc})") from exc


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class Pipeline:
    """Bootstrap pipeline for one project.

    Attributes:
        config: Validated run configuration.
        state: Dictionary that accumulates the outcome of each step.
    """

    _STEP_METHODS: dict[int, str] = {
        1: "step1_preflight",
        2: "step2_scaffold",
        3: "step3_dependencies",
        4: "step4_manifest",
        5: "step5_path_aliases",
        6: "step6_commit_hooks",
        7: "step7_config_files",
    }

    def __init__(self, config: BootstrapConfig) -> None:
        self.config = config
        self.renderer = TemplateRenderer()
        self.hook_gen = HookGenerator(self.renderer)
        self.config_gen = ConfigFileGenerator(self.renderer)
        self.state: dict[str, Any] = {
            "project_name": config.project_name,
            "project_root": str(config.project_root),
            "steps_completed": [],
            "steps_skipped": [],
            "written_files": [],
            "success": False,
        }

    async def run(self) -> dict[str, Any]:
        """Execute every step in order, stopping at the first failure.

        Returns:
            The final state dictionary, including a top-level ``success``
            boolean and ``elapsed_seconds``.
        """
        start = time.monotonic()
        options = self.config.options

        console.print(
            Panel(
                f"[bold bright_cyan]Creating project: {escape(self.config.project_name)}[/bold bright_cyan]\n"
                f"Directory    : {escape(str(self.config.project_root))}\n"
                f"Dependencies : {'yes' if options.install_extra_dependencies else 'skipped'}\n"
                f"Commit hooks : {'yes' if options.configure_commit_hooks else 'skipped'}\n"
                f"Resume       : {'yes' if options.resume else 'no'}",
                title="[bold]nest-bootstrap[/bold]",
                border_style="bright_cyan",
            )
        )

        success = True
        for step_num, method_name in self._STEP_METHODS.items():
            print_step_header(step_num, STEP_NAMES[step_num])
            try:
                await getattr(self, method_name)()
                if step_num not in self.state["steps_skipped"]:
                    self.state["steps_completed"].append(step_num)
            except BootstrapError as exc:
                success = False
                self.state["failed_step"] = step_num
                self.state["error"] = str(exc)
                print_error(f"x {exc}")
                break
            except Exception as exc:
                success = False
                tb = traceback.format_exc()
                self.state["failed_step"] = step_num
                self.state["error"] = tb
                print_error(f"x Step {step_num} ({STEP_NAMES[step_num]}): {exc}")
                console.print(tb, style="dim", markup=False, highlight=False)
                break

        self.state["success"] = success
        self.state["elapsed_seconds"] = elapsed_seconds(start)
        self._print_final_summary()
        return self.state

    # ------------------------------------------------------------------
    # Step 1: PREFLIGHT
    # ------------------------------------------------------------------

    async def step1_preflight(self) -> None:
        """Check the package manager and generator are available.

        A missing package manager is fatal.  A missing generator is installed
        globally through the package manager.
        """
        tools = self.config.tools
        if not command_exists(tools.package_manager):
            raise MissingToolError(1, tools.package_manager)
        print_success(f"+ {tools.package_manager} found")

        if self.config.project_root.exists() and not self.config.options.resume:
            raise BootstrapError(
                1,
                f"directory {self.config.project_root} already exists. "
                "Pass --resume to continue provisioning it.",
            )

        if command_exists(tools.generator):
            print_success(f"+ {tools.generator} found")
            return

        print_warning(
            f"{tools.generator} not found. Installing {tools.generator_package} globally..."
        )
        await self._exec(
            1,
            [tools.package_manager, "global", "add", tools.generator_package],
            f"Installing {tools.generator_package}",
            cwd=self.config.base_dir,
        )

    # ------------------------------------------------------------------
    # Step 2: SCAFFOLD
    # ------------------------------------------------------------------

    async def step2_scaffold(self) -> None:
        """Invoke the generator to create the project directory."""
        if self.config.options.resume and self.config.manifest_path.exists():
            print_warning(
                f"--resume: {self.config.project_root} already scaffolded, "
                "skipping the generator."
            )
            self.state["steps_skipped"].append(2)
            return

        tools = self.config.tools
        await self._exec(
            2,
            [
                tools.generator,
                "new",
                self.config.project_name,
                "--package-manager",
                tools.package_manager,
            ],
            "Creating NestJS project",
            cwd=self.config.base_dir,
        )
        if not self.config.project_root.is_dir():
            raise BootstrapError(
                2, f"generator finished but {self.config.project_root} was not created"
            )

    # ------------------------------------------------------------------
    # Step 3: DEPENDENCIES
    # ------------------------------------------------------------------

    async def step3_dependencies(self) -> None:
        """Add the extra runtime dependencies, then the dev dependencies."""
        if not self.config.options.install_extra_dependencies:
            print_warning("--no-deps: skipped installing extra dependencies.")
            self.state["steps_skipped"].append(3)
            return

        pm = self.config.tools.package_manager
        root = self.config.project_root
        await self._exec(
            3,
            [pm, "add", *RUNTIME_DEPENDENCIES],
            "Installing extra production dependencies",
            cwd=root,
        )
        await self._exec(
            3,
            [pm, "add", "-D", *DEV_DEPENDENCIES],
            "Installing extra development dependencies",
            cwd=root,
        )

    # ------------------------------------------------------------------
    # Step 4: MANIFEST
    # ------------------------------------------------------------------

    async def step4_manifest(self) -> None:
        """Merge the managed scripts and ``lint-staged`` rules into ``package.json``."""
        path = self.config.manifest_path
        with _file_operation(4, path, "read package.json"):
            raw = load_json(path)
            merged = merge_manifest(raw)
        with _file_operation(4, path, "write package.json"):
            await save_json(merged, path)

        self.state["written_files"].append(str(path))
        print_success("+ package.json updated.")

    # ------------------------------------------------------------------
    # Step 5: PATH ALIASES
    # ------------------------------------------------------------------

    async def step5_path_aliases(self) -> None:
        """Add the ``@app/*`` alias to ``tsconfig.json`` when it has no ``paths``."""
        path = self.config.tsconfig_path
        if not path.exists():
            console.print(f"  [dim]{path.name} not found, nothing to adjust.[/dim]")
            self.state["steps_skipped"].append(5)
            return

        with _file_operation(5, path, "read tsconfig.json"):
            tsconfig = load_json(path)
            changed = add_path_aliases(tsconfig)
        if not changed:
            console.print("  [dim]compilerOptions.paths already set, left untouched.[/dim]")
            return

        with _file_operation(5, path, "write tsconfig.json"):
            await save_json(tsconfig, path)
        self.state["written_files"].append(str(path))
        print_success("+ Paths added to tsconfig.json.")

    # ------------------------------------------------------------------
    # Step 6: COMMIT HOOKS
    # ------------------------------------------------------------------

    async def step6_commit_hooks(self) -> None:
        """Initialise husky, then write the hook scripts and commitlint config."""
        if not self.config.options.configure_commit_hooks:
            print_warning("--skip-husky: skipped husky and commitlint setup.")
            self.state["steps_skipped"].append(6)
            return

        root = self.config.project_root
        await self._exec(
            6,
            [self.config.tools.package_runner, "husky", "init"],
            "Initialising husky",
            cwd=root,
        )

        with _file_operation(6, self.config.hooks_dir, "write commit hooks"):
            written = await self.hook_gen.generate_all(root, self._template_context())
        self.state["written_files"].extend(str(p) for p in written)
        print_success("+ husky and commitlint configured.")

    # ------------------------------------------------------------------
    # Step 7: CONFIG FILES
    # ------------------------------------------------------------------

    async def step7_config_files(self) -> None:
        """Write the static tooling configuration files."""
        root = self.config.project_root
        with _file_operation(7, root, "write configuration files"):
            written = await self.config_gen.generate_all(root, self._template_context())
        self.state["written_files"].extend(str(p) for p in written.values())
        print_success(f"+ {len(written)} configuration files created.")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _exec(self, step: int, cmd: list[str], label: str, cwd: Path) -> None:
        """Run *cmd* with inherited stdio and raise if it exits non-zero."""
        print_info(f"{label}...")
        console.print(f"  [dim]$ {escape(format_command(cmd))}[/dim]", highlight=False)
        returncode, _stdout, stderr = await run_command(cmd, cwd=cwd)
        if returncode != 0:
            raise CommandFailedError(step, cmd, returncode, stderr)
        print_success(f"+ {label}")

    def _template_context(self) -> dict[str, Any]:
        return {
            "project_name": self.config.project_name,
            "node_version": self.config.node_version,
            "repository_url": self.config.repository_url,
            "release_branches": self.config.release_branches,
        }

    def _print_final_summary(self) -> None:
        """Print the completion report and a table of what was done."""
        seconds = self.state["elapsed_seconds"]
        skipped = self.state["steps_skipped"]
        console.print()

        print_summary_table(
            {
                "Project root": self.state["project_root"],
                "Steps completed": ", ".join(str(s) for s in self.state["steps_completed"]) or "-",
                "Steps skipped": ", ".join(str(s) for s in skipped) or "-",
                "Files written": str(len(self.state["written_files"])),
                "Elapsed": f"{seconds}s",
            },
            title="Bootstrap Summary",
        )

        if self.state["success"]:
            print_success(f"Project {self.config.project_name} ready.")
            print_info(f"Total run time: {seconds} seconds.")
            if self.config.repository_url == REPOSITORY_URL_PLACEHOLDER:
                print_warning(
                    f"Replace {REPOSITORY_URL_PLACEHOLDER} in .releaserc.json before the first release."
                )
        else:
            failed_step = self.state.get("failed_step")
            print_error(f"Bootstrap stopped at step {failed_step}.")
            if failed_step is not None and failed_step > 1:
                print_info(
                    f"{self.config.project_root} may be partially provisioned; "
                    "fix the problem and re-run with --resume."
                )


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def prompt_project_name() -> str:
    """Ask for a project name until a non-blank one is entered."""
    while True:
        answer = Prompt.ask("[bold]Name of the new NestJS project[/bold]", console=console)
        if answer.strip():
            return answer.strip()
        print_error("The project name cannot be empty.")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``nb``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="nb",
        description="Create a preconfigured NestJS project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  nb my-api\n"
            "  nb my-api --no-deps --skip-husky\n"
            "  nb my-api --resume\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "project_name",
        nargs="?",
        default=None,
        help="Name of the project to create (prompted for if omitted)",
    )
    parser.add_argument(
        "--no-deps",
        action="store_true",
        help="Skip installing the extra dependencies (only create the Nest project)",
    )
    parser.add_argument(
        "--skip-husky",
        action="store_true",
        help="Skip the husky and commitlint setup",
    )
    parser.add_argument(
        "--resume",
        action="store_true",
        help="Continue provisioning an existing project directory from a failed run",
    )

    args = parser.parse_args(argv)

    project_name = args.project_name
    if project_name is None:
        project_name = prompt_project_name()

    try:
        config = BootstrapConfig(
            project_name=project_name,
            options=RunOptions(
                install_extra_dependencies=not args.no_deps,
                configure_commit_hooks=not args.skip_husky,
                resume=args.resume,
            ),
        )
    except ValidationError as exc:
        messages = "; ".join(err["msg"] for err in exc.errors())
        print_error(f"Error: invalid project name ({messages})")
        sys.exit(1)

    pipeline = Pipeline(config)
    result = asyncio.run(pipeline.run())

    if not result.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
