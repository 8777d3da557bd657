"""CLI entry point for changeset-tools."""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from .changed import get_changed_packages, with_direct_dependents
from .check import MISSING_CHANGESETS_HELP, run_check
from .config import Config, load_config
from .errors import MissingChangesetsError, ReleaseInfoError, WorkspaceError
from .graph import get_transitive_dependencies
from .manifest import discover_packages
from .min_versions import update_min_versions
from .models import DEPENDENCY_TYPES
from .release_info import read_release_info, run_version, write_release_info
from .shell import fatal

pass_config = click.make_pass_decorator(Config)


@contextmanager
def _exit_on_errors() -> Iterator[None]:
    """Turn expected failures into an error message and exit code 1.

    Data consistency errors and I/O failures are not caught, so they exit 1
    with a full traceback.
    """
    try:
        yield
    except MissingChangesetsError as exc:
        fatal(f"{exc}\n\n{MISSING_CHANGESETS_HELP}")
    except (ReleaseInfoError, WorkspaceError) as exc:
        fatal(str(exc))


@click.group()
@click.version_option(package_name="changeset-tools")
@click.option(
    "--cwd",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    show_default=True,
    help="Workspace root containing the root package.json.",
)
@click.pass_context
def cli(ctx: click.Context, cwd: str) -> None:
    """Changesets helpers for package.json monorepos."""
    ctx.obj = load_config(Path(cwd).resolve(), os.environ)


@cli.command("write-release-info")
@click.option("--since", default=None, help="Only include changesets since REF.")
@pass_config
def write_release_info_cmd(config: Config, since: str | None) -> None:
    """Save the pending release plan before `changeset version` consumes it."""
    with _exit_on_errors():
        path = write_release_info(config, since=since)
    click.echo(f"✓ Wrote release info to {path.relative_to(config.root)}")


@cli.command("update-min-versions")
@click.option(
    "--release-info",
    "release_info",
    type=click.Path(dir_okay=False),
    default=None,
    help="Release plan file. (default: release-info.json in the workspace root)",
)
@pass_config
def update_min_versions_cmd(config: Config, release_info: str | None) -> None:
    """Raise version ranges of dependents not released this cycle."""
    path = config.root / release_info if release_info else config.release_info_path
    with _exit_on_errors():
        update_min_versions(read_release_info(path), config)


@cli.command()
@pass_config
def version(config: Config) -> None:
    """Run `changeset version`, then raise unreleased dependents' ranges."""
    with _exit_on_errors():
        run_version(config)


@cli.command()
@pass_config
def check(config: Config) -> None:
    """Fail if changed packages are missing a changeset."""
    with _exit_on_errors():
        run_check(config)


@cli.command()
@click.option("--since", default=None, help="Ref to diff against.")
@click.option(
    "--mandatory", is_flag=True, help="Only count changes that need a changeset."
)
@click.option(
    "--dependents",
    type=click.Choice(["direct"]),
    default=None,
    help="Also include dependents of changed packages.",
)
@click.option("--dirs", is_flag=True, help="Print package directories, not names.")
@pass_config
def changed(
    config: Config,
    since: str | None,
    mandatory: bool,
    dependents: str | None,
    dirs: bool,
) -> None:
    """List packages changed on this branch."""
    with _exit_on_errors():
        packages = get_changed_packages(config, since=since, mandatory=mandatory)
        if dependents == "direct":
            packages = with_direct_dependents(
                packages, discover_packages(config.root, config.workspaces)
            )
    for pkg in packages:
        click.echo(pkg.dir if dirs else pkg.name)


@cli.command()
@click.argument("package")
@click.option(
    "--depth", type=int, default=-1, help="Levels to walk; negative for all."
)
@click.option(
    "--exclude",
    "excluded_types",
    type=click.Choice(DEPENDENCY_TYPES),
    multiple=True,
    help="Dependency category to ignore (repeatable).",
)
@pass_config
def deps(
    config: Config, package: str, depth: int, excluded_types: tuple[str, ...]
) -> None:
    """List workspace packages PACKAGE depends on, directly or transitively."""
    with _exit_on_errors():
        packages = discover_packages(config.root, config.workspaces)
    if package not in {pkg.name for pkg in packages}:
        fatal(f"Unknown workspace package: {package}")
    for name in sorted(
        get_transitive_dependencies(
            package, packages, depth=depth, excluded_types=excluded_types
        )
    ):
        click.echo(name)
