"""Map changed files to the workspace packages that own them.

A file belongs to the package whose directory is the longest path-segment
prefix of the file path, so "packages/foo-bar/src/index.ts" never resolves to
"packages/foo". Files outside every package (root configs, CI scripts) are
dropped.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from .config import Config
from .errors import PackageNotFoundError
from .graph import build_dependents_graph
from .manifest import discover_packages
from .models import Package
from .shell import git

# Files that always affect the published package
ALWAYS_RELEVANT = frozenset({"package.json", "tsconfig.json"})

_TEST_FILE_RE = re.compile(r"\.(examples|test)\.(ts|js)x?$")


def _relative_parts(path: str, root: Path | None) -> tuple[str, ...]:
    """Split a path into segments, relative to root when it's absolute."""
    p = Path(path)
    if root is not None and p.is_absolute():
        try:
            p = p.relative_to(root)
        except ValueError:
            pass
    return PurePosixPath(p.as_posix()).parts


def resolve_packages_for_files(
    changed_files: Iterable[str],
    packages: Iterable[Package],
    root: Path | None = None,
) -> list[Package]:
    """Find the packages owning a list of changed files.

    Args:
        changed_files: File paths, relative to the workspace root (or
                       absolute paths under root).
        packages: All workspace packages.
        root: Workspace root, used to relativize absolute paths.

    Returns:
        Owning packages, deduplicated, in order of first occurrence.
    """
    # Longest directory first so nested packages win over their parents
    owners = sorted(
        ((_relative_parts(pkg.dir, root), pkg) for pkg in packages),
        key=lambda item: len(item[0]),
        reverse=True,
    )

    found: dict[str, Package] = {}
    for changed_file in changed_files:
        parts = _relative_parts(changed_file, root)
        for dir_parts, pkg in owners:
            if (
                dir_parts
                and len(parts) > len(dir_parts)
                and parts[: len(dir_parts)] == dir_parts
            ):
                found.setdefault(pkg.name, pkg)
                break
    return list(found.values())


def requires_changeset(path: str, source_dir: str = "src") -> bool:
    """Decide whether a changed file can affect the published package.

    - Test files (*.test.ts, *.examples.tsx, ...) and anything in a
      __tests__ directory under the source tree never count.
    - package.json and tsconfig.json always count.
    - Otherwise only files under the source tree count.
    """
    parts = PurePosixPath(path).parts
    if not parts:
        return False
    name, dirs = parts[-1], parts[:-1]

    if _TEST_FILE_RE.search(name):
        return False
    if source_dir in dirs:
        below_source = parts[dirs.index(source_dir) + 1 :]
        if any("__tests__" in part for part in below_source):
            return False
        return True
    return name in ALWAYS_RELEVANT


def resolve_mandatory_changeset_packages(
    changed_files: Iterable[str],
    packages: Iterable[Package],
    root: Path | None = None,
    source_dir: str = "src",
) -> list[Package]:
    """Find packages whose changes need a changeset."""
    relevant = [f for f in changed_files if requires_changeset(f, source_dir)]
    return resolve_packages_for_files(relevant, packages, root)


def with_direct_dependents(
    changed: Iterable[Package], packages: Iterable[Package]
) -> list[Package]:
    """Extend changed packages with their direct runtime dependents.

    Only "dependencies" declarations count; dev and peer dependents are not
    affected at runtime.

    Returns:
        Changed packages first, then their dependents, deduplicated.

    Raises:
        PackageNotFoundError: If a dependent isn't in packages.
    """
    packages = list(packages)
    packages_by_name = {pkg.name: pkg for pkg in packages}
    dependents_graph = build_dependents_graph(packages)

    changed = list(changed)
    result: dict[str, Package] = {pkg.name: pkg for pkg in changed}
    for pkg in changed:
        for edge in dependents_graph.get(pkg.name, []):
            if edge.dep_type != "dependencies":
                continue
            dependent = packages_by_name.get(edge.name)
            if dependent is None:
                raise PackageNotFoundError(f"Cannot find package '{edge.name}'")
            result.setdefault(dependent.name, dependent)
    return list(result.values())


def get_changed_files(since_ref: str, cwd: Path | None = None) -> list[str]:
    """List files changed on this branch since it diverged from since_ref.

    Paths are relative to cwd, and files outside it are left out, so a
    workspace nested inside a larger repository still lines up with its
    package directories.
    """
    output = git("diff", "--relative", "--name-only", f"{since_ref}...HEAD", cwd=cwd)
    return [line for line in output.splitlines() if line]


def get_changed_packages(
    config: Config, *, since: str | None = None, mandatory: bool = False
) -> list[Package]:
    """Detect changed packages in the workspace.

    Args:
        config: Run configuration.
        since: Ref to diff against; config.since_ref when omitted.
        mandatory: Only count changes that need a changeset.
    """
    packages = discover_packages(config.root, config.workspaces)
    changed_files = get_changed_files(since or config.since_ref, cwd=config.root)
    if mandatory:
        return resolve_mandatory_changeset_packages(
            changed_files, packages, config.root, config.source_dir
        )
    return resolve_packages_for_files(changed_files, packages, config.root)
