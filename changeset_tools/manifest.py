"""package.json reading and writing utilities.

Manifests are written back the way npm and changesets write them: two-space
indentation, non-ASCII left as is, and a trailing newline, so rewrites
produce minimal diffs.
"""

from __future__ import annotations

import glob
import json
from pathlib import Path
from typing import Any

from .errors import WorkspaceError
from .models import Package

MANIFEST_FILENAME = "package.json"


def load_manifest(path: Path) -> dict[str, Any]:
    """Load and parse a package.json file."""
    return json.loads(path.read_text(encoding="utf-8"))


def dumps_manifest(data: dict[str, Any]) -> str:
    """Serialize package.json contents (2-space indent, trailing newline)."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def save_manifest(path: Path, data: dict[str, Any]) -> None:
    """Write package.json contents back to disk."""
    path.write_text(dumps_manifest(data), encoding="utf-8")


def write_package(root: Path, pkg: Package) -> Path:
    """Persist a package's current state to its package.json.

    Returns:
        Path of the written manifest.
    """
    path = root / pkg.dir / MANIFEST_FILENAME
    save_manifest(path, pkg.to_manifest())
    return path


def get_workspace_globs(root_manifest: dict[str, Any]) -> list[str]:
    """Extract workspace glob patterns from the root package.json.

    Supports both the plain list form and the yarn object form:
    - "workspaces": ["packages/*"]
    - "workspaces": {"packages": ["packages/*"], "nohoist": [...]}

    Raises:
        WorkspaceError: If no workspaces are declared.
    """
    workspaces = root_manifest.get("workspaces")
    if isinstance(workspaces, dict):
        workspaces = workspaces.get("packages")
    if not workspaces:
        raise WorkspaceError("No workspaces defined in root package.json")
    return list(workspaces)


def discover_packages(
    root: Path, workspace_globs: list[str] | None = None
) -> list[Package]:
    """Scan the workspace and load every package.

    Reads the "workspaces" globs from the root package.json (unless
    workspace_globs is given), expands them, and loads each matching
    directory's package.json.

    Args:
        root: Workspace root directory.
        workspace_globs: Glob patterns overriding the root package.json.

    Returns:
        Packages in glob order, with dirs relative to root.

    Raises:
        WorkspaceError: If the root manifest is missing or nothing matches.
        MalformedPackageError: If a package.json has no name.
    """
    if workspace_globs is None:
        root_manifest_path = root / MANIFEST_FILENAME
        if not root_manifest_path.exists():
            raise WorkspaceError(f"No {MANIFEST_FILENAME} found in {root}")
        workspace_globs = get_workspace_globs(load_manifest(root_manifest_path))

    # Expand globs to find all package directories
    member_dirs: list[Path] = []
    for pattern in workspace_globs:
        for match in sorted(glob.glob(str(root / pattern))):
            p = Path(match)
            if "node_modules" in p.relative_to(root).parts or p in member_dirs:
                continue
            if (p / MANIFEST_FILENAME).exists():
                member_dirs.append(p)

    if not member_dirs:
        raise WorkspaceError("No packages found matching workspaces")

    return [
        Package.from_manifest(
            d.relative_to(root).as_posix(), load_manifest(d / MANIFEST_FILENAME)
        )
        for d in member_dirs
    ]
