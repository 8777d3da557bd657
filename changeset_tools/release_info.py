"""Release plan persistence and changesets CLI invocation.

`changeset version` deletes the changeset files it consumes, so the release
plan must be captured *before* the bump for update_min_versions() to read
afterwards. The plan is stored in release-info.json as:

    {"releasePlan": {"changesets": [...], "releases": [...]}}

The plain `changeset status --output` shape ({"changesets", "releases"}) is
accepted as well.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import ValidationError

from .config import Config
from .errors import ReleaseInfoError
from .min_versions import update_min_versions
from .models import Package, ReleasePlan
from .shell import run, step, warn

RELEASE_INFO_FILENAME = "release-info.json"


def changeset_status(
    config: Config,
    output: str | Path,
    since: str | None = None,
    *,
    allow_failure: bool = False,
) -> ReleasePlan:
    """Ask changesets for the current release plan.

    Runs `changeset status --output=<output>` in the workspace root.
    changesets joins the output path onto its working directory, so it is
    always passed relative to config.root.

    `changeset status --since` exits non-zero without writing the plan when
    packages changed but no changesets were added. With allow_failure, that
    case yields an empty plan instead of raising.

    Args:
        config: Run configuration.
        output: File for changesets to write the plan to. Relative paths
            are taken from config.root.
        since: Only consider changesets added since this ref.
        allow_failure: Treat a failed status run with no output as an empty
            plan.

    Raises:
        subprocess.CalledProcessError: If status fails and allow_failure is
            False.
    """
    path = config.root / output
    relative = Path(os.path.relpath(path, config.root)).as_posix()

    args = [*config.changeset_command, "status", f"--output={relative}"]
    if since:
        args.append(f"--since={since}")
    result = run(*args, cwd=config.root, check=not allow_failure)
    if result.returncode != 0 and not path.exists():
        warn(
            f"changeset status exited with code {result.returncode},"
            " treating the release plan as empty"
        )
        return ReleasePlan()
    return read_release_info(path)


def read_release_info(path: Path) -> ReleasePlan:
    """Load a release plan written by write_release_info() or changesets.

    Raises:
        ReleaseInfoError: If the file is missing or isn't a release plan.
    """
    if not path.exists():
        raise ReleaseInfoError(f"Release info not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ReleaseInfoError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ReleaseInfoError(f"Expected a JSON object in {path}")

    try:
        return ReleasePlan.model_validate(data.get("releasePlan", data))
    except ValidationError as exc:
        raise ReleaseInfoError(f"Invalid release plan in {path}: {exc}") from exc


def save_release_info(path: Path, release_plan: ReleasePlan) -> None:
    """Write a release plan in the wrapped release-info.json shape."""
    payload = {"releasePlan": release_plan.model_dump(by_alias=True)}
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def write_release_info(config: Config, since: str | None = None) -> Path:
    """Capture the pending release plan to config.release_info_path.

    Returns:
        Path of the written file.
    """
    step("Writing release info")
    path = config.release_info_path
    release_plan = changeset_status(
        config, config.release_info_file, since=since
    )
    save_release_info(path, release_plan)
    for release in release_plan.releases:
        print(
            f"  {release.name}: {release.old_version} → {release.new_version}"
            f" ({release.type})"
        )
    return path


def run_version(config: Config) -> list[Package]:
    """Bump versions with changesets, then raise unreleased dependents' ranges.

    1. Write release info while the changesets still exist
    2. Run `changeset version`
    3. Update minimum versions of unreleased dependents

    Returns:
        Dependents whose ranges were raised.
    """
    path = write_release_info(config)

    step("Bumping versions")
    run(*config.changeset_command, "version", cwd=config.root)

    return update_min_versions(read_release_info(path), config)
