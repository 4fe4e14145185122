"""
Workspace Resolver

Detects monorepo layouts (npm/yarn workspaces, pnpm-workspace.yaml,
lerna.json) and maps each package name to its directory, so imports of
sibling packages can be resolved to files.

Best effort: anything missing or malformed means "no workspace".
"""

import glob
import json
from pathlib import Path
from typing import Optional, Union

import yaml

from repolens.configs import get_logger
from repolens.ingest.models import WorkspaceInfo

logger = get_logger("ingest.workspace")

DEFAULT_LERNA_PACKAGES = ["packages/*"]


def _read_json(path: Path) -> Optional[dict]:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        if path.exists():
            logger.debug(f"Ignoring unreadable {path.name}: {e}")
        return None
    return data if isinstance(data, dict) else None


def _npm_globs(root: Path) -> list[str]:
    """package.json "workspaces": either a list or {"packages": [...]}."""
    package_json = _read_json(root / "package.json")
    if not package_json:
        return []
    workspaces = package_json.get("workspaces")
    if isinstance(workspaces, dict):
        workspaces = workspaces.get("packages")
    if not isinstance(workspaces, list):
        return []
    return [g for g in workspaces if isinstance(g, str)]


def _pnpm_globs(root: Path) -> list[str]:
    path = root / "pnpm-workspace.yaml"
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        if path.exists():
            logger.debug(f"Ignoring unreadable pnpm-workspace.yaml: {e}")
        return []
    if not isinstance(data, dict) or not isinstance(data.get("packages"), list):
        return []
    return [g for g in data["packages"] if isinstance(g, str)]


def _lerna_globs(root: Path) -> Optional[list[str]]:
    """None when there is no lerna.json; default packages/* when it omits the list."""
    lerna_json = _read_json(root / "lerna.json")
    if lerna_json is None:
        return None
    packages = lerna_json.get("packages")
    if not isinstance(packages, list):
        return list(DEFAULT_LERNA_PACKAGES)
    return [g for g in packages if isinstance(g, str)]


def resolve_workspace_globs(root_path: Union[str, Path], globs: list[str]) -> dict[str, str]:
    """
    Expand workspace globs to a package name -> directory map.

    Each glob names package directories; only directories holding a
    package.json with a "name" are kept. Negated globs ("!pkg") and
    anything under node_modules are ignored.

    Returns:
        Package name -> repo-relative POSIX directory
    """
    root = Path(root_path)
    packages: dict[str, str] = {}

    for pattern in globs:
        if pattern.startswith("!"):
            continue
        pattern = pattern.rstrip("/")
        for match in sorted(glob.glob(str(root / pattern / "package.json"), recursive=True)):
            manifest_path = Path(match)
            rel_dir = manifest_path.parent.relative_to(root).as_posix()
            if "node_modules" in rel_dir.split("/"):
                continue
            package_json = _read_json(manifest_path)
            name = package_json.get("name") if package_json else None
            if isinstance(name, str) and name:
                packages[name] = rel_dir

    return packages


def resolve_workspace(root_path: Union[str, Path]) -> WorkspaceInfo:
    """
    Detect the workspace layout of a repository.

    Strategies are tried in order (npm, pnpm, lerna); the first one that
    yields at least one package wins.

    Args:
        root_path: Repository root

    Returns:
        WorkspaceInfo, with type "none" and no packages if nothing matched
    """
    root = Path(root_path)

    strategies = [
        ("npm", _npm_globs(root)),
        ("pnpm", _pnpm_globs(root)),
        ("lerna", _lerna_globs(root)),
    ]
    for workspace_type, globs in strategies:
        if not globs:
            continue
        packages = resolve_workspace_globs(root, globs)
        if packages:
            logger.info(f"Detected {workspace_type} workspace with {len(packages)} packages")
            return WorkspaceInfo(packages=packages, type=workspace_type)

    return WorkspaceInfo()
