"""
Codebase Walker

File discovery with include/exclude globs, and content hashing.
"""

import fnmatch
import hashlib
import os
from pathlib import Path
from typing import Union

from repolens.configs import get_logger
from repolens.exceptions import DiscoveryError

logger = get_logger("ingest.walker")

# Hex digits kept from the sha256 digest
CONTENT_HASH_LENGTH = 16


def _matches(rel_path: str, patterns: list[str]) -> bool:
    """
    fnmatch against repo-relative POSIX paths.

    fnmatch's "*" already crosses "/", so "**/*.py" matches any nested file;
    the pattern with its leading "**/" removed is also tried so root-level
    files match too.
    """
    for pattern in patterns:
        if fnmatch.fnmatch(rel_path, pattern):
            return True
        if pattern.startswith("**/") and fnmatch.fnmatch(rel_path, pattern[3:]):
            return True
    return False


def _pruned_directory(rel_dir: str, exclude: list[str]) -> bool:
    """True if a directory is excluded as a whole by a "<dir>/**" pattern."""
    dir_patterns = [p[:-3] for p in exclude if p.endswith("/**")]
    return _matches(rel_dir, dir_patterns)


def discover_files(
    root_path: Union[str, Path],
    include: list[str],
    exclude: list[str],
) -> list[str]:
    """
    Find all files under root matching include and not matching exclude.

    Hidden files and directories are skipped; symlinked directories are
    not followed.

    Args:
        root_path: Repository root
        include: Globs a file must match (at least one)
        exclude: Globs that remove a file

    Returns:
        Sorted repo-relative POSIX paths

    Raises:
        DiscoveryError: If the root cannot be enumerated
    """
    root = Path(root_path)
    if not root.is_dir():
        raise DiscoveryError(f"Not a directory: {root}", details={"root": str(root)})

    def _on_error(error: OSError) -> None:
        # The root itself failing is fatal; nested failures are not
        if Path(error.filename or "") == root:
            raise DiscoveryError(f"Cannot read {root}: {error}", details={"root": str(root)}) from error
        logger.debug(f"Skipped unreadable directory: {error.filename}")

    files = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        rel_dir = "" if rel_dir == "." else rel_dir

        # Filter out hidden and excluded directories (in-place modification)
        dirnames[:] = sorted(
            d for d in dirnames
            if not d.startswith(".")
            and not _pruned_directory(f"{rel_dir}/{d}" if rel_dir else d, exclude)
        )

        for filename in filenames:
            if filename.startswith("."):
                continue
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if not _matches(rel_path, include):
                continue
            if _matches(rel_path, exclude):
                continue
            files.append(rel_path)

    files.sort()
    logger.debug(f"Discovered {len(files)} files under {root}")
    return files


def validate_file_paths(
    root_path: Union[str, Path],
    file_paths: list[str],
    include: list[str],
    exclude: list[str],
) -> list[str]:
    """
    Keep only target paths that still exist and still match the globs.

    Used for incremental runs, where the caller names the changed files.
    """
    root = Path(root_path)
    valid = []
    for file_path in file_paths:
        rel_path = file_path.replace("\\", "/")
        if rel_path.startswith("./"):
            rel_path = rel_path[2:]
        if not (root / rel_path).is_file():
            logger.debug(f"Dropped target (missing): {rel_path}")
            continue
        if any(part.startswith(".") for part in rel_path.split("/")):
            continue
        if not _matches(rel_path, include) or _matches(rel_path, exclude):
            logger.debug(f"Dropped target (filtered): {rel_path}")
            continue
        valid.append(rel_path)
    return valid


def compute_content_hash(data: bytes) -> str:
    """
    Stable digest of raw file bytes.

    Identical bytes always give the same hash, whatever the path.
    """
    return hashlib.sha256(data).hexdigest()[:CONTENT_HASH_LENGTH]


def compute_file_hash(file_path: Union[str, Path]) -> str:
    """Content hash of a file on disk."""
    hasher = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            hasher.update(chunk)
    return hasher.hexdigest()[:CONTENT_HASH_LENGTH]
