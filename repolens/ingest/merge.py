"""
Incremental Merge

Combines freshly parsed modules with the modules of a previous manifest.
"""

from typing import Iterable, Optional

from repolens.ast.models import ModuleInfo
from repolens.configs import get_logger
from repolens.ingest.models import AnalysisManifest, SummaryCacheEntry

logger = get_logger("ingest.merge")


def merge_modules(
    new_modules: list[ModuleInfo],
    previous_manifest: Optional[AnalysisManifest] = None,
    target_files: Optional[Iterable[str]] = None,
) -> list[ModuleInfo]:
    """
    Merge re-analyzed modules into the previous manifest's module set.

    Previous modules whose path is not a target are carried over as the
    same objects. Target paths take the fresh module, or disappear if the
    fresh run skipped them (deleted or now unparseable). Without a previous
    manifest or a target set this is a full run and new_modules is returned
    as a new list.

    Returns:
        One module per distinct path; a new list, previous manifest untouched
    """
    if previous_manifest is None or target_files is None:
        return list(new_modules)

    targets = set(target_files)
    fresh = {m.file_path: m for m in new_modules}

    preserved = [
        m for m in previous_manifest.modules
        if m.file_path not in targets and m.file_path not in fresh
    ]
    merged = preserved + list(fresh.values())
    merged.sort(key=lambda m: m.file_path)

    logger.debug(
        f"Incremental merge: {len(preserved)} preserved, {len(fresh)} re-analyzed"
    )
    return merged


def merge_summary_cache(
    previous: Iterable[SummaryCacheEntry],
    modules: list[ModuleInfo],
) -> list[SummaryCacheEntry]:
    """
    Carry summary cache entries forward.

    Only entries whose content hash belongs to a current module survive;
    the last entry for a hash wins.
    """
    live_hashes = {m.content_hash for m in modules}
    by_hash: dict[str, SummaryCacheEntry] = {}
    for entry in previous:
        if entry.content_hash in live_hashes:
            by_hash[entry.content_hash] = entry
    return list(by_hash.values())
