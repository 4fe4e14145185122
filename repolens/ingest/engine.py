"""
Analysis Engine

Drives one analysis run:
1. File discovery (or validation of explicit target files)
2. Per file: size check, read, language detection, extraction
3. Incremental merge with a previous manifest
4. Workspace detection and dependency graph construction
5. Project metadata and statistics
6. Static insights
"""

import json
import math
import os
import shutil
import tempfile
import time
import tomllib
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from repolens import __version__
from repolens.ast.extractors import get_extractor
from repolens.ast.languages import detect_language, get_supported_extensions
from repolens.ast.models import ModuleInfo
from repolens.ast.parser import ParserContext, get_default_context
from repolens.configs import AnalysisConfig, get_analysis_config, get_logger
from repolens.exceptions import (
    FileAnalysisError,
    FileReadError,
    FileTooLargeError,
    ManifestError,
    ParseError,
    ParserNotFoundError,
    UnsupportedLanguageError,
)
from repolens.ingest.graph import build_dependency_graph, is_entry_point
from repolens.ingest.merge import merge_modules, merge_summary_cache
from repolens.ingest.models import (
    AnalysisManifest,
    AnalysisStats,
    FileAnalysis,
    LanguageStat,
    LanguageTotals,
    ProjectMeta,
    SkippedFile,
    SkipReason,
    WorkspaceInfo,
)
from repolens.ingest.walker import compute_content_hash, discover_files, validate_file_paths
from repolens.ingest.workspace import resolve_workspace

logger = get_logger("ingest.engine")

# Most specific first: a FileReadError is checked before its FileAnalysisError base
_SKIP_REASONS = [
    (FileTooLargeError, SkipReason.FILE_TOO_LARGE),
    (UnsupportedLanguageError, SkipReason.UNSUPPORTED_LANGUAGE),
    (ParserNotFoundError, SkipReason.NO_PARSER),
    (ParseError, SkipReason.PARSE_ERROR),
    (FileReadError, SkipReason.IO_ERROR),
]

# Lockfile -> package manager, checked in order
_LOCKFILES = [
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("bun.lockb", "bun"),
    ("package-lock.json", "npm"),
    ("poetry.lock", "poetry"),
    ("uv.lock", "uv"),
    ("Pipfile.lock", "pipenv"),
    ("Cargo.lock", "cargo"),
    ("go.sum", "go"),
    ("Gemfile.lock", "bundler"),
    ("composer.lock", "composer"),
]


# =============================================================================
# Per-file Analysis
# =============================================================================


def _extract_module(
    root: Path,
    rel_path: str,
    config: AnalysisConfig,
    context: ParserContext,
) -> ModuleInfo:
    """
    Build the ModuleInfo for one file.

    Raises:
        FileAnalysisError: A subclass naming why the file cannot be analyzed
    """
    abs_path = root / rel_path

    try:
        file_size = abs_path.stat().st_size
    except OSError as e:
        raise FileReadError(f"Cannot stat file: {e}", file_path=rel_path) from e

    if file_size > config.max_file_size:
        raise FileTooLargeError(
            f"exceeds {config.max_file_size} byte limit ({file_size} bytes)",
            file_path=rel_path,
            details={"size": file_size},
        )

    try:
        source = abs_path.read_bytes()
    except OSError as e:
        raise FileReadError(f"Cannot read file: {e}", file_path=rel_path) from e

    language = detect_language(rel_path)
    if language is None:
        raise UnsupportedLanguageError(
            f"unrecognized language for extension {Path(rel_path).suffix or '(none)'}",
            file_path=rel_path,
        )

    extractor = get_extractor(language)
    if extractor is None:
        raise ParserNotFoundError(f"no parser for {language}", file_path=rel_path)

    try:
        result = extractor.extract(source, rel_path, context)
    except ParseError:
        raise
    except Exception as e:
        raise ParseError(f"{type(e).__name__}: {e}", file_path=rel_path) from e

    text = source.decode("utf-8", errors="replace")
    return ModuleInfo(
        file_path=rel_path,
        language=language,
        symbols=result.symbols,
        imports=result.imports,
        exports=result.exports,
        module_doc=result.module_doc,
        file_size=file_size,
        line_count=len(text.split("\n")),
        content_hash=compute_content_hash(source),
        analyzed_at=datetime.now(timezone.utc).isoformat(),
    )


def _skip_reason(error: FileAnalysisError) -> SkipReason:
    for error_type, reason in _SKIP_REASONS:
        if isinstance(error, error_type):
            return reason
    return SkipReason.PARSE_ERROR


def analyze_file(
    root_path: Union[str, Path],
    rel_path: str,
    config: AnalysisConfig,
    context: ParserContext,
) -> FileAnalysis:
    """
    Analyze one file into either a ModuleInfo or a skip record.

    Never raises for per-file problems; this is the one place where
    per-file errors become SkippedFile records.

    Args:
        root_path: Repository root
        rel_path: Repo-relative POSIX path
        config: Analysis settings (max_file_size)
        context: Parser context

    Returns:
        FileAnalysis with module or skipped set
    """
    try:
        module = _extract_module(Path(root_path), rel_path, config, context)
    except FileAnalysisError as e:
        reason = _skip_reason(e)
        if reason in (SkipReason.PARSE_ERROR, SkipReason.IO_ERROR):
            logger.warning(f"Skipped {rel_path}: {reason.value} - {e.message}")
        else:
            logger.debug(f"Skipped {rel_path}: {e.message}")
        return FileAnalysis.skip(rel_path, reason, e.message)

    return FileAnalysis.success(module)


# =============================================================================
# Project Metadata and Stats
# =============================================================================


def _read_package_json(root: Path) -> dict:
    path = root / "package.json"
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def _read_pyproject(root: Path) -> dict:
    path = root / "pyproject.toml"
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return {}
    project = data.get("project")
    return project if isinstance(project, dict) else {}


def _license_text(value) -> Optional[str]:
    """package.json "license" string, or pyproject {text = ...} / {file = ...}."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return value.get("text") or value.get("file")
    return None


def detect_package_manager(root_path: Union[str, Path]) -> Optional[str]:
    root = Path(root_path)
    for lockfile, manager in _LOCKFILES:
        if (root / lockfile).exists():
            return manager
    return None


def compute_project_meta(modules: list[ModuleInfo], root_path: Union[str, Path]) -> ProjectMeta:
    """
    Describe the project: languages by file count, entry points, and
    package metadata from package.json or pyproject.toml.
    """
    root = Path(root_path).resolve()

    counts = Counter(module.language for module in modules)
    total = len(modules)
    languages = [
        LanguageStat(name=name, file_count=count, percentage=math.floor(count / total * 100 + 0.5))
        for name, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    ]

    readme = next(
        (m for m in modules if Path(m.file_path).name.lower() == "readme.md" and m.module_doc),
        None,
    )

    package = _read_package_json(root) or _read_pyproject(root)

    return ProjectMeta(
        name=root.name,
        languages=languages,
        entry_points=[m.file_path for m in modules if is_entry_point(m.file_path)],
        version=package.get("version") if isinstance(package.get("version"), str) else None,
        description=package.get("description") if isinstance(package.get("description"), str) else None,
        readme_description=readme.module_doc.summary if readme and readme.module_doc.summary else None,
        package_manager=detect_package_manager(root),
        license=_license_text(package.get("license")),
    )


def compute_stats(
    modules: list[ModuleInfo],
    skipped: list[SkippedFile],
    start_time: float,
) -> AnalysisStats:
    """Totals by language and symbol kind, elapsed time and skip breakdown."""
    stats = AnalysisStats(total_files=len(modules))

    for module in modules:
        totals = stats.by_language.setdefault(module.language, LanguageTotals())
        totals.files += 1
        totals.symbols += len(module.symbols)
        totals.lines += module.line_count

        for symbol in module.symbols:
            kind = symbol.kind.value
            stats.by_kind[kind] = stats.by_kind.get(kind, 0) + 1

        stats.total_symbols += len(module.symbols)
        stats.total_lines += module.line_count

    stats.skipped_files = len(skipped)
    for skip in skipped:
        stats.skipped_by_reason[skip.reason.value] = stats.skipped_by_reason.get(skip.reason.value, 0) + 1

    stats.analysis_time_ms = int((time.time() - start_time) * 1000)
    return stats


# =============================================================================
# Main Analysis Function
# =============================================================================


def _normalize_targets(target_files: list[str]) -> list[str]:
    targets = []
    for path in target_files:
        path = path.replace("\\", "/")
        if path.startswith("./"):
            path = path[2:]
        targets.append(path)
    return targets


def analyze_codebase(
    root_path: Union[str, Path],
    config: Optional[AnalysisConfig] = None,
    context: Optional[ParserContext] = None,
    previous_manifest: Optional[AnalysisManifest] = None,
    target_files: Optional[list[str]] = None,
) -> AnalysisManifest:
    """
    Analyze a repository and build its manifest.

    With both previous_manifest and target_files, the run is incremental:
    only the targets are re-analyzed and every other module is carried over
    from the previous manifest unchanged. The previous manifest itself is
    never modified.

    Args:
        root_path: Repository root
        config: Analysis settings (loaded from root when None)
        context: Parser context (process default when None)
        previous_manifest: Manifest of an earlier run
        target_files: Repo-relative paths to (re-)analyze instead of discovery

    Returns:
        New AnalysisManifest

    Raises:
        DiscoveryError: If the repository cannot be enumerated
        ConfigurationError: If the configuration is invalid
    """
    start_time = time.time()
    root = Path(root_path)
    config = config or get_analysis_config(root)
    context = context or get_default_context()

    # Step 1: files to analyze
    targets = _normalize_targets(target_files) if target_files is not None else None
    if targets is not None:
        files = validate_file_paths(root, targets, config.include, config.exclude)
        logger.info(f"Incremental analysis: {len(files)} of {len(targets)} target files")
    else:
        files = discover_files(root, config.include, config.exclude)
        logger.info(f"Full analysis: {len(files)} files under {root}")

    if not files and targets is None:
        logger.warning("No source files found matching include patterns. Check include/exclude settings.")
        logger.info(f"Supported extensions: {', '.join(get_supported_extensions())}")

    # Step 2: per-file extraction
    modules: list[ModuleInfo] = []
    skipped: list[SkippedFile] = []
    for rel_path in files:
        analysis = analyze_file(root, rel_path, config, context)
        if analysis.ok:
            modules.append(analysis.module)
        else:
            skipped.append(analysis.skipped)

    if files and not modules:
        logger.warning(f"Found {len(files)} files but all were skipped during parsing")
    logger.info(f"Analyzed {len(modules)} files, skipped {len(skipped)}")

    # Step 3: incremental merge
    all_modules = merge_modules(modules, previous_manifest, targets)

    # Step 4: workspace + dependency graph
    workspace = resolve_workspace(root) if config.monorepo else WorkspaceInfo()
    dependency_graph = build_dependency_graph(all_modules, workspace, config.import_aliases)

    summary_cache = []
    if previous_manifest is not None:
        summary_cache = merge_summary_cache(previous_manifest.summary_cache, all_modules)

    # Step 5: metadata and stats
    manifest = AnalysisManifest(
        repolens_version=__version__,
        root=str(root.resolve()),
        analyzed_at=datetime.now(timezone.utc).isoformat(),
        modules=all_modules,
        dependency_graph=dependency_graph,
        project_meta=compute_project_meta(all_modules, root),
        stats=compute_stats(all_modules, skipped, start_time),
        workspace=workspace,
        skipped=skipped,
        summary_cache=summary_cache,
    )

    # Step 6: static insights
    if config.run_insights:
        # Imported here: repolens.insights imports repolens.ingest
        from repolens.insights import run_static_insights

        manifest.insights = run_static_insights(manifest, config.insights)

    logger.info(
        f"Analysis complete: {manifest.stats.total_files} modules, "
        f"{manifest.stats.total_symbols} symbols, {len(dependency_graph.edges)} edges "
        f"in {manifest.stats.analysis_time_ms}ms"
    )
    return manifest


# =============================================================================
# Manifest Persistence
# =============================================================================


def save_manifest(manifest: AnalysisManifest, path: Union[str, Path]) -> None:
    """
    Write a manifest as JSON, atomically.

    Args:
        manifest: Manifest to save
        path: Destination file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    # Atomic write: write to temp file, then rename
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(manifest.to_dict(), f, indent=2)
        shutil.move(tmp_path, path)
    except Exception:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def load_manifest(path: Union[str, Path]) -> Optional[AnalysisManifest]:
    """
    Load a manifest written by save_manifest.

    Returns:
        The manifest, or None if the file does not exist

    Raises:
        ManifestError: If the file is not a valid manifest
    """
    path = Path(path)
    if not path.exists():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return AnalysisManifest.from_dict(data)
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise ManifestError(f"Invalid manifest: {path}", details={"error": str(e)}) from e
