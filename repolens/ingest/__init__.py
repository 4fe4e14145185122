"""
Repolens Analysis Engine

File discovery, workspace detection, dependency graph construction,
incremental merge and manifest building.
"""

from repolens.ingest.engine import (
    analyze_codebase,
    analyze_file,
    compute_project_meta,
    compute_stats,
    detect_package_manager,
    load_manifest,
    save_manifest,
)
from repolens.ingest.graph import (
    build_dependency_graph,
    find_impacted_modules,
    is_entry_point,
    resolve_import_source,
)
from repolens.ingest.merge import merge_modules, merge_summary_cache
from repolens.ingest.models import (
    AnalysisManifest,
    AnalysisStats,
    DependencyEdge,
    DependencyGraph,
    FileAnalysis,
    Insight,
    LanguageStat,
    ProjectMeta,
    SkippedFile,
    SkipReason,
    SummaryCacheEntry,
    WorkspaceInfo,
)
from repolens.ingest.walker import (
    compute_content_hash,
    compute_file_hash,
    discover_files,
    validate_file_paths,
)
from repolens.ingest.workspace import resolve_workspace, resolve_workspace_globs

__all__ = [
    # Engine
    "analyze_codebase",
    "analyze_file",
    "compute_project_meta",
    "compute_stats",
    "detect_package_manager",
    "load_manifest",
    "save_manifest",
    # Graph
    "build_dependency_graph",
    "find_impacted_modules",
    "is_entry_point",
    "resolve_import_source",
    # Merge
    "merge_modules",
    "merge_summary_cache",
    # Models
    "AnalysisManifest",
    "AnalysisStats",
    "DependencyEdge",
    "DependencyGraph",
    "FileAnalysis",
    "Insight",
    "LanguageStat",
    "ProjectMeta",
    "SkippedFile",
    "SkipReason",
    "SummaryCacheEntry",
    "WorkspaceInfo",
    # Walker
    "compute_content_hash",
    "compute_file_hash",
    "discover_files",
    "validate_file_paths",
    # Workspace
    "resolve_workspace",
    "resolve_workspace_globs",
]
