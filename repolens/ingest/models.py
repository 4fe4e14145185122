"""
Data Models for Analysis Runs

Everything the engine produces around the per-file ModuleInfo records:
the dependency graph, workspace layout, project metadata, statistics,
per-file outcomes and the manifest that ties them together.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Optional

from repolens.ast.models import ModuleInfo


# =============================================================================
# Dependency Graph
# =============================================================================


@dataclass
class DependencyEdge:
    """One resolved internal import."""

    source: str  # importing file path
    target: str  # imported file path
    imports: list[str] = field(default_factory=list)  # imported names
    is_type_only: bool = False


@dataclass
class DependencyGraph:
    """Directed graph of internal imports. Nodes are module file paths."""

    nodes: list[str] = field(default_factory=list)
    edges: list[DependencyEdge] = field(default_factory=list)

    def importers_of(self, file_path: str) -> list[str]:
        return sorted({e.source for e in self.edges if e.target == file_path})

    def dependencies_of(self, file_path: str) -> list[str]:
        return sorted({e.target for e in self.edges if e.source == file_path})

    @classmethod
    def from_dict(cls, data: dict) -> "DependencyGraph":
        return cls(
            nodes=list(data.get("nodes", [])),
            edges=[DependencyEdge(**e) for e in data.get("edges", [])],
        )


@dataclass
class WorkspaceInfo:
    """Monorepo layout: package name -> repo-relative directory."""

    packages: dict[str, str] = field(default_factory=dict)
    type: str = "none"  # npm | pnpm | lerna | none


# =============================================================================
# Project Metadata and Statistics
# =============================================================================


@dataclass
class LanguageStat:
    name: str
    file_count: int
    percentage: int


@dataclass
class ProjectMeta:
    name: str
    languages: list[LanguageStat] = field(default_factory=list)
    entry_points: list[str] = field(default_factory=list)
    version: Optional[str] = None
    description: Optional[str] = None
    readme_description: Optional[str] = None
    package_manager: Optional[str] = None
    license: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectMeta":
        data = dict(data)
        data["languages"] = [LanguageStat(**lang) for lang in data.get("languages", [])]
        return cls(**data)


@dataclass
class LanguageTotals:
    files: int = 0
    symbols: int = 0
    lines: int = 0


@dataclass
class AnalysisStats:
    total_files: int = 0
    total_symbols: int = 0
    total_lines: int = 0
    by_language: dict[str, LanguageTotals] = field(default_factory=dict)
    by_kind: dict[str, int] = field(default_factory=dict)
    analysis_time_ms: int = 0
    skipped_files: int = 0
    skipped_by_reason: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisStats":
        data = dict(data)
        data["by_language"] = {
            lang: LanguageTotals(**totals) for lang, totals in data.get("by_language", {}).items()
        }
        return cls(**data)


# =============================================================================
# Per-file Outcomes
# =============================================================================


class SkipReason(str, Enum):
    """Why a discovered file produced no ModuleInfo."""

    FILE_TOO_LARGE = "file_too_large"
    UNSUPPORTED_LANGUAGE = "unsupported_language"
    NO_PARSER = "no_parser"
    PARSE_ERROR = "parse_error"
    IO_ERROR = "io_error"


@dataclass
class SkippedFile:
    file_path: str
    reason: SkipReason
    message: str = ""


@dataclass
class FileAnalysis:
    """
    Outcome of analyzing one file: exactly one of module / skipped is set.
    """

    file_path: str
    module: Optional[ModuleInfo] = None
    skipped: Optional[SkippedFile] = None

    @property
    def ok(self) -> bool:
        return self.module is not None

    @classmethod
    def success(cls, module: ModuleInfo) -> "FileAnalysis":
        return cls(file_path=module.file_path, module=module)

    @classmethod
    def skip(cls, file_path: str, reason: SkipReason, message: str = "") -> "FileAnalysis":
        return cls(file_path=file_path, skipped=SkippedFile(file_path, reason, message))


# =============================================================================
# Manifest
# =============================================================================


@dataclass
class Insight:
    """One finding from a static detector."""

    id: str
    category: str  # documentation | architecture | code-quality
    severity: str  # info | warning
    title: str
    description: str
    affected_files: list[str] = field(default_factory=list)
    suggestion: str = ""


@dataclass
class SummaryCacheEntry:
    """An externally generated summary keyed by the content hash it describes."""

    content_hash: str
    summary: str
    generated_at: str


@dataclass
class AnalysisManifest:
    """
    Output of one analysis run.

    A manifest is never mutated by later runs: incremental analysis takes a
    previous manifest as input and returns a new one. summary_cache and
    insights are open slots that external enrichment may also fill.
    """

    repolens_version: str
    root: str
    analyzed_at: str
    modules: list[ModuleInfo] = field(default_factory=list)
    dependency_graph: DependencyGraph = field(default_factory=DependencyGraph)
    project_meta: Optional[ProjectMeta] = None
    stats: AnalysisStats = field(default_factory=AnalysisStats)
    workspace: WorkspaceInfo = field(default_factory=WorkspaceInfo)
    skipped: list[SkippedFile] = field(default_factory=list)
    summary_cache: list[SummaryCacheEntry] = field(default_factory=list)
    insights: list[Insight] = field(default_factory=list)

    def get_module(self, file_path: str) -> Optional[ModuleInfo]:
        for module in self.modules:
            if module.file_path == file_path:
                return module
        return None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisManifest":
        project_meta = data.get("project_meta")
        return cls(
            repolens_version=data.get("repolens_version", ""),
            root=data.get("root", ""),
            analyzed_at=data.get("analyzed_at", ""),
            modules=[ModuleInfo.from_dict(m) for m in data.get("modules", [])],
            dependency_graph=DependencyGraph.from_dict(data.get("dependency_graph", {})),
            project_meta=ProjectMeta.from_dict(project_meta) if project_meta else None,
            stats=AnalysisStats.from_dict(data.get("stats", {})),
            workspace=WorkspaceInfo(**data.get("workspace", {})),
            skipped=[
                SkippedFile(s["file_path"], SkipReason(s["reason"]), s.get("message", ""))
                for s in data.get("skipped", [])
            ],
            summary_cache=[SummaryCacheEntry(**e) for e in data.get("summary_cache", [])],
            insights=[Insight(**i) for i in data.get("insights", [])],
        )
