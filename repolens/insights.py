"""
Static Insights

Eight independent detectors over a finished manifest: documentation gaps,
architectural smells and code-quality heuristics. Each detector is a pure
function returning zero or more Insight records; run_static_insights
concatenates them.

Thresholds come from InsightThresholds and can be overridden per call.
"""

import re
from typing import Optional

from repolens.ast.models import SymbolKind
from repolens.configs import InsightThresholds, get_logger
from repolens.ingest.graph import is_entry_point
from repolens.ingest.models import AnalysisManifest, DependencyGraph, Insight

logger = get_logger("insights")

_CAMEL_RE = re.compile(r"^[a-z][a-zA-Z0-9]*$")
_PASCAL_RE = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
_SNAKE_RE = re.compile(r"^[a-z][a-z0-9_]*$")


def _plural(count: int, singular: str, plural: Optional[str] = None) -> str:
    if count == 1:
        return singular
    return plural or f"{singular}s"


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def _connections(graph: DependencyGraph) -> list[tuple[str, str]]:
    """Distinct (source, target) pairs; parallel edges count once."""
    return list(dict.fromkeys((e.source, e.target) for e in graph.edges))


# =============================================================================
# Documentation
# =============================================================================


def detect_undocumented_exports(
    manifest: AnalysisManifest,
    warning_count: int = 20,
    max_affected_files: int = 10,
) -> list[Insight]:
    """Exported symbols with neither a doc summary nor an external summary."""
    undocumented = [
        (module.file_path, symbol.name)
        for module in manifest.modules
        for symbol in module.symbols
        if symbol.exported and not (symbol.docs and symbol.docs.summary) and not symbol.ai_summary
    ]
    if not undocumented:
        return []

    count = len(undocumented)
    affected = _unique([file for file, _ in undocumented])
    examples = ", ".join(f"`{name}`" for _, name in undocumented[:5])
    if count > 5:
        examples += "..."

    return [Insight(
        id="undocumented-exports",
        category="documentation",
        severity="warning" if count > warning_count else "info",
        title=f"{count} undocumented exported {_plural(count, 'symbol')}",
        description=(
            f"Found {count} exported symbols without doc comments across "
            f"{len(affected)} {_plural(len(affected), 'file')}. Examples: {examples}."
        ),
        affected_files=affected[:max_affected_files],
        suggestion="Add doc comments or docstrings to exported symbols to improve API documentation quality.",
    )]


# =============================================================================
# Architecture
# =============================================================================


def find_cycles(graph: DependencyGraph, max_cycles: int = 10) -> list[list[str]]:
    """
    Depth-first search from every node with an explicit stack.

    Reaching a node that is on the current path records the path slice from
    that node as a cycle. Search stops starting new roots once max_cycles
    cycles were found; cycles are neither deduplicated nor minimal.
    """
    adjacency: dict[str, list[str]] = {}
    for source, target in _connections(graph):
        adjacency.setdefault(source, []).append(target)

    visited: set[str] = set()
    on_path: set[str] = set()
    cycles: list[list[str]] = []

    for root in graph.nodes:
        if root not in visited:
            visited.add(root)
            on_path.add(root)
            path = [root]
            stack = [iter(adjacency.get(root, []))]

            while stack:
                neighbor = next(stack[-1], None)
                if neighbor is None:
                    stack.pop()
                    on_path.discard(path.pop())
                elif neighbor in on_path:
                    cycles.append(path[path.index(neighbor):])
                elif neighbor not in visited:
                    visited.add(neighbor)
                    on_path.add(neighbor)
                    path.append(neighbor)
                    stack.append(iter(adjacency.get(neighbor, [])))

        if len(cycles) >= max_cycles:
            break

    return cycles


def detect_circular_dependencies(
    manifest: AnalysisManifest,
    max_cycles: int = 10,
    max_affected_files: int = 10,
) -> list[Insight]:
    cycles = find_cycles(manifest.dependency_graph, max_cycles)
    if not cycles:
        return []

    count = len(cycles)
    affected = _unique([file for cycle in cycles for file in cycle])
    example = " → ".join(f"`{f.rsplit('/', 1)[-1]}`" for f in cycles[0])

    return [Insight(
        id="circular-dependencies",
        category="architecture",
        severity="warning",
        title=f"{count} circular {_plural(count, 'dependency', 'dependencies')} detected",
        description=(
            f"Found {count} circular dependency {_plural(count, 'chain')} in the module graph. "
            f"Example: {example} → ..."
        ),
        affected_files=affected[:max_affected_files],
        suggestion="Break circular dependencies by extracting shared types into a separate module or using dependency inversion.",
    )]


def detect_god_modules(
    manifest: AnalysisManifest,
    max_edges: int = 15,
    warning_count: int = 3,
    max_affected_files: int = 10,
) -> list[Insight]:
    """Modules whose incoming + outgoing connections exceed max_edges."""
    incoming: dict[str, int] = {}
    outgoing: dict[str, int] = {}
    for source, target in _connections(manifest.dependency_graph):
        outgoing[source] = outgoing.get(source, 0) + 1
        incoming[target] = incoming.get(target, 0) + 1

    totals = {
        path: incoming.get(path, 0) + outgoing.get(path, 0)
        for path in set(incoming) | set(outgoing)
    }
    god_modules = sorted(
        (path for path, total in totals.items() if total > max_edges),
        key=lambda path: (-totals[path], path),
    )
    if not god_modules:
        return []

    count = len(god_modules)
    top = god_modules[0]
    return [Insight(
        id="god-modules",
        category="architecture",
        severity="warning" if count > warning_count else "info",
        title=f"{count} god {_plural(count, 'module')} with excessive connections",
        description=(
            f"Found {count} {_plural(count, 'module')} with more than {max_edges} dependency connections. "
            f"Most connected: `{top}` ({incoming.get(top, 0)} in, {outgoing.get(top, 0)} out)."
        ),
        affected_files=god_modules[:max_affected_files],
        suggestion="Consider introducing intermediate abstraction layers or splitting responsibilities to reduce coupling.",
    )]


def detect_deep_nesting(
    manifest: AnalysisManifest,
    max_depth: int = 5,
    warning_count: int = 10,
    max_affected_files: int = 10,
) -> list[Insight]:
    """Files whose path has more than max_depth segments."""
    deep_files = [m.file_path for m in manifest.modules if len(m.file_path.split("/")) > max_depth]
    if not deep_files:
        return []

    count = len(deep_files)
    return [Insight(
        id="deep-nesting",
        category="architecture",
        severity="warning" if count > warning_count else "info",
        title=f"{count} deeply nested {_plural(count, 'file')}",
        description=(
            f"Found {count} {_plural(count, 'file')} nested more than {max_depth} directories deep. "
            f"Deepest: `{deep_files[0]}` ({len(deep_files[0].split('/'))} levels)."
        ),
        affected_files=deep_files[:max_affected_files],
        suggestion="Consider flattening the directory structure to reduce import path complexity.",
    )]


# =============================================================================
# Code Quality
# =============================================================================


def detect_oversized_modules(
    manifest: AnalysisManifest,
    max_lines: int = 500,
    max_symbols: int = 30,
    warning_count: int = 5,
    max_affected_files: int = 10,
) -> list[Insight]:
    """Modules over max_lines lines or max_symbols symbols."""
    oversized = [
        m for m in manifest.modules
        if m.line_count > max_lines or len(m.symbols) > max_symbols
    ]
    if not oversized:
        return []

    count = len(oversized)
    first = oversized[0]
    return [Insight(
        id="oversized-modules",
        category="code-quality",
        severity="warning" if count > warning_count else "info",
        title=f"{count} oversized {_plural(count, 'module')}",
        description=(
            f"Found {count} {_plural(count, 'module')} exceeding {max_lines} lines or {max_symbols} symbols. "
            f"First: `{first.file_path}` ({first.line_count} lines, {len(first.symbols)} symbols)."
        ),
        affected_files=[m.file_path for m in oversized][:max_affected_files],
        suggestion="Consider splitting large modules into smaller, focused files with single responsibility.",
    )]


def detect_orphan_modules(
    manifest: AnalysisManifest,
    warning_count: int = 5,
    max_affected_files: int = 10,
) -> list[Insight]:
    """Graph nodes with no edges at all, entry points excepted."""
    graph = manifest.dependency_graph
    connected = {e.source for e in graph.edges} | {e.target for e in graph.edges}
    orphans = [n for n in graph.nodes if n not in connected and not is_entry_point(n)]
    if not orphans:
        return []

    count = len(orphans)
    return [Insight(
        id="orphan-modules",
        category="code-quality",
        severity="warning" if count > warning_count else "info",
        title=f"{count} orphan {_plural(count, 'module')} (potential dead code)",
        description=(
            f"Found {count} {_plural(count, 'module')} with no imports or importers in the dependency graph. "
            "These may be unused dead code."
        ),
        affected_files=orphans[:max_affected_files],
        suggestion="Review orphan modules: remove them if unused, or wire them in with explicit imports.",
    )]


def detect_missing_types(
    manifest: AnalysisManifest,
    warning_count: int = 10,
    max_affected_files: int = 10,
) -> list[Insight]:
    """
    TypeScript only: exported functions returning `any` or with no visible
    return type, and `any`-typed parameters.
    """
    untyped: list[tuple[str, str]] = []
    for module in manifest.modules:
        if module.language != "typescript":
            continue
        for symbol in module.symbols:
            if not symbol.exported or symbol.kind != SymbolKind.FUNCTION:
                continue
            return_type = symbol.returns.type if symbol.returns else None
            if return_type == "any" or (not return_type and ":" not in (symbol.signature or "")):
                untyped.append((module.file_path, symbol.name))
            for param in symbol.parameters:
                if param.type == "any":
                    untyped.append((module.file_path, f"{symbol.name}({param.name})"))

    if not untyped:
        return []

    count = len(untyped)
    affected = _unique([file for file, _ in untyped])
    examples = ", ".join(f"`{name}`" for _, name in untyped[:3])
    return [Insight(
        id="missing-types",
        category="code-quality",
        severity="warning" if count > warning_count else "info",
        title=f"{count} {_plural(count, 'symbol')} with missing or `any` types",
        description=(
            f"Found {count} exported function {_plural(count, 'signature')} with `any` types "
            f"or missing return types. Examples: {examples}."
        ),
        affected_files=affected[:max_affected_files],
        suggestion="Add explicit type annotations to improve type safety and documentation quality.",
    )]


def classify_name(name: str) -> Optional[str]:
    if _CAMEL_RE.match(name):
        return "camelCase"
    if _PASCAL_RE.match(name):
        return "PascalCase"
    if _SNAKE_RE.match(name):
        return "snake_case"
    return None


def detect_inconsistent_naming(
    manifest: AnalysisManifest,
    min_names: int = 5,
    min_ratio: float = 0.6,
    max_ratio: float = 0.95,
    minority_min: int = 2,
) -> list[Insight]:
    """
    Mixed naming conventions among exported names.

    Reported only when the dominant convention covers more than min_ratio
    and less than max_ratio of the classified names, and some other
    convention is used more than minority_min times.
    """
    names = [s.name for m in manifest.modules for s in m.symbols if s.exported]
    if len(names) < min_names:
        return []

    counts = {"camelCase": 0, "PascalCase": 0, "snake_case": 0}
    for name in names:
        convention = classify_name(name)
        if convention:
            counts[convention] += 1

    total = sum(counts.values())
    conventions = sorted(
        ((name, count) for name, count in counts.items() if count > 0),
        key=lambda item: -item[1],
    )
    if total == 0 or len(conventions) < 2:
        return []
    if not any(count > minority_min for _, count in conventions[1:]):
        return []

    dominant, dominant_count = conventions[0]
    ratio = dominant_count / total
    if not (min_ratio < ratio < max_ratio):
        return []

    breakdown = ", ".join(f"{name} ({count})" for name, count in conventions)
    return [Insight(
        id="inconsistent-naming",
        category="code-quality",
        severity="info",
        title="Mixed naming conventions across exports",
        description=f"Exports use multiple naming conventions: {breakdown}. The dominant convention is {dominant}.",
        affected_files=[],
        suggestion=f"Consider standardizing on {dominant} for consistency across the codebase.",
    )]


# =============================================================================
# Runner
# =============================================================================


def run_static_insights(
    manifest: AnalysisManifest,
    thresholds: Optional[InsightThresholds] = None,
) -> list[Insight]:
    """
    Run every detector and concatenate the findings.

    Args:
        manifest: Finished manifest (modules and dependency graph)
        thresholds: Detector thresholds (defaults when None)

    Returns:
        All insights, in detector order
    """
    t = thresholds or InsightThresholds()
    limit = t.max_affected_files

    insights: list[Insight] = []
    insights.extend(detect_undocumented_exports(manifest, t.undocumented_warning_count, limit))
    insights.extend(detect_circular_dependencies(manifest, t.max_cycles, limit))
    insights.extend(detect_oversized_modules(manifest, t.max_lines, t.max_symbols, t.oversized_warning_count, limit))
    insights.extend(detect_god_modules(manifest, t.god_module_max_edges, t.god_module_warning_count, limit))
    insights.extend(detect_orphan_modules(manifest, t.orphan_warning_count, limit))
    insights.extend(detect_missing_types(manifest, t.missing_types_warning_count, limit))
    insights.extend(detect_inconsistent_naming(
        manifest, t.naming_min_names, t.naming_min_ratio, t.naming_max_ratio, t.naming_minority_min,
    ))
    insights.extend(detect_deep_nesting(manifest, t.max_depth, t.deep_nesting_warning_count, limit))

    if insights:
        logger.info(f"Found {len(insights)} code insights")
    return insights
