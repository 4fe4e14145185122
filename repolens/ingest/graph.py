"""
Dependency Graph Builder

Resolves each module's raw import strings to files that were analyzed in
the same run and records one edge per resolved import. Imports that do not
resolve to a known file (external packages, stdlib, missing files) produce
no edge.
"""

import posixpath
from typing import Iterable, Optional

from repolens.ast.models import ImportInfo, ModuleInfo
from repolens.configs import get_logger
from repolens.configs.constants import (
    DEFAULT_IMPORT_ALIASES,
    ENTRY_POINT_MARKERS,
    RESOLVE_EXTENSIONS,
    STRIPPED_IMPORT_SUFFIXES,
)
from repolens.ingest.models import DependencyEdge, DependencyGraph, WorkspaceInfo

logger = get_logger("ingest.graph")

# Entry files probed for a bare workspace package import
_PACKAGE_ENTRY_DIRS = ["src", "", "lib"]


# =============================================================================
# Candidate Probing
# =============================================================================


def _normalize(path: str) -> Optional[str]:
    """Collapse ./ and ../ segments; None if the path escapes the root."""
    normalized = posixpath.normpath(path)
    if normalized == ".." or normalized.startswith("../") or normalized.startswith("/"):
        return None
    return normalized


def _strip_suffix(path: str) -> str:
    for suffix in STRIPPED_IMPORT_SUFFIXES:
        if path.endswith(suffix):
            return path[: -len(suffix)]
    return path


def candidate_paths(base: str, extensions: list[str]) -> list[str]:
    """
    Files an import of `base` may refer to, in probing order.

    The path as written, the path without an ESM .js/.mjs/.cjs suffix,
    each of those with an extension appended, then their index files.
    """
    bases = [base]
    stripped = _strip_suffix(base)
    if stripped != base:
        bases.append(stripped)

    candidates = list(bases)
    for b in bases:
        candidates.extend(f"{b}{ext}" for ext in extensions)
    for b in bases:
        candidates.extend(f"{b}/index{ext}" for ext in extensions)

    seen = set()
    ordered = []
    for candidate in candidates:
        normalized = _normalize(candidate)
        if normalized and normalized not in seen:
            seen.add(normalized)
            ordered.append(normalized)
    return ordered


def _first_known(candidates: Iterable[str], known: set[str]) -> Optional[str]:
    for candidate in candidates:
        if candidate in known:
            return candidate
    return None


def _extensions_for(importer: str) -> list[str]:
    """Probe extensions, plus the importer's own suffix (./util from a.rb -> util.rb)."""
    extensions = list(RESOLVE_EXTENSIONS)
    suffix = posixpath.splitext(importer)[1]
    if suffix and suffix not in extensions:
        extensions.append(suffix)
    return extensions


# =============================================================================
# Language-specific Resolution
# =============================================================================


def _resolve_python(source: str, importer: str, known: set[str]) -> Optional[str]:
    """
    Python module names: ".models", "..pkg.mod", "pkg.mod".

    Relative names climb one directory per extra leading dot; dots in the
    remainder are package separators.
    """
    stripped = source.lstrip(".")
    level = len(source) - len(stripped)
    rest = stripped.replace(".", "/")

    if level:
        base_dir = posixpath.dirname(importer)
        for _ in range(level - 1):
            base_dir = posixpath.dirname(base_dir)
        base = posixpath.join(base_dir, rest) if rest else base_dir
        roots = [base]
    else:
        if not rest:
            return None
        roots = [rest, f"src/{rest}"]

    candidates = []
    for root in roots:
        if rest:
            candidates.append(f"{root}.py")
            candidates.append(f"{root}.pyi")
        candidates.append(posixpath.join(root, "__init__.py") if root else "__init__.py")
    return _first_known((c for c in (_normalize(c) for c in candidates) if c), known)


def _resolve_workspace_package(
    source: str,
    known: set[str],
    workspace: WorkspaceInfo,
    extensions: list[str],
) -> Optional[str]:
    """"pkg" or "pkg/sub/path" -> a file inside that package's directory."""
    for package_name, package_dir in workspace.packages.items():
        if source != package_name and not source.startswith(f"{package_name}/"):
            continue

        subpath = source[len(package_name) + 1:] if source != package_name else ""
        if subpath:
            bases = [posixpath.join(package_dir, "src", subpath), posixpath.join(package_dir, subpath)]
            candidates = [c for base in bases for c in candidate_paths(base, extensions)]
        else:
            candidates = [
                posixpath.join(package_dir, entry_dir, f"index{ext}") if entry_dir
                else posixpath.join(package_dir, f"index{ext}")
                for entry_dir in _PACKAGE_ENTRY_DIRS
                for ext in extensions
            ]

        match = _first_known((c for c in (_normalize(c) for c in candidates) if c), known)
        if match:
            return match
    return None


def resolve_import_source(
    source: str,
    importer: str,
    known: set[str],
    workspace: Optional[WorkspaceInfo] = None,
    aliases: Optional[dict[str, str]] = None,
    language: Optional[str] = None,
) -> Optional[str]:
    """
    Resolve one import specifier to a known module path.

    Args:
        source: Import specifier exactly as written
        importer: Path of the importing module
        known: All module paths in the graph
        workspace: Monorepo package map (optional)
        aliases: Alias prefix -> directory (default {"@/": "src/"})
        language: Importer's language tag

    Returns:
        Module path, or None for external/unresolvable imports
    """
    if not source:
        return None
    if aliases is None:
        aliases = DEFAULT_IMPORT_ALIASES

    if language == "python":
        return _resolve_python(source, importer, known)

    extensions = _extensions_for(importer)

    for prefix, target in aliases.items():
        if source.startswith(prefix):
            base = posixpath.join(target, source[len(prefix):])
            return _first_known(candidate_paths(base, extensions), known)

    if source.startswith("."):
        base = posixpath.join(posixpath.dirname(importer), source)
        return _first_known(candidate_paths(base, extensions), known)

    if workspace and workspace.packages:
        return _resolve_workspace_package(source, known, workspace, extensions)

    return None


# =============================================================================
# Graph Construction
# =============================================================================


def _imported_names(imp: ImportInfo) -> list[str]:
    return [s.name for s in imp.specifiers]


def build_dependency_graph(
    modules: list[ModuleInfo],
    workspace: Optional[WorkspaceInfo] = None,
    aliases: Optional[dict[str, str]] = None,
) -> DependencyGraph:
    """
    Build the internal dependency graph for a set of modules.

    Every module is a node. Each import that resolves to another module
    adds one edge; several imports between the same pair stay separate
    edges. Imports resolving to the importer itself are dropped.

    Args:
        modules: All modules of the run (fresh and carried over)
        workspace: Monorepo package map used for bare package imports
        aliases: Alias prefix -> directory map

    Returns:
        DependencyGraph whose edge endpoints are all nodes
    """
    nodes = [m.file_path for m in modules]
    known = set(nodes)
    edges: list[DependencyEdge] = []

    for module in modules:
        for imp in module.imports:
            target = resolve_import_source(
                imp.source,
                module.file_path,
                known,
                workspace=workspace,
                aliases=aliases,
                language=module.language,
            )
            if target is None or target == module.file_path:
                continue
            edges.append(DependencyEdge(
                source=module.file_path,
                target=target,
                imports=_imported_names(imp),
                is_type_only=imp.is_type_only,
            ))

    logger.debug(f"Dependency graph: {len(nodes)} nodes, {len(edges)} edges")
    return DependencyGraph(nodes=nodes, edges=edges)


def find_impacted_modules(graph: DependencyGraph, changed_paths: Iterable[str]) -> list[str]:
    """
    Modules that directly import any of the changed files.

    Changed files themselves are not included.

    Returns:
        Sorted module paths
    """
    changed = set(changed_paths)
    impacted = {
        edge.source
        for edge in graph.edges
        if edge.target in changed and edge.source not in changed
    }
    return sorted(impacted)


def is_entry_point(file_path: str) -> bool:
    """Files named index.*, main.* or app.* in any directory."""
    basename = posixpath.basename(file_path)
    return any(basename.startswith(marker) for marker in ENTRY_POINT_MARKERS)
