"""
Tests for import resolution and dependency graph construction.
"""

import pytest

from repolens.ast.models import ImportInfo, ImportSpecifier, ModuleInfo
from repolens.ingest.graph import (
    build_dependency_graph,
    candidate_paths,
    find_impacted_modules,
    is_entry_point,
    resolve_import_source,
)
from repolens.ingest.models import WorkspaceInfo


def make_module(file_path: str, *sources: str, language: str = "typescript") -> ModuleInfo:
    return ModuleInfo(
        file_path=file_path,
        language=language,
        imports=[ImportInfo(source=s, specifiers=[ImportSpecifier(name="x")]) for s in sources],
    )


# =============================================================================
# Candidate Probing
# =============================================================================


class TestCandidatePaths:
    """Probe order for a relative import base."""

    def test_extensionless(self):
        candidates = candidate_paths("src/utils", [".ts", ".js"])
        assert candidates == ["src/utils", "src/utils.ts", "src/utils.js", "src/utils/index.ts", "src/utils/index.js"]

    def test_esm_suffix_stripped(self):
        candidates = candidate_paths("src/a.js", [".ts"])
        assert candidates.index("src/a.js") < candidates.index("src/a.ts")

    def test_escaping_paths_dropped(self):
        assert candidate_paths("../outside", [".ts"]) == []


# =============================================================================
# Import Resolution
# =============================================================================


class TestResolveImportSource:
    """Specifier -> known module path."""

    KNOWN = {
        "src/index.ts",
        "src/utils.ts",
        "src/components/index.tsx",
        "src/lib/a.ts",
        "pkg/models.py",
        "pkg/__init__.py",
        "pkg/sub/helpers.py",
    }

    def test_relative(self):
        assert resolve_import_source("./utils", "src/index.ts", self.KNOWN) == "src/utils.ts"

    def test_parent_directory(self):
        assert resolve_import_source("../utils", "src/lib/a.ts", self.KNOWN) == "src/utils.ts"

    def test_index_file(self):
        assert resolve_import_source("./components", "src/index.ts", self.KNOWN) == "src/components/index.tsx"

    def test_esm_js_suffix(self):
        assert resolve_import_source("./utils.js", "src/index.ts", self.KNOWN) == "src/utils.ts"

    def test_alias(self):
        assert resolve_import_source("@/lib/a", "src/index.ts", self.KNOWN) == "src/lib/a.ts"

    def test_custom_alias(self):
        resolved = resolve_import_source("~lib/a", "src/index.ts", self.KNOWN, aliases={"~": "src/"})
        assert resolved == "src/lib/a.ts"

    def test_external_package(self):
        assert resolve_import_source("react", "src/index.ts", self.KNOWN) is None

    def test_missing_relative(self):
        assert resolve_import_source("./nope", "src/index.ts", self.KNOWN) is None

    def test_python_relative(self):
        assert resolve_import_source(".missing", "pkg/views.py", self.KNOWN, language="python") is None
        assert resolve_import_source(".models", "pkg/views.py", self.KNOWN, language="python") == "pkg/models.py"
        assert resolve_import_source("..models", "pkg/sub/helpers.py", self.KNOWN, language="python") == "pkg/models.py"
        assert resolve_import_source(".", "pkg/views.py", self.KNOWN, language="python") == "pkg/__init__.py"

    def test_python_absolute(self):
        assert resolve_import_source("pkg.sub.helpers", "main.py", self.KNOWN, language="python") == "pkg/sub/helpers.py"
        assert resolve_import_source("pkg", "main.py", self.KNOWN, language="python") == "pkg/__init__.py"
        assert resolve_import_source("os.path", "main.py", self.KNOWN, language="python") is None

    def test_importer_suffix_probed(self):
        known = {"lib/util.rb"}
        assert resolve_import_source("./util", "lib/main.rb", known) == "lib/util.rb"


class TestWorkspaceResolution:
    """Bare package imports inside a monorepo."""

    WORKSPACE = WorkspaceInfo(packages={"a": "packages/a", "@org/b": "packages/b"}, type="npm")

    def test_bare_package_to_src_index(self):
        known = {"packages/a/src/index.ts", "packages/a/index.ts"}
        assert resolve_import_source("a", "packages/b/src/x.ts", known, self.WORKSPACE) == "packages/a/src/index.ts"

    def test_bare_package_root_index(self):
        known = {"packages/a/index.js"}
        assert resolve_import_source("a", "packages/b/src/x.ts", known, self.WORKSPACE) == "packages/a/index.js"

    def test_subpath(self):
        known = {"packages/b/src/utils/format.ts"}
        resolved = resolve_import_source("@org/b/utils/format", "packages/a/src/x.ts", known, self.WORKSPACE)
        assert resolved == "packages/b/src/utils/format.ts"

    def test_prefix_is_not_a_package(self):
        known = {"packages/a/src/index.ts"}
        assert resolve_import_source("abc", "x.ts", known, self.WORKSPACE) is None


# =============================================================================
# Graph
# =============================================================================


class TestBuildDependencyGraph:
    """Nodes, edges and their invariants."""

    def test_every_module_is_a_node(self):
        modules = [make_module("src/a.ts", "./b"), make_module("src/b.ts"), make_module("src/c.ts", "lodash")]
        graph = build_dependency_graph(modules)
        assert graph.nodes == ["src/a.ts", "src/b.ts", "src/c.ts"]
        assert [(e.source, e.target) for e in graph.edges] == [("src/a.ts", "src/b.ts")]
        assert graph.edges[0].imports == ["x"]

    def test_edge_endpoints_are_nodes(self):
        modules = [make_module("src/a.ts", "./b", "./missing", "../../escape")]
        graph = build_dependency_graph(modules)
        assert graph.edges == []

    def test_cycle_produces_both_edges(self):
        modules = [make_module("a.ts", "./b"), make_module("b.ts", "./a")]
        graph = build_dependency_graph(modules)
        assert {(e.source, e.target) for e in graph.edges} == {("a.ts", "b.ts"), ("b.ts", "a.ts")}

    def test_parallel_imports_kept(self):
        modules = [make_module("a.ts", "./b", "./b.js"), make_module("b.ts")]
        assert len(build_dependency_graph(modules).edges) == 2

    def test_self_import_dropped(self):
        modules = [make_module("a.ts", "./a")]
        assert build_dependency_graph(modules).edges == []

    def test_type_only_flag(self):
        module = ModuleInfo(
            file_path="a.ts",
            language="typescript",
            imports=[ImportInfo(source="./types", is_type_only=True)],
        )
        graph = build_dependency_graph([module, make_module("types.ts")])
        assert graph.edges[0].is_type_only is True

    def test_workspace_edge(self):
        workspace = WorkspaceInfo(packages={"a": "packages/a", "b": "packages/b"}, type="npm")
        modules = [make_module("packages/a/src/index.ts"), make_module("packages/b/src/main.ts", "a")]
        graph = build_dependency_graph(modules, workspace)
        assert [(e.source, e.target) for e in graph.edges] == [("packages/b/src/main.ts", "packages/a/src/index.ts")]

    def test_graph_queries(self):
        modules = [make_module("a.ts", "./c"), make_module("b.ts", "./c"), make_module("c.ts")]
        graph = build_dependency_graph(modules)
        assert graph.importers_of("c.ts") == ["a.ts", "b.ts"]
        assert graph.dependencies_of("a.ts") == ["c.ts"]


class TestImpactedModules:
    """Direct importers of changed files."""

    def test_importers_of_changed(self):
        modules = [make_module("a.ts", "./c"), make_module("b.ts", "./c"), make_module("c.ts"), make_module("d.ts")]
        graph = build_dependency_graph(modules)
        assert find_impacted_modules(graph, ["c.ts"]) == ["a.ts", "b.ts"]

    def test_changed_files_excluded(self):
        modules = [make_module("a.ts", "./c"), make_module("c.ts")]
        graph = build_dependency_graph(modules)
        assert find_impacted_modules(graph, ["a.ts", "c.ts"]) == []


@pytest.mark.parametrize(
    "path,expected",
    [
        ("src/index.ts", True),
        ("cmd/main.go", True),
        ("app.py", True),
        ("src/utils.ts", False),
        ("src/domain.ts", False),
        ("lib/remain.py", False),
        ("config/myapp.settings.yaml", False),
        ("web/app.config.js", True),
    ],
)
def test_is_entry_point(path, expected):
    assert is_entry_point(path) is expected
