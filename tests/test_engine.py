"""
Tests for the analysis engine: per-file outcomes, full and incremental runs,
project metadata, statistics and manifest persistence.
"""

import json
from pathlib import Path

import pytest

from repolens.ast.extractors import base
from repolens.ast.extractors.base import LineExtractor
from repolens.configs import AnalysisConfig
from repolens.exceptions import DiscoveryError, ManifestError
from repolens.ingest.engine import (
    analyze_codebase,
    analyze_file,
    compute_project_meta,
    detect_package_manager,
    load_manifest,
    save_manifest,
)
from repolens.ingest.models import SkipReason, SummaryCacheEntry


class ExplodingExtractor(LineExtractor):
    """Extractor that fails the way a buggy extractor would."""

    @property
    def language(self) -> str:
        return "python"

    def extract_text(self, text, file_path):
        raise ValueError("unexpected node")


def edge_pairs(manifest) -> set:
    return {(e.source, e.target) for e in manifest.dependency_graph.edges}


# =============================================================================
# Per-file Analysis
# =============================================================================


class TestAnalyzeFile:
    """One file becomes a module or a skip record."""

    def test_success(self, write_files, parser_context):
        root = write_files({"src/a.ts": "export function foo(): number { return 1; }\n"})
        result = analyze_file(root, "src/a.ts", AnalysisConfig(), parser_context)
        assert result.ok
        module = result.module
        assert module.file_path == "src/a.ts"
        assert module.language == "typescript"
        assert module.line_count == 2
        assert module.file_size == len("export function foo(): number { return 1; }\n")
        assert len(module.content_hash) == 16
        assert module.analyzed_at.endswith("+00:00")

    def test_file_too_large(self, write_files, parser_context):
        root = write_files({"big.ts": "x" * 200})
        result = analyze_file(root, "big.ts", AnalysisConfig(max_file_size=100), parser_context)
        assert not result.ok
        assert result.skipped.reason == SkipReason.FILE_TOO_LARGE
        assert "100" in result.skipped.message

    def test_unsupported_language(self, write_files, parser_context):
        root = write_files({"notes.txt": "hello"})
        result = analyze_file(root, "notes.txt", AnalysisConfig(), parser_context)
        assert result.skipped.reason == SkipReason.UNSUPPORTED_LANGUAGE

    def test_no_parser(self, write_files, parser_context, monkeypatch):
        monkeypatch.delitem(base._extractors, "python")
        root = write_files({"a.py": "x = 1\n"})
        result = analyze_file(root, "a.py", AnalysisConfig(), parser_context)
        assert result.skipped.reason == SkipReason.NO_PARSER

    def test_extractor_failure_is_parse_error(self, write_files, parser_context, monkeypatch):
        monkeypatch.setitem(base._extractors, "python", ExplodingExtractor())
        root = write_files({"a.py": "x = 1\n"})
        result = analyze_file(root, "a.py", AnalysisConfig(), parser_context)
        assert result.skipped.reason == SkipReason.PARSE_ERROR
        assert "unexpected node" in result.skipped.message

    def test_unparseable_source(self, write_files, parser_context):
        root = write_files({"broken.py": "}}}} ((((\n"})
        result = analyze_file(root, "broken.py", AnalysisConfig(), parser_context)
        assert result.skipped.reason == SkipReason.PARSE_ERROR

    def test_missing_file_is_io_error(self, temp_dir, parser_context):
        result = analyze_file(temp_dir, "gone.ts", AnalysisConfig(), parser_context)
        assert result.skipped.reason == SkipReason.IO_ERROR

    def test_read_failure_is_io_error(self, write_files, parser_context, monkeypatch):
        root = write_files({"a.ts": "const x = 1;\n"})

        def _fail(self):
            raise PermissionError("denied")

        monkeypatch.setattr(Path, "read_bytes", _fail)
        result = analyze_file(root, "a.ts", AnalysisConfig(), parser_context)
        assert result.skipped.reason == SkipReason.IO_ERROR


# =============================================================================
# Full Runs
# =============================================================================


class TestAnalyzeCodebase:
    """Complete analysis of a small repository."""

    def test_modules_and_graph(self, sample_repo, parser_context):
        manifest = analyze_codebase(sample_repo, context=parser_context)

        paths = [m.file_path for m in manifest.modules]
        assert paths == sorted(paths)
        assert {"src/index.ts", "src/a.ts", "src/b.ts", "scripts/tool.py", "README.md"} <= set(paths)
        assert manifest.dependency_graph.nodes == paths
        assert edge_pairs(manifest) == {
            ("src/index.ts", "src/a.ts"),
            ("src/a.ts", "src/b.ts"),
            ("src/b.ts", "src/a.ts"),
        }

    def test_exported_function(self, sample_repo, parser_context):
        manifest = analyze_codebase(sample_repo, context=parser_context)
        foo = manifest.get_module("src/a.ts").get_symbol("src/a.ts:foo")
        assert foo.kind.value == "function"
        assert foo.exported is True
        assert foo.docs.summary == "Foo docs"

    def test_insights_included(self, sample_repo, parser_context):
        manifest = analyze_codebase(sample_repo, context=parser_context)
        assert "circular-dependencies" in [i.id for i in manifest.insights]

    def test_insights_disabled(self, sample_repo, parser_context):
        config = AnalysisConfig(run_insights=False)
        manifest = analyze_codebase(sample_repo, config=config, context=parser_context)
        assert manifest.insights == []

    def test_stats(self, sample_repo, parser_context):
        manifest = analyze_codebase(sample_repo, context=parser_context)
        stats = manifest.stats
        assert stats.total_files == len(manifest.modules)
        assert stats.by_language["typescript"].files == 3
        assert stats.by_kind["function"] >= 4
        assert stats.total_lines == sum(m.line_count for m in manifest.modules)
        assert stats.skipped_files == 0

    def test_skips_recorded(self, write_files, parser_context):
        root = write_files({"a.ts": "export const a = 1;\n", "big.ts": "// x\n" * 100})
        config = AnalysisConfig(max_file_size=100)
        manifest = analyze_codebase(root, config=config, context=parser_context)
        assert [m.file_path for m in manifest.modules] == ["a.ts"]
        assert [(s.file_path, s.reason) for s in manifest.skipped] == [("big.ts", SkipReason.FILE_TOO_LARGE)]
        assert manifest.stats.skipped_by_reason == {"file_too_large": 1}

    def test_empty_repository(self, temp_dir, parser_context):
        manifest = analyze_codebase(temp_dir, context=parser_context)
        assert manifest.modules == []
        assert manifest.dependency_graph.nodes == []

    def test_missing_root(self, temp_dir, parser_context):
        with pytest.raises(DiscoveryError):
            analyze_codebase(temp_dir / "nope", context=parser_context)

    def test_config_file_respected(self, write_files, parser_context):
        root = write_files({
            ".repolens.yaml": "analysis:\n  include:\n    - 'src/**'\n",
            "src/a.ts": "export const a = 1;\n",
            "other/b.ts": "export const b = 1;\n",
        })
        manifest = analyze_codebase(root, context=parser_context)
        assert [m.file_path for m in manifest.modules] == ["src/a.ts"]


class TestWorkspaceAnalysis:
    """Monorepo package imports become graph edges."""

    def test_package_import_edge(self, write_files, parser_context):
        root = write_files({
            "package.json": {"name": "mono", "workspaces": ["packages/*"]},
            "packages/a/package.json": {"name": "a"},
            "packages/a/src/index.ts": "export const a = 1;\n",
            "packages/b/package.json": {"name": "b"},
            "packages/b/src/main.ts": "import { a } from 'a';\nexport const b = a;\n",
        })
        manifest = analyze_codebase(root, context=parser_context)
        assert manifest.workspace.type == "npm"
        assert ("packages/b/src/main.ts", "packages/a/src/index.ts") in edge_pairs(manifest)

    def test_monorepo_disabled(self, write_files, parser_context):
        root = write_files({
            "package.json": {"workspaces": ["packages/*"]},
            "packages/a/package.json": {"name": "a"},
            "packages/a/src/index.ts": "export const a = 1;\n",
            "packages/b/src/main.ts": "import { a } from 'a';\n",
        })
        manifest = analyze_codebase(root, config=AnalysisConfig(monorepo=False), context=parser_context)
        assert manifest.workspace.packages == {}
        assert manifest.dependency_graph.edges == []


# =============================================================================
# Incremental Runs
# =============================================================================


class TestIncrementalAnalysis:
    """Re-analysis of named target files against a previous manifest."""

    def test_only_targets_replaced(self, sample_repo, parser_context):
        previous = analyze_codebase(sample_repo, context=parser_context)
        old_a = previous.get_module("src/a.ts")
        old_b = previous.get_module("src/b.ts")
        old_index = previous.get_module("src/index.ts")

        (sample_repo / "src/a.ts").write_text("export function foo(): number { return 2; }\n")
        manifest = analyze_codebase(
            sample_repo, context=parser_context, previous_manifest=previous, target_files=["src/a.ts"],
        )

        new_a = manifest.get_module("src/a.ts")
        assert new_a.content_hash != old_a.content_hash
        assert manifest.get_module("src/b.ts") is old_b
        assert manifest.get_module("src/index.ts").content_hash == old_index.content_hash
        assert len(manifest.modules) == len(previous.modules)

        # a.ts no longer imports b.ts
        assert ("src/a.ts", "src/b.ts") not in edge_pairs(manifest)
        assert ("src/b.ts", "src/a.ts") in edge_pairs(manifest)

        # The previous manifest is untouched
        assert previous.get_module("src/a.ts") is old_a
        assert ("src/a.ts", "src/b.ts") in edge_pairs(previous)

    def test_deleted_target_removed(self, sample_repo, parser_context):
        previous = analyze_codebase(sample_repo, context=parser_context)
        (sample_repo / "scripts/tool.py").unlink()
        manifest = analyze_codebase(
            sample_repo, context=parser_context, previous_manifest=previous, target_files=["scripts/tool.py"],
        )
        assert manifest.get_module("scripts/tool.py") is None
        assert "scripts/tool.py" not in manifest.dependency_graph.nodes

    def test_summary_cache_carried_forward(self, sample_repo, parser_context):
        previous = analyze_codebase(sample_repo, context=parser_context)
        b_hash = previous.get_module("src/b.ts").content_hash
        a_hash = previous.get_module("src/a.ts").content_hash
        previous.summary_cache = [
            SummaryCacheEntry(b_hash, "B summary", "2026-01-01T00:00:00+00:00"),
            SummaryCacheEntry(a_hash, "A summary", "2026-01-01T00:00:00+00:00"),
        ]

        (sample_repo / "src/a.ts").write_text("export const changed = true;\n")
        manifest = analyze_codebase(
            sample_repo, context=parser_context, previous_manifest=previous, target_files=["./src/a.ts"],
        )
        assert [e.summary for e in manifest.summary_cache] == ["B summary"]


# =============================================================================
# Project Metadata
# =============================================================================


class TestProjectMeta:
    """Name, languages, entry points and package metadata."""

    def test_from_package_json(self, sample_repo, parser_context):
        manifest = analyze_codebase(sample_repo, context=parser_context)
        meta = manifest.project_meta
        assert meta.name == sample_repo.resolve().name
        assert meta.version == "2.1.0"
        assert meta.description == "Sample app"
        assert meta.license == "MIT"
        assert meta.package_manager == "npm"
        assert meta.readme_description == "A sample application used by the test suite."
        assert meta.entry_points == ["src/index.ts"]

    def test_language_percentages(self, sample_repo, parser_context):
        manifest = analyze_codebase(sample_repo, context=parser_context)
        languages = manifest.project_meta.languages
        assert languages[0].name == "typescript"
        assert languages[0].file_count == 3
        counts = [lang.file_count for lang in languages]
        assert counts == sorted(counts, reverse=True)
        assert sum(lang.file_count for lang in languages) == len(manifest.modules)

    def test_from_pyproject(self, write_files):
        root = write_files({
            "pyproject.toml": (
                "[project]\n"
                'name = "tool"\n'
                'version = "0.3.0"\n'
                'description = "A tool"\n'
                'license = {text = "Apache-2.0"}\n'
            ),
            "uv.lock": "",
        })
        meta = compute_project_meta([], root)
        assert meta.version == "0.3.0"
        assert meta.description == "A tool"
        assert meta.license == "Apache-2.0"
        assert meta.package_manager == "uv"
        assert meta.languages == []

    def test_package_manager_order(self, write_files):
        root = write_files({"pnpm-lock.yaml": "", "package-lock.json": "{}"})
        assert detect_package_manager(root) == "pnpm"

    def test_no_metadata(self, temp_dir):
        meta = compute_project_meta([], temp_dir)
        assert meta.version is None
        assert meta.package_manager is None


# =============================================================================
# Persistence
# =============================================================================


class TestManifestPersistence:
    """Saving and loading manifests as JSON."""

    def test_save_and_load(self, sample_repo, parser_context, temp_dir):
        manifest = analyze_codebase(sample_repo, context=parser_context)
        path = temp_dir / "out" / "manifest.json"
        save_manifest(manifest, path)

        data = json.loads(path.read_text())
        assert data["modules"][0]["file_path"] == manifest.modules[0].file_path

        loaded = load_manifest(path)
        assert loaded == manifest

    def test_loaded_manifest_drives_incremental_run(self, sample_repo, parser_context, temp_dir):
        path = temp_dir / "manifest.json"
        save_manifest(analyze_codebase(sample_repo, context=parser_context), path)
        previous = load_manifest(path)

        manifest = analyze_codebase(
            sample_repo, context=parser_context, previous_manifest=previous, target_files=["src/b.ts"],
        )
        assert manifest.get_module("src/a.ts") is previous.get_module("src/a.ts")

    def test_missing_file(self, temp_dir):
        assert load_manifest(temp_dir / "none.json") is None

    def test_malformed_file(self, temp_dir):
        path = temp_dir / "manifest.json"
        path.write_text("{broken")
        with pytest.raises(ManifestError):
            load_manifest(path)
