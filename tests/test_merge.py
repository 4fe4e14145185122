"""
Tests for incremental merge and summary cache carry-over.
"""

from repolens.ast.models import ModuleInfo
from repolens.ingest.merge import merge_modules, merge_summary_cache
from repolens.ingest.models import AnalysisManifest, SummaryCacheEntry


def make_module(file_path: str, content_hash: str) -> ModuleInfo:
    return ModuleInfo(file_path=file_path, language="typescript", content_hash=content_hash)


def make_manifest(*modules: ModuleInfo) -> AnalysisManifest:
    return AnalysisManifest(repolens_version="1.0.0", root="/repo", analyzed_at="", modules=list(modules))


class TestMergeModules:
    """Fresh modules replace targets; everything else is carried over."""

    def test_full_run_returns_new_list(self):
        new = [make_module("a.ts", "1")]
        merged = merge_modules(new)
        assert merged == new
        assert merged is not new

    def test_target_replaced_others_preserved(self):
        a, b, c = make_module("a.ts", "a1"), make_module("b.ts", "b1"), make_module("c.ts", "c1")
        previous = make_manifest(a, b, c)
        fresh_a = make_module("a.ts", "a2")

        merged = merge_modules([fresh_a], previous, ["a.ts"])

        assert [m.file_path for m in merged] == ["a.ts", "b.ts", "c.ts"]
        assert merged[0] is fresh_a
        assert merged[1] is b
        assert merged[2] is c
        assert merged[1].content_hash == "b1"

    def test_previous_manifest_untouched(self):
        a, b = make_module("a.ts", "a1"), make_module("b.ts", "b1")
        previous = make_manifest(a, b)
        merge_modules([make_module("a.ts", "a2")], previous, ["a.ts"])
        assert previous.modules == [a, b]
        assert previous.modules[0].content_hash == "a1"

    def test_skipped_target_disappears(self):
        previous = make_manifest(make_module("a.ts", "a1"), make_module("b.ts", "b1"))
        merged = merge_modules([], previous, ["a.ts"])
        assert [m.file_path for m in merged] == ["b.ts"]

    def test_new_file_added(self):
        previous = make_manifest(make_module("b.ts", "b1"))
        merged = merge_modules([make_module("a.ts", "a1")], previous, ["a.ts"])
        assert [m.file_path for m in merged] == ["a.ts", "b.ts"]

    def test_one_entry_per_path(self):
        previous = make_manifest(make_module("a.ts", "a1"), make_module("b.ts", "b1"))
        # Fresh module for a path that was not named as a target still wins
        merged = merge_modules([make_module("b.ts", "b2")], previous, ["a.ts"])
        assert [(m.file_path, m.content_hash) for m in merged] == [("b.ts", "b2")]


class TestMergeSummaryCache:
    """Only summaries for live content hashes survive."""

    def test_keeps_live_hashes(self):
        cache = [
            SummaryCacheEntry("h1", "first", "t1"),
            SummaryCacheEntry("gone", "stale", "t1"),
        ]
        merged = merge_summary_cache(cache, [make_module("a.ts", "h1")])
        assert [e.content_hash for e in merged] == ["h1"]

    def test_last_entry_wins(self):
        cache = [SummaryCacheEntry("h1", "old", "t1"), SummaryCacheEntry("h1", "new", "t2")]
        merged = merge_summary_cache(cache, [make_module("a.ts", "h1")])
        assert len(merged) == 1
        assert merged[0].summary == "new"
