"""
Markdown Extractor

Headings become property symbols (type_annotation "h1".."h6"). The module
summary is the first real prose line, skipping badges, HTML wrappers, code
fences and short title echoes.
"""

import re
from pathlib import PurePosixPath

from repolens.ast.extractors.base import LineExtractor, SymbolCollector, register_extractor
from repolens.ast.models import DocComment, ExtractionResult, SourceLocation, Symbol, SymbolKind

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
_HTML_TAG_LINE_RE = re.compile(r"^</?[a-z][^>]*>$", re.IGNORECASE)
_LINK_LINE_RE = re.compile(r"^(\s*<a\s|.*•.*<a\s)", re.IGNORECASE)
_INLINE_TAG_RE = re.compile(r"<[^>]+>")

_SUMMARY_MAX_CHARS = 200
_MIN_PROSE_CHARS = 20

_FILENAME_FALLBACKS = {
    "readme.md": "Project README",
    "contributing.md": "Contributing guide",
    "changelog.md": "Project changelog",
    "license.md": "License information",
}


def strip_inline_markdown(text: str) -> str:
    """[text](url) -> text, `code` -> code, **bold** -> bold, *em* -> em"""
    text = re.sub(r"\[([^\]]*)\]\([^)]*\)", r"\1", text)
    text = re.sub(r"`([^`]*)`", r"\1", text)
    text = re.sub(r"\*\*([^*]*)\*\*", r"\1", text)
    text = re.sub(r"\*([^*]*)\*", r"\1", text)
    return text.strip()


def _is_decoration(line: str) -> bool:
    return bool(
        _HTML_TAG_LINE_RE.match(line)
        or line.startswith("<!--")
        or line.startswith("[![")
        or re.match(r"^<img\s", line, re.IGNORECASE)
        or _LINK_LINE_RE.match(line)
        or line.startswith("---")
        or line.startswith("```")
    )


class MarkdownExtractor(LineExtractor):
    """Extracts headings and a prose summary from Markdown files."""

    @property
    def language(self) -> str:
        return "markdown"

    def extract_text(self, text: str, file_path: str) -> ExtractionResult:
        lines = text.split("\n")
        collector = SymbolCollector()

        for line_num, line in enumerate(lines, start=1):
            match = _HEADING_RE.match(line)
            if not match:
                continue
            title = strip_inline_markdown(match.group(2))
            collector.add(Symbol(
                id=self.make_id(file_path, title),
                name=title,
                kind=SymbolKind.PROPERTY,
                location=SourceLocation(file=file_path, line=line_num),
                exported=True,
                type_annotation=f"h{len(match.group(1))}",
            ))

        summary = self._prose_summary(lines) or self._first_heading(lines)
        if not summary:
            summary = _FILENAME_FALLBACKS.get(PurePosixPath(file_path).name.lower(), "")

        return ExtractionResult(
            symbols=collector.symbols,
            module_doc=DocComment(summary=summary) if summary else None,
        )

    def _prose_summary(self, lines: list[str]) -> str:
        for line in lines:
            trimmed = line.strip()
            if not trimmed or _is_decoration(trimmed) or _HEADING_RE.match(trimmed):
                continue
            stripped = _INLINE_TAG_RE.sub("", trimmed).strip()
            if not stripped:
                continue
            # A short fragment without a period is a title echo, not prose
            if len(stripped) < _MIN_PROSE_CHARS and "." not in stripped:
                continue
            return stripped[:_SUMMARY_MAX_CHARS]
        return ""

    def _first_heading(self, lines: list[str]) -> str:
        for line in lines:
            match = _HEADING_RE.match(line.strip())
            if match:
                return match.group(2).strip()
        return ""


register_extractor(MarkdownExtractor())
