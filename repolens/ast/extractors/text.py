"""
Text Extractor (fallback)

Used for detected languages without a structural extractor. Emits no
symbols; only a summary taken from a leading comment, so every discovered
file still produces a module record.
"""

import re

from repolens.ast.extractors.base import LineExtractor, register_extractor
from repolens.ast.models import DocComment, ExtractionResult

_COMMENT_PATTERNS = [
    re.compile(r"^\s*#\s*(.+)$"),
    re.compile(r"^\s*//\s*(.+)$"),
    re.compile(r"^\s*/\*\*?\s*(.+)$"),
    re.compile(r"^\s*--\s*(.+)$"),
    re.compile(r"^\s*<!--\s*(.+)$"),
]

_CLOSING_RE = re.compile(r"\s*(\*/|-->)\s*$")

_HEAD_LINES = 10

# Languages detected by extension that have no structural extractor
FALLBACK_LANGUAGES = [
    "swift", "kotlin", "scala", "elixir", "dart", "lua", "zig", "haskell",
    "c", "cpp", "dockerfile", "toml", "json", "xml",
]


class TextExtractor(LineExtractor):
    """Leading-comment summary for an arbitrary language tag."""

    def __init__(self, language: str):
        self._language = language

    @property
    def language(self) -> str:
        return self._language

    def extract_text(self, text: str, file_path: str) -> ExtractionResult:
        summary = ""
        for line in text.split("\n")[:_HEAD_LINES]:
            if not line.strip():
                continue
            # Only the first non-blank line is considered
            for pattern in _COMMENT_PATTERNS:
                match = pattern.match(line)
                if match:
                    summary = _CLOSING_RE.sub("", match.group(1)).strip()
                    break
            break

        return ExtractionResult(module_doc=DocComment(summary=summary) if summary else None)


for _language in FALLBACK_LANGUAGES:
    register_extractor(TextExtractor(_language))
