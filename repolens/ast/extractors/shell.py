"""
Shell Extractor

Line-oriented scan of shell scripts for function definitions, exported
variables and readonly constants. The comment line directly above a
definition becomes its doc.
"""

import re
from typing import Optional

from repolens.ast.extractors.base import LineExtractor, SymbolCollector, register_extractor
from repolens.ast.models import DocComment, ExtractionResult, SourceLocation, Symbol, SymbolKind

# name() {   /   function name {   /   function name() {
_FUNCTION_RE = re.compile(r"^([a-zA-Z_][a-zA-Z0-9_]*)\s*\(\)\s*\{?")
_FUNCTION_KEYWORD_RE = re.compile(r"^function\s+([a-zA-Z_][a-zA-Z0-9_]*)\s*(?:\(\))?\s*\{?")
_EXPORT_RE = re.compile(r"^export\s+([A-Z_][A-Z0-9_]*)=")
_READONLY_RE = re.compile(r"^(?:readonly|declare\s+-r)\s+([A-Z_][A-Z0-9_]*)=")

# Scanned line budget for the leading comment block
_HEADER_LINES = 20


def detect_shell_type(first_line: str) -> str:
    if not first_line.startswith("#!"):
        return "shell"
    if "bash" in first_line:
        return "bash"
    if "zsh" in first_line:
        return "zsh"
    if "sh" in first_line:
        return "sh"
    return "shell"


class ShellExtractor(LineExtractor):
    """Extracts functions and variables from shell scripts."""

    _PATTERNS = (
        (_FUNCTION_RE, SymbolKind.FUNCTION),
        (_FUNCTION_KEYWORD_RE, SymbolKind.FUNCTION),
        (_EXPORT_RE, SymbolKind.VARIABLE),
        (_READONLY_RE, SymbolKind.CONSTANT),
    )

    @property
    def language(self) -> str:
        return "shell"

    def extract_text(self, text: str, file_path: str) -> ExtractionResult:
        lines = text.split("\n")
        collector = SymbolCollector()
        prev_comment = ""

        for line_num, line in enumerate(lines, start=1):
            trimmed = line.strip()

            if trimmed.startswith("#") and not trimmed.startswith("#!"):
                prev_comment = trimmed.lstrip("#").strip()
                continue

            match, kind = self._match(trimmed)
            if match:
                name = match.group(1)
                collector.add(Symbol(
                    id=self.make_id(file_path, name),
                    name=name,
                    kind=kind,
                    location=SourceLocation(file=file_path, line=line_num),
                    exported=True,
                    docs=DocComment(summary=prev_comment) if prev_comment else None,
                    signature=trimmed.rstrip("{").strip(),
                ))
                prev_comment = ""
            elif trimmed:
                prev_comment = ""

        return ExtractionResult(
            symbols=collector.symbols,
            module_doc=DocComment(summary=self._summary(lines)),
        )

    def _match(self, line: str) -> tuple[Optional[re.Match], Optional[SymbolKind]]:
        for pattern, kind in self._PATTERNS:
            match = pattern.match(line)
            if match:
                return match, kind
        return None, None

    def _summary(self, lines: list[str]) -> str:
        """First comment line after the shebang, else '<Shell> script'."""
        first = lines[0] if lines else ""
        start = 1 if first.startswith("#!") else 0
        for line in lines[start:_HEADER_LINES]:
            trimmed = line.strip()
            if trimmed.startswith("#") and not trimmed.startswith("#!"):
                comment = trimmed.lstrip("#").strip()
                if comment:
                    return comment
            elif trimmed:
                break
        return f"{detect_shell_type(first).capitalize()} script"


register_extractor(ShellExtractor())
