"""
SQL Extractor

Extracts CREATE statements (tables, views, functions, procedures, triggers,
indexes, types, schemas, sequences, enums) from .sql files. A `--` comment
line directly above a statement becomes its doc.
"""

import re
from pathlib import PurePosixPath

from repolens.ast.extractors.base import LineExtractor, SymbolCollector, register_extractor
from repolens.ast.models import DocComment, ExtractionResult, SourceLocation, Symbol, SymbolKind

_CREATE_RE = re.compile(
    r"^\s*CREATE\s+(?:OR\s+REPLACE\s+)?(?:TEMP(?:ORARY)?\s+)?"
    r"(TABLE|(?:MATERIALIZED\s+)?VIEW|FUNCTION|PROCEDURE|TRIGGER|INDEX|TYPE|SCHEMA|SEQUENCE|ENUM)\s+"
    r"(?:IF\s+NOT\s+EXISTS\s+)?[`\"']?([a-zA-Z_][a-zA-Z0-9_.]*)[`\"']?\s*(?:\(|;|\s|$)",
    re.IGNORECASE,
)

OBJECT_KINDS = {
    "table": SymbolKind.CLASS,
    "view": SymbolKind.INTERFACE,
    "materialized view": SymbolKind.INTERFACE,
    "function": SymbolKind.FUNCTION,
    "procedure": SymbolKind.FUNCTION,
    "trigger": SymbolKind.FUNCTION,
    "index": SymbolKind.PROPERTY,
    "type": SymbolKind.TYPE,
    "schema": SymbolKind.NAMESPACE,
    "sequence": SymbolKind.VARIABLE,
    "enum": SymbolKind.ENUM,
}


class SqlExtractor(LineExtractor):
    """Extracts schema objects from SQL files."""

    @property
    def language(self) -> str:
        return "sql"

    def extract_text(self, text: str, file_path: str) -> ExtractionResult:
        collector = SymbolCollector()
        prev_comment = ""

        for line_num, line in enumerate(text.split("\n"), start=1):
            trimmed = line.strip()

            if trimmed.startswith("--"):
                prev_comment = trimmed[2:].strip()
                continue

            match = _CREATE_RE.match(trimmed)
            if match:
                object_type = " ".join(match.group(1).lower().split())
                name = match.group(2)
                collector.add(Symbol(
                    id=self.make_id(file_path, name),
                    name=name,
                    kind=OBJECT_KINDS.get(object_type, SymbolKind.PROPERTY),
                    location=SourceLocation(file=file_path, line=line_num),
                    exported=True,
                    type_annotation=object_type.upper(),
                    docs=DocComment(summary=prev_comment) if prev_comment else None,
                ))
                prev_comment = ""
            elif trimmed and not trimmed.startswith("/*"):
                prev_comment = ""

        return ExtractionResult(
            symbols=collector.symbols,
            module_doc=DocComment(summary=self._summary(collector.symbols, file_path)),
        )

    def _summary(self, symbols: list[Symbol], file_path: str) -> str:
        tables = sum(1 for s in symbols if s.type_annotation == "TABLE")
        functions = sum(1 for s in symbols if s.kind == SymbolKind.FUNCTION)

        if tables and functions:
            summary = f"SQL schema ({tables} tables, {functions} functions)"
        elif tables:
            summary = f"SQL schema ({tables} tables)"
        elif functions:
            summary = f"SQL functions ({functions} functions)"
        elif symbols:
            summary = f"SQL definitions ({len(symbols)} objects)"
        else:
            summary = "SQL file"

        basename = PurePosixPath(file_path).name.lower()
        if "migration" in basename or "migrate" in basename:
            return f"Database migration: {summary}"
        if "seed" in basename:
            return "Database seed data"
        return summary


register_extractor(SqlExtractor())
