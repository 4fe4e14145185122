"""
Source Analysis

Language detection, tree-sitter parsing and per-language extraction of
symbols, imports, exports and module docs into a shared schema.
"""

from repolens.ast.languages import (
    detect_language,
    get_language_display_name,
    get_supported_extensions,
    get_supported_languages,
)
from repolens.ast.models import (
    DocComment,
    ExportInfo,
    ExtractionResult,
    ImportInfo,
    ImportSpecifier,
    ModuleInfo,
    Parameter,
    ReturnInfo,
    SourceLocation,
    Symbol,
    SymbolKind,
    Visibility,
)
from repolens.ast.parser import ParserContext, get_default_context

__all__ = [
    # Languages
    "detect_language",
    "get_language_display_name",
    "get_supported_extensions",
    "get_supported_languages",
    # Models
    "DocComment",
    "ExportInfo",
    "ExtractionResult",
    "ImportInfo",
    "ImportSpecifier",
    "ModuleInfo",
    "Parameter",
    "ReturnInfo",
    "SourceLocation",
    "Symbol",
    "SymbolKind",
    "Visibility",
    # Parser
    "ParserContext",
    "get_default_context",
]
