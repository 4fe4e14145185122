"""
Data Models for Source Extraction

Language-agnostic representation of what one parse pass extracts from a file:
symbols, imports, exports and documentation.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Optional, Union


class SymbolKind(str, Enum):
    """Kind of declared entity."""

    FUNCTION = "function"
    CLASS = "class"
    INTERFACE = "interface"
    TYPE = "type"
    ENUM = "enum"
    CONSTANT = "constant"
    VARIABLE = "variable"
    METHOD = "method"
    PROPERTY = "property"
    MODULE = "module"
    NAMESPACE = "namespace"
    DECORATOR = "decorator"
    HOOK = "hook"
    COMPONENT = "component"


class Visibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    PROTECTED = "protected"
    INTERNAL = "internal"


@dataclass
class SourceLocation:
    """Position of a declaration (1-based lines, 0-based columns)."""

    file: str
    line: int
    column: int = 0
    end_line: Optional[int] = None
    end_column: Optional[int] = None


@dataclass
class Parameter:
    """Represents a function parameter."""

    name: str
    type: Optional[str] = None
    description: Optional[str] = None
    default_value: Optional[str] = None
    optional: bool = False
    rest: bool = False  # *args, ...args, params T[]


@dataclass
class ReturnInfo:
    type: Optional[str] = None
    description: Optional[str] = None


@dataclass
class DocComment:
    """Parsed documentation comment, same shape for every language."""

    summary: str = ""
    description: Optional[str] = None
    params: dict[str, str] = field(default_factory=dict)  # parameter name -> text
    returns: Optional[str] = None
    throws: list[str] = field(default_factory=list)
    examples: list[str] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)  # any other @tag
    deprecated: Union[str, bool, None] = None  # True or the deprecation message
    since: Optional[str] = None
    see: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "DocComment":
        return cls(**data)


@dataclass
class Symbol:
    """One declared entity within a module."""

    id: str  # "{file_path}:{qualified_name}"
    name: str
    kind: SymbolKind
    location: SourceLocation
    visibility: Visibility = Visibility.PUBLIC
    exported: bool = False
    parameters: list[Parameter] = field(default_factory=list)
    returns: Optional[ReturnInfo] = None
    type_annotation: Optional[str] = None
    type_parameters: list[str] = field(default_factory=list)
    decorators: list[str] = field(default_factory=list)
    docs: Optional[DocComment] = None
    signature: Optional[str] = None
    extends: Optional[str] = None
    implements: list[str] = field(default_factory=list)
    children: list[str] = field(default_factory=list)  # ids of members
    parent_id: Optional[str] = None
    is_async: bool = False
    is_generator: bool = False
    ai_summary: Optional[str] = None  # written by external enrichment only

    @classmethod
    def from_dict(cls, data: dict) -> "Symbol":
        data = dict(data)
        data["kind"] = SymbolKind(data["kind"])
        data["visibility"] = Visibility(data.get("visibility", "public"))
        data["location"] = SourceLocation(**data["location"])
        data["parameters"] = [Parameter(**p) for p in data.get("parameters", [])]
        if data.get("returns") is not None:
            data["returns"] = ReturnInfo(**data["returns"])
        if data.get("docs") is not None:
            data["docs"] = DocComment.from_dict(data["docs"])
        return cls(**data)


@dataclass
class ImportSpecifier:
    name: str  # "*" for namespace/wildcard imports
    alias: Optional[str] = None
    is_default: bool = False
    is_namespace: bool = False


@dataclass
class ImportInfo:
    """Represents an import statement."""

    source: str  # Module specifier exactly as written
    specifiers: list[ImportSpecifier] = field(default_factory=list)
    is_type_only: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "ImportInfo":
        return cls(
            source=data["source"],
            specifiers=[ImportSpecifier(**s) for s in data.get("specifiers", [])],
            is_type_only=data.get("is_type_only", False),
        )


@dataclass
class ExportInfo:
    """Represents an exported name."""

    name: str
    alias: Optional[str] = None
    is_default: bool = False
    is_re_export: bool = False
    source: Optional[str] = None  # Re-export origin
    symbol_id: Optional[str] = None  # Local symbol this export refers to


@dataclass
class ExtractionResult:
    """What an extractor returns for one file."""

    symbols: list[Symbol] = field(default_factory=list)
    imports: list[ImportInfo] = field(default_factory=list)
    exports: list[ExportInfo] = field(default_factory=list)
    module_doc: Optional[DocComment] = None


@dataclass
class ModuleInfo:
    """One analyzed file and everything extracted from it."""

    file_path: str  # Repo-relative, POSIX separators
    language: str
    symbols: list[Symbol] = field(default_factory=list)
    imports: list[ImportInfo] = field(default_factory=list)
    exports: list[ExportInfo] = field(default_factory=list)
    module_doc: Optional[DocComment] = None
    file_size: int = 0
    line_count: int = 0
    content_hash: str = ""
    analyzed_at: str = ""  # ISO-8601 UTC
    ai_summary: Optional[str] = None  # written by external enrichment only

    def get_symbol(self, symbol_id: str) -> Optional[Symbol]:
        for symbol in self.symbols:
            if symbol.id == symbol_id:
                return symbol
        return None

    def get_exported_symbols(self) -> list[Symbol]:
        return [s for s in self.symbols if s.exported]

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ModuleInfo":
        data = dict(data)
        data["symbols"] = [Symbol.from_dict(s) for s in data.get("symbols", [])]
        data["imports"] = [ImportInfo.from_dict(i) for i in data.get("imports", [])]
        data["exports"] = [ExportInfo(**e) for e in data.get("exports", [])]
        if data.get("module_doc") is not None:
            data["module_doc"] = DocComment.from_dict(data["module_doc"])
        return cls(**data)
