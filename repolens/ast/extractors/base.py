"""
Base Extractor Interface

Abstract base classes that all language extractors implement, plus the
process-wide registry mapping language tags to extractors.

Two families exist:
- TreeSitterExtractor: walks a concrete syntax tree from a ParserContext
- LineExtractor: line-oriented scanning for config/markup languages
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Iterable, Optional

from tree_sitter import Node, Tree

from repolens.ast.models import ExtractionResult, SourceLocation, Symbol
from repolens.ast.parser import ParserContext
from repolens.exceptions import ParseError


class NodeKind(Enum):
    """
    Normalized syntax node categories.

    Each tree-sitter extractor maps its grammar's node type strings onto
    these once (NODE_KINDS) and dispatches on the enum.
    """

    COMMENT = "comment"
    PACKAGE = "package"
    IMPORT = "import"
    EXPORT = "export"
    FUNCTION = "function"
    METHOD = "method"
    CONSTRUCTOR = "constructor"
    CLASS = "class"
    STRUCT = "struct"
    INTERFACE = "interface"
    TRAIT = "trait"
    IMPL = "impl"
    ENUM = "enum"
    RECORD = "record"
    TYPE_ALIAS = "type_alias"
    TYPE_DECL = "type_decl"
    VARIABLE = "variable"
    CONSTANT = "constant"
    PROPERTY = "property"
    FIELD = "field"
    MODULE = "module"
    NAMESPACE = "namespace"
    DECORATED = "decorated"
    EXPRESSION = "expression"
    CALL = "call"
    OTHER = "other"


class SymbolCollector:
    """
    Accumulates symbols for one file and keeps their ids unique.

    A repeated id (overloads, duplicate definitions) gets a "#n" suffix.
    Members must be added after their owner so they see its final id.
    """

    def __init__(self):
        self.symbols: list[Symbol] = []
        self._ids: set[str] = set()

    def add(self, symbol: Symbol) -> Symbol:
        if symbol.id in self._ids:
            n = 2
            while f"{symbol.id}#{n}" in self._ids:
                n += 1
            symbol.id = f"{symbol.id}#{n}"
        self._ids.add(symbol.id)
        self.symbols.append(symbol)
        return symbol

    def add_member(self, parent: Symbol, symbol: Symbol) -> Symbol:
        symbol.parent_id = parent.id
        self.add(symbol)
        parent.children.append(symbol.id)
        return symbol

    def find(self, name: str) -> Optional[Symbol]:
        """First top-level symbol with this name."""
        for symbol in self.symbols:
            if symbol.name == name and symbol.parent_id is None:
                return symbol
        return None


class LanguageExtractor(ABC):
    """
    Abstract base class for language-specific extractors.

    Every language turns one file's content into symbols, imports, exports
    and a module doc. Extractors raise ParseError on input they cannot
    make sense of; they never swallow failures.
    """

    @property
    @abstractmethod
    def language(self) -> str:
        """Return the language tag (e.g., 'python', 'typescript')."""
        pass

    @abstractmethod
    def extract(self, source: bytes, file_path: str, context: ParserContext) -> ExtractionResult:
        """
        Extract everything from one file.

        Args:
            source: Raw file bytes
            file_path: Repo-relative POSIX path (used for symbol ids)
            context: Parser context providing tree-sitter parsers

        Returns:
            ExtractionResult for the file
        """
        pass

    # Helper methods shared by all extractors

    @staticmethod
    def make_id(file_path: str, qualified_name: str) -> str:
        return f"{file_path}:{qualified_name}"


class TreeSitterExtractor(LanguageExtractor):
    """Base for extractors backed by a tree-sitter grammar."""

    # Grammar node type -> NodeKind; unknown types map to NodeKind.OTHER
    NODE_KINDS: dict[str, NodeKind] = {}

    @property
    @abstractmethod
    def grammar(self) -> str:
        """Default grammar name registered in ParserContext."""
        pass

    def grammar_for(self, file_path: str) -> str:
        """Grammar to use for a particular file (e.g. tsx vs typescript)."""
        return self.grammar

    def extract(self, source: bytes, file_path: str, context: ParserContext) -> ExtractionResult:
        tree = context.parse(source, self.grammar_for(file_path))
        self.check_tree(tree, file_path)
        return self.extract_tree(tree, source, file_path)

    @abstractmethod
    def extract_tree(self, tree: Tree, source: bytes, file_path: str) -> ExtractionResult:
        """Walk a parsed tree and build the ExtractionResult."""
        pass

    def check_tree(self, tree: Tree, file_path: str) -> None:
        """
        Reject trees whose top level could not be parsed.

        Raises:
            ParseError: If the root or a top-level node is an ERROR node
        """
        root = tree.root_node
        if root.type == "ERROR":
            raise ParseError("Unparseable file", file_path=file_path)
        for child in root.children:
            if child.type == "ERROR":
                raise ParseError(
                    f"Syntax error at line {child.start_point[0] + 1}",
                    file_path=file_path,
                    details={"line": child.start_point[0] + 1},
                )

    def kind_of(self, node: Node) -> NodeKind:
        return self.NODE_KINDS.get(node.type, NodeKind.OTHER)

    # Helper methods for tree traversal

    def get_node_text(self, node: Optional[Node], source: bytes) -> str:
        """Extract the text content of a node."""
        if node is None:
            return ""
        return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def find_children(self, node: Node, type_name: str) -> list[Node]:
        """Find all direct children of a specific type."""
        return [child for child in node.children if child.type == type_name]

    def find_child(self, node: Node, type_name: str) -> Optional[Node]:
        """Find the first direct child of a specific type."""
        for child in node.children:
            if child.type == type_name:
                return child
        return None

    def walk_tree(self, node: Node, type_name: str) -> list[Node]:
        """
        Walk the tree and find all nodes of a specific type.

        Args:
            node: Starting node
            type_name: Node type to find

        Returns:
            List of matching nodes
        """
        results = []

        def _walk(n: Node):
            if n.type == type_name:
                results.append(n)
            for child in n.children:
                _walk(child)

        _walk(node)
        return results

    def has_descendant(self, node: Node, type_names: set[str], stop_at: set[str]) -> bool:
        """True if a node of type_names occurs below node without crossing stop_at types."""
        for child in node.children:
            if child.type in type_names:
                return True
            if child.type in stop_at:
                continue
            if self.has_descendant(child, type_names, stop_at):
                return True
        return False

    def make_location(self, node: Node, file_path: str) -> SourceLocation:
        return SourceLocation(
            file=file_path,
            line=node.start_point[0] + 1,
            column=node.start_point[1],
            end_line=node.end_point[0] + 1,
            end_column=node.end_point[1],
        )

    def preceding_comments(
        self,
        node: Node,
        source: bytes,
        comment_types: Iterable[str] = ("comment",),
        skip_types: Iterable[str] = (),
    ) -> list[str]:
        """
        Collect the run of comments directly above a node.

        Comments separated from the node (or from each other) by a blank
        line are not included. Nodes in skip_types (attributes, annotations)
        may sit between the comments and the node.

        Returns:
            Comment texts in source order
        """
        comment_types = set(comment_types)
        skip_types = set(skip_types)
        comments: list[str] = []
        expected_row = node.start_point[0]
        sibling = node.prev_sibling

        while sibling is not None:
            if sibling.type in skip_types:
                expected_row = sibling.start_point[0]
                sibling = sibling.prev_sibling
                continue
            if sibling.type not in comment_types:
                break
            if sibling.end_point[0] < expected_row - 1:
                break
            comments.append(self.get_node_text(sibling, source))
            expected_row = sibling.start_point[0]
            sibling = sibling.prev_sibling

        comments.reverse()
        return comments

    def signature_text(self, node: Node, source: bytes, body: Optional[Node]) -> str:
        """Declarator text up to (not including) the body or terminating semicolon."""
        if body is not None:
            text = source[node.start_byte:body.start_byte].decode("utf-8", errors="replace")
        else:
            text = self.get_node_text(node, source)
        return text.strip().rstrip(";").rstrip()


class LineExtractor(LanguageExtractor):
    """Base for line-oriented extractors that work on decoded text."""

    def extract(self, source: bytes, file_path: str, context: ParserContext) -> ExtractionResult:
        text = source.decode("utf-8", errors="replace")
        return self.extract_text(text, file_path)

    @abstractmethod
    def extract_text(self, text: str, file_path: str) -> ExtractionResult:
        pass


# Registry of extractors by language
_extractors: dict[str, LanguageExtractor] = {}


def register_extractor(extractor: LanguageExtractor, language: Optional[str] = None) -> None:
    """Register an extractor for a language (defaults to extractor.language)."""
    _extractors[language or extractor.language] = extractor


def get_extractor(language: str) -> Optional[LanguageExtractor]:
    """
    Get the extractor for a language.

    Args:
        language: Language tag (python, typescript, go, ...)

    Returns:
        LanguageExtractor or None if no extractor is registered
    """
    return _extractors.get(language)


def get_registered_languages() -> list[str]:
    return sorted(_extractors)
