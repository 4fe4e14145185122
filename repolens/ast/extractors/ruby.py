"""
Ruby Extractor

Extracts classes, modules, methods, constants and require statements from
Ruby source files. Method visibility follows private/protected sections,
explicit `private :name` calls and the leading-underscore convention.
"""

import re
from typing import Optional

from tree_sitter import Node, Tree

from repolens.ast.docs import clean_line_comments, parse_tagged_doc
from repolens.ast.extractors.base import (
    NodeKind,
    SymbolCollector,
    TreeSitterExtractor,
    register_extractor,
)
from repolens.ast.models import (
    DocComment,
    ExportInfo,
    ExtractionResult,
    ImportInfo,
    ImportSpecifier,
    Parameter,
    ReturnInfo,
    Symbol,
    SymbolKind,
    Visibility,
)

_CONSTANT_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")
_MAGIC_COMMENT_RE = re.compile(r"^#\s*(frozen_string_literal|encoding|coding|warn_indent)\s*:|^#!")
_VISIBILITY_WORDS = {
    "public": Visibility.PUBLIC,
    "private": Visibility.PRIVATE,
    "protected": Visibility.PROTECTED,
}


class RubyExtractor(TreeSitterExtractor):
    """Extracts metadata from Ruby source files."""

    NODE_KINDS = {
        "class": NodeKind.CLASS,
        "module": NodeKind.MODULE,
        "method": NodeKind.METHOD,
        "singleton_method": NodeKind.METHOD,
        "assignment": NodeKind.CONSTANT,
        "call": NodeKind.CALL,
        "identifier": NodeKind.EXPRESSION,
        "comment": NodeKind.COMMENT,
    }

    @property
    def language(self) -> str:
        return "ruby"

    @property
    def grammar(self) -> str:
        return "ruby"

    def extract_tree(self, tree: Tree, source: bytes, file_path: str) -> ExtractionResult:
        root = tree.root_node
        collector = SymbolCollector()

        self._extract_body(root, source, file_path, collector, owner=None)

        return ExtractionResult(
            symbols=collector.symbols,
            imports=self._extract_requires(root, source),
            exports=[
                ExportInfo(name=s.name, symbol_id=s.id)
                for s in collector.symbols
                if s.exported
            ],
            module_doc=self._extract_module_doc(root, source),
        )

    # -------------------------------------------------------------------------
    # Imports
    # -------------------------------------------------------------------------

    def _extract_requires(self, root: Node, source: bytes) -> list[ImportInfo]:
        """require 'x' and require_relative 'x' (relative paths get a ./ prefix)."""
        imports = []
        for call in self.walk_tree(root, "call"):
            if call.child_by_field_name("receiver") is not None:
                continue
            method = self.get_node_text(call.child_by_field_name("method"), source)
            if method not in ("require", "require_relative"):
                continue
            target = self._first_string_argument(call, source)
            if not target:
                continue
            if method == "require_relative" and not target.startswith("."):
                target = f"./{target}"
            imports.append(ImportInfo(
                source=target,
                specifiers=[ImportSpecifier(name=target.rsplit("/", 1)[-1], is_namespace=True)],
            ))
        return imports

    def _first_string_argument(self, call: Node, source: bytes) -> str:
        args = call.child_by_field_name("arguments")
        if args is None:
            return ""
        for arg in args.named_children:
            if arg.type == "string":
                content = self.find_child(arg, "string_content")
                return self.get_node_text(content, source) if content else ""
        return ""

    # -------------------------------------------------------------------------
    # Declarations
    # -------------------------------------------------------------------------

    def _body_of(self, node: Node) -> Node:
        body = node.child_by_field_name("body")
        if body is not None:
            return body
        return self.find_child(node, "body_statement") or node

    def _extract_body(
        self,
        container: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        owner: Optional[Symbol],
    ) -> None:
        """Visit one body: program, class body or module body."""
        section_visibility = Visibility.PUBLIC
        explicit: dict[str, Visibility] = {}
        methods: list[Symbol] = []

        for node in container.named_children:
            kind = self.kind_of(node)
            if kind in (NodeKind.CLASS, NodeKind.MODULE):
                self._extract_container(node, kind, source, file_path, collector, owner)
            elif kind == NodeKind.METHOD:
                symbol = self._add_method(node, source, file_path, collector, owner, section_visibility)
                if symbol is not None:
                    methods.append(symbol)
            elif kind == NodeKind.CONSTANT:
                self._add_constant(node, source, file_path, collector, owner)
            elif kind == NodeKind.EXPRESSION:
                # Bare `private` / `protected` / `public` starts a section
                word = self.get_node_text(node, source)
                if word in _VISIBILITY_WORDS:
                    section_visibility = _VISIBILITY_WORDS[word]
            elif kind == NodeKind.CALL:
                self._visibility_call(node, source, file_path, collector, owner, explicit, methods)

        for symbol in methods:
            if symbol.name in explicit:
                symbol.visibility = explicit[symbol.name]
                if owner is None:
                    symbol.exported = symbol.visibility == Visibility.PUBLIC

    def _visibility_call(
        self,
        node: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        owner: Optional[Symbol],
        explicit: dict[str, Visibility],
        methods: list[Symbol],
    ) -> None:
        """private :a, :b  /  private def a ... end"""
        if node.child_by_field_name("receiver") is not None:
            return
        word = self.get_node_text(node.child_by_field_name("method"), source)
        if word not in _VISIBILITY_WORDS:
            return
        args = node.child_by_field_name("arguments")
        if args is None:
            return
        for arg in args.named_children:
            if arg.type == "method":
                symbol = self._add_method(arg, source, file_path, collector, owner, _VISIBILITY_WORDS[word])
                if symbol is not None:
                    methods.append(symbol)
            elif arg.type in ("simple_symbol", "string"):
                name = self.get_node_text(arg, source).lstrip(":").strip("'\"")
                explicit[name] = _VISIBILITY_WORDS[word]

    def _extract_container(
        self,
        node: Node,
        kind: NodeKind,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        owner: Optional[Symbol],
    ) -> None:
        name = self.get_node_text(node.child_by_field_name("name"), source)
        if not name:
            return

        extends = None
        superclass = node.child_by_field_name("superclass")
        if superclass is not None:
            extends = self.get_node_text(superclass, source).lstrip("<").strip()

        body = self._body_of(node)
        qualified = f"{owner.name}.{name}" if owner else name
        symbol = Symbol(
            id=self.make_id(file_path, qualified),
            name=name,
            kind=SymbolKind.CLASS if kind == NodeKind.CLASS else SymbolKind.MODULE,
            location=self.make_location(node, file_path),
            exported=owner is None,
            docs=self._doc_for(node, source),
            signature=self.get_node_text(node, source).split("\n", 1)[0].strip(),
            extends=extends,
        )
        if owner is None:
            collector.add(symbol)
        else:
            collector.add_member(owner, symbol)

        self._extract_body(body, source, file_path, collector, symbol)

    def _add_method(
        self,
        node: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        owner: Optional[Symbol],
        section_visibility: Visibility,
    ) -> Optional[Symbol]:
        name = self.get_node_text(node.child_by_field_name("name"), source)
        if not name:
            return None
        if node.type == "singleton_method":
            receiver = self.get_node_text(node.child_by_field_name("object"), source)
            display = f"{receiver}.{name}"
        else:
            display = name

        visibility = section_visibility
        if name.startswith("_"):
            visibility = Visibility.PRIVATE

        docs = self._doc_for(node, source)
        parameters = self._extract_parameters(node.child_by_field_name("parameters"), source)
        if docs:
            for param in parameters:
                param.description = docs.params.get(param.name)

        params_node = node.child_by_field_name("parameters")
        signature_end = params_node.end_byte if params_node is not None else node.child_by_field_name("name").end_byte
        qualified = f"{owner.name}.{display}" if owner else display
        symbol = Symbol(
            id=self.make_id(file_path, qualified),
            name=name,
            kind=SymbolKind.METHOD if owner else SymbolKind.FUNCTION,
            location=self.make_location(node, file_path),
            visibility=visibility,
            exported=owner is None and visibility == Visibility.PUBLIC,
            parameters=parameters,
            returns=ReturnInfo(description=docs.returns) if docs and docs.returns else None,
            docs=docs,
            signature=source[node.start_byte:signature_end].decode("utf-8", errors="replace").strip(),
        )
        if owner is None:
            return collector.add(symbol)
        return collector.add_member(owner, symbol)

    def _add_constant(
        self,
        node: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        owner: Optional[Symbol],
    ) -> None:
        left = node.child_by_field_name("left")
        if left is None or left.type != "constant":
            return
        name = self.get_node_text(left, source)
        if not _CONSTANT_RE.match(name):
            return
        qualified = f"{owner.name}.{name}" if owner else name
        symbol = Symbol(
            id=self.make_id(file_path, qualified),
            name=name,
            kind=SymbolKind.CONSTANT,
            location=self.make_location(node, file_path),
            exported=owner is None,
            docs=self._doc_for(node, source),
            signature=self.get_node_text(node, source).split("\n", 1)[0].strip(),
        )
        if owner is None:
            collector.add(symbol)
        else:
            collector.add_member(owner, symbol)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _extract_parameters(self, params_node: Optional[Node], source: bytes) -> list[Parameter]:
        parameters: list[Parameter] = []
        if params_node is None:
            return parameters
        for child in params_node.named_children:
            if child.type == "identifier":
                parameters.append(Parameter(name=self.get_node_text(child, source)))
            elif child.type in ("optional_parameter", "keyword_parameter"):
                value = child.child_by_field_name("value")
                parameters.append(Parameter(
                    name=self.get_node_text(child.child_by_field_name("name"), source),
                    default_value=self.get_node_text(value, source) or None,
                    optional=value is not None or child.type == "optional_parameter",
                ))
            elif child.type in ("splat_parameter", "hash_splat_parameter", "block_parameter"):
                name = self.get_node_text(child.child_by_field_name("name"), source)
                parameters.append(Parameter(
                    name=name or self.get_node_text(child, source).lstrip("*&"),
                    rest=child.type != "block_parameter",
                    optional=child.type == "block_parameter",
                ))
        return parameters

    def _doc_for(self, node: Node, source: bytes) -> Optional[DocComment]:
        anchor = node
        # Comments above a body's first member hang off the class/module node
        if node.prev_sibling is None and node.parent is not None and node.parent.type == "body_statement":
            anchor = node.parent
        comments = [c for c in self.preceding_comments(anchor, source) if not _MAGIC_COMMENT_RE.match(c)]
        if not comments:
            return None
        doc = parse_tagged_doc(clean_line_comments(comments, "#"))
        return doc if doc.summary or doc.params or doc.returns else None

    def _extract_module_doc(self, root: Node, source: bytes) -> Optional[DocComment]:
        """First comment block in the file, ignoring magic comments."""
        comments: list[str] = []
        for node in root.children:
            if node.type != "comment":
                break
            text = self.get_node_text(node, source)
            if _MAGIC_COMMENT_RE.match(text):
                continue
            comments.append(text)
        if not comments:
            return None
        doc = parse_tagged_doc(clean_line_comments(comments, "#"))
        return doc if doc.summary else None


register_extractor(RubyExtractor())
