"""
Rust Extractor

Extracts items, impl methods, use declarations and /// docs from Rust
source files. Visibility is decided by the pub / pub(...) keyword.
"""

from typing import Optional

from tree_sitter import Node, Tree

from repolens.ast.docs import clean_block_comment, clean_line_comments, parse_plain_doc
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

_COMMENT_TYPES = ("line_comment", "block_comment")
_ATTRIBUTE_TYPES = ("attribute_item",)


class RustExtractor(TreeSitterExtractor):
    """Extracts metadata from Rust source files."""

    NODE_KINDS = {
        "use_declaration": NodeKind.IMPORT,
        "function_item": NodeKind.FUNCTION,
        "function_signature_item": NodeKind.FUNCTION,
        "struct_item": NodeKind.STRUCT,
        "union_item": NodeKind.STRUCT,
        "enum_item": NodeKind.ENUM,
        "trait_item": NodeKind.TRAIT,
        "impl_item": NodeKind.IMPL,
        "type_item": NodeKind.TYPE_ALIAS,
        "const_item": NodeKind.CONSTANT,
        "static_item": NodeKind.CONSTANT,
        "mod_item": NodeKind.MODULE,
        "macro_definition": NodeKind.FUNCTION,
        "line_comment": NodeKind.COMMENT,
        "block_comment": NodeKind.COMMENT,
    }

    @property
    def language(self) -> str:
        return "rust"

    @property
    def grammar(self) -> str:
        return "rust"

    def extract_tree(self, tree: Tree, source: bytes, file_path: str) -> ExtractionResult:
        root = tree.root_node
        collector = SymbolCollector()
        result = ExtractionResult(module_doc=self._extract_module_doc(root, source))
        impls: list[Node] = []

        for node in root.children:
            kind = self.kind_of(node)
            if kind == NodeKind.IMPORT:
                imp = self._extract_use(node, source)
                if imp is None:
                    continue
                result.imports.append(imp)
                if self._is_pub(node, source):
                    for spec in imp.specifiers:
                        result.exports.append(ExportInfo(
                            name=spec.alias or spec.name,
                            is_re_export=True,
                            source=imp.source,
                        ))
            elif kind == NodeKind.IMPL:
                # Impl blocks may precede the type they implement
                impls.append(node)
            elif kind in (NodeKind.COMMENT, NodeKind.OTHER):
                continue
            else:
                self._extract_item(node, kind, source, file_path, collector)

        for node in impls:
            self._extract_impl(node, source, file_path, collector)

        result.symbols = collector.symbols
        result.exports.extend(
            ExportInfo(name=s.name, symbol_id=s.id)
            for s in collector.symbols
            if s.exported and s.parent_id is None
        )
        return result

    # -------------------------------------------------------------------------
    # use declarations
    # -------------------------------------------------------------------------

    def _extract_use(self, node: Node, source: bytes) -> Optional[ImportInfo]:
        """
        Parse a use declaration.

        use std::io;                 -> source std::io, specifier io
        use crate::a::{B, C as D};   -> source crate::a, specifiers B, C as D
        use super::*;                -> source super, namespace specifier
        """
        argument = node.child_by_field_name("argument")
        if argument is None:
            return None
        base, specifiers = self._flatten_use(argument, source)
        if not base and specifiers:
            base = specifiers[0].name
        return ImportInfo(source=base, specifiers=specifiers)

    def _flatten_use(self, node: Node, source: bytes) -> tuple[str, list[ImportSpecifier]]:
        if node.type == "scoped_use_list":
            base = self.get_node_text(node.child_by_field_name("path"), source)
            use_list = node.child_by_field_name("list")
            specifiers = self._use_list_specifiers(use_list, source) if use_list is not None else []
            return base, specifiers

        if node.type == "use_list":
            return "", self._use_list_specifiers(node, source)

        if node.type == "use_wildcard":
            text = self.get_node_text(node, source)
            return text.rsplit("::", 1)[0] if "::" in text else "", [ImportSpecifier(name="*", is_namespace=True)]

        if node.type == "use_as_clause":
            path = self.get_node_text(node.child_by_field_name("path"), source)
            alias = self.get_node_text(node.child_by_field_name("alias"), source)
            base, _, name = path.rpartition("::")
            return base or path, [ImportSpecifier(name=name or path, alias=alias or None)]

        # scoped_identifier / identifier / crate / self / super
        path = self.get_node_text(node, source)
        base, _, name = path.rpartition("::")
        return base or path, [ImportSpecifier(name=name or path)]

    def _use_list_specifiers(self, use_list: Node, source: bytes) -> list[ImportSpecifier]:
        specifiers = []
        for item in use_list.named_children:
            if item.type == "self":
                specifiers.append(ImportSpecifier(name="self"))
            elif item.type == "use_wildcard" or self.get_node_text(item, source) == "*":
                specifiers.append(ImportSpecifier(name="*", is_namespace=True))
            elif item.type == "use_as_clause":
                path = self.get_node_text(item.child_by_field_name("path"), source)
                alias = self.get_node_text(item.child_by_field_name("alias"), source)
                specifiers.append(ImportSpecifier(name=path.rsplit("::", 1)[-1], alias=alias or None))
            elif item.type == "scoped_use_list":
                _, nested = self._flatten_use(item, source)
                specifiers.extend(nested)
            else:
                specifiers.append(ImportSpecifier(name=self.get_node_text(item, source).rsplit("::", 1)[-1]))
        return specifiers

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    def _extract_item(
        self,
        node: Node,
        kind: NodeKind,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
    ) -> None:
        name = self.get_node_text(node.child_by_field_name("name"), source)
        if not name:
            return

        is_pub = self._is_pub(node, source)
        docs = self._doc_for(node, source)
        body = node.child_by_field_name("body")

        if kind == NodeKind.FUNCTION:
            symbol = self._build_function(node, name, name, source, file_path, SymbolKind.FUNCTION, docs)
        else:
            symbol_kind = {
                NodeKind.STRUCT: SymbolKind.CLASS,
                NodeKind.ENUM: SymbolKind.ENUM,
                NodeKind.TRAIT: SymbolKind.INTERFACE,
                NodeKind.TYPE_ALIAS: SymbolKind.TYPE,
                NodeKind.CONSTANT: SymbolKind.CONSTANT,
                NodeKind.MODULE: SymbolKind.MODULE,
            }[kind]
            type_node = node.child_by_field_name("type")
            symbol = Symbol(
                id=self.make_id(file_path, name),
                name=name,
                kind=symbol_kind,
                location=self.make_location(node, file_path),
                type_annotation=self.get_node_text(type_node, source) or None,
                type_parameters=self._type_parameters(node, source),
                docs=docs,
                signature=self.signature_text(node, source, body),
            )

        symbol.visibility = Visibility.PUBLIC if is_pub else Visibility.PRIVATE
        symbol.exported = is_pub
        symbol.decorators = self._attributes(node, source)
        collector.add(symbol)

        if kind == NodeKind.STRUCT and body is not None:
            self._extract_fields(body, source, file_path, collector, symbol)
        elif kind == NodeKind.TRAIT and body is not None:
            for member in body.named_children:
                if self.kind_of(member) == NodeKind.FUNCTION:
                    self._add_method(member, source, file_path, collector, symbol, trait_member=True)

    def _extract_fields(
        self,
        body: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        owner: Symbol,
    ) -> None:
        for field_node in self.find_children(body, "field_declaration"):
            name = self.get_node_text(field_node.child_by_field_name("name"), source)
            if not name:
                continue
            is_pub = self._is_pub(field_node, source)
            collector.add_member(owner, Symbol(
                id=self.make_id(file_path, f"{owner.name}.{name}"),
                name=name,
                kind=SymbolKind.PROPERTY,
                location=self.make_location(field_node, file_path),
                visibility=Visibility.PUBLIC if is_pub else Visibility.PRIVATE,
                type_annotation=self.get_node_text(field_node.child_by_field_name("type"), source) or None,
                docs=self._doc_for(field_node, source),
                signature=self.get_node_text(field_node, source),
            ))

    def _extract_impl(self, node: Node, source: bytes, file_path: str, collector: SymbolCollector) -> None:
        """Methods in impl blocks become members of the implemented type."""
        type_text = self.get_node_text(node.child_by_field_name("type"), source)
        type_name = type_text.split("<", 1)[0].strip()
        trait_text = self.get_node_text(node.child_by_field_name("trait"), source)
        body = node.child_by_field_name("body")
        if not type_name or body is None:
            return

        owner = collector.find(type_name)
        if owner is not None and trait_text and trait_text not in owner.implements:
            owner.implements.append(trait_text)

        for member in body.named_children:
            if self.kind_of(member) == NodeKind.FUNCTION:
                self._add_method(
                    member, source, file_path, collector, owner,
                    type_name=type_name, trait_member=bool(trait_text),
                )

    def _add_method(
        self,
        node: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        owner: Optional[Symbol],
        type_name: str = "",
        trait_member: bool = False,
    ) -> None:
        name = self.get_node_text(node.child_by_field_name("name"), source)
        if not name:
            return
        owner_name = owner.name if owner is not None else type_name
        symbol = self._build_function(
            node, name, f"{owner_name}.{name}", source, file_path,
            SymbolKind.METHOD, self._doc_for(node, source),
        )
        # Trait methods take the trait's visibility
        is_pub = trait_member or self._is_pub(node, source)
        symbol.visibility = Visibility.PUBLIC if is_pub else Visibility.PRIVATE
        symbol.decorators = self._attributes(node, source)

        if owner is not None:
            collector.add_member(owner, symbol)
        else:
            collector.add(symbol)

    def _build_function(
        self,
        node: Node,
        name: str,
        qualified: str,
        source: bytes,
        file_path: str,
        kind: SymbolKind,
        docs: Optional[DocComment],
    ) -> Symbol:
        return_node = node.child_by_field_name("return_type")
        modifiers = self.find_child(node, "function_modifiers")
        modifier_text = self.get_node_text(modifiers, source)
        parameters = self._extract_parameters(node.child_by_field_name("parameters"), source)
        if docs:
            for param in parameters:
                param.description = docs.params.get(param.name)

        return Symbol(
            id=self.make_id(file_path, qualified),
            name=name,
            kind=kind,
            location=self.make_location(node, file_path),
            parameters=parameters,
            returns=ReturnInfo(type=self.get_node_text(return_node, source)) if return_node is not None else None,
            type_parameters=self._type_parameters(node, source),
            docs=docs,
            signature=self.signature_text(node, source, node.child_by_field_name("body")),
            is_async="async" in modifier_text.split(),
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _extract_parameters(self, params_node: Optional[Node], source: bytes) -> list[Parameter]:
        parameters: list[Parameter] = []
        if params_node is None:
            return parameters
        for child in params_node.named_children:
            if child.type == "parameter":
                parameters.append(Parameter(
                    name=self.get_node_text(child.child_by_field_name("pattern"), source).replace("mut ", ""),
                    type=self.get_node_text(child.child_by_field_name("type"), source) or None,
                ))
            elif child.type == "variadic_parameter":
                parameters.append(Parameter(name="...", rest=True))
            # self_parameter is skipped
        return parameters

    def _type_parameters(self, node: Node, source: bytes) -> list[str]:
        type_params = node.child_by_field_name("type_parameters")
        if type_params is None:
            return []
        return [self.get_node_text(child, source) for child in type_params.named_children]

    def _is_pub(self, node: Node, source: bytes) -> bool:
        """pub, pub(crate), pub(super), pub(in path)."""
        return self.find_child(node, "visibility_modifier") is not None

    def _attributes(self, node: Node, source: bytes) -> list[str]:
        """#[derive(...)] style attributes directly above the item."""
        attributes = []
        sibling = node.prev_sibling
        while sibling is not None and sibling.type in _ATTRIBUTE_TYPES + _COMMENT_TYPES:
            if sibling.type == "attribute_item":
                text = self.get_node_text(sibling, source).strip()
                attributes.append(text[2:-1].strip() if text.startswith("#[") else text)
            sibling = sibling.prev_sibling
        attributes.reverse()
        return attributes

    def _doc_for(self, node: Node, source: bytes) -> Optional[DocComment]:
        """/// line docs or /** */ block docs above the item (attributes may intervene)."""
        comments = self.preceding_comments(node, source, _COMMENT_TYPES, skip_types=_ATTRIBUTE_TYPES)
        doc_lines: list[str] = []
        for comment in comments:
            text = comment.strip()
            if text.startswith("///") and not text.startswith("////"):
                doc_lines.extend(clean_line_comments([text], "///"))
            elif text.startswith("/**") and not text.startswith("/**/"):
                doc_lines.extend(clean_block_comment(text))
        return parse_plain_doc(doc_lines) if doc_lines else None

    def _extract_module_doc(self, root: Node, source: bytes) -> Optional[DocComment]:
        """//! inner doc comments at the top of the file."""
        lines: list[str] = []
        for node in root.children:
            if node.type != "line_comment":
                if node.type in ("inner_attribute_item", "block_comment") and not lines:
                    continue
                break
            text = self.get_node_text(node, source).strip()
            if not text.startswith("//!"):
                if lines:
                    break
                continue
            lines.extend(clean_line_comments([text], "//!"))
        return parse_plain_doc(lines) if lines else None


register_extractor(RustExtractor())
