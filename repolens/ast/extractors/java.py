"""
Java Extractor

Extracts classes, interfaces, enums, records and their members from Java
source files, with Javadoc. Only public top-level types are exported.
"""

from typing import Optional

from tree_sitter import Node, Tree

from repolens.ast.docs import is_doc_block, parse_jsdoc
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

_COMMENT_TYPES = ("block_comment", "line_comment")


class JavaExtractor(TreeSitterExtractor):
    """Extracts metadata from Java source files."""

    NODE_KINDS = {
        "package_declaration": NodeKind.PACKAGE,
        "import_declaration": NodeKind.IMPORT,
        "class_declaration": NodeKind.CLASS,
        "interface_declaration": NodeKind.INTERFACE,
        "annotation_type_declaration": NodeKind.INTERFACE,
        "enum_declaration": NodeKind.ENUM,
        "record_declaration": NodeKind.RECORD,
        "method_declaration": NodeKind.METHOD,
        "constructor_declaration": NodeKind.CONSTRUCTOR,
        "compact_constructor_declaration": NodeKind.CONSTRUCTOR,
        "field_declaration": NodeKind.FIELD,
        "constant_declaration": NodeKind.FIELD,
        "block_comment": NodeKind.COMMENT,
        "line_comment": NodeKind.COMMENT,
    }

    _TYPE_KINDS = {
        NodeKind.CLASS: SymbolKind.CLASS,
        NodeKind.RECORD: SymbolKind.CLASS,
        NodeKind.INTERFACE: SymbolKind.INTERFACE,
        NodeKind.ENUM: SymbolKind.ENUM,
    }

    @property
    def language(self) -> str:
        return "java"

    @property
    def grammar(self) -> str:
        return "java"

    def extract_tree(self, tree: Tree, source: bytes, file_path: str) -> ExtractionResult:
        root = tree.root_node
        collector = SymbolCollector()
        result = ExtractionResult()

        for node in root.children:
            kind = self.kind_of(node)
            if kind == NodeKind.PACKAGE:
                result.module_doc = self._javadoc_for(node, source)
            elif kind == NodeKind.IMPORT:
                result.imports.append(self._extract_import(node, source))
            elif kind in self._TYPE_KINDS:
                self._extract_type(node, kind, source, file_path, collector, owner=None)

        result.symbols = collector.symbols
        result.exports = [
            ExportInfo(name=s.name, symbol_id=s.id)
            for s in collector.symbols
            if s.exported
        ]
        return result

    def _extract_import(self, node: Node, source: bytes) -> ImportInfo:
        """
        import a.b.C;        -> source a.b, specifier C
        import a.b.*;        -> source a.b, namespace specifier
        import static a.B.c; -> source a.B, specifier c (not type-only)
        """
        text = self.get_node_text(node, source)
        is_static = any(child.type == "static" for child in node.children)
        path = text.replace("import", "", 1).replace("static", "", 1).strip().rstrip(";").strip()
        path = "".join(path.split())

        base, _, last = path.rpartition(".")
        if last == "*":
            specifier = ImportSpecifier(name="*", is_namespace=True)
        else:
            specifier = ImportSpecifier(name=last)
        return ImportInfo(source=base or path, specifiers=[specifier], is_type_only=not is_static)

    # -------------------------------------------------------------------------
    # Types and members
    # -------------------------------------------------------------------------

    def _extract_type(
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

        modifiers, annotations = self._modifiers(node, source)
        visibility = self._visibility(modifiers, in_interface=False)
        extends, implements = self._heritage(node, kind, source)
        body = node.child_by_field_name("body")

        qualified = f"{owner.name}.{name}" if owner else name
        symbol = Symbol(
            id=self.make_id(file_path, qualified),
            name=name,
            kind=self._TYPE_KINDS[kind],
            location=self.make_location(node, file_path),
            visibility=visibility,
            exported=owner is None and "public" in modifiers,
            type_parameters=self._type_parameters(node, source),
            decorators=annotations,
            docs=self._javadoc_for(node, source),
            signature=self.signature_text(node, source, body),
            extends=extends,
            implements=implements,
        )
        if kind == NodeKind.RECORD:
            symbol.parameters = self._extract_parameters(node.child_by_field_name("parameters"), source)

        if owner is None:
            collector.add(symbol)
        else:
            collector.add_member(owner, symbol)
            # Nested types are one level deep only
            return

        if body is not None:
            self._extract_members(body, kind, source, file_path, collector, symbol)

    def _heritage(self, node: Node, kind: NodeKind, source: bytes) -> tuple[Optional[str], list[str]]:
        extends = None
        implements: list[str] = []

        superclass = node.child_by_field_name("superclass")
        if superclass is not None:
            extends = self.get_node_text(superclass, source).replace("extends", "", 1).strip()

        interfaces = node.child_by_field_name("interfaces") or self.find_child(node, "super_interfaces")
        if interfaces is not None:
            implements.extend(self._type_list(interfaces, source))

        # interface A extends B, C
        extends_interfaces = self.find_child(node, "extends_interfaces")
        if extends_interfaces is not None:
            bases = self._type_list(extends_interfaces, source)
            if bases:
                extends = bases[0]
                implements.extend(bases[1:])

        return extends, implements

    def _type_list(self, node: Node, source: bytes) -> list[str]:
        type_list = self.find_child(node, "type_list")
        target = type_list if type_list is not None else node
        return [self.get_node_text(t, source) for t in target.named_children]

    def _extract_members(
        self,
        body: Node,
        owner_kind: NodeKind,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        owner: Symbol,
    ) -> None:
        in_interface = owner_kind == NodeKind.INTERFACE
        members = list(body.named_children)
        # Enum bodies keep methods inside enum_body_declarations
        for child in body.named_children:
            if child.type == "enum_body_declarations":
                members.extend(child.named_children)

        for member in members:
            kind = self.kind_of(member)
            if kind in (NodeKind.METHOD, NodeKind.CONSTRUCTOR):
                self._add_method(member, kind, source, file_path, collector, owner, in_interface)
            elif kind == NodeKind.FIELD:
                self._add_fields(member, source, file_path, collector, owner, in_interface)
            elif kind in self._TYPE_KINDS:
                self._extract_type(member, kind, source, file_path, collector, owner)
            elif member.type == "enum_constant":
                name = self.get_node_text(member.child_by_field_name("name"), source)
                if name:
                    collector.add_member(owner, Symbol(
                        id=self.make_id(file_path, f"{owner.name}.{name}"),
                        name=name,
                        kind=SymbolKind.CONSTANT,
                        location=self.make_location(member, file_path),
                        docs=self._javadoc_for(member, source),
                        signature=self.get_node_text(member, source),
                    ))

    def _add_method(
        self,
        node: Node,
        kind: NodeKind,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        owner: Symbol,
        in_interface: bool,
    ) -> None:
        name = self.get_node_text(node.child_by_field_name("name"), source)
        if not name:
            return
        modifiers, annotations = self._modifiers(node, source)
        docs = self._javadoc_for(node, source)
        parameters = self._extract_parameters(node.child_by_field_name("parameters"), source)
        if docs:
            for param in parameters:
                param.description = docs.params.get(param.name)

        return_type = self.get_node_text(node.child_by_field_name("type"), source) or None
        returns = None
        if kind == NodeKind.METHOD and (return_type or (docs and docs.returns)):
            returns = ReturnInfo(type=return_type, description=docs.returns if docs else None)

        collector.add_member(owner, Symbol(
            id=self.make_id(file_path, f"{owner.name}.{name}"),
            name=name,
            kind=SymbolKind.METHOD,
            location=self.make_location(node, file_path),
            visibility=self._visibility(modifiers, in_interface),
            parameters=parameters,
            returns=returns,
            type_parameters=self._type_parameters(node, source),
            decorators=annotations,
            docs=docs,
            signature=self.signature_text(node, source, node.child_by_field_name("body")),
        ))

    def _add_fields(
        self,
        node: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        owner: Symbol,
        in_interface: bool,
    ) -> None:
        modifiers, annotations = self._modifiers(node, source)
        type_text = self.get_node_text(node.child_by_field_name("type"), source) or None
        is_constant = in_interface or ("static" in modifiers and "final" in modifiers)
        docs = self._javadoc_for(node, source)

        for declarator in node.children_by_field_name("declarator"):
            name = self.get_node_text(declarator.child_by_field_name("name"), source)
            if not name:
                continue
            collector.add_member(owner, Symbol(
                id=self.make_id(file_path, f"{owner.name}.{name}"),
                name=name,
                kind=SymbolKind.CONSTANT if is_constant else SymbolKind.PROPERTY,
                location=self.make_location(node, file_path),
                visibility=self._visibility(modifiers, in_interface),
                type_annotation=type_text,
                decorators=annotations,
                docs=docs,
                signature=self.signature_text(node, source, None),
            ))

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _modifiers(self, node: Node, source: bytes) -> tuple[set[str], list[str]]:
        """Return (keyword modifiers, annotation texts without '@')."""
        keywords: set[str] = set()
        annotations: list[str] = []
        modifiers = self.find_child(node, "modifiers")
        if modifiers is None:
            return keywords, annotations
        for child in modifiers.children:
            if child.type in ("annotation", "marker_annotation"):
                annotations.append(self.get_node_text(child, source).lstrip("@").strip())
            else:
                keywords.add(self.get_node_text(child, source).strip())
        return keywords, annotations

    def _visibility(self, modifiers: set[str], in_interface: bool) -> Visibility:
        if "public" in modifiers or in_interface:
            return Visibility.PUBLIC
        if "protected" in modifiers:
            return Visibility.PROTECTED
        if "private" in modifiers:
            return Visibility.PRIVATE
        # Package-private
        return Visibility.INTERNAL

    def _extract_parameters(self, params_node: Optional[Node], source: bytes) -> list[Parameter]:
        parameters: list[Parameter] = []
        if params_node is None:
            return parameters
        for child in params_node.named_children:
            if child.type == "formal_parameter":
                parameters.append(Parameter(
                    name=self.get_node_text(child.child_by_field_name("name"), source),
                    type=self.get_node_text(child.child_by_field_name("type"), source) or None,
                ))
            elif child.type == "spread_parameter":
                declarator = self.find_child(child, "variable_declarator")
                name_node = declarator.child_by_field_name("name") if declarator else None
                type_node = child.named_children[0] if child.named_children else None
                if type_node is not None and type_node.type == "modifiers":
                    type_node = child.named_children[1] if len(child.named_children) > 1 else None
                parameters.append(Parameter(
                    name=self.get_node_text(name_node, source),
                    type=f"{self.get_node_text(type_node, source)}..." if type_node is not None else None,
                    rest=True,
                ))
        return parameters

    def _type_parameters(self, node: Node, source: bytes) -> list[str]:
        type_params = node.child_by_field_name("type_parameters")
        if type_params is None:
            return []
        return [self.get_node_text(child, source) for child in type_params.named_children]

    def _javadoc_for(self, node: Node, source: bytes) -> Optional[DocComment]:
        comments = self.preceding_comments(node, source, _COMMENT_TYPES)
        if comments and is_doc_block(comments[-1]):
            return parse_jsdoc(comments[-1])
        return None


register_extractor(JavaExtractor())
