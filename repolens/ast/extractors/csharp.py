"""
C# Extractor

Extracts types, members and XML documentation from C# source files,
descending into block and file-scoped namespaces.
"""

from typing import Optional

from tree_sitter import Node, Tree

from repolens.ast.docs import clean_line_comments, parse_plain_doc, parse_xml_doc
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

_VISIBILITY_KEYWORDS = {
    "public": Visibility.PUBLIC,
    "protected": Visibility.PROTECTED,
    "internal": Visibility.INTERNAL,
    "private": Visibility.PRIVATE,
}


class CSharpExtractor(TreeSitterExtractor):
    """Extracts metadata from C# source files."""

    NODE_KINDS = {
        "using_directive": NodeKind.IMPORT,
        "namespace_declaration": NodeKind.NAMESPACE,
        "file_scoped_namespace_declaration": NodeKind.NAMESPACE,
        "class_declaration": NodeKind.CLASS,
        "struct_declaration": NodeKind.STRUCT,
        "record_declaration": NodeKind.RECORD,
        "record_struct_declaration": NodeKind.RECORD,
        "interface_declaration": NodeKind.INTERFACE,
        "enum_declaration": NodeKind.ENUM,
        "delegate_declaration": NodeKind.TYPE_ALIAS,
        "method_declaration": NodeKind.METHOD,
        "constructor_declaration": NodeKind.CONSTRUCTOR,
        "property_declaration": NodeKind.PROPERTY,
        "field_declaration": NodeKind.FIELD,
        "event_field_declaration": NodeKind.FIELD,
        "comment": NodeKind.COMMENT,
    }

    _TYPE_KINDS = {
        NodeKind.CLASS: SymbolKind.CLASS,
        NodeKind.STRUCT: SymbolKind.CLASS,
        NodeKind.RECORD: SymbolKind.CLASS,
        NodeKind.INTERFACE: SymbolKind.INTERFACE,
        NodeKind.ENUM: SymbolKind.ENUM,
        NodeKind.TYPE_ALIAS: SymbolKind.TYPE,
    }

    @property
    def language(self) -> str:
        return "csharp"

    @property
    def grammar(self) -> str:
        return "csharp"

    def extract_tree(self, tree: Tree, source: bytes, file_path: str) -> ExtractionResult:
        root = tree.root_node
        collector = SymbolCollector()
        result = ExtractionResult(module_doc=self._extract_file_doc(root, source))

        self._walk_declarations(root, source, file_path, collector, result)

        result.symbols = collector.symbols
        result.exports = [
            ExportInfo(name=s.name, symbol_id=s.id)
            for s in collector.symbols
            if s.exported
        ]
        return result

    def _walk_declarations(
        self,
        container: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        result: ExtractionResult,
    ) -> None:
        """Visit usings and types, recursing into namespaces."""
        for node in container.named_children:
            kind = self.kind_of(node)
            if kind == NodeKind.IMPORT:
                imp = self._extract_using(node, source)
                if imp is not None:
                    result.imports.append(imp)
            elif kind == NodeKind.NAMESPACE:
                body = node.child_by_field_name("body")
                # File-scoped namespaces hold their declarations directly
                self._walk_declarations(body if body is not None else node, source, file_path, collector, result)
            elif node.type == "declaration_list":
                self._walk_declarations(node, source, file_path, collector, result)
            elif kind in self._TYPE_KINDS:
                self._extract_type(node, kind, source, file_path, collector, owner=None)

    def _extract_using(self, node: Node, source: bytes) -> Optional[ImportInfo]:
        """
        using System.Text;            -> source System.Text, specifier Text
        using static System.Math;     -> source System.Math
        using Json = Newtonsoft.Json; -> source Newtonsoft.Json, alias Json
        """
        text = self.get_node_text(node, source).strip().rstrip(";")
        words = [w for w in text.replace("=", " = ").split() if w not in ("global", "using", "static", "unsafe")]
        alias = None
        if "=" in words:
            index = words.index("=")
            alias = words[index - 1] if index > 0 else None
            words = words[index + 1:]
        target = "".join(words)
        if not target:
            return None
        return ImportInfo(
            source=target,
            specifiers=[ImportSpecifier(name=target.rsplit(".", 1)[-1], alias=alias)],
        )

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

        modifiers = self._modifiers(node, source)
        default = Visibility.PRIVATE if owner else Visibility.INTERNAL
        visibility = self._visibility(modifiers, default)
        bases = self._base_list(node, source)
        body = node.child_by_field_name("body")

        # First base of a class is its superclass; interfaces only implement
        if kind in (NodeKind.CLASS, NodeKind.RECORD) and bases:
            extends, implements = bases[0], bases[1:]
        else:
            extends, implements = None, bases

        qualified = f"{owner.name}.{name}" if owner else name
        symbol = Symbol(
            id=self.make_id(file_path, qualified),
            name=name,
            kind=self._TYPE_KINDS[kind],
            location=self.make_location(node, file_path),
            visibility=visibility,
            exported=owner is None and visibility in (Visibility.PUBLIC, Visibility.INTERNAL),
            type_parameters=self._type_parameters(node, source),
            decorators=self._attributes(node, source),
            docs=self._xml_doc_for(node, source),
            signature=self.signature_text(node, source, body),
            extends=extends,
            implements=implements,
        )
        if owner is None:
            collector.add(symbol)
        else:
            collector.add_member(owner, symbol)
            return

        if body is not None:
            self._extract_members(body, kind, source, file_path, collector, symbol)

    def _base_list(self, node: Node, source: bytes) -> list[str]:
        base_list = self.find_child(node, "base_list")
        if base_list is None:
            return []
        return [
            self.get_node_text(child, source)
            for child in base_list.named_children
            if child.type != "argument_list"
        ]

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
        default = Visibility.PUBLIC if in_interface else Visibility.PRIVATE

        for member in body.named_children:
            kind = self.kind_of(member)
            if member.type == "enum_member_declaration":
                name = self.get_node_text(member.child_by_field_name("name"), source)
                if name:
                    collector.add_member(owner, Symbol(
                        id=self.make_id(file_path, f"{owner.name}.{name}"),
                        name=name,
                        kind=SymbolKind.CONSTANT,
                        location=self.make_location(member, file_path),
                        docs=self._xml_doc_for(member, source),
                        signature=self.get_node_text(member, source),
                    ))
            elif kind in (NodeKind.METHOD, NodeKind.CONSTRUCTOR):
                self._add_method(member, kind, source, file_path, collector, owner, default)
            elif kind == NodeKind.PROPERTY:
                name = self.get_node_text(member.child_by_field_name("name"), source)
                if not name:
                    continue
                collector.add_member(owner, Symbol(
                    id=self.make_id(file_path, f"{owner.name}.{name}"),
                    name=name,
                    kind=SymbolKind.PROPERTY,
                    location=self.make_location(member, file_path),
                    visibility=self._visibility(self._modifiers(member, source), default),
                    type_annotation=self.get_node_text(member.child_by_field_name("type"), source) or None,
                    decorators=self._attributes(member, source),
                    docs=self._xml_doc_for(member, source),
                    signature=self.signature_text(member, source, self.find_child(member, "accessor_list")),
                ))
            elif kind == NodeKind.FIELD:
                self._add_fields(member, source, file_path, collector, owner, default)
            elif kind in self._TYPE_KINDS:
                self._extract_type(member, kind, source, file_path, collector, owner)

    def _add_method(
        self,
        node: Node,
        kind: NodeKind,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        owner: Symbol,
        default: Visibility,
    ) -> None:
        name = self.get_node_text(node.child_by_field_name("name"), source)
        if not name:
            return
        modifiers = self._modifiers(node, source)
        docs = self._xml_doc_for(node, source)
        parameters = self._extract_parameters(node.child_by_field_name("parameters"), source)
        if docs:
            for param in parameters:
                param.description = docs.params.get(param.name)

        returns = None
        if kind == NodeKind.METHOD:
            type_node = node.child_by_field_name("returns") or node.child_by_field_name("type")
            returns = ReturnInfo(
                type=self.get_node_text(type_node, source) or None,
                description=docs.returns if docs else None,
            )

        body = node.child_by_field_name("body") or self.find_child(node, "arrow_expression_clause")
        collector.add_member(owner, Symbol(
            id=self.make_id(file_path, f"{owner.name}.{name}"),
            name=name,
            kind=SymbolKind.METHOD,
            location=self.make_location(node, file_path),
            visibility=self._visibility(modifiers, default),
            parameters=parameters,
            returns=returns,
            type_parameters=self._type_parameters(node, source),
            decorators=self._attributes(node, source),
            docs=docs,
            signature=self.signature_text(node, source, body),
            is_async="async" in modifiers,
        ))

    def _add_fields(
        self,
        node: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        owner: Symbol,
        default: Visibility,
    ) -> None:
        modifiers = self._modifiers(node, source)
        declaration = self.find_child(node, "variable_declaration")
        if declaration is None:
            return
        type_text = self.get_node_text(declaration.child_by_field_name("type"), source) or None
        is_constant = "const" in modifiers or ("static" in modifiers and "readonly" in modifiers)
        docs = self._xml_doc_for(node, source)

        for declarator in self.find_children(declaration, "variable_declarator"):
            name_node = declarator.child_by_field_name("name") or self.find_child(declarator, "identifier")
            name = self.get_node_text(name_node, source)
            if not name:
                continue
            collector.add_member(owner, Symbol(
                id=self.make_id(file_path, f"{owner.name}.{name}"),
                name=name,
                kind=SymbolKind.CONSTANT if is_constant else SymbolKind.PROPERTY,
                location=self.make_location(node, file_path),
                visibility=self._visibility(modifiers, default),
                type_annotation=type_text,
                docs=docs,
                signature=self.signature_text(node, source, None),
            ))

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _modifiers(self, node: Node, source: bytes) -> set[str]:
        return {
            self.get_node_text(child, source).strip()
            for child in node.children
            if child.type == "modifier"
        }

    def _visibility(self, modifiers: set[str], default: Visibility) -> Visibility:
        # "protected internal" reads as protected
        for keyword in ("public", "protected", "internal", "private"):
            if keyword in modifiers:
                return _VISIBILITY_KEYWORDS[keyword]
        return default

    def _attributes(self, node: Node, source: bytes) -> list[str]:
        return [
            self.get_node_text(attr, source)
            for attr_list in self.find_children(node, "attribute_list")
            for attr in attr_list.named_children
            if attr.type == "attribute"
        ]

    def _extract_parameters(self, params_node: Optional[Node], source: bytes) -> list[Parameter]:
        parameters: list[Parameter] = []
        if params_node is None:
            return parameters
        for child in params_node.named_children:
            if child.type != "parameter":
                continue
            default = self.find_child(child, "equals_value_clause")
            default_text = self.get_node_text(default, source).lstrip("=").strip() if default else None
            words = self.get_node_text(child, source).split()
            parameters.append(Parameter(
                name=self.get_node_text(child.child_by_field_name("name"), source),
                type=self.get_node_text(child.child_by_field_name("type"), source) or None,
                default_value=default_text or None,
                optional=default is not None,
                rest="params" in words[:1],
            ))
        return parameters

    def _type_parameters(self, node: Node, source: bytes) -> list[str]:
        type_params = node.child_by_field_name("type_parameters") or self.find_child(node, "type_parameter_list")
        if type_params is None:
            return []
        return [self.get_node_text(child, source) for child in type_params.named_children]

    def _xml_doc_for(self, node: Node, source: bytes) -> Optional[DocComment]:
        comments = [c for c in self.preceding_comments(node, source) if c.strip().startswith("///")]
        if not comments:
            return None
        return parse_xml_doc(clean_line_comments(comments, "///"))

    def _extract_file_doc(self, root: Node, source: bytes) -> Optional[DocComment]:
        """Leading comment block at the top of the file, before usings/namespaces."""
        comments: list[str] = []
        following: Optional[Node] = None
        for node in root.children:
            if node.type == "comment":
                comments.append(self.get_node_text(node, source).strip())
                continue
            following = node
            break
        if not comments:
            return None
        # A comment block glued to a type declaration documents that type
        if following is not None and self.kind_of(following) in self._TYPE_KINDS:
            return None
        if all(c.startswith("///") for c in comments):
            return parse_xml_doc(clean_line_comments(comments, "///"))
        return parse_plain_doc(clean_line_comments(comments, "//"))


register_extractor(CSharpExtractor())
