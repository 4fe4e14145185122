"""
Go Extractor

Extracts functions, methods, types, constants and package docs from Go
source files. Exported means the identifier starts with an uppercase letter.
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


class GoExtractor(TreeSitterExtractor):
    """Extracts metadata from Go source files."""

    NODE_KINDS = {
        "package_clause": NodeKind.PACKAGE,
        "import_declaration": NodeKind.IMPORT,
        "function_declaration": NodeKind.FUNCTION,
        "method_declaration": NodeKind.METHOD,
        "type_declaration": NodeKind.TYPE_DECL,
        "type_spec": NodeKind.TYPE_DECL,
        "type_alias": NodeKind.TYPE_ALIAS,
        "const_declaration": NodeKind.CONSTANT,
        "var_declaration": NodeKind.VARIABLE,
        "comment": NodeKind.COMMENT,
        "struct_type": NodeKind.STRUCT,
        "interface_type": NodeKind.INTERFACE,
    }

    @property
    def language(self) -> str:
        return "go"

    @property
    def grammar(self) -> str:
        return "go"

    def extract_tree(self, tree: Tree, source: bytes, file_path: str) -> ExtractionResult:
        root = tree.root_node
        collector = SymbolCollector()
        result = ExtractionResult()
        methods: list[Node] = []

        for node in root.children:
            kind = self.kind_of(node)
            if kind == NodeKind.PACKAGE:
                result.module_doc = self._doc_for(node, source)
            elif kind == NodeKind.IMPORT:
                result.imports.extend(self._extract_imports(node, source))
            elif kind == NodeKind.FUNCTION:
                self._extract_function(node, source, file_path, collector)
            elif kind == NodeKind.METHOD:
                # Receivers may be declared later in the file
                methods.append(node)
            elif kind == NodeKind.TYPE_DECL:
                self._extract_types(node, source, file_path, collector)
            elif kind in (NodeKind.CONSTANT, NodeKind.VARIABLE):
                self._extract_values(node, source, file_path, collector, kind)

        for node in methods:
            self._extract_method(node, source, file_path, collector)

        result.symbols = collector.symbols
        result.exports = [
            ExportInfo(name=s.name, symbol_id=s.id)
            for s in collector.symbols
            if s.exported
        ]
        return result

    # -------------------------------------------------------------------------
    # Imports
    # -------------------------------------------------------------------------

    def _extract_imports(self, node: Node, source: bytes) -> list[ImportInfo]:
        imports = []
        for spec in self.walk_tree(node, "import_spec"):
            path = self.get_node_text(spec.child_by_field_name("path"), source).strip("\"`")
            if not path:
                continue
            alias_node = spec.child_by_field_name("name")
            alias = self.get_node_text(alias_node, source) or None
            package_name = path.rsplit("/", 1)[-1]
            imports.append(ImportInfo(
                source=path,
                specifiers=[ImportSpecifier(
                    name=package_name,
                    alias=alias,
                    is_namespace=alias == ".",
                )],
            ))
        return imports

    # -------------------------------------------------------------------------
    # Declarations
    # -------------------------------------------------------------------------

    def _extract_function(self, node: Node, source: bytes, file_path: str, collector: SymbolCollector) -> None:
        name = self.get_node_text(node.child_by_field_name("name"), source)
        if not name:
            return
        collector.add(self._build_callable(node, name, name, source, file_path, SymbolKind.FUNCTION))

    def _extract_method(self, node: Node, source: bytes, file_path: str, collector: SymbolCollector) -> None:
        name = self.get_node_text(node.child_by_field_name("name"), source)
        receiver_type = self._receiver_type(node, source)
        if not name:
            return

        qualified = f"{receiver_type}.{name}" if receiver_type else name
        symbol = self._build_callable(node, name, qualified, source, file_path, SymbolKind.METHOD)
        symbol.exported = False

        owner = collector.find(receiver_type) if receiver_type else None
        if owner is not None:
            collector.add_member(owner, symbol)
        else:
            collector.add(symbol)

    def _receiver_type(self, node: Node, source: bytes) -> str:
        """Receiver type name without pointer or type arguments: (s *Server[T]) -> Server."""
        receiver = node.child_by_field_name("receiver")
        if receiver is None:
            return ""
        for param in receiver.named_children:
            if param.type == "parameter_declaration":
                type_text = self.get_node_text(param.child_by_field_name("type"), source)
                return type_text.lstrip("*").split("[", 1)[0].strip()
        return ""

    def _build_callable(
        self,
        node: Node,
        name: str,
        qualified: str,
        source: bytes,
        file_path: str,
        kind: SymbolKind,
    ) -> Symbol:
        docs = self._doc_for(node, source)
        result_node = node.child_by_field_name("result")
        parameters = self._extract_parameters(node.child_by_field_name("parameters"), source)
        if docs:
            for param in parameters:
                param.description = docs.params.get(param.name)

        exported = self._is_exported(name)
        return Symbol(
            id=self.make_id(file_path, qualified),
            name=name,
            kind=kind,
            location=self.make_location(node, file_path),
            visibility=Visibility.PUBLIC if exported else Visibility.PRIVATE,
            exported=exported,
            parameters=parameters,
            returns=ReturnInfo(type=self.get_node_text(result_node, source)) if result_node is not None else None,
            type_parameters=self._type_parameters(node, source),
            docs=docs,
            signature=self.signature_text(node, source, node.child_by_field_name("body")),
        )

    def _extract_types(self, node: Node, source: bytes, file_path: str, collector: SymbolCollector) -> None:
        specs = [child for child in node.named_children if child.type in ("type_spec", "type_alias")]
        for spec in specs:
            name = self.get_node_text(spec.child_by_field_name("name"), source)
            if not name:
                continue
            type_node = spec.child_by_field_name("type")
            type_kind = self.kind_of(type_node) if type_node is not None else NodeKind.OTHER

            if spec.type == "type_alias":
                kind = SymbolKind.TYPE
            elif type_kind == NodeKind.STRUCT:
                kind = SymbolKind.CLASS
            elif type_kind == NodeKind.INTERFACE:
                kind = SymbolKind.INTERFACE
            else:
                kind = SymbolKind.TYPE

            # A lone spec takes the doc above "type"; grouped specs use their own
            docs = self._doc_for(spec, source) or (self._doc_for(node, source) if len(specs) == 1 else None)
            exported = self._is_exported(name)
            symbol = collector.add(Symbol(
                id=self.make_id(file_path, name),
                name=name,
                kind=kind,
                location=self.make_location(spec, file_path),
                visibility=Visibility.PUBLIC if exported else Visibility.PRIVATE,
                exported=exported,
                type_annotation=self.get_node_text(type_node, source) if kind == SymbolKind.TYPE else None,
                type_parameters=self._type_parameters(spec, source),
                docs=docs,
                signature=f"type {self.get_node_text(spec, source).splitlines()[0].rstrip(' {')}",
            ))

            if type_kind == NodeKind.STRUCT:
                self._extract_struct_fields(type_node, source, file_path, collector, symbol)
            elif type_kind == NodeKind.INTERFACE:
                self._extract_interface_methods(type_node, source, file_path, collector, symbol)

    def _extract_struct_fields(
        self,
        struct_node: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        owner: Symbol,
    ) -> None:
        field_list = self.find_child(struct_node, "field_declaration_list")
        if field_list is None:
            return
        for field_node in self.find_children(field_list, "field_declaration"):
            type_text = self.get_node_text(field_node.child_by_field_name("type"), source)
            # Embedded fields have no name; the type is the name
            names = [self.get_node_text(n, source) for n in field_node.children_by_field_name("name")]
            if not names and type_text:
                names = [type_text.lstrip("*").rsplit(".", 1)[-1]]
            for name in names:
                collector.add_member(owner, Symbol(
                    id=self.make_id(file_path, f"{owner.name}.{name}"),
                    name=name,
                    kind=SymbolKind.PROPERTY,
                    location=self.make_location(field_node, file_path),
                    visibility=Visibility.PUBLIC if self._is_exported(name) else Visibility.PRIVATE,
                    type_annotation=type_text or None,
                    docs=self._doc_for(field_node, source),
                    signature=self.get_node_text(field_node, source),
                ))

    def _extract_interface_methods(
        self,
        iface_node: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        owner: Symbol,
    ) -> None:
        for elem in iface_node.named_children:
            if elem.type not in ("method_elem", "method_spec"):
                continue
            name = self.get_node_text(elem.child_by_field_name("name"), source)
            if not name:
                continue
            result_node = elem.child_by_field_name("result")
            collector.add_member(owner, Symbol(
                id=self.make_id(file_path, f"{owner.name}.{name}"),
                name=name,
                kind=SymbolKind.METHOD,
                location=self.make_location(elem, file_path),
                visibility=Visibility.PUBLIC if self._is_exported(name) else Visibility.PRIVATE,
                parameters=self._extract_parameters(elem.child_by_field_name("parameters"), source),
                returns=ReturnInfo(type=self.get_node_text(result_node, source)) if result_node is not None else None,
                docs=self._doc_for(elem, source),
                signature=self.get_node_text(elem, source),
            ))

    def _extract_values(
        self,
        node: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        kind: NodeKind,
    ) -> None:
        spec_type = "const_spec" if kind == NodeKind.CONSTANT else "var_spec"
        specs = self.walk_tree(node, spec_type)
        for spec in specs:
            type_node = spec.child_by_field_name("type")
            docs = self._doc_for(spec, source) or (self._doc_for(node, source) if len(specs) == 1 else None)
            for name_node in spec.children_by_field_name("name"):
                name = self.get_node_text(name_node, source)
                if not name or name == "_":
                    continue
                exported = self._is_exported(name)
                collector.add(Symbol(
                    id=self.make_id(file_path, name),
                    name=name,
                    kind=SymbolKind.CONSTANT if kind == NodeKind.CONSTANT else SymbolKind.VARIABLE,
                    location=self.make_location(spec, file_path),
                    visibility=Visibility.PUBLIC if exported else Visibility.PRIVATE,
                    exported=exported,
                    type_annotation=self.get_node_text(type_node, source) or None,
                    docs=docs,
                    signature=self.get_node_text(spec, source).split("\n", 1)[0],
                ))

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _extract_parameters(self, params_node: Optional[Node], source: bytes) -> list[Parameter]:
        parameters: list[Parameter] = []
        if params_node is None:
            return parameters

        for decl in params_node.named_children:
            if decl.type not in ("parameter_declaration", "variadic_parameter_declaration"):
                continue
            type_text = self.get_node_text(decl.child_by_field_name("type"), source) or None
            rest = decl.type == "variadic_parameter_declaration"
            if rest and type_text:
                type_text = f"...{type_text}"
            names = [self.get_node_text(n, source) for n in decl.children_by_field_name("name")]
            if not names:
                # Unnamed parameter: func(int, string)
                names = ["_"]
            for name in names:
                parameters.append(Parameter(name=name, type=type_text, rest=rest))

        return parameters

    def _type_parameters(self, node: Node, source: bytes) -> list[str]:
        type_params = node.child_by_field_name("type_parameters")
        if type_params is None:
            return []
        return [self.get_node_text(child, source) for child in type_params.named_children]

    def _doc_for(self, node: Node, source: bytes) -> Optional[DocComment]:
        comments = self.preceding_comments(node, source)
        if not comments:
            return None
        lines: list[str] = []
        for comment in comments:
            if comment.startswith("/*"):
                lines.extend(clean_block_comment(comment))
            else:
                lines.extend(clean_line_comments([comment], "//"))
        return parse_plain_doc(lines)

    def _is_exported(self, name: str) -> bool:
        return bool(name) and name[0].isupper()


register_extractor(GoExtractor())
