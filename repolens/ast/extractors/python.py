"""
Python Extractor

Extracts symbols, imports and docstrings from Python source files using tree-sitter.

Visibility follows the underscore convention; an explicit __all__ list,
when present, decides what is exported.
"""

from typing import Optional

from tree_sitter import Node, Tree

from repolens.ast.docs import parse_docstring, strip_string_quotes
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

# Nodes that start a new scope for yield detection
_SCOPE_TYPES = {"function_definition", "lambda", "class_definition"}


class PythonExtractor(TreeSitterExtractor):
    """Extracts metadata from Python source files."""

    NODE_KINDS = {
        "import_statement": NodeKind.IMPORT,
        "import_from_statement": NodeKind.IMPORT,
        "function_definition": NodeKind.FUNCTION,
        "class_definition": NodeKind.CLASS,
        "decorated_definition": NodeKind.DECORATED,
        "expression_statement": NodeKind.EXPRESSION,
        "comment": NodeKind.COMMENT,
    }

    @property
    def language(self) -> str:
        return "python"

    @property
    def grammar(self) -> str:
        return "python"

    def extract_tree(self, tree: Tree, source: bytes, file_path: str) -> ExtractionResult:
        root = tree.root_node
        collector = SymbolCollector()
        all_names = self._extract_dunder_all(root, source)

        for node in root.children:
            kind = self.kind_of(node)
            if kind in (NodeKind.FUNCTION, NodeKind.CLASS, NodeKind.DECORATED):
                self._extract_definition(node, source, file_path, collector, all_names)
            elif kind == NodeKind.EXPRESSION:
                self._extract_assignment(node, source, file_path, collector, all_names)

        imports = self.extract_imports(root, source)

        return ExtractionResult(
            symbols=collector.symbols,
            imports=imports,
            exports=self._build_exports(collector, all_names, imports),
            module_doc=self._extract_module_doc(root, source),
        )

    # -------------------------------------------------------------------------
    # Imports
    # -------------------------------------------------------------------------

    def extract_imports(self, root: Node, source: bytes) -> list[ImportInfo]:
        """Extract import and from...import statements anywhere in the module."""
        imports = []

        # import x, import x as y, import x.y.z
        for node in self.walk_tree(root, "import_statement"):
            for name_node in node.children_by_field_name("name"):
                module, alias = self._split_aliased(name_node, source)
                imports.append(ImportInfo(
                    source=module,
                    specifiers=[ImportSpecifier(name=module, alias=alias, is_namespace=True)],
                ))

        # from x import y, from x import y as z, from x import *
        for node in self.walk_tree(root, "import_from_statement"):
            module_node = node.child_by_field_name("module_name")
            module = self.get_node_text(module_node, source)

            specifiers = []
            for name_node in node.children_by_field_name("name"):
                name, alias = self._split_aliased(name_node, source)
                specifiers.append(ImportSpecifier(name=name, alias=alias))
            if self.find_child(node, "wildcard_import"):
                specifiers.append(ImportSpecifier(name="*", is_namespace=True))

            if module:
                imports.append(ImportInfo(source=module, specifiers=specifiers))

        return imports

    def _split_aliased(self, node: Node, source: bytes) -> tuple[str, Optional[str]]:
        """Return (name, alias) for a dotted_name or aliased_import node."""
        if node.type == "aliased_import":
            name = self.get_node_text(node.child_by_field_name("name"), source)
            alias = self.get_node_text(node.child_by_field_name("alias"), source)
            return name, alias or None
        return self.get_node_text(node, source), None

    # -------------------------------------------------------------------------
    # Module-level definitions
    # -------------------------------------------------------------------------

    def _extract_dunder_all(self, root: Node, source: bytes) -> Optional[list[str]]:
        """Names listed in __all__, or None if the module doesn't define it."""
        names: Optional[list[str]] = None

        for node in root.children:
            if node.type != "expression_statement" or not node.named_children:
                continue
            stmt = node.named_children[0]
            if stmt.type not in ("assignment", "augmented_assignment"):
                continue
            left = stmt.child_by_field_name("left")
            if left is None or self.get_node_text(left, source) != "__all__":
                continue
            right = stmt.child_by_field_name("right")
            if right is None or right.type not in ("list", "tuple"):
                continue

            # __all__ = [...] resets, __all__ += [...] extends
            if stmt.type == "assignment" or names is None:
                names = []
            for item in right.named_children:
                if item.type == "string":
                    names.append(strip_string_quotes(self.get_node_text(item, source)))

        return names

    def _extract_module_doc(self, root: Node, source: bytes) -> Optional[DocComment]:
        for node in root.children:
            if node.type == "comment":
                continue
            return self._docstring_of(node, source)
        return None

    def _docstring_of(self, node: Node, source: bytes) -> Optional[DocComment]:
        """Parse a docstring if node is a bare string expression statement."""
        if node.type != "expression_statement" or len(node.named_children) != 1:
            return None
        string_node = node.named_children[0]
        if string_node.type != "string":
            return None
        text = strip_string_quotes(self.get_node_text(string_node, source))
        if not text.strip():
            return None
        return parse_docstring(text)

    def _body_docstring(self, body: Optional[Node], source: bytes) -> Optional[DocComment]:
        if body is None:
            return None
        for child in body.named_children:
            if child.type == "comment":
                continue
            return self._docstring_of(child, source)
        return None

    def _extract_definition(
        self,
        node: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        all_names: Optional[list[str]],
        parent: Optional[Symbol] = None,
    ) -> Optional[Symbol]:
        decorators: list[str] = []
        outer = node
        if self.kind_of(node) == NodeKind.DECORATED:
            for dec in self.find_children(node, "decorator"):
                decorators.append(self.get_node_text(dec, source).lstrip("@").strip())
            node = node.child_by_field_name("definition")
            if node is None:
                return None

        kind = self.kind_of(node)
        if kind == NodeKind.FUNCTION:
            symbol = self._build_function(node, source, file_path, all_names, decorators, parent)
        elif kind == NodeKind.CLASS:
            symbol = self._build_class(node, source, file_path, all_names, decorators, parent)
        else:
            return None

        if symbol is None:
            return None
        symbol.location = self.make_location(outer, file_path)

        if parent is None:
            collector.add(symbol)
        else:
            collector.add_member(parent, symbol)

        if kind == NodeKind.CLASS:
            self._extract_class_members(node, source, file_path, collector, symbol)
        return symbol

    def _build_function(
        self,
        node: Node,
        source: bytes,
        file_path: str,
        all_names: Optional[list[str]],
        decorators: list[str],
        parent: Optional[Symbol],
    ) -> Optional[Symbol]:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        name = self.get_node_text(name_node, source)
        body = node.child_by_field_name("body")
        is_method = parent is not None

        return_node = node.child_by_field_name("return_type")
        docs = self._body_docstring(body, source)
        parameters = self._extract_parameters(node.child_by_field_name("parameters"), source, is_method)
        if docs:
            for param in parameters:
                param.description = docs.params.get(param.name)

        qualified = f"{parent.name}.{name}" if parent else name
        return Symbol(
            id=self.make_id(file_path, qualified),
            name=name,
            kind=SymbolKind.METHOD if is_method else SymbolKind.FUNCTION,
            location=self.make_location(node, file_path),
            visibility=self._visibility(name),
            exported=False if is_method else self._is_exported(name, all_names),
            parameters=parameters,
            returns=ReturnInfo(
                type=self.get_node_text(return_node, source) or None,
                description=docs.returns if docs else None,
            ) if (return_node is not None or (docs and docs.returns)) else None,
            type_parameters=self._type_parameters(node, source),
            decorators=decorators,
            docs=docs,
            signature=self.signature_text(node, source, body).rstrip(":").rstrip(),
            is_async=any(child.type == "async" for child in node.children),
            is_generator=body is not None and self.has_descendant(body, {"yield"}, _SCOPE_TYPES),
        )

    def _build_class(
        self,
        node: Node,
        source: bytes,
        file_path: str,
        all_names: Optional[list[str]],
        decorators: list[str],
        parent: Optional[Symbol],
    ) -> Optional[Symbol]:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        name = self.get_node_text(name_node, source)

        bases = []
        superclasses = node.child_by_field_name("superclasses")
        if superclasses is not None:
            for base in superclasses.named_children:
                # Skip metaclass=..., keyword arguments and comments
                if base.type in ("keyword_argument", "comment"):
                    continue
                bases.append(self.get_node_text(base, source))

        body = node.child_by_field_name("body")
        qualified = f"{parent.name}.{name}" if parent else name
        return Symbol(
            id=self.make_id(file_path, qualified),
            name=name,
            kind=SymbolKind.CLASS,
            location=self.make_location(node, file_path),
            visibility=self._visibility(name),
            exported=False if parent else self._is_exported(name, all_names),
            type_parameters=self._type_parameters(node, source),
            decorators=decorators,
            docs=self._body_docstring(body, source),
            signature=self.signature_text(node, source, body).rstrip(":").rstrip(),
            extends=bases[0] if bases else None,
            implements=bases[1:],
        )

    def _extract_class_members(
        self,
        node: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        owner: Symbol,
    ) -> None:
        body = node.child_by_field_name("body")
        if body is None:
            return

        for child in body.named_children:
            kind = self.kind_of(child)
            if kind in (NodeKind.FUNCTION, NodeKind.DECORATED):
                # Nested classes are not descended into
                definition = child.child_by_field_name("definition") if kind == NodeKind.DECORATED else child
                if definition is not None and definition.type == "function_definition":
                    self._extract_definition(child, source, file_path, collector, None, parent=owner)
            elif kind == NodeKind.EXPRESSION and child.named_children:
                stmt = child.named_children[0]
                if stmt.type != "assignment":
                    continue
                left = stmt.child_by_field_name("left")
                if left is None or left.type != "identifier":
                    continue
                name = self.get_node_text(left, source)
                type_node = stmt.child_by_field_name("type")
                collector.add_member(owner, Symbol(
                    id=self.make_id(file_path, f"{owner.name}.{name}"),
                    name=name,
                    kind=SymbolKind.PROPERTY,
                    location=self.make_location(child, file_path),
                    visibility=self._visibility(name),
                    type_annotation=self.get_node_text(type_node, source) or None,
                    signature=self.get_node_text(child, source).split("\n", 1)[0].strip(),
                ))

    def _extract_assignment(
        self,
        node: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        all_names: Optional[list[str]],
    ) -> None:
        """Module-level NAME = value / NAME: type = value."""
        if not node.named_children:
            return
        stmt = node.named_children[0]
        if stmt.type != "assignment":
            return
        left = stmt.child_by_field_name("left")
        if left is None or left.type != "identifier":
            return

        name = self.get_node_text(left, source)
        if name == "__all__" or name.startswith("_"):
            return

        is_constant = len(name) > 1 and name.upper() == name and any(c.isalpha() for c in name)
        type_node = stmt.child_by_field_name("type")
        collector.add(Symbol(
            id=self.make_id(file_path, name),
            name=name,
            kind=SymbolKind.CONSTANT if is_constant else SymbolKind.VARIABLE,
            location=self.make_location(node, file_path),
            visibility=Visibility.PUBLIC,
            exported=self._is_exported(name, all_names),
            type_annotation=self.get_node_text(type_node, source) or None,
            docs=self._trailing_docstring(node, source),
            signature=self.get_node_text(node, source).split("\n", 1)[0].strip(),
        ))

    def _trailing_docstring(self, node: Node, source: bytes) -> Optional[DocComment]:
        """Attribute docstring: a string literal statement right after an assignment."""
        sibling = node.next_named_sibling
        if sibling is None or sibling.start_point[0] != node.end_point[0] + 1:
            return None
        return self._docstring_of(sibling, source)

    # -------------------------------------------------------------------------
    # Parameters and helpers
    # -------------------------------------------------------------------------

    def _extract_parameters(self, params_node: Optional[Node], source: bytes, is_method: bool) -> list[Parameter]:
        parameters: list[Parameter] = []
        if params_node is None:
            return parameters

        for index, child in enumerate(params_node.named_children):
            param = self._build_parameter(child, source)
            if param is None:
                continue
            if is_method and index == 0 and param.name in ("self", "cls"):
                continue
            parameters.append(param)

        return parameters

    def _build_parameter(self, node: Node, source: bytes) -> Optional[Parameter]:
        if node.type == "identifier":
            return Parameter(name=self.get_node_text(node, source))

        if node.type in ("list_splat_pattern", "dictionary_splat_pattern"):
            return Parameter(name=self.get_node_text(node, source).lstrip("*"), rest=True)

        if node.type == "typed_parameter":
            inner = node.named_children[0] if node.named_children else None
            type_node = node.child_by_field_name("type")
            rest = inner is not None and inner.type in ("list_splat_pattern", "dictionary_splat_pattern")
            return Parameter(
                name=self.get_node_text(inner, source).lstrip("*"),
                type=self.get_node_text(type_node, source) or None,
                rest=rest,
            )

        if node.type in ("default_parameter", "typed_default_parameter"):
            type_node = node.child_by_field_name("type")
            return Parameter(
                name=self.get_node_text(node.child_by_field_name("name"), source),
                type=self.get_node_text(type_node, source) or None,
                default_value=self.get_node_text(node.child_by_field_name("value"), source) or None,
                optional=True,
            )

        # keyword_separator (*), positional_separator (/), comments
        return None

    def _type_parameters(self, node: Node, source: bytes) -> list[str]:
        type_params = node.child_by_field_name("type_parameters")
        if type_params is None:
            return []
        return [self.get_node_text(child, source) for child in type_params.named_children]

    def _visibility(self, name: str) -> Visibility:
        if name.startswith("__") and name.endswith("__"):
            return Visibility.PUBLIC
        if name.startswith("_"):
            return Visibility.PRIVATE
        return Visibility.PUBLIC

    def _is_exported(self, name: str, all_names: Optional[list[str]]) -> bool:
        if all_names is not None:
            return name in all_names
        return not name.startswith("_")

    def _build_exports(
        self,
        collector: SymbolCollector,
        all_names: Optional[list[str]],
        imports: list[ImportInfo],
    ) -> list[ExportInfo]:
        exports = [
            ExportInfo(name=symbol.name, symbol_id=symbol.id)
            for symbol in collector.symbols
            if symbol.exported and symbol.parent_id is None
        ]

        # Names in __all__ that come from imports are re-exports
        if all_names:
            local = {e.name for e in exports}
            for name in all_names:
                if name in local:
                    continue
                origin = self._import_source_for(name, imports)
                if origin is not None:
                    exports.append(ExportInfo(name=name, is_re_export=True, source=origin))

        return exports

    def _import_source_for(self, name: str, imports: list[ImportInfo]) -> Optional[str]:
        for imp in imports:
            for spec in imp.specifiers:
                if (spec.alias or spec.name) == name:
                    return imp.source
        return None


register_extractor(PythonExtractor())
