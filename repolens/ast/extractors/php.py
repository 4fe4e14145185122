"""
PHP Extractor

Extracts classes, interfaces, traits, enums, functions and use statements
from PHP source files, with PHPDoc. Descends into braced namespaces.
"""

import re
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

_GROUP_USE_RE = re.compile(r"^(.*?)\\?\{(.*)\}$", re.DOTALL)


class PhpExtractor(TreeSitterExtractor):
    """Extracts metadata from PHP source files."""

    NODE_KINDS = {
        "namespace_definition": NodeKind.NAMESPACE,
        "namespace_use_declaration": NodeKind.IMPORT,
        "class_declaration": NodeKind.CLASS,
        "interface_declaration": NodeKind.INTERFACE,
        "trait_declaration": NodeKind.TRAIT,
        "enum_declaration": NodeKind.ENUM,
        "function_definition": NodeKind.FUNCTION,
        "method_declaration": NodeKind.METHOD,
        "property_declaration": NodeKind.PROPERTY,
        "const_declaration": NodeKind.CONSTANT,
        "enum_case": NodeKind.CONSTANT,
        "comment": NodeKind.COMMENT,
    }

    _TYPE_KINDS = {
        NodeKind.CLASS: SymbolKind.CLASS,
        NodeKind.TRAIT: SymbolKind.CLASS,
        NodeKind.INTERFACE: SymbolKind.INTERFACE,
        NodeKind.ENUM: SymbolKind.ENUM,
    }

    @property
    def language(self) -> str:
        return "php"

    @property
    def grammar(self) -> str:
        return "php"

    def extract_tree(self, tree: Tree, source: bytes, file_path: str) -> ExtractionResult:
        root = tree.root_node
        collector = SymbolCollector()
        result = ExtractionResult(module_doc=self._extract_file_doc(root, source))

        self._walk_statements(root, source, file_path, collector, result)

        result.symbols = collector.symbols
        result.exports = [
            ExportInfo(name=s.name, symbol_id=s.id)
            for s in collector.symbols
            if s.exported
        ]
        return result

    def _walk_statements(
        self,
        container: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        result: ExtractionResult,
    ) -> None:
        for node in container.named_children:
            kind = self.kind_of(node)
            if kind == NodeKind.IMPORT:
                result.imports.extend(self._extract_use(node, source))
            elif kind == NodeKind.NAMESPACE:
                body = node.child_by_field_name("body")
                if body is not None:
                    self._walk_statements(body, source, file_path, collector, result)
            elif kind in self._TYPE_KINDS:
                self._extract_type(node, kind, source, file_path, collector)
            elif kind == NodeKind.FUNCTION:
                name = self.get_node_text(node.child_by_field_name("name"), source)
                if name:
                    symbol = self._build_callable(node, name, name, source, file_path, SymbolKind.FUNCTION)
                    symbol.exported = True
                    collector.add(symbol)

    # -------------------------------------------------------------------------
    # use statements
    # -------------------------------------------------------------------------

    def _extract_use(self, node: Node, source: bytes) -> list[ImportInfo]:
        """
        use App\\Models\\User;
        use App\\Models\\{User, Post as P};
        use function App\\helpers\\format;
        """
        text = self.get_node_text(node, source).strip().rstrip(";").strip()
        text = re.sub(r"^use\s+", "", text)
        text = re.sub(r"^(function|const)\s+", "", text)

        group = _GROUP_USE_RE.match(text)
        if group:
            prefix = group.group(1).strip().rstrip("\\")
            specifiers = [self._use_specifier(part) for part in group.group(2).split(",") if part.strip()]
            return [ImportInfo(source=prefix, specifiers=specifiers)]

        imports = []
        for clause in text.split(","):
            clause = clause.strip()
            if not clause:
                continue
            spec = self._use_specifier(clause)
            imports.append(ImportInfo(source=clause.split()[0].lstrip("\\"), specifiers=[spec]))
        return imports

    def _use_specifier(self, clause: str) -> ImportSpecifier:
        parts = clause.strip().split()
        path = parts[0].lstrip("\\")
        alias = parts[2] if len(parts) >= 3 and parts[1].lower() == "as" else None
        return ImportSpecifier(name=path.rsplit("\\", 1)[-1], alias=alias)

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
    ) -> None:
        name = self.get_node_text(node.child_by_field_name("name"), source)
        if not name:
            return

        extends = None
        implements: list[str] = []
        base_clause = self.find_child(node, "base_clause")
        if base_clause is not None:
            bases = [self.get_node_text(b, source) for b in base_clause.named_children]
            if bases:
                extends = bases[0]
                # interface A extends B, C
                implements.extend(bases[1:])
        interface_clause = self.find_child(node, "class_interface_clause")
        if interface_clause is not None:
            implements.extend(self.get_node_text(i, source) for i in interface_clause.named_children)

        body = node.child_by_field_name("body")
        symbol = collector.add(Symbol(
            id=self.make_id(file_path, name),
            name=name,
            kind=self._TYPE_KINDS[kind],
            location=self.make_location(node, file_path),
            exported=True,
            decorators=self._attributes(node, source),
            docs=self._phpdoc_for(node, source),
            signature=self.signature_text(node, source, body),
            extends=extends,
            implements=implements,
        ))

        if body is None:
            return
        for member in body.named_children:
            member_kind = self.kind_of(member)
            if member_kind == NodeKind.METHOD:
                self._add_method(member, source, file_path, collector, symbol)
            elif member_kind == NodeKind.PROPERTY:
                self._add_properties(member, source, file_path, collector, symbol)
            elif member_kind == NodeKind.CONSTANT:
                self._add_constants(member, source, file_path, collector, symbol)

    def _add_method(self, node: Node, source: bytes, file_path: str, collector: SymbolCollector, owner: Symbol) -> None:
        name = self.get_node_text(node.child_by_field_name("name"), source)
        if not name:
            return
        symbol = self._build_callable(node, name, f"{owner.name}.{name}", source, file_path, SymbolKind.METHOD)
        symbol.visibility = self._visibility(node, source)
        symbol.decorators = self._attributes(node, source)
        collector.add_member(owner, symbol)

    def _add_properties(self, node: Node, source: bytes, file_path: str, collector: SymbolCollector, owner: Symbol) -> None:
        visibility = self._visibility(node, source)
        type_node = node.child_by_field_name("type")
        docs = self._phpdoc_for(node, source)
        for element in self.find_children(node, "property_element"):
            variable = self.find_child(element, "variable_name")
            name = self.get_node_text(variable, source).lstrip("$")
            if not name:
                continue
            collector.add_member(owner, Symbol(
                id=self.make_id(file_path, f"{owner.name}.{name}"),
                name=name,
                kind=SymbolKind.PROPERTY,
                location=self.make_location(node, file_path),
                visibility=visibility,
                type_annotation=self.get_node_text(type_node, source) or None,
                docs=docs,
                signature=self.signature_text(node, source, None),
            ))

    def _add_constants(self, node: Node, source: bytes, file_path: str, collector: SymbolCollector, owner: Symbol) -> None:
        if node.type == "enum_case":
            elements = [node]
        else:
            elements = self.find_children(node, "const_element")
        for element in elements:
            name_node = element.child_by_field_name("name") or self.find_child(element, "name")
            name = self.get_node_text(name_node, source)
            if not name:
                continue
            collector.add_member(owner, Symbol(
                id=self.make_id(file_path, f"{owner.name}.{name}"),
                name=name,
                kind=SymbolKind.CONSTANT,
                location=self.make_location(element, file_path),
                visibility=self._visibility(node, source),
                docs=self._phpdoc_for(node, source),
                signature=self.signature_text(node, source, None),
            ))

    def _build_callable(
        self,
        node: Node,
        name: str,
        qualified: str,
        source: bytes,
        file_path: str,
        kind: SymbolKind,
    ) -> Symbol:
        docs = self._phpdoc_for(node, source)
        parameters = self._extract_parameters(node.child_by_field_name("parameters"), source)
        if docs:
            for param in parameters:
                param.description = docs.params.get(param.name)

        return_node = node.child_by_field_name("return_type")
        returns = None
        if return_node is not None or (docs and docs.returns):
            returns = ReturnInfo(
                type=self.get_node_text(return_node, source).lstrip(":").strip() or None,
                description=docs.returns if docs else None,
            )

        return Symbol(
            id=self.make_id(file_path, qualified),
            name=name,
            kind=kind,
            location=self.make_location(node, file_path),
            parameters=parameters,
            returns=returns,
            docs=docs,
            signature=self.signature_text(node, source, node.child_by_field_name("body")),
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _visibility(self, node: Node, source: bytes) -> Visibility:
        """Members without a visibility modifier are public."""
        modifier = self.find_child(node, "visibility_modifier")
        if modifier is None:
            return Visibility.PUBLIC
        text = self.get_node_text(modifier, source).strip().lower()
        if text == "private":
            return Visibility.PRIVATE
        if text == "protected":
            return Visibility.PROTECTED
        return Visibility.PUBLIC

    def _attributes(self, node: Node, source: bytes) -> list[str]:
        attributes = []
        for attr_list in self.find_children(node, "attribute_list"):
            for attr in self.walk_tree(attr_list, "attribute"):
                attributes.append(self.get_node_text(attr, source))
        return attributes

    def _extract_parameters(self, params_node: Optional[Node], source: bytes) -> list[Parameter]:
        parameters: list[Parameter] = []
        if params_node is None:
            return parameters
        for child in params_node.named_children:
            if child.type not in ("simple_parameter", "variadic_parameter", "property_promotion_parameter"):
                continue
            name_node = child.child_by_field_name("name") or self.find_child(child, "variable_name")
            default = child.child_by_field_name("default_value")
            parameters.append(Parameter(
                name=self.get_node_text(name_node, source).lstrip("$"),
                type=self.get_node_text(child.child_by_field_name("type"), source) or None,
                default_value=self.get_node_text(default, source) or None,
                optional=default is not None,
                rest=child.type == "variadic_parameter",
            ))
        return parameters

    def _phpdoc_for(self, node: Node, source: bytes) -> Optional[DocComment]:
        comments = self.preceding_comments(node, source)
        if comments and is_doc_block(comments[-1]):
            return parse_jsdoc(comments[-1])
        return None

    def _extract_file_doc(self, root: Node, source: bytes) -> Optional[DocComment]:
        """File-level docblock: the first /** */ after <?php not glued to a declaration."""
        for node in root.children:
            if node.type in ("php_tag", "text_interpolation", "text"):
                continue
            if node.type != "comment":
                return None
            text = self.get_node_text(node, source)
            if not is_doc_block(text):
                return None
            following = node.next_named_sibling
            if following is None or self.kind_of(following) in (NodeKind.NAMESPACE, NodeKind.IMPORT) \
                    or following.start_point[0] > node.end_point[0] + 1:
                return parse_jsdoc(text)
            return None
        return None


register_extractor(PhpExtractor())
