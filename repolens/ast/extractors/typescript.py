"""
TypeScript / JavaScript Extractor

Extracts symbols, imports, exports and JSDoc from TypeScript and JavaScript
source files using tree-sitter.

TypeScript uses the typescript grammar (tsx for .tsx files). JavaScript is a
subset of TSX, so .js/.jsx/.mjs/.cjs files are parsed with the tsx grammar
and reported under the javascript language tag.
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

# Variable initializers that make a declarator a function
_FUNCTION_VALUES = {"arrow_function", "function_expression", "function", "generator_function"}


class TypeScriptExtractor(TreeSitterExtractor):
    """Extracts metadata from TypeScript source files."""

    NODE_KINDS = {
        "import_statement": NodeKind.IMPORT,
        "export_statement": NodeKind.EXPORT,
        "function_declaration": NodeKind.FUNCTION,
        "generator_function_declaration": NodeKind.FUNCTION,
        "function_signature": NodeKind.FUNCTION,
        "class_declaration": NodeKind.CLASS,
        "abstract_class_declaration": NodeKind.CLASS,
        "class": NodeKind.CLASS,
        "interface_declaration": NodeKind.INTERFACE,
        "type_alias_declaration": NodeKind.TYPE_ALIAS,
        "enum_declaration": NodeKind.ENUM,
        "lexical_declaration": NodeKind.VARIABLE,
        "variable_declaration": NodeKind.VARIABLE,
        "internal_module": NodeKind.NAMESPACE,
        "module": NodeKind.NAMESPACE,
        "ambient_declaration": NodeKind.DECORATED,
        "expression_statement": NodeKind.EXPRESSION,
        "comment": NodeKind.COMMENT,
        # Class body members
        "method_definition": NodeKind.METHOD,
        "method_signature": NodeKind.METHOD,
        "abstract_method_signature": NodeKind.METHOD,
        "public_field_definition": NodeKind.PROPERTY,
        "field_definition": NodeKind.PROPERTY,
        "property_signature": NodeKind.PROPERTY,
    }

    @property
    def language(self) -> str:
        return "typescript"

    @property
    def grammar(self) -> str:
        return "typescript"

    def grammar_for(self, file_path: str) -> str:
        if file_path.lower().endswith(".tsx"):
            return "tsx"
        return self.grammar

    def extract_tree(self, tree: Tree, source: bytes, file_path: str) -> ExtractionResult:
        root = tree.root_node
        collector = SymbolCollector()
        result = ExtractionResult()

        for node in root.children:
            kind = self.kind_of(node)
            if kind == NodeKind.IMPORT:
                imp = self._extract_import(node, source)
                if imp:
                    result.imports.append(imp)
            elif kind == NodeKind.EXPORT:
                self._extract_export_statement(node, source, file_path, collector, result)
            elif kind == NodeKind.EXPRESSION:
                inner = node.named_children[0] if node.named_children else None
                if inner is not None and self.kind_of(inner) == NodeKind.NAMESPACE:
                    self._extract_declaration(inner, source, file_path, collector, exported=False, doc_anchor=node)
            elif kind != NodeKind.COMMENT:
                self._extract_declaration(node, source, file_path, collector, exported=False)

        result.imports.extend(self._extract_requires(root, source))
        self._link_local_exports(collector, result.exports)
        result.symbols = collector.symbols
        result.module_doc = self._extract_module_doc(root, source)
        return result

    # -------------------------------------------------------------------------
    # Imports
    # -------------------------------------------------------------------------

    def _extract_import(self, node: Node, source: bytes) -> Optional[ImportInfo]:
        """Extract one import statement."""
        source_node = node.child_by_field_name("source") or self.find_child(node, "string")
        if source_node is None:
            # import x = require("y")
            require = self.find_child(node, "import_require_clause")
            source_node = self.find_child(require, "string") if require else None
        if source_node is None:
            return None

        is_type_only = any(child.type == "type" for child in node.children)
        specifiers: list[ImportSpecifier] = []

        import_clause = self.find_child(node, "import_clause")
        if import_clause:
            for child in import_clause.children:
                if child.type == "identifier":
                    # Default import: import X from 'y'
                    specifiers.append(ImportSpecifier(name=self.get_node_text(child, source), is_default=True))
                elif child.type == "named_imports":
                    specifiers.extend(self._extract_named_imports(child, source))
                elif child.type == "namespace_import":
                    # Namespace import: import * as x from 'y'
                    alias = self.find_child(child, "identifier")
                    specifiers.append(ImportSpecifier(
                        name="*",
                        alias=self.get_node_text(alias, source) or None,
                        is_namespace=True,
                    ))

        return ImportInfo(
            source=self._string_content(source_node, source),
            specifiers=specifiers,
            is_type_only=is_type_only,
        )

    def _extract_named_imports(self, node: Node, source: bytes) -> list[ImportSpecifier]:
        specifiers = []
        for child in node.named_children:
            if child.type != "import_specifier":
                continue
            name = self.get_node_text(child.child_by_field_name("name"), source)
            alias = self.get_node_text(child.child_by_field_name("alias"), source)
            specifiers.append(ImportSpecifier(name=name, alias=alias or None))
        return specifiers

    def _extract_requires(self, root: Node, source: bytes) -> list[ImportInfo]:
        """CommonJS: require("x") calls with a single string argument."""
        imports = []
        for call in self.walk_tree(root, "call_expression"):
            function = call.child_by_field_name("function")
            if function is None or self.get_node_text(function, source) != "require":
                continue
            args = call.child_by_field_name("arguments")
            if args is None or len(args.named_children) != 1 or args.named_children[0].type != "string":
                continue
            imports.append(ImportInfo(source=self._string_content(args.named_children[0], source)))
        return imports

    def _string_content(self, node: Node, source: bytes) -> str:
        """Extract string content without quotes."""
        fragment = self.find_child(node, "string_fragment")
        if fragment:
            return self.get_node_text(fragment, source)
        return self.get_node_text(node, source).strip("'\"`")

    # -------------------------------------------------------------------------
    # Exports
    # -------------------------------------------------------------------------

    def _extract_export_statement(
        self,
        node: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        result: ExtractionResult,
    ) -> None:
        is_default = any(child.type == "default" for child in node.children)
        source_node = node.child_by_field_name("source")
        decorators = [
            self.get_node_text(d, source).lstrip("@").strip()
            for d in self.find_children(node, "decorator")
        ]

        # export <declaration>
        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            symbols = self._extract_declaration(
                declaration, source, file_path, collector,
                exported=True, doc_anchor=node, decorators=decorators,
                default_name="default" if is_default else None,
            )
            for symbol in symbols:
                result.exports.append(ExportInfo(name=symbol.name, is_default=is_default, symbol_id=symbol.id))
            return

        # Re-exports: export { a } from 'x', export * from 'x', export * as ns from 'x'
        if source_node is not None:
            origin = self._string_content(source_node, source)
            is_type_only = any(child.type == "type" for child in node.children)
            result.imports.append(ImportInfo(source=origin, is_type_only=is_type_only))

            export_clause = self.find_child(node, "export_clause")
            if export_clause is not None:
                for name, alias in self._export_specifiers(export_clause, source):
                    result.exports.append(ExportInfo(name=name, alias=alias, is_re_export=True, source=origin))
                    result.imports[-1].specifiers.append(ImportSpecifier(name=name, alias=alias))
            else:
                namespace = self.find_child(node, "namespace_export")
                ns_name = self.get_node_text(self.find_child(namespace, "identifier"), source) if namespace else ""
                result.exports.append(ExportInfo(name=ns_name or "*", is_re_export=True, source=origin))
                result.imports[-1].specifiers.append(ImportSpecifier(name="*", alias=ns_name or None, is_namespace=True))
            return

        # export { a, b as c }
        export_clause = self.find_child(node, "export_clause")
        if export_clause is not None:
            for name, alias in self._export_specifiers(export_clause, source):
                result.exports.append(ExportInfo(name=name, alias=alias))
            return

        # export default <expression>
        value = node.child_by_field_name("value")
        if value is not None and is_default:
            name = self.get_node_text(value, source) if value.type == "identifier" else "default"
            result.exports.append(ExportInfo(name=name, is_default=True))

    def _export_specifiers(self, clause: Node, source: bytes) -> list[tuple[str, Optional[str]]]:
        specs = []
        for spec in clause.named_children:
            if spec.type != "export_specifier":
                continue
            name = self.get_node_text(spec.child_by_field_name("name"), source)
            alias = self.get_node_text(spec.child_by_field_name("alias"), source)
            specs.append((name, alias or None))
        return specs

    def _link_local_exports(self, collector: SymbolCollector, exports: list[ExportInfo]) -> None:
        """Attach export { x } / export default x to the local symbols they name."""
        for export in exports:
            if export.is_re_export or export.symbol_id:
                continue
            symbol = collector.find(export.name)
            if symbol is None:
                continue
            export.symbol_id = symbol.id
            symbol.exported = True
            symbol.visibility = Visibility.PUBLIC

    # -------------------------------------------------------------------------
    # Declarations
    # -------------------------------------------------------------------------

    def _extract_declaration(
        self,
        node: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        exported: bool,
        doc_anchor: Optional[Node] = None,
        decorators: Optional[list[str]] = None,
        default_name: Optional[str] = None,
    ) -> list[Symbol]:
        """
        Build symbols for one top-level declaration.

        Args:
            doc_anchor: Node whose preceding comment is the JSDoc (the
                        export statement for exported declarations)
            default_name: Name to use for anonymous default exports

        Returns:
            Top-level symbols created (several for multi-declarator consts)
        """
        kind = self.kind_of(node)
        docs = self._jsdoc_for(doc_anchor or node, source)
        decorators = list(decorators or [])
        visibility = Visibility.PUBLIC if exported else Visibility.PRIVATE

        if kind == NodeKind.DECORATED:
            # declare function / declare class / declare module
            symbols = []
            for child in node.named_children:
                symbols.extend(self._extract_declaration(
                    child, source, file_path, collector, exported, doc_anchor=doc_anchor or node,
                ))
            return symbols

        if kind in (NodeKind.VARIABLE,):
            return self._extract_variables(node, source, file_path, collector, exported, docs)

        name_node = node.child_by_field_name("name")
        name = self.get_node_text(name_node, source) or default_name
        if not name:
            return []

        if kind == NodeKind.FUNCTION:
            symbol = self._build_function(node, name, source, file_path, SymbolKind.FUNCTION, docs)
        elif kind == NodeKind.CLASS:
            decorators.extend(
                self.get_node_text(d, source).lstrip("@").strip()
                for d in self.find_children(node, "decorator")
            )
            symbol = self._build_class(node, name, source, file_path, docs)
        elif kind == NodeKind.INTERFACE:
            symbol = self._build_interface(node, name, source, file_path, docs)
        elif kind == NodeKind.TYPE_ALIAS:
            value = node.child_by_field_name("value")
            symbol = Symbol(
                id=self.make_id(file_path, name),
                name=name,
                kind=SymbolKind.TYPE,
                location=self.make_location(node, file_path),
                type_annotation=self.get_node_text(value, source) or None,
                type_parameters=self._type_parameters(node, source),
                docs=docs,
                signature=self.signature_text(node, source, None),
            )
        elif kind == NodeKind.ENUM:
            symbol = Symbol(
                id=self.make_id(file_path, name),
                name=name,
                kind=SymbolKind.ENUM,
                location=self.make_location(node, file_path),
                docs=docs,
                signature=self.signature_text(node, source, node.child_by_field_name("body")),
            )
        elif kind == NodeKind.NAMESPACE:
            symbol = Symbol(
                id=self.make_id(file_path, name.strip("'\"")),
                name=name.strip("'\""),
                kind=SymbolKind.NAMESPACE,
                location=self.make_location(node, file_path),
                docs=docs,
                signature=self.signature_text(node, source, node.child_by_field_name("body")),
            )
        else:
            return []

        symbol.exported = exported
        symbol.visibility = visibility
        symbol.decorators = decorators
        collector.add(symbol)

        if kind == NodeKind.CLASS:
            self._extract_class_members(node, source, file_path, collector, symbol)
        elif kind == NodeKind.INTERFACE:
            self._extract_interface_members(node, source, file_path, collector, symbol)
        elif kind == NodeKind.ENUM:
            self._extract_enum_members(node, source, file_path, collector, symbol)
        return [symbol]

    def _extract_variables(
        self,
        node: Node,
        source: bytes,
        file_path: str,
        collector: SymbolCollector,
        exported: bool,
        docs: Optional[DocComment],
    ) -> list[Symbol]:
        is_const = any(child.type == "const" for child in node.children)
        symbols = []

        for declarator in self.find_children(node, "variable_declarator"):
            name_node = declarator.child_by_field_name("name")
            if name_node is None or name_node.type != "identifier":
                continue
            name = self.get_node_text(name_node, source)
            value = declarator.child_by_field_name("value")

            if value is not None and value.type in _FUNCTION_VALUES:
                symbol = self._build_function(value, name, source, file_path, SymbolKind.FUNCTION, docs)
                symbol.location = self.make_location(node, file_path)
                symbol.signature = self.signature_text(node, source, value.child_by_field_name("body"))
            else:
                type_node = declarator.child_by_field_name("type")
                symbol = Symbol(
                    id=self.make_id(file_path, name),
                    name=name,
                    kind=SymbolKind.CONSTANT if is_const else SymbolKind.VARIABLE,
                    location=self.make_location(node, file_path),
                    type_annotation=self._annotation_text(type_node, source),
                    docs=docs,
                    signature=self.get_node_text(node, source).split("\n", 1)[0].strip().rstrip(";"),
                )

            symbol.exported = exported
            symbol.visibility = Visibility.PUBLIC if exported else Visibility.PRIVATE
            symbols.append(collector.add(symbol))

        return symbols

    def _build_function(
        self,
        node: Node,
        name: str,
        source: bytes,
        file_path: str,
        kind: SymbolKind,
        docs: Optional[DocComment],
        qualified_name: Optional[str] = None,
    ) -> Symbol:
        body = node.child_by_field_name("body")
        parameters = self._extract_parameters(node, source)
        return_node = node.child_by_field_name("return_type")
        return_type = self._annotation_text(return_node, source)

        if docs:
            for param in parameters:
                param.description = docs.params.get(param.name)

        returns = None
        if return_type or (docs and docs.returns):
            returns = ReturnInfo(type=return_type, description=docs.returns if docs else None)

        return Symbol(
            id=self.make_id(file_path, qualified_name or name),
            name=name,
            kind=kind,
            location=self.make_location(node, file_path),
            parameters=parameters,
            returns=returns,
            type_parameters=self._type_parameters(node, source),
            docs=docs,
            signature=self.signature_text(node, source, body),
            is_async=any(child.type == "async" for child in node.children),
            is_generator=node.type.startswith("generator") or any(child.type == "*" for child in node.children),
        )

    def _build_class(self, node: Node, name: str, source: bytes, file_path: str, docs: Optional[DocComment]) -> Symbol:
        extends = None
        implements: list[str] = []

        heritage = self.find_child(node, "class_heritage")
        if heritage is not None:
            for clause in heritage.children:
                if clause.type == "extends_clause":
                    extends = self.get_node_text(clause, source).split("extends", 1)[-1].strip()
                elif clause.type == "implements_clause":
                    implements.extend(self.get_node_text(t, source) for t in clause.named_children)
                elif clause.named:
                    # JavaScript-style heritage: class A extends B
                    extends = self.get_node_text(clause, source)

        return Symbol(
            id=self.make_id(file_path, name),
            name=name,
            kind=SymbolKind.CLASS,
            location=self.make_location(node, file_path),
            type_parameters=self._type_parameters(node, source),
            docs=docs,
            signature=self.signature_text(node, source, node.child_by_field_name("body")),
            extends=extends,
            implements=implements,
        )

    def _build_interface(self, node: Node, name: str, source: bytes, file_path: str, docs: Optional[DocComment]) -> Symbol:
        bases: list[str] = []
        extends_clause = self.find_child(node, "extends_type_clause")
        if extends_clause is not None:
            bases = [self.get_node_text(t, source) for t in extends_clause.named_children]

        return Symbol(
            id=self.make_id(file_path, name),
            name=name,
            kind=SymbolKind.INTERFACE,
            location=self.make_location(node, file_path),
            type_parameters=self._type_parameters(node, source),
            docs=docs,
            signature=self.signature_text(node, source, node.child_by_field_name("body")),
            extends=bases[0] if bases else None,
            implements=bases[1:],
        )

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

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

        pending_decorators: list[str] = []
        for child in body.named_children:
            if child.type == "decorator":
                pending_decorators.append(self.get_node_text(child, source).lstrip("@").strip())
                continue

            member = self._build_member(child, source, file_path, owner)
            if member is None:
                pending_decorators = []
                continue
            member.decorators = pending_decorators + [
                self.get_node_text(d, source).lstrip("@").strip()
                for d in self.find_children(child, "decorator")
            ]
            pending_decorators = []
            collector.add_member(owner, member)

    def _build_member(self, node: Node, source: bytes, file_path: str, owner: Symbol) -> Optional[Symbol]:
        kind = self.kind_of(node)
        if kind not in (NodeKind.METHOD, NodeKind.PROPERTY):
            return None

        name_node = node.child_by_field_name("name")
        name = self.get_node_text(name_node, source)
        if not name:
            return None

        docs = self._jsdoc_for(node, source)
        visibility = Visibility.PUBLIC
        modifier = self.find_child(node, "accessibility_modifier")
        if modifier is not None:
            visibility = Visibility(self.get_node_text(modifier, source).strip())
        elif name_node is not None and name_node.type == "private_property_identifier":
            visibility = Visibility.PRIVATE

        qualified = f"{owner.name}.{name}"
        if kind == NodeKind.METHOD:
            member = self._build_function(node, name, source, file_path, SymbolKind.METHOD, docs, qualified)
        else:
            type_node = node.child_by_field_name("type")
            member = Symbol(
                id=self.make_id(file_path, qualified),
                name=name,
                kind=SymbolKind.PROPERTY,
                location=self.make_location(node, file_path),
                type_annotation=self._annotation_text(type_node, source),
                docs=docs,
                signature=self.signature_text(node, source, None),
            )
        member.visibility = visibility
        return member

    def _extract_interface_members(
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
            member = self._build_member(child, source, file_path, owner)
            if member is not None:
                collector.add_member(owner, member)

    def _extract_enum_members(
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
            if child.type == "enum_assignment":
                name = self.get_node_text(child.child_by_field_name("name"), source)
            elif child.type in ("property_identifier", "string"):
                name = self.get_node_text(child, source).strip("'\"")
            else:
                continue
            collector.add_member(owner, Symbol(
                id=self.make_id(file_path, f"{owner.name}.{name}"),
                name=name,
                kind=SymbolKind.PROPERTY,
                location=self.make_location(child, file_path),
                signature=self.get_node_text(child, source),
            ))

    # -------------------------------------------------------------------------
    # Parameters, types and docs
    # -------------------------------------------------------------------------

    def _extract_parameters(self, node: Node, source: bytes) -> list[Parameter]:
        params_node = node.child_by_field_name("parameters")
        if params_node is None:
            # Single-identifier arrow function: x => x * 2
            single = node.child_by_field_name("parameter")
            if single is not None:
                return [Parameter(name=self.get_node_text(single, source))]
            return []

        parameters = []
        for child in params_node.named_children:
            if child.type in ("required_parameter", "optional_parameter"):
                pattern = child.child_by_field_name("pattern")
                value = child.child_by_field_name("value")
                rest = pattern is not None and pattern.type == "rest_pattern"
                name = self.get_node_text(pattern, source)
                if rest:
                    name = name.lstrip(".")
                if name == "this":
                    continue
                parameters.append(Parameter(
                    name=name,
                    type=self._annotation_text(child.child_by_field_name("type"), source),
                    default_value=self.get_node_text(value, source) or None,
                    optional=child.type == "optional_parameter" or value is not None,
                    rest=rest,
                ))
            elif child.type == "identifier":
                parameters.append(Parameter(name=self.get_node_text(child, source)))
            elif child.type == "assignment_pattern":
                parameters.append(Parameter(
                    name=self.get_node_text(child.child_by_field_name("left"), source),
                    default_value=self.get_node_text(child.child_by_field_name("right"), source) or None,
                    optional=True,
                ))
            elif child.type == "rest_pattern":
                parameters.append(Parameter(name=self.get_node_text(child, source).lstrip("."), rest=True))
        return parameters

    def _annotation_text(self, node: Optional[Node], source: bytes) -> Optional[str]:
        """Type text from a type_annotation node (": string" -> "string")."""
        if node is None:
            return None
        text = self.get_node_text(node, source).strip()
        if node.type == "type_annotation" and text.startswith(":"):
            text = text[1:].strip()
        return text or None

    def _type_parameters(self, node: Node, source: bytes) -> list[str]:
        type_params = node.child_by_field_name("type_parameters")
        if type_params is None:
            return []
        return [self.get_node_text(child, source) for child in type_params.named_children]

    def _jsdoc_for(self, node: Node, source: bytes) -> Optional[DocComment]:
        comments = self.preceding_comments(node, source)
        if comments and is_doc_block(comments[-1]):
            return parse_jsdoc(comments[-1])
        return None

    def _extract_module_doc(self, root: Node, source: bytes) -> Optional[DocComment]:
        """
        Leading /** */ block that isn't attached to the first declaration.

        It counts as the module doc when followed by a blank line, an
        import, or nothing at all.
        """
        first = root.children[0] if root.children else None
        if first is None or first.type == "hash_bang_line":
            first = first.next_sibling if first is not None else None
        if first is None or first.type != "comment":
            return None
        text = self.get_node_text(first, source)
        if not is_doc_block(text):
            return None

        following = first.next_sibling
        if (
            following is None
            or following.type in ("import_statement", "comment")
            or following.start_point[0] > first.end_point[0] + 1
        ):
            return parse_jsdoc(text)
        return None


class JavaScriptExtractor(TypeScriptExtractor):
    """JavaScript files, parsed with the TSX grammar."""

    @property
    def language(self) -> str:
        return "javascript"

    @property
    def grammar(self) -> str:
        return "tsx"

    def grammar_for(self, file_path: str) -> str:
        return self.grammar


register_extractor(TypeScriptExtractor())
register_extractor(JavaScriptExtractor())
