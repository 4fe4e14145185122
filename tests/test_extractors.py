"""
Tests for the TypeScript/JavaScript and Python extractors.
"""

import pytest

from repolens.ast.models import SymbolKind, Visibility
from repolens.exceptions import ParseError


def by_name(result, name):
    return next(s for s in result.symbols if s.name == name)


# =============================================================================
# TypeScript
# =============================================================================


class TestTypeScriptFunctions:
    """Top-level functions and const arrow functions."""

    def test_exported_function(self, extract):
        result = extract("typescript", "export function foo(x: number): string { return x.toString(); }\n", "src/foo.ts")
        foo = by_name(result, "foo")
        assert foo.id == "src/foo.ts:foo"
        assert foo.kind == SymbolKind.FUNCTION
        assert foo.exported is True
        assert len(foo.parameters) == 1
        assert foo.parameters[0].name == "x"
        assert foo.parameters[0].type == "number"
        assert foo.parameters[0].optional is False
        assert foo.returns.type == "string"
        assert foo.signature == "function foo(x: number): string"
        assert [e.name for e in result.exports] == ["foo"]

    def test_non_exported_is_private(self, extract):
        result = extract("typescript", "function helper() {}\n", "a.ts")
        helper = by_name(result, "helper")
        assert helper.exported is False
        assert helper.visibility == Visibility.PRIVATE

    def test_arrow_function_const(self, extract):
        result = extract("typescript", "export const add = async (a: number, b = 2) => a + b;\n", "a.ts")
        add = by_name(result, "add")
        assert add.kind == SymbolKind.FUNCTION
        assert add.is_async is True
        assert [p.name for p in add.parameters] == ["a", "b"]
        assert add.parameters[1].optional is True
        assert add.parameters[1].default_value == "2"

    def test_optional_and_rest_parameters(self, extract):
        result = extract("typescript", "export function f(a?: string, ...rest: number[]) {}\n", "a.ts")
        a, rest = by_name(result, "f").parameters
        assert a.optional is True
        assert rest.name == "rest"
        assert rest.rest is True

    def test_constants_and_variables(self, extract):
        result = extract("typescript", "export const MAX: number = 5;\nlet counter = 0;\n", "a.ts")
        assert by_name(result, "MAX").kind == SymbolKind.CONSTANT
        assert by_name(result, "MAX").type_annotation == "number"
        assert by_name(result, "counter").kind == SymbolKind.VARIABLE

    def test_jsdoc(self, extract):
        source = (
            "/**\n"
            " * Greets someone.\n"
            " * @param name - Who to greet\n"
            " * @returns The greeting\n"
            " */\n"
            "export function greet(name: string): string { return name; }\n"
        )
        greet = by_name(extract("typescript", source, "a.ts"), "greet")
        assert greet.docs.summary == "Greets someone."
        assert greet.parameters[0].description == "Who to greet"
        assert greet.returns.description == "The greeting"


class TestTypeScriptTypes:
    """Classes, interfaces, type aliases and enums."""

    def test_class_with_members(self, extract):
        source = (
            "export class UserService extends Base implements IService {\n"
            "  private cache: Map<string, User>;\n"
            "  constructor(private db: Db) { super(); }\n"
            "  async getUser(id: string): Promise<User> { return this.db.find(id); }\n"
            "  protected reset(): void {}\n"
            "}\n"
        )
        result = extract("typescript", source, "svc.ts")
        cls = by_name(result, "UserService")
        assert cls.kind == SymbolKind.CLASS
        assert cls.extends == "Base"
        assert cls.implements == ["IService"]
        assert cls.exported is True

        get_user = result.symbols[[s.id for s in result.symbols].index("svc.ts:UserService.getUser")]
        assert get_user.kind == SymbolKind.METHOD
        assert get_user.parent_id == cls.id
        assert get_user.is_async is True
        assert get_user.exported is False
        assert get_user.id in cls.children

        cache = by_name(result, "cache")
        assert cache.kind == SymbolKind.PROPERTY
        assert cache.visibility == Visibility.PRIVATE
        assert by_name(result, "reset").visibility == Visibility.PROTECTED

    def test_interface(self, extract):
        source = "export interface User extends Base {\n  id: string;\n  greet(): void;\n}\n"
        result = extract("typescript", source, "a.ts")
        user = by_name(result, "User")
        assert user.kind == SymbolKind.INTERFACE
        assert user.extends == "Base"
        assert {by_name(result, "id").kind, by_name(result, "greet").kind} == {SymbolKind.PROPERTY, SymbolKind.METHOD}

    def test_type_alias_and_enum(self, extract):
        source = "export type Id = string | number;\nexport enum Color { Red, Green = 'g' }\n"
        result = extract("typescript", source, "a.ts")
        assert by_name(result, "Id").kind == SymbolKind.TYPE
        assert by_name(result, "Id").type_annotation == "string | number"
        color = by_name(result, "Color")
        assert color.kind == SymbolKind.ENUM
        assert [s.name for s in result.symbols if s.parent_id == color.id] == ["Red", "Green"]

    def test_tsx(self, extract):
        source = "export function App(): JSX.Element { return <div>Hello</div>; }\n"
        assert by_name(extract("typescript", source, "App.tsx"), "App").exported is True


class TestTypeScriptImportsExports:
    """Import and export statements."""

    def test_import_forms(self, extract):
        source = (
            "import React from 'react';\n"
            "import { a, b as c } from './util';\n"
            "import * as path from 'path';\n"
            "import type { User } from './types';\n"
        )
        imports = extract("typescript", source, "a.ts").imports
        assert [i.source for i in imports] == ["react", "./util", "path", "./types"]
        assert imports[0].specifiers[0].is_default is True
        assert [(s.name, s.alias) for s in imports[1].specifiers] == [("a", None), ("b", "c")]
        assert imports[2].specifiers[0].is_namespace is True
        assert imports[3].is_type_only is True

    def test_require(self, extract):
        imports = extract("javascript", "const fs = require('fs');\n", "a.js").imports
        assert [i.source for i in imports] == ["fs"]

    def test_re_exports(self, extract):
        source = "export { a, b as c } from './lib';\nexport * from './all';\n"
        result = extract("typescript", source, "index.ts")
        assert [i.source for i in result.imports] == ["./lib", "./all"]
        assert all(e.is_re_export for e in result.exports)
        assert [e.name for e in result.exports] == ["a", "b", "*"]

    def test_export_clause_marks_local_symbol(self, extract):
        source = "function local() {}\nexport { local };\n"
        result = extract("typescript", source, "a.ts")
        local = by_name(result, "local")
        assert local.exported is True
        assert result.exports[0].symbol_id == local.id

    def test_export_default(self, extract):
        result = extract("typescript", "export default function main() {}\n", "a.ts")
        assert result.exports[0].is_default is True
        assert result.exports[0].symbol_id == "a.ts:main"
        assert by_name(result, "main").exported is True


class TestTypeScriptModule:
    """Module docs, ids and language variants."""

    def test_module_doc(self, extract):
        source = "/**\n * Utility helpers.\n */\n\nimport x from 'x';\n"
        assert extract("typescript", source, "a.ts").module_doc.summary == "Utility helpers."

    def test_doc_on_first_declaration_is_not_module_doc(self, extract):
        source = "/** Adds. */\nexport function add() {}\n"
        result = extract("typescript", source, "a.ts")
        assert result.module_doc is None
        assert by_name(result, "add").docs.summary == "Adds."

    def test_overloads_get_unique_ids(self, extract):
        source = (
            "export function f(a: string): string;\n"
            "export function f(a: number): number;\n"
            "export function f(a: any): any { return a; }\n"
        )
        ids = [s.id for s in extract("typescript", source, "a.ts").symbols]
        assert len(ids) == len(set(ids)) == 3

    def test_javascript_class(self, extract):
        source = "class Animal extends Base {\n  speak() { return 1; }\n}\nmodule.exports = Animal;\n"
        result = extract("javascript", source, "animal.js")
        assert by_name(result, "Animal").extends == "Base"
        assert by_name(result, "speak").kind == SymbolKind.METHOD


# =============================================================================
# Python
# =============================================================================


class TestPythonDefinitions:
    """Functions, classes and assignments."""

    def test_private_helper(self, extract):
        result = extract("python", "def _helper(): pass\n", "mod.py")
        helper = by_name(result, "_helper")
        assert helper.visibility == Visibility.PRIVATE
        assert helper.exported is False

    def test_function_details(self, extract):
        source = (
            "async def fetch(url: str, retries: int = 3, *args, **kwargs) -> bytes:\n"
            '    """Fetch a URL.\n'
            "\n"
            "    Args:\n"
            "        url: Address to fetch.\n"
            '    """\n'
            "    return b''\n"
        )
        fetch = by_name(extract("python", source, "net.py"), "fetch")
        assert fetch.kind == SymbolKind.FUNCTION
        assert fetch.exported is True
        assert fetch.is_async is True
        assert fetch.returns.type == "bytes"
        assert [p.name for p in fetch.parameters] == ["url", "retries", "args", "kwargs"]
        assert fetch.parameters[0].type == "str"
        assert fetch.parameters[0].description == "Address to fetch."
        assert fetch.parameters[1].default_value == "3"
        assert fetch.parameters[2].rest is True
        assert fetch.docs.summary == "Fetch a URL."
        assert fetch.signature == "async def fetch(url: str, retries: int = 3, *args, **kwargs) -> bytes"

    def test_generator(self, extract):
        source = "def gen():\n    yield 1\n"
        assert by_name(extract("python", source, "a.py"), "gen").is_generator is True

    def test_class_members(self, extract):
        source = (
            "@dataclass\n"
            "class User(Base, Mixin):\n"
            '    """A user."""\n'
            "\n"
            "    name: str = ''\n"
            "\n"
            "    def __init__(self, name):\n"
            "        self.name = name\n"
            "\n"
            "    @property\n"
            "    def _secret(self):\n"
            "        return 1\n"
        )
        result = extract("python", source, "models.py")
        user = by_name(result, "User")
        assert user.decorators == ["dataclass"]
        assert user.extends == "Base"
        assert user.implements == ["Mixin"]
        assert user.docs.summary == "A user."
        assert user.location.line == 1

        init = by_name(result, "__init__")
        assert init.id == "models.py:User.__init__"
        assert init.kind == SymbolKind.METHOD
        assert init.visibility == Visibility.PUBLIC
        assert [p.name for p in init.parameters] == ["name"]

        secret = by_name(result, "_secret")
        assert secret.visibility == Visibility.PRIVATE
        assert secret.decorators == ["property"]

        assert by_name(result, "name").kind == SymbolKind.PROPERTY
        assert set(user.children) == {"models.py:User.name", "models.py:User.__init__", "models.py:User._secret"}

    def test_constants_and_variables(self, extract):
        source = 'MAX_SIZE = 100\n"""Largest size."""\ndefault_name = "x"\n_private = 1\n'
        result = extract("python", source, "a.py")
        assert by_name(result, "MAX_SIZE").kind == SymbolKind.CONSTANT
        assert by_name(result, "MAX_SIZE").docs.summary == "Largest size."
        assert by_name(result, "default_name").kind == SymbolKind.VARIABLE
        assert "_private" not in [s.name for s in result.symbols]


class TestPythonModule:
    """Imports, __all__ and module docstrings."""

    def test_imports(self, extract):
        source = (
            "import os\n"
            "import numpy as np\n"
            "from .models import User, Group as G\n"
            "from . import utils\n"
            "from typing import *\n"
        )
        imports = extract("python", source, "a.py").imports
        assert [i.source for i in imports] == ["os", "numpy", ".models", ".", "typing"]
        assert imports[1].specifiers[0].alias == "np"
        assert [(s.name, s.alias) for s in imports[2].specifiers] == [("User", None), ("Group", "G")]
        assert imports[4].specifiers[0].name == "*"

    def test_dunder_all_controls_exports(self, extract):
        source = (
            "from .impl import Engine\n"
            "__all__ = ['public_fn', '_special', 'Engine']\n"
            "def public_fn(): pass\n"
            "def _special(): pass\n"
            "def not_listed(): pass\n"
        )
        result = extract("python", source, "pkg/__init__.py")
        assert by_name(result, "_special").exported is True
        assert by_name(result, "not_listed").exported is False
        re_export = next(e for e in result.exports if e.name == "Engine")
        assert re_export.is_re_export is True
        assert re_export.source == ".impl"

    def test_module_docstring(self, extract):
        source = "# comment\n'''Module summary.\n\nMore text.\n'''\nimport os\n"
        doc = extract("python", source, "a.py").module_doc
        assert doc.summary == "Module summary."

    def test_no_module_docstring(self, extract):
        assert extract("python", "import os\n", "a.py").module_doc is None

    def test_syntax_error(self, extract):
        with pytest.raises(ParseError):
            extract("python", "}}}} ((((\n", "broken.py")
