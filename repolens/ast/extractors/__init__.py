"""
Language-Specific Extractors

Each extractor implements the LanguageExtractor interface for a specific language.
Importing this package registers every extractor.
"""

from repolens.ast.extractors.base import (
    LanguageExtractor,
    LineExtractor,
    NodeKind,
    TreeSitterExtractor,
    get_extractor,
    get_registered_languages,
    register_extractor,
)

# Import extractors to trigger registration
from repolens.ast.extractors.python import PythonExtractor
from repolens.ast.extractors.typescript import JavaScriptExtractor, TypeScriptExtractor
from repolens.ast.extractors.go import GoExtractor
from repolens.ast.extractors.rust import RustExtractor
from repolens.ast.extractors.java import JavaExtractor
from repolens.ast.extractors.csharp import CSharpExtractor
from repolens.ast.extractors.ruby import RubyExtractor
from repolens.ast.extractors.php import PhpExtractor
from repolens.ast.extractors.yaml import YamlExtractor
from repolens.ast.extractors.shell import ShellExtractor
from repolens.ast.extractors.hcl import HclExtractor
from repolens.ast.extractors.sql import SqlExtractor
from repolens.ast.extractors.markdown import MarkdownExtractor
from repolens.ast.extractors.text import TextExtractor

__all__ = [
    "LanguageExtractor",
    "TreeSitterExtractor",
    "LineExtractor",
    "NodeKind",
    "get_extractor",
    "get_registered_languages",
    "register_extractor",
    "PythonExtractor",
    "TypeScriptExtractor",
    "JavaScriptExtractor",
    "GoExtractor",
    "RustExtractor",
    "JavaExtractor",
    "CSharpExtractor",
    "RubyExtractor",
    "PhpExtractor",
    "YamlExtractor",
    "ShellExtractor",
    "HclExtractor",
    "SqlExtractor",
    "MarkdownExtractor",
    "TextExtractor",
]
