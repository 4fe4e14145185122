"""
Tree-sitter Parser Context

Owns the grammar and parser objects for every tree-sitter language.
Grammars are loaded lazily on first use and reused for the lifetime of the
context; after warm-up the context is effectively read-only.
"""

from typing import Optional

import tree_sitter_c_sharp
import tree_sitter_go
import tree_sitter_java
import tree_sitter_php
import tree_sitter_python
import tree_sitter_ruby
import tree_sitter_rust
import tree_sitter_typescript
from tree_sitter import Language, Parser, Tree

from repolens.configs import get_logger
from repolens.exceptions import GrammarLoadError

logger = get_logger("ast.parser")


# Grammar name -> tree-sitter module or language function
GRAMMAR_MODULES = {
    "python": tree_sitter_python,
    "typescript": tree_sitter_typescript.language_typescript,
    "tsx": tree_sitter_typescript.language_tsx,
    "go": tree_sitter_go,
    "rust": tree_sitter_rust,
    "java": tree_sitter_java,
    "csharp": tree_sitter_c_sharp,
    "ruby": tree_sitter_ruby,
    "php": tree_sitter_php.language_php,
}


class ParserContext:
    """
    Lazily initialized cache of tree-sitter languages and parsers.

    Create one per process (or per caller) and pass it to the engine and
    extractors. Each grammar is constructed at most once.
    """

    def __init__(self):
        self._parsers: dict[str, Parser] = {}
        self._languages: dict[str, Language] = {}

    def get_language(self, grammar: str) -> Language:
        """
        Get or create the Language object for a grammar.

        Raises:
            GrammarLoadError: If the grammar is unknown or fails to load
        """
        if grammar in self._languages:
            return self._languages[grammar]

        module = GRAMMAR_MODULES.get(grammar)
        if module is None:
            raise GrammarLoadError(f"Unknown grammar: {grammar}")

        try:
            # Handle both module and function-style language getters
            if callable(module):
                language = Language(module())
            else:
                language = Language(module.language())
        except Exception as e:
            logger.error(f"Failed to load grammar {grammar}: {e}")
            raise GrammarLoadError(f"Failed to load grammar {grammar}: {e}") from e

        self._languages[grammar] = language
        logger.debug(f"Loaded grammar: {grammar}")
        return language

    def get_parser(self, grammar: str) -> Parser:
        """Get or create the Parser for a grammar."""
        if grammar in self._parsers:
            return self._parsers[grammar]

        parser = Parser(self.get_language(grammar))
        self._parsers[grammar] = parser
        return parser

    def parse(self, source: bytes, grammar: str) -> Tree:
        """
        Parse source bytes into a concrete syntax tree.

        Args:
            source: Raw source bytes (UTF-8)
            grammar: Grammar name (python, typescript, tsx, go, ...)

        Returns:
            Tree-sitter Tree
        """
        return self.get_parser(grammar).parse(source)

    @property
    def loaded_grammars(self) -> list[str]:
        return sorted(self._languages)


# Default context for callers that don't manage their own
_default_context: Optional[ParserContext] = None


def get_default_context() -> ParserContext:
    """Get the shared default ParserContext."""
    global _default_context
    if _default_context is None:
        _default_context = ParserContext()
    return _default_context
