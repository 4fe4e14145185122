"""
Repolens - source analysis engine.

Detects languages, extracts symbols with tree-sitter, builds the internal
dependency graph and runs static insights over the resulting manifest.
"""

__version__ = "1.0.0"
