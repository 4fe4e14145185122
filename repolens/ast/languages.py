"""
Language Detection

Maps file paths to language tags using extension and filename rules.
Pure functions: no I/O.
"""

from pathlib import PurePosixPath
from typing import Optional

# File extension to language mapping
EXTENSION_TO_LANGUAGE = {
    # TypeScript / JavaScript
    ".ts": "typescript",
    ".tsx": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    # Python
    ".py": "python",
    ".pyi": "python",
    # Systems / compiled
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".cs": "csharp",
    ".rb": "ruby",
    ".php": "php",
    ".swift": "swift",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".scala": "scala",
    ".sc": "scala",
    ".ex": "elixir",
    ".exs": "elixir",
    ".dart": "dart",
    ".lua": "lua",
    ".zig": "zig",
    ".hs": "haskell",
    ".lhs": "haskell",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cxx": "cpp",
    ".cc": "cpp",
    ".hpp": "cpp",
    ".hxx": "cpp",
    # Config / infrastructure / docs
    ".yaml": "yaml",
    ".yml": "yaml",
    ".sh": "shell",
    ".bash": "shell",
    ".zsh": "shell",
    ".tf": "hcl",
    ".hcl": "hcl",
    ".sql": "sql",
    ".md": "markdown",
    ".mdx": "markdown",
    ".dockerfile": "dockerfile",
    ".toml": "toml",
    ".json": "json",
    ".xml": "xml",
}

LANGUAGE_DISPLAY_NAMES = {
    "typescript": "TypeScript",
    "javascript": "JavaScript",
    "python": "Python",
    "go": "Go",
    "rust": "Rust",
    "java": "Java",
    "csharp": "C#",
    "ruby": "Ruby",
    "php": "PHP",
    "swift": "Swift",
    "kotlin": "Kotlin",
    "scala": "Scala",
    "elixir": "Elixir",
    "dart": "Dart",
    "lua": "Lua",
    "zig": "Zig",
    "haskell": "Haskell",
    "c": "C",
    "cpp": "C++",
    "yaml": "YAML",
    "shell": "Shell",
    "hcl": "HCL",
    "sql": "SQL",
    "markdown": "Markdown",
    "dockerfile": "Dockerfile",
    "toml": "TOML",
    "json": "JSON",
    "xml": "XML",
}


def detect_language(file_path: str) -> Optional[str]:
    """
    Detect language from a file path.

    Args:
        file_path: Path to the source file (any separator style)

    Returns:
        Language tag or None if unsupported
    """
    name = PurePosixPath(file_path.replace("\\", "/")).name

    # Extensionless Dockerfiles: Dockerfile, Dockerfile.prod
    if name == "Dockerfile" or name.startswith("Dockerfile."):
        return "dockerfile"

    ext = PurePosixPath(name).suffix.lower()
    return EXTENSION_TO_LANGUAGE.get(ext)


def get_supported_extensions() -> list[str]:
    """All file extensions with a known language."""
    return sorted(EXTENSION_TO_LANGUAGE)


def get_supported_languages() -> list[str]:
    """All distinct language tags."""
    return sorted(set(EXTENSION_TO_LANGUAGE.values()))


def get_language_display_name(language: str) -> str:
    """Human-readable name for a language tag (e.g. csharp -> C#)."""
    return LANGUAGE_DISPLAY_NAMES.get(language, language)
