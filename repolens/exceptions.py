"""
Repolens Exception Hierarchy

Centralized exception classes for structured error handling across the codebase.
All Repolens-specific exceptions inherit from RepolensError.

Usage:
    from repolens.exceptions import FileAnalysisError, ParseError

    try:
        result = extractor.extract(source, file_path, context)
    except ParseError as e:
        logger.warning(f"Parse failed: {e}")
"""


class RepolensError(Exception):
    """Base exception for all Repolens errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(RepolensError):
    """Error in Repolens configuration."""

    pass


# =============================================================================
# Discovery Errors
# =============================================================================


class DiscoveryError(RepolensError):
    """The repository could not be enumerated. Fatal for a run."""

    pass


# =============================================================================
# Per-file Analysis Errors
# =============================================================================


class FileAnalysisError(RepolensError):
    """Base class for errors that cause a single file to be skipped."""

    def __init__(self, message: str, file_path: str = "", details: dict | None = None):
        super().__init__(message, details)
        self.file_path = file_path


class FileTooLargeError(FileAnalysisError):
    """File exceeds the configured byte ceiling."""

    pass


class UnsupportedLanguageError(FileAnalysisError):
    """No language could be detected for the file."""

    pass


class ParserNotFoundError(FileAnalysisError):
    """A language was detected but no extractor is registered for it."""

    pass


class ParseError(FileAnalysisError):
    """Extractor could not make sense of the file's syntax."""

    pass


class GrammarLoadError(ParseError):
    """A tree-sitter grammar could not be loaded."""

    pass


class FileReadError(FileAnalysisError):
    """File content could not be read."""

    pass


# =============================================================================
# Manifest Errors
# =============================================================================


class ManifestError(RepolensError):
    """A saved manifest could not be read back."""

    pass
