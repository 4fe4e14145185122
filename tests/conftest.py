"""
Pytest fixtures for Repolens tests.
"""

import json
import sys
import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest

# Add project root to path for repolens imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from repolens.ast.extractors import get_extractor  # noqa: E402
from repolens.ast.models import ExtractionResult  # noqa: E402
from repolens.ast.parser import ParserContext  # noqa: E402


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(scope="session")
def parser_context() -> ParserContext:
    """One parser context for the whole session; grammars load once."""
    return ParserContext()


@pytest.fixture
def extract(parser_context: ParserContext) -> Callable[..., ExtractionResult]:
    """Run the registered extractor for a language over a source string."""

    def _extract(language: str, source: str, file_path: str) -> ExtractionResult:
        extractor = get_extractor(language)
        assert extractor is not None, f"no extractor registered for {language}"
        return extractor.extract(source.encode("utf-8"), file_path, parser_context)

    return _extract


@pytest.fixture
def write_files(temp_dir: Path) -> Callable[[dict], Path]:
    """Write {relative path: content} into temp_dir and return temp_dir."""

    def _write(files: dict) -> Path:
        for rel_path, content in files.items():
            path = temp_dir / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, (dict, list)):
                content = json.dumps(content)
            path.write_text(content, encoding="utf-8")
        return temp_dir

    return _write


@pytest.fixture
def sample_repo(write_files: Callable[[dict], Path]) -> Path:
    """Small TypeScript + Python repository with one import cycle."""
    return write_files({
        "package.json": {"name": "sample-app", "version": "2.1.0", "description": "Sample app", "license": "MIT"},
        "package-lock.json": "{}",
        "README.md": "# Sample\n\nA sample application used by the test suite.\n",
        "src/index.ts": (
            "import { foo } from './a';\n"
            "export function main(): void { foo(); }\n"
        ),
        "src/a.ts": (
            "import { bar } from './b';\n"
            "/** Foo docs */\n"
            "export function foo(): number { return bar(); }\n"
        ),
        "src/b.ts": (
            "import { foo } from './a';\n"
            "export function bar(): number { return 1; }\n"
        ),
        "scripts/tool.py": (
            '"""Helper tool."""\n'
            "\n"
            "def run():\n"
            "    return 1\n"
        ),
    })
