"""
YAML Extractor

Top-level keys become property symbols; the module doc names the file's
purpose (Ansible, Docker Compose, Kubernetes, GitHub Actions, Helm, CI).
"""

import re
from pathlib import PurePosixPath

from repolens.ast.extractors.base import LineExtractor, SymbolCollector, register_extractor
from repolens.ast.models import DocComment, ExtractionResult, SourceLocation, Symbol, SymbolKind

_TOP_LEVEL_KEY_RE = re.compile(r"^([a-zA-Z_][a-zA-Z0-9_-]*)\s*:")
_KIND_RE = re.compile(r"kind:\s*(\S+)", re.IGNORECASE)

_FILENAME_PURPOSES = {
    "chart.yaml": "Helm chart definition",
    "chart.yml": "Helm chart definition",
    "values.yaml": "Helm values configuration",
    "values.yml": "Helm values configuration",
    ".gitlab-ci.yml": "GitLab CI/CD configuration",
    ".travis.yml": "Travis CI configuration",
}


def detect_yaml_purpose(content: str, file_path: str) -> str:
    """Guess what a YAML file is for from its keys and filename."""
    lower = content.lower()
    basename = PurePosixPath(file_path).name.lower()

    if "hosts:" in lower and "tasks:" in lower:
        return "Ansible playbook"
    if "- role:" in lower or "ansible.builtin" in lower:
        return "Ansible role configuration"
    if "services:" in lower and ("image:" in lower or "build:" in lower):
        return "Docker Compose file"
    if "apiversion:" in lower and "kind:" in lower:
        match = _KIND_RE.search(content)
        return f"Kubernetes {match.group(1) if match else 'resource'}"
    if ("on:" in lower or "'on':" in lower) and "jobs:" in lower:
        return "GitHub Actions workflow"
    if basename in _FILENAME_PURPOSES:
        return _FILENAME_PURPOSES[basename]
    return "YAML configuration file"


class YamlExtractor(LineExtractor):
    """Extracts top-level keys from YAML files."""

    @property
    def language(self) -> str:
        return "yaml"

    def extract_text(self, text: str, file_path: str) -> ExtractionResult:
        collector = SymbolCollector()
        for line_num, line in enumerate(text.split("\n"), start=1):
            match = _TOP_LEVEL_KEY_RE.match(line)
            if not match:
                continue
            name = match.group(1)
            collector.add(Symbol(
                id=self.make_id(file_path, name),
                name=name,
                kind=SymbolKind.PROPERTY,
                location=SourceLocation(file=file_path, line=line_num),
                exported=True,
            ))

        return ExtractionResult(
            symbols=collector.symbols,
            module_doc=DocComment(summary=detect_yaml_purpose(text, file_path)),
        )


register_extractor(YamlExtractor())
