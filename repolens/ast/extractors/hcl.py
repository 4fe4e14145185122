"""
HCL / Terraform Extractor

Extracts resource, data, variable, output, module, provider, terraform and
locals blocks from .tf/.hcl files.
"""

import re
from pathlib import PurePosixPath

from repolens.ast.extractors.base import LineExtractor, SymbolCollector, register_extractor
from repolens.ast.models import DocComment, ExtractionResult, SourceLocation, Symbol, SymbolKind

# resource "aws_instance" "web" {   /   variable "region" {   /   locals {
_BLOCK_RE = re.compile(
    r'^(resource|data|variable|output|module|provider|terraform|locals)\s+'
    r'(?:"([^"]+)"\s+)?(?:"([^"]+)"\s*)?\{'
)

BLOCK_KINDS = {
    "resource": SymbolKind.CLASS,
    "data": SymbolKind.PROPERTY,
    "variable": SymbolKind.VARIABLE,
    "output": SymbolKind.PROPERTY,
    "module": SymbolKind.MODULE,
    "provider": SymbolKind.NAMESPACE,
    "terraform": SymbolKind.NAMESPACE,
    "locals": SymbolKind.NAMESPACE,
}

_FILENAME_SUMMARIES = {
    "main.tf": "Main Terraform configuration",
    "variables.tf": "Terraform variable definitions",
    "outputs.tf": "Terraform output definitions",
    "providers.tf": "Terraform provider configuration",
    "versions.tf": "Terraform version constraints",
    "backend.tf": "Terraform backend configuration",
}


class HclExtractor(LineExtractor):
    """Extracts top-level blocks from Terraform/HCL files."""

    @property
    def language(self) -> str:
        return "hcl"

    def extract_text(self, text: str, file_path: str) -> ExtractionResult:
        collector = SymbolCollector()
        prev_comment = ""

        for line_num, line in enumerate(text.split("\n"), start=1):
            trimmed = line.strip()

            if trimmed.startswith("#") or trimmed.startswith("//"):
                prev_comment = re.sub(r"^[#/]+\s*", "", trimmed)
                continue

            match = _BLOCK_RE.match(trimmed)
            if match:
                block_type, first_label, second_label = match.groups()
                # resource.aws_instance.web / variable.region / locals
                name = ".".join(part for part in (block_type, first_label, second_label) if part)
                collector.add(Symbol(
                    id=self.make_id(file_path, name),
                    name=name,
                    kind=BLOCK_KINDS.get(block_type, SymbolKind.PROPERTY),
                    location=SourceLocation(file=file_path, line=line_num),
                    exported=True,
                    type_annotation=block_type,
                    docs=DocComment(summary=prev_comment) if prev_comment else None,
                    signature=trimmed.rstrip("{").strip(),
                ))
                prev_comment = ""
            elif trimmed:
                prev_comment = ""

        return ExtractionResult(
            symbols=collector.symbols,
            module_doc=DocComment(summary=self._summary(file_path)),
        )

    def _summary(self, file_path: str) -> str:
        basename = PurePosixPath(file_path).name
        if basename in _FILENAME_SUMMARIES:
            return _FILENAME_SUMMARIES[basename]
        if basename.endswith(".hcl"):
            return "HCL configuration"
        return "Terraform configuration"


register_extractor(HclExtractor())
