"""
Tests for the line-oriented extractors (YAML, shell, HCL, SQL, Markdown)
and the text fallback.
"""

import pytest

from repolens.ast.extractors import get_extractor
from repolens.ast.extractors.yaml import detect_yaml_purpose
from repolens.ast.models import SymbolKind


def run(language: str, text: str, file_path: str):
    return get_extractor(language).extract_text(text, file_path)


# =============================================================================
# YAML
# =============================================================================


class TestYamlExtractor:
    """Top-level keys and file purpose."""

    def test_top_level_keys(self):
        text = "services:\n  web:\n    image: nginx\nversion: '3'\n"
        result = run("yaml", text, "docker-compose.yml")
        assert [s.name for s in result.symbols] == ["services", "version"]
        assert result.symbols[1].location.line == 4
        assert all(s.kind == SymbolKind.PROPERTY and s.exported for s in result.symbols)
        assert result.exports == []
        assert result.module_doc.summary == "Docker Compose file"

    @pytest.mark.parametrize(
        "text,file_path,expected",
        [
            ("- hosts: all\n  tasks:\n    - ping:\n", "site.yml", "Ansible playbook"),
            ("apiVersion: v1\nkind: Service\n", "svc.yaml", "Kubernetes Service"),
            ("on: push\njobs:\n  build: {}\n", ".github/workflows/ci.yml", "GitHub Actions workflow"),
            ("name: chart\n", "deploy/Chart.yaml", "Helm chart definition"),
            ("stages:\n  - test\n", ".gitlab-ci.yml", "GitLab CI/CD configuration"),
            ("debug: true\n", "settings.yaml", "YAML configuration file"),
        ],
    )
    def test_purpose(self, text, file_path, expected):
        assert detect_yaml_purpose(text, file_path) == expected


# =============================================================================
# Shell
# =============================================================================

SHELL_SOURCE = """\
#!/usr/bin/env bash
# Deploys the app.

set -e

export APP_ENV=prod
readonly MAX_RETRIES=3

# Builds artifacts
build() {
  echo build
}

function deploy {
  echo deploy
}
"""


class TestShellExtractor:
    """Functions, exports and the header comment."""

    def test_symbols(self):
        result = run("shell", SHELL_SOURCE, "deploy.sh")
        assert [(s.name, s.kind) for s in result.symbols] == [
            ("APP_ENV", SymbolKind.VARIABLE),
            ("MAX_RETRIES", SymbolKind.CONSTANT),
            ("build", SymbolKind.FUNCTION),
            ("deploy", SymbolKind.FUNCTION),
        ]

    def test_comment_above_function_is_doc(self):
        result = run("shell", SHELL_SOURCE, "deploy.sh")
        build = next(s for s in result.symbols if s.name == "build")
        assert build.docs.summary == "Builds artifacts"
        assert build.signature == "build()"
        assert build.location.line == 10
        deploy = next(s for s in result.symbols if s.name == "deploy")
        assert deploy.docs is None
        assert deploy.signature == "function deploy"

    def test_module_summary(self):
        assert run("shell", SHELL_SOURCE, "deploy.sh").module_doc.summary == "Deploys the app."

    def test_summary_from_shebang(self):
        assert run("shell", "#!/bin/sh\necho hi\n", "run.sh").module_doc.summary == "Sh script"
        assert run("shell", "echo hi\n", "run.sh").module_doc.summary == "Shell script"


# =============================================================================
# HCL
# =============================================================================


class TestHclExtractor:
    """Terraform blocks."""

    SOURCE = (
        "# Web server\n"
        'resource "aws_instance" "web" {\n'
        '  ami = "ami-123"\n'
        "}\n"
        "\n"
        'variable "region" {\n'
        "}\n"
        "\n"
        "locals {\n"
        "}\n"
    )

    def test_blocks(self):
        result = run("hcl", self.SOURCE, "infra/main.tf")
        assert [s.name for s in result.symbols] == ["resource.aws_instance.web", "variable.region", "locals"]
        web, region, local_block = result.symbols
        assert web.kind == SymbolKind.CLASS
        assert web.type_annotation == "resource"
        assert web.docs.summary == "Web server"
        assert web.signature == 'resource "aws_instance" "web"'
        assert region.kind == SymbolKind.VARIABLE
        assert region.docs is None
        assert local_block.kind == SymbolKind.NAMESPACE

    def test_summary_by_filename(self):
        assert run("hcl", self.SOURCE, "infra/main.tf").module_doc.summary == "Main Terraform configuration"
        assert run("hcl", "", "network.tf").module_doc.summary == "Terraform configuration"
        assert run("hcl", "", "terragrunt.hcl").module_doc.summary == "HCL configuration"


# =============================================================================
# SQL
# =============================================================================


class TestSqlExtractor:
    """CREATE statements."""

    SOURCE = (
        "-- Registered users\n"
        "CREATE TABLE IF NOT EXISTS users (\n"
        "  id serial primary key\n"
        ");\n"
        "\n"
        "CREATE OR REPLACE VIEW active_users AS SELECT * FROM users;\n"
        "CREATE MATERIALIZED VIEW stats AS SELECT 1;\n"
        "create function public.add(a int, b int) returns int as $$ select a + b $$ language sql;\n"
    )

    def test_objects(self):
        result = run("sql", self.SOURCE, "db/schema.sql")
        assert [(s.name, s.type_annotation) for s in result.symbols] == [
            ("users", "TABLE"),
            ("active_users", "VIEW"),
            ("stats", "MATERIALIZED VIEW"),
            ("public.add", "FUNCTION"),
        ]
        assert result.symbols[0].kind == SymbolKind.CLASS
        assert result.symbols[0].docs.summary == "Registered users"
        assert result.symbols[1].kind == SymbolKind.INTERFACE
        assert result.symbols[1].docs is None

    def test_summary(self):
        assert run("sql", self.SOURCE, "db/schema.sql").module_doc.summary == "SQL schema (1 tables, 1 functions)"
        migration = run("sql", "CREATE TABLE t (id int);\n", "001_migration.sql")
        assert migration.module_doc.summary == "Database migration: SQL schema (1 tables)"
        assert run("sql", "INSERT INTO t VALUES (1);\n", "seed.sql").module_doc.summary == "Database seed data"
        assert run("sql", "SELECT 1;\n", "query.sql").module_doc.summary == "SQL file"


# =============================================================================
# Markdown
# =============================================================================


class TestMarkdownExtractor:
    """Headings and prose summary."""

    SOURCE = (
        "[![Build](https://ci/badge.svg)](https://ci)\n"
        "\n"
        "# My Project\n"
        "\n"
        "Short title\n"
        "\n"
        "A fast tool for analysing source trees.\n"
        "\n"
        "## Install `now`\n"
    )

    def test_headings(self):
        result = run("markdown", self.SOURCE, "README.md")
        assert [(s.name, s.type_annotation) for s in result.symbols] == [("My Project", "h1"), ("Install now", "h2")]
        assert result.symbols[0].location.line == 3

    def test_prose_summary_skips_badges_and_titles(self):
        result = run("markdown", self.SOURCE, "README.md")
        assert result.module_doc.summary == "A fast tool for analysing source trees."

    def test_heading_fallback(self):
        assert run("markdown", "# Only A Title\n", "docs/x.md").module_doc.summary == "Only A Title"

    def test_filename_fallback(self):
        assert run("markdown", "", "CHANGELOG.md").module_doc.summary == "Project changelog"
        assert run("markdown", "", "notes.md").module_doc is None


# =============================================================================
# Text fallback
# =============================================================================


class TestTextExtractor:
    """Leading comment only."""

    def test_leading_comment(self):
        result = run("toml", "\n# Build settings\nkey = 1\n", "config.toml")
        assert result.symbols == []
        assert result.module_doc.summary == "Build settings"

    def test_c_style_comment(self):
        assert run("c", "/* Ring buffer */\nint x;\n", "ring.c").module_doc.summary == "Ring buffer"

    def test_code_first(self):
        assert run("kotlin", "fun main() {}\n// late comment\n", "Main.kt").module_doc is None


# =============================================================================
# Repeated names
# =============================================================================


@pytest.mark.parametrize(
    "language,text,file_path",
    [
        ("yaml", "apiVersion: v1\nkind: Service\n---\napiVersion: v1\nkind: Deployment\n", "k8s.yaml"),
        ("markdown", "# Guide\n## Example\ntext\n## Example\n", "README.md"),
        ("shell", "foo() {\n}\nfoo() {\n}\n", "a.sh"),
        ("sql", "CREATE TABLE t (id int);\nCREATE TABLE t (id int);\n", "a.sql"),
        ("hcl", 'variable "region" {\n}\nvariable "region" {\n}\n', "a.tf"),
    ],
)
def test_repeated_names_get_unique_ids(language, text, file_path):
    result = run(language, text, file_path)
    ids = [s.id for s in result.symbols]
    assert len(ids) == len(set(ids))
    assert any(symbol_id.endswith("#2") for symbol_id in ids)
