"""
Tests for doc-comment parsing helpers.
"""

from repolens.ast.docs import (
    clean_block_comment,
    clean_line_comments,
    is_doc_block,
    parse_docstring,
    parse_jsdoc,
    parse_plain_doc,
    parse_xml_doc,
    strip_string_quotes,
)


class TestCommentCleanup:
    """Removing comment delimiters."""

    def test_block_comment(self):
        lines = clean_block_comment("/**\n * First line.\n *\n * Second.\n */")
        assert lines == ["First line.", "", "Second."]

    def test_line_comments(self):
        assert clean_line_comments(["// hello", "//world", "// "], "//") == ["hello", "world"]

    def test_is_doc_block(self):
        assert is_doc_block("/** doc */")
        assert not is_doc_block("/* plain */")
        assert not is_doc_block("/**/")

    def test_strip_string_quotes(self):
        assert strip_string_quotes('"""Docs here."""') == "Docs here."
        assert strip_string_quotes("r'''raw'''") == "raw"
        assert strip_string_quotes("'x'") == "x"


class TestJsDoc:
    """JSDoc / Javadoc / PHPDoc tags."""

    def test_summary_and_tags(self):
        doc = parse_jsdoc(
            "/**\n"
            " * Adds numbers.\n"
            " *\n"
            " * Works on integers only.\n"
            " * @param {number} a - First operand\n"
            " * @param b Second operand\n"
            " * @returns {number} The sum\n"
            " * @throws {RangeError} On overflow\n"
            " * @deprecated Use plus()\n"
            " * @since 1.2\n"
            " */"
        )
        assert doc.summary == "Adds numbers."
        assert doc.description == "Adds numbers.\n\nWorks on integers only."
        assert doc.params == {"a": "First operand", "b": "Second operand"}
        assert doc.returns == "The sum"
        assert doc.throws == ["{RangeError} On overflow"]
        assert doc.deprecated == "Use plus()"
        assert doc.since == "1.2"

    def test_bare_deprecated(self):
        assert parse_jsdoc("/** @deprecated */").deprecated is True

    def test_optional_param_with_default(self):
        doc = parse_jsdoc("/** @param {string} [name=world] Who to greet */")
        assert doc.params == {"name": "Who to greet"}

    def test_phpdoc_param(self):
        doc = parse_jsdoc("/** @param string $name The name */")
        assert doc.params == {"name": "The name"}

    def test_unknown_tag_kept(self):
        doc = parse_jsdoc("/** Thing.\n * @internal for tests */")
        assert doc.tags == {"internal": "for tests"}

    def test_example_keeps_lines(self):
        doc = parse_jsdoc("/**\n * Run.\n * @example\n * run(1)\n * run(2)\n */")
        assert doc.examples == ["run(1)\nrun(2)"]


class TestPythonDocstrings:
    """Google, NumPy and reST docstrings."""

    def test_plain(self):
        doc = parse_docstring("Just a summary.")
        assert doc.summary == "Just a summary."
        assert doc.description is None

    def test_google(self):
        doc = parse_docstring(
            "Add two numbers.\n"
            "\n"
            "    Args:\n"
            "        a (int): First.\n"
            "        b: Second.\n"
            "\n"
            "    Returns:\n"
            "        Sum of both.\n"
            "\n"
            "    Raises:\n"
            "        ValueError: If bad.\n"
        )
        assert doc.summary == "Add two numbers."
        assert doc.params == {"a": "First.", "b": "Second."}
        assert doc.returns == "Sum of both."
        assert doc.throws == ["ValueError: If bad."]

    def test_numpy(self):
        doc = parse_docstring(
            "Compute.\n"
            "\n"
            "Parameters\n"
            "----------\n"
            "x : int\n"
            "    The value.\n"
            "\n"
            "Returns\n"
            "-------\n"
            "int\n"
            "    Result.\n"
        )
        assert doc.summary == "Compute."
        assert doc.params == {"x": "The value."}
        assert doc.returns == "Result."

    def test_rest(self):
        doc = parse_docstring(
            "Do it.\n"
            "\n"
            ":param int count: How many.\n"
            ":returns: Done.\n"
            ":raises ValueError: Bad.\n"
        )
        assert doc.summary == "Do it."
        assert doc.params == {"count": "How many."}
        assert doc.returns == "Done."
        assert doc.throws == ["ValueError: Bad."]


class TestOtherDocStyles:
    """C# XML docs and plain line comments."""

    def test_xml_doc(self):
        doc = parse_xml_doc([
            "<summary>",
            "Gets a user by <see cref=\"UserId\"/>.",
            "</summary>",
            '<param name="id">The id.</param>',
            "<returns>The user.</returns>",
        ])
        assert doc.summary == "Gets a user by UserId."
        assert doc.params == {"id": "The id."}
        assert doc.returns == "The user."

    def test_xml_doc_without_tags(self):
        doc = parse_xml_doc(["Plain text comment."])
        assert doc.summary == "Plain text comment."

    def test_plain_doc(self):
        doc = parse_plain_doc(["Does a thing.", "Deprecated: use other"])
        assert doc.summary == "Does a thing."
        assert doc.deprecated == "use other"

    def test_plain_doc_empty(self):
        assert parse_plain_doc(["", "  "]) is None
