"""
Documentation Comment Parsing

Turns raw doc comments into DocComment objects. Extractors locate the comment
text; these helpers only interpret it.

Supported conventions:
- JSDoc / Javadoc / PHPDoc block comments with @tags
- YARD-style @tags in Ruby hash comments
- Python docstrings: Google, NumPy and reST sections (tried in that order)
- C# XML documentation (<summary>, <param>, <returns>)
- Plain line comments (Go, Rust, shell)
"""

import inspect
import re
from typing import Optional

from repolens.ast.models import DocComment

# Tag name + remainder, e.g. "@param {string} name - The name"
_TAG_RE = re.compile(r"^@(\w+)\s*(.*)$")

_GOOGLE_SECTION_RE = re.compile(
    r"^(Args|Arguments|Parameters|Params|Keyword Args|Keyword Arguments|Returns|Return|"
    r"Yields|Yield|Raises|Throws|Examples?|Notes?|Attributes|See Also|Todo|Warnings?)\s*:\s*$"
)
_NUMPY_SECTION_RE = re.compile(r"^(\w[\w ]*)\s*\n\s*-{3,}\s*$", re.MULTILINE)
_REST_FIELD_RE = re.compile(r"^:(\w+)(?:\s+([^:]+))?:\s*(.*)$")


# =============================================================================
# Comment cleanup
# =============================================================================


def clean_block_comment(text: str) -> list[str]:
    """
    Strip /** */ delimiters and leading asterisks from a block comment.

    Returns:
        Comment body lines (leading/trailing blank lines removed)
    """
    body = text.strip()
    body = re.sub(r"^/\*+!?", "", body)
    body = re.sub(r"\*+/$", "", body)

    lines = []
    for line in body.splitlines():
        line = line.strip()
        if line.startswith("*"):
            line = line[1:]
            if line.startswith(" "):
                line = line[1:]
        lines.append(line.rstrip())

    return _trim_blank(lines)


def clean_line_comments(comments: list[str], marker: str) -> list[str]:
    """
    Strip a line-comment marker ("//", "///", "#", "--") from each line.

    Lines that don't start with the marker are kept as-is.
    """
    lines = []
    for comment in comments:
        line = comment.strip()
        if line.startswith(marker):
            line = line[len(marker):]
            if line.startswith(" "):
                line = line[1:]
        lines.append(line.rstrip())
    return _trim_blank(lines)


def _trim_blank(lines: list[str]) -> list[str]:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


def _summary_and_description(lines: list[str]) -> tuple[str, Optional[str]]:
    """First non-blank line is the summary; the whole text is the description if longer."""
    lines = _trim_blank(lines)
    if not lines:
        return "", None
    summary = lines[0].strip()
    if len(lines) > 1:
        return summary, "\n".join(lines).strip()
    return summary, None


# =============================================================================
# Tagged comments (JSDoc, Javadoc, PHPDoc, YARD)
# =============================================================================


def _strip_type(text: str) -> tuple[Optional[str], str]:
    """Remove a leading {Type} or [Type] group, returning (type, rest)."""
    text = text.strip()
    if text and text[0] in "{[":
        closing = "}" if text[0] == "{" else "]"
        depth = 0
        for i, ch in enumerate(text):
            if ch == text[0]:
                depth += 1
            elif ch == closing:
                depth -= 1
                if depth == 0:
                    return text[1:i].strip(), text[i + 1:].strip()
    return None, text


def _parse_param_tag(rest: str) -> Optional[tuple[str, str]]:
    """
    Parse the remainder of an @param tag into (name, description).

    Handles:
        {Type} name - desc          (JSDoc)
        {Type} [name=default] desc  (JSDoc optional)
        name desc                   (Javadoc)
        Type $name desc             (PHPDoc)
        name [Type] desc            (YARD)
        [Type] name desc            (YARD)
    """
    _, rest = _strip_type(rest)
    tokens = rest.split(None, 1)
    if not tokens:
        return None

    name = tokens[0]
    desc = tokens[1] if len(tokens) > 1 else ""

    # PHPDoc: "Type $name desc"
    if not name.startswith("$") and desc.startswith("$"):
        tokens = desc.split(None, 1)
        name = tokens[0]
        desc = tokens[1] if len(tokens) > 1 else ""

    # YARD: "name [Type] desc"
    _, desc = _strip_type(desc)

    if name.startswith("[") and name.endswith("]"):
        name = name[1:-1]
    name = name.split("=", 1)[0].lstrip("$").strip()
    desc = desc.strip()
    if desc.startswith("-"):
        desc = desc[1:].strip()
    return name, desc


def parse_tagged_doc(lines: list[str]) -> DocComment:
    """
    Parse cleaned comment lines containing @tags.

    Text before the first tag is the summary/description.
    """
    body_lines: list[str] = []
    tags: list[tuple[str, list[str]]] = []

    for line in lines:
        match = _TAG_RE.match(line.strip())
        if match:
            tags.append((match.group(1), [match.group(2)]))
        elif tags:
            tags[-1][1].append(line)
        else:
            body_lines.append(line)

    summary, description = _summary_and_description(body_lines)
    doc = DocComment(summary=summary, description=description)

    for name, value_lines in tags:
        # @example keeps its line structure; other tags are collapsed
        if name == "example":
            doc.examples.append("\n".join(_trim_blank(value_lines)))
            continue

        value = " ".join(v.strip() for v in value_lines if v.strip())

        if name in ("param", "arg", "argument"):
            parsed = _parse_param_tag(value)
            if parsed:
                doc.params[parsed[0]] = parsed[1]
        elif name in ("returns", "return"):
            _, value = _strip_type(value)
            doc.returns = value
        elif name in ("throws", "throw", "exception", "raise"):
            doc.throws.append(value)
        elif name == "deprecated":
            doc.deprecated = value or True
        elif name == "since":
            doc.since = value
        elif name == "see":
            doc.see.append(value)
        else:
            doc.tags[name] = value

    return doc


def parse_jsdoc(text: str) -> DocComment:
    """Parse a /** ... */ block (JSDoc, Javadoc, PHPDoc)."""
    return parse_tagged_doc(clean_block_comment(text))


def is_doc_block(text: str) -> bool:
    """True for /** ... */ comments (but not /**/)."""
    return text.startswith("/**") and not text.startswith("/**/")


# =============================================================================
# Python docstrings
# =============================================================================


def strip_string_quotes(text: str) -> str:
    """Remove string prefixes (r, b, u, f) and surrounding quotes."""
    text = text.strip()
    text = re.sub(r"^[rRbBuUfF]{0,2}", "", text)
    for quote in ('"""', "'''", '"', "'"):
        if text.startswith(quote) and text.endswith(quote) and len(text) >= 2 * len(quote):
            return text[len(quote):-len(quote)]
    return text


def parse_docstring(text: str) -> DocComment:
    """
    Parse a Python docstring body (quotes already removed).

    Google-style sections are tried first, then NumPy, then reST.
    The first style that matches wins.
    """
    cleaned = inspect.cleandoc(text)
    lines = cleaned.splitlines()

    if any(_GOOGLE_SECTION_RE.match(line.strip()) for line in lines):
        return _parse_google(lines)
    if _NUMPY_SECTION_RE.search(cleaned):
        return _parse_numpy(lines)
    if any(_REST_FIELD_RE.match(line.strip()) for line in lines):
        return _parse_rest(lines)

    summary, description = _summary_and_description(lines)
    return DocComment(summary=summary, description=description)


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


def _split_entries(lines: list[str]) -> list[tuple[str, list[str]]]:
    """
    Group section lines into entries: each line at the section's base
    indentation starts an entry; deeper lines continue it.
    """
    content = [line for line in lines if line.strip()]
    if not content:
        return []
    base = min(_indent(line) for line in content)

    entries: list[tuple[str, list[str]]] = []
    for line in lines:
        if not line.strip():
            continue
        if _indent(line) <= base or not entries:
            entries.append((line.strip(), []))
        else:
            entries[-1][1].append(line.strip())
    return entries


def _apply_section(doc: DocComment, section: str, lines: list[str], style: str) -> None:
    section = section.lower()

    if section in ("args", "arguments", "parameters", "params",
                   "keyword args", "keyword arguments", "other parameters"):
        for head, rest in _split_entries(lines):
            if style == "numpy":
                name = head.split(":", 1)[0].strip()
                desc = " ".join(rest)
            else:
                name_part, _, desc = head.partition(":")
                name = name_part.split("(", 1)[0].strip()
                desc = " ".join([desc.strip()] + rest).strip()
            name = name.lstrip("*")
            if name:
                doc.params[name] = desc
    elif section in ("returns", "return", "yields", "yield"):
        if style == "numpy":
            entries = _split_entries(lines)
            text = " ".join(" ".join(rest) or head for head, rest in entries)
        else:
            text = " ".join(line.strip() for line in lines if line.strip())
        doc.returns = text or None
    elif section in ("raises", "throws"):
        for head, rest in _split_entries(lines):
            doc.throws.append(" ".join([head] + rest))
    elif section in ("example", "examples"):
        body = "\n".join(_trim_blank([line for line in lines]))
        if body.strip():
            doc.examples.append(inspect.cleandoc(body))
    elif section in ("see also",):
        doc.see.extend(line.strip() for line in lines if line.strip())
    else:
        text = " ".join(line.strip() for line in lines if line.strip())
        if text:
            doc.tags[section.replace(" ", "_")] = text


def _parse_google(lines: list[str]) -> DocComment:
    body: list[str] = []
    sections: list[tuple[str, list[str]]] = []

    for line in lines:
        match = _GOOGLE_SECTION_RE.match(line.strip())
        if match and _indent(line) == 0:
            sections.append((match.group(1), []))
        elif sections:
            sections[-1][1].append(line)
        else:
            body.append(line)

    summary, description = _summary_and_description(body)
    doc = DocComment(summary=summary, description=description)
    for name, section_lines in sections:
        _apply_section(doc, name, section_lines, "google")
    return doc


def _parse_numpy(lines: list[str]) -> DocComment:
    body: list[str] = []
    sections: list[tuple[str, list[str]]] = []

    i = 0
    while i < len(lines):
        line = lines[i]
        next_line = lines[i + 1] if i + 1 < len(lines) else ""
        if line.strip() and re.match(r"^\s*-{3,}\s*$", next_line):
            sections.append((line.strip(), []))
            i += 2
            continue
        if sections:
            sections[-1][1].append(line)
        else:
            body.append(line)
        i += 1

    summary, description = _summary_and_description(body)
    doc = DocComment(summary=summary, description=description)
    for name, section_lines in sections:
        _apply_section(doc, name, section_lines, "numpy")
    return doc


def _parse_rest(lines: list[str]) -> DocComment:
    body: list[str] = []
    fields: list[tuple[str, Optional[str], list[str]]] = []

    for line in lines:
        match = _REST_FIELD_RE.match(line.strip())
        if match:
            fields.append((match.group(1), match.group(2), [match.group(3)]))
        elif fields and line.strip():
            fields[-1][2].append(line.strip())
        elif not fields:
            body.append(line)

    summary, description = _summary_and_description(body)
    doc = DocComment(summary=summary, description=description)

    for name, arg, value_lines in fields:
        value = " ".join(v for v in value_lines if v).strip()
        if name in ("param", "parameter", "arg", "argument", "key", "keyword"):
            if arg:
                # ":param int count:" -> name is the last word
                doc.params[arg.split()[-1]] = value
        elif name in ("returns", "return"):
            doc.returns = value
        elif name in ("raises", "raise", "except", "exception"):
            doc.throws.append(f"{arg}: {value}" if arg else value)
        elif name in ("type", "rtype"):
            continue
        elif name == "deprecated":
            doc.deprecated = value or True
        else:
            doc.tags[name] = value

    return doc


# =============================================================================
# C# XML documentation
# =============================================================================


def _xml_text(fragment: str) -> str:
    """Flatten an XML doc fragment into plain text."""
    # <see cref="Foo"/> -> Foo
    fragment = re.sub(r'<(?:see|seealso|paramref|typeparamref)\s+\w+="([^"]*)"\s*/>', r"\1", fragment)
    fragment = re.sub(r"<[^>]+>", "", fragment)
    return re.sub(r"\s+", " ", fragment).strip()


def parse_xml_doc(lines: list[str]) -> DocComment:
    """
    Parse C# /// XML documentation.

    Args:
        lines: Comment lines with the /// marker already removed
    """
    text = "\n".join(lines)
    doc = DocComment()

    summary_match = re.search(r"<summary>(.*?)</summary>", text, re.DOTALL)
    if summary_match:
        summary_text = _xml_text(summary_match.group(1))
        doc.summary = summary_text
    elif "<" not in text:
        doc.summary, doc.description = _summary_and_description(lines)

    remarks = re.search(r"<remarks>(.*?)</remarks>", text, re.DOTALL)
    if remarks:
        doc.description = _xml_text(remarks.group(1))

    for name, desc in re.findall(r'<param\s+name="([^"]+)"\s*>(.*?)</param>', text, re.DOTALL):
        doc.params[name] = _xml_text(desc)

    returns = re.search(r"<returns>(.*?)</returns>", text, re.DOTALL)
    if returns:
        doc.returns = _xml_text(returns.group(1))

    for cref, desc in re.findall(r'<exception\s+cref="([^"]+)"\s*>(.*?)</exception>', text, re.DOTALL):
        doc.throws.append(f"{cref}: {_xml_text(desc)}")

    for example in re.findall(r"<example>(.*?)</example>", text, re.DOTALL):
        doc.examples.append(example.strip())

    return doc


# =============================================================================
# Plain line comments
# =============================================================================


def parse_plain_doc(lines: list[str]) -> Optional[DocComment]:
    """Summary/description from untagged comment lines; None if empty."""
    summary, description = _summary_and_description(lines)
    if not summary:
        return None
    doc = DocComment(summary=summary, description=description)
    deprecated = [line for line in lines if line.strip().lower().startswith("deprecated:")]
    if deprecated:
        doc.deprecated = deprecated[0].split(":", 1)[1].strip() or True
    return doc
