"""Parse markdown text into document trees.

The parser is a single pass over lines with one construct of lookahead. It
never raises: anything it does not recognise becomes a paragraph.
"""

import re

from mononote.models.document import (
    Blockquote,
    Bold,
    BulletList,
    Code,
    CodeBlock,
    Doc,
    Heading,
    HorizontalRule,
    Italic,
    Link,
    ListItem,
    Mark,
    Node,
    OrderedList,
    Paragraph,
    Strike,
    TaskItem,
    TaskList,
    Text,
)

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
_FENCE_OPEN_RE = re.compile(r"^```(\w*)$")
_FENCE_CLOSE_RE = re.compile(r"^```$")
_TASK_RE = re.compile(r"^(\s*)- \[([ x])\]\s*(.*)$")
_BULLET_RE = re.compile(r"^(\s*)[-*+]\s+(.*)$")
_ORDERED_RE = re.compile(r"^(\s*)\d+\.\s+(.*)$")
_RULE_RE = re.compile(r"^(-{3,}|\*{3,}|_{3,})\s*$")
_QUOTE_PREFIX = "> "

# List kinds in the order nested content is tried.
_LIST_PATTERNS: dict[str, re.Pattern[str]] = {
    "task": _TASK_RE,
    "bullet": _BULLET_RE,
    "ordered": _ORDERED_RE,
}

# Inline patterns in priority order: an earlier pattern wins an overlap.
_INLINE_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\*\*([^*]+)\*\*"), "bold"),
    (re.compile(r"\*([^*]+)\*"), "italic"),
    (re.compile(r"`([^`]+)`"), "code"),
    (re.compile(r"~~([^~]+)~~"), "strike"),
    (re.compile(r"\[([^\]]+)\]\(([^)]+)\)"), "link"),
)


def markdown_to_document(markdown: str) -> Doc:
    """Parse markdown into a document. Total over all strings."""
    if not isinstance(markdown, str):
        markdown = ""
    lines = markdown.replace("\r\n", "\n").split("\n")
    return Doc(content=tuple(_parse_blocks(lines)))


def _parse_blocks(lines: list[str]) -> list[Node]:
    blocks: list[Node] = []
    i = 0
    while i < len(lines):
        line = lines[i]

        if not line.strip():
            blocks.append(Paragraph())
            i += 1
            continue

        heading = _HEADING_RE.match(line)
        if heading:
            blocks.append(
                Heading(level=len(heading.group(1)), content=parse_inline(heading.group(2)))
            )
            i += 1
            continue

        fence = _FENCE_OPEN_RE.match(line)
        if fence:
            code_block, i = _parse_code_block(lines, i, language=fence.group(1) or None)
            blocks.append(code_block)
            continue

        kind = _list_kind(line)
        if kind is not None:
            node, i = _parse_list(lines, i, kind)
            blocks.append(node)
            continue

        if line.startswith(_QUOTE_PREFIX):
            quoted: list[str] = []
            while i < len(lines) and lines[i].startswith(_QUOTE_PREFIX):
                quoted.append(lines[i][len(_QUOTE_PREFIX) :])
                i += 1
            blocks.append(Blockquote(content=tuple(_parse_blocks(quoted))))
            continue

        if _RULE_RE.match(line):
            blocks.append(HorizontalRule())
            i += 1
            continue

        blocks.append(Paragraph(content=parse_inline(line)))
        i += 1

    return blocks


def _parse_code_block(lines: list[str], start: int, *, language: str | None) -> tuple[Node, int]:
    """Collect lines up to the closing fence, which is consumed.

    An unterminated fence runs to the end of the input.
    """
    body: list[str] = []
    i = start + 1
    while i < len(lines) and not _FENCE_CLOSE_RE.match(lines[i]):
        body.append(lines[i])
        i += 1
    code = "\n".join(body)
    return CodeBlock(language=language, content=(Text(code),) if code else ()), i + 1


def _list_kind(line: str) -> str | None:
    for kind, pattern in _LIST_PATTERNS.items():
        if pattern.match(line):
            return kind
    return None


def _indent(match: re.Match[str]) -> int:
    return len(match.group(1))


def _item_match(line: str, kind: str, base_indent: int) -> re.Match[str] | None:
    """Match line as another item of a ``kind`` list at ``base_indent``."""
    match = _LIST_PATTERNS[kind].match(line)
    if match is None or _indent(match) != base_indent:
        return None
    # "- [ ] x" also looks like a bullet; it starts a task list instead.
    if kind == "bullet" and _TASK_RE.match(line):
        return None
    return match


def _nested_kind(line: str, base_indent: int) -> str | None:
    for kind, pattern in _LIST_PATTERNS.items():
        match = pattern.match(line)
        if match and _indent(match) > base_indent:
            return kind
    return None


def _parse_list(lines: list[str], start: int, kind: str) -> tuple[Node, int]:
    """Parse a list whose first item is ``lines[start]``.

    The first item's indentation is the list's base indent. Lines indented
    deeper than the base are nested lists of the preceding item. Blank lines
    do not end the list when nested content or another item follows them;
    otherwise they are left for the block parser.
    """
    first = _LIST_PATTERNS[kind].match(lines[start])
    base_indent = _indent(first) if first else 0

    items: list[Node] = []
    i = start
    while i < len(lines):
        match = _item_match(lines[i], kind, base_indent)
        if match is None:
            break
        i += 1

        text = match.group(3) if kind == "task" else match.group(2)
        children: list[Node] = [Paragraph(content=parse_inline(text))]
        j = i
        while j < len(lines):
            if not lines[j].strip():
                j += 1
                continue
            nested = _nested_kind(lines[j], base_indent)
            if nested is None:
                break
            node, j = _parse_list(lines, j, nested)
            children.append(node)
            i = j
        if j < len(lines) and _item_match(lines[j], kind, base_indent):
            i = j

        if kind == "task":
            items.append(TaskItem(checked=match.group(2) == "x", content=tuple(children)))
        else:
            items.append(ListItem(content=tuple(children)))

    if kind == "task":
        return TaskList(content=tuple(items)), i
    if kind == "bullet":
        return BulletList(content=tuple(items)), i
    return OrderedList(content=tuple(items)), i


def _make_mark(name: str, match: re.Match[str]) -> Mark:
    if name == "bold":
        return Bold()
    if name == "italic":
        return Italic()
    if name == "code":
        return Code()
    if name == "strike":
        return Strike()
    return Link(href=match.group(2))


def parse_inline(text: str) -> tuple[Node, ...]:
    """Split a line into plain and marked text runs.

    All five patterns are matched over the whole line first; a match that
    overlaps one found earlier is dropped, then the survivors are emitted
    left to right with the plain text between them.
    """
    if not text.strip():
        return ()

    found: list[tuple[int, int, str, Mark]] = []
    for pattern, name in _INLINE_PATTERNS:
        for match in pattern.finditer(text):
            start, end = match.span()
            if any(start < f_end and end > f_start for f_start, f_end, _, _ in found):
                continue
            found.append((start, end, match.group(1), _make_mark(name, match)))
    found.sort(key=lambda f: f[0])

    nodes: list[Node] = []
    position = 0
    for start, end, inner, mark in found:
        if start > position:
            nodes.append(Text(text[position:start]))
        nodes.append(Text(inner, marks=(mark,)))
        position = end
    if position < len(text):
        nodes.append(Text(text[position:]))
    return tuple(nodes)
