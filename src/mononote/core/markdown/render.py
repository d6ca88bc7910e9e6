"""Render document trees as markdown."""

from typing import assert_never

from mononote.models.document import (
    Blockquote,
    Bold,
    BulletList,
    Code,
    CodeBlock,
    Doc,
    HardBreak,
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
    Unknown,
)

# Continuation lines of a list item are indented this much past its marker line.
_ITEM_INDENT = "  "


def document_to_markdown(doc: Doc) -> str:
    """Render a document as markdown.

    Top-level blocks are joined with a single newline, so an empty paragraph
    shows up as a blank line.
    """
    return "\n".join(render_block(node) for node in doc.content).strip()


def render_block(node: Node) -> str:
    """Render one node and its children."""
    match node:
        case Paragraph(content=content):
            text = render_inline(content)
            return text if text.strip() else ""
        case Heading(level=level, content=content):
            return "#" * level + " " + render_inline(content)
        case BulletList(content=items):
            return "\n".join(_render_item(item, "-") for item in items)
        case OrderedList(content=items):
            return "\n".join(_render_item(item, f"{n}.") for n, item in enumerate(items, start=1))
        case TaskList(content=items):
            return "\n".join(_render_item(item, "-") for item in items)
        case ListItem() | TaskItem():
            return _render_item(node, "-")
        case CodeBlock(language=language, content=content):
            code = "".join(child.value for child in content if isinstance(child, Text))
            return f"```{language or ''}\n{code}\n```"
        case Blockquote(content=content):
            lines = "\n".join(render_block(child) for child in content).split("\n")
            return "\n".join("> " + line for line in lines)
        case HardBreak():
            return "  \n"
        case HorizontalRule():
            return "---"
        case Text():
            return render_inline((node,))
        case Doc(content=content):
            return "\n".join(render_block(child) for child in content)
        case Unknown(content=content):
            return "".join(render_block(child) for child in content)
        case _:
            assert_never(node)


def _render_item(item: Node, marker: str) -> str:
    if isinstance(item, TaskItem):
        marker = "- [x]" if item.checked else "- [ ]"
    children = getattr(item, "content", ())
    body = "\n".join(render_block(child) for child in children)

    first, *rest = body.split("\n")
    lines = [f"{marker} {first}"]
    lines.extend(_ITEM_INDENT + line if line else "" for line in rest)
    return "\n".join(lines)


def render_inline(content: tuple[Node, ...]) -> str:
    """Render a run of inline nodes, applying each text node's marks in order."""
    parts: list[str] = []
    for node in content:
        if isinstance(node, Text):
            text = node.value
            for mark in node.marks:
                text = _apply_mark(text, mark)
            parts.append(text)
        else:
            parts.append(render_block(node))
    return "".join(parts)


def _apply_mark(text: str, mark: Mark) -> str:
    match mark:
        case Code():
            return f"`{text}`"
        case Italic():
            return f"*{text}*"
        case Bold():
            return f"**{text}**"
        case Strike():
            return f"~~{text}~~"
        case Link(href=href):
            return f"[{text}]({href})"
        case _:
            assert_never(mark)
