"""Typed document tree for note content.

The tree mirrors the rich-text editor's JSON document: block nodes carry an
ordered tuple of children, ``Text`` carries a string and its inline marks.
Every node is a frozen dataclass, so two trees compare equal exactly when
they have the same shape.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Bold:
    pass


@dataclass(frozen=True)
class Italic:
    pass


@dataclass(frozen=True)
class Code:
    pass


@dataclass(frozen=True)
class Strike:
    pass


@dataclass(frozen=True)
class Link:
    href: str


Mark = Bold | Italic | Code | Strike | Link


@dataclass(frozen=True)
class Text:
    value: str
    marks: tuple[Mark, ...] = ()


@dataclass(frozen=True)
class HardBreak:
    pass


@dataclass(frozen=True)
class HorizontalRule:
    pass


@dataclass(frozen=True)
class Paragraph:
    content: tuple["Node", ...] = ()


@dataclass(frozen=True)
class Heading:
    level: int = 1
    content: tuple["Node", ...] = ()


@dataclass(frozen=True)
class BulletList:
    content: tuple["Node", ...] = ()


@dataclass(frozen=True)
class OrderedList:
    content: tuple["Node", ...] = ()


@dataclass(frozen=True)
class TaskList:
    content: tuple["Node", ...] = ()


@dataclass(frozen=True)
class ListItem:
    content: tuple["Node", ...] = ()


@dataclass(frozen=True)
class TaskItem:
    checked: bool = False
    content: tuple["Node", ...] = ()


@dataclass(frozen=True)
class CodeBlock:
    language: str | None = None
    content: tuple["Node", ...] = ()


@dataclass(frozen=True)
class Blockquote:
    content: tuple["Node", ...] = ()


@dataclass(frozen=True)
class Doc:
    content: tuple["Node", ...] = ()


@dataclass(frozen=True)
class Unknown:
    """A node kind this version does not know, kept so stored notes load."""

    kind: str
    content: tuple["Node", ...] = ()


Node = (
    Doc
    | Paragraph
    | Heading
    | BulletList
    | OrderedList
    | TaskList
    | ListItem
    | TaskItem
    | CodeBlock
    | Blockquote
    | HardBreak
    | HorizontalRule
    | Text
    | Unknown
)

EMPTY_DOC = Doc()

# Kinds whose only payload is their children.
_CONTAINERS: dict[str, type] = {
    "doc": Doc,
    "paragraph": Paragraph,
    "bulletList": BulletList,
    "orderedList": OrderedList,
    "taskList": TaskList,
    "listItem": ListItem,
    "blockquote": Blockquote,
}
_CONTAINER_KINDS: dict[type, str] = {cls: kind for kind, cls in _CONTAINERS.items()}


def _mark_to_dict(mark: Mark) -> dict[str, Any]:
    match mark:
        case Bold():
            return {"type": "bold"}
        case Italic():
            return {"type": "italic"}
        case Code():
            return {"type": "code"}
        case Strike():
            return {"type": "strike"}
        case Link(href=href):
            return {"type": "link", "attrs": {"href": href}}


def _mark_from_dict(data: dict[str, Any]) -> Mark | None:
    match data.get("type"):
        case "bold":
            return Bold()
        case "italic":
            return Italic()
        case "code":
            return Code()
        case "strike":
            return Strike()
        case "link":
            return Link(href=(data.get("attrs") or {}).get("href") or "")
    return None


def node_to_dict(node: Node) -> dict[str, Any]:
    """Convert a node to the editor's JSON shape."""
    match node:
        case Text(value=value, marks=marks):
            out: dict[str, Any] = {"type": "text", "text": value}
            if marks:
                out["marks"] = [_mark_to_dict(m) for m in marks]
            return out
        case HardBreak():
            return {"type": "hardBreak"}
        case HorizontalRule():
            return {"type": "horizontalRule"}
        case Heading(level=level, content=content):
            out = {"type": "heading", "attrs": {"level": level}}
        case TaskItem(checked=checked, content=content):
            out = {"type": "taskItem", "attrs": {"checked": checked}}
        case CodeBlock(language=language, content=content):
            out = {"type": "codeBlock", "attrs": {"language": language} if language else {}}
        case Unknown(kind=kind, content=content):
            out = {"type": kind}
        case _:
            content = node.content
            out = {"type": _CONTAINER_KINDS[type(node)]}
    if content:
        out["content"] = [node_to_dict(child) for child in content]
    return out


def node_from_dict(data: dict[str, Any]) -> Node:
    """Build a node from the editor's JSON shape.

    Unknown kinds load as ``Unknown`` nodes, unknown marks are dropped.
    """
    kind = data.get("type", "")
    attrs = data.get("attrs") or {}
    children = tuple(node_from_dict(child) for child in data.get("content") or ())

    if kind == "text":
        marks = (_mark_from_dict(m) for m in data.get("marks") or ())
        return Text(value=data.get("text") or "", marks=tuple(m for m in marks if m is not None))
    if kind == "hardBreak":
        return HardBreak()
    if kind == "horizontalRule":
        return HorizontalRule()
    if kind == "heading":
        level = min(max(int(attrs.get("level") or 1), 1), 6)
        return Heading(level=level, content=children)
    if kind == "taskItem":
        return TaskItem(checked=bool(attrs.get("checked")), content=children)
    if kind == "codeBlock":
        return CodeBlock(language=attrs.get("language") or None, content=children)
    if kind in _CONTAINERS:
        return _CONTAINERS[kind](content=children)  # type: ignore[no-any-return]
    return Unknown(kind=kind, content=children)


def document_from_dict(data: dict[str, Any] | None) -> Doc:
    """Load a stored document. A bare node is wrapped in a ``doc``."""
    if not data:
        return EMPTY_DOC
    node = node_from_dict(data)
    if not isinstance(node, Doc):
        return Doc(content=(node,))
    return node
