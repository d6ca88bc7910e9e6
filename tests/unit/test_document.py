"""Tests for the document tree and its JSON form."""

from mononote.models.document import (
    EMPTY_DOC,
    Bold,
    BulletList,
    CodeBlock,
    Doc,
    Heading,
    Link,
    ListItem,
    Paragraph,
    TaskItem,
    TaskList,
    Text,
    Unknown,
    document_from_dict,
    node_from_dict,
    node_to_dict,
)


def test_node_to_dict_uses_editor_json_shape() -> None:
    doc = Doc(
        content=(
            Heading(level=2, content=(Text("Title"),)),
            Paragraph(content=(Text("a "), Text("b", marks=(Bold(),)))),
        )
    )
    assert node_to_dict(doc) == {
        "type": "doc",
        "content": [
            {"type": "heading", "attrs": {"level": 2}, "content": [{"type": "text", "text": "Title"}]},
            {
                "type": "paragraph",
                "content": [
                    {"type": "text", "text": "a "},
                    {"type": "text", "text": "b", "marks": [{"type": "bold"}]},
                ],
            },
        ],
    }


def test_empty_container_has_no_content_key() -> None:
    assert node_to_dict(Paragraph()) == {"type": "paragraph"}


def test_node_from_dict_reads_task_and_link_attrs() -> None:
    data = {
        "type": "taskList",
        "content": [
            {
                "type": "taskItem",
                "attrs": {"checked": True},
                "content": [
                    {
                        "type": "paragraph",
                        "content": [
                            {
                                "type": "text",
                                "text": "site",
                                "marks": [{"type": "link", "attrs": {"href": "https://x.org"}}],
                            }
                        ],
                    }
                ],
            }
        ],
    }
    assert node_from_dict(data) == TaskList(
        content=(
            TaskItem(
                checked=True,
                content=(Paragraph(content=(Text("site", marks=(Link("https://x.org"),)),)),),
            ),
        )
    )


def test_unknown_kind_is_kept_and_unknown_mark_dropped() -> None:
    data = {
        "type": "doc",
        "content": [
            {
                "type": "callout",
                "content": [{"type": "text", "text": "hi", "marks": [{"type": "highlight"}]}],
            }
        ],
    }
    doc = document_from_dict(data)
    assert doc == Doc(content=(Unknown(kind="callout", content=(Text("hi"),)),))
    assert node_to_dict(doc)["content"][0]["type"] == "callout"


def test_heading_level_is_clamped() -> None:
    assert node_from_dict({"type": "heading", "attrs": {"level": 9}}) == Heading(level=6)


def test_code_block_without_language() -> None:
    node = node_from_dict({"type": "codeBlock", "content": [{"type": "text", "text": "x = 1"}]})
    assert node == CodeBlock(language=None, content=(Text("x = 1"),))
    assert node_to_dict(node) == {
        "type": "codeBlock",
        "attrs": {},
        "content": [{"type": "text", "text": "x = 1"}],
    }


def test_document_from_dict_handles_empty_and_bare_nodes() -> None:
    assert document_from_dict(None) == EMPTY_DOC
    assert document_from_dict({}) == EMPTY_DOC
    bare = {"type": "bulletList", "content": [{"type": "listItem"}]}
    assert document_from_dict(bare) == Doc(content=(BulletList(content=(ListItem(),)),))
