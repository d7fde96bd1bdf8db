"""Clean Atlassian Document Format (ADF) bodies before writing them to a clone."""

from __future__ import annotations

import copy
from typing import Any, Final

# Smart links, embeds and mentions are rejected or broken in other projects
UNSUPPORTED_NODE_TYPES: Final[frozenset[str]] = frozenset({"inlineCard", "blockCard", "embedCard", "mention"})

# Kept as-is, the files themselves are handled by the attachment replicator
MEDIA_NODE_TYPES: Final[frozenset[str]] = frozenset({"media", "mediaSingle", "mediaGroup", "mediaInline"})

# Removed once it has no media left, it would render as an empty box
MEDIA_GROUP_TYPE: Final[str] = "mediaGroup"


def empty_document() -> dict[str, Any]:
    return {"type": "doc", "version": 1, "content": []}


def sanitize_document(doc: Any) -> dict[str, Any]:  # noqa: ANN401 - raw JSON from the tracker
    """Return a copy of an ADF document without the node types other projects cannot render.

    Nodes in UNSUPPORTED_NODE_TYPES are dropped with their whole subtree.
    Children are cleaned before their parent, so a mediaGroup that ends up
    empty is dropped too. Surviving nodes keep their order and depth.

    Args:
        doc: ADF document, or anything else read from the description field

    Returns:
        A new document. Input that is not a "doc" node gives an empty document.
    """
    if not isinstance(doc, dict) or doc.get("type") != "doc":
        return empty_document()

    cleaned = _copy_payload(doc)
    cleaned["content"] = _clean_children(doc.get("content"))
    cleaned.setdefault("version", 1)
    return cleaned


def _copy_payload(node: dict[str, Any]) -> dict[str, Any]:
    """Deep copy of everything but the children, which are rebuilt separately."""
    return {key: copy.deepcopy(value) for key, value in node.items() if key != "content"}


def _clean_children(children: Any) -> list[dict[str, Any]]:  # noqa: ANN401
    if not isinstance(children, list):
        return []

    result: list[dict[str, Any]] = []
    for child in children:
        node = _clean_node(child)
        if node is not None:
            result.append(node)
    return result


def _clean_node(node: Any) -> dict[str, Any] | None:  # noqa: ANN401
    if not isinstance(node, dict):
        return None

    node_type = node.get("type")
    if node_type in UNSUPPORTED_NODE_TYPES:
        return None

    cleaned = _copy_payload(node)
    if "content" in node:
        content = node["content"]
        cleaned["content"] = _clean_children(content) if isinstance(content, list) else copy.deepcopy(content)

    if node_type == MEDIA_GROUP_TYPE and not cleaned.get("content"):
        return None

    return cleaned


def contains_node_type(doc: Any, node_types: frozenset[str]) -> bool:  # noqa: ANN401
    """Check whether any node of the given types appears anywhere in the tree."""
    if isinstance(doc, list):
        return any(contains_node_type(child, node_types) for child in doc)
    if not isinstance(doc, dict):
        return False
    if doc.get("type") in node_types:
        return True
    return contains_node_type(doc.get("content"), node_types)
