"""Flatten Atlassian Document Format (ADF) trees into display text."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from .config import ADF_BLOCK_NODE_TYPES, ADF_LIST_ITEM_PREFIX


class NodeKind(Enum):
    TEXT = "text"
    BLOCK = "block"
    LIST_ITEM = "listItem"
    UNKNOWN = "unknown"


def classify_node(node_type: str | None) -> NodeKind:
    if node_type == "text":
        return NodeKind.TEXT
    if node_type == "listItem":
        return NodeKind.LIST_ITEM
    if node_type in ADF_BLOCK_NODE_TYPES:
        return NodeKind.BLOCK
    return NodeKind.UNKNOWN


def extract_adf_text(document: Any) -> str:
    """Extract plain text from an ADF document.

    Block-level nodes (paragraphs, headings, lists, list items, code blocks,
    quotes) start on a new line, list items are prefixed with ``"- "`` and
    text leaves are copied verbatim. Nodes of unknown type contribute nothing
    themselves but their children are still visited.

    Parameters
    ----------
    document : dict, list, str or None
        Parsed ADF tree. A string is parsed when it looks like serialized
        ADF JSON and is otherwise returned unchanged as already-plain text.

    Returns
    -------
    str
        Concatenated text of the document.

    Examples
    --------
    >>> extract_adf_text({"type": "doc", "content": [
    ...     {"type": "paragraph", "content": [{"type": "text", "text": "Hello"}]},
    ...     {"type": "paragraph", "content": [{"type": "text", "text": "World"}]},
    ... ]})
    'Hello\\nWorld'
    """
    if document is None:
        return ""
    if isinstance(document, str):
        stripped = document.strip()
        if not (stripped.startswith("{") and '"type"' in stripped):
            return document
        try:
            document = json.loads(stripped)
        except (json.JSONDecodeError, ValueError):
            return document
    parts: list[str] = []
    _collect(document, parts)
    return "".join(parts)


def _collect(node: Any, parts: list[str]) -> None:
    if isinstance(node, list):
        for item in node:
            _collect(item, parts)
        return
    if not isinstance(node, dict):
        return

    kind = classify_node(node.get("type"))
    if kind in (NodeKind.BLOCK, NodeKind.LIST_ITEM):
        _open_block(parts)
    if kind is NodeKind.LIST_ITEM:
        parts.append(ADF_LIST_ITEM_PREFIX)
    if kind is NodeKind.TEXT:
        text = node.get("text")
        if isinstance(text, str) and text:
            parts.append(text)

    content = node.get("content")
    if content is not None:
        _collect(content, parts)


def _open_block(parts: list[str]) -> None:
    # Only separate from preceding output, never double up or lead with "\n"
    if parts and not parts[-1].endswith("\n"):
        parts.append("\n")
