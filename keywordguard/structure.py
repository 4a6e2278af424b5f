"""
Structured Output — Tagged Union and Flattening

The generative extraction step returns an arbitrarily nested composite of
strings, ordered sequences and key/value maps. It is modeled here as an
explicit tagged union:

    StructuredNode = TextNode | SequenceNode | MappingNode

build_node() converts raw Python values into that union, dropping
non-text scalars (numbers, booleans, None). Construction is depth bounded:
anything nested deeper than max_depth is skipped silently. A container
that is its own ancestor is skipped as well, so a self-reference
ends its branch instead of recursing to max_depth.

flatten() runs a visitor over the union and space-joins every text leaf,
producing the "post-extraction" text the validator re-scans.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from keywordguard.config import settings

MAX_DEPTH = settings.MAX_DEPTH


@dataclass(frozen=True)
class TextNode:
    value: str


@dataclass(frozen=True)
class SequenceNode:
    items: tuple["StructuredNode", ...]


@dataclass(frozen=True)
class MappingNode:
    entries: tuple[tuple[str, "StructuredNode"], ...]


StructuredNode = Union[TextNode, SequenceNode, MappingNode]


def build_node(
    value: Any, max_depth: int = MAX_DEPTH, _depth: int = 0,
    _path: Optional[set[int]] = None,
) -> Optional[StructuredNode]:
    """Convert a raw value into a StructuredNode. None if it carries no text."""
    if _depth > max_depth:
        return None

    if isinstance(value, str):
        return TextNode(value)

    if not isinstance(value, (Mapping, list, tuple)):
        return None

    # Containers on the current path are ancestors; revisiting one is a cycle
    if _path is None:
        _path = set()
    if id(value) in _path:
        return None
    _path.add(id(value))
    try:
        if isinstance(value, Mapping):
            entries = []
            for key, child in value.items():
                node = build_node(child, max_depth, _depth + 1, _path)
                if node is not None:
                    entries.append((str(key), node))
            return MappingNode(tuple(entries))

        items = []
        for child in value:
            node = build_node(child, max_depth, _depth + 1, _path)
            if node is not None:
                items.append(node)
        return SequenceNode(tuple(items))
    finally:
        _path.discard(id(value))


class TextCollector:
    """Visitor that gathers text leaves in document order."""

    def __init__(self):
        self.parts: list[str] = []

    def visit(self, node: StructuredNode) -> None:
        if isinstance(node, TextNode):
            self.visit_text(node)
        elif isinstance(node, SequenceNode):
            self.visit_sequence(node)
        elif isinstance(node, MappingNode):
            self.visit_mapping(node)

    def visit_text(self, node: TextNode) -> None:
        self.parts.append(node.value)

    def visit_sequence(self, node: SequenceNode) -> None:
        for item in node.items:
            self.visit(item)

    def visit_mapping(self, node: MappingNode) -> None:
        for _, child in node.entries:
            self.visit(child)


def flatten(value: Any, max_depth: int = MAX_DEPTH) -> str:
    """Space-join every string reachable within max_depth levels of `value`."""
    node = build_node(value, max_depth)
    if node is None:
        return ""
    collector = TextCollector()
    collector.visit(node)
    return " ".join(collector.parts)
