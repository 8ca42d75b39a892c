"""Segment trie mapping topic patterns to the listener ids registered there."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from ..constants import DEFAULT_DELIMITER, WILDCARD_ALL, WILDCARD_ONE
from .errors import InvalidDelimiterError


@dataclass(eq=False)
class TopicNode:
    """One path segment. Holds listeners registered exactly here plus children."""

    # Used as an ordered set: iteration follows registration order.
    listener_ids: Dict[int, None] = field(default_factory=dict)
    children: Dict[str, "TopicNode"] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.listener_ids and not self.children

    def subtree_ids(self) -> List[int]:
        ids: List[int] = []
        stack = [self]
        while stack:
            node = stack.pop()
            ids.extend(node.listener_ids)
            stack.extend(node.children.values())
        return ids


class TopicTrie:
    """Tree of topic segments with ``*`` and ``**`` wildcard children.

    ``*`` matches exactly one segment. ``**`` matches whatever remains of the
    topic (including nothing) and ends structural matching there, so
    ``a.**.c`` behaves exactly like ``a.**``. Listeners fire at every node the
    walk passes through, so a pattern also hears topics that extend it
    (``a.b`` receives ``a.b.c``).
    """

    def __init__(self, delimiter: str = DEFAULT_DELIMITER) -> None:
        if not isinstance(delimiter, str) or not delimiter:
            raise InvalidDelimiterError(delimiter)
        self._delimiter = delimiter
        self.root = TopicNode()

    @property
    def delimiter(self) -> str:
        return self._delimiter

    def split(self, topic: str) -> List[str]:
        return topic.split(self._delimiter)

    def navigate(self, pattern: str, *, create: bool = False) -> Tuple[Optional[TopicNode], List[str]]:
        """Walk to the node for ``pattern``.

        With ``create`` missing nodes are added along the way; otherwise a
        missing segment yields ``None`` for the node.
        """
        segments = self.split(pattern)
        node = self.root
        for segment in segments:
            child = node.children.get(segment)
            if child is None:
                if not create:
                    return None, segments
                child = TopicNode()
                node.children[segment] = child
            node = child
        return node, segments

    def match(self, topic: str) -> List[int]:
        """Return ids of every listener whose pattern matches ``topic``.

        Order is depth-first from the root; at each node its own listeners
        come first, then the exact child, the ``*`` child and the ``**``
        child.
        """
        matched: List[int] = []
        # Scoped to this call only. A node can be reached twice when a topic
        # segment is literally "*" or "**".
        seen: Set[int] = set()
        self._collect(self.root, self.split(topic), 0, matched, seen)
        return matched

    def _collect(self, node: TopicNode, segments: List[str], index: int,
                 matched: List[int], seen: Set[int], *, terminal: bool = False) -> None:
        for listener_id in node.listener_ids:
            if listener_id in seen:
                continue
            seen.add(listener_id)
            matched.append(listener_id)

        # Reached through a ** child: nothing registered below it can match.
        if terminal:
            return

        if index < len(segments):
            exact = node.children.get(segments[index])
            if exact is not None:
                self._collect(exact, segments, index + 1, matched, seen)
            single = node.children.get(WILDCARD_ONE)
            if single is not None:
                self._collect(single, segments, index + 1, matched, seen)

        rest = node.children.get(WILDCARD_ALL)
        if rest is not None:
            self._collect(rest, segments, len(segments), matched, seen, terminal=True)

    def detach(self, pattern: str) -> List[int]:
        """Cut the subtree at ``pattern`` out of the trie and return its ids.

        Wildcards in ``pattern`` are literal path components here. Ancestors
        left without listeners or children are pruned on the way back up.
        """
        removed: List[int] = []
        self._detach(self.root, self.split(pattern), 0, removed)
        return removed

    def _detach(self, node: TopicNode, segments: List[str], index: int, removed: List[int]) -> None:
        segment = segments[index]
        child = node.children.get(segment)
        if child is None:
            return
        if index == len(segments) - 1:
            removed.extend(child.subtree_ids())
            del node.children[segment]
            return
        self._detach(child, segments, index + 1, removed)
        if child.is_empty():
            del node.children[segment]

    def reset(self) -> None:
        self.root = TopicNode()


__all__ = ["TopicNode", "TopicTrie"]
