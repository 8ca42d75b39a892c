from __future__ import annotations

import pytest

from topicbus.core.errors import InvalidDelimiterError
from topicbus.core.trie import TopicTrie


def _register(trie: TopicTrie, pattern: str, listener_id: int) -> None:
    node, _ = trie.navigate(pattern, create=True)
    node.listener_ids[listener_id] = None


def test_navigate_creates_nodes_and_returns_segments():
    trie = TopicTrie()
    node, segments = trie.navigate("a.b.c", create=True)

    assert segments == ["a", "b", "c"]
    assert trie.root.children["a"].children["b"].children["c"] is node


def test_navigate_without_create_returns_none_for_missing_path():
    trie = TopicTrie()
    trie.navigate("a.b", create=True)

    node, segments = trie.navigate("a.x")

    assert node is None
    assert segments == ["a", "x"]
    assert "x" not in trie.root.children["a"].children


def test_single_wildcard_matches_exactly_one_segment():
    trie = TopicTrie()
    _register(trie, "a.*.c", 1)

    assert trie.match("a.b.c") == [1]
    assert trie.match("a.b.b.c") == []
    assert trie.match("a.c") == []


def test_double_wildcard_at_root_matches_everything():
    trie = TopicTrie()
    _register(trie, "**", 7)

    for topic in ("", "x", "a.b.c.d", ".."):
        assert trie.match(topic) == [7]


def test_double_wildcard_collapses_the_remainder():
    trie = TopicTrie()
    _register(trie, "a.**", 1)

    assert trie.match("a") == [1]
    assert trie.match("a.b") == [1]
    assert trie.match("a.b.c.d") == [1]
    assert trie.match("b.a") == []


def test_patterns_after_double_wildcard_behave_like_its_prefix():
    trie = TopicTrie()
    _register(trie, "a.**.c", 1)
    _register(trie, "a.**", 2)

    # a.**.c lives below the ** node, which ends structural matching.
    assert trie.match("a.b.c") == [2]
    assert trie.match("a.x.y") == [2]


def test_match_order_is_exact_then_single_then_double():
    trie = TopicTrie()
    _register(trie, "a.**", 1)
    _register(trie, "a.*", 2)
    _register(trie, "a.b", 3)
    _register(trie, "a.b", 4)

    assert trie.match("a.b") == [3, 4, 2, 1]


def test_literal_wildcard_segment_is_not_matched_twice():
    trie = TopicTrie()
    _register(trie, "a.*", 1)

    # The exact child and the * child are the same node here.
    assert trie.match("a.*") == [1]


def test_empty_topic_is_a_single_segment():
    trie = TopicTrie()
    _register(trie, "", 1)

    assert trie.split("") == [""]
    assert trie.match("") == [1]
    assert trie.match("x") == []


def test_listeners_on_a_prefix_hear_longer_topics():
    trie = TopicTrie()
    _register(trie, "a", 1)
    _register(trie, "a.b", 2)

    assert trie.match("a.b.c") == [1, 2]
    assert trie.match("a") == [1]
    assert trie.match("b.a") == []


def test_custom_delimiter_governs_every_split():
    trie = TopicTrie("/")
    _register(trie, "system/error", 1)
    _register(trie, "system.error", 2)

    assert trie.match("system/error") == [1]
    assert trie.match("system.error") == [2]


@pytest.mark.parametrize("delimiter", ["", None, 3])
def test_invalid_delimiter_rejected(delimiter):
    with pytest.raises(InvalidDelimiterError):
        TopicTrie(delimiter)


def test_detach_returns_subtree_ids_and_prunes_path():
    trie = TopicTrie()
    _register(trie, "a.b", 1)
    _register(trie, "a.b.c", 2)
    _register(trie, "a.b.*", 3)
    _register(trie, "x", 4)

    removed = trie.detach("a.b")

    assert sorted(removed) == [1, 2, 3]
    assert "a" not in trie.root.children
    assert trie.match("x") == [4]


def test_detach_keeps_ancestors_with_listeners():
    trie = TopicTrie()
    _register(trie, "a", 1)
    _register(trie, "a.b", 2)

    assert trie.detach("a.b") == [2]
    assert trie.root.children["a"].listener_ids == {1: None}
    assert trie.root.children["a"].children == {}


def test_detach_unknown_path_is_noop():
    trie = TopicTrie()
    _register(trie, "a.b", 1)

    assert trie.detach("a.c") == []
    assert trie.match("a.b") == [1]


def test_nothing_below_a_double_wildcard_is_reachable():
    trie = TopicTrie()
    _register(trie, "a.**.**", 1)
    _register(trie, "**.**", 2)
    _register(trie, "a.**.*", 3)
    _register(trie, "a.**", 4)

    assert trie.match("a.b") == [4]
    assert trie.match("a") == [4]
    assert trie.match("x.y.z") == []
