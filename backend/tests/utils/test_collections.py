from __future__ import annotations

from simpledao.core.db import session_scope
from simpledao.utils.collections import distinct_root_entities

from backend.tests.entities import User


def test_distinct_keeps_first_seen_order_for_values() -> None:
    assert distinct_root_entities([3, 1, 3, 2, 1]) == [3, 1, 2]
    assert distinct_root_entities([("a", 1), ("b", 2), ("a", 1)]) == [
        ("a", 1),
        ("b", 2),
    ]
    assert distinct_root_entities([]) == []


def test_distinct_compares_entities_by_identity() -> None:
    first = User(name="Same")
    second = User(name="Same")
    assert distinct_root_entities([first, second, first]) == [first, second]


def test_distinct_collapses_identity_mapped_rows() -> None:
    with session_scope() as session:
        user = User(name="Alice")
        session.add(user)
        session.flush()
        loaded = [session.get(User, user.id) for _ in range(3)]
        assert distinct_root_entities(loaded) == [user]


def test_distinct_handles_unhashable_json_values() -> None:
    rows = [{"a": 1}, {"a": 1}, [1, 2], 7, [1, 2], 7, {"a": 2}]
    assert distinct_root_entities(rows) == [{"a": 1}, [1, 2], 7, {"a": 2}]


def test_distinct_handles_tuples_holding_json_values() -> None:
    rows = [("Alice", {"theme": "dark"}), ("Alice", {"theme": "dark"}), ("Bob", [])]
    assert distinct_root_entities(rows) == [
        ("Alice", {"theme": "dark"}),
        ("Bob", []),
    ]
