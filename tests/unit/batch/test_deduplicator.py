"""Tests for write/delete deduplication."""

import pytest

from tuplebatch.batch.deduplicator import deduplicate
from tuplebatch.batch.types import OperationKind, TupleCondition, TupleKey
from tuplebatch.core.exceptions import ConfigurationError


def _summary(operation_set):
    return [(op.user, op.kind) for op in operation_set]


def test_duplicate_writes_collapse_to_first_occurrence():
    """Repeated writes keep one operation each, in first-seen order."""
    writes = [
        ("anne", "reader", "doc"),
        ("bob", "editor", "doc"),
        ("anne", "reader", "doc"),
        ("charlie", "viewer", "doc"),
        ("bob", "editor", "doc"),
    ]

    result = deduplicate(writes, [])

    assert len(result) == 3
    assert _summary(result) == [
        ("anne", OperationKind.WRITE),
        ("bob", OperationKind.WRITE),
        ("charlie", OperationKind.WRITE),
    ]


def test_delete_takes_precedence_over_write():
    """A key written and deleted becomes a single delete."""
    writes = [("anne", "reader", "doc"), ("bob", "editor", "doc"), ("charlie", "viewer", "doc")]
    deletes = [("bob", "editor", "doc"), ("david", "owner", "old")]

    result = deduplicate(writes, deletes)

    assert len(result) == 4
    assert _summary(result) == [
        ("anne", OperationKind.WRITE),
        ("charlie", OperationKind.WRITE),
        ("bob", OperationKind.DELETE),
        ("david", OperationKind.DELETE),
    ]


def test_delete_wins_regardless_of_duplicates_on_either_side():
    """Duplicates on both sides still resolve to exactly one delete."""
    key = ("anne", "reader", "doc")

    result = deduplicate([key, key], [key, key])

    assert len(result) == 1
    assert result.operations[0].kind == OperationKind.DELETE


def test_tuples_differing_in_any_component_are_distinct():
    """Tuples differing in any component are distinct."""
    writes = [
        ("anne", "reader", "doc"),
        ("anne", "editor", "doc"),
        ("anne", "reader", "doc2"),
        ("bob", "reader", "doc"),
    ]

    assert len(deduplicate(writes)) == 4


def test_empty_inputs_yield_empty_set():
    """No inputs, no operations."""
    assert deduplicate().is_empty
    assert deduplicate([], []).is_empty
    assert deduplicate(None, None).is_empty


def test_condition_does_not_affect_identity():
    """Conditions travel with writes but do not split identity keys."""
    conditioned = TupleKey("anne", "reader", "doc", condition=TupleCondition("in_office"))
    plain = TupleKey("anne", "reader", "doc")

    result = deduplicate([conditioned, plain])

    assert len(result) == 1
    assert result.operations[0].condition == TupleCondition("in_office")


def test_deletes_drop_conditions():
    """Deleted tuples never carry a condition on the wire."""
    key = TupleKey("anne", "reader", "doc", condition=TupleCondition("in_office"))

    result = deduplicate([], [key])

    assert result.operations[0].condition is None
    assert result.to_payload() == {
        "deletes": {"tuple_keys": [{"user": "anne", "relation": "reader", "object": "doc"}]}
    }


@pytest.mark.parametrize(
    "bad_input",
    [
        "abc",
        ("user:anne", "reader"),
        ("user:anne", "reader", "doc:1", "extra"),
        ("user:anne", "reader", 7),
        42,
    ],
)
def test_malformed_tuples_raise_configuration_error(bad_input):
    """Strings, wrong arity and non-string parts are rejected."""
    with pytest.raises(ConfigurationError):
        deduplicate(writes=[bad_input])
    with pytest.raises(ConfigurationError):
        deduplicate(deletes=[bad_input])
