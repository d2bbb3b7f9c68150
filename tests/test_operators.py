"""Tests for the assertion operator registry."""

import math

import pytest

from testpilot.assertions.operators import (
    BUILTIN_OPERATORS,
    get_all_operators,
    get_operator,
    is_valid_operator,
    loose_equals,
    register_operator,
)

SAME = {"a": 1}

CASES = [
    # equals / not_equals: loose equality
    ("equals", 123, "123", True),
    ("equals", True, 1, True),
    ("equals", "", 0, True),
    ("equals", "true", True, False),
    ("equals", None, None, True),
    ("equals", None, 0, False),
    ("equals", {"a": 1}, {"a": 1}, False),
    ("equals", SAME, SAME, True),
    ("equals", [1, 2], "1,2", True),
    ("equals", 1.0, 1, True),
    ("equals", "abc", "abc", True),
    ("not_equals", 123, "124", True),
    ("not_equals", 123, "123", False),
    # contains
    ("contains", "hello world", "world", True),
    ("contains", "abc", None, False),
    ("contains", "value null", None, True),
    ("contains", "v1.5", 1.5, True),
    ("contains", [1, 2, 3], 2, True),
    ("contains", [1, 2], "2", False),
    ("contains", [True], 1, False),
    ("contains", [float("nan")], float("nan"), True),
    ("contains", {"a": 1}, "a", False),
    ("not_contains", "abc", "z", True),
    ("not_contains", [1, 2], 3, True),
    ("not_contains", [1, 2], 2, False),
    ("not_contains", 5, 1, True),
    # presence
    ("exists", 0, None, True),
    ("exists", "", None, True),
    ("exists", None, None, False),
    ("is_null", None, None, True),
    ("is_null", 0, None, False),
    ("is_not_null", 0, None, True),
    # numeric comparisons
    ("greater_than", 5, 3, True),
    ("greater_than", "5", 3, False),
    ("greater_than", True, 0, False),
    ("less_than", 1, 2, True),
    ("less_than", 2, 2, False),
    ("greater_than_or_equal", 3, 3, True),
    ("less_than_or_equal", 3, 3, True),
    ("less_than_or_equal", 4, 3, False),
    ("between", 5, [1, 10], True),
    ("between", 10, [1, 10], True),
    ("between", 11, [1, 10], False),
    ("between", 5, [1], False),
    ("between", 5, "1,10", False),
    ("not_between", 11, [1, 10], True),
    ("not_between", 5, [1, 10], False),
    ("not_between", "x", [1, 2], False),
    # strings
    ("starts_with", "hello", "he", True),
    ("starts_with", 123, "1", False),
    ("ends_with", "hello", "lo", True),
    ("ends_with", "hello", 5, False),
    ("matches_regex", "abc123", r"\d+", True),
    ("matches_regex", "abc", r"^\d+$", False),
    ("matches_regex", "abc", "[", False),
    # emptiness
    ("is_empty", "", None, True),
    ("is_empty", [], None, True),
    ("is_empty", {}, None, True),
    ("is_empty", None, None, True),
    ("is_empty", 0, None, False),
    ("is_empty", "a", None, False),
    ("is_not_empty", "a", None, True),
    ("is_not_empty", 0, None, True),
    ("is_not_empty", "", None, False),
    ("is_not_empty", None, None, False),
    # lengths
    ("has_length", [1, 2, 3], 3, True),
    ("has_length", "abc", 3, True),
    ("has_length", "", 0, False),
    ("has_length", [], 0, True),
    ("has_length", [1], "1", False),
    ("has_length", {"a": 1}, 1, False),
    ("length_greater_than", [1, 2], 1, True),
    ("length_greater_than", "", -1, False),
    ("length_less_than", "ab", 3, True),
    ("length_less_than", "abc", 3, False),
    # collections
    ("contains_all", [1, 2, 3], [1, 3], True),
    ("contains_all", [1, 2], [1, 4], False),
    ("contains_all", [1], [], True),
    ("contains_all", "123", [1], False),
    ("contains_any", [1, 2], [3, 2], True),
    ("contains_any", [1, 2], [], False),
    ("not_contains_any", [1, 2], [3, 4], True),
    ("not_contains_any", [1, 2], [2], False),
    ("not_contains_any", "x", [1], False),
    ("one_of", "a", ["a", "b"], True),
    ("one_of", 1, ["1"], False),
    ("one_of", "a", "abc", False),
    ("not_one_of", "c", ["a", "b"], True),
    ("not_one_of", "a", ["a", "b"], False),
    ("not_one_of", "a", "abc", False),
    # types
    ("is_type", "s", "string", True),
    ("is_type", 1, "number", True),
    ("is_type", 1.5, "number", True),
    ("is_type", True, "boolean", True),
    ("is_type", True, "number", False),
    ("is_type", [], "array", True),
    ("is_type", {}, "object", True),
    ("is_type", [], "object", False),
    ("is_type", None, "null", True),
    ("is_type", "s", "str", False),
]


@pytest.mark.parametrize(("name", "actual", "expected", "result"), CASES)
def test_builtin_operator(name, actual, expected, result):
    assert get_operator(name)(actual, expected) is result


def test_every_builtin_operator_is_covered():
    assert {case[0] for case in CASES} == set(BUILTIN_OPERATORS)


def test_builtin_catalogue():
    assert len(BUILTIN_OPERATORS) == 27
    assert get_all_operators()[:27] == list(BUILTIN_OPERATORS)
    assert get_all_operators()[:3] == ["equals", "not_equals", "contains"]


def test_builtin_mapping_is_read_only():
    with pytest.raises(TypeError):
        BUILTIN_OPERATORS["equals"] = lambda a, b: True  # type: ignore[index]


def test_unknown_operator_raises():
    assert is_valid_operator("nope") is False
    with pytest.raises(ValueError, match="Unknown operator: nope"):
        get_operator("nope")


def test_register_custom_operator():
    register_operator("divisible_by", lambda a, b: a % b == 0)

    assert is_valid_operator("divisible_by")
    assert "divisible_by" in get_all_operators()
    assert get_operator("divisible_by")(10, 5) is True

    register_operator("divisible_by", lambda a, b: False)
    assert get_operator("divisible_by")(10, 5) is False


def test_builtin_operator_cannot_be_replaced():
    original = get_operator("equals")
    with pytest.raises(ValueError, match="Cannot replace built-in operator: equals"):
        register_operator("equals", lambda a, b: True)
    assert get_operator("equals") is original


def test_register_rejects_non_callable():
    with pytest.raises(ValueError, match="must be callable"):
        register_operator("not_a_function", "nope")  # type: ignore[arg-type]


def test_loose_equals_handles_special_numbers():
    assert loose_equals("Infinity", math.inf) is True
    assert loose_equals("0x10", 16) is True
    assert loose_equals(math.nan, math.nan) is False
    assert loose_equals("abc", 0) is False
