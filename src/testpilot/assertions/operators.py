"""Assertion operators and their registry.

Each operator is a plain predicate ``(actual, expected) -> bool``. Values are
JSON-shaped: numbers are ``int``/``float`` (never ``bool``), arrays are
``list``/``tuple``, objects are ``dict``.

Comparison rules follow the flow definitions users already have:
``equals`` is loose equality, where ``"123"`` equals ``123`` but two separate
dicts with the same content are not equal, and membership checks compare
scalars strictly and containers by identity.
"""

from __future__ import annotations

import math
import re
from types import MappingProxyType
from typing import Any, Callable, Mapping

OperatorFunction = Callable[[Any, Any], bool]

_NUMERIC_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_container(value: Any) -> bool:
    return isinstance(value, (list, tuple, dict))


def _to_number(text: str) -> float:
    """Numeric value of a string the way loose equality sees it."""
    text = text.strip()
    if not text:
        return 0.0
    if _NUMERIC_RE.match(text):
        return float(text)
    if text in ("Infinity", "+Infinity"):
        return math.inf
    if text == "-Infinity":
        return -math.inf
    lowered = text.lower()
    for prefix, base in (("0x", 16), ("0o", 8), ("0b", 2)):
        if lowered.startswith(prefix):
            try:
                return float(int(text[2:], base))
            except ValueError:
                return math.nan
    return math.nan


def to_display_string(value: Any) -> str:
    """String conversion applied when a value is compared as text."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    if _is_array(value):
        return ",".join("" if item is None else to_display_string(item) for item in value)
    if isinstance(value, dict):
        return "[object Object]"
    return str(value)


def loose_equals(actual: Any, expected: Any) -> bool:
    if actual is None or expected is None:
        return actual is None and expected is None

    if _is_container(actual) or _is_container(expected):
        if _is_container(actual) and _is_container(expected):
            return actual is expected
        # A container compared with a scalar is compared through its string form
        if _is_container(actual):
            actual = to_display_string(actual)
        else:
            expected = to_display_string(expected)

    if isinstance(actual, str) and isinstance(expected, str):
        return actual == expected

    if isinstance(actual, bool):
        actual = int(actual)
    if isinstance(expected, bool):
        expected = int(expected)
    if isinstance(actual, str) and _is_number(expected):
        actual = _to_number(actual)
    elif isinstance(expected, str) and _is_number(actual):
        expected = _to_number(expected)

    return actual == expected


def same_value_zero(a: Any, b: Any) -> bool:
    """Strict comparison used for membership tests."""
    if _is_number(a) and _is_number(b):
        if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
            return True
        return a == b
    if _is_container(a) or _is_container(b):
        return a is b
    if type(a) is not type(b):
        return False
    return a == b


def _includes(items: Any, value: Any) -> bool:
    return any(same_value_zero(item, value) for item in items)


def _length(value: Any) -> int | None:
    # An empty string counts as "no value" for the length operators
    if isinstance(value, str):
        return len(value) if value else None
    if _is_array(value):
        return len(value)
    return None


def _equals(actual: Any, expected: Any) -> bool:
    return loose_equals(actual, expected)


def _not_equals(actual: Any, expected: Any) -> bool:
    return not loose_equals(actual, expected)


def _contains(actual: Any, expected: Any) -> bool:
    if isinstance(actual, str):
        return to_display_string(expected) in actual
    if _is_array(actual):
        return _includes(actual, expected)
    return False


def _not_contains(actual: Any, expected: Any) -> bool:
    if isinstance(actual, str):
        return to_display_string(expected) not in actual
    if _is_array(actual):
        return not _includes(actual, expected)
    return True


def _exists(actual: Any, expected: Any) -> bool:
    return actual is not None


def _is_null(actual: Any, expected: Any) -> bool:
    return actual is None


def _is_not_null(actual: Any, expected: Any) -> bool:
    return actual is not None


def _greater_than(actual: Any, expected: Any) -> bool:
    return _is_number(actual) and _is_number(expected) and actual > expected


def _less_than(actual: Any, expected: Any) -> bool:
    return _is_number(actual) and _is_number(expected) and actual < expected


def _greater_than_or_equal(actual: Any, expected: Any) -> bool:
    return _is_number(actual) and _is_number(expected) and actual >= expected


def _less_than_or_equal(actual: Any, expected: Any) -> bool:
    return _is_number(actual) and _is_number(expected) and actual <= expected


def _range(expected: Any) -> tuple[float, float] | None:
    if not _is_array(expected) or len(expected) != 2:
        return None
    low, high = expected
    if not (_is_number(low) and _is_number(high)):
        return None
    return low, high


def _between(actual: Any, expected: Any) -> bool:
    bounds = _range(expected)
    if not _is_number(actual) or bounds is None:
        return False
    return bounds[0] <= actual <= bounds[1]


def _not_between(actual: Any, expected: Any) -> bool:
    bounds = _range(expected)
    if not _is_number(actual) or bounds is None:
        return False
    return actual < bounds[0] or actual > bounds[1]


def _starts_with(actual: Any, expected: Any) -> bool:
    return isinstance(actual, str) and isinstance(expected, str) and actual.startswith(expected)


def _ends_with(actual: Any, expected: Any) -> bool:
    return isinstance(actual, str) and isinstance(expected, str) and actual.endswith(expected)


def _matches_regex(actual: Any, expected: Any) -> bool:
    if not isinstance(actual, str) or not isinstance(expected, str):
        return False
    try:
        return re.search(expected, actual) is not None
    except re.error:
        return False


def _is_empty(actual: Any, expected: Any) -> bool:
    if actual is None:
        return True
    if isinstance(actual, (str, list, tuple, dict)):
        return len(actual) == 0
    return False


def _is_not_empty(actual: Any, expected: Any) -> bool:
    if actual is None:
        return False
    if isinstance(actual, (str, list, tuple, dict)):
        return len(actual) > 0
    return True


def _has_length(actual: Any, expected: Any) -> bool:
    length = _length(actual)
    return length is not None and _is_number(expected) and length == expected


def _length_greater_than(actual: Any, expected: Any) -> bool:
    length = _length(actual)
    return length is not None and _is_number(expected) and length > expected


def _length_less_than(actual: Any, expected: Any) -> bool:
    length = _length(actual)
    return length is not None and _is_number(expected) and length < expected


def _contains_all(actual: Any, expected: Any) -> bool:
    if not _is_array(actual) or not _is_array(expected):
        return False
    return all(_includes(actual, item) for item in expected)


def _contains_any(actual: Any, expected: Any) -> bool:
    if not _is_array(actual) or not _is_array(expected):
        return False
    return any(_includes(actual, item) for item in expected)


def _not_contains_any(actual: Any, expected: Any) -> bool:
    if not _is_array(actual) or not _is_array(expected):
        return False
    return not any(_includes(actual, item) for item in expected)


def _one_of(actual: Any, expected: Any) -> bool:
    return _is_array(expected) and _includes(expected, actual)


def _not_one_of(actual: Any, expected: Any) -> bool:
    return _is_array(expected) and not _includes(expected, actual)


_TYPE_CHECKS: dict[str, Callable[[Any], bool]] = {
    "string": lambda v: isinstance(v, str),
    "number": _is_number,
    "boolean": lambda v: isinstance(v, bool),
    "array": _is_array,
    "object": lambda v: isinstance(v, dict),
    "null": lambda v: v is None,
}


def _is_type(actual: Any, expected: Any) -> bool:
    if not isinstance(expected, str):
        return False
    check = _TYPE_CHECKS.get(expected)
    return check is not None and check(actual)


BUILTIN_OPERATORS: Mapping[str, OperatorFunction] = MappingProxyType(
    {
        "equals": _equals,
        "not_equals": _not_equals,
        "contains": _contains,
        "exists": _exists,
        "greater_than": _greater_than,
        "less_than": _less_than,
        "starts_with": _starts_with,
        "ends_with": _ends_with,
        "matches_regex": _matches_regex,
        "not_contains": _not_contains,
        "is_empty": _is_empty,
        "is_not_empty": _is_not_empty,
        "greater_than_or_equal": _greater_than_or_equal,
        "less_than_or_equal": _less_than_or_equal,
        "between": _between,
        "not_between": _not_between,
        "has_length": _has_length,
        "length_greater_than": _length_greater_than,
        "length_less_than": _length_less_than,
        "contains_all": _contains_all,
        "contains_any": _contains_any,
        "not_contains_any": _not_contains_any,
        "one_of": _one_of,
        "not_one_of": _not_one_of,
        "is_type": _is_type,
        "is_null": _is_null,
        "is_not_null": _is_not_null,
    }
)

_CUSTOM_OPERATORS: dict[str, OperatorFunction] = {}


def get_operator(name: str) -> OperatorFunction:
    operator = BUILTIN_OPERATORS.get(name) or _CUSTOM_OPERATORS.get(name)
    if operator is None:
        raise ValueError(f"Unknown operator: {name}")
    return operator


def is_valid_operator(name: str) -> bool:
    return name in BUILTIN_OPERATORS or name in _CUSTOM_OPERATORS


def get_all_operators() -> list[str]:
    return [*BUILTIN_OPERATORS, *_CUSTOM_OPERATORS]


def register_operator(name: str, operator: OperatorFunction) -> None:
    """Register a custom operator.

    Built-in operators cannot be replaced and registered operators are never
    removed; registering the same custom name again replaces its function.
    """
    if not name:
        raise ValueError("Operator name must not be empty")
    if name in BUILTIN_OPERATORS:
        raise ValueError(f"Cannot replace built-in operator: {name}")
    if not callable(operator):
        raise ValueError(f"Operator '{name}' must be callable")
    _CUSTOM_OPERATORS[name] = operator
