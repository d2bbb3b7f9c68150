"""Tests for the built-in template functions."""

import re
import time

import pytest

from testpilot.template import DEFAULT_TEMPLATE_FUNCTIONS, create_template_context, create_template_functions
from testpilot.template.functions import (
    base64_decode,
    base64_encode,
    date_add,
    date_format,
    date_iso,
    date_rfc3339,
    date_subtract,
    iso_date,
    json_path,
    random_int,
    random_string,
    timestamp,
    url_decode,
    url_encode,
    uuid,
)

ISO_UTC = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


def test_default_function_names():
    assert set(DEFAULT_TEMPLATE_FUNCTIONS) == {
        "uuid",
        "timestamp",
        "isoDate",
        "dateFormat",
        "dateISO",
        "dateRFC3339",
        "dateAdd",
        "dateSubtract",
        "randomInt",
        "randomString",
        "base64Encode",
        "base64Decode",
        "urlEncode",
        "urlDecode",
        "jsonPath",
    }


def test_uuid_is_v4():
    value = uuid()
    assert re.match(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", value)
    assert uuid() != value


def test_timestamp_is_epoch_milliseconds():
    before = int(time.time() * 1000)
    value = timestamp()
    after = int(time.time() * 1000)
    assert isinstance(value, int)
    assert before <= value <= after


def test_iso_date_and_rfc3339_are_utc():
    assert ISO_UTC.match(iso_date())
    assert ISO_UTC.match(date_rfc3339(1))


def test_date_iso_and_date_format():
    assert re.match(r"^\d{4}-\d{2}-\d{2}$", date_iso())
    assert re.match(r"^\d{4}/\d{2}/\d{2} \d{2}:\d{2}$", date_format(0, "YYYY/MM/DD HH:mm"))


def test_date_format_ignores_non_numeric_offset():
    assert date_format("soon", "YYYY") == date_format(0, "YYYY")


def test_date_add_with_iso_base():
    assert date_add(1, "days", "2024-01-01T00:00:00Z") == "2024-01-02T00:00:00.000Z"
    assert date_add(90, "minutes", "2024-01-01T00:00:00Z") == "2024-01-01T01:30:00.000Z"
    assert date_add(2, "weeks", "2024-01-01T00:00:00Z") == "2024-01-15T00:00:00.000Z"


def test_date_add_with_epoch_millisecond_base():
    assert date_add(1, "seconds", 0) == "1970-01-01T00:00:01.000Z"


def test_date_subtract():
    assert date_subtract(2, "hours", "2024-01-01T00:00:00Z") == "2023-12-31T22:00:00.000Z"


def test_date_add_unknown_unit():
    with pytest.raises(ValueError, match="Unknown date unit: fortnights"):
        date_add(1, "fortnights")


def test_random_int_bounds():
    assert random_int(5, 5) == 5
    for _ in range(20):
        assert 0 <= random_int() <= 100


def test_random_string():
    value = random_string(8)
    assert len(value) == 8
    assert value.isalnum()
    assert len(random_string()) == 10


def test_base64_round_trip():
    assert base64_encode("hello") == "aGVsbG8="
    assert base64_decode("aGVsbG8=") == "hello"
    assert base64_encode("héllo") == "aMOpbGxv"


def test_base64_decode_invalid_input_returns_empty_string():
    assert base64_decode("!!!") == ""


def test_url_encoding_matches_uri_component_rules():
    assert url_encode("a b&c=d/é") == "a%20b%26c%3Dd%2F%C3%A9"
    assert url_encode("keep-_.!~*'()") == "keep-_.!~*'()"
    assert url_decode("a%20b%26c") == "a b&c"


def test_json_path_function():
    assert json_path({"a": [1, 2]}, "$.a[1]") == 2
    assert json_path({"a": 1}, "$.b") is None
    assert json_path({"a": 1}, "$.a[0") is None


def test_context_functions_override_builtins():
    context = create_template_context(functions={"uuid": lambda: "fixed", "answer": lambda: 42})
    functions = create_template_functions(context)
    assert functions["uuid"]() == "fixed"
    assert functions["answer"]() == 42
    assert functions["base64Encode"] is base64_encode
