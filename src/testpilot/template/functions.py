"""Built-in functions callable from templates via the ``func:`` source.

Every function takes positional arguments only. Arguments of the wrong type
are ignored in favour of the documented default, so ``{{func:randomInt()}}``
and ``{{func:randomInt("x")}}`` both draw from 0..100.
"""

from __future__ import annotations

import base64
import logging
import random
import string
import time
import uuid as _uuid
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import quote, unquote

from testpilot import jsonpath
from testpilot.template.types import TemplateContext, TemplateFunction

logger = logging.getLogger(__name__)

_RANDOM_CHARSET = string.ascii_uppercase + string.ascii_lowercase + string.digits

# encodeURIComponent leaves these unescaped
_URI_COMPONENT_SAFE = "-_.!~*'()"

_DATE_UNITS = {
    "seconds": "seconds",
    "minutes": "minutes",
    "hours": "hours",
    "days": "days",
    "weeks": "weeks",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _number_arg(args: tuple[Any, ...], index: int, default: float) -> Any:
    if len(args) > index and _is_number(args[index]):
        return args[index]
    return default


def _string_arg(args: tuple[Any, ...], index: int, default: str) -> str:
    if len(args) > index and isinstance(args[index], str):
        return args[index]
    return default


def _iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_base(value: Any) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if _is_number(value):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise ValueError(f"Unsupported base date: {value!r}")


def _format_date(moment: datetime, pattern: str) -> str:
    # Only the first occurrence of each token is replaced
    return (
        pattern.replace("YYYY", f"{moment.year:04d}", 1)
        .replace("MM", f"{moment.month:02d}", 1)
        .replace("DD", f"{moment.day:02d}", 1)
        .replace("HH", f"{moment.hour:02d}", 1)
        .replace("mm", f"{moment.minute:02d}", 1)
        .replace("ss", f"{moment.second:02d}", 1)
    )


def uuid(*args: Any) -> str:
    return str(_uuid.uuid4())


def timestamp(*args: Any) -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def iso_date(*args: Any) -> str:
    return _iso(datetime.now(timezone.utc))


def date_format(*args: Any) -> str:
    """``dateFormat(dayOffset=0, format='YYYY-MM-DD')`` in local time."""
    day_offset = _number_arg(args, 0, 0)
    pattern = _string_arg(args, 1, "YYYY-MM-DD")
    return _format_date(datetime.now() + timedelta(days=day_offset), pattern)


def date_iso(*args: Any) -> str:
    """``dateISO(dayOffset=0)``: the UTC calendar date as ``YYYY-MM-DD``."""
    day_offset = _number_arg(args, 0, 0)
    return (datetime.now(timezone.utc) + timedelta(days=day_offset)).date().isoformat()


def date_rfc3339(*args: Any) -> str:
    day_offset = _number_arg(args, 0, 0)
    return _iso(datetime.now(timezone.utc) + timedelta(days=day_offset))


def date_add(*args: Any) -> str:
    """``dateAdd(amount, unit='days', base=now)`` as an ISO-8601 UTC string.

    ``base`` may be an ISO string or epoch milliseconds.
    """
    amount = _number_arg(args, 0, 0)
    unit = _string_arg(args, 1, "days")
    if unit not in _DATE_UNITS:
        raise ValueError(f"Unknown date unit: {unit}. Use one of: {', '.join(_DATE_UNITS)}")
    base = _parse_base(args[2] if len(args) > 2 else None)
    return _iso(base + timedelta(**{_DATE_UNITS[unit]: amount}))


def date_subtract(*args: Any) -> str:
    amount = _number_arg(args, 0, 0)
    return date_add(-amount, *args[1:])


def random_int(*args: Any) -> int:
    """Random integer between ``min`` (default 0) and ``max`` (default 100), inclusive."""
    low = _number_arg(args, 0, 0)
    high = _number_arg(args, 1, 100)
    return random.randint(int(low), int(high))


def random_string(*args: Any) -> str:
    length = int(_number_arg(args, 0, 10))
    return "".join(random.choice(_RANDOM_CHARSET) for _ in range(length))


def base64_encode(*args: Any) -> str:
    text = str(args[0]) if args else ""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def base64_decode(*args: Any) -> str:
    text = str(args[0]) if args else ""
    try:
        return base64.b64decode(text, validate=True).decode("utf-8")
    except ValueError as e:
        logger.warning(f"Base64 decoding failed: {e}")
        return ""


def url_encode(*args: Any) -> str:
    text = str(args[0]) if args else ""
    return quote(text, safe=_URI_COMPONENT_SAFE)


def url_decode(*args: Any) -> str:
    text = str(args[0]) if args else ""
    return unquote(text)


def json_path(data: Any = None, path: Any = "$", *args: Any) -> Any:
    try:
        return jsonpath.extract(data, str(path))
    except ValueError as e:
        logger.warning(f"JSONPath extraction failed: {e}")
        return None


DEFAULT_TEMPLATE_FUNCTIONS: dict[str, TemplateFunction] = {
    "uuid": uuid,
    "timestamp": timestamp,
    "isoDate": iso_date,
    "dateFormat": date_format,
    "dateISO": date_iso,
    "dateRFC3339": date_rfc3339,
    "dateAdd": date_add,
    "dateSubtract": date_subtract,
    "randomInt": random_int,
    "randomString": random_string,
    "base64Encode": base64_encode,
    "base64Decode": base64_decode,
    "urlEncode": url_encode,
    "urlDecode": url_decode,
    "jsonPath": json_path,
}


def create_template_functions(context: TemplateContext) -> dict[str, TemplateFunction]:
    """Built-in functions overlaid with the context's own functions."""
    return {**DEFAULT_TEMPLATE_FUNCTIONS, **(context.functions or {})}
