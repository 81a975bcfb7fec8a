"""
Modifier — Template Function Library
======================================

What:  Helper functions injected into every compiled template.
How:   Plain module-level functions registered under the names templates
       use (camelCase, e.g. `toJSON`, `randAlphaNum`). None of them hold
       state, so one registry is shared by all templates and all requests.

Template usage:
    [[ toJSON(request.api.body) ]]
    [[ default("anonymous", request.query.user) ]]
    [[ date("2006-01-02", now()) ]]
    [[ index(request.headers, "x-api-key") ]]
"""

import json
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Union

from modifier.templating.missing import MissingValue, is_missing

_ALPHANUMERIC = string.ascii_letters + string.digits

# Named tokens, plus Go-style reference layouts accepted as aliases
_DATE_FORMATS: Dict[str, str] = {
    "rfc3339": "%Y-%m-%dT%H:%M:%S%z",
    "date": "%Y-%m-%d",
    "datetime": "%Y-%m-%d %H:%M:%S",
    "time": "%H:%M:%S",
    "2006-01-02T15:04:05Z07:00": "%Y-%m-%dT%H:%M:%S%z",
    "2006-01-02": "%Y-%m-%d",
    "2006-01-02 15:04:05": "%Y-%m-%d %H:%M:%S",
    "15:04:05": "%H:%M:%S",
}


def _json_default(value: Any) -> Any:
    if is_missing(value):
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return dict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(value: Any) -> str:
    """Compact JSON encoding of any template value."""
    if is_missing(value):
        return "null"
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=_json_default)


def to_map(value: Any) -> Dict[str, Any]:
    """JSON round-trip into a plain dict. Non-object values are rejected."""
    result = json.loads(to_json(value))
    if not isinstance(result, dict):
        raise ValueError(f"toMap expects an object, got {type(result).__name__}")
    return result


def default(fallback: Any, value: Any) -> Any:
    if value is None or value == "" or is_missing(value):
        return fallback
    return value


def now() -> datetime:
    return datetime.now(timezone.utc)


def unix_epoch() -> int:
    return int(time.time())


def rand_alpha_num(length: int) -> str:
    if length < 0:
        raise ValueError("randAlphaNum length must not be negative")
    return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(length))


def format_date(fmt: str, moment: Union[datetime, int, float]) -> str:
    """
    Format a datetime (or epoch seconds) by token.

    `fmt` is a named token ("rfc3339", "date", "datetime", "time", "unix"),
    one of the supported Go reference layouts, or a strftime pattern.
    RFC 3339 output uses "Z" for a UTC offset.
    """
    if isinstance(moment, (int, float)) and not isinstance(moment, bool):
        moment = datetime.fromtimestamp(moment, tz=timezone.utc)
    if not isinstance(moment, datetime):
        raise TypeError(f"date expects a datetime or epoch seconds, got {type(moment).__name__}")

    if fmt == "unix":
        return str(int(moment.timestamp()))

    pattern = _DATE_FORMATS.get(fmt, fmt)
    if pattern == _DATE_FORMATS["rfc3339"]:
        if moment.utcoffset() is None or moment.utcoffset().total_seconds() == 0:
            return moment.strftime("%Y-%m-%dT%H:%M:%SZ")
        return moment.isoformat(timespec="seconds")
    return moment.strftime(pattern)


def debug(value: Any) -> str:
    return repr(value)


def index(container: Any, key: Any) -> Any:
    """Item lookup by exact key, for names dot-paths cannot express."""
    if is_missing(container):
        return container
    try:
        return container[key]
    except (KeyError, IndexError, TypeError):
        return MissingValue(obj=container, name=str(key))


FUNCTIONS: Dict[str, Callable[..., Any]] = {
    "toJSON": to_json,
    "toMap": to_map,
    "default": default,
    "now": now,
    "unixEpoch": unix_epoch,
    "randAlphaNum": rand_alpha_num,
    "date": format_date,
    "debug": debug,
    "index": index,
}
