"""
Missing-value sentinel and post-render cleanup.

A template that references a field absent from its data renders the
literal MISSING_VALUE_TOKEN in its place. Every rendered output that is
treated as final (query values, request/response bodies) goes through
strip_missing_values() first.
"""

from jinja2 import ChainableUndefined

MISSING_VALUE_TOKEN = "<no value>"

# Form produced by JSON encoders that escape HTML-significant characters
_ESCAPED_MISSING_VALUE_TOKEN = "\\u003cno value\\u003e"


class MissingValue(ChainableUndefined):
    """
    Result of looking up a field that does not exist.

    Chainable: any attribute or item access on a missing value is itself
    missing, so `request.api.body.a.b.c` never raises. Falsy, iterates as
    empty, and renders as MISSING_VALUE_TOKEN.
    """

    __slots__ = ()

    def __str__(self) -> str:
        return MISSING_VALUE_TOKEN

    def __html__(self) -> str:
        return MISSING_VALUE_TOKEN

    def __repr__(self) -> str:
        return "MissingValue"


def is_missing(value) -> bool:
    return isinstance(value, ChainableUndefined)


def strip_missing_values(text: str) -> str:
    """Removes every occurrence of the missing-value token, plain or JSON-escaped."""
    if MISSING_VALUE_TOKEN in text:
        text = text.replace(MISSING_VALUE_TOKEN, "")
    if _ESCAPED_MISSING_VALUE_TOKEN in text:
        text = text.replace(_ESCAPED_MISSING_VALUE_TOKEN, "")
    return text
