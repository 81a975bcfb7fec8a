"""
Modifier — Environment Builder
================================

What:  Assembles the data tree templates see for one stage.
How:   Plain dicts built fresh per stage from the live request (and, for
       the response stage, the captured response). Templates run in an
       immutable sandbox, so nothing they do can change these dicts.

Environment layout:
    request:
        method, path, url
        headers          lower-cased name → first value
        query            key → value (list when repeated)
        api.body         parsed original request payload
        modified.body    parsed payload after the request stage (response only)
    response:            (response stage only)
        body, status, headers
    context:             Template Context

JSON payloads stay as whatever loads_strict returns (dict, list, str, int,
float, bool, None); only the fixed schema above is imposed on top.
"""

import json
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from modifier.services.capture import CapturedResponse
from modifier.services.context import TemplateContext
from modifier.services.request import InboundRequest


def header_map(raw_headers: Iterable[Tuple[bytes, bytes]]) -> Dict[str, str]:
    """Lower-cased header name → first value seen."""
    result: Dict[str, str] = {}
    for name, value in raw_headers:
        result.setdefault(name.decode("latin-1").lower(), value.decode("latin-1"))
    return result


def query_map(items: Iterable[Tuple[str, str]]) -> Dict[str, Union[str, List[str]]]:
    """Query key → single value, or list of values when the key repeats."""
    grouped: Dict[str, List[str]] = {}
    for key, value in items:
        grouped.setdefault(key, []).append(value)
    return {key: values[0] if len(values) == 1 else values for key, values in grouped.items()}


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON literal {name!r}")


def loads_strict(raw: Union[str, bytes]) -> Any:
    """json.loads without the NaN / Infinity / -Infinity extensions."""
    return json.loads(raw, parse_constant=_reject_constant)


def parse_json_body(raw: Optional[bytes]) -> Any:
    """
    Strict parse. Empty or absent input is None.

    Raises:
        ValueError: the bytes are not valid JSON (or not valid UTF-8).
    """
    if not raw:
        return None
    return loads_strict(raw)


def parse_json_lenient(raw: Optional[bytes]) -> Any:
    """Best-effort parse: None when the bytes are empty or not JSON."""
    try:
        return parse_json_body(raw)
    except ValueError:
        return None


def parse_response_body(raw: bytes) -> Any:
    """Parse as JSON, falling back to the raw text."""
    if not raw:
        return None
    try:
        return loads_strict(raw)
    except ValueError:
        return raw.decode("utf-8", errors="replace")


def _request_branch(request: InboundRequest, api_body: Any) -> Dict[str, Any]:
    return {
        "method": request.method,
        "path": request.path,
        "url": request.url,
        "headers": header_map(request.headers.raw),
        "query": query_map(request.query_items()),
        "api": {"body": api_body},
    }


def build_request_environment(
    request: InboundRequest,
    context: TemplateContext,
    api_body: Any = None,
) -> Dict[str, Any]:
    """Environment for the header, query and request-body stages."""
    return {
        "request": _request_branch(request, api_body),
        "context": context,
    }


def build_response_environment(
    request: InboundRequest,
    context: TemplateContext,
    captured: CapturedResponse,
    original_body: Optional[bytes],
    modified_body: Optional[bytes],
) -> Dict[str, Any]:
    """
    Environment for the response stage.

    Request payloads are parsed leniently: this stage must not fail just
    because the request bodies were not JSON.
    """
    branch = _request_branch(request, parse_json_lenient(original_body))
    branch["modified"] = {"body": parse_json_lenient(modified_body)}
    return {
        "request": branch,
        "response": {
            "body": parse_response_body(captured.body),
            "status": captured.status_code,
            "headers": header_map(captured.headers),
        },
        "context": context,
    }
