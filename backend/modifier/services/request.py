"""
Modifier — Inbound Request Record
===================================

What:  The mutable working copy of one request that the transformers
       rewrite before it is forwarded downstream.
How:   Wraps a private copy of the ASGI scope plus the buffered body.
       Headers are edited through Starlette's MutableHeaders, which writes
       straight into `scope["headers"]`; the query string is rewritten in
       `scope["query_string"]`. The downstream app receives this scope.
"""

from typing import List, Optional, Sequence, Tuple
from urllib.parse import urlencode

from starlette.datastructures import URL, MutableHeaders, QueryParams
from starlette.types import Receive, Scope

from modifier.exceptions import RequestTransformError


class InboundRequest:
    """
    Per-request view over an ASGI scope.

    Attributes:
        scope:  Private copy of the ASGI scope (safe to mutate).
        body:   Buffered body bytes, or None when the body was not buffered
                and streams to the downstream app untouched.
    """

    def __init__(self, scope: Scope, body: Optional[bytes] = None):
        self.scope = dict(scope)
        self.scope["headers"] = list(scope.get("headers") or [])
        self.scope.setdefault("query_string", b"")
        self.body = body
        self._headers = MutableHeaders(scope=self.scope)

    @property
    def headers(self) -> MutableHeaders:
        return self._headers

    @property
    def method(self) -> str:
        return self.scope.get("method", "GET")

    @property
    def path(self) -> str:
        return self.scope.get("path", "/")

    @property
    def url(self) -> str:
        return str(URL(scope=self.scope))

    def query_items(self) -> List[Tuple[str, str]]:
        """Current query parameters, in order, repeated keys included."""
        return QueryParams(self.scope["query_string"]).multi_items()

    def set_query(self, items: Sequence[Tuple[str, str]]) -> None:
        """Re-encode the query string from `items`, sorted by key (stable)."""
        ordered = sorted(items, key=lambda item: item[0])
        self.scope["query_string"] = urlencode(ordered).encode("latin-1")

    def set_body(self, body: bytes) -> None:
        """Install a new body; Content-Length replaces any Transfer-Encoding."""
        self.body = body
        self._headers["content-length"] = str(len(body))
        # The replayed body is a single message, never chunked
        del self._headers["transfer-encoding"]


async def read_request_body(receive: Receive) -> bytes:
    """
    Drain the ASGI receive channel into one bytes object.

    Raises:
        RequestTransformError: the client disconnected before the body
            was complete.
    """
    chunks = []
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            raise RequestTransformError(
                message="Request masking error: failed to read request body: client disconnected",
            )
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


def replay_receive(body: bytes, receive: Receive) -> Receive:
    """
    A receive channel that yields `body` once, then defers to the real
    channel (so the downstream app still observes http.disconnect).
    """
    sent = False

    async def wrapped_receive():
        nonlocal sent
        if not sent:
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return wrapped_receive
