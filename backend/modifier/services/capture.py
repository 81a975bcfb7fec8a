"""
Modifier — Response Sinks
===========================

What:  The two interchangeable `send` implementations handed to the
       downstream app:
       - PassthroughSink: forwards every message to the real client.
       - BufferingSink (the Response Capture): records status, headers and
         body bytes and forwards nothing, so the response can still be
         rewritten after the downstream app has finished.
How:   Both are ASGI `send` callables. The orchestrator picks one per
       request; buffering only when a response template is configured.

Why buffer the whole body:
    A response template may reference any field of the body, so the body
    must be complete before it renders. Large responses are held in memory
    for the duration of the request.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

from starlette.types import Message, Send

RawHeaders = List[Tuple[bytes, bytes]]


@dataclass(frozen=True)
class CapturedResponse:
    """What the downstream app produced. Read once by the response stage."""

    status_code: int = 200
    headers: RawHeaders = field(default_factory=list)
    body: bytes = b""


class PassthroughSink:
    """Forwards the downstream response untouched."""

    def __init__(self, send: Send):
        self._send = send

    async def __call__(self, message: Message) -> None:
        await self._send(message)


class BufferingSink:
    """
    Records the downstream response instead of sending it.

    Status code: last `http.response.start` wins; 200 if none is sent.
    Body: every `http.response.body` chunk, concatenated.
    """

    def __init__(self):
        self._status_code = 200
        self._headers: RawHeaders = []
        self._body = bytearray()

    async def __call__(self, message: Message) -> None:
        message_type = message["type"]
        if message_type == "http.response.start":
            self._status_code = message["status"]
            self._headers = list(message.get("headers") or [])
        elif message_type == "http.response.body":
            self._body.extend(message.get("body", b""))

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def headers(self) -> RawHeaders:
        return list(self._headers)

    @property
    def body(self) -> bytes:
        return bytes(self._body)

    def captured(self) -> CapturedResponse:
        return CapturedResponse(
            status_code=self._status_code,
            headers=list(self._headers),
            body=bytes(self._body),
        )
