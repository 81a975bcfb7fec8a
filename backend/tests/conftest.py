"""
Modifier — Test Configuration (conftest.py)
=============================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Inventory:
    ├── make_request: Builds InboundRequest objects from plain values
    ├── template_context: A fresh Template Context
    ├── mock_logger: MagicMock standing in for a logging.Logger
    ├── echo_app: Starlette app that echoes what it received as JSON
    ├── static_app: Factory for ASGI apps returning a fixed response
    ├── asgi_client: Factory for HTTPX clients bound to an ASGI app
    └── demo_client: HTTPX AsyncClient bound to the demo FastAPI service
"""

import os

# Before any modifier import: tests never read a real config file
os.environ.pop("MODIFIER_CONFIG_FILE", None)
os.environ["LOG_LEVEL"] = "WARNING"

import logging
from typing import Dict, Iterable, List, Optional, Tuple, Union
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from modifier.services.context import new_template_context
from modifier.services.request import InboundRequest

HeaderInput = Union[Dict[str, str], Iterable[Tuple[str, str]]]


def build_scope(
    method: str = "GET",
    path: str = "/test",
    query_string: str = "",
    headers: Optional[HeaderInput] = None,
) -> dict:
    """An ASGI HTTP scope for http://example.com{path}?{query_string}."""
    pairs = headers.items() if isinstance(headers, dict) else (headers or [])
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "server": ("example.com", 80),
        "client": ("127.0.0.1", 50000),
        "root_path": "",
        "path": path,
        "raw_path": path.encode("latin-1"),
        "query_string": query_string.encode("latin-1"),
        "headers": [
            (name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in pairs
        ],
    }


@pytest.fixture
def make_request():
    """
    Factory for InboundRequest objects.

    Usage:
        request = make_request(headers={"Authorization": "Bearer old"}, body=b"{}")
    """

    def _make(
        method: str = "GET",
        path: str = "/test",
        query_string: str = "",
        headers: Optional[HeaderInput] = None,
        body: Optional[bytes] = None,
    ) -> InboundRequest:
        scope = build_scope(method, path, query_string, headers)
        return InboundRequest(scope, body=body)

    return _make


@pytest.fixture
def template_context():
    return new_template_context()


@pytest.fixture
def mock_logger():
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def echo_app():
    """
    Downstream app that reports the request it received.

    Response JSON:
        {"method", "path", "query", "headers": [[name, value], ...], "body"}
    """

    async def echo(request: Request) -> JSONResponse:
        body = await request.body()
        return JSONResponse(
            {
                "method": request.method,
                "path": request.url.path,
                "query": request.url.query,
                "headers": [[name, value] for name, value in request.headers.items()],
                "body": body.decode("utf-8"),
            }
        )

    return Starlette(routes=[Route("/{path:path}", echo, methods=["GET", "POST", "PUT"])])


@pytest.fixture
def static_app():
    """
    Factory for a downstream app that always sends the same response.

    `chunks` lets the body arrive in several http.response.body messages.
    """

    def _make(
        status: int = 200,
        body: bytes = b"",
        headers: Optional[List[Tuple[bytes, bytes]]] = None,
        chunks: int = 1,
    ):
        calls = []

        async def app(scope, receive, send):
            calls.append(scope)
            await send({"type": "http.response.start", "status": status, "headers": headers or []})
            size = max(1, -(-len(body) // chunks))
            parts = [body[i:i + size] for i in range(0, len(body), size)] or [b""]
            for idx, part in enumerate(parts):
                await send(
                    {
                        "type": "http.response.body",
                        "body": part,
                        "more_body": idx < len(parts) - 1,
                    }
                )

        app.calls = calls
        return app

    return _make


def client_for(app) -> AsyncClient:
    """HTTPX client talking to `app` in-process."""
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://example.com")


@pytest_asyncio.fixture
async def demo_client():
    """
    Async HTTP client for the demo service with a small template set.

    Templates:
        request:  {"question": ..., "conversation_id": ...}
        200:      {"reply": ..., "asked": ..., "sent": ...}
        headers:  X-Forwarded-By
    """
    from modifier.config import ModifierConfig
    from modifier.main import create_app

    config = ModifierConfig(
        request='{"question": "[[ request.api.body.ask ]]", "conversation_id": "[[ request.query.cid ]]"}',
        response={
            200: (
                '{"reply": [[ toJSON(response.body.answer) ]], '
                '"asked": "[[ request.api.body.ask ]]", '
                '"sent": "[[ request.modified.body.question ]]"}'
            )
        },
        headers={"X-Forwarded-By": "modifier"},
    )
    app = create_app(config)
    async with client_for(app) as client:
        yield client


@pytest.fixture
def asgi_client():
    """
    Factory for in-process HTTPX clients.

    Usage:
        async with asgi_client(ModifierMiddleware(app, config=...)) as client:
            response = await client.get("/x")
    """
    return client_for
