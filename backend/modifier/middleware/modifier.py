"""
Modifier — Transformation Middleware (Orchestrator)
=====================================================

What:  ASGI middleware that rewrites a request's headers, query string and
       body, forwards it, and optionally rewrites the response body.
How:   One pass per HTTP request:

           new Template Context
             → headers → query → request body
             → downstream app (through a response sink)
             → response body (only when a response template exists)

       Every stage shares the same Template Context. The request body
       rewritten by the body stage is exposed to the response template as
       `request.modified.body`.

Response sinks:
    PassthroughSink when no response templates are configured (the
    downstream app streams straight to the client); BufferingSink
    otherwise, so nothing reaches the client until the response stage has
    either succeeded or been replaced by an error.

Errors:
    RequestTransformError  → 400 JSON error, downstream app never called
    ResponseTransformError → 500 JSON error, downstream output discarded
    Anything raised by the downstream app propagates unchanged.

Usage:
    app.add_middleware(ModifierMiddleware, config=ModifierConfig(...))
"""

import logging
from typing import Optional

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from modifier.config import ModifierConfig
from modifier.exceptions import ModifierError
from modifier.middleware.request_id import request_id_var
from modifier.services.body import BodyModifier
from modifier.services.capture import BufferingSink, PassthroughSink
from modifier.services.context import new_template_context
from modifier.services.headers import HeaderModifier
from modifier.services.query import QueryModifier
from modifier.services.request import InboundRequest, read_request_body, replay_receive


class ModifierMiddleware:
    """
    Template-driven request/response rewriting for any ASGI app.

    Construction compiles every template once. Header/query templates that
    fail to compile are logged and skipped; body templates that fail raise
    TemplateCompileError here, before any request is served.

    Args:
        app:     The downstream ASGI application.
        config:  Template configuration; None means pass-through.
        logger:  Diagnostics sink for this instance and its transformers.
    """

    def __init__(
        self,
        app: ASGIApp,
        config: Optional[ModifierConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.app = app
        self.config = config or ModifierConfig()
        self.logger = logger or logging.getLogger(__name__)

        self.header_modifier = HeaderModifier(self.config.headers, logger=self.logger)
        self.query_modifier = QueryModifier(self.config.query, logger=self.logger)
        self.body_modifier = BodyModifier(
            self.config.request, self.config.response, logger=self.logger
        )

    @property
    def buffers_request_body(self) -> bool:
        return self.body_modifier.has_request_template or self.body_modifier.has_response_templates

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        context = new_template_context(request_id_var.get(""))

        try:
            request = InboundRequest(scope)
            if self.buffers_request_body:
                request.body = await read_request_body(receive)

            self.header_modifier.modify_headers(request, context)
            self.query_modifier.modify_query(request, context)
            original_body, modified_body = self.body_modifier.modify_request_body(request, context)
        except ModifierError as e:
            await self._send_error(e, scope, receive, send, context["request_id"], status_code=400)
            return

        downstream_receive = receive
        if request.body is not None:
            downstream_receive = replay_receive(request.body, receive)

        if not self.body_modifier.has_response_templates:
            await self.app(request.scope, downstream_receive, PassthroughSink(send))
            return

        sink = BufferingSink()
        await self.app(request.scope, downstream_receive, sink)

        try:
            response = self.body_modifier.modify_response(
                sink.captured(), original_body, modified_body, request, context
            )
        except ModifierError as e:
            await self._send_error(e, scope, receive, send, context["request_id"], status_code=500)
            return

        await response(request.scope, receive, send)

    async def _send_error(
        self,
        exc: ModifierError,
        scope: Scope,
        receive: Receive,
        send: Send,
        rid: str,
        status_code: int,
    ) -> None:
        status_code = getattr(exc, "status_code", status_code)
        log_level = logging.ERROR if status_code >= 500 else logging.WARNING
        self.logger.log(
            log_level,
            "[%s] %s %s: %s | Context: %s",
            rid,
            scope.get("method", ""),
            scope.get("path", ""),
            exc.message,
            exc.context,
        )
        response = JSONResponse(
            status_code=status_code,
            content={
                "error": getattr(exc, "error_code", "modifier_error"),
                "message": exc.message,
                "request_id": rid,
            },
        )
        await response(scope, receive, send)
