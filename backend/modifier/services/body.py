"""
Modifier — Body Transformer
=============================

What:  Rewrites the request body before it is forwarded, and the response
       body after the downstream app has produced it.
How:   One request template, plus a map of status code → response template.
       All templates compile at construction; a syntax error is fatal here
       (unlike headers/query) because the body is load-bearing.

Request stage (modify_request_body):
    body bytes ─▶ strict JSON parse ─▶ render ─▶ strip placeholders ─▶ new body
    Any failure is the client's: RequestTransformError (400).

Response stage (modify_response):
    captured response ─▶ status has a template?
        no  ─▶ captured status, headers and bytes unchanged
        yes ─▶ render ─▶ strip placeholders ─▶ valid JSON?
                   yes ─▶ minified JSON, Content-Type: application/json
                   no  ─▶ rendered text as-is, content type untouched
    Render failure is ours: ResponseTransformError (500).
"""

import json
import logging
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from starlette.datastructures import MutableHeaders
from starlette.responses import Response

from modifier.exceptions import (
    RequestTransformError,
    ResponseTransformError,
    TemplateRenderError,
)
from modifier.services.capture import CapturedResponse, RawHeaders
from modifier.services.context import TemplateContext
from modifier.services.environment import (
    build_request_environment,
    build_response_environment,
    loads_strict,
    parse_json_body,
)
from modifier.services.request import InboundRequest
from modifier.templating import CompiledTemplate, compile_template, strip_missing_values


def _raw_response(status_code: int, raw_headers: RawHeaders, body: bytes) -> Response:
    """A Response that sends exactly the given status, headers and bytes."""
    response = Response(content=body, status_code=status_code)
    response.raw_headers = list(raw_headers)
    return response


class BodyModifier:
    """Request and response body rewriting sharing one configuration."""

    def __init__(
        self,
        request_template: Optional[str] = None,
        response_templates: Optional[Mapping[int, str]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Raises:
            TemplateCompileError: any configured body template is invalid.
        """
        self._logger = logger or logging.getLogger(__name__)
        self._request_template: Optional[CompiledTemplate] = None
        if request_template:
            self._request_template = compile_template("request", request_template)

        self._response_templates: Dict[int, CompiledTemplate] = {
            int(status): compile_template(f"response_{status}", source)
            for status, source in (response_templates or {}).items()
            if source
        }

    @property
    def has_request_template(self) -> bool:
        return self._request_template is not None

    @property
    def has_response_templates(self) -> bool:
        return bool(self._response_templates)

    @property
    def response_templates(self) -> Mapping[int, CompiledTemplate]:
        return MappingProxyType(self._response_templates)

    # ── Request stage ─────────────────────────────────────────────────────

    def modify_request_body(
        self,
        request: InboundRequest,
        context: TemplateContext,
    ) -> Tuple[Optional[bytes], Optional[bytes]]:
        """
        Render the request template and install the result as the body.

        Returns:
            (original bytes, modified bytes). When there is nothing to do
            (no template, or the body was not buffered) the body is returned
            unchanged in both positions.

        Raises:
            RequestTransformError: body is not JSON, or the template failed.
        """
        original = request.body
        if self._request_template is None or original is None:
            return original, original

        try:
            payload = parse_json_body(original)
        except ValueError as e:
            raise RequestTransformError(
                message=f"Request masking error: failed to parse request JSON: {e}",
                context={"path": request.path},
            ) from e

        data = build_request_environment(request, context, api_body=payload)
        try:
            rendered = self._request_template.render(data)
        except TemplateRenderError as e:
            raise RequestTransformError(
                message=f"Request masking error: failed to execute request template: {e.message}",
                context=e.context,
            ) from e

        modified = strip_missing_values(rendered).encode("utf-8")
        request.set_body(modified)
        self._logger.debug("Request body rewritten: %d → %d bytes", len(original), len(modified))
        return original, modified

    # ── Response stage ────────────────────────────────────────────────────

    def modify_response(
        self,
        captured: CapturedResponse,
        original_request_body: Optional[bytes],
        modified_request_body: Optional[bytes],
        request: InboundRequest,
        context: TemplateContext,
    ) -> Response:
        """
        Produce the response the client will receive.

        Raises:
            ResponseTransformError: the status-matched template failed.
        """
        template = self._response_templates.get(captured.status_code)
        if template is None:
            return _raw_response(captured.status_code, captured.headers, captured.body)

        data = build_response_environment(
            request, context, captured, original_request_body, modified_request_body
        )
        try:
            rendered = template.render(data)
        except TemplateRenderError as e:
            raise ResponseTransformError(
                message=f"response masking error: {e.message}",
                context={**e.context, "status": captured.status_code},
            ) from e

        cleaned = strip_missing_values(rendered)
        headers = MutableHeaders(raw=list(captured.headers))
        # Rewritten bytes are never content-encoded
        del headers["content-encoding"]

        try:
            document = loads_strict(cleaned)
        except ValueError:
            body = cleaned.encode("utf-8")
            headers["content-length"] = str(len(body))
            self._logger.debug("Response %d rewritten as text (%d bytes)", captured.status_code, len(body))
            return _raw_response(captured.status_code, headers.raw, body)

        body = json.dumps(
            document, separators=(",", ":"), sort_keys=True, ensure_ascii=False
        ).encode("utf-8")
        headers["content-length"] = str(len(body))
        headers["content-type"] = "application/json"
        self._logger.debug("Response %d rewritten as JSON (%d bytes)", captured.status_code, len(body))
        return _raw_response(captured.status_code, headers.raw, body)
