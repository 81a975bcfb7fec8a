"""
Modifier — Custom Exception Hierarchy
=======================================

What:  Application-specific exceptions for each failure mode of the pipeline.
Why:   Each stage fails differently: some failures must reach the client as
       4xx/5xx responses, others are logged and skipped. Distinct types let
       the orchestrator tell them apart without string matching.
How:   Every exception carries a human-readable message and an optional
       context dict (logged, never returned to the client).

Exception Hierarchy:
    ModifierError (base)
    ├── ConfigurationError         → raised at construction time
    │   └── TemplateCompileError   → template syntax error
    ├── TemplateRenderError        → compiled template failed to execute
    ├── RequestTransformError      → 400 Bad Request
    └── ResponseTransformError     → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class ModifierError(Exception):
    """
    Base exception for all middleware errors.

    Attributes:
        message:  Description safe to return in an API response
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ConfigurationError(ModifierError):
    """
    Raised when the middleware configuration cannot be loaded or is invalid.

    When:    Building a ModifierConfig from a file, or constructing a
             transformer with a template that does not compile.
    """

    def __init__(
        self,
        message: str = "Invalid modifier configuration",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class TemplateCompileError(ConfigurationError):
    """
    Raised when a template string fails to parse.

    Body templates are load-bearing, so this propagates out of the
    constructor. Header/query entries catch it and skip the single entry.
    """

    def __init__(
        self,
        template_name: str,
        reason: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["template"] = template_name
        super().__init__(
            message=f"Template '{template_name}' failed to compile: {reason}",
            context=ctx,
        )
        self.template_name = template_name


class TemplateRenderError(ModifierError):
    """Raised when a compiled template fails to execute against its data."""

    def __init__(
        self,
        template_name: str,
        reason: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["template"] = template_name
        super().__init__(
            message=f"Template '{template_name}' failed to render: {reason}",
            context=ctx,
        )
        self.template_name = template_name


class RequestTransformError(ModifierError):
    """
    Raised when the request cannot be transformed because of what the
    client sent.

    When:    Body stream interrupted, body is not valid JSON, or the request
             template fails against the client's payload.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "request_transform_error",
            "message": "Request masking error: failed to parse request JSON: ...",
            "request_id": "a1b2c3d4"
        }
    """

    status_code = 400
    error_code = "request_transform_error"

    def __init__(
        self,
        message: str = "Request transformation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ResponseTransformError(ModifierError):
    """
    Raised when a matched response template fails to execute.

    HTTP:    500 Internal Server Error
    The downstream response is discarded; the client only sees the error.
    """

    status_code = 500
    error_code = "response_transform_error"

    def __init__(
        self,
        message: str = "Response transformation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
