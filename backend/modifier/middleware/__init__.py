# Middleware package init
"""
Modifier — Middleware Package
===============================

What:  ASGI middleware: the transformation orchestrator plus the
       request-id and access-log middlewares the demo service stacks
       around it.

Middleware Chain (demo service):
    Request → [Request ID] → [Logging] → [Modifier] → Route Handler

    - Request ID first: every later log line and `context.request_id`
      share the same id
    - Logging outside Modifier: logs the status the client actually gets
    - Modifier innermost: rewrites exactly what the routes see and produce
"""

from modifier.middleware.modifier import ModifierMiddleware
from modifier.middleware.logging import RequestLoggingMiddleware
from modifier.middleware.request_id import RequestIDMiddleware, request_id_var

__all__ = [
    "ModifierMiddleware",
    "RequestLoggingMiddleware",
    "RequestIDMiddleware",
    "request_id_var",
]
