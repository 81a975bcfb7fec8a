# Services package init
"""
Modifier — Transformation Services
====================================

What:  The per-concern transformers the middleware sequences, and the
       per-request records they share. No ASGI I/O happens here except
       draining the request body.

Service Inventory:
    - context.py:      Template Context (per-request timestamps, id)
    - request.py:      InboundRequest working copy, body read/replay
    - environment.py:  Environment (template data tree) builder
    - headers.py:      HeaderModifier
    - query.py:        QueryModifier
    - body.py:         BodyModifier (request and response stages)
    - capture.py:      PassthroughSink / BufferingSink response sinks
"""

from modifier.services.body import BodyModifier
from modifier.services.capture import BufferingSink, CapturedResponse, PassthroughSink
from modifier.services.context import TemplateContext, new_template_context
from modifier.services.headers import HeaderModifier
from modifier.services.query import QueryModifier
from modifier.services.request import InboundRequest

__all__ = [
    "BodyModifier",
    "BufferingSink",
    "CapturedResponse",
    "PassthroughSink",
    "TemplateContext",
    "new_template_context",
    "HeaderModifier",
    "QueryModifier",
    "InboundRequest",
]
