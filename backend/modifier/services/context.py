"""
Modifier — Template Context
=============================

What:  The small bag of per-request dynamic values exposed to templates as
       `context.*` (timestamps, correlation id).
How:   new_template_context() is called once at the start of each request
       and returns a read-only mapping. It is threaded through every stage
       of that request and then dropped.

Template usage:
    "X-Request-ID": "req_[[ context.unixtime ]]"
    "trace": "[[ context.request_id ]]"
"""

import time
import uuid
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping, Optional

TemplateContext = Mapping[str, Any]


def new_request_id() -> str:
    """Short correlation id: 8 hex characters."""
    return uuid.uuid4().hex[:8]


def new_template_context(request_id: Optional[str] = None) -> TemplateContext:
    """
    Build the context for one request.

    Args:
        request_id: correlation id assigned upstream (e.g. by
                    RequestIDMiddleware); a fresh one is generated if empty.
    """
    unixnano = time.time_ns()
    moment = datetime.fromtimestamp(unixnano / 1_000_000_000, tz=timezone.utc)
    return MappingProxyType(
        {
            "unixtime": unixnano // 1_000_000_000,
            "unixnano": unixnano,
            "timestamp": moment.isoformat(),
            "request_id": request_id or new_request_id(),
        }
    )
