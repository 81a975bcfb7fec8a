"""
Modifier — Echo Routes
========================

What:  A small downstream service whose requests and responses the
       transformation middleware rewrites in local experiments.
How:   Each route echoes what it received (after request rewriting), so
       the effect of header/query/body templates is visible in the reply.

Route Inventory:
    POST /chat              chat-style echo with nested data
    POST /api/{endpoint}    generic JSON echo
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Request

from modifier.schemas.echo import ChatData, ChatResponse, EndpointEchoResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Echo"])


@router.post("/chat", response_model=ChatResponse, summary="Echo a chat message")
async def chat(
    request: Request,
    payload: Optional[Dict[str, Any]] = Body(default=None),
) -> ChatResponse:
    payload = payload or {}
    query = dict(request.query_params)
    logger.debug("Received query parameters: %s", query)

    question = payload.get("question") or payload.get("message") or "nothing"
    return ChatResponse(
        id=secrets.randbelow(1000),
        answer=f'You asked: "{question}"',
        timestamp=datetime.now(timezone.utc).isoformat(),
        query=query,
        data=ChatData(
            processed=True,
            original_question=payload.get("question"),
            conversation_id=payload.get("conversation_id"),
        ),
    )


@router.post(
    "/api/{endpoint}",
    response_model=EndpointEchoResponse,
    summary="Echo any JSON payload",
)
async def echo_endpoint(
    endpoint: str,
    request: Request,
    payload: Optional[Any] = Body(default=None),
) -> EndpointEchoResponse:
    return EndpointEchoResponse(
        endpoint=endpoint,
        method=request.method,
        body=payload,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
