"""
Modifier — Demo Service Schemas
=================================

What:  Pydantic models for the demo downstream service's responses.
Why:   The echo routes exist to be rewritten by response templates, so
       their shape is fixed and documented here: nested objects, lists,
       maps and arrays of maps give templates something to reach into.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ChatData(BaseModel):
    processed: bool = Field(default=True)
    original_question: Optional[Any] = Field(default=None)
    conversation_id: Optional[Any] = Field(default=None)


class ChatResponse(BaseModel):
    """
    What:  Echo of a chat request.
    Who:   Returned by POST /chat.
    """
    id: int = Field(description="Random message id (0-999)")
    answer: str = Field(description="Echo of the question or message")
    timestamp: str = Field(description="Server time (UTC ISO 8601)")
    query: Dict[str, str] = Field(default_factory=dict, description="Query parameters as received")
    data: ChatData
    data_list: List[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])
    data_map: Dict[str, int] = Field(default_factory=lambda: {"a": 1, "b": 2, "c": 3})
    data_array_of_maps: List[Dict[str, str]] = Field(
        default_factory=lambda: [
            {"key1": "value1", "key2": "value2"},
            {"key1": "valueA", "key2": "valueB"},
        ]
    )


class EndpointEchoResponse(BaseModel):
    """Returned by POST /api/{endpoint}."""
    endpoint: str
    method: str
    body: Optional[Any] = None
    timestamp: str


class HealthResponse(BaseModel):
    """
    What:  Liveness status of the service.
    Who:   Returned by GET /health.
    """
    status: str = Field(description="Always 'healthy' while the process serves requests")
    version: str = Field(description="Package version")
    timestamp: str = Field(description="Server time (UTC ISO 8601)")
