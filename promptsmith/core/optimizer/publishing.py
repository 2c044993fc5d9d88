"""Hand-off of applied optimizations to the prompt library."""

import logging
from typing import Any, Optional, Protocol

from pydantic import BaseModel

from .types import MediaType, PublishOutput

logger = logging.getLogger(__name__)


class PublishRequest(BaseModel):
    """Everything the prompt library needs to create a prompt."""

    user_id: str
    optimization_id: str
    title: str
    description: Optional[str] = None
    optimized_prompt: str
    original_prompt: str
    media_type: MediaType
    target_model: str
    tags: list[str] = []
    is_public: bool = True
    sample_output: Optional[str] = None
    image_url: Optional[str] = None
    outputs: list[PublishOutput] = []


class PromptPublisher(Protocol):
    """Creates a prompt from a publish request. Returns the created prompt."""

    async def publish(self, request: PublishRequest) -> Any:
        ...


class InMemoryPublisher:
    """Publisher that keeps requests in a list; for local runs and tests."""

    def __init__(self) -> None:
        self.published: list[PublishRequest] = []

    async def publish(self, request: PublishRequest) -> PublishRequest:
        self.published.append(request)
        logger.info(
            f"Published optimization {request.optimization_id} as '{request.title}'"
        )
        return request
