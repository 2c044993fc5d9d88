"""Core business logic"""

from .cache import CacheStore, MemoryCache, fingerprint
from .exceptions import (
    PromptsmithError,
    ValidationError,
    NotFoundError,
    InvalidTransition,
    AIServiceError,
    DependencyUnavailable,
    RateLimited,
    Unauthorized,
    TransientAIError,
    GenerationFailed,
    DecodeFailure,
)

__all__ = [
    "CacheStore",
    "MemoryCache",
    "fingerprint",
    "PromptsmithError",
    "ValidationError",
    "NotFoundError",
    "InvalidTransition",
    "AIServiceError",
    "DependencyUnavailable",
    "RateLimited",
    "Unauthorized",
    "TransientAIError",
    "GenerationFailed",
    "DecodeFailure",
]
