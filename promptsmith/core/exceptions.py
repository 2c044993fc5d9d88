"""Exception hierarchy for the optimization pipeline"""


class PromptsmithError(Exception):
    """Base class for all pipeline errors.

    ``message`` is safe to show to end users.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PromptsmithError):
    """Prompt rejected by pre-validation, or a malformed request."""


class NotFoundError(PromptsmithError):
    """Optimization record missing or owned by another user."""


class InvalidTransition(PromptsmithError):
    """Attempted to move an optimization backwards or off the state graph."""


class AIServiceError(PromptsmithError):
    """Base class for failures of the external text-generation service."""


class DependencyUnavailable(AIServiceError):
    """No text-generation credential is configured."""


class RateLimited(AIServiceError):
    """The text-generation service rejected the call with a rate limit."""

    def __init__(self, message: str = "Rate limit exceeded. Please try again later."):
        super().__init__(message)


class Unauthorized(AIServiceError):
    """The text-generation service rejected the configured credential."""

    def __init__(self, message: str = "Authentication failed. Please check your API key."):
        super().__init__(message)


class TransientAIError(AIServiceError):
    """A call failure worth retrying (network, timeout, 5xx)."""


class GenerationFailed(AIServiceError):
    """Retries were exhausted or the service returned nothing usable."""


class DecodeFailure(AIServiceError):
    """A structured response could not be decoded by any strategy."""

    def __init__(self, message: str = "AI response could not be parsed", excerpt: str = ""):
        super().__init__(message)
        self.excerpt = excerpt
