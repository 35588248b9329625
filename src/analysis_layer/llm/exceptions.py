"""
Exceptions for the LLM client layer.

These describe transport and server failures, as opposed to the attempt-local
GenerationFailure taxonomy (bad content). They are not retried by the
RetryController: inside a batch they become the failing facet's terminal
reason, and the HTTP layer maps them to 502/503/504.
"""


class LLMClientError(Exception):
    """
    Base exception for all LLM client errors.

    All LLM-specific exceptions inherit from this to allow catching
    any LLM-related error with a single except clause.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def reason(self) -> str:
        return "llm_error"


class LLMConnectionError(LLMClientError):
    """
    Unable to reach the model server (network errors, refused connections).

    Already retried with backoff inside the client before being raised.
    """

    @property
    def reason(self) -> str:
        return "llm_unreachable"


class LLMGenerationError(LLMClientError):
    """
    The model server returned an error for a generation call
    (invalid parameters, out of memory, 5xx after retries).
    """


class LLMTimeoutError(LLMConnectionError):
    """A single call exceeded the configured HTTP timeout."""

    @property
    def reason(self) -> str:
        return "llm_timeout"


class LLMModelNotAvailableError(LLMGenerationError):
    """The configured model is not pulled on the server. Never retried."""

    @property
    def reason(self) -> str:
        return "model_not_available"
