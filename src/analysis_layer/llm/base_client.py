"""
Abstract base client for LLM inference.

Defines the interface the analysis pipeline uses to reach a model server. One
loaded model is shared by all facets; concurrency comes from execution
channels, each owned by exactly one facet task for the length of a batch.
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncContextManager, Dict, Sequence
import structlog

from analysis_layer.models.llm_models import LLMGenerationRequest, LLMGenerationResponse


logger = structlog.get_logger(__name__)


class ExecutionChannel(ABC):
    """
    Independent generation channel over the shared model.

    A channel holds no decoding state shared with other channels, so tasks
    that each own one channel need no locking.
    """

    def __init__(self, channel_id: int):
        self.channel_id = channel_id

    @abstractmethod
    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        """Run one constrained generation call on this channel."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(channel_id={self.channel_id})"


class BaseLLMClient(ABC):
    """
    Abstract base class for LLM inference clients.

    Responsibilities:
    - Send generation requests to the inference server
    - Hand out independent execution channels for concurrent facets
    - Handle connection errors and timeouts
    - Provide health check and model info

    Does NOT handle:
    - Prompt construction (PromptBuilder)
    - Output validation (ConstrainedGenerator and validation stages)
    - Retries on bad content (RetryController)

    Connection-level retries (network errors) are handled internally.
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = 60,
        max_retries: int = 2,
        **kwargs
    ):
        """
        Initialize base client.

        Args:
            base_url: Base URL of the inference server (e.g., http://localhost:11434)
            timeout: Request timeout in seconds
            max_retries: Number of connection-level attempts for network errors
            **kwargs: Additional provider-specific config
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.extra_config = kwargs

    @abstractmethod
    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        """
        One-off generation outside any batch (shared connection).

        Raises:
            LLMConnectionError: Network errors
            LLMTimeoutError: Request exceeded timeout
            LLMModelNotAvailableError: Model not found
            LLMGenerationError: Server-side generation errors
        """

    @abstractmethod
    def open_channels(self, count: int) -> AsyncContextManager[Sequence[ExecutionChannel]]:
        """
        Open ``count`` independent execution channels.

        Used as ``async with client.open_channels(4) as channels:``; channels
        are released when the block exits.
        """

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check that the inference server is reachable.

        Must not raise: returns False on any error.
        """

    @abstractmethod
    async def get_model_info(self, model_name: str) -> Dict[str, Any]:
        """
        Get metadata about a model (digest, size, quantization, context length).

        Raises:
            LLMModelNotAvailableError: Model not found on server
            LLMConnectionError: Unable to reach server
        """

    async def close(self):
        """Release persistent connections. Called at shutdown."""
        logger.debug("Closing LLM client", client_class=self.__class__.__name__)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.base_url}, "
            f"timeout={self.timeout}s)"
        )
