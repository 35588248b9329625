"""
Ollama client implementation.

Communicates with the Ollama API using httpx AsyncClient:
- Constrained decoding via the ``format`` parameter (JSON Schema grammar)
- System prompt and sampling/context options per call
- Connection-level retry with exponential backoff
- Execution channels: one dedicated AsyncClient per facet task, so concurrent
  facets never share a connection or request state. The server schedules the
  requests onto its parallel decode slots for the single loaded model.
"""

import asyncio
import json
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional
import httpx
import structlog

from analysis_layer.llm.base_client import BaseLLMClient, ExecutionChannel
from analysis_layer.llm.exceptions import (
    LLMConnectionError,
    LLMGenerationError,
    LLMTimeoutError,
    LLMModelNotAvailableError,
)
from analysis_layer.models.llm_models import LLMGenerationRequest, LLMGenerationResponse


logger = structlog.get_logger(__name__)


class OllamaChannel(ExecutionChannel):
    """Execution channel backed by its own httpx AsyncClient."""

    def __init__(self, client: "OllamaClient", http_client: httpx.AsyncClient, channel_id: int):
        super().__init__(channel_id)
        self._client = client
        self._http = http_client

    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        return await self._client._generate_on(self._http, request, self.channel_id)


class OllamaClient(BaseLLMClient):
    """
    Ollama-specific LLM client.

    API Endpoints:
    - POST /api/generate: Generate completion with format constraint
    - GET /api/tags: List available models (health check)
    - POST /api/show: Model details
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        timeout: int = 120,
        max_retries: int = 2,
        connection_limits: Optional[httpx.Limits] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs
    ):
        """
        Initialize Ollama client.

        Args:
            base_url: Ollama server URL
            timeout: Request timeout in seconds
            max_retries: Connection-level attempts for network errors
            connection_limits: httpx pool limits for the shared client
            transport: Optional httpx transport (tests use httpx.MockTransport)
            **kwargs: Additional config
        """
        super().__init__(base_url, timeout, max_retries, **kwargs)

        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10,
                keepalive_expiry=30.0
            )

        self._client: Optional[httpx.AsyncClient] = None
        self._connection_limits = connection_limits
        self._transport = transport

        logger.info(
            "Ollama client initialized",
            base_url=self.base_url,
            timeout=timeout,
            max_retries=self.max_retries,
        )

    def _new_http_client(self, limits: Optional[httpx.Limits] = None) -> httpx.AsyncClient:
        kwargs: Dict[str, Any] = {
            "base_url": self.base_url,
            "timeout": httpx.Timeout(self.timeout),
            "limits": limits or self._connection_limits,
            "follow_redirects": True,
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return httpx.AsyncClient(**kwargs)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared async HTTP client (health checks, one-off calls)."""
        if self._client is None or self._client.is_closed:
            self._client = self._new_http_client()
            logger.debug("Created shared httpx AsyncClient")
        return self._client

    @asynccontextmanager
    async def open_channels(self, count: int) -> AsyncIterator[list[OllamaChannel]]:
        """Yield ``count`` channels, each with a dedicated single-connection client."""
        if count < 1:
            raise ValueError("count must be >= 1")
        http_clients = [
            self._new_http_client(httpx.Limits(max_connections=1, max_keepalive_connections=1))
            for _ in range(count)
        ]
        channels = [OllamaChannel(self, http, channel_id) for channel_id, http in enumerate(http_clients)]
        logger.debug("Opened execution channels", count=count)
        try:
            yield channels
        finally:
            await asyncio.gather(*(http.aclose() for http in http_clients))
            logger.debug("Closed execution channels", count=count)

    @staticmethod
    def build_payload(request: LLMGenerationRequest) -> Dict[str, Any]:
        """
        Translate a request into the /api/generate payload:

        {
            "model": "qwen3:4b-instruct",
            "prompt": "...",
            "system": "...",
            "stream": false,
            "format": {<JSON Schema grammar>},
            "options": {"temperature": 0.7, "num_predict": 1024, "num_ctx": 4096}
        }
        """
        options: Dict[str, Any] = {
            "temperature": request.temperature,
            "num_predict": request.max_tokens,
        }
        if request.num_ctx is not None:
            options["num_ctx"] = request.num_ctx
        if request.top_p is not None:
            options["top_p"] = request.top_p
        if request.seed is not None:
            options["seed"] = request.seed
        if request.stop_sequences:
            options["stop"] = request.stop_sequences

        payload: Dict[str, Any] = {
            "model": request.model,
            "prompt": request.prompt,
            "stream": request.stream,
            "options": options,
            # Schema object is the grammar; "json" is the unconstrained fallback
            "format": request.format_schema or "json",
        }
        if request.system:
            payload["system"] = request.system
        return payload

    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        client = await self._get_client()
        return await self._generate_on(client, request, channel_id=None)

    async def _generate_on(
        self,
        http_client: httpx.AsyncClient,
        request: LLMGenerationRequest,
        channel_id: Optional[int],
    ) -> LLMGenerationResponse:
        """
        POST /api/generate on a given HTTP client.

        An empty ``response`` field is returned as empty content: judging model
        output is the generator's job, not the transport's.
        """
        start_time = time.time()
        payload = self.build_payload(request)

        logger.debug(
            "Sending generation request to Ollama",
            model=request.model,
            channel_id=channel_id,
            prompt_length=len(request.prompt),
            temperature=request.temperature,
            max_tokens=request.max_tokens,
            has_schema=bool(request.format_schema),
        )

        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                response = await http_client.post("/api/generate", json=payload)
                response.raise_for_status()
                response_data = response.json()
                latency_ms = int((time.time() - start_time) * 1000)

                content = response_data.get("response") or ""
                model_version = response_data.get("model", request.model)
                finish_reason = response_data.get("done_reason") or (
                    "stop" if response_data.get("done") else "incomplete"
                )

                prompt_tokens = response_data.get("prompt_eval_count")
                completion_tokens = response_data.get("eval_count")
                total_tokens = None
                if prompt_tokens is not None and completion_tokens is not None:
                    total_tokens = prompt_tokens + completion_tokens

                logger.debug(
                    "Ollama generation completed",
                    model=model_version,
                    channel_id=channel_id,
                    latency_ms=latency_ms,
                    completion_tokens=completion_tokens,
                    finish_reason=finish_reason,
                    attempt=attempt,
                )

                return LLMGenerationResponse(
                    content=content,
                    model_version=model_version,
                    finish_reason=finish_reason,
                    usage_tokens=total_tokens,
                    prompt_tokens=prompt_tokens,
                    completion_tokens=completion_tokens,
                    latency_ms=latency_ms,
                    channel_id=channel_id,
                    raw_metadata={
                        "total_duration": response_data.get("total_duration"),
                        "load_duration": response_data.get("load_duration"),
                        "eval_duration": response_data.get("eval_duration"),
                        "created_at": response_data.get("created_at"),
                    },
                )

            except httpx.TimeoutException as e:
                logger.warning(
                    "Ollama request timeout",
                    attempt=attempt,
                    max_retries=self.max_retries,
                    timeout=self.timeout,
                    error=str(e),
                )
                last_error = LLMTimeoutError(
                    f"Request timeout after {self.timeout}s",
                    details={"attempt": attempt, "timeout": self.timeout},
                )

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                error_text = e.response.text
                logger.error(
                    "Ollama HTTP error",
                    status_code=status_code,
                    error_text=error_text[:500],
                    attempt=attempt,
                )
                if status_code == 404:
                    raise LLMModelNotAvailableError(
                        f"Model not found: {request.model}",
                        details={"model": request.model, "status": status_code},
                    ) from e
                if status_code < 500:
                    raise LLMGenerationError(
                        f"Ollama client error: {status_code}",
                        details={"status": status_code, "error": error_text[:500]},
                    ) from e
                last_error = LLMGenerationError(
                    f"Ollama server error: {status_code}",
                    details={"status": status_code, "error": error_text[:500]},
                )

            except httpx.TransportError as e:
                logger.warning(
                    "Ollama network error",
                    attempt=attempt,
                    max_retries=self.max_retries,
                    error=str(e),
                )
                last_error = LLMConnectionError(
                    f"Network error: {str(e)}",
                    details={"attempt": attempt, "error_type": type(e).__name__},
                )

            except json.JSONDecodeError as e:
                logger.error("Failed to parse Ollama response JSON", error=str(e), attempt=attempt)
                raise LLMGenerationError(
                    "Invalid JSON response from Ollama",
                    details={"parse_error": str(e)},
                ) from e

            if attempt < self.max_retries:
                backoff = 2 ** attempt
                logger.info("Retrying Ollama request", backoff_seconds=backoff, attempt=attempt)
                await asyncio.sleep(backoff)

        raise last_error

    async def health_check(self) -> bool:
        """GET /api/tags; True if the server responds."""
        try:
            client = await self._get_client()
            response = await client.get("/api/tags", timeout=5.0)
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning("Ollama health check failed", error=str(e))
            return False

    async def get_model_info(self, model_name: str) -> Dict[str, Any]:
        """POST /api/show for ``model_name``."""
        client = await self._get_client()
        try:
            response = await client.post("/api/show", json={"model": model_name}, timeout=10.0)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise LLMModelNotAvailableError(
                    f"Model not found: {model_name}",
                    details={"model": model_name},
                ) from e
            raise LLMConnectionError(
                f"Failed to get model info: {e}",
                details={"model": model_name, "status": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise LLMConnectionError(
                f"Error getting model info: {str(e)}",
                details={"model": model_name},
            ) from e

        data = response.json()
        logger.debug("Retrieved model info", model=model_name, info=data.get("details"))
        return data

    async def list_models(self) -> list[str]:
        """Names of models pulled on the server."""
        client = await self._get_client()
        try:
            response = await client.get("/api/tags", timeout=10.0)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise LLMConnectionError(f"Failed to list models: {str(e)}") from e
        return [m["name"] for m in response.json().get("models", [])]

    async def close(self):
        """Close the shared HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed Ollama client connection")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
