"""
FastAPI exception handlers for structured error responses.

Maps domain exceptions to HTTP status codes and JSON error bodies.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
import structlog

from analysis_layer.api.models import ErrorResponse
from analysis_layer.llm.exceptions import (
    LLMClientError,
    LLMConnectionError,
    LLMModelNotAvailableError,
    LLMTimeoutError,
)
from analysis_layer.orchestration.exceptions import BatchFailed
from analysis_layer.schema.registry import UnknownFacetError

logger = structlog.get_logger(__name__)


def _error(status_code: int, error: str, message: str, details: dict | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, details=details or {})
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def batch_failed_handler(request: Request, exc: BatchFailed) -> JSONResponse:
    """
    One or more facets failed both attempts (or hit a transport error).

    Maps to 503: the analysis could not be produced right now. The body names
    every failed facet with its terminal reasons.
    """
    logger.error(
        "Batch failed",
        session_id=exc.session_id,
        failed_facets=[facet.value for facet in exc.failed_facets],
    )
    return _error(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "batch_failed",
        str(exc),
        {"session_id": exc.session_id, "facets": exc.to_details()},
    )


async def llm_connection_error_handler(request: Request, exc: LLMConnectionError) -> JSONResponse:
    """Model server unreachable: 502 Bad Gateway."""
    logger.error("LLM connection error", error=str(exc))
    return _error(
        status.HTTP_502_BAD_GATEWAY,
        "llm_connection_failed",
        "Unable to connect to LLM inference server",
    )


async def llm_timeout_error_handler(request: Request, exc: LLMTimeoutError) -> JSONResponse:
    """Model server too slow: 504 Gateway Timeout."""
    logger.error("LLM timeout error", error=str(exc))
    return _error(
        status.HTTP_504_GATEWAY_TIMEOUT,
        "llm_timeout",
        "LLM inference server request timed out",
    )


async def llm_model_missing_handler(request: Request, exc: LLMModelNotAvailableError) -> JSONResponse:
    logger.error("LLM model not available", error=str(exc), details=exc.details)
    return _error(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "model_not_available",
        exc.message,
        exc.details,
    )


async def llm_error_handler(request: Request, exc: LLMClientError) -> JSONResponse:
    logger.error("LLM error", error=str(exc), details=exc.details)
    return _error(status.HTTP_502_BAD_GATEWAY, "llm_error", exc.message)


async def unknown_facet_handler(request: Request, exc: UnknownFacetError) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, "unknown_facet", str(exc.args[0]) if exc.args else "Unknown facet")


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unexpected errors: 500 Internal Server Error."""
    logger.exception("Unexpected error", error_type=type(exc).__name__)
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred",
    )


# Exception handler mapping for FastAPI app.add_exception_handler()
EXCEPTION_HANDLERS = {
    BatchFailed: batch_failed_handler,
    LLMTimeoutError: llm_timeout_error_handler,
    LLMConnectionError: llm_connection_error_handler,
    LLMModelNotAvailableError: llm_model_missing_handler,
    LLMClientError: llm_error_handler,
    UnknownFacetError: unknown_facet_handler,
    Exception: generic_error_handler,
}
