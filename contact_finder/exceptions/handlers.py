import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .custom import BatchProcessingError

logger = logging.getLogger(__name__)


async def request_validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.warning("Rejected scrape request: %s", exc.errors())
    return JSONResponse(
        status_code=400,
        content={"detail": "URLs array is required"},
    )


async def batch_processing_error_handler(
    _request: Request, exc: BatchProcessingError
) -> JSONResponse:
    logger.error("Batch processing error: %s (url=%s)", exc.message, exc.url)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Batch processing error: {exc.message}"},
    )
