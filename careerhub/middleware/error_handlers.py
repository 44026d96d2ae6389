"""
Global Exception Handler Middleware for the CareerHub API
"""
import time
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from pydantic import ValidationError as PydanticValidationError

from careerhub.utils.exceptions import CareerHubError, map_to_http_exception
from careerhub.utils.logging_config import get_logger

logger = get_logger(__name__)

HEALTH_PATHS = ("/health", "/api/health")


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Global exception handler middleware"""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        if request.url.path not in HEALTH_PATHS:
            logger.info(
                f"Request started: {request.method} {request.url.path}",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "client_ip": request.client.host if request.client else "unknown"
                }
            )

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        except CareerHubError as exc:
            log = logger.warning if exc.public_message is None else logger.error
            log(
                f"{exc.__class__.__name__} in {request.method} {request.url.path}: {exc.message}",
                extra={
                    "request_id": request_id,
                    "exception_type": exc.__class__.__name__,
                    "error_code": exc.error_code,
                    "details": exc.details,
                    "cause": str(exc.cause) if exc.cause else None,
                    "method": request.method,
                    "path": request.url.path
                }
            )

            http_exc = map_to_http_exception(exc)
            return self._create_error_response(request_id, http_exc.status_code, http_exc.detail)

        except PydanticValidationError as exc:
            logger.error(
                f"Pydantic validation error in {request.method} {request.url.path}: {exc}",
                extra={
                    "request_id": request_id,
                    "validation_errors": exc.errors(),
                    "method": request.method,
                    "path": request.url.path
                }
            )

            validation_details = {
                "error": "Data validation failed",
                "message": "Invalid data format or values"
            }
            return self._create_error_response(request_id, 400, validation_details)

        except HTTPException as exc:
            logger.warning(
                f"HTTP exception in {request.method} {request.url.path}: {exc.detail}",
                extra={
                    "request_id": request_id,
                    "status_code": exc.status_code,
                    "method": request.method,
                    "path": request.url.path
                }
            )
            return self._create_error_response(request_id, exc.status_code, exc.detail)

        except Exception as exc:
            logger.error(
                f"Unhandled exception in {request.method} {request.url.path}: {str(exc)}",
                extra={
                    "request_id": request_id,
                    "exception_type": exc.__class__.__name__,
                    "traceback": traceback.format_exc(),
                    "method": request.method,
                    "path": request.url.path
                },
                exc_info=True
            )

            # Don't expose internal errors
            error_detail = {
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later."
            }
            return self._create_error_response(request_id, 500, error_detail)

    @staticmethod
    def _create_error_response(request_id: str, status_code: int, detail: Any) -> JSONResponse:
        """Create standardized error response"""

        if isinstance(detail, str):
            detail = {"error": detail, "message": detail}
        elif not isinstance(detail, dict):
            detail = {"error": str(detail), "message": str(detail)}

        error_response = {
            "success": False,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": request_id,
            "status_code": status_code,
            **detail
        }

        return JSONResponse(
            status_code=status_code,
            content=error_response,
            headers={"X-Request-ID": request_id}
        )


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Middleware for request timing and slow-request warnings"""

    def __init__(self, app, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = getattr(request.state, 'request_id', 'unknown')

        response = await call_next(request)

        processing_time = time.time() - start_time

        if processing_time > self.slow_request_threshold:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path} took {processing_time:.3f}s",
                extra={
                    "request_id": request_id,
                    "processing_time": processing_time,
                    "threshold": self.slow_request_threshold,
                    "method": request.method,
                    "path": request.url.path
                }
            )
        elif request.url.path not in HEALTH_PATHS:
            logger.info(
                f"Response: {request.method} {request.url.path} - {response.status_code} in {processing_time:.3f}s",
                extra={
                    "request_id": request_id,
                    "status_code": response.status_code,
                    "processing_time": processing_time
                }
            )

        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"
        return response


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI's request validation failures in the standard error envelope"""
    # raised and answered inside the router, out of the middleware's reach
    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
    errors = jsonable_encoder(exc.errors())

    logger.warning(
        f"Validation error in {request.method} {request.url.path}: {len(errors)} invalid field(s)",
        extra={
            "request_id": request_id,
            "validation_errors": errors,
            "method": request.method,
            "path": request.url.path
        }
    )

    validation_details = {
        "error": "Validation failed",
        "message": "Request data validation failed",
        "validation_errors": errors
    }
    return ExceptionHandlerMiddleware._create_error_response(request_id, 422, validation_details)
