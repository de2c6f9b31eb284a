"""
Domain errors and their HTTP rendering.

Services raise these; the handlers registered in ``main`` turn them into
``{"error": ..., **extra}`` JSON bodies.
"""
from datetime import datetime
from typing import Any, Dict, Optional

import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger()


class LegalEaseError(Exception):
    """Base class for errors with a client-facing status code."""
    status_code = 500

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, **self.extra}


class ValidationFailed(LegalEaseError):
    status_code = 400


class InsufficientCredits(LegalEaseError):
    status_code = 402

    def __init__(self, credits_needed: int, available: int):
        super().__init__(
            "Insufficient credits",
            creditsNeeded=credits_needed,
            available=available,
        )
        self.credits_needed = credits_needed
        self.available = available


class Forbidden(LegalEaseError):
    status_code = 403


class NotFound(LegalEaseError):
    status_code = 404


class Conflict(LegalEaseError):
    status_code = 409


class UpstreamError(LegalEaseError):
    """An external service (language model, storage) failed."""
    status_code = 502

    def __init__(self, message: str, service: str, detail: Optional[str] = None):
        super().__init__(message)
        self.service = service
        self.detail = detail


class UpstreamTimeout(UpstreamError):
    status_code = 504


async def legalease_error_handler(request: Request, exc: LegalEaseError):
    if isinstance(exc, UpstreamError):
        # Internal detail stays in the log
        logger.error("Upstream failure",
                     path=request.url.path,
                     service=exc.service,
                     error=exc.detail or exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = [
        {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Invalid request", "fields": fields})


async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception",
                 path=request.url.path,
                 method=request.method,
                 error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "error_id": str(datetime.utcnow().timestamp())}
    )
