"""
Domain error taxonomy shared by every service.

Services raise these instead of HTTPException so the core stays transport
agnostic. Each app registers `register_error_handlers`, which maps a kind to
its HTTP status and a stable machine-readable code.
"""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class DomainError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "domain_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class OutOfStock(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "out_of_stock"

    def __init__(self, product_id: int, product_name: str, requested: int, available: int):
        super().__init__(f"Insufficient stock for {product_name}")
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available


class InvalidTransition(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_transition"


class ValidationError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class Conflict(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.warning(
        "domain_error",
        code=exc.code,
        detail=exc.message,
        method=request.method,
        path=request.url.path,
    )
    body = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, OutOfStock):
        body["product_id"] = exc.product_id
    return JSONResponse(status_code=exc.status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
