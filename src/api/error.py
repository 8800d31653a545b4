"""API error translation

Maps use case errors (libs.result.Error) to HTTP responses shaped as
{"error": {"code": ..., "message": ...}}.
"""

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from libs.result import Error

NOT_FOUND_CODES = frozenset({
    "ORGANIZATION_NOT_FOUND",
    "PACKAGE_NOT_FOUND",
    "CONSTRUCTION_NOT_FOUND",
    "PROMOTION_NOT_FOUND",
    "TOPUP_NOT_FOUND",
})

CONFLICT_CODES = frozenset({
    "ALREADY_PROMOTED",
    "NOT_ACTIVE",
    "BALANCE_CONFLICT",
    "INVALID_STATUS_TRANSITION",
})


class ClientError(Exception):
    def __init__(self, error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code


def status_for(error: Error) -> int:
    """HTTP status for a use case error code"""
    if error.code == "INSUFFICIENT_CREDITS":
        return status.HTTP_402_PAYMENT_REQUIRED
    if error.code in NOT_FOUND_CODES:
        return status.HTTP_404_NOT_FOUND
    if error.code in CONFLICT_CODES:
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


def raise_for_error(error: Error) -> None:
    raise ClientError(error, status_code=status_for(error))


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.error.code, "message": exc.error.message}},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request parameters",
                "details": jsonable_errors(exc),
            }
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
