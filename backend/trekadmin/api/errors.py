"""
Renders domain errors as JSON responses.

Request bodies that fail schema validation get the same reply shape as a
ValidationError raised by a service, with pydantic's error list as detail.
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from trekadmin.core.exceptions import ProtectedBatchConflict, TrekAdminError, ValidationError
from trekadmin.core.logging import get_logger

logger = get_logger(__name__)


async def trek_admin_error_handler(request: Request, exc: TrekAdminError) -> JSONResponse:
    body = {"success": False, "error": exc.code, "message": exc.message}
    if isinstance(exc, ProtectedBatchConflict):
        body["batch_ids"] = exc.batch_ids

    if exc.status_code >= 500:
        logger.error("request_error", error=exc.code, message=exc.message)
    else:
        logger.info("request_rejected", error=exc.code, message=exc.message, status_code=exc.status_code)

    return JSONResponse(status_code=exc.status_code, content=body)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    logger.info(
        "request_rejected",
        error=ValidationError.code,
        status_code=ValidationError.status_code,
        fields=[".".join(str(part) for part in error.get("loc", ())) for error in errors],
    )
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={
            "success": False,
            "error": ValidationError.code,
            "message": "Request body failed validation",
            "detail": errors,
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TrekAdminError, trek_admin_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
