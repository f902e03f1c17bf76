"""
Translation of service errors into HTTP responses.

Every error response uses the envelope ``{success: false, message, details?}``.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from models.responses import ErrorResponse
from services.validation import sort_errors, to_field_error
from utils.errors import CandidatureError, CandidatureValidationError, MalformedRequestError
from utils.logging_utils import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Erreur interne. Réessayez plus tard."
NOT_FOUND_MESSAGE = "Ressource introuvable"


def error_response(exc: CandidatureError) -> JSONResponse:
    """Render a taxonomy error with its status code"""
    body = ErrorResponse(message=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


def register_error_handlers(app: FastAPI, is_production: bool) -> None:
    """
    Install the exception handlers on the app

    Args:
        app: FastAPI application
        is_production: Hide internal error details from responses
    """

    @app.exception_handler(CandidatureError)
    async def handle_candidature_error(request: Request, exc: CandidatureError):
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if any(error.get("type") == "json_invalid" for error in errors):
            return error_response(MalformedRequestError())
        return error_response(CandidatureValidationError(sort_errors([to_field_error(e) for e in errors])))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        message = NOT_FOUND_MESSAGE if exc.status_code == 404 else str(exc.detail)
        body = ErrorResponse(message=message)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("❌ Unhandled error on %s %s", request.method, request.url.path)
        details = None if is_production else [str(exc)]
        body = ErrorResponse(message=INTERNAL_ERROR_MESSAGE, details=details)
        return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))
