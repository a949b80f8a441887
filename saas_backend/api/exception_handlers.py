"""HTTP boundary handlers that render every failure as the standard error envelope."""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from saas_backend.errors import AppError, ErrorKind, error_from_exception, error_to_response

_HTTP_STATUS_KINDS: dict[int, ErrorKind] = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    409: ErrorKind.CONFLICT,
    422: ErrorKind.VALIDATION_ERROR,
}


async def api_handle_app_error(_request: Request, error: AppError) -> JSONResponse:
    return error_to_response(error)


async def api_handle_request_validation_error(_request: Request, error: RequestValidationError) -> JSONResponse:
    """Render request parsing failures.

    A body that is not valid JSON is a `SERIALIZATION` error; any other
    schema mismatch is a `VALIDATION_ERROR` with the field errors attached.

    Args:
        _request: Incoming request.
        error: Framework validation error.

    Returns:
        JSONResponse: Standard error envelope.
    """

    validation_errors = error.errors()
    if any(validation_error.get("type") == "json_invalid" for validation_error in validation_errors):
        app_error = AppError.serialization("request body is not valid JSON")
    else:
        app_error = AppError.validation("request does not match the expected schema")
    app_error = app_error.with_details(jsonable_encoder(validation_errors))
    app_error.__cause__ = error
    return error_to_response(app_error)


async def api_handle_http_exception(request: Request, error: StarletteHTTPException) -> Response:
    """Render framework HTTP exceptions whose status belongs to the taxonomy.

    Statuses outside the taxonomy, such as 405, keep the framework response.

    Args:
        request: Incoming request.
        error: Framework HTTP exception.

    Returns:
        Response: Standard error envelope or framework default response.
    """

    error_kind = _HTTP_STATUS_KINDS.get(error.status_code)
    if error_kind is None:
        return await http_exception_handler(request, error)
    app_error = AppError(error_kind, str(error.detail))
    response = error_to_response(app_error)
    if error.headers:
        response.headers.update(error.headers)
    return response


async def api_handle_unexpected_error(_request: Request, error: Exception) -> JSONResponse:
    return error_to_response(error_from_exception(error))


def api_register_exception_handlers(application: FastAPI) -> None:
    """Register all boundary handlers on the application.

    Args:
        application: FastAPI application being composed.
    """

    application.add_exception_handler(AppError, api_handle_app_error)
    application.add_exception_handler(RequestValidationError, api_handle_request_validation_error)
    application.add_exception_handler(StarletteHTTPException, api_handle_http_exception)
    application.add_exception_handler(Exception, api_handle_unexpected_error)
