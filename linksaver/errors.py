import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class LinkSaverError(Exception):
    status_code = 500
    message = "Internal server error."

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)


class BadRequest(LinkSaverError):
    status_code = 400
    message = "Bad request."


class InvalidCredentials(LinkSaverError):
    status_code = 400
    message = "Invalid credentials."


class Unauthorized(LinkSaverError):
    status_code = 401
    message = "Authentication token required."


class Forbidden(LinkSaverError):
    status_code = 403
    message = "Invalid or expired token."


class NotFound(LinkSaverError):
    status_code = 404
    message = "Not found."


class Conflict(LinkSaverError):
    status_code = 409
    message = "Conflict."


class ServerError(LinkSaverError):
    pass


class StorageError(Exception):
    """The backing store could not be read or written."""


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(LinkSaverError)
    async def handle_linksaver_error(request: Request, exc: LinkSaverError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "Invalid request body."
        if errors:
            first = errors[0]
            field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
        logger.debug("Rejected request to %s: %s", request.url.path, message)
        return JSONResponse(status_code=400, content={"error": message})
