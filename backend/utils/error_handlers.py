import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from crud.exceptions import BusinessRuleError, ConflictError

logger = logging.getLogger("errors")


def register_error_handlers(app: FastAPI):
    """Map domain exceptions raised by the crud layer to JSON responses."""

    @app.exception_handler(BusinessRuleError)
    async def handle_business_rule_error(request: Request, exc: BusinessRuleError):
        logger.info(f"Rejected {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ConflictError)
    async def handle_conflict_error(request: Request, exc: ConflictError):
        logger.info(f"Conflict on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def handle_exception(request: Request, exc: Exception):
        # Log the exception with traceback
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={"detail": f"Failed to process {request.method} {request.url.path}"},
        )
