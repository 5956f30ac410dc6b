from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError

from hospital_finance.common.response import ErrorResponse
from hospital_finance.logger_config import logger


def register_error_handlers(app: FastAPI):
    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request on {request.url.path}: {exc.errors()}")
        return ErrorResponse.send(
            message="Invalid request parameters",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            errors=[
                {"field": ".".join(str(p) for p in err.get("loc", [])), "message": err.get("msg")}
                for err in exc.errors()
            ],
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        logger.exception(f"Ledger store failure on {request.url.path}")
        return ErrorResponse.send(
            message="Ledger store unavailable",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    @app.exception_handler(Exception)
    async def handle_exception(request: Request, exc: Exception):
        # Log the exception with traceback
        logger.exception("Unhandled exception occurred")
        return ErrorResponse.send(
            message="Internal Server Error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            errors=[str(exc)],
        )
