"""
API Error Handlers

Maps analytics failures to the dashboard's JSON error shapes:
- client input errors -> 400 {error}
- data-source and unexpected failures -> 500 {error, details}
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import structlog

from sales_dashboard.analytics.exceptions import AggregationError, InvalidQueryError

logger = structlog.get_logger(__name__)

INTERNAL_ERROR = "Internal Server Error"


async def invalid_query_handler(request: Request, exc: InvalidQueryError) -> JSONResponse:
    logger.warning("Rejected dashboard query", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "query")
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))

    message = "Invalid query parameters. " + "; ".join(problems)
    logger.warning("Rejected dashboard query", path=request.url.path, error=message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


async def aggregation_error_handler(request: Request, exc: AggregationError) -> JSONResponse:
    logger.error(
        "Dashboard query failed",
        path=request.url.path,
        channel=exc.channel,
        operation=exc.operation,
        error=str(exc),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": INTERNAL_ERROR, "details": str(exc)},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path, error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": INTERNAL_ERROR, "details": str(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the dashboard error handlers on an application."""
    app.add_exception_handler(InvalidQueryError, invalid_query_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(AggregationError, aggregation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
