from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from callsignal.core.exceptions import BaseAPIException, InternalServerErrorException
from callsignal.core.log_config import logger

async def custom_exception_handler(request: Request, exc: BaseAPIException):
    content = {"error": exc.detail}
    if exc.details is not None:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Report missing or malformed request fields as 400 with a readable summary.
    """
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    logger.info(f"Rejected request to {request.url.path}: {problems}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "; ".join(problems) or "Invalid request body"}
    )

async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error while processing {request.url.path}")
    return await custom_exception_handler(request, InternalServerErrorException(details=str(exc)))
