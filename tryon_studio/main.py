from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tryon_studio.config import logger
from tryon_studio.errors import TryOnError

from .routers import router
from .routers.tryon.utils import CORS_HEADERS

# Initialize FastAPI application
app = FastAPI(
    title="Try-On Studio API",
    description="AI-powered clothing combination, try-on and try-on video service",
    version="1.0.0",
)

app.include_router(router)


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=86400,
)


def error_response(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": message},
        headers=CORS_HEADERS,
    )


@app.exception_handler(TryOnError)
async def tryon_error_handler(request: Request, exc: TryOnError) -> JSONResponse:
    logger.error(
        f"[error] Request failed: {exc.message}",
        exc_info=exc,
        extra={"path": request.url.path, "error_type": type(exc).__name__},
    )
    return error_response(exc.message)


@app.exception_handler(RequestValidationError)
async def body_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Malformed bodies share the 500 error contract of the pipelines
    errors = exc.errors()
    logger.error(
        "[validate] Request body could not be parsed",
        extra={"path": request.url.path, "errors": str(errors)},
    )
    message = "Invalid JSON request body"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"{message}: {location}: {first.get('msg', 'invalid value')}"
    return error_response(message)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"[error] Unexpected error: {exc}",
        exc_info=exc,
        extra={"path": request.url.path, "error_type": type(exc).__name__},
    )
    return error_response(str(exc) or "Unexpected error")


logger.info("Try-On Studio API initialized successfully")
