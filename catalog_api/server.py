"""
Primary FastAPI application entry point
"""
import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog_api.core.config import settings
from catalog_api.core.exceptions import CatalogError, CatalogValidationError, ErrorKind, UpstreamUploadError
from catalog_api.api.deps import initialize_connections, close_connections
from catalog_api.api.api import api_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stdout,
    force=True,
)
logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.UPSTREAM: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.SERVER_FAULT: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup: Initializing connections...")
    await initialize_connections()
    yield
    logger.info("Application shutdown: Closing connections...")
    await close_connections()

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s -> %d (%.0f ms)",
        request.method, request.url.path, response.status_code, elapsed,
    )
    return response


# --- Error handlers: the only place error kinds become HTTP statuses ---

@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    if isinstance(exc, UpstreamUploadError):
        status_code = exc.status_code
    else:
        status_code = STATUS_BY_KIND[exc.kind]
    content = {"message": exc.message}
    if isinstance(exc, CatalogValidationError) and exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(status_code=status_code, content=content)


def _field_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        # Drop the "body"/"query"/"path" prefix
        field = ".".join(loc[1:]) or ".".join(loc) or "request"
        message = error.get("msg", "Invalid value")
        errors.setdefault(field, []).append(message)
    return errors


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = _field_errors(exc)
    logger.warning("Validation failed on %s %s: %s", request.method, request.url.path, errors)
    return await catalog_error_handler(request, CatalogValidationError(errors=errors))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/", status_code=status.HTTP_200_OK)
async def root():
    """Root endpoint to confirm the API is running."""
    return {"message": f"Welcome to {settings.PROJECT_NAME}"}

# For local development
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("catalog_api.server:app", host="0.0.0.0", port=settings.PORT, reload=True)
