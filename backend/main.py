"""FastAPI main application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.app.api import stories as stories_api
from backend.app.config import CORS_ALLOW_ORIGINS, log_resolved_config
from backend.app.core.error_handling import create_error_response, log_error_with_context
from backend.app.core.errors import GenerationTooShort, NormalizationError, TraversalError
from shared.config import DEV_MODE, LOG_LEVEL

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not DEV_MODE and "*" in CORS_ALLOW_ORIGINS:
        raise RuntimeError(
            "Unsafe CORS config: '*' is only allowed in dev mode. "
            "Set SAFESTORY_CORS_ALLOW_ORIGINS to explicit origins."
        )
    log_resolved_config()
    logger.info("API startup complete (dev_mode=%s)", DEV_MODE)
    yield


app = FastAPI(
    title="SafeStory API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if DEV_MODE else None,
    redoc_url="/redoc" if DEV_MODE else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NormalizationError)
async def normalization_error_handler(request: Request, exc: NormalizationError):
    """Unusable generation output: the author should generate again."""
    log_error_with_context(exc, "normalizer", extra_context={"path": request.url.path}, level=logging.WARNING)
    details = {"retry": True}
    if isinstance(exc, GenerationTooShort):
        details.update({"usable_slides": exc.usable, "required_slides": exc.required})
    return JSONResponse(
        status_code=422,
        content=create_error_response(exc.error_code, str(exc), node="normalizer", details=details),
    )


@app.exception_handler(TraversalError)
async def traversal_error_handler(request: Request, exc: TraversalError):
    log_error_with_context(exc, "traversal", extra_context={"path": request.url.path}, level=logging.WARNING)
    return JSONResponse(
        status_code=409,
        content=create_error_response(exc.error_code, str(exc), node="traversal"),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTPExceptions with structured error responses."""
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    log_error_with_context(exc, "api", extra_context={"path": request.url.path, "status_code": exc.status_code}, level=level)
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(
            error_code=f"HTTP_{exc.status_code}",
            message=str(exc.detail),
            node="api",
        ),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Catch-all so unexpected failures still return a structured payload."""
    log_error_with_context(exc, "api", extra_context={"path": request.url.path})
    return JSONResponse(
        status_code=500,
        content=create_error_response(
            error_code="INTERNAL_ERROR",
            message="An unexpected error occurred. Please try again.",
            node="api",
        ),
    )


app.include_router(stories_api.router)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/")
def root():
    return {"message": "SafeStory API", "version": "1.0.0"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
