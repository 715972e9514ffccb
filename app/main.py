"""FastAPI application entrypoint. No business logic; only wiring, middleware and error rendering."""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from app.api.v1 import router as v1_router
from app.core.config import settings
from app.core.exceptions import AppError, TransientError
from app.core.security import get_token_issuer

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

# Build the token issuer now so a bad signing key stops the process at startup.
get_token_issuer()

app = FastAPI(
    title="Airdrop Journal API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [settings.CORS_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_body(exc: AppError) -> dict:
    body: dict = {
        "status": "fail" if exc.status_code < 500 else "error",
        "code": exc.code,
        "message": exc.message,
    }
    if exc.errors:
        body["errors"] = exc.errors
    return body


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc), headers=exc.headers)


@app.exception_handler(OperationalError)
@app.exception_handler(PoolTimeoutError)
async def store_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Store unavailable on %s %s: %s", request.method, request.url.path, exc)
    err = TransientError()
    return JSONResponse(status_code=err.status_code, content=_error_body(err), headers=err.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=_error_body(AppError()))


app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Airdrop Journal API", "docs": "/docs"}
