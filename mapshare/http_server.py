"""
mapshare HTTP server

FastAPI application serving every /api endpoint. Runs as one serverless
function (see api/index.py) or as a regular ASGI app.

Run:
    uvicorn mapshare.http_server:app --host 0.0.0.0 --port 8000

Development (auto reload):
    uvicorn mapshare.http_server:app --reload
"""
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mapshare import __version__, _core
from mapshare.api import api_router
from mapshare.config import HTTP_SERVER_CONFIG, LOG_LEVEL
from mapshare.errors import (
    AccountExists,
    ConfigError,
    InvalidPayload,
    RecordNotFound,
    ResourceExhausted,
    StoreError,
    Unauthenticated,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="[%(asctime)s] %(levelname)s - %(name)s - %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger("mapshare.http")

# =============================================================================
# Lifespan: close the shared store client on shutdown
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if _core._store is not None:
        await _core._store.close()


# =============================================================================
# Application
# =============================================================================

app = FastAPI(
    title="mapshare API",
    description="Saved map states, accounts, map sessions and live locations",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=HTTP_SERVER_CONFIG.get("cors_origins", ["*"]),
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Error mapping
#
# Error bodies are {"success": false, "error": "..."}, the shape the web
# client checks.
# =============================================================================


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, **extra},
    )


@app.exception_handler(InvalidPayload)
async def invalid_payload_handler(request: Request, exc: InvalidPayload):
    return _error(400, str(exc))


@app.exception_handler(Unauthenticated)
async def unauthenticated_handler(request: Request, exc: Unauthenticated):
    return _error(401, str(exc))


@app.exception_handler(RecordNotFound)
async def not_found_handler(request: Request, exc: RecordNotFound):
    return _error(404, "Not found")


@app.exception_handler(AccountExists)
async def account_exists_handler(request: Request, exc: AccountExists):
    return _error(409, str(exc))


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    # StoreUnavailable included; clients see a generic failure and may retry
    logger.error(f"[{request.url.path}] store failure: {exc}")
    return _error(500, "Storage temporarily unavailable")


@app.exception_handler(ConfigError)
async def config_error_handler(request: Request, exc: ConfigError):
    logger.error(f"[{request.url.path}] configuration error: {exc}")
    return _error(500, "Server misconfigured")


@app.exception_handler(ResourceExhausted)
async def resource_exhausted_handler(request: Request, exc: ResourceExhausted):
    logger.error(f"[{request.url.path}] {exc}")
    return _error(500, "Internal server error")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _error(400, "Invalid request", details=jsonable_encoder(exc.errors()))


# =============================================================================
# Routes
# =============================================================================


@app.get("/", summary="root")
def read_root() -> dict:
    """Liveness probe target; avoids a 404 on the bare URL."""
    return {
        "service": "mapshare",
        "docs": "/docs",
        "health": "/api/health",
    }


app.include_router(api_router)


# =============================================================================
# Entry point
# =============================================================================

def run(host: str | None = None, port: int | None = None, reload: bool = False) -> None:
    import uvicorn

    host = host or HTTP_SERVER_CONFIG.get("host", "0.0.0.0")
    port = port or HTTP_SERVER_CONFIG.get("port", 8000)
    logger.info(f"Starting mapshare HTTP server: http://{host}:{port}")
    logger.info(f"API docs: http://{host}:{port}/docs")
    uvicorn.run("mapshare.http_server:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    run()
