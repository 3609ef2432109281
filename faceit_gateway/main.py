"""FastAPI application for the FACEIT stats gateway."""

import logging
from contextlib import asynccontextmanager
from typing import Dict

import httpx
from fastapi import FastAPI, Request
from starlette.responses import JSONResponse

from faceit_gateway.aggregator import FaceitGateway
from faceit_gateway.client import FaceitClient
from faceit_gateway.config import Config, load_config
from faceit_gateway.errors import (
    ExhaustedRetriesError,
    GatewayError,
    InvalidRequestError,
    UpstreamNotFoundError,
)
from faceit_gateway.key_manager import KeyManager
from faceit_gateway.routes import admin_router, faceit_router

logger = logging.getLogger(__name__)


def build_state(app: FastAPI, config: Config, http_client: httpx.AsyncClient) -> None:
    """Wire the process-wide key ring, fetch client and gateway onto ``app.state``."""
    key_manager = KeyManager(config)
    client = FaceitClient(config, key_manager, http_client)

    app.state.config = config
    app.state.http_client = http_client
    app.state.key_manager = key_manager
    app.state.gateway = FaceitGateway(
        client,
        default_game=config.default_game,
        batch_size=config.batch_size,
        search_limit=config.search_limit,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle: startup and shutdown."""
    config = load_config()

    logging.basicConfig(level=getattr(logging, config.log_level))

    http_client = httpx.AsyncClient(
        base_url=config.faceit_base_url,
        timeout=httpx.Timeout(config.request_timeout_ms / 1000),
        limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
    )
    build_state(app, config, http_client)

    logger.info("FACEIT gateway started with %d keys", len(config.api_keys))

    yield

    await http_client.aclose()
    logger.info("FACEIT gateway stopped")


app = FastAPI(title="FACEIT Stats Gateway", lifespan=lifespan)

app.include_router(faceit_router)
app.include_router(admin_router)


@app.exception_handler(ExhaustedRetriesError)
async def exhausted_retries_handler(_: Request, exc: ExhaustedRetriesError) -> JSONResponse:
    return JSONResponse(
        status_code=502,
        content={"error": "Upstream error", "details": str(exc.last_error)},
    )


@app.exception_handler(UpstreamNotFoundError)
async def not_found_handler(_: Request, exc: UpstreamNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": "Not found", "details": exc.path})


@app.exception_handler(InvalidRequestError)
async def invalid_request_handler(_: Request, exc: InvalidRequestError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(GatewayError)
async def gateway_error_handler(_: Request, exc: GatewayError) -> JSONResponse:
    logger.error("Unhandled gateway error: %s", exc)
    return JSONResponse(status_code=502, content={"error": "Upstream error"})


@app.get("/api/health")
async def health_check(request: Request) -> Dict[str, object]:
    """Health check endpoint with key pool status."""
    key_manager = request.app.state.key_manager
    status = key_manager.get_status()
    return {
        "ok": True,
        "keys_available": status["available_keys"],
        "total_keys": status["total_keys"],
    }
