"""
HTTP server for on-demand device to virtual IP mappings.

Every request runs the aggregation and answers with its JSON output,
except /favicon.ico which is answered without touching the API.
"""

import logging
import os
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from vip_mapper import __version__
from vip_mapper.core.config import AppConfig, get_config
from vip_mapper.inventory.aggregator import fetch_on_demand
from vip_mapper.inventory.client import (
    MalformedResponseError,
    UpstreamError,
    UpstreamUnavailableError,
)
from vip_mapper.inventory.store import ResultStore, create_result_store

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

FAVICON_PATH = "/favicon.ico"
BAD_GATEWAY = 502


def relay_status(upstream_status: int) -> int:
    """Status returned for a failed device list call; only 4xx and 5xx are relayed."""
    if 400 <= upstream_status < 600:
        return upstream_status
    return BAD_GATEWAY


def create_app(
    config: Optional[AppConfig] = None,
    store: Optional[ResultStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Application configuration (default: from environment)
        store: Result sink (default: built from config when storing is enabled)
        transport: Optional httpx transport for the devices API (used by tests)

    Returns:
        Configured FastAPI app
    """
    config = config or get_config()
    if store is None and config.storage.store_results:
        store = create_result_store(config.storage)

    # Docs routes stay disabled: every path serves the mapping
    app = FastAPI(
        title="Device VIP Mapper",
        description="Cloudflare device to WARP virtual IP mapping",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = config
    app.state.store = store
    app.state.transport = transport

    async def device_vips(request: Request) -> Response:
        """Run the aggregation and return the mapping."""
        if request.url.path == FAVICON_PATH:
            return Response(status_code=204)

        try:
            run = await fetch_on_demand(
                request.app.state.config,
                request.app.state.store,
                transport=request.app.state.transport,
            )
        except UpstreamError as e:
            logger.warning(f"Device list request failed with status {e.status_code}")
            return JSONResponse(content={"error": e.body}, status_code=relay_status(e.status_code))
        except (MalformedResponseError, UpstreamUnavailableError) as e:
            logger.error(f"Device list unavailable: {e}")
            return JSONResponse(content={"error": str(e)}, status_code=BAD_GATEWAY)

        if run.stored:
            logger.info(f"Stored on-demand result as {run.object_name}")

        return Response(content=run.output, media_type="application/json")

    # No method list: every HTTP method reaches the handler
    app.add_route("/{path:path}", device_vips)

    return app


def main():
    """Main entry point for HTTP server."""
    config = get_config()
    logging.getLogger().setLevel(config.log_level)
    host = config.api_host
    port = config.api_port

    logger.info("=" * 60)
    logger.info("Device VIP Mapper - API Server")
    logger.info("=" * 60)
    logger.info(f"Host: {host}")
    logger.info(f"Port: {port}")
    logger.info("=" * 60)

    uvicorn.run(
        "vip_mapper.ui.http_server:create_app",
        factory=True,
        host=host,
        port=port,
        reload=os.getenv("API_RELOAD", "false").lower() == "true",
    )


if __name__ == "__main__":
    main()
