"""
Example FastAPI host for the middleware.

Startup sequence (via lifespan):
  1. Run one immediate refresh so the first requests are already filtered
  2. Start APScheduler for periodic refreshes

The refresh on startup is best effort: if the listing is unreachable the app
still starts, and requests are allowed through until a refresh succeeds.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from torblock.api.routes import router
from torblock.config import settings
from torblock.middleware import TorBlock, TorBlockMiddleware

logger = logging.getLogger(__name__)


def create_app(torblock: Optional[TorBlock] = None) -> FastAPI:
    torblock = torblock or TorBlock(settings)

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        """Manage startup and shutdown lifecycle."""
        logger.info("Starting torblock (source=%s)", torblock.settings.check_url)

        result = await torblock.refresh()
        logger.info("Initial refresh result: %s", result)

        torblock.run()

        yield  # Application runs here

        torblock.stop()
        logger.info("torblock shutdown complete")

    application = FastAPI(
        title="torblock",
        description=(
            "Blocks requests from Tor exit relays using the Tor Project's "
            "exit-address listing, refreshed periodically."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )
    application.state.torblock = torblock
    application.add_middleware(TorBlockMiddleware, torblock=torblock)
    application.include_router(router)
    return application


if __name__ == "__main__":
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stdout,
    )
    uvicorn.run(create_app(), host="0.0.0.0", port=8000, reload=False)
