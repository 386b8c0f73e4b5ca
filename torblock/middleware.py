"""
Starlette/FastAPI middleware that turns away requests from Tor exit relays.

Two ways to plug it in, both backed by the same TorBlock instance:

    torblock = TorBlock()

    # wrap an ASGI app
    app.add_middleware(TorBlockMiddleware, torblock=torblock)
    wrapped = torblock.handler(app)

    # next-style
    app.middleware("http")(torblock.dispatch)

Call torblock.run() from a running event loop (e.g. a lifespan handler) to
start the periodic refresh, and torblock.stop() on shutdown.
"""

import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

import httpx
from starlette.requests import HTTPConnection, Request
from starlette.responses import PlainTextResponse, Response
from starlette.status import WS_1008_POLICY_VIOLATION
from starlette.types import ASGIApp, Receive, Scope, Send
from starlette.websockets import WebSocketClose

from torblock.config import Settings
from torblock.config import settings as default_settings
from torblock.ingestion.fetcher import fetch_relay_list
from torblock.ingestion.scheduler import RefreshScheduler
from torblock.membership import MembershipFilter
from torblock.models import ListStatus, RelayList, RelayListStatus
from torblock.storage.relay_list_store import RelayListStore

logger = logging.getLogger(__name__)

BadHostHandler = Callable[[Request], Union[Response, Awaitable[Response]]]
CallNext = Callable[[Request], Awaitable[Response]]


def default_bad_host_handler(request: Request) -> Response:
    return PlainTextResponse("Bad Host", status_code=500)


def client_address(connection: HTTPConnection) -> Optional[str]:
    """The connection-level peer host. Proxy headers are not consulted."""
    return connection.client.host if connection.client else None


class TorBlock:
    """
    Holds the relay list for one application and decides per request.

    The list itself lives in `store`; the scheduler and the first-request
    lazy load are its only writers.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        bad_host_handler: Optional[BadHostHandler] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or default_settings
        self.bad_host_handler = bad_host_handler or default_bad_host_handler
        self._transport = transport
        self.store = RelayListStore()
        self.scheduler = RefreshScheduler(
            self._fetch, self.store, self.settings.update_frequency_seconds
        )
        self.filter = MembershipFilter(self.store, self.scheduler.refresh)

    async def _fetch(self) -> RelayList:
        return await fetch_relay_list(
            self.settings.check_url,
            timeout=self.settings.request_timeout_seconds,
            transport=self._transport,
        )

    # ── lifecycle ────────────────────────────────────────────────────────────

    def run(self) -> None:
        """Start refreshing every update_frequency_seconds in the background."""
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()

    async def refresh(self) -> dict:
        return await self.scheduler.refresh()

    def status(self) -> RelayListStatus:
        relay_list = self.store.current
        if relay_list is None:
            status = ListStatus.empty
        elif self.store.last_refresh_status == "failed":
            status = ListStatus.degraded
        else:
            status = ListStatus.ok

        return RelayListStatus(
            status=status,
            record_count=len(relay_list.records) if relay_list is not None else 0,
            fetched_at=relay_list.fetched_at if relay_list is not None else None,
            last_refresh_status=self.store.last_refresh_status,
            last_error=self.store.last_error,
            update_frequency_seconds=self.settings.update_frequency_seconds,
            check_url=self.settings.check_url,
        )

    # ── request processing ───────────────────────────────────────────────────

    async def is_exit_node(self, connection: HTTPConnection) -> bool:
        host = client_address(connection)
        record = await self.filter.match(host)
        if record is None:
            return False

        logger.warning(
            "Tor exit node detected: %s (relay %s)", host, record.exit_node_id
        )
        return True

    async def process(self, request: Request) -> Optional[Response]:
        """
        Return the rejection response for a Tor exit caller, None otherwise.

        None means the request should go on to the inner handler.
        """
        if not await self.is_exit_node(request):
            return None
        response = self.bad_host_handler(request)
        if inspect.isawaitable(response):
            response = await response
        return response

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        rejection = await self.process(request)
        if rejection is not None:
            return rejection
        return await call_next(request)

    def handler(self, app: ASGIApp) -> "TorBlockMiddleware":
        return TorBlockMiddleware(app, torblock=self)


class TorBlockMiddleware:
    """
    Plain ASGI wrapper.

    HTTP requests get the rejection handler. WebSocket handshakes from an exit
    relay are closed with 1008 (policy violation) before they are accepted.
    Lifespan events pass straight through.
    """

    def __init__(self, app: ASGIApp, torblock: TorBlock):
        self.app = app
        self.torblock = torblock

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "websocket":
            if await self.torblock.is_exit_node(HTTPConnection(scope)):
                await WebSocketClose(code=WS_1008_POLICY_VIOLATION)(scope, receive, send)
                return
            await self.app(scope, receive, send)
            return

        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        rejection = await self.torblock.process(Request(scope, receive))
        if rejection is None:
            await self.app(scope, receive, send)
            return
        await rejection(scope, receive, send)
