"""
Clipboard Relay: aiohttp application that temporarily holds content.

Resources:
- ``/``            GET returns the data, PUT stores it and stamps lastUpdated
- ``/salt``        GET returns the active salt, PUT rotates it
- ``/lastupdated`` GET returns the last data write as nanoseconds

Security Note:
    The relay only ever sees what clients upload; encrypted clients never
    send plaintext or keys. Never log request bodies.
"""
import hmac
import time
import signal
import asyncio
import logging
from typing import Callable, Optional

from aiohttp import web, BasicAuth, hdrs
from aiohttp.http_exceptions import HttpProcessingError

from .conf import (
    ROOT_PATH,
    SALT_PATH,
    LAST_UPDATED_PATH,
    DATA_KEY,
    LAST_UPDATED_KEY,
)
from .config import ServerConfig
from .datasize import format_size
from .exceptions import ClipboardError, NotFound
from .salt import SaltRotation
from .storage import MemoryStore, Blob, Timestamp, create_store

logger = logging.getLogger("navigator.clipboard.server")

UNAUTHORIZED_BODY = "Unauthorized.\n"


def _error(message: str, status: int) -> web.Response:
    return web.Response(status=status, text=f"{message}\n")


def _not_allowed(request: web.Request) -> web.Response:
    return _error(f"Method {request.method} is not allowed", 405)


class ClipboardRelay:
    """Request handlers bound to one ephemeral store."""

    def __init__(
        self,
        config: ServerConfig,
        store: Optional[MemoryStore] = None,
        salt: Optional[SaltRotation] = None,
        clock: Callable[[], int] = time.time_ns,
    ):
        self.config = config
        self.store = store if store is not None else create_store(
            config.ttl, config.sweep_interval,
        )
        self.salt = salt or SaltRotation(self.store)
        self._clock = clock

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def handle(self, request: web.Request) -> web.Response:
        if request.method == hdrs.METH_GET:
            try:
                data = await self.store.get_blob(DATA_KEY)
            except NotFound:
                return _error("The data not found", 404)
            except ClipboardError as err:
                logger.error("Failed to get data from cache: %s", err)
                return _error(f"Failed to get data from cache: {err}", 500)
            return web.Response(body=data)
        if request.method == hdrs.METH_PUT:
            try:
                body = await request.read()
            except web.HTTPException:
                raise
            except (HttpProcessingError, ConnectionError, ValueError) as err:
                logger.warning("Unreadable request body: %s", err)
                return _error("Bad request body", 400)
            try:
                await self.store.put(DATA_KEY, Blob(body))
            except ClipboardError as err:
                logger.error("Failed to cache data: %s", err)
                return _error(f"Failed to cache: {err}", 500)
            try:
                await self.store.put(LAST_UPDATED_KEY, Timestamp(self._clock()))
            except ClipboardError as err:
                logger.error("Failed to save lastUpdated timestamp: %s", err)
                return _error(f"Failed to save lastUpdated timestamp: {err}", 500)
            logger.info("Stored %d bytes", len(body))
            return web.Response(status=200)
        return _not_allowed(request)

    async def handle_salt(self, request: web.Request) -> web.Response:
        if request.method == hdrs.METH_GET:
            try:
                salt = await self.salt.current()
            except NotFound:
                return _error("The salt not found", 404)
            except ClipboardError as err:
                logger.error("Failed to get salt from cache: %s", err)
                return _error(f"Failed to get salt from cache: {err}", 500)
            return web.Response(body=salt)
        if request.method == hdrs.METH_PUT:
            try:
                salt = await self.salt.rotate()
            except ClipboardError as err:
                logger.error("Failed to rotate salt: %s", err)
                return _error(f"Failed to rotate salt: {err}", 500)
            return web.Response(body=salt)
        return _not_allowed(request)

    async def handle_last_updated(self, request: web.Request) -> web.Response:
        if request.method != hdrs.METH_GET:
            return _not_allowed(request)
        try:
            last_updated = await self.store.get_timestamp(LAST_UPDATED_KEY)
        except NotFound:
            return _error("The lastUpdated not found", 404)
        except ClipboardError as err:
            logger.error("Failed to get lastUpdated timestamp: %s", err)
            return _error(f"Failed to get lastUpdated timestamp from cache: {err}", 500)
        return web.Response(text=str(last_updated))

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------

    def basic_auth_middleware(self):
        """Reject requests whose credentials differ from ``username:password``."""
        expected = self.config.basic_auth.encode("utf-8")

        @web.middleware
        async def middleware(request: web.Request, handler):
            header = request.headers.get(hdrs.AUTHORIZATION, "")
            try:
                auth = BasicAuth.decode(header, encoding="utf-8")
            except ValueError:
                auth = None
            given = f"{auth.login}:{auth.password}".encode("utf-8") if auth else b""
            if auth is None or not hmac.compare_digest(given, expected):
                logger.warning("Rejected unauthorized %s %s", request.method, request.path)
                return web.Response(status=401, text=UNAUTHORIZED_BODY)
            return await handler(request)

        return middleware

    async def _store_lifecycle(self, app: web.Application):
        await self.store.start()
        yield
        await self.store.stop()

    def make_app(self) -> web.Application:
        middlewares = []
        if self.config.basic_auth:
            middlewares.append(self.basic_auth_middleware())
        app = web.Application(
            middlewares=middlewares,
            client_max_size=self.config.max_size,
        )
        app.router.add_route("*", ROOT_PATH, self.handle)
        app.router.add_route("*", SALT_PATH, self.handle_salt)
        app.router.add_route("*", LAST_UPDATED_PATH, self.handle_last_updated)
        app.cleanup_ctx.append(self._store_lifecycle)
        return app


async def serve(config: ServerConfig, stop: Optional[asyncio.Event] = None) -> None:
    """Run the relay until ``stop`` is set (or SIGINT/SIGTERM arrives).

    On shutdown the listener is closed first, in-flight requests get up to
    ``config.shutdown_timeout`` seconds to finish, and anything still open
    after that is abandoned.
    """
    stop = stop or asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, stop.set)
        except (NotImplementedError, RuntimeError):
            # add_signal_handler is unavailable on Windows and off the main thread
            pass

    relay = ClipboardRelay(config)
    runner = web.AppRunner(
        relay.make_app(),
        shutdown_timeout=config.shutdown_timeout,
    )
    await runner.setup()
    site = web.TCPSite(runner, config.host, config.port)
    try:
        await site.start()
        logger.info(
            "Start listening on %s:%d (ttl=%ss, max size=%s, auth=%s)",
            config.host, config.port, config.ttl,
            format_size(config.max_size), bool(config.basic_auth),
        )
        await stop.wait()
    finally:
        logger.info("Start gracefully shutting down the server")
        await runner.cleanup()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(signum)
            except (NotImplementedError, RuntimeError):
                pass
