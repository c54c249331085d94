# upstream/ditto_ws/adapter.py

import asyncio
import logging
import uuid
from typing import Any, Dict, Optional, Set

import aiohttp

from twin.plc_ditto.lib.constants import WS_ACK_TIMEOUT, WS_CONNECT_TIMEOUT

from ..base import BaseUpstreamAdapter, UpstreamUnavailableError
from ..types import UpstreamState
from . import protocol

logger = logging.getLogger(__name__)


class DittoWebSocketAdapter(BaseUpstreamAdapter):
    """
    Live connection to Eclipse Ditto over the Ditto Protocol WebSocket (/ws/2)

    Role:
    1. Opens the WebSocket with basic auth (no automatic reconnect)
    2. Sends twin "modify" commands with a correlation-id
    3. Resolves the future of each command when Ditto answers it

    All calls happen on one event loop, so any number of poll tasks may use
    a single adapter without locking
    """

    def __init__(
        self,
        *,
        url: str,
        username: str,
        password: str,
        session: Optional[aiohttp.ClientSession] = None,
        connect_timeout: float = WS_CONNECT_TIMEOUT,
        ack_timeout: float = WS_ACK_TIMEOUT,
        heartbeat: float = 30.0,
    ) -> None:
        """
        Args:
            url: WebSocket URL, e.g. "wss://twin.example.org/ws/2"
            username, password: basic auth credentials
            session: aiohttp session to use (created and owned by the adapter if omitted)
            connect_timeout: seconds to wait for the WebSocket handshake
            ack_timeout: seconds to wait for Ditto to answer one command
            heartbeat: WebSocket ping interval in seconds
        """
        super().__init__()
        self.url = url
        self._headers = {aiohttp.hdrs.AUTHORIZATION: aiohttp.BasicAuth(username, password).encode()}
        self._session = session
        self._own_session = session is None
        self._connect_timeout = connect_timeout
        self._ack_timeout = ack_timeout
        self._heartbeat = heartbeat

        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._receiver: Optional[asyncio.Task] = None
        self._pending: Dict[str, asyncio.Future] = {}
        self._send_tasks: Set[asyncio.Task] = set()
        self._stopping = False

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def start(self) -> None:
        """
        Connect to Ditto. Raises UpstreamUnavailableError if the handshake fails
        """
        if self._state not in (UpstreamState.INITIALIZING, UpstreamState.STOPPED):
            logger.warning("DittoWebSocketAdapter already started")
            return

        logger.info("Connecting to Ditto %r...", self.url)
        self._stopping = False
        if self._session is None:
            self._session = aiohttp.ClientSession()

        try:
            self._ws = await asyncio.wait_for(
                self._session.ws_connect(self.url, headers=self._headers, heartbeat=self._heartbeat),
                timeout=self._connect_timeout,
            )
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.error("Ditto connection to %r failed: %r", self.url, e)
            await self._close_session()
            await self._set_state(UpstreamState.UNAVAILABLE)
            raise UpstreamUnavailableError(f"Can not connect to {self.url!r}: {e!r}") from e

        self._receiver = asyncio.create_task(self._receive_loop(), name="ditto-ws-receive")
        await self._set_state(UpstreamState.READY)

    async def stop(self) -> None:
        """
        Close the WebSocket. Commands still waiting for an answer fail
        """
        self._stopping = True

        if self._receiver is not None:
            self._receiver.cancel()
            try:
                await self._receiver
            except asyncio.CancelledError:
                pass
            self._receiver = None

        if self._ws is not None:
            try:
                await asyncio.wait_for(self._ws.close(), timeout=5.0)
            except asyncio.TimeoutError:
                logger.warning("Timeout while closing Ditto WebSocket")
            except Exception as e:
                logger.warning("Error during Ditto WebSocket close: %r", e)
            self._ws = None

        self._fail_pending(UpstreamUnavailableError("Ditto connection stopped"))
        await self._close_session()
        await self._set_state(UpstreamState.STOPPED)
        logger.info("DittoWebSocketAdapter stopped")

    def put_property(self, thing_id: str, feature_id: str, path: str, value: Any) -> "asyncio.Future[None]":
        loop = asyncio.get_running_loop()
        fut: asyncio.Future = loop.create_future()

        if self._state != UpstreamState.READY or self._ws is None:
            fut.set_exception(UpstreamUnavailableError(f"Ditto connection is {self._state.value}"))
            return fut

        correlation_id = str(uuid.uuid4())
        try:
            text = protocol.encode(
                protocol.modify_property_command(thing_id, feature_id, path, value, correlation_id)
            )
        except ValueError as e:
            fut.set_exception(e)
            return fut

        self._pending[correlation_id] = fut
        deadline = loop.call_later(self._ack_timeout, self._expire, correlation_id)

        def _forget(_f: asyncio.Future) -> None:
            deadline.cancel()
            self._pending.pop(correlation_id, None)

        fut.add_done_callback(_forget)

        # Keep a strong reference until the frame is written
        task = asyncio.ensure_future(self._send(text, correlation_id))
        self._send_tasks.add(task)
        task.add_done_callback(self._send_tasks.discard)
        return fut

    # =========================================================================
    # Internal
    # =========================================================================

    async def _send(self, text: str, correlation_id: str) -> None:
        ws = self._ws
        try:
            if ws is None:
                raise UpstreamUnavailableError("Ditto connection is closed")
            logger.debug("Ditto send: %s", text)
            await ws.send_str(text)
        except Exception as e:
            fut = self._pending.pop(correlation_id, None)
            if fut is not None and not fut.done():
                fut.set_exception(e if isinstance(e, UpstreamUnavailableError) else UpstreamUnavailableError(repr(e)))

    async def _receive_loop(self) -> None:
        ws = self._ws
        if ws is None:
            return
        async for msg in ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                self._handle_text(msg.data)
            elif msg.type == aiohttp.WSMsgType.ERROR:
                logger.warning("Ditto WebSocket error: %r", ws.exception())
                break

        if not self._stopping:
            logger.warning("Ditto WebSocket closed by peer (code=%r)", ws.close_code)
            self._fail_pending(UpstreamUnavailableError("Ditto connection lost"))
            await self._set_state(UpstreamState.UNAVAILABLE)

    def _handle_text(self, text: str) -> None:
        response = protocol.parse_response(text)
        if response is None:
            logger.debug("Ditto frame ignored: %.200s", text)
            return

        fut = self._pending.pop(response.correlation_id, None)
        if fut is None or fut.done():
            logger.debug("No pending command for correlation-id %r", response.correlation_id)
            return
        if response.ok:
            fut.set_result(None)
        else:
            fut.set_exception(response.to_exception())

    def _expire(self, correlation_id: str) -> None:
        fut = self._pending.pop(correlation_id, None)
        if fut is not None and not fut.done():
            fut.set_exception(
                UpstreamUnavailableError(f"No answer from Ditto within {self._ack_timeout}s ({correlation_id})")
            )

    def _fail_pending(self, exc: Exception) -> None:
        pending = list(self._pending.values())
        self._pending.clear()
        for fut in pending:
            if not fut.done():
                fut.set_exception(exc)

    async def _close_session(self) -> None:
        if self._own_session and self._session is not None:
            await self._session.close()
            self._session = None
