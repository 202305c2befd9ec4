"""WebSocket connection manager with the websockets library.

Drives the dial -> subscribe -> listen cycle and retries with a fixed backoff
until the shutdown event is set.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, Optional
from urllib.parse import urlsplit, urlunsplit

import websockets
from websockets.asyncio.client import connect as websockets_connect

from ...config.logging import get_logger
from ...config.settings import settings
from ...exceptions import (
    FrameDecodeError,
    StateTransitionError,
    SubscriptionError,
    WebSocketConnectionError,
)
from ...models.config import LoadTestConfig
from ...models.connection_state import ConnectionState, can_transition
from ...models.frames import Confirmation, Frame
from ..stats.aggregator import StatsAggregator
from .event_classifier import decode_frame
from .subscription import build_subscribe_request, iter_subscription_plan

logger = get_logger(__name__)

Connector = Callable[..., Awaitable[Any]]

_SCHEME_MAP = {"http": "ws", "https": "wss"}

# Errors that end a connection epoch without being fatal
TRANSPORT_ERRORS = (websockets.exceptions.WebSocketException, OSError, asyncio.TimeoutError)


def normalize_url(url: str) -> str:
    """Map http/https to ws/wss; other schemes are left untouched.

    Raises:
        WebSocketConnectionError: If the URL cannot be parsed or has no host.
    """
    try:
        parts = urlsplit(url)
        # Raises on a non-numeric or out-of-range port
        _ = parts.port
    except ValueError as e:
        raise WebSocketConnectionError(f"Invalid URL {url!r}: {e}") from e
    if not parts.scheme or not parts.netloc:
        raise WebSocketConnectionError(f"Invalid URL {url!r}: missing scheme or host")
    scheme = _SCHEME_MAP.get(parts.scheme, parts.scheme)
    return urlunsplit((scheme, parts.netloc, parts.path, parts.query, parts.fragment))


def build_headers(config: LoadTestConfig) -> Dict[str, str]:
    """Service identification header, plus Authorization when a credential is set."""
    headers = {settings.loadtest_service_header: config.service_id}
    if config.auth_header:
        headers["Authorization"] = config.auth_header
    return headers


class ConnectionManager:
    """Manages the single WebSocket connection of a load-test run."""

    def __init__(
        self,
        config: LoadTestConfig,
        stats: StatsAggregator,
        on_connected: Optional[Callable[[], None]] = None,
        connector: Optional[Connector] = None,
        dial_retry_delay: Optional[float] = None,
        read_retry_delay: Optional[float] = None,
        send_interval: Optional[float] = None,
    ):
        """
        Initialize the connection manager.

        Args:
            config: Run configuration.
            stats: Aggregator receiving every counter update.
            on_connected: Called once right after each successful handshake.
            connector: Coroutine function opening the socket; defaults to
                ``websockets.asyncio.client.connect``.
            dial_retry_delay: Backoff after a failed dial, in seconds.
            read_retry_delay: Backoff after a read failure, in seconds.
            send_interval: Pause between subscribe requests, in seconds.
        """
        self._config = config
        self._stats = stats
        self._on_connected = on_connected
        self._connector = connector or websockets_connect
        self._dial_retry_delay = (
            settings.loadtest_dial_retry_delay if dial_retry_delay is None else dial_retry_delay
        )
        self._read_retry_delay = (
            settings.loadtest_read_retry_delay if read_retry_delay is None else read_retry_delay
        )
        self._send_interval = (
            settings.loadtest_subscription_send_interval if send_interval is None else send_interval
        )

        self._state = ConnectionState.IDLE
        self._stop_event = asyncio.Event()
        self._websocket: Optional[Any] = None
        # Local request id -> logical type, reset on every connection
        self._pending_requests: Dict[int, str] = {}
        self._total_subscriptions = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def total_subscriptions(self) -> int:
        """Subscribe requests sent successfully over the whole run."""
        return self._total_subscriptions

    @property
    def pending_requests(self) -> Dict[int, str]:
        return dict(self._pending_requests)

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Run connection cycles until ``stop_event`` is set."""
        if stop_event is not None:
            self._stop_event = stop_event
        logger.info("connection_manager_started", url=self._config.url)
        while not self._stop_event.is_set():
            await self.run_once()
        logger.info("connection_manager_stopped", state=self._state.value)

    async def run_once(self) -> None:
        """One pass of the state machine, from IDLE back to IDLE."""
        self._transition(ConnectionState.DIALING)
        try:
            url = normalize_url(self._config.url)
        except WebSocketConnectionError as e:
            # Not counted as an attempt: nothing was dialed
            logger.error("websocket_invalid_url", url=self._config.url, error=e.message)
            self._transition(ConnectionState.FAILED)
            await self._backoff(self._dial_retry_delay)
            self._transition(ConnectionState.IDLE)
            return

        websocket = await self._dial(url)
        if websocket is None:
            self._stats.record_reconnection()
            await self._backoff(self._dial_retry_delay)
            self._transition(ConnectionState.IDLE)
            return

        self._websocket = websocket
        try:
            self._stats.begin_connection()
            if self._on_connected is not None:
                self._on_connected()

            await self._send_subscriptions(websocket)
            if self._stop_event.is_set():
                self._transition(ConnectionState.IDLE)
                return
            self._transition(ConnectionState.SUBSCRIPTIONS_SENT)

            self._transition(ConnectionState.LISTENING)
            await self._listen(websocket)
        finally:
            self._websocket = None
            await self._close_quietly(websocket)

    async def close(self) -> None:
        """Signal shutdown and close the socket so a pending read returns."""
        self._stop_event.set()
        websocket = self._websocket
        if websocket is not None:
            await self._close_quietly(websocket)

    def _transition(self, target: ConnectionState) -> None:
        if not can_transition(self._state, target):
            raise StateTransitionError(
                f"Illegal transition {self._state.value} -> {target.value}"
            )
        old_state = self._state
        self._state = target
        logger.debug(
            "connection_state_changed",
            old_state=old_state.value,
            new_state=target.value,
        )

    async def _dial(self, url: str) -> Optional[Any]:
        """Open the socket. Returns None (in FAILED state) on any dial error."""
        self._stats.record_connection_attempt()
        logger.info("websocket_connecting", url=url, service=self._config.service_id)
        try:
            websocket = await self._connector(
                url,
                additional_headers=build_headers(self._config),
                open_timeout=None,
                ping_interval=None,
                max_size=None,
            )
        except (ValueError, *TRANSPORT_ERRORS) as e:
            # ValueError: URI rejected by the websockets library
            error = WebSocketConnectionError(f"Failed to connect to {url}: {e}")
            logger.warning(
                "websocket_dial_failed",
                url=url,
                error=error.message,
                error_type=type(e).__name__,
            )
            self._transition(ConnectionState.FAILED)
            return None

        self._transition(ConnectionState.CONNECTED)
        logger.info("websocket_connected", url=url)
        return websocket

    async def _send_subscriptions(self, websocket: Any) -> None:
        """Send one subscribe request per configured type and instance.

        Request ids restart at 1 for every connection. A failed send retires
        its id and the loop moves on to the next request.
        """
        self._pending_requests = {}
        request_id = 1

        plan = iter_subscription_plan(self._config.subscription_types(), self._config.sub_count)
        for subscription_type, instance in plan:
            if self._stop_event.is_set():
                return

            request = build_subscribe_request(request_id, subscription_type)
            try:
                await self._send_request(websocket, request.to_payload())
            except SubscriptionError as e:
                logger.warning(
                    "subscription_send_failed",
                    subscription_type=subscription_type,
                    instance=instance,
                    request_id=request_id,
                    error=e.message,
                )
                request_id += 1
                continue

            self._pending_requests[request_id] = subscription_type
            self._total_subscriptions += 1
            request_id += 1

            if self._send_interval > 0:
                await asyncio.sleep(self._send_interval)

        logger.info(
            "subscriptions_sent",
            sent=len(self._pending_requests),
            total_subscriptions=self._total_subscriptions,
        )

    async def _send_request(self, websocket: Any, payload: Dict[str, Any]) -> None:
        try:
            message = json.dumps(payload)
            await websocket.send(message)
        except (TypeError, ValueError) as e:
            raise SubscriptionError(f"Could not serialize request: {e}") from e
        except TRANSPORT_ERRORS as e:
            raise SubscriptionError(f"Could not send request: {e}") from e

    async def _listen(self, websocket: Any) -> None:
        """Read frames until the transport fails or shutdown is requested."""
        while not self._stop_event.is_set():
            try:
                data = await websocket.recv()
                frame = decode_frame(data)
            except (FrameDecodeError, *TRANSPORT_ERRORS) as e:
                if self._stop_event.is_set():
                    # Shutdown closed the socket; the open epoch is flushed by the final report
                    break
                logger.warning(
                    "websocket_connection_closed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                self._stats.end_connection()
                self._stats.record_reconnection()
                self._transition(ConnectionState.FAILED)
                await self._backoff(self._read_retry_delay)
                self._transition(ConnectionState.IDLE)
                return

            self._handle_frame(frame)

        self._transition(ConnectionState.IDLE)

    def _handle_frame(self, frame: Frame) -> None:
        self._stats.handle_event(frame)

        if isinstance(frame, Confirmation):
            request_id = frame.request_id
            if isinstance(request_id, float):
                if not request_id.is_integer():
                    return
                request_id = int(request_id)
            subscription_type = self._pending_requests.get(request_id)
            if subscription_type is not None and isinstance(frame.result, str):
                self._stats.map_subscription(frame.result, subscription_type)

    async def _backoff(self, delay: float) -> None:
        """Sleep for ``delay`` seconds, returning early on shutdown."""
        if delay <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def _close_quietly(self, websocket: Any) -> None:
        try:
            await websocket.close()
        except TRANSPORT_ERRORS as e:
            logger.debug("websocket_close_failed", error=str(e), error_type=type(e).__name__)
