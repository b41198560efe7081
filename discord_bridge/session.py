"""Session lifecycle for the single Discord connection."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from discord_bridge.errors import ConnectFailureError
from discord_bridge.gateway import GatewayClient
from discord_bridge.models import SessionEvent, SessionState

LOGGER = logging.getLogger(__name__)

DEFAULT_LOGIN_TIMEOUT_SECONDS = 15.0

ReadyListener = Callable[[], Awaitable[None]]


class SessionManager:
    """Owns connection state and coalesces concurrent login attempts.

    Gateway callbacks arrive through ``handle_event``; nothing else mutates
    the state. All callers of ``ensure_connected`` that observe a login in
    flight share the same attempt, so the platform sees one login at a time.
    """

    def __init__(
        self,
        gateway: GatewayClient,
        token: str,
        login_timeout_seconds: float = DEFAULT_LOGIN_TIMEOUT_SECONDS,
    ) -> None:
        self._gateway = gateway
        self._token = token
        self._login_timeout_seconds = login_timeout_seconds
        self._state = SessionState.DISCONNECTED
        self._login_attempt: asyncio.Task[None] | None = None
        self._ready_waiter: asyncio.Future[None] | None = None
        self._ready_listeners: list[ReadyListener] = []
        self._background_tasks: set[asyncio.Task[None]] = set()
        gateway.subscribe(self.handle_event)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is SessionState.READY

    def add_ready_listener(self, listener: ReadyListener) -> None:
        """Run ``listener`` in the background on every transition into READY."""

        self._ready_listeners.append(listener)

    async def ensure_connected(self) -> None:
        """Return once the session is ready, logging in if needed.

        Raises:
            ConnectFailureError: the login failed or timed out.
        """

        if self._state is SessionState.READY:
            return

        if self._login_attempt is None:
            LOGGER.info("Attempting to login...")
            self._state = SessionState.CONNECTING
            self._login_attempt = asyncio.create_task(self._login(), name="discord-login")

        # Shielded so a cancelled caller does not cancel the shared attempt.
        await asyncio.shield(self._login_attempt)

    async def _login(self) -> None:
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._ready_waiter = waiter
        try:
            await asyncio.wait_for(self._connect(), timeout=self._login_timeout_seconds)
        except asyncio.TimeoutError as exc:
            self._fail_attempt()
            LOGGER.error("Login timeout (%gs)", self._login_timeout_seconds)
            raise ConnectFailureError(f"Login timeout ({self._login_timeout_seconds:g}s)") from exc
        except ConnectFailureError:
            self._fail_attempt()
            raise
        except Exception as exc:  # noqa: BLE001
            self._fail_attempt()
            LOGGER.error("Login failed: %s", exc)
            raise ConnectFailureError(f"Login failed: {exc}") from exc
        finally:
            if waiter.done() and not waiter.cancelled():
                waiter.exception()
            else:
                waiter.cancel()
            self._ready_waiter = None
            self._login_attempt = None

    async def _connect(self) -> None:
        waiter = self._ready_waiter
        await self._gateway.login(self._token)
        if self._state is not SessionState.READY and waiter is not None:
            await waiter

    def _fail_attempt(self) -> None:
        if self._state is not SessionState.READY:
            self._state = SessionState.DISCONNECTED

    def handle_event(self, event: SessionEvent, error: BaseException | None = None) -> None:
        """Apply a gateway event to the session state."""

        if event is SessionEvent.READY:
            self._on_ready()
        elif event is SessionEvent.ERROR:
            LOGGER.error("Discord error: %s", error)
            waiter = self._ready_waiter
            if waiter is not None and not waiter.done():
                waiter.set_exception(ConnectFailureError(f"Login failed: {error}"))
        elif event is SessionEvent.DISCONNECTED:
            LOGGER.warning("Disconnected")
            if self._state is SessionState.READY:
                self._state = SessionState.DISCONNECTED
        elif event is SessionEvent.RECONNECTING:
            LOGGER.info("Reconnecting...")

    def _on_ready(self) -> None:
        was_ready = self._state is SessionState.READY
        self._state = SessionState.READY
        waiter = self._ready_waiter
        if waiter is not None and not waiter.done():
            waiter.set_result(None)
        if was_ready:
            return
        for listener in self._ready_listeners:
            task = asyncio.ensure_future(listener())
            self._background_tasks.add(task)
            task.add_done_callback(self._on_listener_done)

    def _on_listener_done(self, task: asyncio.Task[None]) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error("Ready listener failed: %s", exc)

    async def close(self) -> None:
        """Close the platform session and stop background work."""

        for task in list(self._background_tasks):
            task.cancel()
        self._background_tasks.clear()
        attempt = self._login_attempt
        if attempt is not None:
            attempt.cancel()
            await asyncio.gather(attempt, return_exceptions=True)
        self._state = SessionState.DISCONNECTED
        await self._gateway.close()
