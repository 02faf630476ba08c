"""
Push channel for incremental dashboard updates.

The transport side (`PushChannel`) turns websocket frames into a stream of
typed `PushMessage`s; `PushDispatcher` owns the policy for what each message
does to the view model. Feeding synthetic messages to the dispatcher
exercises that policy without a connection.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

import websockets
from pydantic import ValidationError

from ..api.models import PushMessage, SliceName
from .store import ViewModelStore

logger = logging.getLogger(__name__)

# Message types that replace a slice; the type string is the slice name
PUSHABLE_SLICES = {SliceName.CLOUD_COSTS.value, SliceName.SERVICE_USAGE.value}


class PushDispatcher:
    """Applies push messages to the view model store."""

    def __init__(self, store: ViewModelStore):
        self.store = store

    def dispatch(self, message: PushMessage) -> bool:
        """
        Replace exactly the slice named by the message type.

        Unknown types are ignored. Returns True if a slice was replaced.
        """
        if message.type not in PUSHABLE_SLICES:
            logger.debug(f"Ignoring push message of unknown type {message.type!r}")
            return False

        name = SliceName(message.type)
        # Claim the generation on arrival so an older in-flight reload cannot overwrite this
        generation = self.store.next_generation(name)
        try:
            return self.store.set_slice(name, message.data, generation=generation)
        except ValidationError as e:
            logger.warning(f"Dropping malformed {name.value} push payload: {e.error_count()} errors")
            return False


def parse_frame(frame: str | bytes) -> PushMessage | None:
    """Decode one JSON frame, or return None if it is not a push message."""
    try:
        return PushMessage.model_validate(json.loads(frame))
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
        logger.warning(f"Dropping undecodable push frame: {e}")
        return None


class PushChannel:
    """
    One persistent connection delivering push messages.

    After a connection-level error the channel stays dead until the next
    open(), unless reconnection is enabled, in which case up to
    `max_attempts` reconnects are made with exponential backoff.
    """

    def __init__(
        self,
        url: str,
        dispatcher: PushDispatcher,
        connect: Callable[[str], Any] | None = None,
        reconnect: bool = False,
        max_attempts: int = 5,
        initial_delay: float = 1.0,
        max_delay: float = 30.0,
    ):
        self.url = url
        self.dispatcher = dispatcher
        self._connect = connect or websockets.connect
        self.reconnect = reconnect
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.max_delay = max(max_delay, initial_delay)
        self._task: asyncio.Task | None = None
        self._connection: Any = None
        self._closed = False
        self.connected = asyncio.Event()
        self.messages_received = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def open(self) -> asyncio.Task:
        """Start consuming the channel in a background task."""
        if self._task is None:
            self._closed = False
            self._task = asyncio.ensure_future(self._run())
        return self._task

    async def close(self):
        """Close the connection and stop consuming. Safe to call more than once."""
        self._closed = True
        task, self._task = self._task, None
        if self._connection is not None:
            try:
                await self._connection.close()
            except Exception as e:
                logger.debug(f"Error closing push channel connection: {e}")
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def messages(self) -> AsyncIterator[PushMessage]:
        """Yield decoded messages from one connection until it closes."""
        async with self._connect(self.url) as connection:
            self._connection = connection
            self.connected.set()
            logger.info(f"Push channel connected to {self.url}")
            try:
                async for frame in connection:
                    message = parse_frame(frame)
                    if message is not None:
                        yield message
            finally:
                self._connection = None
                self.connected.clear()

    def _backoff(self, attempt: int) -> float:
        return min(self.max_delay, self.initial_delay * (2**attempt))

    async def _run(self):
        attempt = 0
        while not self._closed:
            try:
                async for message in self.messages():
                    attempt = 0
                    self.messages_received += 1
                    if not self.dispatcher.store.is_active:
                        logger.debug("Push message arrived after dispose, ignoring")
                        continue
                    self.dispatcher.dispatch(message)
                logger.info("Push channel disconnected")
                return
            except asyncio.CancelledError:
                raise
            except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as e:
                logger.error(f"Push channel error: {e}")

            if self._closed or not self.reconnect or attempt >= self.max_attempts:
                if not self._closed:
                    logger.warning("Push channel is down, updates stop until the dashboard is remounted")
                return

            delay = self._backoff(attempt)
            attempt += 1
            logger.info(
                f"Reconnecting push channel in {delay:.1f}s (attempt {attempt}/{self.max_attempts})"
            )
            await asyncio.sleep(delay)
