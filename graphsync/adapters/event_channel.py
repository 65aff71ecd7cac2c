"""Subscription contract for the backend's persistent event channel.

Handlers may be plain functions or coroutine functions. A (re)connect is
reported as its own event so consumers can resynchronize explicitly.
"""

from __future__ import annotations

import inspect
from collections import defaultdict
from typing import Any, Awaitable, Callable, Protocol

import structlog

logger = structlog.get_logger(__name__)

Handler = Callable[[dict[str, Any]], Awaitable[None] | None]
ConnectHandler = Callable[[], Awaitable[None] | None]
Unsubscribe = Callable[[], None]


class EventChannel(Protocol):
    """What the editor needs from the message transport."""

    def subscribe(self, kind: str, handler: Handler) -> Unsubscribe:
        """Call ``handler`` with the payload of every ``kind`` event."""
        ...

    def on_connect(self, handler: ConnectHandler) -> Unsubscribe:
        """Call ``handler`` after every (re)connect."""
        ...

    async def subscribe_to_graph_execution(self, execution_id: str) -> None:
        """Ask the server to stream events for one graph execution."""
        ...


async def _call(handler: Callable[..., Any], *args: Any) -> None:
    result = handler(*args)
    if inspect.isawaitable(result):
        await result


class InMemoryEventChannel:
    """Dispatches events published in-process.

    Used by tests and by embedders that bridge their own transport in
    through ``publish``/``connect``.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._connect_handlers: list[ConnectHandler] = []
        self.subscriptions: list[str] = []
        self.connected = False

    def subscribe(self, kind: str, handler: Handler) -> Unsubscribe:
        self._handlers[kind].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[kind]:
                self._handlers[kind].remove(handler)

        return unsubscribe

    def on_connect(self, handler: ConnectHandler) -> Unsubscribe:
        self._connect_handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._connect_handlers:
                self._connect_handlers.remove(handler)

        return unsubscribe

    async def subscribe_to_graph_execution(self, execution_id: str) -> None:
        self.subscriptions.append(execution_id)

    async def connect(self) -> None:
        """Simulate a (re)connect."""
        self.connected = True
        for handler in list(self._connect_handlers):
            await _call(handler)

    def disconnect(self) -> None:
        self.connected = False

    async def publish(self, kind: str, data: dict[str, Any]) -> None:
        """Deliver one event to every handler; dropped while disconnected."""
        if not self.connected:
            logger.debug("channel disconnected, dropping event", kind=kind)
            return
        for handler in list(self._handlers[kind]):
            await _call(handler, data)
