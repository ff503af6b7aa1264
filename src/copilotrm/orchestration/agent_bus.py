"""
copilotrm.orchestration.agent_bus - In-Process Event Bus
==========================================================

A small async pub/sub bus used by the facade to announce what the engine
produced. Publishers never wait on, or see failures of, their subscribers
beyond the delivery itself.

Events published by CopilotRM:
    - ``orchestrator.output``   OrchestratorOutput of a synchronous run
    - ``swarm.run.completed``   TracedOutput of a traced run
    - ``discussion.event``      every event streamed by a discussion

Delivery Rules:
    - The bus must be connected; otherwise AgentBusError(BUS_NOT_CONNECTED).
    - All handlers of an event run concurrently via asyncio.gather.
    - A failing handler is logged and skipped; publish() still returns.
    - Publishing an event without handlers is a no-op (still counted).

Usage:
    >>> bus = AgentBus()
    >>> await bus.connect()
    >>> async def on_output(payload):
    ...     print(payload.ranked_actions[0].title)
    >>> await bus.subscribe("orchestrator.output", on_output)
    >>> await bus.publish("orchestrator.output", output)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Optional

import structlog

from copilotrm.core.exceptions import AgentBusError


logger = structlog.get_logger()

# A handler is an async callable taking the published payload.
BusHandler = Callable[[Any], Awaitable[None]]

ORCHESTRATOR_OUTPUT_EVENT = "orchestrator.output"
SWARM_RUN_COMPLETED_EVENT = "swarm.run.completed"
DISCUSSION_EVENT = "discussion.event"


class AgentBus:
    """In-memory async pub/sub keyed by event name.

    Attributes:
        _handlers: Event name → handlers, in subscription order.
        _lock: Guards the handler table against concurrent coroutines.
        _connected: Whether connect() has been called.
        _published_count: Events published since the last connect().
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[BusHandler]] = {}
        self._lock: asyncio.Lock = asyncio.Lock()
        self._connected: bool = False
        self._published_count: int = 0
        self._logger = logger.bind(component="agent_bus")

    @property
    def published_count(self) -> int:
        return self._published_count

    @property
    def is_connected(self) -> bool:
        return self._connected

    # =========================================================================
    # Connection Lifecycle
    # =========================================================================

    async def connect(self) -> None:
        """Start (or restart) the bus with no handlers and a zero counter."""
        async with self._lock:
            self._handlers.clear()
            self._published_count = 0
            self._connected = True
        self._logger.info("agent_bus_connected")

    async def disconnect(self) -> None:
        """Drop every handler. Safe to call twice."""
        async with self._lock:
            self._handlers.clear()
            self._connected = False
        self._logger.info("agent_bus_disconnected")

    # =========================================================================
    # Subscriptions
    # =========================================================================

    async def subscribe(self, event: str, handler: BusHandler) -> None:
        """Register ``handler`` for ``event``.

        Raises:
            AgentBusError: If the bus is not connected.
        """
        self._ensure_connected()
        async with self._lock:
            self._handlers.setdefault(event, []).append(handler)
        self._logger.debug("handler_subscribed", bus_event=event)

    async def unsubscribe(self, event: str, handler: Optional[BusHandler] = None) -> None:
        """Remove one handler, or every handler when ``handler`` is None.

        Unknown events and handlers are ignored.

        Raises:
            AgentBusError: If the bus is not connected.
        """
        self._ensure_connected()
        async with self._lock:
            if handler is None:
                self._handlers.pop(event, None)
            else:
                remaining = [h for h in self._handlers.get(event, []) if h is not handler]
                if remaining:
                    self._handlers[event] = remaining
                else:
                    self._handlers.pop(event, None)
        self._logger.debug("handler_unsubscribed", bus_event=event, all_handlers=handler is None)

    def registered_events(self) -> list[str]:
        """Event names with at least one handler, in first-subscription order."""
        return [event for event, handlers in self._handlers.items() if handlers]

    # =========================================================================
    # Publishing
    # =========================================================================

    async def publish(self, event: str, payload: Any = None) -> None:
        """Deliver ``payload`` to every handler of ``event``.

        Raises:
            AgentBusError: If the bus is not connected.
        """
        self._ensure_connected()

        async with self._lock:
            # Copy so a handler may unsubscribe itself during delivery
            handlers = list(self._handlers.get(event, []))
            self._published_count += 1

        if not handlers:
            self._logger.debug("event_published_without_handlers", bus_event=event)
            return

        results = await asyncio.gather(
            *(handler(payload) for handler in handlers),
            return_exceptions=True,
        )
        for handler, result in zip(handlers, results):
            if isinstance(result, Exception):
                self._logger.error(
                    "bus_handler_failed",
                    bus_event=event,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                    error=str(result),
                    error_type=type(result).__name__,
                )

        self._logger.debug("event_published", bus_event=event, handlers=len(handlers))

    # =========================================================================
    # Internals
    # =========================================================================

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise AgentBusError(
                message="Agent bus is not connected. Call connect() first.",
                error_code="BUS_NOT_CONNECTED",
            )

    def __repr__(self) -> str:
        return (
            f"AgentBus(connected={self._connected}, "
            f"events={len(self._handlers)}, published={self._published_count})"
        )
