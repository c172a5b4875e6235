"""
Central domain event bus (Mediator Pattern).
"""
import asyncio
import logging
from collections import defaultdict
from typing import Awaitable, Callable, Dict, List, Type

from photoframe.core.events.domain_event import DomainEvent

# An event handler is an async function that takes a DomainEvent and returns None
EventHandler = Callable[[DomainEvent], Awaitable[None]]


class DomainEventBus:
    """
    Asynchronous event bus connecting the change sources, the change
    aggregator and the presentation layer.

    Handlers for one event run concurrently. A handler that raises is logged
    and does not prevent the other handlers from running.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[EventHandler]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        """
        Subscribes a handler to a specific event type.

        Subscribing the same handler twice is a no-op, which keeps a repeated
        lifespan startup (tests, reloads) from doubling every rebuild.
        """
        async with self._lock:
            handlers = self._handlers[event_type]
            if handler in handlers:
                logging.debug(
                    f"Handler {handler.__name__} already subscribed to {event_type.__name__}"
                )
                return
            handlers.append(handler)
            logging.debug(f"Handler {handler.__name__} subscribed to {event_type.__name__}")

    def handler_count(self, event_type: Type[DomainEvent]) -> int:
        return len(self._handlers.get(event_type, []))

    async def publish(self, event: DomainEvent) -> None:
        """
        Publishes a domain event to every handler subscribed to its exact type.

        Args:
            event: The domain event instance to publish.
        """
        event_type = type(event)
        handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            logging.debug(f"No handlers for event {event_type.__name__}")
            return

        logging.debug(f"Publishing {event_type.__name__} to {len(handlers)} handler(s)")

        await asyncio.gather(*(self._safe_execute(handler, event) for handler in handlers))

    async def _safe_execute(self, handler: EventHandler, event: DomainEvent) -> None:
        try:
            await handler(event)
        except Exception as e:
            logging.error(
                f"Unhandled exception in handler '{handler.__name__}' for event "
                f"'{type(event).__name__}': {e}",
                exc_info=True,
            )
