# src/shadergraph/core/events.py
"""Event bus for editor observability.

A synchronous bus carrying compile lifecycle events from the scheduler to
whatever presents them (a status bar, an error banner, a log sink). One
bus may be shared by several open sessions; each session unsubscribes its
handlers when it is closed.
"""

from collections.abc import Callable
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class EventBusProtocol(Protocol):
    """Protocol for event bus implementations.

    Allows both EventBus and NullEventBus to satisfy the interface
    without inheritance.
    """

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None: ...

    def unsubscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None: ...

    def emit(self, event: T) -> None: ...


class EventBus:
    """Synchronous event bus.

    Handlers run in subscription order, keyed on the exact event type.
    Handler exceptions propagate to the emitter.

    Example:
        bus = EventBus()
        bus.subscribe(CompileFailed, lambda e: print(e.message))
        bus.emit(CompileFailed(generation=3, message="boom", error=err))
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Callable[[Any], None]]] = {}

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        self._subscribers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        """Remove one subscription of ``handler``; unknown handlers are ignored."""
        handlers = self._subscribers.get(event_type)
        if handlers is not None and handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, event_type: type) -> int:
        return len(self._subscribers.get(event_type, ()))

    def emit(self, event: T) -> None:
        # Copy so a handler may unsubscribe while being dispatched
        for handler in list(self._subscribers.get(type(event), ())):
            handler(event)


class NullEventBus:
    """No-op event bus for library use where nobody observes compiles."""

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        pass

    def unsubscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        pass

    def emit(self, event: T) -> None:
        pass
