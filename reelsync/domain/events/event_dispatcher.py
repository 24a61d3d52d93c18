# reelsync/domain/events/event_dispatcher.py
import logging
from enum import Enum
from typing import Callable, Dict, List, Type

from .event_types import DomainEvent


Handler = Callable[[DomainEvent], None]


class EventDispatcher:
    """
    Synchronous publish/subscribe for domain events.

    Handlers subscribe to one event type, or to an event class (which also
    receives events of its subclasses). A handler that raises is logged and
    skipped; the publisher never sees the error.
    """
    def __init__(self):
        self.logger = logging.getLogger("domain.events.dispatcher")
        self.handlers: Dict[Enum, List[Handler]] = {}
        self.class_handlers: Dict[type, List[Handler]] = {}
        self.handler_errors = 0

    def register(self, event_type: Enum, handler: Handler):
        """
        Args:
            event_type: Event type to subscribe to
            handler: Called with each matching event
        """
        self.handlers.setdefault(event_type, []).append(handler)
        self.logger.debug(f"Registered handler for event type: {event_type.name}")

    def register_for_class(self, event_class: Type[DomainEvent], handler: Handler):
        self.class_handlers.setdefault(event_class, []).append(handler)
        self.logger.debug(f"Registered handler for event class: {event_class.__name__}")

    def handlers_for(self, event: DomainEvent) -> List[Handler]:
        """Type subscribers first, then class subscribers from the most specific class up."""
        matched = list(self.handlers.get(event.type, []))
        for cls in type(event).__mro__:
            matched.extend(self.class_handlers.get(cls, []))
        return matched

    def dispatch(self, event: DomainEvent):
        handlers = self.handlers_for(event)
        if not handlers:
            return

        self.logger.debug(f"Dispatching {event} to {len(handlers)} handlers")
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                self.handler_errors += 1
                self.logger.error(f"Error in event handler for {event}: {str(e)}")

    def unregister(self, event_type: Enum, handler: Handler) -> bool:
        """
        Returns:
            True if the handler was removed, False if it was not registered
        """
        return self._remove(self.handlers.get(event_type), handler)

    def unregister_for_class(self, event_class: Type[DomainEvent], handler: Handler) -> bool:
        return self._remove(self.class_handlers.get(event_class), handler)

    @staticmethod
    def _remove(handlers, handler: Handler) -> bool:
        if handlers and handler in handlers:
            handlers.remove(handler)
            return True
        return False
