"""
Event bus for decoupling the image pipeline from the UI layer.
"""

import asyncio
from typing import Dict, List, Callable, Any, Optional
from collections import defaultdict
from setup_logging_optimized import get_logger

logger = get_logger(__name__)


class EventBus:
    """Simple event bus; handler errors are logged and never reach the emitter."""

    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = defaultdict(list)
        self._async_handlers: Dict[str, List[Callable]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: Callable):
        """Subscribe to an event type."""
        if asyncio.iscoroutinefunction(handler):
            self._async_handlers[event_type].append(handler)
        else:
            self._handlers[event_type].append(handler)
        logger.debug(f"Subscribed handler to event type: {event_type}")

    def unsubscribe(self, event_type: str, handler: Callable):
        """Unsubscribe from an event type."""
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)
        if handler in self._async_handlers[event_type]:
            self._async_handlers[event_type].remove(handler)

    def has_subscribers(self, event_type: str) -> bool:
        return bool(self._handlers.get(event_type) or self._async_handlers.get(event_type))

    async def emit(self, event_type: str, data: Dict[str, Any]):
        """Emit an event to all subscribers."""
        logger.debug(f"Emitting event: {event_type}")

        for handler in list(self._handlers[event_type]):
            try:
                handler(data)
            except Exception:
                logger.exception(f"Error in sync handler for {event_type}")

        handlers = list(self._async_handlers[event_type])
        if handlers:
            await asyncio.gather(*(self._handle_async(h, data, event_type) for h in handlers))

    async def _handle_async(self, handler: Callable, data: Dict[str, Any], event_type: str):
        try:
            await handler(data)
        except Exception:
            logger.exception(f"Error in async handler for {event_type}")


# Global event bus instance
_event_bus: Optional[EventBus] = None


def get_event_bus() -> EventBus:
    """Get the global event bus instance."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


class Events:
    """Event types published by the image pipeline."""

    # {slide_id, state, image_url, is_fallback, reason}
    SLIDE_IMAGE_STATE = "slide.image.state"
    # {run_id, successes, processed}
    PRIORITY_COMPLETE = "slide.image.priority_complete"
    GENERATION_COMPLETE = "slide.image.generation_complete"
    # {max}
    CREDITS_EXHAUSTED = "credits.exhausted"
    # Progress snapshot for the background indicator
    PROGRESS_UPDATE = "progress.update"
