"""Structured viewer events.

Each event is one JSON line on stderr so scripts can follow what the viewer
captured, saved or failed at without parsing log text. Extra transports are
plain callables registered with add_handler().

    {"event_type": "artifact.created", "timestamp": "...",
     "source": {"tool": "soomer"}, "data": {"file_path": "...", ...}}
"""

import json
import sys
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict], None]

# event_type -> fields carried in "data"
EVENT_CATALOG = {
    "config.resolved": ["config_path", "source"],
    "capture.completed": ["mode", "monitor_index", "width", "height"],
    "artifact.created": ["file_path", "file_type", "metadata"],
    "error.handled": ["error_type", "message", "action"],
    "shutdown": [],
}

_handlers: List[EventHandler] = []
_source: str = "soomer"
_stderr_enabled: bool = True


def configure(source: str, stderr: bool = True) -> None:
    global _source, _stderr_enabled
    _source = source
    _stderr_enabled = stderr


def add_handler(handler: EventHandler) -> None:
    _handlers.append(handler)


def remove_handler(handler: EventHandler) -> None:
    if handler in _handlers:
        _handlers.remove(handler)


def make_event(event_type: str, data: Dict[str, Any], source: Optional[str] = None) -> dict:
    """Build the event envelope without sending it anywhere."""
    return {
        "event_type": event_type,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": {"tool": source or _source},
        "data": data,
    }


def _write_stderr(event: dict) -> None:
    try:
        print(json.dumps(event, default=str), file=sys.stderr, flush=True)
    except (OSError, ValueError) as exc:
        logger.debug("Could not write event to stderr: %s", exc)


def emit(event_type: str, data: Dict[str, Any], source: Optional[str] = None) -> dict:
    """Send an event to stderr (unless disabled) and every handler.

    A failing handler is logged at debug level and never interrupts the
    viewer.

    Returns:
        The event that was sent
    """
    if event_type not in EVENT_CATALOG:
        logger.debug("Emitting uncatalogued event %s", event_type)

    event = make_event(event_type, data, source)

    if _stderr_enabled:
        _write_stderr(event)

    for handler in list(_handlers):
        try:
            handler(event)
        except Exception as exc:
            logger.debug("Event handler %r failed: %s", handler, exc)

    return event


def emit_error(error: Exception, action: str) -> dict:
    """Report a handled error, typed by its exception class."""
    return emit("error.handled", {
        "error_type": type(error).__name__,
        "message": str(error),
        "action": action,
    })
