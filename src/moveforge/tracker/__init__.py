"""Event tracking: classification and incremental polling."""

from moveforge.tracker.classifier import (
    classify,
    format_event,
    parse_event_type,
    register_kind,
    render_event,
    require_event_type,
)
from moveforge.tracker.poller import EventPoller, PollerState

__all__ = [
    "EventPoller", "PollerState",
    "classify", "format_event", "parse_event_type", "register_kind",
    "render_event", "require_event_type",
]
