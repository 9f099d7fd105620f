"""Protocol interfaces for moveforge components."""

from moveforge.interfaces.filter import EventFilter
from moveforge.interfaces.gateway import RpcGateway
from moveforge.interfaces.sink import EventSink
from moveforge.interfaces.store import CursorStore

__all__ = ["RpcGateway", "EventFilter", "EventSink", "CursorStore"]
