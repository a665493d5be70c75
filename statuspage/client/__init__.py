"""
client/__init__.py
------------------
Python client for live status views.

    from statuspage.client import LiveView, StatusPageAPI
"""

from statuspage.client.api import StatusPageAPI
from statuspage.client.lifecycle import ClientConnection, ConnectionLifecycleController, LinkState
from statuspage.client.reconciler import ClientReconciler, QueryCache
from statuspage.client.transport import Transport, TransportClosed, WebSocketTransport
from statuspage.client.views import LiveView

__all__ = [
    "ClientConnection",
    "ClientReconciler",
    "ConnectionLifecycleController",
    "LinkState",
    "LiveView",
    "QueryCache",
    "StatusPageAPI",
    "Transport",
    "TransportClosed",
    "WebSocketTransport",
]
