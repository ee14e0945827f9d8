"""Connectivity tracking."""

from tutorsync.connectivity.monitor import (
    ConnectivityMonitor,
    ConnectivitySource,
    ManualConnectivitySource,
    Subscription,
    create_monitor,
)

__all__ = [
    "ConnectivityMonitor",
    "ConnectivitySource",
    "ManualConnectivitySource",
    "Subscription",
    "create_monitor",
]
