"""Serializer, wire frame, routing strategies, thread sync primitives and Raft messages for RPC services."""

__version__ = "0.1.0"

__all__ = [
    "util",
    "route_strategy",
    "sync",
    "protocol",
    "serializer",
    "rpc",
    "raft_messages",
]