"""Monitored nodes: the capability protocol and the JSON-RPC implementation."""

from .base import BlockRef, Node, NodeError, NodeStatus
from .rpc import RPCNode, parse_block

__all__ = [
    "BlockRef",
    "Node",
    "NodeError",
    "NodeStatus",
    "RPCNode",
    "parse_block",
]
