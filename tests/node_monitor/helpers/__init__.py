"""Test helpers for node monitor unit tests."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import TypeVar

from .builders import make_chain, make_hash, make_header, make_rpc_block
from .mocks import FlakyNode, MockNode

_T = TypeVar("_T")


def run_async(coro: Coroutine[object, object, _T]) -> _T:
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


__all__ = [
    # Builders
    "make_chain",
    "make_hash",
    "make_header",
    "make_rpc_block",
    # Mocks
    "FlakyNode",
    "MockNode",
    # Async utilities
    "run_async",
]
