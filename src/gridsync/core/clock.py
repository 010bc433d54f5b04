"""Timer scheduling on the running event loop, injectable for tests."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

# (delay_s, callback) -> handle with .cancel(), like loop.call_later
CallLater = Callable[[float, Callable[[], None]], Any]


def schedule(
    call_later: CallLater | None, delay_s: float, callback: Callable[[], None]
) -> Any:
    """Run callback after delay_s via call_later, or the running loop if None."""
    if call_later is not None:
        return call_later(delay_s, callback)
    return asyncio.get_running_loop().call_later(delay_s, callback)
