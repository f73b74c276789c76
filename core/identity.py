"""Record identifier generation.

Updates:
  v0.1.0 - 2026-10-02 - Introduce time-ordered random identifiers for prompt records.
"""

from __future__ import annotations

import secrets
import time

_RANDOM_BYTES = 6


def new_id() -> str:
    """Return a fresh record identifier.

    The identifier is the current time in microseconds (hex, zero-padded so
    ids sort by creation time) followed by 48 random bits, which keeps
    collisions negligible across processes that never coordinate.
    """
    timestamp = time.time_ns() // 1_000
    return f"{timestamp:014x}{secrets.token_hex(_RANDOM_BYTES)}"


__all__ = ["new_id"]
