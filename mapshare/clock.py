"""Wall-clock helpers."""

import time


def now_ms() -> int:
    """Current time as epoch milliseconds (the unit the web client uses)."""
    return int(time.time() * 1000)
