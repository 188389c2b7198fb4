from __future__ import annotations

import itertools
import time
import uuid

_counter = itertools.count()

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_uid() -> str:
    """Unique id: base36 millisecond clock, process-wide counter, random suffix."""
    timestamp = _base36(int(time.time() * 1000))
    count = _base36(next(_counter))
    return f"{timestamp}-{count}-{uuid.uuid4().hex[:6]}"

