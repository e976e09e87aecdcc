"""Injectable time and identifier sources.

The repository never calls datetime.now() or random directly; it asks a clock
for the current ISO-8601 timestamp and an id factory for a fresh identifier.
Tests pass deterministic replacements.
"""

import random
import string
import time
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], str]
IdFactory = Callable[[], str]

_BASE36 = string.digits + string.ascii_lowercase


def to_base36(number: int) -> str:
    """Render a non-negative integer in base 36."""
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_id() -> str:
    """Millisecond timestamp in base 36 followed by six random characters."""
    millis = time.time_ns() // 1_000_000
    suffix = "".join(random.choices(_BASE36, k=6))
    return to_base36(millis) + suffix
