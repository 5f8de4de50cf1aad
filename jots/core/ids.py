from __future__ import annotations

import secrets
import time
from datetime import datetime, timezone
from typing import Callable


IdFn = Callable[[], str]
ClockFn = Callable[[], str]

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(n: int) -> str:
    if n == 0:
        return "0"
    digits: list[str] = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_id() -> str:
    """Short lowercase base36 id: 4 chars of millisecond clock + 4 random chars."""
    stamp = _to_base36(int(time.time() * 1000))[-4:]
    rand = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"{stamp}{rand}"


def timestamp() -> str:
    """Current UTC instant, ISO-8601 with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
