from __future__ import annotations

import secrets
import threading
import time
from typing import List

# Ordered so that generated keys sort lexicographically by creation time.
PUSH_CHARS = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"

_lock = threading.Lock()
_last_ms = 0
_last_rand: List[int] = [0] * 12


def push_id(now_ms: int | None = None) -> str:
    """
    Return a 20-char key: 8 chars of millisecond timestamp followed by 12
    random chars. Keys minted in the same millisecond bump the random tail
    so they still sort in creation order.
    """
    global _last_ms
    ms = int(time.time() * 1000) if now_ms is None else int(now_ms)

    with _lock:
        if ms == _last_ms:
            i = 11
            while i >= 0 and _last_rand[i] == 63:
                _last_rand[i] = 0
                i -= 1
            if i >= 0:
                _last_rand[i] += 1
        else:
            _last_ms = ms
            for i in range(12):
                _last_rand[i] = secrets.randbelow(64)
        rand = list(_last_rand)

    head = []
    for _ in range(8):
        head.append(PUSH_CHARS[ms % 64])
        ms //= 64
    return "".join(reversed(head)) + "".join(PUSH_CHARS[r] for r in rand)
