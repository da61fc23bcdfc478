from __future__ import annotations

import itertools
import threading
import time

_counter = itertools.count(1)
_lock = threading.Lock()


def generate_reference(prefix: str) -> str:
    """Time-derived token with a process-wide sequence suffix, e.g. Q1760885040123-0007."""
    with _lock:
        sequence = next(_counter)
    millis = int(time.time() * 1000)
    return f"{prefix.upper()}{millis}-{sequence:04d}"


def generate_quote_id() -> str:
    return generate_reference("Q")


def generate_booking_id() -> str:
    return generate_reference("B")
