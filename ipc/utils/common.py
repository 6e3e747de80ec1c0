from __future__ import annotations

import os
from uuid import uuid4


def generate_nonce() -> str:
    """Fresh request tag; replies are never matched against it."""
    return str(uuid4())


def current_pid() -> int:
    return os.getpid()


__all__ = ["generate_nonce", "current_pid"]
