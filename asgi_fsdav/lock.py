"""
Advisory lock

LOCK only hands out a token, nothing is stored and nothing is checked later:
the token gives NO mutual exclusion, two clients can hold "exclusive" locks on
the same resource and concurrent writers are never blocked. It exists so that
clients which refuse to write without a lock (macOS Finder, Windows Explorer,
MS Office...) keep working.
"""

from time import time_ns
from uuid import uuid4

from asgi_fsdav.constants import DAVLockScope


def create_lock_token() -> str:
    """unique on a best-effort basis: time + random"""
    return f"opaquelocktoken:{time_ns():x}-{uuid4().hex}"


def create_lock_discovery_data(
    token: str,
    lock_scope: DAVLockScope,
    depth: str,
    timeout: str,
    owner: str | None = None,
) -> dict:
    """
    https://www.rfc-editor.org/rfc/rfc4918#section-9.10.9
    """
    active_lock = {
        "D:locktype": {"D:write": None},
        "D:lockscope": {f"D:{lock_scope.value}": None},
        "D:depth": depth,
    }
    if owner is not None:
        active_lock["D:owner"] = owner

    active_lock.update(
        {
            "D:timeout": timeout,
            "D:locktoken": {"D:href": token},
        }
    )

    return {
        "D:prop": {
            "@xmlns:D": "DAV:",
            "D:lockdiscovery": {"D:activelock": active_lock},
        }
    }
