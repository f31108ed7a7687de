from __future__ import annotations

import hmac


def verify_shared_secret(provided: str | None, expected: str | None) -> bool:
    """Compare *provided* against *expected* in constant time.

    Returns ``False`` when either value is missing, so an unconfigured
    secret never authorises anyone.
    """
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))
