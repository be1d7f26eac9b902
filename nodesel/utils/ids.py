from __future__ import annotations

import base64
import uuid


def new_base64_uuid() -> str:
    """Return a 22-character URL-safe Base64-encoded UUID without padding.

    Used as the generation id of a node universe, so that anything derived
    from one universe (cached selections, results) can be checked against it.

    Returns:
        A 22-character URL-safe Base64 representation of a UUID4 without
        padding.
    """
    return base64.urlsafe_b64encode(uuid.uuid4().bytes)[:-2].decode("ascii")
