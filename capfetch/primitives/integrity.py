"""Canonical JSON serialization.

Signed payloads are serialized with sorted keys and no whitespace so that
the issuer and the verifier produce the same bytes for the same data.
"""

import json
from typing import Any


def canonical_json(data: Any) -> str:
    """Serialize data to canonical JSON.

    Canonical form: sorted keys, no whitespace, ASCII-only output.

    Args:
        data: Data to serialize.

    Returns:
        Canonical JSON string.
    """
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def canonical_bytes(data: Any) -> bytes:
    """Canonical JSON encoded as UTF-8, the exact byte string that gets signed."""
    return canonical_json(data).encode("utf-8")
