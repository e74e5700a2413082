import hashlib
import json
from collections.abc import Mapping
from typing import Any


def compute_content_hash(payload: Mapping[str, Any], version: Mapping[str, str]) -> str:
    """SHA-256 over the canonical JSON of a provider payload and the version pin.

    Key order in either mapping does not affect the digest.
    """
    canonical = json.dumps(
        {"payload": payload, "version": dict(version)},
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
