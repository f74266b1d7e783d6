"""Headers forwarded when calling other platform services."""

from __future__ import annotations

import base64
import json
from typing import Any, Mapping, Optional


def outgoing_headers(
    request_id: str, identity: Optional[Mapping[str, Any]], auth: bool
) -> dict[str, str]:
    """Build the request-id and, when auth is on, the encoded identity headers."""
    headers = {"x-rh-insights-request-id": request_id}
    if auth:
        encoded = json.dumps(identity, separators=(",", ":")).encode("utf-8")
        headers["x-rh-identity"] = base64.b64encode(encoded).decode("ascii")
    return headers