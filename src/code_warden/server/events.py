"""Live event and inbound message shapes for the websocket channel."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional

EVENT_TYPES = (
    "command-output",
    "command-complete",
    "snapshot-ready",
    "analysis-ready",
    "work-update",
)


@dataclass(frozen=True)
class LiveEvent:
    """A notification scoped to one repository."""

    type: str
    slug: str
    payload: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {self.type!r}")

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "slug": self.slug, "payload": self.payload}


def parse_subscription(raw: Any, max_bytes: int) -> Optional[str]:
    """Return the slug of a well-formed subscribe message, else None.

    Accepts ``{"type": "subscribe", "slug": "<slug>"}`` as text or bytes.
    Oversized input, invalid JSON and any other shape yield None.
    """
    if isinstance(raw, str):
        size = len(raw.encode("utf-8"))
    elif isinstance(raw, (bytes, bytearray)):
        size = len(raw)
    else:
        return None
    if size > max_bytes:
        return None

    try:
        message = json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        return None

    if not isinstance(message, dict) or message.get("type") != "subscribe":
        return None
    slug = message.get("slug")
    if not isinstance(slug, str) or not slug:
        return None
    return slug
