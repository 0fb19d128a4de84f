"""Server-sent event framing."""

from __future__ import annotations

import json
from typing import Any

SSE_MEDIA_TYPE = "text/event-stream"
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}
DONE_FRAME = "data: [DONE]\n\n"


def format_sse(payload: dict[str, Any]) -> str:
    """One ``data:`` frame carrying a JSON payload."""
    return f"data: {json.dumps(payload)}\n\n"
