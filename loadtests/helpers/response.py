"""Response error extraction for load test observability.

Parses Engagement Orders API error responses into human-readable messages.
Handles three response shapes:

- Pydantic validation (422): {"detail": [{"loc": [...], "msg": "...", "type": "..."}]}
- Auth failures (401/403): {"detail": "msg"}
- Domain errors (400/404/409/502): {"success": false, "message": "...", "reason": "..."}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a human-readable error message from an API error response.

    Returns a compact string suitable for Locust failure messages and log lines.
    """
    try:
        body = response.json()
    except ValueError:
        # Not JSON — return raw text, truncated
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if not isinstance(body, dict):
        return str(body)[:300]

    detail = body.get("detail")
    if isinstance(detail, list):
        parts = []
        for err in detail:
            loc = ".".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", str(err))
            parts.append(f"{loc}: {msg}" if loc else msg)
        return " | ".join(parts)
    if isinstance(detail, str):
        return detail

    if "message" in body:
        message = body.get("message_en") or body["message"]
        reason = body.get("reason")
        return f"{message} ({reason})" if reason else str(message)

    # Unknown shape — stringify and truncate
    return str(body)[:300]
