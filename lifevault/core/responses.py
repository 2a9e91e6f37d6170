from typing import Any


def envelope(data: Any = None, message: str | None = None) -> dict[str, Any]:
    """Success body: {success, data?, message?}. Errors are shaped by the exception handlers."""
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body


def pagination(page: int, limit: int, total: int) -> dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": (total + limit - 1) // limit,
    }
