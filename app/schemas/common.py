"""
Response envelope helpers.

Every JSON response is {"success": bool, "data"?: ..., "error"?: str}.
Errors are rendered by core.errors; handlers only build the success form.
"""
from __future__ import annotations
import math
from typing import Any


def ok(data: Any = None, **extra: Any) -> dict:
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }
