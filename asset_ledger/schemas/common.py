import math
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder


def pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }


def envelope(
    data: Any = None,
    *,
    message: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    total: Optional[int] = None,
) -> dict:
    body = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = jsonable_encoder(data)
    if total is not None:
        body["pagination"] = pagination(page, limit, total)
    return body


def error_envelope(message: str, errors: Optional[list] = None) -> dict:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body
