"""Standardized API response wrappers."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from oxt_api.utils.degraded import Fetched


def _jsonable(data: Any) -> Any:
    # Decimals serialise as strings so amounts keep their precision.
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, list):
        return [_jsonable(item) for item in data]
    if isinstance(data, dict):
        return {k: _jsonable(v) for k, v in data.items()}
    return data


def wrap_response(
    data: Any,
    *,
    total_count: int | None = None,
    degraded: bool = False,
    degraded_reason: str | None = None,
    cached: bool | None = None,
    links: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Build a standardized API response dict."""
    meta = {
        "total_count": total_count,
        "degraded": degraded,
        "degraded_reason": degraded_reason,
        "cached": cached,
    }
    return {
        "data": _jsonable(data),
        "meta": {k: v for k, v in meta.items() if v is not None},
        "links": links or {},
    }


def wrap_fetched(result: Fetched[Any], **kwargs: Any) -> dict[str, Any]:
    """wrap_response for a service result, carrying its degradation flag."""
    return wrap_response(
        result.value,
        degraded=result.degraded,
        degraded_reason=result.reason,
        **kwargs,
    )


def error_response(
    code: str,
    message: str,
    *,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a standardized error response dict."""
    err: dict[str, Any] = {"code": code, "message": message}
    if details:
        err["details"] = details
    return {"error": err}
