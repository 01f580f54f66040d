"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import HTTPException, Query, Request

from oxt_shared.units import is_valid_address
from oxt_api.context import AppContext
from oxt_api.responses import error_response


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def require_address(address: str, field: str = "address") -> str:
    """Raise 400 INVALID_ADDRESS unless address is 0x + 40 hex digits."""
    if not is_valid_address(address):
        raise HTTPException(
            status_code=400,
            detail=error_response(
                "INVALID_ADDRESS",
                f"Invalid {field} format",
                details={field: address},
            ),
        )
    return address


class PagePagination:
    """Dependency for page/limit query params."""

    def __init__(
        self,
        page: int = Query(1, ge=1, description="1-based page number"),
        limit: int = Query(20, ge=1, le=100, description="Entries per page"),
    ) -> None:
        self.page = page
        self.limit = limit


__all__ = [
    "AppContext",
    "PagePagination",
    "get_context",
    "require_address",
]
