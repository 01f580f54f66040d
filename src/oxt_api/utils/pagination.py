"""Page-number pagination helpers."""

from __future__ import annotations

import math

from oxt_shared.models import Pagination


def paginate(total_items: int, page: int, limit: int) -> Pagination:
    total_pages = math.ceil(total_items / limit) if limit else 0
    return Pagination(
        current_page=page,
        total_pages=total_pages,
        total_items=total_items,
        items_per_page=limit,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


def build_links(path: str, pagination: Pagination) -> dict[str, str]:
    """Build self/next/prev links for a page-numbered response."""
    page, limit = pagination.current_page, pagination.items_per_page
    links = {"self": f"{path}?page={page}&limit={limit}"}
    if pagination.has_next:
        links["next"] = f"{path}?page={page + 1}&limit={limit}"
    if pagination.has_prev:
        links["prev"] = f"{path}?page={page - 1}&limit={limit}"
    return links
