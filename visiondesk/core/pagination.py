"""Pagination helpers shared by list endpoints."""

import math
from typing import Any, Dict

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def normalize_page(page: int, limit: int):
    """Clamp page and limit to sane values."""
    page = max(1, int(page or 1))
    limit = min(MAX_PAGE_SIZE, max(1, int(limit or DEFAULT_PAGE_SIZE)))
    return page, limit


def get_skip_value(page: int, limit: int) -> int:
    return (page - 1) * limit


def get_pagination_data(page: int, limit: int, total: int) -> Dict[str, Any]:
    """Build the pagination block returned alongside list results."""
    total_pages = math.ceil(total / limit) if limit else 0
    has_next = page < total_pages
    has_prev = page > 1
    return {
        "currentPage": page,
        "itemsPerPage": limit,
        "totalPages": total_pages,
        "totalItems": total,
        "hasNextPage": has_next,
        "hasPrevPage": has_prev,
        "nextPage": page + 1 if has_next else None,
        "prevPage": page - 1 if has_prev else None,
    }
