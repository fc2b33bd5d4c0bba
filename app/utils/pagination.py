# app/utils/pagination.py
import math

from app.models.common import PaginationMeta


def pagination_meta(page: int, limit: int, total: int) -> PaginationMeta:
    total_pages = math.ceil(total / limit) if limit else 0
    has_next = page < total_pages
    has_prev = page > 1
    return PaginationMeta(
        current_page=page,
        total_pages=total_pages,
        total_items=total,
        items_per_page=limit,
        has_next_page=has_next,
        has_prev_page=has_prev,
        next_page=page + 1 if has_next else None,
        prev_page=page - 1 if has_prev else None,
    )
