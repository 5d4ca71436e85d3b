"""
Pagination helpers shared by the finance routers.
"""
from math import ceil
from typing import Optional

from printerp.core.config import settings
from printerp.schemas.common import Pagination


def clamp_page_size(page_size: Optional[int]) -> int:
    if not page_size:
        return settings.DEFAULT_PAGE_SIZE
    return min(page_size, settings.MAX_PAGE_SIZE)


def build_pagination(total: int, page: int, page_size: int) -> Pagination:
    return Pagination(
        total_count=total,
        total_pages=ceil(total / page_size) if total > 0 else 1,
        current_page=page,
        page_size=page_size,
    )
