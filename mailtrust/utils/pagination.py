# mailtrust/utils/pagination.py
from typing import Tuple

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def clamp_page_params(page: int | None = 1, limit: int | None = DEFAULT_LIMIT) -> Tuple[int, int]:
    """Clamp page to >= 1 and limit to [1, MAX_LIMIT]."""
    page = 1 if page is None else int(page)
    limit = DEFAULT_LIMIT if limit is None else int(limit)
    return max(1, page), max(1, min(MAX_LIMIT, limit))


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit
