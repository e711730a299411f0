from typing import Optional, Tuple

def page_bounds(pagination: Optional[int], limit: int) -> Tuple[int, Optional[int]]:
    """
    Translate a 1-based page number into (skip, limit).

    No page means the whole result set.
    """
    if pagination is None:
        return 0, None
    page = max(pagination, 1)
    return (page - 1) * limit, limit

def paginate(stmt, skip: int = 0, limit: Optional[int] = None):
    if skip:
        stmt = stmt.offset(skip)
    if limit is not None:
        stmt = stmt.limit(limit)
    return stmt
