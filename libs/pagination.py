"""
Page-number pagination over querysets and lists.

Returns plain pagination metadata rather than links so the result can be
embedded in any response shape.
"""

from typing import Optional

from django.core.paginator import EmptyPage, Paginator


def page_metadata(total: int, page: int, limit: Optional[int], total_pages: int) -> dict:
    """Build pagination metadata.

    Example:
        >>> page_metadata(3, 1, 2, 2)
        {"total": 3, "page": 1, "limit": 2, "total_pages": 2, "has_next_page": True, "has_previous_page": False}
    """
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages,
        "has_next_page": page < total_pages,
        "has_previous_page": page > 1,
    }


def paginate(items, page: int = 1, limit: Optional[int] = None):
    """Slice ``items`` (a queryset or a list) to the requested page.

    Args:
        items: Sliceable collection, already ordered
        page: 1-based page number
        limit: Page size, None for a single page holding every item

    Returns:
        Tuple of (page items as a list, pagination metadata)
    """
    if not limit:
        items = list(items)
        total = len(items)
        return (items if page == 1 else []), page_metadata(total, page, None, 1 if total else 0)

    paginator = Paginator(items, limit, allow_empty_first_page=False)
    try:
        current = paginator.page(page)
    except EmptyPage:
        return [], page_metadata(paginator.count, page, limit, paginator.num_pages)

    meta = page_metadata(paginator.count, page, limit, paginator.num_pages)
    meta["has_next_page"] = current.has_next()
    meta["has_previous_page"] = current.has_previous()
    return list(current.object_list), meta
