from dataclasses import dataclass, field

from orderease.shared.errors import ValidationFailed

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10


@dataclass(frozen=True)
class Page:
    """One page of a tenant-scoped collection query."""

    items: list = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


def validate_paging(page, page_size) -> tuple[int, int]:
    """Return ``(limit, offset)`` for a 1-based page."""
    if page is None or page < 1:
        raise ValidationFailed("Page must be at least 1", field="page")
    if page_size is None or not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValidationFailed(f"Page size must be between 1 and {MAX_PAGE_SIZE}", field="page_size")
    return page_size, (page - 1) * page_size


def paginate(query, page, page_size) -> Page:
    """Apply limit/offset to a Protean queryset and wrap the result set."""
    limit, offset = validate_paging(page, page_size)
    result = query.limit(limit).offset(offset).all()
    return Page(items=list(result.items), total=result.total, page=page, page_size=page_size)


def fetch_all(query, batch_size: int = MAX_PAGE_SIZE) -> list:
    """Drain a queryset in batches; querysets cap unpaged reads."""
    items = []
    offset = 0
    while True:
        result = query.limit(batch_size).offset(offset).all()
        items.extend(result.items)
        offset += batch_size
        if not result.items or offset >= result.total:
            return items
