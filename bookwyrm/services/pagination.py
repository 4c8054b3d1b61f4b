from sqlalchemy.orm import Query

from bookwyrm.errors import ValidationError

SORT_ORDERS = ("asc", "desc")
# Keeps the offset inside a 64-bit integer bind
MAX_PAGE = 1_000_000
MAX_LIMIT = 100


def paginate(query: Query, *, sort_columns: dict, sort: str, order: str, page: int, limit: int):
    """Order, count and slice ``query``.

    ``sort_columns`` maps the public sort key to a column; anything else is
    rejected rather than passed to ``order_by``. Returns ``(items, meta)``.
    """
    column = sort_columns.get(sort)
    if column is None:
        allowed = ", ".join(sorted(sort_columns))
        raise ValidationError(f"Cannot sort by '{sort}'. Use one of: {allowed}")
    if order not in SORT_ORDERS:
        raise ValidationError("order must be 'asc' or 'desc'")

    query = query.order_by(column.asc() if order == "asc" else column.desc())
    total = query.count()
    items = query.offset((page - 1) * limit).limit(limit).all()

    meta = {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": (total + limit - 1) // limit,
    }
    return items, meta
