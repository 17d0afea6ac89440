"""Shared search / sort helpers for the list endpoints."""

from sqlalchemy import or_

from crud.exceptions import BusinessRuleError

SORT_OPTIONS = ("newest", "oldest", "amount_desc", "amount_asc")


def apply_search(query, search, *columns):
    """Case-insensitive substring match over any of ``columns``."""
    if not search:
        return query
    # Wildcards typed by the user match literally
    term = search.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{term}%"
    return query.filter(or_(*[column.ilike(pattern, escape="\\") for column in columns]))


def apply_sort(query, sort, date_column, amount_column, id_column):
    """Order by document date (newest / oldest) or by amount (amount_desc / amount_asc)."""
    sort = sort or "newest"
    if sort not in SORT_OPTIONS:
        raise BusinessRuleError(f"sort must be one of {list(SORT_OPTIONS)}")
    if sort == "oldest":
        return query.order_by(date_column.asc(), id_column.asc())
    if sort == "amount_desc":
        return query.order_by(amount_column.desc(), id_column.desc())
    if sort == "amount_asc":
        return query.order_by(amount_column.asc(), id_column.asc())
    return query.order_by(date_column.desc(), id_column.desc())


def apply_date_range(query, date_column, start_date=None, end_date=None):
    if start_date:
        query = query.filter(date_column >= start_date)
    if end_date:
        query = query.filter(date_column <= end_date)
    return query
