# -*- coding: utf-8 -*-
"""
Offset pagination with an optional case-insensitive search, shared by the
admin list views.

The row query and the count query are both derived from one filtered query,
so ``total_pages`` always agrees with the pages that actually hold rows.
"""
import math
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from sqlalchemy import or_

from nonprofit_portal.config import config


@dataclass
class Page:
    items: List[Any] = field(default_factory=list)
    total_count: int = 0
    total_pages: int = 0
    current_page: int = 1
    per_page: int = config.PER_PAGE
    search: str = ""


def parse_page(raw) -> int:
    """Query-string page number; anything unusable means page 1."""
    try:
        page = int(raw)
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


def normalize_search(search: Optional[str]) -> str:
    return (search or "").strip()


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_predicate(search: Optional[str], columns: Sequence):
    """OR of ``column ILIKE %search%`` over ``columns``; None when there is nothing to filter."""
    term = normalize_search(search)
    if not term or not columns:
        return None
    pattern = f"%{_escape_like(term)}%"
    return or_(*[column.ilike(pattern, escape="\\") for column in columns])


def total_pages_for(total_count: int, per_page: int) -> int:
    return math.ceil(total_count / per_page) if per_page > 0 else 0


def paginate(query, page=1, per_page=None, search=None, columns=()) -> Page:
    """
    Applies the search predicate to ``query`` once and derives both the page
    of rows and the total count from that single filtered query.

    ``query`` must already carry its ordering; pages past the end come back
    empty rather than being clamped.
    """
    per_page = per_page or config.PER_PAGE
    page = parse_page(page)
    term = normalize_search(search)

    predicate = search_predicate(term, columns)
    filtered = query.filter(predicate) if predicate is not None else query

    total_count = filtered.order_by(None).count()
    items = filtered.offset((page - 1) * per_page).limit(per_page).all()

    return Page(
        items=items,
        total_count=total_count,
        total_pages=total_pages_for(total_count, per_page),
        current_page=page,
        per_page=per_page,
        search=term,
    )
