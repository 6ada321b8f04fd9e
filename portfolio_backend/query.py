"""
Filtering and pagination for the public image listing.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from portfolio_backend.db import CategoryRecord, ImageRecord
from portfolio_backend.localization import pick_lang

FALLBACK_PAGE_SIZE = 25

_TRUE_TOKENS = {"true", "on", "1", "yes"}


def parse_bool(value: Any) -> bool:
    """Normalize booleans, ``1``/``0`` and form-style strings to ``bool``."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_TOKENS
    return False


def parse_number(value: Any, fallback: float) -> float:
    """Coerce ``value`` to a finite number, or return ``fallback``."""
    if isinstance(value, bool):
        return int(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number):
        return fallback
    return int(number) if number.is_integer() else number


@dataclass
class ImageFilters:
    home: Optional[bool] = None
    category_title: Optional[str] = None


@dataclass
class PageRequest:
    """Raw pagination input; ``None`` means the parameter was not sent."""

    page: Any = None
    page_size: Any = None


@dataclass
class QueryResult:
    items: list[ImageRecord]
    meta: dict = field(default_factory=dict)


def matching_category_ids(
    categories: Sequence[CategoryRecord], title: str
) -> set[str]:
    """Ids of categories whose English or Turkish title equals ``title``."""
    wanted = title.lower()
    matches = set()
    for cat in categories:
        candidates = (pick_lang(cat.title, "en"), pick_lang(cat.title, "tr"))
        if any(value and value.lower() == wanted for value in candidates):
            matches.add(cat.id)
    return matches


def filter_images(
    images: Sequence[ImageRecord],
    categories: Sequence[CategoryRecord],
    filters: ImageFilters,
) -> list[ImageRecord]:
    results = list(images)
    if filters.home is not None:
        results = [img for img in results if bool(img.home) == filters.home]
    if filters.category_title:
        category_ids = matching_category_ids(categories, filters.category_title)
        results = [
            img for img in results if category_ids.intersection(img.category_ids)
        ]
    return results


def _page_number(value: Any) -> int:
    page = parse_number(1 if value is None else value, 1)
    return int(page) if page >= 1 else 1


def _page_size(value: Any, total: int) -> int:
    if value is None:
        return total or 1
    size = parse_number(value, FALLBACK_PAGE_SIZE)
    return int(size) if size >= 1 else FALLBACK_PAGE_SIZE


def paginate(items: Sequence, page_request: PageRequest) -> tuple[list, dict]:
    """Slice ``items`` and return it with ``pagination`` metadata."""
    total = len(items)
    page = _page_number(page_request.page)
    page_size = _page_size(page_request.page_size, total)
    start = (page - 1) * page_size
    meta = {
        "page": page,
        "pageSize": page_size,
        "pageCount": max(1, math.ceil(total / page_size)),
        "total": total,
    }
    return list(items[start : start + page_size]), meta


def query_images(
    images: Sequence[ImageRecord],
    categories: Sequence[CategoryRecord],
    filters: Optional[ImageFilters] = None,
    page_request: Optional[PageRequest] = None,
) -> QueryResult:
    """
    Filter and paginate ``images``, keeping their incoming order (newest
    first when fed from the store).
    """
    filtered = filter_images(images, categories, filters or ImageFilters())
    items, pagination = paginate(filtered, page_request or PageRequest())
    return QueryResult(items=items, meta={"pagination": pagination})


def sort_categories(categories: Sequence[CategoryRecord]) -> list[CategoryRecord]:
    return sorted(categories, key=lambda cat: cat.position or 0)
