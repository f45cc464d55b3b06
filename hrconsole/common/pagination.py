"""Pagination utilities — canonical page model and list-response normalizer.

The HR backend is inconsistent about list responses: some endpoints return a
bare JSON array, others an envelope carrying any subset of ``items``/``data``,
``total``, ``page``, ``limit`` and ``totalPages``. ``normalize_page`` turns
every shape into one ``Page``.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any, Callable, Generic, Optional, TypeVar

from fastapi import Query
from pydantic import BaseModel, computed_field

from hrconsole.common.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

T = TypeVar("T")


# ── FastAPI dependency ──────────────────────────────────────────────

class PaginationParams:
    """Inject via ``Depends(PaginationParams)`` on any list endpoint."""

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="Page number (1-indexed)"),
        limit: int = Query(
            default=DEFAULT_PAGE_SIZE,
            ge=1,
            le=MAX_PAGE_SIZE,
            description=f"Items per page (max {MAX_PAGE_SIZE})",
        ),
    ) -> None:
        self.page = page
        self.limit = limit

# ── Pydantic response model ────────────────────────────────────────

class Page(BaseModel, Generic[T]):
    """Canonical page: ``{"items": [...], "total", "page", "limit", "total_pages"}``."""

    items: list[T]
    total: int
    page: int
    limit: int
    total_pages: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_prev(self) -> bool:
        return self.page > 1


# ── Normalizer ──────────────────────────────────────────────────────

def _first_present(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_page(
    raw: Any,
    requested_page: int = 1,
    requested_limit: int = DEFAULT_PAGE_SIZE,
    *,
    parse: Optional[Callable[[Any], T]] = None,
) -> Page[T]:
    """
    Build a ``Page`` from whatever list shape the backend returned.

    - A bare sequence is the complete, unpaginated result.
    - Envelope metadata (``total`` / ``totalPages``) is trusted verbatim.
    - Without metadata the page count is estimated: a full page means at
      least one more page exists, a short (or empty) page is the last one.

    *parse*, when given, converts each raw item into the canonical type.
    """
    convert: Callable[[Any], Any] = parse or (lambda item: item)

    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        items = [convert(item) for item in raw]
        return Page(
            items=items,
            total=len(items),
            page=1,
            limit=len(items),
            total_pages=1,
        )

    envelope: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    raw_items = _first_present(envelope, "items", "data")
    if not isinstance(raw_items, Sequence) or isinstance(raw_items, (str, bytes)):
        raw_items = []
    items = [convert(item) for item in raw_items]

    total = _as_int(envelope.get("total"))
    total_pages = _as_int(_first_present(envelope, "totalPages", "total_pages"))

    # ── metadata present: trust it ──────────────────────────────────
    if total is not None or total_pages is not None:
        page = _as_int(envelope.get("page")) or requested_page
        limit = _as_int(envelope.get("limit")) or requested_limit
        if total is None:
            total = (page - 1) * limit + len(items)
        if total_pages is None:
            total_pages = math.ceil(total / limit) if limit else 1
        return Page(
            items=items,
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages,
        )

    # ── no metadata: estimate ───────────────────────────────────────
    if items and len(items) == requested_limit:
        total_pages = requested_page + 1
        total = requested_page * requested_limit
    else:
        total_pages = requested_page
        total = (requested_page - 1) * requested_limit + len(items)

    return Page(
        items=items,
        total=total,
        page=requested_page,
        limit=requested_limit,
        total_pages=total_pages,
    )
