"""Page arithmetic for :meth:`~fluentsql.query.Query.paginate`."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict

DEFAULT_PER_PAGE = 15


class Pagination(BaseModel):
    """Where a page sits within a result set.

    Attributes:
        page: Current page, 1-based.
        per_page: Rows per page.
        total: Total matching rows.
        total_pages: Number of pages needed for ``total`` rows.
        has_more: True when a later page exists.
    """

    model_config = ConfigDict(frozen=True)

    page: int
    per_page: int
    total: int
    total_pages: int
    has_more: bool

    @classmethod
    def create(cls, page: int, per_page: int, total: int) -> Pagination:
        """Build a Pagination; non-positive inputs fall back to page 1 / 15 rows."""
        if per_page <= 0:
            per_page = DEFAULT_PER_PAGE
        if page <= 0:
            page = 1
        total_pages = -(-total // per_page) if total > 0 else 0
        return cls(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=total_pages,
            has_more=page < total_pages,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.has_more
