"""Pagination, sorting and result metadata shared by every list operation."""
from math import ceil
from typing import Optional

from pydantic import BaseModel, Field, model_serializer

from .validator import Validator

MAX_PAGE = 10_000_000
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


def _with_descending(*columns: str) -> tuple[str, ...]:
    return columns + tuple(f"-{column}" for column in columns)


PROJECT_SORT_SAFELIST = _with_descending(
    "id", "name", "start_date", "target_end_date", "actual_end_date", "created_by"
)
ISSUE_SORT_SAFELIST = _with_descending(
    "id", "title", "reported_date", "project_id", "assigned_to", "status", "priority"
)
USER_SORT_SAFELIST = _with_descending("id", "name", "email", "role")


class Filters(BaseModel):
    """Client supplied page, page size and sort key."""

    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    sort: str = "id"
    sort_safelist: tuple[str, ...] = Field(default=("id", "-id"), exclude=True)

    def validate_into(self, v: Validator) -> None:
        """Record every violation on v instead of stopping at the first."""
        v.check(self.page > 0, "page", "must be greater than zero")
        v.check(self.page <= MAX_PAGE, "page", "must be a maximum of 10 million")
        v.check(self.page_size > 0, "page_size", "must be greater than zero")
        v.check(self.page_size <= MAX_PAGE_SIZE, "page_size", f"must be a maximum of {MAX_PAGE_SIZE}")
        v.check(self.sort in self.sort_safelist, "sort", "invalid sort value")

    @property
    def sort_column(self) -> str:
        """The safelisted column name with any '-' prefix removed."""
        if self.sort not in self.sort_safelist:
            raise ValueError(f"unsafe sort parameter: {self.sort}")
        return self.sort.lstrip("-")

    @property
    def sort_direction(self) -> str:
        return "DESC" if self.sort.startswith("-") else "ASC"

    @property
    def limit(self) -> int:
        return self.page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class Metadata(BaseModel):
    """Pagination metadata; every field is None when nothing matched."""

    current_page: Optional[int] = None
    page_size: Optional[int] = None
    first_page: Optional[int] = None
    last_page: Optional[int] = None
    total_records: Optional[int] = None

    @model_serializer(mode="wrap")
    def _omit_unset(self, handler):
        return {key: value for key, value in handler(self).items() if value is not None}

    @property
    def is_empty(self) -> bool:
        return self.total_records is None


def calculate_metadata(total_records: int, page: int, page_size: int) -> Metadata:
    """
    Build pagination metadata for a result set.

    Args:
        total_records: Number of rows matching the filters across all pages
        page: Requested page
        page_size: Requested page size

    Returns:
        Empty Metadata when total_records is 0, otherwise populated metadata
    """
    if total_records == 0:
        return Metadata()
    return Metadata(
        current_page=page,
        page_size=page_size,
        first_page=1,
        last_page=ceil(total_records / page_size),
        total_records=total_records,
    )
