# app/models/common.py
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel, to_snake

SORTABLE_FIELDS = {"created_at", "updated_at", "status", "title", "views_count"}


class CamelModel(BaseModel):
    """Snake_case in Python and MongoDB, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )

    def public(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class PaginationMeta(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool
    next_page: Optional[int] = None
    prev_page: Optional[int] = None


class PageParams(CamelModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    sort_by: str = "created_at"
    sort_order: str = Field("desc", pattern="^(asc|desc)$")

    @field_validator("sort_by")
    @classmethod
    def _known_sort_field(cls, v: str) -> str:
        field = to_snake(v)
        if field not in SORTABLE_FIELDS:
            raise ValueError(f"cannot sort by {v}")
        return field

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def direction(self) -> int:
        return -1 if self.sort_order == "desc" else 1
