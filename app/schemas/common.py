"""Schemas shared across resources: pagination envelope and UTC datetimes."""

from datetime import datetime
from typing import Annotated, ClassVar, Generic, TypeVar

from pydantic import AfterValidator, BaseModel, Field, model_validator

from app.core.timeutils import ensure_utc

T = TypeVar("T")

# Datetime read back from the database; naive values are taken as UTC.
UtcDateTime = Annotated[datetime, AfterValidator(ensure_utc)]

DEFAULT_PAGE_LIMIT = 50
MAX_PAGE_LIMIT = 200


class Pagination(BaseModel):
    """Position of a page inside the full result set."""

    page: int
    limit: int
    total: int
    pages: int


class Page(BaseModel, Generic[T]):
    """Paginated list response: {data, pagination}."""

    data: list[T]
    pagination: Pagination


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    success: bool = True
    message: str


class PageParams(BaseModel):
    """Validated page/limit query parameters."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PartialUpdate(BaseModel):
    """
    Base for PUT bodies: omitted fields keep their stored value.

    Only the fields named in nullable_fields may be sent as null to clear
    them; an explicit null anywhere else is a validation error.
    """

    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_nulls(self) -> "PartialUpdate":
        nulls = sorted(
            name
            for name in self.model_fields_set
            if getattr(self, name) is None and name not in self.nullable_fields
        )
        if nulls:
            raise ValueError(f"cannot be null: {', '.join(nulls)}")
        return self
