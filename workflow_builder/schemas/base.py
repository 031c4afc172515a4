"""Base Pydantic schemas with common patterns.

Two bases exist because two wire conventions exist:

- ``BaseSchema`` for the REST resources (snake_case, read from ORM objects).
- ``DocumentSchema`` for the workflow graph document, whose camelCase keys
  are a stored file format shared with the canvas front end.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Required at runtime for Pydantic
from typing import Any
from uuid import UUID  # noqa: TC003 - Required at runtime for Pydantic

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    model_serializer,
)
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """Base schema for API request/response models."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        use_enum_values=True,
    )


class BaseResponse(BaseSchema):
    """Base response schema with id and timestamps."""

    id: UUID = Field(
        ...,
        description="Unique identifier (UUID v4)",
        examples=["550e8400-e29b-41d4-a716-446655440000"],
    )
    created_at: datetime = Field(
        ...,
        description="Timestamp when the resource was created",
    )
    updated_at: datetime = Field(
        ...,
        description="Timestamp when the resource was last updated",
    )


class DocumentSchema(BaseModel):
    """Base for graph document models.

    Field names are snake_case in Python and camelCase on the wire. Enum
    members are kept as members (not raw values) so they hash consistently
    as dictionary keys. Optional fields that are unset are omitted from the
    output instead of being written as null; free-form dict values (action
    params) are left untouched.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @model_serializer(mode="wrap")
    def omit_none_fields(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        return {key: value for key, value in data.items() if value is not None}

    def to_document(self) -> dict[str, Any]:
        """JSON-compatible dict in wire format."""
        return self.model_dump(mode="json", by_alias=True)


__all__ = [
    "BaseResponse",
    "BaseSchema",
    "DocumentSchema",
]
