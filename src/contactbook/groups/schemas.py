"""
Pydantic schemas for contact groups.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class GroupCreate(BaseModel):
    """Schema for creating a group."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=100, description="Unique group name")
    description: str | None = Field(default=None, description="Optional description")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Group name is required")
        return v


class GroupRef(BaseModel):
    """Reference to an existing group by id.

    Extra keys (name, description...) sent by clients that echo back a full
    group object are ignored.
    """

    id: int


class GroupResponse(BaseModel):
    """Schema for group response."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: int
    name: str
    description: str | None
    created_at: datetime
