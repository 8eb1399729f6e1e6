"""
Pydantic schemas for contact management.

JSON payloads use camelCase keys (``firstName``, ``profilePicUrl``...);
snake_case names are accepted on input as well.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from contactbook.groups.schemas import GroupRef, GroupResponse

# Digits, spaces, "+", ".", parentheses and "-"; 7 to 25 characters in total.
PHONE_PATTERN = r"^\+?[0-9. ()-]{7,25}$"

_CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContactPayload(BaseModel):
    """Full contact payload used for both create and full-replace update.

    Omitted optional fields are ``None``: an update with a missing field
    clears that field on the stored contact.
    """

    model_config = _CAMEL_CONFIG

    first_name: str = Field(..., max_length=100, description="Given name")
    last_name: str = Field(..., max_length=100, description="Family name")
    email: EmailStr | None = Field(default=None, description="Unique e-mail address")
    phone: str | None = Field(
        default=None,
        max_length=25,
        pattern=PHONE_PATTERN,
        description="Unique phone number",
    )
    address: str | None = Field(default=None, description="Postal address")
    profile_pic_url: str | None = Field(default=None, description="Profile picture URL")
    group: GroupRef | None = Field(default=None, description="Group reference by id")

    @field_validator("first_name", "last_name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("email", "phone", "address", "profile_pic_url", mode="before")
    @classmethod
    def strip_optional(cls, v: Any) -> Any:
        # Surrounding whitespace is never stored; blank means absent.
        if isinstance(v, str):
            return v.strip() or None
        return v

    @property
    def group_id(self) -> int | None:
        return self.group.id if self.group is not None else None


class ContactResponse(BaseModel):
    """Schema for contact response."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: int
    first_name: str
    last_name: str
    email: str | None
    phone: str | None
    address: str | None
    profile_pic_url: str | None
    group: GroupResponse | None
    created_at: datetime
    updated_at: datetime


class ContactPage(BaseModel):
    """One page of contacts.

    ``total_pages`` is ``ceil(total_elements / size)``.
    """

    model_config = _CAMEL_CONFIG

    content: list[ContactResponse]
    page: int = Field(..., ge=0, description="Zero-based page index")
    size: int = Field(..., ge=1, description="Requested page size")
    total_elements: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)


class CSVRowError(BaseModel):
    """Schema for CSV row error."""

    model_config = _CAMEL_CONFIG

    line_number: int = Field(..., description="Line number in the CSV file (1-indexed)")
    field: str | None = Field(default=None, description="Field that caused the error")
    error: str = Field(..., description="Error description")
    value: str | None = Field(default=None, description="Offending value")


class CSVImportResponse(BaseModel):
    """Schema for CSV import response."""

    model_config = _CAMEL_CONFIG

    message: str = Field(..., description="Human readable summary")
    imported_count: int = Field(..., ge=0, description="Rows persisted as new contacts")
    failed_count: int = Field(..., ge=0, description="Rows rejected")
    total_rows: int = Field(..., ge=0, description="Data rows processed (header and blank lines excluded)")
    errors: list[CSVRowError] = Field(
        default_factory=list,
        description="Rejected rows with the reason",
    )
