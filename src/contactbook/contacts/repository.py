"""
Contact repository for database operations.

This is the record store seen by the contact service and the CSV codec:
plain CRUD, uniqueness enforcement through table constraints, and
offset/limit pagination primitives.
"""

from typing import Any, Protocol, Sequence

from sqlalchemy import ColumnElement, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from contactbook.contacts.models import Contact
from contactbook.shared.exceptions import RecordConflictError
from contactbook.shared.logging import get_logger

logger = get_logger(__name__)

# Attribute names a listing may be sorted by.
SORTABLE_COLUMNS: dict[str, Any] = {
    "id": Contact.id,
    "first_name": Contact.first_name,
    "last_name": Contact.last_name,
    "email": Contact.email,
    "phone": Contact.phone,
    "address": Contact.address,
    "profile_pic_url": Contact.profile_pic_url,
    "group_id": Contact.group_id,
    "created_at": Contact.created_at,
    "updated_at": Contact.updated_at,
}

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ``value`` matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


class ContactStore(Protocol):
    """Protocol for contact record store operations."""

    async def count(self) -> int:
        """Count all contacts."""
        ...

    async def list_page(
        self, offset: int, limit: int, sort_field: str = "first_name"
    ) -> Sequence[Contact]:
        """Get one page of contacts sorted by an attribute."""
        ...

    async def search(
        self, query: str, offset: int, limit: int
    ) -> tuple[Sequence[Contact], int]:
        """Substring search over names and email."""
        ...

    async def list_by_group(
        self, group_id: int, offset: int, limit: int
    ) -> tuple[Sequence[Contact], int]:
        """Get one page of contacts belonging to a group."""
        ...

    async def list_all(self) -> Sequence[Contact]:
        """Get every contact in insertion order."""
        ...

    async def get_by_id(self, contact_id: int) -> Contact | None:
        """Get a contact by ID."""
        ...

    async def email_in_use(self, email: str, exclude_id: int | None = None) -> bool:
        """Check whether another contact already uses an email."""
        ...

    async def create(self, contact: Contact) -> Contact:
        """Persist a new contact."""
        ...

    async def update(self, contact: Contact, values: dict[str, Any]) -> Contact:
        """Overwrite attributes of an existing contact."""
        ...

    async def delete(self, contact: Contact) -> None:
        """Delete a contact."""
        ...


class ContactRepository:
    """Repository for contact database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async database session.
        """
        self._session = session

    async def _count(self, *conditions: ColumnElement[bool]) -> int:
        stmt = select(func.count(Contact.id)).where(*conditions)
        result = await self._session.execute(stmt)
        count = result.scalar()
        return count if count is not None else 0

    async def _page(
        self,
        *conditions: ColumnElement[bool],
        order_by: Sequence[Any],
        offset: int,
        limit: int,
    ) -> Sequence[Contact]:
        stmt = (
            select(Contact)
            .where(*conditions)
            .order_by(*order_by)
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def count(self) -> int:
        """Count all contacts."""
        return await self._count()

    async def list_page(
        self,
        offset: int,
        limit: int,
        sort_field: str = "first_name",
    ) -> Sequence[Contact]:
        """Get one page of contacts sorted ascending by an attribute.

        Args:
            offset: Number of rows to skip.
            limit: Maximum number of rows to return.
            sort_field: Key of ``SORTABLE_COLUMNS``.

        Returns:
            Contacts sorted by the field, ties broken by id.
        """
        column = SORTABLE_COLUMNS[sort_field]
        return await self._page(
            order_by=[column.asc(), Contact.id.asc()],
            offset=offset,
            limit=limit,
        )

    async def search(
        self,
        query: str,
        offset: int,
        limit: int,
    ) -> tuple[Sequence[Contact], int]:
        """Case-insensitive substring search over first name, last name and email.

        A NULL email never matches. Results keep insertion (id) order.

        Returns:
            Tuple of (contacts page, total matches).
        """
        pattern = f"%{escape_like(query)}%"
        condition = or_(
            Contact.first_name.ilike(pattern, escape=LIKE_ESCAPE),
            Contact.last_name.ilike(pattern, escape=LIKE_ESCAPE),
            Contact.email.ilike(pattern, escape=LIKE_ESCAPE),
        )
        total = await self._count(condition)
        contacts = await self._page(
            condition,
            order_by=[Contact.id.asc()],
            offset=offset,
            limit=limit,
        )
        return contacts, total

    async def list_by_group(
        self,
        group_id: int,
        offset: int,
        limit: int,
    ) -> tuple[Sequence[Contact], int]:
        """Get one page of a group's contacts in insertion order.

        Returns:
            Tuple of (contacts page, total members).
        """
        condition = Contact.group_id == group_id
        total = await self._count(condition)
        contacts = await self._page(
            condition,
            order_by=[Contact.id.asc()],
            offset=offset,
            limit=limit,
        )
        return contacts, total

    async def list_all(self) -> Sequence[Contact]:
        """Get every contact in insertion (id) order."""
        result = await self._session.execute(select(Contact).order_by(Contact.id.asc()))
        return result.scalars().all()

    async def get_by_id(self, contact_id: int) -> Contact | None:
        """Get a contact by ID.

        Args:
            contact_id: Contact ID.

        Returns:
            Contact if found, None otherwise.
        """
        stmt = select(Contact).where(Contact.id == contact_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def email_in_use(self, email: str, exclude_id: int | None = None) -> bool:
        """Check whether a contact (other than ``exclude_id``) uses an email."""
        conditions: list[ColumnElement[bool]] = [Contact.email == email]
        if exclude_id is not None:
            conditions.append(Contact.id != exclude_id)
        return await self._count(*conditions) > 0

    async def create(self, contact: Contact) -> Contact:
        """Create a single contact inside a savepoint.

        A uniqueness violation rolls back only this insert.

        Args:
            contact: Contact to create.

        Returns:
            Created contact with ID.

        Raises:
            RecordConflictError: If a unique constraint is violated.
        """
        try:
            async with self._session.begin_nested():
                self._session.add(contact)
                await self._session.flush()
        except IntegrityError as e:
            raise _conflict_from(e) from e

        await self._session.refresh(contact)
        return contact

    async def update(self, contact: Contact, values: dict[str, Any]) -> Contact:
        """Overwrite attributes of a contact inside a savepoint.

        Args:
            contact: ORM contact instance (must be attached to session).
            values: Attribute name to new value.

        Returns:
            Updated contact.

        Raises:
            RecordConflictError: If a unique constraint is violated.
        """
        try:
            async with self._session.begin_nested():
                for name, value in values.items():
                    setattr(contact, name, value)
                await self._session.flush()
        except IntegrityError as e:
            raise _conflict_from(e) from e

        await self._session.refresh(contact)
        return contact

    async def delete(self, contact: Contact) -> None:
        """Delete a contact."""
        await self._session.delete(contact)
        await self._session.flush()


def _conflict_from(error: IntegrityError) -> RecordConflictError:
    detail = str(error.orig) if error.orig is not None else str(error)
    lowered = detail.lower()
    constraint = None
    for column in ("email", "phone"):
        if column in lowered:
            constraint = column
            break
    logger.info(
        "Contact write rejected by store constraint",
        extra={"constraint": constraint},
    )
    message = (
        f"A contact with this {constraint} already exists"
        if constraint
        else "Contact violates a store constraint"
    )
    return RecordConflictError(message, constraint=constraint)
