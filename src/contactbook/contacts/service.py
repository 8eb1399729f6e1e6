"""
Contact service: paginated listing, search and CRUD.

Every operation returns either its value or a ``Failure``; nothing in this
module raises for not-found, conflict or bad paging arguments.
"""

import math
from datetime import datetime, timezone
from typing import Any, Sequence

from pydantic.alias_generators import to_snake

from contactbook.contacts.models import Contact
from contactbook.contacts.repository import SORTABLE_COLUMNS, ContactStore
from contactbook.contacts.schemas import ContactPage, ContactPayload, ContactResponse
from contactbook.groups.repository import GroupRepository
from contactbook.shared.exceptions import RecordConflictError
from contactbook.shared.logging import get_logger
from contactbook.shared.results import Failure, Result

logger = get_logger(__name__)

DEFAULT_MAX_PAGE_SIZE = 100


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def resolve_sort_field(name: str) -> str | None:
    """Map a JSON (``firstName``) or Python (``first_name``) attribute name to a sortable column key."""
    candidate = name.strip()
    if candidate in SORTABLE_COLUMNS:
        return candidate
    snake = to_snake(candidate)
    if snake in SORTABLE_COLUMNS:
        return snake
    return None


def total_pages(total: int, size: int) -> int:
    return math.ceil(total / size)


class ContactService:
    """Service for contact management operations."""

    def __init__(
        self,
        repository: ContactStore,
        group_repository: GroupRepository | None = None,
        *,
        max_page_size: int = DEFAULT_MAX_PAGE_SIZE,
    ) -> None:
        """Initialize contact service.

        Args:
            repository: Contact record store.
            group_repository: Group store used to check group references;
                when omitted, references are left to the store's foreign key.
            max_page_size: Largest page size accepted by listing operations.
        """
        self._repo = repository
        self._groups = group_repository
        self._max_page_size = max_page_size

    def _check_paging(self, page: int, size: int) -> Failure | None:
        if page < 0:
            return Failure.invalid_argument("Page index must not be negative", page=page)
        if size < 1:
            return Failure.invalid_argument("Page size must be at least 1", size=size)
        if size > self._max_page_size:
            return Failure.invalid_argument(
                f"Page size must not exceed {self._max_page_size}",
                size=size,
            )
        return None

    @staticmethod
    def _to_page(contacts: Sequence[Contact], page: int, size: int, total: int) -> ContactPage:
        return ContactPage(
            content=[ContactResponse.model_validate(c) for c in contacts],
            page=page,
            size=size,
            total_elements=total,
            total_pages=total_pages(total, size),
        )

    async def list_contacts(
        self,
        page: int = 0,
        size: int = 10,
        sort_by: str = "firstName",
    ) -> Result[ContactPage]:
        """Get one page of contacts sorted ascending by an attribute.

        Args:
            page: Zero-based page index.
            size: Page size.
            sort_by: Contact attribute name, camelCase or snake_case.

        Returns:
            Contact page, or an INVALID_ARGUMENT failure for bad paging
            arguments or an unknown sort field.
        """
        failure = self._check_paging(page, size)
        if failure:
            return failure

        sort_field = resolve_sort_field(sort_by)
        if sort_field is None:
            return Failure.invalid_argument(f"Cannot sort by unknown field '{sort_by}'", sort_by=sort_by)

        total = await self._repo.count()
        contacts = await self._repo.list_page(page * size, size, sort_field)
        return self._to_page(contacts, page, size, total)

    async def search_contacts(
        self,
        query: str,
        page: int = 0,
        size: int = 10,
    ) -> Result[ContactPage]:
        """Search contacts by case-insensitive substring of name or email.

        The empty query matches every contact.
        """
        failure = self._check_paging(page, size)
        if failure:
            return failure

        contacts, total = await self._repo.search(query, page * size, size)
        return self._to_page(contacts, page, size, total)

    async def list_contacts_by_group(
        self,
        group_id: int,
        page: int = 0,
        size: int = 10,
    ) -> Result[ContactPage]:
        """Get one page of the contacts belonging to a group."""
        failure = self._check_paging(page, size)
        if failure:
            return failure

        if self._groups is not None and await self._groups.get_by_id(group_id) is None:
            return Failure.not_found(f"Group not found with id: {group_id}", group_id=group_id)

        contacts, total = await self._repo.list_by_group(group_id, page * size, size)
        return self._to_page(contacts, page, size, total)

    async def get_contact(self, contact_id: int) -> Result[ContactResponse]:
        contact = await self._repo.get_by_id(contact_id)
        if contact is None:
            return _contact_not_found(contact_id)
        return ContactResponse.model_validate(contact)

    async def _check_group(self, payload: ContactPayload) -> Failure | None:
        group_id = payload.group_id
        if group_id is None or self._groups is None:
            return None
        if await self._groups.get_by_id(group_id) is None:
            return Failure.validation_failed(
                f"Group {group_id} does not exist",
                field="group",
                value=group_id,
            )
        return None

    async def create_contact(self, payload: ContactPayload) -> Result[ContactResponse]:
        """Create a contact.

        Returns:
            The created contact, a CONFLICT failure when the email (or a
            store-unique value) is taken, or VALIDATION_FAILED for an
            unknown group.
        """
        if payload.email is not None and await self._repo.email_in_use(payload.email):
            logger.info("Contact create rejected: email exists", extra={"email": payload.email})
            return Failure.conflict("Email already exists", field="email", value=payload.email)

        failure = await self._check_group(payload)
        if failure:
            return failure

        now = utcnow()
        contact = Contact(**_contact_values(payload), created_at=now, updated_at=now)
        try:
            contact = await self._repo.create(contact)
        except RecordConflictError as e:
            return Failure.conflict(e.message, field=e.constraint)

        logger.info("Contact created", extra={"contact_id": contact.id})
        return ContactResponse.model_validate(contact)

    async def update_contact(
        self,
        contact_id: int,
        payload: ContactPayload,
    ) -> Result[ContactResponse]:
        """Replace every mutable field of a contact.

        Fields omitted from the payload become null. The new email must not
        belong to another contact.
        """
        contact = await self._repo.get_by_id(contact_id)
        if contact is None:
            return _contact_not_found(contact_id)

        if payload.email is not None and await self._repo.email_in_use(
            payload.email, exclude_id=contact_id
        ):
            logger.info(
                "Contact update rejected: email exists",
                extra={"contact_id": contact_id, "email": payload.email},
            )
            return Failure.conflict("Email already exists", field="email", value=payload.email)

        failure = await self._check_group(payload)
        if failure:
            return failure

        values = _contact_values(payload)
        values["updated_at"] = max(utcnow(), _aware(contact.created_at))
        try:
            contact = await self._repo.update(contact, values)
        except RecordConflictError as e:
            return Failure.conflict(e.message, field=e.constraint)

        logger.info("Contact updated", extra={"contact_id": contact_id})
        return ContactResponse.model_validate(contact)

    async def delete_contact(self, contact_id: int) -> Result[None]:
        contact = await self._repo.get_by_id(contact_id)
        if contact is None:
            return _contact_not_found(contact_id)

        await self._repo.delete(contact)
        logger.info("Contact deleted", extra={"contact_id": contact_id})
        return None


def _contact_values(payload: ContactPayload) -> dict[str, Any]:
    return {
        "first_name": payload.first_name,
        "last_name": payload.last_name,
        "email": payload.email,
        "phone": payload.phone,
        "address": payload.address,
        "profile_pic_url": payload.profile_pic_url,
        "group_id": payload.group_id,
    }


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns.
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _contact_not_found(contact_id: int) -> Failure:
    return Failure.not_found(f"Contact not found with id: {contact_id}", contact_id=contact_id)
