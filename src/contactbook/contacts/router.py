"""
Contact API router.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from contactbook.config import Settings, get_app_settings
from contactbook.contacts.csv_codec import ContactCSVCodec
from contactbook.contacts.repository import ContactRepository
from contactbook.contacts.schemas import (
    ContactPage,
    ContactPayload,
    ContactResponse,
    CSVImportResponse,
)
from contactbook.contacts.service import ContactService
from contactbook.groups.repository import GroupRepository
from contactbook.shared.database import get_db_session
from contactbook.shared.exceptions import raise_for_failure
from contactbook.shared.logging import get_logger
from contactbook.shared.results import Failure

logger = get_logger(__name__)

router = APIRouter(prefix="/api/contacts", tags=["contacts"])

EXPORT_FILENAME = "contacts.csv"


def get_contact_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ContactService:
    """Dependency for contact service."""
    return ContactService(
        repository=ContactRepository(session),
        group_repository=GroupRepository(session),
        max_page_size=settings.max_page_size,
    )


def get_csv_codec(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ContactCSVCodec:
    """Dependency for the CSV codec."""
    return ContactCSVCodec(
        repository=ContactRepository(session),
        encoding=settings.csv_encoding,
        max_bytes=settings.max_import_bytes,
    )


@router.get(
    "",
    response_model=ContactPage,
    summary="List contacts",
    description="Get a page of contacts sorted ascending by an attribute.",
)
async def list_contacts(
    service: Annotated[ContactService, Depends(get_contact_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    page: Annotated[int, Query()] = 0,
    size: Annotated[int | None, Query()] = None,
    sort_by: Annotated[str | None, Query(alias="sortBy")] = None,
) -> ContactPage:
    """List contacts.

    Args:
        service: Contact service.
        settings: Application settings.
        page: Zero-based page index.
        size: Page size (defaults to the configured page size).
        sort_by: Attribute to sort by (defaults to the configured field).

    Returns:
        Contact page.

    Raises:
        400: Invalid page, size or sort field.
    """
    result = await service.list_contacts(
        page=page,
        size=size if size is not None else settings.default_page_size,
        sort_by=sort_by or settings.default_sort_field,
    )
    if isinstance(result, Failure):
        raise_for_failure(result)
    return result


@router.get(
    "/search",
    response_model=ContactPage,
    summary="Search contacts",
    description="Case-insensitive substring search over first name, last name and email.",
)
async def search_contacts(
    service: Annotated[ContactService, Depends(get_contact_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    query: Annotated[str, Query()],
    page: Annotated[int, Query()] = 0,
    size: Annotated[int | None, Query()] = None,
) -> ContactPage:
    result = await service.search_contacts(
        query,
        page=page,
        size=size if size is not None else settings.default_page_size,
    )
    if isinstance(result, Failure):
        raise_for_failure(result)
    return result


@router.get(
    "/export",
    summary="Export contacts",
    description="Download every contact as a CSV file.",
    response_class=Response,
)
async def export_contacts(
    codec: Annotated[ContactCSVCodec, Depends(get_csv_codec)],
) -> Response:
    content = await codec.export_csv()
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.post(
    "/import",
    response_model=CSVImportResponse,
    status_code=status.HTTP_200_OK,
    summary="Import contacts CSV",
    description="Create a new contact for every valid line of an uploaded CSV file.",
)
async def import_contacts(
    file: Annotated[UploadFile, File(description="CSV file with contacts")],
    codec: Annotated[ContactCSVCodec, Depends(get_csv_codec)],
) -> CSVImportResponse:
    """Import contacts from a CSV file.

    The first line is a header and is skipped. Columns are read by
    position: ID, First Name, Last Name, Email, Phone, Address, Group; the
    ID and Group columns are ignored.

    Returns:
        Import summary with per-line errors.

    Raises:
        400: The file cannot be decoded or is empty.
    """
    logger.info(
        "CSV import started",
        extra={"filename": file.filename, "content_type": file.content_type},
    )

    failure = codec.check_size(file.size)
    if failure:
        raise_for_failure(failure)

    # Read one byte past the limit so an unsized upload is still caught by decode().
    content = await file.read(-1 if codec.max_bytes is None else codec.max_bytes + 1)
    result = await codec.import_csv(content)
    if isinstance(result, Failure):
        raise_for_failure(result)
    return result


@router.get(
    "/{contact_id}",
    response_model=ContactResponse,
    summary="Get contact",
)
async def get_contact(
    contact_id: int,
    service: Annotated[ContactService, Depends(get_contact_service)],
) -> ContactResponse:
    result = await service.get_contact(contact_id)
    if isinstance(result, Failure):
        raise_for_failure(result)
    return result


@router.post(
    "",
    response_model=ContactResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create contact",
)
async def create_contact(
    payload: ContactPayload,
    service: Annotated[ContactService, Depends(get_contact_service)],
) -> ContactResponse:
    """Create a contact.

    Raises:
        409: Email (or phone) already used by another contact.
        422: Missing or malformed fields, or unknown group.
    """
    result = await service.create_contact(payload)
    if isinstance(result, Failure):
        raise_for_failure(result)
    return result


@router.put(
    "/{contact_id}",
    response_model=ContactResponse,
    summary="Replace contact",
)
async def update_contact(
    contact_id: int,
    payload: ContactPayload,
    service: Annotated[ContactService, Depends(get_contact_service)],
) -> ContactResponse:
    """Replace every field of a contact; omitted fields are cleared.

    Raises:
        404: Contact not found.
        409: Email (or phone) already used by another contact.
    """
    result = await service.update_contact(contact_id, payload)
    if isinstance(result, Failure):
        raise_for_failure(result)
    return result


@router.delete(
    "/{contact_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete contact",
    response_class=Response,
)
async def delete_contact(
    contact_id: int,
    service: Annotated[ContactService, Depends(get_contact_service)],
) -> Response:
    result = await service.delete_contact(contact_id)
    if isinstance(result, Failure):
        raise_for_failure(result)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
