"""
Group API router.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from contactbook.config import Settings, get_app_settings
from contactbook.contacts.router import get_contact_service
from contactbook.contacts.schemas import ContactPage
from contactbook.contacts.service import ContactService
from contactbook.groups.repository import GroupRepository
from contactbook.groups.schemas import GroupCreate, GroupResponse
from contactbook.groups.service import GroupService
from contactbook.shared.database import get_db_session
from contactbook.shared.exceptions import raise_for_failure
from contactbook.shared.results import Failure

router = APIRouter(prefix="/api/groups", tags=["groups"])


def get_group_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> GroupService:
    """Dependency for group service."""
    return GroupService(repository=GroupRepository(session))


@router.get("", response_model=list[GroupResponse], summary="List groups")
async def list_groups(
    service: Annotated[GroupService, Depends(get_group_service)],
) -> list[GroupResponse]:
    return await service.list_groups()


@router.post(
    "",
    response_model=GroupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create group",
)
async def create_group(
    payload: GroupCreate,
    service: Annotated[GroupService, Depends(get_group_service)],
) -> GroupResponse:
    result = await service.create_group(payload)
    if isinstance(result, Failure):
        raise_for_failure(result)
    return result


@router.get("/{group_id}", response_model=GroupResponse, summary="Get group")
async def get_group(
    group_id: int,
    service: Annotated[GroupService, Depends(get_group_service)],
) -> GroupResponse:
    result = await service.get_group(group_id)
    if isinstance(result, Failure):
        raise_for_failure(result)
    return result


@router.delete(
    "/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete group",
    response_class=Response,
)
async def delete_group(
    group_id: int,
    service: Annotated[GroupService, Depends(get_group_service)],
) -> Response:
    """Delete a group. Its contacts are kept and lose their group."""
    result = await service.delete_group(group_id)
    if isinstance(result, Failure):
        raise_for_failure(result)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{group_id}/contacts",
    response_model=ContactPage,
    summary="List group contacts",
)
async def list_group_contacts(
    group_id: int,
    service: Annotated[ContactService, Depends(get_contact_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    page: Annotated[int, Query()] = 0,
    size: Annotated[int | None, Query()] = None,
) -> ContactPage:
    result = await service.list_contacts_by_group(
        group_id,
        page=page,
        size=size if size is not None else settings.default_page_size,
    )
    if isinstance(result, Failure):
        raise_for_failure(result)
    return result
