"""
Group service for business logic.
"""

from contactbook.contacts.service import utcnow
from contactbook.groups.models import Group
from contactbook.groups.repository import GroupRepository
from contactbook.groups.schemas import GroupCreate, GroupResponse
from contactbook.shared.exceptions import RecordConflictError
from contactbook.shared.logging import get_logger
from contactbook.shared.results import Failure, Result

logger = get_logger(__name__)


class GroupService:
    """Service for group management operations."""

    def __init__(self, repository: GroupRepository) -> None:
        self._repo = repository

    async def list_groups(self) -> list[GroupResponse]:
        groups = await self._repo.list_all()
        return [GroupResponse.model_validate(g) for g in groups]

    async def get_group(self, group_id: int) -> Result[GroupResponse]:
        group = await self._repo.get_by_id(group_id)
        if group is None:
            return _group_not_found(group_id)
        return GroupResponse.model_validate(group)

    async def create_group(self, payload: GroupCreate) -> Result[GroupResponse]:
        """Create a group; names are unique."""
        if await self._repo.get_by_name(payload.name) is not None:
            return Failure.conflict("Group name already exists", field="name", value=payload.name)

        group = Group(name=payload.name, description=payload.description, created_at=utcnow())
        try:
            group = await self._repo.create(group)
        except RecordConflictError as e:
            return Failure.conflict(e.message, field=e.constraint)

        logger.info("Group created", extra={"group_id": group.id, "group_name": group.name})
        return GroupResponse.model_validate(group)

    async def delete_group(self, group_id: int) -> Result[None]:
        """Delete a group; its contacts stay, with no group."""
        group = await self._repo.get_by_id(group_id)
        if group is None:
            return _group_not_found(group_id)

        detached = await self._repo.delete(group)
        logger.info(
            "Group deleted",
            extra={"group_id": group_id, "detached_contacts": detached},
        )
        return None


def _group_not_found(group_id: int) -> Failure:
    return Failure.not_found(f"Group not found with id: {group_id}", group_id=group_id)
