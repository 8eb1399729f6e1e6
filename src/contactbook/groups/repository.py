"""
Group repository for database operations.
"""

from typing import Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from contactbook.contacts.models import Contact
from contactbook.groups.models import Group
from contactbook.shared.exceptions import RecordConflictError


class GroupRepository:
    """Repository for group database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_all(self) -> Sequence[Group]:
        """Get all groups ordered by name."""
        result = await self._session.execute(select(Group).order_by(Group.name.asc()))
        return result.scalars().all()

    async def get_by_id(self, group_id: int) -> Group | None:
        stmt = select(Group).where(Group.id == group_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> Group | None:
        stmt = select(Group).where(Group.name == name)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, group: Group) -> Group:
        """Create a group.

        Raises:
            RecordConflictError: If the name is already taken.
        """
        try:
            async with self._session.begin_nested():
                self._session.add(group)
                await self._session.flush()
        except IntegrityError as e:
            raise RecordConflictError("A group with this name already exists", constraint="name") from e

        await self._session.refresh(group)
        return group

    async def delete(self, group: Group) -> int:
        """Delete a group, detaching its member contacts first.

        Returns:
            Number of contacts detached.
        """
        result = await self._session.execute(
            update(Contact)
            .where(Contact.group_id == group.id)
            .values(group_id=None)
            .execution_options(synchronize_session="fetch")
        )
        await self._session.delete(group)
        await self._session.flush()
        return result.rowcount or 0
