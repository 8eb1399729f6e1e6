"""
Pytest configuration and fixtures.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from contactbook.config import Settings
from contactbook.contacts.csv_codec import ContactCSVCodec
from contactbook.contacts.repository import ContactRepository
from contactbook.contacts.schemas import ContactPayload
from contactbook.contacts.service import ContactService
from contactbook.groups.repository import GroupRepository
from contactbook.groups.schemas import GroupCreate, GroupResponse
from contactbook.groups.service import GroupService
from contactbook.main import create_app
from contactbook.shared.database import DatabaseManager


def make_payload(**overrides: Any) -> ContactPayload:
    """Build a valid contact payload; keyword overrides use attribute names."""
    data: dict[str, Any] = {
        "first_name": "Alice",
        "last_name": "Smith",
        "email": "alice@example.com",
        "phone": "+1 415 555 0100",
        "address": "1 Main St",
        "profile_pic_url": None,
        "group": None,
    }
    data.update(overrides)
    return ContactPayload(**data)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Create test settings backed by a throwaway SQLite file."""
    return Settings(
        app_env="dev",
        debug=False,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'contacts.db'}",
        create_schema_on_startup=False,
        cors_origins="http://localhost:5173",
        default_page_size=10,
        max_page_size=50,
    )


@pytest_asyncio.fixture
async def db_manager(test_settings: Settings) -> AsyncGenerator[DatabaseManager, None]:
    """Create a database manager with the schema in place."""
    manager = DatabaseManager(test_settings.database_url, echo=False)
    await manager.create_schema()
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def db_session(db_manager: DatabaseManager) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with db_manager.session_factory() as session:
        yield session


@pytest.fixture
def contact_repository(db_session: AsyncSession) -> ContactRepository:
    return ContactRepository(db_session)


@pytest.fixture
def group_repository(db_session: AsyncSession) -> GroupRepository:
    return GroupRepository(db_session)


@pytest.fixture
def contact_service(
    contact_repository: ContactRepository,
    group_repository: GroupRepository,
) -> ContactService:
    return ContactService(
        repository=contact_repository,
        group_repository=group_repository,
        max_page_size=50,
    )


@pytest.fixture
def group_service(group_repository: GroupRepository) -> GroupService:
    return GroupService(repository=group_repository)


@pytest.fixture
def csv_codec(contact_repository: ContactRepository) -> ContactCSVCodec:
    return ContactCSVCodec(repository=contact_repository)


@pytest_asyncio.fixture
async def friends_group(group_service: GroupService) -> GroupResponse:
    group = await group_service.create_group(GroupCreate(name="Friends", description="Close friends"))
    assert isinstance(group, GroupResponse)
    return group


@pytest_asyncio.fixture
async def async_client(
    test_settings: Settings,
    db_manager: DatabaseManager,
) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API tests."""
    app = create_app(settings=test_settings, db=db_manager)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
