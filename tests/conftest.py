# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests (services over a mocked session and in-memory collaborators)
- Integration tests (routers served by a TestClient with overridden
  dependencies)
"""

from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from academic_service.core.config import InvitationSettings, clear_settings_cache
from academic_service.core.constants import UserRole
from academic_service.domains.access_control import CurrentUser

from fakes import FakeResult, InMemoryCache, InMemoryRelationshipGraph


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (HTTP layer, stubbed services)"
    )


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def fresh_settings() -> Generator[None, None, None]:
    """Reload settings from the environment for every test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def invitation_settings() -> InvitationSettings:
    return InvitationSettings(client_url="https://academic.example.org")


# =============================================================================
# Collaborator Fixtures
# =============================================================================


@pytest.fixture
def mock_db() -> Any:
    """Create mock database session.

    ``db.get`` serves entities registered with ``fakes.stored``;
    ``db.execute`` returns an empty result unless configured.
    """
    db = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    db.expunge = MagicMock()
    db.store = {}

    async def get(model: Any, entity_id: str) -> Any:
        return db.store.get((model, entity_id))

    db.get = AsyncMock(side_effect=get)
    db.execute = AsyncMock(return_value=FakeResult())
    return db


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def graph() -> InMemoryRelationshipGraph:
    return InMemoryRelationshipGraph()


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def user() -> CurrentUser:
    """Provide an authenticated platform user."""
    return CurrentUser(id=str(uuid4()), role=UserRole.USER, name="Ada Lovelace")


@pytest.fixture
def other_user() -> CurrentUser:
    return CurrentUser(id=str(uuid4()), role=UserRole.USER)
