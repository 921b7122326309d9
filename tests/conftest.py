"""
Pytest fixtures for tests.

Performance optimization: uses a session-scoped schema template so the schema
is built once; each test copies the resulting database file instead of
re-initializing it.

Import the user ID constants from here instead of defining them locally.
"""

import shutil

import pytest

from infrastructure.schema_manager import SchemaManager
from repositories.consensus_repository import ConsensusRepository
from repositories.user_stats_repository import UserStatsRepository
from repositories.wager_repository import WagerRepository
from services.consensus_service import ConsensusService
from services.wager_service import WagerService
from services.wager_stats_service import WagerStatsService


# =============================================================================
# CENTRALIZED CONSTANTS
# =============================================================================

TEST_GUILD_ID = 12345
"""Standard guild ID for single-guild tests."""

TEST_GUILD_ID_SECONDARY = 67890
"""Secondary guild ID for multi-guild isolation tests."""

CREATOR_ID = 1001
ALICE_ID = 2001
BOB_ID = 3001
OUTSIDER_ID = 4001


@pytest.fixture(scope="session")
def _schema_template_path(tmp_path_factory):
    """Create a schema template database once per test session."""
    template_dir = tmp_path_factory.mktemp("schema_template")
    template_path = str(template_dir / "template.db")
    SchemaManager(template_path).initialize()
    yield template_path


@pytest.fixture
def temp_db_path(tmp_path):
    """Create a temporary database path (no schema)."""
    path = str(tmp_path / "temp.db")
    yield path


@pytest.fixture
def repo_db_path(_schema_template_path, tmp_path):
    """
    Create a temporary database with initialized schema for repository tests.

    Fast: file copy instead of schema initialization.
    """
    test_db_path = str(tmp_path / "test.db")
    shutil.copy2(_schema_template_path, test_db_path)
    yield test_db_path


@pytest.fixture
def guild_id():
    return TEST_GUILD_ID


# =============================================================================
# REPOSITORY FIXTURES
# =============================================================================


@pytest.fixture
def user_stats_repository(repo_db_path):
    return UserStatsRepository(repo_db_path)


@pytest.fixture
def wager_repository(repo_db_path):
    return WagerRepository(repo_db_path)


@pytest.fixture
def consensus_repository(repo_db_path):
    return ConsensusRepository(repo_db_path)


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def wager_service(wager_repository, user_stats_repository):
    return WagerService(wager_repo=wager_repository, user_stats_repo=user_stats_repository)


@pytest.fixture
def consensus_service(wager_service, consensus_repository):
    return ConsensusService(wager_service=wager_service, consensus_repo=consensus_repository)


@pytest.fixture
def wager_stats_service(user_stats_repository, wager_repository):
    return WagerStatsService(user_stats_repo=user_stats_repository, wager_repo=wager_repository)


# =============================================================================
# WAGER FIXTURES
# =============================================================================


@pytest.fixture
def create_wager(wager_service):
    """
    Factory creating a pending wager through the service.

    Defaults: 100 base, side A @ 2.5 (underdog), side B @ 1.5, so A stakes
    100 to win 150 and B stakes 150 to win 100.
    """

    def _create(**overrides):
        params = {
            "creator_id": CREATOR_ID,
            "category": "game",
            "description": "Sunday night game",
            "base_amount": 100,
            "side_a_description": "Away",
            "side_b_description": "Home",
            "side_a_odds": "2.5",
            "side_b_odds": "1.5",
            "guild_id": TEST_GUILD_ID,
            "creator_name": "Creator",
        }
        params.update(overrides)
        result = wager_service.create_wager(**params)
        assert result.success, result.error
        return result.value

    return _create


@pytest.fixture
def active_wager(create_wager, wager_service):
    """A wager with Alice on side A and Bob on side B."""
    wager = create_wager()
    assert wager_service.join_side(wager.wager_id, ALICE_ID, "A", display_name="Alice").success
    joined = wager_service.join_side(wager.wager_id, BOB_ID, "B", display_name="Bob")
    assert joined.success and joined.value.activated
    return joined.value.wager
