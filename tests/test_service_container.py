"""Tests for ServiceContainer."""

import pytest

from infrastructure.service_container import ServiceConfig, ServiceContainer


@pytest.fixture
def config(temp_db_path):
    """Create a test configuration."""
    return ServiceConfig(
        db_path=temp_db_path,
        max_amount=500.0,
        request_ttl_seconds=60,
        history_limit=5,
        leaderboard_size=3,
        active_list_limit=7,
    )


class TestServiceContainerInitialization:
    """Tests for ServiceContainer initialization."""

    @pytest.mark.asyncio
    async def test_initialize_creates_all_repositories(self, config):
        container = ServiceContainer(config)
        await container.initialize()

        assert container.user_stats_repo is not None
        assert container.wager_repo is not None
        assert container.consensus_repo is not None

    @pytest.mark.asyncio
    async def test_initialize_creates_all_services(self, config):
        container = ServiceContainer(config)
        await container.initialize()

        assert container.wager_service is not None
        assert container.consensus_service is not None
        assert container.wager_stats_service is not None

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, config):
        """Calling initialize multiple times is safe."""
        container = ServiceContainer(config)

        await container.initialize()
        first = container.wager_service
        await container.initialize()

        assert container.wager_service is first

    @pytest.mark.asyncio
    async def test_is_initialized_flag(self, config):
        container = ServiceContainer(config)
        assert container.is_initialized is False

        await container.initialize()

        assert container.is_initialized is True

    def test_services_absent_before_initialize(self, config):
        container = ServiceContainer(config)
        assert container.wager_service is None
        assert container.consensus_service is None


class TestServiceConfigWiring:
    """Config values reach the services they configure."""

    @pytest.mark.asyncio
    async def test_settings_are_passed_through(self, config):
        container = ServiceContainer(config)
        await container.initialize()

        assert container.wager_service.max_amount == 500.0
        assert container.consensus_service.request_ttl_seconds == 60
        assert container.wager_stats_service.history_limit == 5
        assert container.wager_stats_service.leaderboard_size == 3

    @pytest.mark.asyncio
    async def test_consensus_commits_through_wager_service(self, config):
        container = ServiceContainer(config)
        await container.initialize()

        consensus = container.consensus_service
        assert consensus.wager_service is container.wager_service
        assert consensus.consensus_repo is container.consensus_repo

    @pytest.mark.asyncio
    async def test_repositories_share_database(self, config):
        container = ServiceContainer(config)
        await container.initialize()

        assert container.wager_repo.db_path == config.db_path
        assert container.consensus_repo.db_path == config.db_path
        assert container.user_stats_repo.db_path == config.db_path


class TestServiceContainerBotExposure:
    @pytest.mark.asyncio
    async def test_expose_to_bot_sets_attributes(self, config):
        container = ServiceContainer(config)
        await container.initialize()

        class MockBot:
            pass

        bot = MockBot()
        container.expose_to_bot(bot)

        assert bot.user_stats_repo is container.user_stats_repo
        assert bot.wager_repo is container.wager_repo
        assert bot.consensus_repo is container.consensus_repo
        assert bot.wager_service is container.wager_service
        assert bot.consensus_service is container.consensus_service
        assert bot.wager_stats_service is container.wager_stats_service
        assert bot.wager_active_list_limit == 7
