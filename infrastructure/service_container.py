"""
Service container for dependency injection and initialization.

This module centralizes service creation and wiring so bot.py only has to
build a container and expose it.

Usage:
    container = ServiceContainer(config)
    await container.initialize()

    # Access services
    wager_service = container.wager_service
    consensus_service = container.consensus_service
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from services.consensus_service import ConsensusService
    from services.wager_service import WagerService
    from services.wager_stats_service import WagerStatsService

from infrastructure.schema_manager import SchemaManager

# Repositories
from repositories.consensus_repository import ConsensusRepository
from repositories.user_stats_repository import UserStatsRepository
from repositories.wager_repository import WagerRepository

logger = logging.getLogger("wager_bot.infrastructure.container")


@dataclass
class RepositoryContainer:
    """Container for all repositories."""

    user_stats: UserStatsRepository | None = None
    wager: WagerRepository | None = None
    consensus: ConsensusRepository | None = None


@dataclass
class ServiceConfig:
    """Configuration for service initialization."""

    # Database
    db_path: str = "wagers.db"

    # Wager settings
    max_amount: float = 1_000_000.0

    # Consensus settings
    request_ttl_seconds: int = 86400  # 24 hours

    # Listing sizes
    history_limit: int = 20
    leaderboard_size: int = 10
    active_list_limit: int = 10


class ServiceContainer:
    """
    Central container for all application services.

    Handles proper initialization order and dependency injection.

    Example:
        container = ServiceContainer(config)
        await container.initialize()

        # Services are now available
        wager_service = container.wager_service
    """

    def __init__(self, config: ServiceConfig | None = None):
        """
        Initialize the container with configuration.

        Args:
            config: Service configuration (uses defaults if None)
        """
        self.config = config or ServiceConfig()
        self._initialized = False
        self._repos = RepositoryContainer()
        self._services: dict[str, Any] = {}

    @property
    def is_initialized(self) -> bool:
        """Check if container has been initialized."""
        return self._initialized

    async def initialize(self) -> None:
        """
        Initialize all services in correct order.

        This method is idempotent - calling it multiple times has no effect.
        """
        if self._initialized:
            logger.debug("ServiceContainer already initialized, skipping")
            return

        logger.info("Initializing ServiceContainer...")

        self._init_database()
        self._init_repositories()
        self._init_services()

        self._initialized = True
        logger.info("ServiceContainer initialization complete")

    def _init_database(self) -> None:
        """Create tables and run migrations."""
        logger.debug(f"Initializing database at {self.config.db_path}")
        SchemaManager(self.config.db_path).initialize()

    def _init_repositories(self) -> None:
        logger.debug("Initializing repositories")

        db_path = self.config.db_path
        self._repos.user_stats = UserStatsRepository(db_path)
        self._repos.wager = WagerRepository(db_path)
        self._repos.consensus = ConsensusRepository(db_path)

    def _init_services(self) -> None:
        """Initialize services in dependency order."""
        logger.debug("Initializing services")

        from services.consensus_service import ConsensusService
        from services.wager_service import WagerService
        from services.wager_stats_service import WagerStatsService

        self._services["wager"] = WagerService(
            wager_repo=self._repos.wager,
            user_stats_repo=self._repos.user_stats,
            max_amount=self.config.max_amount,
        )

        # Consensus commits through the wager service
        self._services["consensus"] = ConsensusService(
            wager_service=self._services["wager"],
            consensus_repo=self._repos.consensus,
            request_ttl_seconds=self.config.request_ttl_seconds,
        )

        self._services["wager_stats"] = WagerStatsService(
            user_stats_repo=self._repos.user_stats,
            wager_repo=self._repos.wager,
            history_limit=self.config.history_limit,
            leaderboard_size=self.config.leaderboard_size,
        )

    # =========================================================================
    # Service accessors
    # =========================================================================

    @property
    def user_stats_repo(self) -> UserStatsRepository:
        return self._repos.user_stats

    @property
    def wager_repo(self) -> WagerRepository:
        return self._repos.wager

    @property
    def consensus_repo(self) -> ConsensusRepository:
        return self._repos.consensus

    @property
    def wager_service(self) -> "WagerService | None":
        return self._services.get("wager")

    @property
    def consensus_service(self) -> "ConsensusService | None":
        return self._services.get("consensus")

    @property
    def wager_stats_service(self) -> "WagerStatsService | None":
        return self._services.get("wager_stats")

    def expose_to_bot(self, bot) -> None:
        """
        Expose all services to a Discord bot object.

        Cogs pick them up from bot.<service_name> in their setup().

        Args:
            bot: The Discord bot instance
        """
        # Repositories
        bot.user_stats_repo = self.user_stats_repo
        bot.wager_repo = self.wager_repo
        bot.consensus_repo = self.consensus_repo

        # Services
        bot.wager_service = self.wager_service
        bot.consensus_service = self.consensus_service
        bot.wager_stats_service = self.wager_stats_service

        # Listing sizes used by the commands layer
        bot.wager_active_list_limit = self.config.active_list_limit

        logger.info("Services exposed to bot object")
