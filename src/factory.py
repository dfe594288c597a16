"""
factory - Composition root for the food allocation service.

ALL dependency wiring happens here. No other module constructs its own
dependencies. Adapters (CLI, or any transport layer) call this factory to
get fully configured services.

Usage:
    from factory import ServiceFactory
    from infrastructure.config import Settings

    config = Settings.from_env()
    factory = ServiceFactory(config)
    await factory.initialize()  # one-time startup

    workflow = factory.create_allocation_workflow()
    summary = await workflow.accept_donation(ctx, donation_id)

Tests pass a fake gateway to replace the object-storage client.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional

from domain.ports import ReferenceDataGateway
from infrastructure.config import Settings
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.migrations import run_migrations
from infrastructure.persistence.user_repo import SQLiteUserRepository
from infrastructure.persistence.restaurant_repo import SQLiteRestaurantRepository
from infrastructure.persistence.donation_repo import SQLiteDonationRepository
from infrastructure.persistence.match_repo import SQLiteMatchRepository
from infrastructure.reference.csv_gateway import ObjectStorageCsvGateway
from application.services.donations import DonationLedger
from application.services.matches import MatchLedger
from application.services.allocation import AllocationWorkflow
from application.services.reference_data import ReferenceDataService

logger = logging.getLogger(__name__)


class ServiceFactory:
    """Composition root: wires all dependencies together.

    Call initialize() once at startup, then create services as needed.
    """

    def __init__(
        self,
        config: Settings,
        gateway: Optional[ReferenceDataGateway] = None,
        clock: Callable[[], date] = date.today,
    ):
        self._config = config
        self._connection = AsyncSQLiteConnection(config.db_path, config.db_busy_timeout)
        self._gateway = gateway or ObjectStorageCsvGateway(
            base_url=config.reference_data_base_url,
            paths=config.reference_data_paths,
            timeout=config.reference_data_timeout,
        )
        self._clock = clock
        self._initialized = False

    @property
    def connection(self) -> AsyncSQLiteConnection:
        return self._connection

    @property
    def gateway(self) -> ReferenceDataGateway:
        return self._gateway

    async def initialize(self) -> None:
        """One-time startup: run migrations.

        Must be called before creating services.
        """
        logger.info("Initializing ServiceFactory (db=%s)...", self._config.db_path)
        await run_migrations(self._connection)
        self._initialized = True
        logger.info("ServiceFactory ready")

    # ------------------------------------------------------------------
    # Service creation
    # ------------------------------------------------------------------

    def create_donation_ledger(self) -> DonationLedger:
        self._ensure_initialized()
        return DonationLedger(
            donation_repo=SQLiteDonationRepository(self._connection),
            restaurant_repo=SQLiteRestaurantRepository(self._connection),
            clock=self._clock,
            gateway=self._gateway,
        )

    def create_match_ledger(self) -> MatchLedger:
        self._ensure_initialized()
        return MatchLedger(
            match_repo=SQLiteMatchRepository(self._connection),
            donation_repo=SQLiteDonationRepository(self._connection),
            donations=self.create_donation_ledger(),
            gateway=self._gateway,
        )

    def create_allocation_workflow(self) -> AllocationWorkflow:
        """Create an AllocationWorkflow with all dependencies wired."""
        return AllocationWorkflow(
            donations=self.create_donation_ledger(),
            matches=self.create_match_ledger(),
        )

    def create_reference_data_service(self) -> ReferenceDataService:
        return ReferenceDataService(
            gateway=self._gateway,
            default_limit=self._config.nearby_default_limit,
            max_limit=self._config.nearby_max_limit,
        )

    def create_user_repository(self) -> SQLiteUserRepository:
        """Return a user repository for seeding and direct lookups."""
        return SQLiteUserRepository(self._connection)

    def create_restaurant_repository(self) -> SQLiteRestaurantRepository:
        return SQLiteRestaurantRepository(self._connection)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "ServiceFactory not initialized. Call await factory.initialize() first."
            )
