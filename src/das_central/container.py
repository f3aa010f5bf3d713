"""Dependency injection container for DAS Central.

Resources are created lazily on first access and cached for the lifetime of
the container. Tests build a ``Container`` directly with custom settings, or
pass an already-initialized database:

    container = Container(settings=Settings(sqlite_path=":memory:"))
    service = container.das_service
"""

from functools import cached_property, lru_cache
from typing import TYPE_CHECKING

from das_central.config import DatabaseType, Settings, get_settings
from das_central.logging_config import get_logger

if TYPE_CHECKING:
    from das_central.repositories.interfaces import (
        FundingAccountRepository,
        GuideRepository,
        TaxConfigRepository,
    )
    from das_central.repositories.postgres import PostgresDatabase
    from das_central.repositories.sqlite import SQLiteDatabase
    from das_central.services.das import DasService
    from das_central.services.interfaces import BankLedger

logger = get_logger(__name__)


class Container:
    """Lazily wires the database, repositories, ledger and DasService."""

    def __init__(
        self,
        settings: Settings | None = None,
        database: "SQLiteDatabase | PostgresDatabase | None" = None,
    ) -> None:
        self._settings = settings or get_settings()
        if database is not None:
            self.__dict__["database"] = database
        logger.debug(
            "container_created",
            database_type=self._settings.database_type.value,
            environment=self._settings.environment.value,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def is_postgres(self) -> bool:
        from das_central.repositories.sqlite import SQLiteDatabase

        return not isinstance(self.database, SQLiteDatabase)

    @cached_property
    def database(self) -> "SQLiteDatabase | PostgresDatabase":
        """The configured database, initialized on first access."""
        if self._settings.database_type == DatabaseType.POSTGRES:
            return self._create_postgres_database()
        return self._create_sqlite_database()

    def _create_sqlite_database(self) -> "SQLiteDatabase":
        from das_central.repositories.sqlite import SQLiteDatabase

        db_path = str(self._settings.sqlite_path)
        logger.info("initializing_sqlite_database", path=db_path)

        # API handlers run in a worker thread pool.
        db = SQLiteDatabase(db_path, check_same_thread=False)
        db.initialize()
        return db

    def _create_postgres_database(self) -> "PostgresDatabase":
        from das_central.repositories.postgres import PostgresDatabase

        url = self._settings.database_url
        if not url:
            raise ValueError("database_url must be set when database_type is postgres")

        logger.info(
            "initializing_postgres_database",
            host=url.split("@")[-1].split("/")[0] if "@" in url else "localhost",
        )

        db = PostgresDatabase(url)
        db.initialize()
        return db

    @cached_property
    def tax_config_repository(self) -> "TaxConfigRepository":
        if self.is_postgres:
            from das_central.repositories.postgres import PostgresTaxConfigRepository

            return PostgresTaxConfigRepository(self.database)
        from das_central.repositories.sqlite import SQLiteTaxConfigRepository

        return SQLiteTaxConfigRepository(self.database)

    @cached_property
    def guide_repository(self) -> "GuideRepository":
        if self.is_postgres:
            from das_central.repositories.postgres import PostgresGuideRepository

            return PostgresGuideRepository(self.database)
        from das_central.repositories.sqlite import SQLiteGuideRepository

        return SQLiteGuideRepository(self.database)

    @cached_property
    def funding_account_repository(self) -> "FundingAccountRepository":
        if self.is_postgres:
            from das_central.repositories.postgres import (
                PostgresFundingAccountRepository,
            )

            return PostgresFundingAccountRepository(self.database)
        from das_central.repositories.sqlite import SQLiteFundingAccountRepository

        return SQLiteFundingAccountRepository(self.database)

    @cached_property
    def bank_ledger(self) -> "BankLedger":
        from das_central.services.bank_ledger import FundingAccountLedger

        return FundingAccountLedger(self.funding_account_repository)

    @cached_property
    def das_service(self) -> "DasService":
        from das_central.services.das import DasService

        return DasService(
            self.tax_config_repository,
            self.guide_repository,
            self.funding_account_repository,
            self.bank_ledger,
            default_due_day=self._settings.default_due_day,
            alert_window_days=self._settings.alert_window_days,
            locale=self._settings.month_name_locale,
        )

    def close(self) -> None:
        """Close the database connection if one was opened."""
        database = self.__dict__.get("database")
        if database is not None:
            logger.info("closing_database_connection")
            database.close()

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


_container: Container | None = None


@lru_cache
def get_container() -> Container:
    """Global container, created on first access from default settings."""
    global _container
    if _container is None:
        _container = Container()
    return _container


def reset_container() -> None:
    """Close and drop the global container."""
    global _container
    if _container is not None:
        _container.close()
        _container = None
    get_container.cache_clear()


# FastAPI dependency functions
def get_das_service() -> "DasService":
    """FastAPI dependency for the DAS service.

    Override with ``app.dependency_overrides[get_das_service]`` in tests.
    """
    return get_container().das_service
