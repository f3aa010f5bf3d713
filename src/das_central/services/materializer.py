"""Guide materialization: one persisted guide per month, created exactly once."""

from datetime import date
from uuid import UUID

from das_central.domain.guides import Guide, validate_period
from das_central.exceptions import DuplicateGuideError
from das_central.logging_config import get_logger
from das_central.repositories.interfaces import GuideRepository, TaxConfigRepository

logger = get_logger(__name__)


class GuideMaterializer:
    """Creates missing guides for a year from the account's current config.

    Existing guides are never touched, so a config change only affects
    months that have not been materialized yet. Concurrent callers are
    serialized by the store's (account, year, month) uniqueness constraint;
    losing that race is treated as success.
    """

    def __init__(
        self,
        config_repo: TaxConfigRepository,
        guide_repo: GuideRepository,
    ) -> None:
        self._config_repo = config_repo
        self._guide_repo = guide_repo

    def ensure_year(self, account_id: UUID, year: int) -> list[Guide]:
        """Materialize every missing month of ``year``.

        Returns:
            The guides created by this call (empty when nothing was missing
            or the account has no configuration).
        """
        validate_period(year, 1)

        config = self._config_repo.get(account_id)
        if config is None:
            logger.info(
                "materialize_skipped_no_config",
                account_id=str(account_id),
                year=year,
            )
            return []

        created: list[Guide] = []
        for month in range(1, 13):
            if self._guide_repo.find(account_id, year, month) is not None:
                continue

            guide = Guide(
                account_id=account_id,
                year=year,
                month=month,
                base_value=config.base_value,
                due_date=config.due_date_for(year, month),
            )
            try:
                self._guide_repo.create(guide)
            except DuplicateGuideError:
                logger.debug(
                    "guide_duplicate_ignored",
                    account_id=str(account_id),
                    year=year,
                    month=month,
                )
                continue
            created.append(guide)

        if created:
            logger.info(
                "guides_materialized",
                account_id=str(account_id),
                year=year,
                created=len(created),
            )
        return created

    def ensure_current(self, account_id: UUID, today: date | None = None) -> list[Guide]:
        today = today or date.today()
        return self.ensure_year(account_id, today.year)
