"""Batch ingestion of provider records.

Feeds normalized provider records one at a time through the merge
engine, each in its own transaction, pausing between batches to
respect provider quotas.
"""

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.database.connection import DatabaseConnection, get_database
from src.database.repositories import ContentRepository
from src.etl.unification.errors import InvalidSourceDataError
from src.etl.unification.fact_checker import FactChecker
from src.etl.unification.merger import MergeAction, MergeEngine, MergeOutcome
from src.etl.unification.schemas import Provider, SourceContentData
from src.settings import settings
from src.settings.base import PipelineSettings
from src.settings.matching import MatchingSettings

logger = logging.getLogger(__name__)


# =============================================================================
# INGESTION RESULT
# =============================================================================


@dataclass
class IngestionResult:
    """Counters of one ingestion run.

    Attributes:
        processed: Records attempted.
        created: New catalog records.
        merged: Records merged into a title match.
        updated: Records updated through their provider id.
        skipped: Records rejected by validation.
        errors: Records that failed to persist.
    """

    processed: int = 0
    created: int = 0
    merged: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0

    def record(self, action: MergeAction) -> None:
        """Count a successful write."""
        match action:
            case MergeAction.CREATED:
                self.created += 1
            case MergeAction.MERGED:
                self.merged += 1
            case MergeAction.UPDATED:
                self.updated += 1

    def to_dict(self) -> dict[str, int]:
        """Convert counters to a dict."""
        return asdict(self)

    def log_summary(self) -> None:
        """Log ingestion statistics."""
        logger.info(
            "Ingestion: %d processed (created=%d, merged=%d, updated=%d, skipped=%d, errors=%d)",
            self.processed,
            self.created,
            self.merged,
            self.updated,
            self.skipped,
            self.errors,
        )


# =============================================================================
# CONTENT INGESTOR
# =============================================================================


class ContentIngestor:
    """Drives provider records through the merge engine.

    Holds no counters between calls; every ingest returns its own
    IngestionResult.

    Attributes:
        db: Database connection providing one session per record.
        config: Pacing and retry configuration.
    """

    def __init__(
        self,
        db: DatabaseConnection | None = None,
        config: PipelineSettings | None = None,
        matching: MatchingSettings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize ingestor.

        Args:
            db: Database connection, defaults to the shared one.
            config: Pipeline settings, defaults to global settings.
            matching: Matching settings, defaults to global settings.
            sleep: Pause function used between batches and retries.
        """
        self.db = db or get_database()
        self.config = config or settings.pipeline
        self._matching = matching or settings.matching
        self._fact_checker = FactChecker(self._matching)
        self._sleep = sleep

    # =========================================================================
    # Public API
    # =========================================================================

    def ingest(
        self,
        records: Iterable[dict[str, Any] | SourceContentData],
        provider: Provider | str,
        batch_size: int | None = None,
        delay: float | None = None,
    ) -> IngestionResult:
        """Ingest provider records.

        Failures are counted per record and never stop the run.

        Args:
            records: Normalized provider records.
            provider: Provider the records come from.
            batch_size: Records between two pauses.
            delay: Pause between batches (seconds).

        Returns:
            Counters for this run.
        """
        provider = Provider(provider)
        batch_size = batch_size or self.config.batch_size
        delay = self.config.batch_delay if delay is None else delay
        result = IngestionResult()

        for index, raw in enumerate(records):
            if index and index % batch_size == 0 and delay > 0:
                logger.debug("Batch of %d done, pausing %.1fs", batch_size, delay)
                self._sleep(delay)

            result.processed += 1
            try:
                outcome = self._retrying()(self.ingest_one, raw, provider)
            except InvalidSourceDataError as e:
                result.skipped += 1
                logger.warning("Skipped record #%d: %s", index, e)
                continue
            except SQLAlchemyError as e:
                result.errors += 1
                logger.error("Failed to store record #%d from %s: %s", index, provider, e)
                continue

            result.record(outcome.action)

        result.log_summary()
        return result

    def ingest_one(
        self,
        raw: dict[str, Any] | SourceContentData,
        provider: Provider,
    ) -> MergeOutcome:
        """Store one record in its own transaction.

        Args:
            raw: Normalized provider record.
            provider: Provider the record comes from.

        Returns:
            MergeOutcome of the write.
        """
        with self.db.session() as session:
            engine = MergeEngine(
                ContentRepository(session),
                config=self._matching,
                fact_checker=self._fact_checker,
            )
            return engine.create_or_merge(raw, provider)

    # =========================================================================
    # Internal Methods
    # =========================================================================

    def _retrying(self) -> Retrying:
        """Retry policy for records losing a concurrent write."""
        return Retrying(
            retry=retry_if_exception_type(StaleDataError),
            stop=stop_after_attempt(self.config.max_retries),
            wait=wait_exponential(
                multiplier=self.config.retry_wait_min or 1,
                min=self.config.retry_wait_min,
                max=self.config.retry_wait_max,
            ),
            sleep=self._sleep,
            before_sleep=lambda state: logger.warning(
                "Concurrent update, retrying record (attempt %d)",
                state.attempt_number,
            ),
            reraise=True,
        )
