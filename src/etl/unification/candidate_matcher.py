"""Candidate lookup for incoming provider records.

Searches stored records sharing a title variation with the incoming
record, within the same content type, and keeps the ones the fact
checker accepts.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import DataError

from src.database.models import ContentRecord
from src.database.repositories import ContentRepository
from src.etl.unification.fact_checker import ContentFacts, FactChecker
from src.etl.unification.schemas import SourceContentData
from src.etl.unification.title_normalizer import normalize_title
from src.settings import settings
from src.settings.matching import MatchingSettings

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

REASON_TITLE = "title_match"
"""Candidate found through its display title."""

REASON_ALTERNATIVE_TITLE = "alternative_title_match"
"""Candidate found only through one of its alternative titles."""


@dataclass(frozen=True)
class Candidate:
    """Stored record accepted as the same work.

    Attributes:
        record: Existing catalog record.
        reason: How the record was found.
    """

    record: ContentRecord
    reason: str


# =============================================================================
# CANDIDATE MATCHER
# =============================================================================


class CandidateMatcher:
    """Finds stored records matching an incoming record by title family.

    Attributes:
        repository: Content repository bound to the current session.
        fact_checker: Same-content heuristics.
        config: Lookup limits.
    """

    def __init__(
        self,
        repository: ContentRepository,
        fact_checker: FactChecker | None = None,
        config: MatchingSettings | None = None,
    ) -> None:
        """Initialize matcher.

        Args:
            repository: Content repository bound to the current session.
            fact_checker: Fact checker, built from config when omitted.
            config: Matching settings, defaults to global settings.
        """
        self.config = config or settings.matching
        self.repository = repository
        self.fact_checker = fact_checker or FactChecker(self.config)

    def find_candidates(self, source: SourceContentData) -> list[Candidate]:
        """Find accepted candidates for an incoming record.

        Variations are tried in order; the first variation to reach a
        record decides its reason, later hits on it are ignored.

        Args:
            source: Validated incoming record.

        Returns:
            Accepted candidates in discovery order, possibly empty.
        """
        facts = ContentFacts.from_source(source)
        seen: set[int] = set()
        candidates: list[Candidate] = []

        for variation in self.title_family(source):
            for record in self._search(variation, str(source.content_type)):
                if record.id in seen:
                    continue
                seen.add(record.id)
                if not self.fact_checker.is_same_content(facts, record):
                    continue
                candidates.append(Candidate(record=record, reason=self._reason(record, variation)))

        logger.debug(
            "Found %d candidate(s) for '%s' (%s)",
            len(candidates),
            source.title,
            source.content_type,
        )
        return candidates

    @staticmethod
    def title_family(source: SourceContentData) -> list[str]:
        """Collect lookup variations of every title of a record.

        Args:
            source: Validated incoming record.

        Returns:
            Variations distinct ignoring case: title first, then
            original and alternative titles.
        """
        titles = [source.title, source.original_title, *source.alternative_titles]
        family: list[str] = []
        seen: set[str] = set()
        for title in titles:
            if not title:
                continue
            for variation in normalize_title(title):
                key = variation.lower()
                if key not in seen:
                    seen.add(key)
                    family.append(variation)
        return family

    # =========================================================================
    # Internal Methods
    # =========================================================================

    def _search(self, variation: str, content_type: str) -> list[ContentRecord]:
        """Run one variation query, skipping it on a data error.

        Each query runs under its own savepoint so a failed statement
        leaves the surrounding transaction usable for the next one.
        """
        exact = len(variation.strip()) < self.config.min_variation_length
        try:
            with self.repository.session.begin_nested():
                return self.repository.search_by_title(
                    variation,
                    content_type,
                    limit=self.config.candidate_limit,
                    exact=exact,
                )
        except DataError as e:
            logger.warning("Title lookup failed for variation '%s': %s", variation, e)
            return []

    @staticmethod
    def _reason(record: ContentRecord, variation: str) -> str:
        if variation.strip().lower() in (record.title or "").lower():
            return REASON_TITLE
        return REASON_ALTERNATIVE_TITLE
