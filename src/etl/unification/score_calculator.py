"""Unified score calculator for catalog content.

Combines TMDB, MAL and the in-app user aggregate into a single
0-10 score weighted by the log of each source's sample size.
Every writer of ``unified_score`` goes through ``unify``.
"""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

from src.database.models import ContentRecord
from src.database.repositories import ContentRepository
from src.etl.unification.schemas import ScoreInput

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS - QUALITY GATES
# =============================================================================

TMDB_MIN_VOTES_MULTI = 10
"""TMDB needs strictly more votes than this when other sources exist."""

MAL_MIN_VOTES_MULTI = 100
"""MAL needs strictly more scorers than this when other sources exist."""

SOLE_SOURCE_MIN_VOTES = 0
"""A sole provider source needs strictly more votes than this."""

USER_MIN_RATINGS = 5
"""Minimum number of user ratings for the user aggregate."""

USER_WEIGHT_FACTOR = 0.8
"""Discount applied to the user aggregate weight."""

SCORE_PRECISION = 2
"""Decimal places kept on stored unified scores."""


# =============================================================================
# SCORE STATISTICS
# =============================================================================


@dataclass
class ScoreStats:
    """Statistics for a score recomputation run.

    Attributes:
        processed: Records visited.
        changed: Records whose unified score changed.
        null_scores: Records left without a unified score.
    """

    processed: int = 0
    changed: int = 0
    null_scores: int = 0

    def log_summary(self) -> None:
        """Log score recomputation statistics."""
        logger.info(
            "Score recomputation: %d records, %d changed, %d without score",
            self.processed,
            self.changed,
            self.null_scores,
        )


# =============================================================================
# UNIFIER
# =============================================================================


def _is_usable(value: float | None) -> bool:
    """Check that a score is present, finite and positive."""
    return value is not None and math.isfinite(value) and value > 0


def _passes_gate(source: ScoreInput | None, min_votes: int) -> bool:
    """Check a provider source against its vote threshold."""
    if source is None or not _is_usable(source.score):
        return False
    return source.votes is not None and source.votes > min_votes


def _log_weight(votes: int) -> float:
    return math.log10(max(votes, 1))


def unify(
    tmdb: ScoreInput | None,
    mal: ScoreInput | None,
    user: ScoreInput | None,
) -> float | None:
    """Compute the unified score from up to three rating sources.

    Provider sources are gated on their vote count: TMDB needs more
    than 10 votes and MAL more than 100 when at least two sources have
    a usable score, otherwise any positive count qualifies. The user
    aggregate needs at least 5 ratings and its weight is discounted.

    Args:
        tmdb: TMDB vote average and vote count.
        mal: MAL score and scored-by count.
        user: User rating average and rating count.

    Returns:
        Weighted mean of the included scores, or None when no source
        qualifies or the computation is not finite.
    """
    present = sum(1 for s in (tmdb, mal, user) if s is not None and _is_usable(s.score))
    multi = present >= 2

    scores: list[float] = []
    weights: list[float] = []

    if _passes_gate(tmdb, TMDB_MIN_VOTES_MULTI if multi else SOLE_SOURCE_MIN_VOTES):
        scores.append(tmdb.score)
        weights.append(_log_weight(tmdb.votes))

    if _passes_gate(mal, MAL_MIN_VOTES_MULTI if multi else SOLE_SOURCE_MIN_VOTES):
        scores.append(mal.score)
        weights.append(_log_weight(mal.votes))

    if user is not None and _is_usable(user.score) and (user.votes or 0) >= USER_MIN_RATINGS:
        scores.append(user.score)
        weights.append(_log_weight(user.votes) * USER_WEIGHT_FACTOR)

    if not scores:
        return None

    total_weight = sum(weights)
    if total_weight == 0:
        result = sum(scores) / len(scores)
    else:
        result = sum(s * w for s, w in zip(scores, weights, strict=True)) / total_weight

    if not math.isfinite(result):
        return None
    return result


def unify_record(record: ContentRecord) -> float | None:
    """Compute the unified score from the columns of a stored record.

    Args:
        record: Record holding provider metrics and user aggregate.

    Returns:
        Unified score rounded for storage, or None.
    """
    score = unify(
        ScoreInput(score=record.vote_average, votes=record.vote_count),
        ScoreInput(score=record.mal_score, votes=record.mal_scored_by),
        ScoreInput(score=record.user_rating_average, votes=record.user_rating_count),
    )
    return round(score, SCORE_PRECISION) if score is not None else None


# =============================================================================
# SCORE CALCULATOR
# =============================================================================


class ScoreCalculator:
    """Maintenance operations on stored unified scores."""

    def recompute_all(self, repository: ContentRepository, batch_size: int = 100) -> ScoreStats:
        """Recompute the unified score of every stored record.

        Matching is not re-run; only ``unified_score`` is rewritten.

        Args:
            repository: Repository bound to an open session.
            batch_size: Rows fetched per round trip.

        Returns:
            Statistics of the run.
        """
        stats = ScoreStats()
        for record in repository.iter_all(batch_size=batch_size):
            stats.processed += 1
            score = unify_record(record)
            if score != record.unified_score:
                record.unified_score = score
                stats.changed += 1
            if score is None:
                stats.null_scores += 1

        repository.session.flush()
        stats.log_summary()
        return stats

    @staticmethod
    def apply_user_ratings(
        record: ContentRecord,
        average: float | None,
        count: int,
    ) -> float | None:
        """Store a user rating aggregate and recompute the unified score.

        Args:
            record: Record to update in place.
            average: Mean of user ratings (0-10), None when unrated.
            count: Number of user ratings.

        Returns:
            New unified score.
        """
        record.user_rating_average = round(average, SCORE_PRECISION) if average is not None else None
        record.user_rating_count = count
        record.unified_score = unify_record(record)
        return record.unified_score

    @staticmethod
    def aggregate_user_ratings(ratings: Iterable[float]) -> tuple[float | None, int]:
        """Reduce individual user ratings to an average and a count.

        Args:
            ratings: Individual ratings (0-10).

        Returns:
            Tuple of (average or None, count).
        """
        values = [r for r in ratings if r is not None and math.isfinite(r)]
        if not values:
            return None, 0
        return sum(values) / len(values), len(values)
