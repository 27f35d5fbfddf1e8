"""Content unification package.

Matches provider records (TMDB, MAL) against the catalog and
creates or merges unified records with a single weighted score.

Usage:
    from src.etl.unification import ContentIngestor

    result = ContentIngestor().ingest(records, "mal")
    result.log_summary()
"""

from src.etl.unification.candidate_matcher import Candidate, CandidateMatcher
from src.etl.unification.errors import InvalidSourceDataError, UnificationError
from src.etl.unification.fact_checker import ContentFacts, FactChecker, FactCheckResult
from src.etl.unification.franchise_linker import (
    FRANCHISE_TABLE,
    BrokenRelationship,
    FranchiseLinker,
    FranchiseMatch,
)
from src.etl.unification.ingestor import ContentIngestor, IngestionResult
from src.etl.unification.merger import (
    MergeAction,
    MergeEngine,
    MergeOutcome,
    deduplicate_genres,
    is_anime_content,
)
from src.etl.unification.schemas import (
    SOURCE_SCHEMAS,
    ContentType,
    GenreData,
    MALContentData,
    Provider,
    ScoreInput,
    SourceContentData,
    TMDBContentData,
)
from src.etl.unification.score_calculator import (
    ScoreCalculator,
    ScoreStats,
    unify,
    unify_record,
)
from src.etl.unification.title_normalizer import clean_title, normalize_title

__all__ = [
    # Schemas
    "Provider",
    "ContentType",
    "GenreData",
    "ScoreInput",
    "SourceContentData",
    "TMDBContentData",
    "MALContentData",
    "SOURCE_SCHEMAS",
    # Errors
    "UnificationError",
    "InvalidSourceDataError",
    # Scoring
    "unify",
    "unify_record",
    "ScoreCalculator",
    "ScoreStats",
    # Matching
    "normalize_title",
    "clean_title",
    "ContentFacts",
    "FactCheckResult",
    "FactChecker",
    "Candidate",
    "CandidateMatcher",
    # Merge
    "MergeAction",
    "MergeOutcome",
    "MergeEngine",
    "deduplicate_genres",
    "is_anime_content",
    # Relationships
    "FRANCHISE_TABLE",
    "FranchiseMatch",
    "BrokenRelationship",
    "FranchiseLinker",
    # Ingestion
    "IngestionResult",
    "ContentIngestor",
]
