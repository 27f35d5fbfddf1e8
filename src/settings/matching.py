"""Content matching configuration settings.

Tolerances used by the fact checker and limits used by the
candidate matcher when looking for an existing record.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MatchingSettings(BaseSettings):
    """Same-content heuristics configuration.

    Attributes:
        movie_year_tolerance: Max release year difference for movies.
        series_year_tolerance: Max release year difference for series.
        max_episode_difference: Max episode count difference for series.
        max_runtime_difference: Max runtime difference for movies (minutes).
        candidate_limit: Max stored records fetched per title variation.
        min_variation_length: Variations shorter than this match exactly only.
    """

    movie_year_tolerance: int = Field(default=2, ge=0, alias="MATCH_MOVIE_YEAR_TOLERANCE")
    series_year_tolerance: int = Field(default=3, ge=0, alias="MATCH_SERIES_YEAR_TOLERANCE")
    max_episode_difference: int = Field(default=10, ge=0, alias="MATCH_MAX_EPISODE_DIFF")
    max_runtime_difference: int = Field(default=45, ge=0, alias="MATCH_MAX_RUNTIME_DIFF")
    candidate_limit: int = Field(default=5, ge=1, alias="MATCH_CANDIDATE_LIMIT")
    min_variation_length: int = Field(default=3, ge=1, alias="MATCH_MIN_VARIATION_LENGTH")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
