"""Tests for ContentRecord and ContentRepository on SQLite."""

import uuid
from datetime import date

import pytest
from sqlalchemy.orm.exc import StaleDataError

from src.database.connection import DatabaseConnection
from src.database.models import SEARCH_SEPARATOR, ContentRecord
from src.database.repositories import ContentRepository


def _record(**overrides) -> ContentRecord:
    data = {
        "internal_id": str(uuid.uuid4()),
        "title": "Ghost Voice",
        "content_type": "movie",
        "release_date": date(2016, 9, 17),
    }
    data.update(overrides)
    return ContentRecord(**data)


# =============================================================================
# MODEL
# =============================================================================


class TestContentRecord:
    @staticmethod
    def test_defaults_after_flush(repository: ContentRepository) -> None:
        record = repository.create(_record())
        assert record.id is not None
        assert record.version_id == 1
        assert record.alternative_titles == []
        assert record.data_sources["tmdb"] == {"hasData": False, "lastUpdated": None}
        assert record.relationships["sequels"] == []

    @staticmethod
    def test_year() -> None:
        assert _record().year == 2016
        assert _record(release_date=None).year is None

    @staticmethod
    def test_invalid_content_type_rejected() -> None:
        with pytest.raises(ValueError, match="Invalid content_type"):
            _record(content_type="anime")

    @staticmethod
    def test_content_type_immutable() -> None:
        record = _record()
        with pytest.raises(ValueError, match="immutable"):
            record.content_type = "series"

    @staticmethod
    def test_has_provider_data() -> None:
        record = _record(data_sources={"mal": {"hasData": True, "lastUpdated": "x"}})
        assert record.has_provider_data("mal") is True
        assert record.has_provider_data("tmdb") is False

    @staticmethod
    def test_refresh_search_titles_lowercases_and_dedups() -> None:
        record = _record(alternative_titles=["Koe no Katachi", "GHOST VOICE", " "])
        record.refresh_search_titles()
        assert record.search_titles == (
            f"{SEARCH_SEPARATOR}ghost voice{SEARCH_SEPARATOR}koe no katachi{SEARCH_SEPARATOR}"
        )

    @staticmethod
    def test_repr_contains_title() -> None:
        assert "Ghost Voice" in repr(_record())


# =============================================================================
# LOOKUPS
# =============================================================================


class TestExternalIdLookup:
    @staticmethod
    def test_get_by_external_id(repository: ContentRepository) -> None:
        record = repository.create(_record(tmdb_id=378064))
        assert repository.get_by_external_id("tmdb", 378064) is record
        assert repository.get_by_external_id("mal", 378064) is None

    @staticmethod
    def test_content_type_disambiguates(repository: ContentRepository) -> None:
        repository.create(_record(tmdb_id=1429, title="Some Movie"))
        series = repository.create(_record(tmdb_id=1429, title="Attack on Titan", content_type="series"))
        assert repository.get_by_external_id("tmdb", 1429, content_type="series") is series

    @staticmethod
    def test_unknown_provider() -> None:
        with pytest.raises(ValueError, match="Unknown provider"):
            ContentRepository._external_id_column("imdb")

    @staticmethod
    def test_find_by_external_ids(repository: ContentRepository) -> None:
        first = repository.create(_record(mal_id=1))
        second = repository.create(_record(mal_id=5, title="Cowboy Bebop: The Movie"))
        repository.create(_record(mal_id=20, title="Naruto"))

        found = repository.find_by_external_ids("mal", [5, 1, 5, 999])
        assert found == [first, second]
        assert repository.find_by_external_ids("mal", []) == []

    @staticmethod
    def test_find_by_internal_ids(repository: ContentRepository) -> None:
        record = repository.create(_record())
        assert repository.find_by_internal_ids([record.internal_id, "missing"]) == [record]
        assert repository.get_by_internal_id(record.internal_id) is record


class TestSearchByTitle:
    @staticmethod
    def test_substring_case_insensitive(repository: ContentRepository) -> None:
        record = repository.create(_record(title="Koe no Katachi"))
        assert repository.search_by_title("KATACHI", "movie") == [record]

    @staticmethod
    def test_matches_alternative_titles(repository: ContentRepository) -> None:
        record = repository.create(_record(title="Koe no Katachi", alternative_titles=["A Silent Voice"]))
        assert repository.search_by_title("silent voice", "movie") == [record]

    @staticmethod
    def test_restricted_to_content_type(repository: ContentRepository) -> None:
        repository.create(_record())
        assert repository.search_by_title("ghost voice", "series") == []

    @staticmethod
    def test_wildcards_are_literal(repository: ContentRepository) -> None:
        repository.create(_record(title="Ghost Voice"))
        assert repository.search_by_title("%", "movie") == []
        assert repository.search_by_title("gh_st", "movie") == []

    @staticmethod
    def test_special_characters_do_not_fail(repository: ContentRepository) -> None:
        record = repository.create(_record(title="Steins;Gate (2011) [TV]?*"))
        assert repository.search_by_title("gate (2011) [tv]?*", "movie") == [record]

    @staticmethod
    def test_exact_requires_whole_title(repository: ContentRepository) -> None:
        record = repository.create(_record(title="K", alternative_titles=["K Project"]))
        repository.create(_record(title="Kiki's Delivery Service"))
        assert repository.search_by_title("k", "movie", exact=True) == [record]

    @staticmethod
    def test_limit(repository: ContentRepository) -> None:
        for i in range(4):
            repository.create(_record(title=f"Naruto {i}"))
        assert len(repository.search_by_title("naruto", "movie", limit=2)) == 2

    @staticmethod
    def test_blank_title(repository: ContentRepository) -> None:
        repository.create(_record())
        assert repository.search_by_title("   ", "movie") == []

    @staticmethod
    def test_whole_title_match_ranked_first(repository: ContentRepository) -> None:
        for title in ("Brotherhood", "Other Side", "Mother", "Father Brown", "Heritage"):
            repository.create(_record(title=title))
        her = repository.create(_record(title="Her"))

        results = repository.search_by_title("her", "movie", limit=5)

        assert results[0] is her
        assert len(results) == 5

    @staticmethod
    def test_alternative_title_counts_as_whole_title(repository: ContentRepository) -> None:
        repository.create(_record(title="Ghost Voice Special"))
        aliased = repository.create(_record(title="Koe no Katachi", alternative_titles=["Ghost Voice"]))
        assert repository.search_by_title("ghost voice", "movie", limit=1) == [aliased]


class TestIterAll:
    @staticmethod
    def test_yields_every_record_in_order(repository: ContentRepository) -> None:
        created = [repository.create(_record(title=f"Title {i}")) for i in range(3)]
        assert list(repository.iter_all(batch_size=2)) == created
        assert repository.count() == 3


# =============================================================================
# PERSISTENCE
# =============================================================================


class TestSave:
    @staticmethod
    def test_save_refreshes_search_titles(repository: ContentRepository) -> None:
        record = repository.create(_record())
        record.alternative_titles = ["Koe no Katachi"]
        repository.save(record)
        assert repository.search_by_title("katachi", "movie") == [record]
        assert record.version_id == 2

    @staticmethod
    def test_stale_write_detected(db: DatabaseConnection) -> None:
        with db.session() as s:
            internal_id = ContentRepository(s).create(_record()).internal_id

        first = db.get_session()
        second = db.get_session()
        try:
            a = ContentRepository(first).get_by_internal_id(internal_id)
            b = ContentRepository(second).get_by_internal_id(internal_id)

            a.overview = "first writer"
            ContentRepository(first).save(a)
            first.commit()

            b.overview = "second writer"
            with pytest.raises(StaleDataError):
                ContentRepository(second).save(b)
        finally:
            second.rollback()
            second.close()
            first.close()


class TestGenericCrud:
    @staticmethod
    def test_get_by_id_and_field(repository: ContentRepository) -> None:
        record = repository.create(_record())
        assert repository.get_by_id(record.id) is record
        assert repository.get_by_field("title", "Ghost Voice") is record
        assert repository.get_by_internal_id(record.internal_id) is record

    @staticmethod
    def test_unknown_field(repository: ContentRepository) -> None:
        with pytest.raises(ValueError):
            repository.get_by_field("not_a_column", 1)

    @staticmethod
    def test_get_all_pages(repository: ContentRepository) -> None:
        created = [repository.create(_record(title=f"Title {i}")) for i in range(3)]
        assert repository.get_all(limit=2) == created[:2]
        assert repository.get_all(limit=2, offset=2) == created[2:]

    @staticmethod
    def test_delete(repository: ContentRepository) -> None:
        record = repository.create(_record())
        repository.delete(record)
        assert repository.count() == 0
