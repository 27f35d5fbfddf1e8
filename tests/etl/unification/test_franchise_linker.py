"""Tests for franchise and relationship linking."""

import uuid

import pytest

from src.database.models import ContentRecord
from src.database.repositories import ContentRepository
from src.etl.unification.franchise_linker import (
    FRANCHISE_TABLE,
    BrokenRelationship,
    FranchiseLinker,
    FranchiseMatch,
)
from src.etl.unification.schemas import MALContentData, Provider


def _store(repository: ContentRepository, **overrides) -> ContentRecord:
    data = {"internal_id": str(uuid.uuid4()), "title": "Cowboy Bebop", "content_type": "series"}
    data.update(overrides)
    return repository.create(ContentRecord(**data))


def _mal(**overrides) -> MALContentData:
    data = {"external_id": 999, "title": "Some Show", "content_type": "tv"}
    data.update(overrides)
    return MALContentData.model_validate(data)


@pytest.fixture
def linker(repository: ContentRepository) -> FranchiseLinker:
    return FranchiseLinker(repository)


class TestDetectFranchise:
    @staticmethod
    def test_known_external_id(linker: FranchiseLinker) -> None:
        match = linker.detect_franchise(_mal(external_id=5114), Provider.MAL)
        assert match == FranchiseMatch(name="Fullmetal Alchemist", source="table")

    @staticmethod
    def test_table_keyed_by_provider(linker: FranchiseLinker) -> None:
        assert ("mal", 20) in FRANCHISE_TABLE
        assert linker.detect_franchise(_mal(external_id=20), "tmdb") is None

    @staticmethod
    def test_hint_fallback(linker: FranchiseLinker) -> None:
        match = linker.detect_franchise(_mal(franchise_hint="Monogatari"), Provider.MAL)
        assert match == FranchiseMatch(name="Monogatari", source="hint")

    @staticmethod
    def test_no_franchise(linker: FranchiseLinker) -> None:
        assert linker.detect_franchise(_mal(), Provider.MAL) is None


class TestReconcileRelationships:
    @staticmethod
    def test_resolves_stored_ids(linker: FranchiseLinker, repository: ContentRepository) -> None:
        sequel = _store(repository, mal_id=100, title="Season 2")
        prequel = _store(repository, mal_id=50, title="Season 0")
        record = _store(repository, mal_id=75, title="Season 1")

        linker.reconcile_relationships(
            record,
            _mal(external_id=75, sequel_ids=[100, 404], prequel_ids=[50]),
            Provider.MAL,
        )

        assert record.relationships["sequels"] == [sequel.internal_id]
        assert record.relationships["prequels"] == [prequel.internal_id]
        assert record.relationships["related"] == []

    @staticmethod
    def test_no_duplicates_and_no_self_link(linker: FranchiseLinker, repository: ContentRepository) -> None:
        sequel = _store(repository, mal_id=100)
        record = _store(repository, mal_id=75)
        source = _mal(external_id=75, sequel_ids=[100], related_ids=[75])

        linker.reconcile_relationships(record, source, Provider.MAL)
        linker.reconcile_relationships(record, source, Provider.MAL)

        assert record.relationships["sequels"] == [sequel.internal_id]
        assert record.relationships["related"] == []

    @staticmethod
    def test_keeps_existing_links(linker: FranchiseLinker, repository: ContentRepository) -> None:
        record = _store(repository, relationships={"sequels": ["kept"], "prequels": [], "related": []})
        linker.reconcile_relationships(record, _mal(), Provider.MAL)
        assert record.relationships["sequels"] == ["kept"]
        assert record.relationships["franchise"] is None

    @staticmethod
    def test_sets_franchise(linker: FranchiseLinker, repository: ContentRepository) -> None:
        record = _store(repository)
        linker.reconcile_relationships(record, _mal(external_id=1), Provider.MAL)
        assert record.franchise == "Cowboy Bebop"
        assert record.relationships["franchise"] == "Cowboy Bebop"


class TestMaintenance:
    @staticmethod
    def test_assign_franchises(linker: FranchiseLinker, repository: ContentRepository) -> None:
        naruto = _store(repository, title="Naruto", mal_id=20)
        unknown = _store(repository, title="Unknown", mal_id=424242)

        assert linker.assign_franchises() == 1
        assert naruto.franchise == "Naruto"
        assert naruto.relationships["franchise"] == "Naruto"
        assert unknown.franchise is None
        assert linker.assign_franchises() == 0

    @staticmethod
    def test_find_broken_relationships(linker: FranchiseLinker, repository: ContentRepository) -> None:
        target = _store(repository, title="Target")
        holder = _store(
            repository,
            title="Holder",
            relationships={"sequels": [target.internal_id, "gone"], "prequels": ["lost"], "related": []},
        )

        broken = linker.find_broken_relationships()

        assert broken == [
            BrokenRelationship(holder.internal_id, "Holder", "sequels", "gone"),
            BrokenRelationship(holder.internal_id, "Holder", "prequels", "lost"),
        ]

    @staticmethod
    def test_no_broken_relationships(linker: FranchiseLinker, repository: ContentRepository) -> None:
        _store(repository)
        assert linker.find_broken_relationships() == []
