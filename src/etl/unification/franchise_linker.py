"""Franchise and relationship linking.

Attaches franchise names from a static table keyed by provider
identifiers and resolves provider sequel/prequel/related ids to
the internal ids of records already in the catalog.
"""

import logging
from dataclasses import dataclass
from typing import Any

from src.database.models import ContentRecord
from src.database.models.content import default_relationships
from src.database.repositories import ContentRepository
from src.etl.unification.schemas import Provider, SourceContentData

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS - FRANCHISE TABLE
# =============================================================================

FRANCHISE_TABLE: dict[tuple[str, int], str] = {
    # TMDB
    ("tmdb", 11): "Star Wars",
    ("tmdb", 1891): "Star Wars",
    ("tmdb", 1892): "Star Wars",
    ("tmdb", 120): "The Lord of the Rings",
    ("tmdb", 121): "The Lord of the Rings",
    ("tmdb", 122): "The Lord of the Rings",
    ("tmdb", 671): "Harry Potter",
    ("tmdb", 672): "Harry Potter",
    ("tmdb", 673): "Harry Potter",
    ("tmdb", 1429): "Attack on Titan",
    ("tmdb", 31910): "Naruto",
    # MAL
    ("mal", 1): "Cowboy Bebop",
    ("mal", 5): "Cowboy Bebop",
    ("mal", 20): "Naruto",
    ("mal", 1735): "Naruto",
    ("mal", 121): "Fullmetal Alchemist",
    ("mal", 5114): "Fullmetal Alchemist",
    ("mal", 16498): "Attack on Titan",
    ("mal", 25777): "Attack on Titan",
    ("mal", 35760): "Attack on Titan",
}
"""Known franchise of a provider identifier."""

RELATIONSHIP_FIELDS = {
    "sequels": "sequel_ids",
    "prequels": "prequel_ids",
    "related": "related_ids",
}
"""Relationship document key -> source field holding provider ids."""


@dataclass(frozen=True)
class FranchiseMatch:
    """Franchise found for a record.

    Attributes:
        name: Franchise name.
        source: "table" for a known identifier, "hint" for provider data.
    """

    name: str
    source: str


@dataclass(frozen=True)
class BrokenRelationship:
    """Relationship pointing to a record that does not exist.

    Attributes:
        internal_id: Record holding the link.
        title: Title of that record.
        kind: Relationship key (sequels, prequels, related).
        target_id: Internal id that no longer resolves.
    """

    internal_id: str
    title: str
    kind: str
    target_id: str


# =============================================================================
# FRANCHISE LINKER
# =============================================================================


class FranchiseLinker:
    """Folds franchise and relationship data into catalog records.

    Attributes:
        repository: Content repository bound to the current session.
        table: Franchise lookup table.
    """

    def __init__(
        self,
        repository: ContentRepository,
        table: dict[tuple[str, int], str] | None = None,
    ) -> None:
        """Initialize linker.

        Args:
            repository: Content repository bound to the current session.
            table: Franchise table, defaults to FRANCHISE_TABLE.
        """
        self.repository = repository
        self.table = FRANCHISE_TABLE if table is None else table

    def detect_franchise(
        self,
        source: SourceContentData,
        provider: Provider | str,
    ) -> FranchiseMatch | None:
        """Find the franchise of an incoming record.

        Args:
            source: Validated incoming record.
            provider: Provider the record comes from.

        Returns:
            FranchiseMatch or None.
        """
        name = self.table.get((str(provider), source.external_id))
        if name:
            return FranchiseMatch(name=name, source="table")
        if source.franchise_hint:
            return FranchiseMatch(name=source.franchise_hint, source="hint")
        return None

    def reconcile_relationships(
        self,
        record: ContentRecord,
        source: SourceContentData,
        provider: Provider | str,
    ) -> None:
        """Fold franchise and relationship ids of a source into a record.

        Provider ids are resolved against stored records; ids with no
        stored record yet are skipped. The record is never linked to
        itself and existing links are kept.

        Args:
            record: Record modified in place.
            source: Validated incoming record.
            provider: Provider the record comes from.
        """
        relationships: dict[str, Any] = {
            **default_relationships(),
            **(record.relationships or {}),
        }

        franchise = self.detect_franchise(source, provider)
        if franchise:
            record.franchise = franchise.name
            relationships["franchise"] = franchise.name

        for key, field_name in RELATIONSHIP_FIELDS.items():
            external_ids = getattr(source, field_name)
            links = list(relationships.get(key) or [])
            if external_ids:
                for target in self.repository.find_by_external_ids(str(provider), external_ids):
                    if target.internal_id != record.internal_id and target.internal_id not in links:
                        links.append(target.internal_id)
            relationships[key] = links

        if relationships != record.relationships:
            # Reassign so the JSON column is marked dirty.
            record.relationships = relationships

    # =========================================================================
    # Maintenance
    # =========================================================================

    def assign_franchises(self) -> int:
        """Set franchise names on stored records from the static table.

        Returns:
            Number of records updated.
        """
        updated = 0
        for record in self.repository.iter_all():
            name = None
            if record.tmdb_id:
                name = self.table.get((Provider.TMDB.value, record.tmdb_id))
            if not name and record.mal_id:
                name = self.table.get((Provider.MAL.value, record.mal_id))
            if not name or name == record.franchise:
                continue
            record.franchise = name
            record.relationships = {
                **default_relationships(),
                **(record.relationships or {}),
                "franchise": name,
            }
            updated += 1
            logger.debug("Franchise '%s' assigned to %r", name, record)

        self.repository.session.flush()
        logger.info("Franchise assignment: %d records updated", updated)
        return updated

    def find_broken_relationships(self) -> list[BrokenRelationship]:
        """Report relationship links whose target record is missing.

        Returns:
            Broken links in record order.
        """
        records = list(self.repository.iter_all())
        known = {r.internal_id for r in records}
        broken: list[BrokenRelationship] = []

        for record in records:
            relationships = record.relationships or {}
            for key in RELATIONSHIP_FIELDS:
                for target_id in relationships.get(key) or []:
                    if target_id not in known:
                        broken.append(
                            BrokenRelationship(
                                internal_id=record.internal_id,
                                title=record.title,
                                kind=key,
                                target_id=target_id,
                            )
                        )

        if broken:
            logger.warning("Found %d broken relationship(s)", len(broken))
        else:
            logger.info("No broken relationships found")
        return broken
