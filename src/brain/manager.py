"""KnowledgeGraphManager: the graph operations.

Every operation is a full round trip: load the graph, mutate it in memory,
save it (which runs decay), return the result. Nothing is cached between
calls except the decay engine's last-run time.

Duplicates are dropped silently (existing entity names, existing relation
triples, repeated observations). An unknown entity in add_observations is a
hard failure and nothing from that batch is saved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from brain.decay import DecayEngine
from brain.errors import EntityNotFound
from brain.inference import default_metadata, update_profile
from brain.models import Entity, KnowledgeGraph, Metadata, Relation, clamp, utcnow
from brain.search import SearchResult, search_graph
from brain.store import GraphStore

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import datetime

    from brain.config import BrainConfig, SearchConfig
    from brain.models import UserProfile

logger = logging.getLogger("brain.manager")

TRUST_INCREMENT = 0.01
TRUSTED_PROFILE_LEVEL = 0.7


@dataclass
class ObservationChange:
    """Observations added to (or removed from) one entity."""

    entity_name: str
    contents: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any], key: str = "contents") -> ObservationChange:
        return cls(entity_name=str(d["entityName"]), contents=[str(c) for c in d[key]])

    def to_dict(self) -> dict[str, Any]:
        return {"entityName": self.entity_name, "addedObservations": list(self.contents)}


@dataclass
class DeleteResult:
    deleted: list[str] = field(default_factory=list)
    preferences_deleted: list[str] = field(default_factory=list)


@dataclass
class Recommendation:
    type: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "message": self.message}


def _as_entity(candidate: Entity | dict[str, Any], now: datetime) -> Entity:
    if isinstance(candidate, Entity):
        entity = Entity(candidate.name, candidate.entity_type, list(candidate.observations), candidate.metadata)
    else:
        entity = Entity(
            name=str(candidate["name"]),
            entity_type=str(candidate["entityType"]),
            observations=[str(o) for o in candidate.get("observations", [])],
        )
        if candidate.get("emotionalMetadata") is not None:
            entity.metadata = Metadata.validated(candidate["emotionalMetadata"], now)
    entity.observations = list(dict.fromkeys(entity.observations))
    return entity


def _as_relation(candidate: Relation | dict[str, Any]) -> Relation:
    if isinstance(candidate, Relation):
        return candidate
    return Relation.from_dict(candidate)


def _as_change(item: ObservationChange | dict[str, Any], key: str) -> ObservationChange:
    if isinstance(item, ObservationChange):
        return item
    return ObservationChange.from_dict(item, key=key)


class KnowledgeGraphManager:
    def __init__(
        self,
        store: GraphStore,
        *,
        search: SearchConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.search_weights = search
        self._clock = clock or utcnow

    @classmethod
    def from_config(cls, cfg: BrainConfig, clock: Callable[[], datetime] | None = None) -> KnowledgeGraphManager:
        decay = DecayEngine(
            clock,
            min_interval_hours=cfg.decay.min_interval_hours,
            reference_window_hours=cfg.decay.reference_window_hours,
            resonance_floor=cfg.decay.resonance_floor,
        )
        store = GraphStore(cfg.memory_path, decay=decay, language=cfg.language, clock=clock)
        return cls(store, search=cfg.search, clock=clock)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_entities(self, candidates: Iterable[Entity | dict[str, Any]]) -> list[Entity]:
        """Insert entities whose names are new. Returns only the inserted ones."""
        now = self._clock()
        prepared = [_as_entity(c, now) for c in candidates]
        graph = self.store.load()

        taken = graph.names()
        inserted: list[Entity] = []
        for entity in prepared:
            if entity.name in taken:
                logger.debug("entity %s already exists, skipped", entity.name)
                continue
            if entity.metadata is None:
                entity.metadata = default_metadata(entity, now)
            taken.add(entity.name)
            inserted.append(entity)

        graph.entities.extend(inserted)
        update_profile(graph.metadata.user_profile, inserted)
        self.store.save(graph)
        return inserted

    def create_relations(self, candidates: Iterable[Relation | dict[str, Any]]) -> list[Relation]:
        """Insert relations whose (from, to, relationType) triple is new."""
        prepared = [_as_relation(c) for c in candidates]
        graph = self.store.load()

        existing = {r.key for r in graph.relations}
        inserted: list[Relation] = []
        for relation in prepared:
            if relation.key in existing:
                continue
            existing.add(relation.key)
            inserted.append(relation)

        graph.relations.extend(inserted)
        self.store.save(graph)
        return inserted

    def add_observations(
        self, requests: Iterable[ObservationChange | dict[str, Any]]
    ) -> list[ObservationChange]:
        """Append new observation strings; trust grows when something was added.

        Raises EntityNotFound (and saves nothing) if any requested entity is missing.
        """
        changes = [_as_change(r, "contents") for r in requests]
        graph = self.store.load()
        targets: list[tuple[ObservationChange, Entity]] = []
        for change in changes:
            entity = graph.get(change.entity_name)
            if entity is None:
                raise EntityNotFound(change.entity_name)
            targets.append((change, entity))

        stamp = self._clock().isoformat()
        results: list[ObservationChange] = []
        for change, entity in targets:
            added: list[str] = []
            for content in change.contents:
                if content not in entity.observations and content not in added:
                    added.append(content)
            entity.observations.extend(added)

            meta = entity.metadata
            if meta is not None:
                meta.last_updated = stamp
                meta.last_accessed = stamp
                if added:
                    meta.trust = clamp(meta.trust + TRUST_INCREMENT)
            results.append(ObservationChange(change.entity_name, added))

        self.store.save(graph)
        return results

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_entities(self, names: Iterable[str]) -> DeleteResult:
        """Delete entities and every relation touching them."""
        doomed = set(names)
        graph = self.store.load()

        result = DeleteResult()
        for entity in graph.entities:
            if entity.name not in doomed:
                continue
            result.deleted.append(entity.name)
            if entity.metadata is not None and entity.metadata.is_user_preference:
                result.preferences_deleted.append(entity.name)

        if result.preferences_deleted:
            logger.warning("Deleting user preferences: %s", ", ".join(result.preferences_deleted))

        graph.entities = [e for e in graph.entities if e.name not in doomed]
        graph.relations = [r for r in graph.relations if not r.touches(doomed)]
        self.store.save(graph)
        return result

    def delete_observations(self, requests: Iterable[ObservationChange | dict[str, Any]]) -> None:
        """Remove exact-match observations. Unknown entity names are skipped."""
        changes = [_as_change(r, "observations") for r in requests]
        graph = self.store.load()
        stamp = self._clock().isoformat()

        for change in changes:
            entity = graph.get(change.entity_name)
            if entity is None:
                logger.debug("delete_observations: no entity %s", change.entity_name)
                continue
            doomed = set(change.contents)
            entity.observations = [o for o in entity.observations if o not in doomed]
            if entity.metadata is not None:
                entity.metadata.last_updated = stamp

        self.store.save(graph)

    def delete_relations(self, candidates: Iterable[Relation | dict[str, Any]]) -> None:
        doomed = {_as_relation(c).key for c in candidates}
        graph = self.store.load()
        graph.relations = [r for r in graph.relations if r.key not in doomed]
        self.store.save(graph)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def read_graph(self) -> KnowledgeGraph:
        return self.store.load()

    def search_nodes(self, query: str) -> SearchResult:
        return search_graph(self.store.load(), query, self.search_weights)

    def open_nodes(self, names: Iterable[str]) -> KnowledgeGraph:
        """Return the named entities and the relations among them.

        Stamps lastAccessed on each returned entity and saves the graph.
        """
        wanted = set(names)
        graph = self.store.load()
        stamp = self._clock().isoformat()

        found = [e for e in graph.entities if e.name in wanted]
        for entity in found:
            if entity.metadata is not None:
                entity.metadata.last_accessed = stamp

        self.store.save(graph)
        return KnowledgeGraph(
            entities=found,
            relations=graph.relations_among({e.name for e in found}),
            metadata=graph.metadata,
        )

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def get_user_profile(self) -> dict[str, Any]:
        profile = self.store.load().metadata.user_profile
        return {
            "profile": profile.to_dict(),
            "recommendations": [r.to_dict() for r in recommendations_for(profile)],
        }


def recommendations_for(profile: UserProfile) -> list[Recommendation]:
    """Suggestions for what the assistant has not learned about the user yet."""
    recs: list[Recommendation] = []
    if profile.preferred_shell == "unknown":
        recs.append(Recommendation(
            "preference-detection",
            "I notice I haven't learned your shell preference yet. I can remember whether you use "
            "zsh, bash, fish, or PowerShell to give you better command suggestions.",
        ))
    if not profile.accessibility_needs:
        recs.append(Recommendation(
            "accessibility-check",
            "I'm designed to adapt to different accessibility needs. Let me know if you prefer "
            "slower-paced responses, detailed descriptions, or other accommodations.",
        ))
    if profile.trust_level < TRUSTED_PROFILE_LEVEL:
        recs.append(Recommendation(
            "trust-building",
            "I'm still learning your preferences. The more we work together, the better I'll "
            "become at anticipating your needs.",
        ))
    return recs
