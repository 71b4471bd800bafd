"""Ranked search: lexical match on name/type/observations plus metadata boosts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from brain.config import SearchConfig

if TYPE_CHECKING:
    from brain.models import Entity, GraphMetadata, KnowledgeGraph, Relation


@dataclass
class SearchResult:
    entities: list[Entity]
    relations: list[Relation]
    metadata: GraphMetadata
    scores: dict[str, float] = field(default_factory=dict)   # entity name → score

    def to_dict(self) -> dict[str, Any]:
        return {
            "entities": [e.to_dict() for e in self.entities],
            "relations": [r.to_dict() for r in self.relations],
            "metadata": self.metadata.to_dict(),
        }


def score_entity(entity: Entity, query: str, weights: SearchConfig) -> float:
    """Score one entity against an already-lowercased query."""
    score = 0.0
    if query in entity.name.lower():
        score += weights.name_weight
    if query in entity.entity_type.lower():
        score += weights.type_weight
    if any(query in o.lower() for o in entity.observations):
        score += weights.observation_weight

    meta = entity.metadata
    if meta is not None:
        score += meta.resonance * weights.resonance_weight
        score += meta.trust * weights.trust_weight
        if meta.is_user_preference:
            score += weights.preference_bonus
        if meta.accessibility_flag:
            score += weights.accessibility_bonus
    return score


def search_graph(graph: KnowledgeGraph, query: str, weights: SearchConfig | None = None) -> SearchResult:
    """Rank every entity; zero scores are dropped, ties keep graph order."""
    weights = weights or SearchConfig()
    needle = query.lower()

    scored = [(entity, score_entity(entity, needle, weights)) for entity in graph.entities]
    scored = [item for item in scored if item[1] > 0]
    scored.sort(key=lambda item: item[1], reverse=True)

    entities = [entity for entity, _ in scored]
    return SearchResult(
        entities=entities,
        relations=graph.relations_among({e.name for e in entities}),
        metadata=graph.metadata,
        scores={entity.name: score for entity, score in scored},
    )
