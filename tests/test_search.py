"""Tests for ranked search scoring."""

import pytest

from brain.config import SearchConfig
from brain.models import Entity, KnowledgeGraph, Metadata, Relation
from brain.search import score_entity, search_graph


def _entity(name, entity_type="note", observations=(), **meta):
    return Entity(name, entity_type, list(observations), Metadata(**meta))


@pytest.fixture
def graph():
    return KnowledgeGraph(
        entities=[
            _entity("alpha", observations=["mentions beta"], trust=0.0, resonance=0.0),
            _entity("beta", trust=0.0, resonance=0.0),
            _entity("gamma", entity_type="beta-type", trust=0.0, resonance=0.0),
            _entity("delta", trust=0.0, resonance=0.0),
        ],
        relations=[Relation("beta", "alpha", "links"), Relation("beta", "delta", "links")],
    )


def test_lexical_weights(graph):
    result = search_graph(graph, "Beta")
    assert [e.name for e in result.entities] == ["beta", "gamma", "alpha"]
    assert result.scores == {"beta": 10.0, "gamma": 5.0, "alpha": 3.0}
    assert [r.key for r in result.relations] == [("beta", "alpha", "links")]


def test_equal_scores_keep_graph_order():
    graph = KnowledgeGraph(entities=[_entity(n, resonance=0.5) for n in ("c", "a", "b")])
    assert [e.name for e in search_graph(graph, "zzz").entities] == ["c", "a", "b"]


def test_metadata_boosts():
    entity = _entity("x", resonance=0.5, trust=0.25, is_user_preference=True, accessibility_flag=True)
    assert score_entity(entity, "nomatch", SearchConfig()) == pytest.approx(1.0 + 0.5 + 5 + 3)


def test_custom_weights():
    entity = _entity("needle", resonance=1.0, trust=1.0)
    weights = SearchConfig(name_weight=1.0, resonance_weight=0.0, trust_weight=0.0)
    assert score_entity(entity, "needle", weights) == 1.0


def test_to_dict_shape(graph):
    data = search_graph(graph, "beta").to_dict()
    assert set(data) == {"entities", "relations", "metadata"}
    assert data["entities"][0]["name"] == "beta"
