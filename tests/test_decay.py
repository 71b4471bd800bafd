"""Tests for the decay engine."""

import pytest

from brain.decay import DecayEngine
from brain.models import (
    PREFERENCE,
    SELF_MANAGED,
    STRENGTHEN,
    TIME_BASED,
    Entity,
    KnowledgeGraph,
    Metadata,
)

from conftest import T0


def _graph(*patterns, resonance=0.5, trust=0.5, decay_rate=None):
    entities = [
        Entity(
            name=f"e{i}",
            entity_type="note",
            metadata=Metadata(
                trust=trust,
                importance_pattern=pattern,
                resonance=resonance,
                created_at=T0.isoformat(),
                last_updated=T0.isoformat(),
                decay_rate=decay_rate,
            ),
        )
        for i, pattern in enumerate(patterns)
    ]
    return KnowledgeGraph(entities=entities)


class TestGuard:
    def test_noop_within_an_hour(self, clock):
        engine = DecayEngine(clock)
        graph = _graph(TIME_BASED)
        clock.advance(minutes=59)
        assert engine.apply(graph) is False
        assert graph.entities[0].metadata.resonance == 0.5
        assert graph.entities[0].metadata.last_updated == T0.isoformat()

    def test_runs_after_an_hour_and_moves_last_run(self, clock):
        engine = DecayEngine(clock)
        clock.advance(hours=1)
        assert engine.apply(_graph(TIME_BASED)) is True
        assert engine.last_run == clock.now

    def test_second_pass_within_an_hour_is_skipped(self, clock):
        engine = DecayEngine(clock)
        graph = _graph(TIME_BASED, PREFERENCE, STRENGTHEN)
        clock.advance(hours=5)
        engine.apply(graph)
        snapshot = [e.metadata.to_dict() for e in graph.entities]
        clock.advance(minutes=30)
        engine.apply(graph)
        assert [e.metadata.to_dict() for e in graph.entities] == snapshot


class TestPatterns:
    def test_time_based_halves_over_one_week(self, clock):
        engine = DecayEngine(clock)
        graph = _graph(TIME_BASED)
        clock.advance(hours=168)
        engine.apply(graph)
        assert graph.entities[0].metadata.resonance == pytest.approx(0.25)

    def test_time_based_respects_custom_decay_rate(self, clock):
        engine = DecayEngine(clock)
        graph = _graph(TIME_BASED, resonance=0.8, decay_rate=0.9)
        clock.advance(hours=168)
        engine.apply(graph)
        assert graph.entities[0].metadata.resonance == pytest.approx(0.72)

    def test_time_based_floor(self, clock):
        engine = DecayEngine(clock)
        graph = _graph(TIME_BASED)
        clock.advance(days=365)
        engine.apply(graph)
        assert graph.entities[0].metadata.resonance == pytest.approx(0.1)

    def test_preference_strengthens_and_caps(self, clock):
        engine = DecayEngine(clock)
        graph = _graph(PREFERENCE, resonance=0.9)
        capped = _graph(PREFERENCE, resonance=1.0)
        clock.advance(hours=2)
        engine.apply(graph)
        engine.last_run = T0
        engine.apply(capped)
        assert graph.entities[0].metadata.resonance == pytest.approx(0.9 * 1.001)
        assert capped.entities[0].metadata.resonance == 1.0

    def test_strengthen_grows_trust_and_resonance(self, clock):
        engine = DecayEngine(clock)
        graph = _graph(STRENGTHEN, resonance=0.7, trust=0.5)
        clock.advance(hours=2)
        engine.apply(graph)
        meta = graph.entities[0].metadata
        assert meta.trust == pytest.approx(0.5 * 1.002)
        assert meta.resonance == pytest.approx(0.7 * 1.001)

    def test_self_managed_unchanged_but_restamped(self, clock):
        engine = DecayEngine(clock)
        graph = _graph(SELF_MANAGED, resonance=0.95, trust=0.8)
        clock.advance(hours=500)
        engine.apply(graph)
        meta = graph.entities[0].metadata
        assert (meta.resonance, meta.trust) == (0.95, 0.8)
        assert meta.last_updated == clock.now.isoformat()

    def test_interval_measured_from_last_pass(self, clock):
        engine = DecayEngine(clock)
        graph = _graph(TIME_BASED)
        clock.advance(hours=168)
        engine.apply(graph)
        clock.advance(hours=168)
        engine.apply(graph)
        assert graph.entities[0].metadata.resonance == pytest.approx(0.125)

    def test_growth_patterns_never_decrease(self, clock):
        engine = DecayEngine(clock)
        graph = _graph(PREFERENCE, STRENGTHEN, resonance=0.6)
        previous = [e.metadata.resonance for e in graph.entities]
        for _ in range(10):
            clock.advance(hours=37)
            engine.apply(graph)
            current = [e.metadata.resonance for e in graph.entities]
            assert all(c >= p for c, p in zip(current, previous))
            previous = current

    def test_unparsable_timestamp_counts_as_no_elapsed_time(self, clock):
        engine = DecayEngine(clock)
        graph = _graph(TIME_BASED)
        graph.entities[0].metadata.last_updated = "yesterday-ish"
        clock.advance(hours=3)
        engine.apply(graph)
        assert graph.entities[0].metadata.resonance == pytest.approx(0.5)
