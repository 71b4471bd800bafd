"""Decay engine: hourly-at-most recomputation of entity scores.

Runs as part of every save. A pass is skipped when the previous one was less
than ``min_interval_hours`` ago, so repeated saves cannot decay twice. After a
pass every entity's ``lastUpdated`` is reset to the pass time, which makes the
next interval start from the pass rather than from the entity's last edit.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from brain.models import (
    PREFERENCE,
    SELF_MANAGED,
    STRENGTHEN,
    TIME_BASED,
    clamp,
    parse_timestamp,
    utcnow,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from brain.models import KnowledgeGraph, Metadata

logger = logging.getLogger("brain.decay")

PREFERENCE_GROWTH = 1.001
STRENGTHEN_TRUST_GROWTH = 1.002
STRENGTHEN_RESONANCE_GROWTH = 1.001


class DecayEngine:
    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        *,
        min_interval_hours: float = 1.0,
        reference_window_hours: float = 168.0,
        resonance_floor: float = 0.1,
    ) -> None:
        self._clock = clock or utcnow
        self.min_interval_hours = min_interval_hours
        self.reference_window_hours = reference_window_hours
        self.resonance_floor = resonance_floor
        self.last_run: datetime = self._clock()

    def hours_since_last_run(self, now: datetime | None = None) -> float:
        now = now or self._clock()
        return (now - self.last_run).total_seconds() / 3600

    def apply(self, graph: KnowledgeGraph) -> bool:
        """Decay every entity in place. Returns False when the pass was skipped."""
        now = self._clock()
        if self.hours_since_last_run(now) < self.min_interval_hours:
            return False

        stamp = now.isoformat()
        for entity in graph.entities:
            meta = entity.metadata
            if meta is None:
                continue
            updated = parse_timestamp(meta.last_updated)
            hours = (now - updated).total_seconds() / 3600 if updated else 0.0
            self._apply_pattern(meta, max(0.0, hours))
            meta.last_updated = stamp

        self.last_run = now
        logger.info("decay pass over %d entities", len(graph.entities))
        return True

    def _apply_pattern(self, meta: Metadata, hours: float) -> None:
        pattern = meta.importance_pattern
        if pattern == PREFERENCE:
            meta.resonance = clamp(meta.resonance * PREFERENCE_GROWTH)
        elif pattern == STRENGTHEN:
            meta.trust = clamp(meta.trust * STRENGTHEN_TRUST_GROWTH)
            meta.resonance = clamp(meta.resonance * STRENGTHEN_RESONANCE_GROWTH)
        elif pattern == TIME_BASED:
            factor = meta.effective_decay_rate ** (hours / self.reference_window_hours)
            meta.resonance = clamp(meta.resonance * factor, low=self.resonance_floor)
        elif pattern == SELF_MANAGED:
            pass
        else:
            logger.debug("unknown importance pattern %r left untouched", pattern)
