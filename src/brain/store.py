"""Read and write the JSONL memory file.

GraphStore is the persistence API:
    store = GraphStore("/path/to/memory.jsonl", decay=DecayEngine())
    graph = store.load()
    store.save(graph)

File layout (one JSON object per line, written in this order):
    {"type":"metadata", "version":..., "totalInteractions":..., "userProfile":{...}}
    {"type":"entity", "name":..., "entityType":..., "observations":[...], "emotionalMetadata":{...}}
    {"type":"relation", "from":..., "to":..., "relationType":...}

Every save rewrites the whole file (tmp + rename) as ASCII-escaped JSON.
Reading does not depend on record order and skips lines that do not decode
or parse.
"""

from __future__ import annotations

import fcntl
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from brain.bootstrap import DEFAULT_LANGUAGE, bootstrap_graph
from brain.decay import DecayEngine
from brain.errors import LoadError, SaveError
from brain.inference import default_metadata
from brain.models import Entity, GraphMetadata, KnowledgeGraph, Relation, utcnow

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

logger = logging.getLogger("brain.store")


class GraphStore:
    """Whole-file JSONL graph store."""

    def __init__(
        self,
        path: Path | str,
        *,
        decay: DecayEngine | None = None,
        language: str = DEFAULT_LANGUAGE,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.path = Path(path)
        self._clock = clock or utcnow
        self.decay = decay or DecayEngine(self._clock)
        self.language = language

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def load(self) -> KnowledgeGraph:
        """Load the full graph, or the bootstrap graph when no file exists."""
        try:
            with self.path.open("rb") as f:
                fcntl.flock(f, fcntl.LOCK_SH)
                lines = f.readlines()
        except FileNotFoundError:
            return bootstrap_graph(self.language, now=self._clock())
        except OSError as exc:
            msg = f"Failed to load memory graph: {exc}"
            raise LoadError(msg) from exc

        now = self._clock()
        graph = KnowledgeGraph(metadata=GraphMetadata.fresh(now))
        for lineno, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                self._read_record(graph, json.loads(line.decode("utf-8")), now)
            except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as exc:
                logger.warning("Skipping malformed line %d in %s: %s", lineno, self.path, exc)
        return graph

    def _read_record(self, graph: KnowledgeGraph, obj: Any, now: datetime) -> None:
        if not isinstance(obj, dict):
            msg = f"expected an object, got {type(obj).__name__}"
            raise TypeError(msg)
        kind = obj.get("type")
        if kind == "entity":
            entity = Entity.from_dict(obj)
            if entity.metadata is None:
                entity.metadata = default_metadata(entity, now)
            graph.entities.append(entity)
        elif kind == "relation":
            graph.relations.append(Relation.from_dict(obj))
        elif kind == "metadata":
            graph.metadata.merge_dict(obj)
        else:
            msg = f"unknown record type {kind!r}"
            raise ValueError(msg)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def save(self, graph: KnowledgeGraph) -> None:
        """Stamp the envelope, run decay, then atomically rewrite the file."""
        now = self._clock()
        previous_run = self.decay.last_run
        graph.metadata.last_updated = now.isoformat()
        graph.metadata.total_interactions += 1
        for entity in graph.entities:
            if entity.metadata is None:
                entity.metadata = default_metadata(entity, now)
        self.decay.apply(graph)

        lines = [json.dumps({"type": "metadata", **graph.metadata.to_dict()})]
        lines.extend(json.dumps({"type": "entity", **e.to_dict()}) for e in graph.entities)
        lines.extend(json.dumps({"type": "relation", **r.to_dict()}) for r in graph.relations)

        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as f:
                fcntl.flock(f, fcntl.LOCK_EX)
                f.write("\n".join(lines) + "\n")
            tmp.replace(self.path)
        except (OSError, UnicodeError) as exc:
            # Nothing reached disk, so the decay pass stays due.
            self.decay.last_run = previous_run
            graph.metadata.total_interactions -= 1
            if tmp.exists():
                tmp.unlink()
            msg = f"Failed to save memory graph: {exc}"
            raise SaveError(msg) from exc
