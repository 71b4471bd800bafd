"""Memory graph with per-entity scoring: entities, relations, emotional metadata.

Layout:
    brain.toml                # optional project config
    .brain/
        memory.jsonl          # the whole graph, rewritten on every save

memory.jsonl line types:
    {"type":"metadata", "version":"1.0.0", "totalInteractions":N, "userProfile":{...}}  # line 1
    {"type":"entity", "name":..., "entityType":..., "observations":[...], "emotionalMetadata":{...}}
    {"type":"relation", "from":..., "to":..., "relationType":...}

emotionalMetadata drives ranking and decay:
    {"trustLevel":0.5, "importancePattern":"time-based", "emotionalResonance":0.5,
     "isUserPreference":false, "accessibilityFlag":false,
     "createdAt":..., "lastUpdated":..., "lastAccessed":..., "decayRate":0.5}
"""

from brain.config import BrainConfig, init_config, load_config
from brain.decay import DecayEngine
from brain.manager import KnowledgeGraphManager
from brain.models import Entity, KnowledgeGraph, Metadata, Relation, UserProfile
from brain.store import GraphStore

__version__ = "1.0.0"

__all__ = [
    "BrainConfig",
    "DecayEngine",
    "Entity",
    "GraphStore",
    "KnowledgeGraph",
    "KnowledgeGraphManager",
    "Metadata",
    "Relation",
    "UserProfile",
    "__version__",
    "init_config",
    "load_config",
]
