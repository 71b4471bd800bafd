"""Data models for the memory graph and their JSONL wire form.

Wire keys follow the store format (camelCase) so existing memory files load
unchanged; Python attributes use snake_case.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from brain.errors import ScoringError

# Importance patterns
PREFERENCE = "preference"        # never decays, slowly strengthens
STRENGTHEN = "strengthen"        # trust and resonance grow over time
TIME_BASED = "time-based"        # resonance decays with a weekly half-life
SELF_MANAGED = "self-managed"    # left alone by the decay engine
IMPORTANCE_PATTERNS = (PREFERENCE, STRENGTHEN, TIME_BASED, SELF_MANAGED)

DEFAULT_TRUST = 0.5
DEFAULT_DECAY_RATE = 0.5
GRAPH_VERSION = "1.0.0"


def utcnow() -> datetime:
    return datetime.now(UTC)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        ts = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


@dataclass
class Metadata:
    """Per-entity scoring record ("emotional metadata")."""

    trust: float = DEFAULT_TRUST
    importance_pattern: str = TIME_BASED
    resonance: float = 0.5
    is_user_preference: bool = False
    accessibility_flag: bool = False
    created_at: str = ""
    last_updated: str = ""
    last_accessed: str | None = None
    decay_rate: float | None = None    # (0, 1], time-based only

    def __post_init__(self) -> None:
        self.trust = clamp(float(self.trust))
        self.resonance = clamp(float(self.resonance))

    @property
    def effective_decay_rate(self) -> float:
        return self.decay_rate if self.decay_rate is not None else DEFAULT_DECAY_RATE

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Metadata:
        decay_rate = d.get("decayRate")
        return cls(
            trust=float(d.get("trustLevel", DEFAULT_TRUST)),
            importance_pattern=str(d.get("importancePattern", TIME_BASED)),
            resonance=float(d.get("emotionalResonance", 0.5)),
            is_user_preference=bool(d.get("isUserPreference", False)),
            accessibility_flag=bool(d.get("accessibilityFlag", False)),
            created_at=d.get("createdAt", ""),
            last_updated=d.get("lastUpdated", ""),
            last_accessed=d.get("lastAccessed"),
            decay_rate=float(decay_rate) if decay_rate is not None else None,
        )

    @classmethod
    def validated(cls, d: Any, now: datetime) -> Metadata:
        """Build metadata supplied explicitly by a caller, rejecting bad values."""
        if not isinstance(d, dict):
            msg = f"emotionalMetadata must be an object, got {type(d).__name__}"
            raise ScoringError(msg)
        pattern = d.get("importancePattern", TIME_BASED)
        if pattern not in IMPORTANCE_PATTERNS:
            msg = f"Unknown importance pattern: {pattern!r}"
            raise ScoringError(msg)
        for key in ("trustLevel", "emotionalResonance", "decayRate"):
            value = d.get(key)
            if value is not None and (isinstance(value, bool) or not isinstance(value, int | float)):
                msg = f"{key} must be a number, got {value!r}"
                raise ScoringError(msg)
        decay_rate = d.get("decayRate")
        if decay_rate is not None and not 0 < decay_rate <= 1:
            msg = f"decayRate must be in (0, 1], got {decay_rate}"
            raise ScoringError(msg)
        meta = cls.from_dict(d)
        stamp = now.isoformat()
        meta.created_at = meta.created_at or stamp
        meta.last_updated = meta.last_updated or stamp
        return meta

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "trustLevel": self.trust,
            "importancePattern": self.importance_pattern,
            "emotionalResonance": self.resonance,
            "lastUpdated": self.last_updated,
            "isUserPreference": self.is_user_preference,
            "accessibilityFlag": self.accessibility_flag,
            "createdAt": self.created_at,
        }
        if self.last_accessed:
            d["lastAccessed"] = self.last_accessed
        if self.decay_rate is not None:
            d["decayRate"] = self.decay_rate
        return d


@dataclass
class Entity:
    name: str
    entity_type: str
    observations: list[str] = field(default_factory=list)
    metadata: Metadata | None = None

    def content(self, *, include_type: bool = True) -> str:
        """Lowercased text the keyword rules run against."""
        parts = [self.name]
        if include_type:
            parts.append(self.entity_type)
        parts.append(" ".join(self.observations))
        return " ".join(parts).lower()

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Entity:
        raw_meta = d.get("emotionalMetadata")
        observations = d.get("observations") or []
        if not isinstance(observations, list):
            msg = "observations must be a list"
            raise TypeError(msg)
        return cls(
            name=str(d["name"]),
            entity_type=str(d.get("entityType", "")),
            observations=[str(o) for o in observations],
            metadata=Metadata.from_dict(raw_meta) if isinstance(raw_meta, dict) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "name": self.name,
            "entityType": self.entity_type,
            "observations": list(self.observations),
        }
        if self.metadata is not None:
            d["emotionalMetadata"] = self.metadata.to_dict()
        return d


@dataclass
class Relation:
    source: str
    target: str
    relation_type: str
    strength: float | None = None

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.source, self.target, self.relation_type)

    def touches(self, names: set[str] | list[str]) -> bool:
        return self.source in names or self.target in names

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Relation:
        strength = d.get("strength")
        return cls(
            source=str(d["from"]),
            target=str(d["to"]),
            relation_type=str(d["relationType"]),
            strength=float(strength) if strength is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "from": self.source,
            "to": self.target,
            "relationType": self.relation_type,
        }
        if self.strength is not None:
            d["strength"] = self.strength
        return d


@dataclass
class UserProfile:
    """Accumulated user traits. Tags are appended, never removed automatically."""

    preferred_shell: str = "unknown"
    working_style: str = "unknown"
    accessibility_needs: list[str] = field(default_factory=list)
    communication_prefs: list[str] = field(default_factory=list)
    trust_level: float = DEFAULT_TRUST
    panic_triggers: list[str] = field(default_factory=list)
    success_patterns: list[str] = field(default_factory=list)

    def add_accessibility_need(self, tag: str) -> bool:
        return _add_tag(self.accessibility_needs, tag)

    def add_communication_pref(self, tag: str) -> bool:
        return _add_tag(self.communication_prefs, tag)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> UserProfile:
        return cls(
            preferred_shell=d.get("preferredShell", "unknown"),
            working_style=d.get("workingStyle", "unknown"),
            accessibility_needs=list(d.get("accessibilityNeeds", [])),
            communication_prefs=list(d.get("communicationPrefs", [])),
            trust_level=float(d.get("trustLevel", DEFAULT_TRUST)),
            panic_triggers=list(d.get("panicTriggers", [])),
            success_patterns=list(d.get("successPatterns", [])),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "trustLevel": self.trust_level,
            "preferredShell": self.preferred_shell,
            "workingStyle": self.working_style,
            "accessibilityNeeds": list(self.accessibility_needs),
            "communicationPrefs": list(self.communication_prefs),
            "panicTriggers": list(self.panic_triggers),
            "successPatterns": list(self.success_patterns),
        }


def _add_tag(tags: list[str], tag: str) -> bool:
    if tag in tags:
        return False
    tags.append(tag)
    return True


@dataclass
class GraphMetadata:
    """The envelope stored as the first line of the memory file."""

    version: str = GRAPH_VERSION
    created_at: str = ""
    last_updated: str = ""
    total_interactions: int = 0
    language: str | None = None
    user_profile: UserProfile = field(default_factory=UserProfile)

    @classmethod
    def fresh(cls, now: datetime | None = None, language: str | None = None) -> GraphMetadata:
        stamp = (now or utcnow()).isoformat()
        return cls(created_at=stamp, last_updated=stamp, language=language)

    def merge_dict(self, d: dict[str, Any]) -> None:
        """Overlay a stored metadata record onto these defaults."""
        self.version = str(d.get("version", self.version))
        self.created_at = d.get("createdAt", self.created_at)
        self.last_updated = d.get("lastUpdated", self.last_updated)
        self.total_interactions = int(d.get("totalInteractions", self.total_interactions))
        self.language = d.get("language", self.language)
        profile = d.get("userProfile")
        if isinstance(profile, dict):
            self.user_profile = UserProfile.from_dict(profile)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "version": self.version,
            "createdAt": self.created_at,
            "lastUpdated": self.last_updated,
            "totalInteractions": self.total_interactions,
        }
        if self.language:
            d["language"] = self.language
        d["userProfile"] = self.user_profile.to_dict()
        return d


@dataclass
class KnowledgeGraph:
    entities: list[Entity] = field(default_factory=list)
    relations: list[Relation] = field(default_factory=list)
    metadata: GraphMetadata = field(default_factory=GraphMetadata)

    def get(self, name: str) -> Entity | None:
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None

    def names(self) -> set[str]:
        return {e.name for e in self.entities}

    def relations_among(self, names: set[str]) -> list[Relation]:
        """Relations whose endpoints are both in names."""
        return [r for r in self.relations if r.source in names and r.target in names]

    def to_dict(self) -> dict[str, Any]:
        return {
            "entities": [e.to_dict() for e in self.entities],
            "relations": [r.to_dict() for r in self.relations],
            "metadata": self.metadata.to_dict(),
        }
