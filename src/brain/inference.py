"""Keyword rule tables: default metadata for new entities, and profile inference.

Both run once, when an entity is created. Rules are ordered; the first
matching importance rule wins, the accessibility flag is independent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from brain.models import (
    DEFAULT_TRUST,
    PREFERENCE,
    STRENGTHEN,
    TIME_BASED,
    Entity,
    Metadata,
    utcnow,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from brain.models import UserProfile


@dataclass(frozen=True)
class PatternRule:
    """keyword set → importance pattern + starting resonance."""

    pattern: str
    resonance: float
    keywords: tuple[str, ...]
    type_keywords: tuple[str, ...] = ()
    user_preference: bool = False

    def matches(self, entity: Entity) -> bool:
        content = entity.content()
        if any(k in content for k in self.keywords):
            return True
        entity_type = entity.entity_type.lower()
        return any(t in entity_type for t in self.type_keywords)


PATTERN_RULES: tuple[PatternRule, ...] = (
    PatternRule(
        pattern=PREFERENCE,
        resonance=0.9,
        keywords=(
            "uses zsh", "uses bash", "prefers", "likes", "dislikes",
            "working style", "communication style", "needs", "requires",
        ),
        user_preference=True,
    ),
    PatternRule(
        pattern=STRENGTHEN,
        resonance=0.7,
        keywords=(
            "bond", "relationship", "collaboration", "team", "partnership",
            "trust", "working together", "connection", "rapport",
        ),
        type_keywords=("relationship", "bond", "collaboration", "team", "partnership"),
    ),
)
FALLBACK_PATTERN = TIME_BASED
FALLBACK_RESONANCE = 0.5

ACCESSIBILITY_KEYWORDS: tuple[str, ...] = (
    "screen reader", "vision impaired", "slow pace", "accessibility",
    "visual impairment", "hearing", "motor", "cognitive", "disability",
)


def classify(entity: Entity) -> PatternRule | None:
    """Return the first importance rule matching entity, or None for the fallback."""
    for rule in PATTERN_RULES:
        if rule.matches(entity):
            return rule
    return None


def is_accessibility_related(entity: Entity) -> bool:
    content = entity.content()
    return any(k in content for k in ACCESSIBILITY_KEYWORDS)


def default_metadata(entity: Entity, now: datetime | None = None) -> Metadata:
    stamp = (now or utcnow()).isoformat()
    rule = classify(entity)
    return Metadata(
        trust=DEFAULT_TRUST,
        importance_pattern=rule.pattern if rule else FALLBACK_PATTERN,
        resonance=rule.resonance if rule else FALLBACK_RESONANCE,
        is_user_preference=rule.user_preference if rule else False,
        accessibility_flag=is_accessibility_related(entity),
        created_at=stamp,
        last_updated=stamp,
    )


# ---------------------------------------------------------------------------
# Profile inference
# ---------------------------------------------------------------------------

# First token found in an entity sets the shell; later entities overwrite.
SHELL_RULES: tuple[tuple[str, str], ...] = (
    ("zsh", "zsh"),
    ("bash", "bash"),
    ("fish", "fish"),
    ("powershell", "powershell"),
)

ACCESSIBILITY_TAG_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("screen reader", "vision impaired"), "screen-reader"),
    (("slow pace", "patient"), "slow-pace"),
)

COMMUNICATION_TAG_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("detailed", "thorough"), "detailed"),
    (("concise", "brief"), "concise"),
)


def update_profile(profile: UserProfile, entities: Iterable[Entity]) -> None:
    """Accumulate traits from newly created entities into profile, in order."""
    for entity in entities:
        content = entity.content(include_type=False)

        for token, shell in SHELL_RULES:
            if token in content:
                profile.preferred_shell = shell
                break

        for tokens, tag in ACCESSIBILITY_TAG_RULES:
            if any(t in content for t in tokens):
                profile.add_accessibility_need(tag)

        for tokens, tag in COMMUNICATION_TAG_RULES:
            if any(t in content for t in tokens):
                profile.add_communication_pref(tag)
