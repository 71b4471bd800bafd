"""Bootstrap: the seed graph used when no memory file exists yet.

Observation text comes from bundled locale files in src/brain/locales/<tag>.md:
    ---
    language: en
    ---
    ## AI_Assistant_Identity
    - bullet text
    ## User_Profile
    - bullet text
"""

from __future__ import annotations

import logging
import re
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING

from brain.models import (
    SELF_MANAGED,
    STRENGTHEN,
    Entity,
    GraphMetadata,
    KnowledgeGraph,
    Metadata,
    Relation,
    utcnow,
)

if TYPE_CHECKING:
    from datetime import datetime

logger = logging.getLogger("brain.bootstrap")

DEFAULT_LANGUAGE = "en"
IDENTITY_ENTITY = "AI_Assistant_Identity"
PROFILE_ENTITY = "User_Profile"

_FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*\n", re.DOTALL)
_SECTION_RE = re.compile(r"^##\s+(\S+)\s*$")
_BULLET_RE = re.compile(r"^\s*-\s+(.+)$")


def _parse_locale(text: str) -> dict[str, list[str]]:
    """Parse a locale file → {section: [bullets]}. Frontmatter is skipped."""
    sections: dict[str, list[str]] = {}

    m = _FRONTMATTER_RE.match(text)
    body = text[m.end():] if m else text

    current: list[str] | None = None
    for line in body.splitlines():
        sm = _SECTION_RE.match(line)
        if sm:
            current = sections.setdefault(sm.group(1), [])
            continue
        bm = _BULLET_RE.match(line)
        if bm and current is not None:
            current.append(bm.group(1).strip())

    return sections


def _locales_dir() -> Path:
    """Return path to bundled locales directory."""
    try:
        ref = resources.files("brain") / "locales"
        return Path(str(ref))
    except Exception:
        return Path(__file__).parent / "locales"


def available_languages() -> list[str]:
    locales = _locales_dir()
    if not locales.exists():
        return []
    return sorted(p.stem for p in locales.glob("*.md"))


def load_locale(language: str) -> dict[str, list[str]]:
    """Observation text per seed entity, falling back to the default language."""
    locales = _locales_dir()
    path = locales / f"{language}.md"
    if not path.exists():
        logger.debug("no bootstrap locale %r, using %r", language, DEFAULT_LANGUAGE)
        path = locales / f"{DEFAULT_LANGUAGE}.md"
    return _parse_locale(path.read_text(encoding="utf-8"))


def bootstrap_graph(language: str = DEFAULT_LANGUAGE, now: datetime | None = None) -> KnowledgeGraph:
    """Build the seed graph: assistant identity + user profile, linked."""
    now = now or utcnow()
    stamp = now.isoformat()
    content = load_locale(language)

    identity = Entity(
        name=IDENTITY_ENTITY,
        entity_type="core_identity",
        observations=content.get(IDENTITY_ENTITY, []),
        metadata=Metadata(
            trust=0.8,
            importance_pattern=SELF_MANAGED,
            resonance=0.95,
            created_at=stamp,
            last_updated=stamp,
        ),
    )
    profile = Entity(
        name=PROFILE_ENTITY,
        entity_type="user_profile",
        observations=content.get(PROFILE_ENTITY, []),
        metadata=Metadata(
            trust=0.6,
            importance_pattern=STRENGTHEN,
            resonance=0.8,
            is_user_preference=True,
            created_at=stamp,
            last_updated=stamp,
        ),
    )
    logger.info("synthesised bootstrap graph (language=%s)", language)
    return KnowledgeGraph(
        entities=[identity, profile],
        relations=[Relation(IDENTITY_ENTITY, PROFILE_ENTITY, "serves_and_adapts_to", strength=0.9)],
        metadata=GraphMetadata.fresh(now, language=language),
    )
