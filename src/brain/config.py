"""BrainConfig: project-local config for the memory graph.

Default layout (all relative to the project root):

    brain.toml            # project config (optional)
    .env                  # optional: AI_BRAIN_MEMORY_PATH, AI_BRAIN_LANGUAGE, AI_BRAIN_DEBUG
    .brain/
        memory.jsonl      # the graph

brain.toml example:

    [brain]
    memory_path = ".brain/memory.jsonl"
    language = "en"
    debug = false

    [decay]
    min_interval_hours = 1.0
    reference_window_hours = 168.0
    resonance_floor = 0.1

    [search]
    name_weight = 10.0
    type_weight = 5.0
    observation_weight = 3.0
    resonance_weight = 2.0
    trust_weight = 2.0
    preference_bonus = 5.0
    accessibility_bonus = 3.0

Precedence: process environment > .env > brain.toml > defaults.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_CONFIG_FILENAME = "brain.toml"
_DEFAULT_MEMORY_PATH = ".brain/memory.jsonl"
_DEFAULT_LANGUAGE = "en"

ENV_MEMORY_PATH = "AI_BRAIN_MEMORY_PATH"
ENV_LANGUAGE = "AI_BRAIN_LANGUAGE"
ENV_DEBUG = "AI_BRAIN_DEBUG"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class DecayConfig:
    min_interval_hours: float = 1.0
    reference_window_hours: float = 168.0   # one week
    resonance_floor: float = 0.1


@dataclass
class SearchConfig:
    name_weight: float = 10.0
    type_weight: float = 5.0
    observation_weight: float = 3.0
    resonance_weight: float = 2.0
    trust_weight: float = 2.0
    preference_bonus: float = 5.0
    accessibility_bonus: float = 3.0


@dataclass
class BrainConfig:
    """Resolved configuration for a memory graph."""

    root: Path                      # directory that contains brain.toml
    memory_path: Path = field(default_factory=Path)
    language: str = _DEFAULT_LANGUAGE
    debug: bool = False
    decay: DecayConfig = field(default_factory=DecayConfig)
    search: SearchConfig = field(default_factory=SearchConfig)

    def ensure_dirs(self) -> None:
        """Create the directory holding the memory file."""
        self.memory_path.parent.mkdir(parents=True, exist_ok=True)


def _load_env(root: Path) -> dict[str, str]:
    """Parse a simple KEY=VALUE .env file (no external dependency)."""
    env_file = root / ".env"
    if not env_file.exists():
        return {}
    env: dict[str, str] = {}
    for line in env_file.read_text().splitlines():
        line = line.strip()
        if line and not line.startswith("#") and "=" in line:
            k, _, v = line.partition("=")
            env[k.strip()] = v.strip().strip('"').strip("'")
    return env


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def load_config(root: Path | str | None = None) -> BrainConfig:
    """Load brain.toml from root (or search upward from cwd if root is None)."""
    root_path = _find_root(Path(root) if root else Path.cwd())
    config_path = root_path / _CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.exists():
        with config_path.open("rb") as f:
            raw = tomllib.load(f)

    env = {**_load_env(root_path), **{k: v for k, v in os.environ.items() if k.startswith("AI_BRAIN_")}}

    brain_section = raw.get("brain", {})
    decay_section = raw.get("decay", {})
    search_section = raw.get("search", {})

    memory = Path(env.get(ENV_MEMORY_PATH) or brain_section.get("memory_path", _DEFAULT_MEMORY_PATH))
    if not memory.is_absolute():
        memory = root_path / memory

    defaults = SearchConfig()
    return BrainConfig(
        root=root_path,
        memory_path=memory,
        language=env.get(ENV_LANGUAGE) or str(brain_section.get("language", _DEFAULT_LANGUAGE)),
        debug=_as_bool(env[ENV_DEBUG]) if ENV_DEBUG in env else _as_bool(brain_section.get("debug", False)),
        decay=DecayConfig(
            min_interval_hours=float(decay_section.get("min_interval_hours", 1.0)),
            reference_window_hours=float(decay_section.get("reference_window_hours", 168.0)),
            resonance_floor=float(decay_section.get("resonance_floor", 0.1)),
        ),
        search=SearchConfig(**{
            name: float(search_section.get(name, getattr(defaults, name)))
            for name in SearchConfig.__dataclass_fields__
        }),
    )


def _find_root(start: Path) -> Path:
    """Walk upward from start looking for brain.toml."""
    for directory in (start, *start.parents):
        if (directory / _CONFIG_FILENAME).exists():
            return directory
    return start


def init_config(root: Path, language: str = _DEFAULT_LANGUAGE) -> Path:
    """Write a default brain.toml at root. Raises if already exists."""
    config_path = root / _CONFIG_FILENAME
    if config_path.exists():
        msg = f"brain.toml already exists at {config_path}"
        raise FileExistsError(msg)

    content = f"""\
[brain]
# memory_path = ".brain/memory.jsonl"   # default; or set AI_BRAIN_MEMORY_PATH
language = "{language}"                  # bootstrap content locale; or AI_BRAIN_LANGUAGE
# debug = false                         # or AI_BRAIN_DEBUG=1

# [decay]
# min_interval_hours = 1.0        # decay passes run at most this often
# reference_window_hours = 168.0  # time-based resonance halves (at decayRate 0.5) per window
# resonance_floor = 0.1

# [search]
# name_weight = 10.0
# type_weight = 5.0
# observation_weight = 3.0
# resonance_weight = 2.0
# trust_weight = 2.0
# preference_bonus = 5.0
# accessibility_bonus = 3.0
"""
    config_path.write_text(content)
    return config_path
