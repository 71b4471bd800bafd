"""Tests for brain.toml / .env / environment configuration."""

import pytest

from brain.config import init_config, load_config


def test_defaults(tmp_path):
    cfg = load_config(tmp_path)
    assert cfg.root == tmp_path
    assert cfg.memory_path == tmp_path / ".brain" / "memory.jsonl"
    assert cfg.language == "en"
    assert cfg.debug is False
    assert cfg.decay.min_interval_hours == 1.0
    assert cfg.decay.reference_window_hours == 168.0
    assert cfg.search.name_weight == 10.0
    assert cfg.search.accessibility_bonus == 3.0


def test_toml_values(tmp_path):
    (tmp_path / "brain.toml").write_text(
        '[brain]\nmemory_path = "data/m.jsonl"\nlanguage = "de"\ndebug = true\n'
        "[decay]\nresonance_floor = 0.2\n"
        "[search]\nname_weight = 20\n"
    )
    cfg = load_config(tmp_path)
    assert cfg.memory_path == tmp_path / "data" / "m.jsonl"
    assert cfg.language == "de"
    assert cfg.debug is True
    assert cfg.decay.resonance_floor == 0.2
    assert cfg.search.name_weight == 20.0
    assert cfg.search.type_weight == 5.0


def test_root_found_by_walking_up(tmp_path):
    (tmp_path / "brain.toml").write_text('[brain]\nlanguage = "de"\n')
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    cfg = load_config(nested)
    assert cfg.root == tmp_path
    assert cfg.language == "de"


def test_dotenv_overrides_toml(tmp_path):
    (tmp_path / "brain.toml").write_text('[brain]\nlanguage = "de"\n')
    (tmp_path / ".env").write_text('# comment\nAI_BRAIN_LANGUAGE="fr"\nAI_BRAIN_DEBUG=yes\n')
    cfg = load_config(tmp_path)
    assert cfg.language == "fr"
    assert cfg.debug is True


def test_environment_overrides_dotenv(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("AI_BRAIN_LANGUAGE=fr\n")
    monkeypatch.setenv("AI_BRAIN_LANGUAGE", "it")
    monkeypatch.setenv("AI_BRAIN_DEBUG", "0")
    cfg = load_config(tmp_path)
    assert cfg.language == "it"
    assert cfg.debug is False


def test_memory_path_override(tmp_path, monkeypatch):
    absolute = tmp_path / "elsewhere" / "mem.jsonl"
    monkeypatch.setenv("AI_BRAIN_MEMORY_PATH", str(absolute))
    assert load_config(tmp_path).memory_path == absolute
    monkeypatch.setenv("AI_BRAIN_MEMORY_PATH", "rel/mem.jsonl")
    assert load_config(tmp_path).memory_path == tmp_path / "rel" / "mem.jsonl"


def test_init_config(tmp_path):
    path = init_config(tmp_path, language="de")
    assert load_config(tmp_path).language == "de"
    with pytest.raises(FileExistsError):
        init_config(tmp_path)
    assert path.name == "brain.toml"


def test_ensure_dirs(tmp_path):
    cfg = load_config(tmp_path)
    cfg.ensure_dirs()
    assert cfg.memory_path.parent.is_dir()
