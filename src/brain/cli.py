"""brain CLI: memory graph with emotional metadata.

Commands:
    brain init                 create brain.toml + .brain/ dir
    brain serve                start stdio MCP server
    brain search QUERY         ranked search
    brain show NAME...         open entities (records the access)
    brain add NAME TEXT...     add observations to an entity
    brain profile              inferred user profile + recommendations
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from brain import __version__
from brain.config import BrainConfig, init_config, load_config
from brain.errors import BrainError
from brain.manager import KnowledgeGraphManager
from brain.mcp import run_server

_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_cfg(root: str | None = None) -> BrainConfig:
    try:
        return load_config(root)
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc


def _manager(cfg: BrainConfig) -> KnowledgeGraphManager:
    return KnowledgeGraphManager.from_config(cfg)


def _fmt_scores(meta_line: str, resonance: float, trust: float) -> str:
    return f"{meta_line}  ♥{resonance:.2f} ✓{trust:.2f}"


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="brain")
def cli() -> None:
    """brain: memory graph that learns what matters."""


# ---------------------------------------------------------------------------
# brain init
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--dir", "root", default=".", show_default=True, help="Project root")
@click.option("--language", "-L", default="en", show_default=True, help="Locale for the bootstrap graph")
def init(root: str, language: str) -> None:
    """Create brain.toml and the .brain/ directory in the current project."""
    root_path = Path(root).resolve()
    try:
        config_path = init_config(root_path, language=language)
        click.echo(f"Created {config_path}")
    except FileExistsError:
        click.echo("brain.toml already exists, skipping init")

    cfg = load_config(root_path)
    cfg.ensure_dirs()
    click.echo(f"Memory file : {cfg.memory_path}")


# ---------------------------------------------------------------------------
# brain serve
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--root", default=None, help="Override project root (default: auto-detect from cwd)")
@click.option("--debug", is_flag=True, default=False, help="Log at DEBUG level (stderr)")
def serve(root: str | None, debug: bool) -> None:
    """Start stdio MCP server (connect via your MCP client config)."""
    cfg = _load_cfg(root)
    logging.basicConfig(level=logging.DEBUG if debug or cfg.debug else logging.INFO, format=_LOG_FORMAT)
    try:
        cfg.ensure_dirs()
    except OSError as exc:
        raise click.ClickException(f"Cannot create {cfg.memory_path.parent}: {exc}") from exc
    run_server(cfg.root)


# ---------------------------------------------------------------------------
# brain search / show / add
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("query")
@click.option("--limit", "-l", default=10, show_default=True, help="Max entities (0 = all)")
def search(query: str, limit: int) -> None:
    """Ranked search over entity names, types and observations."""
    cfg = _load_cfg()
    try:
        result = _manager(cfg).search_nodes(query)
    except BrainError as exc:
        raise click.ClickException(str(exc)) from exc

    entities = result.entities if limit == 0 else result.entities[:limit]
    if not entities:
        click.echo("(no results)")
        return
    for entity in entities:
        score = result.scores.get(entity.name, 0.0)
        line = f"{score:6.2f}  [{entity.name}] {entity.entity_type}"
        if entity.metadata is not None:
            line = _fmt_scores(line, entity.metadata.resonance, entity.metadata.trust)
        click.echo(line)


@cli.command()
@click.argument("names", nargs=-1, required=True)
def show(names: tuple[str, ...]) -> None:
    """Show entities with their observations and relations."""
    cfg = _load_cfg()
    try:
        view = _manager(cfg).open_nodes(names)
    except BrainError as exc:
        raise click.ClickException(str(exc)) from exc

    missing = [n for n in names if view.get(n) is None]
    for entity in view.entities:
        header = f"# {entity.name}  type={entity.entity_type}"
        meta = entity.metadata
        if meta is not None:
            header = _fmt_scores(header, meta.resonance, meta.trust) + f"  {meta.importance_pattern}"
            if meta.is_user_preference:
                header += "  ★preference"
            if meta.accessibility_flag:
                header += "  ♿"
        click.echo(header)
        for obs in entity.observations:
            click.echo(f"- {obs}")
    for rel in view.relations:
        click.echo(f"[{rel.source}] -{rel.relation_type}-> [{rel.target}]")
    if missing:
        raise click.ClickException(f"Entity not found: {', '.join(missing)}")


@cli.command()
@click.argument("name")
@click.argument("texts", nargs=-1, required=True)
def add(name: str, texts: tuple[str, ...]) -> None:
    """Add observations to an existing entity."""
    cfg = _load_cfg()
    try:
        results = _manager(cfg).add_observations([{"entityName": name, "contents": list(texts)}])
    except BrainError as exc:
        raise click.ClickException(str(exc)) from exc
    added = results[0].contents
    click.echo(f"Added {len(added)} observation(s) to {name}")


# ---------------------------------------------------------------------------
# brain profile
# ---------------------------------------------------------------------------


@cli.command()
def profile() -> None:
    """Show the inferred user profile and recommendations."""
    cfg = _load_cfg()
    try:
        report = _manager(cfg).get_user_profile()
    except BrainError as exc:
        raise click.ClickException(str(exc)) from exc

    prof = report["profile"]
    click.echo(f"Shell         : {prof['preferredShell']}")
    click.echo(f"Working style : {prof['workingStyle']}")
    click.echo(f"Accessibility : {', '.join(prof['accessibilityNeeds']) or '-'}")
    click.echo(f"Communication : {', '.join(prof['communicationPrefs']) or '-'}")
    click.echo(f"Trust level   : {prof['trustLevel']:.2f}")
    for rec in report["recommendations"]:
        click.echo(f"↳ ({rec['type']}) {rec['message']}")