"""Stdio MCP server for the memory graph.

Tools:
    create_entities(entities)        → inserted entities (JSON)
    create_relations(relations)      → inserted relations (JSON)
    add_observations(observations)   → [{entityName, addedObservations}] (JSON)
    delete_entities(entityNames)     → confirmation text
    delete_observations(deletions)   → confirmation text
    delete_relations(relations)      → confirmation text
    read_graph()                     → whole graph (JSON)
    search_nodes(query)              → ranked entities + relations among them (JSON)
    open_nodes(names)                → named entities + relations among them (JSON)
    get_user_profile()               → profile + recommendations (JSON)

Errors never end the session: each is rendered as text with isError=true.

Protocol: JSON-RPC 2.0 over stdin/stdout (Model Context Protocol). Logs go to stderr.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import TYPE_CHECKING, Any

from brain import __version__
from brain.errors import BrainError, ScoringError, StorageError, UserPreferenceError

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from brain.manager import KnowledgeGraphManager

logger = logging.getLogger("brain.mcp")

_SERVER_NAME = "ai-brain"
_PROTOCOL_VERSION = "2024-11-05"

_ENTITY_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "The name of the entity"},
        "entityType": {"type": "string", "description": "The type of the entity"},
        "observations": {
            "type": "array",
            "items": {"type": "string"},
            "description": "An array of observation contents associated with the entity",
        },
    },
    "required": ["name", "entityType", "observations"],
}

_RELATION_SCHEMA = {
    "type": "object",
    "properties": {
        "from": {"type": "string", "description": "The name of the entity where the relation starts"},
        "to": {"type": "string", "description": "The name of the entity where the relation ends"},
        "relationType": {"type": "string", "description": "The type of the relation"},
    },
    "required": ["from", "to", "relationType"],
}


def _tool_defs() -> list[dict[str, Any]]:
    return [
        {
            "name": "create_entities",
            "description": "Create multiple new entities in the knowledge graph. Existing names are skipped.",
            "inputSchema": {
                "type": "object",
                "properties": {"entities": {"type": "array", "items": _ENTITY_SCHEMA}},
                "required": ["entities"],
            },
        },
        {
            "name": "create_relations",
            "description": "Create multiple new relations between entities. Relations should be in active voice.",
            "inputSchema": {
                "type": "object",
                "properties": {"relations": {"type": "array", "items": _RELATION_SCHEMA}},
                "required": ["relations"],
            },
        },
        {
            "name": "add_observations",
            "description": "Add new observations to existing entities. Each new observation builds trust.",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "observations": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "entityName": {"type": "string"},
                                "contents": {"type": "array", "items": {"type": "string"}},
                            },
                            "required": ["entityName", "contents"],
                        },
                    },
                },
                "required": ["observations"],
            },
        },
        {
            "name": "delete_entities",
            "description": "Delete entities and their relations (warns when user preferences are deleted).",
            "inputSchema": {
                "type": "object",
                "properties": {"entityNames": {"type": "array", "items": {"type": "string"}}},
                "required": ["entityNames"],
            },
        },
        {
            "name": "delete_observations",
            "description": "Delete specific observations from entities.",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "deletions": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "entityName": {"type": "string"},
                                "observations": {"type": "array", "items": {"type": "string"}},
                            },
                            "required": ["entityName", "observations"],
                        },
                    },
                },
                "required": ["deletions"],
            },
        },
        {
            "name": "delete_relations",
            "description": "Delete multiple relations from the knowledge graph.",
            "inputSchema": {
                "type": "object",
                "properties": {"relations": {"type": "array", "items": _RELATION_SCHEMA}},
                "required": ["relations"],
            },
        },
        {
            "name": "read_graph",
            "description": "Read the entire knowledge graph with its metadata.",
            "inputSchema": {"type": "object", "properties": {}},
        },
        {
            "name": "search_nodes",
            "description": (
                "Search entities by name, type and observations. Preferences and "
                "accessibility needs rank higher."
            ),
            "inputSchema": {
                "type": "object",
                "properties": {"query": {"type": "string"}},
                "required": ["query"],
            },
        },
        {
            "name": "open_nodes",
            "description": "Open specific nodes by name and record the access.",
            "inputSchema": {
                "type": "object",
                "properties": {"names": {"type": "array", "items": {"type": "string"}}},
                "required": ["names"],
            },
        },
        {
            "name": "get_user_profile",
            "description": "Get the current user profile and personalised recommendations.",
            "inputSchema": {"type": "object", "properties": {}},
        },
    ]


def _dump(obj: Any) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


_JSON_TYPES: dict[str, type] = {"string": str, "array": list, "object": dict}


def _check_value(tool: str, where: str, value: Any, schema: dict[str, Any]) -> None:
    """Raise ValueError unless value matches the (string/array/object) schema."""
    expected = schema.get("type")
    kind = _JSON_TYPES.get(expected or "")
    if kind is not None and not isinstance(value, kind):
        article = "an" if expected in ("array", "object") else "a"
        msg = f"Invalid argument for {tool}: {where} must be {article} {expected}"
        raise ValueError(msg)
    if expected == "array":
        for i, item in enumerate(value):
            _check_value(tool, f"{where}[{i}]", item, schema.get("items", {}))
    elif expected == "object":
        missing = [k for k in schema.get("required", []) if k not in value]
        if missing:
            msg = f"Invalid argument for {tool}: {where} is missing {', '.join(missing)}"
            raise ValueError(msg)
        for key, prop in schema.get("properties", {}).items():
            if key in value:
                _check_value(tool, f"{where}.{key}", value[key], prop)


def render_error(exc: Exception) -> str:
    """Human-readable text for a failed tool call."""
    if isinstance(exc, UserPreferenceError):
        return f"User Preference Error: {exc}"
    if isinstance(exc, ScoringError):
        return f"Emotional Processing Error: {exc}"
    if isinstance(exc, StorageError):
        return f"Storage Error: {exc}"
    return f"Error: {exc}"


class BrainServer:
    def __init__(self, config_root: Path | None = None, manager: KnowledgeGraphManager | None = None) -> None:
        if manager is None:
            from brain.config import load_config
            from brain.manager import KnowledgeGraphManager
            cfg = load_config(config_root)
            cfg.ensure_dirs()
            manager = KnowledgeGraphManager.from_config(cfg)
        self._manager = manager
        self._schemas = {t["name"]: t["inputSchema"] for t in _tool_defs()}

    def _call_create_entities(self, args: dict[str, Any]) -> str:
        created = self._manager.create_entities(args["entities"])
        return _dump([e.to_dict() for e in created])

    def _call_create_relations(self, args: dict[str, Any]) -> str:
        created = self._manager.create_relations(args["relations"])
        return _dump([r.to_dict() for r in created])

    def _call_add_observations(self, args: dict[str, Any]) -> str:
        results = self._manager.add_observations(args["observations"])
        return _dump([r.to_dict() for r in results])

    def _call_delete_entities(self, args: dict[str, Any]) -> str:
        result = self._manager.delete_entities(args["entityNames"])
        text = "Entities deleted successfully"
        if result.preferences_deleted:
            text += f" (warning: deleted user preferences: {', '.join(result.preferences_deleted)})"
        return text

    def _call_delete_observations(self, args: dict[str, Any]) -> str:
        self._manager.delete_observations(args["deletions"])
        return "Observations deleted successfully"

    def _call_delete_relations(self, args: dict[str, Any]) -> str:
        self._manager.delete_relations(args["relations"])
        return "Relations deleted successfully"

    def _call_read_graph(self, args: dict[str, Any]) -> str:
        return _dump(self._manager.read_graph().to_dict())

    def _call_search_nodes(self, args: dict[str, Any]) -> str:
        return _dump(self._manager.search_nodes(str(args["query"])).to_dict())

    def _call_open_nodes(self, args: dict[str, Any]) -> str:
        return _dump(self._manager.open_nodes(args["names"]).to_dict())

    def _call_get_user_profile(self, args: dict[str, Any]) -> str:
        return _dump(self._manager.get_user_profile())

    def _check_arguments(self, name: str, arguments: Any) -> dict[str, Any]:
        if not isinstance(arguments, dict):
            msg = f"Arguments for {name} must be an object"
            raise ValueError(msg)
        schema = self._schemas[name]
        missing = [k for k in schema.get("required", []) if k not in arguments]
        if missing:
            msg = f"Missing required argument(s) for {name}: {', '.join(missing)}"
            raise ValueError(msg)
        for key, prop in schema.get("properties", {}).items():
            if key in arguments:
                _check_value(name, key, arguments[key], prop)
        return arguments

    def call_tool(self, name: str, arguments: Any) -> str:
        dispatch: dict[str, Callable[[dict[str, Any]], str]] = {
            "create_entities": self._call_create_entities,
            "create_relations": self._call_create_relations,
            "add_observations": self._call_add_observations,
            "delete_entities": self._call_delete_entities,
            "delete_observations": self._call_delete_observations,
            "delete_relations": self._call_delete_relations,
            "read_graph": self._call_read_graph,
            "search_nodes": self._call_search_nodes,
            "open_nodes": self._call_open_nodes,
            "get_user_profile": self._call_get_user_profile,
        }
        if name not in dispatch:
            msg = f"Unknown tool: {name}"
            raise ValueError(msg)
        return dispatch[name](self._check_arguments(name, arguments))


def handle_message(server: BrainServer, msg: dict[str, Any]) -> dict[str, Any] | None:
    """Answer one JSON-RPC message. Returns None for notifications."""
    method = msg.get("method", "")
    msg_id = msg.get("id")

    if method == "initialize":
        return {
            "jsonrpc": "2.0",
            "id": msg_id,
            "result": {
                "protocolVersion": _PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": _SERVER_NAME, "version": __version__},
            },
        }

    if method == "notifications/initialized":
        return None  # no response for notifications

    if method == "tools/list":
        return {"jsonrpc": "2.0", "id": msg_id, "result": {"tools": _tool_defs()}}

    if method == "tools/call":
        params = msg.get("params", {})
        tool_name = params.get("name", "")
        arguments = params.get("arguments", {})
        try:
            text = server.call_tool(tool_name, arguments)
            is_error = False
        except (BrainError, ValueError, KeyError, TypeError) as exc:
            logger.debug("tool %s failed: %s", tool_name, exc)
            text, is_error = render_error(exc), True
        except Exception as exc:
            logger.exception("Unexpected error in tool %s", tool_name)
            text, is_error = f"Unexpected error: {exc}", True
        return {
            "jsonrpc": "2.0",
            "id": msg_id,
            "result": {"content": [{"type": "text", "text": text}], "isError": is_error},
        }

    if msg_id is not None:
        return {
            "jsonrpc": "2.0",
            "id": msg_id,
            "error": {"code": -32601, "message": f"Method not found: {method}"},
        }
    return None


async def _run_server(config_root: Path | None = None) -> None:
    server = BrainServer(config_root)
    reader = asyncio.StreamReader()
    loop = asyncio.get_event_loop()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)

    writer_transport, _ = await loop.connect_write_pipe(
        asyncio.BaseProtocol, sys.stdout.buffer
    )

    def write_json(obj: Any) -> None:
        line = json.dumps(obj) + "\n"
        writer_transport.write(line.encode())

    logger.info("%s %s ready on stdio", _SERVER_NAME, __version__)
    while True:
        try:
            line = await reader.readline()
        except (asyncio.IncompleteReadError, EOFError):
            break
        if not line:
            break
        try:
            msg = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("ignoring non-JSON input line")
            continue
        if not isinstance(msg, dict):
            continue

        response = handle_message(server, msg)
        if response is not None:
            write_json(response)


def run_server(config_root: Path | None = None) -> None:
    """Entry point for `brain serve`."""
    asyncio.run(_run_server(config_root))
