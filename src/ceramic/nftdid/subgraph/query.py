"""Render nested dicts as GraphQL query documents.

Query shapes are written as plain dicts, the way subgraph queries are usually
sketched out:

    {
        "tokens": {
            "__args": {"where": {"id": "0xabc-0x1"}, "first": 1},
            "owner": {"id": True},
        }
    }

renders as ``query { tokens (where: {id: "0xabc-0x1"}, first: 1) { owner { id } } }``.
Arguments whose value is None are left out.
"""

import json
from typing import Any, Dict, List

ARGS_KEY = "__args"


class GraphEnum(str):
    """A GraphQL enum literal, rendered without quotes."""


def render_value(value: Any) -> str:
    if isinstance(value, GraphEnum):
        return str(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, dict):
        inner = ", ".join(
            f"{key}: {render_value(item)}"
            for key, item in value.items()
            if item is not None
        )
        return "{" + inner + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(render_value(item) for item in value) + "]"
    raise TypeError(f"Cannot render {type(value).__name__} as a GraphQL value")


def render_arguments(args: Dict[str, Any]) -> str:
    rendered = [
        f"{key}: {render_value(value)}" for key, value in args.items() if value is not None
    ]
    if len(rendered) == 0:
        return ""
    return " (" + ", ".join(rendered) + ")"


def render_selection(fields: Dict[str, Any]) -> str:
    parts: List[str] = []
    for name, selection in fields.items():
        if name == ARGS_KEY:
            continue
        if selection is True:
            parts.append(name)
        elif isinstance(selection, dict):
            args = render_arguments(selection.get(ARGS_KEY, {}))
            parts.append(f"{name}{args} {render_selection(selection)}")
    return "{ " + " ".join(parts) + " }"


def render_query(fields: Dict[str, Any]) -> str:
    """Render a query dict as a GraphQL ``query`` operation."""
    return f"query {render_selection(fields)}"
