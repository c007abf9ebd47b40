"""Cypher statement builder for snapshot persistence.

Every statement the snapshot writer sends is built here. Labels and
relationship types cannot be query parameters in Cypher, so they are taken
only from the NodeLabel/RelType enums and backtick-quoted. Property values
are sent as parameters by default; the literal mode renders them inline with
``escape_literal`` applied to every string.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from core.model import Edge, Node, NodeLabel, RelType

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Natural-key and id fields indexed per label for endpoint lookups.
INDEX_FIELDS: dict[NodeLabel, tuple[str, ...]] = {
    NodeLabel.PROGRAM: ("name", "uuid"),
    NodeLabel.PACKAGE: ("name", "path", "uuid"),
    NodeLabel.FILE: ("name", "path", "pkg", "uuid"),
    NodeLabel.GLOBAL: ("name", "file", "pkg", "uuid"),
    NodeLabel.CONST: ("name", "file", "pkg", "uuid"),
    NodeLabel.FUNCTION: ("name", "file", "pkg", "uuid"),
    NodeLabel.TYPE: ("name", "file", "pkg", "uuid"),
}


@dataclass(frozen=True)
class CypherStatement:
    query: str
    parameters: dict[str, Any] = field(default_factory=dict)


def escape_literal(raw: str) -> str:
    """Escape a string for use inside a single- or double-quoted Cypher literal.

    Backslashes are doubled first so the escapes added for quotes are not
    themselves re-escaped.
    """

    escaped = raw.replace("\\", "\\\\")
    escaped = escaped.replace("'", "\\'")
    escaped = escaped.replace('"', '\\"')
    return escaped


def render_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(render_value(v) for v in value) + "]"
    if value is None:
        return "null"
    return f"'{escape_literal(str(value))}'"


def render_properties(properties: Mapping[str, Any]) -> str:
    """Render ``{key:'value', ...}`` in mapping order."""

    parts = []
    for key, value in properties.items():
        parts.append(f"{_identifier(key)}:{render_value(value)}")
    return "{" + ",".join(parts) + "}"


def _identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid Cypher identifier: {name!r}")
    return name


def _label(label: NodeLabel) -> str:
    return f"`{NodeLabel(label).value}`"


def _rel(kind: RelType) -> str:
    return f"`{RelType(kind).value}`"


def build_index_statement(label: NodeLabel, field_name: str) -> CypherStatement:
    label = NodeLabel(label)
    prop = _identifier(field_name)
    name = f"{label.value.lower()}_{prop}_index"
    return CypherStatement(f"CREATE INDEX {name} IF NOT EXISTS FOR (n:{_label(label)}) ON (n.{prop})")


def index_targets() -> Iterator[tuple[NodeLabel, str]]:
    for label, fields in INDEX_FIELDS.items():
        for f in fields:
            yield label, f


class CypherBuilder:
    """Builds the delete/create statements of one snapshot write."""

    def __init__(self, parameterized: bool = True) -> None:
        self.parameterized = parameterized

    def delete_snapshot(self, program_name: str) -> CypherStatement:
        """Detach-delete every Program root with this name and all that belongs to it."""

        head = "MATCH (p:`Program` {name: %s}) OPTIONAL MATCH (p)-[:`Belong`]->(n) DETACH DELETE n, p"
        if self.parameterized:
            return CypherStatement(head % "$program_name", {"program_name": program_name})
        return CypherStatement(head % render_value(program_name))

    def create_node(self, node: Node) -> CypherStatement:
        if self.parameterized:
            return CypherStatement(f"CREATE (n:{_label(node.label)} $props)", {"props": node.properties()})
        return CypherStatement(f"CREATE (n:{_label(node.label)} {render_properties(node.properties())})")

    def create_edge(self, edge: Edge) -> CypherStatement:
        """Match both endpoints by uuid and create the relationship.

        Returns ``created``: 0 when an endpoint is missing from the store.
        """

        pattern = (
            "MATCH (a:{fl} {{uuid: {fid}}}), (b:{tl} {{uuid: {tid}}}) "
            "CREATE (a)-[r:{rel}]->(b) RETURN count(r) AS created"
        )
        fmt = {"fl": _label(edge.from_label), "tl": _label(edge.to_label), "rel": _rel(edge.kind)}
        if self.parameterized:
            return CypherStatement(
                pattern.format(fid="$from_id", tid="$to_id", **fmt),
                {"from_id": edge.from_id, "to_id": edge.to_id},
            )
        return CypherStatement(
            pattern.format(fid=render_value(edge.from_id), tid=render_value(edge.to_id), **fmt)
        )
