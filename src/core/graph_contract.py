"""Graph contract validation.

Checks the snapshot invariants before anything is written to Neo4j.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass

from core.model import Element, Graph, NodeLabel, RelType


@dataclass(frozen=True)
class GraphContractViolation(Exception):
    message: str

    def __str__(self) -> str:  # pragma: no cover
        return self.message


def validate_graph_contract(graph: Graph) -> None:
    node_ids = [n.id for n in graph.nodes]
    dupes = [i for i, c in Counter(node_ids).items() if c > 1]
    if dupes:
        raise GraphContractViolation(f"Duplicate node id detected: {dupes[0]}")

    known = set(node_ids)
    if graph.root.id not in known:
        raise GraphContractViolation("Root Program is missing from the node set")

    for e in graph.edges:
        if e.from_id not in known or e.to_id not in known:
            raise GraphContractViolation(f"Edge endpoint not in node set: {e}")

    belong = Counter(e.to_id for e in graph.edges_of(RelType.BELONG))
    if belong.get(graph.root.id):
        raise GraphContractViolation("Root Program must not belong to itself")
    for n in graph.nodes:
        if n is graph.root:
            continue
        if belong.get(n.id, 0) != 1:
            raise GraphContractViolation(f"Node must belong to the root exactly once: {n}")
    for e in graph.edges_of(RelType.BELONG):
        if e.from_id != graph.root.id:
            raise GraphContractViolation(f"Belong edge not rooted at the program: {e}")

    declared = Counter(e.to_id for e in graph.edges_of(RelType.DECLARE))
    for n in graph.nodes:
        if isinstance(n, Element) and declared.get(n.id, 0) > 1:
            raise GraphContractViolation(f"Element declared more than once: {n}")

    pkg_paths = [n.properties()["path"] for n in graph.nodes_of(NodeLabel.PACKAGE)]
    if len(pkg_paths) != len(set(pkg_paths)):
        raise GraphContractViolation("Duplicate package path detected")
