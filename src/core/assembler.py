"""Graph assembly: derive edges from normalized nodes and wrap one snapshot."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence

import structlog

from core.facts import CallFact, ElementRef, ImportFact
from core.model import (
    Belong,
    Call,
    Contains,
    Declare,
    Edge,
    Element,
    File,
    Function,
    Graph,
    Import,
    Node,
    Package,
    Program,
    Receive,
    Type,
)
from core.normalizer import NormalizedFacts

logger = structlog.get_logger(__name__)


def _strip_pointer(receiver: str) -> str:
    return receiver.lstrip("*")


def _function_key(pkg: str, name: str, receiver: Optional[str]) -> tuple[str, str, str]:
    return (pkg, name, _strip_pointer(receiver or ""))


def _call_edges(functions: Sequence[Function], calls: Iterable[CallFact]) -> list[Edge]:
    by_key = {_function_key(f.pkg, f.name, f.receiver): f for f in functions}

    def _resolve(ref: ElementRef) -> Optional[Function]:
        return by_key.get(_function_key(ref.pkg, ref.name, ref.receiver))

    edges: list[Edge] = []
    for call in calls:
        caller, callee = _resolve(call.caller), _resolve(call.callee)
        if caller is None or callee is None:
            logger.debug(
                "assemble.call_unresolved",
                caller=f"{call.caller.pkg}.{call.caller.name}",
                callee=f"{call.callee.pkg}.{call.callee.name}",
            )
            continue
        edges.append(Call.connect(caller, callee))
    return edges


def _import_edges(
    files: Mapping[str, File], packages: Mapping[str, Package], imports: Iterable[ImportFact]
) -> list[Edge]:
    edges: list[Edge] = []
    for imp in imports:
        f, p = files.get(imp.file), packages.get(imp.package)
        if f is None or p is None:
            logger.debug("assemble.import_unresolved", file=imp.file, package=imp.package)
            continue
        edges.append(Import.connect(f, p))
    return edges


def _receive_edges(elements: Sequence[Element]) -> list[Edge]:
    types = {(e.pkg, e.name): e for e in elements if isinstance(e, Type)}
    edges: list[Edge] = []
    for e in elements:
        if not isinstance(e, Function) or not e.receiver:
            continue
        recv = types.get((e.pkg, _strip_pointer(e.receiver)))
        if recv is None:
            logger.debug("assemble.receiver_unresolved", function=e.name, receiver=e.receiver)
            continue
        edges.append(Receive.connect(recv, e))
    return edges


def assemble_graph(
    files: Mapping[str, File],
    packages: Mapping[str, Package],
    elements: Sequence[Element],
    *,
    program_name: str,
    calls: Iterable[CallFact] = (),
    imports: Iterable[ImportFact] = (),
) -> Graph:
    """Build the snapshot graph for one program.

    Edges, in order: per element Declare (file known) and Contains (package
    known); per file Contains (package known); Call/Import/Receive from the
    optional facts; finally one Belong from the fresh root to every node.
    """

    nodes: list[Node] = []
    edges: list[Edge] = []

    for ele in elements:
        f = files.get(ele.file)
        if f is not None:
            edges.append(Declare.connect(f, ele))
        p = packages.get(ele.pkg)
        if p is not None:
            edges.append(Contains.connect(p, ele))
        nodes.append(ele)

    for f in files.values():
        p = packages.get(f.pkg) if f.pkg else None
        if p is not None:
            edges.append(Contains.connect(p, f))
        nodes.append(f)

    nodes.extend(packages.values())

    edges.extend(_call_edges([e for e in elements if isinstance(e, Function)], calls))
    edges.extend(_import_edges(files, packages, imports))
    edges.extend(_receive_edges(elements))

    root = Program(name=program_name)
    edges.extend(Belong.connect(root, n) for n in nodes)
    nodes.append(root)

    graph = Graph(root=root, nodes=tuple(nodes), edges=tuple(edges))
    logger.info("assemble.completed", program=program_name, nodes=len(graph.nodes), edges=len(graph.edges))
    return graph


def assemble(
    normalized: NormalizedFacts,
    *,
    program_name: str,
    calls: Iterable[CallFact] = (),
    imports: Iterable[ImportFact] = (),
) -> Graph:
    return assemble_graph(
        normalized.files,
        normalized.packages,
        normalized.elements,
        program_name=program_name,
        calls=calls,
        imports=imports,
    )
