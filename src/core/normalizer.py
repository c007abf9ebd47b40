"""Fact normalization.

Turns raw analyzer facts into typed nodes, each with a freshly assigned id.
Facts that cannot be classified are reported and dropped; they never abort
the run.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import Callable

import structlog

from core.facts import AnalysisFacts, ElementFact
from core.model import Const, Element, File, Function, Global, Node, Package, Position, Type

logger = structlog.get_logger(__name__)


class ClassificationError(Exception):
    """Raised for an analyzer fact of a kind the graph model does not know."""

    def __init__(self, message: str, *, kind: str, name: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.name = name


@dataclass(frozen=True)
class RejectedFact:
    kind: str
    name: str
    reason: str


@dataclass
class NormalizedFacts:
    files: dict[str, File] = field(default_factory=dict)  # by path
    packages: dict[str, Package] = field(default_factory=dict)  # by import path
    elements: list[Element] = field(default_factory=list)
    nodes: list[Node] = field(default_factory=list)
    rejected: list[RejectedFact] = field(default_factory=list)


def _position(fact: ElementFact) -> Position:
    return Position(line=fact.position.line, column=fact.position.column)


def _function(fact: ElementFact) -> Function:
    return Function(
        name=fact.name,
        pkg=fact.pkg,
        file=fact.file,
        position=_position(fact),
        sign=fact.signature,
        receiver=fact.receiver,
    )


def _global(fact: ElementFact) -> Global:
    return Global(
        name=fact.name,
        pkg=fact.pkg,
        file=fact.file,
        position=_position(fact),
        typ=fact.declared_type,
    )


def _const(fact: ElementFact) -> Const:
    return Const(
        name=fact.name,
        pkg=fact.pkg,
        file=fact.file,
        position=_position(fact),
        typ=fact.declared_type,
        value=fact.value,
    )


def _type(fact: ElementFact) -> Type:
    fields: tuple[str, ...] = ()
    if fact.is_struct:
        fields = tuple(f"{f.name}:{f.type}" for f in fact.struct_fields)
    return Type(
        name=fact.name,
        pkg=fact.pkg,
        file=fact.file,
        position=_position(fact),
        underlying=fact.underlying,
        fields=fields,
        methods=tuple(fact.methods),
    )


_ELEMENT_BUILDERS: dict[str, Callable[[ElementFact], Element]] = {
    "function": _function,
    "global": _global,
    "const": _const,
    "type": _type,
}


def classify_element(fact: ElementFact) -> Element:
    """Build the element node for ``fact`` or raise ClassificationError."""

    builder = _ELEMENT_BUILDERS.get(fact.kind.lower())
    if builder is None:
        raise ClassificationError(
            f"unknown element kind '{fact.kind}' for '{fact.name}'",
            kind=fact.kind,
            name=fact.name,
        )
    return builder(fact)


def normalize_facts(facts: AnalysisFacts) -> NormalizedFacts:
    out = NormalizedFacts()

    # Packages first: their scopes decide which package owns each file.
    owner_by_file: dict[str, str] = {}
    known_files = {f.path for f in facts.files}
    for pf in facts.packages:
        if pf.path in out.packages:
            reason = f"duplicate package path '{pf.path}'"
            logger.warning("normalize.package_rejected", path=pf.path, reason=reason)
            out.rejected.append(RejectedFact(kind="package", name=pf.name, reason=reason))
            continue
        pkg = Package(name=pf.name, path=pf.path)
        out.packages[pkg.path] = pkg
        out.nodes.append(pkg)
        for scope in pf.scopes:
            if scope not in known_files:
                logger.warning("normalize.unknown_scope_file", package=pf.path, scope=scope)
                continue
            owner_by_file[scope] = pf.path

    for ff in facts.files:
        if ff.path in out.files:
            logger.debug("normalize.duplicate_file", path=ff.path)
            continue
        f = File(
            name=posixpath.basename(ff.path),
            path=ff.path,
            pkg=owner_by_file.get(ff.path, ""),
            lines=ff.lines,
        )
        out.files[f.path] = f
        out.nodes.append(f)

    for ef in facts.elements:
        try:
            element = classify_element(ef)
        except ClassificationError as e:
            logger.warning("normalize.element_rejected", kind=e.kind, name=e.name, reason=str(e))
            out.rejected.append(RejectedFact(kind=e.kind, name=e.name, reason=str(e)))
            continue
        out.elements.append(element)
        out.nodes.append(element)

    logger.info(
        "normalize.completed",
        files=len(out.files),
        packages=len(out.packages),
        elements=len(out.elements),
        rejected=len(out.rejected),
    )
    return out
