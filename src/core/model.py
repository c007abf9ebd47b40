"""Typed nodes, edges and the immutable snapshot graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Iterator, Optional

from core.identity import new_node_id


class NodeLabel(str, Enum):
    PROGRAM = "Program"
    PACKAGE = "Package"
    FILE = "File"
    FUNCTION = "Function"
    GLOBAL = "Global"
    CONST = "Const"
    TYPE = "Type"


class RelType(str, Enum):
    CONTAINS = "Contains"
    DECLARE = "Declare"
    CALL = "Call"
    IMPORT = "Import"
    RECEIVE = "Receive"
    BELONG = "Belong"


@dataclass(frozen=True)
class Position:
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Node:
    """Base of every graph node.

    ``uuid`` is assigned when the node is constructed and never changes.
    Subclasses define ``label`` and the ordered stored property mapping.
    """

    label: ClassVar[NodeLabel]

    uuid: str = field(default_factory=new_node_id, kw_only=True)

    @property
    def id(self) -> str:
        return self.uuid

    def properties(self) -> dict[str, Any]:
        raise NotImplementedError

    def __str__(self) -> str:
        return f"({self.label.value} {self.properties()})"


@dataclass(frozen=True)
class Program(Node):
    label: ClassVar[NodeLabel] = NodeLabel.PROGRAM

    name: str

    def properties(self) -> dict[str, Any]:
        return {"name": self.name, "uuid": self.uuid}


@dataclass(frozen=True)
class Package(Node):
    label: ClassVar[NodeLabel] = NodeLabel.PACKAGE

    name: str
    path: str

    def properties(self) -> dict[str, Any]:
        return {"name": self.name, "path": self.path, "uuid": self.uuid}


@dataclass(frozen=True)
class File(Node):
    label: ClassVar[NodeLabel] = NodeLabel.FILE

    name: str
    path: str
    pkg: str = ""  # empty when no package claims the file
    lines: int = 0

    def properties(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "pkg": self.pkg,
            "lines": self.lines,
            "uuid": self.uuid,
        }


@dataclass(frozen=True)
class Element(Node):
    """A declaration owned by a package and declared in a file."""

    name: str
    pkg: str
    file: str
    position: Position

    @property
    def pos(self) -> str:
        return str(self.position)


@dataclass(frozen=True)
class Function(Element):
    label: ClassVar[NodeLabel] = NodeLabel.FUNCTION

    sign: str = ""
    receiver: Optional[str] = None  # not stored; drives Receive edges

    def properties(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "pkg": self.pkg,
            "sign": self.sign,
            "file": self.file,
            "pos": self.pos,
            "uuid": self.uuid,
        }


@dataclass(frozen=True)
class Global(Element):
    label: ClassVar[NodeLabel] = NodeLabel.GLOBAL

    typ: str = ""

    def properties(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "pkg": self.pkg,
            "typ": self.typ,
            "file": self.file,
            "pos": self.pos,
            "uuid": self.uuid,
        }


@dataclass(frozen=True)
class Const(Element):
    label: ClassVar[NodeLabel] = NodeLabel.CONST

    typ: str = ""
    value: str = ""

    def properties(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "pkg": self.pkg,
            "typ": self.typ,
            "file": self.file,
            "value": self.value,
            "pos": self.pos,
            "uuid": self.uuid,
        }


@dataclass(frozen=True)
class Type(Element):
    label: ClassVar[NodeLabel] = NodeLabel.TYPE

    underlying: str = ""
    fields: tuple[str, ...] = ()
    methods: tuple[str, ...] = ()

    def properties(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "pkg": self.pkg,
            "underlying": self.underlying,
            "file": self.file,
            "fields": list(self.fields),
            "methods": list(self.methods),
            "pos": self.pos,
            "uuid": self.uuid,
        }


@dataclass(frozen=True)
class Edge:
    """Directed relationship between two node ids.

    Endpoint labels are carried along so the store can match each endpoint
    through its label index.
    """

    kind: ClassVar[RelType]

    from_id: str
    to_id: str
    from_label: NodeLabel
    to_label: NodeLabel

    @classmethod
    def connect(cls, source: Node, target: Node) -> "Edge":
        return cls(
            from_id=source.id,
            to_id=target.id,
            from_label=source.label,
            to_label=target.label,
        )

    def __str__(self) -> str:
        return f"{self.from_id}-{self.kind.value}->{self.to_id}"


@dataclass(frozen=True)
class Contains(Edge):
    """Package owns a file or an element."""

    kind: ClassVar[RelType] = RelType.CONTAINS


@dataclass(frozen=True)
class Declare(Edge):
    """File is the declaration site of an element."""

    kind: ClassVar[RelType] = RelType.DECLARE


@dataclass(frozen=True)
class Call(Edge):
    """Caller function invokes callee function."""

    kind: ClassVar[RelType] = RelType.CALL


@dataclass(frozen=True)
class Import(Edge):
    """File imports a package."""

    kind: ClassVar[RelType] = RelType.IMPORT


@dataclass(frozen=True)
class Receive(Edge):
    """Type is the receiver of a method function."""

    kind: ClassVar[RelType] = RelType.RECEIVE


@dataclass(frozen=True)
class Belong(Edge):
    """Node belongs to the program root."""

    kind: ClassVar[RelType] = RelType.BELONG


@dataclass(frozen=True)
class Graph:
    """One program snapshot. Never mutated after assembly."""

    root: Program
    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]

    def edges_of(self, kind: RelType) -> Iterator[Edge]:
        return (e for e in self.edges if e.kind is kind)

    def nodes_of(self, label: NodeLabel) -> Iterator[Node]:
        return (n for n in self.nodes if n.label is label)
