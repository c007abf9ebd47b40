"""Shared fixtures: an in-memory graph store and analyzer fact builders."""

from __future__ import annotations

import re
from typing import Any, Callable, Optional

import pytest

from core.facts import AnalysisFacts
from persistence.cypher import CypherStatement
from persistence.graph_store import StoreWriteError

_CREATE_NODE = re.compile(r"^CREATE \(n:`(\w+)` \$props\)$")
_CREATE_EDGE = re.compile(
    r"^MATCH \(a:`(\w+)` \{uuid: \$from_id\}\), \(b:`(\w+)` \{uuid: \$to_id\}\) "
    r"CREATE \(a\)-\[r:`(\w+)`\]->\(b\) RETURN count\(r\) AS created$"
)
_DELETE = re.compile(r"^MATCH \(p:`Program` \{name: \$program_name\}\)")


class InMemoryGraphStore:
    """Understands the parameterized statements of CypherBuilder."""

    def __init__(self, fail_when: Optional[Callable[[CypherStatement], bool]] = None) -> None:
        self.nodes: dict[str, tuple[str, dict[str, Any]]] = {}  # uuid -> (label, props)
        self.edges: list[tuple[str, str, str]] = []  # (from, kind, to)
        self.indexes: list[tuple[str, str]] = []
        self.statements: list[CypherStatement] = []
        self.fail_when = fail_when

    def run(self, statement: CypherStatement) -> list[dict[str, Any]]:
        self.statements.append(statement)
        if self.fail_when is not None and self.fail_when(statement):
            raise StoreWriteError("injected failure", query=statement.query)

        if _DELETE.match(statement.query):
            self._delete(statement.parameters["program_name"])
            return []
        m = _CREATE_NODE.match(statement.query)
        if m:
            props = dict(statement.parameters["props"])
            self.nodes[props["uuid"]] = (m.group(1), props)
            return []
        m = _CREATE_EDGE.match(statement.query)
        if m:
            from_label, to_label, kind = m.groups()
            a = self.nodes.get(statement.parameters["from_id"])
            b = self.nodes.get(statement.parameters["to_id"])
            if a is None or b is None or a[0] != from_label or b[0] != to_label:
                return [{"created": 0}]
            self.edges.append((statement.parameters["from_id"], kind, statement.parameters["to_id"]))
            return [{"created": 1}]
        raise AssertionError(f"unexpected statement: {statement.query}")

    def create_index(self, label, field: str) -> None:
        self.indexes.append((label.value, field))

    def _delete(self, program_name: str) -> None:
        roots = {
            uid for uid, (label, props) in self.nodes.items()
            if label == "Program" and props.get("name") == program_name
        }
        doomed = set(roots)
        doomed.update(t for f, kind, t in self.edges if f in roots and kind == "Belong")
        self.edges = [e for e in self.edges if e[0] not in doomed and e[2] not in doomed]
        for uid in doomed:
            self.nodes.pop(uid, None)

    def labels(self) -> list[str]:
        return sorted(label for label, _ in self.nodes.values())


@pytest.fixture
def memory_store() -> InMemoryGraphStore:
    return InMemoryGraphStore()


@pytest.fixture
def store_factory() -> type[InMemoryGraphStore]:
    return InMemoryGraphStore


def make_facts(**overrides: Any) -> AnalysisFacts:
    """One package ``pkg`` with ``a.go`` (3 lines) declaring ``func F()``."""

    document: dict[str, Any] = {
        "files": [{"path": "/src/pkg/a.go", "lines": 3}],
        "packages": [{"name": "pkg", "path": "example.com/pkg", "scopes": ["/src/pkg/a.go"]}],
        "elements": [
            {
                "kind": "function",
                "name": "F",
                "pkg": "example.com/pkg",
                "file": "/src/pkg/a.go",
                "position": {"line": 3, "column": 6},
                "signature": "func()",
            }
        ],
    }
    document.update(overrides)
    return AnalysisFacts.model_validate(document)


@pytest.fixture
def single_function_facts() -> AnalysisFacts:
    return make_facts()


@pytest.fixture
def rich_facts() -> AnalysisFacts:
    """Two packages, one orphan file, every element kind, calls and imports."""

    return AnalysisFacts.model_validate(
        {
            "program": "demo",
            "files": [
                {"path": "/src/app/main.go", "lines": 40},
                {"path": "/src/app/types.go", "lines": 25},
                {"path": "/src/util/util.go", "lines": 12},
                {"path": "/src/gen/generated.go", "lines": 7},
            ],
            "packages": [
                {"name": "main", "path": "example.com/app", "scopes": ["/src/app/main.go", "/src/app/types.go"]},
                {"name": "util", "path": "example.com/util", "scopes": ["/src/util/util.go"]},
            ],
            "elements": [
                {"kind": "function", "name": "main", "pkg": "example.com/app", "file": "/src/app/main.go",
                 "position": {"line": 5, "column": 6}, "signature": "func()"},
                {"kind": "function", "name": "Run", "pkg": "example.com/app", "file": "/src/app/types.go",
                 "position": {"line": 12, "column": 17}, "signature": "func() error", "receiver": "*Server"},
                {"kind": "global", "name": "verbose", "pkg": "example.com/app", "file": "/src/app/main.go",
                 "position": {"line": 3, "column": 5}, "declared_type": "*bool"},
                {"kind": "const", "name": "greeting", "pkg": "example.com/util", "file": "/src/util/util.go",
                 "position": {"line": 2, "column": 7}, "declared_type": "untyped string",
                 "value": "\"it's \\\"quoted\\\"\""},
                {"kind": "type", "name": "Server", "pkg": "example.com/app", "file": "/src/app/types.go",
                 "position": {"line": 4, "column": 6}, "underlying": "struct{addr string; port int}",
                 "struct_fields": [{"name": "addr", "type": "string"}, {"name": "port", "type": "int"}],
                 "methods": ["Run"]},
                {"kind": "function", "name": "Join", "pkg": "example.com/util", "file": "/src/util/util.go",
                 "position": {"line": 5, "column": 6}, "signature": "func(a string, b string) string"},
            ],
            "calls": [
                {"caller": {"pkg": "example.com/app", "name": "main"},
                 "callee": {"pkg": "example.com/util", "name": "Join"}},
                {"caller": {"pkg": "example.com/app", "name": "main"},
                 "callee": {"pkg": "example.com/app", "name": "Run", "receiver": "Server"}},
                {"caller": {"pkg": "example.com/app", "name": "main"},
                 "callee": {"pkg": "fmt", "name": "Println"}},
            ],
            "imports": [
                {"file": "/src/app/main.go", "package": "example.com/util"},
                {"file": "/src/app/main.go", "package": "fmt"},
            ],
        }
    )


@pytest.fixture
def facts_factory() -> Callable[..., AnalysisFacts]:
    return make_facts
