import re

import pytest

from core.model import Belong, Const, Declare, File, Function, NodeLabel, Position, Program
from persistence.cypher import (
    INDEX_FIELDS,
    CypherBuilder,
    build_index_statement,
    escape_literal,
    index_targets,
    render_properties,
    render_value,
)

# A single-quoted Cypher string literal: no unescaped quote before the closing one.
_SAFE_LITERAL = re.compile(r"^'(?:[^'\\]|\\.)*'$")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("plain", "plain"),
        ("it's", "it\\'s"),
        ('say "hi"', 'say \\"hi\\"'),
        ("C:\\dir", "C:\\\\dir"),
        ("\\'", "\\\\\\'"),
    ],
)
def test_escape_literal(raw, expected) -> None:
    assert escape_literal(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["'", "\\", '"', "\\'", "'; MATCH (n) DETACH DELETE n //", 'x\\"y\'z\\\\', "`backtick`"],
)
def test_rendered_string_is_a_single_safe_literal(raw) -> None:
    rendered = render_value(raw)
    assert _SAFE_LITERAL.match(rendered)


def test_render_value_types() -> None:
    assert render_value(3) == "3"
    assert render_value(["a:int", "b's"]) == "['a:int', 'b\\'s']"
    assert render_value(None) == "null"
    assert render_value(True) == "true"


def test_render_properties_keeps_order() -> None:
    rendered = render_properties({"name": "a.go", "lines": 3, "uuid": "u1"})
    assert rendered == "{name:'a.go',lines:3,uuid:'u1'}"


def test_render_properties_rejects_bad_keys() -> None:
    with pytest.raises(ValueError):
        render_properties({"bad key": "x"})


def test_parameterized_node_statement() -> None:
    f = Function(name="F", pkg="p", file="a.go", position=Position(1, 2), sign="func()")
    stmt = CypherBuilder().create_node(f)
    assert stmt.query == "CREATE (n:`Function` $props)"
    assert stmt.parameters == {"props": f.properties()}


def test_literal_node_statement_escapes_values() -> None:
    c = Const(name="Q", pkg="p", file="a.go", position=Position(1, 7), typ="string", value="it's \"x\"")
    stmt = CypherBuilder(parameterized=False).create_node(c)
    assert stmt.parameters == {}
    assert stmt.query.startswith("CREATE (n:`Const` {name:'Q',pkg:'p',typ:'string',file:'a.go',")
    assert "value:'it\\'s \\\"x\\\"'" in stmt.query
    assert stmt.query.endswith(f"uuid:'{c.id}'}})")


def test_edge_statement_matches_by_uuid() -> None:
    f = File(name="a.go", path="/a.go")
    fn = Function(name="F", pkg="", file="/a.go", position=Position())
    stmt = CypherBuilder().create_edge(Declare.connect(f, fn))
    assert stmt.query == (
        "MATCH (a:`File` {uuid: $from_id}), (b:`Function` {uuid: $to_id}) "
        "CREATE (a)-[r:`Declare`]->(b) RETURN count(r) AS created"
    )
    assert stmt.parameters == {"from_id": f.id, "to_id": fn.id}


def test_literal_edge_statement() -> None:
    root = Program(name="p")
    f = File(name="a.go", path="/a.go")
    stmt = CypherBuilder(parameterized=False).create_edge(Belong.connect(root, f))
    assert f"(a:`Program` {{uuid: '{root.id}'}})" in stmt.query
    assert "[r:`Belong`]" in stmt.query


def test_delete_snapshot_statement() -> None:
    stmt = CypherBuilder().delete_snapshot("my-prog")
    assert stmt.query.startswith("MATCH (p:`Program` {name: $program_name})")
    assert "DETACH DELETE" in stmt.query
    assert stmt.parameters == {"program_name": "my-prog"}

    literal = CypherBuilder(parameterized=False).delete_snapshot("it's")
    assert "{name: 'it\\'s'}" in literal.query


def test_index_statement() -> None:
    stmt = build_index_statement(NodeLabel.FILE, "path")
    assert stmt.query == "CREATE INDEX file_path_index IF NOT EXISTS FOR (n:`File`) ON (n.path)"


def test_index_targets_cover_every_label_with_uuid() -> None:
    targets = list(index_targets())
    assert {label for label, _ in targets} == set(NodeLabel)
    for label in NodeLabel:
        assert (label, "uuid") in targets
        assert (label, "name") in targets
    assert INDEX_FIELDS[NodeLabel.FILE] == ("name", "path", "pkg", "uuid")
    assert len(targets) == 2 + 3 + 4 * 5
