import json
import logging
from unittest.mock import MagicMock, patch

import pytest
import structlog
from neo4j.exceptions import AuthError, ServiceUnavailable

import main
from persistence.snapshot_writer import WriteReport


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("NEO4J_URI", "NEO4J_USERNAME", "NEO4J_PASSWORD", "CODEGRAPH_ANALYSIS_DIR",
                 "CODEGRAPH_PROGRAM_NAME", "CODEGRAPH_FAIL_ON_WRITE_ERRORS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("CODEGRAPH_MONITOR_INTERVAL_SEC", "0.01")
    monkeypatch.chdir(tmp_path)
    yield
    structlog.reset_defaults()
    for handler in logging.getLogger().handlers[:]:
        logging.getLogger().removeHandler(handler)


@pytest.fixture
def config_path(tmp_path):
    analysis = tmp_path / "analysis"
    analysis.mkdir()
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "graph_db": {"uri": "bolt://localhost:7687", "username": "neo4j", "password": "secret"},
                "analysis": {"dir": str(analysis)},
            }
        ),
        encoding="utf-8",
    )
    return str(path)


@pytest.fixture
def analysis_dir(tmp_path):
    return tmp_path / "analysis"


def _report(**overrides) -> WriteReport:
    values = dict(program_name="p", nodes_total=4, edges_total=6, snapshot_deleted=True, nodes_written=4, edges_written=6)
    values.update(overrides)
    return WriteReport(**values)


def test_end_to_end_with_in_memory_store(config_path, analysis_dir, memory_store, single_function_facts):
    (analysis_dir / "facts.json").write_text(single_function_facts.model_dump_json(), encoding="utf-8")

    with patch("main.Neo4jClient") as client_cls, patch("main.Neo4jGraphStore", return_value=memory_store):
        status = main.run(["--config", config_path, "--program", "pkg-demo"])

    assert status == main.EXIT_OK
    client_cls.return_value.__enter__.return_value.verify_connectivity.assert_called_once()
    client_cls.return_value.__exit__.assert_called_once()
    assert memory_store.labels() == ["File", "Function", "Package", "Program"]
    assert len(memory_store.edges) == 6


def test_missing_credentials_exit_fatal(tmp_path):
    with patch("main.Neo4jClient") as client_cls:
        status = main.run(["--analysis-dir", str(tmp_path)])
    assert status == main.EXIT_FATAL
    client_cls.assert_not_called()


@pytest.mark.parametrize("error", [ServiceUnavailable("no route"), AuthError("bad credentials")])
def test_unreachable_store_exit_fatal(config_path, error):
    with patch("main.Neo4jClient") as client_cls, patch("main.sync_program") as sync:
        client_cls.return_value.__enter__.return_value.verify_connectivity.side_effect = error
        status = main.run(["--config", config_path])
    assert status == main.EXIT_FATAL
    sync.assert_not_called()
    client_cls.return_value.__exit__.assert_called_once()


def test_missing_facts_exit_fatal(config_path):
    with patch("main.Neo4jClient"), patch("main.Neo4jGraphStore", return_value=MagicMock()):
        status = main.run(["--config", config_path])
    assert status == main.EXIT_FATAL


def test_write_failures_exit_one(config_path):
    with patch("main.Neo4jClient"), patch("main.sync_program", return_value=_report(edges_written=5)):
        status = main.run(["--config", config_path])
    assert status == main.EXIT_WRITE_ERRORS


def test_write_failures_tolerated_when_configured(config_path, monkeypatch):
    monkeypatch.setenv("CODEGRAPH_FAIL_ON_WRITE_ERRORS", "false")
    with patch("main.Neo4jClient"), patch("main.sync_program", return_value=_report(snapshot_deleted=False)):
        status = main.run(["--config", config_path])
    assert status == main.EXIT_OK


def test_parser_defaults():
    args = main.build_parser().parse_args([])
    assert args.config is None
    assert args.log_level == "INFO"
    assert args.console_logs is False
