"""Code graph sync entry point.

Loads analyzer facts for one program and replaces its snapshot in Neo4j.

Exit status: 0 on success, 1 when some writes failed (and
CODEGRAPH_FAIL_ON_WRITE_ERRORS is set), 2 on a fatal startup error.
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

import structlog
from neo4j.exceptions import DriverError, Neo4jError

from configuration.common_config import ConfigurationError, load_app_settings
from configuration.logging_config import configure_logging
from core.facts import AnalysisInputError
from core.graph_contract import GraphContractViolation
from core.orchestrator import sync_program
from observability.tracing import init_tracing
from persistence.graph_store import Neo4jGraphStore
from utils.neo4j_client import Neo4jClient

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_WRITE_ERRORS = 1
EXIT_FATAL = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codegraph-sync",
        description="Replace a program's code graph snapshot in Neo4j from analyzer facts.",
    )
    parser.add_argument("--config", help="JSON config document with graph_db and analysis sections.")
    parser.add_argument("--analysis-dir", help="Directory holding the analyzer facts document.")
    parser.add_argument("--program", help="Program root name (defaults to the facts document or dir name).")
    parser.add_argument("--log-level", default="INFO", help="Log level (default: INFO).")
    parser.add_argument("--console-logs", action="store_true", help="Human-readable logs instead of JSON.")
    return parser


def run(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(log_level=args.log_level, json_output=not args.console_logs, force_reconfigure=True)
    init_tracing("codegraph-sync")

    try:
        settings = load_app_settings(
            args.config,
            CODEGRAPH_ANALYSIS_DIR=args.analysis_dir,
            CODEGRAPH_PROGRAM_NAME=args.program,
        )
    except ConfigurationError as e:
        logger.error("startup.invalid_config", error=str(e))
        return EXIT_FATAL

    try:
        with Neo4jClient(settings.neo4j) as client:
            client.verify_connectivity()
            report = sync_program(settings.sync, Neo4jGraphStore(client))
    except (Neo4jError, DriverError, OSError) as e:
        logger.error("startup.store_unavailable", uri=settings.neo4j.NEO4J_URI, error=str(e))
        return EXIT_FATAL
    except AnalysisInputError as e:
        logger.error("startup.invalid_analysis_input", error=str(e))
        return EXIT_FATAL
    except GraphContractViolation as e:
        logger.error("sync.graph_contract_violation", error=str(e))
        return EXIT_FATAL

    if not report.ok and settings.sync.CODEGRAPH_FAIL_ON_WRITE_ERRORS:
        return EXIT_WRITE_ERRORS
    return EXIT_OK


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
