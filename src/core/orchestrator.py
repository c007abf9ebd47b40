"""Sync orchestrator.

Pipeline:
load facts -> normalize -> assemble -> validate contract -> snapshot write
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import structlog

from config import CodeGraphSyncSettings
from core.assembler import assemble
from core.facts import AnalysisFacts, load_facts
from core.graph_contract import validate_graph_contract
from core.model import Graph
from core.normalizer import normalize_facts
from observability.tracing import get_tracer, traced_phase
from persistence.cypher import CypherBuilder
from persistence.graph_store import GraphStore
from persistence.snapshot_writer import SnapshotWriter, WriteReport

logger = structlog.get_logger(__name__)
tracer = get_tracer(__name__)


def resolve_program_name(settings: CodeGraphSyncSettings, facts: AnalysisFacts) -> str:
    if settings.CODEGRAPH_PROGRAM_NAME:
        return settings.CODEGRAPH_PROGRAM_NAME
    if facts.program:
        return facts.program
    return Path(settings.CODEGRAPH_ANALYSIS_DIR).resolve().name


def build_graph(facts: AnalysisFacts, program_name: str) -> Graph:
    """Normalize, assemble and validate; raises GraphContractViolation."""

    with traced_phase(tracer, "normalize"):
        normalized = normalize_facts(facts)
    with traced_phase(tracer, "assemble", program=program_name):
        graph = assemble(
            normalized,
            program_name=program_name,
            calls=facts.calls,
            imports=facts.imports,
        )
    validate_graph_contract(graph)
    return graph


def sync_program(
    settings: CodeGraphSyncSettings,
    store: GraphStore,
    *,
    facts: Optional[AnalysisFacts] = None,
) -> WriteReport:
    """Replace the stored snapshot of one program with a freshly built one."""

    if facts is None:
        facts_path = Path(settings.CODEGRAPH_ANALYSIS_DIR) / settings.CODEGRAPH_FACTS_FILENAME
        with traced_phase(tracer, "load_facts", path=str(facts_path)):
            facts = load_facts(facts_path)

    program_name = resolve_program_name(settings, facts)
    logger.info("sync.start", program=program_name)
    graph = build_graph(facts, program_name)

    writer = SnapshotWriter(
        store,
        builder=CypherBuilder(parameterized=settings.CODEGRAPH_PARAMETERIZED_WRITES),
        monitor_interval=settings.CODEGRAPH_MONITOR_INTERVAL_SEC,
    )
    report = writer.write(graph)

    log = logger.info if report.ok else logger.warning
    log(
        "sync.completed",
        program=program_name,
        ok=report.ok,
        nodes=report.nodes_total,
        nodes_written=report.nodes_written,
        edges=report.edges_total,
        edges_written=report.edges_written,
        index_failures=report.index_failures,
        snapshot_deleted=report.snapshot_deleted,
    )
    return report
