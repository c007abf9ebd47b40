"""Snapshot writer: replace one program's graph in Neo4j.

Protocol, strictly sequential and best-effort:
delete previous snapshot -> create nodes -> ensure indexes -> create edges.

A failing statement is logged and counted; the next one still runs. Nothing
is retried and nothing is rolled back, so a run with failures can leave a
partial graph behind. The WriteReport says how much was confirmed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import structlog

from core.model import Graph
from observability.throughput import ThroughputMonitor, WriteCounter
from observability.tracing import get_tracer, traced_phase
from persistence.cypher import CypherBuilder, index_targets
from persistence.graph_store import GraphStore, StoreWriteError

logger = structlog.get_logger(__name__)
tracer = get_tracer(__name__)


@dataclass
class WriteReport:
    program_name: str
    nodes_total: int
    edges_total: int
    snapshot_deleted: bool = False
    nodes_written: int = 0
    edges_written: int = 0
    indexes_ensured: int = 0
    index_failures: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def nodes_failed(self) -> int:
        return self.nodes_total - self.nodes_written

    @property
    def edges_failed(self) -> int:
        return self.edges_total - self.edges_written

    @property
    def ok(self) -> bool:
        return (
            self.snapshot_deleted
            and self.nodes_failed == 0
            and self.edges_failed == 0
            and self.index_failures == 0
        )


class SnapshotWriter:
    def __init__(
        self,
        store: GraphStore,
        *,
        builder: Optional[CypherBuilder] = None,
        counter: Optional[WriteCounter] = None,
        monitor_interval: float = 1.0,
    ) -> None:
        self.store = store
        self.builder = builder or CypherBuilder()
        self.counter = counter or WriteCounter()
        self.monitor_interval = monitor_interval

    def write(self, graph: Graph) -> WriteReport:
        report = WriteReport(
            program_name=graph.root.name,
            nodes_total=len(graph.nodes),
            edges_total=len(graph.edges),
        )
        monitor = ThroughputMonitor(self.counter, interval=self.monitor_interval)
        monitor.start()
        try:
            with traced_phase(tracer, "snapshot_write", program=graph.root.name):
                with traced_phase(tracer, "snapshot_write.delete"):
                    self._delete_previous(graph, report)
                with traced_phase(tracer, "snapshot_write.nodes", count=len(graph.nodes)):
                    self._write_nodes(graph, report)
                with traced_phase(tracer, "snapshot_write.indexes"):
                    self._ensure_indexes(report)
                with traced_phase(tracer, "snapshot_write.edges", count=len(graph.edges)):
                    self._write_edges(graph, report)
        finally:
            monitor.stop(
                program=report.program_name,
                nodes=report.nodes_total,
                edges=report.edges_total,
                nodes_written=report.nodes_written,
                edges_written=report.edges_written,
            )
        return report

    def _delete_previous(self, graph: Graph, report: WriteReport) -> None:
        try:
            self.store.run(self.builder.delete_snapshot(graph.root.name))
            report.snapshot_deleted = True
        except StoreWriteError as e:
            logger.error("snapshot_write.delete_failed", program=graph.root.name, error=str(e))
            report.errors.append(f"delete: {e}")

    def _write_nodes(self, graph: Graph, report: WriteReport) -> None:
        if not graph.nodes:
            return
        logger.info("snapshot_write.nodes_start", count=len(graph.nodes))
        for node in graph.nodes:
            self.counter.increment()
            try:
                self.store.run(self.builder.create_node(node))
                report.nodes_written += 1
            except StoreWriteError as e:
                logger.error("snapshot_write.node_failed", label=node.label.value, uuid=node.id, error=str(e))
                report.errors.append(f"node {node.id}: {e}")

    def _ensure_indexes(self, report: WriteReport) -> None:
        for label, field_name in index_targets():
            try:
                self.store.create_index(label, field_name)
                report.indexes_ensured += 1
            except StoreWriteError as e:
                logger.error("snapshot_write.index_failed", label=label.value, field=field_name, error=str(e))
                report.index_failures += 1
                report.errors.append(f"index {label.value}.{field_name}: {e}")

    def _write_edges(self, graph: Graph, report: WriteReport) -> None:
        if not graph.edges:
            return
        logger.info("snapshot_write.edges_start", count=len(graph.edges))
        for edge in graph.edges:
            self.counter.increment()
            try:
                records = self.store.run(self.builder.create_edge(edge))
            except StoreWriteError as e:
                logger.error("snapshot_write.edge_failed", edge=str(edge), error=str(e))
                report.errors.append(f"edge {edge}: {e}")
                continue
            created = records[0].get("created", 0) if records else 0
            if created:
                report.edges_written += 1
            else:
                logger.warning("snapshot_write.edge_endpoint_missing", edge=str(edge), kind=edge.kind.value)
                report.errors.append(f"edge {edge}: endpoint missing")
