"""Store boundary used by the snapshot writer."""

from __future__ import annotations

from typing import Any, Protocol

import structlog
from neo4j.exceptions import DriverError, Neo4jError

from core.model import NodeLabel
from persistence.cypher import CypherStatement, build_index_statement
from utils.neo4j_client import Neo4jClient

logger = structlog.get_logger(__name__)


class StoreWriteError(Exception):
    """A single statement failed in the store."""

    def __init__(self, message: str, *, query: str) -> None:
        super().__init__(message)
        self.query = query


class GraphStore(Protocol):
    def run(self, statement: CypherStatement) -> list[dict[str, Any]]:
        """Execute one statement, raising StoreWriteError on failure."""
        ...

    def create_index(self, label: NodeLabel, field: str) -> None:
        """Ensure a lookup index exists on ``label.field``."""
        ...


class Neo4jGraphStore:
    """GraphStore backed by the Neo4j driver, one auto-commit statement per call."""

    def __init__(self, client: Neo4jClient) -> None:
        self.client = client

    def run(self, statement: CypherStatement) -> list[dict[str, Any]]:
        try:
            return self.client.run(statement.query, statement.parameters)
        except (Neo4jError, DriverError, OSError) as e:
            raise StoreWriteError(str(e), query=statement.query) from e

    def create_index(self, label: NodeLabel, field: str) -> None:
        self.run(build_index_statement(label, field))
