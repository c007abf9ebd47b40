"""Neo4j client utilities."""

from typing import Any, Dict, List, Optional

import structlog
from neo4j import GraphDatabase, Driver, Session
from configuration.neo4j_config import Neo4jSettings

logger = structlog.get_logger(__name__)

class Neo4jClientFactory:
    """Create Neo4j driver from settings."""

    @staticmethod
    def create_driver(settings: Neo4jSettings) -> Driver:
        """Create a Neo4j driver from settings."""
        driver = GraphDatabase.driver(
            settings.NEO4J_URI,
            auth=(settings.NEO4J_USERNAME, settings.NEO4J_PASSWORD),
            connection_timeout=settings.NEO4J_CONNECTION_TIMEOUT,
            max_connection_pool_size=settings.NEO4J_MAX_CONNECTION_POOL_SIZE,
            max_transaction_retry_time=settings.NEO4J_MAX_TRANSACTION_RETRY_TIME
        )

        logger.info("Neo4j driver created", uri=settings.NEO4J_URI)
        return driver

class Neo4jClient:
    """Process-wide handle on one Neo4j driver.

    Use it as a context manager so the driver is closed on every exit path::

        with Neo4jClient(settings.neo4j) as client:
            client.verify_connectivity()
            ...
    """

    def __init__(self, settings: Neo4jSettings):
        self.settings = settings
        self._driver = Neo4jClientFactory.create_driver(settings)

        logger.info("Neo4j client initialized")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def driver(self) -> Driver:
        """Get the Neo4j driver."""
        return self._driver

    def close(self):
        """Close the Neo4j driver connections."""
        if self._driver:
            self._driver.close()
            self._driver = None
            logger.info("Neo4j driver closed")

    def verify_connectivity(self) -> None:
        """Raise a driver error when the server cannot be reached or auth fails."""
        self.driver.verify_connectivity()
        logger.info("Neo4j connectivity verified", uri=self.settings.NEO4J_URI)

    def get_session(self, database: Optional[str] = None) -> Session:
        """Get a Neo4j session."""
        return self.driver.session(database=database or self.settings.NEO4J_DATABASE)

    def run(self, query: str, parameters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Execute one auto-commit statement and return its records as dicts."""
        with self.get_session() as session:
            result = session.run(query, parameters or {})
            return [record.data() for record in result]
