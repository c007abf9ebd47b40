"""
Neo4j database configuration settings.
"""

from pydantic import Field, field_validator
from .base_config import BaseConfig

class Neo4jSettings(BaseConfig):
    """
    Defines the Neo4j database configuration settings.
    """
    NEO4J_URI: str = Field(default="", description="Neo4j connection URI")
    NEO4J_USERNAME: str = Field(default="", description="Neo4j username")
    NEO4J_PASSWORD: str = Field(default="", description="Neo4j password")
    NEO4J_DATABASE: str = Field(default="neo4j", description="Neo4j database name")
    NEO4J_CONNECTION_TIMEOUT: float = Field(default=30.0, description="Neo4j connection timeout in seconds")
    NEO4J_MAX_CONNECTION_POOL_SIZE: int = Field(default=10, description="Neo4j maximum connection pool size")
    NEO4J_MAX_TRANSACTION_RETRY_TIME: float = Field(default=30.0, description="Neo4j maximum transaction retry time in seconds")

    @field_validator('NEO4J_CONNECTION_TIMEOUT', 'NEO4J_MAX_TRANSACTION_RETRY_TIME')
    @classmethod
    def validate_timeout(cls, v):
        """Validate that timeout values are positive."""
        if v <= 0:
            raise ValueError(f"Timeout values must be positive, got {v}")
        return v

    @field_validator('NEO4J_MAX_CONNECTION_POOL_SIZE')
    @classmethod
    def validate_positive_int(cls, v):
        """Validate that integer values are positive."""
        if v <= 0:
            raise ValueError(f"Integer values must be positive, got {v}")
        return v

