"""
Composed configuration for the code graph sync process.

Settings come from the environment (and ``.env``); an optional JSON
configuration document overrides them:

    {
        "graph_db": {"uri": "bolt://...", "username": "neo4j", "password": "..."},
        "analysis": {"dir": "/path/to/analysis/output"}
    }
"""
import json
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, ValidationError
from .base_config import BaseConfig
from .neo4j_config import Neo4jSettings
from config import CodeGraphSyncSettings

# Explicitly load .env file at the module level.
load_dotenv()

_GRAPH_DB_KEYS = {
    "uri": "NEO4J_URI",
    "username": "NEO4J_USERNAME",
    "password": "NEO4J_PASSWORD",
    "database": "NEO4J_DATABASE",
}

_ANALYSIS_KEYS = {
    "dir": "CODEGRAPH_ANALYSIS_DIR",
    "facts_file": "CODEGRAPH_FACTS_FILENAME",
    "program": "CODEGRAPH_PROGRAM_NAME",
}


class ConfigurationError(Exception):
    """Raised when the process configuration is missing or invalid."""


class AppSettings(BaseConfig):
    """
    Holds the composed settings for the entire application.
    """

    neo4j: Neo4jSettings = Field(default_factory=Neo4jSettings)
    sync: CodeGraphSyncSettings = Field(default_factory=CodeGraphSyncSettings)


def _read_config_document(path: Path) -> dict:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"cannot load config file {path}: {e}") from e
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"invalid config file {path}: {e}") from e
    if not isinstance(document, dict):
        raise ConfigurationError(f"invalid config file {path}: top level must be an object")
    return document


def _section_overrides(document: dict, section: str, keys: dict) -> dict:
    values = document.get(section) or {}
    if not isinstance(values, dict):
        raise ConfigurationError(f"config section '{section}' must be an object")
    return {keys[k]: v for k, v in values.items() if k in keys and v is not None}


def validate_settings(settings: AppSettings) -> AppSettings:
    """Fail fast on settings the pipeline cannot run without."""
    neo4j = settings.neo4j
    missing = [
        name
        for name, value in (
            ("NEO4J_URI", neo4j.NEO4J_URI),
            ("NEO4J_USERNAME", neo4j.NEO4J_USERNAME),
            ("NEO4J_PASSWORD", neo4j.NEO4J_PASSWORD),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(f"graph db config is not valid, missing: {', '.join(missing)}")

    analysis_dir = Path(settings.sync.CODEGRAPH_ANALYSIS_DIR)
    if not analysis_dir.is_dir():
        raise ConfigurationError(f"analysis dir does not exist: {analysis_dir}")
    return settings


def load_app_settings(config_path: Optional[str] = None, **sync_overrides) -> AppSettings:
    """Build validated settings from the environment plus an optional config document.

    ``sync_overrides`` are CodeGraphSyncSettings field values (e.g. from CLI
    flags) applied last; ``None`` values are ignored.
    """
    neo4j_values: dict = {}
    sync_values: dict = {}
    if config_path:
        document = _read_config_document(Path(config_path))
        neo4j_values = _section_overrides(document, "graph_db", _GRAPH_DB_KEYS)
        sync_values = _section_overrides(document, "analysis", _ANALYSIS_KEYS)
    sync_values.update({k: v for k, v in sync_overrides.items() if v is not None})

    try:
        settings = AppSettings(
            neo4j=Neo4jSettings(**neo4j_values),
            sync=CodeGraphSyncSettings(**sync_values),
        )
    except ValidationError as e:
        raise ConfigurationError(f"invalid settings: {e}") from e
    return validate_settings(settings)

