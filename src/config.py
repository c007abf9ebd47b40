"""Service-specific configuration for the code graph sync pipeline."""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from configuration.base_config import BaseConfig


class CodeGraphSyncSettings(BaseConfig):
    """Settings for loading analyzer facts and writing the snapshot."""

    CODEGRAPH_ANALYSIS_DIR: str = Field(
        default=".",
        description="Directory holding the analyzer output for the program being synced.",
    )
    CODEGRAPH_FACTS_FILENAME: str = Field(
        default="facts.json",
        description="Name of the analyzer facts document inside CODEGRAPH_ANALYSIS_DIR.",
    )
    CODEGRAPH_PROGRAM_NAME: Optional[str] = Field(
        default=None,
        description="Name of the Program root. Falls back to the facts document, then to the analysis dir name.",
    )
    CODEGRAPH_MONITOR_INTERVAL_SEC: float = Field(
        default=1.0,
        description="Sampling interval of the write throughput monitor.",
    )
    CODEGRAPH_PARAMETERIZED_WRITES: bool = Field(
        default=True,
        description="Send node properties as query parameters instead of escaped inline literals.",
    )
    CODEGRAPH_FAIL_ON_WRITE_ERRORS: bool = Field(
        default=True,
        description="Exit with a non-zero status when any delete/create/index statement failed.",
    )

    @field_validator("CODEGRAPH_MONITOR_INTERVAL_SEC")
    @classmethod
    def validate_interval(cls, v):
        if v <= 0:
            raise ValueError(f"Monitor interval must be positive, got {v}")
        return v

