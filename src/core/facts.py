"""Analyzer boundary: the facts document produced by the upstream analyzer.

The analyzer (parsing, SSA, call-graph construction) runs elsewhere and drops
a JSON document into the analysis directory. Only the shape of that document
is defined here.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import structlog
from pydantic import BaseModel, Field, ValidationError

logger = structlog.get_logger(__name__)


class AnalysisInputError(Exception):
    """Raised when the analyzer output cannot be read or parsed."""


class PositionFact(BaseModel):
    line: int = Field(default=0, ge=0)
    column: int = Field(default=0, ge=0)


class FileFact(BaseModel):
    path: str = Field(min_length=1)
    lines: int = Field(default=0, ge=0)


class PackageFact(BaseModel):
    name: str
    path: str = Field(min_length=1)
    # Child scopes of the package, identified by the path of their file.
    scopes: list[str] = Field(default_factory=list)


class StructFieldFact(BaseModel):
    name: str
    type: str


class ElementFact(BaseModel):
    """One declared member of a package.

    ``kind`` is a free string; unknown kinds are rejected by the normalizer
    as classification errors.
    """

    kind: str
    name: str
    pkg: str = ""
    file: str = ""
    position: PositionFact = Field(default_factory=PositionFact)
    # function
    signature: str = ""
    receiver: Optional[str] = None
    # global / const
    declared_type: str = ""
    value: str = ""
    # type
    underlying: str = ""
    struct_fields: Optional[list[StructFieldFact]] = None
    methods: list[str] = Field(default_factory=list)

    @property
    def is_struct(self) -> bool:
        return self.struct_fields is not None


class ElementRef(BaseModel):
    pkg: str
    name: str
    receiver: Optional[str] = None


class CallFact(BaseModel):
    caller: ElementRef
    callee: ElementRef


class ImportFact(BaseModel):
    file: str
    package: str


class AnalysisFacts(BaseModel):
    program: Optional[str] = None
    files: list[FileFact] = Field(default_factory=list)
    packages: list[PackageFact] = Field(default_factory=list)
    elements: list[ElementFact] = Field(default_factory=list)
    calls: list[CallFact] = Field(default_factory=list)
    imports: list[ImportFact] = Field(default_factory=list)


def load_facts(path: Path) -> AnalysisFacts:
    """Read and validate the analyzer facts document at ``path``."""

    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise AnalysisInputError(f"cannot read analyzer output {path}: {e}") from e

    try:
        facts = AnalysisFacts.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        raise AnalysisInputError(f"invalid analyzer output {path}: {e}") from e

    logger.info(
        "facts.loaded",
        path=str(path),
        files=len(facts.files),
        packages=len(facts.packages),
        elements=len(facts.elements),
        calls=len(facts.calls),
        imports=len(facts.imports),
    )
    return facts
