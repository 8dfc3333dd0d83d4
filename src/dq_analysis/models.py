"""
Data Models
===========

Core data structures for the data quality analysis pipeline.

Response payloads decoded from the remote model live in ``dq_analysis.schemas``;
everything here is built and owned by the pipeline itself.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from dq_analysis.schemas import (
    InferredRelationship,
    Issue,
    RuleConflict,
    RuleEffectiveness,
    TableAnalysis,
)


class OutcomeStatus(Enum):
    """Status of a single table analysis."""

    OK = "ok"
    FAILED = "failed"


@dataclass(frozen=True)
class TableInput:
    """Metadata supplied for one table under analysis."""

    name: str
    schema: str = ""
    stats: str = ""
    samples: str = ""
    rules: str = ""
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass
class AnalysisInputs:
    """Everything the caller hands to a single analysis run."""

    tables: list[TableInput] = field(default_factory=list)
    rules: str = ""
    history: str = ""

    @property
    def table_names(self) -> list[str]:
        return [table.name for table in self.tables]


@dataclass
class GenerationConfig:
    """Generation settings passed to the remote model."""

    temperature: float = 0.0
    seed: Optional[int] = None
    response_schema: Optional[dict] = None
    model: Optional[str] = None

    @property
    def response_mime_type(self) -> Optional[str]:
        return "application/json" if self.response_schema is not None else None


@dataclass
class LLMResponse:
    """Response from an LLM call."""

    text: str
    model: str
    tokens_used: int = 0


@dataclass
class PromptSpec:
    """A prompt together with the output contract it asks for."""

    prompt: str
    response_schema: Optional[dict] = None


@dataclass
class TableOutcome:
    """
    Result of analyzing one table.

    Either ``OK`` with the validated sections, or ``FAILED`` carrying the error
    message and a single synthetic issue describing it. Both shapes merge the
    same way, so a failed table still shows up in the aggregate report.
    """

    table_name: str
    status: OutcomeStatus
    issues: list[Issue] = field(default_factory=list)
    rule_effectiveness: list[RuleEffectiveness] = field(default_factory=list)
    rule_conflicts: list[RuleConflict] = field(default_factory=list)
    inferred_relationships: list[InferredRelationship] = field(default_factory=list)
    model_hotspot_score: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, table_name: str, analysis: TableAnalysis) -> "TableOutcome":
        return cls(
            table_name=table_name,
            status=OutcomeStatus.OK,
            issues=list(analysis.issues_detected),
            rule_effectiveness=list(analysis.rule_effectiveness),
            rule_conflicts=list(analysis.rule_conflicts),
            inferred_relationships=list(analysis.inferred_relationships),
            model_hotspot_score=analysis.hotspot_score,
        )

    @classmethod
    def failed(cls, table_name: str, error: str, issue: Issue) -> "TableOutcome":
        return cls(
            table_name=table_name,
            status=OutcomeStatus.FAILED,
            issues=[issue],
            error=error,
        )

    @property
    def succeeded(self) -> bool:
        return self.status == OutcomeStatus.OK


@dataclass(frozen=True)
class SchemaNode:
    """Graph node, one per table."""

    id: str
    label: str


@dataclass(frozen=True)
class SchemaEdge:
    """Inferred relationship between two known tables."""

    source: str
    target: str
    label: str


@dataclass(frozen=True)
class Hotspot:
    """Severity-weighted score for one table."""

    table_name: str
    score: int


@dataclass
class SchemaVisualizationData:
    """Node/edge/hotspot dataset for the schema graph view."""

    nodes: list[SchemaNode] = field(default_factory=list)
    edges: list[SchemaEdge] = field(default_factory=list)
    hotspots: list[Hotspot] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [{"id": n.id, "label": n.label} for n in self.nodes],
            "edges": [{"from": e.source, "to": e.target, "label": e.label} for e in self.edges],
            "hotspots": [{"tableName": h.table_name, "score": h.score} for h in self.hotspots],
        }


@dataclass
class AggregatedResult:
    """Merged, cross-table view of one analysis run."""

    issues: list[Issue] = field(default_factory=list)
    rule_effectiveness: list[RuleEffectiveness] = field(default_factory=list)
    rule_conflicts: list[RuleConflict] = field(default_factory=list)
    visualization: Optional[SchemaVisualizationData] = None
    outcomes: list[TableOutcome] = field(default_factory=list)

    @property
    def failed_tables(self) -> list[str]:
        return [o.table_name for o in self.outcomes if not o.succeeded]

    def to_dict(self) -> dict[str, Any]:
        return {
            "issues_detected": [i.model_dump(mode="json") for i in self.issues],
            "rule_effectiveness": [r.model_dump(mode="json") for r in self.rule_effectiveness],
            "rule_conflicts": [c.model_dump(mode="json") for c in self.rule_conflicts],
            "schema_visualization": (
                self.visualization.to_dict() if self.visualization is not None else None
            ),
        }
