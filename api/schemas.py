"""
API Schemas
===========

Pydantic models for API request/response validation.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from dq_analysis.models import TableInput
from dq_analysis.schemas import Issue, RuleConflict, RuleEffectiveness


class TableInputRequest(BaseModel):
    """Metadata for one table to analyze."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=256,
        description="Table name, possibly schema-qualified",
        examples=["dbo.customers"],
    )
    schema_definition: str = Field(
        default="",
        alias="schema",
        description="DDL or column list",
    )
    stats: str = Field(default="", description="Column-level profile report")
    samples: str = Field(default="", description="Sample data rows")
    rules: str = Field(default="", description="Business rules specific to this table")

    def to_table_input(self) -> TableInput:
        return TableInput(
            name=self.name.strip(),
            schema=self.schema_definition,
            stats=self.stats,
            samples=self.samples,
            rules=self.rules,
        )


class AnalyzeRequest(BaseModel):
    """Request body for a multi-table analysis."""

    tables: list[TableInputRequest] = Field(
        default_factory=list,
        max_length=200,
        description="Tables to analyze",
    )
    rules: str = Field(default="", description="Global business rules for all tables")
    history: str = Field(default="", description="Historical anomalies or incidents")
    map_rules: bool = Field(
        default=True,
        description="Narrow global rules per table with a mapping pass first",
    )


class SchemaNodeResponse(BaseModel):
    """Graph node."""

    id: str
    label: str


class SchemaEdgeResponse(BaseModel):
    """Graph edge between two analyzed tables."""

    model_config = ConfigDict(populate_by_name=True)

    source: str = Field(..., alias="from", serialization_alias="from")
    target: str = Field(..., alias="to", serialization_alias="to")
    label: str


class HotspotResponse(BaseModel):
    """Severity-weighted score for one table."""

    model_config = ConfigDict(populate_by_name=True)

    table_name: str = Field(..., alias="tableName", serialization_alias="tableName")
    score: int = Field(..., ge=0)


class SchemaVisualizationResponse(BaseModel):
    """Schema graph dataset."""

    nodes: list[SchemaNodeResponse] = Field(default_factory=list)
    edges: list[SchemaEdgeResponse] = Field(default_factory=list)
    hotspots: list[HotspotResponse] = Field(default_factory=list)


class AnalyzeResponse(BaseModel):
    """Response body for a multi-table analysis."""

    issues_detected: list[Issue] = Field(default_factory=list)
    rule_effectiveness: list[RuleEffectiveness] = Field(default_factory=list)
    rule_conflicts: list[RuleConflict] = Field(default_factory=list)
    schema_visualization: SchemaVisualizationResponse | None = Field(
        None,
        description="Graph dataset, absent when there is nothing to visualize",
    )
    failed_tables: list[str] = Field(
        default_factory=list,
        description="Tables whose analysis degraded to an error issue",
    )
    request_id: str = Field(..., description="Unique request identifier")
    processing_time_ms: float = Field(..., description="Processing time in milliseconds")


class RuleMapRequest(BaseModel):
    """Request body for global rule mapping."""

    tables: list[TableInputRequest] = Field(default_factory=list, max_length=200)
    rules: str = Field(default="", description="Global business rules")


class RuleMapResponse(BaseModel):
    """Global rule -> applicable table names."""

    rule_map: dict[str, list[str]] = Field(default_factory=dict)
    request_id: str = Field(..., description="Unique request identifier")


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(..., description="Overall health status")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual component health checks",
    )


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(..., description="Whether the service is ready to handle requests")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual readiness checks",
    )


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    request_id: str | None = Field(None, description="Request ID if available")
