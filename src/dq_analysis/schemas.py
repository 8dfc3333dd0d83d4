"""
Response Schemas
================

Strict pydantic models for the JSON the remote model returns.

Every per-table response is decoded with ``TableAnalysis.model_validate_json``.
Anything that does not fit these models is rejected and the table degrades
to a synthetic "Analysis Error" issue upstream.
"""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, RootModel, field_validator

BUSINESS_RULE_VIOLATION = "Business Rule Violation"
ANALYSIS_ERROR = "Analysis Error"
GLOBAL_SCOPE = "Global"


class Severity(str, Enum):
    """Issue severity rating."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def _missing_(cls, value: object) -> "Severity | None":
        if isinstance(value, str):
            wanted = value.strip().casefold()
            for member in cls:
                if member.value.casefold() == wanted:
                    return member
        return None


class RuleStatus(str, Enum):
    """Canonical rule effectiveness status."""

    EFFECTIVE = "Effective"
    NEVER_TRIGGERED = "Never Triggered"
    OVERLY_BROAD = "Overly Broad"

    @classmethod
    def _missing_(cls, value: object) -> "RuleStatus | None":
        if not isinstance(value, str):
            return None
        wanted = value.strip().casefold()
        for member in cls:
            if member.value.casefold() == wanted:
                return member
        legacy = LEGACY_RULE_STATUS.get(wanted)
        return cls(legacy) if legacy else None


# Older analysis flavor used a different vocabulary; migrate on input.
LEGACY_RULE_STATUS = {
    "triggered": "Effective",
    "not triggered": "Never Triggered",
    "high volume": "Overly Broad",
}


class _ResponseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Issue(_ResponseModel):
    """A single detected data quality problem."""

    table_name: str = Field(default="", description="Owning table, enforced after parsing")
    column_name: str | None = Field(default=None, description="Affected column, if any")
    type: str = Field(..., description="Issue category")
    description: str = Field(..., description="What was detected")
    severity: Severity = Field(..., description="Low, Medium or High")
    possible_cause: str = Field(..., description="Likely cause")
    impact: str = Field(..., description="Impact on downstream processes")
    recommendation: str = Field(..., description="Remediation steps")

    @property
    def is_rule_violation(self) -> bool:
        return self.type == BUSINESS_RULE_VIOLATION


class RuleEffectiveness(_ResponseModel):
    """Evaluation of how useful one business rule is."""

    rule: str
    table_name: str = GLOBAL_SCOPE
    status: RuleStatus
    reasoning: str = Field(
        ...,
        validation_alias=AliasChoices("reasoning", "observation"),
    )
    recommendation: str | None = None


class RuleConflict(_ResponseModel):
    """A contradiction between two or more business rules."""

    conflicting_rules: list[str] = Field(..., min_length=2)
    table_name: str | None = None
    description: str = Field(
        ...,
        validation_alias=AliasChoices("description", "explanation"),
    )
    recommendation: str


class InferredRelationship(_ResponseModel):
    """A foreign-key-like link the model believes exists."""

    to_table: str
    on_column: str


class TableAnalysis(_ResponseModel):
    """Structured result of analyzing a single table."""

    issues_detected: list[Issue]
    rule_effectiveness: list[RuleEffectiveness] = Field(default_factory=list)
    rule_conflicts: list[RuleConflict] = Field(default_factory=list)
    inferred_relationships: list[InferredRelationship] = Field(default_factory=list)
    hotspot_score: int | None = Field(default=None, ge=0)

    @field_validator(
        "issues_detected",
        "rule_effectiveness",
        "rule_conflicts",
        "inferred_relationships",
        mode="before",
    )
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("hotspot_score", mode="before")
    @classmethod
    def _lenient_hotspot_score(cls, value: Any) -> Any:
        # Informational only; the graph recomputes the score from the issues
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            return None
        return value


class RuleMapping(_ResponseModel):
    """One global rule and the tables it applies to."""

    rule: str
    tables: list[str] = Field(default_factory=list)


class RuleMappingResponse(RootModel[list[RuleMapping]]):
    """Top-level array returned by the rule mapping call."""

    pass
