"""
Data Quality Analysis
=====================

LLM-backed data quality analysis of database table metadata, with per-table
fan-out, failure isolation and cross-table aggregation.
"""

from dq_analysis.models import (
    AggregatedResult,
    AnalysisInputs,
    GenerationConfig,
    Hotspot,
    LLMResponse,
    OutcomeStatus,
    PromptSpec,
    SchemaEdge,
    SchemaNode,
    SchemaVisualizationData,
    TableInput,
    TableOutcome,
)
from dq_analysis.schemas import (
    Issue,
    InferredRelationship,
    RuleConflict,
    RuleEffectiveness,
    RuleStatus,
    Severity,
    TableAnalysis,
)
from dq_analysis.exceptions import (
    ConfigurationError,
    DQAnalysisError,
    InvalidInputError,
    RateLimitError,
    RemoteError,
    RemoteTimeoutError,
    ResponseParseError,
)
from dq_analysis.analyzer import TableAnalyzer, analyze_single_table, degraded_issue
from dq_analysis.orchestrator import AnalysisOrchestrator, analyze_all
from dq_analysis.graph import build_visualization, hotspot_score
from dq_analysis.rule_mapper import GlobalRuleMapper, map_global_rules_to_tables
from dq_analysis.reports import ReportGenerator, normalize_issue_type
from dq_analysis.llm import GeminiLLM, LLMInterface, MockLLM, RetryingLLM

__version__ = "0.1.0"

__all__ = [
    # Models
    "TableInput",
    "AnalysisInputs",
    "GenerationConfig",
    "LLMResponse",
    "PromptSpec",
    "OutcomeStatus",
    "TableOutcome",
    "SchemaNode",
    "SchemaEdge",
    "Hotspot",
    "SchemaVisualizationData",
    "AggregatedResult",
    # Response schemas
    "Issue",
    "InferredRelationship",
    "RuleConflict",
    "RuleEffectiveness",
    "RuleStatus",
    "Severity",
    "TableAnalysis",
    # Errors
    "DQAnalysisError",
    "RemoteError",
    "RateLimitError",
    "RemoteTimeoutError",
    "ResponseParseError",
    "InvalidInputError",
    "ConfigurationError",
    # Pipeline
    "TableAnalyzer",
    "analyze_single_table",
    "degraded_issue",
    "AnalysisOrchestrator",
    "analyze_all",
    "build_visualization",
    "hotspot_score",
    "GlobalRuleMapper",
    "map_global_rules_to_tables",
    "ReportGenerator",
    "normalize_issue_type",
    # LLM
    "LLMInterface",
    "GeminiLLM",
    "MockLLM",
    "RetryingLLM",
]
