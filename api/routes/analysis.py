"""
Analysis Routes
===============

API endpoints for multi-table data quality analysis and rule mapping.
"""

import time
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request

from api.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    ErrorResponse,
    RuleMapRequest,
    RuleMapResponse,
    SchemaVisualizationResponse,
)
from dq_analysis.exceptions import InvalidInputError
from dq_analysis.models import AnalysisInputs
from dq_analysis.orchestrator import AnalysisOrchestrator, validate_inputs
from dq_analysis.rule_mapper import GlobalRuleMapper
from observability.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Analysis"])


def get_orchestrator(request: Request) -> AnalysisOrchestrator:
    """Dependency to get the configured orchestrator from app state."""
    return request.app.state.orchestrator


def get_rule_mapper(request: Request) -> GlobalRuleMapper:
    """Dependency to get the configured rule mapper from app state."""
    return request.app.state.rule_mapper


def get_request_id(request: Request) -> str:
    """Reuse the telemetry request ID, or generate one."""
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _invalid_input(error: InvalidInputError, request_id: str) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={
            "error": "InvalidInput",
            "message": str(error),
            "request_id": request_id,
        },
    )


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Analyze table metadata for data quality issues",
    description=(
        "Analyzes every table concurrently and returns the merged issues, rule "
        "evaluations and schema graph"
    ),
)
async def analyze_tables(
    body: AnalyzeRequest,
    orchestrator: Annotated[AnalysisOrchestrator, Depends(get_orchestrator)],
    rule_mapper: Annotated[GlobalRuleMapper, Depends(get_rule_mapper)],
    request_id: Annotated[str, Depends(get_request_id)],
) -> AnalyzeResponse:
    """
    Run a full analysis.

    The endpoint:
    1. Optionally maps global rules onto tables
    2. Analyzes each table with failure isolation
    3. Returns the merged report

    A table whose analysis fails shows up as a single "Analysis Error" issue
    and in ``failed_tables``; the request itself still succeeds.
    """
    start_time = time.perf_counter()
    inputs = AnalysisInputs(
        tables=[t.to_table_input() for t in body.tables],
        rules=body.rules,
        history=body.history,
    )

    try:
        validate_inputs(inputs)
    except InvalidInputError as e:
        raise _invalid_input(e, request_id)

    rule_map = None
    if body.map_rules and inputs.rules.strip():
        rule_map = await rule_mapper.map(inputs.tables, inputs.rules)
        # Mapped rules are returned even with no tables, so empty means the
        # mapping pass failed; every table then gets the full global rules
        if not rule_map:
            logger.info("rule_mapping_unavailable", tables=len(inputs.tables))
            rule_map = None

    try:
        result = await orchestrator.analyze_all(inputs, rule_map)
    except InvalidInputError as e:
        raise _invalid_input(e, request_id)

    visualization = None
    if result.visualization is not None:
        visualization = SchemaVisualizationResponse.model_validate(result.visualization.to_dict())

    return AnalyzeResponse(
        issues_detected=result.issues,
        rule_effectiveness=result.rule_effectiveness,
        rule_conflicts=result.rule_conflicts,
        schema_visualization=visualization,
        failed_tables=result.failed_tables,
        request_id=request_id,
        processing_time_ms=(time.perf_counter() - start_time) * 1000,
    )


@router.post(
    "/rules/map",
    response_model=RuleMapResponse,
    summary="Map global rules to tables",
    description="Decides which global business rules apply to which tables",
)
async def map_rules(
    body: RuleMapRequest,
    rule_mapper: Annotated[GlobalRuleMapper, Depends(get_rule_mapper)],
    request_id: Annotated[str, Depends(get_request_id)],
) -> RuleMapResponse:
    """Return the global rule map; empty when mapping is skipped or fails."""
    tables = [t.to_table_input() for t in body.tables]
    rule_map = await rule_mapper.map(tables, body.rules)
    return RuleMapResponse(rule_map=rule_map, request_id=request_id)
