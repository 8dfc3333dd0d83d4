"""
Fan-Out Orchestrator
====================

Analyzes every table concurrently and merges the results into one report.
"""

import asyncio
import time
from typing import Mapping, Sequence

from dq_analysis.analyzer import TableAnalyzer
from dq_analysis.exceptions import InvalidInputError
from dq_analysis.graph import build_visualization
from dq_analysis.llm.base import LLMInterface
from dq_analysis.models import AggregatedResult, AnalysisInputs, TableInput, TableOutcome
from observability.logging_config import get_logger
from observability.metrics import track_batch_metrics
from observability.tracing import get_tracer

logger = get_logger(__name__)
tracer = get_tracer(__name__)

GlobalRuleMap = Mapping[str, Sequence[str]]


def applicable_rules_for(
    table: TableInput,
    inputs: AnalysisInputs,
    rule_map: GlobalRuleMap | None,
) -> str:
    """
    Rules text for one table's prompt.

    With a rule map, only the global rules mapped to this table are kept
    (one per line). Without one, the full global rules text is used. The
    table's own rules always follow.
    """
    parts: list[str] = []
    if rule_map is None:
        if inputs.rules.strip():
            parts.append(inputs.rules.strip())
    else:
        parts.extend(rule for rule, names in rule_map.items() if table.name in names)

    if table.rules.strip():
        parts.append(table.rules.strip())
    return "\n".join(parts)


def validate_inputs(inputs: AnalysisInputs) -> None:
    """
    Check the structure of the inputs before any work starts.

    Raises:
        InvalidInputError: If the inputs are malformed
    """
    if not isinstance(inputs, AnalysisInputs):
        raise InvalidInputError(
            f"Expected AnalysisInputs, got {type(inputs).__name__}"
        )
    for position, table in enumerate(inputs.tables):
        if not isinstance(table, TableInput):
            raise InvalidInputError(
                f"Table #{position + 1} is {type(table).__name__}, not TableInput"
            )
        if not table.name or not table.name.strip():
            raise InvalidInputError(f"Table #{position + 1} has no name")


def merge_outcomes(
    tables: Sequence[TableInput],
    outcomes: Sequence[TableOutcome],
) -> AggregatedResult:
    """
    Merge per-table outcomes in table input order.

    ``outcomes`` must be aligned with ``tables``; completion order plays no
    part in the result.
    """
    result = AggregatedResult(outcomes=list(outcomes))
    for outcome in outcomes:
        result.issues.extend(outcome.issues)
        result.rule_effectiveness.extend(outcome.rule_effectiveness)
        result.rule_conflicts.extend(outcome.rule_conflicts)
    result.visualization = build_visualization(tables, outcomes)
    return result


class AnalysisOrchestrator:
    """
    Runs the per-table analyzer for every table and aggregates the results.

    The orchestrator:
    1. Computes each table's applicable rules from the global rule map
    2. Launches one analysis per table, at most ``max_concurrency`` in flight
    3. Waits for all of them to settle
    4. Merges issues, rule effectiveness and rule conflicts in input order
    5. Derives the schema graph dataset
    """

    def __init__(
        self,
        llm: LLMInterface,
        analyzer: TableAnalyzer | None = None,
        max_concurrency: int | None = 8,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            llm: Remote model client shared by all table analyses
            analyzer: Per-table analyzer (defaults to one built on ``llm``)
            max_concurrency: Maximum analyses in flight; None means unbounded
        """
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1 or None")
        self.llm = llm
        self.analyzer = analyzer or TableAnalyzer(llm)
        self.max_concurrency = max_concurrency

    async def analyze_all(
        self,
        inputs: AnalysisInputs,
        rule_map: GlobalRuleMap | None = None,
    ) -> AggregatedResult:
        """
        Analyze every table in ``inputs``.

        Args:
            inputs: Tables, global rules and history for this run
            rule_map: Global rule -> applicable table names, or None when
                      no mapping was computed

        Returns:
            AggregatedResult with flattened sections in table input order

        Raises:
            InvalidInputError: If ``inputs`` is malformed
        """
        validate_inputs(inputs)

        if not inputs.tables:
            logger.info("analysis_batch_skipped", reason="no_tables")
            return AggregatedResult()

        table_names = inputs.table_names
        semaphore = (
            asyncio.Semaphore(self.max_concurrency) if self.max_concurrency is not None else None
        )

        async def run(table: TableInput) -> TableOutcome:
            rules = applicable_rules_for(table, inputs, rule_map)
            if semaphore is None:
                return await self.analyzer.analyze(table, table_names, rules, inputs.history)
            async with semaphore:
                return await self.analyzer.analyze(table, table_names, rules, inputs.history)

        logger.info(
            "analysis_batch_started",
            tables=len(inputs.tables),
            max_concurrency=self.max_concurrency,
            rule_map_entries=None if rule_map is None else len(rule_map),
        )
        start_time = time.perf_counter()

        with tracer.start_as_current_span("dq.analyze_all") as span:
            span.set_attribute("dq.table_count", len(inputs.tables))
            # gather returns results in argument order, whatever the completion order
            outcomes = await asyncio.gather(*(run(table) for table in inputs.tables))
            result = merge_outcomes(inputs.tables, outcomes)
            span.set_attribute("dq.failed_tables", len(result.failed_tables))

        duration = time.perf_counter() - start_time
        track_batch_metrics(len(inputs.tables), duration)
        logger.info(
            "analysis_batch_completed",
            tables=len(inputs.tables),
            failed_tables=result.failed_tables,
            issues=len(result.issues),
            duration_seconds=round(duration, 3),
        )
        return result


async def analyze_all(
    llm: LLMInterface,
    inputs: AnalysisInputs,
    rule_map: GlobalRuleMap | None = None,
    max_concurrency: int | None = 8,
) -> AggregatedResult:
    """Analyze every table with a one-off orchestrator."""
    orchestrator = AnalysisOrchestrator(llm, max_concurrency=max_concurrency)
    return await orchestrator.analyze_all(inputs, rule_map)
