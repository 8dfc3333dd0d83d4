"""
Per-Table Analyzer
==================

Runs one table through prompt -> remote model -> strict decode.

``TableAnalyzer.analyze`` never raises for remote, parse or validation
failures. Any such failure becomes a ``FAILED`` outcome holding a single
synthetic "Analysis Error" issue, so one broken table cannot take the rest
of the batch down with it.
"""

import re
import time
from typing import Sequence

from pydantic import ValidationError

from dq_analysis.config import DEFAULT_SEED
from dq_analysis.exceptions import ResponseParseError
from dq_analysis.llm.base import LLMInterface
from dq_analysis.models import GenerationConfig, TableInput, TableOutcome
from dq_analysis.prompts import build_table_prompt
from dq_analysis.schemas import ANALYSIS_ERROR, Issue, Severity, TableAnalysis
from observability.logging_config import get_logger
from observability.metrics import track_table_analysis

logger = get_logger(__name__)

_OPENING_FENCE = re.compile(r"^```[A-Za-z0-9_-]*")
_CLOSING_FENCE = re.compile(r"```\s*\Z")


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    body = text.strip()
    if body.startswith("```"):
        body = _OPENING_FENCE.sub("", body, count=1)
        body = _CLOSING_FENCE.sub("", body, count=1)
    return body.strip()


def parse_table_analysis(text: str) -> TableAnalysis:
    """
    Decode a raw response body into a ``TableAnalysis``.

    Raises:
        ResponseParseError: If the body is not a JSON object matching the contract
    """
    body = strip_code_fence(text or "")
    if not (body.startswith("{") and body.endswith("}")):
        preview = body[:80] + ("..." if len(body) > 80 else "")
        raise ResponseParseError(f"Response is not a JSON object: {preview!r}")

    try:
        return TableAnalysis.model_validate_json(body)
    except ValidationError as e:
        raise ResponseParseError(
            f"Response does not match the analysis schema: {e.error_count()} error(s), "
            f"first: {e.errors()[0]['msg']}"
        ) from e


def degraded_issue(table_name: str, error: BaseException | str) -> Issue:
    """
    Convert an analysis failure into the issue reported in its place.

    Args:
        table_name: Table whose analysis failed
        error: The failure, or its message

    Returns:
        A High severity "Analysis Error" issue for the table
    """
    message = str(error) or type(error).__name__
    return Issue(
        table_name=table_name,
        column_name=None,
        type=ANALYSIS_ERROR,
        description=f'Analysis of table "{table_name}" failed: {message}',
        severity=Severity.HIGH,
        possible_cause="The remote model call failed or returned a malformed response.",
        impact="No data quality findings are available for this table.",
        recommendation="Retry the analysis. If the problem persists, check the table inputs and API quota.",
    )


class TableAnalyzer:
    """Analyzes a single table with the remote model."""

    def __init__(
        self,
        llm: LLMInterface,
        model: str | None = None,
        seed: int = DEFAULT_SEED,
    ) -> None:
        """
        Initialize the analyzer.

        Args:
            llm: Remote model client (usually a ``RetryingLLM``)
            model: Model name override; None uses the client's default
            seed: Fixed seed for reproducible analysis passes
        """
        self.llm = llm
        self.model = model
        self.seed = seed

    async def _run(
        self,
        table: TableInput,
        all_table_names: Sequence[str],
        applicable_rules: str,
        history: str,
    ) -> TableAnalysis:
        spec = build_table_prompt(table, all_table_names, applicable_rules, history)
        config = GenerationConfig(
            temperature=0.0,
            seed=self.seed,
            response_schema=spec.response_schema,
            model=self.model,
        )
        response = await self.llm.generate(spec.prompt, config)
        analysis = parse_table_analysis(response.text)

        # The model's copy of table_name is never trusted
        for issue in analysis.issues_detected:
            issue.table_name = table.name

        return analysis

    async def analyze(
        self,
        table: TableInput,
        all_table_names: Sequence[str],
        applicable_rules: str = "",
        history: str = "",
    ) -> TableOutcome:
        """
        Analyze one table.

        Args:
            table: The table under analysis
            all_table_names: Names of every table in the run
            applicable_rules: Rules that apply to this table
            history: Free-text incident history

        Returns:
            An ``OK`` outcome with the validated result, or a ``FAILED``
            outcome carrying one synthetic "Analysis Error" issue
        """
        log = logger.bind(table=table.name)
        log.debug("table_analysis_started")
        start_time = time.perf_counter()

        try:
            analysis = await self._run(table, all_table_names, applicable_rules, history)
        except Exception as e:
            duration = time.perf_counter() - start_time
            log.error(
                "table_analysis_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_seconds=round(duration, 3),
            )
            track_table_analysis(succeeded=False, duration_seconds=duration)
            return TableOutcome.failed(table.name, str(e), degraded_issue(table.name, e))

        duration = time.perf_counter() - start_time
        log.info(
            "table_analysis_completed",
            issues=len(analysis.issues_detected),
            rule_effectiveness=len(analysis.rule_effectiveness),
            rule_conflicts=len(analysis.rule_conflicts),
            duration_seconds=round(duration, 3),
        )
        track_table_analysis(succeeded=True, duration_seconds=duration)
        return TableOutcome.ok(table.name, analysis)


async def analyze_single_table(
    llm: LLMInterface,
    table: TableInput,
    all_table_names: Sequence[str] | None = None,
    applicable_rules: str = "",
    history: str = "",
) -> TableOutcome:
    """Analyze one table without building an orchestrator."""
    names = list(all_table_names) if all_table_names is not None else [table.name]
    return await TableAnalyzer(llm).analyze(table, names, applicable_rules, history)
