"""
Unit Tests for TableAnalyzer
============================

Tests for per-table analysis, validation and failure isolation.
"""

import json

import pytest

from conftest import make_analysis, make_issue, table_route
from dq_analysis.analyzer import (
    TableAnalyzer,
    analyze_single_table,
    degraded_issue,
    parse_table_analysis,
    strip_code_fence,
)
from dq_analysis.exceptions import RemoteError, ResponseParseError
from dq_analysis.llm.mock import MockLLM
from dq_analysis.models import OutcomeStatus, TableInput
from dq_analysis.schemas import ANALYSIS_ERROR, Severity


class TestParsing:
    """Tests for response decoding."""

    def test_strip_code_fence(self) -> None:
        """Test that markdown fences are removed."""
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
        assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'
        assert strip_code_fence('```json {"a": 1} ```') == '{"a": 1}'
        assert strip_code_fence('```{"a": 1}```') == '{"a": 1}'

    def test_parse_fenced_response(self) -> None:
        """Test that a fenced JSON object still decodes."""
        analysis = parse_table_analysis('```json\n{"issues_detected": []}\n```')
        assert analysis.issues_detected == []
        assert parse_table_analysis('```json {"issues_detected": []} ```').issues_detected == []

    @pytest.mark.parametrize("body", ["", "[]", "Sorry, I cannot help", '"text"'])
    def test_non_object_rejected(self, body: str) -> None:
        """Test that anything but a JSON object is a parse failure."""
        with pytest.raises(ResponseParseError):
            parse_table_analysis(body)

    def test_malformed_json_rejected(self) -> None:
        """Test that broken JSON is a parse failure."""
        with pytest.raises(ResponseParseError):
            parse_table_analysis('{"issues_detected": [}')

    def test_schema_violation_rejected(self) -> None:
        """Test that a shape mismatch is a parse failure."""
        body = json.dumps({"issues_detected": [{"type": "Anomaly", "severity": "Severe"}]})
        with pytest.raises(ResponseParseError, match="analysis schema"):
            parse_table_analysis(body)


class TestDegradedIssue:
    """Tests for the error-to-issue conversion."""

    def test_degraded_issue_fields(self) -> None:
        """Test the synthetic issue reported in place of a failed analysis."""
        issue = degraded_issue("dbo.customers", RemoteError("401 UNAUTHENTICATED"))
        assert issue.table_name == "dbo.customers"
        assert issue.type == ANALYSIS_ERROR
        assert issue.severity is Severity.HIGH
        assert "401 UNAUTHENTICATED" in issue.description

    def test_degraded_issue_without_message(self) -> None:
        """Test that an empty error message falls back to the error type."""
        issue = degraded_issue("t", TimeoutError())
        assert "TimeoutError" in issue.description


class TestTableAnalyzer:
    """Tests for TableAnalyzer.analyze."""

    @pytest.mark.asyncio
    async def test_successful_analysis(
        self, customers_table: TableInput, customers_response: str
    ) -> None:
        """Test that a valid response becomes an OK outcome."""
        llm = MockLLM(responses={table_route("dbo.customers"): [customers_response]})
        outcome = await TableAnalyzer(llm).analyze(customers_table, ["dbo.customers"])

        assert outcome.status == OutcomeStatus.OK
        assert outcome.succeeded is True
        assert len(outcome.issues) == 1
        assert outcome.issues[0].column_name == "email"
        assert len(outcome.rule_effectiveness) == 1
        assert outcome.model_hotspot_score == 2
        assert outcome.error is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("score", [2.5, -1])
    async def test_bad_model_score_keeps_issues(
        self, customers_table: TableInput, score: float
    ) -> None:
        """Test that an unusable model hotspot score does not fail the table."""
        body = json.dumps({
            "issues_detected": [make_issue("Ages out of range", "High", column_name="age")],
            "hotspot_score": score,
        })
        outcome = await TableAnalyzer(MockLLM(default=body)).analyze(customers_table, [])

        assert outcome.status == OutcomeStatus.OK
        assert [i.description for i in outcome.issues] == ["Ages out of range"]
        assert outcome.model_hotspot_score is None

    @pytest.mark.asyncio
    async def test_table_name_overwritten(self, customers_table: TableInput) -> None:
        """Test that wrong or missing table names are replaced with the real one."""
        wrong = make_issue("wrong name", table_name="customers_v2")
        missing = make_issue("no name")
        del missing["table_name"]
        llm = MockLLM(
            responses={table_route("dbo.customers"): [make_analysis(issues=[wrong, missing])]}
        )

        outcome = await TableAnalyzer(llm).analyze(customers_table, ["dbo.customers"])

        assert outcome.succeeded
        assert [i.table_name for i in outcome.issues] == ["dbo.customers", "dbo.customers"]

    @pytest.mark.asyncio
    async def test_deterministic_generation_config(self, customers_table: TableInput) -> None:
        """Test that analysis runs at temperature 0 with a fixed seed and schema."""
        llm = MockLLM()
        await TableAnalyzer(llm, model="gemini-test", seed=7).analyze(
            customers_table, ["dbo.customers"]
        )

        config = llm.calls[0].config
        assert config.temperature == 0.0
        assert config.seed == 7
        assert config.model == "gemini-test"
        assert config.response_schema is not None
        assert config.response_mime_type == "application/json"

    @pytest.mark.asyncio
    async def test_remote_failure_degrades(self, customers_table: TableInput) -> None:
        """Test that a remote error becomes a single Analysis Error issue."""
        llm = MockLLM(responses={table_route("dbo.customers"): [RemoteError("500 INTERNAL")]})

        outcome = await TableAnalyzer(llm).analyze(customers_table, ["dbo.customers"])

        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.error == "500 INTERNAL"
        assert len(outcome.issues) == 1
        assert outcome.issues[0].type == ANALYSIS_ERROR
        assert outcome.issues[0].severity is Severity.HIGH
        assert outcome.issues[0].table_name == "dbo.customers"
        assert outcome.rule_effectiveness == []
        assert outcome.rule_conflicts == []
        assert outcome.inferred_relationships == []

    @pytest.mark.asyncio
    async def test_parse_failure_degrades(self, customers_table: TableInput) -> None:
        """Test that a non-JSON response degrades instead of raising."""
        llm = MockLLM(responses={table_route("dbo.customers"): ["I found no issues."]})

        outcome = await TableAnalyzer(llm).analyze(customers_table, ["dbo.customers"])

        assert outcome.status == OutcomeStatus.FAILED
        assert "not a JSON object" in outcome.issues[0].description

    @pytest.mark.asyncio
    async def test_unexpected_exception_degrades(self, customers_table: TableInput) -> None:
        """Test that any exception type is contained."""
        llm = MockLLM(responses={table_route("dbo.customers"): [KeyError("text")]})

        outcome = await TableAnalyzer(llm).analyze(customers_table, ["dbo.customers"])

        assert outcome.status == OutcomeStatus.FAILED

    @pytest.mark.asyncio
    async def test_analyze_single_table(self, orders_table: TableInput, orders_response: str) -> None:
        """Test the standalone convenience entry point."""
        llm = MockLLM(responses={table_route("sales.orders"): [orders_response]})

        outcome = await analyze_single_table(llm, orders_table)

        assert outcome.succeeded
        assert len(outcome.issues) == 2
        assert outcome.issues[0].is_rule_violation
        assert "None available." in llm.calls[0].prompt
