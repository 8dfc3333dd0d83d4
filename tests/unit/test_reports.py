"""
Unit Tests for Report Helpers
=============================

Tests for issue categorization, SQL generation and summaries.
"""

import pytest

from dq_analysis.exceptions import RemoteError
from dq_analysis.llm.mock import MockLLM
from dq_analysis.reports import (
    NO_ACTIONABLE_SQL,
    SQL_GENERATION_FAILED,
    SUMMARY_FAILED,
    ReportGenerator,
    group_issues_by_table,
    normalize_issue_type,
    split_business_rule_issues,
)
from dq_analysis.schemas import Issue, Severity


def issue(table: str, issue_type: str, description: str = "d") -> Issue:
    return Issue(
        table_name=table,
        type=issue_type,
        description=description,
        severity=Severity.MEDIUM,
        possible_cause="c",
        impact="i",
        recommendation="r",
    )


class TestNormalizeIssueType:
    """Tests for issue type categories."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Schema Drift", "Schema Drift"),
            ("Data Type Mismatch", "Schema Drift"),
            ("Null Spike", "Data Completeness"),
            ("Outlier", "Anomaly Detection"),
            ("Inconsistent formatting", "Formatting & Consistency"),
            ("Duplicate Records", "Uniqueness & Duplication"),
            ("Stale data", "Data Freshness"),
        ],
    )
    def test_keyword_categories(self, raw: str, expected: str) -> None:
        """Test keyword mapping onto canonical categories."""
        assert normalize_issue_type(raw) == expected

    def test_fallback_title_case(self) -> None:
        """Test that unknown types are cleaned up."""
        assert normalize_issue_type("referential_integrity/orphans") == "Referential Integrity"

    @pytest.mark.parametrize("raw", ["", None, "   "])
    def test_empty(self, raw) -> None:
        """Test that a missing type is uncategorized."""
        assert normalize_issue_type(raw) == "Uncategorized"


class TestGrouping:
    """Tests for grouping helpers."""

    def test_group_by_table(self) -> None:
        """Test grouping keeps first-seen order."""
        issues = [issue("b", "x"), issue("a", "y"), issue("b", "z")]
        grouped = group_issues_by_table(issues)
        assert list(grouped) == ["b", "a"]
        assert [i.type for i in grouped["b"]] == ["x", "z"]

    def test_split_rule_violations(self) -> None:
        """Test separating rule violations from other issues."""
        issues = [issue("a", "Business Rule Violation"), issue("a", "Anomaly")]
        violations, others = split_business_rule_issues(issues)
        assert [i.type for i in violations] == ["Business Rule Violation"]
        assert [i.type for i in others] == ["Anomaly"]


class TestReportGenerator:
    """Tests for free-text follow-ups."""

    @pytest.mark.asyncio
    async def test_sql_skips_non_actionable(self) -> None:
        """Test that schema drift and type mismatches never reach the model."""
        llm = MockLLM()
        issues = [
            issue("t", "Schema Drift"),
            issue("t", "Anomaly", "Data type mismatch in amount"),
        ]

        sql = await ReportGenerator(llm).generate_sql_for_issues("t", issues)

        assert sql == NO_ACTIONABLE_SQL
        assert llm.call_count == 0

    @pytest.mark.asyncio
    async def test_sql_generated(self) -> None:
        """Test SQL generation for actionable issues."""
        llm = MockLLM(responses={"expert SQL developer": ["SELECT * FROM t WHERE amount < 0"]})
        issues = [issue("t", "Schema Drift"), issue("t", "Anomaly", "Negative amounts")]

        sql = await ReportGenerator(llm).generate_sql_for_issues("t", issues)

        assert sql == "SELECT * FROM t WHERE amount < 0"
        assert "Negative amounts" in llm.calls[0].prompt
        assert '"Schema Drift"' not in llm.calls[0].prompt

    @pytest.mark.asyncio
    async def test_sql_failure(self) -> None:
        """Test the fallback comment on failure."""
        llm = MockLLM(default=RemoteError("500"))
        sql = await ReportGenerator(llm).generate_sql_for_issues("t", [issue("t", "Anomaly")])
        assert sql == SQL_GENERATION_FAILED

    @pytest.mark.asyncio
    async def test_summary(self) -> None:
        """Test summary generation settings."""
        llm = MockLLM(responses={"executive summary": ["## Summary"]})

        summary = await ReportGenerator(llm).generate_report_summary([issue("t", "Anomaly")], [], [])

        assert summary == "## Summary"
        assert llm.calls[0].config.temperature == 0.2
        assert llm.calls[0].config.response_schema is None

    @pytest.mark.asyncio
    async def test_summary_failure(self) -> None:
        """Test the fallback summary on failure."""
        llm = MockLLM(default=RemoteError("429"))
        summary = await ReportGenerator(llm).generate_report_summary([], [], [])
        assert summary == SUMMARY_FAILED
