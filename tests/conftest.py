"""
Pytest Fixtures
===============

Shared fixtures for data quality analysis tests.
"""

import json

import pytest

from dq_analysis.llm.mock import MockLLM
from dq_analysis.models import AnalysisInputs, TableInput


def table_route(name: str) -> str:
    """Mock route key that only matches the analysis prompt of one table."""
    return f"--- TABLE: {name} ---"


def make_issue(description: str, severity: str = "Medium", **overrides) -> dict:
    """Build one issue as the remote model would return it."""
    issue = {
        "table_name": overrides.pop("table_name", "ignored"),
        "column_name": overrides.pop("column_name", None),
        "type": overrides.pop("type", "Data Completeness"),
        "description": description,
        "severity": severity,
        "possible_cause": "Upstream load skipped validation",
        "impact": "Reports undercount",
        "recommendation": "Add a NOT NULL constraint",
    }
    issue.update(overrides)
    return issue


def make_analysis(
    issues: list[dict] | None = None,
    effectiveness: list[dict] | None = None,
    conflicts: list[dict] | None = None,
    relationships: list[dict] | None = None,
    hotspot_score: int = 0,
) -> str:
    """Serialize a per-table analysis response body."""
    return json.dumps({
        "issues_detected": issues or [],
        "rule_effectiveness": effectiveness or [],
        "rule_conflicts": conflicts or [],
        "inferred_relationships": relationships or [],
        "hotspot_score": hotspot_score,
    })


@pytest.fixture
def customers_table() -> TableInput:
    """Return the customers table input."""
    return TableInput(
        name="dbo.customers",
        schema="CREATE TABLE customers (customer_id INT PRIMARY KEY, email VARCHAR(255), age INT)",
        stats="email: 12% null\nage: min -3, max 212",
        samples="1, a@example.com, 34\n2, NULL, -3",
        rules="email must not be null",
    )


@pytest.fixture
def orders_table() -> TableInput:
    """Return the orders table input."""
    return TableInput(
        name="sales.orders",
        schema="CREATE TABLE orders (order_id INT, customer_id INT, amount DECIMAL(10,2))",
        stats="amount: min -50.00, max 9800.00",
        samples="10, 1, 25.00\n11, 99, -50.00",
        rules="amount must be positive",
    )


@pytest.fixture
def products_table() -> TableInput:
    """Return a products table with no metadata at all."""
    return TableInput(name="products")


@pytest.fixture
def sample_inputs(customers_table: TableInput, orders_table: TableInput) -> AnalysisInputs:
    """Create inputs for a two-table run."""
    return AnalysisInputs(
        tables=[customers_table, orders_table],
        rules="customer_id must reference an existing customer\nall dates must be in the past",
        history="Null spike in customers.email last quarter",
    )


@pytest.fixture
def customers_response() -> str:
    """Analysis body for dbo.customers: one Medium issue, score 2."""
    return make_analysis(
        issues=[make_issue("12% of emails are null", "Medium", column_name="email")],
        effectiveness=[
            {
                "rule": "email must not be null",
                "table_name": "dbo.customers",
                "status": "Effective",
                "reasoning": "Rule catches the null emails",
            }
        ],
        hotspot_score=2,
    )


@pytest.fixture
def orders_response() -> str:
    """Analysis body for sales.orders: High + Medium issues, score 5."""
    return make_analysis(
        issues=[
            make_issue(
                "Negative order amounts",
                "High",
                column_name="amount",
                type="Business Rule Violation",
            ),
            make_issue("Orphaned customer_id values", "Medium", column_name="customer_id"),
        ],
        conflicts=[
            {
                "conflicting_rules": ["amount must be positive", "refunds are stored as negative amounts"],
                "table_name": "sales.orders",
                "description": "Refund rows violate the positive-amount rule",
                "recommendation": "Exclude refunds from the positive-amount rule",
            }
        ],
        relationships=[{"to_table": "dbo.customers", "on_column": "customer_id"}],
        hotspot_score=5,
    )


@pytest.fixture
def mock_llm_two_tables(customers_response: str, orders_response: str) -> MockLLM:
    """Create a mock LLM answering for both sample tables."""
    return MockLLM(
        responses={
            table_route("dbo.customers"): [customers_response],
            table_route("sales.orders"): [orders_response],
        }
    )


class FakeSleep:
    """Records backoff waits instead of sleeping."""

    def __init__(self) -> None:
        self.waits: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


@pytest.fixture
def fake_sleep() -> FakeSleep:
    """Create a recording sleep replacement."""
    return FakeSleep()
