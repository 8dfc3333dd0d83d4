"""
Report Helpers
==============

Issue categorization plus the free-text follow-ups built on a finished
report: row-finding SQL per table and an executive summary.
"""

from collections import defaultdict
from typing import Sequence

from dq_analysis.config import DEFAULT_SEED
from dq_analysis.llm.base import LLMInterface
from dq_analysis.models import GenerationConfig
from dq_analysis.prompts import build_sql_prompt, build_summary_prompt
from dq_analysis.schemas import Issue, RuleConflict, RuleEffectiveness
from observability.logging_config import get_logger

logger = get_logger(__name__)

UNCATEGORIZED = "Uncategorized"
SCHEMA_DRIFT = "Schema Drift"

# First matching category wins, so order matters
ISSUE_CATEGORIES: dict[str, tuple[str, ...]] = {
    SCHEMA_DRIFT: ("schema", "drift", "data type", "mismatch", "added column", "removed column", "type change"),
    "Data Completeness": ("completeness", "null", "missing", "empty", "sparsity"),
    "Anomaly Detection": ("anomaly", "outlier", "unexpected", "spike", "unusual"),
    "Formatting & Consistency": ("format", "consistency", "case", "whitespace", "invalid char"),
    "Uniqueness & Duplication": ("duplicate", "unique", "uniqueness", "primary key violation"),
    "Data Freshness": ("freshness", "stale", "outdated", "latency"),
}

NO_ACTIONABLE_SQL = (
    "-- No actionable issues found that can be directly queried.\n"
    "-- Issues like schema drift or data type mismatches need to be addressed "
    "in the ETL process or table definition."
)
SQL_GENERATION_FAILED = "-- An error occurred while generating SQL queries. Please try again."
SUMMARY_FAILED = (
    "### Report Generation Failed\n\n"
    "An error occurred while generating the summary report, likely due to API rate limits "
    "or server load. The detailed issue list is complete, but the summary could not be "
    "created at this time. Please try the analysis again later."
)


def normalize_issue_type(raw_type: str | None) -> str:
    """
    Map a free-text issue type onto a canonical category.

    Unknown types fall back to the title-cased first ``/``-separated part.
    """
    if not raw_type or not raw_type.strip():
        return UNCATEGORIZED

    lowered = raw_type.lower()
    for category, keywords in ISSUE_CATEGORIES.items():
        if any(keyword in lowered for keyword in keywords):
            return category

    head = raw_type.split("/")[0].strip().replace("_", " ")
    return " ".join(word[:1].upper() + word[1:].lower() for word in head.split()) or UNCATEGORIZED


def group_issues_by_table(issues: Sequence[Issue]) -> dict[str, list[Issue]]:
    """Group issues by table, keeping first-seen table order."""
    grouped: dict[str, list[Issue]] = defaultdict(list)
    for issue in issues:
        grouped[issue.table_name].append(issue)
    return dict(grouped)


def split_business_rule_issues(issues: Sequence[Issue]) -> tuple[list[Issue], list[Issue]]:
    """Split issues into (rule violations, everything else)."""
    violations = [i for i in issues if i.is_rule_violation]
    others = [i for i in issues if not i.is_rule_violation]
    return violations, others


def is_sql_actionable(issue: Issue) -> bool:
    """Whether rows behind the issue can be located with a query."""
    return issue.type != SCHEMA_DRIFT and "data type mismatch" not in issue.description.lower()


class ReportGenerator:
    """Free-text follow-ups on a finished analysis."""

    def __init__(self, llm: LLMInterface, model: str | None = None, seed: int = DEFAULT_SEED) -> None:
        self.llm = llm
        self.model = model
        self.seed = seed

    async def generate_sql_for_issues(self, table_name: str, issues: Sequence[Issue]) -> str:
        """
        Generate SQL that finds the rows behind each actionable issue.

        Returns a fixed SQL comment when no issue is actionable or the call fails.
        """
        actionable = [issue for issue in issues if is_sql_actionable(issue)]
        if not actionable:
            return NO_ACTIONABLE_SQL

        spec = build_sql_prompt(table_name, actionable)
        config = GenerationConfig(temperature=0.0, seed=self.seed, model=self.model)
        try:
            response = await self.llm.generate(spec.prompt, config)
        except Exception as e:
            logger.error("sql_generation_failed", table=table_name, error=str(e))
            return SQL_GENERATION_FAILED
        return response.text

    async def generate_report_summary(
        self,
        issues: Sequence[Issue],
        effectiveness: Sequence[RuleEffectiveness],
        conflicts: Sequence[RuleConflict],
    ) -> str:
        """Generate a markdown executive summary, or a fixed fallback on failure."""
        spec = build_summary_prompt(issues, effectiveness, conflicts)
        config = GenerationConfig(temperature=0.2, model=self.model)
        try:
            response = await self.llm.generate(spec.prompt, config)
        except Exception as e:
            logger.error("summary_generation_failed", error=str(e))
            return SUMMARY_FAILED
        return response.text
