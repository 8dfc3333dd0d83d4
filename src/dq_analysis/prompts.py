"""
Prompt Builders
===============

Prompts and structured-output contracts for every remote model call.

Each builder returns a ``PromptSpec``: the prompt text plus, where the call
expects JSON back, the response schema the model's structured-output mode
must honor. Schemas use the Gemini schema dialect (upper-case type names).
"""

import json
from typing import Iterable, Sequence

from dq_analysis.models import PromptSpec, TableInput
from dq_analysis.schemas import (
    BUSINESS_RULE_VIOLATION,
    GLOBAL_SCOPE,
    Issue,
    RuleConflict,
    RuleEffectiveness,
    RuleStatus,
    Severity,
)

NOT_PROVIDED = "Not provided."
NO_OTHER_TABLES = "None available."

SEVERITY_WEIGHTS = {
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
}

TABLE_ANALYSIS_SCHEMA: dict = {
    "type": "OBJECT",
    "properties": {
        "issues_detected": {
            "type": "ARRAY",
            "description": "A list of detected data quality issues.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "table_name": {
                        "type": "STRING",
                        "description": "The name of the table where the issue was found.",
                    },
                    "column_name": {
                        "type": "STRING",
                        "description": "The name of the column where the issue was found, if applicable.",
                    },
                    "type": {
                        "type": "STRING",
                        "description": 'The type of issue, e.g. "Schema Drift", "Anomaly", "Business Rule Violation".',
                    },
                    "description": {
                        "type": "STRING",
                        "description": "A detailed description of the detected issue.",
                    },
                    "severity": {
                        "type": "STRING",
                        "enum": [s.value for s in Severity],
                        "description": "The severity rating.",
                    },
                    "possible_cause": {
                        "type": "STRING",
                        "description": "A likely cause for the issue.",
                    },
                    "impact": {
                        "type": "STRING",
                        "description": "Potential impact on downstream processes.",
                    },
                    "recommendation": {
                        "type": "STRING",
                        "description": "Recommended steps for remediation.",
                    },
                },
                "required": [
                    "table_name",
                    "type",
                    "description",
                    "severity",
                    "possible_cause",
                    "impact",
                    "recommendation",
                ],
            },
        },
        "rule_effectiveness": {
            "type": "ARRAY",
            "description": "An analysis of how effective the provided business rules are.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "rule": {"type": "STRING", "description": "The business rule being analyzed."},
                    "table_name": {
                        "type": "STRING",
                        "description": 'The table the rule applies to. Can be "Global".',
                    },
                    "status": {
                        "type": "STRING",
                        "enum": [s.value for s in RuleStatus],
                        "description": "Evaluation of the rule.",
                    },
                    "reasoning": {
                        "type": "STRING",
                        "description": "The reasoning behind the status evaluation.",
                    },
                    "recommendation": {
                        "type": "STRING",
                        "description": "Optional suggestion for improving the rule.",
                    },
                },
                "required": ["rule", "table_name", "status", "reasoning"],
            },
        },
        "rule_conflicts": {
            "type": "ARRAY",
            "description": "A list of identified conflicts between business rules.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "conflicting_rules": {
                        "type": "ARRAY",
                        "items": {"type": "STRING"},
                        "description": "The specific rules that are in conflict (at least two).",
                    },
                    "table_name": {
                        "type": "STRING",
                        "description": 'The table where the conflict applies, or "Global".',
                    },
                    "description": {
                        "type": "STRING",
                        "description": "A description of why the rules conflict.",
                    },
                    "recommendation": {
                        "type": "STRING",
                        "description": "How to resolve the conflict.",
                    },
                },
                "required": ["conflicting_rules", "description", "recommendation"],
            },
        },
        "inferred_relationships": {
            "type": "ARRAY",
            "description": "Foreign-key-like relationships from this table to other listed tables.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "to_table": {
                        "type": "STRING",
                        "description": "Exact name of the referenced table.",
                    },
                    "on_column": {
                        "type": "STRING",
                        "description": "Column in this table holding the reference.",
                    },
                },
                "required": ["to_table", "on_column"],
            },
        },
        "hotspot_score": {
            "type": "INTEGER",
            "description": "Sum of issue severity weights: High=3, Medium=2, Low=1.",
        },
    },
    "required": ["issues_detected", "hotspot_score"],
}

RULE_MAPPING_SCHEMA: dict = {
    "type": "ARRAY",
    "description": "Each global rule with the tables it applies to.",
    "items": {
        "type": "OBJECT",
        "properties": {
            "rule": {"type": "STRING", "description": "The exact text of one global rule."},
            "tables": {
                "type": "ARRAY",
                "items": {"type": "STRING"},
                "description": "Exact names of the tables the rule applies to.",
            },
        },
        "required": ["rule", "tables"],
    },
}

TABLE_PROMPT_TEMPLATE = """You are a world-class Data Quality Bot integrated into a data engineering pipeline.
Your job is to analyze the metadata and data profile report for a SINGLE TABLE to detect potential data quality issues, such as anomalies, null spikes, schema drift, or type mismatches.

For each identified issue, rate its severity, suggest a cause, predict the impact, and recommend a solution.
Report issues for this table only. For every issue you MUST set 'table_name' to exactly "{table_name}". If an issue is specific to a single column, you MUST also provide the 'column_name'.

IMPORTANT: If an issue is a direct violation of one of the business rules below, you MUST set the issue's 'type' to exactly "{rule_violation}". For all other issues, use a descriptive type.

In addition to detecting data quality issues, you MUST also perform these analyses:
1.  **Rule Effectiveness Analysis**: evaluate each business rule below against the samples and statistics.
    - "{effective}": the rule correctly identifies issues or is well-formulated for this data.
    - "{never_triggered}": the samples and statistics show no violations of the rule.
    - "{overly_broad}": the rule is too generic and is violated by a large share (over 50%) of the samples.
    Use "{global_scope}" as the rule's 'table_name' when it is a global rule.
2.  **Rule Conflict Analysis**: find logical contradictions among the rules, e.g. "customer_age must be > 18" conflicts with "customer_age must be < 16". A conflict names at least two rules.
3.  **Relationship Inference**: list foreign-key-like relationships from this table to other tables. The ONLY valid targets are the tables listed under "Other known tables"; never reference any other table.
4.  **Hotspot Score**: set 'hotspot_score' to the sum of your issues' severity weights, where High={high}, Medium={medium}, Low={low}.

**Inputs for table "{table_name}":**

--- TABLE: {table_name} ---

1.  **Column-level statistics:**
```
{stats}
```

2.  **Schema definitions:**
```
{schema}
```

3.  **Sample data rows:**
```
{samples}
```

4.  **Business rules that apply to this table:**
```
{rules}
```

--- CROSS-TABLE CONTEXT ---

5.  **Other known tables (the only valid relationship targets):**
{other_tables}

6.  **Historical anomalies or quality incidents (optional context):**
```
{history}
```

Respond with a structured JSON output that conforms to the provided schema. If no issues, effectiveness concerns, conflicts or relationships are found, return empty arrays for the corresponding fields and a hotspot_score of 0."""

RULE_MAPPING_PROMPT_TEMPLATE = """You are a data governance assistant performing GLOBAL RULE MAPPING.
Below are the schemas of several database tables and a list of global business rules.
Decide, for each global rule, which tables it applies to. A rule applies to a table when the columns or concepts it mentions exist in that table.

Return one entry per rule. Copy the rule text exactly, and use only the exact table names given below. If a rule applies to no table, return it with an empty list.

**Tables:**

{tables}

**Global business rules:**
```
{rules}
```"""

SQL_PROMPT_TEMPLATE = """You are an expert SQL developer. For the table named `{table_name}`, a data quality analysis found the following issues:

{issues}

Please write standard SQL queries to help a data engineer identify the exact rows that have these problems.
- For each issue, provide a commented header explaining what the query is for (e.g., -- Checks for: [Issue Description]).
- Then, provide a single, runnable SQL query to find the rows matching that issue. Use SELECT * FROM `{table_name}` WHERE ...
- Use standard SQL dialect that is generally compatible with systems like BigQuery, Snowflake, and PostgreSQL.
- If an issue is too abstract to write a precise query for, provide a best-effort query with a comment explaining any assumptions.
- Combine all queries into a single, well-formatted SQL script."""

SUMMARY_PROMPT_TEMPLATE = """You are a senior data analyst. Based on the following JSON data quality report, generate a well-structured executive summary in markdown format.
The summary should:
1.  Start with a high-level overview of the findings from all sections (issues, effectiveness, conflicts).
2.  Identify the most critical data quality issues (prioritizing 'High' severity).
3.  Point out any recurring themes or patterns (e.g., specific tables with many issues, common issue types).
4.  If rule effectiveness data is present, create a section "### Business Rule Effectiveness" and summarize it. Highlight rules that are not effective ('{never_triggered}' or '{overly_broad}') and suggest potential actions.
5.  If rule conflict data is present, create a section "### Business Rule Conflicts" and summarize the contradictions, explaining the problem and the recommended resolution.
6.  Conclude with a summary of the overall data health and a prioritized call to action.

Structure your response with clear headings. Use bullet points for clarity.
Your analysis must be based ONLY on the data provided.

**Data Quality Issues JSON:**
```json
{issues}
```
{extra_sections}"""


def _or_placeholder(value: str | None) -> str:
    """Return the stripped value, or the explicit placeholder when blank."""
    if value is None or not value.strip():
        return NOT_PROVIDED
    return value.strip()


def _bullets(items: Iterable[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def build_table_prompt(
    table: TableInput,
    all_table_names: Sequence[str],
    applicable_rules: str,
    history: str,
) -> PromptSpec:
    """
    Build the analysis prompt for a single table.

    Args:
        table: The table under analysis
        all_table_names: Names of every table in the run (the table itself included)
        applicable_rules: Global rules mapped to this table plus its own rules
        history: Free-text incident history

    Returns:
        PromptSpec carrying ``TABLE_ANALYSIS_SCHEMA``
    """
    others = [name for name in dict.fromkeys(all_table_names) if name != table.name]

    prompt = TABLE_PROMPT_TEMPLATE.format(
        table_name=table.name,
        rule_violation=BUSINESS_RULE_VIOLATION,
        effective=RuleStatus.EFFECTIVE.value,
        never_triggered=RuleStatus.NEVER_TRIGGERED.value,
        overly_broad=RuleStatus.OVERLY_BROAD.value,
        global_scope=GLOBAL_SCOPE,
        high=SEVERITY_WEIGHTS[Severity.HIGH],
        medium=SEVERITY_WEIGHTS[Severity.MEDIUM],
        low=SEVERITY_WEIGHTS[Severity.LOW],
        stats=_or_placeholder(table.stats),
        schema=_or_placeholder(table.schema),
        samples=_or_placeholder(table.samples),
        rules=_or_placeholder(applicable_rules),
        other_tables=_bullets(others) if others else NO_OTHER_TABLES,
        history=_or_placeholder(history),
    )
    return PromptSpec(prompt=prompt, response_schema=TABLE_ANALYSIS_SCHEMA)


def build_rule_mapping_prompt(tables: Sequence[TableInput], global_rules: str) -> PromptSpec:
    """Build the prompt that partitions global rules by table."""
    sections = [
        f'Table "{table.name}":\n```\n{_or_placeholder(table.schema)}\n```'
        for table in tables
    ]
    prompt = RULE_MAPPING_PROMPT_TEMPLATE.format(
        tables="\n\n".join(sections),
        rules=global_rules.strip(),
    )
    return PromptSpec(prompt=prompt, response_schema=RULE_MAPPING_SCHEMA)


def build_sql_prompt(table_name: str, issues: Sequence[Issue]) -> PromptSpec:
    """Build the prompt asking for SQL that locates the rows behind each issue."""
    payload = [
        {"type": i.type, "description": i.description, "column_name": i.column_name}
        for i in issues
    ]
    prompt = SQL_PROMPT_TEMPLATE.format(
        table_name=table_name,
        issues=json.dumps(payload, indent=2),
    )
    return PromptSpec(prompt=prompt)


def build_summary_prompt(
    issues: Sequence[Issue],
    effectiveness: Sequence[RuleEffectiveness],
    conflicts: Sequence[RuleConflict],
) -> PromptSpec:
    """Build the executive summary prompt over a merged report."""
    extra = []
    if effectiveness:
        dumped = json.dumps([e.model_dump(mode="json") for e in effectiveness], indent=2)
        extra.append(f"\n**Rule Effectiveness Analysis JSON:**\n```json\n{dumped}\n```")
    if conflicts:
        dumped = json.dumps([c.model_dump(mode="json") for c in conflicts], indent=2)
        extra.append(f"\n**Rule Conflict Analysis JSON:**\n```json\n{dumped}\n```")

    prompt = SUMMARY_PROMPT_TEMPLATE.format(
        never_triggered=RuleStatus.NEVER_TRIGGERED.value,
        overly_broad=RuleStatus.OVERLY_BROAD.value,
        issues=json.dumps([i.model_dump(mode="json") for i in issues], indent=2),
        extra_sections="".join(extra),
    )
    return PromptSpec(prompt=prompt)
