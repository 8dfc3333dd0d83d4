"""
Relationship & Hotspot Graph
============================

Builds the schema graph dataset from per-table outcomes.

Edges come from each table's self-reported relationships and are kept only
when the target is a table in the current run. Hotspot scores are computed
here from the final issue list, not taken from the model, so the ranking
always agrees with the issues the report shows.
"""

import re
from typing import Iterable, Sequence

from dq_analysis.models import (
    Hotspot,
    SchemaEdge,
    SchemaNode,
    SchemaVisualizationData,
    TableInput,
    TableOutcome,
)
from dq_analysis.prompts import SEVERITY_WEIGHTS
from dq_analysis.schemas import Issue
from observability.logging_config import get_logger

logger = get_logger(__name__)

_QUOTE_CHARS = re.compile(r"[\[\]`\"]")


def hotspot_score(issues: Iterable[Issue]) -> int:
    """Sum of severity weights (High=3, Medium=2, Low=1) over the issues."""
    return sum(SEVERITY_WEIGHTS[issue.severity] for issue in issues)


def short_table_name(name: str) -> str:
    """
    Display name for a possibly qualified table name.

    ``[dbo].[customers]`` and ``"sales"."orders"`` become ``customers`` and
    ``orders``.
    """
    cleaned = _QUOTE_CHARS.sub("", name).strip()
    return cleaned.split(".")[-1] if cleaned else name


def build_visualization(
    tables: Sequence[TableInput],
    outcomes: Sequence[TableOutcome],
) -> SchemaVisualizationData | None:
    """
    Build nodes, edges and hotspots for the schema graph.

    Args:
        tables: Tables of the run, in input order
        outcomes: One outcome per table, aligned with ``tables``

    Returns:
        The dataset, or None when there is nothing to visualize
    """
    if len(tables) != len(outcomes):
        raise ValueError(
            f"Expected one outcome per table, got {len(outcomes)} for {len(tables)} tables"
        )

    known = {table.name for table in tables}
    data = SchemaVisualizationData()
    seen_edges: set[SchemaEdge] = set()

    for table, outcome in zip(tables, outcomes):
        data.nodes.append(SchemaNode(id=table.name, label=table.name))

        for relationship in outcome.inferred_relationships:
            if relationship.to_table not in known:
                logger.debug(
                    "relationship_dropped",
                    table=table.name,
                    to_table=relationship.to_table,
                    on_column=relationship.on_column,
                )
                continue
            edge = SchemaEdge(
                source=table.name,
                target=relationship.to_table,
                label=relationship.on_column,
            )
            if edge not in seen_edges:
                seen_edges.add(edge)
                data.edges.append(edge)

        # A failed table has no defined score
        if not outcome.succeeded:
            continue

        score = hotspot_score(outcome.issues)
        if outcome.model_hotspot_score is not None and outcome.model_hotspot_score != score:
            logger.debug(
                "hotspot_score_mismatch",
                table=table.name,
                model_score=outcome.model_hotspot_score,
                computed_score=score,
            )
        data.hotspots.append(Hotspot(table_name=table.name, score=score))

    if not data.nodes:
        return None
    return data
