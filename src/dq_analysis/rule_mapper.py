"""
Global Rule Mapper
==================

Optional pre-pass that decides which global rules apply to which tables.

The map only narrows prompt content. Any failure degrades to an empty map
and analysis goes ahead with table-specific rules.
"""

from typing import Sequence

from pydantic import ValidationError

from dq_analysis.analyzer import strip_code_fence
from dq_analysis.config import DEFAULT_SEED
from dq_analysis.exceptions import ResponseParseError
from dq_analysis.llm.base import LLMInterface
from dq_analysis.models import GenerationConfig, TableInput
from dq_analysis.prompts import build_rule_mapping_prompt
from dq_analysis.schemas import RuleMappingResponse
from observability.logging_config import get_logger
from observability.metrics import RULE_MAPPING_FAILURES

logger = get_logger(__name__)


def parse_rule_mapping(text: str, known_tables: Sequence[str]) -> dict[str, list[str]]:
    """
    Decode a rule mapping response into ``{rule: [table, ...]}``.

    Unknown table names are dropped and repeated rules merge their tables.

    Raises:
        ResponseParseError: If the body is not a JSON array of mappings
    """
    body = strip_code_fence(text or "")
    try:
        mappings = RuleMappingResponse.model_validate_json(body).root
    except ValidationError as e:
        raise ResponseParseError(f"Rule mapping response is malformed: {e.error_count()} error(s)") from e

    known = set(known_tables)
    rule_map: dict[str, list[str]] = {}
    for mapping in mappings:
        rule = mapping.rule.strip()
        if not rule:
            continue
        tables = rule_map.setdefault(rule, [])
        for name in mapping.tables:
            if name in known and name not in tables:
                tables.append(name)
    return rule_map


class GlobalRuleMapper:
    """Maps free-text global rules onto the tables they apply to."""

    def __init__(
        self,
        llm: LLMInterface,
        model: str | None = None,
        seed: int = DEFAULT_SEED,
    ) -> None:
        self.llm = llm
        self.model = model
        self.seed = seed

    async def map(self, tables: Sequence[TableInput], global_rules: str) -> dict[str, list[str]]:
        """
        Partition global rules by applicable table.

        Args:
            tables: Tables of the run
            global_rules: Free-text global rules

        Returns:
            Rule text -> table names; empty when there is nothing to map or
            the remote call fails
        """
        if not tables or not global_rules or not global_rules.strip():
            return {}

        spec = build_rule_mapping_prompt(tables, global_rules)
        config = GenerationConfig(
            temperature=0.0,
            seed=self.seed,
            response_schema=spec.response_schema,
            model=self.model,
        )

        try:
            response = await self.llm.generate(spec.prompt, config)
            rule_map = parse_rule_mapping(response.text, [t.name for t in tables])
        except Exception as e:
            logger.warning(
                "rule_mapping_failed",
                error=str(e),
                error_type=type(e).__name__,
                tables=len(tables),
            )
            RULE_MAPPING_FAILURES.inc()
            return {}

        logger.info("rule_mapping_completed", rules=len(rule_map), tables=len(tables))
        return rule_map


async def map_global_rules_to_tables(
    llm: LLMInterface,
    tables: Sequence[TableInput],
    global_rules: str,
) -> dict[str, list[str]]:
    """Map global rules to tables with a one-off mapper."""
    return await GlobalRuleMapper(llm).map(tables, global_rules)
