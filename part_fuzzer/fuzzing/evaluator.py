"""
Payload evaluation for a single request part.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from .expressions import merge_maps
from .models import ExecutionStats
from .placement import place

if TYPE_CHECKING:
    from .rule import Rule

logger = logging.getLogger(__name__)


class ValueEvaluator:
    """Turn a payload template into the final value of a part."""

    def __init__(self, rule: "Rule", stats: Optional[ExecutionStats] = None):
        self.rule = rule
        self.options = rule.options
        self.stats = stats

    def build_scope(self, values: Dict[str, Any], value: str) -> Dict[str, Any]:
        """Merge the variable sources, most specific first."""
        return merge_maps(
            values,
            {"value": value},
            self.options.vars,
            self.options.variables,
        )

    def evaluate(
            self,
            values: Dict[str, Any],
            key: str,
            value: str,
            payload: str,
            interact_urls: List[str]
    ) -> Tuple[str, List[str]]:
        """
        Evaluate a payload against a part and place it in the part value.

        Expression errors never abort: whatever could be resolved is used.

        Args:
            values: Dynamic values of the current invocation
            key: Key of the part being fuzzed
            value: Original value of the part
            payload: Payload template
            interact_urls: Interaction URLs handed out so far

        Returns:
            The final part value and the updated interaction URLs
        """
        scope = self.build_scope(values, value)
        evaluator = self.options.evaluator

        first_pass, _ = evaluator.evaluate(payload, scope)
        if self.options.interactsh is not None:
            first_pass, interact_urls = self.options.interactsh.replace(first_pass, interact_urls)

        evaluated, error = evaluator.evaluate(first_pass, scope)
        if error is not None:
            logger.debug(f"Partial evaluation of payload for key {key!r}: {error}")
            if self.stats is not None:
                self.stats.evaluation_errors += 1

        return place(self.rule.rule_type, value, evaluated), interact_urls
