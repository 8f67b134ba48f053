"""
Rule engine generating fuzzed requests.

For every part of a component that a rule matches, the engine evaluates the
rule payload, writes it into the part and rebuilds the request. In single
mode each mutated part produces its own request and the part is restored
right after dispatch; in multiple mode every mutation is kept and a single
request carrying all of them is produced at the end.

Generated requests are handed to the callback of the ExecuteRuleInput. When
the callback returns False the engine stops and raises NoMoreRequestsError.
"""

import logging
from contextlib import closing, contextmanager
from typing import Any, Iterator, Optional

import httpx

from .components import Component, component_names, new_component
from .errors import BuildError, InvalidKeyError, NoMoreRequestsError, UnsupportedCombinationError
from .evaluator import ValueEvaluator
from .expressions import to_string
from .models import AnalyzerInput, ExecuteRuleInput, ExecutionStats, GeneratedRequest
from .rule import ModeType, Rule

logger = logging.getLogger(__name__)


@contextmanager
def scoped_mutation(component: Component, key: str, original: Any, mutated: Any, apply: bool = True):
    """
    Temporarily set a component value, restoring the original on exit.

    Raises:
        InvalidKeyError: If the key cannot be set; nothing is restored then
    """
    if not apply:
        yield component
        return

    component.set_value(key, mutated)
    try:
        yield component
    finally:
        try:
            component.set_value(key, original)
        except InvalidKeyError as e:
            logger.debug(f"Could not restore {key!r}: {e}")


class RuleEngine:
    """Execute fuzzing rules against request components."""

    def execute(self, rule: Rule, execute_input: ExecuteRuleInput) -> ExecutionStats:
        """
        Run every payload of a rule against every component of its part.

        Args:
            rule: Compiled rule
            execute_input: Invocation context; ``input`` holds the base request

        Returns:
            Counters for the whole execution

        Raises:
            NoMoreRequestsError: If the callback stopped the generation
            UnsupportedCombinationError: If analyzers are used in multiple mode
        """
        if execute_input.input is None:
            raise ValueError("execute_input.input must hold the base request")

        stats = ExecutionStats()
        for name in component_names(rule.part):
            for payload in rule.fuzz:
                component = new_component(name)
                if not component.parse(execute_input.input):
                    logger.debug(f"No {name} parts in request, skipping")
                    break
                try:
                    stats.merge(self.execute_rule(rule, execute_input, payload, component))
                except NoMoreRequestsError:
                    stats.halted = True
                    logger.debug(f"Generation stopped by callback during {rule!r}")
                    raise

        logger.debug(f"Rule {rule!r} finished: {stats.to_dict()}")
        return stats

    def execute_rule(
            self,
            rule: Rule,
            execute_input: ExecuteRuleInput,
            payload: str,
            component: Component
    ) -> ExecutionStats:
        """
        Run one payload of a rule against one component.

        Returns:
            Counters for this invocation

        Raises:
            NoMoreRequestsError: If the callback stopped the generation
            UnsupportedCombinationError: If analyzers are used in multiple mode
            BuildError: If the aggregate request of multiple mode cannot be built
        """
        stats = ExecutionStats()
        with closing(self.generate(rule, execute_input, payload, component, stats)) as requests:
            for request in requests:
                stats.dispatched += 1
                if not execute_input.callback(request):
                    stats.halted = True
                    raise NoMoreRequestsError()
        return stats

    def generate(
            self,
            rule: Rule,
            execute_input: ExecuteRuleInput,
            payload: str,
            component: Component,
            stats: Optional[ExecutionStats] = None
    ) -> Iterator[GeneratedRequest]:
        """
        Yield the requests produced by one payload against one component.

        In single mode the mutated value stays in the component until the
        consumer asks for the next request or closes the generator.
        """
        if stats is None:
            stats = ExecutionStats()
        evaluator = ValueEvaluator(rule, stats)
        apply = not execute_input.has_analyzers

        for key, value in component.iterate():
            value_str = to_string(value)
            if not rule.match_key_or_value(key, value_str):
                continue

            evaluated, execute_input.interact_urls = evaluator.evaluate(
                execute_input.values, key, value_str, payload, execute_input.interact_urls
            )

            if rule.mode == ModeType.MULTIPLE:
                if apply:
                    try:
                        component.set_value(key, evaluated)
                    except InvalidKeyError as e:
                        logger.debug(f"Skipping {key!r}: {e}")
                        stats.skipped_keys += 1
                continue

            try:
                with scoped_mutation(component, key, value, evaluated, apply=apply):
                    try:
                        request = component.rebuild()
                    except BuildError as e:
                        logger.debug(f"Skipping {key!r}: {e}")
                        stats.skipped_rebuilds += 1
                        continue
                    yield self._build_input(
                        execute_input, request, component, key, evaluated, value_str
                    )
            except InvalidKeyError as e:
                logger.debug(f"Skipping {key!r}: {e}")
                stats.skipped_keys += 1

        if rule.mode == ModeType.MULTIPLE:
            # Analyzers compare one key/value pair per request
            if execute_input.has_analyzers:
                raise UnsupportedCombinationError()
            request = component.rebuild()
            yield self._build_input(execute_input, request, component, "", "", "")

    def _build_input(
            self,
            execute_input: ExecuteRuleInput,
            request: httpx.Request,
            component: Component,
            key: str,
            value: str,
            original_value: str
    ) -> GeneratedRequest:
        analyzer_input = None
        if execute_input.has_analyzers:
            analyzer_input = AnalyzerInput(
                request=request,
                component=component,
                final_args=execute_input.values,
                key=key,
                value=value,
                original_value=original_value,
            )
        return GeneratedRequest(
            request=request,
            interact_urls=list(execute_input.interact_urls),
            dynamic_values=execute_input.values,
            component=component,
            key=key,
            value=value,
            original_value=original_value,
            analyzer_input=analyzer_input,
        )
