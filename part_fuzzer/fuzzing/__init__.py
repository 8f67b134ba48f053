"""
Request part fuzzing for Part Fuzzer.

This module provides the rule-driven request generation pipeline:
- Rule compilation and key/value matching
- Payload expression evaluation with interaction URLs
- Prefix, postfix, infix and replace placement
- Query, header, cookie, body and path components
- Single and multiple mode request generation
"""

from .engine import RuleEngine, scoped_mutation
from .errors import (
    PartFuzzerError,
    ComponentError,
    InvalidKeyError,
    BuildError,
    RuleError,
    RuleCompileError,
    UnsupportedCombinationError,
    NoMoreRequestsError,
    ExpressionError,
)
from .evaluator import ValueEvaluator
from .expressions import ExpressionEvaluator, MarkerEvaluator, merge_maps
from .interactsh import InteractionClient, InteractshURLProvider
from .models import (
    AnalyzerInput,
    ExecuteRuleInput,
    ExecutionStats,
    ExecutorOptions,
    GeneratedRequest,
)
from .placement import RuleType, place
from .rule import ModeType, Rule, RuleConfig

__all__ = [
    'RuleEngine',
    'scoped_mutation',
    'Rule',
    'RuleConfig',
    'RuleType',
    'ModeType',
    'place',
    'ValueEvaluator',
    'ExpressionEvaluator',
    'MarkerEvaluator',
    'merge_maps',
    'InteractionClient',
    'InteractshURLProvider',
    'AnalyzerInput',
    'ExecuteRuleInput',
    'ExecutionStats',
    'ExecutorOptions',
    'GeneratedRequest',
    'PartFuzzerError',
    'ComponentError',
    'InvalidKeyError',
    'BuildError',
    'RuleError',
    'RuleCompileError',
    'UnsupportedCombinationError',
    'NoMoreRequestsError',
    'ExpressionError',
]
