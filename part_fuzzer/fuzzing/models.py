"""
Data containers passed between the rule engine and its callers.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

import httpx

from .expressions import ExpressionEvaluator, MarkerEvaluator
from .interactsh import InteractionClient

if TYPE_CHECKING:
    from .components.base import Component


@dataclass
class ExecutorOptions:
    """Options shared by every rule compiled from the same template."""
    vars: Dict[str, Any] = field(default_factory=dict)
    variables: Dict[str, Any] = field(default_factory=dict)
    interactsh: Optional[InteractionClient] = None
    evaluator: ExpressionEvaluator = field(default_factory=MarkerEvaluator)


@dataclass(frozen=True)
class AnalyzerInput:
    """Input handed to a response analyzer for one generated request."""
    request: httpx.Request
    component: "Component"
    final_args: Dict[str, Any]
    key: str
    value: str
    original_value: str


@dataclass(frozen=True)
class GeneratedRequest:
    """A request produced by a rule, ready to be sent."""
    request: httpx.Request
    interact_urls: List[str]
    dynamic_values: Dict[str, Any]
    component: "Component"
    key: str = ""
    value: str = ""
    original_value: str = ""
    analyzer_input: Optional[AnalyzerInput] = None


DispatchCallback = Callable[[GeneratedRequest], bool]


@dataclass
class ExecuteRuleInput:
    """Per-invocation context for executing a rule."""
    callback: DispatchCallback
    input: Optional[httpx.Request] = None
    values: Dict[str, Any] = field(default_factory=dict)
    interact_urls: List[str] = field(default_factory=list)
    has_analyzers: bool = False


@dataclass
class ExecutionStats:
    """Counters for one or more rule invocations."""
    dispatched: int = 0
    skipped_keys: int = 0
    skipped_rebuilds: int = 0
    evaluation_errors: int = 0
    halted: bool = False

    def merge(self, other: "ExecutionStats") -> None:
        """Add the counters of another invocation to this one."""
        self.dispatched += other.dispatched
        self.skipped_keys += other.skipped_keys
        self.skipped_rebuilds += other.skipped_rebuilds
        self.evaluation_errors += other.evaluation_errors
        self.halted = self.halted or other.halted

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dispatched": self.dispatched,
            "skipped_keys": self.skipped_keys,
            "skipped_rebuilds": self.skipped_rebuilds,
            "evaluation_errors": self.evaluation_errors,
            "halted": self.halted,
        }
