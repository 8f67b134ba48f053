"""
Part Fuzzer exception hierarchy.

Exception categories:
- ComponentError: a request part could not be mutated or serialised
  (recoverable per key, the engine skips the key)
- RuleError: a rule is misconfigured or used in an unsupported way
  (permanent, reported to the caller)
- NoMoreRequestsError: the dispatch callback asked to stop generation
  (control flow, never logged as a failure)
- ExpressionError: a payload expression could not be fully resolved
  (returned by evaluators, never raised by the engine)

Usage:
    from part_fuzzer.fuzzing.errors import NoMoreRequestsError

    try:
        rule.execute(execute_input)
    except NoMoreRequestsError:
        pass  # caller has all the requests it wants
"""

from typing import Optional, Dict, Any


class PartFuzzerError(Exception):
    """Base exception for all Part Fuzzer errors.

    Attributes:
        message: Human-readable error description
        error_code: Short code used in log lines
        context: Additional context about the error
    """

    error_code: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.cause = cause

    def __str__(self) -> str:
        base = self.message
        if self.error_code:
            base = f"[{self.error_code}] {base}"
        if self.context:
            base = f"{base} | context={self.context}"
        return base


# =============================================================================
# COMPONENT ERRORS (Recoverable per key)
# =============================================================================

class ComponentError(PartFuzzerError):
    """Base class for errors raised by request components."""
    error_code = "COMPONENT"


class InvalidKeyError(ComponentError):
    """The key does not exist in the component."""
    error_code = "COMPONENT_INVALID_KEY"

    def __init__(self, key: str, component: str = "", **kwargs):
        context = kwargs.pop("context", None) or {}
        context.setdefault("key", key)
        if component:
            context.setdefault("component", component)
        super().__init__(f"Invalid key: {key}", context=context, **kwargs)
        self.key = key


class BuildError(ComponentError):
    """The component state could not be serialised into a request."""
    error_code = "COMPONENT_BUILD"


# =============================================================================
# RULE ERRORS (Permanent)
# =============================================================================

class RuleError(PartFuzzerError):
    """Base class for rule configuration and usage errors."""
    error_code = "RULE"


class RuleCompileError(RuleError):
    """The rule definition is invalid."""
    error_code = "RULE_COMPILE"


class UnsupportedCombinationError(RuleError):
    """Analyzers were attached to a rule running in multiple mode."""
    error_code = "RULE_UNSUPPORTED"

    def __init__(self, message: str = "analyzers are not supported with multiple payloads", **kwargs):
        super().__init__(message, **kwargs)


# =============================================================================
# CONTROL FLOW
# =============================================================================

class NoMoreRequestsError(PartFuzzerError):
    """The dispatch callback does not want any more requests."""
    error_code = "NO_MORE_REQUESTS"

    def __init__(self, message: str = "no more requests wanted", **kwargs):
        super().__init__(message, **kwargs)


# =============================================================================
# EXPRESSION ERRORS (Best effort)
# =============================================================================

class ExpressionError(PartFuzzerError):
    """A payload expression referenced values that could not be resolved."""
    error_code = "EXPRESSION"

    def __init__(self, message: str, unresolved: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.unresolved = unresolved or []
