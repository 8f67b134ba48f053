"""
Placement strategies for injecting an evaluated payload into a value.
"""

from enum import Enum


class RuleType(Enum):
    """Where the payload goes relative to the original value."""
    PREFIX = "prefix"
    POSTFIX = "postfix"
    INFIX = "infix"
    REPLACE = "replace"


def place(rule_type: RuleType, value: str, replacement: str) -> str:
    """
    Combine the original value with the replacement for a rule type.

    Args:
        rule_type: Placement strategy to apply
        value: Original value of the part
        replacement: Evaluated payload

    Returns:
        Final value to write back into the part
    """
    if rule_type == RuleType.PREFIX:
        return replacement + value
    if rule_type == RuleType.POSTFIX:
        return value + replacement
    if rule_type == RuleType.INFIX:
        # Values of zero or one characters are not split
        if len(value) <= 1:
            return value + replacement
        middle = len(value) // 2
        return value[:middle] + replacement + value[middle:]
    if rule_type == RuleType.REPLACE:
        return replacement
    raise ValueError(f"Unknown rule type: {rule_type}")
