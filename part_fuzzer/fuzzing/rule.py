"""
Fuzzing rules.

A rule describes which parts of a request to fuzz, how to match their keys
or values, where to place the payload and whether to emit one request per
part or one request carrying every mutation.

Example rule definition:

    type: postfix
    part: query
    mode: single
    keys-regex:
      - "^id$"
    fuzz:
      - "'"
      - "{{url_encode('<svg>')}}"
"""

import logging
import re
from enum import Enum
from typing import Any, Dict, List, Optional, Pattern

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .components import REQUEST_PART, COMPONENT_TYPES
from .errors import RuleCompileError
from .models import ExecutorOptions
from .placement import RuleType

logger = logging.getLogger(__name__)


class ModeType(Enum):
    """How mutated parts are turned into requests."""
    SINGLE = "single"
    MULTIPLE = "multiple"


class RuleConfig(BaseModel):
    """Raw rule definition as written in a template."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    type: RuleType
    part: str = Field(default="query")
    mode: ModeType = Field(default=ModeType.SINGLE)
    keys: List[str] = Field(default_factory=list)
    keys_regex: List[str] = Field(default_factory=list, alias="keys-regex")
    values_regex: List[str] = Field(default_factory=list, alias="values")
    fuzz: List[str] = Field(default_factory=list)

    @field_validator("part")
    @classmethod
    def validate_part(cls, v):
        """Validate part name."""
        v = v.lower()
        valid_parts = list(COMPONENT_TYPES) + [REQUEST_PART]
        if v not in valid_parts:
            raise ValueError(f"Part must be one of: {valid_parts}")
        return v

    @field_validator("keys_regex", "values_regex")
    @classmethod
    def validate_patterns(cls, v):
        """Validate regular expressions."""
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid regex {pattern!r}: {e}")
        return v

    @model_validator(mode="after")
    def validate_matchers(self):
        """Keys and key regexes are mutually exclusive."""
        if self.keys and self.keys_regex:
            raise ValueError("keys and keys-regex cannot be used together")
        if not self.fuzz:
            raise ValueError("at least one fuzz payload is required")
        return self


class Rule:
    """A compiled, read-only fuzzing rule."""

    def __init__(
            self,
            rule_type: RuleType,
            fuzz: List[str],
            part: str = "query",
            mode: ModeType = ModeType.SINGLE,
            keys: Optional[List[str]] = None,
            keys_regex: Optional[List[str]] = None,
            values_regex: Optional[List[str]] = None,
            options: Optional[ExecutorOptions] = None
    ):
        self._rule_type = rule_type
        self._part = part
        self._mode = mode
        self._fuzz = tuple(fuzz)
        self._keys = frozenset(key.lower() for key in keys or [])
        self._keys_regex: List[Pattern] = [re.compile(p) for p in keys_regex or []]
        self._values_regex: List[Pattern] = [re.compile(p) for p in values_regex or []]
        self._options = options or ExecutorOptions()

    @classmethod
    def compile(cls, definition: Dict[str, Any], options: Optional[ExecutorOptions] = None) -> "Rule":
        """
        Compile a rule from its template definition.

        Args:
            definition: Mapping with the rule fields
            options: Options shared by the template

        Returns:
            Compiled rule

        Raises:
            RuleCompileError: If the definition is invalid
        """
        try:
            config = RuleConfig.model_validate(definition)
        except ValidationError as e:
            raise RuleCompileError(f"invalid rule: {e}", cause=e) from e

        rule = cls(
            rule_type=config.type,
            fuzz=config.fuzz,
            part=config.part,
            mode=config.mode,
            keys=config.keys,
            keys_regex=config.keys_regex,
            values_regex=config.values_regex,
            options=options
        )
        logger.debug(f"Compiled rule {rule!r}")
        return rule

    @property
    def rule_type(self) -> RuleType:
        return self._rule_type

    @property
    def part(self) -> str:
        return self._part

    @property
    def mode(self) -> ModeType:
        return self._mode

    @property
    def fuzz(self) -> tuple:
        return self._fuzz

    @property
    def options(self) -> ExecutorOptions:
        return self._options

    def match_key_or_value(self, key: str, value: str) -> bool:
        """
        Check whether a part should be fuzzed.

        Exact keys are compared case-insensitively. A part matches when its
        key matches the key matcher or its value matches a value regex. A
        rule without any matcher fuzzes every part.
        """
        if not (self._keys or self._keys_regex or self._values_regex):
            return True
        if self._keys and key.lower() in self._keys:
            return True
        if self._keys_regex and any(pattern.search(key) for pattern in self._keys_regex):
            return True
        return any(pattern.search(value) for pattern in self._values_regex)

    def __repr__(self) -> str:
        return (
            f"<Rule type={self._rule_type.value} part={self._part} "
            f"mode={self._mode.value} payloads={len(self._fuzz)}>"
        )
