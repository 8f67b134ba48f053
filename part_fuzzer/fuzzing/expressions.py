"""
Payload expression evaluation.

Payload templates reference runtime values with ``{{name}}`` markers and may
apply a helper function to a single argument, e.g. ``{{base64(value)}}`` or
``{{url_encode('<script>')}}``. Markers that cannot be resolved are left in
place and reported through the returned ``ExpressionError``.
"""

import base64
import hashlib
import html
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import quote, unquote

from .errors import ExpressionError

logger = logging.getLogger(__name__)

MARKER_PATTERN = re.compile(r"\{\{\s*(.+?)\s*\}\}")
CALL_PATTERN = re.compile(r"^([a-zA-Z_][a-zA-Z0-9_]*)\((.*)\)$")
NAME_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_.\-]*$")


def to_string(value: Any) -> str:
    """Render a runtime value the way it is written into a request."""
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def merge_maps(*maps: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Merge several variable maps into one resolution scope.

    Maps are given in priority order: when a key appears in more than one
    map, the value from the earliest map is kept.
    """
    merged: Dict[str, Any] = {}
    for mapping in maps:
        if not mapping:
            continue
        for key, value in mapping.items():
            if key not in merged:
                merged[key] = value
    return merged


def _md5(value: str) -> str:
    return hashlib.md5(value.encode()).hexdigest()


def _sha1(value: str) -> str:
    return hashlib.sha1(value.encode()).hexdigest()


def _sha256(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()


HELPER_FUNCTIONS: Dict[str, Callable[[str], str]] = {
    "base64": lambda v: base64.b64encode(v.encode()).decode(),
    "base64_decode": lambda v: base64.b64decode(v.encode()).decode("utf-8", errors="replace"),
    "url_encode": lambda v: quote(v, safe=""),
    "url_decode": unquote,
    "html_escape": html.escape,
    "html_unescape": html.unescape,
    "hex_encode": lambda v: v.encode().hex(),
    "to_upper": str.upper,
    "to_lower": str.lower,
    "trim": str.strip,
    "reverse": lambda v: v[::-1],
    "len": lambda v: str(len(v)),
    "md5": _md5,
    "sha1": _sha1,
    "sha256": _sha256,
}


class ExpressionEvaluator(ABC):
    """Contract for resolving a payload template against a variable scope."""

    @abstractmethod
    def evaluate(self, template: str, values: Dict[str, Any]) -> Tuple[str, Optional[ExpressionError]]:
        """
        Resolve a template.

        Returns:
            The (possibly partially) resolved string and an error describing
            what could not be resolved, or None.
        """
        pass


class MarkerEvaluator(ExpressionEvaluator):
    """Resolves ``{{...}}`` markers using variables and helper functions."""

    def __init__(self, functions: Optional[Dict[str, Callable[[str], str]]] = None):
        self.functions = dict(HELPER_FUNCTIONS)
        if functions:
            self.functions.update(functions)

    def evaluate(self, template: str, values: Dict[str, Any]) -> Tuple[str, Optional[ExpressionError]]:
        unresolved: List[str] = []

        def substitute(match: re.Match) -> str:
            expression = match.group(1)
            try:
                resolved = self._resolve(expression, values)
            except Exception as e:
                # Helpers may be user supplied; any failure leaves the marker unresolved
                logger.debug(f"Expression {expression!r} failed: {e}")
                resolved = None
            if resolved is None:
                unresolved.append(expression)
                return match.group(0)
            return resolved

        result = MARKER_PATTERN.sub(substitute, template)
        if unresolved:
            return result, ExpressionError(
                f"unresolved variables found: {', '.join(unresolved)}",
                unresolved=unresolved
            )
        return result, None

    def _resolve(self, expression: str, values: Dict[str, Any]) -> Optional[str]:
        call = CALL_PATTERN.match(expression)
        if call:
            name, argument = call.group(1), call.group(2).strip()
            function = self.functions.get(name)
            if function is None:
                return None
            resolved_argument = self._resolve_argument(argument, values)
            if resolved_argument is None:
                return None
            return function(resolved_argument)

        if NAME_PATTERN.match(expression) and expression in values:
            return to_string(values[expression])
        return None

    def _resolve_argument(self, argument: str, values: Dict[str, Any]) -> Optional[str]:
        if len(argument) >= 2 and argument[0] == argument[-1] and argument[0] in ("'", '"'):
            return argument[1:-1]
        return self._resolve(argument, values)
