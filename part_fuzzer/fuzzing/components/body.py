"""
Request body component.

Supports JSON objects and URL-encoded forms. Nested JSON values are exposed
with dotted keys, e.g. ``{"user": {"tags": ["a"]}}`` exposes ``user.tags.0``.
A form field repeated in the body is fuzzed through its first occurrence.
"""

import json
import logging
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union
from urllib.parse import parse_qsl, urlencode

import httpx

from ..errors import BuildError, InvalidKeyError
from .base import Component, copy_request

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPES = ("application/json", "+json")
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class BodyComponent(Component):
    """JSON or form-encoded request body."""

    name = "body"

    def __init__(self):
        super().__init__()
        self.format: Optional[str] = None
        self.document: Union[Dict[str, Any], List[Any], None] = None
        self.form: List[List[str]] = []

    def _parse(self, request: httpx.Request) -> bool:
        content = request.content
        if not content:
            return False

        content_type = request.headers.get("content-type", "").lower()
        if FORM_CONTENT_TYPE in content_type:
            self.format = "form"
            text = content.decode("utf-8", errors="replace")
            self.form = [[key, value] for key, value in parse_qsl(text, keep_blank_values=True)]
            return len(self.form) > 0

        if any(kind in content_type for kind in JSON_CONTENT_TYPES) or content.lstrip()[:1] in (b"{", b"["):
            try:
                document = json.loads(content)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.debug(f"Body is not valid JSON: {e}")
                return False
            if not isinstance(document, (dict, list)):
                return False
            self.format = "json"
            self.document = document
            return any(True for _ in self.iterate())

        return False

    def iterate(self) -> Iterator[Tuple[str, Any]]:
        if self.format == "form":
            # Repeated fields are addressed by name, so only the first is exposed
            seen = set()
            snapshot = []
            for key, value in self.form:
                if key not in seen:
                    seen.add(key)
                    snapshot.append((key, value))
        elif self.format == "json":
            snapshot = list(_flatten(self.document))
        else:
            snapshot = []
        for key, value in snapshot:
            yield key, value

    def set_value(self, key: str, value: Any) -> None:
        if self.format == "form":
            for pair in self.form:
                if pair[0] == key:
                    pair[1] = "" if value is None else str(value)
                    return
            raise InvalidKeyError(key, self.name)

        if self.format == "json":
            container, last = self._locate(key)
            container[last] = value
            return

        raise InvalidKeyError(key, self.name)

    def _locate(self, key: str) -> Tuple[Any, Union[str, int]]:
        """Return the container holding key and the index of key in it."""
        path = key.split(".")
        node = self.document
        for step in path[:-1]:
            node = _child(node, step, key)
        last: Union[str, int] = path[-1]
        if isinstance(node, list):
            last = _list_index(node, last, key)
        elif not isinstance(node, dict) or last not in node:
            raise InvalidKeyError(key, self.name)
        return node, last

    def _build(self, request: httpx.Request) -> httpx.Request:
        if self.format == "form":
            content = urlencode([(key, value) for key, value in self.form]).encode()
        elif self.format == "json":
            try:
                content = json.dumps(self.document).encode()
            except (TypeError, ValueError) as e:
                raise BuildError(f"could not encode JSON body: {e}", cause=e) from e
        else:
            raise BuildError("body component has no parsed body")
        return copy_request(request, content=content)


def _flatten(node: Any, prefix: str = "") -> Iterator[Tuple[str, Any]]:
    if isinstance(node, dict):
        items = [(str(key), value) for key, value in node.items()]
    elif isinstance(node, list):
        items = [(str(index), value) for index, value in enumerate(node)]
    else:
        yield prefix, node
        return

    for key, value in items:
        path = f"{prefix}.{key}" if prefix else key
        if isinstance(value, (dict, list)) and value:
            yield from _flatten(value, path)
        elif not isinstance(value, (dict, list)):
            yield path, value


def _list_index(node: List[Any], step: str, key: str) -> int:
    try:
        index = int(step)
    except ValueError:
        raise InvalidKeyError(key, "body")
    if index < 0 or index >= len(node):
        raise InvalidKeyError(key, "body")
    return index


def _child(node: Any, step: str, key: str) -> Any:
    if isinstance(node, dict):
        if step not in node:
            raise InvalidKeyError(key, "body")
        return node[step]
    if isinstance(node, list):
        return node[_list_index(node, step, key)]
    raise InvalidKeyError(key, "body")
