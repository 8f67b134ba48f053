"""
URL path component.

Each non-empty path segment is a part, keyed by its 1-based position:
``/api/users/42`` exposes ``{"1": "api", "2": "users", "3": "42"}``.
"""

from typing import Any, Iterator, List, Tuple
from urllib.parse import quote, unquote

import httpx

from ..errors import InvalidKeyError
from .base import Component, copy_request

SEGMENT_SAFE_CHARS = "!$&'()*+,;=:@"


class PathComponent(Component):
    """Segments of the request URL path."""

    name = "path"

    def __init__(self):
        super().__init__()
        self.segments: List[str] = []
        self.trailing_slash = False

    def _parse(self, request: httpx.Request) -> bool:
        path = request.url.path
        self.trailing_slash = len(path) > 1 and path.endswith("/")
        self.segments = [unquote(segment) for segment in path.split("/") if segment]
        return len(self.segments) > 0

    def iterate(self) -> Iterator[Tuple[str, Any]]:
        snapshot = list(self.segments)
        for index, segment in enumerate(snapshot, start=1):
            yield str(index), segment

    def set_value(self, key: str, value: Any) -> None:
        try:
            index = int(key)
        except (TypeError, ValueError):
            raise InvalidKeyError(key, self.name)
        if index < 1 or index > len(self.segments):
            raise InvalidKeyError(key, self.name)
        self.segments[index - 1] = "" if value is None else str(value)

    def _build(self, request: httpx.Request) -> httpx.Request:
        encoded = [quote(segment, safe=SEGMENT_SAFE_CHARS) for segment in self.segments]
        path = "/" + "/".join(encoded)
        if self.trailing_slash:
            path += "/"
        return copy_request(request, url=request.url.copy_with(path=path))
