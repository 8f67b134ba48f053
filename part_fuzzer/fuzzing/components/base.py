"""
Base Request Component

Abstract base class for the mutable parts of a request (query, headers,
cookies, body, path). A component is parsed from a base request, exposes its
parts as key/value pairs, accepts in-place value changes and serialises its
current state back into a concrete request.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterator, List, Optional, Tuple

import httpx

from ..errors import BuildError, InvalidKeyError

logger = logging.getLogger(__name__)


class Component(ABC):
    """
    Abstract base class for all request components.

    Components are not thread safe: one rule invocation owns a component
    for its whole duration.
    """

    name: str = ""

    def __init__(self):
        self.request: Optional[httpx.Request] = None

    def parse(self, request: httpx.Request) -> bool:
        """
        Load the component state from a request.

        Args:
            request: Base request to take the parts from

        Returns:
            True if the request has at least one part for this component
        """
        self.request = request
        return self._parse(request)

    @abstractmethod
    def _parse(self, request: httpx.Request) -> bool:
        pass

    @abstractmethod
    def iterate(self) -> Iterator[Tuple[str, Any]]:
        """
        Yield (key, value) pairs in a stable order.

        The pairs are snapshotted before the first yield so values may be
        changed while iterating.
        """
        pass

    @abstractmethod
    def set_value(self, key: str, value: Any) -> None:
        """
        Change the value of an existing key.

        Raises:
            InvalidKeyError: If the key is not part of the component
        """
        pass

    @abstractmethod
    def _build(self, request: httpx.Request) -> httpx.Request:
        pass

    def rebuild(self) -> httpx.Request:
        """
        Serialise the current state into a new request.

        Raises:
            BuildError: If the component has not been parsed or its state
                cannot be serialised
        """
        if self.request is None:
            raise BuildError(f"{self.name} component has no base request")
        try:
            return self._build(self.request)
        except BuildError:
            raise
        except (httpx.InvalidURL, httpx.StreamError, TypeError, ValueError) as e:
            raise BuildError(
                f"could not rebuild {self.name} component: {e}",
                context={"component": self.name},
                cause=e
            ) from e

    def keys(self) -> List[str]:
        """Return the keys of the component in iteration order."""
        return [key for key, _ in self.iterate()]

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} keys={self.keys()!r}>"


class PairsComponent(Component):
    """
    Component backed by an ordered list of (key, value) pairs.

    Repeated keys are kept on rebuild; only the first occurrence of a key is
    exposed for mutation.
    """

    case_sensitive: bool = True

    def __init__(self):
        super().__init__()
        self.pairs: List[List[str]] = []

    def _normalise(self, key: str) -> str:
        return key if self.case_sensitive else key.lower()

    def _find(self, key: str) -> int:
        wanted = self._normalise(key)
        for index, (name, _) in enumerate(self.pairs):
            if self._normalise(name) == wanted:
                return index
        return -1

    def iterate(self) -> Iterator[Tuple[str, Any]]:
        seen = set()
        snapshot = []
        for name, value in self.pairs:
            normalised = self._normalise(name)
            if normalised in seen:
                continue
            seen.add(normalised)
            snapshot.append((name, value))
        for name, value in snapshot:
            yield name, value

    def set_value(self, key: str, value: Any) -> None:
        index = self._find(key)
        if index < 0:
            raise InvalidKeyError(key, self.name)
        self.pairs[index][1] = "" if value is None else str(value)


def copy_request(
        request: httpx.Request,
        url: Optional[httpx.URL] = None,
        headers: Optional[httpx.Headers] = None,
        content: Optional[bytes] = None
) -> httpx.Request:
    """
    Build a new request from a base request with some parts replaced.

    The Content-Length header is recomputed when the content changes.
    """
    new_headers = httpx.Headers(headers if headers is not None else request.headers)
    if content is None:
        content = request.content
    elif "content-length" in new_headers:
        del new_headers["content-length"]
    if not content and "content-length" not in new_headers:
        content = None

    return httpx.Request(
        method=request.method,
        url=url if url is not None else request.url,
        headers=new_headers,
        content=content,
        extensions=dict(request.extensions),
    )
