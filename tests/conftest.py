"""
Shared fixtures for Part Fuzzer tests.
"""

from typing import Any, Dict, Iterator, List, Set, Tuple

import httpx
import pytest

from part_fuzzer.fuzzing.components.base import Component
from part_fuzzer.fuzzing.errors import BuildError, InvalidKeyError
from part_fuzzer.fuzzing.models import GeneratedRequest


class FakeComponent(Component):
    """In-memory component with switchable failures."""

    name = "fake"

    def __init__(self, parts: Dict[str, Any], missing_keys: Set[str] = None, unbuildable: Set[str] = None):
        super().__init__()
        self.parts = dict(parts)
        self.missing_keys = missing_keys or set()
        self.unbuildable = unbuildable or set()
        self.set_calls: List[Tuple[str, Any]] = []

    def _parse(self, request: httpx.Request) -> bool:
        return len(self.parts) > 0

    def iterate(self) -> Iterator[Tuple[str, Any]]:
        for key, value in list(self.parts.items()):
            yield key, value

    def set_value(self, key: str, value: Any) -> None:
        if key not in self.parts or key in self.missing_keys:
            raise InvalidKeyError(key, self.name)
        self.set_calls.append((key, value))
        self.parts[key] = value

    def _build(self, request: httpx.Request) -> httpx.Request:
        for value in self.parts.values():
            if value in self.unbuildable:
                raise BuildError(f"cannot build value {value!r}")
        return httpx.Request("GET", "http://example.com/", params=list(self.parts.items()))


class Collector:
    """Dispatch callback recording generated requests."""

    def __init__(self, stop_after: int = None):
        self.stop_after = stop_after
        self.requests: List[GeneratedRequest] = []

    def __call__(self, request: GeneratedRequest) -> bool:
        self.requests.append(request)
        return self.stop_after is None or len(self.requests) < self.stop_after


@pytest.fixture
def base_request():
    """Base request with two query parameters."""
    return httpx.Request("GET", "http://example.com/search?a=1&b=2")


@pytest.fixture
def collector():
    """Collector that never stops generation."""
    return Collector()


@pytest.fixture
def fake_component(base_request):
    """Fake component parsed from the base request."""
    component = FakeComponent({"a": "1", "b": "2"})
    component.parse(base_request)
    return component


@pytest.fixture
def component_factory(base_request):
    """Build parsed fake components."""
    def factory(parts: Dict[str, Any], **kwargs) -> FakeComponent:
        component = FakeComponent(parts, **kwargs)
        component.parse(base_request)
        return component
    return factory


@pytest.fixture
def collector_factory():
    """Build collectors that stop after a number of requests."""
    return Collector
