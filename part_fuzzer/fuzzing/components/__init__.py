"""
Request components that rules can fuzz.
"""

from typing import Dict, List, Type

from .base import Component, PairsComponent, copy_request
from .body import BodyComponent
from .header import CookieComponent, HeaderComponent
from .path import PathComponent
from .query import QueryComponent

COMPONENT_TYPES: Dict[str, Type[Component]] = {
    QueryComponent.name: QueryComponent,
    HeaderComponent.name: HeaderComponent,
    CookieComponent.name: CookieComponent,
    BodyComponent.name: BodyComponent,
    PathComponent.name: PathComponent,
}

# Part name selecting every component
REQUEST_PART = "request"


def component_names(part: str) -> List[str]:
    """Return the component names a rule part expands to."""
    if part == REQUEST_PART:
        return list(COMPONENT_TYPES)
    if part not in COMPONENT_TYPES:
        raise ValueError(f"Unknown part: {part}")
    return [part]


def new_component(name: str) -> Component:
    """Create an empty component by name."""
    try:
        return COMPONENT_TYPES[name]()
    except KeyError:
        raise ValueError(f"Unknown component: {name}")


__all__ = [
    'Component',
    'PairsComponent',
    'QueryComponent',
    'HeaderComponent',
    'CookieComponent',
    'BodyComponent',
    'PathComponent',
    'COMPONENT_TYPES',
    'REQUEST_PART',
    'component_names',
    'new_component',
    'copy_request',
]
