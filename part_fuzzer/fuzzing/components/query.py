"""
Query string component.
"""

import httpx

from .base import PairsComponent, copy_request


class QueryComponent(PairsComponent):
    """Query string parameters of the request URL."""

    name = "query"

    def _parse(self, request: httpx.Request) -> bool:
        self.pairs = [[key, value] for key, value in request.url.params.multi_items()]
        return len(self.pairs) > 0

    def _build(self, request: httpx.Request) -> httpx.Request:
        params = httpx.QueryParams([(key, value) for key, value in self.pairs])
        return copy_request(request, url=request.url.copy_with(params=params))
