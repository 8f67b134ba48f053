"""
Header and cookie components.
"""

from typing import List

import httpx

from .base import PairsComponent, copy_request

# Headers rewritten by the transport; fuzzing them only breaks the request
SKIPPED_HEADERS = {"host", "content-length", "cookie"}


class HeaderComponent(PairsComponent):
    """HTTP request headers, matched case-insensitively."""

    name = "header"
    case_sensitive = False

    def _parse(self, request: httpx.Request) -> bool:
        self.pairs = []
        for raw_key, raw_value in request.headers.raw:
            key = raw_key.decode("latin-1")
            if key.lower() in SKIPPED_HEADERS:
                continue
            self.pairs.append([key, raw_value.decode("latin-1")])
        return len(self.pairs) > 0

    def _build(self, request: httpx.Request) -> httpx.Request:
        headers: List[tuple] = [
            (key, value) for key, value in request.headers.multi_items()
            if key.lower() in SKIPPED_HEADERS
        ]
        headers.extend((key, value) for key, value in self.pairs)
        return copy_request(request, headers=httpx.Headers(headers))


class CookieComponent(PairsComponent):
    """Cookies sent in the Cookie header."""

    name = "cookie"

    def _parse(self, request: httpx.Request) -> bool:
        self.pairs = []
        for header in request.headers.get_list("cookie"):
            for item in header.split(";"):
                item = item.strip()
                if not item:
                    continue
                key, _, value = item.partition("=")
                self.pairs.append([key.strip(), value.strip()])
        return len(self.pairs) > 0

    def _build(self, request: httpx.Request) -> httpx.Request:
        headers = httpx.Headers([
            (key, value) for key, value in request.headers.multi_items()
            if key.lower() != "cookie"
        ])
        headers["Cookie"] = "; ".join(f"{key}={value}" for key, value in self.pairs)
        return copy_request(request, headers=headers)
