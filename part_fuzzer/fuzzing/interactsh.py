"""
Out-of-band interaction URL correlation.

Payloads ask for a callback URL with the ``{{interactsh-url}}`` marker. Each
occurrence is replaced by a fresh URL under the session's correlation ID so
that a later poll of the OAST server can be tied back to the request that
carried it.
"""

import logging
import re
import uuid
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

INTERACTSH_MARKER = "{{interactsh-url}}"

DEFAULT_SERVER = "oast.fun"

# Whitelist of trusted Interactsh/OAST servers
ALLOWED_INTERACTSH_SERVERS = frozenset({
    "oast.pro",
    "oast.live",
    "oast.site",
    "oast.online",
    "oast.fun",
    "oast.me",
    "interact.sh",
    "interactsh.com",
})


def validate_correlation_id(correlation_id: str) -> str:
    """
    Validate correlation ID format.

    Raises:
        ValueError: If ID format is invalid
    """
    if not re.match(r'^[a-f0-9]{20,40}$', correlation_id, re.IGNORECASE):
        raise ValueError(f"Invalid correlation ID format: {correlation_id}")
    return correlation_id.lower()


def validate_interactsh_server(server: str) -> str:
    """
    Validate Interactsh server against whitelist.

    Args:
        server: Server domain or URL

    Returns:
        Validated domain string

    Raises:
        ValueError: If server is not in whitelist
    """
    server = server.replace("https://", "").replace("http://", "")
    domain = server.split('/')[0].split(':')[0].lower()

    if domain not in ALLOWED_INTERACTSH_SERVERS:
        raise ValueError(
            f"Untrusted Interactsh server: {domain}. "
            f"Allowed servers: {', '.join(sorted(ALLOWED_INTERACTSH_SERVERS))}"
        )

    return domain


class InteractionClient(ABC):
    """Contract for substituting interaction markers with tracked URLs."""

    @abstractmethod
    def replace(self, data: str, interact_urls: List[str]) -> Tuple[str, List[str]]:
        """
        Replace interaction markers in data.

        Args:
            data: Text that may contain interaction markers
            interact_urls: URLs already handed out for the current invocation

        Returns:
            The substituted text and the updated URL list
        """
        pass


class InteractshURLProvider(InteractionClient):
    """
    Hands out Interactsh URLs for payload markers.

    Usage:
        provider = InteractshURLProvider()
        text, urls = provider.replace("http://{{interactsh-url}}/x", [])
    """

    def __init__(self, server: str = DEFAULT_SERVER, correlation_id: Optional[str] = None):
        self.server = validate_interactsh_server(server)
        if correlation_id is None:
            correlation_id = uuid.uuid4().hex[:20]
        self.correlation_id = validate_correlation_id(correlation_id)
        self.issued: List[str] = []

    def new_url(self) -> str:
        """Generate a unique callback URL for this session."""
        nonce = uuid.uuid4().hex[:13]
        url = f"{self.correlation_id}{nonce}.{self.server}"
        self.issued.append(url)
        return url

    def replace(self, data: str, interact_urls: List[str]) -> Tuple[str, List[str]]:
        if INTERACTSH_MARKER not in data:
            return data, interact_urls

        urls = list(interact_urls) if interact_urls else []
        parts = data.split(INTERACTSH_MARKER)
        rebuilt = [parts[0]]
        for part in parts[1:]:
            url = self.new_url()
            urls.append(url)
            rebuilt.append(url)
            rebuilt.append(part)

        logger.debug(f"Replaced {len(parts) - 1} interaction marker(s)")
        return "".join(rebuilt), urls
