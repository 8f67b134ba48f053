"""
Part Fuzzer - Rule-driven request mutation for vulnerability scanning

Injects payloads into query parameters, headers, cookies, body fields and
path segments of a request according to fuzzing rules, producing the
requests a scanning engine dispatches.
"""

__version__ = "1.0.0"
__author__ = "Part Fuzzer Team"
__license__ = "MIT"

from part_fuzzer.core.config import Config
from part_fuzzer.core.logger import get_logger

# Core exports
__all__ = [
    "Config",
    "get_logger",
    "__version__",
]
