"""
Core functionality for Part Fuzzer
"""

from .config import Config, get_config
from .logger import configure_logging, get_logger

__all__ = [
    "Config",
    "get_config",
    "configure_logging",
    "get_logger",
]
