"""
Utility modules for configuration, logging, and error handling.
"""

from .config import Config
from .logger import setup_logger, get_logger, log_event

__all__ = ["Config", "setup_logger", "get_logger", "log_event"]
