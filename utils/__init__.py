"""
Utility modules for the portal listing engine.
"""

from .formatting import format_currency, format_flag, format_count
from .config import Config

__all__ = ["format_currency", "format_flag", "format_count", "Config"]
