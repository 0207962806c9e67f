"""
Raw payload suppliers for the portal listing engine.

Available clients:
- PortalExtractionClient: remote extraction service (URL or HTML input)
"""

from .portal_api import PortalExtractionClient

__all__ = [
    "PortalExtractionClient",
]
