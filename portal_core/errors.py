"""
Extraction error types.

None of these escape the engine's public operations; they are raised
internally and converted into null results or failure records at the
boundary, or raised by outer surfaces such as the extraction API client.
"""


class ExtractionError(Exception):
    """Base class for listing extraction failures."""


class UnparsableURLError(ExtractionError, ValueError):
    """URL could not be parsed into a scheme and host."""


class UnsupportedSourceError(ExtractionError):
    """URL host does not belong to any registered source."""


class ExtractionAPIError(ExtractionError):
    """The remote extraction service failed or returned an unusable body."""
