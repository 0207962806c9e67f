"""
Portal extraction API client.

Fetches raw listing payloads from the remote extraction service and hands
them to the RecordAssembler. The service does the page fetching and field
scraping; this client only decides which endpoint to call and reports
failures. No retries: callers own retry policy.
"""

import logging
from typing import Any, Optional

import requests

from portal_core.assembler import RecordAssembler
from portal_core.errors import (
    ExtractionAPIError,
    ExtractionError,
    UnsupportedSourceError,
)
from portal_core.models import AssemblyResult, CanonicalProperty, ListingIdentity


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

EXTRACT_URL_ENDPOINT = "/mcp/extract-property"
EXTRACT_HTML_ENDPOINT = "/mcp/extract-from-html"
USER_AGENT = "PortalListingEngine/1.0"
REQUEST_TIMEOUT_SECONDS = 30


class PortalExtractionClient:
    """
    Client for the remote extraction service.

    Features:
    - Shared session with JSON headers
    - Source and identity checked before any request is sent
    - Empty payloads treated as "no extractable fields"
    - Failures reported, then raised as ExtractionAPIError
    """

    def __init__(
        self,
        base_url: str,
        assembler: RecordAssembler,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.assembler = assembler
        self.reporter = assembler.reporter
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        })

    def _resolve(self, url: str) -> ListingIdentity:
        """Resolve source and identity, raising if either is missing."""
        source_id = self.assembler.classifier.identify_source(url)
        if not source_id:
            raise UnsupportedSourceError(f"Unsupported portal for URL: {url}")

        identity = self.assembler.deriver.derive_identity(url, source_id)
        if identity is None:
            raise ExtractionError(f"Could not generate property ID for URL: {url}")
        return identity

    def _post(self, endpoint: str, body: dict, stage: str, identity: ListingIdentity) -> Any:
        try:
            response = self._session.post(
                f"{self.base_url}{endpoint}",
                json=body,
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json() if response.content else None
        except (requests.RequestException, ValueError) as e:
            self.reporter.report_extraction_error(
                e,
                {
                    "url": body.get("url"),
                    "portal": identity.source_id,
                    "property_id": identity.canonical,
                    "extraction_stage": stage,
                },
            )
            raise ExtractionAPIError(f"Extraction request failed: {e}") from e

    def _finish(self, payload: Any, url: str, identity: ListingIdentity) -> AssemblyResult:
        if not payload:
            logger.warning("Empty extraction payload for %s", identity)
            payload = None

        record = self.assembler.assemble(payload, url, source_id=identity.source_id)
        if isinstance(record, CanonicalProperty):
            self.reporter.capture_message(
                f"Property extracted successfully: {identity}",
                {"portal": identity.source_id, "property_id": identity.canonical, "url": url},
            )
        return record

    def extract_from_url(self, url: str) -> AssemblyResult:
        """
        Extract and assemble a listing by URL.

        Raises:
            UnsupportedSourceError: URL host is not a registered source
            ExtractionError: URL carries no listing identity
            ExtractionAPIError: The extraction service failed
        """
        identity = self._resolve(url)
        payload = self._post(
            EXTRACT_URL_ENDPOINT,
            {"url": url, "portal": identity.source_id},
            "full_extraction",
            identity,
        )
        return self._finish(payload, url, identity)

    def extract_from_html(self, html: str, url: str) -> AssemblyResult:
        """
        Extract and assemble a listing from already-fetched page HTML.

        Raises:
            Same as extract_from_url.
        """
        identity = self._resolve(url)
        payload = self._post(
            EXTRACT_HTML_ENDPOINT,
            {"html": html, "url": url, "portal": identity.source_id},
            "html_extraction",
            identity,
        )
        return self._finish(payload, url, identity)

    def close(self) -> None:
        """Close the session."""
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
