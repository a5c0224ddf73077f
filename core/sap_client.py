"""
SAP API Client - Authenticated GET requests against the C4C OData service.

Every request carries two fixed headers:

    APIKey: <key>
    Accept: application/json

The client only reports transport-level failures (connection refused, DNS,
TLS, timeout). HTTP status codes are deliberately not checked: an error
status still returns its body, and the response converter decides whether
that body is usable (OData error documents are rejected there).

Each call goes through requests.get() rather than a shared Session, so one
client can serve several aspect handlers running on different threads.

Pipeline context:
    Parent fetches use fetch_collection() with a $filter built by
    odata_queries. Dependent fetches call fetch() with the navigation URI
    taken from the parent record.
"""

import logging
from typing import Optional

import requests

from .errors import SAPRequestError
from .odata_queries import build_query, collection_url

logger = logging.getLogger(__name__)


class SAPAPIClient:
    """Client for the SAP C4C OData API.

    Attributes:
        base_url: OData service root (trailing slash stripped).
        api_key: Value sent in the APIKey header.
        timeout: Seconds to wait for SAP, or None to wait indefinitely.
    """

    def __init__(self, base_url: str, api_key: str, timeout: Optional[float] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    @property
    def headers(self):
        return {
            "APIKey": self.api_key,
            "Accept": "application/json",
        }

    def fetch(self, url: str) -> bytes:
        """GET url and return the raw response body.

        Raises:
            SAPRequestError: If the request could not be completed.
        """
        logger.debug("GET %s", url)
        try:
            response = requests.get(url, headers=self.headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise SAPRequestError(f"API request error: {e}") from e

        if not response.ok:
            logger.debug("SAP answered %s for %s", response.status_code, url)
        return response.content

    def fetch_collection(self, collection: str, kind: str, value: str) -> bytes:
        """GET a collection filtered by kind/value (see odata_queries.build_filter)."""
        url = f"{collection_url(self.base_url, collection)}?{build_query(kind, value)}"
        return self.fetch(url)
