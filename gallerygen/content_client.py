"""
ContentClient - Fetches documents and image bytes from the Prismic API.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from .errors import ContentNotFoundError, ContentTransportError
from .prismic_config import PrismicConfig


class ContentClient:
    """
    Thin client for the Prismic REST API v2.

    Every failure is raised as ContentNotFoundError (HTTP 404) or
    ContentTransportError (anything else), so callers can apply
    different fallback policies.
    """

    USER_AGENT = 'gallerygen/1.0'

    def __init__(
        self,
        config: PrismicConfig,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize content client.

        Args:
            config: Prismic configuration (must have an endpoint)
            session: Optional requests session (a new one is created otherwise)
            logger: Optional logger instance
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.session = session or requests.Session()
        self.session.headers.setdefault('User-Agent', self.USER_AGENT)
        self._master_ref: Optional[str] = None

    @property
    def endpoint(self) -> str:
        return (self.config.api_endpoint or '').rstrip('/')

    def _get(self, url: str, params: Optional[dict] = None) -> requests.Response:
        """Issue a GET and translate failures into content errors."""
        try:
            response = self.session.get(url, params=params, timeout=self.config.timeout)
        except requests.RequestException as e:
            raise ContentTransportError(f"Request to {url} failed: {e}", url=url) from e

        if response.status_code == 404:
            raise ContentNotFoundError(f"Not found: {url}", url=url, status_code=404)
        if not response.ok:
            raise ContentTransportError(
                f"Request to {url} failed: {response.status_code} {response.reason}",
                url=url,
                status_code=response.status_code,
            )
        return response

    def _get_json(self, url: str, params: Optional[dict] = None) -> Dict[str, Any]:
        response = self._get(url, params)
        try:
            data = response.json()
        except ValueError as e:
            raise ContentTransportError(f"Invalid JSON from {url}: {e}", url=url) from e
        if not isinstance(data, dict):
            raise ContentTransportError(f"Unexpected response shape from {url}", url=url)
        return data

    def _auth_params(self) -> dict:
        if self.config.access_token:
            return {'access_token': self.config.access_token}
        return {}

    def get_master_ref(self) -> str:
        """
        Return the master ref of the repository (cached per client).

        Raises:
            ContentTransportError: If the API has no master ref
        """
        if self._master_ref:
            return self._master_ref

        data = self._get_json(self.endpoint, self._auth_params())
        for ref in data.get('refs') or []:
            if isinstance(ref, dict) and ref.get('isMasterRef') and ref.get('ref'):
                self._master_ref = ref['ref']
                return self._master_ref

        raise ContentTransportError(f"No master ref advertised by {self.endpoint}", url=self.endpoint)

    def get_all_by_type(self, document_type: str, lang: str = '*') -> List[Dict[str, Any]]:
        """
        Fetch every document of a custom type, following pagination.

        Args:
            document_type: Prismic custom type id (e.g., 'collection')
            lang: Language code, '*' for all languages

        Returns:
            List of raw document dicts, in API order
        """
        url = f"{self.endpoint}/documents/search"
        ref = self.get_master_ref()
        documents: List[Dict[str, Any]] = []
        page = 1

        while True:
            params = {
                'ref': ref,
                'q': f'[[at(document.type,"{document_type}")]]',
                'lang': lang,
                'pageSize': self.config.page_size,
                'page': page,
            }
            params.update(self._auth_params())

            data = self._get_json(url, params)
            results = data.get('results') or []
            documents.extend(doc for doc in results if isinstance(doc, dict))

            total_pages = data.get('total_pages') or 1
            self.logger.debug(f"Fetched {document_type} page {page}/{total_pages} ({len(results)} documents)")
            if not isinstance(total_pages, int) or page >= total_pages or not results:
                break
            page += 1

        self.logger.info(f"Fetched {len(documents)} {document_type} documents")
        return documents

    def download_bytes(self, url: str) -> bytes:
        """
        Download raw bytes from a URL (typically the Prismic image CDN).

        Raises:
            ContentNotFoundError: On HTTP 404
            ContentTransportError: On any other failure
        """
        self.logger.debug(f"Downloading: {url}")
        return self._get(url).content
