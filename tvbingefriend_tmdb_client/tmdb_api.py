"""TMDB API Client with shared concurrency gating and rate-limit backoff."""

import logging
from logging import Logger
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util import Retry

from . import config
from .backoff import TMDBBackoffController
from .config import TMDBSettings
from .errors import InvalidResponseError, ShowNotFoundError
from .reliability import TMDBReliabilityManager
from .request_gate import TMDBRequestGate


class TMDBAPI:
    """Client for the TMDB TV endpoints.

    One instance is shared by every worker of a run, so its gate and backoff
    controller bound the whole run.
    """

    def __init__(self,
                 settings: TMDBSettings,
                 reliability_manager: Optional[TMDBReliabilityManager] = None,
                 session: Optional[requests.Session] = None,
                 timeout: float = config.REQUEST_TIMEOUT_SECONDS,
                 logger: Optional[Logger] = None):
        """Initializes the API client with a pooled session and the reliability manager."""
        self.logger = logger or logging.getLogger(__name__)

        self.base_url = f"{settings.api_url}/{settings.api_version}"
        self._api_key = settings.api_key
        self.timeout = timeout

        self.reliability_manager = reliability_manager or TMDBReliabilityManager(
            request_gate=TMDBRequestGate(settings.concurrency_limit, logger=self.logger),
            backoff_controller=TMDBBackoffController(logger=self.logger),
            logger=self.logger,
        )
        self.session = session or self._build_session(settings.concurrency_limit)

        self.logger.info(
            f"TMDBAPI initialized: base_url={self.base_url}, "
            f"concurrency_limit={settings.concurrency_limit}"
        )

    @staticmethod
    def _build_session(pool_size: int) -> requests.Session:
        # 429 and every other failure are handled above the transport; urllib3 must not retry.
        retry = Retry(total=0, respect_retry_after_header=False, raise_on_status=False)
        adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size, max_retries=retry)
        session = requests.Session()
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def fetch(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Makes a gated GET request and decodes the JSON body.

        Args:
            path: Resource path below the versioned base URL, e.g. '/tv/1399'
            params: Extra query parameters

        Returns:
            The decoded JSON payload

        Raises:
            requests.exceptions.RequestException: On transport failure or a non-2xx, non-429 status
            InvalidResponseError: If the body is not valid JSON
        """
        url = f"{self.base_url}{path}"
        req_params = dict(params or {})
        self.logger.debug(f"Making API request: GET {url} with params {req_params}")

        @self.reliability_manager.reliable_api_call(operation_id=path)
        def _request() -> requests.Response:
            return self.session.get(
                url, params={'api_key': self._api_key, **req_params}, timeout=self.timeout
            )

        try:
            response = _request()
            response.raise_for_status()
        except requests.exceptions.RequestException as req_err:
            self.logger.error(f"API request failed for {url}: {req_err}")
            raise

        try:
            return response.json()
        except requests.exceptions.JSONDecodeError as json_err:
            self.logger.error(
                f"Failed to decode JSON from {url}: {json_err}. Response text: {response.text[:200]}...")
            raise InvalidResponseError(f"Invalid JSON response from {url}") from json_err

    def search_tv(self, query: str) -> Dict[str, Any]:
        """Searches TV series by name."""
        self.logger.info(f"Searching TV series for {query!r}.")
        result = self.fetch('/search/tv', params={'query': query})
        if not isinstance(result, dict):
            raise InvalidResponseError(f"Unexpected non-dict response for /search/tv: {type(result)}")
        return result

    def resolve_show_id(self, name: Optional[str]) -> int:
        """
        Finds the TMDB id of a series by name, taking the first search result.

        Args:
            name: Series name to search for.

        Returns:
            The id of the first match.

        Raises:
            ShowNotFoundError: If there is no name to search for or the search has no results.
        """
        if not name:
            raise ShowNotFoundError(name)

        results = self.search_tv(name).get('results') or []
        if not results:
            raise ShowNotFoundError(name)

        show_id = results[0].get('id') if isinstance(results[0], dict) else None
        if show_id is None:
            raise InvalidResponseError(f"First search result for {name!r} has no id")
        self.logger.debug(f"Resolved {name!r} to TMDB id {show_id}.")
        return show_id

    def get_tv_details(self, show_id: int) -> Dict[str, Any]:
        """Fetches full details for a specific series."""
        self.logger.info(f"Fetching details for TV series ID {show_id}.")
        result = self.fetch(f'/tv/{show_id}')
        if not isinstance(result, dict):
            raise InvalidResponseError(f"Unexpected non-dict response for /tv/{show_id}: {type(result)}")
        return result

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> 'TMDBAPI':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
