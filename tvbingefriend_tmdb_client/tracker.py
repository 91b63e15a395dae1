"""Concurrent fan-out of show lookups over a shared TMDB client."""

from concurrent.futures import ThreadPoolExecutor
from logging import Logger, getLogger
from typing import Optional, Sequence

from .models import FetchResult, ShowQuery
from .tmdb_api import TMDBAPI


class ShowTracker:
    """Fetches details for many shows at once, isolating failures per show.

    Fan-out is one worker per show; the API client's request gate is what
    actually bounds how many requests are in flight.
    """

    def __init__(self, api: TMDBAPI, logger: Optional[Logger] = None):
        self.api = api
        self.logger = logger or getLogger(__name__)

    def fetch_one(self, show: ShowQuery) -> FetchResult:
        """Resolve the show's id if needed, then fetch its details.

        The resolved id is cached on ``show``. Errors are logged and returned
        in the result rather than raised.
        """
        try:
            if show.id is None:
                show.id = self.api.resolve_show_id(show.name)
            data = self.api.get_tv_details(show.id)
        except Exception as err:  # one show's failure must not abort the batch
            self.logger.warning(f"Unable to fetch data for {show.label}: {err}")
            return FetchResult(show=show, data=None, error=err)
        return FetchResult(show=show, data=data)

    def fetch_all(self, shows: Sequence[ShowQuery]) -> list[FetchResult]:
        """Fetch every show concurrently.

        Args:
            shows: Queries to look up

        Returns:
            One result per query, in input order
        """
        if not shows:
            return []

        self.logger.info(f"Fetching {len(shows)} shows.")
        with ThreadPoolExecutor(max_workers=len(shows), thread_name_prefix="tmdb-fetch") as executor:
            results = list(executor.map(self.fetch_one, shows))

        failed = sum(1 for result in results if not result.ok)
        self.logger.info(f"Fetched {len(results) - failed}/{len(results)} shows.")
        return results
