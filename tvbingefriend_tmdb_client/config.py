"""Configuration for TMDB API client."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigurationError

REQUEST_TIMEOUT_SECONDS = float(os.getenv('REQUEST_TIMEOUT_SECONDS', 30))
BACKOFF_SAFETY_MARGIN_SECONDS = float(os.getenv('BACKOFF_SAFETY_MARGIN_SECONDS', 1))
DEFAULT_RETRY_AFTER_SECONDS = int(os.getenv('DEFAULT_RETRY_AFTER_SECONDS', 1))

REQUIRED_SETTINGS = ('API_URL', 'API_VERSION', 'API_KEY', 'CONCURRENCY_LIMIT')


@dataclass(frozen=True)
class TMDBSettings:
    """Settings the fetch engine needs for one run."""
    api_url: str
    api_version: str
    api_key: str
    concurrency_limit: int

    def __repr__(self) -> str:
        return (
            f"TMDBSettings(api_url={self.api_url!r}, api_version={self.api_version!r}, "
            f"api_key=***, concurrency_limit={self.concurrency_limit})"
        )


def load_settings(environ: Optional[Mapping[str, str]] = None) -> TMDBSettings:
    """Read the required settings from the environment.

    Args:
        environ: Mapping to read from (default: os.environ)

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If a setting is missing or CONCURRENCY_LIMIT is not an integer >= 1
    """
    env = os.environ if environ is None else environ

    missing = [name for name in REQUIRED_SETTINGS if not env.get(name)]
    if missing:
        raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")

    raw_limit = env['CONCURRENCY_LIMIT']
    try:
        concurrency_limit = int(raw_limit)
    except ValueError as err:
        raise ConfigurationError(f"CONCURRENCY_LIMIT must be an integer, got {raw_limit!r}") from err
    if concurrency_limit < 1:
        raise ConfigurationError(f"CONCURRENCY_LIMIT must be >= 1, got {concurrency_limit}")

    return TMDBSettings(
        api_url=env['API_URL'].rstrip('/'),
        api_version=env['API_VERSION'].strip('/'),
        api_key=env['API_KEY'],
        concurrency_limit=concurrency_limit,
    )
