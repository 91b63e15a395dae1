"""Command-line entry point: fetch every show listed in a state file."""

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from .config import load_settings
from .errors import ConfigurationError
from .models import ShowQuery
from .tmdb_api import TMDBAPI
from .tracker import ShowTracker

logger = logging.getLogger(__name__)


def load_shows(path: str) -> list[ShowQuery]:
    """Read the ``shows`` array of a state file.

    Raises:
        OSError: If the file cannot be read
        ValueError: If it is not JSON or has no list of shows
    """
    with open(path, encoding='utf-8') as state_file:
        state = json.load(state_file)

    shows = state.get('shows') if isinstance(state, dict) else None
    if not isinstance(shows, list):
        raise ValueError(f"{path} has no 'shows' list")
    return [ShowQuery.from_dict(entry) for entry in shows if isinstance(entry, dict)]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='tvbingefriend-tmdb',
        description='Fetch TMDB details for the shows listed in a state file.',
    )
    parser.add_argument('state_file', nargs='?', default='state.json',
                        help='JSON file with a "shows" list (default: state.json)')
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    load_dotenv()

    try:
        settings = load_settings()
        shows = load_shows(args.state_file)
    except (ConfigurationError, OSError, ValueError) as err:
        logger.error(f"Cannot start: {err}")
        return 2

    with TMDBAPI(settings) as api:
        results = ShowTracker(api).fetch_all(shows)

    for result in results:
        if not result.ok:
            logger.warning(f"unable to fetch data for {result.show.to_dict()}")

    json.dump([result.to_dict() for result in results], sys.stdout, indent=2)
    sys.stdout.write('\n')
    return 0
