"""Client for the TMDB API with a rate-limited concurrent fetch engine."""

from .tmdb_api import TMDBAPI
from .request_gate import TMDBRequestGate
from .backoff import TMDBBackoffController
from .reliability import TMDBReliabilityManager
from .tracker import ShowTracker
from .models import ShowQuery, FetchResult

__all__ = [
    'TMDBAPI',
    'TMDBRequestGate',
    'TMDBBackoffController',
    'TMDBReliabilityManager',
    'ShowTracker',
    'ShowQuery',
    'FetchResult',
]
