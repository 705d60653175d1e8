"""
External service clients for CoupleSwipe.
"""

from .tmdb_client import TMDBClient, candidate_page_url, trailer_url

__all__ = [
    'TMDBClient',
    'candidate_page_url',
    'trailer_url',
]
