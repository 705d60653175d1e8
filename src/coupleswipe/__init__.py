"""
CoupleSwipe

Helps two people pick a movie together: both swipe the same deck fetched from
TMDB, titles both liked are reviewed by trailer, and a random pick among the
titles both approved names tonight's movie.
"""

__version__ = '0.1.0'

# Re-export key classes for convenience
from .clients import TMDBClient
from .deck import DeckBuilder, DeckResult
from .session import SessionRegistry, SwipeSession, TurnMachine, reduce
from .store import JsonFileStore, MemoryStore, StoredSettings
from .logging import (
    configure_logging,
    get_logger,
    log_duration,
    session_context,
)
from .errors import (
    CoupleSwipeError,
    ConfigurationError,
    CandidateSourceError,
    RateLimitError,
    RetryableFetchError,
    TransportError,
    MalformedResponseError,
    SessionError,
    InvalidIntentError,
    SessionNotFoundError,
    StoreError,
)

__all__ = [
    # Version
    '__version__',
    # Session
    'SwipeSession',
    'SessionRegistry',
    'TurnMachine',
    'reduce',
    # Deck
    'DeckBuilder',
    'DeckResult',
    # Clients / store
    'TMDBClient',
    'JsonFileStore',
    'MemoryStore',
    'StoredSettings',
    # Logging
    'configure_logging',
    'get_logger',
    'log_duration',
    'session_context',
    # Errors
    'CoupleSwipeError',
    'ConfigurationError',
    'CandidateSourceError',
    'RateLimitError',
    'RetryableFetchError',
    'TransportError',
    'MalformedResponseError',
    'SessionError',
    'InvalidIntentError',
    'SessionNotFoundError',
    'StoreError',
]
