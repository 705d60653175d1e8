"""
Data models for CoupleSwipe.

Candidate Source schemas are validated on ingress; session state is immutable.
"""

from .candidate import (
    Candidate,
    CandidateDetail,
    DiscoverPage,
    DiscoverResult,
    Genre,
    Video,
    select_trailer,
)
from .preferences import DisplayNames, Preferences, User
from .session import Decision, DecisionKind, Phase, SessionState, UserProgress

__all__ = [
    'Candidate',
    'CandidateDetail',
    'DiscoverPage',
    'DiscoverResult',
    'Genre',
    'Video',
    'select_trailer',
    'DisplayNames',
    'Preferences',
    'User',
    'Decision',
    'DecisionKind',
    'Phase',
    'SessionState',
    'UserProgress',
]
