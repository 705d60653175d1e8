"""
Deck building from the Candidate Source.
"""

from .builder import DeckBuilder, DeckResult

__all__ = [
    'DeckBuilder',
    'DeckResult',
]
