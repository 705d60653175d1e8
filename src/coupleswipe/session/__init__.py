"""
Turn & matching state machine and the session plumbing around it.
"""

from .coordinator import SwipeSession, TitleCard
from .intents import (
    Act,
    BackToFinal,
    DealCohort,
    Intent,
    PickWinner,
    Redeal,
    Restart,
    Review,
    ReviewSwap,
    StartOver,
    StartReview,
    SubmitNames,
    Swap,
    Undo,
)
from .machine import TurnMachine, reduce
from .registry import SessionRegistry

__all__ = [
    'SwipeSession',
    'TitleCard',
    'SessionRegistry',
    'TurnMachine',
    'reduce',
    'Intent',
    'Act',
    'BackToFinal',
    'DealCohort',
    'PickWinner',
    'Redeal',
    'Restart',
    'Review',
    'ReviewSwap',
    'StartOver',
    'StartReview',
    'SubmitNames',
    'Swap',
    'Undo',
]
