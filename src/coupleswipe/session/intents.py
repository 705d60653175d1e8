"""User intents accepted by the turn machine."""

from dataclasses import dataclass

from ..models.candidate import Candidate
from ..models.session import DecisionKind


@dataclass(frozen=True)
class SubmitNames:
    you: str
    partner: str


@dataclass(frozen=True)
class DealCohort:
    cohort: tuple[Candidate, ...]


@dataclass(frozen=True)
class Act:
    kind: DecisionKind


@dataclass(frozen=True)
class Undo:
    pass


@dataclass(frozen=True)
class Swap:
    pass


@dataclass(frozen=True)
class StartReview:
    pass


@dataclass(frozen=True)
class Review:
    approve: bool


@dataclass(frozen=True)
class ReviewSwap:
    pass


@dataclass(frozen=True)
class Redeal:
    widen: bool = True


@dataclass(frozen=True)
class StartOver:
    pass


@dataclass(frozen=True)
class PickWinner:
    pass


@dataclass(frozen=True)
class BackToFinal:
    pass


@dataclass(frozen=True)
class Restart:
    pass


Intent = (
    SubmitNames | DealCohort | Act | Undo | Swap | StartReview | Review | ReviewSwap
    | Redeal | StartOver | PickWinner | BackToFinal | Restart
)
