"""
Swipe session state.

SessionState is an immutable value: every transition in the turn machine returns
a new instance built with dataclasses.replace, so any intermediate state can be
kept, compared or replayed in tests.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from .candidate import Candidate
from .preferences import DisplayNames, User

HISTORY_LIMIT = 200


class Phase(str, Enum):
    """Screens of the two-person pick flow."""

    WELCOME = 'welcome'
    PRE_DEAL = 'preDeal'
    IDLE = 'idle'
    ROUND1 = 'round1'
    SWAP = 'swap'
    ROUND2 = 'round2'
    NO_AGREED = 'noAgreed'
    REVIEW_INTRO = 'reviewIntro'
    REVIEW1 = 'review1'
    REVIEW_SWAP = 'reviewSwap'
    REVIEW2 = 'review2'
    START_OVER = 'startOver'
    FINAL = 'final'
    WINNER = 'winner'

    @property
    def is_swiping(self) -> bool:
        return self in (Phase.ROUND1, Phase.ROUND2)

    @property
    def is_reviewing(self) -> bool:
        return self in (Phase.REVIEW1, Phase.REVIEW2)


class DecisionKind(str, Enum):
    LIKE = 'like'
    PASS = 'pass'


@dataclass(frozen=True)
class Decision:
    """One like/pass (or approve/decline during review), kept for undo."""

    user: User
    kind: DecisionKind
    candidate_id: int
    prev_index: int
    phase: Phase


@dataclass(frozen=True)
class UserProgress:
    """
    Per-user cursor plus like/pass sets.

    Reused for trailer review, where ``liked`` holds approvals.
    Invariant: liked and passed are disjoint; cursor never exceeds the list length.
    """

    cursor: int = 0
    liked: frozenset[int] = frozenset()
    passed: frozenset[int] = frozenset()

    def record(self, kind: DecisionKind, candidate_id: int) -> 'UserProgress':
        if kind is DecisionKind.LIKE:
            return replace(
                self,
                cursor=self.cursor + 1,
                liked=self.liked | {candidate_id},
                passed=self.passed - {candidate_id},
            )
        return replace(
            self,
            cursor=self.cursor + 1,
            passed=self.passed | {candidate_id},
            liked=self.liked - {candidate_id},
        )

    def revert(self, decision: Decision) -> 'UserProgress':
        return replace(
            self,
            cursor=decision.prev_index,
            liked=self.liked - {decision.candidate_id},
            passed=self.passed - {decision.candidate_id},
        )


def fresh_progress() -> Mapping[User, UserProgress]:
    """New empty per-user progress for both users."""
    return MappingProxyType({User.YOU: UserProgress(), User.PARTNER: UserProgress()})


@dataclass(frozen=True)
class SessionState:
    """Everything the turn machine owns for one deal, plus the process-scoped exclusions."""

    phase: Phase = Phase.WELCOME
    current_user: User = User.YOU
    first_user: User = User.YOU
    names: DisplayNames = field(default_factory=DisplayNames)
    cohort: tuple[Candidate, ...] = ()
    progress: Mapping[User, UserProgress] = field(default_factory=fresh_progress)
    review: Mapping[User, UserProgress] = field(default_factory=fresh_progress)
    agreed: tuple[int, ...] = ()
    history: tuple[Decision, ...] = ()
    excluded: frozenset[int] = frozenset()
    deck_size: int = 10
    winner_id: int | None = None

    @property
    def cohort_ids(self) -> tuple[int, ...]:
        return tuple(c.id for c in self.cohort)

    def deck_for(self, phase: Phase) -> tuple[int, ...]:
        """Ids the active user walks through in a swiping or review phase."""
        return self.agreed if phase.is_reviewing else self.cohort_ids

    def tracker_for(self, phase: Phase) -> Mapping[User, UserProgress]:
        return self.review if phase.is_reviewing else self.progress

    @property
    def current_id(self) -> int | None:
        """Id under the active user's cursor, or None when exhausted / not in a round."""
        if not (self.phase.is_swiping or self.phase.is_reviewing):
            return None
        deck = self.deck_for(self.phase)
        cursor = self.tracker_for(self.phase)[self.current_user].cursor
        return deck[cursor] if cursor < len(deck) else None

    @property
    def current_candidate(self) -> Candidate | None:
        if not self.phase.is_swiping:
            return None
        cursor = self.progress[self.current_user].cursor
        return self.cohort[cursor] if cursor < len(self.cohort) else None

    def candidate(self, candidate_id: int) -> Candidate | None:
        for c in self.cohort:
            if c.id == candidate_id:
                return c
        return None

    def with_progress(self, user: User, progress: UserProgress) -> 'SessionState':
        updated = dict(self.progress)
        updated[user] = progress
        return replace(self, progress=MappingProxyType(updated))

    def with_review(self, user: User, progress: UserProgress) -> 'SessionState':
        updated = dict(self.review)
        updated[user] = progress
        return replace(self, review=MappingProxyType(updated))

    def seen_ids(self) -> frozenset[int]:
        """Every id touched in this deal: cohort, likes, passes and agreed."""
        seen = set(self.cohort_ids)
        for p in self.progress.values():
            seen |= p.liked | p.passed
        seen |= set(self.agreed)
        return frozenset(seen)
