"""
Turn & matching state machine.

Two users swipe the same cohort one after the other; titles both liked in the
second round form the agreement set, which both then review by trailer. Titles
approved by both reviewers are confirmed, and a random pick names the winner.

``reduce`` is the whole machine: a pure function of (state, intent) plus an
injected random source. ``TurnMachine`` only keeps the latest state around.
"""

import random
from dataclasses import replace
from typing import Callable

from ..errors import InvalidIntentError
from ..logging import get_logger
from ..models.preferences import MAX_DECK_SIZE, DisplayNames, User, clamp_deck_size
from ..models.session import (
    HISTORY_LIMIT,
    Decision,
    DecisionKind,
    Phase,
    SessionState,
    fresh_progress,
)
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

logger = get_logger(__name__)

WIDEN_STEP = 10

_ANY_PHASE = frozenset(Phase)


def coin_flip(rng: random.Random) -> User:
    """Uniformly pick who goes first."""
    return User.YOU if rng.random() < 0.5 else User.PARTNER


# =============================================================================
# Transitions
# =============================================================================


def _submit_names(state: SessionState, intent: SubmitNames, rng: random.Random, preferred: int) -> SessionState:
    names = DisplayNames(you=intent.you.strip(), partner=intent.partner.strip())
    if not names.both_provided:
        raise InvalidIntentError('Both display names are required')
    first = coin_flip(rng)
    return replace(
        state,
        names=names,
        first_user=first,
        current_user=first,
        phase=Phase.PRE_DEAL,
    )


def _deal_cohort(state: SessionState, intent: DealCohort, rng: random.Random, preferred: int) -> SessionState:
    ids = [c.id for c in intent.cohort]
    if not ids:
        raise InvalidIntentError('Cannot deal an empty cohort')
    if len(set(ids)) != len(ids):
        raise InvalidIntentError('Cohort contains duplicate ids', context={'ids': ids})
    banned = state.excluded.intersection(ids)
    if banned:
        raise InvalidIntentError(
            'Cohort contains excluded ids', context={'excluded': sorted(banned)}
        )
    return replace(
        state,
        phase=Phase.ROUND1,
        cohort=tuple(intent.cohort),
        progress=fresh_progress(),
        review=fresh_progress(),
        agreed=(),
        history=(),
        winner_id=None,
    )


def _act(state: SessionState, intent: Act, rng: random.Random, preferred: int) -> SessionState:
    user = state.current_user
    candidate = state.current_candidate
    if candidate is None:
        return state

    progress = state.progress[user]
    decision = Decision(
        user=user,
        kind=intent.kind,
        candidate_id=candidate.id,
        prev_index=progress.cursor,
        phase=state.phase,
    )

    agreed = state.agreed
    if (
        state.phase is Phase.ROUND2
        and intent.kind is DecisionKind.LIKE
        and candidate.id in state.progress[user.other].liked
        and candidate.id not in agreed
    ):
        agreed = agreed + (candidate.id,)

    updated = state.with_progress(user, progress.record(intent.kind, candidate.id))
    updated = replace(
        updated,
        history=((decision,) + state.history)[:HISTORY_LIMIT],
        agreed=agreed,
    )

    if updated.progress[user].cursor < len(state.cohort):
        return updated

    if state.phase is Phase.ROUND1:
        return replace(updated, phase=Phase.SWAP)

    if agreed:
        return replace(updated, phase=Phase.REVIEW_INTRO)

    # Rejected by both in round 2: never offered again this session
    liked_by_either = updated.progress[User.YOU].liked | updated.progress[User.PARTNER].liked
    disliked_by_both = {cid for cid in state.cohort_ids if cid not in liked_by_either}
    return replace(
        updated,
        phase=Phase.NO_AGREED,
        excluded=state.excluded | disliked_by_both,
    )


def _undo(state: SessionState, intent: Undo, rng: random.Random, preferred: int) -> SessionState:
    user = state.current_user
    index = next(
        (
            i for i, d in enumerate(state.history)
            if d.user is user and d.phase is state.phase
        ),
        None,
    )
    if index is None:
        return state

    last = state.history[index]
    history = state.history[:index] + state.history[index + 1:]

    if state.phase.is_reviewing:
        updated = state.with_review(user, state.review[user].revert(last))
        return replace(updated, history=history)

    updated = state.with_progress(user, state.progress[user].revert(last))
    agreed = state.agreed
    if (
        state.phase is Phase.ROUND2
        and last.kind is DecisionKind.LIKE
        and last.candidate_id in state.progress[user.other].liked
    ):
        agreed = tuple(cid for cid in agreed if cid != last.candidate_id)
    return replace(updated, history=history, agreed=agreed)


def _swap(state: SessionState, intent: Swap, rng: random.Random, preferred: int) -> SessionState:
    next_user = state.current_user.other
    updated = state.with_progress(next_user, replace(state.progress[next_user], cursor=0))
    return replace(updated, current_user=next_user, phase=Phase.ROUND2)


def _start_review(state: SessionState, intent: StartReview, rng: random.Random, preferred: int) -> SessionState:
    reviewer = state.first_user
    updated = state.with_review(reviewer, replace(state.review[reviewer], cursor=0))
    return replace(updated, current_user=reviewer, phase=Phase.REVIEW1)


def _review(state: SessionState, intent: Review, rng: random.Random, preferred: int) -> SessionState:
    user = state.current_user
    candidate_id = state.current_id
    if candidate_id is None:
        return state

    tracker = state.review[user]
    kind = DecisionKind.LIKE if intent.approve else DecisionKind.PASS
    decision = Decision(
        user=user,
        kind=kind,
        candidate_id=candidate_id,
        prev_index=tracker.cursor,
        phase=state.phase,
    )
    updated = state.with_review(user, tracker.record(kind, candidate_id))
    updated = replace(updated, history=((decision,) + state.history)[:HISTORY_LIMIT])

    if updated.review[user].cursor < len(state.agreed):
        return updated

    if state.phase is Phase.REVIEW1:
        return replace(updated, phase=Phase.REVIEW_SWAP)

    approved_you = updated.review[User.YOU].liked
    approved_partner = updated.review[User.PARTNER].liked
    confirmed = tuple(
        cid for cid in state.agreed if cid in approved_you and cid in approved_partner
    )
    if not confirmed:
        return replace(updated, phase=Phase.START_OVER, agreed=())
    return replace(updated, phase=Phase.FINAL, agreed=confirmed)


def _review_swap(state: SessionState, intent: ReviewSwap, rng: random.Random, preferred: int) -> SessionState:
    next_user = state.current_user.other
    updated = state.with_review(next_user, replace(state.review[next_user], cursor=0))
    return replace(updated, current_user=next_user, phase=Phase.REVIEW2)


def _redeal(state: SessionState, intent: Redeal, rng: random.Random, preferred: int) -> SessionState:
    deck_size = state.deck_size
    if intent.widen:
        deck_size = min(deck_size + WIDEN_STEP, MAX_DECK_SIZE)
    return replace(state, deck_size=deck_size, phase=Phase.IDLE)


def _start_over(state: SessionState, intent: StartOver, rng: random.Random, preferred: int) -> SessionState:
    return replace(
        state,
        phase=Phase.IDLE,
        current_user=User.YOU,
        first_user=User.YOU,
        excluded=state.excluded | state.seen_ids(),
        deck_size=clamp_deck_size(preferred),
        cohort=(),
        progress=fresh_progress(),
        review=fresh_progress(),
        agreed=(),
        history=(),
        winner_id=None,
    )


def _pick_winner(state: SessionState, intent: PickWinner, rng: random.Random, preferred: int) -> SessionState:
    if not state.agreed:
        return state
    return replace(state, winner_id=rng.choice(state.agreed), phase=Phase.WINNER)


def _back_to_final(state: SessionState, intent: BackToFinal, rng: random.Random, preferred: int) -> SessionState:
    return replace(state, phase=Phase.FINAL)


def _restart(state: SessionState, intent: Restart, rng: random.Random, preferred: int) -> SessionState:
    return SessionState(names=state.names, deck_size=clamp_deck_size(preferred))


_Transition = Callable[[SessionState, Intent, random.Random, int], SessionState]

_TRANSITIONS: dict[type, tuple[frozenset[Phase], _Transition]] = {
    SubmitNames: (frozenset({Phase.WELCOME}), _submit_names),
    DealCohort: (_ANY_PHASE - {Phase.WELCOME}, _deal_cohort),
    Act: (frozenset({Phase.ROUND1, Phase.ROUND2}), _act),
    Undo: (frozenset({Phase.ROUND1, Phase.ROUND2, Phase.REVIEW1, Phase.REVIEW2}), _undo),
    Swap: (frozenset({Phase.SWAP}), _swap),
    StartReview: (frozenset({Phase.REVIEW_INTRO}), _start_review),
    Review: (frozenset({Phase.REVIEW1, Phase.REVIEW2}), _review),
    ReviewSwap: (frozenset({Phase.REVIEW_SWAP}), _review_swap),
    Redeal: (frozenset({Phase.NO_AGREED}), _redeal),
    StartOver: (frozenset({Phase.START_OVER}), _start_over),
    PickWinner: (frozenset({Phase.FINAL}), _pick_winner),
    BackToFinal: (frozenset({Phase.WINNER}), _back_to_final),
    Restart: (_ANY_PHASE, _restart),
}


def reduce(
    state: SessionState,
    intent: Intent,
    rng: random.Random,
    preferred_deck_size: int = 10,
) -> SessionState:
    """
    Apply one intent and return the next state.

    Args:
        state: Current state (never mutated)
        intent: The user intent
        rng: Random source for the first-turn coin flip and the winner pick
        preferred_deck_size: Deck size restored by a start-over or full restart

    Returns:
        The next SessionState

    Raises:
        InvalidIntentError: If the intent is not valid in the current phase
    """
    try:
        allowed, transition = _TRANSITIONS[type(intent)]
    except KeyError:
        raise InvalidIntentError(f"Unknown intent: {type(intent).__name__}") from None

    if state.phase not in allowed:
        raise InvalidIntentError(
            f"{type(intent).__name__} is not valid during {state.phase.value}",
            context={'phase': state.phase.value},
        )
    return transition(state, intent, rng, preferred_deck_size)


class TurnMachine:
    """
    Holds the latest SessionState and applies intents to it.

    Usage:
        machine = TurnMachine(rng=random.Random(7))
        machine.dispatch(SubmitNames('Alex', 'Sam'))
        machine.dispatch(DealCohort(cohort))
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        preferred_deck_size: int = 10,
        state: SessionState | None = None,
    ):
        self.rng = rng or random.Random()
        self.preferred_deck_size = clamp_deck_size(preferred_deck_size)
        self.state = state or SessionState(deck_size=self.preferred_deck_size)

    def dispatch(self, intent: Intent) -> SessionState:
        before = self.state.phase
        self.state = reduce(self.state, intent, self.rng, self.preferred_deck_size)
        if self.state.phase is not before:
            logger.info(
                'session.phase_changed',
                intent=type(intent).__name__,
                from_phase=before.value,
                to_phase=self.state.phase.value,
            )
        return self.state

    def resize_deck(self, deck_size: int) -> SessionState:
        """Set the deck size used by the next build (settings change)."""
        self.state = replace(self.state, deck_size=clamp_deck_size(deck_size))
        return self.state
