"""
Session coordinator.

Connects the turn machine to the deck builder, the Candidate Source and the
settings store. Candidate Source failures stop here: they become ``error`` /
``notice`` text on the session and never reach the machine.

Async lookups (review cards, the winner) capture the intent generation and the
candidate id before awaiting; a response that arrives after the users have moved
on is dropped instead of being applied to the newer state.
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from ..clients.tmdb_client import TMDBClient, candidate_page_url, trailer_url
from ..errors import (
    CandidateSourceError,
    ConfigurationError,
    CoupleSwipeError,
    InvalidIntentError,
    StoreError,
)
from ..deck.builder import DeckBuilder
from ..logging import get_logger, session_context
from ..models.candidate import Candidate, CandidateDetail, Genre
from ..models.preferences import MAX_DECK_SIZE, DisplayNames, Preferences
from ..models.session import DecisionKind, Phase, SessionState
from ..store.settings_store import NAMES_KEY, SettingsStore
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
from .machine import WIDEN_STEP, TurnMachine

logger = get_logger(__name__)


@dataclass
class TitleCard:
    """Display data for one title (review card, shortlist entry or winner)."""

    candidate_id: int
    title: str
    year: str | None
    description: str
    poster_url: str | None
    page_url: str
    trailer_key: str | None = None
    trailer_url: str | None = None

    @classmethod
    def from_detail(cls, detail: CandidateDetail, image_base: str) -> 'TitleCard':
        return cls(
            candidate_id=detail.id,
            title=detail.title or 'Untitled',
            year=detail.year,
            description=detail.description or 'No synopsis available.',
            poster_url=detail.poster_url(image_base),
            page_url=candidate_page_url(detail.id),
        )

    @classmethod
    def from_candidate(cls, candidate: Candidate) -> 'TitleCard':
        return cls(
            candidate_id=candidate.id,
            title=candidate.title,
            year=candidate.year,
            description=candidate.synopsis or 'No synopsis available.',
            poster_url=candidate.poster_url,
            page_url=candidate_page_url(candidate.id),
        )

    def with_trailer(self, key: str | None) -> 'TitleCard':
        self.trailer_key = key
        self.trailer_url = trailer_url(key, self.title)
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            'candidate_id': self.candidate_id,
            'title': self.title,
            'year': self.year,
            'description': self.description,
            'poster_url': self.poster_url,
            'page_url': self.page_url,
            'trailer_key': self.trailer_key,
            'trailer_url': self.trailer_url,
        }


class SwipeSession:
    """
    One couple's pick session.

    Usage:
        session = SwipeSession(client, JsonFileStore(path), rng=random.Random(7))
        await session.submit_names('Alex', 'Sam')
        await session.start_picking()
        await session.act('like')
    """

    def __init__(
        self,
        client: TMDBClient,
        store: SettingsStore,
        rng: random.Random | None = None,
        builder: DeckBuilder | None = None,
        session_id: str | None = None,
    ):
        self.session_id = session_id or str(uuid4())
        self.client = client
        self.store = store
        self.builder = builder or DeckBuilder(client)

        settings = store.load()
        self.preferences = settings.preferences
        if settings.api_token and not client.has_token:
            client.set_token(settings.api_token)

        self.machine = TurnMachine(
            rng=rng,
            preferred_deck_size=self.preferences.target_count,
            state=SessionState(names=settings.names, deck_size=self.preferences.target_count),
        )

        self.loading = False
        self.error = ''
        self.error_retryable = False
        self.notice = ''

        self._generation = 0
        self._retry_deck_size: int | None = None
        self._genres: dict[str, list[Genre]] = {}

    @property
    def state(self) -> SessionState:
        return self.machine.state

    # =========================================================================
    # Internals
    # =========================================================================

    def _dispatch(self, intent: Intent) -> SessionState:
        with session_context(
            session_id=self.session_id,
            user=self.state.current_user.value,
            phase=self.state.phase.value,
        ):
            state = self.machine.dispatch(intent)
        self._generation += 1
        return state

    def _fail(self, exc: CoupleSwipeError, retryable: bool) -> None:
        self.error = exc.message
        self.error_retryable = retryable
        logger.warning(
            'session.source_error',
            session_id=self.session_id,
            error=str(exc),
            error_type=type(exc).__name__,
            retryable=retryable,
        )

    def _persist(self, **values: Any) -> None:
        try:
            self.store.save(**values)
        except StoreError as e:
            logger.warning('session.persist_failed', session_id=self.session_id, error=str(e))

    def _is_stale(self, generation: int, candidate_id: int | None) -> bool:
        return generation != self._generation or self.state.current_id != candidate_id

    def _build_is_stale(self, generation: int, phase: Phase) -> bool:
        return generation != self._generation or self.state.phase is not phase

    async def _deal(self, deck_size: int, notice: str = '') -> SessionState:
        """
        Build a deck and deal it.

        A failed or empty build leaves the phase as it was and arms retry().
        A build that returns after another intent was applied is discarded.
        """
        if self.state.phase is Phase.WELCOME:
            raise InvalidIntentError('Enter both names before dealing')

        generation = self._generation
        phase = self.state.phase
        self.loading = True
        self.error = ''
        self.error_retryable = False
        self.notice = notice

        failure: CoupleSwipeError | None = None
        try:
            result = await self.builder.build_deck(deck_size, self.state.excluded, self.preferences)
        except (ConfigurationError, CandidateSourceError) as e:
            failure = e
        finally:
            if not self._build_is_stale(generation, phase):
                self.loading = False

        if self._build_is_stale(generation, phase):
            logger.info(
                'session.stale_response',
                session_id=self.session_id,
                deck_size=deck_size,
                dealt_for=phase.value,
                now=self.state.phase.value,
            )
            return self.state

        self._retry_deck_size = deck_size
        if failure is not None:
            self._fail(failure, retryable=not isinstance(failure, ConfigurationError))
            return self.state
        if not result.cohort:
            self.notice = 'No titles match these settings. Try widening your filters.'
            return self.state
        if result.exhausted:
            self.notice = (
                f"Only found {len(result.cohort)} of {deck_size} titles for these settings. "
                'Widen your filters for a bigger deck.'
            )

        self._retry_deck_size = None
        self.machine.resize_deck(deck_size)
        state = self._dispatch(DealCohort(result.cohort))
        self._persist(
            preferences=self.preferences.model_copy(update={'target_count': state.deck_size})
        )
        logger.info(
            'session.dealt',
            session_id=self.session_id,
            size=len(result.cohort),
            deck_size=deck_size,
            pages_fetched=result.pages_fetched,
        )
        return state

    # =========================================================================
    # Intents
    # =========================================================================

    async def submit_names(self, you: str, partner: str) -> SessionState:
        state = self._dispatch(SubmitNames(you=you, partner=partner))
        self._persist(names=state.names)
        return state

    def clear_names(self) -> SessionState:
        """Forget stored names (welcome screen only)."""
        if self.state.phase is not Phase.WELCOME:
            raise InvalidIntentError('Names can only be cleared on the welcome screen')
        self.machine.state = SessionState(
            names=DisplayNames(), deck_size=self.state.deck_size, excluded=self.state.excluded
        )
        try:
            self.store.clear(NAMES_KEY)
        except StoreError as e:
            logger.warning('session.persist_failed', session_id=self.session_id, error=str(e))
        return self.state

    async def start_picking(self) -> SessionState:
        if self.state.phase is not Phase.PRE_DEAL:
            raise InvalidIntentError(
                f"Cannot start picking during {self.state.phase.value}",
                context={'phase': self.state.phase.value},
            )
        return await self._deal(self.state.deck_size)

    async def act(self, kind: DecisionKind | str) -> SessionState:
        state = self._dispatch(Act(kind=DecisionKind(kind)))
        if state.phase is Phase.NO_AGREED:
            size = state.deck_size
            widened = min(size + WIDEN_STEP, MAX_DECK_SIZE)
            self.notice = (
                f"No agreed picks this round. We'll add {widened - size} more "
                f"({size} → {widened}) and deal again."
            )
        return state

    async def undo(self) -> SessionState:
        return self._dispatch(Undo())

    async def swap(self) -> SessionState:
        return self._dispatch(Swap())

    async def start_review(self) -> SessionState:
        return self._dispatch(StartReview())

    async def review(self, approve: bool) -> SessionState:
        return self._dispatch(Review(approve=approve))

    async def review_swap(self) -> SessionState:
        return self._dispatch(ReviewSwap())

    async def redeal(self, widen: bool = True) -> SessionState:
        before = self.state.deck_size
        state = self._dispatch(Redeal(widen=widen))
        notice = ''
        if widen:
            notice = f"Expanding the deck from {before} to {state.deck_size} and dealing again."
        return await self._deal(state.deck_size, notice=notice)

    async def start_over(self) -> SessionState:
        state = self._dispatch(StartOver())
        return await self._deal(
            state.deck_size, notice='Starting over with a fresh set of movies.'
        )

    async def pick_winner(self) -> SessionState:
        return self._dispatch(PickWinner())

    async def back_to_final(self) -> SessionState:
        return self._dispatch(BackToFinal())

    async def restart(self) -> SessionState:
        self.loading = False
        self.error = ''
        self.error_retryable = False
        self.notice = ''
        self._retry_deck_size = None
        return self._dispatch(Restart())

    async def retry(self) -> SessionState:
        """Repeat the last deck build that failed or came back empty (e.g. after a token is set)."""
        if self._retry_deck_size is None:
            return self.state
        return await self._deal(self._retry_deck_size)

    async def update_preferences(self, preferences: Preferences, rebuild: bool = False) -> SessionState:
        """Apply new discovery settings; optionally rebuild the deck with them."""
        self.preferences = preferences
        self.machine.preferred_deck_size = preferences.target_count
        self.machine.resize_deck(preferences.target_count)
        self._persist(preferences=preferences)
        if rebuild:
            return await self._deal(self.state.deck_size)
        return self.state

    def set_api_token(self, api_token: str) -> None:
        self.client.set_token(api_token)
        self._persist(api_token=api_token.strip())
        if not self.error_retryable:
            self.error = ''

    # =========================================================================
    # Queries
    # =========================================================================

    def current_card(self) -> Candidate | None:
        return self.state.current_candidate

    @property
    def progress_pct(self) -> int:
        state = self.state
        total = max(1, len(state.deck_for(state.phase)))
        cursor = state.tracker_for(state.phase)[state.current_user].cursor
        return min(100, round(cursor / total * 100))

    @property
    def can_undo(self) -> bool:
        state = self.state
        if not (state.phase.is_swiping or state.phase.is_reviewing):
            return False
        return any(
            d.user is state.current_user and d.phase is state.phase for d in state.history
        )

    async def review_card(self) -> TitleCard | None:
        """Detail and trailer for the title under review, or None if stale or not reviewing."""
        state = self.state
        candidate_id = state.current_id
        if not state.phase.is_reviewing or candidate_id is None:
            return None

        generation = self._generation
        language = self.preferences.language
        detail, trailer_key = await asyncio.gather(
            self.client.get_candidate_detail(candidate_id, language),
            self.client.find_trailer_key(candidate_id, language),
            return_exceptions=True,
        )

        for outcome in (detail, trailer_key):
            if isinstance(outcome, BaseException) and not isinstance(outcome, CoupleSwipeError):
                raise outcome
            if isinstance(outcome, ConfigurationError):
                self._fail(outcome, retryable=False)
                return None
        if self._is_stale(generation, candidate_id):
            logger.debug('session.stale_response', candidate_id=candidate_id)
            return None

        card = self._card_for(candidate_id, detail)
        return card.with_trailer(trailer_key if isinstance(trailer_key, str) else None)

    async def shortlist(self) -> list[TitleCard]:
        """Details for the agreed titles; titles whose detail fetch fails are skipped."""
        ids = list(self.state.agreed)
        if not ids:
            return []
        language = self.preferences.language
        details = await asyncio.gather(
            *(self.client.get_candidate_detail(cid, language) for cid in ids),
            return_exceptions=True,
        )
        cards = []
        for cid, detail in zip(ids, details):
            if isinstance(detail, BaseException) and not isinstance(detail, CoupleSwipeError):
                raise detail
            if isinstance(detail, ConfigurationError):
                self._fail(detail, retryable=False)
                return []
            if isinstance(detail, BaseException):
                logger.info('session.shortlist_skip', candidate_id=cid, error=str(detail))
                continue
            cards.append(TitleCard.from_detail(detail, self.client.image_base))
        return cards

    async def trailer(self, candidate_id: int) -> TitleCard | None:
        """Trailer link for an agreed title (the shortlist's "play trailer")."""
        candidate = self.state.candidate(candidate_id)
        if candidate is None:
            return None
        try:
            key = await self.client.find_trailer_key(candidate_id, self.preferences.language)
        except ConfigurationError as e:
            self._fail(e, retryable=False)
            return None
        return TitleCard.from_candidate(candidate).with_trailer(key)

    async def winner_detail(self) -> TitleCard | None:
        winner_id = self.state.winner_id
        if self.state.phase is not Phase.WINNER or winner_id is None:
            return None
        generation = self._generation
        try:
            detail: CandidateDetail | BaseException = await self.client.get_candidate_detail(
                winner_id, self.preferences.language
            )
        except ConfigurationError as e:
            self._fail(e, retryable=False)
            return None
        except CandidateSourceError as e:
            detail = e
        if generation != self._generation or self.state.winner_id != winner_id:
            return None
        return self._card_for(winner_id, detail)

    async def genres(self) -> list[Genre]:
        language = self.preferences.language
        if language in self._genres:
            return self._genres[language]
        try:
            genres = await self.client.get_category_list(language)
        except (ConfigurationError, CandidateSourceError) as e:
            logger.info('session.genres_unavailable', error=str(e))
            return []
        self._genres[language] = genres
        return genres

    def _card_for(self, candidate_id: int, detail: CandidateDetail | BaseException) -> TitleCard:
        if isinstance(detail, CandidateDetail):
            return TitleCard.from_detail(detail, self.client.image_base)
        logger.info('session.detail_unavailable', candidate_id=candidate_id, error=str(detail))
        candidate = self.state.candidate(candidate_id)
        if candidate is not None:
            return TitleCard.from_candidate(candidate)
        return TitleCard(
            candidate_id=candidate_id,
            title='Untitled',
            year=None,
            description='No synopsis available.',
            poster_url=None,
            page_url=candidate_page_url(candidate_id),
        )

    def snapshot(self) -> dict[str, Any]:
        """JSON-ready view of everything a screen needs to render."""
        state = self.state
        card = self.current_card()
        return {
            'session_id': self.session_id,
            'phase': state.phase.value,
            'current_user': state.current_user.value,
            'current_name': state.names.name_for(state.current_user),
            'first_user': state.first_user.value,
            'names': {'you': state.names.you, 'partner': state.names.partner},
            'deck_size': state.deck_size,
            'cohort_size': len(state.cohort),
            'current_card': card.model_dump() if card else None,
            'current_review_id': state.current_id if state.phase.is_reviewing else None,
            'progress_pct': self.progress_pct,
            'can_undo': self.can_undo,
            'agreed': list(state.agreed),
            'winner_id': state.winner_id,
            'excluded_count': len(state.excluded),
            'loading': self.loading,
            'error': self.error,
            'error_retryable': self.error_retryable,
            'can_retry': self._retry_deck_size is not None,
            'notice': self.notice,
            'has_token': self.client.has_token,
            'preferences': self.preferences.model_dump(),
        }

