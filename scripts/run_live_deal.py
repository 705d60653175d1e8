#!/usr/bin/env python3
"""
Live smoke test against the real TMDB API.

Builds a deck with the stored (or default) discovery preferences, plays a full
pick with a seeded random source, and prints each phase plus the winner's
detail card. Needs TMDB_API_TOKEN in the environment or .env.

Usage:
    python scripts/run_live_deal.py [deck_size] [seed]
"""

import asyncio
import random
import sys
import time
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from dotenv import load_dotenv
load_dotenv(Path(__file__).parent.parent / '.env')

from coupleswipe.clients.tmdb_client import TMDBClient
from coupleswipe.config import config
from coupleswipe.errors import CoupleSwipeError
from coupleswipe.models.preferences import Preferences
from coupleswipe.models.session import DecisionKind, Phase
from coupleswipe.session.coordinator import SwipeSession
from coupleswipe.store.settings_store import MemoryStore


def print_phase(session: SwipeSession, label: str) -> None:
    state = session.state
    print(f"  [{label}] phase={state.phase.value} user={state.current_user.value} "
          f"agreed={list(state.agreed)} excluded={len(state.excluded)}")
    if session.notice:
        print(f"    notice: {session.notice}")
    if session.error:
        print(f"    error: {session.error} (retryable={session.error_retryable})")


async def play(session: SwipeSession, rng: random.Random) -> None:
    """Swipe both rounds and both reviews with random choices until a winner or start-over."""
    await session.submit_names('Alex', 'Sam')
    await session.start_picking()
    print_phase(session, 'dealt')
    if session.state.phase is not Phase.ROUND1:
        return

    for _ in range(10):
        while session.state.phase.is_swiping:
            await session.act(rng.choice([DecisionKind.LIKE, DecisionKind.PASS]))
        print_phase(session, 'round done')

        phase = session.state.phase
        if phase is Phase.SWAP:
            await session.swap()
            continue
        if phase is Phase.NO_AGREED:
            await session.redeal(widen=True)
            print_phase(session, 'redealt')
            continue
        break

    if session.state.phase is not Phase.REVIEW_INTRO:
        return

    await session.start_review()
    while session.state.phase.is_reviewing or session.state.phase is Phase.REVIEW_SWAP:
        if session.state.phase is Phase.REVIEW_SWAP:
            await session.review_swap()
            continue
        card = await session.review_card()
        if card:
            print(f"    reviewing {card.title} ({card.year}) -> {card.trailer_url}")
        await session.review(approve=rng.random() < 0.8)
    print_phase(session, 'reviewed')

    if session.state.phase is Phase.FINAL:
        for card in await session.shortlist():
            print(f"    shortlist: {card.title} ({card.year})")
        await session.pick_winner()
        winner = await session.winner_detail()
        if winner:
            print(f"\n  WINNER: {winner.title} ({winner.year})")
            print(f"    {winner.description}")
            print(f"    {winner.page_url}")


async def main() -> int:
    deck_size = int(sys.argv[1]) if len(sys.argv) > 1 else 10
    seed = int(sys.argv[2]) if len(sys.argv) > 2 else 7

    missing = config.validate()
    if missing:
        print(f"Missing configuration: {', '.join(missing)}")
        return 1

    client = TMDBClient()
    try:
        await client.verify_connectivity()
    except CoupleSwipeError as e:
        print(f"TMDB unreachable: {e}")
        await client.close()
        return 1

    store = MemoryStore()
    store.save(preferences=Preferences(target_count=deck_size))
    rng = random.Random(seed)
    session = SwipeSession(client, store, rng=rng)

    print(f"Live deal: deck_size={deck_size} seed={seed} session={session.session_id}")
    start = time.perf_counter()
    try:
        await play(session, rng)
    finally:
        await client.close()
    print(f"\nDone in {time.perf_counter() - start:.1f}s")
    return 0


if __name__ == '__main__':
    sys.exit(asyncio.run(main()))
