"""Monte Carlo equity simulation.

Each trial shuffles a fresh copy of the undealt cards, completes the board,
deals two cards to every opponent and compares the player's best hand with
the best opposing hand.  Trials are independent, so the win rate after N
trials has a standard error of roughly sqrt(p * (1 - p) / N).
"""

from __future__ import annotations

import random
import threading
from typing import Callable, Optional, Sequence

from holdem_equity import config
from holdem_equity.cards import Card, create_deck, remove_cards, shuffle
from holdem_equity.errors import ExhaustedDeck, InvalidInput, SimulationCancelled
from holdem_equity.evaluator import evaluate
from holdem_equity.models import EquityResult

BOARD_SIZE = 5
DECK_SIZE = 52
MAX_OPPONENTS = 9

ProgressCallback = Callable[[float], None]


def validate_request(
    hole_cards: Sequence[Card],
    community_cards: Sequence[Card],
    num_opponents: int,
    trials: int,
    opponent_hands: Sequence[Sequence[Card]] = (),
) -> None:
    """Reject a request before any trial runs.

    Raises InvalidInput for malformed requests and ExhaustedDeck when the
    deal would need more than 52 cards.
    """
    if len(hole_cards) != 2:
        raise InvalidInput(f"Need exactly 2 hole cards, got {len(hole_cards)}")
    if len(community_cards) > BOARD_SIZE:
        raise InvalidInput(
            f"At most {BOARD_SIZE} community cards, got {len(community_cards)}"
        )
    # 10-22 opponents fail the range check below; 23 or more exhaust the deck
    needed = len(hole_cards) + BOARD_SIZE + 2 * num_opponents
    if needed > DECK_SIZE:
        raise ExhaustedDeck(
            f"Dealing {num_opponents} opponent(s) needs {needed} cards, deck has {DECK_SIZE}"
        )
    if not 1 <= num_opponents <= MAX_OPPONENTS:
        raise InvalidInput(
            f"Opponent count must be between 1 and {MAX_OPPONENTS}, got {num_opponents}"
        )
    if trials < 1:
        raise InvalidInput(f"Trial count must be positive, got {trials}")

    if len(opponent_hands) > num_opponents:
        raise InvalidInput(
            f"{len(opponent_hands)} opponent hands given for {num_opponents} opponent(s)"
        )
    if any(len(h) != 2 for h in opponent_hands):
        raise InvalidInput("Each known opponent hand needs exactly 2 cards")

    known = list(hole_cards) + list(community_cards)
    for h in opponent_hands:
        known.extend(h)
    if len(set(known)) != len(known):
        raise InvalidInput("Duplicate cards detected")


def simulate(
    hole_cards: Sequence[Card],
    community_cards: Sequence[Card] = (),
    num_opponents: int = 1,
    trials: int = config.DEFAULT_TRIALS,
    *,
    rng: Optional[random.Random] = None,
    on_progress: Optional[ProgressCallback] = None,
    progress_interval: int = config.PROGRESS_INTERVAL,
    cancel_event: Optional[threading.Event] = None,
    opponent_hands: Sequence[Sequence[Card]] = (),
) -> EquityResult:
    """Estimate win/tie/loss probabilities against the opponents.

    Args:
        hole_cards: The player's two cards.
        community_cards: 0-5 board cards already dealt.
        num_opponents: Total opponents (1-9), known hands included.
        trials: Number of independent trials.
        rng: Random source for this run; a private one is created if omitted.
        on_progress: Called with ``completed / trials`` every
            ``progress_interval`` trials and once at the end.
        cancel_event: When set, the run stops and raises SimulationCancelled.
        opponent_hands: Known hole cards for the first opponents; the rest
            are dealt at random each trial.

    Returns:
        EquityResult whose three probabilities sum to 1.
    """
    validate_request(hole_cards, community_cards, num_opponents, trials, opponent_hands)

    rng = rng or random.Random()
    hole = list(hole_cards)
    board = list(community_cards)
    fixed = [list(h) for h in opponent_hands]
    dead = hole + board + [c for h in fixed for c in h]
    remaining = tuple(remove_cards(create_deck(), dead))
    random_opponents = num_opponents - len(fixed)
    to_deal = BOARD_SIZE - len(board)
    interval = max(1, progress_interval)

    wins = ties = losses = 0

    for i in range(trials):
        if cancel_event is not None and cancel_event.is_set():
            raise SimulationCancelled()

        dealt = shuffle(remaining, rng)
        full_board = board + dealt[:to_deal]

        best_opp = 0
        for opp_hole in fixed:
            opp = evaluate(opp_hole + full_board)
            if opp.value > best_opp:
                best_opp = opp.value

        idx = to_deal
        for _ in range(random_opponents):
            opp = evaluate([dealt[idx], dealt[idx + 1]] + full_board)
            if opp.value > best_opp:
                best_opp = opp.value
            idx += 2

        hero = evaluate(hole + full_board).value
        if hero > best_opp:
            wins += 1
        elif hero == best_opp:
            ties += 1
        else:
            losses += 1

        completed = i + 1
        if on_progress is not None and (
            completed % interval == 0 or completed == trials
        ):
            on_progress(completed / trials)

    return EquityResult(
        win_probability=wins / trials,
        tie_probability=ties / trials,
        loss_probability=losses / trials,
        simulations=trials,
    )
