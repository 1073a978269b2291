"""Tests for the Monte Carlo equity simulator."""

import random
import threading

import pytest
from holdem_equity.cards import Card
from holdem_equity.errors import ExhaustedDeck, InvalidInput, SimulationCancelled
from holdem_equity.simulator import simulate, validate_request


def _cards(s: str) -> list[Card]:
    return [Card.from_str(c) for c in s.split()] if s else []


# ── Validation ───────────────────────────────────────────────────────

class TestValidation:
    def test_one_hole_card(self):
        with pytest.raises(InvalidInput, match="2 hole cards"):
            simulate(_cards("As"), trials=10)

    def test_three_hole_cards(self):
        with pytest.raises(InvalidInput, match="2 hole cards"):
            simulate(_cards("As Ks Qs"), trials=10)

    def test_six_community_cards(self):
        with pytest.raises(InvalidInput, match="community"):
            simulate(_cards("As Ks"), _cards("2c 3c 4c 5c 6c 7c"), trials=10)

    @pytest.mark.parametrize("n", [0, -1, 10, 22])
    def test_opponent_count_out_of_range(self, n):
        with pytest.raises(InvalidInput, match="Opponent count"):
            simulate(_cards("As Ks"), num_opponents=n, trials=10)

    def test_opponent_range_is_not_exhausted_deck(self):
        with pytest.raises(InvalidInput) as exc:
            validate_request(_cards("As Ks"), [], 10, 10)
        assert not isinstance(exc.value, ExhaustedDeck)

    def test_too_many_opponents_exhausts_deck(self):
        # 2 + 5 + 2 * 23 = 53 cards
        with pytest.raises(ExhaustedDeck, match="53 cards"):
            simulate(_cards("As Ks"), num_opponents=23, trials=10)

    def test_exhausted_deck_is_invalid_input(self):
        with pytest.raises(InvalidInput):
            validate_request(_cards("As Ks"), [], 30, 10)

    def test_nine_opponents_allowed(self):
        validate_request(_cards("As Ks"), _cards("2c 3d 4h 5s 6c"), 9, 1)

    @pytest.mark.parametrize("trials", [0, -5])
    def test_non_positive_trials(self, trials):
        with pytest.raises(InvalidInput, match="Trial count"):
            simulate(_cards("As Ks"), trials=trials)

    def test_duplicate_between_hole_and_board(self):
        with pytest.raises(InvalidInput, match="Duplicate"):
            simulate(_cards("As Ks"), _cards("As 2c 3d"), trials=10)

    def test_duplicate_hole_cards(self):
        with pytest.raises(InvalidInput, match="Duplicate"):
            simulate(_cards("As As"), trials=10)

    def test_rejected_before_any_trial(self):
        calls = []
        with pytest.raises(InvalidInput):
            simulate(_cards("As"), trials=5000, on_progress=calls.append)
        assert calls == []


class TestOpponentHandValidation:
    def test_more_hands_than_opponents(self):
        with pytest.raises(InvalidInput, match="opponent hands"):
            simulate(
                _cards("As Ks"),
                num_opponents=1,
                trials=10,
                opponent_hands=[_cards("Qd Qc"), _cards("Jd Jc")],
            )

    def test_hand_of_wrong_size(self):
        with pytest.raises(InvalidInput, match="exactly 2 cards"):
            simulate(_cards("As Ks"), trials=10, opponent_hands=[_cards("Qd")])

    def test_opponent_shares_hero_card(self):
        with pytest.raises(InvalidInput, match="Duplicate"):
            simulate(_cards("As Ks"), trials=10, opponent_hands=[_cards("As Qc")])

    def test_opponent_shares_board_card(self):
        with pytest.raises(InvalidInput, match="Duplicate"):
            simulate(
                _cards("As Ks"),
                _cards("Qd 2c 3h"),
                trials=10,
                opponent_hands=[_cards("Qd Qc")],
            )


# ── Results ──────────────────────────────────────────────────────────

class TestResults:
    @pytest.mark.parametrize(
        "hole,board,opponents",
        [
            ("As Ah", "", 1),
            ("7c 2d", "", 3),
            ("Jh Th", "9h 8c 2s", 2),
            ("Qs Qd", "Ac Kd 4h 4c", 5),
            ("5d 5c", "Ah Kh Qh Jh Th", 1),
        ],
    )
    def test_probabilities_sum_to_one(self, hole, board, opponents):
        r = simulate(
            _cards(hole), _cards(board), opponents, 500, rng=random.Random(1)
        )
        total = r.win_probability + r.tie_probability + r.loss_probability
        assert abs(total - 1.0) < 1e-9
        assert r.simulations == 500
        for p in (r.win_probability, r.tie_probability, r.loss_probability):
            assert 0.0 <= p <= 1.0

    def test_royal_flush_on_river_always_wins(self):
        r = simulate(
            _cards("As Ks"), _cards("Qs Js Ts 2d 3c"), 4, 300, rng=random.Random(2)
        )
        assert r.win_probability == 1.0
        assert r.tie_probability == 0.0

    def test_board_royal_always_ties(self):
        r = simulate(
            _cards("2d 3c"), _cards("As Ks Qs Js Ts"), 2, 300, rng=random.Random(3)
        )
        assert r.tie_probability == 1.0
        assert r.equity == 0.5

    def test_known_opponent_on_full_board(self):
        r = simulate(
            _cards("As Ah"),
            _cards("2c 7d 9h Jc 3s"),
            1,
            50,
            opponent_hands=[_cards("Kd Kc")],
        )
        assert r.win_probability == 1.0

    def test_known_and_random_opponents_mix(self):
        # The known KK is already beaten; only the random opponent can tie or win
        r = simulate(
            _cards("As Ah"),
            _cards("2c 7d 9h Jc 3s"),
            2,
            500,
            rng=random.Random(4),
            opponent_hands=[_cards("Kd Kc")],
        )
        assert 0.7 < r.win_probability < 1.0

    def test_loss_is_losses_over_trials(self):
        r = simulate(
            _cards("2d 3c"),
            _cards("As Ks Qs Js 9h"),
            1,
            200,
            opponent_hands=[_cards("Ts 4h")],
        )
        assert r.loss_probability == 1.0
        assert r.equity == 0.0


class TestConvergence:
    def test_aces_heads_up(self):
        r = simulate(_cards("As Ah"), num_opponents=1, trials=10_000, rng=random.Random(42))
        # Aces win about 85% of showdowns against one random hand
        assert 0.83 <= r.win_probability <= 0.87

    def test_aces_lose_ground_to_more_opponents(self):
        heads_up = simulate(_cards("As Ah"), num_opponents=1, trials=3000, rng=random.Random(5))
        full_ring = simulate(_cards("As Ah"), num_opponents=6, trials=3000, rng=random.Random(5))
        assert full_ring.win_probability < heads_up.win_probability - 0.2

    def test_ace_king_suited_vs_queens(self):
        r = simulate(
            _cards("As Ks"),
            num_opponents=1,
            trials=10_000,
            rng=random.Random(7),
            opponent_hands=[_cards("Qd Qc")],
        )
        assert 0.43 <= r.win_probability <= 0.48


# ── Progress, seeding, cancellation ─────────────────────────────────

class TestProgress:
    def test_reports_every_interval_and_at_end(self):
        seen = []
        simulate(
            _cards("As Kd"),
            trials=2500,
            rng=random.Random(1),
            on_progress=seen.append,
            progress_interval=1000,
        )
        assert seen == [0.4, 0.8, 1.0]

    def test_no_duplicate_final_report(self):
        seen = []
        simulate(
            _cards("As Kd"),
            trials=3000,
            rng=random.Random(1),
            on_progress=seen.append,
            progress_interval=1000,
        )
        assert len(seen) == 3
        assert seen[-1] == 1.0

    def test_progress_is_monotonic(self):
        seen = []
        simulate(
            _cards("9c 9d"),
            trials=1000,
            rng=random.Random(1),
            on_progress=seen.append,
            progress_interval=77,
        )
        assert seen == sorted(seen)
        assert seen[-1] == 1.0

    def test_fewer_trials_than_interval(self):
        seen = []
        simulate(_cards("As Kd"), trials=10, on_progress=seen.append, progress_interval=1000)
        assert seen == [1.0]


class TestSeeding:
    def test_same_seed_same_result(self):
        a = simulate(_cards("Jh Th"), _cards("9h 8c 2s"), 3, 2000, rng=random.Random(11))
        b = simulate(_cards("Jh Th"), _cards("9h 8c 2s"), 3, 2000, rng=random.Random(11))
        assert a == b

    def test_different_seeds_differ(self):
        a = simulate(_cards("Jh Th"), _cards("9h 8c 2s"), 3, 2000, rng=random.Random(11))
        b = simulate(_cards("Jh Th"), _cards("9h 8c 2s"), 3, 2000, rng=random.Random(12))
        assert a != b

    def test_does_not_touch_global_random(self):
        random.seed(0)
        expected = random.random()
        random.seed(0)
        simulate(_cards("As Ks"), trials=100, rng=random.Random(1))
        assert random.random() == expected


class TestCancellation:
    def test_preset_event_stops_before_first_trial(self):
        event = threading.Event()
        event.set()
        seen = []
        with pytest.raises(SimulationCancelled):
            simulate(_cards("As Ks"), trials=1000, on_progress=seen.append, cancel_event=event)
        assert seen == []

    def test_cancel_mid_run(self):
        event = threading.Event()
        seen = []

        def on_progress(fraction):
            seen.append(fraction)
            event.set()

        with pytest.raises(SimulationCancelled):
            simulate(
                _cards("As Ks"),
                trials=5000,
                on_progress=on_progress,
                progress_interval=1000,
                cancel_event=event,
            )
        assert seen == [0.2]

    def test_unset_event_runs_to_completion(self):
        r = simulate(_cards("As Ks"), trials=200, cancel_event=threading.Event())
        assert r.simulations == 200
