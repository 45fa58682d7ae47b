import random

import pytest

from catwheel.config import GameConfig

from conftest import FixedDraw, PULSES_TO_JACKPOT


@pytest.mark.parametrize("decrease,wins,expected", [
    (0, 0, 100),
    (0, 7, 100),
    (20, 0, 100),
    (20, 1, 80),
    (20, 3, 40),
    (20, 5, 0),
    (30, 4, 0),
    (15, 2, 70),
])
def test_chance_decays_per_recent_win(make_game, decrease, wins, expected):
    g = make_game(GameConfig(decrease_per_win=decrease))
    now = g.clock.now
    g.state.jackpot_wins.extend(now - 60 * (i + 1) for i in range(wins))
    assert g.controller.jackpot.compute_chance(now) == expected


def test_wins_outside_ttl_do_not_count(make_game):
    g = make_game(GameConfig(decrease_per_win=20, history_ttl_s=3600))
    now = g.clock.now
    g.state.jackpot_wins.extend([now - 3600, now - 4000, now - 10])
    # A win exactly TTL old is already expired.
    assert g.controller.jackpot.recent_wins(now) == 1
    assert g.controller.jackpot.compute_chance(now) == 80


def test_cooldown_starts_before_draw_and_runs_full_duration(make_game):
    g = make_game()
    engine = g.controller.jackpot

    class CheckingDraw:
        def randrange(self, stop):
            assert g.state.cooldown.active is True
            return 50

    engine.rng = CheckingDraw()
    engine.resolve()
    assert g.state.cooldown.until_ts == pytest.approx(g.clock.now + 20.0)
    g.advance(19.9)
    assert g.state.cooldown.active is True
    g.advance(0.2)
    assert g.state.cooldown.active is False
    assert "cooldown_cleared" in g.logger.names()


def test_win_records_history_plays_cue_and_feeds(make_game):
    g = make_game(rng=FixedDraw(99))
    assert g.controller.jackpot.resolve() is True
    assert list(g.state.jackpot_wins) == [g.clock.now]
    assert g.cues.played == ["win"]
    assert g.state.feeder.feeding is True
    assert g.output.history[0][0] == "on"
    assert g.logger.of("jackpot") == [{"chance": 100, "draw": 99, "outcome": "win"}]


def test_draw_equal_to_chance_wins(make_game):
    g = make_game(GameConfig(decrease_per_win=20), rng=FixedDraw(80))
    g.state.jackpot_wins.append(g.clock.now - 5)
    assert g.controller.jackpot.resolve() is True


def test_draw_above_chance_loses_without_feeding(make_game):
    g = make_game(GameConfig(decrease_per_win=20), rng=FixedDraw(81))
    g.state.jackpot_wins.append(g.clock.now - 5)
    assert g.controller.jackpot.resolve() is False
    assert g.cues.played == ["lose"]
    assert g.output.history == []
    assert g.state.feeder.feeding is False
    assert len(g.state.jackpot_wins) == 1
    assert g.state.cooldown.active is True


def test_history_is_capped_at_ten(make_game):
    g = make_game(rng=FixedDraw(0))
    engine = g.controller.jackpot
    for _ in range(15):
        engine.resolve()
        g.advance(30)
    assert len(g.state.jackpot_wins) == 10
    assert list(g.state.jackpot_wins) == sorted(g.state.jackpot_wins)
    assert all(ts <= g.clock.now for ts in g.state.jackpot_wins)
    assert g.state.jackpots_total == 15


def test_default_rng_draws_in_range(make_game):
    g = make_game(rng=random.Random(7))
    engine = g.controller.jackpot
    draws = [engine.rng.randrange(100) for _ in range(200)]
    assert min(draws) >= 0 and max(draws) < 100


def test_seeded_rng_is_reproducible(make_game):
    outcomes = []
    for _ in range(2):
        g = make_game(GameConfig(decrease_per_win=10), rng=random.Random(1234))
        run = []
        for _ in range(8):
            run.append(g.controller.jackpot.resolve())
            g.advance(30)
        outcomes.append((run, list(g.state.jackpot_wins)))
    assert outcomes[0] == outcomes[1]


class RecordingNotifier:
    def __init__(self):
        self.calls = []

    def jackpot_won(self, **fields):
        self.calls.append(fields)


def test_win_notifies_when_notifier_given(make_game):
    notifier = RecordingNotifier()
    g = make_game(rng=FixedDraw(0), notifier=notifier)
    g.spin(PULSES_TO_JACKPOT)
    assert notifier.calls == [
        {"chance": 100, "draw": 0, "wins_recent": 1, "next_chance": 100, "feeds_total": 1},
    ]


def test_win_notification_reports_chance_after_the_win(make_game):
    notifier = RecordingNotifier()
    g = make_game(GameConfig(decrease_per_win=40), rng=FixedDraw(5), notifier=notifier)
    g.spin(PULSES_TO_JACKPOT)
    assert notifier.calls[0]["chance"] == 100
    assert notifier.calls[0]["next_chance"] == 60


def test_lose_does_not_notify(make_game):
    notifier = RecordingNotifier()
    g = make_game(GameConfig(decrease_per_win=50), rng=FixedDraw(99), notifier=notifier)
    g.state.jackpot_wins.append(g.clock.now)
    g.spin(PULSES_TO_JACKPOT)
    assert g.state.jackpots_total == 1
    assert notifier.calls == []
