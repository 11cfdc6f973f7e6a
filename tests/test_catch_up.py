from core.catch_up import catch_up


def test_overshoot_lands_in_later_timer():
    r = catch_up([60, 120, 180], 0, 150_000)
    assert r.index == 2
    assert r.remaining_ms == 150_000
    assert r.completed == [0, 1]
    assert not r.finished


def test_no_overshoot_moves_to_next_timer():
    r = catch_up([60, 120], 0, 0)
    assert r.index == 1
    assert r.remaining_ms == 120_000
    assert r.completed == [0]


def test_partial_progress_is_taken_off_next_timer():
    r = catch_up([10, 10, 10], 0, 15_000)
    assert r.index == 2
    assert r.remaining_ms == 5_000
    assert r.completed == [0, 1]


def test_overshoot_past_the_end_finishes():
    r = catch_up([60, 120, 180], 0, 340_000)
    assert r.finished
    assert r.completed == [0, 1, 2]
    assert r.index == 2
    assert r.remaining_ms == 0


def test_last_timer_ending_in_background_finishes():
    r = catch_up([60, 120], 1, 5_000)
    assert r.finished
    assert r.completed == [1]


def test_zero_length_timers_are_consumed():
    r = catch_up([10, 0, 0, 30], 0, 2_000)
    assert r.index == 3
    assert r.completed == [0, 1, 2]
    assert r.remaining_ms == 28_000


def test_negative_overshoot_treated_as_zero():
    r = catch_up([10, 20], 0, -500)
    assert r.index == 1
    assert r.remaining_ms == 20_000
