# tests/test_trust.py
import itertools

import pytest

from lendtrust.core.trust import calculate_trust_score, get_trust_badge, round_half_up


def test_new_user_scores_base():
    assert calculate_trust_score() == 50


def test_perfect_record():
    # 50 + 30 (all on time) + 15 (all 5-star) + 2 (10 returns)
    assert calculate_trust_score(on_time_returns=10, total_ratings=4, rating_sum=20) == 97


def test_on_time_rate_rounds_half_up():
    # 1/4 on time -> 7.5 -> 8, no loyalty bonus below five returns
    assert calculate_trust_score(on_time_returns=1, late_returns=3) == 58


def test_rating_component():
    # avg 3 -> 3/5 * 15 = 9
    assert calculate_trust_score(total_ratings=2, rating_sum=6) == 59


def test_loyalty_bonus_is_capped():
    assert calculate_trust_score(late_returns=49) == 59
    assert calculate_trust_score(late_returns=50) == 60
    assert calculate_trust_score(late_returns=500) == 60


def test_disputes_subtract_and_clamp_at_zero():
    assert calculate_trust_score(disputes_against=2) == 40
    assert calculate_trust_score(disputes_against=50) == 0


def test_clamps_at_hundred():
    assert calculate_trust_score(on_time_returns=1000, total_ratings=10, rating_sum=50) == 100


def test_score_is_deterministic_and_bounded():
    for on_time, late, ratings, disputes in itertools.product(range(0, 12, 3), range(0, 12, 4), range(0, 4), range(0, 25, 6)):
        rating_sum = ratings * 3
        first = calculate_trust_score(on_time, late, ratings, rating_sum, disputes)
        second = calculate_trust_score(on_time, late, ratings, rating_sum, disputes)
        assert first == second
        assert 0 <= first <= 100


@pytest.mark.parametrize("value,expected", [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (7.5, 8)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


@pytest.mark.parametrize("score,badge,color", [
    (100, "Elite", "gold"),
    (95, "Elite", "gold"),
    (94, "Trusted", "green"),
    (85, "Trusted", "green"),
    (70, "Reliable", "blue"),
    (50, "New User", "gray"),
    (49, "Caution", "red"),
    (0, "Caution", "red"),
])
def test_badges(score, badge, color):
    assert get_trust_badge(score) == {"badge": badge, "color": color}
