# lendtrust/core/trust.py
"""
Trust score model.

The score is a bounded additive model over a user's accumulated statistics:
base 50, up to +30 for on-time return rate, up to +15 for average rating,
up to +10 loyalty bonus (one point per five returns), minus 5 per dispute,
clamped to [0, 100].
"""
import math
from typing import Dict

DEFAULT_TRUST_SCORE = 50
MIN_TRUST_SCORE = 0
MAX_TRUST_SCORE = 100
ON_TIME_WEIGHT = 30
RATING_WEIGHT = 15
MAX_LOYALTY_BONUS = 10
RETURNS_PER_LOYALTY_POINT = 5
DISPUTE_PENALTY = 5


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_trust_score(
    on_time_returns: int = 0,
    late_returns: int = 0,
    total_ratings: int = 0,
    rating_sum: int = 0,
    disputes_against: int = 0,
) -> int:
    score = DEFAULT_TRUST_SCORE

    total_transactions = on_time_returns + late_returns
    if total_transactions > 0:
        on_time_rate = on_time_returns / total_transactions
        score += round_half_up(on_time_rate * ON_TIME_WEIGHT)

    if total_ratings > 0:
        avg_rating = rating_sum / total_ratings
        score += round_half_up((avg_rating / 5) * RATING_WEIGHT)

    score += min(MAX_LOYALTY_BONUS, total_transactions // RETURNS_PER_LOYALTY_POINT)
    score -= disputes_against * DISPUTE_PENALTY

    return max(MIN_TRUST_SCORE, min(MAX_TRUST_SCORE, score))


def get_trust_badge(score: int) -> Dict[str, str]:
    if score >= 95:
        return {"badge": "Elite", "color": "gold"}
    if score >= 85:
        return {"badge": "Trusted", "color": "green"}
    if score >= 70:
        return {"badge": "Reliable", "color": "blue"}
    if score >= 50:
        return {"badge": "New User", "color": "gray"}
    return {"badge": "Caution", "color": "red"}
