"""
Points and Leveling System

Manages point awards, level calculations and quiz scoring.

Leveling Curve:
- Flat: every 1000 points is one level, starting at level 1

Point Award Rules:
- Challenge completion: the challenge's own points
- Quiz: 20 points per correct answer
  + 50 bonus at 90%+ or 25 bonus at 70%+
- Badge unlocks: the badge's own points (50-500)
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Sequence
import logging

from greenverse.exceptions import ConsistencyError
from greenverse.models.catalog import Quiz

logger = logging.getLogger(__name__)

POINTS_PER_LEVEL = 1000
POINTS_PER_CORRECT_ANSWER = 20

# (minimum percentage, bonus points), checked top-down
QUIZ_BONUS_BANDS = [
    (90, 50),
    (70, 25),
]


@dataclass(frozen=True)
class QuizScore:
    """Result of grading one quiz submission"""
    score: int
    max_score: int
    percentage: int
    base_points: int
    bonus_points: int

    @property
    def points_awarded(self) -> int:
        return self.base_points + self.bonus_points


def calculate_level(total_points: int) -> int:
    """
    Calculate level from total points

    Level 1 covers 0-999 points, level 2 covers 1000-1999, and so on.
    Negative totals are treated as zero.
    """
    return max(total_points, 0) // POINTS_PER_LEVEL + 1


def points_to_next_level(total_points: int) -> int:
    """Points still needed to reach the next level"""
    return calculate_level(total_points) * POINTS_PER_LEVEL - max(total_points, 0)


def award_points(current_points: int, delta: int) -> Dict[str, any]:
    """
    Add points to a running total and check for level up

    Args:
        current_points: Total before the award
        delta: Points to add (never negative, points are not deducted)

    Returns:
        {
            'total_points': int,
            'points_awarded': int,
            'old_level': int,
            'new_level': int,
            'leveled_up': bool
        }

    Raises:
        ConsistencyError: If delta is negative
    """
    if delta < 0:
        raise ConsistencyError(
            f"Point delta must not be negative (got {delta})",
            operation="award_points",
            context={"current_points": current_points, "delta": delta},
        )

    old_level = calculate_level(current_points)
    total_points = current_points + delta
    new_level = calculate_level(total_points)

    return {
        "total_points": total_points,
        "points_awarded": delta,
        "old_level": old_level,
        "new_level": new_level,
        "leveled_up": new_level > old_level,
    }


def quiz_bonus(percentage: int) -> int:
    """Bonus points for a quiz percentage"""
    for threshold, bonus in QUIZ_BONUS_BANDS:
        if percentage >= threshold:
            return bonus
    return 0


def score_quiz(quiz: Quiz, answers: Sequence[int]) -> QuizScore:
    """
    Grade a quiz submission

    Answers are matched positionally against each question's correct
    index. The caller is responsible for checking the answer count.
    A quiz with no questions scores 0% and awards nothing.
    """
    questions = quiz.questions
    max_score = len(questions)

    correct = sum(
        1 for question, answer in zip(questions, answers)
        if answer == question.correct_index
    )

    if max_score == 0:
        percentage = 0
    else:
        # Half-up so 82.5% reports as 83, not banker's rounding
        percentage = int(
            (Decimal(correct * 100) / Decimal(max_score)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        )

    base_points = correct * POINTS_PER_CORRECT_ANSWER
    bonus_points = quiz_bonus(percentage) if max_score else 0

    return QuizScore(
        score=correct,
        max_score=max_score,
        percentage=percentage,
        base_points=base_points,
        bonus_points=bonus_points,
    )


def level_summary(total_points: int) -> Dict[str, int]:
    """
    Level information for display

    Returns:
        {
            'current_level': int,
            'points_in_current_level': int,
            'points_to_next_level': int,
            'total_points_for_next_level': int
        }
    """
    level = calculate_level(total_points)
    return {
        "current_level": level,
        "points_in_current_level": max(total_points, 0) - (level - 1) * POINTS_PER_LEVEL,
        "points_to_next_level": points_to_next_level(total_points),
        "total_points_for_next_level": level * POINTS_PER_LEVEL,
    }
