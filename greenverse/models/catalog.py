"""Reference data models: challenges, quizzes and badges"""
from enum import Enum
from pydantic import BaseModel, Field
from typing import Any, Optional


class ChallengeCategory(str, Enum):
    """Challenge categories"""
    ENERGY = "energy"
    WATER = "water"
    WASTE = "waste"
    TRANSPORT = "transport"
    CODING = "coding"


class Difficulty(str, Enum):
    """Challenge and question difficulty"""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class BadgeCategory(str, Enum):
    """Badge categories"""
    QUIZ = "quiz"
    CHALLENGE = "challenge"
    STREAK = "streak"
    LEVEL = "level"
    SPECIAL = "special"


class Challenge(BaseModel):
    """Daily eco-challenge definition"""
    id: str
    title: str
    description: str = ""
    points: int = Field(..., ge=0)
    category: ChallengeCategory
    difficulty: Difficulty = Difficulty.EASY
    active: bool = True


class Question(BaseModel):
    """Single multiple-choice quiz question"""
    id: int
    question: str
    options: list[str]
    correct_index: int = Field(..., ge=0)
    explanation: str = ""
    category: str = ""
    difficulty: Difficulty = Difficulty.EASY


class Quiz(BaseModel):
    """Quiz definition"""
    id: str
    title: str
    description: str = ""
    category: str
    questions: list[Question] = Field(default_factory=list)
    total_points: int = 0
    time_limit_minutes: int = 30
    active: bool = True


class Badge(BaseModel):
    """
    Badge definition

    criteria is a dict keyed by type, e.g.
    {"type": "challenge_count", "value": 10}
    """
    id: str
    name: str
    description: str = ""
    icon: str = ""
    points: int = Field(..., ge=0)
    category: BadgeCategory
    criteria: dict[str, Any]
    active: bool = True


class PublicQuestion(BaseModel):
    """Question without its answer key"""
    id: int
    question: str
    options: list[str]
    category: str = ""
    difficulty: Difficulty = Difficulty.EASY


class PublicQuiz(BaseModel):
    """Quiz as shown to players before submission"""
    id: str
    title: str
    description: str = ""
    category: str
    questions: list[PublicQuestion]
    total_points: int
    time_limit_minutes: int
    question_count: Optional[int] = None
