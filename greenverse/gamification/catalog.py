"""
Reference Data Catalog

Challenges, quizzes and badges are immutable reference data. A Catalog is
built once per process (or per test) and handed to the engine and service.

default_catalog() returns the seeded Greenverse content:
- 15 daily challenges across energy, water, waste, transport and coding
- 3 quizzes (climate, energy, eco-coding)
- 6 badges
"""

import logging
import random
from typing import Dict, Iterable, List, Optional

from greenverse.exceptions import NotFoundError
from greenverse.models.catalog import (
    Badge,
    Challenge,
    PublicQuestion,
    PublicQuiz,
    Question,
    Quiz,
)

logger = logging.getLogger(__name__)

DEFAULT_DAILY_CHALLENGE_COUNT = 7


class Catalog:
    """In-memory index of challenges, quizzes and badges"""

    def __init__(
        self,
        challenges: Iterable[Challenge] = (),
        quizzes: Iterable[Quiz] = (),
        badges: Iterable[Badge] = (),
    ):
        self._challenges: Dict[str, Challenge] = {c.id: c for c in challenges}
        self._quizzes: Dict[str, Quiz] = {q.id: q for q in quizzes}
        self._badges: Dict[str, Badge] = {b.id: b for b in badges}
        logger.debug(
            f"Catalog loaded: {len(self._challenges)} challenges, "
            f"{len(self._quizzes)} quizzes, {len(self._badges)} badges"
        )

    # Lookups ---------------------------------------------------------

    def get_challenge(self, challenge_id: str) -> Challenge:
        challenge = self._challenges.get(challenge_id)
        if challenge is None or not challenge.active:
            raise NotFoundError(
                f"Challenge {challenge_id} not found",
                record_type="Challenge",
                record_id=challenge_id,
            )
        return challenge

    def get_quiz(self, quiz_id: str) -> Quiz:
        quiz = self._quizzes.get(quiz_id)
        if quiz is None or not quiz.active:
            raise NotFoundError(
                f"Quiz {quiz_id} not found",
                record_type="Quiz",
                record_id=quiz_id,
            )
        return quiz

    def get_badge(self, badge_id: str) -> Badge:
        badge = self._badges.get(badge_id)
        if badge is None or not badge.active:
            raise NotFoundError(
                f"Badge {badge_id} not found",
                record_type="Badge",
                record_id=badge_id,
            )
        return badge

    def find_quiz(self, quiz_id: str) -> Optional[Quiz]:
        """Quiz by id, including deactivated ones (for history)"""
        return self._quizzes.get(quiz_id)

    # Listings --------------------------------------------------------

    def challenges(self, category: Optional[str] = None) -> List[Challenge]:
        return [
            c for c in self._challenges.values()
            if c.active and (category is None or c.category.value == category)
        ]

    def quizzes(self, category: Optional[str] = None) -> List[Quiz]:
        return [
            q for q in self._quizzes.values()
            if q.active and (category is None or q.category == category)
        ]

    def badges(self) -> List[Badge]:
        """Active badges in evaluation order"""
        return [b for b in self._badges.values() if b.active]

    def daily_challenges(
        self,
        category: Optional[str] = None,
        size: int = DEFAULT_DAILY_CHALLENGE_COUNT,
        rng: Optional[random.Random] = None,
    ) -> List[Challenge]:
        """
        Random selection of active challenges for today

        Args:
            category: Restrict to one challenge category
            size: Maximum number of challenges to return
            rng: Random source (tests pass a seeded one)
        """
        pool = self.challenges(category)
        rng = rng or random.Random()
        return rng.sample(pool, min(size, len(pool)))


def public_quiz(quiz: Quiz) -> PublicQuiz:
    """Quiz with the answer key and explanations stripped"""
    return PublicQuiz(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        category=quiz.category,
        questions=[
            PublicQuestion(
                id=q.id,
                question=q.question,
                options=q.options,
                category=q.category,
                difficulty=q.difficulty,
            )
            for q in quiz.questions
        ],
        total_points=quiz.total_points,
        time_limit_minutes=quiz.time_limit_minutes,
        question_count=len(quiz.questions),
    )


# ============================================
# Seed content
# ============================================

DEFAULT_CHALLENGES = [
    # Energy
    Challenge(id="lights-off", title="Turn off lights when leaving room",
              description="Save energy by switching off lights in empty rooms",
              points=10, category="energy", difficulty="easy"),
    Challenge(id="take-stairs", title="Take stairs instead of elevator",
              description="Get exercise while saving energy",
              points=5, category="energy", difficulty="easy"),
    Challenge(id="unplug-devices", title="Unplug unused electronic devices",
              description="Reduce phantom energy consumption",
              points=15, category="energy", difficulty="medium"),
    # Water
    Challenge(id="short-shower", title="Take a 5-minute shower",
              description="Conserve water with shorter showers",
              points=20, category="water", difficulty="easy"),
    Challenge(id="fix-leaks", title="Fix any water leaks",
              description="Prevent water waste from leaks",
              points=30, category="water", difficulty="medium"),
    Challenge(id="rainwater-collection", title="Set up rainwater collection",
              description="Collect rainwater for plants",
              points=50, category="water", difficulty="hard"),
    # Waste
    Challenge(id="reusable-bottle", title="Use reusable water bottle",
              description="Avoid single-use plastic bottles today",
              points=15, category="waste", difficulty="easy"),
    Challenge(id="compost-food", title="Compost food waste",
              description="Turn food scraps into nutrient-rich soil",
              points=25, category="waste", difficulty="medium"),
    Challenge(id="zero-waste-day", title="Have a zero-waste day",
              description="Avoid generating any waste for a day",
              points=100, category="waste", difficulty="hard"),
    # Transport
    Challenge(id="walk-bike", title="Walk or bike for short trips",
              description="Choose eco-friendly transportation",
              points=25, category="transport", difficulty="easy"),
    Challenge(id="carpool", title="Carpool or use public transport",
              description="Reduce individual carbon footprint",
              points=20, category="transport", difficulty="medium"),
    Challenge(id="electric-vehicle", title="Use electric vehicle or hybrid",
              description="Choose low-emission transportation",
              points=40, category="transport", difficulty="hard"),
    # Coding
    Challenge(id="code-eco-algorithm", title="Code an eco-friendly algorithm",
              description="Write efficient code that reduces computational waste",
              points=50, category="coding", difficulty="medium"),
    Challenge(id="optimize-energy-usage", title="Optimize code for energy efficiency",
              description="Refactor code to use less CPU and memory",
              points=75, category="coding", difficulty="hard"),
    Challenge(id="green-web-design", title="Design a green website",
              description="Create a website with minimal environmental impact",
              points=60, category="coding", difficulty="hard"),
]


DEFAULT_QUIZZES = [
    Quiz(
        id="climate-change",
        title="Climate Change & Environment",
        description="Test your knowledge about climate change and environmental issues",
        category="environment",
        total_points=120,
        time_limit_minutes=30,
        questions=[
            Question(id=1, question="What is the main cause of climate change?",
                     options=["Natural weather patterns",
                              "Greenhouse gas emissions from human activities",
                              "Solar radiation changes", "Ocean currents"],
                     correct_index=1,
                     explanation="Burning fossil fuels releases greenhouse gases that trap heat in the atmosphere.",
                     category="environment", difficulty="easy"),
            Question(id=2, question="What percentage of global warming is caused by human activities?",
                     options=["About 50%", "About 75%", "About 90%", "About 100%"],
                     correct_index=2,
                     explanation="Human activities are responsible for roughly 90% of warming since the mid-20th century.",
                     category="environment", difficulty="medium"),
            Question(id=3, question="Which gas is the most significant contributor to the greenhouse effect?",
                     options=["Methane (CH4)", "Carbon Dioxide (CO2)",
                              "Nitrous Oxide (N2O)", "Water Vapor (H2O)"],
                     correct_index=1,
                     explanation="CO2 stays in the atmosphere longest and its concentration is driven by human activity.",
                     category="environment", difficulty="hard"),
            Question(id=4, question="How many species go extinct each day due to human activities?",
                     options=["1-5 species", "10-20 species", "50-100 species", "200+ species"],
                     correct_index=3,
                     explanation="Estimates put it at 150-200 species a day, about 1000 times the natural rate.",
                     category="environment", difficulty="hard"),
            Question(id=5, question="What percentage of the world's forests have been lost since 1990?",
                     options=["About 5%", "About 10%", "About 20%", "About 30%"],
                     correct_index=1,
                     explanation="About 10% of forest area has been lost since 1990, an area larger than India.",
                     category="environment", difficulty="medium"),
            Question(id=6, question="What is the primary cause of ocean acidification?",
                     options=["Plastic pollution", "Oil spills",
                              "CO2 absorption by seawater", "Overfishing"],
                     correct_index=2,
                     explanation="Seawater absorbs CO2 and forms carbonic acid, lowering ocean pH.",
                     category="environment", difficulty="medium"),
        ],
    ),
    Quiz(
        id="energy-resources",
        title="Energy & Resources",
        description="Learn about renewable energy and resource conservation",
        category="energy",
        total_points=90,
        time_limit_minutes=25,
        questions=[
            Question(id=1, question="Which renewable energy source is most widely used globally?",
                     options=["Solar power", "Wind power", "Hydroelectric power", "Geothermal power"],
                     correct_index=2,
                     explanation="Hydroelectric power produces about 16% of global electricity.",
                     category="energy", difficulty="easy"),
            Question(id=2, question="What is the efficiency range of modern solar panels?",
                     options=["5-10%", "15-22%", "30-40%", "50-60%"],
                     correct_index=1,
                     explanation="Most commercial panels are 15-22% efficient.",
                     category="energy", difficulty="medium"),
            Question(id=3, question="Which country generates the most wind energy?",
                     options=["United States", "China", "Germany", "India"],
                     correct_index=1,
                     explanation="China holds more than 30% of global wind capacity.",
                     category="energy", difficulty="medium"),
        ],
    ),
    Quiz(
        id="eco-coding",
        title="Eco-Coding & Technology",
        description="Sustainable programming and green technology",
        category="coding",
        total_points=90,
        time_limit_minutes=20,
        questions=[
            Question(id=1, question="What is the most energy-efficient programming language?",
                     options=["Python", "JavaScript", "C", "Java"],
                     correct_index=2,
                     explanation="C runs close to the hardware and tops most energy benchmarks.",
                     category="coding", difficulty="medium"),
            Question(id=2, question="What percentage of global electricity is used by data centers?",
                     options=["About 1%", "About 3%", "About 7%", "About 15%"],
                     correct_index=1,
                     explanation="Data centers use about 3% of global electricity.",
                     category="coding", difficulty="hard"),
            Question(id=3, question="Which algorithm is most efficient for sorting large datasets?",
                     options=["Bubble Sort", "Quick Sort", "Merge Sort", "Insertion Sort"],
                     correct_index=2,
                     explanation="Merge Sort is O(n log n) and stable.",
                     category="coding", difficulty="hard"),
        ],
    ),
]


DEFAULT_BADGES = [
    Badge(id="first-quiz", name="Quiz Starter", description="Complete your first quiz",
          icon="🎯", points=50, category="quiz",
          criteria={"type": "action", "action": "quiz-complete"}),
    Badge(id="eco-warrior", name="Eco Warrior", description="Complete 10 daily challenges",
          icon="🌱", points=100, category="challenge",
          criteria={"type": "challenge_count", "value": 10}),
    Badge(id="quiz-master", name="Quiz Master", description="Score 90% or more on a quiz",
          icon="🧠", points=200, category="quiz",
          criteria={"type": "quiz_percentage", "action": "quiz-complete", "value": 90}),
    Badge(id="streak-champion", name="Streak Champion", description="Maintain a 30-day activity streak",
          icon="🔥", points=300, category="streak",
          criteria={"type": "streak", "value": 30}),
    Badge(id="level-master", name="Level Master", description="Reach level 10",
          icon="⭐", points=500, category="level",
          criteria={"type": "level", "value": 10}),
    Badge(id="eco-coder", name="Eco Coder", description="Earn 200 points",
          icon="💻", points=150, category="challenge",
          criteria={"type": "total_points", "value": 200}),
]


def default_catalog() -> Catalog:
    """Catalog with the seeded Greenverse content"""
    return Catalog(
        challenges=DEFAULT_CHALLENGES,
        quizzes=DEFAULT_QUIZZES,
        badges=DEFAULT_BADGES,
    )
