"""Таблица вопросов квиза о рабочих предпочтениях"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

COLLABORATION = "collaboration"
FORMALITY = "formality"
TECHNOLOGY = "technology"
WELLNESS = "wellness"

# Порядок измерений задаёт и приоритет при равенстве средних
DIMENSIONS = (COLLABORATION, FORMALITY, TECHNOLOGY, WELLNESS)

GENERATIONS = ("Baby Boomers", "Gen X", "Millennials", "Gen Z")

GENERATION_QUESTION_INDEX = 0


@dataclass(frozen=True)
class Option:
    id: str
    label: str
    description: str = ""
    emoji: str = ""
    deltas: Dict[str, int] = field(default_factory=dict)
    generation: Optional[str] = None


@dataclass(frozen=True)
class Question:
    index: int
    title: str
    options: Tuple[Option, ...]
    subtitle: str = ""

    @property
    def is_generation(self) -> bool:
        return self.index == GENERATION_QUESTION_INDEX

    def get_option(self, option_id: str) -> Optional[Option]:
        return next((o for o in self.options if o.id == option_id), None)


QUESTIONS: List[Question] = [
    Question(
        index=0,
        title="Which generation do you belong to?",
        options=(
            Option("Baby Boomer", "Baby Boomers", "1946-1964", "👔", generation="Baby Boomers"),
            Option("Gen X", "Generation X", "1965-1980", "💼", generation="Gen X"),
            Option("Millennial", "Millennials", "1981-1996", "💻", generation="Millennials"),
            Option("Gen Z", "Gen Z", "1997-2012", "📱", generation="Gen Z"),
        ),
    ),
    Question(
        index=1,
        title="Welcome & Visitor Interaction",
        subtitle="Client Contact Point",
        options=(
            Option(
                "vibrant_lounge", "Vibrant Co-working Lounge",
                "Barista bar, informal seating, social buzz", "☕",
                {COLLABORATION: 8, FORMALITY: -6, TECHNOLOGY: 4, WELLNESS: 2},
            ),
            Option(
                "classic_reception", "Classic Reception",
                "Formal seating and discreet waiting lounge", "🏛️",
                {COLLABORATION: -4, FORMALITY: 8, TECHNOLOGY: -2},
            ),
        ),
    ),
    Question(
        index=2,
        title="Workspace Selection",
        subtitle="Choose Where to Work",
        options=(
            Option(
                "open_collaborative", "Open Collaborative Layout",
                "Hot desks and casual breakout areas", "🏢",
                {COLLABORATION: 10, FORMALITY: -4, TECHNOLOGY: 6, WELLNESS: 4},
            ),
            Option(
                "mixed_private", "Mixed Private Offices",
                "Formal segregation between spaces", "🚪",
                {COLLABORATION: -2, FORMALITY: 6, WELLNESS: 2},
            ),
        ),
    ),
    Question(
        index=3,
        title="Collaboration & Digital Interaction",
        subtitle="Work Collaboration Setting",
        options=(
            Option(
                "tech_space", "Semi-open Tech Space",
                "Mobile surfaces and casual seating", "💡",
                {COLLABORATION: 6, FORMALITY: -2, TECHNOLOGY: 10, WELLNESS: 2},
            ),
            Option(
                "meeting_room", "Enclosed Meeting Room",
                "Privacy frosting, fixed arrangement", "🔒",
                {COLLABORATION: 2, FORMALITY: 6, TECHNOLOGY: 4},
            ),
        ),
    ),
    Question(
        index=4,
        title="Social Interaction",
        subtitle="Connection Point",
        options=(
            Option(
                "kitchen_hub", "Shared Kitchen Hub",
                "Communal tables, social nooks", "🍽️",
                {COLLABORATION: 10, FORMALITY: -6, TECHNOLOGY: -2, WELLNESS: 6},
            ),
            Option(
                "library_corner", "Quiet Library Corner",
                "One-on-one or small-group chats", "📚",
                {FORMALITY: 4, TECHNOLOGY: -4, WELLNESS: 4},
            ),
        ),
    ),
    Question(
        index=5,
        title="Midday Break",
        subtitle="Rest & Recharge",
        options=(
            Option(
                "wellness_zone", "Wellness Zone",
                "Mindfulness/meditation capsule", "🧘",
                {COLLABORATION: -6, TECHNOLOGY: -4, WELLNESS: 10},
            ),
            Option(
                "games_lounge", "Games Lounge",
                "Digital gaming and recreation", "🎮",
                {COLLABORATION: 6, FORMALITY: -6, TECHNOLOGY: 8, WELLNESS: 4},
            ),
        ),
    ),
    Question(
        index=6,
        title="After Work Wellness",
        subtitle="Health & Well-being",
        options=(
            Option(
                "fitness_studio", "Fitness Studio",
                "On-site gym with group classes", "💪",
                {COLLABORATION: 4, FORMALITY: -4, WELLNESS: 10},
            ),
            Option(
                "green_terrace", "Green Terrace",
                "Outdoor seating, jogging track", "🌿",
                {FORMALITY: -6, TECHNOLOGY: -6, WELLNESS: 10},
            ),
        ),
    ),
]


def get_question_by_index(index: int, questions: List[Question] = None) -> Optional[Question]:
    """Получить вопрос по индексу"""
    questions = QUESTIONS if questions is None else questions
    return next((q for q in questions if q.index == index), None)


def get_generation_question(questions: List[Question] = None) -> Optional[Question]:
    """Получить вопрос о поколении"""
    return get_question_by_index(GENERATION_QUESTION_INDEX, questions)


def get_question_count(questions: List[Question] = None) -> int:
    return len(QUESTIONS if questions is None else questions)


def get_next_question_index(answered: Dict[int, str], questions: List[Question] = None) -> Optional[int]:
    """Индекс первого неотвеченного вопроса (None, если ответы есть на все)"""
    questions = QUESTIONS if questions is None else questions
    for question in sorted(questions, key=lambda q: q.index):
        if question.index not in answered:
            return question.index
    return None
