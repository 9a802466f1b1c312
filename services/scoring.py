"""Подсчёт баллов предпочтений по ответам участника"""
from dataclasses import asdict, dataclass
from typing import Dict, List, Mapping, Optional

from services.errors import InvalidResponseError
from utils.questions import (
    COLLABORATION,
    DIMENSIONS,
    FORMALITY,
    GENERATIONS,
    TECHNOLOGY,
    WELLNESS,
    Question,
    get_generation_question,
)

BASELINE = 50
MIN_SCORE = 0
MAX_SCORE = 100
TEN_SCALE_FACTOR = 10

# Значения, которые встречаются в старых записях participants.generation
LEGACY_GENERATION_ALIASES = {
    "baby boomer": "Baby Boomers",
    "baby boomers": "Baby Boomers",
    "boomers": "Baby Boomers",
    "gen x": "Gen X",
    "generation x": "Gen X",
    "millennial": "Millennials",
    "millennials": "Millennials",
    "gen y": "Millennials",
    "gen z": "Gen Z",
    "generation z": "Gen Z",
}


@dataclass(frozen=True)
class PreferenceScore:
    """Баллы по четырём измерениям, шкала 0-100"""
    collaboration: int = BASELINE
    formality: int = BASELINE
    technology: int = BASELINE
    wellness: int = BASELINE

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)

    def to_ten_scale(self) -> Dict[str, float]:
        return {dim: to_ten_scale(value) for dim, value in self.as_dict().items()}


def clamp(value: float, low: float = MIN_SCORE, high: float = MAX_SCORE) -> float:
    return max(low, min(high, value))


def to_ten_scale(value: float) -> float:
    """Перевести балл со шкалы 0-100 на шкалу 0-10"""
    return round(value / TEN_SCALE_FACTOR, 1)


def from_ten_scale(value: float) -> int:
    """Перевести балл со шкалы 0-10 на шкалу 0-100"""
    return int(round(value * TEN_SCALE_FACTOR))


def _index_questions(questions: List[Question]) -> Dict[int, Question]:
    return {q.index: q for q in questions}


def normalize(response: Mapping[int, str], questions: List[Question]) -> PreferenceScore:
    """
    Посчитать баллы предпочтений по ответам участника.

    Для каждого отвеченного вопроса (кроме вопроса о поколении) дельты
    выбранного варианта суммируются по измерениям, затем каждое измерение
    приводится к шкале 0-100: clamp(50 + сумма, 0, 100).
    Неотвеченные вопросы просто не вносят вклад.

    Raises:
        InvalidResponseError: индекс вопроса или id варианта не найден в таблице.
    """
    by_index = _index_questions(questions)
    totals = {dim: 0 for dim in DIMENSIONS}

    for question_index, option_id in response.items():
        question = by_index.get(question_index)
        if question is None:
            raise InvalidResponseError(question_index)

        option = question.get_option(option_id)
        if option is None:
            raise InvalidResponseError(question_index, option_id)

        if question.is_generation:
            continue

        for dimension, delta in option.deltas.items():
            if dimension not in totals:
                raise ValueError(f"Unknown dimension '{dimension}' in option '{option.id}'")
            totals[dimension] += delta

    return PreferenceScore(**{
        dim: int(clamp(BASELINE + total)) for dim, total in totals.items()
    })


def resolve_generation(response: Mapping[int, str], questions: List[Question]) -> Optional[str]:
    """Поколение участника по ответу на вопрос о поколении"""
    question = get_generation_question(questions)
    if question is None or question.index not in response:
        return None

    option_id = response[question.index]
    option = question.get_option(option_id)
    if option is None:
        raise InvalidResponseError(question.index, option_id)
    return option.generation


def normalize_generation_label(value: Optional[str]) -> Optional[str]:
    """Привести сохранённое (legacy) значение поколения к каноническому"""
    if not value:
        return None
    if value in GENERATIONS:
        return value
    return LEGACY_GENERATION_ALIASES.get(value.strip().lower())


def validate_response(response: Mapping[int, str], questions: List[Question]) -> List[str]:
    """Список проблем в ответах (пустой, если всё корректно)"""
    by_index = _index_questions(questions)
    problems = []
    for question_index, option_id in sorted(response.items()):
        question = by_index.get(question_index)
        if question is None:
            problems.append(f"Question {question_index}: unknown question")
        elif question.get_option(option_id) is None:
            problems.append(f"Question {question_index}: invalid option '{option_id}'")
    return problems


def workplace_dna(scores: Mapping[str, float]) -> str:
    """
    Ярлык «Workplace DNA» по баллам на шкале 0-10.

    Пороги для каждого измерения: >= 7 и >= 4.
    """
    traits = []

    collaboration = scores.get(COLLABORATION, 0)
    if collaboration >= 7:
        traits.append("Collaborative")
    elif collaboration >= 4:
        traits.append("Balanced")
    else:
        traits.append("Independent")

    formality = scores.get(FORMALITY, 0)
    if formality >= 7:
        traits.append("Structured")
    elif formality >= 4:
        traits.append("Flexible")
    else:
        traits.append("Casual")

    technology = scores.get(TECHNOLOGY, 0)
    if technology >= 7:
        traits.append("Digital-First")
    elif technology >= 4:
        traits.append("Tech-Enabled")
    else:
        traits.append("Traditional")

    wellness = scores.get(WELLNESS, 0)
    if wellness >= 7:
        traits.append("Wellness-Focused")
    elif wellness >= 4:
        traits.append("Balance-Aware")
    else:
        traits.append("Performance-Driven")

    return " · ".join(traits)
