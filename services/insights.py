"""Текстовые инсайты по аналитике сессии"""
import asyncio
import enum
import logging
from typing import Callable, Dict, List, Mapping

from services.analytics import SessionAnalytics
from services.errors import InsightGenerationError, InsightGenerationFailure, InsightGenerationTimeout
from services.llm import TextGenerator
from utils.questions import COLLABORATION, FORMALITY, GENERATIONS, TECHNOLOGY, WELLNESS

logger = logging.getLogger(__name__)

AI_FALLBACK_MESSAGE = "AI insights temporarily unavailable. Using basic analytics."
RECOMMENDATIONS_FALLBACK_MESSAGE = "AI recommendations temporarily unavailable. Using basic recommendations."
WAITING_MESSAGE = "Waiting for participants to complete the quiz..."
NO_RECOMMENDATIONS_MESSAGE = "No data available yet for recommendations."
DEFAULT_AI_TIMEOUT = 20.0
DEFAULT_FOCUS_AREA = "overall workplace improvements"

TRAIT_DESCRIPTIONS = {
    "collaboration": "team-oriented and interconnected",
    "formality": "structured and professional",
    "technology": "innovation-driven and digitally-forward",
    "wellness": "health-conscious and balanced",
}

GENERATION_RECOMMENDATIONS = {
    "Gen Z": "flexible spaces, digital integration, and social areas for networking",
    "Millennials": "work-life balance features, collaborative tools, and purpose-driven design",
    "Gen X": "efficient layouts, quiet work areas, and pragmatic solutions",
    "Baby Boomers": "comfortable seating, good lighting, and traditional meeting spaces",
}

# Правило для каждого поколения: (условие по баллам 0-10, текст если да, текст если нет)
GENERATION_RULES = {
    "Baby Boomers": (
        lambda s: s[FORMALITY] > s[COLLABORATION],
        "Values structured communication and professional protocols",
        "Appreciates team collaboration with clear leadership",
    ),
    "Gen X": (
        lambda s: s[TECHNOLOGY] > 6,
        "Embraces technology solutions and digital workflows",
        "Prefers practical, results-oriented approaches",
    ),
    "Millennials": (
        lambda s: s[COLLABORATION] > s[FORMALITY],
        "Thrives in collaborative, inclusive environments",
        "Balances innovation with professional standards",
    ),
    "Gen Z": (
        lambda s: s[WELLNESS] > 6,
        "Prioritizes work-life integration and mental wellness",
        "Values purpose-driven work and continuous learning",
    ),
}


class InsightStatus(enum.Enum):
    IDLE = "idle"
    GENERATING = "generating"
    SUCCESS = "success"
    FALLBACK = "failed-with-fallback"


def generation_insights(generation: str, scores: Mapping[str, float]) -> str:
    """
    Короткий вывод о поколении по его средним баллам (шкала 0-10).

    Raises:
        ValueError: неизвестное поколение или балл вне диапазона 0-10.
    """
    if generation not in GENERATION_RULES:
        raise ValueError(f"Unknown generation '{generation}'")
    for dimension, value in scores.items():
        if not 0 <= value <= 10:
            raise ValueError(f"Score {dimension}={value} is outside the 0-10 scale")

    condition, if_true, if_false = GENERATION_RULES[generation]
    return if_true if condition(scores) else if_false


def _recommendations(scores: dict) -> List[str]:
    lines = []
    if scores["technology"] > 75:
        lines.append(
            "High tech preference detected. Invest in smart office technologies, "
            "digital collaboration tools, and automated systems."
        )
    if scores["wellness"] > 75:
        lines.append(
            "Strong wellness focus. Consider biophilic design, standing desks, "
            "meditation rooms, and natural lighting solutions."
        )
    if scores["collaboration"] > 75:
        lines.append(
            "Team collaboration is key. Design open layouts with flexible furniture, "
            "multiple breakout areas, and collaborative zones."
        )
    if scores["formality"] < 40:
        lines.append(
            "Low formality preference suggests a casual environment. Consider flexible "
            "dress codes, informal meeting spaces, and relaxed policies."
        )
    elif scores["formality"] > 75:
        lines.append("Appreciates structure. Maintain clear hierarchies and dedicated meeting spaces.")
    return lines


def _generation_lines(analytics: SessionAnalytics) -> List[str]:
    lines = []
    for generation in GENERATIONS:
        scores = analytics.generation_scores.get(generation)
        if scores is not None:
            lines.append(f"• {generation}: {generation_insights(generation, scores.to_ten_scale())}")
    return lines


def format_insights(analytics: SessionAnalytics) -> str:
    """Детерминированные инсайты по шаблонам"""
    if analytics.completed_count == 0 or analytics.dominant_trait is None:
        return WAITING_MESSAGE

    scores = analytics.rounded_scores()
    trait = analytics.dominant_trait
    lines = [
        f"Your team shows a strong {trait} preference ({scores[trait]}%), "
        f"suggesting a {TRAIT_DESCRIPTIONS[trait]} workplace culture."
    ]

    generation = analytics.dominant_generation
    if generation is not None:
        lines.append(
            f"With {generation} as the dominant generation "
            f"({analytics.generation_distribution[generation]} participants), "
            f"consider {GENERATION_RECOMMENDATIONS[generation]}."
        )

    generation_lines = _generation_lines(analytics)
    if generation_lines:
        lines.append("By generation:\n" + "\n".join(generation_lines))

    lines.extend(_recommendations(scores))

    lines.append(
        f"Based on {analytics.completed_count} of {analytics.total_count} participants "
        f"({analytics.response_rate_percent():.1f}% completion), your workplace DNA is "
        f"{analytics.workplace_dna}."
    )
    return "\n\n".join(lines)


def format_recommendations(analytics: SessionAnalytics) -> str:
    """Детерминированные рекомендации по порогам средних баллов"""
    if analytics.completed_count == 0:
        return NO_RECOMMENDATIONS_MESSAGE

    lines = _recommendations(analytics.rounded_scores())
    if not lines:
        lines = ["Preferences are balanced. Keep a mix of spaces that serve every working style."]
    return "\n".join(f"• {line}" for line in lines)


def _score_lines(scores: Dict[str, int]) -> str:
    return (
        f"- Collaboration: {scores['collaboration']}%\n"
        f"- Formality: {scores['formality']}%\n"
        f"- Technology: {scores['technology']}%\n"
        f"- Wellness: {scores['wellness']}%\n"
    )


def build_prompt(analytics: SessionAnalytics, session_name: str = "Workplace session") -> str:
    """Описание статистики для внешнего генератора"""
    generations = "\n".join(
        f"- {generation}: {count}" for generation, count in analytics.generation_distribution.items()
    )
    by_generation = "\n".join(
        f"- {generation}: " + ", ".join(f"{dim} {value}" for dim, value in scores.rounded().items())
        for generation, scores in analytics.generation_scores.items()
    ) or "- n/a"
    return (
        "Analyze this workplace preference data and provide insights:\n\n"
        f"Session: {session_name}\n"
        f"Total Participants: {analytics.total_count}\n"
        f"Total Responses: {analytics.completed_count}\n"
        f"Completion Rate: {analytics.response_rate_percent():.1f}%\n\n"
        f"Generation Breakdown:\n{generations}\n\n"
        "Average Preference Scores (0-100):\n"
        f"{_score_lines(analytics.rounded_scores())}\n"
        f"Average Scores by Generation (0-100):\n{by_generation}\n\n"
        f"Dominant trait: {analytics.dominant_trait or 'n/a'}\n"
        f"Workplace DNA: {analytics.workplace_dna}\n\n"
        "Provide actionable insights about:\n"
        "1. The dominant workplace culture preferences\n"
        "2. Generational differences if notable\n"
        "3. Areas of strong consensus or divergence\n"
        "4. Recommendations for workplace design\n\n"
        "Keep insights concise and practical."
    )


def build_recommendations_prompt(analytics: SessionAnalytics, focus_area: str = None) -> str:
    """Запрос рекомендаций по средним баллам"""
    return (
        "Based on these workplace preference scores, provide specific recommendations for "
        f"{focus_area or DEFAULT_FOCUS_AREA}:\n\n"
        "Average Preference Scores (0-100):\n"
        f"{_score_lines(analytics.rounded_scores())}\n"
        "Provide 4-5 specific, actionable recommendations that:\n"
        "1. Build on the strong preferences (scores above 60)\n"
        "2. Address the weak areas (scores below 40)\n"
        "3. Are practical and implementable\n"
        "4. Consider cost-effectiveness\n\n"
        "Format as a bulleted list with brief explanations."
    )


def fallback_text(analytics: SessionAnalytics) -> str:
    return f"{AI_FALLBACK_MESSAGE}\n\n{format_insights(analytics)}"


def recommendations_fallback_text(analytics: SessionAnalytics) -> str:
    return f"{RECOMMENDATIONS_FALLBACK_MESSAGE}\n\n{format_recommendations(analytics)}"


async def _generate(generator: TextGenerator, prompt: str, timeout: float) -> str:
    try:
        text = await asyncio.wait_for(generator.generate(prompt, timeout), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise InsightGenerationTimeout(f"No answer from text generator within {timeout}s") from exc
    except InsightGenerationError:
        raise
    except Exception as exc:
        raise InsightGenerationFailure(str(exc)) from exc

    if not isinstance(text, str) or not text.strip():
        raise InsightGenerationFailure("Text generator returned empty text")
    return text


async def format_with_ai(
    analytics: SessionAnalytics,
    generator: TextGenerator,
    timeout: float = DEFAULT_AI_TIMEOUT,
    session_name: str = "Workplace session",
) -> str:
    """
    AI-инсайты через внешний генератор.

    Любая ошибка или таймаут генератора не пробрасывается: возвращается
    AI_FALLBACK_MESSAGE и детерминированные инсайты.
    """
    formatter = InsightFormatter(generator, timeout)
    return await formatter.generate(analytics, session_name)


async def recommend_with_ai(
    analytics: SessionAnalytics,
    generator: TextGenerator,
    timeout: float = DEFAULT_AI_TIMEOUT,
    focus_area: str = None,
) -> str:
    """AI-рекомендации с тем же поведением при сбое, что и format_with_ai"""
    formatter = InsightFormatter(generator, timeout)
    return await formatter.recommend(analytics, focus_area)


class InsightFormatter:
    """Генерация инсайтов с отслеживанием состояния: idle -> generating -> success | fallback"""

    def __init__(self, generator: TextGenerator = None, timeout: float = DEFAULT_AI_TIMEOUT):
        self.generator = generator
        self.timeout = timeout
        self.status = InsightStatus.IDLE
        self.last_error = None

    async def generate(self, analytics: SessionAnalytics, session_name: str = "Workplace session") -> str:
        return await self._run(
            analytics,
            lambda: build_prompt(analytics, session_name),
            format_insights,
            fallback_text,
        )

    async def recommend(self, analytics: SessionAnalytics, focus_area: str = None) -> str:
        return await self._run(
            analytics,
            lambda: build_recommendations_prompt(analytics, focus_area),
            format_recommendations,
            recommendations_fallback_text,
        )

    async def _run(
        self,
        analytics: SessionAnalytics,
        prompt: Callable[[], str],
        no_data: Callable[[SessionAnalytics], str],
        fallback: Callable[[SessionAnalytics], str],
    ) -> str:
        self.status = InsightStatus.GENERATING
        self.last_error = None

        if analytics.completed_count == 0:
            self.status = InsightStatus.SUCCESS
            return no_data(analytics)

        try:
            if self.generator is None:
                raise InsightGenerationFailure("Text generator is not configured")
            text = await _generate(self.generator, prompt(), self.timeout)
        except InsightGenerationError as exc:
            logger.warning(f"AI text unavailable, using fallback: {exc}")
            self.last_error = exc
            self.status = InsightStatus.FALLBACK
            return fallback(analytics)

        self.status = InsightStatus.SUCCESS
        return text
