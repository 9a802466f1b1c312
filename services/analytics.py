"""Модуль аналитики сессии"""
import logging
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models import Participant, SurveySession
from services.errors import InvalidResponseError
from services.scoring import (
    PreferenceScore,
    normalize,
    normalize_generation_label,
    resolve_generation,
    to_ten_scale,
    validate_response,
    workplace_dna,
)
from utils.questions import (
    DIMENSIONS,
    GENERATIONS,
    QUESTIONS,
    Question,
    get_question_by_index,
)

logger = logging.getLogger(__name__)

NO_DATA_DNA = "No data yet"

DIMENSION_TITLES = {
    "collaboration": "🤝 Collaboration",
    "formality": "👔 Formality",
    "technology": "💻 Technology",
    "wellness": "🌿 Wellness",
}


@dataclass(frozen=True)
class ParticipantSnapshot:
    """Участник в момент расчёта аналитики"""
    id: str
    response: Mapping[int, str] = field(default_factory=dict)
    completed: bool = False
    name: Optional[str] = None
    generation: Optional[str] = None  # legacy-значение из БД
    joined_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class AverageScores:
    """Средние баллы по измерениям без округления (шкала 0-100)"""
    collaboration: float = 0.0
    formality: float = 0.0
    technology: float = 0.0
    wellness: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)

    def rounded(self) -> Dict[str, int]:
        return {dim: int(round(value)) for dim, value in self.as_dict().items()}

    def to_ten_scale(self) -> Dict[str, float]:
        return {dim: to_ten_scale(value) for dim, value in self.as_dict().items()}


@dataclass(frozen=True)
class SessionAnalytics:
    total_count: int
    completed_count: int
    response_rate: float
    generation_distribution: Dict[str, int]
    average_scores: AverageScores
    dominant_trait: Optional[str]
    dominant_generation: Optional[str]
    generation_scores: Dict[str, AverageScores]
    workplace_dna: str

    def response_rate_percent(self) -> float:
        return round(self.response_rate * 100, 1)

    def rounded_scores(self) -> Dict[str, int]:
        return self.average_scores.rounded()


def participant_generation(participant: ParticipantSnapshot, questions: List[Question]) -> Optional[str]:
    """Поколение из ответов, для старых записей из сохранённого поля"""
    generation = resolve_generation(participant.response, questions)
    if generation is not None:
        return generation
    return normalize_generation_label(participant.generation)


def average_scores(scores: Iterable[PreferenceScore]) -> AverageScores:
    """Среднее арифметическое по каждому измерению отдельно"""
    scores = list(scores)
    if not scores:
        return AverageScores()

    # Суммы целых баллов точны, поэтому порядок участников не влияет на результат
    totals = {dim: sum(getattr(s, dim) for s in scores) for dim in DIMENSIONS}
    return AverageScores(**{dim: total / len(scores) for dim, total in totals.items()})


def dominant_dimension(scores: AverageScores) -> str:
    """Измерение с максимальным средним; при равенстве первое в DIMENSIONS"""
    values = scores.as_dict()
    return max(DIMENSIONS, key=lambda dim: values[dim])


def aggregate(participants: Iterable[ParticipantSnapshot], questions: List[Question] = None) -> SessionAnalytics:
    """
    Пересчитать аналитику сессии целиком по снимку участников.

    Средние считаются только по завершившим участникам, округление
    выполняется лишь при выводе. Порядок участников на результат не влияет.
    """
    questions = QUESTIONS if questions is None else questions
    participants = list(participants)
    completed = [p for p in participants if p.completed]

    distribution = {generation: 0 for generation in GENERATIONS}
    generations = {}
    for participant in participants:
        generation = participant_generation(participant, questions)
        generations[participant.id] = generation
        if generation in distribution:
            distribution[generation] += 1

    scored = [(p, normalize(p.response, questions)) for p in completed]
    averages = average_scores(score for _, score in scored)

    by_generation = defaultdict(list)
    for participant, score in scored:
        generation = generations.get(participant.id)
        if generation is not None:
            by_generation[generation].append(score)

    total = len(participants)
    dominant_generation = None
    if any(distribution.values()):
        dominant_generation = max(GENERATIONS, key=lambda g: distribution[g])

    return SessionAnalytics(
        total_count=total,
        completed_count=len(completed),
        response_rate=len(completed) / total if total else 0.0,
        generation_distribution=distribution,
        average_scores=averages,
        dominant_trait=dominant_dimension(averages) if completed else None,
        dominant_generation=dominant_generation,
        generation_scores={
            g: average_scores(by_generation[g]) for g in GENERATIONS if by_generation.get(g)
        },
        workplace_dna=workplace_dna(averages.to_ten_scale()) if completed else NO_DATA_DNA,
    )


def question_distribution(
    participants: Iterable[ParticipantSnapshot],
    question_index: int,
    questions: List[Question] = None,
) -> Dict[str, int]:
    """Распределение выбранных вариантов среди завершивших участников"""
    questions = QUESTIONS if questions is None else questions
    question = get_question_by_index(question_index, questions)
    if question is None:
        raise InvalidResponseError(question_index)

    counts = {option.id: 0 for option in question.options}
    for participant in participants:
        if not participant.completed or question_index not in participant.response:
            continue
        option_id = participant.response[question_index]
        if option_id not in counts:
            raise InvalidResponseError(question_index, option_id)
        counts[option_id] += 1
    return counts


def snapshot_from_model(participant: Participant) -> ParticipantSnapshot:
    """Снимок участника из ORM-модели (ответы должны быть загружены)"""
    return ParticipantSnapshot(
        id=participant.id,
        response={a.question_index: a.option_id for a in participant.answers},
        completed=bool(participant.completed),
        name=participant.name,
        generation=participant.generation,
        joined_at=participant.joined_at,
        completed_at=participant.completed_at,
    )


class SurveyAnalytics:
    """Аналитика сессии поверх БД: загрузка снимка и пересчёт"""

    def __init__(self, session: AsyncSession, questions: List[Question] = None):
        self.session = session
        self.questions = QUESTIONS if questions is None else questions

    async def get_snapshots(self, session_id: int) -> List[ParticipantSnapshot]:
        """Загрузить всех участников сессии вместе с ответами"""
        result = await self.session.execute(
            select(Participant)
            .where(Participant.session_id == session_id)
            .options(selectinload(Participant.answers))
        )
        snapshots = [snapshot_from_model(p) for p in result.scalars().all()]

        for snapshot in snapshots:
            problems = validate_response(snapshot.response, self.questions)
            if problems:
                logger.error(f"Participant {snapshot.id} has invalid stored answers: {'; '.join(problems)}")

        return snapshots

    async def get_analytics(self, session_id: int) -> SessionAnalytics:
        return aggregate(await self.get_snapshots(session_id), self.questions)

    async def generate_stats_text(self, survey_session: SurveySession) -> str:
        """Сгенерировать текст дашборда"""
        analytics = await self.get_analytics(survey_session.id)
        return format_stats_text(analytics, survey_session.name, survey_session.code)

    async def generate_detailed_stats(self, survey_session: SurveySession) -> str:
        """Сгенерировать детальную статистику по всем вопросам"""
        snapshots = await self.get_snapshots(survey_session.id)
        completed = sum(1 for s in snapshots if s.completed)

        if completed == 0:
            return f"📊 Detailed stats: {survey_session.name}\n\nNo completed quizzes yet."

        text = f"📊 Detailed stats: {survey_session.name}\n\n"
        text += f"✅ Completed: {completed}\n"
        text += f"{'='*30}\n\n"

        for question in sorted(self.questions, key=lambda q: q.index):
            text += f"{question.title}\n"
            distribution = question_distribution(snapshots, question.index, self.questions)

            # Сортируем по количеству (от большего к меньшему)
            sorted_dist = sorted(distribution.items(), key=lambda x: x[1], reverse=True)
            for option_id, count in sorted_dist:
                pct = (count / completed) * 100
                label = self._get_option_label(question.index, option_id)
                text += f"  • {label}: {count} ({pct:.1f}%)\n"

            text += "\n"

        return text

    def _get_option_label(self, question_index: int, option_id: str) -> str:
        """Получить читаемое название варианта"""
        question = get_question_by_index(question_index, self.questions)
        option = question.get_option(option_id) if question else None
        if option is None:
            return option_id
        return f"{option.emoji} {option.label}".strip()

    async def export_to_csv_data(self, session_id: int) -> List[Dict]:
        """Подготовить данные для экспорта в CSV"""
        snapshots = await self.get_snapshots(session_id)

        csv_data = []
        for snapshot in sorted(snapshots, key=lambda s: (s.completed_at or datetime.min, s.id)):
            if not snapshot.completed:
                continue

            row = {
                "participant_id": snapshot.id,
                "name": snapshot.name or "",
                "generation": participant_generation(snapshot, self.questions) or "",
                "completed_at": snapshot.completed_at.strftime("%Y-%m-%d %H:%M:%S") if snapshot.completed_at else "",
            }

            for question in self.questions:
                row[f"Q{question.index}"] = snapshot.response.get(question.index, "")

            row.update(normalize(snapshot.response, self.questions).as_dict())
            csv_data.append(row)

        return csv_data

    def csv_fieldnames(self) -> List[str]:
        fieldnames = ["participant_id", "name", "generation", "completed_at"]
        fieldnames += [f"Q{q.index}" for q in self.questions]
        fieldnames += list(DIMENSIONS)
        return fieldnames


def format_stats_text(analytics: SessionAnalytics, name: str, code: str) -> str:
    """Текст дашборда по уже посчитанной аналитике"""
    text = f"📊 {name} ({code})\n\n"

    if analytics.total_count == 0:
        return text + "No participants yet."

    text += f"👥 Participants: {analytics.total_count}\n"
    text += f"✅ Completed: {analytics.completed_count} ({analytics.response_rate_percent():.1f}%)\n\n"

    text += "🧬 Generations:\n"
    for generation, count in analytics.generation_distribution.items():
        pct = (count / analytics.total_count) * 100
        text += f"  • {generation}: {count} ({pct:.0f}%)\n"
    text += "\n"

    if analytics.completed_count == 0:
        return text + "Waiting for the first completed quiz..."

    text += "📈 Average scores:\n"
    for dimension, value in analytics.rounded_scores().items():
        text += f"  • {DIMENSION_TITLES[dimension]}: {value}/100\n"
    text += "\n"

    if analytics.generation_scores:
        text += "🧬 Averages by generation:\n"
        for generation, scores in analytics.generation_scores.items():
            values = " / ".join(str(v) for v in scores.rounded().values())
            text += f"  • {generation}: {values}\n"
        text += "  (collaboration / formality / technology / wellness)\n\n"

    text += f"🏆 Dominant trait: {analytics.dominant_trait}\n"
    text += f"🧭 Workplace DNA: {analytics.workplace_dna}\n"

    return text
