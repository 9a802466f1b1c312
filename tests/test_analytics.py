"""Тесты для модуля аналитики"""
import itertools
import pytest
from datetime import datetime
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from models.database import Base
from models import SurveySession, Participant, Answer
from services.analytics import (
    NO_DATA_DNA,
    AverageScores,
    ParticipantSnapshot,
    SurveyAnalytics,
    aggregate,
    question_distribution,
)
from services.errors import InvalidResponseError
from utils.questions import (
    COLLABORATION,
    FORMALITY,
    GENERATIONS,
    QUESTIONS,
    TECHNOLOGY,
    WELLNESS,
    Option,
    Question,
)


TEST_QUESTIONS = [
    Question(0, "Generation", (
        Option("Baby Boomer", "Baby Boomers", generation="Baby Boomers"),
        Option("Gen X", "Generation X", generation="Gen X"),
        Option("Millennial", "Millennials", generation="Millennials"),
        Option("Gen Z", "Gen Z", generation="Gen Z"),
    )),
    Question(1, "Team", (
        Option("a", "A", deltas={COLLABORATION: 30}),
        Option("b", "B", deltas={COLLABORATION: 10}),
        Option("neutral", "Neutral"),
    )),
    Question(2, "Style", (
        Option("x", "X", deltas={FORMALITY: 20, WELLNESS: -10}),
        Option("z", "Z", deltas={FORMALITY: 20, TECHNOLOGY: 20}),
    )),
]


def scenario_participants():
    return [
        ParticipantSnapshot(id="p1", response={0: "Gen Z", 1: "a"}, completed=True),
        ParticipantSnapshot(id="p2", response={0: "Millennial", 1: "b"}, completed=True),
        ParticipantSnapshot(id="p3", response={1: "a"}, completed=False),
    ]


# Фикстура для тестовой БД
@pytest.fixture
async def test_session():
    """Создать тестовую сессию БД"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


def test_aggregate_empty_session():
    """Тест: пустая сессия даёт нулевую аналитику без деления на ноль"""
    analytics = aggregate([], TEST_QUESTIONS)

    assert analytics.total_count == 0
    assert analytics.completed_count == 0
    assert analytics.response_rate == 0.0
    assert analytics.generation_distribution == {g: 0 for g in GENERATIONS}
    assert analytics.average_scores == AverageScores()
    assert analytics.dominant_trait is None
    assert analytics.dominant_generation is None
    assert analytics.workplace_dna == NO_DATA_DNA


def test_aggregate_scenario():
    """Тест: 3 участника, 2 завершили (80 и 60 по collaboration)"""
    analytics = aggregate(scenario_participants(), TEST_QUESTIONS)

    assert analytics.total_count == 3
    assert analytics.completed_count == 2
    assert analytics.response_rate == pytest.approx(2 / 3)
    assert analytics.response_rate_percent() == 66.7
    assert analytics.average_scores.collaboration == 70.0
    assert analytics.rounded_scores() == {
        "collaboration": 70, "formality": 50, "technology": 50, "wellness": 50
    }
    assert analytics.dominant_trait == "collaboration"


def test_incomplete_participants_excluded_from_average():
    participants = scenario_participants() + [
        ParticipantSnapshot(id="p4", response={0: "Gen X", 1: "a"}, completed=False),
    ]

    analytics = aggregate(participants, TEST_QUESTIONS)

    assert analytics.average_scores.collaboration == 70.0


def test_generation_distribution_counts_all_participants():
    participants = scenario_participants() + [
        ParticipantSnapshot(id="p4", response={0: "Gen Z"}, completed=False),
    ]

    analytics = aggregate(participants, TEST_QUESTIONS)

    assert analytics.generation_distribution == {
        "Baby Boomers": 0, "Gen X": 0, "Millennials": 1, "Gen Z": 2
    }
    assert analytics.dominant_generation == "Gen Z"


def test_response_generation_takes_precedence_over_legacy():
    """Тест: поколение из ответов важнее сохранённого поля"""
    participant = ParticipantSnapshot(
        id="p1", response={0: "Gen Z", 1: "neutral"}, completed=True, generation="Millennials"
    )

    analytics = aggregate([participant], TEST_QUESTIONS)

    assert analytics.generation_distribution["Gen Z"] == 1
    assert analytics.generation_distribution["Millennials"] == 0


def test_legacy_generation_fallback():
    """Тест: старые записи без ответа на вопрос о поколении"""
    participants = [
        ParticipantSnapshot(id="old1", response={1: "a"}, completed=True, generation="Millennial"),
        ParticipantSnapshot(id="old2", response={}, completed=False, generation="Baby Boomers"),
        ParticipantSnapshot(id="old3", response={}, completed=False, generation=None),
    ]

    analytics = aggregate(participants, TEST_QUESTIONS)

    assert analytics.generation_distribution == {
        "Baby Boomers": 1, "Gen X": 0, "Millennials": 1, "Gen Z": 0
    }
    assert analytics.generation_scores["Millennials"].collaboration == 80.0


def test_aggregate_is_order_independent():
    """Тест: перестановка участников не меняет результат"""
    participants = scenario_participants() + [
        ParticipantSnapshot(id="p4", response={0: "Gen X", 1: "b", 2: "x"}, completed=True),
        ParticipantSnapshot(id="p5", response={2: "z"}, completed=True, generation="Gen X"),
    ]
    expected = aggregate(participants, TEST_QUESTIONS)

    for permutation in itertools.permutations(participants):
        assert aggregate(list(permutation), TEST_QUESTIONS) == expected


def test_dominant_trait_tie_uses_priority_order():
    """Тест: при равенстве побеждает измерение, стоящее раньше в порядке приоритета"""
    neutral = aggregate([ParticipantSnapshot(id="p1", response={1: "neutral"}, completed=True)], TEST_QUESTIONS)
    tied = aggregate([ParticipantSnapshot(id="p1", response={2: "z"}, completed=True)], TEST_QUESTIONS)

    assert neutral.dominant_trait == "collaboration"
    assert tied.average_scores.formality == tied.average_scores.technology == 70.0
    assert tied.dominant_trait == "formality"


def test_dominant_generation_tie_uses_generation_order():
    analytics = aggregate(scenario_participants(), TEST_QUESTIONS)

    assert analytics.generation_distribution["Gen Z"] == analytics.generation_distribution["Millennials"]
    assert analytics.dominant_generation == "Millennials"


def test_averages_are_not_rounded():
    participants = [
        ParticipantSnapshot(id="p1", response={1: "a"}, completed=True),
        ParticipantSnapshot(id="p2", response={1: "b"}, completed=True),
        ParticipantSnapshot(id="p3", response={1: "b"}, completed=True),
    ]

    analytics = aggregate(participants, TEST_QUESTIONS)

    assert analytics.average_scores.collaboration == pytest.approx(200 / 3)
    assert analytics.rounded_scores()["collaboration"] == 67


def test_workplace_dna_from_averages():
    analytics = aggregate(scenario_participants(), TEST_QUESTIONS)

    assert analytics.workplace_dna == "Collaborative · Flexible · Tech-Enabled · Balance-Aware"


def test_aggregate_invalid_option_raises():
    participants = [ParticipantSnapshot(id="p1", response={1: "zzz"}, completed=True)]

    with pytest.raises(InvalidResponseError):
        aggregate(participants, TEST_QUESTIONS)


def test_question_distribution_seeds_all_options():
    dist = question_distribution(scenario_participants(), 1, TEST_QUESTIONS)

    # Незавершивший p3 не учитывается
    assert dist == {"a": 1, "b": 1, "neutral": 0}


@pytest.mark.asyncio
async def test_generate_stats_text_empty(test_session):
    """Тест: дашборд пустой сессии"""
    survey_session = SurveySession(code="EMPTY001", name="Empty")
    test_session.add(survey_session)
    await test_session.commit()

    analytics = SurveyAnalytics(test_session)
    stats = await analytics.generate_stats_text(survey_session)

    assert "No participants yet" in stats


@pytest.mark.asyncio
async def test_get_analytics_from_db(test_session):
    """Тест: аналитика по участникам из БД"""
    survey_session = SurveySession(code="TEAM0001", name="Team offsite")
    test_session.add(survey_session)
    await test_session.commit()
    await test_session.refresh(survey_session)

    first = Participant(session_id=survey_session.id, tracking_id=111, completed=True,
                        completed_at=datetime(2025, 11, 11, 12, 0, 0))
    second = Participant(session_id=survey_session.id, tracking_id=222, completed=False)
    legacy = Participant(session_id=survey_session.id, tracking_id=333, completed=False, generation="Gen X")
    test_session.add_all([first, second, legacy])
    await test_session.commit()

    all_first = {q.index: q.options[0].id for q in QUESTIONS}
    test_session.add_all(
        [Answer(participant_id=first.id, question_index=i, option_id=o) for i, o in all_first.items()]
        + [Answer(participant_id=second.id, question_index=0, option_id="Gen Z")]
    )
    await test_session.commit()

    analytics = await SurveyAnalytics(test_session).get_analytics(survey_session.id)

    assert analytics.total_count == 3
    assert analytics.completed_count == 1
    assert analytics.generation_distribution == {
        "Baby Boomers": 1, "Gen X": 1, "Millennials": 0, "Gen Z": 1
    }
    assert analytics.rounded_scores() == {
        "collaboration": 82, "formality": 28, "technology": 64, "wellness": 84
    }
    assert analytics.dominant_trait == "wellness"

    stats = await SurveyAnalytics(test_session).generate_stats_text(survey_session)
    assert "Completed: 1 (33.3%)" in stats
    assert "Dominant trait: wellness" in stats
    assert "Baby Boomers: 82 / 28 / 64 / 84" in stats


@pytest.mark.asyncio
async def test_question_distribution_from_db(test_session):
    survey_session = SurveySession(code="DIST0001", name="Distribution")
    test_session.add(survey_session)
    await test_session.commit()
    await test_session.refresh(survey_session)

    participants = [
        Participant(session_id=survey_session.id, tracking_id=i, completed=True) for i in range(3)
    ]
    test_session.add_all(participants)
    await test_session.commit()

    test_session.add_all([
        Answer(participant_id=participants[0].id, question_index=1, option_id="vibrant_lounge"),
        Answer(participant_id=participants[1].id, question_index=1, option_id="vibrant_lounge"),
        Answer(participant_id=participants[2].id, question_index=1, option_id="classic_reception"),
    ])
    await test_session.commit()

    analytics = SurveyAnalytics(test_session)
    dist = question_distribution(await analytics.get_snapshots(survey_session.id), 1)

    assert dist == {"vibrant_lounge": 2, "classic_reception": 1}

    detailed = await analytics.generate_detailed_stats(survey_session)
    assert "☕ Vibrant Co-working Lounge: 2 (66.7%)" in detailed


@pytest.mark.asyncio
async def test_export_csv_data(test_session):
    """Тест: экспорт данных в CSV формат"""
    survey_session = SurveySession(code="EXPORT01", name="Export")
    test_session.add(survey_session)
    await test_session.commit()
    await test_session.refresh(survey_session)

    done = Participant(session_id=survey_session.id, tracking_id=111, name="Ann", completed=True,
                       completed_at=datetime(2025, 11, 11, 12, 0, 0))
    pending = Participant(session_id=survey_session.id, tracking_id=222, completed=False)
    test_session.add_all([done, pending])
    await test_session.commit()

    test_session.add_all([
        Answer(participant_id=done.id, question_index=0, option_id="Millennial"),
        Answer(participant_id=done.id, question_index=1, option_id="classic_reception"),
    ])
    await test_session.commit()

    analytics = SurveyAnalytics(test_session)
    csv_data = await analytics.export_to_csv_data(survey_session.id)

    assert len(csv_data) == 1
    row = csv_data[0]
    assert row["participant_id"] == done.id
    assert row["name"] == "Ann"
    assert row["generation"] == "Millennials"
    assert row["completed_at"] == "2025-11-11 12:00:00"
    assert row["Q1"] == "classic_reception"
    assert row["Q2"] == ""
    assert row["collaboration"] == 46
    assert row["formality"] == 58
    assert set(row) == set(analytics.csv_fieldnames())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
