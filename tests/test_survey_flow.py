"""Тесты завершения квиза и команд ведущего"""
import pytest
from aiogram.filters import CommandObject
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from models.database import Base
from models import Answer
from handlers.presenter import cmd_unlive
from handlers.survey import publish_completion
from services.notifier import AnalyticsNotifier
from services.sessions import (
    complete_participant,
    create_session,
    get_or_create_participant,
    get_participant,
    save_answer,
)


class Recorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, session_code, analytics):
        self.calls.append((session_code, analytics))


class FakeChat:
    id = 555


class FakeMessage:
    """Сообщение Telegram, которое только запоминает ответы"""

    def __init__(self):
        self.chat = FakeChat()
        self.answers = []

    async def answer(self, text, **kwargs):
        self.answers.append(text)


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


@pytest.mark.asyncio
async def test_publish_completion_delivers_analytics(test_session):
    survey_session = await create_session(test_session, "Live")
    participant, _ = await get_or_create_participant(test_session, survey_session, tracking_id=1)
    await save_answer(test_session, participant.id, 1, "vibrant_lounge")
    await complete_participant(test_session, participant.id)

    notifier = AnalyticsNotifier()
    recorder = Recorder()
    notifier.subscribe(survey_session.code, recorder)

    delivered = await publish_completion(test_session, participant.id, survey_session.code, notifier)

    assert delivered == 1
    _, analytics = recorder.calls[0]
    assert analytics.completed_count == 1


@pytest.mark.asyncio
async def test_publish_completion_skips_invalid_session_data(test_session):
    """Тест: битые ответы другого участника не ломают завершение квиза"""
    survey_session = await create_session(test_session, "Broken")
    participant, _ = await get_or_create_participant(test_session, survey_session, tracking_id=1)
    other, _ = await get_or_create_participant(test_session, survey_session, tracking_id=2)
    await save_answer(test_session, participant.id, 1, "vibrant_lounge")
    await complete_participant(test_session, participant.id)
    await complete_participant(test_session, other.id)

    # Вариант, которого больше нет в таблице вопросов
    test_session.add(Answer(participant_id=other.id, question_index=1, option_id="rooftop_bar"))
    await test_session.commit()

    notifier = AnalyticsNotifier()
    recorder = Recorder()
    notifier.subscribe(survey_session.code, recorder)

    delivered = await publish_completion(test_session, participant.id, survey_session.code, notifier)

    assert delivered == 0
    assert recorder.calls == []


@pytest.mark.asyncio
async def test_concurrent_completion_happens_once(tmp_path):
    """Тест: два одновременных завершения одного участника, True только у первого"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'quiz.db'}", echo=False)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_maker() as first, session_maker() as second:
        survey_session = await create_session(first, "Double tap")
        participant, _ = await get_or_create_participant(first, survey_session, tracking_id=1)

        # Второй запрос уже прочитал участника до завершения
        stale = await get_participant(second, participant.id)
        assert stale.completed is False

        assert await complete_participant(first, participant.id) is True
        assert await complete_participant(second, participant.id) is False
        assert stale.completed is True

    await engine.dispose()


@pytest.mark.asyncio
async def test_unlive_without_code_asks_for_code():
    message = FakeMessage()
    notifier = AnalyticsNotifier()

    await cmd_unlive(message, CommandObject(command="unlive", args=None), bot=None, notifier=notifier)

    assert message.answers == ["Send the session code, e.g. /stats ABCD1234"]


@pytest.mark.asyncio
async def test_unlive_with_code():
    message = FakeMessage()
    notifier = AnalyticsNotifier()

    await cmd_unlive(message, CommandObject(command="unlive", args="abcd1234"), bot=None, notifier=notifier)

    assert message.answers == ["Live updates for ABCD1234 were not enabled."]
