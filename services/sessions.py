"""Операции с сессиями, участниками и ответами"""
import logging
import secrets
import string
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, update, and_
from sqlalchemy.ext.asyncio import AsyncSession

from models import SurveySession, Participant, Answer
from services.errors import (
    InvalidResponseError,
    ParticipantCompletedError,
    SessionClosedError,
    SessionNotFoundError,
)
from utils.questions import QUESTIONS, Question, get_question_by_index

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8
MAX_CODE_ATTEMPTS = 10


def generate_session_code(length: int = CODE_LENGTH) -> str:
    """Короткий код сессии из A-Z0-9"""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


async def get_session_by_code(session: AsyncSession, code: str) -> Optional[SurveySession]:
    """Найти сессию по коду (без учёта регистра)"""
    if not code:
        return None
    result = await session.execute(
        select(SurveySession).where(SurveySession.code == code.strip().upper())
    )
    return result.scalar_one_or_none()


async def require_session(session: AsyncSession, code: str) -> SurveySession:
    survey_session = await get_session_by_code(session, code)
    if survey_session is None:
        raise SessionNotFoundError(code)
    return survey_session


async def create_session(session: AsyncSession, name: str, presenter_id: int = None) -> SurveySession:
    """Создать сессию с уникальным кодом"""
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_session_code()
        if await get_session_by_code(session, code) is None:
            break
    else:
        raise RuntimeError("Could not generate a unique session code")

    survey_session = SurveySession(code=code, name=name.strip() or "Workplace session", presenter_id=presenter_id)
    session.add(survey_session)
    await session.commit()
    await session.refresh(survey_session)

    logger.info(f"Session {survey_session.code} created by {presenter_id}")
    return survey_session


async def list_presenter_sessions(session: AsyncSession, presenter_id: int) -> List[SurveySession]:
    result = await session.execute(
        select(SurveySession)
        .where(SurveySession.presenter_id == presenter_id)
        .order_by(SurveySession.created_at.desc())
    )
    return list(result.scalars().all())


async def close_session(session: AsyncSession, code: str) -> SurveySession:
    """Закрыть сессию: новые ответы больше не принимаются"""
    survey_session = await require_session(session, code)
    survey_session.is_active = False
    await session.commit()
    return survey_session


async def get_or_create_participant(
    session: AsyncSession,
    survey_session: SurveySession,
    tracking_id: int,
    username: str = None,
) -> Tuple[Participant, bool]:
    """
    Получить участника сессии по tracking_id или создать нового.

    Возвращает (participant, is_new).
    """
    result = await session.execute(
        select(Participant).where(
            and_(
                Participant.session_id == survey_session.id,
                Participant.tracking_id == tracking_id
            )
        )
    )
    participant = result.scalar_one_or_none()

    if participant:
        return participant, False

    participant = Participant(
        session_id=survey_session.id,
        tracking_id=tracking_id,
        username=username,
    )
    session.add(participant)
    await session.commit()
    await session.refresh(participant)

    logger.info(f"Participant {participant.id} joined session {survey_session.code}")
    return participant, True


async def get_participant(session: AsyncSession, participant_id: str) -> Optional[Participant]:
    result = await session.execute(select(Participant).where(Participant.id == participant_id))
    return result.scalar_one_or_none()


async def set_participant_name(session: AsyncSession, participant_id: str, name: str) -> Participant:
    participant = await get_participant(session, participant_id)
    if participant is None:
        raise ValueError(f"Participant {participant_id} not found")
    participant.name = name.strip()[:100] or None
    await session.commit()
    return participant


async def get_response(session: AsyncSession, participant_id: str) -> Dict[int, str]:
    """Получить все ответы участника в виде словаря"""
    result = await session.execute(
        select(Answer).where(Answer.participant_id == participant_id)
    )
    return {a.question_index: a.option_id for a in result.scalars().all()}


async def save_answer(
    session: AsyncSession,
    participant_id: str,
    question_index: int,
    option_id: str,
    questions: List[Question] = None,
) -> Answer:
    """Сохранить ответ (повторный ответ на тот же вопрос заменяет прежний)"""
    questions = QUESTIONS if questions is None else questions
    question = get_question_by_index(question_index, questions)
    if question is None:
        raise InvalidResponseError(question_index)
    if question.get_option(option_id) is None:
        raise InvalidResponseError(question_index, option_id)

    participant = await get_participant(session, participant_id)
    if participant is None:
        raise ValueError(f"Participant {participant_id} not found")
    if participant.completed:
        raise ParticipantCompletedError(participant_id)

    survey_session = await session.get(SurveySession, participant.session_id)
    if not survey_session.is_active:
        raise SessionClosedError(survey_session.code)

    # Проверяем, есть ли уже ответ
    result = await session.execute(
        select(Answer).where(
            and_(
                Answer.participant_id == participant_id,
                Answer.question_index == question_index
            )
        )
    )
    answer = result.scalar_one_or_none()

    if answer:
        answer.option_id = option_id
    else:
        answer = Answer(
            participant_id=participant_id,
            question_index=question_index,
            option_id=option_id
        )
        session.add(answer)

    await session.commit()
    return answer


async def complete_participant(session: AsyncSession, participant_id: str) -> bool:
    """
    Отметить участника завершившим квиз.

    Переход необратимый и происходит один раз: повторный вызов возвращает False.
    При одновременных вызовах True получает только один из них.
    """
    result = await session.execute(
        update(Participant)
        .where(Participant.id == participant_id, Participant.completed.isnot(True))
        .values(completed=True, completed_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    await session.commit()

    # Обновляем уже загруженный в сессию объект участника
    participant = await session.get(Participant, participant_id, populate_existing=True)
    if participant is None:
        raise ValueError(f"Participant {participant_id} not found")
    if result.rowcount == 0:
        return False

    logger.info(f"Participant {participant_id} completed the quiz")
    return True
