"""Хендлеры квиза"""
import logging
from aiogram import Router, F
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext

from models import get_session
from keyboards import get_question_keyboard, parse_answer_callback
from services.analytics import SurveyAnalytics
from services.errors import InvalidResponseError, ParticipantCompletedError, SessionClosedError
from services.notifier import AnalyticsNotifier
from services.scoring import normalize, workplace_dna
from services.sessions import (
    complete_participant,
    get_participant,
    get_response,
    save_answer,
)
from utils.i18n import get_text
from utils.questions import QUESTIONS, get_question_by_index, get_next_question_index, get_question_count
from .states import QuizFSM

router = Router()
logger = logging.getLogger(__name__)


async def show_question(message: Message, question_index: int, state: FSMContext, edit: bool = False):
    """Показать вопрос"""
    user_data = await state.get_data()
    lang = user_data.get("lang", "en")

    question = get_question_by_index(question_index)
    if not question:
        await message.answer("Error: question not found")
        return

    # Формируем текст с прогрессом
    progress_text = f"📊 {get_text(lang, 'progress', current=question.index + 1, total=get_question_count())}\n\n"
    full_text = progress_text + question.title
    if question.subtitle:
        full_text += f"\n{question.subtitle}"

    descriptions = [f"{o.emoji} {o.label}: {o.description}" for o in question.options if o.description]
    if descriptions and not question.is_generation:
        full_text += "\n\n" + "\n".join(descriptions)

    await state.update_data(current_question=question.index)
    await state.set_state(QuizFSM.answering)

    keyboard = get_question_keyboard(question)
    if edit:
        await message.edit_text(full_text, reply_markup=keyboard)
    else:
        await message.answer(full_text, reply_markup=keyboard)


def format_result(response: dict, lang: str = "en") -> str:
    """Личный результат участника"""
    scores = normalize(response, QUESTIONS)
    text = get_text(lang, "result_title", dna=workplace_dna(scores.to_ten_scale()))
    for dimension, value in scores.as_dict().items():
        text += f"  • {dimension.capitalize()}: {value}/100\n"
    return text


async def show_next_step(message: Message, state: FSMContext, notifier: AnalyticsNotifier, edit: bool = False):
    """Следующий неотвеченный вопрос или завершение квиза"""
    user_data = await state.get_data()
    participant_id = user_data.get("participant_id")

    async for session in get_session():
        response = await get_response(session, participant_id)

    next_index = get_next_question_index(response)
    if next_index is None:
        await finish_quiz(message, state, notifier)
    else:
        await show_question(message, next_index, state, edit=edit)


@router.callback_query(F.data.startswith("answer_"))
async def handle_answer(callback: CallbackQuery, state: FSMContext, notifier: AnalyticsNotifier):
    """Обработка выбора варианта"""
    await callback.answer()

    user_data = await state.get_data()
    participant_id = user_data.get("participant_id")
    lang = user_data.get("lang", "en")

    if not participant_id:
        await callback.message.answer(get_text(lang, "not_joined"))
        return

    question_index, option_id = parse_answer_callback(callback.data)

    async for session in get_session():
        try:
            await save_answer(session, participant_id, question_index, option_id)
        except ParticipantCompletedError:
            await callback.message.answer(get_text(lang, "already_answered"))
            return
        except SessionClosedError as e:
            await callback.message.answer(get_text(lang, "session_closed", code=e.code))
            return
        except InvalidResponseError as e:
            logger.error(f"Invalid answer from participant {participant_id}: {e}")
            await callback.message.answer(get_text(lang, "invalid_answer"))
            return

    await show_next_step(callback.message, state, notifier, edit=True)


async def publish_completion(session, participant_id: str, session_code: str, notifier: AnalyticsNotifier) -> int:
    """Пересчитать аналитику сессии и разослать подписчикам; возвращает число доставок"""
    participant = await get_participant(session, participant_id)
    try:
        analytics = await SurveyAnalytics(session).get_analytics(participant.session_id)
    except InvalidResponseError as e:
        logger.error(f"Live update for session {session_code} skipped: {e}")
        return 0
    return await notifier.publish(session_code, analytics)


async def finish_quiz(message: Message, state: FSMContext, notifier: AnalyticsNotifier):
    """Завершение квиза, показ результата и рассылка обновлённой аналитики"""
    user_data = await state.get_data()
    participant_id = user_data.get("participant_id")
    session_code = user_data.get("session_code")
    lang = user_data.get("lang", "en")

    async for session in get_session():
        transitioned = await complete_participant(session, participant_id)
        response = await get_response(session, participant_id)

    await message.answer(get_text(lang, "survey_completed"))
    await message.answer(format_result(response, lang))
    await state.set_state(QuizFSM.showing_result)

    if transitioned and session_code:
        async for session in get_session():
            await publish_completion(session, participant_id, session_code, notifier)
