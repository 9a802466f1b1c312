"""Базовые хендлеры (команды /start, /join, /help и т.д.)"""
import logging
from aiogram import Router, F
from aiogram.types import Message, CallbackQuery, User
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.fsm.context import FSMContext

from models import get_session
from keyboards import get_skip_name_keyboard
from services.notifier import AnalyticsNotifier
from services.sessions import (
    get_or_create_participant,
    get_response,
    get_session_by_code,
    set_participant_name,
)
from utils.i18n import get_text
from utils.questions import get_question_count
from .states import QuizFSM
from .survey import format_result, show_next_step

router = Router()
logger = logging.getLogger(__name__)


async def join_session(message: Message, user: User, code: str, state: FSMContext, notifier: AnalyticsNotifier):
    """Войти в сессию по коду: новый участник или продолжение"""
    await state.clear()
    lang = "en"

    async for session in get_session():
        survey_session = await get_session_by_code(session, code)
        if not survey_session:
            await message.answer(get_text(lang, "session_not_found", code=code.upper()))
            return

        participant, is_new = await get_or_create_participant(
            session, survey_session, tracking_id=user.id, username=user.username
        )
        response = await get_response(session, participant.id)

    await state.update_data(
        lang=lang,
        participant_id=participant.id,
        session_code=survey_session.code
    )

    if participant.completed:
        await message.answer(get_text(lang, "already_completed"))
        await message.answer(format_result(response, lang))
        await state.set_state(QuizFSM.showing_result)
        return

    if not survey_session.is_active:
        await message.answer(get_text(lang, "session_closed", code=survey_session.code))
        return

    if is_new or (participant.name is None and not response):
        await state.set_state(QuizFSM.waiting_name)
        await message.answer(
            get_text(lang, "joined", name=survey_session.name),
            reply_markup=get_skip_name_keyboard(lang)
        )
        return

    await message.answer(get_text(lang, "welcome_back", name=survey_session.name))
    await show_next_step(message, state, notifier)


@router.message(CommandStart())
async def cmd_start(message: Message, command: CommandObject, state: FSMContext, notifier: AnalyticsNotifier):
    """Команда /start (с кодом сессии из ссылки-приглашения)"""
    if command.args:
        await join_session(message, message.from_user, command.args.strip(), state, notifier)
        return

    await state.clear()
    await state.update_data(lang="en")
    await message.answer(get_text("en", "start_welcome"))


@router.message(Command("join"))
async def cmd_join(message: Message, command: CommandObject, state: FSMContext, notifier: AnalyticsNotifier):
    """Команда /join CODE"""
    if not command.args:
        await message.answer(get_text("en", "join_usage"))
        return

    await join_session(message, message.from_user, command.args.strip(), state, notifier)


@router.message(QuizFSM.waiting_name, F.text, ~F.text.startswith("/"))
async def handle_name(message: Message, state: FSMContext, notifier: AnalyticsNotifier):
    """Имя участника"""
    user_data = await state.get_data()
    lang = user_data.get("lang", "en")

    async for session in get_session():
        participant = await set_participant_name(session, user_data["participant_id"], message.text)

    if participant.name:
        await message.answer(get_text(lang, "name_saved", name=participant.name))
    await show_next_step(message, state, notifier)


@router.callback_query(F.data == "skip_name")
async def skip_name(callback: CallbackQuery, state: FSMContext, notifier: AnalyticsNotifier):
    """Пропуск ввода имени"""
    await callback.answer()

    user_data = await state.get_data()
    if not user_data.get("participant_id"):
        await callback.message.answer(get_text("en", "not_joined"))
        return

    await show_next_step(callback.message, state, notifier, edit=True)


@router.message(Command("help"))
async def cmd_help(message: Message, state: FSMContext):
    """Команда /help"""
    user_data = await state.get_data()
    lang = user_data.get("lang", "en")

    await message.answer(get_text(lang, "help_text"))


@router.message(Command("status"))
async def cmd_status(message: Message, state: FSMContext):
    """Команда /status - прогресс квиза"""
    user_data = await state.get_data()
    lang = user_data.get("lang", "en")
    participant_id = user_data.get("participant_id")

    if not participant_id:
        await message.answer(get_text(lang, "not_joined"))
        return

    async for session in get_session():
        response = await get_response(session, participant_id)

    if await state.get_state() == QuizFSM.showing_result.state:
        await message.answer(get_text(lang, "status_completed"))
        return

    total = get_question_count()
    answered = len(response)
    await message.answer(
        get_text(lang, "status_info",
                answered=answered,
                total=total,
                remaining=total - answered)
    )
