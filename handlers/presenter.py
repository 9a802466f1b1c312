"""Хендлеры ведущего: создание сессий и дашборд"""
import csv
import io
import logging
from datetime import datetime
from aiogram import Bot, Router, F
from aiogram.types import Message, CallbackQuery, BufferedInputFile
from aiogram.filters import Command, CommandObject
from aiogram.utils.deep_linking import create_start_link

from models import get_session
from keyboards import get_presenter_keyboard
from services.analytics import SessionAnalytics, SurveyAnalytics, format_stats_text
from services.errors import InvalidResponseError, SessionNotFoundError
from services.insights import InsightFormatter, format_insights, format_recommendations
from services.llm import TextGenerator
from services.notifier import AnalyticsNotifier
from services.sessions import close_session, create_session, list_presenter_sessions, require_session

router = Router()
logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4000


class ChatSubscriber:
    """Подписка чата ведущего на обновления аналитики"""

    def __init__(self, bot: Bot, chat_id: int, session_name: str):
        self.bot = bot
        self.chat_id = chat_id
        self.session_name = session_name

    def __eq__(self, other):
        return isinstance(other, ChatSubscriber) and other.chat_id == self.chat_id

    def __hash__(self):
        return hash(self.chat_id)

    def __repr__(self):
        return f"<ChatSubscriber(chat_id={self.chat_id})>"

    async def __call__(self, session_code: str, analytics: SessionAnalytics):
        text = "📡 Live update\n\n" + format_stats_text(analytics, self.session_name, session_code)
        await self.bot.send_message(self.chat_id, text)


def split_message(text: str, max_length: int = MAX_MESSAGE_LENGTH):
    """Разбить длинный текст на части по строкам"""
    if len(text) <= max_length:
        return [text]

    parts = []
    current_part = ""
    for line in text.split('\n'):
        if len(current_part) + len(line) + 1 < max_length:
            current_part += line + '\n'
        else:
            parts.append(current_part)
            current_part = line + '\n'
    if current_part:
        parts.append(current_part)
    return parts


async def answer_long(message: Message, text: str):
    # Telegram ограничивает сообщение 4096 символами
    for part in split_message(text):
        await message.answer(part, parse_mode=None)


async def _stats(message: Message, code: str):
    async for session in get_session():
        survey_session = await require_session(session, code)
        stats_text = await SurveyAnalytics(session).generate_stats_text(survey_session)
    await message.answer(stats_text, reply_markup=get_presenter_keyboard(survey_session.code))


async def _insights(message: Message, code: str):
    async for session in get_session():
        survey_session = await require_session(session, code)
        analytics = await SurveyAnalytics(session).get_analytics(survey_session.id)
    await answer_long(message, f"💡 Insights: {survey_session.name}\n\n{format_insights(analytics)}")


async def _ai_insights(message: Message, code: str, text_generator: TextGenerator, ai_timeout: float):
    await message.answer("⏳ Generating AI insights...")

    async for session in get_session():
        survey_session = await require_session(session, code)
        analytics = await SurveyAnalytics(session).get_analytics(survey_session.id)

    formatter = InsightFormatter(text_generator, ai_timeout)
    text = await formatter.generate(analytics, survey_session.name)
    logger.info(f"AI insights for {survey_session.code}: {formatter.status.value}")
    await answer_long(message, f"🤖 AI insights: {survey_session.name}\n\n{text}")


async def _ai_recommendations(
    message: Message, code: str, focus_area: str, recommendation_generator: TextGenerator, ai_timeout: float
):
    await message.answer("⏳ Generating AI recommendations...")

    async for session in get_session():
        survey_session = await require_session(session, code)
        analytics = await SurveyAnalytics(session).get_analytics(survey_session.id)

    formatter = InsightFormatter(recommendation_generator, ai_timeout)
    text = await formatter.recommend(analytics, focus_area)
    logger.info(f"AI recommendations for {survey_session.code}: {formatter.status.value}")
    title = f"🛠 Recommendations: {survey_session.name}"
    if focus_area:
        title += f" ({focus_area})"
    await answer_long(message, f"{title}\n\n{text}")


async def _live(message: Message, code: str, bot: Bot, notifier: AnalyticsNotifier):
    async for session in get_session():
        survey_session = await require_session(session, code)

    subscriber = ChatSubscriber(bot, message.chat.id, survey_session.name)
    notifier.subscribe(survey_session.code, subscriber)
    await message.answer(
        f"📡 Live updates for {survey_session.code} are on. "
        f"You will get fresh stats after each completed quiz.\n"
        f"Turn off: /unlive {survey_session.code}"
    )


def _code_arg(command: CommandObject) -> str:
    return (command.args or "").strip().upper()


def _code_and_rest(command: CommandObject):
    """Разобрать аргументы вида "CODE остальной текст" """
    code, _, rest = (command.args or "").strip().partition(" ")
    return code.upper(), rest.strip() or None


async def _run(message: Message, code: str, action, *args):
    """Выполнить действие над сессией с проверкой кода"""
    if not code:
        await message.answer("Send the session code, e.g. /stats ABCD1234")
        return
    try:
        await action(message, code, *args)
    except SessionNotFoundError:
        await message.answer(f"❌ Session {code} was not found.")
    except InvalidResponseError as e:
        logger.error(f"Stored answers of session {code} do not match the question table: {e}")
        await message.answer("⚠️ Session data does not match the current quiz questions.")


@router.message(Command("new"))
async def cmd_new(message: Message, command: CommandObject, bot: Bot):
    """Команда /new <название> - создать сессию"""
    name = (command.args or "").strip() or "Workplace session"

    async for session in get_session():
        survey_session = await create_session(session, name, presenter_id=message.chat.id)

    link = await create_start_link(bot, survey_session.code)
    await message.answer(
        f"✅ Session «{survey_session.name}» created!\n\n"
        f"🔑 Code: {survey_session.code}\n"
        f"🔗 Invite link: {link}\n\n"
        f"Participants can open the link or send /join {survey_session.code}",
        reply_markup=get_presenter_keyboard(survey_session.code)
    )


@router.message(Command("sessions"))
async def cmd_sessions(message: Message):
    """Команда /sessions - сессии ведущего"""
    async for session in get_session():
        sessions = await list_presenter_sessions(session, message.chat.id)

    if not sessions:
        await message.answer("You have no sessions yet. Create one with /new <name>")
        return

    text = "🗂 Your sessions\n\n"
    for s in sessions:
        status = "🟢" if s.is_active else "🔒"
        text += f"{status} {s.code} — {s.name} ({s.created_at:%Y-%m-%d})\n"
    await message.answer(text)


@router.message(Command("stats"))
async def cmd_stats(message: Message, command: CommandObject):
    """Команда /stats CODE - дашборд сессии"""
    await _run(message, _code_arg(command), _stats)


@router.message(Command("detailed_stats"))
async def cmd_detailed_stats(message: Message, command: CommandObject):
    """Команда /detailed_stats CODE - распределение ответов по всем вопросам"""
    async def action(message, code):
        async for session in get_session():
            survey_session = await require_session(session, code)
            detailed_stats = await SurveyAnalytics(session).generate_detailed_stats(survey_session)
        await answer_long(message, detailed_stats)

    await _run(message, _code_arg(command), action)


@router.message(Command("insights"))
async def cmd_insights(message: Message, command: CommandObject):
    """Команда /insights CODE - инсайты по правилам"""
    await _run(message, _code_arg(command), _insights)


@router.message(Command("ai_insights"))
async def cmd_ai_insights(message: Message, command: CommandObject, text_generator: TextGenerator, ai_timeout: float):
    """Команда /ai_insights CODE - инсайты от внешнего генератора"""
    await _run(message, _code_arg(command), _ai_insights, text_generator, ai_timeout)


@router.message(Command("recommendations"))
async def cmd_recommendations(message: Message, command: CommandObject):
    """Команда /recommendations CODE - рекомендации по правилам"""
    async def action(message, code):
        async for session in get_session():
            survey_session = await require_session(session, code)
            analytics = await SurveyAnalytics(session).get_analytics(survey_session.id)
        await answer_long(message, f"🛠 Recommendations: {survey_session.name}\n\n{format_recommendations(analytics)}")

    await _run(message, _code_arg(command), action)


@router.message(Command("ai_recommendations"))
async def cmd_ai_recommendations(
    message: Message, command: CommandObject, recommendation_generator: TextGenerator, ai_timeout: float
):
    """Команда /ai_recommendations CODE [тема] - рекомендации от внешнего генератора"""
    code, focus_area = _code_and_rest(command)
    await _run(message, code, _ai_recommendations, focus_area, recommendation_generator, ai_timeout)


@router.message(Command("live"))
async def cmd_live(message: Message, command: CommandObject, bot: Bot, notifier: AnalyticsNotifier):
    """Команда /live CODE - обновления дашборда в реальном времени"""
    await _run(message, _code_arg(command), _live, bot, notifier)


@router.message(Command("unlive"))
async def cmd_unlive(message: Message, command: CommandObject, bot: Bot, notifier: AnalyticsNotifier):
    """Команда /unlive CODE - отключить обновления"""
    async def action(message, code):
        if notifier.unsubscribe(code, ChatSubscriber(bot, message.chat.id, "")):
            await message.answer(f"🔕 Live updates for {code} are off.")
        else:
            await message.answer(f"Live updates for {code} were not enabled.")

    await _run(message, _code_arg(command), action)


@router.message(Command("export"))
async def cmd_export(message: Message, command: CommandObject):
    """Команда /export CODE - экспорт в CSV"""
    async def action(message, code):
        await message.answer("⏳ Preparing export...")

        async for session in get_session():
            survey_session = await require_session(session, code)
            analytics = SurveyAnalytics(session)
            data = await analytics.export_to_csv_data(survey_session.id)
            fieldnames = analytics.csv_fieldnames()

        if not data:
            await message.answer("No completed quizzes to export.")
            return

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(data)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        document = BufferedInputFile(
            buffer.getvalue().encode("utf-8-sig"),
            filename=f"{survey_session.code}_{timestamp}.csv"
        )
        await message.answer_document(
            document=document,
            caption=f"📊 Export «{survey_session.name}» ({len(data)} participants)"
        )

    await _run(message, _code_arg(command), action)


@router.message(Command("close"))
async def cmd_close(message: Message, command: CommandObject):
    """Команда /close CODE - перестать принимать ответы"""
    async def action(message, code):
        async for session in get_session():
            survey_session = await require_session(session, code)
            if survey_session.presenter_id not in (None, message.chat.id):
                await message.answer("⛔️ Only the presenter who created this session can close it.")
                return
            await close_session(session, code)
        await message.answer(f"🔒 Session {code} is closed.")

    await _run(message, _code_arg(command), action)


@router.callback_query(F.data.startswith("stats_"))
async def cb_stats(callback: CallbackQuery):
    await callback.answer()
    await _run(callback.message, callback.data.removeprefix("stats_"), _stats)


@router.callback_query(F.data.startswith("insights_"))
async def cb_insights(callback: CallbackQuery):
    await callback.answer()
    await _run(callback.message, callback.data.removeprefix("insights_"), _insights)


@router.callback_query(F.data.startswith("ai_insights_"))
async def cb_ai_insights(callback: CallbackQuery, text_generator: TextGenerator, ai_timeout: float):
    await callback.answer()
    await _run(callback.message, callback.data.removeprefix("ai_insights_"), _ai_insights, text_generator, ai_timeout)


@router.callback_query(F.data.startswith("live_"))
async def cb_live(callback: CallbackQuery, bot: Bot, notifier: AnalyticsNotifier):
    await callback.answer()
    await _run(callback.message, callback.data.removeprefix("live_"), _live, bot, notifier)


@router.message(Command("presenter"))
async def cmd_presenter_help(message: Message):
    """Команда /presenter - справка для ведущего"""
    help_text = """
🔧 Presenter commands

🆕 /new <name> — create a quiz session
🗂 /sessions — your sessions
📊 /stats CODE — dashboard
📈 /detailed_stats CODE — answers per question
💡 /insights CODE — rule-based insights
🤖 /ai_insights CODE — AI insights
🛠 /recommendations CODE — rule-based recommendations
🧠 /ai_recommendations CODE [focus] — AI recommendations, e.g. /ai_recommendations ABCD1234 meeting rooms
📡 /live CODE — live updates after each completed quiz
🔕 /unlive CODE — stop live updates
💾 /export CODE — CSV export
🔒 /close CODE — stop accepting answers
"""
    await message.answer(help_text)
