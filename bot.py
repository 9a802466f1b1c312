"""Главный файл бота"""
import asyncio
import logging
from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage

from utils.config import BOT_TOKEN, AI_API_KEY, AI_BASE_URL, AI_MODEL, AI_TIMEOUT_SECONDS
from models import init_db, close_db
from handlers import common_router, survey_router, presenter_router
from services.llm import RECOMMENDATIONS_SYSTEM_PROMPT, OpenAIChatGenerator
from services.notifier import AnalyticsNotifier

# Настройка логирования
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def main():
    """Главная функция запуска бота"""
    # Инициализация БД
    logger.info("Initializing database...")
    await init_db()

    # Создание бота и диспетчера
    bot = Bot(token=BOT_TOKEN)
    storage = MemoryStorage()
    dp = Dispatcher(storage=storage)

    # Общие зависимости хендлеров
    dp["notifier"] = AnalyticsNotifier()
    dp["text_generator"] = (
        OpenAIChatGenerator(api_key=AI_API_KEY, base_url=AI_BASE_URL, model=AI_MODEL)
        if AI_API_KEY else None
    )
    dp["recommendation_generator"] = (
        OpenAIChatGenerator(
            api_key=AI_API_KEY, base_url=AI_BASE_URL, model=AI_MODEL,
            max_tokens=600, system_prompt=RECOMMENDATIONS_SYSTEM_PROMPT
        )
        if AI_API_KEY else None
    )
    dp["ai_timeout"] = AI_TIMEOUT_SECONDS

    # Регистрация роутеров
    dp.include_router(common_router)
    dp.include_router(survey_router)
    dp.include_router(presenter_router)

    logger.info("Bot is up and running!")

    try:
        # Запуск поллинга
        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
    finally:
        await bot.session.close()
        await close_db()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
