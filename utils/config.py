"""Конфигурация бота"""
import os
from dotenv import load_dotenv

load_dotenv()

BOT_TOKEN = os.getenv("BOT_TOKEN")

# Внешний генератор текста для AI-инсайтов (без ключа используется только базовая аналитика)
AI_API_KEY = os.getenv("AI_API_KEY")
AI_BASE_URL = os.getenv("AI_BASE_URL", "https://api.openai.com/v1")
AI_MODEL = os.getenv("AI_MODEL", "gpt-4o-mini")
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "20"))

if not BOT_TOKEN:
    raise ValueError("BOT_TOKEN is not set in the .env file")

if not AI_API_KEY:
    print("⚠️ Warning: AI_API_KEY is not set. AI insights will fall back to basic analytics.")
