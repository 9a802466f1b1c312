"""Общие клавиатуры"""
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton
from utils.i18n import get_text


def get_skip_name_keyboard(lang: str = "en") -> InlineKeyboardMarkup:
    """Кнопка пропуска ввода имени"""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(
            text=get_text(lang, "btn_skip"),
            callback_data="skip_name"
        )]
    ])


def get_presenter_keyboard(code: str) -> InlineKeyboardMarkup:
    """Быстрые действия ведущего для сессии"""
    return InlineKeyboardMarkup(inline_keyboard=[
        [
            InlineKeyboardButton(text="📊 Stats", callback_data=f"stats_{code}"),
            InlineKeyboardButton(text="💡 Insights", callback_data=f"insights_{code}"),
        ],
        [
            InlineKeyboardButton(text="🤖 AI insights", callback_data=f"ai_insights_{code}"),
            InlineKeyboardButton(text="📡 Live", callback_data=f"live_{code}"),
        ]
    ])
