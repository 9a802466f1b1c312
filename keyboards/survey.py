"""Клавиатуры для квиза"""
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from utils.questions import Question


def get_question_keyboard(question: Question) -> InlineKeyboardMarkup:
    """
    Создать клавиатуру для вопроса

    callback_data: answer_<индекс вопроса>_<id варианта>
    """
    buttons = []
    
    for option in question.options:
        text = f"{option.emoji} {option.label}".strip()
        buttons.append([InlineKeyboardButton(
            text=text,
            callback_data=f"answer_{question.index}_{option.id}"
        )])
    
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def parse_answer_callback(data: str):
    """Разобрать callback_data ответа: (индекс вопроса, id варианта)"""
    _, index, option_id = data.split("_", 2)
    return int(index), option_id
