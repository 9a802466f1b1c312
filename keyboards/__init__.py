from .common import (
    get_skip_name_keyboard,
    get_presenter_keyboard,
)
from .survey import (
    get_question_keyboard,
    parse_answer_callback,
)

__all__ = [
    "get_skip_name_keyboard",
    "get_presenter_keyboard",
    "get_question_keyboard",
    "parse_answer_callback",
]
