"""FSM для квиза"""
from aiogram.fsm.state import State, StatesGroup


class QuizFSM(StatesGroup):
    """Состояния участника"""
    # Ожидание имени после входа в сессию
    waiting_name = State()
    
    # Ответы на вопросы
    answering = State()
    
    # Квиз завершён, показан результат
    showing_result = State()
