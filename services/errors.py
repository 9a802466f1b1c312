"""Ошибки предметной области квиза"""


class QuizError(Exception):
    """Базовая ошибка квиза"""


class InvalidResponseError(QuizError):
    """Ответ ссылается на вопрос или вариант, которого нет в таблице вопросов"""

    def __init__(self, question_index: int, option_id: str = None):
        self.question_index = question_index
        self.option_id = option_id
        if option_id is None:
            message = f"Unknown question index {question_index}"
        else:
            message = f"Unknown option '{option_id}' for question {question_index}"
        super().__init__(message)


class SessionNotFoundError(QuizError):
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Session '{code}' not found")


class SessionClosedError(QuizError):
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Session '{code}' is closed")


class ParticipantCompletedError(QuizError):
    """Ответы завершившего участника заморожены"""

    def __init__(self, participant_id: str):
        self.participant_id = participant_id
        super().__init__(f"Participant {participant_id} has already completed the quiz")


class InsightGenerationError(QuizError):
    """Сбой генерации AI-инсайтов (всегда обрабатывается внутри форматтера)"""


class InsightGenerationTimeout(InsightGenerationError):
    pass


class InsightGenerationFailure(InsightGenerationError):
    pass
