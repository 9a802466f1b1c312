from .database import init_db, close_db, get_session
from .survey_session import SurveySession
from .participant import Participant
from .answer import Answer

__all__ = ["init_db", "close_db", "get_session", "SurveySession", "Participant", "Answer"]
