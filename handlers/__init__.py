from .common import router as common_router
from .survey import router as survey_router
from .presenter import router as presenter_router

__all__ = ["common_router", "survey_router", "presenter_router"]
