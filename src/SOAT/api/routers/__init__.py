from .assessments import router as assessments_router
from .health import router as health_router
from .reports import router as reports_router
from .schedules import router as schedules_router

__all__ = ["assessments_router", "health_router", "reports_router", "schedules_router"]
