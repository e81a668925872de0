from fastapi import APIRouter, Depends

from app.config import settings
from app.dependencies import get_run_registry
from app.domain.services.promotion_service import RunRegistry
from app.infrastructure.notify.notifier_factory import NotifierFactory

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(registry: RunRegistry = Depends(get_run_registry)):
    current = registry.current()
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": "0.1.0",
        "notifier": NotifierFactory.get_notifier_type(settings),
        "active_run": registry.active.run.run_id if registry.active else None,
        "last_run_status": current.status.value if current else None,
    }
