"""
Health Check Routes

Endpoints for service health monitoring.
"""
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..models.notification import utcnow
from ..services.engine_service import get_engine_service

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
@router.get("/")
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": "notify-engine",
        "timestamp": utcnow().isoformat()
    }


@router.get("/ready")
async def readiness_check():
    """
    Readiness check - indicates if service is ready to handle requests.
    Used by Kubernetes/orchestrators for readiness probes.
    """
    engine = get_engine_service()
    database = await engine.check_database()
    body = {
        "ready": database,
        "database": database,
        "scheduler": engine.scheduler_service.is_running,
        "timestamp": utcnow().isoformat()
    }
    return JSONResponse(status_code=200 if database else 503, content=body)


@router.get("/live")
async def liveness_check():
    """
    Liveness check - indicates if service is running.
    Used by Kubernetes/orchestrators for liveness probes.
    """
    return {
        "alive": True,
        "timestamp": utcnow().isoformat()
    }
