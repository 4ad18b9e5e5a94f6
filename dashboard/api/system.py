"""
System / health routes.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from dashboard.integrations import database as database_module
from dashboard.models import utcnow

router = APIRouter(tags=["System"])


@router.get("/api/health")
def health():
    healthy = False
    if database_module.SessionLocal is not None:
        db = database_module.SessionLocal()
        try:
            healthy = database_module.ping(db)
        finally:
            db.close()

    timestamp = utcnow().isoformat() + "Z"
    if not healthy:
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "disconnected", "timestamp": timestamp},
        )
    return {"status": "healthy", "database": "connected", "timestamp": timestamp}
