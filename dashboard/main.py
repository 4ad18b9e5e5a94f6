import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Load environment variables at the very beginning
load_dotenv()

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from dashboard.api import alerts, detections, export, stats, system
from dashboard.config import settings
from dashboard.core.errors import INTERNAL_ERROR
from dashboard.integrations import database, redis_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    database.initialize()
    redis_client.initialize()
    logger.info(f"[STARTUP] Deepfake detection API ready (env: {os.getenv('ENVIRONMENT', 'development')})")
    yield
    database.dispose()
    redis_client.reset()
    logger.info("[SHUTDOWN] Deepfake detection API stopped")


app = FastAPI(title="Deepfake Detection Dashboard API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


# ---- Error handlers ----
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if exc.status_code == 404 and detail == "Not Found":
        detail = "API endpoint not found"
    if exc.status_code >= 500:
        logger.warning(f"[ERROR HANDLER] {request.method} {request.url.path} -> {exc.status_code}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed query parameters are a 400 with a field-specific message."""
    err = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in err.get("loc", ()) if p not in ("query", "path", "body"))
    msg = err.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={"detail": f"{field}: {msg}" if field else msg},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"[ERROR HANDLER] Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": INTERNAL_ERROR})


# ---- Routers ----
app.include_router(system.router)
app.include_router(detections.router)
app.include_router(stats.router)
app.include_router(alerts.router)
app.include_router(export.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "3001")))
