"""
FastAPI application for the SetterFlow dashboard API.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from admin_backend import routes
from config import LOG_FILE, LOG_LEVEL
from database import init_database
from scheduler import SchedulerManager
from services.lead_cache import lead_cache

# Configure logging
logger.add(
    LOG_FILE,
    rotation="10 MB",
    retention="7 days",
    level=LOG_LEVEL,
    format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}",
)

# Initialize FastAPI app
app = FastAPI(
    title="SetterFlow Dashboard API",
    description="Leads, students, notes and analytics for the SetterFlow CRM",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(routes.auth_router, prefix="/admin", tags=["auth"])
app.include_router(routes.leads_router, prefix="/admin", tags=["leads"])
app.include_router(routes.notes_router, prefix="/admin", tags=["notes"])
app.include_router(routes.students_router, prefix="/admin", tags=["students"])
app.include_router(routes.analytics_router, prefix="/admin", tags=["analytics"])
app.include_router(routes.logs_router, prefix="/admin", tags=["logs"])
app.include_router(routes.sync_router, prefix="/admin", tags=["sync"])

scheduler = SchedulerManager(lead_cache)


@app.on_event("startup")
async def startup_event():
    """Initialize database and background sync on startup."""
    await init_database()
    await scheduler.start()
    logger.info("Dashboard API ready")


@app.on_event("shutdown")
async def shutdown_event():
    await scheduler.stop()


@app.get("/")
async def root():
    return {"name": app.title, "status": "ok"}
