from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from src.routes.analytics import router as analytics_router
from src.routes.dashboard import router as dashboard_router
from src.database.connection import create_tables
from src.analytics.config import AnalyticsConfig
import os
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="CRM Analytics API",
    version="1.0.0",
    description="Read-only reporting over CRM deals, tasks, leads and activities"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        os.getenv("FRONTEND_URL", "")
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
async def startup_event():
    """Initialize database on startup"""
    try:
        create_tables()
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

# Include routers
app.include_router(analytics_router)
app.include_router(dashboard_router)

@app.get("/")
def root():
    return {
        "message": "CRM Analytics API",
        "version": "1.0.0",
        "status": "running",
        "description": "Deal, task and lead analytics with a cross-domain dashboard"
    }

@app.get("/health")
def health_check():
    """Health check endpoint for monitoring"""
    return {
        "status": "healthy",
        "version": "1.0.0",
        "environment": os.getenv("ENVIRONMENT", "production"),
        "settings": AnalyticsConfig.as_dict()
    }
