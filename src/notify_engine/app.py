"""
Notify Engine Application

FastAPI application for the notification dispatch and scheduling engine.
"""
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Config
from .services.engine_service import get_engine_service, init_engine_service
from .routes import health_router, notifications_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("notify.app")

# Suppress noisy loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("asyncpg").setLevel(logging.WARNING)
logging.getLogger("aiosmtplib").setLevel(logging.WARNING)

# Create FastAPI application
app = FastAPI(
    title="Notify Engine API",
    description="Notification dispatch and scheduling for subscription tracking",
    version="0.1.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    logger.info("Starting Notify Engine...")

    try:
        await init_engine_service()
        logger.info("Notify Engine started successfully")
    except Exception as e:
        logger.error(f"Failed to start Notify Engine: {e}")
        raise


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("Shutting down Notify Engine...")

    try:
        engine = get_engine_service()
        await engine.close()
        logger.info("Notify Engine shutdown complete")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")


# Include routers
app.include_router(health_router, prefix="/api/v1", tags=["health"])
app.include_router(notifications_router, prefix="/api/v1", tags=["notifications"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "Notify Engine",
        "version": "0.1.0",
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=Config.API_HOST,
        port=Config.API_PORT
    )
