# app/main.py
import logging
import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import auth, course, review, schedule
from app.config import settings
from app.database import Base, engine
from app.errors import register_exception_handlers
from app.services.summary_sweep import run_startup_sweep

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def _start_summary_sweep() -> None:
    if not settings.AI_SUMMARY_SWEEP_ON_STARTUP:
        logger.info("Startup AI summary sweep disabled")
        return
    threading.Thread(target=run_startup_sweep, name="ai-summary-sweep", daemon=True).start()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create database tables
    Base.metadata.create_all(bind=engine)
    _start_summary_sweep()
    yield


# Initialize FastAPI app
app = FastAPI(title="Course Evaluation API", lifespan=lifespan)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://0.0.0.0:8000",
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# API routers
app.include_router(auth.router)      # /auth/*
app.include_router(review.router)    # /reviews/*
app.include_router(schedule.router)  # /user-schedules/*
app.include_router(course.router)    # /courses/*


@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "message": "Course Evaluation API is running",
        "version": "0.1.0",
    }
