"""
Solaris — application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `api/`, `models/`, and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select

from solaris.api.v1.api import api_router
from solaris.api.v1.endpoints.auth import limiter
from solaris.core.config import settings
from solaris.core.exceptions import register_exception_handlers
from solaris.core.security import get_password_hash
from solaris.db.base import Base
from solaris.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from solaris.models.absence import AbsenceRequest  # noqa: F401
from solaris.models.calendar_override import CalendarOverride  # noqa: F401
from solaris.models.collaboration import MeetingRequest, Todo  # noqa: F401
from solaris.models.notification import Notification  # noqa: F401
from solaris.models.time_entry import TimeEntry  # noqa: F401
from solaris.models.training import TrainingRequest  # noqa: F401
from solaris.models.user import User
from solaris.models.work_profile import WorkProfile  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_initial_users() -> None:
    """Create the first admin and flag the configured training manager."""
    async with async_session_factory() as session:
        result = await session.execute(
            select(User).where(User.email == settings.FIRST_ADMIN_EMAIL)
        )
        if result.scalar_one_or_none() is None:
            admin = User(
                email=settings.FIRST_ADMIN_EMAIL,
                hashed_password=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
                name=settings.FIRST_ADMIN_NAME,
                role="admin",
            )
            session.add(admin)
            await session.commit()
            logger.info(
                "Default admin created: %s (password: <redacted>)",
                settings.FIRST_ADMIN_EMAIL,
            )

        if settings.TRAINING_MANAGER_EMAIL:
            manager_email = settings.TRAINING_MANAGER_EMAIL.strip().lower()
            result = await session.execute(select(User).where(User.email == manager_email))
            manager = result.scalar_one_or_none()
            if manager is not None and not manager.is_training_manager:
                manager.is_training_manager = True
                await session.commit()
                logger.info("Training manager flag set for %s", manager_email)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    await seed_initial_users()

    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Time tracking, absences, trainings and monthly hour accounting",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)
    application.state.limiter = limiter

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
