from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from concurrent.futures import ThreadPoolExecutor
from typing import Optional
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import uvicorn

from app.config import Settings, load_settings
from app.database import Database, get_db
from app.routers import api_router

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Connecting to template store...")
        database = Database(settings.database_url, echo=settings.database_echo)
        await database.create_all()
        app.state.database = database

        # Thread pool for the CPU-bound candidate scan
        app.state.thread_pool = ThreadPoolExecutor(max_workers=settings.match_workers)
        logger.info(
            f"Template store ready (policy={settings.registration_policy}, "
            f"length={settings.length_policy}, threshold={settings.match_threshold})"
        )

        yield

        # Cleanup
        app.state.thread_pool.shutdown(wait=True)
        await database.dispose()
        logger.info("Template store closed")

    app = FastAPI(
        title=settings.app_name,
        description="Fingerprint template registration and matching API",
        version=VERSION,
        lifespan=lifespan
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {
            "message": settings.app_name,
            "docs": "/docs",
            "version": VERSION,
            "environment": settings.app_env,
            "endpoints": {
                "health": "/health",
                "register": "/fingerprints",
                "match": "/fingerprints/match",
                "list": "/fingerprints",
                "decode": "/fingerprints/{id}/decode",
                "attendance": "/fingerprints/{id}/attendance"
            }
        }

    @app.get("/health")
    async def health_check(db: AsyncSession = Depends(get_db)):
        await db.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "database": "connected",
            "match_threshold": settings.match_threshold
        }

    app.include_router(api_router)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=app.state.settings.port,
        reload=app.state.settings.app_env != "production"
    )
