"""
Campus Chatbot - knowledge-base answers for the student chat app
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from campusbot.core.config import settings
from campusbot.core.database import init_db
from campusbot.core.logging_config import setup_logging
from campusbot.api import chatbot
from campusbot.services.chatbot_service import chatbot_service, knowledge_cache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    # Startup
    setup_logging(settings.LOG_LEVEL)
    logger.info("Starting %s %s", settings.APP_NAME, settings.APP_VERSION)
    init_db()
    logger.info("Database initialized")

    yield

    # Shutdown
    chatbot_service.shutdown()
    logger.info("Shutting down %s", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description="""
    # Campus Chatbot

    Answers student questions from a curated knowledge base:

    - **Cascading matching**: exact question, keywords, substrings, full text
    - **Priority ranking**: deterministic tie-breaks on priority and id
    - **Graceful fallback**: canned replies when nothing matches or the store is down
    - **Analytics**: every exchange logged with latency and matched entry
    """,
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# CORS for the React client
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(chatbot.router, prefix="/chatbot")


@app.get("/")
async def root():
    """Service info"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "knowledge_cache": knowledge_cache.stats()
    }


@app.get("/health")
async def health():
    """Simple health check"""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("campusbot.main:app", host="0.0.0.0", port=8000, reload=True)
