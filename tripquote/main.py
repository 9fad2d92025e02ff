import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tripquote.config import settings

# ─── Logging setup (file + console) ───
_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_LOG_DIR.mkdir(exist_ok=True)

_log_level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            _LOG_DIR / "tripquote.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        ),
    ],
)

# Quiet noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

from tripquote.routers import history, search
from tripquote.services.history_store import build_history_store
from tripquote.services.llm_client import llm_client
from tripquote.services.search_orchestrator import SearchOrchestrator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: history store and orchestrator
    if settings.history_backend == "database":
        from tripquote.database import create_tables
        await create_tables()
        logger.info("History tables ready")

    store = build_history_store()
    app.state.history_store = store
    app.state.search_orchestrator = SearchOrchestrator(store)
    logger.info(f"Price history backend: {settings.history_backend} (capacity {settings.history_capacity})")

    if not llm_client.configured:
        logger.warning("No LLM API key configured, trip searches will fail")

    yield

    # Shutdown
    await store.close()
    if settings.history_backend == "database":
        from tripquote.database import engine
        await engine.dispose()
        logger.info("Database engine disposed")


app = FastAPI(
    title="TripQuote",
    description="Travel Quote Assistant with Price History",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(search.router, prefix="/api/search", tags=["search"])
app.include_router(history.router, prefix="/api/history", tags=["history"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": "tripquote"}
