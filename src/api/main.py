import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from src.adapters.fs.filestore import FileSystemStore
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteContentTypeRepo
from src.api.deps import RichTextRulesAdapter, get_settings
from src.app_shell.config import check_editor_aliases, seed_content_types
from src.components.property_editors import create_default_registry
from src.rules.loader import load_rules

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Load rules, migrate and seed on startup (fail-fast)
    try:
        rules = load_rules(settings.rules_path)
        logger.info("Rules loaded from %s", settings.rules_path)

        settings.media_dir.mkdir(parents=True, exist_ok=True)
        SQLiteMigrator(settings.db_path, settings.migrations_dir).run_migrations()
        seed_content_types(rules, SQLiteContentTypeRepo(settings.db_path))

        registry = create_default_registry(
            FileSystemStore(str(settings.media_dir)), RichTextRulesAdapter(rules)
        )
        check_editor_aliases(rules, registry)
    except Exception:
        logger.critical("Startup failed", exc_info=True)
        sys.exit(1)

    yield


app = FastAPI(
    title="Content Editing API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from src.api.routes import content  # noqa: E402

app.include_router(content.router, prefix="/api/content", tags=["Content"])


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
