import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from backend import storage
from backend.routes import router

load_dotenv(Path(__file__).parent.parent / ".env")

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"

logger = logging.getLogger(__name__)


def create_app(data_dir: Path | None = None) -> FastAPI:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    storage.init_storage(resolved)
    logger.info("Storage at %s", resolved)
    if not os.getenv("ANTHROPIC_API_KEY"):
        logger.info("ANTHROPIC_API_KEY not set; players must supply their own key")

    app = FastAPI(title="Dungeon Master Chat")
    app.include_router(router, prefix="/api")

    # No bundled client; the root shows the interactive API docs
    @app.get("/", include_in_schema=False)
    async def index():
        return RedirectResponse("/docs")

    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()
