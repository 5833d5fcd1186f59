import logging

from fastapi import FastAPI

from sprouts.api.routes import router
from sprouts.config import settings_from_env
from sprouts.game_store import init_store

app = FastAPI(title="sprouts", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def _startup() -> None:
    settings = settings_from_env()
    init_store(settings=settings)
    logger.info("sprouts ready: %d starting points", settings.starting_point_count)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "sprouts", "version": "0.1.0"}
