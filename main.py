import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from auth import auth_router
from config import get_settings
from database import init_db
from errors import register_exception_handlers
from keepalive import start_keepalive
from router import router

logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database ready")
    scheduler = start_keepalive()
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown(wait=False)


app = FastAPI(title="Wedding Planner API", lifespan=lifespan)
register_exception_handlers(app)

app.include_router(auth_router, prefix="/auth", tags=["authentication"])
app.include_router(router)
# The web client talks to the same routes under /api.
app.include_router(auth_router, prefix="/api/auth", include_in_schema=False)
app.include_router(router, prefix="/api", include_in_schema=False)


@app.get("/health", tags=["system"])
@app.get("/api/health", include_in_schema=False)
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
