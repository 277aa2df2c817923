import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api import state
from api.routers import chat, ops, processor, tasks

# Logging configuration
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"Smart todo API starting (provider={state.settings.llm_provider}, "
        f"chat={'on' if state.settings.chat_enabled else 'off'})"
    )
    yield
    logger.info("Smart todo API stopped")


app = FastAPI(title="smart-todo", lifespan=lifespan)

app.include_router(processor.router, prefix="/api")
app.include_router(chat.router, prefix="/api")
app.include_router(tasks.router)
app.include_router(ops.router)


if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
