from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from chathistory.api import health, history
from chathistory.core import config
from chathistory.core.errors import ChatHistoryError
from chathistory.middleware.request_logger import RequestLoggerMiddleware
from chathistory.services.bootstrap_db import create_all

# ---- Logging config ---------------------------------------------------------
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s:%(lineno)d - %(message)s",
)
logger = logging.getLogger("chathistory.main")
logger.info("Starting chat history service with LOG_LEVEL=%s", config.LOG_LEVEL)

# ---- Lifespan ---------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Auto-create tables (safe to run repeatedly)
    create_all()
    logger.info("Startup completed.")
    yield
    logger.info("Shutdown completed.")


# ---- FastAPI app ------------------------------------------------------------
app = FastAPI(title="Room Chat History", lifespan=lifespan)
app.add_middleware(RequestLoggerMiddleware)

# ---- CORS -------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


# ---- Errors -----------------------------------------------------------------
@app.exception_handler(ChatHistoryError)
async def _chat_history_error(request: Request, exc: ChatHistoryError) -> JSONResponse:
    # public_message only: never the chained store error
    logger.info("request failed path=%s status=%d kind=%s", request.url.path, exc.status_code, type(exc).__name__)
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.status_code, "msg": exc.public_message},
    )


# ---- Routers ----------------------------------------------------------------
app.include_router(history.router, prefix="/api/chathistory", tags=["ChatHistory"])
app.include_router(health.router,  prefix="/health",          tags=["Health"])

logger.info("Routers registered.")

