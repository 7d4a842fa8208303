import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

import socketio
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.clients.notification_client import (
    NullNotificationClient,
    build_notification_client,
)
from app.database import AsyncSessionLocal, close_db, get_db, init_db
from app.exceptions import ChatServiceError
from app.realtime.gateway import build_gateway
from app.realtime.publisher import SocketIOPublisher
from app.realtime.server import sio
from app.routers.chats import router as chats_router
from app.routers.inbox import router as inbox_router
from app.routers.requirements import router as requirements_router

# Load environment variables
load_dotenv()

# Environment variable parsing
ENV = os.getenv("ENV")
ENV_IS_PROD = ENV == "prod"
COMMIT_HASH = os.getenv("COMMIT_HASH")
if not COMMIT_HASH and ENV_IS_PROD:
    raise ValueError("COMMIT_HASH is required for production environments")
APP_VERSION = COMMIT_HASH or "dev"

APP_ADDR = os.getenv("HOST", "0.0.0.0")
APP_PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

publisher = SocketIOPublisher(sio)
gateway = build_gateway(sio, AsyncSessionLocal, publisher, NullNotificationClient())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown."""
    # Startup
    await init_db()
    notifier = build_notification_client()
    app.state.notifier = notifier
    gateway.notifier = notifier
    yield
    # Shutdown
    await notifier.aclose()
    await close_db()


app = FastAPI(
    title="Requirements Chat Service",
    description="Requirement wall, bidding and real-time chat for event participants",
    version=APP_VERSION,
    lifespan=lifespan,
)
app.state.publisher = publisher
app.state.notifier = gateway.notifier


@app.exception_handler(ChatServiceError)
async def chat_service_error_handler(
    request: Request, exc: ChatServiceError
) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Include routers; the inbox routes must precede the /{requirement_id} route
app.include_router(inbox_router, prefix="/api/requirements", tags=["inbox"])
app.include_router(chats_router, prefix="/api/requirements", tags=["chats"])
app.include_router(
    requirements_router, prefix="/api/requirements", tags=["requirements"]
)


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)) -> Dict[str, Optional[str]]:
    """Health check endpoint with database connectivity."""
    try:
        # Test database connection
        result = await db.execute(text("SELECT 1"))
        db_status = "connected" if result.scalar() == 1 else "error"
    except SQLAlchemyError:
        db_status = "disconnected"

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "database": db_status,
        "environment": ENV,
        "version": APP_VERSION,
    }


# Socket.IO and the REST API served from one ASGI app
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)


# If run directly, start the server
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(asgi_app, host=APP_ADDR, port=APP_PORT)
