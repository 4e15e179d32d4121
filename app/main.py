from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.core.config import get_settings, parse_comma_separated_origins
from app.core.error_handlers import register_exception_handlers
from app.core.telemetry import setup_telemetry
from app.database.database import create_db_and_tables
from app.gateway.provider import create_gateway
from app.routers import auth, dashboard, live
from app.utils.logger import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Prepare the service before it starts serving and release the backend on shutdown.

    Sets up logging, creates the local tables when the local backend is used,
    initializes telemetry and opens the data gateway stored on `app.state.gateway`.
    """
    setup_logging()
    settings = get_settings()
    if settings.GATEWAY_BACKEND == "local":
        create_db_and_tables()
    setup_telemetry(app)
    app.state.gateway = await create_gateway(settings)
    logger.info(f"Dashboard variant '{settings.DASHBOARD_VARIANT}' ready")
    yield
    await app.state.gateway.close()


app = FastAPI(
    title="Moderation Dashboard API",
    description="Live moderation dashboard over a backend-as-a-service",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        str(origin)
        for origin in parse_comma_separated_origins(get_settings().BACKEND_CORS_ORIGINS)
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/health", include_in_schema=False)
def health_check():
    """
    Provide the application's liveness state for health checks.

    Returns:
        dict: A mapping with key "status" and value "ok" indicating the service is healthy.
    """
    return {"status": "ok"}


app.include_router(auth.router)
app.include_router(dashboard.router)
app.include_router(live.router)
