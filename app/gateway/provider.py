"""Choose and build the gateway the application talks to."""

from loguru import logger

from app.core.config import Settings
from app.gateway.base import DataGateway
from app.gateway.sql import SqlGateway
from app.gateway.supabase_gateway import SupabaseGateway


async def create_gateway(settings: Settings) -> DataGateway:
    """
    Build the gateway selected by `GATEWAY_BACKEND`.

    "supabase" connects to the hosted project; "local" serves the tables of
    the configured `DATABASE_URL` with in-process change notifications.
    """
    if settings.GATEWAY_BACKEND == "supabase":
        return await SupabaseGateway.connect(settings)

    from app.database.database import engine

    logger.info(f"Using local gateway on {engine.url.render_as_string(hide_password=True)}")
    return SqlGateway(engine)
