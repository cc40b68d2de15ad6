"""
Fomí Client

Entry point for embedding applications: builds a configured store.
"""

from typing import Optional

import httpx

from .backend import SupabaseClient
from .config import Settings, get_settings
from .core.logging import setup_logging, get_logger
from .services import build_services
from .state import AppStore

logger = get_logger(__name__)


def create_store(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    configure_logging: bool = True,
) -> AppStore:
    """
    Build a store wired to the configured Supabase project.

    Call `await store.start()` afterwards to restore a saved session.
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings=settings)

    client = SupabaseClient(settings=settings, transport=transport)
    store = AppStore(build_services(client), settings=settings)
    logger.info(
        "store_created",
        environment=settings.environment,
        configured=client.is_configured(),
    )
    return store
