from __future__ import annotations

import logging

from supabase import create_client
from supabase.client import Client

from sitemedia.core.settings import Settings

logger = logging.getLogger(__name__)


def create_supabase_client(settings: Settings) -> Client | None:
    """Build the Supabase client, or ``None`` when credentials are missing."""
    if not settings.supabase_configured:
        logger.warning("Supabase credentials missing; primary asset store disabled.")
        return None
    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_ROLE_KEY,
    )
