# faceboard/db.py
"""
Faceboard - Table Store Client

The faces table is reached only through Supabase's PostgREST interface
using the service-role key. No direct Postgres connection is opened.
"""

from __future__ import annotations

import logging
from typing import Optional

from supabase import Client, create_client

from .config import Settings, get_settings
from .core.errors import ConfigurationError

logger = logging.getLogger(__name__)

_supabase_client: Optional[Client] = None


def create_supabase_client(settings: Settings) -> Client:
    """Create a Supabase client that uses the SERVICE ROLE key."""
    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required.")
    return create_client(str(settings.supabase_url), settings.supabase_service_role_key)


def get_supabase_client() -> Client:
    """
    Lazily create and return the process-wide service-role Supabase client.

    Raises:
        ConfigurationError: If the Supabase URL or key is not configured
    """
    global _supabase_client
    if _supabase_client is None:
        logger.info("Creating Supabase client")
        _supabase_client = create_supabase_client(get_settings())
    return _supabase_client


def reset_supabase_client() -> None:
    """Drop the cached client (for testing and settings reloads)."""
    global _supabase_client
    _supabase_client = None
