"""
Supabase client helpers for the media gallery store.

Maintenance jobs like the media reconciliation run outside any user session,
so they always talk to Supabase with the service-role key.
"""

from __future__ import annotations

from typing import Optional

from supabase import Client, create_client

from ..config.settings import Settings, settings


class SupabaseClientError(RuntimeError):
    """Error raised when Supabase client creation fails."""


def _build_client(url: Optional[str], api_key: Optional[str]) -> Client:
    """
    Create a Supabase client using the provided URL and API key.

    Args:
        url: Supabase project URL.
        api_key: Supabase API key.

    Returns:
        Supabase Client instance.

    Raises:
        SupabaseClientError: If the key or Supabase URL is missing.
    """
    if not url:
        raise SupabaseClientError("Supabase URL is not configured.")

    if not api_key:
        raise SupabaseClientError("Supabase API key is missing.")

    try:
        return create_client(url, api_key)
    except Exception as exc:
        raise SupabaseClientError(f"Failed to create Supabase client: {exc}") from exc


def get_service_role_client(config: Optional[Settings] = None) -> Client:
    """
    Return a Supabase client configured with the service-role key.

    The service-role key bypasses RLS, which the gallery scan and the orphaned
    row prune both need.
    """
    config = config or settings
    if not config.supabase_service_role_key:
        raise SupabaseClientError("Supabase service-role key is not configured.")
    return _build_client(config.supabase_url, config.supabase_service_role_key)
