"""Supabase client wrapper for promptcron.

One instance is created at process start (see promptcron.container) and passed
to every repository, so tests can substitute a fake client.
"""

from typing import Optional

from supabase import Client, create_client

from promptcron.core.errors import ConfigurationError
from promptcron.core.logging import logger


class SupabaseClient:
    """Supabase client with lazy initialization."""

    def __init__(self, url: Optional[str], key: Optional[str], client: Optional[Client] = None):
        """Initialize wrapper.

        Args:
            url: Supabase project URL
            key: Supabase service role key
            client: Pre-built client (tests or custom options)
        """
        self._url = url
        self._key = key
        self._client = client

    @property
    def client(self) -> Client:
        """Get Supabase client, initializing if needed."""
        if self._client is None:
            if not self.is_configured():
                raise ConfigurationError(
                    "Supabase not configured. Set SUPABASE_URL and "
                    "SUPABASE_SERVICE_ROLE_KEY environment variables.",
                    missing=["SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"],
                )

            self._client = create_client(self._url, self._key)
            logger.info("supabase_client_initialized", url=self._url)

        return self._client

    def is_configured(self) -> bool:
        """Check if Supabase is properly configured."""
        return self._client is not None or (bool(self._url) and bool(self._key))
