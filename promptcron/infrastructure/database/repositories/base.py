"""Base repository interface for promptcron.

Implements Repository pattern with Dependency Inversion principle.
All concrete repositories inherit from BaseRepository.
"""

from abc import ABC
from typing import Generic, TypeVar

from promptcron.infrastructure.database.client import SupabaseClient

T = TypeVar("T")


class BaseRepository(ABC, Generic[T]):
    """Abstract base repository for database operations.

    Table names come from configuration; they are never guessed.
    """

    def __init__(self, client: SupabaseClient, table_name: str):
        """Initialize repository.

        Args:
            client: Shared SupabaseClient created at startup
            table_name: Name of the table this repository manages
        """
        self._client = client
        self._table_name = table_name

    @property
    def db(self):
        """Get Supabase client instance."""
        return self._client.client

    def table_name(self) -> str:
        """Return the table name this repository manages."""
        return self._table_name
