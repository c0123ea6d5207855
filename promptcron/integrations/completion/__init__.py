"""Completion service integration for promptcron."""

from promptcron.integrations.completion.client import DEFAULT_TIMEOUT_SECONDS, CompletionClient

__all__ = ["CompletionClient", "DEFAULT_TIMEOUT_SECONDS"]
