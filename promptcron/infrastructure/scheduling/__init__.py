"""External scheduling facility integration for promptcron."""

from promptcron.infrastructure.scheduling.trigger_registry import EXECUTOR_TARGET_ID, TriggerRegistry

__all__ = ["EXECUTOR_TARGET_ID", "TriggerRegistry"]
