"""Configuration management for promptcron.

Centralizes all environment variable access for better testability and maintainability.
Required identifiers (tables, endpoints, ARNs) have no fallback values.
"""

import os
from typing import Optional

from promptcron.core.errors import ConfigurationError


class Config:
    """Application configuration loaded from environment variables."""

    # Supabase configuration
    @staticmethod
    def supabase_url() -> Optional[str]:
        """Get Supabase project URL from environment."""
        return os.environ.get("SUPABASE_URL")

    @staticmethod
    def supabase_service_role_key() -> Optional[str]:
        """Get Supabase service role key from environment."""
        return os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

    @staticmethod
    def jobs_table() -> Optional[str]:
        """Get the Job Store table name."""
        return os.environ.get("PROMPTCRON_JOBS_TABLE")

    @staticmethod
    def executions_table() -> Optional[str]:
        """Get the Execution Store table name."""
        return os.environ.get("PROMPTCRON_EXECUTIONS_TABLE")

    # Completion service
    @staticmethod
    def completion_api_url() -> Optional[str]:
        """Get the completion service endpoint."""
        return os.environ.get("PROMPTCRON_COMPLETION_API_URL")

    @staticmethod
    def completion_timeout_seconds() -> float:
        """Get the hard timeout for one completion call (default 5 minutes)."""
        return float(os.environ.get("PROMPTCRON_COMPLETION_TIMEOUT_SECONDS", "300"))

    # AWS scheduling
    @staticmethod
    def executor_arn() -> Optional[str]:
        """Get the ARN of the executor function that triggers invoke."""
        return os.environ.get("PROMPTCRON_EXECUTOR_ARN")

    @staticmethod
    def scheduler_role_arn() -> Optional[str]:
        """Get the IAM role EventBridge Scheduler assumes for one-shot retries."""
        return os.environ.get("PROMPTCRON_SCHEDULER_ROLE_ARN")

    @staticmethod
    def schedule_group() -> str:
        """Get the EventBridge Scheduler group for retry schedules."""
        return os.environ.get("PROMPTCRON_SCHEDULE_GROUP", "default")

    @staticmethod
    def trigger_prefix() -> str:
        """Get the prefix used when naming rules and schedules."""
        return os.environ.get("PROMPTCRON_TRIGGER_PREFIX", "promptcron")

    @staticmethod
    def aws_region() -> Optional[str]:
        """Get AWS region (None lets boto3 resolve it)."""
        return os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION")

    # Helper methods
    @staticmethod
    def is_configured() -> bool:
        """Check if all required configuration is present."""
        return not Config.get_missing_config()

    @staticmethod
    def get_missing_config() -> list[str]:
        """Get list of missing required configuration keys."""
        required = {
            "SUPABASE_URL": Config.supabase_url(),
            "SUPABASE_SERVICE_ROLE_KEY": Config.supabase_service_role_key(),
            "PROMPTCRON_JOBS_TABLE": Config.jobs_table(),
            "PROMPTCRON_EXECUTIONS_TABLE": Config.executions_table(),
            "PROMPTCRON_COMPLETION_API_URL": Config.completion_api_url(),
            "PROMPTCRON_EXECUTOR_ARN": Config.executor_arn(),
            "PROMPTCRON_SCHEDULER_ROLE_ARN": Config.scheduler_role_arn(),
        }
        return [key for key, value in required.items() if not value]

    @staticmethod
    def require() -> None:
        """Fail fast when required configuration is missing.

        Raises:
            ConfigurationError: Naming every missing environment variable
        """
        missing = Config.get_missing_config()
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}", missing=missing
            )


# Singleton instance for easy access
config = Config()
