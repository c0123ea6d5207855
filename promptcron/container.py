"""Service wiring for promptcron.

Builds every component from Config once per process. Entry points (Lambda
handlers, the FastAPI app) call get_services(); tests build Services directly
from fakes.
"""

from dataclasses import dataclass
from typing import Optional

import boto3

from promptcron.config import Config
from promptcron.core.execution import JobExecutor, RetryCoordinator
from promptcron.core.logging import logger
from promptcron.infrastructure.database import SupabaseClient
from promptcron.infrastructure.database.repositories import ExecutionRepository, JobRepository
from promptcron.infrastructure.scheduling import TriggerRegistry
from promptcron.integrations.completion import CompletionClient


@dataclass
class Services:
    """Wired components shared by one process."""

    jobs: JobRepository
    executions: ExecutionRepository
    completion: CompletionClient
    triggers: TriggerRegistry
    retries: RetryCoordinator
    executor: JobExecutor
    database: Optional[SupabaseClient] = None


def build_services() -> Services:
    """Build all components from environment configuration.

    Raises:
        ConfigurationError: If a required environment variable is missing
    """
    Config.require()

    region = Config.aws_region()
    database = SupabaseClient(Config.supabase_url(), Config.supabase_service_role_key())
    jobs = JobRepository(database, Config.jobs_table())
    executions = ExecutionRepository(database, Config.executions_table())
    completion = CompletionClient(Config.completion_api_url(), Config.completion_timeout_seconds())
    triggers = TriggerRegistry(
        events_client=boto3.client("events", region_name=region),
        scheduler_client=boto3.client("scheduler", region_name=region),
        executor_arn=Config.executor_arn(),
        scheduler_role_arn=Config.scheduler_role_arn(),
        schedule_group=Config.schedule_group(),
        name_prefix=Config.trigger_prefix(),
    )
    retries = RetryCoordinator(jobs, triggers)
    executor = JobExecutor(jobs, executions, completion, triggers, retries)

    logger.info(
        "services_initialized",
        jobs_table=Config.jobs_table(),
        executions_table=Config.executions_table(),
        region=region,
        completion_timeout_seconds=completion.timeout_seconds,
    )
    return Services(
        jobs=jobs,
        executions=executions,
        completion=completion,
        triggers=triggers,
        retries=retries,
        executor=executor,
        database=database,
    )


_services: Optional[Services] = None


def get_services() -> Services:
    """Get the process-wide Services, building them on first use."""
    global _services
    if _services is None:
        _services = build_services()
    return _services
