"""promptcron: cron-scheduled prompt jobs with timed execution and automatic retries."""

__version__ = "1.0.0"
