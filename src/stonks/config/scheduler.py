"""Scheduling defaults for the scrape loop."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_INTERVAL_SECONDS = 60
DEFAULT_CONNECTIVITY_HOST = "google.com"


@dataclass(frozen=True, slots=True)
class SchedulerConfig:
    interval_seconds: int = DEFAULT_INTERVAL_SECONDS
    connectivity_host: str = DEFAULT_CONNECTIVITY_HOST
    poll_seconds: float = 1.0


def get_scheduler_config() -> SchedulerConfig:
    return SchedulerConfig()
