"""Job handler registry."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from .models import Job, JobType


class JobHandler(ABC):
    """Base class for per-kind job pipelines."""

    @abstractmethod
    def execute(self, job: Job, context: dict[str, Any]) -> Any:
        """Execute the job.

        Args:
            job: Decoded job
            context: Cycle context (``cycle_id``)

        Raises:
            WorkerError: On any failed step; the cycle ends there
        """

    @property
    def name(self) -> str:
        """Handler name (defaults to class name)."""
        return self.__class__.__name__


class HandlerRegistry:
    """Registry for job type handlers."""

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._handlers: dict[JobType, JobHandler] = {}

    def register(self, job_type: JobType | str, handler: JobHandler) -> None:
        """
        Register a handler for a job type.

        Args:
            job_type: Job type discriminant
            handler: Handler instance

        Raises:
            ValueError: If the type is unknown or already registered
        """
        job_type = JobType(job_type)
        if job_type is JobType.NO_JOB_LEFT:
            raise ValueError("no-job-left is handled by the worker, not a handler")
        if job_type in self._handlers:
            raise ValueError(f"Handler already registered for type: {job_type.value}")
        self._handlers[job_type] = handler

    def get(self, job_type: JobType | str) -> JobHandler | None:
        """Get handler for job type."""
        return self._handlers.get(JobType(job_type))

    def has(self, job_type: JobType | str) -> bool:
        """Check if handler is registered."""
        return JobType(job_type) in self._handlers

    def list_types(self) -> list[str]:
        """List all registered job types."""
        return [job_type.value for job_type in self._handlers]

    def missing(self, job_types: Iterable[JobType]) -> list[JobType]:
        """Job types from ``job_types`` that have no handler."""
        return [job_type for job_type in job_types if job_type not in self._handlers]
