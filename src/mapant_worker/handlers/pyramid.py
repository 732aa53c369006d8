"""Pyramid step."""

import logging
from typing import Any

from ..models import Job, PyramidJob
from ..registry import JobHandler

logger = logging.getLogger(__name__)


class PyramidHandler(JobHandler):
    """Accepts pyramid jobs; tile pyramid building is not implemented by this worker."""

    def execute(self, job: Job, context: dict[str, Any]) -> None:
        if not isinstance(job, PyramidJob):
            raise TypeError(f"{self.name} cannot handle {type(job).__name__}")
        logger.warning(
            f"Pyramid job x={job.data.x}, y={job.data.y}, z={job.data.z} received, nothing to do"
        )
