"""Render step."""

import logging
from typing import Any

from ..models import Job, RenderJob
from ..registry import JobHandler

logger = logging.getLogger(__name__)


class RenderHandler(JobHandler):
    """Accepts render jobs; rendering itself is not implemented by this worker."""

    def execute(self, job: Job, context: dict[str, Any]) -> None:
        if not isinstance(job, RenderJob):
            raise TypeError(f"{self.name} cannot handle {type(job).__name__}")
        logger.warning(f"Render job for tile {job.tile_name} received, nothing to do")
