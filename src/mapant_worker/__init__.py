"""
mapant worker

Polls the mapant.fr map generation API for the next job and runs it
locally: lidar tiles go through cassini and are packed into tar.bz2
archives.
"""

from .config import WorkerConfig
from .models import Job, decode
from .registry import HandlerRegistry, JobHandler
from .worker import CycleOutcome, Worker

__all__ = [
    "CycleOutcome",
    "HandlerRegistry",
    "Job",
    "JobHandler",
    "Worker",
    "WorkerConfig",
    "decode",
]
__version__ = "0.1.0"
