"""Handler registration."""

import httpx

from ..config import WorkerConfig
from ..models import JobType
from ..registry import HandlerRegistry
from .lidar import LidarHandler
from .pyramid import PyramidHandler
from .render import RenderHandler

__all__ = ["LidarHandler", "PyramidHandler", "RenderHandler", "register_handlers"]


def register_handlers(
    registry: HandlerRegistry,
    config: WorkerConfig,
    *,
    http_client: httpx.Client | None = None,
) -> None:
    """Register one handler per producing job type."""
    registry.register(JobType.LIDAR, LidarHandler(config, http_client=http_client))
    registry.register(JobType.RENDER, RenderHandler())
    registry.register(JobType.PYRAMID, PyramidHandler())
