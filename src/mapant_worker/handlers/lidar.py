"""Lidar step: download a raw tile, run cassini on it, pack the output."""

import logging
import time
from pathlib import Path
from typing import Any

import httpx

from .. import tools, transfer
from ..config import WorkerConfig
from ..models import Job, LidarJob, TileArtifact
from ..process import require_success
from ..registry import JobHandler

logger = logging.getLogger(__name__)

LIDAR_FILES_DIR = "lidar-files"
LIDAR_STEP_DIR = "lidar-step"


def ensure_dir(path: str | Path) -> Path:
    """Create a directory if it does not exist yet."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def input_file_path(job: LidarJob) -> Path:
    """Local path of the downloaded tile, relative to the work directory."""
    return Path(LIDAR_FILES_DIR) / job.file_name


def output_dir_path(job: LidarJob) -> Path:
    """Cassini output directory, relative to the work directory."""
    return Path(LIDAR_STEP_DIR) / job.tile_name


class LidarHandler(JobHandler):
    """Run the lidar pipeline for one tile.

    Steps run strictly in order and the first failure ends the pipeline:
    download, ``cassini lidar``, then ``tar`` of the output directory.
    """

    def __init__(self, config: WorkerConfig, *, http_client: httpx.Client | None = None) -> None:
        self.config = config
        self.http_client = http_client

    def execute(self, job: Job, context: dict[str, Any]) -> TileArtifact:
        if not isinstance(job, LidarJob):
            raise TypeError(f"{self.name} cannot handle {type(job).__name__}")

        work_dir = Path(self.config.work_dir)
        ensure_dir(work_dir / LIDAR_FILES_DIR)
        ensure_dir(work_dir / LIDAR_STEP_DIR)

        input_file = input_file_path(job)
        out_dir = output_dir_path(job)

        logger.info(f"Downloading lidar file: {job.file_name} (tile {job.tile_name})")
        start = time.monotonic()
        size = transfer.download(job.data.tile_url, work_dir / input_file, client=self.http_client)
        logger.info(
            f"Lidar file for tile {job.tile_name} downloaded in "
            f"{time.monotonic() - start:.1f}s ({size} bytes)"
        )

        logger.info(f"Running cassini lidar subcommand for tile {job.tile_name}")
        start = time.monotonic()
        result = tools.run_cassini(self.config, "lidar", str(input_file), "-o", str(out_dir))
        require_success(result, "cassini lidar")
        logger.info(
            f"Lidar step for tile {job.tile_name} processed in {time.monotonic() - start:.1f}s"
        )

        logger.info(f"Compressing lidar step files for tile {job.tile_name}")
        start = time.monotonic()
        archive_path, result = tools.compress_dir(
            out_dir, LIDAR_STEP_DIR, job.tile_name, cwd=work_dir
        )
        require_success(result, "tar")
        logger.info(
            f"Lidar step files for tile {job.tile_name} compressed in "
            f"{time.monotonic() - start:.1f}s"
        )

        return TileArtifact(directory=work_dir / out_dir, archive=work_dir / archive_path)
