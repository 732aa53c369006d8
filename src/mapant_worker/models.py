"""Pydantic models for next-job responses."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Union
from urllib.parse import urlsplit

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
)

from .errors import DecodeError, JobValidationError

_url_adapter = TypeAdapter(AnyUrl)


def _check_absolute_url(value: str) -> str:
    # Validated as a URL but kept verbatim; AnyUrl would normalise it
    _url_adapter.validate_python(value)
    return value


AbsoluteUrl = Annotated[StrictStr, AfterValidator(_check_absolute_url)]


class JobType(str, Enum):
    """Job type discriminant as sent by the dispatch endpoint."""

    LIDAR = "lidar"
    RENDER = "render"
    PYRAMID = "pyramid"
    NO_JOB_LEFT = "no-job-left"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class LidarJobData(_Frozen):
    """Tile coordinates and source URL of a lidar job."""

    x: StrictInt
    y: StrictInt
    tile_url: AbsoluteUrl = Field(alias="tileUrl")


class RenderJobData(_Frozen):
    x: StrictInt
    y: StrictInt


class PyramidJobData(_Frozen):
    x: StrictInt
    y: StrictInt
    z: StrictInt


class LidarJob(_Frozen):
    """Download a raw lidar tile and run the cassini lidar step on it."""

    type: Literal["lidar"] = "lidar"
    data: LidarJobData

    @property
    def tile_name(self) -> str:
        return f"{self.data.x}_{self.data.y}"

    @property
    def file_name(self) -> str:
        """Final path segment of the tile URL, used as the local file name.

        Raises:
            JobValidationError: If the URL path ends without a file name
        """
        name = urlsplit(self.data.tile_url).path.rsplit("/", 1)[-1]
        if not name or name in {".", ".."}:
            raise JobValidationError(
                "Tile URL has no file name", details={"tile_url": self.data.tile_url}
            )
        return name


class RenderJob(_Frozen):
    """Render a map tile (processing not implemented by this worker)."""

    type: Literal["render"] = "render"
    data: RenderJobData

    @property
    def tile_name(self) -> str:
        return f"{self.data.x}_{self.data.y}"


class PyramidJob(_Frozen):
    """Build one pyramid level tile (processing not implemented by this worker)."""

    type: Literal["pyramid"] = "pyramid"
    data: PyramidJobData

    @property
    def tile_name(self) -> str:
        return f"{self.data.x}_{self.data.y}_{self.data.z}"


class NoJobLeft(_Frozen):
    """The work queue is empty."""

    type: Literal["no-job-left"] = "no-job-left"


Job = Annotated[
    Union[LidarJob, RenderJob, PyramidJob, NoJobLeft],
    Field(discriminator="type"),
]

_job_adapter: TypeAdapter[Job] = TypeAdapter(Job)


def decode(raw: Any) -> Job:
    """
    Decode a raw next-job response into a typed job.

    Args:
        raw: Parsed JSON value as returned by the dispatch endpoint

    Returns:
        The single job variant selected by the ``type`` field

    Raises:
        DecodeError: If the value matches none of the known job shapes
    """
    try:
        return _job_adapter.validate_python(raw)
    except ValidationError as e:
        raise DecodeError(
            "Unexpected next-job response",
            errors=e.errors(include_url=False, include_context=False, include_input=False),
        ) from e


@dataclass(frozen=True)
class TileArtifact:
    """Output of a successful lidar pipeline run, left on local storage."""

    directory: Path
    archive: Path
